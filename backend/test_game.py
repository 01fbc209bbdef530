"""
Unit tests for GameStateMachine

Tests cover:
- Clicks: counters, per-click power capture, feedback events, achievements
- Upgrade and producer purchases, including unaffordable no-ops
- Production ticks and feedback expiry
- Shop offers
"""

import pytest
from achievements import FIRST_HUNDRED, THOUSAND_POINTS
from economy import (
    CLICK_MULTIPLIER,
    GOLDEN_VARIANT,
    MEGA_CLICKS,
    PRODUCER_EFFICIENCY,
    UPGRADE_DEFINITIONS,
    UnknownUpgradeError,
)
from game import GameStateMachine
from game_state import GameState


def snapshot(state: GameState):
    return (
        state.points,
        state.total_clicks,
        state.click_power,
        state.producer_count,
        state.producer_power,
        dict(state.upgrades),
        list(state.achievements),
    )


class TestClick:
    """Manual click transitions"""

    def test_hundred_clicks_from_defaults(self):
        """100 clicks at power 1 -> 100 points and the first_hundred achievement"""
        machine = GameStateMachine()
        unlocked = []
        for _ in range(100):
            unlocked.extend(machine.click().unlocked)

        state = machine.state
        assert state.total_clicks == 100
        assert state.points == 100
        assert state.achievements == [FIRST_HUNDRED]
        assert unlocked == [FIRST_HUNDRED]

    def test_achievement_detected_on_crossing_click(self):
        """The 100th click itself reports the unlock, not a later one"""
        machine = GameStateMachine(GameState(total_clicks=99))
        result = machine.click()
        assert result.unlocked == [FIRST_HUNDRED]
        assert machine.click().unlocked == []
        assert machine.state.achievements == [FIRST_HUNDRED]

    def test_points_achievement_uses_post_click_points(self):
        machine = GameStateMachine(GameState(points=999.5))
        assert machine.click().unlocked == [THOUSAND_POINTS]

    def test_power_captured_per_click(self):
        """Points reflect the click power at the time of each click"""
        machine = GameStateMachine(GameState(points=50))
        machine.buy_upgrade(CLICK_MULTIPLIER)  # points -> 0, power -> 2
        machine.click()
        machine.click()
        assert machine.state.points == 4
        assert machine.state.total_clicks == 2

    def test_feedback_events_have_unique_ids(self):
        machine = GameStateMachine()
        first = machine.click(10, 20).event
        second = machine.click(30, 40).event

        assert first.id != second.id
        assert (first.x, first.y, first.points_gained) == (10, 20, 1)
        assert machine.state.pending_feedback == [first, second]


class TestBuyUpgrade:
    """Upgrade purchases"""

    def test_click_multiplier_scenario(self):
        """Earn 50 points, buy clickMultiplier once"""
        machine = GameStateMachine()
        for _ in range(50):
            machine.click()
        before = machine.state.click_power

        result = machine.buy_upgrade(CLICK_MULTIPLIER)

        effect = UPGRADE_DEFINITIONS[CLICK_MULTIPLIER].effect
        assert result.changed
        assert result.cost == 50
        assert machine.state.points == 0
        assert machine.state.upgrades[CLICK_MULTIPLIER] == 1
        assert machine.state.click_power - before == effect(1) - effect(0)

    def test_unaffordable_is_noop(self):
        machine = GameStateMachine(GameState(points=49))
        before = snapshot(machine.state)

        result = machine.buy_upgrade(CLICK_MULTIPLIER)

        assert not result.changed
        assert result.cost == 50
        assert snapshot(machine.state) == before

    def test_golden_variant_adds_to_click_power(self):
        machine = GameStateMachine(GameState(points=2000 + 50))
        machine.buy_upgrade(CLICK_MULTIPLIER)
        machine.buy_upgrade(GOLDEN_VARIANT)
        assert machine.state.click_power == 1 + 1 + 2
        assert machine.state.points == 0

    def test_efficiency_refreshes_producer_power_immediately(self):
        machine = GameStateMachine(GameState(points=500, producer_count=2, producer_power=2))
        machine.buy_upgrade(PRODUCER_EFFICIENCY)
        assert abs(machine.state.producer_power - 3.0) < 1e-9

        machine.tick_production()
        assert abs(machine.state.points - 3.0) < 1e-9

    def test_second_level_costs_more(self):
        machine = GameStateMachine(GameState(points=50 + 75))
        assert machine.buy_upgrade(CLICK_MULTIPLIER).cost == 50
        assert machine.buy_upgrade(CLICK_MULTIPLIER).cost == 75
        assert machine.state.points == 0
        assert not machine.buy_upgrade(CLICK_MULTIPLIER).changed

    def test_unknown_and_reserved_keys_rejected(self):
        machine = GameStateMachine(GameState(points=10_000))
        with pytest.raises(UnknownUpgradeError):
            machine.buy_upgrade("turboMode")
        with pytest.raises(UnknownUpgradeError):
            machine.buy_upgrade(MEGA_CLICKS)
        assert machine.state.points == 10_000


class TestBuyProducer:
    """Producer purchases"""

    def test_first_producer(self):
        machine = GameStateMachine(GameState(points=150))
        result = machine.buy_producer()

        assert result.changed
        assert machine.state.producer_count == 1
        assert machine.state.points == 50
        assert machine.state.producer_power == 1

    def test_buy_until_unaffordable(self):
        """Deducted amounts equal the floored displayed costs; points never go negative"""
        machine = GameStateMachine(GameState(points=100 + 114 + 132 + 10))
        bought = 0
        while machine.buy_producer().changed:
            bought += 1

        assert bought == 3
        assert machine.state.producer_count == 3
        assert machine.state.points == 10

    def test_exact_floored_cost_is_affordable(self):
        """Holding exactly floor(cost) is enough"""
        machine = GameStateMachine(GameState(points=114, producer_count=1, producer_power=1))
        assert machine.buy_producer().changed
        assert machine.state.points == 0

    def test_unaffordable_is_noop(self):
        machine = GameStateMachine(GameState(points=99.9))
        before = snapshot(machine.state)
        assert not machine.buy_producer().changed
        assert snapshot(machine.state) == before

    def test_producer_power_uses_efficiency(self):
        machine = GameStateMachine(GameState(
            points=100,
            upgrades={CLICK_MULTIPLIER: 0, PRODUCER_EFFICIENCY: 2, GOLDEN_VARIANT: 0, MEGA_CLICKS: 0},
        ))
        machine.buy_producer()
        assert machine.state.producer_power == 2.0


class TestTimedTransitions:
    """Production ticks and feedback expiry"""

    def test_tick_without_producers_is_noop(self):
        machine = GameStateMachine()
        assert not machine.tick_production().changed
        assert machine.state.points == 0

    def test_tick_adds_producer_power(self):
        machine = GameStateMachine(GameState(points=0, producer_count=2, producer_power=3.0))
        machine.tick_production()
        machine.tick_production()
        assert machine.state.points == 6.0

    def test_tick_crossing_thousand_unlocks(self):
        machine = GameStateMachine(GameState(points=999, producer_count=1, producer_power=1))
        assert machine.tick_production().unlocked == [THOUSAND_POINTS]
        assert machine.tick_production().unlocked == []

    def test_expire_feedback_idempotent(self):
        machine = GameStateMachine()
        machine.click()
        assert machine.expire_feedback().changed
        assert machine.state.pending_feedback == []

        before = snapshot(machine.state)
        assert not machine.expire_feedback().changed
        assert snapshot(machine.state) == before
        assert machine.state.pending_feedback == []

    def test_achievements_never_removed(self):
        machine = GameStateMachine(GameState(points=5000, total_clicks=99))
        machine.click()
        unlocked = list(machine.state.achievements)
        machine.buy_upgrade(GOLDEN_VARIANT)
        machine.buy_producer()
        machine.expire_feedback()
        machine.tick_production()
        assert machine.state.achievements == unlocked
        assert sorted(unlocked) == sorted([FIRST_HUNDRED, THOUSAND_POINTS])


class TestShop:
    """Shop offers"""

    def test_offers_cover_producer_and_catalog(self):
        machine = GameStateMachine(GameState(points=60))
        offers = {offer["key"]: offer for offer in machine.shop()}

        assert set(offers) == {"producer", *UPGRADE_DEFINITIONS}
        assert offers["producer"]["cost"] == 100
        assert not offers["producer"]["affordable"]
        assert offers[CLICK_MULTIPLIER]["affordable"]
        assert offers[CLICK_MULTIPLIER]["upcomingCosts"][:3] == [50, 75, 112]

    def test_unrepresentable_costs_shown_as_unavailable(self):
        """A loaded save with absurd levels still gets a JSON-safe shop"""
        state = GameState.from_record({"points": 1e300, "producerCount": 6000, "upgrades": {CLICK_MULTIPLIER: 6000}})
        machine = GameStateMachine(state)
        offers = {offer["key"]: offer for offer in machine.shop()}

        assert offers["producer"]["cost"] is None
        assert not offers["producer"]["affordable"]
        assert offers[CLICK_MULTIPLIER]["cost"] is None
        assert not offers[CLICK_MULTIPLIER]["affordable"]
        assert offers[GOLDEN_VARIANT]["affordable"]


class TestUnrepresentableCosts:
    """Purchases at levels whose cost overflows a float"""

    def test_buy_producer_is_noop(self):
        machine = GameStateMachine(GameState.from_record({"points": 1e300, "producerCount": 6000}))
        before = snapshot(machine.state)

        result = machine.buy_producer()

        assert not result.changed
        assert result.cost == float("inf")
        assert snapshot(machine.state) == before

    def test_buy_upgrade_is_noop(self):
        machine = GameStateMachine(GameState.from_record({"points": 1e300, "upgrades": {CLICK_MULTIPLIER: 6000}}))
        before = snapshot(machine.state)

        assert not machine.buy_upgrade(CLICK_MULTIPLIER).changed
        assert snapshot(machine.state) == before
