"""
Game State Machine

Owns one GameState and applies the transitions that change it: manual
clicks, upgrade and producer purchases, production ticks and feedback
expiry. Pure with respect to the outside world; newly unlocked
achievements are returned to the caller, who dispatches notifications.
"""

import itertools
import logging
import math
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Union

from achievements import evaluate
from config import CONFIG, GameConfig
from economy import (
    PRODUCER_EFFICIENCY,
    UPGRADE_DEFINITIONS,
    compute_click_power,
    compute_producer_power,
    cost_of,
    cost_schedule,
    get_definition,
    producer_cost,
    producer_cost_schedule,
)
from game_state import ClickEvent, GameState

logger = logging.getLogger(__name__)


@dataclass
class TransitionResult:
    """Outcome of one transition."""

    changed: bool
    unlocked: List[str] = field(default_factory=list)
    event: Optional[ClickEvent] = None
    cost: Union[int, float] = 0


class GameStateMachine:
    """
    Transition coordinator for a single player session.

    Every operation reads and writes the owned state directly; timers and
    handlers reach it through this object, never through a captured copy.
    """

    def __init__(self, state: Optional[GameState] = None, config: GameConfig = None):
        self.config = config or CONFIG
        self._state = state if state is not None else GameState(
            click_power=self.config.economy.starting_click_power
        )
        self._event_ids = itertools.count(1)

    @property
    def state(self) -> GameState:
        return self._state

    def replace_state(self, state: GameState) -> None:
        """Swap in a freshly loaded state (session start only)."""
        self._state = state

    def click(self, x: float = 0.0, y: float = 0.0) -> TransitionResult:
        """Register one manual click at (x, y). Always succeeds."""
        state = self._state
        points_gained = state.click_power

        state.total_clicks += 1
        state.points += points_gained
        event = ClickEvent(x=x, y=y, points_gained=points_gained, id=next(self._event_ids))
        state.pending_feedback.append(event)

        unlocked = self._unlock_achievements()
        return TransitionResult(changed=True, unlocked=unlocked, event=event)

    def buy_upgrade(self, key: str) -> TransitionResult:
        """
        Buy one level of an upgrade if affordable.

        Raises:
            UnknownUpgradeError: key has no catalog definition
        """
        state = self._state
        definition = get_definition(key)
        level = state.upgrades.get(definition.key, 0)
        cost = cost_of(definition, level)

        if state.points < cost:
            return TransitionResult(changed=False, cost=cost)

        state.points -= cost
        state.upgrades[definition.key] = level + 1
        state.click_power = compute_click_power(state.upgrades, self.config.economy)
        if definition.key == PRODUCER_EFFICIENCY:
            # Production ticks add the stored value, so refresh it now
            state.producer_power = compute_producer_power(state.producer_count, state.upgrades[PRODUCER_EFFICIENCY])

        logger.debug(f"Bought {definition.key} level {level + 1} for {cost}")
        return TransitionResult(changed=True, cost=cost)

    def buy_producer(self) -> TransitionResult:
        """Buy one producer if affordable."""
        state = self._state
        cost = producer_cost(state.producer_count, self.config.economy)

        if state.points < cost:
            return TransitionResult(changed=False, cost=cost)

        state.points -= cost
        state.producer_count += 1
        state.producer_power = compute_producer_power(
            state.producer_count, state.upgrades.get(PRODUCER_EFFICIENCY, 0)
        )

        logger.debug(f"Bought producer #{state.producer_count} for {cost}")
        return TransitionResult(changed=True, cost=cost)

    def tick_production(self) -> TransitionResult:
        """Add one interval of producer output."""
        state = self._state
        if state.producer_count == 0:
            return TransitionResult(changed=False)

        state.points += state.producer_power
        unlocked = self._unlock_achievements()
        return TransitionResult(changed=True, unlocked=unlocked)

    def expire_feedback(self) -> TransitionResult:
        """Drop all pending click feedback."""
        if not self._state.pending_feedback:
            return TransitionResult(changed=False)
        self._state.pending_feedback.clear()
        return TransitionResult(changed=True)

    def shop(self) -> List[Dict[str, object]]:
        """Current offers with costs, affordability and upcoming costs."""
        state = self._state
        preview = self.config.economy.shop_preview_levels

        next_producer = producer_cost(state.producer_count, self.config.economy)
        offers = [{
            "key": "producer",
            "name": "Auto-Clicker",
            "description": "Clicks automatically every second",
            "level": state.producer_count,
            "cost": _display_cost(next_producer),
            "affordable": state.points >= next_producer,
            "upcomingCosts": producer_cost_schedule(state.producer_count, preview, self.config.economy).tolist(),
        }]

        for key, definition in UPGRADE_DEFINITIONS.items():
            level = state.upgrades.get(key, 0)
            cost = cost_of(definition, level)
            offers.append({
                "key": key,
                "name": definition.name,
                "description": definition.description,
                "level": level,
                "cost": _display_cost(cost),
                "affordable": state.points >= cost,
                "upcomingCosts": cost_schedule(definition, level, preview).tolist(),
            })
        return offers

    def _unlock_achievements(self) -> List[str]:
        state = self._state
        unlocked = evaluate(state.total_clicks, state.points, state.achievements, self.config.achievements)
        for achievement_id in unlocked:
            state.achievements.append(achievement_id)
            logger.info(f"Achievement unlocked: {achievement_id}")
        return unlocked


def _display_cost(cost):
    """JSON-safe cost: None when the cost is out of float range."""
    return cost if math.isfinite(cost) else None
