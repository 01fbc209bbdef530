"""
Balance simulator smoke tests
"""

from game import GameStateMachine
from game_state import GameState
from run_session import buy_cheapest, simulate


class TestBalanceRun:

    def test_click_only_run(self):
        machine = simulate(seconds=30, clicks_per_second=4, report_every=0, greedy=False)
        state = machine.state
        assert state.total_clicks == 120
        assert state.points == 120
        assert state.achievements == ["first_hundred"]
        assert state.pending_feedback == []

    def test_greedy_run_buys_and_never_overspends(self):
        machine = simulate(seconds=120, clicks_per_second=5, report_every=0, greedy=True)
        state = machine.state
        assert state.producer_count > 0
        assert state.upgrades["clickMultiplier"] > 0
        assert state.points >= 0

    def test_buy_cheapest_picks_lowest_cost(self):
        machine = GameStateMachine(GameState(points=60))
        assert buy_cheapest(machine) == 1
        assert machine.state.upgrades["clickMultiplier"] == 1
        assert machine.state.producer_count == 0
        assert machine.state.points == 10
