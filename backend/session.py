"""
Game Session

Wires one GameStateMachine to its timers, its persistence synchronizer and
a notifier. All entry points run on the event loop thread, so a click or
purchase between two production ticks is fully applied before the next
tick adds producer output.
"""

import logging
from typing import Optional

from config import CONFIG, GameConfig
from game import GameStateMachine, TransitionResult
from notifications import LoggingNotifier, Notifier, dispatch_unlocks
from persistence import PersistenceSynchronizer, RecordStore
from scheduler import OneShotTimer, PeriodicTimer

logger = logging.getLogger(__name__)


class GameSession:
    """
    One player session: load, play, periodic save, release.

    Usage:
        async with GameSession(store) as session:
            session.click(10, 20)
    """

    def __init__(
        self,
        store: RecordStore,
        notifier: Optional[Notifier] = None,
        config: GameConfig = None,
        machine: Optional[GameStateMachine] = None,
    ):
        self.config = config or CONFIG
        self.machine = machine or GameStateMachine(config=self.config)
        self.notifier = notifier or LoggingNotifier()
        self.synchronizer = PersistenceSynchronizer(
            store, user_id=self.config.persistence.user_id, economy_config=self.config.economy
        )
        self.loaded = False

        timing = self.config.timing
        self.production_timer = PeriodicTimer(timing.production_interval, self.tick_production, name="production")
        self.save_timer = PeriodicTimer(timing.save_interval, self.save, name="save")
        self.feedback_timer = OneShotTimer(timing.feedback_delay, self.expire_feedback, name="feedback")

    @property
    def state(self):
        return self.machine.state

    async def start(self) -> None:
        """Load the saved game, then start the save tick (and production if any)."""
        self.machine.replace_state(await self.synchronizer.load())
        self.loaded = True
        self.save_timer.start()
        self.sync_production()
        logger.info(
            f"Session started: {self.state.points:.1f} points, "
            f"{self.state.producer_count} producers, {len(self.state.achievements)} achievements"
        )

    def stop(self) -> None:
        """Release every timer. The in-memory state is left as is."""
        self.production_timer.stop()
        self.save_timer.stop()
        self.feedback_timer.cancel()
        logger.info("Session stopped")

    async def __aenter__(self) -> "GameSession":
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        self.stop()

    def sync_production(self) -> None:
        """Run the production timer exactly while producers are owned."""
        if self.state.producer_count > 0:
            self.production_timer.start()
        else:
            self.production_timer.stop()

    def _after(self, result: TransitionResult) -> TransitionResult:
        if result.unlocked:
            dispatch_unlocks(self.notifier, result.unlocked)
        return result

    def click(self, x: float = 0.0, y: float = 0.0) -> TransitionResult:
        result = self.machine.click(x, y)
        self.feedback_timer.arm()
        return self._after(result)

    def buy_upgrade(self, key: str) -> TransitionResult:
        result = self.machine.buy_upgrade(key)
        self.sync_production()
        return self._after(result)

    def buy_producer(self) -> TransitionResult:
        result = self.machine.buy_producer()
        self.sync_production()
        return self._after(result)

    def tick_production(self) -> TransitionResult:
        result = self.machine.tick_production()
        self.sync_production()
        return self._after(result)

    def expire_feedback(self) -> TransitionResult:
        return self.machine.expire_feedback()

    async def save(self) -> bool:
        return await self.synchronizer.save(self.state)
