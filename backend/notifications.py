"""
Achievement notification dispatch.

Notifiers are fire-and-forget: failures are logged, never retried, and
the state machine never waits on them.
"""

import logging
from typing import Dict, Iterable, List, Protocol

from achievements import ACHIEVEMENTS

logger = logging.getLogger(__name__)

UNLOCK_TITLE = "Achievement Unlocked!"


class Notifier(Protocol):
    def notify(self, title: str, body: str) -> None:
        ...


class LoggingNotifier:
    """Writes banners to the log."""

    def notify(self, title: str, body: str) -> None:
        logger.info(f"{title} {body}")


class CollectingNotifier:
    """Keeps banners until a consumer drains them (websocket forwarding, tests)."""

    def __init__(self):
        self.messages: List[Dict[str, str]] = []

    def notify(self, title: str, body: str) -> None:
        self.messages.append({"title": title, "body": body})

    def drain(self) -> List[Dict[str, str]]:
        messages, self.messages = self.messages, []
        return messages


def dispatch_unlocks(notifier: Notifier, unlocked: Iterable[str]) -> int:
    """
    Send one banner per newly unlocked achievement id.

    Returns:
        Number of notifications delivered without error
    """
    sent = 0
    for achievement_id in unlocked:
        definition = ACHIEVEMENTS.get(achievement_id)
        body = f"{definition.title} - {definition.body}" if definition else achievement_id
        try:
            notifier.notify(UNLOCK_TITLE, body)
            sent += 1
        except Exception as e:
            logger.error(f"Notification for {achievement_id} failed: {e}")
    return sent
