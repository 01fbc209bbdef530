"""
Game State

The single mutable aggregate of a player session, plus its conversion to
and from the save-record dictionaries exchanged with record stores.
"""

import logging
import math
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional

from config import CONFIG, EconomyConfig
from economy import (
    PRODUCER_EFFICIENCY,
    compute_click_power,
    compute_producer_power,
    default_upgrades,
)

logger = logging.getLogger(__name__)

# Field names used by saves written before producers were generalized
_LEGACY_KEYS = {
    "producerCount": "autoClickerCount",
    "producerPower": "autoClickerPower",
}
_LEGACY_UPGRADE_KEYS = {
    "producerEfficiency": "autoClickerEfficiency",
    "goldenVariant": "goldenLizard",
}


@dataclass(slots=True)
class ClickEvent:
    """Transient feedback for one click; not part of the economy."""

    x: float
    y: float
    points_gained: float
    id: int

    def to_dict(self) -> Dict[str, object]:
        return {"x": self.x, "y": self.y, "points": self.points_gained, "id": self.id}


@dataclass(slots=True)
class GameState:
    """
    Represents one player's progression.

    click_power and producer_power are derived from the upgrade levels and
    producer count; only the state machine recomputes them.
    """

    points: float = 0.0
    total_clicks: int = 0
    click_power: float = 1.0
    producer_count: int = 0
    producer_power: float = 0.0
    upgrades: Dict[str, int] = field(default_factory=default_upgrades)
    achievements: List[str] = field(default_factory=list)
    pending_feedback: List[ClickEvent] = field(default_factory=list)

    def __post_init__(self):
        """Validate invariants after initialization."""
        if self.points < 0:
            raise ValueError(f"points cannot be negative, got {self.points}")
        if self.total_clicks < 0:
            raise ValueError(f"total_clicks cannot be negative, got {self.total_clicks}")
        if self.click_power <= 0:
            raise ValueError(f"click_power must be positive, got {self.click_power}")
        if self.producer_count < 0:
            raise ValueError(f"producer_count cannot be negative, got {self.producer_count}")
        for key, level in self.upgrades.items():
            if level < 0:
                raise ValueError(f"upgrade level for {key} cannot be negative, got {level}")
        if len(set(self.achievements)) != len(self.achievements):
            raise ValueError("achievements must not contain duplicates")

    def to_record(self) -> Dict[str, object]:
        """
        Serialize the durable fields to a save-record dictionary.

        pending_feedback is intentionally absent. Store metadata (`_id`,
        `userId`, `lastSaved`) is added by the persistence layer.
        """
        return {
            "points": self.points,
            "totalClicks": self.total_clicks,
            "clickPower": self.click_power,
            "producerCount": self.producer_count,
            "producerPower": self.producer_power,
            "upgrades": dict(self.upgrades),
            "achievements": list(self.achievements),
        }

    def to_dict(self) -> Dict[str, object]:
        """Record fields plus the pending click feedback, for UI snapshots."""
        data = self.to_record()
        data["pendingFeedback"] = [event.to_dict() for event in self.pending_feedback]
        return data

    @classmethod
    def from_record(cls, record: Mapping[str, Any], config: EconomyConfig = None) -> "GameState":
        """
        Build a state from a loaded save record.

        Every field defaults independently when it is missing or malformed.
        Derived stats are recomputed from upgrades and producer count rather
        than trusted from the record.
        """
        points = _read_number(record, "points", 0.0)
        total_clicks = int(_read_number(record, "totalClicks", 0))
        producer_count = int(_read_number(record, "producerCount", 0))

        upgrades = default_upgrades()
        raw_upgrades = record.get("upgrades")
        if isinstance(raw_upgrades, Mapping):
            for key in upgrades:
                level = _read_number(raw_upgrades, key, 0)
                upgrades[key] = int(level)
        elif raw_upgrades is not None:
            logger.warning(f"Ignoring malformed upgrades in save record: {raw_upgrades!r}")

        achievements: List[str] = []
        raw_achievements = record.get("achievements")
        if isinstance(raw_achievements, (list, tuple)):
            for achievement_id in raw_achievements:
                if isinstance(achievement_id, str) and achievement_id not in achievements:
                    achievements.append(achievement_id)
        elif raw_achievements is not None:
            logger.warning(f"Ignoring malformed achievements in save record: {raw_achievements!r}")

        return cls(
            points=points,
            total_clicks=total_clicks,
            click_power=compute_click_power(upgrades, config),
            producer_count=producer_count,
            producer_power=compute_producer_power(producer_count, upgrades[PRODUCER_EFFICIENCY]),
            upgrades=upgrades,
            achievements=achievements,
        )


def _read_number(source: Mapping[str, Any], key: str, default: float):
    """Non-negative finite number under `key` (or its legacy alias), else default."""
    value = source.get(key)
    if value is None:
        legacy = _LEGACY_KEYS.get(key) or _LEGACY_UPGRADE_KEYS.get(key)
        if legacy is not None:
            value = source.get(legacy)
    if value is None:
        return default

    # bool is an int subclass but never a valid counter
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        logger.warning(f"Save record field {key} is not numeric ({value!r}); using {default}")
        return default
    if not math.isfinite(value) or value < 0:
        logger.warning(f"Save record field {key} out of range ({value!r}); using {default}")
        return default
    return value


def default_state(record: Optional[Mapping[str, Any]] = None, config: EconomyConfig = None) -> GameState:
    """Fresh session state, or one rebuilt from `record` when given."""
    if config is None:
        config = CONFIG.economy
    if record is None:
        return GameState(click_power=config.starting_click_power)
    return GameState.from_record(record, config)
