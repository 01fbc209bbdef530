"""
Economy Model

Pure cost-curve and derived-stat computations for the clicker economy.
Nothing in this module holds state, schedules work or performs I/O.

Upgrade costs grow geometrically from a base cost; effects map an owned
level to a multiplier-like value that is 1 at level 0. Contributions from
independent upgrade families are added (effect - 1), never compounded.
"""

import math
from dataclasses import dataclass
from typing import Callable, Dict, Mapping, Union

import numpy as np

from config import CONFIG, EconomyConfig

CLICK_MULTIPLIER = "clickMultiplier"
PRODUCER_EFFICIENCY = "producerEfficiency"
GOLDEN_VARIANT = "goldenVariant"
MEGA_CLICKS = "megaClicks"  # Reserved: carried in records, no cost or effect


class UnknownUpgradeError(KeyError):
    """Raised for keys without a purchasable catalog definition."""


@dataclass(frozen=True)
class UpgradeDefinition:
    """One purchasable upgrade family."""

    key: str
    name: str
    description: str
    base_cost: float
    cost_multiplier: float
    effect: Callable[[int], float]

    def cost_at(self, level: int) -> Union[int, float]:
        """Cost of the next unit when `level` units are already owned (math.inf if unrepresentable)."""
        if level < 0:
            raise ValueError(f"level cannot be negative, got {level}")
        return _geometric_cost(self.base_cost, self.cost_multiplier, level)


UPGRADE_DEFINITIONS: Dict[str, UpgradeDefinition] = {
    CLICK_MULTIPLIER: UpgradeDefinition(
        key=CLICK_MULTIPLIER,
        name="Stronger Fingers",
        description="Increases click power",
        base_cost=50,
        cost_multiplier=1.5,
        effect=lambda level: level + 1,
    ),
    PRODUCER_EFFICIENCY: UpgradeDefinition(
        key=PRODUCER_EFFICIENCY,
        name="Auto-Clicker Boost",
        description="Makes auto-clickers more powerful",
        base_cost=500,
        cost_multiplier=2.0,
        effect=lambda level: level * 0.5 + 1,
    ),
    GOLDEN_VARIANT: UpgradeDefinition(
        key=GOLDEN_VARIANT,
        name="Golden Variant",
        description="Golden appearance with bonus click points",
        base_cost=2000,
        cost_multiplier=3.0,
        effect=lambda level: level * 2 + 1,
    ),
}

# Keys tracked in GameState.upgrades, including the reserved one
UPGRADE_KEYS = (CLICK_MULTIPLIER, PRODUCER_EFFICIENCY, GOLDEN_VARIANT, MEGA_CLICKS)


def default_upgrades() -> Dict[str, int]:
    return {key: 0 for key in UPGRADE_KEYS}


def get_definition(key: Union[str, UpgradeDefinition]) -> UpgradeDefinition:
    if isinstance(key, UpgradeDefinition):
        return key
    definition = UPGRADE_DEFINITIONS.get(key)
    if definition is None:
        raise UnknownUpgradeError(key)
    return definition


def cost_of(key: Union[str, UpgradeDefinition], level: int) -> Union[int, float]:
    """floor(base_cost * cost_multiplier ** level) for the given upgrade."""
    return get_definition(key).cost_at(level)


def producer_cost(count: int, config: EconomyConfig = None) -> Union[int, float]:
    """
    Floored cost of the next producer when `count` are already owned.

    The same floored value is used for the affordability check and for
    the amount deducted, so the displayed cost is always what is paid.
    Counts too large for a float cost come back as math.inf (never affordable).
    """
    if config is None:
        config = CONFIG.economy
    if count < 0:
        raise ValueError(f"producer count cannot be negative, got {count}")
    return _geometric_cost(config.producer_base_cost, config.producer_cost_multiplier, count)


def compute_click_power(upgrades: Mapping[str, int], config: EconomyConfig = None) -> float:
    """Base click power plus the additive contribution of each click family."""
    if config is None:
        config = CONFIG.economy
    power = config.starting_click_power
    for key in (CLICK_MULTIPLIER, GOLDEN_VARIANT):
        definition = UPGRADE_DEFINITIONS[key]
        power += definition.effect(upgrades.get(key, 0)) - 1
    return power


def compute_producer_power(producer_count: int, efficiency_level: int) -> float:
    """Combined producer output per production tick."""
    efficiency = UPGRADE_DEFINITIONS[PRODUCER_EFFICIENCY].effect(efficiency_level)
    return producer_count * efficiency


def cost_schedule(key: Union[str, UpgradeDefinition], start_level: int, count: int) -> np.ndarray:
    """
    Project the next `count` costs starting at `start_level`.

    Returns:
        Integer array where element i is cost_of(key, start_level + i),
        saturated at MAX_SCHEDULED_COST
    """
    definition = get_definition(key)
    return _floored_schedule(definition.base_cost, definition.cost_multiplier, start_level, count)


def producer_cost_schedule(start_count: int, count: int, config: EconomyConfig = None) -> np.ndarray:
    """Vectorized producer_cost for `count` consecutive purchases."""
    if config is None:
        config = CONFIG.economy
    return _floored_schedule(config.producer_base_cost, config.producer_cost_multiplier, start_count, count)


# Largest cost a float holds exactly; schedules saturate here instead of wrapping
MAX_SCHEDULED_COST = 2 ** 53


def _geometric_cost(base_cost: float, cost_multiplier: float, level: int) -> Union[int, float]:
    """floor(base * mult ** level), or math.inf once the value leaves float range."""
    try:
        return math.floor(base_cost * cost_multiplier ** level)
    except OverflowError:
        return math.inf


def _floored_schedule(base_cost: float, cost_multiplier: float, start: int, count: int) -> np.ndarray:
    levels = np.arange(start, start + count, dtype=np.float64)
    with np.errstate(over="ignore", invalid="ignore"):
        costs = np.floor(base_cost * np.power(cost_multiplier, levels))
    costs = np.clip(np.nan_to_num(costs, nan=MAX_SCHEDULED_COST, posinf=MAX_SCHEDULED_COST), 0, MAX_SCHEDULED_COST)
    return costs.astype(np.int64)
