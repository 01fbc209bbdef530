"""
Achievement Evaluator

Maps post-transition counters to the set of newly unlocked achievements.
"""

from dataclasses import dataclass
from typing import Dict, Iterable, List

from config import CONFIG, AchievementConfig

FIRST_HUNDRED = "first_hundred"
THOUSAND_POINTS = "thousand_points"


@dataclass(frozen=True)
class AchievementDefinition:
    achievement_id: str
    title: str
    body: str


ACHIEVEMENTS: Dict[str, AchievementDefinition] = {
    FIRST_HUNDRED: AchievementDefinition(
        achievement_id=FIRST_HUNDRED,
        title="First Hundred Clicks",
        body="You clicked 100 times!",
    ),
    THOUSAND_POINTS: AchievementDefinition(
        achievement_id=THOUSAND_POINTS,
        title="Point Collector",
        body="Reached 1,000 points!",
    ),
}


def evaluate(
    total_clicks: int,
    points: float,
    already_unlocked: Iterable[str],
    config: AchievementConfig = None,
) -> List[str]:
    """
    Return achievement ids crossed by the given counters and not yet unlocked.

    Each threshold is tested independently. Callers pass the values after
    the click or tick has been applied.

    Returns:
        Newly unlocked ids in catalog order, without duplicates
    """
    if config is None:
        config = CONFIG.achievements
    unlocked = set(already_unlocked)

    reached = []
    if total_clicks >= config.first_hundred_clicks:
        reached.append(FIRST_HUNDRED)
    if points >= config.thousand_points:
        reached.append(THOUSAND_POINTS)

    return [achievement_id for achievement_id in reached if achievement_id not in unlocked]
