"""Level and category classification — pure functions, no ledger state."""

from __future__ import annotations

from typing import Optional

from devcred.models.skill import SkillCategory, SkillLevel
from devcred.skills.categories import SkillCategoryTable

# Lower bound of each band above Beginner. Bounds are inclusive.
INTERMEDIATE_THRESHOLD = 26
ADVANCED_THRESHOLD = 76
EXPERT_THRESHOLD = 151

LEVEL_THRESHOLDS = (INTERMEDIATE_THRESHOLD, ADVANCED_THRESHOLD, EXPERT_THRESHOLD)

UNKNOWN_LEVEL_NAME = "Unknown Level"

_LEVEL_NAMES = {
    SkillLevel.BEGINNER: "Beginner",
    SkillLevel.INTERMEDIATE: "Intermediate",
    SkillLevel.ADVANCED: "Advanced",
    SkillLevel.EXPERT: "Expert",
}

_BUILTIN_CATEGORIES = SkillCategoryTable.from_enum(SkillCategory)


def classify_level(
    points: int,
    thresholds: tuple[int, int, int] = LEVEL_THRESHOLDS,
) -> SkillLevel:
    """Classify accumulated points into a skill level.

    Beginner below 26, Intermediate 26-75, Advanced 76-150, Expert from 151.
    """
    intermediate, advanced, expert = thresholds
    if points >= expert:
        return SkillLevel.EXPERT
    if points >= advanced:
        return SkillLevel.ADVANCED
    if points >= intermediate:
        return SkillLevel.INTERMEDIATE
    return SkillLevel.BEGINNER


def level_name(level: int) -> str:
    """Display name for a level. Values outside 1-4 get the unknown label."""
    try:
        return _LEVEL_NAMES[SkillLevel(level)]
    except ValueError:
        return UNKNOWN_LEVEL_NAME


def category_name(
    category: int, table: Optional[SkillCategoryTable] = None,
) -> str:
    """Display name for a category, "Unknown Category" if out of range."""
    return (table or _BUILTIN_CATEGORIES).name(category)
