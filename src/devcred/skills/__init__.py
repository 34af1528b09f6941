"""Skills subsystem — categories, level classification, reporting, and peer verification."""

from devcred.skills.categories import SkillCategoryTable
from devcred.skills.classification import category_name, classify_level, level_name
from devcred.skills.reporting import AchievementReporter
from devcred.skills.verification import PeerVerificationEngine

__all__ = [
    "AchievementReporter",
    "PeerVerificationEngine",
    "SkillCategoryTable",
    "category_name",
    "classify_level",
    "level_name",
]
