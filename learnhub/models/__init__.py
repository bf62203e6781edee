"""
API data models. Single import surface for DB entities.

DB entities (learnhub.models.models):
- User

Gamification (learnhub.models.gamification):
- UserProgress, Badge, Achievement and their enums
"""

from learnhub.models.models import User
from learnhub.models.gamification import (
    UserProgress,
    Badge,
    Achievement,
    BadgeCategory,
    BadgeRarity,
    BadgeMetric,
    AchievementCategory,
    AchievementType,
)

__all__ = [
    "User",
    "UserProgress",
    "Badge",
    "Achievement",
    "BadgeCategory",
    "BadgeRarity",
    "BadgeMetric",
    "AchievementCategory",
    "AchievementType",
]
