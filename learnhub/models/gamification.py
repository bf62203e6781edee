"""
Gamification models: per-user progress record and the badge/achievement catalogs.
"""

from datetime import datetime
from enum import Enum

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, JSON, String
from sqlalchemy.ext.mutable import MutableDict, MutableList
from sqlalchemy.orm import relationship

from learnhub.config import Base
from learnhub.services.level_curve import xp_for_level


class BadgeCategory(str, Enum):
    COURSE = "course"
    QUIZ = "quiz"
    REVIEW = "review"
    STREAK = "streak"
    ACHIEVEMENT = "achievement"
    SPECIAL = "special"


class BadgeRarity(str, Enum):
    COMMON = "common"
    RARE = "rare"
    EPIC = "epic"
    LEGENDARY = "legendary"


class BadgeMetric(str, Enum):
    """Single-condition earn rule metrics for badges."""
    COURSES_COMPLETED = "coursesCompleted"
    QUIZZES_COMPLETED = "quizzesCompleted"
    QUIZZES_PASSED = "quizzesPassed"
    REVIEWS_WRITTEN = "reviewsWritten"
    CERTIFICATES_EARNED = "certificatesEarned"
    STREAK = "streak"
    LEVEL = "level"
    TOTAL_XP = "totalXP"
    HELPFUL_VOTES = "helpfulVotes"
    PERFECT_QUIZ = "perfectQuiz"


class AchievementCategory(str, Enum):
    LEARNING = "learning"
    SOCIAL = "social"
    MASTERY = "mastery"
    DEDICATION = "dedication"
    EXPLORATION = "exploration"


class AchievementType(str, Enum):
    MILESTONE = "milestone"
    CHALLENGE = "challenge"
    HIDDEN = "hidden"
    SPECIAL = "special"


# XP source categories tracked in points_breakdown; anything else lands in "other".
BREAKDOWN_SOURCES = ("courseCompletion", "quizCompletion", "reviewWriting", "dailyLogin", "achievements")
OTHER_SOURCE = "other"

DEFAULT_STATS = {
    "totalStudyTime": 0,  # minutes
    "averageQuizScore": 0,
    "totalHelpfulVotes": 0,
    "perfectQuizzes": 0,
}


def empty_breakdown() -> dict:
    return {source: 0 for source in (*BREAKDOWN_SOURCES, OTHER_SOURCE)}


class UserProgress(Base):
    """
    Per-user gamification aggregate.

    Level fields are advanced incrementally by the level-up loop in
    learnhub.services.progress.add_xp and are never recomputed from total_xp.
    """
    __tablename__ = "user_progress"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), unique=True, index=True, nullable=False)

    total_xp = Column(Integer, default=0, nullable=False, index=True)
    level = Column(Integer, default=1, nullable=False, index=True)
    current_level_xp = Column(Integer, default=0, nullable=False)
    next_level_xp = Column(Integer, default=lambda: xp_for_level(2), nullable=False)

    current_streak = Column(Integer, default=0, nullable=False, index=True)
    longest_streak = Column(Integer, default=0, nullable=False)
    last_login_date = Column(DateTime, nullable=True)

    courses_completed = Column(Integer, default=0, nullable=False)
    quizzes_completed = Column(Integer, default=0, nullable=False)
    quizzes_passed = Column(Integer, default=0, nullable=False)
    reviews_written = Column(Integer, default=0, nullable=False)
    certificates_earned = Column(Integer, default=0, nullable=False)
    lessons_completed = Column(Integer, default=0, nullable=False)

    badges = Column(MutableList.as_mutable(JSON), nullable=False)  # list[str] of badge ids
    achievements = Column(MutableDict.as_mutable(JSON), nullable=False)  # id -> {progress, unlocked_at}
    points_breakdown = Column(MutableDict.as_mutable(JSON), nullable=False)
    stats = Column(MutableDict.as_mutable(JSON), nullable=False)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)
    version_id = Column(Integer, nullable=False)

    user = relationship("User", backref="progress", foreign_keys=[user_id])

    __mapper_args__ = {"version_id_col": version_id}

    def __init__(self, **kwargs):
        # Column defaults only apply on flush; in-memory records must be valid immediately.
        defaults = {
            "total_xp": 0,
            "level": 1,
            "current_level_xp": 0,
            "next_level_xp": xp_for_level(2),
            "current_streak": 0,
            "longest_streak": 0,
            "courses_completed": 0,
            "quizzes_completed": 0,
            "quizzes_passed": 0,
            "reviews_written": 0,
            "certificates_earned": 0,
            "lessons_completed": 0,
            "badges": [],
            "achievements": {},
            "points_breakdown": empty_breakdown(),
            "stats": dict(DEFAULT_STATS),
        }
        defaults.update(kwargs)
        super().__init__(**defaults)

    @property
    def badge_count(self) -> int:
        return len(self.badges or [])

    def __repr__(self) -> str:
        return f"<UserProgress user_id={self.user_id} level={self.level} total_xp={self.total_xp}>"


class Badge(Base):
    __tablename__ = "badges"

    id = Column(String, primary_key=True, index=True)  # uuid
    name = Column(String, unique=True, nullable=False)
    description = Column(String(200), nullable=False)
    icon = Column(String, nullable=False, default="🏆")
    color = Column(String, nullable=False, default="#8B5CF6")
    category = Column(String, nullable=False, index=True)  # BadgeCategory
    rarity = Column(String, nullable=False, default=BadgeRarity.COMMON.value)
    requirement_metric = Column(String, nullable=False)  # BadgeMetric
    requirement_value = Column(Integer, nullable=False)
    xp_reward = Column(Integer, default=0, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    earned_count = Column(Integer, default=0, nullable=False)
    order = Column(Integer, default=0, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)


class Achievement(Base):
    __tablename__ = "achievements"

    id = Column(String, primary_key=True, index=True)  # uuid
    name = Column(String, unique=True, nullable=False)
    description = Column(String(300), nullable=False)
    icon = Column(String, nullable=False, default="🎯")
    color = Column(String, nullable=False, default="#10B981")
    category = Column(String, nullable=False, index=True)  # AchievementCategory
    type = Column(String, nullable=False, default=AchievementType.MILESTONE.value)
    requirements = Column(JSON, nullable=False)  # [{metric, operator, value}]
    reward_xp = Column(Integer, default=0, nullable=False)
    reward_badge_id = Column(String, nullable=True)  # may outlive a badge catalog replacement
    reward_title = Column(String, nullable=True)
    is_hidden = Column(Boolean, default=False, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    unlocked_count = Column(Integer, default=0, nullable=False)
    order = Column(Integer, default=0, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
