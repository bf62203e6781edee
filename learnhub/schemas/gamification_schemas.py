"""
Gamification schemas: catalog definitions (seeding input), progress views,
leaderboard, sweeps and stats responses.
"""

from typing import Literal, Optional

from pydantic import BaseModel, Field

from learnhub.models.gamification import (
    AchievementCategory,
    AchievementType,
    BadgeCategory,
    BadgeMetric,
    BadgeRarity,
    UserProgress,
)
from learnhub.services.level_curve import level_progress
from learnhub.utils.common import iso_format

HEX_COLOR = r"^#[0-9A-Fa-f]{6}$"
Operator = Literal[">=", ">", "==", "<=", "<"]


# ----- catalog definitions -----

class BadgeRequirement(BaseModel):
    metric: BadgeMetric
    value: int = Field(ge=0)


class BadgeDefinition(BaseModel):
    """Badge as supplied by catalog seeding or admin tooling."""
    name: str = Field(min_length=1)
    description: str = Field(max_length=200)
    icon: str = "🏆"
    color: str = Field(default="#8B5CF6", pattern=HEX_COLOR)
    category: BadgeCategory
    rarity: BadgeRarity = BadgeRarity.COMMON
    requirement: BadgeRequirement
    xp_reward: int = Field(default=0, ge=0)
    is_active: bool = True
    order: int = 0


class AchievementRequirement(BaseModel):
    metric: str
    operator: Operator = ">="
    value: float


class AchievementRewards(BaseModel):
    xp: int = Field(default=0, ge=0)
    badge: Optional[str] = None  # badge id, or a badge name resolved when the catalog is replaced
    title: Optional[str] = None


class AchievementDefinition(BaseModel):
    name: str = Field(min_length=1)
    description: str = Field(max_length=300)
    icon: str = "🎯"
    color: str = Field(default="#10B981", pattern=HEX_COLOR)
    category: AchievementCategory
    type: AchievementType = AchievementType.MILESTONE
    requirements: list[AchievementRequirement] = Field(default_factory=list)
    rewards: AchievementRewards = Field(default_factory=AchievementRewards)
    is_hidden: bool = False
    is_active: bool = True
    order: int = 0


# ----- progress -----

class ProgressResponse(BaseModel):
    user_id: int
    total_xp: int
    level: int
    current_level_xp: int
    next_level_xp: int
    level_progress: int
    current_streak: int
    longest_streak: int
    last_login_date: Optional[str] = None
    courses_completed: int
    quizzes_completed: int
    quizzes_passed: int
    reviews_written: int
    certificates_earned: int
    lessons_completed: int
    badges: list[str]
    badge_count: int
    achievements: dict[str, dict]
    points_breakdown: dict[str, int]
    stats: dict[str, float]

    @classmethod
    def from_record(cls, record: UserProgress) -> "ProgressResponse":
        return cls(
            user_id=record.user_id,
            total_xp=record.total_xp,
            level=record.level,
            current_level_xp=record.current_level_xp,
            next_level_xp=record.next_level_xp,
            level_progress=level_progress(record.current_level_xp, record.next_level_xp),
            current_streak=record.current_streak,
            longest_streak=record.longest_streak,
            last_login_date=iso_format(record.last_login_date),
            courses_completed=record.courses_completed,
            quizzes_completed=record.quizzes_completed,
            quizzes_passed=record.quizzes_passed,
            reviews_written=record.reviews_written,
            certificates_earned=record.certificates_earned,
            lessons_completed=record.lessons_completed,
            badges=list(record.badges),
            badge_count=record.badge_count,
            achievements={k: dict(v) for k, v in record.achievements.items()},
            points_breakdown=dict(record.points_breakdown),
            stats=dict(record.stats),
        )


class StreakInfo(BaseModel):
    outcome: str
    current_streak: int
    xp_awarded: int


class GetProgressResponse(BaseModel):
    progress: ProgressResponse
    streak: StreakInfo


class AwardXPRequest(BaseModel):
    xp: int
    source: str = "manual"
    user_id: Optional[int] = None


class AwardXPResponse(BaseModel):
    message: str
    progress: ProgressResponse
    leveled_up: bool
    new_level: Optional[int] = None


class ActivityRequest(BaseModel):
    """Domain event reported by the course, quiz and review subsystems."""
    counter: Optional[str] = None
    xp_reward: int = Field(default=0, ge=0)
    source: Optional[str] = None
    stats: dict[str, float] = Field(default_factory=dict)


class ActivityResponse(BaseModel):
    progress: ProgressResponse
    leveled_up: bool
    new_level: Optional[int] = None


# ----- leaderboard -----

class LeaderboardEntry(BaseModel):
    rank: int
    user_id: int
    name: str
    total_xp: int
    level: int
    current_streak: int
    courses_completed: int
    badge_count: int


class Pagination(BaseModel):
    total: int
    page: int
    pages: int
    limit: int


class LeaderboardResponse(BaseModel):
    leaderboard: list[LeaderboardEntry]
    user_position: Optional[LeaderboardEntry] = None
    pagination: Pagination


# ----- catalog listing -----

class BadgeResponse(BaseModel):
    id: str
    name: str
    description: str
    icon: str
    color: str
    category: str
    rarity: str
    rarity_level: int
    requirement: BadgeRequirement
    xp_reward: int
    earned_count: int
    order: int
    earned: Optional[bool] = None


class BadgeListResponse(BaseModel):
    badges: list[BadgeResponse]


class AchievementResponse(BaseModel):
    id: str
    name: str
    description: str
    icon: str
    color: str
    category: str
    type: str
    requirements: list[AchievementRequirement]
    rewards: AchievementRewards
    is_hidden: bool
    unlocked_count: int
    order: int
    unlocked: Optional[bool] = None
    progress: Optional[int] = None
    unlocked_at: Optional[str] = None


class AchievementListResponse(BaseModel):
    achievements: list[AchievementResponse]


class CheckBadgesResponse(BaseModel):
    new_badges: list[BadgeResponse]
    message: str


class CheckAchievementsResponse(BaseModel):
    new_achievements: list[AchievementResponse]
    message: str


# ----- stats -----

class UserStatsResponse(BaseModel):
    level: int
    total_xp: int
    current_level_xp: int
    next_level_xp: int
    level_progress: int
    rank: int
    rank_percentile: int
    current_streak: int
    longest_streak: int
    badges: int
    achievements: int
    courses_completed: int
    quizzes_completed: int
    quizzes_passed: int
    reviews_written: int
    certificates_earned: int
    points_breakdown: dict[str, int]


class SeedResponse(BaseModel):
    message: str
    count: int
