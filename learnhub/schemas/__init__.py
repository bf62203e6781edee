"""
API schemas package. Import from submodules or from this package.

Example:
    from learnhub.schemas import LeaderboardResponse, ProgressResponse
    from learnhub.schemas.gamification_schemas import BadgeDefinition
"""

from learnhub.schemas.auth_schemas import (
    AuthTokenPayload,
    LoginRequest,
    LoginResponse,
    LogoutResponse,
    RegisterRequest,
    RegisterResponse,
)
from learnhub.schemas.user_schemas import User
from learnhub.schemas.gamification_schemas import (
    AchievementDefinition,
    AchievementListResponse,
    AchievementRequirement,
    AchievementResponse,
    AchievementRewards,
    ActivityRequest,
    ActivityResponse,
    AwardXPRequest,
    AwardXPResponse,
    BadgeDefinition,
    BadgeListResponse,
    BadgeRequirement,
    BadgeResponse,
    CheckAchievementsResponse,
    CheckBadgesResponse,
    GetProgressResponse,
    LeaderboardEntry,
    LeaderboardResponse,
    Pagination,
    ProgressResponse,
    SeedResponse,
    StreakInfo,
    UserStatsResponse,
)

__all__ = [
    # auth
    "AuthTokenPayload",
    "LoginRequest",
    "LoginResponse",
    "LogoutResponse",
    "RegisterRequest",
    "RegisterResponse",
    # user
    "User",
    # catalog definitions
    "BadgeRequirement",
    "BadgeDefinition",
    "AchievementRequirement",
    "AchievementRewards",
    "AchievementDefinition",
    # progress
    "ProgressResponse",
    "StreakInfo",
    "GetProgressResponse",
    "AwardXPRequest",
    "AwardXPResponse",
    "ActivityRequest",
    "ActivityResponse",
    # leaderboard
    "LeaderboardEntry",
    "Pagination",
    "LeaderboardResponse",
    # catalog listing and sweeps
    "BadgeResponse",
    "BadgeListResponse",
    "AchievementResponse",
    "AchievementListResponse",
    "CheckBadgesResponse",
    "CheckAchievementsResponse",
    # stats
    "UserStatsResponse",
    "SeedResponse",
]
