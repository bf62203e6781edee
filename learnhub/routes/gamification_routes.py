"""
Gamification endpoints: progress, XP awards, activity events, badge and
achievement sweeps, leaderboard, stats and catalog seeding.
"""

from typing import Optional

from fastapi import APIRouter, Body, Depends, Query
from sqlalchemy.orm import Session

from learnhub.config import get_db
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
from learnhub.schemas.user_schemas import User
from learnhub.services.catalog import AchievementDef, BadgeDef, achievement_counts, badge_counts
from learnhub.services.gamification_service import (
    AchievementStatus,
    BadgeStatus,
    GamificationService,
    LeaderboardRow,
)
from learnhub.services.level_curve import level_progress
from learnhub.services.seed_data import DEFAULT_ACHIEVEMENTS, DEFAULT_BADGES
from learnhub.utils.auth import get_current_user, get_optional_user, require_admin
from learnhub.utils.common import plural
from learnhub.utils.errors import ForbiddenError

gamification_routes = APIRouter()


def get_service(db: Session = Depends(get_db)) -> GamificationService:
    return GamificationService(db)


# ----- response builders -----

def _badge_response(badge: BadgeDef, earned_count: int, earned: Optional[bool] = None) -> BadgeResponse:
    return BadgeResponse(
        id=badge.id,
        name=badge.name,
        description=badge.description,
        icon=badge.icon,
        color=badge.color,
        category=badge.category,
        rarity=badge.rarity,
        rarity_level=badge.rarity_level,
        requirement=BadgeRequirement(metric=badge.metric, value=badge.value),
        xp_reward=badge.xp_reward,
        earned_count=earned_count,
        order=badge.order,
        earned=earned,
    )


def _achievement_response(achievement: AchievementDef, unlocked_count: int, **personal) -> AchievementResponse:
    return AchievementResponse(
        id=achievement.id,
        name=achievement.name,
        description=achievement.description,
        icon=achievement.icon,
        color=achievement.color,
        category=achievement.category,
        type=achievement.type,
        requirements=[
            AchievementRequirement(metric=r.metric, operator=r.operator, value=r.value)
            for r in achievement.requirements
        ],
        rewards=AchievementRewards(
            xp=achievement.reward_xp,
            badge=achievement.reward_badge_id,
            title=achievement.reward_title,
        ),
        is_hidden=achievement.is_hidden,
        unlocked_count=unlocked_count,
        order=achievement.order,
        **personal,
    )


def _leaderboard_entry(row: LeaderboardRow) -> LeaderboardEntry:
    record = row.record
    return LeaderboardEntry(
        rank=row.rank,
        user_id=record.user_id,
        name=row.name,
        total_xp=record.total_xp,
        level=record.level,
        current_streak=record.current_streak,
        courses_completed=record.courses_completed,
        badge_count=record.badge_count,
    )


def _badge_status_response(status: BadgeStatus) -> BadgeResponse:
    return _badge_response(status.badge, status.earned_count, status.earned)


def _achievement_status_response(status: AchievementStatus) -> AchievementResponse:
    return _achievement_response(
        status.achievement,
        status.unlocked_count,
        unlocked=status.unlocked,
        progress=status.progress,
        unlocked_at=status.unlocked_at,
    )


# ----- progress -----

@gamification_routes.get("/progress")
def get_progress(
    current_user: User = Depends(get_current_user),
    service: GamificationService = Depends(get_service),
) -> GetProgressResponse:
    """Caller's progress; first call of the day advances the streak and grants login XP."""
    view = service.get_progress(current_user.id)
    return GetProgressResponse(
        progress=ProgressResponse.from_record(view.record),
        streak=StreakInfo(
            outcome=view.streak.outcome.value,
            current_streak=view.streak.current_streak,
            xp_awarded=view.streak.xp_awarded,
        ),
    )


@gamification_routes.post("/award-xp")
def award_xp(
    body: AwardXPRequest,
    current_user: User = Depends(get_current_user),
    service: GamificationService = Depends(get_service),
) -> AwardXPResponse:
    """Grant XP to the caller, or to another user when the caller is an admin."""
    target = body.user_id if body.user_id is not None else current_user.id
    if target != current_user.id and not current_user.is_admin:
        raise ForbiddenError("Only admins can award XP to other users")

    record, change = service.award_xp(target, body.xp, body.source)
    return AwardXPResponse(
        message=f"Awarded {body.xp} XP",
        progress=ProgressResponse.from_record(record),
        leveled_up=change.leveled_up,
        new_level=change.new_level if change.leveled_up else None,
    )


@gamification_routes.post("/activity")
def record_activity(
    body: ActivityRequest,
    current_user: User = Depends(get_current_user),
    service: GamificationService = Depends(get_service),
) -> ActivityResponse:
    record, change = service.record_activity(
        current_user.id, body.counter, body.xp_reward, body.source, body.stats
    )
    leveled_up = bool(change and change.leveled_up)
    return ActivityResponse(
        progress=ProgressResponse.from_record(record),
        leveled_up=leveled_up,
        new_level=change.new_level if leveled_up else None,
    )


# ----- sweeps -----

@gamification_routes.post("/check-badges")
def check_badges(
    current_user: User = Depends(get_current_user),
    service: GamificationService = Depends(get_service),
) -> CheckBadgesResponse:
    result = service.check_badges(current_user.id)
    counts = badge_counts(service.db)
    new_badges = [_badge_response(b, counts.get(b.id, 0), True) for b in result.badges]
    if new_badges:
        message = f"You earned {plural(len(new_badges), 'new badge')}!"
    else:
        message = "No new badges earned"
    return CheckBadgesResponse(new_badges=new_badges, message=message)


@gamification_routes.post("/check-achievements")
def check_achievements(
    current_user: User = Depends(get_current_user),
    service: GamificationService = Depends(get_service),
) -> CheckAchievementsResponse:
    result = service.check_achievements(current_user.id)
    counts = achievement_counts(service.db)
    entries = result.record.achievements if result.record is not None else {}
    new_achievements = [
        _achievement_response(
            a,
            counts.get(a.id, 0),
            unlocked=True,
            progress=100,
            unlocked_at=(entries.get(a.id) or {}).get("unlocked_at"),
        )
        for a in result.achievements
    ]
    if new_achievements:
        message = f"You unlocked {plural(len(new_achievements), 'new achievement')}!"
    else:
        message = "No new achievements unlocked"
    return CheckAchievementsResponse(new_achievements=new_achievements, message=message)


# ----- views -----

@gamification_routes.get("/leaderboard")
def get_leaderboard(
    sort: str = Query("xp", alias="type"),
    page: int = 1,
    limit: int = 50,
    current_user: Optional[User] = Depends(get_optional_user),
    service: GamificationService = Depends(get_service),
) -> LeaderboardResponse:
    """Ranked page of learners; identified callers also get their own position."""
    board = service.leaderboard(sort, page, limit, viewer_id=current_user.id if current_user else None)
    return LeaderboardResponse(
        leaderboard=[_leaderboard_entry(row) for row in board.rows],
        user_position=_leaderboard_entry(board.viewer) if board.viewer else None,
        pagination=Pagination(total=board.total, page=board.page, pages=board.pages, limit=board.limit),
    )


@gamification_routes.get("/stats")
def get_stats(
    current_user: User = Depends(get_current_user),
    service: GamificationService = Depends(get_service),
) -> UserStatsResponse:
    stats = service.user_stats(current_user.id)
    record = stats.record
    return UserStatsResponse(
        level=record.level,
        total_xp=record.total_xp,
        current_level_xp=record.current_level_xp,
        next_level_xp=record.next_level_xp,
        level_progress=level_progress(record.current_level_xp, record.next_level_xp),
        rank=stats.rank,
        rank_percentile=stats.rank_percentile,
        current_streak=record.current_streak,
        longest_streak=record.longest_streak,
        badges=record.badge_count,
        achievements=stats.unlocked_achievements,
        courses_completed=record.courses_completed,
        quizzes_completed=record.quizzes_completed,
        quizzes_passed=record.quizzes_passed,
        reviews_written=record.reviews_written,
        certificates_earned=record.certificates_earned,
        points_breakdown=dict(record.points_breakdown),
    )


@gamification_routes.get("/badges")
def list_badges(
    current_user: Optional[User] = Depends(get_optional_user),
    service: GamificationService = Depends(get_service),
) -> BadgeListResponse:
    statuses = service.list_badges(current_user.id if current_user else None)
    return BadgeListResponse(badges=[_badge_status_response(s) for s in statuses])


@gamification_routes.get("/achievements")
def list_achievements(
    current_user: Optional[User] = Depends(get_optional_user),
    service: GamificationService = Depends(get_service),
) -> AchievementListResponse:
    statuses = service.list_achievements(current_user.id if current_user else None)
    return AchievementListResponse(achievements=[_achievement_status_response(s) for s in statuses])


# ----- admin -----

@gamification_routes.post("/admin/seed-badges")
def seed_badges(
    definitions: Optional[list[BadgeDefinition]] = Body(None),
    _admin: User = Depends(require_admin),
    service: GamificationService = Depends(get_service),
) -> SeedResponse:
    """Replace the badge catalog with the posted definitions, or the defaults when none are posted."""
    if definitions is None:
        definitions = [BadgeDefinition(**b) for b in DEFAULT_BADGES]
    rows = service.replace_badges(definitions)
    return SeedResponse(message="Badges seeded successfully", count=len(rows))


@gamification_routes.post("/admin/seed-achievements")
def seed_achievements(
    definitions: Optional[list[AchievementDefinition]] = Body(None),
    _admin: User = Depends(require_admin),
    service: GamificationService = Depends(get_service),
) -> SeedResponse:
    if definitions is None:
        definitions = [AchievementDefinition(**a) for a in DEFAULT_ACHIEVEMENTS]
    rows = service.replace_achievements(definitions)
    return SeedResponse(message="Achievements seeded successfully", count=len(rows))
