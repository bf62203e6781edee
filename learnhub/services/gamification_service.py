"""
Gamification service: loads one user's progress record, applies progress
mutations and catalog sweeps, and persists the result. Also produces the
leaderboard, stats and catalog listing views.

Every read-modify-write of a record runs under the per-user lock and is
retried once on a version conflict (see learnhub.services.user_locks).
"""

from __future__ import annotations

import math
from functools import partial
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Iterable, Optional, TypeVar
from uuid import uuid4

from sqlalchemy import delete, func, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from learnhub.config import Settings, get_settings
from learnhub.models.gamification import Achievement, Badge, UserProgress
from learnhub.models.models import User
from learnhub.schemas.gamification_schemas import AchievementDefinition, BadgeDefinition
from learnhub.services.catalog import (
    AchievementDef,
    BadgeDef,
    CatalogCache,
    CatalogSnapshot,
    achievement_counts,
    badge_counts,
    catalog_cache,
    evaluate_achievement,
    increment_earned_count,
    increment_unlocked_count,
    is_badge_earned,
    validate_requirement,
)
from learnhub.services.progress import (
    LevelChange,
    StreakUpdate,
    add_xp,
    award_badge,
    increment_activity,
    record_stat,
    update_achievement_progress,
    update_streak,
)
from learnhub.services.seed_data import DEFAULT_ACHIEVEMENTS, DEFAULT_BADGES
from learnhub.services.user_locks import UserLockRegistry, user_locks
from learnhub.utils.common import display_name, utcnow
from learnhub.utils.errors import CatalogError, ConflictError, InvalidArgumentError, NotFoundError
from learnhub.utils.logger import get_logger, log_operation

logger = get_logger("gamification")

T = TypeVar("T")

ACHIEVEMENT_XP_SOURCE = "achievements"
MAX_PAGE_SIZE = 100

# leaderboard sort key (query alias or metric name) -> UserProgress attribute
SORT_KEYS = {
    "xp": "total_xp",
    "totalXP": "total_xp",
    "level": "level",
    "streak": "current_streak",
    "currentStreak": "current_streak",
    "courses": "courses_completed",
    "coursesCompleted": "courses_completed",
}


@dataclass
class ProgressView:
    record: UserProgress
    streak: StreakUpdate


@dataclass
class LeaderboardRow:
    rank: int
    record: UserProgress
    name: str


@dataclass
class LeaderboardPage:
    rows: list[LeaderboardRow]
    viewer: Optional[LeaderboardRow]
    total: int
    page: int
    limit: int

    @property
    def pages(self) -> int:
        return math.ceil(self.total / self.limit) if self.limit else 0


@dataclass
class UserStats:
    record: UserProgress
    rank: int
    rank_percentile: int
    unlocked_achievements: int


@dataclass
class BadgeStatus:
    badge: BadgeDef
    earned_count: int
    earned: Optional[bool] = None


@dataclass
class AchievementStatus:
    achievement: AchievementDef
    unlocked_count: int
    unlocked: Optional[bool] = None
    progress: Optional[int] = None
    unlocked_at: Optional[str] = None


@dataclass
class SweepResult:
    record: Optional[UserProgress] = None
    badges: list[BadgeDef] = field(default_factory=list)
    achievements: list[AchievementDef] = field(default_factory=list)
    failed: list[str] = field(default_factory=list)


def percentile(total: int, rank: int) -> int:
    if total <= 0:
        return 0
    return round((total - rank + 1) / total * 100)


class GamificationService:
    """Gamification engine bound to one database session."""

    def __init__(
        self,
        db: Session,
        catalog: Optional[CatalogCache] = None,
        locks: Optional[UserLockRegistry] = None,
        settings: Optional[Settings] = None,
    ):
        self.db = db
        self.catalog = catalog or catalog_cache
        self.locks = locks or user_locks
        self.settings = settings or get_settings()

    # ----- record access -----

    def find_progress(self, user_id: int) -> Optional[UserProgress]:
        return self.db.scalars(select(UserProgress).where(UserProgress.user_id == user_id)).first()

    def require_progress(self, user_id: int) -> UserProgress:
        record = self.find_progress(user_id)
        if record is None:
            raise NotFoundError("User progress not found", user_id=user_id)
        return record

    def get_or_create_progress(self, user_id: int) -> UserProgress:
        record = self.find_progress(user_id)
        if record is not None:
            return record
        record = UserProgress(user_id=user_id)
        self.db.add(record)
        try:
            self.db.flush()
        except IntegrityError:
            # another process created it first
            self.db.rollback()
            return self.require_progress(user_id)
        logger.info("created progress record user_id=%s", user_id)
        return record

    def _locked(self, user_id: int, name: str, operation: Callable[[], T]) -> T:
        """Run `operation` and commit under the user's lock, retrying once on a version conflict."""
        with self.locks.hold(user_id):
            for attempt in (1, 2):
                try:
                    result = operation()
                    self.db.commit()
                    return result
                except StaleDataError:
                    self.db.rollback()
                    if attempt == 2:
                        logger.warning("version conflict persisted user_id=%s op=%s", user_id, name)
                        raise ConflictError(user_id=user_id, operation=name)
                    logger.warning("version conflict user_id=%s op=%s, retrying", user_id, name)
                except Exception:
                    self.db.rollback()
                    raise
        raise AssertionError("unreachable")

    # ----- progress operations -----

    def get_progress(self, user_id: int, now: Optional[datetime] = None) -> ProgressView:
        """
        Fetch the caller's record, creating it on first access.

        Fetching progress counts as daily activity: the streak is updated (and
        login XP granted) before the record is returned.
        """
        now = now or utcnow()

        def op() -> ProgressView:
            record = self.get_or_create_progress(user_id)
            streak = update_streak(record, now, self.settings.streak_day_mode)
            return ProgressView(record=record, streak=streak)

        return self._locked(user_id, "get_progress", op)

    def award_xp(self, user_id: int, amount: int, source: str = "manual") -> tuple[UserProgress, LevelChange]:
        if isinstance(amount, bool) or not isinstance(amount, int) or amount < 0:
            raise InvalidArgumentError(f"XP amount must be a non-negative integer, got {amount!r}")

        def op() -> tuple[UserProgress, LevelChange]:
            record = self.get_or_create_progress(user_id)
            return record, add_xp(record, amount, source)

        record, change = self._locked(user_id, "award_xp", op)
        logger.info("awarded xp user_id=%s amount=%s source=%s level=%s", user_id, amount, source, record.level)
        return record, change

    def record_activity(
        self,
        user_id: int,
        counter: Optional[str],
        xp_reward: int = 0,
        source: Optional[str] = None,
        stats: Optional[dict[str, float]] = None,
    ) -> tuple[UserProgress, Optional[LevelChange]]:
        """Apply a course/quiz/review event reported by another subsystem."""
        if xp_reward < 0:
            raise InvalidArgumentError(f"xp_reward must be non-negative, got {xp_reward}")

        def op() -> tuple[UserProgress, Optional[LevelChange]]:
            record = self.get_or_create_progress(user_id)
            for name, value in (stats or {}).items():
                record_stat(record, name, value)
            if counter:
                return record, increment_activity(record, counter, xp_reward, source)
            if xp_reward > 0:
                return record, add_xp(record, xp_reward, source or "general")
            return record, None

        return self._locked(user_id, "record_activity", op)

    # ----- sweeps -----

    def check_badges(self, user_id: int) -> SweepResult:
        """
        Award every active badge the user now qualifies for.

        Each award (badge, earned count, XP reward) is committed as one unit.
        A storage failure on one badge is logged and the sweep moves on.
        """
        result = SweepResult()

        def op() -> SweepResult:
            record = self.require_progress(user_id)
            snapshot = self.catalog.get(self.db)
            for badge in snapshot.badges:
                if badge.id in record.badges or not is_badge_earned(record, badge):
                    continue
                if self._commit_unit(partial(self._award_badge_unit, record, badge), f"badge {badge.name}", user_id):
                    result.badges.append(badge)
                else:
                    result.failed.append(badge.id)
            result.record = record
            return result

        with log_operation(logger, f"badge sweep user_id={user_id}"):
            self._locked(user_id, "check_badges", op)
        return result

    def check_achievements(self, user_id: int, now: Optional[datetime] = None) -> SweepResult:
        """
        Evaluate every active achievement not yet completed.

        Newly unlocked achievements pay out their rewards; locked ones with
        partial credit only have their progress stored (never lowered). Every
        unlock and every progress write is committed as its own unit.
        """
        now = now or utcnow()
        result = SweepResult()

        def op() -> SweepResult:
            record = self.require_progress(user_id)
            snapshot = self.catalog.get(self.db)
            for achievement in snapshot.achievements:
                entry = record.achievements.get(achievement.id)
                current = entry.get("progress", 0) if entry else 0
                if current == 100:
                    continue
                evaluation = evaluate_achievement(achievement, record)
                if evaluation.unlocked:
                    unit = partial(self._unlock_achievement_unit, record, achievement, snapshot, now)
                    if self._commit_unit(unit, f"achievement {achievement.name}", user_id):
                        result.achievements.append(achievement)
                    else:
                        result.failed.append(achievement.id)
                elif evaluation.progress > current:
                    unit = partial(update_achievement_progress, record, achievement.id, evaluation.progress, now)
                    self._commit_unit(unit, f"progress {achievement.name}", user_id)
            result.record = record
            return result

        with log_operation(logger, f"achievement sweep user_id={user_id}"):
            self._locked(user_id, "check_achievements", op)
        return result

    def _commit_unit(self, unit: Callable[[], None], label: str, user_id: int) -> bool:
        try:
            unit()
            self.db.commit()
        except StaleDataError:
            raise
        except SQLAlchemyError:
            self.db.rollback()
            logger.exception("award failed user_id=%s %s", user_id, label)
            return False
        return True

    def _award_badge_unit(self, record: UserProgress, badge: BadgeDef) -> None:
        award_badge(record, badge.id)
        increment_earned_count(self.db, badge.id)
        if badge.xp_reward > 0:
            add_xp(record, badge.xp_reward, ACHIEVEMENT_XP_SOURCE)
        logger.info("badge earned user_id=%s badge=%s", record.user_id, badge.name)

    def _unlock_achievement_unit(
        self,
        record: UserProgress,
        achievement: AchievementDef,
        snapshot: CatalogSnapshot,
        now: datetime,
    ) -> None:
        update_achievement_progress(record, achievement.id, 100, now)
        increment_unlocked_count(self.db, achievement.id)
        if achievement.reward_xp > 0:
            add_xp(record, achievement.reward_xp, ACHIEVEMENT_XP_SOURCE)
        badge_id = achievement.reward_badge_id
        if badge_id:
            if snapshot.badge(badge_id) is None:
                logger.warning("achievement %s rewards unknown badge %s", achievement.name, badge_id)
            elif award_badge(record, badge_id):
                increment_earned_count(self.db, badge_id)
        logger.info("achievement unlocked user_id=%s achievement=%s", record.user_id, achievement.name)

    # ----- views -----

    def _sort_attr(self, sort: str) -> str:
        attr = SORT_KEYS.get(sort)
        if attr is None:
            raise InvalidArgumentError(f"unknown leaderboard sort {sort!r}; use one of xp, level, streak, courses")
        return attr

    def leaderboard(
        self,
        sort: str = "xp",
        page: int = 1,
        limit: int = 50,
        viewer_id: Optional[int] = None,
    ) -> LeaderboardPage:
        attr = self._sort_attr(sort)
        if page < 1:
            raise InvalidArgumentError("page must be >= 1")
        if not 1 <= limit <= MAX_PAGE_SIZE:
            raise InvalidArgumentError(f"limit must be within 1..{MAX_PAGE_SIZE}")

        column = getattr(UserProgress, attr)
        order = [column.desc()]
        if attr != "total_xp":
            order.append(UserProgress.total_xp.desc())
        order.append(UserProgress.user_id.asc())

        offset = (page - 1) * limit
        rows = self.db.execute(
            select(UserProgress, User.email, User.preferences)
            .outerjoin(User, User.id == UserProgress.user_id)
            .order_by(*order)
            .offset(offset)
            .limit(limit)
        ).all()
        entries = [
            LeaderboardRow(rank=offset + i + 1, record=record, name=self._name(record.user_id, email, prefs))
            for i, (record, email, prefs) in enumerate(rows)
        ]

        viewer = None
        if viewer_id is not None:
            viewer_rank = self.user_rank(viewer_id, sort)
            if viewer_rank is not None:
                record = self.require_progress(viewer_id)
                user = self.db.get(User, viewer_id)
                name = self._name(viewer_id, user.email if user else None, user.preferences if user else None)
                viewer = LeaderboardRow(rank=viewer_rank, record=record, name=name)

        total = self.db.scalar(select(func.count()).select_from(UserProgress))
        return LeaderboardPage(rows=entries, viewer=viewer, total=total, page=page, limit=limit)

    def user_rank(self, user_id: int, sort: str = "xp") -> Optional[int]:
        """1 + number of records strictly ahead on the sort key; ties share a rank."""
        attr = self._sort_attr(sort)
        record = self.find_progress(user_id)
        if record is None:
            return None
        column = getattr(UserProgress, attr)
        ahead = self.db.scalar(select(func.count()).select_from(UserProgress).where(column > getattr(record, attr)))
        return ahead + 1

    def user_stats(self, user_id: int) -> UserStats:
        record = self.require_progress(user_id)
        total = self.db.scalar(select(func.count()).select_from(UserProgress))
        rank = self.user_rank(user_id, "xp")
        unlocked = sum(1 for entry in record.achievements.values() if entry.get("progress") == 100)
        return UserStats(record=record, rank=rank, rank_percentile=percentile(total, rank), unlocked_achievements=unlocked)

    @staticmethod
    def _name(user_id: int, email: Optional[str], preferences: Optional[dict]) -> str:
        if not email:
            return f"user-{user_id}"
        return display_name(email, preferences)

    def list_badges(self, viewer_id: Optional[int] = None) -> list[BadgeStatus]:
        """Active badges in display order; `earned` is only filled in for an identified caller."""
        snapshot = self.catalog.get(self.db)
        counts = badge_counts(self.db)
        earned_ids: Optional[set[str]] = None
        if viewer_id is not None:
            record = self.find_progress(viewer_id)
            earned_ids = set(record.badges) if record else set()
        return [
            BadgeStatus(
                badge=badge,
                earned_count=counts.get(badge.id, 0),
                earned=None if earned_ids is None else badge.id in earned_ids,
            )
            for badge in snapshot.badges
        ]

    def list_achievements(self, viewer_id: Optional[int] = None) -> list[AchievementStatus]:
        """
        Active achievements in display order. Hidden ones are listed only to a
        caller who has unlocked them.
        """
        snapshot = self.catalog.get(self.db)
        counts = achievement_counts(self.db)
        personal: Optional[dict] = None
        if viewer_id is not None:
            record = self.find_progress(viewer_id)
            personal = dict(record.achievements) if record else {}

        out = []
        for achievement in snapshot.achievements:
            status = AchievementStatus(achievement=achievement, unlocked_count=counts.get(achievement.id, 0))
            if personal is not None:
                entry = personal.get(achievement.id) or {}
                status.progress = entry.get("progress", 0)
                status.unlocked = status.progress == 100
                status.unlocked_at = entry.get("unlocked_at") if status.unlocked else None
            if achievement.is_hidden and not status.unlocked:
                continue
            out.append(status)
        return out

    # ----- catalog management -----

    def replace_badges(self, definitions: Iterable[BadgeDefinition]) -> list[Badge]:
        """Replace the whole badge catalog. Progress records keep whatever ids they hold."""
        definitions = list(definitions)
        self._check_unique_names(d.name for d in definitions)
        rows = [
            Badge(
                id=str(uuid4()),
                name=d.name,
                description=d.description,
                icon=d.icon,
                color=d.color,
                category=d.category.value,
                rarity=d.rarity.value,
                requirement_metric=d.requirement.metric.value,
                requirement_value=d.requirement.value,
                xp_reward=d.xp_reward,
                is_active=d.is_active,
                order=d.order,
            )
            for d in definitions
        ]
        with log_operation(logger, f"replace badge catalog count={len(rows)}"):
            try:
                self.db.execute(delete(Badge))
                self.db.add_all(rows)
                self.db.commit()
            except SQLAlchemyError:
                self.db.rollback()
                raise
            finally:
                self.catalog.invalidate()
        return rows

    def replace_achievements(self, definitions: Iterable[AchievementDefinition]) -> list[Achievement]:
        definitions = list(definitions)
        self._check_unique_names(d.name for d in definitions)
        badge_ids = {b.name: b.id for b in self.db.scalars(select(Badge)).all()}
        rows = []
        for d in definitions:
            for req in d.requirements:
                try:
                    validate_requirement(req.metric, req.operator)
                except CatalogError as e:
                    raise InvalidArgumentError(f"achievement {d.name!r}: {e.detail}") from e
            rows.append(
                Achievement(
                    id=str(uuid4()),
                    name=d.name,
                    description=d.description,
                    icon=d.icon,
                    color=d.color,
                    category=d.category.value,
                    type=d.type.value,
                    requirements=[r.model_dump() for r in d.requirements],
                    reward_xp=d.rewards.xp,
                    reward_badge_id=self._resolve_badge(d.rewards.badge, badge_ids, d.name),
                    reward_title=d.rewards.title,
                    is_hidden=d.is_hidden,
                    is_active=d.is_active,
                    order=d.order,
                )
            )
        with log_operation(logger, f"replace achievement catalog count={len(rows)}"):
            try:
                self.db.execute(delete(Achievement))
                self.db.add_all(rows)
                self.db.commit()
            except SQLAlchemyError:
                self.db.rollback()
                raise
            finally:
                self.catalog.invalidate()
        return rows

    def seed_defaults(self) -> None:
        """Load the default catalogs into empty tables; populated tables are left alone."""
        if not self.db.scalar(select(func.count()).select_from(Badge)):
            self.replace_badges(BadgeDefinition(**b) for b in DEFAULT_BADGES)
        if not self.db.scalar(select(func.count()).select_from(Achievement)):
            self.replace_achievements(AchievementDefinition(**a) for a in DEFAULT_ACHIEVEMENTS)

    @staticmethod
    def _check_unique_names(names: Iterable[str]) -> None:
        seen = set()
        for name in names:
            if name in seen:
                raise InvalidArgumentError(f"duplicate catalog name {name!r}")
            seen.add(name)

    @staticmethod
    def _resolve_badge(ref: Optional[str], badge_ids: dict[str, str], achievement_name: str) -> Optional[str]:
        if not ref:
            return None
        if ref in badge_ids.values():
            return ref
        if ref in badge_ids:
            return badge_ids[ref]
        raise InvalidArgumentError(f"achievement {achievement_name!r} rewards unknown badge {ref!r}")
