"""
Badge and achievement catalogs.

The catalogs are read-mostly: CatalogCache keeps an immutable snapshot of the
active entries, rebuilt wholesale after a catalog replacement. earned_count and
unlocked_count are not part of the snapshot; they are bumped with atomic SQL
updates against the catalog tables.

Requirement metrics resolve through explicit dispatch tables rather than
attribute lookup by string, so a misspelled metric is rejected when the
catalog is loaded instead of silently evaluating to 0.
"""

from __future__ import annotations

import operator
import threading
from dataclasses import dataclass
from types import MappingProxyType
from typing import Callable, Mapping, Optional

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from learnhub.models.gamification import Achievement, Badge, BadgeMetric, UserProgress
from learnhub.utils.errors import CatalogError
from learnhub.utils.logger import get_logger

logger = get_logger("catalog")

MetricAccessor = Callable[[UserProgress], float]

RARITY_LEVELS = {"common": 1, "rare": 2, "epic": 3, "legendary": 4}


def _stat(name: str) -> MetricAccessor:
    return lambda r: (r.stats or {}).get(name) or 0


def _attr(name: str) -> MetricAccessor:
    return lambda r: getattr(r, name)


BADGE_METRICS: Mapping[str, MetricAccessor] = MappingProxyType({
    BadgeMetric.COURSES_COMPLETED.value: _attr("courses_completed"),
    BadgeMetric.QUIZZES_COMPLETED.value: _attr("quizzes_completed"),
    BadgeMetric.QUIZZES_PASSED.value: _attr("quizzes_passed"),
    BadgeMetric.REVIEWS_WRITTEN.value: _attr("reviews_written"),
    BadgeMetric.CERTIFICATES_EARNED.value: _attr("certificates_earned"),
    # current or historical peak: a rebuilt streak still counts if the peak qualified
    BadgeMetric.STREAK.value: lambda r: max(r.current_streak, r.longest_streak),
    BadgeMetric.LEVEL.value: _attr("level"),
    BadgeMetric.TOTAL_XP.value: _attr("total_xp"),
    BadgeMetric.HELPFUL_VOTES.value: _stat("totalHelpfulVotes"),
    BadgeMetric.PERFECT_QUIZ.value: _stat("perfectQuizzes"),
})

ACHIEVEMENT_METRICS: Mapping[str, MetricAccessor] = MappingProxyType({
    "totalXP": _attr("total_xp"),
    "level": _attr("level"),
    "currentLevelXP": _attr("current_level_xp"),
    "currentStreak": _attr("current_streak"),
    "longestStreak": _attr("longest_streak"),
    "coursesCompleted": _attr("courses_completed"),
    "quizzesCompleted": _attr("quizzes_completed"),
    "quizzesPassed": _attr("quizzes_passed"),
    "reviewsWritten": _attr("reviews_written"),
    "certificatesEarned": _attr("certificates_earned"),
    "lessonsCompleted": _attr("lessons_completed"),
    "badgeCount": lambda r: r.badge_count,
    "stats.totalStudyTime": _stat("totalStudyTime"),
    "stats.averageQuizScore": _stat("averageQuizScore"),
    "stats.totalHelpfulVotes": _stat("totalHelpfulVotes"),
    "stats.perfectQuizzes": _stat("perfectQuizzes"),
})

OPERATORS: Mapping[str, Callable[[float, float], bool]] = MappingProxyType({
    ">=": operator.ge,
    ">": operator.gt,
    "==": operator.eq,
    "<=": operator.le,
    "<": operator.lt,
})


@dataclass(frozen=True)
class BadgeDef:
    id: str
    name: str
    description: str
    icon: str
    color: str
    category: str
    rarity: str
    metric: str
    value: int
    xp_reward: int
    order: int

    @property
    def rarity_level(self) -> int:
        return RARITY_LEVELS.get(self.rarity, 1)


@dataclass(frozen=True)
class Requirement:
    metric: str
    operator: str
    value: float


@dataclass(frozen=True)
class AchievementDef:
    id: str
    name: str
    description: str
    icon: str
    color: str
    category: str
    type: str
    requirements: tuple[Requirement, ...]
    reward_xp: int
    reward_badge_id: Optional[str]
    reward_title: Optional[str]
    is_hidden: bool
    order: int


@dataclass(frozen=True)
class Evaluation:
    unlocked: bool
    progress: int


@dataclass(frozen=True)
class CatalogSnapshot:
    badges: tuple[BadgeDef, ...]
    achievements: tuple[AchievementDef, ...]

    def badge(self, badge_id: str) -> Optional[BadgeDef]:
        return next((b for b in self.badges if b.id == badge_id), None)

    def achievement(self, achievement_id: str) -> Optional[AchievementDef]:
        return next((a for a in self.achievements if a.id == achievement_id), None)


# ----- validation -----

def validate_requirement(metric: str, op: str) -> None:
    if metric not in ACHIEVEMENT_METRICS:
        raise CatalogError(f"unknown achievement metric {metric!r}")
    if op not in OPERATORS:
        raise CatalogError(f"unknown requirement operator {op!r}")


def badge_def_from_row(row: Badge) -> BadgeDef:
    if row.requirement_metric not in BADGE_METRICS:
        raise CatalogError(f"badge {row.name!r} has unknown metric {row.requirement_metric!r}")
    return BadgeDef(
        id=row.id,
        name=row.name,
        description=row.description,
        icon=row.icon,
        color=row.color,
        category=row.category,
        rarity=row.rarity,
        metric=row.requirement_metric,
        value=row.requirement_value,
        xp_reward=row.xp_reward,
        order=row.order,
    )


def achievement_def_from_row(row: Achievement) -> AchievementDef:
    requirements = []
    for raw in row.requirements or []:
        req = Requirement(metric=raw["metric"], operator=raw.get("operator", ">="), value=raw["value"])
        validate_requirement(req.metric, req.operator)
        requirements.append(req)
    return AchievementDef(
        id=row.id,
        name=row.name,
        description=row.description,
        icon=row.icon,
        color=row.color,
        category=row.category,
        type=row.type,
        requirements=tuple(requirements),
        reward_xp=row.reward_xp,
        reward_badge_id=row.reward_badge_id,
        reward_title=row.reward_title,
        is_hidden=row.is_hidden,
        order=row.order,
    )


# ----- evaluation -----

def is_badge_earned(record: UserProgress, badge: BadgeDef) -> bool:
    """Single-condition check; unknown metrics never earn."""
    accessor = BADGE_METRICS.get(badge.metric)
    if accessor is None:
        return False
    return accessor(record) >= badge.value


def metric_value(record: UserProgress, metric: str) -> float:
    accessor = ACHIEVEMENT_METRICS.get(metric)
    if accessor is None:
        return 0
    return accessor(record)


def evaluate_achievement(achievement: AchievementDef, record: UserProgress) -> Evaluation:
    """
    All requirements must hold to unlock; progress is the share of met
    requirements, unweighted. 3 of 4 met -> 75, still locked.
    """
    total = len(achievement.requirements)
    if total == 0:
        return Evaluation(unlocked=False, progress=0)

    met = 0
    for req in achievement.requirements:
        compare = OPERATORS.get(req.operator)
        if compare is not None and compare(metric_value(record, req.metric), req.value):
            met += 1

    return Evaluation(unlocked=met == total, progress=round(met / total * 100))


# ----- counters -----

def increment_earned_count(db: Session, badge_id: str) -> None:
    db.execute(update(Badge).where(Badge.id == badge_id).values(earned_count=Badge.earned_count + 1))


def increment_unlocked_count(db: Session, achievement_id: str) -> None:
    db.execute(
        update(Achievement)
        .where(Achievement.id == achievement_id)
        .values(unlocked_count=Achievement.unlocked_count + 1)
    )


def badge_counts(db: Session) -> dict[str, int]:
    return dict(db.execute(select(Badge.id, Badge.earned_count)).all())


def achievement_counts(db: Session) -> dict[str, int]:
    return dict(db.execute(select(Achievement.id, Achievement.unlocked_count)).all())


# ----- cache -----

def load_snapshot(db: Session) -> CatalogSnapshot:
    badge_rows = db.scalars(select(Badge).where(Badge.is_active.is_(True)).order_by(Badge.order, Badge.name)).all()
    achievement_rows = db.scalars(
        select(Achievement).where(Achievement.is_active.is_(True)).order_by(Achievement.order, Achievement.name)
    ).all()
    snapshot = CatalogSnapshot(
        badges=tuple(badge_def_from_row(b) for b in badge_rows),
        achievements=tuple(achievement_def_from_row(a) for a in achievement_rows),
    )
    logger.info("catalog loaded badges=%s achievements=%s", len(snapshot.badges), len(snapshot.achievements))
    return snapshot


class CatalogCache:
    """Process-wide holder of the current CatalogSnapshot."""

    def __init__(self):
        self._lock = threading.Lock()
        self._snapshot: Optional[CatalogSnapshot] = None

    def get(self, db: Session) -> CatalogSnapshot:
        snapshot = self._snapshot
        if snapshot is not None:
            return snapshot
        with self._lock:
            if self._snapshot is None:
                self._snapshot = load_snapshot(db)
            return self._snapshot

    def invalidate(self) -> None:
        with self._lock:
            self._snapshot = None


catalog_cache = CatalogCache()
