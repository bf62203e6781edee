"""
Progress record mutations: XP and levels, daily streaks, badge set,
achievement progress and activity counters.

Every function mutates a UserProgress instance in memory and returns what
changed. Nothing here touches the session; GamificationService persists.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional

from learnhub.models.gamification import BREAKDOWN_SOURCES, DEFAULT_STATS, OTHER_SOURCE, UserProgress
from learnhub.services.level_curve import xp_for_level
from learnhub.utils.common import utcnow
from learnhub.utils.errors import InvalidArgumentError
from learnhub.utils.logger import get_logger

logger = get_logger("progress")

DAILY_LOGIN_XP = 10
MAX_STREAK_BONUS = 50
SECONDS_PER_DAY = 24 * 60 * 60

# camelCase counter names as reported by collaborators -> record attribute
ACTIVITY_COUNTERS = {
    "coursesCompleted": "courses_completed",
    "quizzesCompleted": "quizzes_completed",
    "quizzesPassed": "quizzes_passed",
    "reviewsWritten": "reviews_written",
    "certificatesEarned": "certificates_earned",
    "lessonsCompleted": "lessons_completed",
}

# breakdown bucket used when a collaborator reports an activity without a source
ACTIVITY_SOURCES = {
    "coursesCompleted": "courseCompletion",
    "quizzesCompleted": "quizCompletion",
    "quizzesPassed": "quizCompletion",
    "reviewsWritten": "reviewWriting",
}


class StreakOutcome(str, Enum):
    FIRST = "first"
    SAME_DAY = "same_day"
    CONTINUED = "continued"
    RESET = "reset"


class DayMode(str, Enum):
    ROLLING = "rolling"
    CALENDAR = "calendar"


@dataclass(frozen=True)
class LevelChange:
    old_level: int
    new_level: int
    xp_added: int

    @property
    def leveled_up(self) -> bool:
        return self.new_level > self.old_level


@dataclass(frozen=True)
class StreakUpdate:
    outcome: StreakOutcome
    current_streak: int
    xp_awarded: int = 0
    level_change: Optional[LevelChange] = None

    @property
    def changed(self) -> bool:
        return self.outcome != StreakOutcome.SAME_DAY


def add_xp(record: UserProgress, amount: int, source: str = "general") -> LevelChange:
    """
    Grant `amount` XP and run the level-up loop.

    Recognized sources accumulate in their own points_breakdown bucket; any
    other source is accepted and counted under "other", so the breakdown
    always sums to total_xp.
    """
    if isinstance(amount, bool) or not isinstance(amount, int):
        raise InvalidArgumentError(f"XP amount must be an integer, got {amount!r}")
    if amount < 0:
        raise InvalidArgumentError(f"XP amount must be non-negative, got {amount}")

    old_level = record.level
    record.total_xp += amount
    record.current_level_xp += amount

    bucket = source if source in BREAKDOWN_SOURCES else OTHER_SOURCE
    record.points_breakdown[bucket] = record.points_breakdown.get(bucket, 0) + amount

    while record.current_level_xp >= record.next_level_xp:
        if record.next_level_xp <= 0:
            raise RuntimeError(f"non-positive level threshold {record.next_level_xp} at level {record.level}")
        record.current_level_xp -= record.next_level_xp
        record.level += 1
        record.next_level_xp = xp_for_level(record.level + 1)

    change = LevelChange(old_level=old_level, new_level=record.level, xp_added=amount)
    if change.leveled_up:
        logger.info("user_id=%s leveled up %s -> %s", record.user_id, old_level, record.level)
    return change


def days_between(earlier: datetime, later: datetime, mode: DayMode | str = DayMode.ROLLING) -> int:
    """
    Day difference used by the streak state machine.

    rolling: floor(elapsed / 24h), timezone-naive; activity 20h apart is the
    same day even across midnight, 25h apart is the next day.
    calendar: difference of the (UTC) calendar dates.
    """
    if DayMode(mode) == DayMode.CALENDAR:
        return (later.date() - earlier.date()).days
    return math.floor((later - earlier).total_seconds() / SECONDS_PER_DAY)


def update_streak(
    record: UserProgress,
    now: Optional[datetime] = None,
    day_mode: DayMode | str = DayMode.ROLLING,
) -> StreakUpdate:
    """Advance the daily streak for activity at `now` and grant the login XP."""
    now = now or utcnow()
    last = record.last_login_date

    if last is None:
        record.current_streak = 1
        record.longest_streak = max(record.longest_streak, 1)
        record.last_login_date = now
        change = add_xp(record, DAILY_LOGIN_XP, "dailyLogin")
        return StreakUpdate(StreakOutcome.FIRST, record.current_streak, DAILY_LOGIN_XP, change)

    diff = days_between(last, now, day_mode)
    if diff <= 0:
        return StreakUpdate(StreakOutcome.SAME_DAY, record.current_streak)

    if diff == 1:
        record.current_streak += 1
        record.longest_streak = max(record.longest_streak, record.current_streak)
        record.last_login_date = now
        xp = DAILY_LOGIN_XP + min(record.current_streak * 2, MAX_STREAK_BONUS)
        change = add_xp(record, xp, "dailyLogin")
        logger.debug("user_id=%s streak continued to %s", record.user_id, record.current_streak)
        return StreakUpdate(StreakOutcome.CONTINUED, record.current_streak, xp, change)

    record.current_streak = 1
    record.last_login_date = now
    change = add_xp(record, DAILY_LOGIN_XP, "dailyLogin")
    logger.debug("user_id=%s streak broken after %s days", record.user_id, diff)
    return StreakUpdate(StreakOutcome.RESET, record.current_streak, DAILY_LOGIN_XP, change)


def award_badge(record: UserProgress, badge_id: str) -> bool:
    """Add `badge_id` to the badge set. True only when newly added; no XP here."""
    if badge_id in record.badges:
        return False
    record.badges.append(badge_id)
    return True


def update_achievement_progress(
    record: UserProgress,
    achievement_id: str,
    progress: int,
    now: Optional[datetime] = None,
) -> UserProgress:
    """
    Upsert achievement progress. Existing entries are overwritten as-is, and
    unlocked_at is refreshed when progress first reaches 100. Callers are
    responsible for not regressing progress.
    """
    if not 0 <= progress <= 100:
        raise InvalidArgumentError(f"achievement progress must be within 0..100, got {progress}")
    entry = record.achievements.get(achievement_id)
    if entry is None or (progress == 100 and entry.get("progress", 0) < 100):
        # first sighting, or the moment of completion
        unlocked_at = (now or utcnow()).isoformat()
    else:
        unlocked_at = entry.get("unlocked_at")
    # whole-value assignment so the mutable JSON column sees the change
    record.achievements[achievement_id] = {"progress": progress, "unlocked_at": unlocked_at}
    return record


def increment_activity(
    record: UserProgress,
    counter: str,
    xp_reward: int = 0,
    source: Optional[str] = None,
) -> Optional[LevelChange]:
    """
    Bump a known activity counter by one and optionally grant XP.

    Unknown counters are ignored (forward-compatible callers), but the XP
    grant still happens.
    """
    if xp_reward < 0:
        raise InvalidArgumentError(f"xp_reward must be non-negative, got {xp_reward}")
    attr = ACTIVITY_COUNTERS.get(counter)
    if attr is not None:
        setattr(record, attr, getattr(record, attr) + 1)
    else:
        logger.warning("user_id=%s unknown activity counter %r", record.user_id, counter)

    if xp_reward > 0:
        return add_xp(record, xp_reward, source or ACTIVITY_SOURCES.get(counter, counter))
    return None


def record_stat(record: UserProgress, name: str, value: float) -> UserProgress:
    """
    Update an auxiliary stat. averageQuizScore is overwritten; the other stats
    are running totals and `value` is added to them.
    """
    if name not in DEFAULT_STATS:
        raise InvalidArgumentError(f"unknown stat {name!r}")
    if value < 0:
        raise InvalidArgumentError(f"stat value must be non-negative, got {value}")
    if name == "averageQuizScore":
        record.stats[name] = value
    else:
        record.stats[name] = record.stats.get(name, 0) + value
    return record
