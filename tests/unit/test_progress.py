"""Unit tests for progress record mutations (no DB)."""
import random
from datetime import timedelta

import pytest

from learnhub.models.gamification import BREAKDOWN_SOURCES, OTHER_SOURCE, UserProgress
from learnhub.services.level_curve import level_from_xp, xp_for_level
from learnhub.services.progress import (
    DayMode,
    StreakOutcome,
    add_xp,
    award_badge,
    days_between,
    increment_activity,
    record_stat,
    update_achievement_progress,
    update_streak,
)
from learnhub.utils.errors import InvalidArgumentError


@pytest.mark.unit
class TestNewRecord:
    def test_defaults(self, record):
        assert record.total_xp == 0
        assert record.level == 1
        assert record.current_level_xp == 0
        assert record.next_level_xp == 300
        assert record.badges == []
        assert set(record.points_breakdown) == set(BREAKDOWN_SOURCES) | {OTHER_SOURCE}
        assert record.stats["perfectQuizzes"] == 0


@pytest.mark.unit
class TestAddXp:
    def test_below_threshold(self, record):
        change = add_xp(record, 120, "quizCompletion")
        assert record.total_xp == 120
        assert record.current_level_xp == 120
        assert record.level == 1
        assert not change.leveled_up
        assert record.points_breakdown["quizCompletion"] == 120

    def test_exact_threshold_levels_up(self, record):
        change = add_xp(record, 300, "courseCompletion")
        assert change.leveled_up
        assert change.old_level == 1 and change.new_level == 2
        assert record.current_level_xp == 0
        assert record.next_level_xp == 450

    def test_multi_level_jump(self, record):
        add_xp(record, 300 + 450 + 600 + 5, "achievements")
        assert record.level == 4
        assert record.current_level_xp == 5
        assert record.next_level_xp == xp_for_level(5)

    def test_510_lands_on_level_two(self, record):
        add_xp(record, 510, "courseCompletion")
        assert record.level == 2
        assert record.current_level_xp == 210

    def test_unknown_source_counted_as_other(self, record):
        add_xp(record, 40, "mysteryBox")
        assert record.points_breakdown[OTHER_SOURCE] == 40
        assert "mysteryBox" not in record.points_breakdown
        assert sum(record.points_breakdown.values()) == record.total_xp

    def test_zero_is_allowed(self, record):
        change = add_xp(record, 0, "dailyLogin")
        assert record.total_xp == 0
        assert not change.leveled_up

    @pytest.mark.parametrize("amount", [-1, 2.5, "10", True])
    def test_rejects_bad_amounts(self, record, amount):
        with pytest.raises(InvalidArgumentError):
            add_xp(record, amount, "general")
        assert record.total_xp == 0

    def test_zero_threshold_guard(self, record):
        record.next_level_xp = 0
        with pytest.raises(RuntimeError):
            add_xp(record, 1, "general")

    def test_level_fields_and_totals_over_random_sequences(self):
        rng = random.Random(1234)
        sources = list(BREAKDOWN_SOURCES) + ["manual", "bonus"]
        for _ in range(25):
            record = UserProgress(user_id=1)
            granted = 0
            for _ in range(rng.randint(1, 40)):
                amount = rng.randint(0, 900)
                granted += amount
                add_xp(record, amount, rng.choice(sources))
                assert 0 <= record.current_level_xp < record.next_level_xp
                assert record.next_level_xp == xp_for_level(record.level + 1)
            assert record.total_xp == granted
            assert sum(record.points_breakdown.values()) == granted
            assert record.level == level_from_xp(granted)


@pytest.mark.unit
class TestDaysBetween:
    def test_rolling_floors_elapsed_time(self, day_one):
        assert days_between(day_one, day_one + timedelta(hours=20)) == 0
        assert days_between(day_one, day_one + timedelta(hours=25)) == 1
        assert days_between(day_one, day_one + timedelta(hours=49)) == 2

    def test_calendar_uses_dates(self, day_one):
        late = day_one.replace(hour=23, minute=30)
        assert days_between(late, late + timedelta(hours=1), DayMode.CALENDAR) == 1
        assert days_between(late, late + timedelta(hours=1), "rolling") == 0


@pytest.mark.unit
class TestUpdateStreak:
    def test_first_activity(self, record, day_one):
        update = update_streak(record, day_one)
        assert update.outcome == StreakOutcome.FIRST
        assert record.current_streak == 1
        assert record.longest_streak == 1
        assert record.total_xp == 10
        assert record.points_breakdown["dailyLogin"] == 10
        assert record.last_login_date == day_one

    def test_same_day_is_noop(self, record, day_one):
        update_streak(record, day_one)
        update = update_streak(record, day_one + timedelta(hours=20))
        assert update.outcome == StreakOutcome.SAME_DAY
        assert not update.changed
        assert record.current_streak == 1
        assert record.total_xp == 10
        assert record.last_login_date == day_one

    def test_next_day_continues_with_bonus(self, record, day_one):
        update_streak(record, day_one)
        update = update_streak(record, day_one + timedelta(hours=25))
        assert update.outcome == StreakOutcome.CONTINUED
        assert update.xp_awarded == 14
        assert record.current_streak == 2
        assert record.longest_streak == 2
        assert record.total_xp == 24

    def test_bonus_is_capped(self, record, day_one):
        record.last_login_date = day_one
        record.current_streak = 40
        record.longest_streak = 40
        update = update_streak(record, day_one + timedelta(days=1))
        assert update.xp_awarded == 10 + 50
        assert record.longest_streak == 41

    def test_gap_resets_but_keeps_longest(self, record, day_one):
        record.last_login_date = day_one
        record.current_streak = 5
        record.longest_streak = 12
        update = update_streak(record, day_one + timedelta(days=3))
        assert update.outcome == StreakOutcome.RESET
        assert record.current_streak == 1
        assert record.longest_streak == 12
        assert update.xp_awarded == 10


@pytest.mark.unit
class TestAwardBadge:
    def test_idempotent(self, record):
        assert award_badge(record, "badge-1") is True
        assert award_badge(record, "badge-1") is False
        assert record.badges == ["badge-1"]
        assert record.total_xp == 0


@pytest.mark.unit
class TestAchievementProgress:
    def test_insert_then_overwrite(self, record, day_one):
        update_achievement_progress(record, "ach-1", 25, day_one)
        first = record.achievements["ach-1"]
        assert first["progress"] == 25
        assert first["unlocked_at"] == day_one.isoformat()

        later = day_one + timedelta(days=2)
        update_achievement_progress(record, "ach-1", 50, later)
        assert record.achievements["ach-1"] == {"progress": 50, "unlocked_at": day_one.isoformat()}

    def test_completion_refreshes_timestamp(self, record, day_one):
        update_achievement_progress(record, "ach-1", 50, day_one)
        done = day_one + timedelta(days=4)
        update_achievement_progress(record, "ach-1", 100, done)
        assert record.achievements["ach-1"]["unlocked_at"] == done.isoformat()

    def test_plain_overwrite_allows_regression(self, record, day_one):
        update_achievement_progress(record, "ach-1", 75, day_one)
        update_achievement_progress(record, "ach-1", 25, day_one)
        assert record.achievements["ach-1"]["progress"] == 25

    @pytest.mark.parametrize("progress", [-1, 101])
    def test_out_of_range(self, record, progress):
        with pytest.raises(InvalidArgumentError):
            update_achievement_progress(record, "ach-1", progress)
        assert record.achievements == {}


@pytest.mark.unit
class TestIncrementActivity:
    def test_known_counter_with_reward(self, record):
        change = increment_activity(record, "coursesCompleted", 500)
        assert record.courses_completed == 1
        assert record.points_breakdown["courseCompletion"] == 500
        assert change.leveled_up

    def test_explicit_source_wins(self, record):
        increment_activity(record, "quizzesPassed", 50, source="achievements")
        assert record.quizzes_passed == 1
        assert record.points_breakdown["achievements"] == 50

    def test_unknown_counter_still_grants_xp(self, record):
        change = increment_activity(record, "forumPosts", 20)
        assert change is not None
        assert record.total_xp == 20
        assert record.points_breakdown[OTHER_SOURCE] == 20

    def test_no_reward(self, record):
        assert increment_activity(record, "lessonsCompleted") is None
        assert record.lessons_completed == 1
        assert record.total_xp == 0


@pytest.mark.unit
class TestRecordStat:
    def test_running_totals_and_average(self, record):
        record_stat(record, "totalStudyTime", 45)
        record_stat(record, "totalStudyTime", 15)
        record_stat(record, "averageQuizScore", 80)
        record_stat(record, "averageQuizScore", 92.5)
        assert record.stats["totalStudyTime"] == 60
        assert record.stats["averageQuizScore"] == 92.5

    def test_unknown_stat(self, record):
        with pytest.raises(InvalidArgumentError):
            record_stat(record, "karma", 1)
