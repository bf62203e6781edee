"""Unit tests for badge and achievement evaluation and the catalog snapshot."""
import pytest

from learnhub.models.gamification import Achievement, Badge
from learnhub.services.catalog import (
    AchievementDef,
    BadgeDef,
    CatalogCache,
    Requirement,
    achievement_def_from_row,
    badge_def_from_row,
    evaluate_achievement,
    is_badge_earned,
    metric_value,
    validate_requirement,
)
from learnhub.utils.errors import CatalogError


def make_badge(metric, value, **overrides):
    fields = dict(
        id="b1",
        name="Badge",
        description="",
        icon="🏆",
        color="#000000",
        category="course",
        rarity="common",
        metric=metric,
        value=value,
        xp_reward=0,
        order=0,
    )
    fields.update(overrides)
    return BadgeDef(**fields)


def make_achievement(*requirements, **overrides):
    fields = dict(
        id="a1",
        name="Achievement",
        description="",
        icon="🎯",
        color="#000000",
        category="learning",
        type="milestone",
        requirements=tuple(Requirement(*r) for r in requirements),
        reward_xp=0,
        reward_badge_id=None,
        reward_title=None,
        is_hidden=False,
        order=0,
    )
    fields.update(overrides)
    return AchievementDef(**fields)


@pytest.mark.unit
class TestIsBadgeEarned:
    @pytest.mark.parametrize(
        "metric, attr",
        [
            ("coursesCompleted", "courses_completed"),
            ("quizzesCompleted", "quizzes_completed"),
            ("quizzesPassed", "quizzes_passed"),
            ("reviewsWritten", "reviews_written"),
            ("certificatesEarned", "certificates_earned"),
            ("level", "level"),
            ("totalXP", "total_xp"),
        ],
    )
    def test_counter_metrics(self, record, metric, attr):
        badge = make_badge(metric, 3)
        setattr(record, attr, 2)
        assert not is_badge_earned(record, badge)
        setattr(record, attr, 3)
        assert is_badge_earned(record, badge)

    def test_streak_uses_historical_peak(self, record):
        record.current_streak = 0
        record.longest_streak = 30
        assert is_badge_earned(record, make_badge("streak", 7))

    def test_streak_current(self, record):
        record.current_streak = 7
        record.longest_streak = 7
        assert is_badge_earned(record, make_badge("streak", 7))
        assert not is_badge_earned(record, make_badge("streak", 8))

    def test_stat_metrics(self, record):
        record.stats["totalHelpfulVotes"] = 10
        record.stats["perfectQuizzes"] = 1
        assert is_badge_earned(record, make_badge("helpfulVotes", 10))
        assert is_badge_earned(record, make_badge("perfectQuiz", 1))

    def test_unknown_metric_fails_closed(self, record):
        record.total_xp = 10**6
        assert not is_badge_earned(record, make_badge("karma", 0))

    def test_zero_requirement_always_earned(self, record):
        assert is_badge_earned(record, make_badge("coursesCompleted", 0))


@pytest.mark.unit
class TestEvaluateAchievement:
    def test_partial_credit(self, record):
        achievement = make_achievement(
            ("coursesCompleted", ">=", 1),
            ("quizzesPassed", ">=", 5),
            ("reviewsWritten", ">=", 1),
            ("currentStreak", ">=", 3),
        )
        record.courses_completed = 1
        record.reviews_written = 2
        result = evaluate_achievement(achievement, record)
        assert result.progress == 50
        assert not result.unlocked

        record.quizzes_passed = 5
        result = evaluate_achievement(achievement, record)
        assert result.progress == 75
        assert not result.unlocked

        record.current_streak = 3
        result = evaluate_achievement(achievement, record)
        assert result.progress == 100
        assert result.unlocked

    def test_thirds_are_rounded(self, record):
        achievement = make_achievement(
            ("coursesCompleted", ">=", 1),
            ("quizzesPassed", ">=", 1),
            ("reviewsWritten", ">=", 1),
        )
        record.courses_completed = 1
        assert evaluate_achievement(achievement, record).progress == 33
        record.quizzes_passed = 1
        assert evaluate_achievement(achievement, record).progress == 67

    @pytest.mark.parametrize(
        "op, value, expected",
        [(">=", 5, True), (">", 5, False), ("==", 5, True), ("<=", 4, False), ("<", 6, True)],
    )
    def test_operators(self, record, op, value, expected):
        record.lessons_completed = 5
        result = evaluate_achievement(make_achievement(("lessonsCompleted", op, value)), record)
        assert result.unlocked is expected

    def test_nested_stat_metric(self, record):
        record.stats["totalStudyTime"] = 600
        result = evaluate_achievement(make_achievement(("stats.totalStudyTime", ">=", 600)), record)
        assert result.unlocked

    def test_missing_stat_reads_zero(self, record):
        record.stats.pop("totalHelpfulVotes")
        assert metric_value(record, "stats.totalHelpfulVotes") == 0

    def test_no_requirements_never_unlocks(self, record):
        result = evaluate_achievement(make_achievement(), record)
        assert result.progress == 0
        assert not result.unlocked


@pytest.mark.unit
class TestCatalogValidation:
    def test_unknown_achievement_metric(self):
        with pytest.raises(CatalogError):
            validate_requirement("stats.karma", ">=")

    def test_unknown_operator(self):
        with pytest.raises(CatalogError):
            validate_requirement("totalXP", "!=")

    def test_badge_row_with_unknown_metric(self):
        row = Badge(id="x", name="Bad", description="", category="course", rarity="common",
                    requirement_metric="karma", requirement_value=1, xp_reward=0, order=0)
        with pytest.raises(CatalogError):
            badge_def_from_row(row)

    def test_achievement_row_defaults_operator(self):
        row = Achievement(id="y", name="Ok", description="", category="learning", type="milestone",
                          requirements=[{"metric": "level", "value": 5}], reward_xp=10, is_hidden=False, order=0)
        definition = achievement_def_from_row(row)
        assert definition.requirements == (Requirement("level", ">=", 5),)

    def test_rarity_level(self):
        assert make_badge("level", 1, rarity="legendary").rarity_level == 4
        assert make_badge("level", 1, rarity="common").rarity_level == 1


@pytest.mark.unit
class TestCatalogCache:
    def test_snapshot_reused_until_invalidated(self, db_session):
        cache = CatalogCache()
        db_session.add(Badge(id="b1", name="One", description="", icon="1", color="#000000", category="course",
                             rarity="common", requirement_metric="level", requirement_value=2, order=1))
        db_session.commit()

        first = cache.get(db_session)
        assert [b.name for b in first.badges] == ["One"]

        db_session.add(Badge(id="b2", name="Two", description="", icon="2", color="#000000", category="course",
                             rarity="rare", requirement_metric="level", requirement_value=3, order=2))
        db_session.commit()
        assert cache.get(db_session) is first

        cache.invalidate()
        assert [b.name for b in cache.get(db_session).badges] == ["One", "Two"]

    def test_inactive_entries_excluded(self, db_session):
        db_session.add(Badge(id="b1", name="Retired", description="", icon="1", color="#000000", category="course",
                             rarity="common", requirement_metric="level", requirement_value=2, is_active=False))
        db_session.commit()
        snapshot = CatalogCache().get(db_session)
        assert snapshot.badges == ()
        assert snapshot.badge("b1") is None
