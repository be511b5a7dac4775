"""
Tests for the Tutor Churn Risk Score.
"""

from datetime import date, timedelta

import pytest

from tutor_scoring import DailyAggregateRow, Trend, TutorChurnRiskScorer, consistency_score


AS_OF = date(2025, 11, 10)


def series(counts):
    """Daily rows ending at AS_OF; counts are oldest first."""
    start = AS_OF - timedelta(days=len(counts) - 1)
    return [
        DailyAggregateRow(tutor_id=1, date=start + timedelta(days=i), sessions_completed=count)
        for i, count in enumerate(counts)
    ]


@pytest.fixture
def scorer():
    return TutorChurnRiskScorer()


class TestConsistencyScore:

    def test_flat_series_is_fully_consistent(self):
        assert consistency_score([3] * 14) == 1.0

    def test_all_zero_series_is_consistent(self):
        assert consistency_score([0] * 14) == 1.0

    def test_alternating_series_is_inconsistent(self):
        assert consistency_score([5, 0] * 7) < 0.5

    def test_single_day_has_zero_stdev(self):
        assert consistency_score([4]) == 1.0


class TestTutorChurnRiskScorer:

    def test_steady_busy_tutor_has_no_risk(self, scorer):
        result = scorer.score(series([2] * 14), as_of=AS_OF)

        assert result.score == 0.0
        assert result.trend == Trend.STABLE

    def test_drop_off_is_declining_and_high_risk(self, scorer):
        result = scorer.score(series([3] * 7 + [0] * 7), as_of=AS_OF)

        assert result.trend == Trend.DECLINING
        assert result.components.trend_adjustment == pytest.approx(0.4)
        assert result.components.activity_penalty == pytest.approx(0.0625, abs=1e-3)
        assert result.score >= 0.6
        assert result.score == pytest.approx(0.692, abs=1e-3)

    def test_improving_bonus_requires_consistency(self, scorer):
        result = scorer.score(series([0] * 7 + [4] * 7), as_of=AS_OF)

        assert result.trend == Trend.IMPROVING
        assert result.components.trend_adjustment == 0.0

    def test_short_history_is_stable_and_sparse(self, scorer):
        result = scorer.score(series([0]), as_of=AS_OF)

        assert result.trend == Trend.STABLE
        assert result.components.activity_penalty == 0.5
        assert result.components.sparsity_penalty == pytest.approx(13 / 14 * 0.15, abs=1e-3)

    def test_score_is_clamped_to_unit_interval(self, scorer):
        result = scorer.score(series([6, 0, 0, 0, 0, 0]), as_of=AS_OF)

        assert 0.0 <= result.score <= 1.0

    def test_no_rows_returns_none(self, scorer):
        assert scorer.score([], as_of=AS_OF) is None

    def test_window_is_fourteen_most_recent_days(self, scorer):
        result = scorer.score(series([0] * 6 + [2] * 14), as_of=AS_OF)

        assert result.components.days_of_data == 14
        assert result.components.session_count == 28
