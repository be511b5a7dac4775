"""
Tests for the Session Quality Score.
"""

from datetime import datetime, timedelta

import pytest

from session_scoring import SessionInput, SessionQualityScorer, SqsLabel
from transcript_analysis import Transcript


START = datetime(2025, 11, 3, 15, 0, 0)


def make_session(late_minutes=0.0, early_end_minutes=0.0, tech_issue=False, duration=60):
    return SessionInput(
        session_id=1,
        tutor_id=1,
        scheduled_start_at=START,
        scheduled_end_at=START + timedelta(minutes=duration),
        actual_start_at=START + timedelta(minutes=late_minutes),
        actual_end_at=START + timedelta(minutes=duration - early_end_minutes),
        tech_issue=tech_issue,
    )


@pytest.fixture
def scorer():
    return SessionQualityScorer()


@pytest.fixture
def good_transcript(good_payload):
    return Transcript.from_payload(good_payload)


class TestSessionQualityScorer:

    def test_perfect_session_scores_100(self, scorer, good_transcript):
        result = scorer.score(make_session(), good_transcript)

        assert result.score == 100
        assert result.label == SqsLabel.OK
        assert result.components.total_penalty == 0

    def test_tech_issue_only_scores_90(self, scorer, good_transcript):
        result = scorer.score(make_session(tech_issue=True), good_transcript)

        assert result.score == 90
        assert result.components.tech_penalty == 10

    @pytest.mark.parametrize("late,expected_penalty", [
        (0.5, 2),
        (1, 2),
        (3.2, 8),
        (10, 20),
        (45, 20),
    ])
    def test_lateness_penalty_rounds_minutes_up_and_caps(self, scorer, good_transcript, late, expected_penalty):
        result = scorer.score(make_session(late_minutes=late), good_transcript)

        assert result.components.lateness_penalty == expected_penalty

    def test_early_start_is_not_penalized(self, scorer, good_transcript):
        result = scorer.score(make_session(late_minutes=-5), good_transcript)

        assert result.components.lateness_penalty == 0
        assert result.components.lateness_minutes == 0

    @pytest.mark.parametrize("early,expected_penalty", [(1, 1), (4.5, 5), (30, 10)])
    def test_shortfall_penalty(self, scorer, good_transcript, early, expected_penalty):
        result = scorer.score(make_session(early_end_minutes=early), good_transcript)

        assert result.components.shortfall_penalty == expected_penalty

    def test_late_and_short_session_scores_87_ok(self, scorer, good_transcript):
        # 5 min late (-10) and 3 min short (-3)
        result = scorer.score(make_session(late_minutes=5, early_end_minutes=3), good_transcript)

        assert result.score == 87
        assert result.label == SqsLabel.OK
        assert result.components.lateness_minutes == 5
        assert result.components.shortfall_minutes == 3

    def test_poor_transcript_penalties_sum(self, scorer, poor_payload):
        result = scorer.score(make_session(), Transcript.from_payload(poor_payload))

        assert result.components.transcript_penalty == 90
        assert result.score == 10
        assert result.label == SqsLabel.RISK

    def test_score_never_negative(self, scorer, poor_payload):
        session = make_session(late_minutes=30, early_end_minutes=30, tech_issue=True)

        result = scorer.score(session, Transcript.from_payload(poor_payload))

        assert result.score == 0

    def test_missing_transcript_returns_none(self, scorer):
        assert scorer.score(make_session(), None) is None
        assert scorer.score(make_session(), Transcript.from_payload({"speakers": []})) is None

    @pytest.mark.parametrize("value,label", [
        (59.9, SqsLabel.RISK),
        (60, SqsLabel.WARN),
        (75, SqsLabel.WARN),
        (75.1, SqsLabel.OK),
    ])
    def test_label_bands(self, scorer, value, label):
        assert scorer.label_for(value) == label

    def test_components_dict_carries_label(self, scorer, good_transcript):
        result = scorer.score(make_session(tech_issue=True), good_transcript)

        data = result.components_dict()

        assert data["label"] == "ok"
        assert data["tech_penalty"] == 10
        assert data["base"] == 100


class TestSessionInput:

    def test_unknown_times_mean_zero_minutes(self):
        session = SessionInput(session_id=1, tutor_id=1)

        assert session.lateness_minutes == 0
        assert session.shortfall_minutes == 0
        assert session.exact_lateness_minutes is None

    def test_exact_lateness_is_signed(self):
        session = make_session(late_minutes=-2.5)

        assert session.exact_lateness_minutes == -2.5
