"""
Tests for the First-Session Quality Score and its feedback.
"""

from datetime import datetime, timedelta

import pytest

from session_scoring import FirstSessionQualityScorer, FsqsComponents, SessionInput
from session_scoring.fsqs import DEFAULT_IMPROVEMENT_IDEA, DEFAULT_WHAT_WENT_WELL, build_feedback
from transcript_analysis import Transcript


START = datetime(2025, 11, 3, 15, 0, 0)


def first_session(late_minutes=0.0, tech_issue=False, first=True):
    return SessionInput(
        session_id=1,
        tutor_id=1,
        scheduled_start_at=START,
        scheduled_end_at=START + timedelta(minutes=60),
        actual_start_at=START + timedelta(minutes=late_minutes),
        actual_end_at=START + timedelta(minutes=60),
        tech_issue=tech_issue,
        first_session_for_student=first,
    )


@pytest.fixture
def scorer():
    return FirstSessionQualityScorer()


class TestFirstSessionQualityScorer:

    def test_not_a_first_session_returns_none(self, scorer, good_payload):
        assert scorer.score(first_session(first=False), Transcript.from_payload(good_payload)) is None

    def test_without_transcript_returns_none(self, scorer):
        assert scorer.score(first_session(), None) is None

    def test_clean_first_session_scores_100(self, scorer, good_payload):
        result = scorer.score(first_session(), Transcript.from_payload(good_payload))

        assert result.score == 100
        assert result.components.total_penalty == 0
        assert result.feedback.improvement_idea == DEFAULT_IMPROVEMENT_IDEA
        assert result.feedback.what_went_well.startswith(
            "Student showed good understanding with minimal confusion"
        )

    def test_poor_first_session_floors_at_zero(self, scorer, poor_payload):
        result = scorer.score(first_session(), Transcript.from_payload(poor_payload))

        assert result.score == 0
        assert result.feedback.what_went_well == "Session started on time without technical issues"
        # goal setting is declared first among the 20-point checks
        assert result.feedback.improvement_idea == (
            "Goal-setting question should be asked early in first sessions"
        )

    @pytest.mark.parametrize("late,tech,expected", [
        (5, False, 0),
        (5.5, False, 10),
        (0, True, 10),
        (20, True, 10),
    ])
    def test_tech_and_lateness_share_one_flat_penalty(self, scorer, good_payload, late, tech, expected):
        result = scorer.score(first_session(late_minutes=late, tech_issue=tech), Transcript.from_payload(good_payload))

        assert result.components.tech_lateness_disruption == expected
        assert result.score == 100 - expected

    def test_components_round_trip_through_dict(self, scorer, poor_payload):
        result = scorer.score(first_session(), Transcript.from_payload(poor_payload))

        restored = FsqsComponents.from_dict(result.components.to_dict())

        assert restored.penalties() == result.components.penalties()
        assert restored.feedback == result.feedback


class TestBuildFeedback:

    def test_highest_impact_issue_wins(self):
        feedback = build_feedback({"missing_encouragement": 10, "missing_greeting": 15})

        assert feedback.improvement_idea == "Open with a warm greeting to put the student at ease"

    def test_ties_go_to_declaration_order(self):
        feedback = build_feedback({"word_share_imbalance": 20, "confusion_phrases": 20})

        assert feedback.improvement_idea.startswith("Student confusion detected")

    def test_all_checks_failing_uses_default_praise(self):
        penalties = {
            "confusion_phrases": 20,
            "word_share_imbalance": 20,
            "missing_goal_setting": 20,
            "missing_encouragement": 10,
            "negative_phrasing": 5,
            "missing_closing_summary": 15,
            "tech_lateness_disruption": 10,
            "missing_greeting": 15,
            "missing_intro": 15,
            "missing_future_planning": 15,
        }

        assert build_feedback(penalties).what_went_well == DEFAULT_WHAT_WENT_WELL
