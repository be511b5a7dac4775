"""
First-Session Quality Score (FSQS).

============================================================
PURPOSE
============================================================
Scores a student's first session with a tutor on a 0-100 scale,
higher is better. Uses the shared transcript detectors plus three
onboarding checks (greeting, intro/background, future planning)
and a combined tech/lateness disruption penalty.

============================================================
FEEDBACK
============================================================
- what_went_well: every passing check, joined into one paragraph
- improvement_idea: the single highest-impact failing check

Ties on impact go to the check declared first in _CHECKS.
Surfacing one item at a time keeps first-session feedback
actionable.

============================================================
"""

import logging
from dataclasses import dataclass
from typing import Dict, List, Optional

from transcript_analysis import (
    Transcript,
    detect_confusion,
    detect_missing_closing_summary,
    detect_missing_encouragement,
    detect_missing_future_planning,
    detect_missing_goal_setting,
    detect_missing_greeting,
    detect_missing_intro,
    detect_negative_phrasing,
    detect_word_share_imbalance,
)

from .config import FsqsConfig
from .types import FsqsComponents, FsqsFeedback, FsqsResult, SessionInput

logger = logging.getLogger(__name__)


DEFAULT_WHAT_WENT_WELL = "Session completed successfully"
DEFAULT_IMPROVEMENT_IDEA = "Continue building on these positive patterns"


@dataclass(frozen=True)
class _Check:
    component: str
    positive: str
    issue: str


# Declaration order is the tie-break order for improvement_idea.
_CHECKS = (
    _Check(
        "missing_goal_setting",
        "Goal-setting question was asked early in the session",
        "Goal-setting question should be asked early in first sessions",
    ),
    _Check(
        "confusion_phrases",
        "Student showed good understanding with minimal confusion",
        "Student confusion detected - consider adjusting explanation approach",
    ),
    _Check(
        "word_share_imbalance",
        "Good balance of tutor and student participation",
        "Word share imbalance - student should have more opportunities to speak",
    ),
    _Check(
        "missing_closing_summary",
        "Session ended with clear summary and next steps",
        "Missing closing summary - help student understand what was covered and next steps",
    ),
    _Check(
        "missing_greeting",
        "Session opened with a warm greeting",
        "Open with a warm greeting to put the student at ease",
    ),
    _Check(
        "missing_intro",
        "Tutor and student introduced themselves and their backgrounds",
        "Take a moment to introduce yourself and learn about the student's background",
    ),
    _Check(
        "missing_future_planning",
        "Next session was planned before wrapping up",
        "Close by planning what you will work on in the next session",
    ),
    _Check(
        "missing_encouragement",
        "Encouragement phrases were used throughout",
        "More encouragement phrases would help build student confidence",
    ),
    _Check(
        "tech_lateness_disruption",
        "Session started on time without technical issues",
        "Technical issues or lateness disrupted the session experience",
    ),
    _Check(
        "negative_phrasing",
        "Positive, supportive language was maintained",
        "Negative phrasing detected - focus on constructive, positive language",
    ),
)

# Positive sentences read in this order, which is not the tie-break order.
_POSITIVE_ORDER = (
    "confusion_phrases",
    "word_share_imbalance",
    "missing_goal_setting",
    "missing_encouragement",
    "negative_phrasing",
    "missing_closing_summary",
    "missing_greeting",
    "missing_intro",
    "missing_future_planning",
    "tech_lateness_disruption",
)


class FirstSessionQualityScorer:
    """Stateless FSQS calculator."""

    def __init__(self, config: Optional[FsqsConfig] = None):
        self._config = config or FsqsConfig()

    @property
    def config(self) -> FsqsConfig:
        return self._config

    def score(self, session: SessionInput, transcript: Optional[Transcript]) -> Optional[FsqsResult]:
        """
        Compute the FSQS for a first session.

        Returns:
            FsqsResult, or None unless the session is the student's
            first with this tutor and has a diarized transcript
        """
        if not session.first_session_for_student:
            return None
        if transcript is None or not transcript.has_speaker_diarization:
            logger.debug(f"Session {session.session_id}: no diarized transcript, skipping FSQS")
            return None

        cfg = self._config
        components = FsqsComponents(
            confusion_phrases=detect_confusion(transcript, penalty=cfg.confusion_penalty),
            word_share_imbalance=detect_word_share_imbalance(transcript, penalty=cfg.word_share_penalty),
            missing_goal_setting=detect_missing_goal_setting(transcript, penalty=cfg.goal_setting_penalty),
            missing_encouragement=detect_missing_encouragement(transcript, penalty=cfg.encouragement_penalty),
            negative_phrasing=detect_negative_phrasing(transcript, penalty=cfg.negative_phrasing_penalty),
            missing_closing_summary=detect_missing_closing_summary(transcript, penalty=cfg.closing_summary_penalty),
            tech_lateness_disruption=self.tech_lateness_penalty(session),
            missing_greeting=detect_missing_greeting(transcript, penalty=cfg.greeting_penalty),
            missing_intro=detect_missing_intro(transcript, penalty=cfg.intro_penalty),
            missing_future_planning=detect_missing_future_planning(transcript, penalty=cfg.future_planning_penalty),
        )

        value = float(max(0, min(cfg.max_score, cfg.max_score - components.total_penalty)))
        feedback = build_feedback(components.penalties())

        return FsqsResult(
            score=value,
            components=FsqsComponents(**components.penalties(), feedback=feedback),
        )

    def tech_lateness_penalty(self, session: SessionInput) -> int:
        """Flat penalty if there was a tech issue OR the start was over the lateness threshold."""
        late = session.lateness_minutes > self._config.lateness_threshold_minutes
        return self._config.tech_lateness_penalty if (session.tech_issue or late) else 0


def build_feedback(penalties: Dict[str, int]) -> FsqsFeedback:
    """Turn a penalty breakdown into tutor-facing feedback text."""
    by_component = {check.component: check for check in _CHECKS}

    positives: List[str] = [
        by_component[name].positive
        for name in _POSITIVE_ORDER
        if penalties.get(name, 0) == 0
    ]

    top_issue: Optional[_Check] = None
    top_impact = 0
    for check in _CHECKS:
        impact = penalties.get(check.component, 0)
        if impact > top_impact:
            top_issue, top_impact = check, impact

    return FsqsFeedback(
        what_went_well=". ".join(positives) if positives else DEFAULT_WHAT_WENT_WELL,
        improvement_idea=top_issue.issue if top_issue else DEFAULT_IMPROVEMENT_IDEA,
    )


__all__ = [
    "FirstSessionQualityScorer",
    "build_feedback",
    "DEFAULT_WHAT_WENT_WELL",
    "DEFAULT_IMPROVEMENT_IDEA",
]
