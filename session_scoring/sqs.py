"""
Session Quality Score (SQS).

============================================================
PURPOSE
============================================================
Scores one completed session on a 0-100 scale from operational
penalties (lateness, early end, tech issues) and six transcript
signals.

A session without a diarized transcript gets NO score: missing
data is skipped, never penalized.

============================================================
"""

import logging
from typing import Optional

from transcript_analysis import (
    Transcript,
    detect_confusion,
    detect_missing_closing_summary,
    detect_missing_encouragement,
    detect_missing_goal_setting,
    detect_negative_phrasing,
    detect_word_share_imbalance,
)

from .config import SqsConfig
from .types import SessionInput, SqsComponents, SqsLabel, SqsResult

logger = logging.getLogger(__name__)


class SessionQualityScorer:
    """Stateless SQS calculator."""

    def __init__(self, config: Optional[SqsConfig] = None):
        self._config = config or SqsConfig()

    @property
    def config(self) -> SqsConfig:
        return self._config

    def score(self, session: SessionInput, transcript: Optional[Transcript]) -> Optional[SqsResult]:
        """
        Compute the SQS for a session.

        Returns:
            SqsResult, or None when the transcript is missing or
            lacks speaker diarization
        """
        if transcript is None or not transcript.has_speaker_diarization:
            logger.debug(f"Session {session.session_id}: no diarized transcript, skipping SQS")
            return None

        cfg = self._config
        lateness_minutes = session.lateness_minutes
        shortfall_minutes = session.shortfall_minutes

        components = SqsComponents(
            base=cfg.max_score,
            lateness_penalty=self.lateness_penalty(lateness_minutes),
            shortfall_penalty=self.shortfall_penalty(shortfall_minutes),
            tech_penalty=cfg.tech_penalty if session.tech_issue else 0,
            confusion_penalty=detect_confusion(transcript, penalty=cfg.confusion_penalty),
            word_share_penalty=detect_word_share_imbalance(transcript, penalty=cfg.word_share_penalty),
            goal_setting_penalty=detect_missing_goal_setting(transcript, penalty=cfg.goal_setting_penalty),
            encouragement_penalty=detect_missing_encouragement(transcript, penalty=cfg.encouragement_penalty),
            closing_summary_penalty=detect_missing_closing_summary(transcript, penalty=cfg.closing_summary_penalty),
            negative_phrasing_penalty=detect_negative_phrasing(transcript, penalty=cfg.negative_phrasing_penalty),
            lateness_minutes=lateness_minutes,
            shortfall_minutes=shortfall_minutes,
        )

        value = float(max(0, min(cfg.max_score, cfg.max_score - components.total_penalty)))
        return SqsResult(score=value, label=self.label_for(value), components=components)

    def lateness_penalty(self, lateness_minutes: int) -> int:
        if lateness_minutes <= 0:
            return 0
        cfg = self._config
        return min(cfg.lateness_cap, cfg.lateness_points_per_minute * lateness_minutes)

    def shortfall_penalty(self, shortfall_minutes: int) -> int:
        if shortfall_minutes <= 0:
            return 0
        cfg = self._config
        return min(cfg.shortfall_cap, cfg.shortfall_points_per_minute * shortfall_minutes)

    def label_for(self, value: float) -> SqsLabel:
        if value < self._config.risk_below:
            return SqsLabel.RISK
        if value <= self._config.warn_max:
            return SqsLabel.WARN
        return SqsLabel.OK


__all__ = ["SessionQualityScorer"]
