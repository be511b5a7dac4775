"""
Transcript Analysis Package.

Typed transcript model and the phrase-based behavioral detectors
shared by the session scorers.
"""

from .types import Transcript, TranscriptTurn
from .analyzer import (
    tutor_word_share,
    detect_confusion,
    detect_word_share_imbalance,
    detect_missing_goal_setting,
    detect_missing_encouragement,
    detect_negative_phrasing,
    detect_missing_closing_summary,
    detect_missing_greeting,
    detect_missing_intro,
    detect_missing_future_planning,
)

__all__ = [
    "Transcript",
    "TranscriptTurn",
    "tutor_word_share",
    "detect_confusion",
    "detect_word_share_imbalance",
    "detect_missing_goal_setting",
    "detect_missing_encouragement",
    "detect_negative_phrasing",
    "detect_missing_closing_summary",
    "detect_missing_greeting",
    "detect_missing_intro",
    "detect_missing_future_planning",
]
