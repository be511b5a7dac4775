"""
Transcript Analysis - Signal Detectors.

============================================================
PURPOSE
============================================================
Pure, stateless detectors over a diarized Transcript.

Each detector returns its penalty points when the condition
triggers and 0 otherwise. The point value is a keyword argument
so SQS and FSQS can share detectors with their own weights.

============================================================
WINDOWS
============================================================
  confusion          all student turns, >= 3 phrase hits
  word share         whole transcript, tutor share > 75%
  goal setting       first 3 tutor turns
  encouragement      all tutor turns
  negative phrasing  all tutor turns, >= 2 phrase hits
  closing summary    last 3 tutor turns
  greeting           first 2 tutor turns
  intro/background   first 5 tutor turns
  future planning    last 5 tutor turns

For the windowed "missing X" checks, a transcript with no tutor
turns counts as missing: the penalty applies.

============================================================
"""

from typing import Iterable, List, Optional, Sequence

from .phrases import (
    CLOSING_SUMMARY_PHRASES,
    CONFUSION_PHRASES,
    ENCOURAGEMENT_PHRASES,
    FUTURE_PLANNING_PHRASES,
    GOAL_SETTING_PHRASES,
    GREETING_PHRASES,
    INTRO_PHRASES,
    NEGATIVE_PHRASES,
)
from .types import Transcript, TranscriptTurn


# ============================================================
# STANDARD WEIGHTS
# ============================================================

CONFUSION_PENALTY = 20
WORD_SHARE_PENALTY = 20
GOAL_SETTING_PENALTY = 20
ENCOURAGEMENT_PENALTY = 10
NEGATIVE_PHRASING_PENALTY = 5
CLOSING_SUMMARY_PENALTY = 15
GREETING_PENALTY = 15
INTRO_PENALTY = 15
FUTURE_PLANNING_PENALTY = 15

CONFUSION_MIN_HITS = 3
NEGATIVE_MIN_HITS = 2
WORD_SHARE_MAX_TUTOR = 0.75


# ============================================================
# MATCHING HELPERS
# ============================================================

def count_phrase_hits(turns: Iterable[TranscriptTurn], phrases: Sequence[str]) -> int:
    """Count (turn, phrase) pairs where the phrase occurs in the turn."""
    hits = 0
    for turn in turns:
        text = turn.lowered_text
        hits += sum(1 for phrase in phrases if phrase in text)
    return hits


def any_phrase(turns: Iterable[TranscriptTurn], phrases: Sequence[str]) -> bool:
    for turn in turns:
        text = turn.lowered_text
        if any(phrase in text for phrase in phrases):
            return True
    return False


def _missing(window: List[TranscriptTurn], phrases: Sequence[str], penalty: int) -> int:
    if not window:
        return penalty
    return 0 if any_phrase(window, phrases) else penalty


# ============================================================
# DETECTORS
# ============================================================

def detect_confusion(transcript: Transcript, penalty: int = CONFUSION_PENALTY) -> int:
    """Student confusion phrases; one turn can contribute several hits."""
    hits = count_phrase_hits(transcript.student_turns, CONFUSION_PHRASES)
    return penalty if hits >= CONFUSION_MIN_HITS else 0


def tutor_word_share(transcript: Transcript) -> Optional[float]:
    """
    Tutor share of all spoken words, in [0, 1].

    Metadata totals win; when both are zero the totals are rebuilt
    from per-turn word counts. Returns None when nobody spoke.
    """
    tutor_words = transcript.total_words_tutor
    student_words = transcript.total_words_student

    if tutor_words == 0 and student_words == 0:
        tutor_words = sum(turn.words for turn in transcript.tutor_turns)
        student_words = sum(turn.words for turn in transcript.student_turns)

    total = tutor_words + student_words
    if total <= 0:
        return None
    return tutor_words / total


def detect_word_share_imbalance(transcript: Transcript, penalty: int = WORD_SHARE_PENALTY) -> int:
    share = tutor_word_share(transcript)
    if share is None:
        return 0
    return penalty if share > WORD_SHARE_MAX_TUTOR else 0


def detect_missing_goal_setting(transcript: Transcript, penalty: int = GOAL_SETTING_PENALTY) -> int:
    return _missing(transcript.tutor_turns[:3], GOAL_SETTING_PHRASES, penalty)


def detect_missing_encouragement(transcript: Transcript, penalty: int = ENCOURAGEMENT_PENALTY) -> int:
    return _missing(transcript.tutor_turns, ENCOURAGEMENT_PHRASES, penalty)


def detect_negative_phrasing(transcript: Transcript, penalty: int = NEGATIVE_PHRASING_PENALTY) -> int:
    hits = count_phrase_hits(transcript.tutor_turns, NEGATIVE_PHRASES)
    return penalty if hits >= NEGATIVE_MIN_HITS else 0


def detect_missing_closing_summary(transcript: Transcript, penalty: int = CLOSING_SUMMARY_PENALTY) -> int:
    return _missing(transcript.tutor_turns[-3:], CLOSING_SUMMARY_PHRASES, penalty)


def detect_missing_greeting(transcript: Transcript, penalty: int = GREETING_PENALTY) -> int:
    return _missing(transcript.tutor_turns[:2], GREETING_PHRASES, penalty)


def detect_missing_intro(transcript: Transcript, penalty: int = INTRO_PENALTY) -> int:
    return _missing(transcript.tutor_turns[:5], INTRO_PHRASES, penalty)


def detect_missing_future_planning(transcript: Transcript, penalty: int = FUTURE_PLANNING_PENALTY) -> int:
    return _missing(transcript.tutor_turns[-5:], FUTURE_PLANNING_PHRASES, penalty)


__all__ = [
    "count_phrase_hits",
    "any_phrase",
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
