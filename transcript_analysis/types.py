"""
Transcript Analysis - Type Definitions.

============================================================
PURPOSE
============================================================
Typed view over the raw transcript payload stored in
session_transcripts.payload:

    {
      "speakers": [
        {"speaker": "tutor", "text": "...", "words": 12, "timestamp": "00:00:05"},
        ...
      ],
      "metadata": {"total_words_tutor": 900, "total_words_student": 300}
    }

Parsing is lenient: scorers treat a transcript without speaker
diarization as "no result", so malformed turns are dropped rather
than rejected. Only a payload that is not a mapping at all raises.

============================================================
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from core.constants import Speaker
from core.exceptions import InvalidTranscriptError


def _to_int(value: Any) -> int:
    try:
        return int(value or 0)
    except (TypeError, ValueError):
        return 0


@dataclass(frozen=True)
class TranscriptTurn:
    """One speaker turn."""

    speaker: str
    text: str
    words: int = 0
    timestamp: Optional[str] = None

    @property
    def is_tutor(self) -> bool:
        return self.speaker == Speaker.TUTOR.value

    @property
    def is_student(self) -> bool:
        return self.speaker == Speaker.STUDENT.value

    @property
    def lowered_text(self) -> str:
        return self.text.lower()

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TranscriptTurn":
        return cls(
            speaker=str(data.get("speaker") or "").lower(),
            text=str(data.get("text") or ""),
            words=_to_int(data.get("words")),
            timestamp=data.get("timestamp"),
        )


@dataclass(frozen=True)
class Transcript:
    """
    Ordered speaker turns plus per-role word totals.

    Speaker tags are lowercased, so "Tutor" and "TUTOR" both count
    as the tutor. Surrounding whitespace is kept: " tutor " is
    neither role.
    """

    turns: Tuple[TranscriptTurn, ...] = field(default_factory=tuple)
    total_words_tutor: int = 0
    total_words_student: int = 0

    @classmethod
    def from_payload(cls, payload: Any, session_id: Optional[int] = None) -> "Transcript":
        """
        Build a Transcript from a stored payload.

        Raises:
            InvalidTranscriptError: payload is not a mapping
        """
        if payload is None:
            return cls()
        if not isinstance(payload, dict):
            raise InvalidTranscriptError(
                f"Transcript payload must be a mapping, got {type(payload).__name__}",
                session_id=session_id,
            )

        speakers = payload.get("speakers")
        if not isinstance(speakers, list):
            speakers = []

        metadata = payload.get("metadata")
        if not isinstance(metadata, dict):
            metadata = {}

        return cls(
            turns=tuple(
                TranscriptTurn.from_dict(item) for item in speakers if isinstance(item, dict)
            ),
            total_words_tutor=_to_int(metadata.get("total_words_tutor")),
            total_words_student=_to_int(metadata.get("total_words_student")),
        )

    @property
    def has_speaker_diarization(self) -> bool:
        """Non-empty turn list with at least one non-blank speaker tag."""
        return any(turn.speaker.strip() for turn in self.turns)

    @property
    def tutor_turns(self) -> List[TranscriptTurn]:
        return [turn for turn in self.turns if turn.is_tutor]

    @property
    def student_turns(self) -> List[TranscriptTurn]:
        return [turn for turn in self.turns if turn.is_student]


__all__ = ["TranscriptTurn", "Transcript"]
