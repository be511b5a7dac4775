"""
Session Scoring - Type Definitions.

============================================================
PURPOSE
============================================================
Data contracts for the per-session scorers (SQS and FSQS).

- SessionInput: the scorer's view of a session row
- SqsComponents / FsqsComponents: fixed penalty breakdowns
- SqsResult / FsqsResult: scorer outputs

Components serialize to a plain dict only at the persistence
edge (scores.components JSON column) via to_dict()/from_dict().

============================================================
DESIGN PRINCIPLES
============================================================
- All types are immutable
- Scorers never see ORM objects
- Unknown keys in stored components are ignored on load

============================================================
"""

from dataclasses import dataclass, field, fields
from datetime import datetime
from enum import Enum
import math
from typing import Any, Dict, Optional

from core.constants import SessionStatus


# ============================================================
# ENUMS
# ============================================================


class SqsLabel(str, Enum):
    """
    Session quality band.

    - RISK: score < 60
    - WARN: 60 <= score <= 75
    - OK: score > 75
    """

    RISK = "risk"
    WARN = "warn"
    OK = "ok"


# ============================================================
# INPUT
# ============================================================


def _minutes_over(later: Optional[datetime], earlier: Optional[datetime]) -> int:
    """Whole minutes (rounded up) by which `later` exceeds `earlier`, else 0."""
    if later is None or earlier is None:
        return 0
    seconds = (later - earlier).total_seconds()
    if seconds <= 0:
        return 0
    return math.ceil(seconds / 60.0)


@dataclass(frozen=True)
class SessionInput:
    """Scheduling facts the session scorers read."""

    session_id: Optional[int]
    tutor_id: Optional[int]
    scheduled_start_at: Optional[datetime] = None
    scheduled_end_at: Optional[datetime] = None
    actual_start_at: Optional[datetime] = None
    actual_end_at: Optional[datetime] = None
    tech_issue: bool = False
    first_session_for_student: bool = False
    status: str = SessionStatus.COMPLETED.value
    reschedule_initiator: Optional[str] = None

    @classmethod
    def from_model(cls, session: Any) -> "SessionInput":
        """Build from a database.models.Session row."""
        return cls(
            session_id=session.id,
            tutor_id=session.tutor_id,
            scheduled_start_at=session.scheduled_start_at,
            scheduled_end_at=session.scheduled_end_at,
            actual_start_at=session.actual_start_at,
            actual_end_at=session.actual_end_at,
            tech_issue=bool(session.tech_issue),
            first_session_for_student=bool(session.first_session_for_student),
            status=session.status,
            reschedule_initiator=session.reschedule_initiator,
        )

    @property
    def lateness_minutes(self) -> int:
        """Late start in whole minutes, rounded up; 0 when on time or unknown."""
        return _minutes_over(self.actual_start_at, self.scheduled_start_at)

    @property
    def shortfall_minutes(self) -> int:
        """Early end in whole minutes, rounded up; 0 when full length or unknown."""
        return _minutes_over(self.scheduled_end_at, self.actual_end_at)

    @property
    def exact_lateness_minutes(self) -> Optional[float]:
        """Signed lateness in minutes (2dp), or None when either start is unknown."""
        if self.actual_start_at is None or self.scheduled_start_at is None:
            return None
        return round((self.actual_start_at - self.scheduled_start_at).total_seconds() / 60.0, 2)


# ============================================================
# COMPONENT BASE
# ============================================================


class _ComponentsMixin:
    """Dict round-trip for flat component dataclasses."""

    def to_dict(self) -> Dict[str, Any]:
        return {f.name: getattr(self, f.name) for f in fields(self)}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]):
        known = {f.name for f in fields(cls)}
        return cls(**{k: v for k, v in (data or {}).items() if k in known})


# ============================================================
# SQS
# ============================================================


@dataclass(frozen=True)
class SqsComponents(_ComponentsMixin):
    """Penalty breakdown for a Session Quality Score."""

    base: int = 100
    lateness_penalty: int = 0
    shortfall_penalty: int = 0
    tech_penalty: int = 0
    confusion_penalty: int = 0
    word_share_penalty: int = 0
    goal_setting_penalty: int = 0
    encouragement_penalty: int = 0
    closing_summary_penalty: int = 0
    negative_phrasing_penalty: int = 0
    lateness_minutes: int = 0
    shortfall_minutes: int = 0

    @property
    def total_penalty(self) -> int:
        return (
            self.lateness_penalty
            + self.shortfall_penalty
            + self.tech_penalty
            + self.transcript_penalty
        )

    @property
    def transcript_penalty(self) -> int:
        return (
            self.confusion_penalty
            + self.word_share_penalty
            + self.goal_setting_penalty
            + self.encouragement_penalty
            + self.closing_summary_penalty
            + self.negative_phrasing_penalty
        )


@dataclass(frozen=True)
class SqsResult:
    score: float
    label: SqsLabel
    components: SqsComponents

    def components_dict(self) -> Dict[str, Any]:
        """Components as persisted, with the label alongside."""
        data = self.components.to_dict()
        data["label"] = self.label.value
        return data

    def to_dict(self) -> Dict[str, Any]:
        return {
            "score": self.score,
            "label": self.label.value,
            "components": self.components.to_dict(),
        }


# ============================================================
# FSQS
# ============================================================


@dataclass(frozen=True)
class FsqsFeedback:
    """All passing checks as praise, one failing check as the next step."""

    what_went_well: str
    improvement_idea: str

    def to_dict(self) -> Dict[str, str]:
        return {
            "what_went_well": self.what_went_well,
            "improvement_idea": self.improvement_idea,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "FsqsFeedback":
        return cls(
            what_went_well=str(data.get("what_went_well", "")),
            improvement_idea=str(data.get("improvement_idea", "")),
        )


@dataclass(frozen=True)
class FsqsComponents:
    """Penalty breakdown for a First-Session Quality Score."""

    confusion_phrases: int = 0
    word_share_imbalance: int = 0
    missing_goal_setting: int = 0
    missing_encouragement: int = 0
    negative_phrasing: int = 0
    missing_closing_summary: int = 0
    tech_lateness_disruption: int = 0
    missing_greeting: int = 0
    missing_intro: int = 0
    missing_future_planning: int = 0
    feedback: Optional[FsqsFeedback] = field(default=None, compare=False)

    @property
    def total_penalty(self) -> int:
        return sum(self.penalties().values())

    def penalties(self) -> Dict[str, int]:
        return {
            f.name: getattr(self, f.name)
            for f in fields(self)
            if f.name != "feedback"
        }

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = dict(self.penalties())
        if self.feedback is not None:
            data["feedback"] = self.feedback.to_dict()
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "FsqsComponents":
        data = data or {}
        known = {f.name for f in fields(cls)} - {"feedback"}
        feedback = data.get("feedback")
        return cls(
            feedback=FsqsFeedback.from_dict(feedback) if isinstance(feedback, dict) else None,
            **{k: v for k, v in data.items() if k in known},
        )


@dataclass(frozen=True)
class FsqsResult:
    score: float
    components: FsqsComponents

    @property
    def feedback(self) -> Optional[FsqsFeedback]:
        return self.components.feedback

    def to_dict(self) -> Dict[str, Any]:
        return {"score": self.score, "components": self.components.to_dict()}


__all__ = [
    "SqsLabel",
    "SessionInput",
    "SqsComponents",
    "SqsResult",
    "FsqsFeedback",
    "FsqsComponents",
    "FsqsResult",
]
