"""
Tutor Scoring - Type Definitions.

============================================================
PURPOSE
============================================================
Data contracts for the tutor-level pipeline:

- DailyAggregateRow: one (tutor, date) rollup of session events
- ThsComponents / ThsResult: Tutor Health Score
- TcrsComponents / TcrsResult: Tutor Churn Risk Score
- Trend: direction of daily session volume

============================================================
"""

from dataclasses import asdict, dataclass, fields
from datetime import date
from enum import Enum
from typing import Any, Dict, Optional


# ============================================================
# ENUMS
# ============================================================


class Trend(str, Enum):
    """Direction of daily completed-session volume."""

    IMPROVING = "improving"
    DECLINING = "declining"
    STABLE = "stable"


# ============================================================
# DAILY AGGREGATE
# ============================================================


@dataclass(frozen=True)
class DailyAggregateRow:
    """Rolled-up session events for one tutor on one calendar day."""

    tutor_id: int
    date: date
    sessions_completed: int = 0
    reschedules_tutor_initiated: int = 0
    no_shows: int = 0
    avg_lateness_min: float = 0.0

    @classmethod
    def from_model(cls, row: Any) -> "DailyAggregateRow":
        """Build from a database.models.TutorDailyAggregate row."""
        return cls(
            tutor_id=row.tutor_id,
            date=row.date,
            sessions_completed=row.sessions_completed or 0,
            reschedules_tutor_initiated=row.reschedules_tutor_initiated or 0,
            no_shows=row.no_shows or 0,
            avg_lateness_min=row.avg_lateness_min or 0.0,
        )

    @property
    def total_events(self) -> int:
        return self.sessions_completed + self.reschedules_tutor_initiated + self.no_shows

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["date"] = self.date.isoformat()
        return data


# ============================================================
# THS
# ============================================================


@dataclass(frozen=True)
class ThsComponents:
    reschedule_rate: float = 0.0
    no_show_count: int = 0
    avg_lateness: float = 0.0
    total_sessions: int = 0
    days_of_data: int = 0
    reschedule_penalty: int = 0
    no_show_penalty: int = 0
    lateness_penalty: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ThsComponents":
        known = {f.name for f in fields(cls)}
        return cls(**{k: v for k, v in (data or {}).items() if k in known})


@dataclass(frozen=True)
class ThsResult:
    score: float
    components: ThsComponents

    def to_dict(self) -> Dict[str, Any]:
        return {"score": self.score, "components": self.components.to_dict()}


# ============================================================
# TCRS
# ============================================================


@dataclass(frozen=True)
class TcrsComponents:
    session_count: int = 0
    avg_daily_sessions: float = 0.0
    consistency_score: float = 0.0
    trend: Trend = Trend.STABLE
    days_of_data: int = 0
    activity_penalty: float = 0.0
    inconsistency_penalty: float = 0.0
    trend_adjustment: float = 0.0
    sparsity_penalty: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["trend"] = self.trend.value
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TcrsComponents":
        data = dict(data or {})
        known = {f.name for f in fields(cls)}
        if "trend" in data:
            data["trend"] = Trend(data["trend"])
        return cls(**{k: v for k, v in data.items() if k in known})


@dataclass(frozen=True)
class TcrsResult:
    score: float
    components: TcrsComponents

    @property
    def trend(self) -> Trend:
        return self.components.trend

    def to_dict(self) -> Dict[str, Any]:
        return {"score": self.score, "components": self.components.to_dict()}


__all__ = [
    "Trend",
    "DailyAggregateRow",
    "ThsComponents",
    "ThsResult",
    "TcrsComponents",
    "TcrsResult",
]
