"""
Pydantic Schemas for the alert and score API edge.

Dashboards read these; absent scores render as "N/A", never as an
error or a zero.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional, Union

from pydantic import BaseModel, Field

from core.constants import ScoreType

NOT_AVAILABLE = "N/A"


# =============================================================
# ENUMS
# =============================================================

class AlertAction(str, Enum):
    ACKNOWLEDGE = "acknowledge"
    RESOLVE = "resolve"
    ANNOTATE = "annotate"


# =============================================================
# REQUEST SCHEMAS
# =============================================================

class AlertActionRequest(BaseModel):
    """Operator request to change an alert."""
    action: AlertAction
    by: str = Field(default="admin", min_length=1, max_length=255)
    note: Optional[str] = Field(default=None, max_length=5000)


# =============================================================
# RESPONSE SCHEMAS
# =============================================================

class AlertResponse(BaseModel):
    id: int
    tutor_id: int
    alert_type: str
    severity: str
    status: str
    triggered_at: datetime
    acknowledged_at: Optional[datetime] = None
    acknowledged_by: Optional[str] = None
    resolved_at: Optional[datetime] = None
    metadata: Dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def from_model(cls, alert: Any) -> "AlertResponse":
        return cls(
            id=alert.id,
            tutor_id=alert.tutor_id,
            alert_type=alert.alert_type,
            severity=alert.severity,
            status=alert.status,
            triggered_at=alert.triggered_at,
            acknowledged_at=alert.acknowledged_at,
            acknowledged_by=alert.acknowledged_by,
            resolved_at=alert.resolved_at,
            metadata=dict(alert.alert_metadata or {}),
        )


class ScoreResponse(BaseModel):
    tutor_id: int
    score_type: ScoreType
    value: Union[float, str] = NOT_AVAILABLE
    components: Dict[str, Any] = Field(default_factory=dict)
    computed_at: Optional[datetime] = None
    session_id: Optional[int] = None

    class Config:
        from_attributes = True

    @property
    def available(self) -> bool:
        return self.value != NOT_AVAILABLE

    @classmethod
    def from_score(cls, tutor_id: int, score_type: ScoreType, score: Optional[Any]) -> "ScoreResponse":
        """Render a Score row, or "N/A" when the tutor has none of this type."""
        if score is None:
            return cls(tutor_id=tutor_id, score_type=score_type)
        return cls(
            tutor_id=tutor_id,
            score_type=score_type,
            value=score.value,
            components=dict(score.components or {}),
            computed_at=score.computed_at,
            session_id=score.session_id,
        )


__all__ = [
    "NOT_AVAILABLE",
    "AlertAction",
    "AlertActionRequest",
    "AlertResponse",
    "ScoreResponse",
]
