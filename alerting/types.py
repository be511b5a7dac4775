"""
Alerting - Type Definitions.

============================================================
PURPOSE
============================================================
Data contracts for the alert engine.

- AlertRule: which score feeds an alert type and when it breaches
- AlertEvent: an alert that was just opened (notifier payload)
- AlertEvaluation: what one tutor's evaluation pass changed

============================================================
STATE MACHINE
============================================================
Per (tutor, alert_type):

    (none) --breach--> open --recover--> resolved
                        |                  ^
                        +--acknowledge--> acknowledged --recover/resolve

- breach while active: merge metadata, no new row
- breach after resolved: NEW row (previous incident is closed)
- missing score: no transition at all

============================================================
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from core.constants import AlertSeverity, AlertType, ScoreType


class Comparison(str, Enum):
    """How a score value is compared against its threshold."""

    AT_OR_ABOVE = "at_or_above"
    BELOW = "below"


@dataclass(frozen=True)
class AlertRule:
    """
    Threshold rule for one alert type.

    breached(value) is True when the alert should be open.
    """

    alert_type: AlertType
    score_type: ScoreType
    threshold: float
    comparison: Comparison
    severity: AlertSeverity = AlertSeverity.HIGH

    def breached(self, value: float) -> bool:
        if self.comparison == Comparison.AT_OR_ABOVE:
            return value >= self.threshold
        return value < self.threshold

    def to_dict(self) -> Dict[str, Any]:
        return {
            "alert_type": self.alert_type.value,
            "score_type": self.score_type.value,
            "threshold": self.threshold,
            "comparison": self.comparison.value,
            "severity": self.severity.value,
        }


@dataclass(frozen=True)
class AlertEvent:
    """A newly opened alert, as handed to notifiers."""

    alert_id: int
    tutor_id: int
    alert_type: AlertType
    severity: AlertSeverity
    score_value: float
    triggered_at: datetime
    score_components: Dict[str, Any] = field(default_factory=dict)

    @property
    def subject(self) -> str:
        return ALERT_SUBJECTS.get(self.alert_type, f"Alert: {self.alert_type.value}")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "alert_id": self.alert_id,
            "tutor_id": self.tutor_id,
            "alert_type": self.alert_type.value,
            "severity": self.severity.value,
            "score_value": self.score_value,
            "triggered_at": self.triggered_at.isoformat(),
            "score_components": self.score_components,
            "subject": self.subject,
        }


ALERT_SUBJECTS = {
    AlertType.LOW_FIRST_SESSION_QUALITY: "Alert: Low First Session Quality Detected",
    AlertType.HIGH_RELIABILITY_RISK: "Alert: High Reliability Risk Detected",
    AlertType.CHURN_RISK: "Alert: Tutor Churn Risk Detected",
}


@dataclass
class AlertEvaluation:
    """Outcome of evaluating every rule for one tutor."""

    tutor_id: int
    created: List[int] = field(default_factory=list)
    updated: List[int] = field(default_factory=list)
    resolved: List[int] = field(default_factory=list)
    skipped: List[AlertType] = field(default_factory=list)
    events: List[AlertEvent] = field(default_factory=list)

    @property
    def changed(self) -> bool:
        return bool(self.created or self.updated or self.resolved)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "tutor_id": self.tutor_id,
            "created": list(self.created),
            "updated": list(self.updated),
            "resolved": list(self.resolved),
            "skipped": [alert_type.value for alert_type in self.skipped],
        }


__all__ = [
    "Comparison",
    "AlertRule",
    "AlertEvent",
    "AlertEvaluation",
    "ALERT_SUBJECTS",
]
