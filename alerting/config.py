"""
Alerting - Configuration.

Thresholds that open and auto-resolve tutor alerts:

    FSQS >= 50   low_first_session_quality
    THS  <  55   high_reliability_risk
    TCRS >= 0.6  churn_risk

The recovery condition of each rule is the exact complement of
its breach condition.
"""

from dataclasses import asdict, dataclass
from typing import Any, Dict, Tuple

from core.constants import AlertSeverity, AlertType, ScoreType

from .types import AlertRule, Comparison


@dataclass(frozen=True)
class AlertThresholds:
    fsqs_threshold: float = 50.0
    ths_threshold: float = 55.0
    tcrs_threshold: float = 0.6
    severity: AlertSeverity = AlertSeverity.HIGH

    def rules(self) -> Tuple[AlertRule, ...]:
        """Rules in evaluation order."""
        return (
            AlertRule(
                alert_type=AlertType.LOW_FIRST_SESSION_QUALITY,
                score_type=ScoreType.FSQS,
                threshold=self.fsqs_threshold,
                comparison=Comparison.AT_OR_ABOVE,
                severity=self.severity,
            ),
            AlertRule(
                alert_type=AlertType.HIGH_RELIABILITY_RISK,
                score_type=ScoreType.THS,
                threshold=self.ths_threshold,
                comparison=Comparison.BELOW,
                severity=self.severity,
            ),
            AlertRule(
                alert_type=AlertType.CHURN_RISK,
                score_type=ScoreType.TCRS,
                threshold=self.tcrs_threshold,
                comparison=Comparison.AT_OR_ABOVE,
                severity=self.severity,
            ),
        )

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["severity"] = self.severity.value
        return data


__all__ = ["AlertThresholds"]
