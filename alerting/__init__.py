"""
Alerting Package.

Threshold-driven tutor alerts:
- AlertEngine: opens, merges and auto-resolves alerts from the
  latest FSQS / THS / TCRS
- AlertActions: manual acknowledge / resolve / annotate
- Notifiers: delivery hooks for newly opened alerts
- Schemas: API-edge request/response models
"""

from .types import AlertEvaluation, AlertEvent, AlertRule, Comparison
from .config import AlertThresholds
from .repository import AlertRepository
from .notifications import AlertNotifier, LoggingAlertNotifier, WebhookAlertNotifier
from .engine import AlertEngine, resolve_alert
from .schemas import (
    NOT_AVAILABLE,
    AlertAction,
    AlertActionRequest,
    AlertResponse,
    ScoreResponse,
)
from .actions import AlertActions

__all__ = [
    "AlertEvaluation",
    "AlertEvent",
    "AlertRule",
    "Comparison",
    "AlertThresholds",
    "AlertRepository",
    "AlertNotifier",
    "LoggingAlertNotifier",
    "WebhookAlertNotifier",
    "AlertEngine",
    "resolve_alert",
    "NOT_AVAILABLE",
    "AlertAction",
    "AlertActionRequest",
    "AlertResponse",
    "ScoreResponse",
    "AlertActions",
]
