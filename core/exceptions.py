"""
Core Module - Exceptions.

============================================================
RESPONSIBILITY
============================================================
Defines all custom exceptions for the tutor scoring system.

- Provides clear exception hierarchy
- Enables specific error handling at job boundaries
- Includes context for debugging

Missing preconditions (no transcript, not a first session,
no aggregate rows) are NOT errors: scorers return None.

============================================================
EXCEPTION HIERARCHY
============================================================
ScoringSystemError (base)
├── ConfigurationError
├── DataError
│   └── InvalidTranscriptError
├── PersistenceError
├── AlertError
│   ├── AlertNotFound
│   └── InvalidAlertTransition
└── FeedbackGenerationError

============================================================
"""

from enum import Enum
from datetime import datetime, timezone
from typing import Any, Dict, Optional


# ============================================================
# SEVERITY LEVELS
# ============================================================

class Severity(Enum):
    """Exception severity levels for logging."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


# ============================================================
# BASE EXCEPTION
# ============================================================

class ScoringSystemError(Exception):
    """
    Base exception for all scoring system errors.

    All exceptions carry:
    - severity: for log routing
    - context: for debugging
    - timestamp: when the error occurred
    """

    default_severity: Severity = Severity.MEDIUM

    def __init__(
        self,
        message: str,
        severity: Optional[Severity] = None,
        context: Optional[Dict[str, Any]] = None,
        cause: Optional[Exception] = None,
    ):
        super().__init__(message)

        self.message = message
        self.severity = severity or self.default_severity
        self.context = context or {}
        self.cause = cause
        self.timestamp = datetime.now(timezone.utc)

        if cause:
            self.context["cause_type"] = type(cause).__name__
            self.context["cause_message"] = str(cause)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize exception for logging/storage."""
        return {
            "type": type(self).__name__,
            "message": self.message,
            "severity": self.severity.value,
            "context": self.context,
            "timestamp": self.timestamp.isoformat(),
            "cause": str(self.cause) if self.cause else None,
        }


# ============================================================
# CONFIGURATION ERRORS
# ============================================================

class ConfigurationError(ScoringSystemError):
    """Error in configuration."""

    default_severity = Severity.HIGH

    def __init__(self, message: str, config_key: Optional[str] = None, **kwargs):
        context = kwargs.pop("context", {})
        if config_key:
            context["config_key"] = config_key
        super().__init__(message, context=context, **kwargs)


# ============================================================
# DATA ERRORS
# ============================================================

class DataError(ScoringSystemError):
    """Input data could not be interpreted."""
    pass


class InvalidTranscriptError(DataError):
    """Transcript payload has an unusable shape."""

    def __init__(self, message: str, session_id: Optional[int] = None, **kwargs):
        context = kwargs.pop("context", {})
        if session_id is not None:
            context["session_id"] = session_id
        super().__init__(message, context=context, **kwargs)


# ============================================================
# PERSISTENCE ERRORS
# ============================================================

class PersistenceError(ScoringSystemError):
    """A read or write against the database failed."""

    default_severity = Severity.HIGH


# ============================================================
# ALERT ERRORS
# ============================================================

class AlertError(ScoringSystemError):
    """Base for alert lifecycle errors."""
    pass


class AlertNotFound(AlertError):
    """No alert exists with the requested id."""

    default_severity = Severity.LOW

    def __init__(self, alert_id: int):
        super().__init__(f"Alert {alert_id} not found", context={"alert_id": alert_id})
        self.alert_id = alert_id


class InvalidAlertTransition(AlertError):
    """Requested status change is not allowed by the alert state machine."""

    def __init__(self, alert_id: int, current_status: str, action: str):
        super().__init__(
            f"Cannot {action} alert {alert_id} in status '{current_status}'",
            context={
                "alert_id": alert_id,
                "current_status": current_status,
                "action": action,
            },
        )
        self.alert_id = alert_id
        self.current_status = current_status
        self.action = action


# ============================================================
# UPSTREAM ERRORS
# ============================================================

class FeedbackGenerationError(ScoringSystemError):
    """The external text-generation service failed or returned garbage."""
    pass


__all__ = [
    "Severity",
    "ScoringSystemError",
    "ConfigurationError",
    "DataError",
    "InvalidTranscriptError",
    "PersistenceError",
    "AlertError",
    "AlertNotFound",
    "InvalidAlertTransition",
    "FeedbackGenerationError",
]
