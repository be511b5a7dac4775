"""
Core Module - Constants.

============================================================
RESPONSIBILITY
============================================================
Defines the system-wide enumerations and magic values.

- Single source of truth for status strings stored in the database
- Shared by scorers, repositories, the alert engine and jobs

============================================================
DESIGN PRINCIPLES
============================================================
- All constants are immutable
- Enums subclass str so they compare equal to stored values
- No business logic here

============================================================
"""

from enum import Enum


# ============================================================
# SESSION CONSTANTS
# ============================================================

class SessionStatus(str, Enum):
    """Lifecycle status of a tutoring session."""

    COMPLETED = "completed"
    CANCELLED = "cancelled"
    NO_SHOW = "no_show"
    RESCHEDULED = "rescheduled"


class RescheduleInitiator(str, Enum):
    """Who asked to move a session."""

    TUTOR = "tutor"
    STUDENT = "student"


class Speaker(str, Enum):
    """Speaker role in a diarized transcript."""

    TUTOR = "tutor"
    STUDENT = "student"


# ============================================================
# SCORE CONSTANTS
# ============================================================

class ScoreType(str, Enum):
    """Kinds of persisted score."""

    SQS = "sqs"      # Session Quality Score, per session
    FSQS = "fsqs"    # First-Session Quality Score, per first session
    THS = "ths"      # Tutor Health Score, per tutor per day
    TCRS = "tcrs"    # Tutor Churn Risk Score, per tutor per day


# ============================================================
# ALERT CONSTANTS
# ============================================================

class AlertType(str, Enum):
    """Fixed set of tutor alerts."""

    LOW_FIRST_SESSION_QUALITY = "low_first_session_quality"
    HIGH_RELIABILITY_RISK = "high_reliability_risk"
    CHURN_RISK = "churn_risk"


class AlertSeverity(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class AlertStatus(str, Enum):
    """
    Alert lifecycle.

    open -> acknowledged -> resolved
    open -> resolved
    """

    OPEN = "open"
    ACKNOWLEDGED = "acknowledged"
    RESOLVED = "resolved"


ACTIVE_ALERT_STATUSES = (AlertStatus.OPEN.value, AlertStatus.ACKNOWLEDGED.value)


# ============================================================
# TIME CONSTANTS
# ============================================================

SECONDS_PER_HOUR = 3600
SECONDS_PER_DAY = 86400
