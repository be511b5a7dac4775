"""
Orchestrator - Models.

============================================================
RESPONSIBILITY
============================================================
Defines data models for the batch scoring orchestrator.

- Job names in strict cycle order
- Job configuration (environment-driven)
- Per-unit failure and per-job batch reports
- Cycle report spanning every job

============================================================
"""

from enum import Enum
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional
import os

from core.exceptions import ConfigurationError
from session_scoring.config import FsqsConfig, SqsConfig
from tutor_scoring.config import ChurnRiskConfig, HealthScoreConfig
from alerting.config import AlertThresholds


# ============================================================
# JOB NAMES
# ============================================================

class JobName(Enum):
    """
    Batch jobs in cycle order.

    Aggregation must run before THS/TCRS; alerts run last so they
    see the scores written earlier in the same cycle.
    """

    SCORE_SESSIONS = "score-sessions"
    AGGREGATE = "aggregate"
    HEALTH = "health"
    CHURN = "churn"
    ALERTS = "alerts"

    @classmethod
    def ordered(cls) -> List["JobName"]:
        return [cls.SCORE_SESSIONS, cls.AGGREGATE, cls.HEALTH, cls.CHURN, cls.ALERTS]


# ============================================================
# JOB CONFIGURATION
# ============================================================

def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except ValueError as e:
        raise ConfigurationError(f"{name} must be an integer, got {raw!r}", config_key=name) from e


@dataclass
class JobConfig:
    """
    Configuration shared by all scoring jobs.

    Scorer configs default to the production weights; tests
    override them directly.
    """

    database_url: Optional[str] = None
    log_level: str = "INFO"

    aggregation_window_days: int = 30
    score_lookback_days: int = 30
    performance_summary_ttl_seconds: int = 3600

    alert_webhook_url: Optional[str] = None

    sqs: SqsConfig = field(default_factory=SqsConfig)
    fsqs: FsqsConfig = field(default_factory=FsqsConfig)
    health: HealthScoreConfig = field(default_factory=HealthScoreConfig)
    churn: ChurnRiskConfig = field(default_factory=ChurnRiskConfig)
    alerts: AlertThresholds = field(default_factory=AlertThresholds)

    @classmethod
    def from_env(cls) -> "JobConfig":
        """Create configuration from environment variables."""
        return cls(
            database_url=os.getenv("DATABASE_URL_SYNC") or os.getenv("DATABASE_URL"),
            log_level=os.getenv("LOG_LEVEL", "INFO"),
            aggregation_window_days=_int_env("AGGREGATION_WINDOW_DAYS", 30),
            score_lookback_days=_int_env("SCORE_LOOKBACK_DAYS", 30),
            performance_summary_ttl_seconds=_int_env("PERFORMANCE_SUMMARY_TTL_SECONDS", 3600),
            alert_webhook_url=os.getenv("ALERT_WEBHOOK_URL") or None,
        )

    def validate(self) -> List[str]:
        """
        Validate configuration.

        Returns:
            List of validation errors (empty if valid)
        """
        errors = []
        if self.aggregation_window_days < 1:
            errors.append("aggregation_window_days must be at least 1")
        if self.score_lookback_days < 1:
            errors.append("score_lookback_days must be at least 1")
        if self.performance_summary_ttl_seconds < 0:
            errors.append("performance_summary_ttl_seconds cannot be negative")
        return errors

    def to_dict(self) -> Dict[str, Any]:
        return {
            "log_level": self.log_level,
            "aggregation_window_days": self.aggregation_window_days,
            "score_lookback_days": self.score_lookback_days,
            "performance_summary_ttl_seconds": self.performance_summary_ttl_seconds,
            "alert_webhook_configured": self.alert_webhook_url is not None,
            "alerts": self.alerts.to_dict(),
        }


# ============================================================
# BATCH REPORTS
# ============================================================

@dataclass(frozen=True)
class UnitFailure:
    """One unit of work (session, tutor) that raised."""

    unit_id: str
    error_type: str
    message: str

    @classmethod
    def from_exception(cls, unit_id: Any, error: BaseException) -> "UnitFailure":
        return cls(unit_id=str(unit_id), error_type=type(error).__name__, message=str(error))

    def to_dict(self) -> Dict[str, str]:
        return {"unit_id": self.unit_id, "error_type": self.error_type, "message": self.message}


@dataclass
class BatchReport:
    """Result of one job run."""

    job_name: str
    started_at: datetime
    completed_at: Optional[datetime] = None
    succeeded: int = 0
    skipped: int = 0
    failures: List[UnitFailure] = field(default_factory=list)

    @property
    def processed(self) -> int:
        return self.succeeded + self.skipped + len(self.failures)

    @property
    def success(self) -> bool:
        return not self.failures

    @property
    def duration_seconds(self) -> float:
        if self.completed_at:
            return (self.completed_at - self.started_at).total_seconds()
        return 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "job_name": self.job_name,
            "started_at": self.started_at.isoformat(),
            "completed_at": self.completed_at.isoformat() if self.completed_at else None,
            "duration_seconds": self.duration_seconds,
            "succeeded": self.succeeded,
            "skipped": self.skipped,
            "failures": [failure.to_dict() for failure in self.failures],
        }


@dataclass
class CycleReport:
    """Result of a complete scoring cycle."""

    started_at: datetime
    completed_at: Optional[datetime] = None
    reports: List[BatchReport] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return all(report.success for report in self.reports)

    @property
    def failure_count(self) -> int:
        return sum(len(report.failures) for report in self.reports)

    def report_for(self, job_name: str) -> Optional[BatchReport]:
        for report in self.reports:
            if report.job_name == job_name:
                return report
        return None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "started_at": self.started_at.isoformat(),
            "completed_at": self.completed_at.isoformat() if self.completed_at else None,
            "success": self.success,
            "reports": [report.to_dict() for report in self.reports],
        }


__all__ = [
    "JobName",
    "JobConfig",
    "UnitFailure",
    "BatchReport",
    "CycleReport",
]
