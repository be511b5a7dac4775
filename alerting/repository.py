"""
Alerting - Repository.

============================================================
PURPOSE
============================================================
Persistence for alert rows plus the latest-score reads the
engine evaluates against.

Metadata is a JSON column: every write assigns a NEW dict so the
ORM sees the change. Datetimes inside metadata are stored as
ISO 8601 strings.

============================================================
"""

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy import desc, select

from core.constants import ACTIVE_ALERT_STATUSES, AlertSeverity, AlertStatus, AlertType, ScoreType
from database.models import Alert, Score, Tutor
from session_scoring.repository import ScoreRepository

logger = logging.getLogger(__name__)


class AlertRepository:
    """
    Repository for alert persistence operations.

    ============================================================
    METHODS
    ============================================================
    - get: alert by id
    - active_alert: the open/acknowledged alert for (tutor, type)
    - create: insert an open alert
    - merge_metadata: shallow-merge keys into metadata
    - list_alerts: filtered listing for dashboards
    - latest_score: newest score of a type for a tutor

    ============================================================
    """

    def __init__(self, session):
        self._session = session
        self._scores = ScoreRepository(session)

    # --------------------------------------------------------
    # READ OPERATIONS
    # --------------------------------------------------------

    def get(self, alert_id: int) -> Optional[Alert]:
        return self._session.get(Alert, alert_id)

    def active_alert(self, tutor_id: int, alert_type: AlertType) -> Optional[Alert]:
        """Newest alert of this type that is open or acknowledged."""
        query = (
            select(Alert)
            .where(Alert.tutor_id == tutor_id)
            .where(Alert.alert_type == AlertType(alert_type).value)
            .where(Alert.status.in_(ACTIVE_ALERT_STATUSES))
            .order_by(desc(Alert.triggered_at), desc(Alert.id))
            .limit(1)
        )
        return self._session.execute(query).scalar_one_or_none()

    def list_alerts(
        self,
        tutor_id: Optional[int] = None,
        status: Optional[AlertStatus] = None,
        alert_type: Optional[AlertType] = None,
    ) -> List[Alert]:
        query = select(Alert).order_by(desc(Alert.triggered_at), desc(Alert.id))
        if tutor_id is not None:
            query = query.where(Alert.tutor_id == tutor_id)
        if status is not None:
            query = query.where(Alert.status == AlertStatus(status).value)
        if alert_type is not None:
            query = query.where(Alert.alert_type == AlertType(alert_type).value)
        return list(self._session.execute(query).scalars())

    def latest_score(self, tutor_id: int, score_type: ScoreType) -> Optional[Score]:
        return self._scores.latest_score(tutor_id, score_type)

    def tutor_ids(self) -> List[int]:
        return list(self._session.execute(select(Tutor.id).order_by(Tutor.id)).scalars())

    # --------------------------------------------------------
    # WRITE OPERATIONS
    # --------------------------------------------------------

    def create(
        self,
        tutor_id: int,
        alert_type: AlertType,
        severity: AlertSeverity,
        triggered_at: datetime,
        metadata: Dict[str, Any],
    ) -> Alert:
        alert = Alert(
            tutor_id=tutor_id,
            alert_type=AlertType(alert_type).value,
            severity=AlertSeverity(severity).value,
            status=AlertStatus.OPEN.value,
            triggered_at=triggered_at,
            alert_metadata=dict(metadata),
        )
        self._session.add(alert)
        self._session.flush()
        logger.info(f"Opened alert {alert.id}: {alert.alert_type} for tutor {tutor_id}")
        return alert

    def merge_metadata(self, alert: Alert, updates: Dict[str, Any]) -> Alert:
        merged = dict(alert.alert_metadata or {})
        merged.update(updates)
        alert.alert_metadata = merged
        self._session.flush()
        return alert

    def flush(self) -> None:
        self._session.flush()


__all__ = ["AlertRepository"]
