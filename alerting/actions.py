"""
Alerting - Manual Alert Actions.

============================================================
PURPOSE
============================================================
Operator-driven alert changes (acknowledge, resolve, annotate)
that respect the same state machine as the engine.

    acknowledge: open -> acknowledged
    resolve:     open | acknowledged -> resolved
    annotate:    any status, appends to metadata["notes"]

A resolved alert always has resolved_at set, both on the row and
in metadata, with auto_resolved=False for manual resolutions.

============================================================
"""

import logging
from typing import Any, Dict, List, Optional

from core.clock import ClockFactory, ClockProtocol, to_iso8601
from core.constants import AlertStatus
from core.exceptions import AlertNotFound, InvalidAlertTransition
from database.models import Alert

from .engine import resolve_alert
from .repository import AlertRepository
from .schemas import AlertAction, AlertActionRequest

logger = logging.getLogger(__name__)


class AlertActions:
    """Manual alert transitions with an audit trail in metadata."""

    def __init__(self, repository: AlertRepository, clock: Optional[ClockProtocol] = None):
        self._repository = repository
        self._clock = clock or ClockFactory.get_clock()

    def acknowledge(self, alert_id: int, by: str, note: Optional[str] = None) -> Alert:
        alert = self._load(alert_id)
        if alert.status != AlertStatus.OPEN.value:
            raise InvalidAlertTransition(alert_id, alert.status, "acknowledge")

        now = self._clock.now()
        alert.status = AlertStatus.ACKNOWLEDGED.value
        alert.acknowledged_at = now
        alert.acknowledged_by = by

        updates: Dict[str, Any] = {"acknowledged_at": to_iso8601(now), "acknowledged_by": by}
        if note:
            updates["notes"] = self._with_note(alert, note, by, now)
        self._repository.merge_metadata(alert, updates)

        logger.info(f"Alert {alert_id} acknowledged by {by}")
        return alert

    def resolve(self, alert_id: int, by: str, note: Optional[str] = None) -> Alert:
        alert = self._load(alert_id)
        if alert.status == AlertStatus.RESOLVED.value:
            raise InvalidAlertTransition(alert_id, alert.status, "resolve")

        now = self._clock.now()
        updates: Dict[str, Any] = {"resolved_by": by}
        if note:
            updates["notes"] = self._with_note(alert, note, by, now)
        self._repository.merge_metadata(alert, updates)
        resolve_alert(self._repository, alert, now, auto_resolved=False)

        logger.info(f"Alert {alert_id} resolved by {by}")
        return alert

    def annotate(self, alert_id: int, by: str, note: str) -> Alert:
        if not note or not note.strip():
            raise ValueError("Annotation note must not be empty")

        alert = self._load(alert_id)
        now = self._clock.now()
        self._repository.merge_metadata(alert, {"notes": self._with_note(alert, note, by, now)})
        return alert

    def apply(self, alert_id: int, request: AlertActionRequest) -> Alert:
        """Dispatch a validated API request to the matching action."""
        if request.action == AlertAction.ACKNOWLEDGE:
            return self.acknowledge(alert_id, request.by, request.note)
        if request.action == AlertAction.RESOLVE:
            return self.resolve(alert_id, request.by, request.note)
        return self.annotate(alert_id, request.by, request.note or "")

    # --------------------------------------------------------
    # HELPERS
    # --------------------------------------------------------

    def _load(self, alert_id: int) -> Alert:
        alert = self._repository.get(alert_id)
        if alert is None:
            raise AlertNotFound(alert_id)
        return alert

    @staticmethod
    def _with_note(alert: Alert, text: str, by: str, now) -> List[Dict[str, Any]]:
        notes = list((alert.alert_metadata or {}).get("notes") or [])
        notes.append({"text": text, "added_at": to_iso8601(now), "added_by": by})
        return notes


__all__ = ["AlertActions"]
