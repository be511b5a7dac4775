"""
Alerting - Alert Engine.

============================================================
PURPOSE
============================================================
Evaluates a tutor's latest FSQS, THS and TCRS against the alert
thresholds and drives each alert type through its lifecycle.

============================================================
INVARIANTS
============================================================
- At most one active (open or acknowledged) alert per
  (tutor, alert_type)
- A repeat breach merges into the active alert; triggered_at
  never changes
- Recovery auto-resolves the active alert and stamps resolved_at
- A tutor with no score of a type is skipped for that type
- Alert types are independent; all three may be open at once

Call evaluate_tutor() inside one transaction per tutor so the
read-then-write on active alerts is serialized. Hand the returned
events to dispatch() only after that transaction has committed.

============================================================
"""

import logging
from typing import Iterable, List, Optional, Sequence

from core.clock import ClockFactory, ClockProtocol, to_iso8601
from core.constants import AlertSeverity, AlertStatus, AlertType
from database.models import Alert, Score

from .config import AlertThresholds
from .notifications import AlertNotifier, LoggingAlertNotifier
from .repository import AlertRepository
from .types import AlertEvaluation, AlertEvent, AlertRule

logger = logging.getLogger(__name__)


class AlertEngine:
    """
    Threshold-driven alert state machine.

    ============================================================
    USAGE
    ============================================================
    with transaction_scope(factory) as session:
        engine = AlertEngine(AlertRepository(session))
        evaluation = engine.evaluate_tutor(tutor_id)
    engine.dispatch(evaluation.events)
    ============================================================
    """

    def __init__(
        self,
        repository: AlertRepository,
        config: Optional[AlertThresholds] = None,
        clock: Optional[ClockProtocol] = None,
        notifiers: Optional[Sequence[AlertNotifier]] = None,
    ):
        self._repository = repository
        self._config = config or AlertThresholds()
        self._clock = clock or ClockFactory.get_clock()
        self._notifiers: List[AlertNotifier] = (
            list(notifiers) if notifiers is not None else [LoggingAlertNotifier()]
        )

    @property
    def rules(self) -> Sequence[AlertRule]:
        return self._config.rules()

    def add_notifier(self, notifier: AlertNotifier) -> None:
        self._notifiers.append(notifier)

    # --------------------------------------------------------
    # EVALUATION
    # --------------------------------------------------------

    def evaluate_tutor(self, tutor_id: int) -> AlertEvaluation:
        """
        Apply every rule to a tutor's latest scores.

        Nothing is sent to notifiers here.

        Returns:
            AlertEvaluation listing created/updated/resolved ids and
            the events for alerts it opened
        """
        evaluation = AlertEvaluation(tutor_id=tutor_id)

        for rule in self.rules:
            score = self._repository.latest_score(tutor_id, rule.score_type)
            if score is None:
                evaluation.skipped.append(rule.alert_type)
                continue

            if rule.breached(score.value):
                self._open_or_merge(tutor_id, rule, score, evaluation)
            else:
                self._resolve_if_active(tutor_id, rule.alert_type, evaluation)

        return evaluation

    # --------------------------------------------------------
    # TRANSITIONS
    # --------------------------------------------------------

    def _open_or_merge(
        self,
        tutor_id: int,
        rule: AlertRule,
        score: Score,
        evaluation: AlertEvaluation,
    ) -> Alert:
        now = self._clock.now()
        existing = self._repository.active_alert(tutor_id, rule.alert_type)

        if existing is not None:
            self._repository.merge_metadata(existing, {
                "last_checked_at": to_iso8601(now),
                "score_value": score.value,
                "score_computed_at": to_iso8601(score.computed_at),
            })
            evaluation.updated.append(existing.id)
            return existing

        alert = self._repository.create(
            tutor_id=tutor_id,
            alert_type=rule.alert_type,
            severity=rule.severity,
            triggered_at=now,
            metadata={
                "score_value": score.value,
                "score_computed_at": to_iso8601(score.computed_at),
                "score_components": dict(score.components or {}),
                "last_checked_at": to_iso8601(now),
            },
        )
        evaluation.created.append(alert.id)
        evaluation.events.append(AlertEvent(
            alert_id=alert.id,
            tutor_id=tutor_id,
            alert_type=rule.alert_type,
            severity=AlertSeverity(alert.severity),
            score_value=score.value,
            triggered_at=now,
            score_components=dict(score.components or {}),
        ))
        return alert

    def _resolve_if_active(
        self,
        tutor_id: int,
        alert_type: AlertType,
        evaluation: AlertEvaluation,
    ) -> Optional[Alert]:
        alert = self._repository.active_alert(tutor_id, alert_type)
        if alert is None:
            return None

        now = self._clock.now()
        resolve_alert(self._repository, alert, now, auto_resolved=True)
        evaluation.resolved.append(alert.id)
        logger.info(f"Auto-resolved alert {alert.id}: {alert_type.value} for tutor {tutor_id}")
        return alert

    # --------------------------------------------------------
    # NOTIFICATION
    # --------------------------------------------------------

    def dispatch(self, events: Iterable[AlertEvent]) -> None:
        """Notify on created alerts; delivery errors never propagate."""
        for event in events:
            for notifier in self._notifiers:
                try:
                    notifier.notify(event)
                except Exception as e:
                    logger.error(
                        f"Alert notifier {type(notifier).__name__} failed for alert {event.alert_id}: {e}",
                        exc_info=True,
                    )


def resolve_alert(repository: AlertRepository, alert: Alert, now, auto_resolved: bool) -> Alert:
    """Move an alert to resolved, stamping resolved_at in both places."""
    alert.status = AlertStatus.RESOLVED.value
    alert.resolved_at = now
    return repository.merge_metadata(alert, {
        "resolved_at": to_iso8601(now),
        "auto_resolved": auto_resolved,
    })


__all__ = ["AlertEngine", "resolve_alert"]
