"""
Tests for the alert engine lifecycle.
"""

import json
from unittest.mock import MagicMock

import httpx
import pytest

from alerting import AlertEngine, AlertRepository, AlertThresholds
from alerting.notifications import WebhookAlertNotifier
from alerting.types import AlertEvent
from core.constants import AlertSeverity, AlertStatus, AlertType, ScoreType


@pytest.fixture
def tutor(factory):
    return factory.tutor("Ada")


@pytest.fixture
def notifier():
    return MagicMock()


@pytest.fixture
def alert_engine(db, clock, notifier):
    return AlertEngine(AlertRepository(db), clock=clock, notifiers=[notifier])


def record(factory, clock, tutor, score_type, value, **components):
    """Store a score computed one minute after the previous one."""
    clock.advance(minutes=1)
    return factory.score(tutor, score_type.value, value, computed_at=clock.now(), components=components)


def alerts_of(db, tutor, alert_type):
    return AlertRepository(db).list_alerts(tutor_id=tutor.id, alert_type=alert_type)


class TestAlertOpening:

    def test_fsqs_breach_opens_alert_with_score_metadata(self, db, factory, clock, alert_engine, tutor):
        record(factory, clock, tutor, ScoreType.FSQS, 55.0, missing_greeting=15)

        evaluation = alert_engine.evaluate_tutor(tutor.id)

        alerts = alerts_of(db, tutor, AlertType.LOW_FIRST_SESSION_QUALITY)
        assert len(alerts) == 1
        alert = alerts[0]
        assert evaluation.created == [alert.id]
        assert alert.status == AlertStatus.OPEN.value
        assert alert.severity == AlertSeverity.HIGH.value
        assert alert.triggered_at == clock.now()
        assert alert.alert_metadata["score_value"] == 55.0
        assert alert.alert_metadata["score_components"] == {"missing_greeting": 15}

    def test_repeat_breach_merges_into_active_alert(self, db, factory, clock, alert_engine, tutor):
        record(factory, clock, tutor, ScoreType.FSQS, 55.0)
        alert_engine.evaluate_tutor(tutor.id)
        opened_at = clock.now()

        clock.advance(hours=1)
        evaluation = alert_engine.evaluate_tutor(tutor.id)

        alerts = alerts_of(db, tutor, AlertType.LOW_FIRST_SESSION_QUALITY)
        assert len(alerts) == 1
        assert evaluation.created == []
        assert evaluation.updated == [alerts[0].id]
        assert alerts[0].triggered_at == opened_at
        assert alerts[0].alert_metadata["last_checked_at"] == clock.now().isoformat()

    @pytest.mark.parametrize("score_type,value,alert_type", [
        (ScoreType.FSQS, 50.0, AlertType.LOW_FIRST_SESSION_QUALITY),
        (ScoreType.THS, 54.9, AlertType.HIGH_RELIABILITY_RISK),
        (ScoreType.TCRS, 0.6, AlertType.CHURN_RISK),
    ])
    def test_threshold_boundaries_breach(self, db, factory, clock, alert_engine, tutor, score_type, value, alert_type):
        record(factory, clock, tutor, score_type, value)

        alert_engine.evaluate_tutor(tutor.id)

        assert len(alerts_of(db, tutor, alert_type)) == 1

    @pytest.mark.parametrize("score_type,value", [
        (ScoreType.FSQS, 49.9),
        (ScoreType.THS, 55.0),
        (ScoreType.TCRS, 0.59),
    ])
    def test_values_inside_threshold_do_not_alert(self, db, factory, clock, alert_engine, tutor, score_type, value):
        record(factory, clock, tutor, score_type, value)

        alert_engine.evaluate_tutor(tutor.id)

        assert AlertRepository(db).list_alerts(tutor_id=tutor.id) == []

    def test_alert_types_are_independent(self, db, factory, clock, alert_engine, tutor):
        record(factory, clock, tutor, ScoreType.FSQS, 70.0)
        record(factory, clock, tutor, ScoreType.THS, 40.0)
        record(factory, clock, tutor, ScoreType.TCRS, 0.9)

        evaluation = alert_engine.evaluate_tutor(tutor.id)

        assert len(evaluation.created) == 3
        assert len(AlertRepository(db).list_alerts(tutor_id=tutor.id, status=AlertStatus.OPEN)) == 3

    def test_missing_scores_are_skipped(self, db, alert_engine, tutor):
        evaluation = alert_engine.evaluate_tutor(tutor.id)

        assert set(evaluation.skipped) == {
            AlertType.LOW_FIRST_SESSION_QUALITY,
            AlertType.HIGH_RELIABILITY_RISK,
            AlertType.CHURN_RISK,
        }
        assert evaluation.changed is False
        assert AlertRepository(db).list_alerts() == []

    def test_custom_thresholds(self, db, factory, clock, notifier, tutor):
        engine = AlertEngine(
            AlertRepository(db),
            config=AlertThresholds(ths_threshold=80.0),
            clock=clock,
            notifiers=[notifier],
        )
        record(factory, clock, tutor, ScoreType.THS, 75.0)

        engine.evaluate_tutor(tutor.id)

        assert len(alerts_of(db, tutor, AlertType.HIGH_RELIABILITY_RISK)) == 1


class TestAlertResolution:

    def test_recovery_auto_resolves(self, db, factory, clock, alert_engine, tutor):
        record(factory, clock, tutor, ScoreType.THS, 40.0)
        alert_engine.evaluate_tutor(tutor.id)

        record(factory, clock, tutor, ScoreType.THS, 90.0)
        evaluation = alert_engine.evaluate_tutor(tutor.id)

        alert = alerts_of(db, tutor, AlertType.HIGH_RELIABILITY_RISK)[0]
        assert evaluation.resolved == [alert.id]
        assert alert.status == AlertStatus.RESOLVED.value
        assert alert.resolved_at == clock.now()
        assert alert.alert_metadata["auto_resolved"] is True
        assert alert.alert_metadata["resolved_at"] == clock.now().isoformat()

    def test_breach_after_resolution_opens_new_alert(self, db, factory, clock, alert_engine, tutor):
        record(factory, clock, tutor, ScoreType.TCRS, 0.8)
        alert_engine.evaluate_tutor(tutor.id)
        record(factory, clock, tutor, ScoreType.TCRS, 0.2)
        alert_engine.evaluate_tutor(tutor.id)
        record(factory, clock, tutor, ScoreType.TCRS, 0.7)
        alert_engine.evaluate_tutor(tutor.id)

        alerts = alerts_of(db, tutor, AlertType.CHURN_RISK)
        statuses = sorted(alert.status for alert in alerts)
        assert statuses == [AlertStatus.OPEN.value, AlertStatus.RESOLVED.value]

    def test_acknowledged_alert_is_still_active(self, db, factory, clock, alert_engine, tutor):
        record(factory, clock, tutor, ScoreType.FSQS, 60.0)
        alert_engine.evaluate_tutor(tutor.id)
        alert = alerts_of(db, tutor, AlertType.LOW_FIRST_SESSION_QUALITY)[0]
        alert.status = AlertStatus.ACKNOWLEDGED.value
        db.flush()

        evaluation = alert_engine.evaluate_tutor(tutor.id)
        assert evaluation.updated == [alert.id]

        record(factory, clock, tutor, ScoreType.FSQS, 20.0)
        alert_engine.evaluate_tutor(tutor.id)
        assert alert.status == AlertStatus.RESOLVED.value

    def test_no_active_alert_means_nothing_to_resolve(self, db, factory, clock, alert_engine, tutor):
        record(factory, clock, tutor, ScoreType.THS, 95.0)

        evaluation = alert_engine.evaluate_tutor(tutor.id)

        assert evaluation.resolved == []
        assert evaluation.changed is False


class TestAlertNotification:

    def test_evaluation_alone_sends_nothing(self, factory, clock, alert_engine, notifier, tutor):
        record(factory, clock, tutor, ScoreType.TCRS, 0.75)

        evaluation = alert_engine.evaluate_tutor(tutor.id)

        assert len(evaluation.events) == 1
        notifier.notify.assert_not_called()

    def test_notifies_only_on_creation(self, factory, clock, alert_engine, notifier, tutor):
        record(factory, clock, tutor, ScoreType.TCRS, 0.75)

        alert_engine.dispatch(alert_engine.evaluate_tutor(tutor.id).events)
        alert_engine.dispatch(alert_engine.evaluate_tutor(tutor.id).events)

        assert notifier.notify.call_count == 1
        event = notifier.notify.call_args[0][0]
        assert isinstance(event, AlertEvent)
        assert event.alert_type == AlertType.CHURN_RISK
        assert event.subject == "Alert: Tutor Churn Risk Detected"

    def test_notifier_failure_does_not_break_dispatch(self, db, factory, clock, notifier, tutor):
        broken = MagicMock()
        broken.notify.side_effect = RuntimeError("smtp down")
        engine = AlertEngine(AlertRepository(db), clock=clock, notifiers=[broken, notifier])
        record(factory, clock, tutor, ScoreType.THS, 10.0)

        evaluation = engine.evaluate_tutor(tutor.id)
        engine.dispatch(evaluation.events)

        assert len(evaluation.created) == 1
        assert notifier.notify.call_count == 1


class TestWebhookAlertNotifier:

    def test_posts_event_as_json(self, clock):
        received = []

        def handler(request):
            received.append(json.loads(request.content))
            return httpx.Response(200)

        client = httpx.Client(transport=httpx.MockTransport(handler))
        notifier = WebhookAlertNotifier("https://hooks.example.com/alerts", client=client)
        event = AlertEvent(
            alert_id=1,
            tutor_id=2,
            alert_type=AlertType.HIGH_RELIABILITY_RISK,
            severity=AlertSeverity.HIGH,
            score_value=42.0,
            triggered_at=clock.now(),
        )

        notifier.notify(event)

        assert received[0]["text"] == "Alert: High Reliability Risk Detected"
        assert received[0]["alert"]["score_value"] == 42.0

    def test_http_error_raises(self, clock):
        client = httpx.Client(transport=httpx.MockTransport(lambda request: httpx.Response(500)))
        notifier = WebhookAlertNotifier("https://hooks.example.com/alerts", client=client)
        event = AlertEvent(
            alert_id=1,
            tutor_id=2,
            alert_type=AlertType.CHURN_RISK,
            severity=AlertSeverity.HIGH,
            score_value=0.9,
            triggered_at=clock.now(),
        )

        with pytest.raises(httpx.HTTPStatusError):
            notifier.notify(event)
