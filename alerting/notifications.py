"""
Alerting - Notifications.

============================================================
PURPOSE
============================================================
Delivery hooks for newly opened alerts.

The engine calls every notifier once per created alert. A
notifier failure is logged and swallowed: delivery must never
undo or block the alert write.

Provides:
- AlertNotifier protocol
- LoggingAlertNotifier (default)
- WebhookAlertNotifier (JSON POST over httpx)

============================================================
"""

import logging
from typing import Optional, Protocol

import httpx

from .types import AlertEvent

logger = logging.getLogger(__name__)


# ============================================================
# NOTIFIER PROTOCOL
# ============================================================


class AlertNotifier(Protocol):
    """
    Protocol for alert delivery implementations.

    Allows for different alert destinations:
    - Log
    - Webhook (Slack, chat ops, mail relay)
    """

    def notify(self, event: AlertEvent) -> None:
        ...


# ============================================================
# LOGGING NOTIFIER
# ============================================================


class LoggingAlertNotifier:
    """Write alert events to the application log."""

    def __init__(self, level: int = logging.WARNING):
        self._level = level

    def notify(self, event: AlertEvent) -> None:
        logger.log(
            self._level,
            f"{event.subject} | alert={event.alert_id} tutor={event.tutor_id} "
            f"severity={event.severity.value} score={event.score_value}",
        )


# ============================================================
# WEBHOOK NOTIFIER
# ============================================================


class WebhookAlertNotifier:
    """
    POST alert events as JSON to a webhook URL.

    Raises on non-2xx responses; the engine logs and continues.
    """

    def __init__(
        self,
        url: str,
        timeout: float = 10.0,
        client: Optional[httpx.Client] = None,
    ):
        self._url = url
        self._timeout = timeout
        self._client = client

    def notify(self, event: AlertEvent) -> None:
        payload = {"text": event.subject, "alert": event.to_dict()}
        if self._client is not None:
            response = self._client.post(self._url, json=payload, timeout=self._timeout)
        else:
            with httpx.Client() as client:
                response = client.post(self._url, json=payload, timeout=self._timeout)
        response.raise_for_status()
        logger.debug(f"Delivered alert {event.alert_id} to webhook")


__all__ = ["AlertNotifier", "LoggingAlertNotifier", "WebhookAlertNotifier"]
