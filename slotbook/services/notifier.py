"""Notifier - booking lifecycle notifications.

Email composition and delivery live outside this service. The engine only
emits events through the `Notifier` interface:
- LoggingNotifier: writes events to the log (default, dev/test)
- WebhookNotifier: POSTs each event as JSON to NOTIFY_WEBHOOK_URL

Notifications are best-effort. `dispatch` logs and swallows failures so a
committed booking is never reported as failed.
"""

from __future__ import annotations

import logging
import random
import time
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Any, Callable

import httpx

from slotbook.core.config import Settings
from slotbook.core.structured_logging import build_log_context
from slotbook.db.models import Appointment, Contact

logger = logging.getLogger(__name__)

DEFAULT_RETRY_STATUSES = {429, 500, 502, 503, 504}


class Notifier(ABC):
    """Receiver of booking lifecycle events."""

    @abstractmethod
    def notify_client_pending(self, contact: Contact, appointment: Appointment) -> None:
        """Client booked a service that needs contractor confirmation."""

    @abstractmethod
    def notify_client_confirmed(self, contact: Contact, appointment: Appointment) -> None:
        """Client's appointment is on the calendar."""

    @abstractmethod
    def notify_client_declined(
        self,
        contact: Contact,
        appointment: Appointment,
        reason: str | None = None,
    ) -> None:
        """Contractor declined the client's pending request."""

    @abstractmethod
    def notify_contractor(self, appointment: Appointment, is_pending: bool) -> None:
        """New public booking landed on the contractor's calendar."""


def dispatch(action: Callable[..., None], *args, **kwargs) -> bool:
    """Run one notifier call; returns False instead of raising on failure."""
    try:
        action(*args, **kwargs)
        return True
    except Exception:
        logger.exception("Notification %s failed", getattr(action, "__name__", action))
        return False


# =============================================================================
# Event payloads
# =============================================================================

def _iso(value: datetime | None) -> str | None:
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.isoformat()


def build_event(
    event: str,
    appointment: Appointment,
    contact: Contact | None = None,
    **extra: Any,
) -> dict[str, Any]:
    """JSON-serializable event body shared by all notifier backends."""
    payload: dict[str, Any] = {
        "event": event,
        "appointment": {
            "id": str(appointment.id),
            "tenant_id": str(appointment.tenant_id),
            "service_id": str(appointment.service_id),
            "contact_id": str(appointment.contact_id),
            "title": appointment.title,
            "status": appointment.status,
            "start_time": _iso(appointment.start_time),
            "end_time": _iso(appointment.end_time),
            "location": appointment.location,
        },
        "sent_at": datetime.now(timezone.utc).isoformat(),
    }
    if contact is not None:
        payload["contact"] = {
            "id": str(contact.id),
            "first_name": contact.first_name,
            "last_name": contact.last_name,
            "email": contact.email,
            "phone": contact.phone,
        }
    payload.update(extra)
    return payload


# =============================================================================
# Backends
# =============================================================================

class LoggingNotifier(Notifier):
    """Logs events with identifiers only (no names or emails)."""

    def _log(self, event: str, appointment: Appointment, **extra: Any) -> None:
        context = build_log_context(
            tenant_id=appointment.tenant_id,
            service_id=appointment.service_id,
            appointment_id=appointment.id,
            contact_id=appointment.contact_id,
            event=event,
        )
        context.update(extra)
        logger.info("Booking notification %s", event, extra=context)

    def notify_client_pending(self, contact, appointment):
        self._log("client_pending", appointment)

    def notify_client_confirmed(self, contact, appointment):
        self._log("client_confirmed", appointment)

    def notify_client_declined(self, contact, appointment, reason=None):
        self._log("client_declined", appointment, has_reason=bool(reason))

    def notify_contractor(self, appointment, is_pending):
        self._log("contractor_new_booking", appointment, is_pending=is_pending)


class WebhookNotifier(Notifier):
    """POSTs events to a webhook with exponential backoff retries."""

    def __init__(
        self,
        url: str,
        *,
        timeout: float = 5.0,
        max_attempts: int = 3,
        base_delay: float = 0.5,
        max_delay: float = 4.0,
        client: httpx.Client | None = None,
    ):
        if not url:
            raise ValueError("Webhook notifier requires a URL")
        self.url = url
        self.max_attempts = max_attempts
        self.base_delay = base_delay
        self.max_delay = max_delay
        self._client = client or httpx.Client(timeout=timeout)

    def _delay(self, attempt: int) -> float:
        delay = min(self.max_delay, self.base_delay * (2**attempt))
        if delay:
            delay = delay + random.uniform(0, delay / 2)
        return delay

    def post(self, payload: dict[str, Any]) -> httpx.Response:
        """Deliver one event, retrying transport errors and transient statuses."""
        for attempt in range(self.max_attempts):
            try:
                response = self._client.post(self.url, json=payload)
            except httpx.RequestError as exc:
                if attempt >= self.max_attempts - 1:
                    raise
                logger.warning("Webhook delivery failed, retrying", exc_info=exc)
                time.sleep(self._delay(attempt))
                continue

            if response.status_code in DEFAULT_RETRY_STATUSES and attempt < self.max_attempts - 1:
                logger.warning("Webhook returned %s, retrying", response.status_code)
                time.sleep(self._delay(attempt))
                continue

            response.raise_for_status()
            return response

        response.raise_for_status()
        return response

    def notify_client_pending(self, contact, appointment):
        self.post(build_event("client_pending", appointment, contact))

    def notify_client_confirmed(self, contact, appointment):
        self.post(build_event("client_confirmed", appointment, contact))

    def notify_client_declined(self, contact, appointment, reason=None):
        self.post(build_event("client_declined", appointment, contact, reason=reason))

    def notify_contractor(self, appointment, is_pending):
        self.post(build_event("contractor_new_booking", appointment, is_pending=is_pending))

    def close(self) -> None:
        self._client.close()


def build_notifier(settings: Settings) -> Notifier:
    """Create the notifier selected by NOTIFIER_BACKEND."""
    if settings.NOTIFIER_BACKEND == "webhook":
        return WebhookNotifier(
            settings.NOTIFY_WEBHOOK_URL,
            timeout=settings.NOTIFY_WEBHOOK_TIMEOUT_SECONDS,
        )
    return LoggingNotifier()
