"""
Billing and notification collaborators.

When BILLING_API_URL / NOTIFICATIONS_API_URL are configured, events are sent
over HTTP with httpx; otherwise logging stand-ins record what would be sent.
Every request carries the event id as its idempotency key.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Protocol
from uuid import UUID

import httpx

from hms_scheduling.core.config import settings
from hms_scheduling.services.events import EventType, SchedulingEvent, Subscriber

logger = logging.getLogger(__name__)


class BillingClient(Protocol):
    def create_invoice_for_appointment(self, appointment: Dict[str, Any], idempotency_key: str) -> Optional[str]:
        ...


class NotificationClient(Protocol):
    def notify(self, appointment_id: UUID, event_type: EventType, idempotency_key: str) -> None:
        ...


class HttpBillingClient:
    def __init__(self, base_url: str, timeout: float = 5.0, transport: Optional[httpx.BaseTransport] = None):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.transport = transport

    def create_invoice_for_appointment(self, appointment: Dict[str, Any], idempotency_key: str) -> Optional[str]:
        with httpx.Client(base_url=self.base_url, timeout=self.timeout, transport=self.transport) as client:
            resp = client.post(
                "/invoices/appointments",
                json=appointment,
                headers={"Idempotency-Key": idempotency_key},
            )
            resp.raise_for_status()
            invoice_id = resp.json().get("invoice_id")
        logger.info("Invoice %s created for appointment %s", invoice_id, appointment.get("appointment_id"))
        return invoice_id


class HttpNotificationClient:
    def __init__(self, base_url: str, timeout: float = 5.0, transport: Optional[httpx.BaseTransport] = None):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.transport = transport

    def notify(self, appointment_id: UUID, event_type: EventType, idempotency_key: str) -> None:
        with httpx.Client(base_url=self.base_url, timeout=self.timeout, transport=self.transport) as client:
            resp = client.post(
                "/notifications",
                json={"appointment_id": str(appointment_id), "event_type": event_type.value},
                headers={"Idempotency-Key": idempotency_key},
            )
            resp.raise_for_status()


class LoggingBillingClient:
    def create_invoice_for_appointment(self, appointment: Dict[str, Any], idempotency_key: str) -> Optional[str]:
        logger.info(
            "Billing not configured; skipping invoice for appointment %s (key %s)",
            appointment.get("appointment_id"),
            idempotency_key,
        )
        return None


class LoggingNotificationClient:
    def notify(self, appointment_id: UUID, event_type: EventType, idempotency_key: str) -> None:
        logger.info("Notification %s for appointment %s (key %s)", event_type.value, appointment_id, idempotency_key)


def billing_subscriber(client: BillingClient) -> Subscriber:
    """Invoices are only raised for newly created appointments."""

    def on_event(event: SchedulingEvent) -> None:
        if event.event_type != EventType.APPOINTMENT_CREATED:
            return
        client.create_invoice_for_appointment(event.payload, idempotency_key=str(event.event_id))

    on_event.__name__ = "billing_subscriber"
    return on_event


def notification_subscriber(client: NotificationClient) -> Subscriber:
    def on_event(event: SchedulingEvent) -> None:
        client.notify(event.appointment_id, event.event_type, idempotency_key=str(event.event_id))

    on_event.__name__ = "notification_subscriber"
    return on_event


def default_subscribers() -> List[Subscriber]:
    timeout = settings.collaborator_timeout_seconds

    if settings.billing_api_url:
        billing: BillingClient = HttpBillingClient(settings.billing_api_url, timeout=timeout)
    else:
        billing = LoggingBillingClient()

    if settings.notifications_api_url:
        notifications: NotificationClient = HttpNotificationClient(settings.notifications_api_url, timeout=timeout)
    else:
        notifications = LoggingNotificationClient()

    return [billing_subscriber(billing), notification_subscriber(notifications)]
