"""
Outbound scheduling events.

Mutations publish after their transaction commits. Subscribers are the billing
and notification collaborators; one failing subscriber never stops the others
and never reaches the caller.
"""

from __future__ import annotations

import enum
import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Iterable, List, Optional

from fastapi import BackgroundTasks

logger = logging.getLogger(__name__)


class EventType(str, enum.Enum):
    APPOINTMENT_CREATED = "APPOINTMENT_CREATED"
    APPOINTMENT_RESCHEDULED = "APPOINTMENT_RESCHEDULED"
    APPOINTMENT_CANCELLED = "APPOINTMENT_CANCELLED"
    STATUS_CHANGED = "STATUS_CHANGED"


@dataclass(frozen=True)
class SchedulingEvent:
    event_type: EventType
    appointment_id: uuid.UUID
    payload: Dict[str, Any] = field(default_factory=dict)
    # collaborators deduplicate retried deliveries on this
    event_id: uuid.UUID = field(default_factory=uuid.uuid4)
    occurred_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


Subscriber = Callable[[SchedulingEvent], None]


class EventPublisher:
    """Delivers events synchronously to every subscriber."""

    def __init__(self, subscribers: Optional[Iterable[Subscriber]] = None):
        self.subscribers: List[Subscriber] = list(subscribers or [])

    def subscribe(self, subscriber: Subscriber) -> None:
        self.subscribers.append(subscriber)

    def publish(self, event: SchedulingEvent) -> None:
        self.deliver(event)

    def deliver(self, event: SchedulingEvent) -> None:
        for subscriber in self.subscribers:
            try:
                subscriber(event)
            except Exception:
                logger.exception(
                    "Subscriber %s failed for %s (event %s, appointment %s)",
                    getattr(subscriber, "__name__", repr(subscriber)),
                    event.event_type.value,
                    event.event_id,
                    event.appointment_id,
                )


class BackgroundEventPublisher(EventPublisher):
    """Defers delivery until FastAPI has sent the response."""

    def __init__(self, background_tasks: BackgroundTasks, subscribers: Optional[Iterable[Subscriber]] = None):
        super().__init__(subscribers)
        self.background_tasks = background_tasks

    def publish(self, event: SchedulingEvent) -> None:
        self.background_tasks.add_task(self.deliver, event)

