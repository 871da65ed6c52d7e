from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID

from hms_scheduling.models.slot import SlotType


@dataclass(frozen=True)
class SlotDraft:
    """A concrete slot produced by a generator, not yet persisted."""

    provider_id: UUID
    start_time: datetime  # naive UTC
    end_time: datetime  # naive UTC
    duration: int
    slot_type: SlotType
    resource_id: UUID | None = None
    max_bookings: int = 1
    is_available: bool = True
    is_bookable: bool = True
    buffer_before: int = 0
    buffer_after: int = 0
    specialty: str | None = None
    notes: str | None = None
