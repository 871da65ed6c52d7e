"""
Bulk slot slicing: date range x weekday set x daily window -> fixed-width slots.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, time, timedelta
from typing import FrozenSet, Iterator, Optional
from uuid import UUID
from zoneinfo import ZoneInfo

from hms_scheduling.core.errors import ValidationError
from hms_scheduling.models.slot import SlotType
from hms_scheduling.scheduling.drafts import SlotDraft
from hms_scheduling.scheduling.timeutils import Weekday, compose_utc, daterange


@dataclass(frozen=True)
class BulkSlotCriteria:
    provider_id: UUID
    start_date: date
    end_date: date
    days_of_week: FrozenSet[int]
    window_start: time
    window_end: time
    slot_duration: int
    slot_type: SlotType
    buffer_time: int = 0
    resource_id: Optional[UUID] = None
    max_bookings: int = 1
    specialty: Optional[str] = None
    # buffers are stored as metadata; set this to also space chunks apart by buffer_time
    enforce_buffers: bool = False

    def validate(self) -> None:
        if self.end_date < self.start_date:
            raise ValidationError("end_date must be >= start_date")
        if not self.days_of_week:
            raise ValidationError("days_of_week must not be empty")
        if any(d < Weekday.MONDAY or d > Weekday.SUNDAY for d in self.days_of_week):
            raise ValidationError("days_of_week values must be between 0 (Mon) and 6 (Sun)")
        if self.window_end <= self.window_start:
            raise ValidationError("window end must be after window start")
        if self.slot_duration <= 0:
            raise ValidationError("slot_duration must be positive")
        if self.buffer_time < 0:
            raise ValidationError("buffer_time must not be negative")
        if self.max_bookings < 1:
            raise ValidationError("max_bookings must be >= 1")


class BulkSlotPlan:
    """Restartable iterable of SlotDrafts for a BulkSlotCriteria."""

    def __init__(self, criteria: BulkSlotCriteria, tz: ZoneInfo):
        criteria.validate()
        self.criteria = criteria
        self.tz = tz

    def __iter__(self) -> Iterator[SlotDraft]:
        c = self.criteria
        width = timedelta(minutes=c.slot_duration)
        gap = timedelta(minutes=c.buffer_time) if c.enforce_buffers else timedelta(0)

        for d in daterange(c.start_date, c.end_date):
            if d.weekday() not in c.days_of_week:
                continue

            cursor = compose_utc(d, c.window_start, self.tz)
            window_end = compose_utc(d, c.window_end, self.tz)

            # a trailing chunk that would run past the window is dropped
            while cursor + width <= window_end:
                yield SlotDraft(
                    provider_id=c.provider_id,
                    resource_id=c.resource_id,
                    start_time=cursor,
                    end_time=cursor + width,
                    duration=c.slot_duration,
                    slot_type=c.slot_type,
                    max_bookings=c.max_bookings,
                    buffer_before=c.buffer_time,
                    buffer_after=c.buffer_time,
                    specialty=c.specialty,
                )
                cursor = cursor + width + gap
