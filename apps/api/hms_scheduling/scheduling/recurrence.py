"""
Recurring slot expansion.

A RecurrencePlan is a pure, restartable iterable: iterating it twice yields the
same drafts, and nothing touches the database. SlotWriter persists the output.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Callable, FrozenSet, Iterator, Optional
from zoneinfo import ZoneInfo

from hms_scheduling.core.errors import ValidationError
from hms_scheduling.scheduling.drafts import SlotDraft
from hms_scheduling.scheduling.timeutils import Weekday, add_months, compose_utc, to_local

DateStepper = Callable[[date], date]


class RecurrencePatternType(str, enum.Enum):
    DAILY = "DAILY"
    WEEKLY = "WEEKLY"
    MONTHLY = "MONTHLY"
    CUSTOM = "CUSTOM"


@dataclass(frozen=True)
class RecurrencePattern:
    pattern_type: RecurrencePatternType
    days_of_week: FrozenSet[int]
    start_date: date
    interval: int = 1
    end_date: Optional[date] = None
    max_occurrences: Optional[int] = None

    def validate(self) -> None:
        if self.interval < 1:
            raise ValidationError("interval must be >= 1")
        if not self.days_of_week:
            raise ValidationError("days_of_week must not be empty")
        if any(d < Weekday.MONDAY or d > Weekday.SUNDAY for d in self.days_of_week):
            raise ValidationError("days_of_week values must be between 0 (Mon) and 6 (Sun)")
        if self.end_date is not None and self.end_date < self.start_date:
            raise ValidationError("end_date must be >= start_date")
        if self.max_occurrences is not None and self.max_occurrences < 1:
            raise ValidationError("max_occurrences must be >= 1")

    def resolved_end_date(self, horizon_days: int) -> date:
        return self.end_date or self.start_date + timedelta(days=horizon_days)


class RecurrencePlan:
    """
    Expands one base slot into concrete slots following a pattern.

    Cursor advance per pattern type:
      DAILY   -> +interval days
      WEEKLY  -> +7*interval days
      MONTHLY -> +interval months from the start anchor (day clamped to month length)
      CUSTOM  -> the caller's stepper, or the DAILY step when none is given

    Only dates whose weekday is in days_of_week produce a slot. Expansion stops
    once the cursor passes end_date or max_occurrences slots were produced.
    """

    def __init__(
        self,
        base_slot,
        pattern: RecurrencePattern,
        tz: ZoneInfo,
        horizon_days: int = 365,
        stepper: Optional[DateStepper] = None,
    ):
        pattern.validate()
        self.base_slot = base_slot
        self.pattern = pattern
        self.tz = tz
        self.end_date = pattern.resolved_end_date(horizon_days)
        self.stepper = stepper

    def __iter__(self) -> Iterator[SlotDraft]:
        base = self.base_slot
        local_start = to_local(base.start_time, self.tz).time()
        duration = timedelta(minutes=base.duration)

        for d in self.dates():
            start = compose_utc(d, local_start, self.tz)
            yield SlotDraft(
                provider_id=base.provider_id,
                resource_id=base.resource_id,
                start_time=start,
                end_time=start + duration,
                duration=base.duration,
                slot_type=base.slot_type,
                max_bookings=base.max_bookings,
                is_available=base.is_available,
                is_bookable=base.is_bookable,
                buffer_before=base.buffer_before,
                buffer_after=base.buffer_after,
                specialty=base.specialty,
                notes=base.notes,
            )

    def dates(self) -> Iterator[date]:
        cap = self.pattern.max_occurrences
        emitted = 0
        for d in self._candidate_dates():
            if d.weekday() not in self.pattern.days_of_week:
                continue
            yield d
            emitted += 1
            if cap is not None and emitted >= cap:
                return

    def _candidate_dates(self) -> Iterator[date]:
        p = self.pattern
        end = self.end_date

        cursor = p.start_date
        steps = 0
        while cursor <= end:
            yield cursor
            steps += 1
            if p.pattern_type == RecurrencePatternType.MONTHLY:
                cursor = add_months(p.start_date, steps * p.interval)
            elif p.pattern_type == RecurrencePatternType.WEEKLY:
                cursor += timedelta(days=7 * p.interval)
            elif p.pattern_type == RecurrencePatternType.CUSTOM and self.stepper is not None:
                nxt = self.stepper(cursor)
                if nxt <= cursor:
                    raise ValidationError("custom stepper must move the cursor forward")
                cursor = nxt
            else:
                cursor += timedelta(days=p.interval)
