"""
Availability Service

Builds the per-day availability grid for a provider from three sources:
  - weekly schedule rules (local working hours, breaks, cell size)
  - approved time-off (whole calendar days)
  - existing slots and their booking counts

Nothing here is persisted; every call recomputes from the store.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import date
from typing import Dict, List, Optional
from uuid import UUID
from zoneinfo import ZoneInfo

from hms_scheduling.core.config import settings
from hms_scheduling.core.errors import NotFoundError, ValidationError
from hms_scheduling.models.time_off import ProviderTimeOff
from hms_scheduling.scheduling.grid import (
    DEFAULT_DAY_TEMPLATE,
    DayTemplate,
    TimeSlotCell,
    availability_percentage,
    build_time_grid,
)
from hms_scheduling.scheduling.timeutils import (
    daterange,
    get_clinic_timezone,
    local_day_bounds,
    local_today,
    to_local,
)
from hms_scheduling.services.slot_store import SlotStore

logger = logging.getLogger(__name__)


@dataclass
class AvailabilityOptions:
    include_time_off: bool = True
    include_bookings: bool = True
    include_past_dates: bool = False  # range queries only
    today: Optional[date] = None


@dataclass
class AvailabilityDay:
    date: date
    day_of_week: int
    is_available: bool
    is_past: bool
    is_today: bool
    template: DayTemplate
    cells: List[TimeSlotCell] = field(default_factory=list)
    time_off: List[ProviderTimeOff] = field(default_factory=list)

    @property
    def total_slots(self) -> int:
        return len(self.cells)

    @property
    def available_slots_count(self) -> int:
        return sum(1 for c in self.cells if c.is_available)

    @property
    def availability_percentage(self) -> int:
        return availability_percentage(self.total_slots, self.available_slots_count)


class AvailabilityComputer:
    def __init__(self, store: SlotStore, tz: Optional[ZoneInfo] = None):
        self.store = store
        self.tz = tz or get_clinic_timezone()

    def for_date(
        self, provider_id: UUID, d: date, opts: Optional[AvailabilityOptions] = None
    ) -> AvailabilityDay:
        opts = opts or AvailabilityOptions()
        single = AvailabilityOptions(
            include_time_off=opts.include_time_off,
            include_bookings=opts.include_bookings,
            include_past_dates=True,
            today=opts.today,
        )
        return self.for_range(provider_id, d, d, single)[0]

    def for_range(
        self,
        provider_id: UUID,
        start: date,
        end: date,
        opts: Optional[AvailabilityOptions] = None,
    ) -> List[AvailabilityDay]:
        opts = opts or AvailabilityOptions()

        if end < start:
            raise ValidationError("end_date must be >= start_date")
        span = (end - start).days + 1
        if span > settings.max_availability_range_days:
            raise ValidationError(
                f"Date range too long ({span} days, max {settings.max_availability_range_days})"
            )
        if self.store.get_provider(provider_id) is None:
            raise NotFoundError("Provider not found")

        today = opts.today or local_today(self.tz)
        dates = list(daterange(start, end))

        rules = {
            int(r.day_of_week): r
            for r in self.store.find_provider_schedule_rules(provider_id, {d.weekday() for d in dates})
        }
        time_off = (
            self.store.find_approved_time_off(provider_id, start, end) if opts.include_time_off else []
        )

        range_start, _ = local_day_bounds(start, self.tz)
        _, range_end = local_day_bounds(end, self.tz)
        slots_by_date: Dict[date, list] = defaultdict(list)
        for s in self.store.find_slots_starting_between(provider_id, range_start, range_end):
            slots_by_date[to_local(s.start_time, self.tz).date()].append(s)

        days: List[AvailabilityDay] = []
        for d in dates:
            is_past = d < today
            if is_past and not opts.include_past_dates:
                continue

            rule = rules.get(d.weekday())
            if rule is None:
                logger.debug("No schedule rule for provider %s on weekday %d, using default", provider_id, d.weekday())
                template = DEFAULT_DAY_TEMPLATE
            else:
                template = DayTemplate.from_rule(rule)

            day_time_off = [t for t in time_off if t.start_date <= d <= t.end_date]
            cells = build_time_grid(
                d,
                template,
                slots_by_date.get(d, []),
                self.tz,
                blocked=bool(day_time_off),
                track_bookings=opts.include_bookings,
            )

            days.append(
                AvailabilityDay(
                    date=d,
                    day_of_week=d.weekday(),
                    is_available=template.is_working and not day_time_off and any(c.is_available for c in cells),
                    is_past=is_past,
                    is_today=d == today,
                    template=template,
                    cells=cells,
                    time_off=day_time_off,
                )
            )

        return days
