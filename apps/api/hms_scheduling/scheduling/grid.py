from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from typing import List, Optional, Sequence
from zoneinfo import ZoneInfo

from hms_scheduling.scheduling.timeutils import compose_utc


@dataclass(frozen=True)
class DayTemplate:
    """The effective working pattern for one weekday."""

    work_start: time
    work_end: time
    break_start: Optional[time] = None
    break_end: Optional[time] = None
    is_working: bool = True
    slot_duration: int = 30
    buffer_time: int = 5
    max_appointments_per_hour: int = 2
    is_default: bool = False

    @classmethod
    def from_rule(cls, rule) -> "DayTemplate":
        return cls(
            work_start=rule.work_start,
            work_end=rule.work_end,
            break_start=rule.break_start,
            break_end=rule.break_end,
            is_working=rule.is_working,
            slot_duration=rule.slot_duration,
            buffer_time=rule.buffer_time,
            max_appointments_per_hour=rule.max_appointments_per_hour,
        )

    def in_break(self, t: time) -> bool:
        if self.break_start is None or self.break_end is None:
            return False
        return self.break_start <= t < self.break_end


# Used when a provider has no rule for a weekday.
DEFAULT_DAY_TEMPLATE = DayTemplate(
    work_start=time(9, 0),
    work_end=time(17, 0),
    slot_duration=30,
    buffer_time=5,
    is_default=True,
)


@dataclass(frozen=True)
class TimeSlotCell:
    start: datetime  # naive UTC
    end: datetime
    local_start: time
    local_end: time
    is_available: bool
    is_booked: bool
    is_break: bool


def _covers(slot, start: datetime, end: datetime) -> bool:
    return slot.start_time <= start and slot.end_time >= end


def build_time_grid(
    d: date,
    template: DayTemplate,
    slots: Sequence,
    tz: ZoneInfo,
    blocked: bool = False,
    track_bookings: bool = True,
) -> List[TimeSlotCell]:
    """
    Walk the work window of `d` in slot_duration steps and classify each cell.

    A cell is booked when it lies inside a slot holding bookings, and available
    when it lies inside a free slot, is outside the break and the day is not
    blocked by time-off. A trailing cell that would pass work_end is dropped.
    """
    step = timedelta(minutes=template.slot_duration)
    cursor = datetime.combine(d, template.work_start)
    window_end = datetime.combine(d, template.work_end)

    free_slots = [s for s in slots if s.is_free]
    booked_slots = [s for s in slots if s.current_bookings > 0] if track_bookings else []

    cells: List[TimeSlotCell] = []
    while cursor + step <= window_end:
        cell_end = cursor + step
        start_utc = compose_utc(d, cursor.time(), tz)
        end_utc = compose_utc(cell_end.date(), cell_end.time(), tz)

        is_break = template.in_break(cursor.time())
        is_booked = any(_covers(s, start_utc, end_utc) for s in booked_slots)
        is_free = any(_covers(s, start_utc, end_utc) for s in free_slots)

        cells.append(
            TimeSlotCell(
                start=start_utc,
                end=end_utc,
                local_start=cursor.time(),
                local_end=cell_end.time(),
                is_available=is_free and not is_break and not blocked,
                is_booked=is_booked,
                is_break=is_break,
            )
        )
        cursor = cell_end

    return cells


def availability_percentage(total: int, available: int) -> int:
    if total == 0:
        return 0
    # half-up, so 12.5% reads as 13
    return int(100 * available / total + 0.5)
