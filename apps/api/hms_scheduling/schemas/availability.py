from dataclasses import asdict
from datetime import date, datetime, time
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, Field

from hms_scheduling.scheduling.timeutils import WEEKDAY_NUMBERING
from hms_scheduling.services.availability import AvailabilityDay


class TimeSlotCellOut(BaseModel):
    start: datetime
    end: datetime
    local_start: time
    local_end: time
    is_available: bool
    is_booked: bool
    is_break: bool


class AvailabilityDayOut(BaseModel):
    date: date
    day_of_week: int = Field(description=WEEKDAY_NUMBERING)
    is_available: bool
    is_past: bool
    is_today: bool
    work_start: time
    work_end: time
    break_start: Optional[time] = None
    break_end: Optional[time] = None
    is_working: bool
    slot_duration: int
    buffer_time: int
    max_appointments_per_hour: int
    uses_default_schedule: bool
    time_off_ids: List[UUID]
    time_slots: List[TimeSlotCellOut]
    total_slots: int
    available_slots_count: int
    availability_percentage: int

    @classmethod
    def from_day(cls, day: AvailabilityDay) -> "AvailabilityDayOut":
        t = day.template
        return cls(
            date=day.date,
            day_of_week=day.day_of_week,
            is_available=day.is_available,
            is_past=day.is_past,
            is_today=day.is_today,
            work_start=t.work_start,
            work_end=t.work_end,
            break_start=t.break_start,
            break_end=t.break_end,
            is_working=t.is_working,
            slot_duration=t.slot_duration,
            buffer_time=t.buffer_time,
            max_appointments_per_hour=t.max_appointments_per_hour,
            uses_default_schedule=t.is_default,
            time_off_ids=[o.time_off_id for o in day.time_off],
            time_slots=[TimeSlotCellOut(**asdict(c)) for c in day.cells],
            total_slots=day.total_slots,
            available_slots_count=day.available_slots_count,
            availability_percentage=day.availability_percentage,
        )


class AvailabilityRangeOut(BaseModel):
    provider_id: UUID
    start_date: date
    end_date: date
    days: List[AvailabilityDayOut]
