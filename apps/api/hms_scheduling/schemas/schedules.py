from datetime import time
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, model_validator

from hms_scheduling.scheduling.timeutils import WEEKDAY_NUMBERING, Weekday


class ProviderScheduleBase(BaseModel):
    work_start: time
    work_end: time
    break_start: Optional[time] = None
    break_end: Optional[time] = None
    is_working: bool = True
    slot_duration: int = Field(default=30, gt=0)
    buffer_time: int = Field(default=5, ge=0)
    max_appointments_per_hour: int = Field(default=2, ge=1)
    notes: Optional[str] = None

    @model_validator(mode="after")
    def check_windows(self):
        if self.work_end <= self.work_start:
            raise ValueError("work_end must be after work_start")
        if (self.break_start is None) != (self.break_end is None):
            raise ValueError("break_start and break_end go together")
        if self.break_start is not None:
            if not (self.work_start <= self.break_start < self.break_end <= self.work_end):
                raise ValueError("break must lie inside the work window")
        return self


class ProviderScheduleCreate(ProviderScheduleBase):
    provider_id: UUID
    day_of_week: Weekday = Field(description=WEEKDAY_NUMBERING)


class ProviderScheduleUpdate(BaseModel):
    work_start: Optional[time] = None
    work_end: Optional[time] = None
    break_start: Optional[time] = None
    break_end: Optional[time] = None
    is_working: Optional[bool] = None
    slot_duration: Optional[int] = Field(default=None, gt=0)
    buffer_time: Optional[int] = Field(default=None, ge=0)
    max_appointments_per_hour: Optional[int] = Field(default=None, ge=1)
    notes: Optional[str] = None


class ProviderScheduleOut(ProviderScheduleBase):
    model_config = ConfigDict(from_attributes=True)

    schedule_id: UUID
    provider_id: UUID
    day_of_week: Weekday = Field(description=WEEKDAY_NUMBERING)
