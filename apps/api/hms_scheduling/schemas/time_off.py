from datetime import date, datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, model_validator

from hms_scheduling.models.time_off import TimeOffStatus, TimeOffType


class TimeOffCreate(BaseModel):
    provider_id: UUID
    start_date: date
    end_date: date
    type: TimeOffType
    reason: str = Field(min_length=1)
    status: TimeOffStatus = TimeOffStatus.PENDING
    approved_by: Optional[str] = None
    notes: Optional[str] = None

    @model_validator(mode="after")
    def check_dates(self):
        if self.end_date < self.start_date:
            raise ValueError("end_date must be on or after start_date")
        return self


class TimeOffUpdate(BaseModel):
    status: Optional[TimeOffStatus] = None
    approved_by: Optional[str] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    reason: Optional[str] = None
    notes: Optional[str] = None


class TimeOffOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    time_off_id: UUID
    provider_id: UUID
    start_date: date
    end_date: date
    type: TimeOffType
    status: TimeOffStatus
    reason: str
    approved_by: Optional[str] = None
    approved_at: Optional[datetime] = None
    notes: Optional[str] = None
