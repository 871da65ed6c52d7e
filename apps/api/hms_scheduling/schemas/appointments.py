from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from hms_scheduling.models.appointment import AppointmentPriority, AppointmentStatus, AppointmentType


class AppointmentCreate(BaseModel):
    patient_id: UUID
    slot_id: UUID
    appointment_type: AppointmentType
    priority: AppointmentPriority = AppointmentPriority.ROUTINE
    # defaults to the slot's own window and must lie inside it
    scheduled_start: Optional[datetime] = None
    scheduled_end: Optional[datetime] = None
    reason: Optional[str] = None
    notes: Optional[str] = None


class RescheduleRequest(BaseModel):
    new_start_time: datetime
    new_end_time: datetime
    reason: Optional[str] = None


class CancelRequest(BaseModel):
    cancellation_reason: str = Field(min_length=1)


class StatusUpdate(BaseModel):
    status: AppointmentStatus
    reason: Optional[str] = None


class AppointmentOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    appointment_id: UUID
    patient_id: UUID
    slot_id: UUID
    provider_id: UUID
    status: AppointmentStatus
    appointment_type: AppointmentType
    priority: AppointmentPriority
    reason: Optional[str] = None
    notes: Optional[str] = None
    scheduled_start: datetime
    scheduled_end: datetime
    check_in_time: Optional[datetime] = None
    actual_start: Optional[datetime] = None
    actual_end: Optional[datetime] = None


class AppointmentSearchResult(BaseModel):
    items: List[AppointmentOut]
    total: int
    page: int
    limit: int
