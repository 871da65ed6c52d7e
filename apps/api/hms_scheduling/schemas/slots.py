from datetime import date, datetime, time
from typing import List, Literal, Optional, Set
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from hms_scheduling.models.slot import SlotType
from hms_scheduling.scheduling.recurrence import RecurrencePatternType
from hms_scheduling.scheduling.timeutils import WEEKDAY_NUMBERING, Weekday
from hms_scheduling.schemas.conflicts import ConflictOut


class SlotCreate(BaseModel):
    provider_id: UUID
    resource_id: Optional[UUID] = None
    start_time: datetime
    end_time: datetime
    duration: Optional[int] = Field(default=None, gt=0)  # minutes; derived from the interval when omitted
    slot_type: SlotType = SlotType.CONSULTATION
    max_bookings: int = Field(default=1, ge=1)
    is_available: bool = True
    is_bookable: bool = True
    buffer_before: int = Field(default=0, ge=0)
    buffer_after: int = Field(default=0, ge=0)
    specialty: Optional[str] = None
    notes: Optional[str] = None


class SlotUpdate(BaseModel):
    provider_id: Optional[UUID] = None
    resource_id: Optional[UUID] = None
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    duration: Optional[int] = Field(default=None, gt=0)
    slot_type: Optional[SlotType] = None
    max_bookings: Optional[int] = Field(default=None, ge=1)
    is_available: Optional[bool] = None
    is_bookable: Optional[bool] = None
    buffer_before: Optional[int] = Field(default=None, ge=0)
    buffer_after: Optional[int] = Field(default=None, ge=0)
    specialty: Optional[str] = None
    notes: Optional[str] = None


class SlotOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    slot_id: UUID
    provider_id: UUID
    resource_id: Optional[UUID] = None
    start_time: datetime
    end_time: datetime
    duration: int
    slot_type: SlotType
    max_bookings: int
    current_bookings: int
    is_available: bool
    is_bookable: bool
    buffer_before: int
    buffer_after: int
    specialty: Optional[str] = None
    notes: Optional[str] = None


class SlotSearchResult(BaseModel):
    items: List[SlotOut]
    total: int
    page: int
    limit: int


class ReservationOut(BaseModel):
    slot_id: UUID
    reserved: bool
    current_bookings: int
    max_bookings: int


class RecurringSlotCreate(BaseModel):
    slot_id: UUID  # base slot whose time-of-day and attributes are repeated
    pattern_type: RecurrencePatternType
    interval: int = Field(default=1, ge=1)
    days_of_week: Set[Weekday] = Field(min_length=1, description=WEEKDAY_NUMBERING)
    start_date: date
    end_date: Optional[date] = None
    max_occurrences: Optional[int] = Field(default=None, ge=1)
    conflict_policy: Literal["skip", "abort"] = "skip"


class BulkSlotCreate(BaseModel):
    provider_id: UUID
    resource_id: Optional[UUID] = None
    start_date: date
    end_date: date
    days_of_week: Set[Weekday] = Field(min_length=1, description=WEEKDAY_NUMBERING)
    start_time: time
    end_time: time
    slot_duration: int = Field(gt=0)
    buffer_time: int = Field(default=0, ge=0)
    slot_type: SlotType = SlotType.CONSULTATION
    max_bookings: int = Field(default=1, ge=1)
    specialty: Optional[str] = None
    enforce_buffers: bool = False
    conflict_policy: Literal["skip", "abort"] = "skip"


class SkippedSlotOut(BaseModel):
    start_time: datetime
    end_time: datetime
    conflicts: List[ConflictOut]


class GenerationReportOut(BaseModel):
    created_count: int
    skipped_count: int
    created_slot_ids: List[UUID]
    skipped: List[SkippedSlotOut]
    cancelled: bool
    checkpoint: Optional[datetime] = None
