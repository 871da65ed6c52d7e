from fastapi import APIRouter, Depends, HTTPException, Response
from datetime import datetime
from typing import Optional
from uuid import UUID

from hms_scheduling.models.slot import AppointmentSlot, SlotType
from hms_scheduling.routers.deps import get_scheduling_service
from hms_scheduling.scheduling.bulk import BulkSlotCriteria
from hms_scheduling.scheduling.drafts import SlotDraft
from hms_scheduling.scheduling.recurrence import RecurrencePattern
from hms_scheduling.scheduling.timeutils import to_utc_naive
from hms_scheduling.schemas.conflicts import ConflictOut
from hms_scheduling.schemas.slots import (
    BulkSlotCreate,
    GenerationReportOut,
    RecurringSlotCreate,
    ReservationOut,
    SkippedSlotOut,
    SlotCreate,
    SlotOut,
    SlotSearchResult,
    SlotUpdate,
)
from hms_scheduling.services.scheduling_service import SchedulingService
from hms_scheduling.services.slot_writer import GenerationReport

router = APIRouter()


def _report_out(report: GenerationReport) -> GenerationReportOut:
    return GenerationReportOut(
        created_count=len(report.created),
        skipped_count=len(report.skipped),
        created_slot_ids=report.created_slot_ids,
        skipped=[
            SkippedSlotOut(
                start_time=s.draft.start_time,
                end_time=s.draft.end_time,
                conflicts=[ConflictOut.from_conflict(c) for c in s.conflicts],
            )
            for s in report.skipped
        ],
        cancelled=report.cancelled,
        checkpoint=report.checkpoint,
    )


def _reservation_out(slot: AppointmentSlot, reserved: bool) -> ReservationOut:
    return ReservationOut(
        slot_id=slot.slot_id,
        reserved=reserved,
        current_bookings=slot.current_bookings,
        max_bookings=slot.max_bookings,
    )


@router.post("", response_model=SlotOut, status_code=201)
def create_slot(payload: SlotCreate, svc: SchedulingService = Depends(get_scheduling_service)):
    start = to_utc_naive(payload.start_time)
    end = to_utc_naive(payload.end_time)
    if start >= end:
        raise HTTPException(status_code=400, detail="start_time must be before end_time")

    draft = SlotDraft(
        provider_id=payload.provider_id,
        resource_id=payload.resource_id,
        start_time=start,
        end_time=end,
        duration=payload.duration or int((end - start).total_seconds() // 60),
        slot_type=payload.slot_type,
        max_bookings=payload.max_bookings,
        is_available=payload.is_available,
        is_bookable=payload.is_bookable,
        buffer_before=payload.buffer_before,
        buffer_after=payload.buffer_after,
        specialty=payload.specialty,
        notes=payload.notes,
    )
    return svc.create_slot(draft)


@router.get("", response_model=SlotSearchResult)
def search_slots(
    provider_id: Optional[UUID] = None,
    resource_id: Optional[UUID] = None,
    start_date: Optional[datetime] = None,
    end_date: Optional[datetime] = None,
    slot_type: Optional[SlotType] = None,
    specialty: Optional[str] = None,
    min_duration: Optional[int] = None,
    available_only: bool = True,
    page: int = 1,
    limit: int = 20,
    svc: SchedulingService = Depends(get_scheduling_service),
):
    page = max(page, 1)
    limit = min(max(limit, 1), 100)
    rows, total = svc.search_slots(
        provider_id=provider_id,
        resource_id=resource_id,
        start=to_utc_naive(start_date) if start_date else None,
        end=to_utc_naive(end_date) if end_date else None,
        slot_type=slot_type,
        specialty=specialty,
        min_duration=min_duration,
        available_only=available_only,
        offset=(page - 1) * limit,
        limit=limit,
    )
    return SlotSearchResult(items=rows, total=total, page=page, limit=limit)


# fixed paths first so they are not captured by /{slot_id}
@router.post("/recurring", response_model=GenerationReportOut, status_code=201)
def create_recurring_slots(payload: RecurringSlotCreate, svc: SchedulingService = Depends(get_scheduling_service)):
    pattern = RecurrencePattern(
        pattern_type=payload.pattern_type,
        days_of_week=frozenset(payload.days_of_week),
        start_date=payload.start_date,
        interval=payload.interval,
        end_date=payload.end_date,
        max_occurrences=payload.max_occurrences,
    )
    report = svc.generate_recurring(payload.slot_id, pattern, conflict_policy=payload.conflict_policy)
    return _report_out(report)


@router.post("/bulk", response_model=GenerationReportOut, status_code=201)
def create_bulk_slots(payload: BulkSlotCreate, svc: SchedulingService = Depends(get_scheduling_service)):
    criteria = BulkSlotCriteria(
        provider_id=payload.provider_id,
        resource_id=payload.resource_id,
        start_date=payload.start_date,
        end_date=payload.end_date,
        days_of_week=frozenset(payload.days_of_week),
        window_start=payload.start_time,
        window_end=payload.end_time,
        slot_duration=payload.slot_duration,
        buffer_time=payload.buffer_time,
        slot_type=payload.slot_type,
        max_bookings=payload.max_bookings,
        specialty=payload.specialty,
        enforce_buffers=payload.enforce_buffers,
    )
    report = svc.generate_bulk(criteria, conflict_policy=payload.conflict_policy)
    return _report_out(report)


@router.get("/{slot_id}", response_model=SlotOut)
def get_slot(slot_id: UUID, svc: SchedulingService = Depends(get_scheduling_service)):
    return svc.get_slot(slot_id)


@router.patch("/{slot_id}", response_model=SlotOut)
def update_slot(slot_id: UUID, payload: SlotUpdate, svc: SchedulingService = Depends(get_scheduling_service)):
    changes = payload.model_dump(exclude_unset=True)
    # times, owner and flags cannot be nulled out
    for key in ("provider_id", "start_time", "end_time", "duration", "slot_type", "max_bookings",
                "is_available", "is_bookable", "buffer_before", "buffer_after"):
        if key in changes and changes[key] is None:
            raise HTTPException(status_code=400, detail=f"{key} cannot be null")
    return svc.update_slot(slot_id, changes)


@router.delete("/{slot_id}", status_code=204)
def delete_slot(slot_id: UUID, svc: SchedulingService = Depends(get_scheduling_service)):
    svc.delete_slot(slot_id)
    return Response(status_code=204)


@router.post("/{slot_id}/reserve", response_model=ReservationOut)
def reserve_slot(slot_id: UUID, svc: SchedulingService = Depends(get_scheduling_service)):
    reserved = svc.reserve(slot_id)
    return _reservation_out(svc.get_slot(slot_id), reserved)


@router.post("/{slot_id}/release", response_model=ReservationOut)
def release_slot(slot_id: UUID, svc: SchedulingService = Depends(get_scheduling_service)):
    svc.release(slot_id)
    return _reservation_out(svc.get_slot(slot_id), False)
