from fastapi import APIRouter, Depends
from datetime import datetime
from typing import Optional
from uuid import UUID

from hms_scheduling.models.appointment import AppointmentStatus
from hms_scheduling.routers.deps import get_scheduling_service
from hms_scheduling.scheduling.timeutils import to_utc_naive
from hms_scheduling.schemas.appointments import (
    AppointmentCreate,
    AppointmentOut,
    AppointmentSearchResult,
    CancelRequest,
    RescheduleRequest,
    StatusUpdate,
)
from hms_scheduling.services.scheduling_service import SchedulingService

router = APIRouter()


@router.post("", response_model=AppointmentOut, status_code=201)
def create_appointment(payload: AppointmentCreate, svc: SchedulingService = Depends(get_scheduling_service)):
    return svc.create_appointment(**payload.model_dump())


@router.get("", response_model=AppointmentSearchResult)
def list_appointments(
    patient_id: Optional[UUID] = None,
    provider_id: Optional[UUID] = None,
    slot_id: Optional[UUID] = None,
    status: Optional[AppointmentStatus] = None,
    start_date: Optional[datetime] = None,
    end_date: Optional[datetime] = None,
    page: int = 1,
    limit: int = 20,
    svc: SchedulingService = Depends(get_scheduling_service),
):
    page = max(page, 1)
    limit = min(max(limit, 1), 100)
    rows, total = svc.list_appointments(
        patient_id=patient_id,
        provider_id=provider_id,
        slot_id=slot_id,
        status=status,
        start=to_utc_naive(start_date) if start_date else None,
        end=to_utc_naive(end_date) if end_date else None,
        offset=(page - 1) * limit,
        limit=limit,
    )
    return AppointmentSearchResult(items=rows, total=total, page=page, limit=limit)


@router.get("/{appointment_id}", response_model=AppointmentOut)
def get_appointment(appointment_id: UUID, svc: SchedulingService = Depends(get_scheduling_service)):
    return svc.get_appointment(appointment_id)


@router.post("/{appointment_id}/reschedule", response_model=AppointmentOut)
def reschedule_appointment(
    appointment_id: UUID,
    payload: RescheduleRequest,
    svc: SchedulingService = Depends(get_scheduling_service),
):
    return svc.reschedule_appointment(
        appointment_id, payload.new_start_time, payload.new_end_time, reason=payload.reason
    )


@router.post("/{appointment_id}/cancel", response_model=AppointmentOut)
def cancel_appointment(
    appointment_id: UUID,
    payload: CancelRequest,
    svc: SchedulingService = Depends(get_scheduling_service),
):
    return svc.cancel_appointment(appointment_id, payload.cancellation_reason)


@router.patch("/{appointment_id}/status", response_model=AppointmentOut)
def update_appointment_status(
    appointment_id: UUID,
    payload: StatusUpdate,
    svc: SchedulingService = Depends(get_scheduling_service),
):
    return svc.update_status(appointment_id, payload.status, reason=payload.reason)
