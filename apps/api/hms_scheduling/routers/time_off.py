from datetime import datetime, timezone
from fastapi import APIRouter, Depends, HTTPException, Response
from sqlalchemy import select
from sqlalchemy.orm import Session
from typing import Optional
from uuid import UUID

from hms_scheduling.core.database import get_db
from hms_scheduling.models.provider import Provider
from hms_scheduling.models.time_off import ProviderTimeOff, TimeOffStatus
from hms_scheduling.schemas.time_off import TimeOffCreate, TimeOffOut, TimeOffUpdate

router = APIRouter()


@router.post("", response_model=TimeOffOut, status_code=201)
def create_time_off(payload: TimeOffCreate, db: Session = Depends(get_db)):
    if not db.get(Provider, payload.provider_id):
        raise HTTPException(status_code=404, detail="Provider not found")

    t = ProviderTimeOff(**payload.model_dump())
    if t.status == TimeOffStatus.APPROVED:
        t.approved_at = datetime.now(timezone.utc)
    db.add(t)
    db.commit()
    db.refresh(t)
    return t


@router.get("", response_model=list[TimeOffOut])
def list_time_off(
    provider_id: Optional[UUID] = None,
    status: Optional[TimeOffStatus] = None,
    db: Session = Depends(get_db),
):
    stmt = select(ProviderTimeOff).order_by(ProviderTimeOff.start_date)
    if provider_id:
        stmt = stmt.where(ProviderTimeOff.provider_id == provider_id)
    if status:
        stmt = stmt.where(ProviderTimeOff.status == status)
    return db.execute(stmt).scalars().all()


@router.get("/{time_off_id}", response_model=TimeOffOut)
def get_time_off(time_off_id: UUID, db: Session = Depends(get_db)):
    t = db.get(ProviderTimeOff, time_off_id)
    if not t:
        raise HTTPException(status_code=404, detail="Time-off request not found")
    return t


@router.patch("/{time_off_id}", response_model=TimeOffOut)
def update_time_off(time_off_id: UUID, payload: TimeOffUpdate, db: Session = Depends(get_db)):
    t = db.get(ProviderTimeOff, time_off_id)
    if not t:
        raise HTTPException(status_code=404, detail="Time-off request not found")

    changes = payload.model_dump(exclude_unset=True, exclude_none=True)

    # APPROVED / REJECTED are final
    if t.status != TimeOffStatus.PENDING and changes.get("status", t.status) != t.status:
        raise HTTPException(status_code=409, detail=f"Time-off request is already {t.status.value.lower()}")

    start = changes.get("start_date", t.start_date)
    end = changes.get("end_date", t.end_date)
    if end < start:
        raise HTTPException(status_code=400, detail="end_date must be on or after start_date")

    for key, value in changes.items():
        setattr(t, key, value)
    if changes.get("status") == TimeOffStatus.APPROVED and t.approved_at is None:
        t.approved_at = datetime.now(timezone.utc)

    db.commit()
    db.refresh(t)
    return t


@router.delete("/{time_off_id}", status_code=204)
def delete_time_off(time_off_id: UUID, db: Session = Depends(get_db)):
    t = db.get(ProviderTimeOff, time_off_id)
    if not t:
        raise HTTPException(status_code=404, detail="Time-off request not found")
    db.delete(t)
    db.commit()
    return Response(status_code=204)
