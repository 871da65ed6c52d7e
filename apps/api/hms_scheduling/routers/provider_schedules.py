from fastapi import APIRouter, Depends, HTTPException, Response
from sqlalchemy import and_, select
from sqlalchemy.orm import Session
from typing import Optional
from uuid import UUID

from hms_scheduling.core.database import get_db
from hms_scheduling.models.provider import Provider
from hms_scheduling.models.provider_schedule import ProviderScheduleRule
from hms_scheduling.schemas.schedules import (
    ProviderScheduleBase,
    ProviderScheduleCreate,
    ProviderScheduleOut,
    ProviderScheduleUpdate,
)

router = APIRouter()


@router.post("", response_model=ProviderScheduleOut, status_code=201)
def create_schedule(payload: ProviderScheduleCreate, db: Session = Depends(get_db)):
    if not db.get(Provider, payload.provider_id):
        raise HTTPException(status_code=404, detail="Provider not found")

    existing = db.execute(
        select(ProviderScheduleRule).where(
            and_(
                ProviderScheduleRule.provider_id == payload.provider_id,
                ProviderScheduleRule.day_of_week == payload.day_of_week,
            )
        )
    ).scalars().first()
    if existing:
        raise HTTPException(status_code=409, detail="Provider already has a schedule for this day")

    rule = ProviderScheduleRule(**payload.model_dump())
    db.add(rule)
    db.commit()
    db.refresh(rule)
    return rule


@router.get("", response_model=list[ProviderScheduleOut])
def list_schedules(provider_id: Optional[UUID] = None, db: Session = Depends(get_db)):
    stmt = select(ProviderScheduleRule).order_by(ProviderScheduleRule.day_of_week)
    if provider_id:
        stmt = stmt.where(ProviderScheduleRule.provider_id == provider_id)
    return db.execute(stmt).scalars().all()


@router.get("/{schedule_id}", response_model=ProviderScheduleOut)
def get_schedule(schedule_id: UUID, db: Session = Depends(get_db)):
    rule = db.get(ProviderScheduleRule, schedule_id)
    if not rule:
        raise HTTPException(status_code=404, detail="Schedule not found")
    return rule


@router.patch("/{schedule_id}", response_model=ProviderScheduleOut)
def update_schedule(schedule_id: UUID, payload: ProviderScheduleUpdate, db: Session = Depends(get_db)):
    rule = db.get(ProviderScheduleRule, schedule_id)
    if not rule:
        raise HTTPException(status_code=404, detail="Schedule not found")

    changes = payload.model_dump(exclude_unset=True)
    merged = {f: getattr(rule, f) for f in ProviderScheduleBase.model_fields}
    merged.update(changes)
    try:
        # same window rules as on create
        ProviderScheduleBase(**merged)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    for key, value in changes.items():
        setattr(rule, key, value)
    db.commit()
    db.refresh(rule)
    return rule


@router.delete("/{schedule_id}", status_code=204)
def delete_schedule(schedule_id: UUID, db: Session = Depends(get_db)):
    rule = db.get(ProviderScheduleRule, schedule_id)
    if not rule:
        raise HTTPException(status_code=404, detail="Schedule not found")
    db.delete(rule)
    db.commit()
    return Response(status_code=204)
