from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import select
from sqlalchemy.orm import Session
from uuid import UUID

from hms_scheduling.core.database import get_db
from hms_scheduling.models.provider import Provider
from hms_scheduling.models.resource import Resource
from hms_scheduling.schemas.providers import ProviderCreate, ProviderOut, ResourceCreate, ResourceOut

router = APIRouter()
resources_router = APIRouter()


# --- Providers ---
@router.post("", response_model=ProviderOut, status_code=201)
def create_provider(payload: ProviderCreate, db: Session = Depends(get_db)):
    p = Provider(**payload.model_dump())
    db.add(p)
    db.commit()
    db.refresh(p)
    return p


@router.get("", response_model=list[ProviderOut])
def list_providers(active_only: bool = False, db: Session = Depends(get_db)):
    stmt = select(Provider).order_by(Provider.name)
    if active_only:
        stmt = stmt.where(Provider.is_active == True)  # noqa: E712
    return db.execute(stmt).scalars().all()


@router.get("/{provider_id}", response_model=ProviderOut)
def get_provider(provider_id: UUID, db: Session = Depends(get_db)):
    p = db.get(Provider, provider_id)
    if not p:
        raise HTTPException(status_code=404, detail="Provider not found")
    return p


# --- Resources ---
@resources_router.post("", response_model=ResourceOut, status_code=201)
def create_resource(payload: ResourceCreate, db: Session = Depends(get_db)):
    r = Resource(**payload.model_dump())
    db.add(r)
    db.commit()
    db.refresh(r)
    return r


@resources_router.get("", response_model=list[ResourceOut])
def list_resources(db: Session = Depends(get_db)):
    return db.execute(select(Resource).order_by(Resource.name)).scalars().all()


@resources_router.get("/{resource_id}", response_model=ResourceOut)
def get_resource(resource_id: UUID, db: Session = Depends(get_db)):
    r = db.get(Resource, resource_id)
    if not r:
        raise HTTPException(status_code=404, detail="Resource not found")
    return r
