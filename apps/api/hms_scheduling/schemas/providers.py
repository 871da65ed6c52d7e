from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from hms_scheduling.models.resource import ResourceType


class ProviderCreate(BaseModel):
    name: str = Field(min_length=1)
    specialization: str | None = None
    department: str | None = None
    is_active: bool = True


class ProviderOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    provider_id: UUID
    name: str
    specialization: str | None = None
    department: str | None = None
    is_active: bool
    created_at: datetime | None = None


class ResourceCreate(BaseModel):
    name: str = Field(min_length=1)
    type: ResourceType
    location: str | None = None
    capacity: int | None = Field(default=None, ge=1)
    is_active: bool = True


class ResourceOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    resource_id: UUID
    name: str
    type: ResourceType
    location: str | None = None
    capacity: int | None = None
    is_active: bool
