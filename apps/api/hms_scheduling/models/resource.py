import enum
import uuid
from sqlalchemy import Column, String, Integer, Boolean, DateTime, Enum, Uuid
from sqlalchemy.sql import func

from hms_scheduling.core.database import Base

class ResourceType(str, enum.Enum):
    CONSULTATION_ROOM = "CONSULTATION_ROOM"
    LAB_ROOM = "LAB_ROOM"
    IMAGING_ROOM = "IMAGING_ROOM"
    OPERATING_ROOM = "OPERATING_ROOM"
    RECOVERY_ROOM = "RECOVERY_ROOM"
    EQUIPMENT = "EQUIPMENT"
    VEHICLE = "VEHICLE"

class Resource(Base):
    __tablename__ = "resources"

    resource_id = Column(Uuid, primary_key=True, default=uuid.uuid4)

    name = Column(String, nullable=False)
    type = Column(Enum(ResourceType, name="resource_type"), nullable=False)
    location = Column(String, nullable=True)
    capacity = Column(Integer, nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
