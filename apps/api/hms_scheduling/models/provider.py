import uuid
from sqlalchemy import Column, String, Boolean, DateTime, Uuid
from sqlalchemy.sql import func

from hms_scheduling.core.database import Base

class Provider(Base):
    """Read-side reference to a clinical staff member owned by the staff system."""

    __tablename__ = "providers"

    provider_id = Column(Uuid, primary_key=True, default=uuid.uuid4)

    name = Column(String, nullable=False)
    specialization = Column(String, nullable=True)
    department = Column(String, nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
