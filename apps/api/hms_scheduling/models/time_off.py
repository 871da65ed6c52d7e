import enum
import uuid
from sqlalchemy import Column, Date, DateTime, Enum, ForeignKey, String, Text, Uuid
from sqlalchemy.sql import func

from hms_scheduling.core.database import Base

class TimeOffStatus(str, enum.Enum):
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"

class TimeOffType(str, enum.Enum):
    VACATION = "VACATION"
    SICK_LEAVE = "SICK_LEAVE"
    PERSONAL_LEAVE = "PERSONAL_LEAVE"
    TRAINING = "TRAINING"
    CONFERENCE = "CONFERENCE"
    OTHER = "OTHER"

class ProviderTimeOff(Base):
    __tablename__ = "provider_time_off"

    time_off_id = Column(Uuid, primary_key=True, default=uuid.uuid4)

    provider_id = Column(
        Uuid,
        ForeignKey("providers.provider_id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    # inclusive calendar dates
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=False)

    type = Column(Enum(TimeOffType, name="time_off_type"), nullable=False)
    status = Column(Enum(TimeOffStatus, name="time_off_status"), nullable=False, default=TimeOffStatus.PENDING)
    reason = Column(String, nullable=False)
    approved_by = Column(String, nullable=True)
    approved_at = Column(DateTime(timezone=True), nullable=True)
    notes = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
