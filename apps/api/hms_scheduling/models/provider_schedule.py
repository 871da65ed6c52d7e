import uuid
from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    SmallInteger,
    Text,
    Time,
    UniqueConstraint,
    Uuid,
)
from sqlalchemy.sql import func

from hms_scheduling.core.database import Base

class ProviderScheduleRule(Base):
    __tablename__ = "provider_schedules"
    __table_args__ = (
        UniqueConstraint("provider_id", "day_of_week", name="uq_provider_schedule_day"),
    )

    schedule_id = Column(Uuid, primary_key=True, default=uuid.uuid4)

    provider_id = Column(
        Uuid,
        ForeignKey("providers.provider_id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    # 0=Mon ... 6=Sun (date.weekday()); JavaScript getDay() clients must shift by one
    day_of_week = Column(SmallInteger, nullable=False)

    # local times in settings.clinic_timezone
    work_start = Column(Time, nullable=False)
    work_end = Column(Time, nullable=False)
    break_start = Column(Time, nullable=True)
    break_end = Column(Time, nullable=True)

    is_working = Column(Boolean, nullable=False, default=True)
    slot_duration = Column(Integer, nullable=False, default=30)
    buffer_time = Column(Integer, nullable=False, default=5)
    max_appointments_per_hour = Column(Integer, nullable=False, default=2)
    notes = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)
