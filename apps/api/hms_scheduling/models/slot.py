import enum
import uuid
from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    Enum,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    Uuid,
)
from sqlalchemy.sql import func

from hms_scheduling.core.database import Base

from hms_scheduling.models.provider import Provider  # noqa: F401
from hms_scheduling.models.resource import Resource  # noqa: F401


class SlotType(str, enum.Enum):
    CONSULTATION = "CONSULTATION"
    LAB_TEST = "LAB_TEST"
    IMAGING = "IMAGING"
    SURGERY = "SURGERY"
    FOLLOW_UP = "FOLLOW_UP"
    EMERGENCY = "EMERGENCY"
    GROUP_SESSION = "GROUP_SESSION"
    TELEMEDICINE = "TELEMEDICINE"


class AppointmentSlot(Base):
    __tablename__ = "appointment_slots"
    __table_args__ = (
        CheckConstraint("start_time < end_time", name="ck_slot_time_order"),
        CheckConstraint("max_bookings >= 1", name="ck_slot_max_bookings"),
        CheckConstraint(
            "current_bookings >= 0 AND current_bookings <= max_bookings",
            name="ck_slot_current_bookings",
        ),
        Index("ix_appointment_slots_provider_start", "provider_id", "start_time"),
    )

    slot_id = Column(Uuid, primary_key=True, default=uuid.uuid4)

    provider_id = Column(Uuid, ForeignKey("providers.provider_id", ondelete="CASCADE"), nullable=False)
    resource_id = Column(Uuid, ForeignKey("resources.resource_id", ondelete="SET NULL"), nullable=True, index=True)

    # naive UTC instants
    start_time = Column(DateTime, nullable=False)
    end_time = Column(DateTime, nullable=False)
    duration = Column(Integer, nullable=False)  # minutes

    slot_type = Column(Enum(SlotType, name="slot_type"), nullable=False)
    max_bookings = Column(Integer, nullable=False, default=1)
    current_bookings = Column(Integer, nullable=False, default=0)
    is_available = Column(Boolean, nullable=False, default=True)
    is_bookable = Column(Boolean, nullable=False, default=True)

    buffer_before = Column(Integer, nullable=False, default=0)
    buffer_after = Column(Integer, nullable=False, default=0)

    specialty = Column(String, nullable=True)
    notes = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    @property
    def is_full(self) -> bool:
        return self.current_bookings >= self.max_bookings

    @property
    def is_free(self) -> bool:
        """Open for one more reservation right now."""
        return bool(self.is_available and self.is_bookable and not self.is_full)
