import enum
import uuid
from sqlalchemy import Column, DateTime, Enum, ForeignKey, String, Text, Uuid
from sqlalchemy.sql import func

from hms_scheduling.core.database import Base

from hms_scheduling.models.slot import AppointmentSlot  # noqa: F401


class AppointmentStatus(str, enum.Enum):
    SCHEDULED = "SCHEDULED"
    CONFIRMED = "CONFIRMED"
    CHECKED_IN = "CHECKED_IN"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"
    NO_SHOW = "NO_SHOW"
    RESCHEDULED = "RESCHEDULED"


TERMINAL_STATUSES = frozenset(
    {AppointmentStatus.COMPLETED, AppointmentStatus.CANCELLED, AppointmentStatus.NO_SHOW}
)

# appointments in these statuses no longer compete for their slot
INACTIVE_STATUSES = (AppointmentStatus.CANCELLED, AppointmentStatus.NO_SHOW)


class AppointmentType(str, enum.Enum):
    GENERAL_CONSULTATION = "GENERAL_CONSULTATION"
    SPECIALIST_CONSULTATION = "SPECIALIST_CONSULTATION"
    LAB_TEST = "LAB_TEST"
    IMAGING = "IMAGING"
    SURGERY = "SURGERY"
    FOLLOW_UP = "FOLLOW_UP"
    EMERGENCY = "EMERGENCY"
    TELEMEDICINE = "TELEMEDICINE"
    PREVENTIVE_CARE = "PREVENTIVE_CARE"


class AppointmentPriority(str, enum.Enum):
    ROUTINE = "ROUTINE"
    URGENT = "URGENT"
    EMERGENCY = "EMERGENCY"
    VIP = "VIP"
    FOLLOW_UP = "FOLLOW_UP"


class Appointment(Base):
    __tablename__ = "appointments"

    appointment_id = Column(Uuid, primary_key=True, default=uuid.uuid4)

    patient_id = Column(Uuid, nullable=False, index=True)  # owned by the patient registry
    slot_id = Column(Uuid, ForeignKey("appointment_slots.slot_id", ondelete="RESTRICT"), nullable=False, index=True)
    provider_id = Column(Uuid, ForeignKey("providers.provider_id", ondelete="CASCADE"), nullable=False, index=True)

    status = Column(Enum(AppointmentStatus, name="appointment_status"), nullable=False, default=AppointmentStatus.SCHEDULED)
    appointment_type = Column(Enum(AppointmentType, name="appointment_type"), nullable=False)
    priority = Column(Enum(AppointmentPriority, name="appointment_priority"), nullable=False, default=AppointmentPriority.ROUTINE)

    reason = Column(String, nullable=True)
    notes = Column(Text, nullable=True)

    # naive UTC instants
    scheduled_start = Column(DateTime, nullable=False)
    scheduled_end = Column(DateTime, nullable=False)
    check_in_time = Column(DateTime, nullable=True)
    actual_start = Column(DateTime, nullable=True)
    actual_end = Column(DateTime, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)
