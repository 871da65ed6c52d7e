"""
Conflict detection for slot writes and appointment bookings.

Checks run in a fixed order and every hit is reported, so callers can show
all reasons a request was refused at once:
  1. other available slots of the same provider/resource overlapping the interval
  2. active appointments of the same slot overlapping it, once they fill the slot
  3. approved time-off covering any local date of the interval
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional
from uuid import UUID
from zoneinfo import ZoneInfo

from hms_scheduling.models.appointment import Appointment
from hms_scheduling.models.slot import AppointmentSlot
from hms_scheduling.models.time_off import ProviderTimeOff
from hms_scheduling.scheduling.timeutils import get_clinic_timezone, local_dates_touched
from hms_scheduling.services.slot_store import SlotStore

logger = logging.getLogger(__name__)


class ConflictType(str, enum.Enum):
    TIME_CONFLICT = "TIME_CONFLICT"
    PROVIDER_UNAVAILABLE = "PROVIDER_UNAVAILABLE"


@dataclass
class Conflict:
    type: ConflictType
    message: str
    slots: List[AppointmentSlot] = field(default_factory=list)
    appointments: List[Appointment] = field(default_factory=list)
    time_off: List[ProviderTimeOff] = field(default_factory=list)

    # ids are captured up front; the records expire once the transaction ends
    slot_ids: List[UUID] = field(init=False)
    appointment_ids: List[UUID] = field(init=False)
    time_off_ids: List[UUID] = field(init=False)

    def __post_init__(self):
        self.slot_ids = [s.slot_id for s in self.slots]
        self.appointment_ids = [a.appointment_id for a in self.appointments]
        self.time_off_ids = [t.time_off_id for t in self.time_off]


class ConflictDetector:
    def __init__(self, store: SlotStore, tz: Optional[ZoneInfo] = None):
        self.store = store
        self.tz = tz or get_clinic_timezone()

    def detect_conflicts(
        self,
        start: datetime,
        end: datetime,
        provider_id: UUID,
        resource_id: Optional[UUID] = None,
        exclude_slot_id: Optional[UUID] = None,
        slot: Optional[AppointmentSlot] = None,
        exclude_appointment_id: Optional[UUID] = None,
    ) -> List[Conflict]:
        """
        Return every conflict for [start, end) in the provider/resource scope.

        `slot` is the slot an appointment is (or will be) bound to; when given,
        its own active appointments are checked against its capacity.
        """
        conflicts: List[Conflict] = []

        overlapping = self.store.find_overlapping_slots(
            start,
            end,
            provider_id=provider_id,
            resource_id=resource_id,
            exclude_slot_id=exclude_slot_id,
        )
        if overlapping:
            conflicts.append(
                Conflict(
                    type=ConflictType.TIME_CONFLICT,
                    message="Interval overlaps with existing provider or resource slots",
                    slots=list(overlapping),
                )
            )

        if slot is not None:
            appointments = self.store.find_active_appointments_for_slot(
                slot.slot_id,
                start=start,
                end=end,
                exclude_appointment_id=exclude_appointment_id,
            )
            if len(appointments) >= slot.max_bookings:
                conflicts.append(
                    Conflict(
                        type=ConflictType.TIME_CONFLICT,
                        message="Appointment time conflicts with existing appointments",
                        appointments=list(appointments),
                    )
                )

        first_date, last_date = local_dates_touched(start, end, self.tz)
        time_off = self.store.find_approved_time_off(provider_id, first_date, last_date)
        if time_off:
            conflicts.append(
                Conflict(
                    type=ConflictType.PROVIDER_UNAVAILABLE,
                    message="Provider is not available during requested time",
                    time_off=list(time_off),
                )
            )

        if conflicts:
            logger.info(
                "Conflicts for provider %s in [%s, %s): %s",
                provider_id,
                start.isoformat(),
                end.isoformat(),
                ", ".join(c.type.value for c in conflicts),
            )
        return conflicts
