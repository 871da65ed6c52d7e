"""
SchedulingService

Orchestrates slot and appointment mutations:
  - every check runs before the write it guards
  - capacity moves only through BookingCoordinator
  - events are published after the transaction commits
"""

from __future__ import annotations

import logging
from dataclasses import replace
from datetime import date, datetime
from typing import Any, Callable, Dict, List, Optional, Tuple
from uuid import UUID

from sqlalchemy.orm import Session
from zoneinfo import ZoneInfo

from hms_scheduling.core.config import settings
from hms_scheduling.core.errors import (
    CapacityExceededError,
    ConflictError,
    ImmutableStateError,
    NotFoundError,
    TerminalStateError,
    ValidationError,
)
from hms_scheduling.models.appointment import (
    Appointment,
    AppointmentPriority,
    AppointmentStatus,
    AppointmentType,
    TERMINAL_STATUSES,
)
from hms_scheduling.models.slot import AppointmentSlot
from hms_scheduling.scheduling.bulk import BulkSlotCriteria, BulkSlotPlan
from hms_scheduling.scheduling.drafts import SlotDraft
from hms_scheduling.scheduling.recurrence import DateStepper, RecurrencePattern, RecurrencePlan
from hms_scheduling.scheduling.timeutils import get_clinic_timezone, to_utc_naive, utc_now
from hms_scheduling.services.availability import AvailabilityComputer, AvailabilityDay, AvailabilityOptions
from hms_scheduling.services.booking import BookingCoordinator
from hms_scheduling.services.conflicts import ConflictDetector
from hms_scheduling.services.events import EventPublisher, EventType, SchedulingEvent
from hms_scheduling.services.slot_store import SlotStore
from hms_scheduling.services.slot_writer import ConflictPolicy, GenerationReport, SlotWriter

logger = logging.getLogger(__name__)

# fields that move a slot in time or between owners
STRUCTURAL_SLOT_FIELDS = frozenset({"start_time", "end_time", "duration", "provider_id", "resource_id"})
EDITABLE_SLOT_FIELDS = STRUCTURAL_SLOT_FIELDS | {
    "slot_type",
    "max_bookings",
    "is_available",
    "is_bookable",
    "buffer_before",
    "buffer_after",
    "specialty",
    "notes",
}

# forward steps of the appointment lifecycle; CANCELLED / NO_SHOW are allowed from any non-terminal state
NEXT_STATUS = {
    AppointmentStatus.SCHEDULED: AppointmentStatus.CONFIRMED,
    AppointmentStatus.RESCHEDULED: AppointmentStatus.CONFIRMED,
    AppointmentStatus.CONFIRMED: AppointmentStatus.CHECKED_IN,
    AppointmentStatus.CHECKED_IN: AppointmentStatus.IN_PROGRESS,
    AppointmentStatus.IN_PROGRESS: AppointmentStatus.COMPLETED,
}


def _append_note(existing: Optional[str], line: str) -> str:
    return f"{existing}\n{line}" if existing else line


def appointment_payload(appt: Appointment) -> Dict[str, Any]:
    return {
        "appointment_id": str(appt.appointment_id),
        "patient_id": str(appt.patient_id),
        "provider_id": str(appt.provider_id),
        "slot_id": str(appt.slot_id),
        "status": appt.status.value,
        "appointment_type": appt.appointment_type.value,
        "priority": appt.priority.value,
        "scheduled_start": appt.scheduled_start.isoformat(),
        "scheduled_end": appt.scheduled_end.isoformat(),
    }


class SchedulingService:
    def __init__(
        self,
        db: Session,
        publisher: Optional[EventPublisher] = None,
        tz: Optional[ZoneInfo] = None,
        booking: Optional[BookingCoordinator] = None,
    ):
        self.db = db
        self.tz = tz or get_clinic_timezone()
        self.store = SlotStore(db)
        self.detector = ConflictDetector(self.store, self.tz)
        self.booking = booking or BookingCoordinator(self.store)
        self.availability = AvailabilityComputer(self.store, self.tz)
        self.publisher = publisher or EventPublisher()

    # =====================================================================
    # Slots
    # =====================================================================
    def get_slot(self, slot_id: UUID) -> AppointmentSlot:
        slot = self.store.get_slot(slot_id)
        if slot is None:
            raise NotFoundError("Slot not found")
        return slot

    def search_slots(self, **filters) -> Tuple[List[AppointmentSlot], int]:
        return self.store.search_slots(**filters)

    def create_slot(self, draft: SlotDraft) -> AppointmentSlot:
        draft = replace(draft, start_time=to_utc_naive(draft.start_time), end_time=to_utc_naive(draft.end_time))
        if draft.start_time >= draft.end_time:
            raise ValidationError("start_time must be before end_time")
        if draft.duration <= 0:
            raise ValidationError("duration must be positive")
        if draft.max_bookings < 1:
            raise ValidationError("max_bookings must be >= 1")

        if self.store.get_provider(draft.provider_id, lock=True) is None:
            raise NotFoundError("Provider not found")
        if draft.resource_id is not None and self.store.get_resource(draft.resource_id) is None:
            raise NotFoundError("Resource not found")

        conflicts = self.detector.detect_conflicts(
            draft.start_time, draft.end_time, draft.provider_id, resource_id=draft.resource_id
        )
        if conflicts:
            self.db.rollback()
            raise ConflictError("Slot conflicts with existing schedule", conflicts)

        slot = self.store.create_slot(draft)
        self.db.commit()
        self.db.refresh(slot)
        logger.info("Created slot %s for provider %s at %s", slot.slot_id, slot.provider_id, slot.start_time.isoformat())
        return slot

    def update_slot(self, slot_id: UUID, changes: Dict[str, Any]) -> AppointmentSlot:
        unknown = set(changes) - EDITABLE_SLOT_FIELDS
        if unknown:
            raise ValidationError(f"Fields cannot be edited: {', '.join(sorted(unknown))}")

        changes = dict(changes)
        for key in ("start_time", "end_time"):
            if changes.get(key) is not None:
                changes[key] = to_utc_naive(changes[key])

        slot = self.get_slot(slot_id)
        structural = {k for k in changes if k in STRUCTURAL_SLOT_FIELDS and changes[k] != getattr(slot, k)}
        if structural and slot.current_bookings > 0:
            raise ImmutableStateError("Slot has active bookings; time and owner cannot change")

        if "max_bookings" in changes and changes["max_bookings"] < max(1, slot.current_bookings):
            raise ValidationError("max_bookings cannot drop below current bookings")

        start = changes.get("start_time", slot.start_time)
        end = changes.get("end_time", slot.end_time)
        provider_id = changes.get("provider_id", slot.provider_id)
        resource_id = changes.get("resource_id", slot.resource_id)
        if start >= end:
            raise ValidationError("start_time must be before end_time")
        if ("start_time" in changes or "end_time" in changes) and "duration" not in changes:
            changes["duration"] = int((end - start).total_seconds() // 60)

        reopening = bool(changes.get("is_available")) and not slot.is_available
        if structural or reopening:
            if self.store.get_provider(provider_id, lock=True) is None:
                raise NotFoundError("Provider not found")
            if resource_id is not None and self.store.get_resource(resource_id) is None:
                raise NotFoundError("Resource not found")
            conflicts = self.detector.detect_conflicts(
                start, end, provider_id, resource_id=resource_id, exclude_slot_id=slot.slot_id
            )
            if conflicts:
                self.db.rollback()
                raise ConflictError("Slot conflicts with existing schedule", conflicts)

        for key, value in changes.items():
            setattr(slot, key, value)
        self.db.commit()
        self.db.refresh(slot)
        return slot

    def delete_slot(self, slot_id: UUID) -> None:
        slot = self.get_slot(slot_id)
        if slot.current_bookings > 0:
            raise ImmutableStateError("Slot has active bookings and cannot be deleted")
        if self.store.count_appointments_for_slot(slot_id) > 0:
            raise ImmutableStateError("Slot has appointment history; mark it unavailable instead")
        self.store.delete_slot(slot)
        self.db.commit()
        logger.info("Deleted slot %s", slot_id)

    def reserve(self, slot_id: UUID) -> bool:
        self.get_slot(slot_id)
        reserved = self.booking.reserve(slot_id)
        self.db.commit()
        return reserved

    def release(self, slot_id: UUID) -> None:
        self.get_slot(slot_id)
        self.booking.release(slot_id)
        self.db.commit()

    # =====================================================================
    # Generation
    # =====================================================================
    def generate_recurring(
        self,
        base_slot_id: UUID,
        pattern: RecurrencePattern,
        conflict_policy: ConflictPolicy = "skip",
        should_cancel: Optional[Callable[[], bool]] = None,
        stepper: Optional[DateStepper] = None,
    ) -> GenerationReport:
        base = self.store.get_slot(base_slot_id)
        if base is None:
            raise NotFoundError("Base slot not found")

        plan = RecurrencePlan(
            base,
            pattern,
            self.tz,
            horizon_days=settings.recurrence_default_horizon_days,
            stepper=stepper,
        )
        # materialize while the base slot is loaded; batch commits expire it
        drafts = list(plan)
        logger.info("Recurring expansion of slot %s produced %d candidates", base_slot_id, len(drafts))
        return SlotWriter(self.store, self.detector).write(drafts, conflict_policy, should_cancel)

    def generate_bulk(
        self,
        criteria: BulkSlotCriteria,
        conflict_policy: ConflictPolicy = "skip",
        should_cancel: Optional[Callable[[], bool]] = None,
    ) -> GenerationReport:
        if self.store.get_provider(criteria.provider_id) is None:
            raise NotFoundError("Provider not found")
        if criteria.resource_id is not None and self.store.get_resource(criteria.resource_id) is None:
            raise NotFoundError("Resource not found")

        plan = BulkSlotPlan(criteria, self.tz)
        return SlotWriter(self.store, self.detector).write(plan, conflict_policy, should_cancel)

    # =====================================================================
    # Availability
    # =====================================================================
    def availability_for_date(
        self, provider_id: UUID, d: date, opts: Optional[AvailabilityOptions] = None
    ) -> AvailabilityDay:
        return self.availability.for_date(provider_id, d, opts)

    def availability_for_range(
        self, provider_id: UUID, start: date, end: date, opts: Optional[AvailabilityOptions] = None
    ) -> List[AvailabilityDay]:
        return self.availability.for_range(provider_id, start, end, opts)

    # =====================================================================
    # Appointments
    # =====================================================================
    def get_appointment(self, appointment_id: UUID) -> Appointment:
        appt = self.store.get_appointment(appointment_id)
        if appt is None:
            raise NotFoundError("Appointment not found")
        return appt

    def list_appointments(self, **filters) -> Tuple[List[Appointment], int]:
        return self.store.search_appointments(**filters)

    def create_appointment(
        self,
        patient_id: UUID,
        slot_id: UUID,
        appointment_type: AppointmentType,
        priority: AppointmentPriority = AppointmentPriority.ROUTINE,
        scheduled_start: Optional[datetime] = None,
        scheduled_end: Optional[datetime] = None,
        reason: Optional[str] = None,
        notes: Optional[str] = None,
    ) -> Appointment:
        slot = self.store.get_slot(slot_id)
        if slot is None:
            raise NotFoundError("Appointment slot not found")
        if not (slot.is_available and slot.is_bookable):
            raise ValidationError("Appointment slot is not available for booking")
        if slot.is_full:
            raise CapacityExceededError("Appointment slot is fully booked")

        start = to_utc_naive(scheduled_start) if scheduled_start else slot.start_time
        end = to_utc_naive(scheduled_end) if scheduled_end else slot.end_time
        if start >= end:
            raise ValidationError("scheduled_start must be before scheduled_end")
        if start < slot.start_time or end > slot.end_time:
            raise ValidationError("Appointment window must fit inside the slot")

        conflicts = self.detector.detect_conflicts(
            start,
            end,
            slot.provider_id,
            resource_id=slot.resource_id,
            exclude_slot_id=slot.slot_id,
            slot=slot,
        )
        if conflicts:
            raise ConflictError(
                "Scheduling conflicts detected: " + ", ".join(c.message for c in conflicts),
                conflicts,
            )

        provider_id = slot.provider_id
        if not self.booking.reserve(slot_id):
            self.db.rollback()
            raise CapacityExceededError("Appointment slot is fully booked")

        appt = Appointment(
            patient_id=patient_id,
            slot_id=slot_id,
            provider_id=provider_id,
            status=AppointmentStatus.SCHEDULED,
            appointment_type=appointment_type,
            priority=priority,
            reason=reason,
            notes=notes,
            scheduled_start=start,
            scheduled_end=end,
        )
        self.db.add(appt)
        self.db.commit()
        self.db.refresh(appt)

        logger.info("Appointment %s booked on slot %s for patient %s", appt.appointment_id, slot_id, patient_id)
        self._publish(EventType.APPOINTMENT_CREATED, appt)
        return appt

    def reschedule_appointment(
        self,
        appointment_id: UUID,
        new_start: datetime,
        new_end: datetime,
        reason: Optional[str] = None,
    ) -> Appointment:
        appt = self.get_appointment(appointment_id)
        if appt.status in TERMINAL_STATUSES:
            raise TerminalStateError(f"Cannot reschedule a {appt.status.value.lower()} appointment")

        start = to_utc_naive(new_start)
        end = to_utc_naive(new_end)
        if start >= end:
            raise ValidationError("new start must be before new end")

        slot = self.get_slot(appt.slot_id)
        conflicts = self.detector.detect_conflicts(
            start,
            end,
            slot.provider_id,
            resource_id=slot.resource_id,
            exclude_slot_id=slot.slot_id,
            slot=slot,
            exclude_appointment_id=appt.appointment_id,
        )
        if conflicts:
            raise ConflictError(
                "Scheduling conflicts detected: " + ", ".join(c.message for c in conflicts),
                conflicts,
            )

        appt.scheduled_start = start
        appt.scheduled_end = end
        appt.status = AppointmentStatus.RESCHEDULED
        if reason:
            appt.notes = _append_note(appt.notes, f"Rescheduled: {reason}")
        self.db.commit()
        self.db.refresh(appt)

        logger.info("Appointment %s rescheduled to %s", appointment_id, start.isoformat())
        self._publish(EventType.APPOINTMENT_RESCHEDULED, appt)
        return appt

    def cancel_appointment(self, appointment_id: UUID, reason: str) -> Appointment:
        appt = self.get_appointment(appointment_id)
        if appt.status in TERMINAL_STATUSES:
            raise TerminalStateError(f"Appointment is already {appt.status.value.lower()}")

        slot_id = appt.slot_id
        self.booking.release(slot_id)

        # release may have rolled back on contention; reload before writing
        appt = self.get_appointment(appointment_id)
        appt.status = AppointmentStatus.CANCELLED
        appt.notes = _append_note(appt.notes, f"Cancelled: {reason}")
        self.db.commit()
        self.db.refresh(appt)

        logger.info("Appointment %s cancelled, seat on slot %s released", appointment_id, slot_id)
        self._publish(EventType.APPOINTMENT_CANCELLED, appt)
        return appt

    def update_status(
        self, appointment_id: UUID, status: AppointmentStatus, reason: Optional[str] = None
    ) -> Appointment:
        appt = self.get_appointment(appointment_id)
        current = appt.status
        if current in TERMINAL_STATUSES:
            raise TerminalStateError(f"Appointment is already {current.value.lower()}")

        if status == AppointmentStatus.CANCELLED:
            return self.cancel_appointment(appointment_id, reason or "status update")
        if status == AppointmentStatus.RESCHEDULED:
            raise ValidationError("Use the reschedule operation to move an appointment")
        if status != AppointmentStatus.NO_SHOW and NEXT_STATUS.get(current) != status:
            raise ValidationError(f"Invalid status transition {current.value} -> {status.value}")

        now = utc_now()
        if status == AppointmentStatus.CHECKED_IN:
            appt.check_in_time = now
        elif status == AppointmentStatus.IN_PROGRESS:
            appt.actual_start = now
        elif status == AppointmentStatus.COMPLETED:
            appt.actual_end = now
        if reason:
            appt.notes = _append_note(appt.notes, f"{status.value}: {reason}")

        appt.status = status
        self.db.commit()
        self.db.refresh(appt)

        logger.info("Appointment %s moved %s -> %s", appointment_id, current.value, status.value)
        self._publish(EventType.STATUS_CHANGED, appt, previous_status=current.value)
        return appt

    # ---------------------------------------------------------------------
    def _publish(self, event_type: EventType, appt: Appointment, **extra) -> None:
        payload = appointment_payload(appt)
        payload.update(extra)
        self.publisher.publish(
            SchedulingEvent(event_type=event_type, appointment_id=appt.appointment_id, payload=payload)
        )
