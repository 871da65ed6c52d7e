"""
SlotStore: the storage contract the scheduling engine runs against.

All queries go through one SQLAlchemy session. Capacity changes are a single
conditional UPDATE so concurrent reservations are serialized by the database,
never by a read-check-write in Python.
"""

from __future__ import annotations

from datetime import date, datetime
from typing import Iterable, List, Optional, Sequence, Tuple
from uuid import UUID

from sqlalchemy import and_, func, or_, select, true, update
from sqlalchemy.orm import Session

from hms_scheduling.models.appointment import Appointment, AppointmentStatus, INACTIVE_STATUSES
from hms_scheduling.models.provider import Provider
from hms_scheduling.models.provider_schedule import ProviderScheduleRule
from hms_scheduling.models.resource import Resource
from hms_scheduling.models.slot import AppointmentSlot, SlotType
from hms_scheduling.models.time_off import ProviderTimeOff, TimeOffStatus
from hms_scheduling.scheduling.drafts import SlotDraft


class SlotStore:
    def __init__(self, db: Session):
        self.db = db

    # ---------- lookups ----------
    def get_slot(self, slot_id: UUID) -> Optional[AppointmentSlot]:
        return self.db.get(AppointmentSlot, slot_id)

    def get_provider(self, provider_id: UUID, lock: bool = False) -> Optional[Provider]:
        stmt = select(Provider).where(Provider.provider_id == provider_id)
        if lock:
            # serializes slot writes per provider; ignored by SQLite
            stmt = stmt.with_for_update()
        return self.db.execute(stmt).scalars().first()

    def get_resource(self, resource_id: UUID) -> Optional[Resource]:
        return self.db.get(Resource, resource_id)

    # ---------- slot writes ----------
    def create_slot(self, draft: SlotDraft) -> AppointmentSlot:
        slot = AppointmentSlot(
            provider_id=draft.provider_id,
            resource_id=draft.resource_id,
            start_time=draft.start_time,
            end_time=draft.end_time,
            duration=draft.duration,
            slot_type=draft.slot_type,
            max_bookings=draft.max_bookings,
            current_bookings=0,
            is_available=draft.is_available,
            is_bookable=draft.is_bookable,
            buffer_before=draft.buffer_before,
            buffer_after=draft.buffer_after,
            specialty=draft.specialty,
            notes=draft.notes,
        )
        self.db.add(slot)
        # later overlap queries in the same transaction must see this row
        self.db.flush()
        return slot

    def delete_slot(self, slot: AppointmentSlot) -> None:
        self.db.delete(slot)
        self.db.flush()

    def update_slot_counts(self, slot_id: UUID, delta: int) -> bool:
        """
        Atomically apply `delta` to current_bookings.

        Increments only succeed on an available, bookable slot with room left;
        decrements never go below zero. Returns False when no row qualified.
        """
        if delta == 0:
            return self.get_slot(slot_id) is not None

        conditions = [AppointmentSlot.slot_id == slot_id]
        if delta > 0:
            conditions += [
                AppointmentSlot.is_available == True,  # noqa: E712
                AppointmentSlot.is_bookable == True,  # noqa: E712
                AppointmentSlot.current_bookings + delta <= AppointmentSlot.max_bookings,
            ]
        else:
            conditions.append(AppointmentSlot.current_bookings + delta >= 0)

        result = self.db.execute(
            update(AppointmentSlot)
            .where(and_(*conditions))
            .values(current_bookings=AppointmentSlot.current_bookings + delta)
            .execution_options(synchronize_session=False)
        )
        changed = result.rowcount == 1
        if changed:
            # drop the stale in-session copy so readers reload the count
            slot = self.db.get(AppointmentSlot, slot_id)
            if slot is not None:
                self.db.expire(slot, ["current_bookings"])
        return changed

    # ---------- overlap queries ----------
    def find_overlapping_slots(
        self,
        start: datetime,
        end: datetime,
        provider_id: Optional[UUID] = None,
        resource_id: Optional[UUID] = None,
        exclude_slot_id: Optional[UUID] = None,
        only_available: bool = True,
    ) -> List[AppointmentSlot]:
        scope = []
        if provider_id is not None:
            scope.append(AppointmentSlot.provider_id == provider_id)
        if resource_id is not None:
            scope.append(AppointmentSlot.resource_id == resource_id)
        if not scope:
            return []

        conditions = [
            or_(*scope),
            AppointmentSlot.start_time < end,
            AppointmentSlot.end_time > start,
        ]
        if only_available:
            conditions.append(AppointmentSlot.is_available == True)  # noqa: E712
        if exclude_slot_id is not None:
            conditions.append(AppointmentSlot.slot_id != exclude_slot_id)

        return (
            self.db.execute(
                select(AppointmentSlot).where(and_(*conditions)).order_by(AppointmentSlot.start_time)
            )
            .scalars()
            .all()
        )

    def find_slots_starting_between(
        self, provider_id: UUID, start: datetime, end: datetime
    ) -> List[AppointmentSlot]:
        return (
            self.db.execute(
                select(AppointmentSlot)
                .where(
                    and_(
                        AppointmentSlot.provider_id == provider_id,
                        AppointmentSlot.start_time >= start,
                        AppointmentSlot.start_time < end,
                    )
                )
                .order_by(AppointmentSlot.start_time)
            )
            .scalars()
            .all()
        )

    def search_slots(
        self,
        provider_id: Optional[UUID] = None,
        resource_id: Optional[UUID] = None,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        slot_type: Optional[SlotType] = None,
        specialty: Optional[str] = None,
        min_duration: Optional[int] = None,
        available_only: bool = True,
        offset: int = 0,
        limit: int = 20,
    ) -> Tuple[List[AppointmentSlot], int]:
        conditions = []
        if provider_id is not None:
            conditions.append(AppointmentSlot.provider_id == provider_id)
        if resource_id is not None:
            conditions.append(AppointmentSlot.resource_id == resource_id)
        if start is not None:
            conditions.append(AppointmentSlot.start_time >= start)
        if end is not None:
            conditions.append(AppointmentSlot.start_time <= end)
        if slot_type is not None:
            conditions.append(AppointmentSlot.slot_type == slot_type)
        if specialty is not None:
            conditions.append(AppointmentSlot.specialty == specialty)
        if min_duration is not None:
            conditions.append(AppointmentSlot.duration >= min_duration)
        if available_only:
            conditions += [
                AppointmentSlot.is_available == True,  # noqa: E712
                AppointmentSlot.is_bookable == True,  # noqa: E712
                AppointmentSlot.current_bookings < AppointmentSlot.max_bookings,
            ]

        where = and_(*conditions) if conditions else true()
        total = self.db.execute(select(func.count()).select_from(AppointmentSlot).where(where)).scalar_one()
        rows = (
            self.db.execute(
                select(AppointmentSlot)
                .where(where)
                .order_by(AppointmentSlot.start_time)
                .offset(offset)
                .limit(limit)
            )
            .scalars()
            .all()
        )
        return rows, int(total)

    # ---------- schedule inputs ----------
    def find_provider_schedule_rules(
        self, provider_id: UUID, weekdays: Iterable[int]
    ) -> List[ProviderScheduleRule]:
        days = sorted(set(int(d) for d in weekdays))
        if not days:
            return []
        return (
            self.db.execute(
                select(ProviderScheduleRule).where(
                    and_(
                        ProviderScheduleRule.provider_id == provider_id,
                        ProviderScheduleRule.day_of_week.in_(days),
                    )
                )
            )
            .scalars()
            .all()
        )

    def find_approved_time_off(
        self, provider_id: UUID, first_date: date, last_date: date
    ) -> List[ProviderTimeOff]:
        return (
            self.db.execute(
                select(ProviderTimeOff)
                .where(
                    and_(
                        ProviderTimeOff.provider_id == provider_id,
                        ProviderTimeOff.status == TimeOffStatus.APPROVED,
                        ProviderTimeOff.start_date <= last_date,
                        ProviderTimeOff.end_date >= first_date,
                    )
                )
                .order_by(ProviderTimeOff.start_date)
            )
            .scalars()
            .all()
        )

    # ---------- appointments ----------
    def find_active_appointments_for_slot(
        self,
        slot_id: UUID,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        exclude_appointment_id: Optional[UUID] = None,
    ) -> Sequence[Appointment]:
        conditions = [
            Appointment.slot_id == slot_id,
            Appointment.status.not_in(INACTIVE_STATUSES),
        ]
        if start is not None and end is not None:
            conditions += [Appointment.scheduled_start < end, Appointment.scheduled_end > start]
        if exclude_appointment_id is not None:
            conditions.append(Appointment.appointment_id != exclude_appointment_id)

        return (
            self.db.execute(
                select(Appointment).where(and_(*conditions)).order_by(Appointment.scheduled_start)
            )
            .scalars()
            .all()
        )

    def count_appointments_for_slot(self, slot_id: UUID) -> int:
        """Every appointment row bound to the slot, whatever its status."""
        return int(
            self.db.execute(
                select(func.count()).select_from(Appointment).where(Appointment.slot_id == slot_id)
            ).scalar_one()
        )

    def get_appointment(self, appointment_id: UUID) -> Optional[Appointment]:
        return self.db.get(Appointment, appointment_id)

    def search_appointments(
        self,
        patient_id: Optional[UUID] = None,
        provider_id: Optional[UUID] = None,
        slot_id: Optional[UUID] = None,
        status: Optional[AppointmentStatus] = None,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        offset: int = 0,
        limit: int = 20,
    ) -> Tuple[List[Appointment], int]:
        conditions = []
        if patient_id is not None:
            conditions.append(Appointment.patient_id == patient_id)
        if provider_id is not None:
            conditions.append(Appointment.provider_id == provider_id)
        if slot_id is not None:
            conditions.append(Appointment.slot_id == slot_id)
        if status is not None:
            conditions.append(Appointment.status == status)
        if start is not None:
            conditions.append(Appointment.scheduled_start >= start)
        if end is not None:
            conditions.append(Appointment.scheduled_start <= end)

        where = and_(*conditions) if conditions else true()
        total = self.db.execute(select(func.count()).select_from(Appointment).where(where)).scalar_one()
        rows = (
            self.db.execute(
                select(Appointment)
                .where(where)
                .order_by(Appointment.scheduled_start)
                .offset(offset)
                .limit(limit)
            )
            .scalars()
            .all()
        )
        return rows, int(total)
