"""Tests for provider availability aggregation."""

from datetime import date, datetime, time, timedelta
from uuid import uuid4
from zoneinfo import ZoneInfo

import pytest

from hms_scheduling.core.errors import NotFoundError, ValidationError
from hms_scheduling.models.provider_schedule import ProviderScheduleRule
from hms_scheduling.models.time_off import ProviderTimeOff, TimeOffStatus, TimeOffType
from hms_scheduling.scheduling.timeutils import Weekday
from hms_scheduling.services.availability import AvailabilityComputer, AvailabilityOptions
from hms_scheduling.services.slot_store import SlotStore

UTC = ZoneInfo("UTC")
MONDAY = date(2024, 1, 1)


@pytest.fixture
def computer(db):
    return AvailabilityComputer(SlotStore(db), tz=UTC)


@pytest.fixture
def monday_rule(db, provider):
    rule = ProviderScheduleRule(
        provider_id=provider.provider_id,
        day_of_week=Weekday.MONDAY,
        work_start=time(9, 0),
        work_end=time(17, 0),
        slot_duration=60,
        buffer_time=0,
    )
    db.add(rule)
    db.commit()
    return rule


@pytest.fixture
def hourly_slots(make_slot):
    return [make_slot(datetime(2024, 1, 1, h, 0), minutes=60) for h in range(9, 17)]


class TestForDate:
    def test_fully_open_monday(self, computer, provider, monday_rule, hourly_slots):
        """MON 09:00-17:00, 60-minute cells, 8 free slots -> 8/8/100%."""
        day = computer.for_date(provider.provider_id, MONDAY)

        assert day.total_slots == 8
        assert day.available_slots_count == 8
        assert day.availability_percentage == 100
        assert day.is_available
        assert not day.template.is_default

    def test_default_schedule_when_no_rule(self, computer, provider):
        day = computer.for_date(provider.provider_id, MONDAY)

        assert day.template.is_default
        assert day.template.work_start == time(9, 0)
        assert day.total_slots == 16
        assert day.available_slots_count == 0
        assert not day.is_available

    def test_booked_slot_reduces_availability(self, db, computer, provider, monday_rule, hourly_slots):
        hourly_slots[0].current_bookings = 1
        db.commit()

        day = computer.for_date(provider.provider_id, MONDAY)

        assert day.cells[0].is_booked
        assert day.available_slots_count == 7
        assert day.availability_percentage == 88

    def test_ignoring_bookings(self, db, computer, provider, monday_rule, hourly_slots):
        hourly_slots[0].current_bookings = 1
        db.commit()

        day = computer.for_date(provider.provider_id, MONDAY, AvailabilityOptions(include_bookings=False))
        assert not day.cells[0].is_booked

    def test_approved_time_off_blocks_day(self, db, computer, provider, monday_rule, hourly_slots):
        leave = ProviderTimeOff(
            provider_id=provider.provider_id,
            start_date=MONDAY,
            end_date=MONDAY + timedelta(days=4),
            type=TimeOffType.CONFERENCE,
            status=TimeOffStatus.APPROVED,
            reason="ESC congress",
        )
        db.add(leave)
        db.commit()

        day = computer.for_date(provider.provider_id, MONDAY)
        assert not day.is_available
        assert day.available_slots_count == 0
        assert day.time_off == [leave]

        ignoring = computer.for_date(provider.provider_id, MONDAY, AvailabilityOptions(include_time_off=False))
        assert ignoring.available_slots_count == 8

    def test_non_working_rule(self, db, computer, provider, monday_rule, hourly_slots):
        monday_rule.is_working = False
        db.commit()

        day = computer.for_date(provider.provider_id, MONDAY)
        assert not day.is_available

    def test_today_and_past_flags(self, computer, provider):
        day = computer.for_date(provider.provider_id, MONDAY, AvailabilityOptions(today=MONDAY))
        assert day.is_today and not day.is_past

        past = computer.for_date(provider.provider_id, MONDAY, AvailabilityOptions(today=date(2024, 2, 1)))
        assert past.is_past

    def test_missing_provider(self, computer):
        with pytest.raises(NotFoundError):
            computer.for_date(uuid4(), MONDAY)


class TestForRange:
    def test_week_range(self, computer, provider, monday_rule, hourly_slots):
        days = computer.for_range(
            provider.provider_id, MONDAY, MONDAY + timedelta(days=6), AvailabilityOptions(today=MONDAY)
        )

        assert [d.date for d in days] == [MONDAY + timedelta(days=i) for i in range(7)]
        assert days[0].is_available
        assert not any(d.is_available for d in days[1:])

    def test_past_dates_skipped_by_default(self, computer, provider):
        days = computer.for_range(
            provider.provider_id, MONDAY, MONDAY + timedelta(days=6), AvailabilityOptions(today=date(2024, 1, 4))
        )
        assert [d.date.day for d in days] == [4, 5, 6, 7]

    def test_past_dates_included_on_request(self, computer, provider):
        opts = AvailabilityOptions(today=date(2024, 1, 4), include_past_dates=True)
        days = computer.for_range(provider.provider_id, MONDAY, MONDAY + timedelta(days=6), opts)
        assert len(days) == 7
        assert days[0].is_past

    def test_end_before_start(self, computer, provider):
        with pytest.raises(ValidationError):
            computer.for_range(provider.provider_id, MONDAY, MONDAY - timedelta(days=1))

    def test_range_too_long(self, computer, provider):
        with pytest.raises(ValidationError):
            computer.for_range(provider.provider_id, MONDAY, MONDAY + timedelta(days=400))

    def test_slots_grouped_by_local_date(self, db, provider, make_slot):
        """A 23:00 UTC slot belongs to the next day in a UTC+2 clinic."""
        ahead = ZoneInfo("Africa/Johannesburg")
        make_slot(datetime(2024, 1, 1, 23, 0), minutes=60)
        rule = ProviderScheduleRule(
            provider_id=provider.provider_id,
            day_of_week=Weekday.TUESDAY,
            work_start=time(1, 0),
            work_end=time(2, 0),
            slot_duration=60,
        )
        db.add(rule)
        db.commit()

        computer = AvailabilityComputer(SlotStore(db), tz=ahead)
        days = computer.for_range(provider.provider_id, MONDAY, MONDAY + timedelta(days=1), AvailabilityOptions(today=MONDAY))

        assert days[0].available_slots_count == 0
        assert days[1].available_slots_count == 1
