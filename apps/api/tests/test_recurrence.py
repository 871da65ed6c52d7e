"""Tests for recurring slot expansion."""

from datetime import date, datetime, timedelta
from types import SimpleNamespace
from uuid import uuid4
from zoneinfo import ZoneInfo

import pytest

from hms_scheduling.core.errors import ValidationError
from hms_scheduling.models.slot import SlotType
from hms_scheduling.scheduling.recurrence import (
    RecurrencePattern,
    RecurrencePatternType,
    RecurrencePlan,
)
from hms_scheduling.scheduling.timeutils import Weekday

UTC = ZoneInfo("UTC")


@pytest.fixture
def base_slot():
    """A 30-minute Monday 09:00 consultation."""
    return SimpleNamespace(
        provider_id=uuid4(),
        resource_id=None,
        start_time=datetime(2024, 1, 1, 9, 0),
        end_time=datetime(2024, 1, 1, 9, 30),
        duration=30,
        slot_type=SlotType.CONSULTATION,
        max_bookings=2,
        is_available=True,
        is_bookable=True,
        buffer_before=5,
        buffer_after=5,
        specialty="Cardiology",
        notes="follow-up clinic",
    )


def pattern(kind, days, start, end=None, interval=1, max_occurrences=None):
    return RecurrencePattern(
        pattern_type=kind,
        days_of_week=frozenset(days),
        start_date=start,
        end_date=end,
        interval=interval,
        max_occurrences=max_occurrences,
    )


class TestWeekly:
    def test_every_monday_in_january(self, base_slot):
        """WEEKLY/1/{MON} over January 2024 yields the five Mondays."""
        p = pattern(RecurrencePatternType.WEEKLY, {Weekday.MONDAY}, date(2024, 1, 1), date(2024, 1, 31))
        drafts = list(RecurrencePlan(base_slot, p, UTC))

        assert [d.start_time.day for d in drafts] == [1, 8, 15, 22, 29]
        assert all(d.start_time.hour == 9 for d in drafts)

    def test_only_the_cursor_weekday_is_checked(self, base_slot):
        """The cursor lands on the start weekday each week; other listed days never match."""
        p = pattern(
            RecurrencePatternType.WEEKLY,
            {Weekday.MONDAY, Weekday.WEDNESDAY},
            date(2024, 1, 1),
            date(2024, 1, 14),
        )
        days = [d.start_time.date() for d in RecurrencePlan(base_slot, p, UTC)]
        assert days == [date(2024, 1, 1), date(2024, 1, 8)]

    def test_start_off_the_listed_weekday_yields_nothing(self, base_slot):
        p = pattern(RecurrencePatternType.WEEKLY, {Weekday.MONDAY}, date(2024, 1, 2), date(2024, 1, 31))
        assert list(RecurrencePlan(base_slot, p, UTC)) == []

    def test_every_other_week(self, base_slot):
        p = pattern(RecurrencePatternType.WEEKLY, {Weekday.MONDAY}, date(2024, 1, 1), date(2024, 1, 31), interval=2)
        assert [d.start_time.day for d in RecurrencePlan(base_slot, p, UTC)] == [1, 15, 29]

    def test_max_occurrences_caps_output(self, base_slot):
        p = pattern(
            RecurrencePatternType.WEEKLY, {Weekday.MONDAY}, date(2024, 1, 1), date(2024, 12, 31), max_occurrences=3
        )
        assert len(list(RecurrencePlan(base_slot, p, UTC))) == 3


class TestOtherPatterns:
    def test_daily_filters_by_weekday(self, base_slot):
        """DAILY walks every day but only emits selected weekdays."""
        weekdays = {Weekday.MONDAY, Weekday.TUESDAY, Weekday.WEDNESDAY, Weekday.THURSDAY, Weekday.FRIDAY}
        p = pattern(RecurrencePatternType.DAILY, weekdays, date(2024, 1, 1), date(2024, 1, 14))
        assert len(list(RecurrencePlan(base_slot, p, UTC))) == 10

    def test_monthly_keeps_anchor_day(self, base_slot):
        all_days = set(range(7))
        p = pattern(RecurrencePatternType.MONTHLY, all_days, date(2024, 1, 31), date(2024, 5, 31))
        days = [d.start_time.date() for d in RecurrencePlan(base_slot, p, UTC)]
        assert days == [
            date(2024, 1, 31),
            date(2024, 2, 29),
            date(2024, 3, 31),
            date(2024, 4, 30),
            date(2024, 5, 31),
        ]

    def test_custom_stepper(self, base_slot):
        p = pattern(RecurrencePatternType.CUSTOM, set(range(7)), date(2024, 1, 1), date(2024, 1, 10))
        plan = RecurrencePlan(base_slot, p, UTC, stepper=lambda d: d + timedelta(days=3))
        assert [d.start_time.day for d in plan] == [1, 4, 7, 10]

    def test_custom_without_stepper_steps_daily(self, base_slot):
        p = pattern(RecurrencePatternType.CUSTOM, set(range(7)), date(2024, 1, 1), date(2024, 1, 3))
        assert len(list(RecurrencePlan(base_slot, p, UTC))) == 3

    def test_stalled_stepper_is_rejected(self, base_slot):
        p = pattern(RecurrencePatternType.CUSTOM, set(range(7)), date(2024, 1, 1), date(2024, 1, 10))
        plan = RecurrencePlan(base_slot, p, UTC, stepper=lambda d: d)
        with pytest.raises(ValidationError):
            list(plan)

    def test_default_end_date_uses_horizon(self, base_slot):
        p = pattern(RecurrencePatternType.WEEKLY, {Weekday.MONDAY}, date(2024, 1, 1))
        plan = RecurrencePlan(base_slot, p, UTC, horizon_days=28)
        assert plan.end_date == date(2024, 1, 29)
        assert len(list(plan)) == 5


class TestDrafts:
    def test_drafts_copy_base_attributes(self, base_slot):
        p = pattern(RecurrencePatternType.WEEKLY, {Weekday.MONDAY}, date(2024, 1, 8), date(2024, 1, 8))
        (draft,) = list(RecurrencePlan(base_slot, p, UTC))

        assert draft.provider_id == base_slot.provider_id
        assert draft.start_time == datetime(2024, 1, 8, 9, 0)
        assert draft.end_time == datetime(2024, 1, 8, 9, 30)
        assert draft.max_bookings == 2
        assert draft.buffer_before == 5
        assert draft.specialty == "Cardiology"
        assert draft.notes == "follow-up clinic"

    def test_plan_is_restartable(self, base_slot):
        """Iterating twice yields the same sequence."""
        p = pattern(RecurrencePatternType.WEEKLY, {Weekday.MONDAY}, date(2024, 1, 1), date(2024, 1, 31))
        plan = RecurrencePlan(base_slot, p, UTC)
        assert list(plan) == list(plan)

    def test_local_time_of_day_survives_dst(self, base_slot):
        """09:00 New York stays 09:00 local across the March DST switch."""
        ny = ZoneInfo("America/New_York")
        base_slot.start_time = datetime(2024, 3, 4, 14, 0)  # 09:00 EST
        p = pattern(RecurrencePatternType.WEEKLY, {Weekday.MONDAY}, date(2024, 3, 4), date(2024, 3, 11))
        drafts = list(RecurrencePlan(base_slot, p, ny))

        assert drafts[0].start_time == datetime(2024, 3, 4, 14, 0)
        assert drafts[1].start_time == datetime(2024, 3, 11, 13, 0)


class TestValidation:
    def test_empty_days_rejected(self, base_slot):
        p = pattern(RecurrencePatternType.WEEKLY, set(), date(2024, 1, 1), date(2024, 1, 31))
        with pytest.raises(ValidationError):
            RecurrencePlan(base_slot, p, UTC)

    def test_zero_interval_rejected(self, base_slot):
        p = pattern(RecurrencePatternType.DAILY, {0}, date(2024, 1, 1), date(2024, 1, 31), interval=0)
        with pytest.raises(ValidationError):
            RecurrencePlan(base_slot, p, UTC)

    def test_end_before_start_rejected(self, base_slot):
        p = pattern(RecurrencePatternType.DAILY, {0}, date(2024, 2, 1), date(2024, 1, 1))
        with pytest.raises(ValidationError):
            RecurrencePlan(base_slot, p, UTC)
