"""Tests for ScreenTimeService against the real store."""

from __future__ import annotations

from datetime import UTC, date, datetime, time, timedelta
from unittest.mock import AsyncMock

import pytest

from famtrack.models import DayOfWeek, ParentalControlCreate, TimeWindowCreate
from famtrack.models.exceptions import ValidationFailure
from famtrack.repositories import ParentalControlRepository, UsageLedgerRepository
from famtrack.services.screen_time_service import UNLIMITED_MINUTES, ScreenTimeService

TODAY = date(2024, 3, 6)  # Wednesday


@pytest.fixture
def service(context):
    return context.screen_time_service


@pytest.fixture
def controlled_child(context, users):
    async def _create(**settings):
        await context.control_repository.create(
            users["parent"], ParentalControlCreate(child_user_id=users["child"], **settings)
        )
        return users["child"]

    return _create


class TestRecordUsage:
    @pytest.mark.asyncio
    async def test_defaults_to_now(self, service, users, clock):
        record = await service.record_usage(users["child"], 25)

        assert record.started_at == clock.now()
        assert record.duration_minutes == 25

    @pytest.mark.asyncio
    async def test_negative_duration_rejected(self, service, users):
        with pytest.raises(ValidationFailure):
            await service.record_usage(users["child"], -1)

    @pytest.mark.asyncio
    async def test_usage_accumulates(self, service, users, clock):
        await service.record_usage(users["child"], 30)
        clock.advance(hours=1)
        await service.record_usage(users["child"], 20)

        assert await service.usage_for_date(users["child"], TODAY) == 50


class TestUsageQueries:
    @pytest.mark.asyncio
    async def test_usage_counts_on_start_day(self, service, users):
        late = datetime(2024, 3, 5, 23, 30, tzinfo=UTC)
        await service.record_usage(users["child"], 60, when=late)

        assert await service.usage_for_date(users["child"], date(2024, 3, 5)) == 60
        assert await service.usage_for_date(users["child"], TODAY) == 0

    @pytest.mark.asyncio
    async def test_range_fills_missing_days(self, service, users):
        await service.record_usage(users["child"], 10, when=datetime(2024, 3, 4, 8, tzinfo=UTC))
        await service.record_usage(users["child"], 15, when=datetime(2024, 3, 6, 8, tzinfo=UTC))
        await service.record_usage(users["child"], 5, when=datetime(2024, 3, 6, 9, tzinfo=UTC))
        await service.record_usage(users["child"], 99, when=datetime(2024, 3, 7, 0, tzinfo=UTC))

        usage = await service.usage_for_range(users["child"], date(2024, 3, 3), TODAY)

        assert usage == {
            date(2024, 3, 3): 0,
            date(2024, 3, 4): 10,
            date(2024, 3, 5): 0,
            date(2024, 3, 6): 20,
        }

    @pytest.mark.asyncio
    async def test_single_day_and_inverted_range(self, service, users):
        assert await service.usage_for_range(users["child"], TODAY, TODAY) == {TODAY: 0}
        assert await service.usage_for_range(users["child"], TODAY, date(2024, 3, 1)) == {}


class TestAllowedHours:
    @pytest.mark.asyncio
    async def test_no_controls_always_allowed(self, service, users):
        assert await service.is_within_allowed_hours(users["child"]) is True

    @pytest.mark.asyncio
    async def test_disabled_screen_time_always_allowed(self, service, controlled_child):
        child = await controlled_child(screen_time_enabled=False)
        assert await service.is_within_allowed_hours(child) is True

    @pytest.mark.asyncio
    async def test_enabled_without_windows_never_allowed(self, service, controlled_child):
        child = await controlled_child()
        assert await service.is_within_allowed_hours(child) is False

    @pytest.mark.asyncio
    async def test_window_bounds_inclusive(self, service, controlled_child):
        child = await controlled_child(
            allowed_hours=[
                TimeWindowCreate(day_of_week=DayOfWeek.WEDNESDAY, start_time=time(15), end_time=time(18)),
                TimeWindowCreate(
                    day_of_week=DayOfWeek.WEDNESDAY, start_time=time(6), end_time=time(7), is_active=False
                ),
            ]
        )
        wednesday = datetime(2024, 3, 6, tzinfo=UTC)

        assert await service.is_within_allowed_hours(child, wednesday.replace(hour=15)) is True
        assert await service.is_within_allowed_hours(child, wednesday.replace(hour=18)) is True
        assert await service.is_within_allowed_hours(child, wednesday.replace(hour=18, second=1)) is False
        assert await service.is_within_allowed_hours(child, wednesday.replace(hour=14, minute=59)) is False
        # inactive window ignored
        assert await service.is_within_allowed_hours(child, wednesday.replace(hour=6, minute=30)) is False
        # same time on Thursday
        assert (
            await service.is_within_allowed_hours(child, wednesday.replace(day=7, hour=16)) is False
        )

    @pytest.mark.asyncio
    async def test_defaults_to_clock(self, service, controlled_child, clock):
        child = await controlled_child(
            allowed_hours=[
                TimeWindowCreate(day_of_week=DayOfWeek.WEDNESDAY, start_time=time(9), end_time=time(11))
            ]
        )
        assert await service.is_within_allowed_hours(child) is True
        clock.advance(hours=2)
        assert await service.is_within_allowed_hours(child) is False


class TestRemainingMinutes:
    @pytest.mark.asyncio
    async def test_unlimited_without_controls(self, service, users):
        assert await service.remaining_minutes_today(users["child"]) == UNLIMITED_MINUTES

    @pytest.mark.asyncio
    async def test_unlimited_when_disabled(self, service, controlled_child):
        child = await controlled_child(screen_time_enabled=False)
        assert await service.remaining_minutes_today(child) == UNLIMITED_MINUTES

    @pytest.mark.asyncio
    async def test_limit_minus_usage(self, service, controlled_child):
        child = await controlled_child(daily_time_limit=timedelta(minutes=90))
        await service.record_usage(child, 30)

        assert await service.remaining_minutes_today(child) == 60

    @pytest.mark.asyncio
    async def test_never_negative(self, service, controlled_child):
        child = await controlled_child(daily_time_limit=timedelta(minutes=30))
        await service.record_usage(child, 45)

        assert await service.remaining_minutes_today(child) == 0

    @pytest.mark.asyncio
    async def test_yesterday_does_not_count(self, service, controlled_child, clock):
        child = await controlled_child(daily_time_limit=timedelta(minutes=60))
        await service.record_usage(child, 60, when=clock.now() - timedelta(days=1))

        assert await service.remaining_minutes_today(child) == 60

    @pytest.mark.asyncio
    async def test_sixty_minute_limit_example(self, service, controlled_child):
        child = await controlled_child(daily_time_limit=timedelta(minutes=60))

        await service.record_usage(child, 25)
        assert await service.remaining_minutes_today(child) == 35

        await service.record_usage(child, 40)
        assert await service.remaining_minutes_today(child) == 0


class TestMondayWindow:
    @pytest.mark.asyncio
    async def test_monday_eight_to_eight(self, service, controlled_child):
        child = await controlled_child(
            allowed_hours=[
                TimeWindowCreate(day_of_week=DayOfWeek.MONDAY, start_time=time(8), end_time=time(20))
            ]
        )
        monday = datetime(2024, 3, 4, tzinfo=UTC)

        assert await service.is_within_allowed_hours(child, monday.replace(hour=19, minute=59, second=59)) is True
        assert await service.is_within_allowed_hours(child, monday.replace(hour=20, second=1)) is False
        assert await service.is_within_allowed_hours(child, datetime(2024, 3, 5, 10, tzinfo=UTC)) is False

    @pytest.mark.asyncio
    async def test_window_given_with_utc_offset(self, service, controlled_child):
        child = await controlled_child(
            allowed_hours=[
                TimeWindowCreate(
                    day_of_week=DayOfWeek.MONDAY, start_time="08:00:00+00:00", end_time="20:00:00+00:00"
                )
            ]
        )
        monday = datetime(2024, 3, 4, tzinfo=UTC)

        assert await service.is_within_allowed_hours(child, monday.replace(hour=19, minute=59, second=59)) is True
        assert await service.is_within_allowed_hours(child, monday.replace(hour=20, second=1)) is False

    @pytest.mark.asyncio
    async def test_summary_with_offset_window(self, context, controlled_child, users):
        await controlled_child(
            allowed_hours=[
                TimeWindowCreate(
                    day_of_week=DayOfWeek.WEDNESDAY, start_time="11:00:00+02:00", end_time="13:00:00+02:00"
                )
            ]
        )

        summaries = await context.parental_control_service.get_summaries(users["parent"])

        assert summaries[0].is_within_allowed_hours is True


@pytest.mark.asyncio
async def test_usage_for_date_queries_utc_day_window():
    controls = AsyncMock(spec=ParentalControlRepository)
    usage = AsyncMock(spec=UsageLedgerRepository)
    usage.sum_minutes.return_value = 0
    service = ScreenTimeService(controls, usage)

    assert await service.usage_for_date("child", TODAY) == 0
    usage.sum_minutes.assert_awaited_once_with(
        "child",
        datetime(2024, 3, 6, tzinfo=UTC),
        datetime(2024, 3, 7, tzinfo=UTC),
        tag="screen-time",
    )
