"""Screen-time accounting over the usage ledger."""

from __future__ import annotations

from datetime import UTC, date, datetime, time, timedelta

from famtrack.models import SCREEN_TIME_TAG, UsageRecord
from famtrack.models.exceptions import ValidationFailure
from famtrack.repositories import ParentalControlRepository, UsageLedgerRepository
from famtrack.utils.clock import Clock, SystemClock, ensure_utc
from famtrack.utils.logger import get_logger

logger = get_logger(__name__)

# Remaining minutes reported for children without an active limit
UNLIMITED_MINUTES = 2**31 - 1


def _day_start(day: date) -> datetime:
    return datetime.combine(day, time.min, tzinfo=UTC)


class ScreenTimeService:
    """Records screen-time usage and checks it against a child's settings.

    Days are UTC calendar days: usage belongs to the day its record started,
    even when the session runs past midnight.
    """

    def __init__(
        self,
        control_repository: ParentalControlRepository,
        usage_repository: UsageLedgerRepository,
        clock: Clock | None = None,
    ):
        self.controls = control_repository
        self.usage = usage_repository
        self.clock = clock or SystemClock()

    async def record_usage(
        self,
        child_user_id: str,
        duration_minutes: int,
        *,
        when: datetime | None = None,
        note: str | None = None,
    ) -> UsageRecord:
        """Append one screen-time record starting at *when* (default: now).

        Args:
            child_user_id: Child whose usage is recorded
            duration_minutes: Whole minutes of usage
            when: Start of the session
            note: Optional free text

        Returns:
            The stored UsageRecord

        Raises:
            ValidationFailure: If *duration_minutes* is negative
        """
        if duration_minutes < 0:
            raise ValidationFailure("Usage duration cannot be negative")
        started_at = ensure_utc(when) if when is not None else self.clock.now()
        record = await self.usage.append(
            child_user_id, started_at, duration_minutes, tag=SCREEN_TIME_TAG, note=note
        )
        logger.debug("recorded %d minutes for %s", duration_minutes, child_user_id)
        return record

    async def usage_for_date(self, child_user_id: str, day: date) -> int:
        """Total screen-time minutes started on *day*."""
        start = _day_start(day)
        return await self.usage.sum_minutes(
            child_user_id, start, start + timedelta(days=1), tag=SCREEN_TIME_TAG
        )

    async def usage_for_range(
        self, child_user_id: str, start: date, end: date
    ) -> dict[date, int]:
        """Minutes per day for every day from *start* to *end* inclusive.

        Days without usage map to 0; an inverted range yields an empty dict.
        """
        if start > end:
            return {}
        totals = {start + timedelta(days=offset): 0 for offset in range((end - start).days + 1)}
        records = await self.usage.list_for_user(
            child_user_id,
            _day_start(start),
            _day_start(end) + timedelta(days=1),
            tag=SCREEN_TIME_TAG,
        )
        for record in records:
            day = ensure_utc(record.started_at).date()
            if day in totals:
                totals[day] += record.duration_minutes
        return totals

    async def is_within_allowed_hours(
        self, child_user_id: str, now: datetime | None = None
    ) -> bool:
        """Whether *now* falls inside one of the child's active windows.

        Children without controls, or with screen time disabled, are always
        allowed. With screen time enabled and no windows, nothing is allowed.
        """
        control = await self.controls.get_by_child(child_user_id)
        if control is None or not control.screen_time_enabled:
            return True
        moment = ensure_utc(now) if now is not None else self.clock.now()
        return any(window.contains(moment) for window in control.allowed_hours)

    async def remaining_minutes_today(self, child_user_id: str) -> int:
        control = await self.controls.get_by_child(child_user_id)
        if control is None or not control.screen_time_enabled:
            return UNLIMITED_MINUTES
        used = await self.usage_for_date(child_user_id, self.clock.today())
        return max(0, control.daily_time_limit_minutes - used)
