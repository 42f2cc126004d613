"""
Application services for calendar availability and booking.

The service coordinates fetching busy times via a calendar client adapter and
delegates slot calculation and day formatting to the domain layer. The
calendar dependency is a simple protocol, so the Google client, the mock
client, or a test stub can be plugged in.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Protocol, Sequence

import pendulum
from pendulum import DateTime

from ..adapters.google_calendar import BookingResult, GoogleCalendarClient
from ..config import ServiceAccountKey
from ..domain.formatter import DayFormatter
from ..domain.models import DayBucket, TimeRange, WorkingHours, validate_timezone
from ..domain.slot_calculator import SlotCalculator
from ..validation import AvailabilityRequest, BookingRequest

logger = logging.getLogger(__name__)


class CalendarClientProtocol(Protocol):
    """Protocol describing the calendar client behaviour needed by the service."""

    def query_free_busy(
        self,
        calendar_id: str,
        time_min: DateTime,
        time_max: DateTime,
    ) -> List[TimeRange]:
        """Return busy time ranges for one calendar."""

    def insert_event(self, calendar_id: str, booking: BookingRequest) -> BookingResult:
        """Create an event on the calendar."""


class AvailabilityService:
    """
    Orchestrates busy-time retrieval, slot calculation and day bucketing.

    Fetch -> generate -> merge -> format runs strictly in sequence; nothing
    is cached between calls.
    """

    def __init__(self, calendar_client: CalendarClientProtocol) -> None:
        self._calendar_client = calendar_client

    def compute_availability(
        self,
        *,
        calendar_id: str,
        timezone: str,
        days: int,
        work_start_hour: int,
        work_end_hour: int,
        slot_duration_minutes: int = 60,
        exclude_weekdays: Sequence[int] = (5, 6),
        now: Optional[DateTime] = None,
    ) -> Dict[str, DayBucket]:
        """
        Compute available intervals for the next ``days`` days, grouped by day.

        Raises:
            InvalidTimezoneError: Before any fetch or computation
            CalendarAPIError: As classified by the calendar client
        """
        formatter = DayFormatter(timezone)
        calculator = SlotCalculator(
            working_hours=WorkingHours(
                start_hour=work_start_hour,
                end_hour=work_end_hour,
                exclude_weekdays=list(exclude_weekdays),
                timezone=timezone,
            ),
            slot_duration_minutes=slot_duration_minutes,
        )

        window = self.build_window(days=days, now=now)
        busy_ranges = self.fetch_busy_times(calendar_id=calendar_id, window=window)

        intervals = calculator.find_available_intervals(window, busy_ranges)
        logger.info(
            "Calendar %s: %d busy range(s), %d available interval(s) over %d day(s)",
            calendar_id,
            len(busy_ranges),
            len(intervals),
            days,
        )

        return formatter.group_by_day(intervals)

    def fetch_busy_times(self, *, calendar_id: str, window: TimeRange) -> List[TimeRange]:
        """Fetch busy times for the calendar within the window."""
        return self._calendar_client.query_free_busy(
            calendar_id=calendar_id,
            time_min=window.start,
            time_max=window.end,
        )

    def book_event(self, *, calendar_id: str, booking: BookingRequest) -> BookingResult:
        """Create an event on the calendar."""
        return self._calendar_client.insert_event(calendar_id=calendar_id, booking=booking)

    @staticmethod
    def build_window(*, days: int, now: Optional[DateTime] = None) -> TimeRange:
        """Search window from ``now`` to exactly ``days`` times 24 hours later."""
        start = (now or pendulum.now("UTC")).in_timezone("UTC")
        return TimeRange(start=start, end=start.add(hours=24 * days))


def compute_availability(
    timezone: str,
    days: int,
    credentials: ServiceAccountKey,
    identity: str,
    work_start_hour: int,
    work_end_hour: int,
    slot_duration_minutes: int = 60,
    now: Optional[DateTime] = None,
    calendar_client: Optional[CalendarClientProtocol] = None,
) -> Dict[str, DayBucket]:
    """
    Compute grouped availability for one calendar identity.

    Numeric bounds are trusted as already validated (see AvailabilityRequest);
    the timezone is validated again here.
    """
    client = calendar_client or GoogleCalendarClient(credentials)
    return AvailabilityService(client).compute_availability(
        calendar_id=identity,
        timezone=timezone,
        days=days,
        work_start_hour=work_start_hour,
        work_end_hour=work_end_hour,
        slot_duration_minutes=slot_duration_minutes,
        now=now,
    )


def availability_payload(
    buckets: Dict[str, DayBucket],
    request: AvailabilityRequest,
) -> Dict[str, Any]:
    """Wrap day buckets in the response envelope, echoing the parameters."""
    return {
        "success": True,
        "data": {iso_date: bucket.to_dict() for iso_date, bucket in buckets.items()},
        "params": {
            "calendar_email": request.calendar_email,
            "timezone": request.timezone,
            "days": request.days,
            "work_start_hour": request.work_start_hour,
            "work_end_hour": request.work_end_hour,
            "slot_duration_minutes": request.slot_duration_minutes,
        },
    }


def current_date_time(timezone: str, now: Optional[DateTime] = None) -> Dict[str, str]:
    """Current local date-time plus today's and tomorrow's ISO dates."""
    validate_timezone(timezone)
    local = (now or pendulum.now("UTC")).in_timezone(timezone)
    return {
        "currentDate": local.format("YYYY-MM-DD[T]HH:mm:ss"),
        "today": local.to_date_string(),
        "tomorrow": local.add(days=1).to_date_string(),
    }
