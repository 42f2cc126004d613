"""
Mock Google Calendar client for running without service account credentials.
"""

import json
import logging
import uuid
from pathlib import Path
from typing import Any, Dict, List, Optional

import pendulum
from pendulum import DateTime

from ..domain.exceptions import TimeConflictError
from ..domain.models import TimeRange
from ..validation import BookingRequest
from .google_calendar import BookingResult

logger = logging.getLogger(__name__)

DEFAULT_DATA_FILE = Path(__file__).parent / "mock_calendar_data.json"


class MockCalendarClient:
    """
    Mock client that simulates Google Calendar responses.

    Busy times come from mock_calendar_data.json, a list of events with
    ``calendarId``, ``start`` and ``end``. Booked events are kept in memory
    for the lifetime of the client.
    """

    def __init__(self, config=None, data_file: Optional[Path] = None):
        """
        Initialize the mock client.

        Args:
            config: Optional AppConfig for calendar_id mapping
            data_file: Optional path to an alternative events file
        """
        self.config = config
        self.data_file = data_file or DEFAULT_DATA_FILE
        self.calendar_events: List[Dict[str, Any]] = self._load_calendar_data()

    def _load_calendar_data(self) -> List[Dict[str, Any]]:
        """Load mock calendar data from the JSON file."""
        if not self.data_file.exists():
            logger.warning("Mock calendar data file %s not found; using no events", self.data_file)
            return []

        with open(self.data_file, "r", encoding="utf-8") as f:
            return json.load(f)

    def _get_calendar_id_for_email(self, email: str) -> str:
        """Map email to calendar_id using config."""
        if self.config:
            entry = self.config.find_calendar_by_email(email)
            if entry and entry.calendar_id:
                return entry.calendar_id

        # Fallback: use email as calendar_id
        return email

    def _events_for(self, calendar_id: str) -> List[TimeRange]:
        mock_id = self._get_calendar_id_for_email(calendar_id)
        ranges: List[TimeRange] = []

        for event in self.calendar_events:
            if event.get("calendarId") != mock_id:
                continue

            try:
                ranges.append(
                    TimeRange(
                        start=pendulum.parse(event["start"]),
                        end=pendulum.parse(event["end"]),
                    )
                )
            except (KeyError, TypeError, ValueError) as e:
                logger.warning("Skipping invalid mock event %s: %s", event, e)

        return ranges

    def query_free_busy(
        self,
        calendar_id: str,
        time_min: DateTime,
        time_max: DateTime
    ) -> List[TimeRange]:
        """Return mock busy times overlapping the requested window."""
        window = TimeRange(start=time_min, end=time_max)
        return sorted(
            (busy for busy in self._events_for(calendar_id) if busy.overlaps(window)),
            key=lambda r: r.start,
        )

    def insert_event(self, calendar_id: str, booking: BookingRequest) -> BookingResult:
        """Record a mock event, refusing overlaps with existing events."""
        requested = TimeRange(start=booking.start, end=booking.end)

        if any(busy.overlaps(requested) for busy in self._events_for(calendar_id)):
            raise TimeConflictError(
                f"The requested time slot conflicts with existing events on {calendar_id}"
            )

        event_id = uuid.uuid4().hex
        now = pendulum.now("UTC").to_iso8601_string()
        self.calendar_events.append(
            {
                "calendarId": self._get_calendar_id_for_email(calendar_id),
                "start": requested.start.to_iso8601_string(),
                "end": requested.end.to_iso8601_string(),
                "summary": booking.title,
            }
        )

        return BookingResult(
            event_id=event_id,
            event_link=f"https://calendar.google.com/calendar/event?eid={event_id}",
            meet_link=None,
            status="confirmed",
            created=now,
            updated=now,
        )

    def test_connection(self) -> Dict[str, Any]:
        """Mock connection test."""
        return {
            "client_email": "mock-service-account@example.iam.gserviceaccount.com",
            "project_id": "mock-project",
            "expiry": None,
        }
