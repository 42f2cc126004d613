"""
Google Calendar API client for free/busy queries and event booking.
"""

import logging
import uuid
from urllib.parse import quote
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Sequence

import google.auth.exceptions
import pendulum
import requests
from google.auth.transport.requests import AuthorizedSession, Request
from google.oauth2 import service_account
from pendulum import DateTime

from ..config import ServiceAccountKey
from ..domain.exceptions import (
    AuthenticationError,
    CalendarAPIError,
    CalendarForbiddenError,
    CalendarNotFoundError,
    FreeSlotsError,
    InvalidIdentityError,
    TimeConflictError,
    UpstreamError,
)
from ..domain.models import TimeRange
from ..validation import BookingRequest

logger = logging.getLogger(__name__)

SessionFactory = Callable[[Sequence[str], Optional[str]], requests.Session]


@dataclass
class BookingResult:
    """Summary of a created calendar event."""
    event_id: str
    event_link: Optional[str]
    meet_link: Optional[str]
    status: Optional[str]
    created: Optional[str]
    updated: Optional[str]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "event_id": self.event_id,
            "event_link": self.event_link,
            "meet_link": self.meet_link or "Generating...",
            "status": self.status,
            "created": self.created,
            "updated": self.updated,
        }


class GoogleCalendarClient:
    """
    Client for Google Calendar API v3 using a service account.

    Uses the /freeBusy endpoint to fetch busy times and
    /calendars/{id}/events to create events. Booking impersonates the
    calendar owner, which requires domain-wide delegation for the service
    account.
    """

    API_ENDPOINT = "https://www.googleapis.com/calendar/v3"
    READONLY_SCOPES = ["https://www.googleapis.com/auth/calendar.readonly"]
    WRITE_SCOPES = ["https://www.googleapis.com/auth/calendar"]

    STATUS_ERRORS = {
        400: InvalidIdentityError,
        403: CalendarForbiddenError,
        404: CalendarNotFoundError,
        409: TimeConflictError,
    }

    def __init__(
        self,
        credentials: ServiceAccountKey,
        session_factory: Optional[SessionFactory] = None,
        timeout: int = 30
    ):
        """
        Initialize the Google Calendar client.

        Args:
            credentials: Service account key used for every request
            session_factory: Optional factory returning an authorised
                ``requests.Session`` for (scopes, subject); defaults to
                google-auth's ``AuthorizedSession``
            timeout: Per-request timeout in seconds
        """
        self.credentials = credentials
        self.timeout = timeout
        self._session_factory = session_factory or self._authorized_session

    def query_free_busy(
        self,
        calendar_id: str,
        time_min: DateTime,
        time_max: DateTime
    ) -> List[TimeRange]:
        """
        Get busy time ranges for one calendar.

        Access errors are checked before the busy list is read, so an empty
        result always means an accessible, free calendar.

        Args:
            calendar_id: Calendar identity (usually the owner's email)
            time_min: Start of the time window
            time_max: End of the time window

        Returns:
            List of busy TimeRange objects

        Raises:
            CalendarNotFoundError, CalendarForbiddenError,
            InvalidIdentityError, UpstreamError, AuthenticationError
        """
        payload = {
            "timeMin": time_min.in_timezone("UTC").to_iso8601_string(),
            "timeMax": time_max.in_timezone("UTC").to_iso8601_string(),
            "items": [{"id": calendar_id}],
        }

        data = self._request(
            "POST",
            f"{self.API_ENDPOINT}/freeBusy",
            scopes=self.READONLY_SCOPES,
            json=payload,
        )

        calendar = (data.get("calendars") or {}).get(calendar_id)
        if calendar is None:
            raise CalendarNotFoundError(f"Calendar not found or access denied: {calendar_id}")

        errors = calendar.get("errors")
        if errors:
            logger.error("Calendar access errors for %s: %s", calendar_id, errors)
            raise self._classify_calendar_errors(calendar_id, errors)

        busy_ranges = self._parse_busy(calendar_id, calendar.get("busy") or [])

        if not busy_ranges:
            logger.info("Calendar %s is accessible and has no busy times", calendar_id)
        else:
            logger.info("Calendar %s has %d busy range(s)", calendar_id, len(busy_ranges))

        return busy_ranges

    def insert_event(self, calendar_id: str, booking: BookingRequest) -> BookingResult:
        """
        Create an event with a Google Meet link on the calendar.

        Raises:
            CalendarNotFoundError, CalendarForbiddenError, TimeConflictError,
            UpstreamError, AuthenticationError
        """
        event = self._build_event(booking)
        logger.info(
            "Booking '%s' on %s from %s to %s with %d attendee(s)",
            booking.title,
            calendar_id,
            event["start"]["dateTime"],
            event["end"]["dateTime"],
            len(event["attendees"]),
        )

        data = self._request(
            "POST",
            f"{self.API_ENDPOINT}/calendars/{quote(calendar_id, safe='@')}/events",
            scopes=self.WRITE_SCOPES,
            subject=calendar_id,
            json=event,
            params={
                "conferenceDataVersion": 1,
                "sendUpdates": "all" if booking.send_notifications else "none",
            },
        )

        return BookingResult(
            event_id=data.get("id", ""),
            event_link=data.get("htmlLink"),
            meet_link=self._extract_meet_link(data),
            status=data.get("status"),
            created=data.get("created"),
            updated=data.get("updated"),
        )

    def test_connection(self) -> Dict[str, Any]:
        """
        Test the credentials by requesting an access token.

        Returns:
            Service account identity data

        Raises:
            AuthenticationError: If the token request fails
        """
        credentials = self._service_account_credentials(self.READONLY_SCOPES)

        try:
            credentials.refresh(Request())
        except google.auth.exceptions.GoogleAuthError as exc:
            raise AuthenticationError(f"Connection test failed: {exc}") from exc

        return {
            "client_email": self.credentials.client_email,
            "project_id": self.credentials.project_id,
            "expiry": credentials.expiry.isoformat() if credentials.expiry else None,
        }

    def _request(
        self,
        method: str,
        url: str,
        *,
        scopes: Sequence[str],
        subject: Optional[str] = None,
        **kwargs: Any
    ) -> Dict[str, Any]:
        try:
            with self._session_factory(scopes, subject) as session:
                response = session.request(method, url, timeout=self.timeout, **kwargs)
        except google.auth.exceptions.GoogleAuthError as exc:
            raise AuthenticationError(f"Could not authenticate with Google: {exc}") from exc
        except requests.exceptions.RequestException as exc:
            raise UpstreamError(f"Failed to reach Google Calendar: {exc}") from exc

        if not response.ok:
            raise self._classify_status(response)

        try:
            return response.json()
        except ValueError as exc:
            raise UpstreamError("Google Calendar returned an invalid JSON response") from exc

    def _classify_status(self, response: requests.Response) -> FreeSlotsError:
        message = self._error_message(response)
        status = response.status_code

        if status == 401:
            return AuthenticationError(f"Google rejected the credentials: {message}")

        error_class = self.STATUS_ERRORS.get(status, UpstreamError)
        return error_class(f"Google Calendar error {status}: {message}")

    def _classify_calendar_errors(
        self,
        calendar_id: str,
        errors: List[Dict[str, Any]]
    ) -> CalendarAPIError:
        reasons = [
            error.get("reason")
            for error in errors
            if error.get("domain", "global") == "global"
        ]

        if "notFound" in reasons:
            return CalendarNotFoundError(f"Calendar not found: {calendar_id}")
        if "forbidden" in reasons:
            return CalendarForbiddenError(f"Access denied to calendar: {calendar_id}")
        if "badRequest" in reasons:
            return InvalidIdentityError(f"Invalid calendar ID: {calendar_id}")

        reason = errors[0].get("reason") or "Unknown error"
        return UpstreamError(f"Cannot access calendar {calendar_id}: {reason}")

    def _parse_busy(self, calendar_id: str, items: List[Dict[str, Any]]) -> List[TimeRange]:
        """Parse busy items. A malformed item fails the whole query."""
        busy_ranges: List[TimeRange] = []

        for item in items:
            try:
                start = pendulum.parse(item["start"])
                end = pendulum.parse(item["end"])
                if not isinstance(start, DateTime) or not isinstance(end, DateTime):
                    raise ValueError(f"not a date-time: {item}")
                busy_ranges.append(TimeRange(start=start, end=end))
            except (KeyError, TypeError, ValueError) as exc:
                logger.error("Could not parse busy item %s for %s: %s", item, calendar_id, exc)
                raise UpstreamError(
                    f"Unparseable busy interval for {calendar_id}: {item}"
                ) from exc

        return busy_ranges

    @staticmethod
    def _build_event(booking: BookingRequest) -> Dict[str, Any]:
        return {
            "summary": booking.title,
            "description": booking.description,
            "start": {
                "dateTime": booking.start.to_iso8601_string(),
                "timeZone": booking.timezone,
            },
            "end": {
                "dateTime": booking.end.to_iso8601_string(),
                "timeZone": booking.timezone,
            },
            "location": booking.location,
            "attendees": [{"email": email} for email in booking.attendees],
            "reminders": {
                "useDefault": False,
                "overrides": [
                    {"method": "email", "minutes": 24 * 60},
                    {"method": "popup", "minutes": 30},
                ],
            },
            "guestsCanModify": False,
            "guestsCanInviteOthers": False,
            "guestsCanSeeOtherGuests": True,
            "guestsCanAddSelf": False,
            "conferenceData": {
                "createRequest": {
                    "requestId": f"meet-{uuid.uuid4().hex}",
                    "conferenceSolutionKey": {"type": "hangoutsMeet"},
                },
            },
        }

    @staticmethod
    def _extract_meet_link(event: Dict[str, Any]) -> Optional[str]:
        if event.get("hangoutLink"):
            return event["hangoutLink"]

        entry_points = (event.get("conferenceData") or {}).get("entryPoints") or []
        for entry_point in entry_points:
            if entry_point.get("entryPointType") == "video":
                return entry_point.get("uri")
        return None

    @staticmethod
    def _error_message(response: requests.Response) -> str:
        try:
            return response.json()["error"]["message"]
        except (ValueError, KeyError, TypeError):
            return response.text or response.reason or "Unknown error"

    def _service_account_credentials(
        self,
        scopes: Sequence[str],
        subject: Optional[str] = None
    ) -> service_account.Credentials:
        try:
            credentials = service_account.Credentials.from_service_account_info(
                self.credentials.to_info(),
                scopes=list(scopes),
            )
        except ValueError as exc:
            raise AuthenticationError(f"Invalid service account credentials: {exc}") from exc

        if subject:
            credentials = credentials.with_subject(subject)
        return credentials

    def _authorized_session(
        self,
        scopes: Sequence[str],
        subject: Optional[str] = None
    ) -> requests.Session:
        return AuthorizedSession(self._service_account_credentials(scopes, subject))
