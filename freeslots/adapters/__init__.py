"""
Adapters layer - External integrations (Google Calendar API).
"""

from .google_calendar import BookingResult, GoogleCalendarClient
from .mock_calendar_client import MockCalendarClient

__all__ = ["BookingResult", "GoogleCalendarClient", "MockCalendarClient"]
