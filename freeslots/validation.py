"""
Input validation for availability and booking requests.

Numeric inputs are clamped into sane bounds rather than rejected; malformed
identities, unknown timezones and inverted ranges are rejected.
"""

import json
import re
from typing import Any, List

import pendulum
from pendulum import DateTime
from pydantic import BaseModel, field_validator, model_validator

from .domain.models import validate_timezone

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")

DEFAULT_TIMEZONE = "Europe/Riga"

DAYS_BOUNDS = (1, 365)
HOUR_BOUNDS = (0, 23)
SLOT_DURATION_BOUNDS = (15, 480)


def clamp(value: int, bounds: tuple[int, int]) -> int:
    low, high = bounds
    return max(low, min(high, value))


def validate_email(value: str) -> str:
    """Check the address shape the calendar service accepts as an identity."""
    value = value.strip()
    if not EMAIL_PATTERN.match(value):
        raise ValueError(f"'{value}' must be a valid email format")
    return value


def parse_instant(value: str, timezone: str) -> DateTime:
    """
    Parse a date-time string to an absolute instant.

    Strings with ``Z`` or an explicit UTC offset keep their offset; naive
    strings are read as local time in ``timezone``.
    """
    try:
        parsed = pendulum.parse(value, tz=timezone)
    except ValueError as exc:
        raise ValueError(f"Invalid time format: {value}") from exc

    if not isinstance(parsed, DateTime):
        raise ValueError(f"Invalid time format: {value}")

    return parsed


class AvailabilityRequest(BaseModel):
    """Parameters of one availability lookup."""
    calendar_email: str
    timezone: str = DEFAULT_TIMEZONE
    days: int = 7
    work_start_hour: int = 9
    work_end_hour: int = 17
    slot_duration_minutes: int = 60

    @field_validator("calendar_email")
    @classmethod
    def validate_calendar_email(cls, value: str) -> str:
        return validate_email(value)

    @field_validator("timezone")
    @classmethod
    def validate_timezone_name(cls, value: str) -> str:
        validate_timezone(value)
        return value

    @field_validator("days")
    @classmethod
    def clamp_days(cls, value: int) -> int:
        return clamp(value, DAYS_BOUNDS)

    @field_validator("work_start_hour", "work_end_hour")
    @classmethod
    def clamp_hour(cls, value: int) -> int:
        return clamp(value, HOUR_BOUNDS)

    @field_validator("slot_duration_minutes")
    @classmethod
    def clamp_slot_duration(cls, value: int) -> int:
        return clamp(value, SLOT_DURATION_BOUNDS)

    @model_validator(mode="after")
    def validate_hours_order(self) -> "AvailabilityRequest":
        if self.work_start_hour >= self.work_end_hour:
            raise ValueError("work_start_hour must be less than work_end_hour")
        return self


class BookingRequest(BaseModel):
    """An event to create on a calendar."""
    title: str
    start_time: str
    end_time: str
    description: str = ""
    timezone: str = DEFAULT_TIMEZONE
    attendees: List[str] = []
    location: str = ""
    send_notifications: bool = True

    @field_validator("title")
    @classmethod
    def validate_title(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("title is required")
        return value

    @field_validator("timezone")
    @classmethod
    def validate_timezone_name(cls, value: str) -> str:
        validate_timezone(value)
        return value

    @field_validator("attendees", mode="before")
    @classmethod
    def normalize_attendees(cls, value: Any) -> List[str]:
        """Accept a list, a JSON-encoded list, or a single address."""
        if isinstance(value, str):
            try:
                value = json.loads(value)
            except json.JSONDecodeError:
                value = [value]

        if not isinstance(value, list):
            return []

        emails: List[str] = []
        for item in value:
            if isinstance(item, str) and item.strip():
                emails.append(item.strip())
            elif isinstance(item, dict) and item.get("email"):
                emails.append(str(item["email"]))
        return emails

    @model_validator(mode="after")
    def validate_time_range(self) -> "BookingRequest":
        if self.start >= self.end:
            raise ValueError("start_time must be before end_time")
        return self

    @property
    def start(self) -> DateTime:
        return parse_instant(self.start_time, self.timezone)

    @property
    def end(self) -> DateTime:
        return parse_instant(self.end_time, self.timezone)
