"""
Domain models for time range and slot calculations.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List

import pendulum
from pendulum import DateTime, Timezone

from .exceptions import InvalidTimezoneError


def validate_timezone(name: str) -> Timezone:
    """
    Resolve an IANA timezone identifier.

    Raises:
        InvalidTimezoneError: If the identifier is empty or unknown
    """
    if not isinstance(name, str) or not name.strip():
        raise InvalidTimezoneError(f"Invalid timezone: {name!r}")

    try:
        return pendulum.timezone(name)
    except (ValueError, KeyError) as exc:
        raise InvalidTimezoneError(f"Invalid timezone: {name}") from exc


@dataclass(frozen=True)
class TimeRange:
    """
    Represents an immutable time range with start and end datetime.

    Invariant: start must be before end.
    """
    start: DateTime
    end: DateTime

    def __post_init__(self):
        if self.start >= self.end:
            raise ValueError(f"Start time {self.start} must be before end time {self.end}")

    def duration_minutes(self) -> int:
        """Return the duration in minutes."""
        return int((self.end - self.start).total_seconds() / 60)

    def overlaps(self, other: "TimeRange") -> bool:
        """Check if this range overlaps with another."""
        return self.start < other.end and self.end > other.start

    def contains(self, other: "TimeRange") -> bool:
        """Check if another range lies entirely within this one."""
        return self.start <= other.start and other.end <= self.end

    def to_dict(self) -> Dict[str, str]:
        return {
            "start": self.start.in_timezone("UTC").to_iso8601_string(),
            "end": self.end.in_timezone("UTC").to_iso8601_string(),
        }

    def __str__(self) -> str:
        return f"{self.start.format('YYYY-MM-DD HH:mm')} - {self.end.format('HH:mm')}"


@dataclass
class WorkingHours:
    """
    Configuration for working hours.

    A slot qualifies when its local start hour lies in [start_hour, end_hour)
    on a day that is not excluded, both evaluated in ``timezone``.
    """
    start_hour: int = 9
    end_hour: int = 17
    exclude_weekdays: List[int] = field(default_factory=lambda: [5, 6])  # 0=Monday, 6=Sunday
    timezone: str = "Europe/Riga"

    def is_working_day(self, dt: DateTime) -> bool:
        """Check if a given datetime falls on a working day."""
        return dt.day_of_week not in self.exclude_weekdays

    def is_working_hour(self, dt: DateTime) -> bool:
        """Check if a given datetime's hour falls inside the working window."""
        return self.start_hour <= dt.hour < self.end_hour

    def accepts(self, instant: DateTime) -> bool:
        """Check an absolute instant against the working window in local time."""
        local = instant.in_timezone(self.timezone)
        return self.is_working_day(local) and self.is_working_hour(local)


@dataclass
class DayBucket:
    """
    Available intervals for one calendar day in the target timezone.
    """
    weekday_name: str
    month_name: str
    day_number: str
    iso_date: str
    intervals: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        """Serialise to the public payload shape."""
        return {
            "day": self.weekday_name,
            "month": self.month_name,
            "date": self.day_number,
            "intervals": list(self.intervals),
        }
