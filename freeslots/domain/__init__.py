"""
Domain layer - Pure business logic without external dependencies.
"""

from .formatter import DayFormatter
from .models import DayBucket, TimeRange, WorkingHours, validate_timezone
from .slot_calculator import SlotCalculator

__all__ = [
    "DayBucket",
    "DayFormatter",
    "SlotCalculator",
    "TimeRange",
    "WorkingHours",
    "validate_timezone",
]
