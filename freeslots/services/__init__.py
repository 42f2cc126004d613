"""
Service layer helpers that orchestrate adapters and domain logic.
"""

from .availability import (
    AvailabilityService,
    CalendarClientProtocol,
    availability_payload,
    compute_availability,
    current_date_time,
)

__all__ = [
    "AvailabilityService",
    "CalendarClientProtocol",
    "availability_payload",
    "compute_availability",
    "current_date_time",
]
