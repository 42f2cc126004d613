"""
Core business logic for calculating available time slots.

This is the heart of the application - pure domain logic without any
external dependencies (no API calls, no database, no I/O).
"""

from typing import Iterable, Iterator, List, Sequence

from pendulum import DateTime

from .models import TimeRange, WorkingHours, validate_timezone


class SlotCalculator:
    """
    Calculates available meeting intervals from busy times and working hours.

    Algorithm:
    1. Invert the busy times into free windows inside the search window
    2. Cut every free window into fixed-length slots aligned to the top of
       the hour in the target timezone, keeping only slots that start inside
       working hours on a working day
    3. Merge slots that touch into maximal intervals
    """

    def __init__(self, working_hours: WorkingHours, slot_duration_minutes: int = 60):
        if slot_duration_minutes <= 0:
            raise ValueError("slot_duration_minutes must be greater than zero")

        validate_timezone(working_hours.timezone)
        self.working_hours = working_hours
        self.slot_duration_minutes = slot_duration_minutes

    def find_available_intervals(
        self,
        window: TimeRange,
        busy_ranges: Sequence[TimeRange]
    ) -> List[TimeRange]:
        """
        Run the full calculation for one calendar.

        Args:
            window: Search window (absolute instants)
            busy_ranges: Busy time ranges reported for the calendar

        Returns:
            Ordered list of merged, maximal free intervals
        """
        free_ranges = self.invert_busy_to_free(window, busy_ranges)
        return self.merge_slots(self.generate_slots(free_ranges))

    def invert_busy_to_free(
        self,
        window: TimeRange,
        busy_ranges: Sequence[TimeRange]
    ) -> List[TimeRange]:
        """
        Subtract busy times from the search window, yielding free time ranges.

        Example:
        Window: 00:00 - 24:00
        Busy: [10:00-11:00, 14:00-15:00]
        Result: [00:00-10:00, 11:00-14:00, 15:00-24:00]
        """
        free_ranges: List[TimeRange] = []
        current_start = window.start

        for busy in sorted(busy_ranges, key=lambda r: r.start):
            if not window.overlaps(busy):
                continue

            # Clip busy range to the window
            clipped_busy_start = max(busy.start, window.start)
            clipped_busy_end = min(busy.end, window.end)

            if current_start < clipped_busy_start:
                free_ranges.append(
                    TimeRange(start=current_start, end=clipped_busy_start)
                )

            current_start = max(current_start, clipped_busy_end)

        if current_start < window.end:
            free_ranges.append(
                TimeRange(start=current_start, end=window.end)
            )

        return free_ranges

    def generate_slots(self, free_ranges: Iterable[TimeRange]) -> Iterator[TimeRange]:
        """
        Lazily cut free ranges into fixed-length candidate slots.

        Slots that would run past the end of their free range are dropped,
        not truncated. The cursor always advances by one slot length, so
        out-of-hours positions are skipped rather than shifted.
        """
        for free_range in free_ranges:
            cursor = self._align_to_hour(free_range.start)

            while True:
                slot_end = cursor.add(minutes=self.slot_duration_minutes)
                if slot_end > free_range.end:
                    break

                if self.working_hours.accepts(cursor):
                    yield TimeRange(start=cursor, end=slot_end)

                cursor = slot_end

    def merge_slots(self, slots: Iterable[TimeRange]) -> List[TimeRange]:
        """
        Merge slots that start exactly where the previous one ends.

        Example: [09:00-10:00, 10:00-11:00, 13:00-14:00] -> [09:00-11:00, 13:00-14:00]
        """
        merged: List[TimeRange] = []
        running: TimeRange | None = None

        for slot in slots:
            if running is not None and slot.start == running.end:
                running = TimeRange(start=running.start, end=slot.end)
                continue

            if running is not None:
                merged.append(running)
            running = slot

        if running is not None:
            merged.append(running)

        return merged

    def _align_to_hour(self, instant: DateTime) -> DateTime:
        """Return the first local top-of-hour at or after ``instant``."""
        local = instant.in_timezone(self.working_hours.timezone)

        if local.minute == 0 and local.second == 0 and local.microsecond == 0:
            return local

        return local.start_of("hour").add(hours=1)
