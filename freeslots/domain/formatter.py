"""
Day bucketing and display formatting for merged availability intervals.
"""

from typing import Dict, Iterable

from pendulum import DateTime

from .models import DayBucket, TimeRange, validate_timezone

# Labels are always English, independent of the global pendulum locale.
LOCALE = "en"


class DayFormatter:
    """
    Groups merged intervals by calendar day in a target timezone.

    The bucket key is the ISO date of the interval *start*; an interval that
    runs past local midnight stays in its start day's bucket.
    """

    def __init__(self, timezone: str):
        validate_timezone(timezone)
        self.timezone = timezone

    def format_interval(self, interval: TimeRange) -> str:
        """Format as ``HH:mm-HH:mm <timezone>`` on the local 24-hour clock."""
        start = self._local(interval.start)
        end = self._local(interval.end)
        return f"{start.format('HH:mm')}-{end.format('HH:mm')} {self.timezone}"

    def bucket_for(self, interval: TimeRange) -> DayBucket:
        """Create an empty bucket labelled from the interval's local start."""
        start = self._local(interval.start)
        return DayBucket(
            weekday_name=start.format("dddd", locale=LOCALE).lower(),
            month_name=start.format("MMMM", locale=LOCALE),
            day_number=start.format("DD"),
            iso_date=start.to_date_string(),
        )

    def group_by_day(self, intervals: Iterable[TimeRange]) -> Dict[str, DayBucket]:
        """
        Group intervals into day buckets keyed by ISO date.

        Buckets and the intervals inside them keep the input order.
        """
        grouped: Dict[str, DayBucket] = {}

        for interval in intervals:
            iso_date = self._local(interval.start).to_date_string()

            bucket = grouped.get(iso_date)
            if bucket is None:
                bucket = self.bucket_for(interval)
                grouped[iso_date] = bucket

            bucket.intervals.append(self.format_interval(interval))

        return grouped

    def _local(self, instant: DateTime) -> DateTime:
        return instant.in_timezone(self.timezone)
