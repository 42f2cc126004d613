"""
Tests for domain models.
"""

import pendulum
import pytest

from freeslots.domain.exceptions import InvalidTimezoneError
from freeslots.domain.models import DayBucket, TimeRange, WorkingHours, validate_timezone


class TestTimeRange:
    """Tests for TimeRange model."""

    def test_create_valid_time_range(self):
        """Test creating a valid time range."""
        start = pendulum.parse("2024-11-25 09:00", tz="Europe/Riga")
        end = pendulum.parse("2024-11-25 17:00", tz="Europe/Riga")

        tr = TimeRange(start=start, end=end)

        assert tr.start == start
        assert tr.end == end
        assert tr.duration_minutes() == 480  # 8 hours

    def test_invalid_time_range_raises_error(self):
        """Test that creating an invalid time range raises ValueError."""
        start = pendulum.parse("2024-11-25 17:00", tz="Europe/Riga")
        end = pendulum.parse("2024-11-25 09:00", tz="Europe/Riga")

        with pytest.raises(ValueError, match="Start time .* must be before end time"):
            TimeRange(start=start, end=end)

    def test_empty_time_range_raises_error(self):
        """A zero-length range is not a valid interval."""
        instant = pendulum.datetime(2024, 11, 25, 9, tz="UTC")

        with pytest.raises(ValueError):
            TimeRange(start=instant, end=instant)

    def test_overlaps(self):
        """Test overlap detection."""
        tr1 = TimeRange(
            start=pendulum.parse("2024-11-25 09:00", tz="Europe/Riga"),
            end=pendulum.parse("2024-11-25 12:00", tz="Europe/Riga")
        )
        tr2 = TimeRange(
            start=pendulum.parse("2024-11-25 11:00", tz="Europe/Riga"),
            end=pendulum.parse("2024-11-25 14:00", tz="Europe/Riga")
        )
        tr3 = TimeRange(
            start=pendulum.parse("2024-11-25 14:00", tz="Europe/Riga"),
            end=pendulum.parse("2024-11-25 17:00", tz="Europe/Riga")
        )

        assert tr1.overlaps(tr2)
        assert tr2.overlaps(tr1)
        assert not tr1.overlaps(tr3)

    def test_touching_ranges_do_not_overlap(self):
        tr1 = TimeRange(
            start=pendulum.datetime(2024, 11, 25, 9, tz="UTC"),
            end=pendulum.datetime(2024, 11, 25, 12, tz="UTC")
        )
        tr2 = TimeRange(
            start=pendulum.datetime(2024, 11, 25, 12, tz="UTC"),
            end=pendulum.datetime(2024, 11, 25, 14, tz="UTC")
        )

        assert not tr1.overlaps(tr2)
        assert not tr2.overlaps(tr1)

    def test_equality_is_by_instant(self):
        """The same instants in different zones describe the same range."""
        utc = TimeRange(
            start=pendulum.datetime(2024, 11, 25, 7, tz="UTC"),
            end=pendulum.datetime(2024, 11, 25, 8, tz="UTC")
        )
        riga = TimeRange(
            start=pendulum.datetime(2024, 11, 25, 9, tz="Europe/Riga"),
            end=pendulum.datetime(2024, 11, 25, 10, tz="Europe/Riga")
        )

        assert utc.start == riga.start
        assert utc.end == riga.end

    def test_to_dict_uses_utc(self):
        tr = TimeRange(
            start=pendulum.datetime(2024, 11, 25, 9, tz="Europe/Riga"),
            end=pendulum.datetime(2024, 11, 25, 10, tz="Europe/Riga")
        )

        assert tr.to_dict() == {
            "start": "2024-11-25T07:00:00Z",
            "end": "2024-11-25T08:00:00Z",
        }


class TestWorkingHours:
    """Tests for WorkingHours model."""

    def test_is_working_day(self):
        """Test working day detection."""
        working_hours = WorkingHours(start_hour=9, end_hour=17, exclude_weekdays=[5, 6])

        # Monday
        monday = pendulum.parse("2024-11-25", tz="Europe/Riga")
        assert working_hours.is_working_day(monday)

        # Saturday
        saturday = pendulum.parse("2024-11-23", tz="Europe/Riga")
        assert not working_hours.is_working_day(saturday)

        # Sunday
        sunday = pendulum.parse("2024-11-24", tz="Europe/Riga")
        assert not working_hours.is_working_day(sunday)

    def test_working_hour_end_is_exclusive(self):
        working_hours = WorkingHours(start_hour=9, end_hour=17)

        assert working_hours.is_working_hour(pendulum.datetime(2024, 11, 25, 9))
        assert working_hours.is_working_hour(pendulum.datetime(2024, 11, 25, 16))
        assert not working_hours.is_working_hour(pendulum.datetime(2024, 11, 25, 17))
        assert not working_hours.is_working_hour(pendulum.datetime(2024, 11, 25, 8))

    def test_accepts_evaluates_local_time(self):
        """07:00 UTC is 09:00 in Riga during winter time."""
        working_hours = WorkingHours(start_hour=9, end_hour=17, timezone="Europe/Riga")

        assert working_hours.accepts(pendulum.datetime(2024, 11, 25, 7, tz="UTC"))
        assert not working_hours.accepts(pendulum.datetime(2024, 11, 25, 6, tz="UTC"))

    def test_accepts_uses_local_weekday(self):
        """Sunday evening UTC is already Monday morning in Auckland."""
        working_hours = WorkingHours(start_hour=9, end_hour=17, timezone="Pacific/Auckland")

        assert working_hours.accepts(pendulum.datetime(2024, 11, 24, 20, tz="UTC"))


class TestValidateTimezone:
    """Tests for timezone validation."""

    @pytest.mark.parametrize("name", ["UTC", "Europe/Riga", "Asia/Kolkata"])
    def test_valid_names(self, name):
        assert validate_timezone(name) is not None

    @pytest.mark.parametrize("name", ["Mars/Olympus_Mons", "", "   ", "../etc/passwd"])
    def test_invalid_names(self, name):
        with pytest.raises(InvalidTimezoneError):
            validate_timezone(name)

    def test_invalid_timezone_is_a_value_error(self):
        with pytest.raises(ValueError):
            validate_timezone("Not/AZone")


class TestDayBucket:
    """Tests for DayBucket serialisation."""

    def test_to_dict(self):
        bucket = DayBucket(
            weekday_name="monday",
            month_name="November",
            day_number="25",
            iso_date="2024-11-25",
            intervals=["09:00-12:00 UTC"],
        )

        assert bucket.to_dict() == {
            "day": "monday",
            "month": "November",
            "date": "25",
            "intervals": ["09:00-12:00 UTC"],
        }
