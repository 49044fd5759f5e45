# src/monolith/timespan.py
"""Date and time span formatting.

TimeSpanner holds a start and end time and formats them as a single time or
as a compact range, e.g. "09:00&ndash;17:30 01 March 2026" or
"28 February&ndash;02 March 2026". Formats are strftime strings.

Usage:
    span = TimeSpanner("2026-03-01T09:00", "2026-03-01T17:30")
    span.get_range()
    span.get_interval()  # "8 hours"
"""

from collections.abc import Mapping, Sequence
from datetime import UTC, date, datetime, tzinfo
from typing import Any

from monolith.models import TimeSpanError
from monolith.utils import ensure_aware, parse_iso_datetime

# =============================================================================
# Constants
# =============================================================================

DEFAULT_TIME_FORMAT = "%H:%M %-d %B %Y"
MYSQL_TIME_FORMAT = "%Y-%m-%d %H:%M:%S"

RANGE_SEPARATOR = "&ndash;"

#: (start format, separator, end format), chosen by the coarsest differing unit
RangeFormat = tuple[str, str, str]

DEFAULT_RANGE_FORMATS: dict[str, RangeFormat] = {
    "time": ("%H:%M", RANGE_SEPARATOR, "%H:%M %d %B %Y"),
    "day": ("%d", RANGE_SEPARATOR, "%d %B %Y"),
    "month": ("%d %B", RANGE_SEPARATOR, "%d %B %Y"),
    "year": ("%d %B %Y", RANGE_SEPARATOR, "%d %B %Y"),
}

# Checked in order; the first unit that differs picks the range format
_RANGE_TESTS = (
    ("year", "%Y"),
    ("month", "%Y%m"),
    ("day", "%Y%m%d"),
)

# Approximate period lengths in seconds, largest first
_PERIODS = (
    ("year", 60 * 60 * 24 * 365),
    ("month", 60 * 60 * 24 * 30),
    ("week", 60 * 60 * 24 * 7),
    ("day", 60 * 60 * 24),
    ("hour", 60 * 60),
    ("minute", 60),
    ("second", 1),
)


def to_timestamp(value: Any) -> int:
    """Convert supported time input to Unix time.

    Accepts integers and digit strings (Unix time), datetimes and dates
    (naive values are UTC), and ISO 8601 strings.

    Raises:
        TimeSpanError: If the input cannot be converted
    """
    if isinstance(value, bool):
        raise TimeSpanError(f"Invalid time format: {value!r}")
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value)
    if isinstance(value, datetime):
        return int(ensure_aware(value).timestamp())
    if isinstance(value, date):
        return int(datetime(value.year, value.month, value.day, tzinfo=UTC).timestamp())
    if isinstance(value, str):
        stripped = value.strip()
        if stripped.isdigit():
            return int(stripped)
        parsed = parse_iso_datetime(stripped)
        if parsed is not None:
            return int(parsed.timestamp())

    raise TimeSpanError(f"Invalid time format: {value!r}")


class TimeSpanner:
    """Date and time span formatter.

    Attributes:
        tz: Time zone used when formatting
        default_time_format: strftime format for single times
        default_range_formats: Range formats keyed by time, day, month, year
        default_range_tolerance: Seconds within which start and end are equal
    """

    def __init__(self, start: Any = None, end: Any = None, tz: tzinfo = UTC) -> None:
        """Initialize the span.

        Args:
            start: Start time (defaults to now)
            end: End time (defaults to the start time)
            tz: Time zone used when formatting
        """
        self.tz = tz
        self.default_time_format = DEFAULT_TIME_FORMAT
        self.default_range_formats: dict[str, RangeFormat] = dict(DEFAULT_RANGE_FORMATS)
        self.default_range_tolerance = 0

        self._start = 0
        self._end: int | None = None

        self.set_start_time(start)
        self.set_end_time(end)

    # =========================================================================
    # Start and End
    # =========================================================================

    def set_start_time(self, value: Any = None) -> "TimeSpanner":
        """Set the start time; None means now.

        Raises:
            TimeSpanError: If the input is invalid or after the end time
        """
        if value is None:
            value = datetime.now(UTC)

        start = to_timestamp(value)

        if self._end is not None and start > self._end:
            raise TimeSpanError("Start time cannot be after the end time")

        self._start = start
        return self

    def set_end_time(self, value: Any = None) -> "TimeSpanner":
        """Set the end time; None means the same as the start time.

        Raises:
            TimeSpanError: If the input is invalid or before the start time
        """
        end = self._start if value is None else to_timestamp(value)

        if end < self._start:
            raise TimeSpanError("End time cannot be before the start time")

        self._end = end
        return self

    @property
    def start(self) -> datetime:
        return datetime.fromtimestamp(self._start, self.tz)

    @property
    def end(self) -> datetime:
        return datetime.fromtimestamp(self._end, self.tz)

    def get_start_time(self, fmt: str | None = None) -> str:
        """Return the start time in a specific format."""
        return self.start.strftime(fmt or self.default_time_format)

    def get_end_time(self, fmt: str | None = None) -> str:
        """Return the end time in a specific format."""
        return self.end.strftime(fmt or self.default_time_format)

    # =========================================================================
    # Ranges and Intervals
    # =========================================================================

    def is_range(self, tolerance: int | None = None) -> bool:
        """Are the start and end times different, give or take the tolerance?"""
        if not isinstance(tolerance, int) or isinstance(tolerance, bool):
            tolerance = self.default_range_tolerance

        return abs(self._end - self._start) > tolerance

    def get_range(
        self,
        formats: Mapping[str, Sequence[str]] | None = None,
        tolerance: int | None = None,
    ) -> str:
        """Return the range of times in a compact format.

        If the start and end times are the same (give or take the tolerance),
        the start time is returned in the default time format instead.

        Args:
            formats: Range formats overriding the defaults, by key
            tolerance: Seconds within which start and end are considered equal
        """
        if not self.is_range(tolerance):
            return self.get_start_time()

        formats = self._sanitize_range_formats(formats)
        key = "time"

        for candidate, fmt in _RANGE_TESTS:
            if self.get_start_time(fmt) != self.get_end_time(fmt):
                key = candidate
                break

        start_format, separator, end_format = formats[key]
        return self.get_start_time(start_format) + separator + self.get_end_time(end_format)

    def get_interval(self, seconds: bool = False) -> int | str:
        """Return the interval as a number of seconds or a string like "3 days"."""
        difference = self._end - self._start

        if seconds:
            return difference

        for period, length in _PERIODS:
            if length <= difference:
                count = difference // length
                plural = "s" if count > 1 else ""
                return f"{count} {period}{plural}"

        return "0 seconds"

    # =========================================================================
    # Defaults
    # =========================================================================

    def set_default_time_format(self, fmt: str) -> None:
        """Set the default time format; "mysql" is an alias for a MySQL datetime."""
        if fmt.lower() == "mysql":
            fmt = MYSQL_TIME_FORMAT

        self.default_time_format = fmt

    def set_default_range_formats(self, formats: Mapping[str, Sequence[str]]) -> None:
        self.default_range_formats = self._sanitize_range_formats(formats)

    def set_default_range_tolerance(self, seconds: int) -> None:
        """Set the default range tolerance in seconds.

        Raises:
            TimeSpanError: If seconds is not an integer
        """
        if not isinstance(seconds, int) or isinstance(seconds, bool):
            raise TimeSpanError("Range tolerance must be an integer")

        self.default_range_tolerance = seconds

    def _sanitize_range_formats(
        self, formats: Mapping[str, Sequence[str]] | None
    ) -> dict[str, RangeFormat]:
        """Fill the gaps in a partial set of range formats with the defaults.

        Unknown keys are ignored.

        Raises:
            TimeSpanError: If a format is not a sequence of three strings
        """
        result = dict(self.default_range_formats)

        if not isinstance(formats, Mapping):
            return result

        for key, fmt in formats.items():
            if key not in result:
                continue

            if isinstance(fmt, str) or not isinstance(fmt, Sequence) or len(fmt) != 3:
                raise TimeSpanError("Each range format must contain three strings")

            result[key] = (str(fmt[0]), str(fmt[1]), str(fmt[2]))

        return result
