"""
Calendar Date/Time Stepper

Calendar-aware date/time values used to address and iterate time series.

A CalendarDateTime carries a declared precision (year down to second). Fields
finer than the precision are ignored and always hold their minimum value, so a
monthly value is always on day 1 at 00:00:00.

Design Principles:
- Adding intervals is exact under calendar rules: adding 1 Year advances the
  year field only (it does not add 365 days), adding 1 Month advances the
  month field only
- Invalid calendar field combinations (Feb 29 of a non-leap year, Jan 31 plus
  one month, ...) raise ValueError; nothing is silently clamped
- Comparisons are made at the coarser of the two precisions
- Values are immutable; every operation returns a new instance
"""

import calendar
import re
from datetime import date, datetime, timedelta
from enum import Enum, IntEnum
from functools import total_ordering
from typing import Optional, Tuple


class TimePrecision(IntEnum):
    """
    Date/time precision.

    The integer value is the number of significant fields (year first),
    so a larger value is a finer precision.
    """
    YEAR = 1
    MONTH = 2
    DAY = 3
    HOUR = 4
    MINUTE = 5
    SECOND = 6


class IntervalBase(str, Enum):
    """
    Base unit of a time series interval.
    """
    SECOND = "Second"
    MINUTE = "Minute"
    HOUR = "Hour"
    DAY = "Day"
    MONTH = "Month"
    YEAR = "Year"
    IRREGULAR = "Irregular"

    @property
    def precision(self) -> Optional[TimePrecision]:
        """Date/time precision matching the base (None for irregular)"""
        return BASE_PRECISION.get(self)


# Precision needed to address data of each interval base
BASE_PRECISION = {
    IntervalBase.SECOND: TimePrecision.SECOND,
    IntervalBase.MINUTE: TimePrecision.MINUTE,
    IntervalBase.HOUR: TimePrecision.HOUR,
    IntervalBase.DAY: TimePrecision.DAY,
    IntervalBase.MONTH: TimePrecision.MONTH,
    IntervalBase.YEAR: TimePrecision.YEAR,
}

# Fixed-length units (anything longer depends on the calendar)
SECONDS_PER_UNIT = {
    IntervalBase.SECOND: 1,
    IntervalBase.MINUTE: 60,
    IntervalBase.HOUR: 3600,
    IntervalBase.DAY: 86400,
}

_FIELDS = ("year", "month", "day", "hour", "minute", "second")
_FIELD_MINIMUMS = (None, 1, 1, 0, 0, 0)

_PARSE_PATTERN = re.compile(
    r"^\s*(\d{4})"
    r"(?:-(\d{1,2})"
    r"(?:-(\d{1,2})"
    r"(?:[ T](\d{1,2})"
    r"(?::(\d{1,2})"
    r"(?::(\d{1,2}))?)?)?)?)?\s*$"
)


def is_leap_year(year: int) -> bool:
    """Return True if the year is a Gregorian leap year."""
    return calendar.isleap(year)


def days_in_month(year: int, month: int) -> int:
    """Return the number of days in the month (1-12) of the year."""
    if month < 1 or month > 12:
        raise ValueError(f"Invalid month: {month}. Must be 1-12.")
    return calendar.monthrange(year, month)[1]


def days_in_year(year: int) -> int:
    """Return 366 for leap years and 365 otherwise."""
    return 366 if is_leap_year(year) else 365


def _validate_fields(year, month, day, hour, minute, second):
    if month < 1 or month > 12:
        raise ValueError(f"Invalid month: {month}. Must be 1-12.")
    ndays = days_in_month(year, month)
    if day < 1 or day > ndays:
        raise ValueError(f"Invalid day {day} for {year:04d}-{month:02d} (month has {ndays} days).")
    if hour < 0 or hour > 23:
        raise ValueError(f"Invalid hour: {hour}. Must be 0-23.")
    if minute < 0 or minute > 59:
        raise ValueError(f"Invalid minute: {minute}. Must be 0-59.")
    if second < 0 or second > 59:
        raise ValueError(f"Invalid second: {second}. Must be 0-59.")


@total_ordering
class CalendarDateTime:
    """
    Immutable calendar date/time with a declared precision.

    Attributes:
        year, month, day, hour, minute, second: Calendar fields
        precision: TimePrecision; fields finer than this hold their minimum

    Examples:
        >>> d = CalendarDateTime(2020, 2, 28)
        >>> str(d.add_interval(IntervalBase.DAY, 1))
        '2020-02-29'
        >>> str(CalendarDateTime(2019, 1, 31).add_interval(IntervalBase.YEAR, 1))
        '2020-01-31'
        >>> CalendarDateTime(2020, 2, 29).add_interval(IntervalBase.YEAR, 1)
        Traceback (most recent call last):
        ...
        ValueError: Invalid day 29 for 2021-02 (month has 28 days).
    """

    __slots__ = _FIELDS + ("precision",)

    def __init__(
        self,
        year: int,
        month: int = 1,
        day: int = 1,
        hour: int = 0,
        minute: int = 0,
        second: int = 0,
        precision: TimePrecision = TimePrecision.DAY
    ):
        precision = TimePrecision(precision)
        fields = [int(year), int(month), int(day), int(hour), int(minute), int(second)]
        for i in range(int(precision), len(_FIELDS)):
            fields[i] = _FIELD_MINIMUMS[i]
        _validate_fields(*fields)
        for name, value in zip(_FIELDS, fields):
            object.__setattr__(self, name, value)
        object.__setattr__(self, "precision", precision)

    def __setattr__(self, name, value):
        raise AttributeError("CalendarDateTime is immutable; use replace()")

    @classmethod
    def from_datetime(
        cls,
        value,
        precision: TimePrecision = TimePrecision.DAY
    ) -> "CalendarDateTime":
        """
        Create from a datetime.date, datetime.datetime or pandas.Timestamp.

        Args:
            value: Date or date/time to convert (timezone is ignored)
            precision: Precision of the new value

        Returns:
            CalendarDateTime truncated to the requested precision
        """
        if isinstance(value, CalendarDateTime):
            return value.with_precision(precision)
        if not isinstance(value, date):
            raise TypeError(f"Cannot convert {type(value)} to CalendarDateTime")
        return cls(
            value.year,
            value.month,
            value.day,
            getattr(value, "hour", 0),
            getattr(value, "minute", 0),
            getattr(value, "second", 0),
            precision=precision
        )

    @classmethod
    def parse(cls, text: str, precision: Optional[TimePrecision] = None) -> "CalendarDateTime":
        """
        Parse a date/time string.

        Recognized forms are YYYY, YYYY-MM, YYYY-MM-DD, YYYY-MM-DD hh,
        YYYY-MM-DD hh:mm and YYYY-MM-DD hh:mm:ss ('T' may separate the date and
        time). The precision is inferred from the number of fields unless given.

        Args:
            text: String to parse
            precision: Optional precision overriding the inferred one

        Returns:
            Parsed CalendarDateTime

        Raises:
            ValueError: If the string is not recognized or a field is invalid

        Examples:
            >>> CalendarDateTime.parse("1995-10").precision.name
            'MONTH'
            >>> str(CalendarDateTime.parse("2001-03-04 06"))
            '2001-03-04 06'
        """
        match = _PARSE_PATTERN.match(text or "")
        if not match:
            raise ValueError(f"Unrecognized date/time string: '{text}'")
        groups = match.groups()
        given = [int(g) for g in groups if g is not None]
        if precision is None:
            precision = TimePrecision(len(given))
        return cls(*given, precision=precision)

    def to_datetime(self) -> datetime:
        """Return the value as a naive datetime.datetime."""
        return datetime(self.year, self.month, self.day, self.hour, self.minute, self.second)

    def with_precision(self, precision: TimePrecision) -> "CalendarDateTime":
        """Return a copy with a different precision (finer fields are reset)."""
        return CalendarDateTime(
            self.year, self.month, self.day, self.hour, self.minute, self.second,
            precision=precision
        )

    def replace(self, **changes) -> "CalendarDateTime":
        """
        Return a copy with the given fields replaced.

        Raises:
            ValueError: If the resulting field combination is not a valid date
        """
        unknown = set(changes) - set(_FIELDS) - {"precision"}
        if unknown:
            raise TypeError(f"Unknown CalendarDateTime fields: {sorted(unknown)}")
        fields = {name: getattr(self, name) for name in _FIELDS}
        fields["precision"] = self.precision
        fields.update(changes)
        return CalendarDateTime(**fields)

    def add_interval(self, base: IntervalBase, multiplier: int) -> "CalendarDateTime":
        """
        Add a number of interval units under calendar rules.

        Args:
            base: Interval base unit (Year, Month, Day, Hour, Minute, Second)
            multiplier: Number of units to add (may be negative)

        Returns:
            New CalendarDateTime with the same precision

        Raises:
            ValueError: If the result is not a valid calendar date (e.g., adding
                one year to Feb 29) or the base is irregular
        """
        base = IntervalBase(base)
        if multiplier == 0:
            return self
        if base == IntervalBase.YEAR:
            return self.replace(year=self.year + multiplier)
        if base == IntervalBase.MONTH:
            absolute_month = self.year * 12 + (self.month - 1) + multiplier
            return self.replace(year=absolute_month // 12, month=absolute_month % 12 + 1)
        if base in SECONDS_PER_UNIT:
            shifted = self.to_datetime() + timedelta(seconds=SECONDS_PER_UNIT[base] * multiplier)
            return CalendarDateTime.from_datetime(shifted, self.precision)
        raise ValueError(f"Cannot add intervals with base '{base.value}'")

    def same_position_in_year(self, other: "CalendarDateTime") -> bool:
        """
        Return True if both values fall at the same point in their years.

        The year is ignored; month, day and time fields are compared at the
        coarser of the two precisions.
        """
        precision = min(self.precision, other.precision)
        return self._key(precision)[1:] == other._key(precision)[1:]

    def _key(self, precision: TimePrecision) -> Tuple[int, ...]:
        return tuple(getattr(self, name) for name in _FIELDS[:int(precision)])

    def __eq__(self, other):
        if not isinstance(other, CalendarDateTime):
            return NotImplemented
        precision = min(self.precision, other.precision)
        return self._key(precision) == other._key(precision)

    def __lt__(self, other):
        if not isinstance(other, CalendarDateTime):
            return NotImplemented
        precision = min(self.precision, other.precision)
        return self._key(precision) < other._key(precision)

    def __hash__(self):
        # Values of different precision may compare equal, so only the year is hashed
        return hash(self.year)

    def __str__(self):
        text = f"{self.year:04d}"
        if self.precision >= TimePrecision.MONTH:
            text += f"-{self.month:02d}"
        if self.precision >= TimePrecision.DAY:
            text += f"-{self.day:02d}"
        if self.precision >= TimePrecision.HOUR:
            text += f" {self.hour:02d}"
        if self.precision >= TimePrecision.MINUTE:
            text += f":{self.minute:02d}"
        if self.precision >= TimePrecision.SECOND:
            text += f":{self.second:02d}"
        return text

    def __repr__(self):
        return f"CalendarDateTime('{self}', {self.precision.name})"
