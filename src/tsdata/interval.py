"""
Time Series Interval Descriptor

A regular data interval is a base unit plus a positive integer multiplier
("1Day", "6Hour", "1Month"). Irregular series use the Irregular base.
"""

import re
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from tsdata.datetime_util import (
    BASE_PRECISION,
    SECONDS_PER_UNIT,
    CalendarDateTime,
    IntervalBase,
    TimePrecision,
)


_INTERVAL_PATTERN = re.compile(r"^\s*(\d*)\s*([A-Za-z]+)\s*$")

# Accepted spellings for each base (lowercase)
_BASE_ALIASES = {
    "sec": IntervalBase.SECOND,
    "second": IntervalBase.SECOND,
    "min": IntervalBase.MINUTE,
    "minute": IntervalBase.MINUTE,
    "hour": IntervalBase.HOUR,
    "hr": IntervalBase.HOUR,
    "day": IntervalBase.DAY,
    "month": IntervalBase.MONTH,
    "mon": IntervalBase.MONTH,
    "year": IntervalBase.YEAR,
    "yr": IntervalBase.YEAR,
    "irregular": IntervalBase.IRREGULAR,
    "irreg": IntervalBase.IRREGULAR,
}


class TimeInterval(BaseModel):
    """
    Data interval (base unit + multiplier).

    Examples:
        >>> str(TimeInterval.parse("6Hour"))
        '6Hour'
        >>> TimeInterval.parse("Day").multiplier
        1
    """
    model_config = ConfigDict(frozen=True)

    base: IntervalBase = Field(..., description="Interval base unit")
    multiplier: int = Field(1, ge=1, description="Number of base units per interval")

    @classmethod
    def parse(cls, text: str) -> "TimeInterval":
        """
        Parse an interval string such as "1Year", "Day" or "15Minute".

        Raises:
            ValueError: If the string is not a recognized interval
        """
        match = _INTERVAL_PATTERN.match(text or "")
        if not match:
            raise ValueError(f"Unrecognized interval string: '{text}'")
        mult_text, base_text = match.groups()
        base = _BASE_ALIASES.get(base_text.lower())
        if base is None:
            raise ValueError(f"Unrecognized interval base '{base_text}' in '{text}'")
        multiplier = int(mult_text) if mult_text else 1
        return cls(base=base, multiplier=multiplier)

    @property
    def is_regular(self) -> bool:
        return self.base != IntervalBase.IRREGULAR

    @property
    def precision(self) -> TimePrecision:
        """Date/time precision needed to address data at this interval"""
        if not self.is_regular:
            raise ValueError("Irregular intervals do not define a precision")
        return BASE_PRECISION[self.base]

    def add_to(self, value: CalendarDateTime, count: int = 1) -> CalendarDateTime:
        """Return value advanced by count intervals (count may be negative)."""
        return value.add_interval(self.base, count * self.multiplier)

    def intervals_between(self, start: CalendarDateTime, end: CalendarDateTime) -> int:
        """
        Return the number of whole intervals from start to end.

        The result is negative if end precedes start. Partial intervals are
        truncated toward start.
        """
        if self.base == IntervalBase.YEAR:
            units = end.year - start.year
        elif self.base == IntervalBase.MONTH:
            units = (end.year * 12 + end.month) - (start.year * 12 + start.month)
        elif self.base in SECONDS_PER_UNIT:
            seconds = (end.to_datetime() - start.to_datetime()).total_seconds()
            units = int(seconds // SECONDS_PER_UNIT[self.base])
        else:
            raise ValueError("Cannot count intervals for an irregular interval")
        return units // self.multiplier

    def position(self, start: CalendarDateTime, value: CalendarDateTime) -> Optional[int]:
        """
        Return the exact number of intervals from start to value.

        Returns None if value is not on the interval grid anchored at start.
        Both values are expected to have the precision of the interval.
        """
        if self.base == IntervalBase.YEAR:
            units = value.year - start.year
        elif self.base == IntervalBase.MONTH:
            units = (value.year * 12 + value.month) - (start.year * 12 + start.month)
        elif self.base in SECONDS_PER_UNIT:
            seconds = int((value.to_datetime() - start.to_datetime()).total_seconds())
            unit_seconds = SECONDS_PER_UNIT[self.base]
            if seconds % unit_seconds:
                return None
            units = seconds // unit_seconds
        else:
            raise ValueError("Cannot compute positions for an irregular interval")
        if units % self.multiplier:
            return None
        return units // self.multiplier

    def is_aligned(self, start: CalendarDateTime, value: CalendarDateTime) -> bool:
        """Return True if value lies exactly on the interval grid anchored at start."""
        return self.position(start, value) is not None

    def __str__(self):
        if not self.is_regular:
            return self.base.value
        return f"{self.multiplier}{self.base.value}"


def calculate_data_size(start: CalendarDateTime, end: CalendarDateTime, interval: TimeInterval) -> int:
    """
    Return the number of data values from start to end inclusive.

    Examples:
        >>> day = TimeInterval.parse("1Day")
        >>> calculate_data_size(CalendarDateTime(2020, 1, 1), CalendarDateTime(2020, 12, 31), day)
        366
    """
    if end < start:
        return 0
    return interval.intervals_between(start, end) + 1
