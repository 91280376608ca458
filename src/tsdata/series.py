"""
Time Series Accessor

Uniform read/write/iterate interface over regular and irregular time series.

A regular series stores one value per interval between its start and end in a
numpy array and addresses values by computed offset. An irregular series
stores an explicitly sorted list of TSData samples and addresses values by
search.

Design Principles:
- "Missing" is a data state, not an absence: iteration yields every
  addressable date/time, including those holding the missing sentinel
- Reading outside the period returns the missing sentinel; writing outside
  the allocated period (or off the interval grid) raises ValueError
- The genesis (provenance) log is append-only
- Capability checks (is_regular) rather than type dispatch are used by the
  engines to reject irregular input
"""

import bisect
import logging
import re
from abc import ABC, abstractmethod
from typing import Iterator, List, Optional, Sequence, Tuple

import numpy as np
import pandas as pd

from tsdata.datetime_util import CalendarDateTime, IntervalBase, TimePrecision
from tsdata.errors import (
    InvalidParameterError,
    IrregularTimeSeriesNotSupportedError,
    MissingInputError,
)
from tsdata.interval import TimeInterval, calculate_data_size

logger = logging.getLogger(__name__)


# Missing values are stored as NaN unless a sentinel is requested
DEFAULT_MISSING = np.nan

_LEGEND_TOKEN = re.compile(r"%(.)")

DateTimeLike = object  # CalendarDateTime, datetime.date/datetime or pandas.Timestamp


class TSData:
    """
    One sample of an irregular time series.

    The value may be modified in place (bulk positional updates).
    """

    __slots__ = ("date", "value", "flag")

    def __init__(self, date: CalendarDateTime, value: float, flag: str = ""):
        self.date = date
        self.value = value
        self.flag = flag

    def __repr__(self):
        return f"TSData({self.date}, {self.value})"


class TSIterator:
    """
    Lazy, finite and restartable sequence of (date, value) pairs.

    Each call to iter() starts again at the first date/time of the range.
    """

    def __init__(self, ts: "TimeSeries", start: CalendarDateTime, end: CalendarDateTime):
        self._ts = ts
        self.start = start
        self.end = end

    def __iter__(self) -> Iterator[Tuple[CalendarDateTime, float]]:
        return self._ts._generate(self.start, self.end)


class TimeSeries(ABC):
    """
    Metadata and behavior shared by regular and irregular time series.

    Attributes:
        interval: TimeInterval (base + multiplier)
        location, data_source, data_type, scenario: Identifier parts
        description: Free-text description
        units: Data units
        missing: Missing value sentinel (NaN by default)
        alias: Optional short name
        sequence_id: Optional sequence identifier (used to label traces)
    """

    def __init__(
        self,
        interval,
        location: str = "",
        data_source: str = "",
        data_type: str = "",
        scenario: str = "",
        description: str = "",
        units: str = "",
        missing: float = DEFAULT_MISSING,
        alias: str = "",
        sequence_id: Optional[str] = None
    ):
        if isinstance(interval, str):
            interval = TimeInterval.parse(interval)
        self.interval = interval
        self.location = location
        self.data_source = data_source
        self.data_type = data_type
        self.scenario = scenario
        self.description = description
        self.units = units
        self.missing = float(missing)
        self.alias = alias
        self.sequence_id = sequence_id
        self._start: Optional[CalendarDateTime] = None
        self._end: Optional[CalendarDateTime] = None
        self._genesis: List[str] = []

    # Identity and metadata

    @property
    def identifier(self) -> str:
        """Dotted identifier: location.source.type.interval[.scenario]"""
        parts = [self.location, self.data_source, self.data_type, str(self.interval)]
        if self.scenario:
            parts.append(self.scenario)
        return ".".join(parts)

    @property
    def is_regular(self) -> bool:
        return self.interval.is_regular

    @property
    def precision(self) -> TimePrecision:
        return self.interval.precision

    @property
    def start(self) -> Optional[CalendarDateTime]:
        return self._start

    @property
    def end(self) -> Optional[CalendarDateTime]:
        return self._end

    def bounds(self) -> Tuple[Optional[CalendarDateTime], Optional[CalendarDateTime]]:
        """Return (start, end) of the period."""
        return self._start, self._end

    @property
    def genesis(self) -> Tuple[str, ...]:
        """Provenance log (read-only view; use add_to_genesis to append)"""
        return tuple(self._genesis)

    def add_to_genesis(self, text: str) -> None:
        self._genesis.append(text)

    def is_missing(self, value) -> bool:
        """Return True if value is None, NaN or equal to the missing sentinel."""
        if value is None:
            return True
        value = float(value)
        return bool(np.isnan(value)) or value == self.missing

    def to_precision(self, value: DateTimeLike) -> CalendarDateTime:
        """Convert a date/time to the precision of the series."""
        if value is None:
            raise MissingInputError(f"Date/time is required for {self.identifier}")
        return CalendarDateTime.from_datetime(value, self.precision)

    def format_legend(self, fmt: str) -> str:
        """
        Format a string using series metadata.

        Tokens:
            %L location, %S data source, %T data type, %Z scenario,
            %A alias, %D description, %U units, %I interval,
            %z sequence id, %F full identifier, %% literal percent

        Unknown tokens are left unchanged.

        Examples:
            >>> ts = RegularTimeSeries("1Day", location="09163500", description="Streamflow")
            >>> ts.sequence_id = "1995"
            >>> ts.format_legend("%z trace: %D")
            '1995 trace: Streamflow'
        """
        tokens = {
            "L": self.location,
            "S": self.data_source,
            "T": self.data_type,
            "Z": self.scenario,
            "A": self.alias,
            "D": self.description,
            "U": self.units,
            "I": str(self.interval),
            "z": self.sequence_id if self.sequence_id is not None else "",
            "F": self.identifier,
            "%": "%",
        }

        def _replace(match):
            value = tokens.get(match.group(1))
            return match.group(0) if value is None else str(value)

        return _LEGEND_TOKEN.sub(_replace, fmt)

    def _header_kwargs(self) -> dict:
        return {
            "location": self.location,
            "data_source": self.data_source,
            "data_type": self.data_type,
            "scenario": self.scenario,
            "description": self.description,
            "units": self.units,
            "missing": self.missing,
            "alias": self.alias,
            "sequence_id": self.sequence_id,
        }

    @abstractmethod
    def copy_header(self) -> "TimeSeries":
        """
        Return a new series with the same metadata, period and genesis but no data.
        """
        raise NotImplementedError

    # Data access

    @abstractmethod
    def get(self, date: DateTimeLike) -> float:
        raise NotImplementedError

    @abstractmethod
    def set(self, date: DateTimeLike, value: Optional[float]) -> None:
        raise NotImplementedError

    @abstractmethod
    def _generate(self, start: CalendarDateTime, end: CalendarDateTime):
        raise NotImplementedError

    def iterate(self, start: Optional[DateTimeLike] = None, end: Optional[DateTimeLike] = None) -> TSIterator:
        """
        Return a restartable iterator over (date, value) pairs in [start, end].

        Args:
            start: First date/time (default: series start)
            end: Last date/time (default: series end)
        """
        start = self._start if start is None else self.to_precision(start)
        end = self._end if end is None else self.to_precision(end)
        if start is None or end is None:
            raise InvalidParameterError(f"Period is not set for {self.identifier}")
        return TSIterator(self, start, end)

    def to_pandas(self) -> pd.Series:
        """
        Return the data as a pandas Series indexed by timestamp.

        Missing values are returned as NaN.
        """
        dates = []
        values = []
        if self._start is not None:
            for date, value in self.iterate():
                dates.append(pd.Timestamp(date.to_datetime()))
                values.append(np.nan if self.is_missing(value) else value)
        return pd.Series(values, index=pd.DatetimeIndex(dates), dtype=float, name=self.alias or self.identifier)

    def __repr__(self):
        return f"{type(self).__name__}('{self.identifier}', {self._start} to {self._end})"


class RegularTimeSeries(TimeSeries):
    """
    Time series with one value per interval, addressable by computed offset.

    Examples:
        >>> ts = RegularTimeSeries("1Day", location="09163500")
        >>> ts.allocate_data_space(CalendarDateTime(2020, 1, 1), CalendarDateTime(2020, 1, 3))
        >>> ts.set(CalendarDateTime(2020, 1, 2), 5.0)
        >>> ts.get(CalendarDateTime(2020, 1, 2))
        5.0
    """

    def __init__(self, interval, **kwargs):
        super().__init__(interval, **kwargs)
        if not self.interval.is_regular:
            raise IrregularTimeSeriesNotSupportedError(
                "RegularTimeSeries requires a regular interval; use IrregularTimeSeries"
            )
        self._data: Optional[np.ndarray] = None

    @classmethod
    def from_values(
        cls,
        interval,
        start: DateTimeLike,
        values: Sequence[Optional[float]],
        **kwargs
    ) -> "RegularTimeSeries":
        """
        Create a series starting at start with one value per interval.

        None and NaN values are stored as missing.
        """
        ts = cls(interval, **kwargs)
        if len(values) == 0:
            raise InvalidParameterError("At least one value is required")
        start = ts.to_precision(start)
        end = ts.interval.add_to(start, len(values) - 1)
        ts.allocate_data_space(start, end)
        for i, value in enumerate(values):
            if not ts.is_missing(value):
                ts._data[i] = float(value)
        return ts

    @classmethod
    def from_pandas(cls, series: pd.Series, interval, **kwargs) -> "RegularTimeSeries":
        """
        Create a series from a pandas Series with a DatetimeIndex.

        The period is the first to last index value; timestamps not present in
        the index, and NaN values, are missing.

        Raises:
            InvalidParameterError: If the index is not a DatetimeIndex or is empty
        """
        if not isinstance(series.index, pd.DatetimeIndex):
            raise InvalidParameterError("series must have a DatetimeIndex")
        if len(series) == 0:
            raise InvalidParameterError("series is empty")
        series = series.sort_index()
        kwargs.setdefault("description", str(series.name) if series.name is not None else "")
        ts = cls(interval, **kwargs)
        ts.allocate_data_space(series.index[0], series.index[-1])
        for timestamp, value in series.items():
            if not pd.isna(value):
                ts.set(timestamp, float(value))
        return ts

    @property
    def is_allocated(self) -> bool:
        return self._data is not None

    @property
    def values(self) -> np.ndarray:
        """Copy of the stored values (missing values hold the sentinel)"""
        if self._data is None:
            return np.array([], dtype=float)
        return self._data.copy()

    def __len__(self):
        return 0 if self._data is None else len(self._data)

    def set_period(self, start: DateTimeLike, end: DateTimeLike) -> None:
        """
        Set the period without allocating data (header-only series).

        Any previously allocated data are discarded.

        Raises:
            ValueError: If end precedes start or is not on the interval grid
        """
        start = self.to_precision(start)
        end = self.to_precision(end)
        if end < start:
            raise ValueError(f"End {end} precedes start {start} for {self.identifier}")
        if not self.interval.is_aligned(start, end):
            raise ValueError(f"End {end} is not on the {self.interval} grid starting at {start}")
        self._start = start
        self._end = end
        self._data = None

    def allocate_data_space(self, start: Optional[DateTimeLike] = None, end: Optional[DateTimeLike] = None) -> None:
        """
        Allocate storage for the period, initialized to missing.

        Args:
            start: Period start (default: previously set start)
            end: Period end (default: previously set end)
        """
        if start is not None or end is not None:
            self.set_period(
                start if start is not None else self._start,
                end if end is not None else self._end
            )
        if self._start is None or self._end is None:
            raise InvalidParameterError(f"Period must be set before allocating data for {self.identifier}")
        size = calculate_data_size(self._start, self._end, self.interval)
        self._data = np.full(size, self.missing, dtype=float)

    def copy_header(self) -> "RegularTimeSeries":
        new_ts = RegularTimeSeries(self.interval, **self._header_kwargs())
        new_ts._genesis = list(self._genesis)
        if self._start is not None:
            new_ts.set_period(self._start, self._end)
        return new_ts

    def _offset(self, date: CalendarDateTime) -> Optional[int]:
        """Offset of date from the period start, or None if off the interval grid."""
        if self._start is None:
            return None
        return self.interval.position(self._start, date)

    def _index(self, date: CalendarDateTime) -> Optional[int]:
        if self._data is None:
            return None
        offset = self._offset(date)
        if offset is None or offset < 0 or offset >= len(self._data):
            return None
        return offset

    def get(self, date: DateTimeLike) -> float:
        """Return the value at date, or the missing sentinel outside the data period."""
        index = self._index(self.to_precision(date))
        if index is None:
            return self.missing
        return float(self._data[index])

    def set(self, date: DateTimeLike, value: Optional[float]) -> None:
        """
        Set the value at date (None stores the missing sentinel).

        Raises:
            ValueError: If date is outside the allocated period or off the grid
        """
        date = self.to_precision(date)
        index = self._index(date)
        if index is None:
            raise ValueError(
                f"Cannot set value at {date} for {self.identifier}: outside the allocated "
                f"period {self._start} to {self._end} or not on the {self.interval} grid"
            )
        self._data[index] = self.missing if value is None else float(value)

    def _generate(self, start: CalendarDateTime, end: CalendarDateTime):
        offset = self._offset(start)
        size = len(self)
        date = start
        while date <= end:
            if offset is not None and 0 <= offset < size:
                value = float(self._data[offset])
            else:
                value = self.missing
            yield date, value
            date = self.interval.add_to(date)
            if offset is not None:
                offset += 1


class IrregularTimeSeries(TimeSeries):
    """
    Time series of explicitly timestamped samples, kept sorted by date/time.

    The raw sample list is exposed through `data` so that callers can update
    values by position in bulk.
    """

    def __init__(self, precision: TimePrecision = TimePrecision.MINUTE, **kwargs):
        super().__init__(TimeInterval(base=IntervalBase.IRREGULAR), **kwargs)
        self._precision = TimePrecision(precision)
        self._data: List[TSData] = []

    @property
    def precision(self) -> TimePrecision:
        return self._precision

    @property
    def data(self) -> List[TSData]:
        """Ordered list of samples (values may be modified in place)"""
        return self._data

    def __len__(self):
        return len(self._data)

    def bounds(self):
        return self.start, self.end

    @property
    def start(self) -> Optional[CalendarDateTime]:
        if self._start is not None:
            return self._start
        return self._data[0].date if self._data else None

    @property
    def end(self) -> Optional[CalendarDateTime]:
        if self._end is not None:
            return self._end
        return self._data[-1].date if self._data else None

    def allocate_data_space(self, start: Optional[DateTimeLike] = None, end: Optional[DateTimeLike] = None) -> None:
        """Set the declared period; irregular storage grows as samples are added."""
        if start is not None:
            self._start = self.to_precision(start)
        if end is not None:
            self._end = self.to_precision(end)

    def copy_header(self) -> "IrregularTimeSeries":
        new_ts = IrregularTimeSeries(precision=self._precision, **self._header_kwargs())
        new_ts._genesis = list(self._genesis)
        new_ts._start = self._start
        new_ts._end = self._end
        return new_ts

    def _search(self, date: CalendarDateTime) -> Tuple[int, bool]:
        index = bisect.bisect_left(self._data, date, key=lambda sample: sample.date)
        found = index < len(self._data) and self._data[index].date == date
        return index, found

    def get(self, date: DateTimeLike) -> float:
        index, found = self._search(self.to_precision(date))
        return self._data[index].value if found else self.missing

    def set(self, date: DateTimeLike, value: Optional[float]) -> None:
        """Replace the value at date, inserting a new sample if none exists."""
        date = self.to_precision(date)
        value = self.missing if value is None else float(value)
        index, found = self._search(date)
        if found:
            self._data[index].value = value
        else:
            self._data.insert(index, TSData(date, value))

    def add(self, date: DateTimeLike, value: Optional[float], flag: str = "") -> None:
        """Add a sample (alias of set that also records a data flag)."""
        self.set(date, value)
        if flag:
            index, _ = self._search(self.to_precision(date))
            self._data[index].flag = flag

    def iterate(self, start: Optional[DateTimeLike] = None, end: Optional[DateTimeLike] = None) -> TSIterator:
        start = self.start if start is None else self.to_precision(start)
        end = self.end if end is None else self.to_precision(end)
        if start is None or end is None:
            raise InvalidParameterError(f"No data or period for {self.identifier}")
        return TSIterator(self, start, end)

    def _generate(self, start: CalendarDateTime, end: CalendarDateTime):
        index, _ = self._search(start)
        while index < len(self._data):
            sample = self._data[index]
            if sample.date > end:
                break
            yield sample.date, sample.value
            index += 1


# Period and capability utilities


def require_time_series(ts: Optional[TimeSeries], role: str = "input") -> TimeSeries:
    """
    Raise MissingInputError if ts is None.
    """
    if ts is None:
        message = f"The {role} time series is null."
        logger.warning(message)
        raise MissingInputError(message)
    return ts


def require_regular(ts: TimeSeries, action: str) -> None:
    """
    Raise IrregularTimeSeriesNotSupportedError if ts is irregular.

    Args:
        ts: Series to check
        action: Description of the operation for the message
    """
    if not ts.is_regular:
        message = f"{action} is not supported for irregular time series \"{ts.identifier}\"."
        logger.warning(message)
        raise IrregularTimeSeriesNotSupportedError(message)


def get_valid_period(
    ts: TimeSeries,
    start: Optional[DateTimeLike] = None,
    end: Optional[DateTimeLike] = None
) -> Tuple[CalendarDateTime, CalendarDateTime]:
    """
    Return the analysis period, defaulting to and clipped by the series period.

    Raises:
        InvalidParameterError: If the series has no period, a requested date/time
            of a regular series is not on its interval grid, or the requested
            period does not overlap the series
    """
    ts_start, ts_end = ts.bounds()
    if ts_start is None or ts_end is None:
        raise InvalidParameterError(f"Time series \"{ts.identifier}\" has no period")
    for requested in (start, end):
        if requested is not None and ts.is_regular and not ts.interval.is_aligned(ts_start, ts.to_precision(requested)):
            message = (
                f"Requested date/time {ts.to_precision(requested)} is not on the {ts.interval} grid "
                f"starting at {ts_start} for \"{ts.identifier}\""
            )
            logger.warning(message)
            raise InvalidParameterError(message)
    period_start = ts_start if start is None else max(ts.to_precision(start), ts_start)
    period_end = ts_end if end is None else min(ts.to_precision(end), ts_end)
    if period_end < period_start:
        raise InvalidParameterError(
            f"Requested period {start} to {end} does not overlap {ts_start} to {ts_end} "
            f"for \"{ts.identifier}\""
        )
    return period_start, period_end


def intervals_match(series_list: Sequence[TimeSeries]) -> bool:
    """Return True if all series have the same interval base and multiplier."""
    intervals = {(ts.interval.base, ts.interval.multiplier) for ts in series_list}
    return len(intervals) <= 1


def get_overlap_period(series_list: Sequence[TimeSeries]) -> Tuple[CalendarDateTime, CalendarDateTime]:
    """
    Return the period common to all series (intersection of their periods).

    Raises:
        InvalidParameterError: If any series has no period or the periods do not overlap
    """
    starts = []
    ends = []
    for ts in series_list:
        ts_start, ts_end = ts.bounds()
        if ts_start is None or ts_end is None:
            raise InvalidParameterError(f"Time series \"{ts.identifier}\" has no period")
        starts.append(ts_start)
        ends.append(ts_end)
    start = max(starts)
    end = min(ends)
    if end < start:
        ids = ", ".join(f"\"{ts.identifier}\"" for ts in series_list)
        raise InvalidParameterError(f"Periods do not overlap for {ids}")
    return start, end
