"""
Running Average Time Series

Computes a running (moving) average of a regular time series using one of
seven window shapes:

- Centered: t-n .. t+n intervals
- Previous: t-n .. t-1
- PreviousInclusive: t-n .. t
- Future: t+1 .. t+n
- FutureInclusive: t .. t+n
- NYear: the same calendar position in the n years ending with t
- NAllYear: the same calendar position in every year from the start of the
  series through t (expanding window)

Design Principles:
- Strict completeness: except for NAllYear, an average is computed only if
  every value in the window is present; there is no partial averaging
- NAllYear averages whatever values are present and is missing only if none are
- A February 29 requested in a non-leap year counts as a missing value
- The input series is never modified; a new series is returned
"""

import logging
from typing import Optional, Tuple

import numpy as np
import pandas as pd

from metrics.schemas import RunningAverageType
from tsdata.datetime_util import CalendarDateTime
from tsdata.series import RegularTimeSeries, TimeSeries, require_regular, require_time_series

logger = logging.getLogger(__name__)


def get_window_offsets(average_type: RunningAverageType, n: int) -> Tuple[int, int, int]:
    """
    Return the window offsets and required value count for a window shape.

    Offsets are in intervals for bracket shapes and in years for NYear.
    NAllYear has no fixed window and returns (0, 0, 0).

    Args:
        average_type: Window shape
        n: Bracket (or number of years for NYear)

    Returns:
        Tuple of (first offset, last offset, required count)

    Examples:
        >>> get_window_offsets(RunningAverageType.CENTERED, 3)
        (-3, 3, 7)
        >>> get_window_offsets(RunningAverageType.N_YEAR, 5)
        (-4, 0, 5)
    """
    average_type = RunningAverageType.parse(average_type)
    if average_type == RunningAverageType.CENTERED:
        return -n, n, 2 * n + 1
    elif average_type == RunningAverageType.FUTURE:
        return 1, n, n
    elif average_type == RunningAverageType.FUTURE_INCLUSIVE:
        return 0, n, n + 1
    elif average_type == RunningAverageType.N_YEAR:
        return -(n - 1), 0, n
    elif average_type == RunningAverageType.PREVIOUS:
        return -n, -1, n
    elif average_type == RunningAverageType.PREVIOUS_INCLUSIVE:
        return -n, 0, n + 1
    elif average_type == RunningAverageType.N_ALL_YEAR:
        return 0, 0, 0
    raise ValueError(f"Unhandled running average type: {average_type}")


def describe_running_average(average_type: RunningAverageType, n: int) -> str:
    """
    Return the label used in the genesis and description of the output.

    Examples:
        >>> describe_running_average(RunningAverageType.FUTURE, 2)
        'bracket=2 future (not inclusive)'
    """
    average_type = RunningAverageType.parse(average_type)
    labels = {
        RunningAverageType.CENTERED: f"bracket={n} centered",
        RunningAverageType.FUTURE: f"bracket={n} future (not inclusive)",
        RunningAverageType.FUTURE_INCLUSIVE: f"bracket={n} future (inclusive)",
        RunningAverageType.N_YEAR: f"{n}-year",
        RunningAverageType.PREVIOUS: f"bracket={n} previous (not inclusive)",
        RunningAverageType.PREVIOUS_INCLUSIVE: f"bracket={n} previous (inclusive)",
        RunningAverageType.N_ALL_YEAR: "NAll-year",
    }
    return labels[average_type]


def _same_position(date: CalendarDateTime, year: int) -> Optional[CalendarDateTime]:
    """Return date moved to another year, or None if it does not exist (Feb 29)."""
    try:
        return date.replace(year=year)
    except ValueError:
        return None


def _position_in_year(date: CalendarDateTime) -> Tuple[int, ...]:
    return (date.month, date.day, date.hour, date.minute, date.second)


def _bracket_average(ts: RegularTimeSeries, offset1: int, offset2: int, needed: int) -> np.ndarray:
    """
    Average over a fixed interval bracket for every value of the series.

    Values outside the series period are treated as missing. Means come from
    pandas rolling sums, so they match the arithmetic mean to floating-point
    precision (the last bit may differ), not bit for bit.
    """
    values = np.array(
        [np.nan if ts.is_missing(v) else v for v in ts.values],
        dtype=float
    )
    # min_periods=window leaves the result NaN if any value in the window is missing
    rolled = pd.Series(values).rolling(window=needed, min_periods=needed).mean()
    # rolling() labels each window by its last value (t + offset2)
    return rolled.shift(-offset2).to_numpy()


def _year_average(ts: RegularTimeSeries, date: CalendarDateTime, first_year: int, needed: Optional[int]) -> Optional[float]:
    """
    Average the values at the same calendar position from first_year to date.year.

    If needed is given, every year must have a value; otherwise any count > 0 is accepted.
    """
    total = 0.0
    count = 0
    for year in range(first_year, date.year + 1):
        value_date = _same_position(date, year)
        value = ts.missing if value_date is None else ts.get(value_date)
        if ts.is_missing(value):
            if needed is not None:
                return None
            continue
        total += value
        count += 1
    if count == 0 or (needed is not None and count != needed):
        return None
    return total / count


def compute_running_average(
    ts: TimeSeries,
    average_type,
    n: int
) -> TimeSeries:
    """
    Compute a running average time series.

    The output has the same interval and period as the input. The value at each
    date/time is the mean of the input values in the window (to floating-point
    precision), or missing if the window is incomplete (NAllYear: if no values
    are present).

    Args:
        ts: Regular input time series (not modified)
        average_type: RunningAverageType member or name
        n: Bracket in intervals, or number of years for NYear (ignored for NAllYear)

    Returns:
        New running average time series. If n <= 0 (n <= 1 for NYear) the input
        series itself is returned unchanged.

    Raises:
        MissingInputError: If ts is None
        IrregularTimeSeriesNotSupportedError: If ts is irregular
        InvalidParameterError: If the average type is not recognized

    Examples:
        >>> ts = RegularTimeSeries.from_values("1Day", CalendarDateTime(2020, 1, 1), [1.0, 2.0, 3.0])
        >>> avg = compute_running_average(ts, "Centered", 1)
        >>> avg.get(CalendarDateTime(2020, 1, 2))
        2.0
    """
    ts = require_time_series(ts)
    average_type = RunningAverageType.parse(average_type)
    require_regular(ts, "Running average")

    if average_type == RunningAverageType.N_YEAR:
        if n <= 1:
            logger.info(f"{n}-year running average is the original data; returning {ts.identifier}")
            return ts
    elif average_type != RunningAverageType.N_ALL_YEAR and n <= 0:
        logger.info(f"Bracket {n} running average is the original data; returning {ts.identifier}")
        return ts

    offset1, offset2, needed = get_window_offsets(average_type, n)
    label = describe_running_average(average_type, n)

    newts = ts.copy_header()
    newts.allocate_data_space()
    start, end = ts.bounds()

    if average_type in (RunningAverageType.N_YEAR, RunningAverageType.N_ALL_YEAR):
        for date, _ in newts.iterate():
            if average_type == RunningAverageType.N_YEAR:
                average = _year_average(ts, date, date.year + offset1, needed)
            else:
                # Start in the first year whose same calendar position is in the period
                first_year = start.year
                if _position_in_year(date) < _position_in_year(start):
                    first_year += 1
                average = _year_average(ts, date, first_year, None)
            if average is not None:
                newts.set(date, average)
    else:
        averages = _bracket_average(ts, offset1, offset2, needed)
        for (date, _), average in zip(newts.iterate(), averages):
            if not np.isnan(average):
                newts.set(date, float(average))

    newts.add_to_genesis(f"Created {label} running average time series from original data")
    newts.description = f"{newts.description}, {label} run ave"

    logger.info(f"Computed {label} running average for {ts.identifier} ({start} to {end})")
    return newts


if __name__ == "__main__":
    import os

    logging.basicConfig(level=os.getenv('LOG_LEVEL', 'INFO'))

    # Example usage
    print("Running Average Examples")
    print("=" * 60)

    daily = RegularTimeSeries.from_values(
        "1Day",
        CalendarDateTime(2021, 1, 1),
        [10.0, 12.0, np.nan, 14.0, 15.0, 16.0, 18.0],
        location="09163500",
        description="Streamflow"
    )

    for shape in ["Centered", "Previous", "FutureInclusive"]:
        result = compute_running_average(daily, shape, 1)
        print(f"\n{result.description}")
        for date, value in result.iterate():
            shown = "missing" if result.is_missing(value) else f"{value:.2f}"
            print(f"  {date}: {shown}")
