"""
Cumulative Time Series Transform

Replaces each value of a time series with the running total of itself and
all previous values in its accumulation period. The input series is modified
in place.

An optional yearly reset date (month/day, year ignored) restarts the total.
Each completed accumulation period can be checked for completeness: if it has
more missing values than allowed, or fewer non-missing values than required,
every value in the period is set to missing because the total is not credible.

Design Principles:
- In-place mutation: the function returns None, only the genesis log is appended
- The first period is treated as starting at the previous reset date, so a
  partial first year counts the skipped intervals as missing
- Irregular series are cumulated by scanning the raw sample list; resets are
  not supported for irregular series
"""

import logging
import re
from typing import Optional

from metrics.schemas import CumulateConfig, CumulateMissingType, reset_date_as_datetime
from tsdata.datetime_util import CalendarDateTime
from tsdata.errors import IrregularTimeSeriesNotSupportedError
from tsdata.interval import calculate_data_size
from tsdata.series import (
    IrregularTimeSeries,
    RegularTimeSeries,
    TimeSeries,
    get_valid_period,
    require_time_series,
)

logger = logging.getLogger(__name__)


_MONTH_DAY = re.compile(r"^\s*\d{1,2}-\d{1,2}\s*$")


def parse_reset_date(reset_date, ts: TimeSeries) -> Optional[CalendarDateTime]:
    """
    Convert a reset date to a date/time at the precision of the series.

    Args:
        reset_date: "MM-DD" string, date/time string, CalendarDateTime, datetime or None
        ts: Series that will be cumulated

    Returns:
        Reset date/time (its year is not meaningful), or None
    """
    if reset_date is None:
        return None
    if isinstance(reset_date, str):
        if _MONTH_DAY.match(reset_date):
            reset_date = reset_date_as_datetime(reset_date)
        else:
            reset_date = CalendarDateTime.parse(reset_date)
    return ts.to_precision(reset_date)


def _reset_on_or_before(reset: CalendarDateTime, date: CalendarDateTime) -> CalendarDateTime:
    """Return the latest occurrence of the reset date/time on or before date."""
    year = date.year
    while True:
        try:
            candidate = reset.replace(year=year)
        except ValueError:
            # Feb 29 reset in a non-leap year
            candidate = None
        if candidate is not None and candidate <= date:
            return candidate
        year -= 1


def calculate_starting_missing_count(ts: TimeSeries, start: CalendarDateTime, reset: Optional[CalendarDateTime]) -> int:
    """
    Return the number of intervals from the previous reset up to (not including) start.

    These intervals are counted as missing so that a partial first period
    cannot appear complete.

    Examples:
        >>> ts = RegularTimeSeries("1Day")
        >>> calculate_starting_missing_count(ts, CalendarDateTime(2020, 1, 11), CalendarDateTime(2000, 1, 1))
        10
    """
    if reset is None:
        return 0
    previous_reset = _reset_on_or_before(reset, start)
    if previous_reset == start:
        return 0
    # The start itself is counted when processing begins
    return calculate_data_size(previous_reset, start, ts.interval) - 1


def _check_for_incomplete_period(
    ts: TimeSeries,
    period_start: CalendarDateTime,
    period_end: CalendarDateTime,
    count_nonmissing: int,
    count_missing: int,
    allow_missing_count: Optional[int],
    minimum_sample_size: Optional[int]
) -> bool:
    """
    Set the period to missing if it had too many missing or too few values.

    Returns:
        True if the period was set to missing
    """
    set_missing = False
    if allow_missing_count is not None and count_missing > allow_missing_count:
        logger.info(
            f"Setting cumulative values to missing for {period_start} to {period_end} because "
            f"number of missing values {count_missing} is > allowed ({allow_missing_count})"
        )
        set_missing = True
    if minimum_sample_size is not None and count_nonmissing < minimum_sample_size:
        logger.info(
            f"Setting cumulative values to missing for {period_start} to {period_end} because "
            f"sample size {count_nonmissing} is < minimum required ({minimum_sample_size})"
        )
        set_missing = True
    if set_missing:
        for date, _ in ts.iterate(period_start, period_end):
            ts.set(date, None)
    return set_missing


def _cumulate_irregular(
    ts: IrregularTimeSeries,
    start: CalendarDateTime,
    end: CalendarDateTime,
    handle_missing_how: CumulateMissingType
) -> None:
    total = None
    for sample in ts.data:
        if sample.date > end:
            break
        if sample.date < start:
            continue
        if not ts.is_missing(sample.value):
            total = sample.value if total is None else total + sample.value
            sample.value = total
        elif handle_missing_how == CumulateMissingType.CARRY_FORWARD:
            sample.value = ts.missing if total is None else total


def cumulate_in_place(
    ts: TimeSeries,
    start=None,
    end=None,
    handle_missing_how=CumulateMissingType.CARRY_FORWARD,
    reset_date=None,
    reset_value: Optional[float] = None,
    reset_value_to_data_value: bool = False,
    allow_missing_count: Optional[int] = None,
    minimum_sample_size: Optional[int] = None
) -> None:
    """
    Cumulate the values of a time series (the series is modified).

    Args:
        ts: Series to cumulate
        start: Analysis start (default: series start, clipped to the series)
        end: Analysis end (default: series end, clipped to the series)
        handle_missing_how: CumulateMissingType member or name. With
            CarryForwardIfMissing a missing value is replaced by the current
            total; with SetMissingIfMissing it is left missing
        reset_date: Optional yearly reset ("MM-DD" or a date/time whose year is ignored)
        reset_value: Total after a reset (default 0.0)
        reset_value_to_data_value: Reset to the original value at the reset date instead
        allow_missing_count: If set, periods with more missing values are set to missing
        minimum_sample_size: If set, periods with fewer non-missing values are set to missing

    Raises:
        MissingInputError: If ts is None
        IrregularTimeSeriesNotSupportedError: If a reset is requested for an irregular series
        InvalidParameterError: If the missing type is unknown or the period is invalid

    Examples:
        >>> ts = RegularTimeSeries.from_values("1Day", CalendarDateTime(2020, 1, 1), [1.0, 2.0, 3.0])
        >>> cumulate_in_place(ts)
        >>> ts.values.tolist()
        [1.0, 3.0, 6.0]
    """
    ts = require_time_series(ts)
    handle_missing_how = CumulateMissingType.parse(handle_missing_how)

    if reset_date is not None and not ts.is_regular:
        message = "Using Reset to cumulate is not supported for irregular time series."
        logger.warning(message)
        raise IrregularTimeSeriesNotSupportedError(message)

    start, end = get_valid_period(ts, start, end)

    if not ts.is_regular:
        _cumulate_irregular(ts, start, end, handle_missing_how)
        ts.add_to_genesis(f"Cumulated {start} to {end}.")
        ts.description = f"{ts.description}, cumulative"
        logger.info(f"Cumulated irregular series {ts.identifier} from {start} to {end}")
        return

    reset = parse_reset_date(reset_date, ts)
    if reset is not None and reset_value is None:
        reset_value = 0.0

    total = None
    count_nonmissing = 0
    count_missing = calculate_starting_missing_count(ts, start, reset)
    period_start = start
    if reset is not None:
        logger.info(f"Missing count for start of first period = {count_missing}")

    for date, old_value in ts.iterate(start, end):
        if not ts.is_missing(old_value):
            total = old_value if total is None else total + old_value
            count_nonmissing += 1
            ts.set(date, total)
        else:
            if handle_missing_how == CumulateMissingType.CARRY_FORWARD:
                ts.set(date, total)
            count_missing += 1

        if reset is not None and date.same_position_in_year(reset):
            _check_for_incomplete_period(
                ts, period_start, date, count_nonmissing, count_missing,
                allow_missing_count, minimum_sample_size
            )
            if reset_value_to_data_value:
                total = None if ts.is_missing(old_value) else old_value
            else:
                total = reset_value
            count_nonmissing = 0
            count_missing = 0
            ts.set(date, total)
            period_start = date

    if reset is not None:
        # Trailing (possibly partial) period
        _check_for_incomplete_period(
            ts, period_start, end, count_nonmissing, count_missing,
            allow_missing_count, minimum_sample_size
        )

    ts.add_to_genesis(f"Cumulated {start} to {end}.")
    ts.description = f"{ts.description}, cumulative"
    logger.info(f"Cumulated {ts.identifier} from {start} to {end}")


def cumulate_with_config(ts: TimeSeries, config: CumulateConfig, start=None, end=None) -> None:
    """
    Cumulate a time series in place using a CumulateConfig.

    Args:
        ts: Series to cumulate
        config: Cumulate parameters (e.g., from load_default_cumulate_config())
        start: Analysis start (default: series start)
        end: Analysis end (default: series end)
    """
    cumulate_in_place(
        ts,
        start=start,
        end=end,
        handle_missing_how=config.handle_missing_how,
        reset_date=config.reset_date,
        reset_value=config.reset_value,
        reset_value_to_data_value=config.reset_value_to_data_value,
        allow_missing_count=config.allow_missing_count,
        minimum_sample_size=config.minimum_sample_size
    )


if __name__ == "__main__":
    import os

    logging.basicConfig(level=os.getenv('LOG_LEVEL', 'INFO'))

    # Example usage
    print("Cumulate Examples")
    print("=" * 60)

    precip = RegularTimeSeries.from_values(
        "1Month",
        CalendarDateTime.parse("2019-08"),
        [1.0, 0.5, None, 2.0, 1.5, 0.0, 3.0],
        location="ABC",
        description="Precipitation"
    )
    cumulate_in_place(precip, reset_date="10-01", allow_missing_count=1)

    print(precip.description)
    for date, value in precip.iterate():
        shown = "missing" if precip.is_missing(value) else f"{value:.2f}"
        print(f"  {date}: {shown}")
