"""
Error Time Series

Computes an error time series comparing a simulated series to an observed
series with the same interval.

Percent error: 100 * (simulated - observed) / observed

Design Principles:
- Every precondition (null input, irregular input, interval mismatch,
  unsupported error measure) has its own exception and is checked before
  any output is created
- Missing inputs and a zero observed value give a missing result
- Inputs are never modified; the result covers the period common to both inputs
"""

import logging
from typing import Optional

from metrics.schemas import ErrorMeasure
from tsdata.errors import IntervalMismatchError, UnsupportedErrorMeasureError
from tsdata.schemas import parse_enum
from tsdata.series import (
    RegularTimeSeries,
    TimeSeries,
    get_overlap_period,
    intervals_match,
    require_regular,
    require_time_series,
)

logger = logging.getLogger(__name__)


PERCENT_ERROR_UNITS = "% Error"


def percent_error(observed: float, simulated: float) -> Optional[float]:
    """
    Return the percent error of simulated relative to observed.

    Returns None if observed is zero.

    Examples:
        >>> percent_error(100.0, 110.0)
        10.0
        >>> percent_error(0.0, 5.0) is None
        True
    """
    if observed == 0.0:
        return None
    return 100.0 * (simulated - observed) / observed


def compute_error_time_series(
    observed_ts: TimeSeries,
    simulated_ts: TimeSeries,
    error_measure=ErrorMeasure.PERCENT_ERROR
) -> RegularTimeSeries:
    """
    Create an error time series from observed and simulated series.

    Args:
        observed_ts: Observed (reference) series
        simulated_ts: Simulated series; its header is copied to the result
        error_measure: ErrorMeasure member or name (only PercentError)

    Returns:
        New series over the overlapping period, units "% Error"

    Raises:
        MissingInputError: If either series is None
        IrregularTimeSeriesNotSupportedError: If either series is irregular
        IntervalMismatchError: If the intervals differ
        UnsupportedErrorMeasureError: If the error measure is not supported
        InvalidParameterError: If the periods do not overlap
    """
    observed_ts = require_time_series(observed_ts, "observed")
    simulated_ts = require_time_series(simulated_ts, "simulated")
    require_regular(observed_ts, "Computing an error time series")
    require_regular(simulated_ts, "Computing an error time series")

    if not intervals_match([observed_ts, simulated_ts]):
        message = (
            f"Observed interval {observed_ts.interval} and simulated interval "
            f"{simulated_ts.interval} are not the same."
        )
        logger.warning(message)
        raise IntervalMismatchError(message)

    try:
        error_measure = parse_enum(ErrorMeasure, error_measure)
    except ValueError:
        message = f"Error measure \"{error_measure}\" is not supported."
        logger.warning(message)
        raise UnsupportedErrorMeasureError(message)
    if error_measure != ErrorMeasure.PERCENT_ERROR:
        raise UnsupportedErrorMeasureError(f"Error measure \"{error_measure.value}\" is not supported.")

    start, end = get_overlap_period([observed_ts, simulated_ts])

    error_ts = simulated_ts.copy_header()
    error_ts.allocate_data_space(start, end)

    missing_count = 0
    for date, _ in error_ts.iterate():
        observed = observed_ts.get(date)
        simulated = simulated_ts.get(date)
        if observed_ts.is_missing(observed) or simulated_ts.is_missing(simulated):
            missing_count += 1
            continue
        error = percent_error(observed, simulated)
        if error is None:
            missing_count += 1
            continue
        error_ts.set(date, error)

    error_ts.units = PERCENT_ERROR_UNITS
    error_ts.description = f"{simulated_ts.description}, error"
    error_ts.add_to_genesis(
        f"Created error time series for period {start} to {end} using simulated "
        f"\"{simulated_ts.identifier}\" and observed \"{observed_ts.identifier}\""
    )

    logger.info(
        f"Computed {error_measure.value} for {simulated_ts.identifier} ({start} to {end}), "
        f"{missing_count} missing values"
    )
    return error_ts
