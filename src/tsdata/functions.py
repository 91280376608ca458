"""
Function Assignment

Fill a time series with values computed from the date/time of each value
(useful for building test data with recognizable values) or drawn from an
explicitly supplied random number generator.
"""

import logging
from typing import Optional

import numpy as np

from tsdata.datetime_util import CalendarDateTime
from tsdata.schemas import TSFunctionType
from tsdata.series import TimeSeries, get_valid_period, require_time_series

logger = logging.getLogger(__name__)


def make_rng(seed=None) -> np.random.Generator:
    """
    Create a random number generator with consistent seed handling.

    Args:
        seed: None (new unseeded generator), int, np.random.SeedSequence,
            or an existing np.random.Generator (returned unchanged)

    Returns:
        np.random.Generator

    Raises:
        TypeError: If the seed is of an invalid type
    """
    if isinstance(seed, np.random.Generator):
        return seed
    elif isinstance(seed, np.random.SeedSequence):
        return np.random.default_rng(seed)
    elif seed is None or isinstance(seed, (int, np.integer)):
        return np.random.default_rng(seed)
    raise TypeError(f"Invalid seed type: {type(seed)}")


def evaluate_function(function_type: TSFunctionType, date: CalendarDateTime, rng: Optional[np.random.Generator] = None) -> float:
    """
    Return the function value for one date/time.

    Examples:
        >>> evaluate_function(TSFunctionType.DATE_YYYYMMDD, CalendarDateTime(2020, 3, 4))
        20200304.0
        >>> evaluate_function(TSFunctionType.DATETIME_YYYYMMDD_HH, CalendarDateTime.parse("2020-03-04 06"))
        20200304.06
    """
    function_type = TSFunctionType.parse(function_type)
    yyyymmdd = date.year * 10000 + date.month * 100 + date.day
    if function_type == TSFunctionType.DATE_YYYY:
        return float(date.year)
    elif function_type == TSFunctionType.DATE_YYYYMM:
        return float(date.year * 100 + date.month)
    elif function_type == TSFunctionType.DATE_YYYYMMDD:
        return float(yyyymmdd)
    elif function_type == TSFunctionType.DATETIME_YYYYMMDD_HH:
        return yyyymmdd + date.hour / 100.0
    elif function_type == TSFunctionType.DATETIME_YYYYMMDD_HHMM:
        return yyyymmdd + date.hour / 100.0 + date.minute / 10000.0
    elif function_type == TSFunctionType.RANDOM_0_1:
        return float(make_rng(rng).random())
    elif function_type == TSFunctionType.RANDOM_0_1000:
        return float(make_rng(rng).random() * 1000.0)
    raise ValueError(f"Unhandled function type: {function_type}")


def set_from_function(
    ts: TimeSeries,
    function_type,
    start=None,
    end=None,
    rng=None
) -> None:
    """
    Set every value in the period to the result of a function (in place).

    Args:
        ts: Series to modify (data space must already be allocated)
        function_type: TSFunctionType member or name
        start: First date/time to set (default: series start)
        end: Last date/time to set (default: series end)
        rng: Random source for the Random_* functions (Generator, seed or None)

    Raises:
        MissingInputError: If ts is None
        InvalidParameterError: If the function type is unknown or the period
            does not overlap the series
    """
    ts = require_time_series(ts)
    function_type = TSFunctionType.parse(function_type)
    period_start, period_end = get_valid_period(ts, start, end)

    # One generator for the whole pass so values are not re-seeded per sample
    generator = make_rng(rng) if function_type in (TSFunctionType.RANDOM_0_1, TSFunctionType.RANDOM_0_1000) else None

    count = 0
    for date, _ in ts.iterate(period_start, period_end):
        ts.set(date, evaluate_function(function_type, date, generator))
        count += 1

    ts.add_to_genesis(f"Set {period_start} to {period_end} using function {function_type.value}.")
    logger.info(f"Set {count} values of {ts.identifier} using {function_type.value}")
