"""
Time Series Data Model

Calendar-aware date/time values, interval descriptors and the time series
accessor shared by the analysis engines.

Available components:
- Calendar Stepper (CalendarDateTime)
- Interval Descriptor (TimeInterval)
- Series Accessor (RegularTimeSeries, IrregularTimeSeries)
- Function Assignment (set_from_function)
"""

from .datetime_util import (
    CalendarDateTime,
    IntervalBase,
    TimePrecision,
    days_in_month,
    days_in_year,
    is_leap_year
)

from .interval import (
    TimeInterval,
    calculate_data_size
)

from .errors import (
    TimeSeriesError,
    InvalidParameterError,
    MissingInputError,
    IntervalMismatchError,
    UnsupportedErrorMeasureError,
    IrregularTimeSeriesNotSupportedError
)

from .schemas import (
    TSFunctionType,
    YearType,
    parse_enum
)

from .series import (
    TSData,
    TSIterator,
    TimeSeries,
    RegularTimeSeries,
    IrregularTimeSeries,
    get_overlap_period,
    get_valid_period,
    intervals_match
)

from .functions import (
    make_rng,
    set_from_function
)

__all__ = [
    # Calendar Stepper
    'CalendarDateTime',
    'IntervalBase',
    'TimePrecision',
    'days_in_month',
    'days_in_year',
    'is_leap_year',
    # Interval
    'TimeInterval',
    'calculate_data_size',
    # Errors
    'TimeSeriesError',
    'InvalidParameterError',
    'MissingInputError',
    'IntervalMismatchError',
    'UnsupportedErrorMeasureError',
    'IrregularTimeSeriesNotSupportedError',
    # Enumerations
    'TSFunctionType',
    'YearType',
    'parse_enum',
    # Series Accessor
    'TSData',
    'TSIterator',
    'TimeSeries',
    'RegularTimeSeries',
    'IrregularTimeSeries',
    'get_overlap_period',
    'get_valid_period',
    'intervals_match',
    # Function Assignment
    'make_rng',
    'set_from_function'
]
