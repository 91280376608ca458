"""
Time Series Errors

Exception taxonomy shared by the series accessor and the analysis engines.

Design Principles:
- Fail fast with explicit error messages
- Precondition failures are raised before any output is produced or any
  input is mutated
- Each rejected precondition has its own class so callers can branch on it
- Insufficient data is NOT an error: it shows up as missing values in output
"""


class TimeSeriesError(Exception):
    """Base class for all time series processing errors"""
    pass


class InvalidParameterError(TimeSeriesError, ValueError):
    """Raised when a required precondition on the inputs is not met"""
    pass


class MissingInputError(InvalidParameterError):
    """Raised when a required input (usually a time series) is None"""
    pass


class IntervalMismatchError(InvalidParameterError):
    """Raised when time series that must share an interval do not"""
    pass


class UnsupportedErrorMeasureError(InvalidParameterError):
    """Raised when an error measure other than the supported ones is requested"""
    pass


class IrregularTimeSeriesNotSupportedError(InvalidParameterError):
    """Raised when an irregular time series is passed to a regular-only algorithm"""
    pass
