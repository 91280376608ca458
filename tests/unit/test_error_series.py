"""
Unit Tests for Error Time Series

Tests verify:
1. Percent error = 100 * (simulated - observed) / observed
2. Missing inputs and zero observed values give missing output
3. Output covers the period common to both inputs
4. Each precondition raises its own error
5. Output header (units, description, genesis) and input immutability
"""

import pytest
import numpy as np
from pathlib import Path
import sys

# Add src to path
src_path = Path(__file__).parent.parent.parent / 'src'
sys.path.insert(0, str(src_path))

from metrics.error_series import PERCENT_ERROR_UNITS, compute_error_time_series, percent_error
from metrics.schemas import ErrorMeasure
from tsdata.datetime_util import CalendarDateTime
from tsdata.errors import (
    IntervalMismatchError,
    InvalidParameterError,
    IrregularTimeSeriesNotSupportedError,
    MissingInputError,
    UnsupportedErrorMeasureError
)
from tsdata.series import IrregularTimeSeries, RegularTimeSeries


START = CalendarDateTime(2020, 6, 1)


def daily(start, values, **kwargs):
    """Daily series starting at start"""
    return RegularTimeSeries.from_values("1Day", start, values, **kwargs)


def values_of(ts):
    """Values with missing as None"""
    return [None if ts.is_missing(v) else v for v in ts.values]


@pytest.fixture
def observed():
    return daily(START, [100.0, 0.0, 50.0, None, 80.0], location="09163500", description="Observed flow")


@pytest.fixture
def simulated():
    return daily(START, [110.0, 5.0, None, 20.0, 60.0], location="09163500", description="Simulated flow", units="cfs")


# Test Cases: Percent Error

@pytest.mark.parametrize("obs,sim,expected", [
    (100.0, 110.0, 10.0),
    (100.0, 90.0, -10.0),
    (50.0, 50.0, 0.0),
    (-20.0, -10.0, -50.0),
])
def test_percent_error(obs, sim, expected):
    """Signed percent difference relative to observed"""
    assert percent_error(obs, sim) == pytest.approx(expected)


def test_percent_error_zero_observed():
    """Division by zero is not an error: result is undefined"""
    assert percent_error(0.0, 5.0) is None


# Test Cases: Error Series

class TestErrorSeries:
    """Tests for compute_error_time_series"""

    def test_values(self, observed, simulated):
        """Only defined errors are present"""
        result = compute_error_time_series(observed, simulated)

        assert values_of(result) == [
            pytest.approx(10.0),
            None,  # observed is zero
            None,  # simulated is missing
            None,  # observed is missing
            pytest.approx(-25.0)
        ]

    def test_error_measure_by_name(self, observed, simulated):
        """The error measure can be given as a name"""
        result = compute_error_time_series(observed, simulated, "PercentError")

        assert result.get(START) == pytest.approx(10.0)

    def test_header(self, observed, simulated):
        """Header is copied from the simulated series"""
        result = compute_error_time_series(observed, simulated, ErrorMeasure.PERCENT_ERROR)

        assert result.units == PERCENT_ERROR_UNITS
        assert result.description == "Simulated flow, error"
        assert result.location == "09163500"
        assert result.interval == simulated.interval
        assert "Created error time series for period 2020-06-01 to 2020-06-05" in result.genesis[-1]

    def test_inputs_not_modified(self, observed, simulated):
        """A new series is returned"""
        observed_before = observed.values
        simulated_before = simulated.values

        result = compute_error_time_series(observed, simulated)

        assert result is not simulated
        np.testing.assert_array_equal(observed.values, observed_before)
        np.testing.assert_array_equal(simulated.values, simulated_before)
        assert simulated.units == "cfs"
        assert simulated.description == "Simulated flow"

    def test_overlapping_period(self):
        """Output covers only the intersection of the input periods"""
        observed = daily(CalendarDateTime(2020, 1, 1), [100.0] * 10)
        simulated = daily(CalendarDateTime(2020, 1, 6), [150.0] * 10)

        result = compute_error_time_series(observed, simulated)

        assert result.start == CalendarDateTime(2020, 1, 6)
        assert result.end == CalendarDateTime(2020, 1, 10)
        assert values_of(result) == [pytest.approx(50.0)] * 5

    def test_no_overlap(self):
        """Disjoint periods cannot be compared"""
        observed = daily(CalendarDateTime(2020, 1, 1), [100.0] * 5)
        simulated = daily(CalendarDateTime(2021, 1, 1), [100.0] * 5)

        with pytest.raises(InvalidParameterError):
            compute_error_time_series(observed, simulated)

    def test_monthly(self):
        """Any regular interval is supported"""
        observed = RegularTimeSeries.from_values("1Month", CalendarDateTime.parse("2020-01"), [10.0, 20.0])
        simulated = RegularTimeSeries.from_values("1Month", CalendarDateTime.parse("2020-01"), [12.0, 15.0])

        result = compute_error_time_series(observed, simulated)

        assert values_of(result) == [pytest.approx(20.0), pytest.approx(-25.0)]


# Test Cases: Preconditions

class TestPreconditions:
    """Each precondition has its own error"""

    def test_missing_observed(self, simulated):
        with pytest.raises(MissingInputError):
            compute_error_time_series(None, simulated)

    def test_missing_simulated(self, observed):
        with pytest.raises(MissingInputError):
            compute_error_time_series(observed, None)

    def test_irregular_input(self, simulated):
        irregular = IrregularTimeSeries()
        irregular.add(CalendarDateTime.parse("2020-06-01 00:00"), 1.0)

        with pytest.raises(IrregularTimeSeriesNotSupportedError):
            compute_error_time_series(irregular, simulated)

    def test_interval_mismatch(self, observed):
        hourly = RegularTimeSeries.from_values("1Hour", CalendarDateTime.parse("2020-06-01 00"), [1.0] * 24)

        with pytest.raises(IntervalMismatchError):
            compute_error_time_series(observed, hourly)

    def test_multiplier_mismatch(self, observed):
        two_day = RegularTimeSeries.from_values("2Day", START, [1.0] * 3)

        with pytest.raises(IntervalMismatchError):
            compute_error_time_series(observed, two_day)

    def test_unsupported_error_measure(self, observed, simulated):
        with pytest.raises(UnsupportedErrorMeasureError):
            compute_error_time_series(observed, simulated, "RootMeanSquareError")

    def test_errors_are_invalid_parameters(self):
        """Callers can catch all parameter problems together"""
        assert issubclass(IntervalMismatchError, InvalidParameterError)
        assert issubclass(UnsupportedErrorMeasureError, InvalidParameterError)


if __name__ == "__main__":
    # Run tests with pytest
    pytest.main([__file__, "-v", "--tb=short"])
