"""
Unit Tests for Running Average Time Series

Tests verify:
1. Window offsets for each of the seven shapes
2. Strict completeness: any missing value in the window suppresses the output
3. NYear and NAllYear calendar averages (including leap days)
4. Degenerate brackets return the input unchanged
5. Genesis/description updates and input immutability
6. Irregular input is rejected
"""

import pytest
import numpy as np
from pathlib import Path
import sys

# Add src to path
src_path = Path(__file__).parent.parent.parent / 'src'
sys.path.insert(0, str(src_path))

from metrics.running_average import (
    compute_running_average,
    describe_running_average,
    get_window_offsets
)
from metrics.schemas import RunningAverageType
from tsdata.datetime_util import CalendarDateTime
from tsdata.errors import InvalidParameterError, IrregularTimeSeriesNotSupportedError, MissingInputError
from tsdata.functions import set_from_function
from tsdata.series import IrregularTimeSeries, RegularTimeSeries


START = CalendarDateTime(2020, 1, 1)


@pytest.fixture
def ten_days():
    """Daily values 1..10"""
    return RegularTimeSeries.from_values(
        "1Day", START, [float(i) for i in range(1, 11)], location="A", description="Flow"
    )


@pytest.fixture
def three_years():
    """Daily values encoding the date (YYYYMMDD), 2019-2021"""
    ts = RegularTimeSeries("1Day", location="A", description="Flow")
    ts.allocate_data_space(CalendarDateTime(2019, 1, 1), CalendarDateTime(2021, 12, 31))
    set_from_function(ts, "DateYYYYMMDD")
    return ts


def values_of(ts):
    """Values with missing as None"""
    return [None if ts.is_missing(v) else v for v in ts.values]


# Test Cases: Window Definitions

@pytest.mark.parametrize("average_type,n,expected", [
    (RunningAverageType.CENTERED, 2, (-2, 2, 5)),
    (RunningAverageType.PREVIOUS, 2, (-2, -1, 2)),
    (RunningAverageType.PREVIOUS_INCLUSIVE, 2, (-2, 0, 3)),
    (RunningAverageType.FUTURE, 2, (1, 2, 2)),
    (RunningAverageType.FUTURE_INCLUSIVE, 2, (0, 2, 3)),
    (RunningAverageType.N_YEAR, 3, (-2, 0, 3)),
])
def test_window_offsets(average_type, n, expected):
    """Offsets and required counts for each shape"""
    assert get_window_offsets(average_type, n) == expected


def test_describe_running_average():
    """Labels used in genesis and description"""
    assert describe_running_average("Centered", 3) == "bracket=3 centered"
    assert describe_running_average("PreviousInclusive", 1) == "bracket=1 previous (inclusive)"
    assert describe_running_average("NYear", 5) == "5-year"
    assert describe_running_average("NAllYear", 0) == "NAll-year"


def test_parse_average_type():
    """Names are parsed case-insensitively"""
    assert RunningAverageType.parse("futureinclusive") == RunningAverageType.FUTURE_INCLUSIVE
    with pytest.raises(InvalidParameterError):
        RunningAverageType.parse("Weighted")


# Test Cases: Bracket Shapes

class TestBracketShapes:
    """Tests for centered, previous and future windows"""

    def test_centered(self, ten_days):
        """Centered bracket=1 averages t-1..t+1"""
        result = values_of(compute_running_average(ten_days, "Centered", 1))

        assert result[0] is None, "Window starts before the series"
        assert result[1] == pytest.approx(2.0)
        assert result[8] == pytest.approx(9.0)
        assert result[9] is None, "Window ends after the series"

    def test_previous(self, ten_days):
        """Previous bracket=2 averages t-2..t-1"""
        result = values_of(compute_running_average(ten_days, "Previous", 2))

        assert result[:2] == [None, None]
        assert result[2] == pytest.approx(1.5)
        assert result[9] == pytest.approx(8.5)

    def test_previous_inclusive(self, ten_days):
        """PreviousInclusive bracket=2 averages t-2..t"""
        result = values_of(compute_running_average(ten_days, "PreviousInclusive", 2))

        assert result[1] is None
        assert result[2] == pytest.approx(2.0)

    def test_future(self, ten_days):
        """Future bracket=2 averages t+1..t+2"""
        result = values_of(compute_running_average(ten_days, "Future", 2))

        assert result[0] == pytest.approx(2.5)
        assert result[7] == pytest.approx(9.5)
        assert result[8:] == [None, None]

    def test_future_inclusive(self, ten_days):
        """FutureInclusive bracket=2 averages t..t+2"""
        result = values_of(compute_running_average(ten_days, "FutureInclusive", 2))

        assert result[0] == pytest.approx(2.0)
        assert result[7] == pytest.approx(9.0)
        assert result[8] is None

    def test_mean_after_large_value_leaves_window(self):
        """Rolling means stay within floating-point precision of the plain mean"""
        raw = [1.0e6, 0.1, 0.7, 1.1, 0.3]
        ts = RegularTimeSeries.from_values("1Day", START, raw)

        result = values_of(compute_running_average(ts, "Previous", 3))

        assert result[4] == pytest.approx(sum(raw[1:4]) / 3, rel=1e-9)

    def test_single_missing_suppresses_window(self, ten_days):
        """No partial averages"""
        ten_days.set(CalendarDateTime(2020, 1, 5), None)

        result = values_of(compute_running_average(ten_days, "Centered", 1))

        assert result[3:6] == [None, None, None]
        assert result[2] == pytest.approx(3.0)
        assert result[6] == pytest.approx(7.0)

    @pytest.mark.parametrize("shape", ["Centered", "Previous", "PreviousInclusive", "Future", "FutureInclusive"])
    def test_output_present_iff_window_complete(self, shape):
        """Output is non-missing exactly when every window value is present"""
        rng = np.random.default_rng(7)
        raw = rng.uniform(1.0, 100.0, 60)
        raw[rng.random(60) < 0.15] = np.nan
        ts = RegularTimeSeries.from_values("1Day", START, raw.tolist())
        n = 3
        offset1, offset2, _ = get_window_offsets(shape, n)

        result = values_of(compute_running_average(ts, shape, n))

        for t in range(60):
            window = [raw[i] if 0 <= i < 60 else np.nan for i in range(t + offset1, t + offset2 + 1)]
            if np.any(np.isnan(window)):
                assert result[t] is None, f"{shape} at {t} should be missing"
            else:
                assert result[t] == pytest.approx(np.mean(window)), f"{shape} at {t}"

    def test_monthly_series(self):
        """Brackets step by the series interval"""
        ts = RegularTimeSeries.from_values("1Month", CalendarDateTime.parse("2020-11"), [3.0, 6.0, 9.0, 12.0])

        result = compute_running_average(ts, "Previous", 1)

        assert result.get(CalendarDateTime.parse("2021-01")) == pytest.approx(6.0)


# Test Cases: Year Shapes

class TestYearShapes:
    """Tests for NYear and NAllYear"""

    def test_n_year_yearly_data(self):
        """NYear averages the current and previous n-1 years"""
        ts = RegularTimeSeries.from_values("1Year", CalendarDateTime.parse("2000"), [1.0, 2.0, 3.0, 4.0, 5.0])

        result = values_of(compute_running_average(ts, "NYear", 3))

        assert result[:2] == [None, None]
        assert result[2:] == [pytest.approx(2.0), pytest.approx(3.0), pytest.approx(4.0)]

    def test_n_year_daily_uses_same_day(self, three_years):
        """NYear with daily data averages the same day in each year"""
        result = compute_running_average(three_years, "NYear", 2)

        expected = (20200301.0 + 20210301.0) / 2

        assert result.get(CalendarDateTime(2021, 3, 1)) == pytest.approx(expected)
        assert result.is_missing(result.get(CalendarDateTime(2019, 6, 1))), "Year before series is missing"

    def test_n_year_leap_day_suppressed(self, three_years):
        """Feb 29 does not exist in the previous year"""
        result = compute_running_average(three_years, "NYear", 2)

        assert result.is_missing(result.get(CalendarDateTime(2020, 2, 29)))
        assert not result.is_missing(result.get(CalendarDateTime(2020, 2, 28)))

    def test_all_year_skips_missing(self):
        """NAllYear averages whatever values are present"""
        ts = RegularTimeSeries.from_values("1Year", CalendarDateTime.parse("2000"), [2.0, None, 4.0, 6.0])

        result = values_of(compute_running_average(ts, "NAllYear", 0))

        assert result == [pytest.approx(2.0), pytest.approx(2.0), pytest.approx(3.0), pytest.approx(4.0)]

    def test_all_year_missing_only_if_none(self):
        """NAllYear is missing only if no values qualify"""
        ts = RegularTimeSeries.from_values("1Year", CalendarDateTime.parse("2000"), [None, None, 4.0])

        result = values_of(compute_running_average(ts, "NAllYear", 0))

        assert result[:2] == [None, None]
        assert result[2] == pytest.approx(4.0)

    def test_all_year_partial_first_year(self):
        """Positions before the series start begin in the following year"""
        ts = RegularTimeSeries("1Day")
        ts.allocate_data_space(CalendarDateTime(2019, 7, 1), CalendarDateTime(2021, 6, 30))
        set_from_function(ts, "DateYYYYMMDD")

        result = compute_running_average(ts, "NAllYear", 0)

        assert result.get(CalendarDateTime(2020, 3, 1)) == pytest.approx(20200301.0)
        assert result.get(CalendarDateTime(2020, 8, 1)) == pytest.approx((20190801.0 + 20200801.0) / 2)
        assert result.get(CalendarDateTime(2021, 3, 1)) == pytest.approx((20200301.0 + 20210301.0) / 2)

    def test_all_year_leap_day(self, three_years):
        """Feb 29 only exists in leap years"""
        result = compute_running_average(three_years, "NAllYear", 0)

        assert result.get(CalendarDateTime(2020, 2, 29)) == pytest.approx(20200229.0)


# Test Cases: Degenerate Parameters

def test_zero_bracket_returns_input(ten_days):
    """n <= 0 returns the original series"""
    assert compute_running_average(ten_days, "Centered", 0) is ten_days


def test_one_year_returns_input(ten_days):
    """NYear with n <= 1 returns the original series"""
    assert compute_running_average(ten_days, "NYear", 1) is ten_days


# Test Cases: Output Metadata

def test_output_metadata(ten_days):
    """Description and genesis record the window"""
    result = compute_running_average(ten_days, "Centered", 1)

    assert result.description == "Flow, bracket=1 centered run ave"
    assert result.genesis[-1] == "Created bracket=1 centered running average time series from original data"
    assert result.bounds() == ten_days.bounds()
    assert result.interval == ten_days.interval


def test_input_not_modified(ten_days):
    """A new series is returned"""
    before = ten_days.values

    result = compute_running_average(ten_days, "Previous", 1)

    assert result is not ten_days
    np.testing.assert_array_equal(ten_days.values, before)
    assert ten_days.description == "Flow"
    assert ten_days.genesis == ()


# Test Cases: Preconditions

def test_irregular_rejected():
    """Irregular series are not supported"""
    ts = IrregularTimeSeries()
    ts.add(CalendarDateTime.parse("2020-01-01 00:00"), 1.0)

    with pytest.raises(IrregularTimeSeriesNotSupportedError):
        compute_running_average(ts, "Centered", 1)


def test_null_series_rejected():
    """A series is required"""
    with pytest.raises(MissingInputError):
        compute_running_average(None, "Centered", 1)


if __name__ == "__main__":
    # Run tests with pytest
    pytest.main([__file__, "-v", "--tb=short"])
