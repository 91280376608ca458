"""
Unit Tests for Cumulative Time Series Transform

Tests verify:
1. Running totals with no missing data equal the sum of inputs
2. Carry-forward and set-missing handling of missing values
3. Yearly reset (constant and data value) restarts the total
4. Incomplete periods are set to missing (missing count, sample size)
5. Partial first periods are pre-seeded with missing intervals
6. Irregular series (no reset) and rejection of resets for irregular series
7. In-place mutation with genesis/description updates
"""

import pytest
import numpy as np
from pathlib import Path
import sys

# Add src to path
src_path = Path(__file__).parent.parent.parent / 'src'
sys.path.insert(0, str(src_path))

from metrics.cumulate import (
    calculate_starting_missing_count,
    cumulate_in_place,
    cumulate_with_config
)
from metrics.schemas import CumulateConfig, CumulateMissingType, load_default_cumulate_config
from tsdata.datetime_util import CalendarDateTime
from tsdata.errors import InvalidParameterError, IrregularTimeSeriesNotSupportedError, MissingInputError
from tsdata.series import IrregularTimeSeries, RegularTimeSeries


def daily(start, values, **kwargs):
    """Daily series starting at start"""
    return RegularTimeSeries.from_values("1Day", start, values, **kwargs)


def values_of(ts):
    """Values with missing as None"""
    return [None if ts.is_missing(v) else v for v in ts.values]


# Test Cases: Basic Cumulation

def test_running_total():
    """Without missing data each value is the sum through that date"""
    raw = [1.0, 2.0, 3.0, 4.0, 5.0]
    ts = daily(CalendarDateTime(2020, 1, 1), raw)

    result = cumulate_in_place(ts)

    assert result is None, "Cumulation modifies the series in place"
    assert ts.values.tolist() == list(np.cumsum(raw))


def test_carry_forward_missing():
    """Missing values are replaced by the current total"""
    ts = daily(CalendarDateTime(2020, 1, 1), [1.0, None, 2.0])

    cumulate_in_place(ts, handle_missing_how=CumulateMissingType.CARRY_FORWARD)

    assert values_of(ts) == [1.0, 1.0, 3.0]


def test_set_missing_if_missing():
    """Missing values stay missing and the total continues"""
    ts = daily(CalendarDateTime(2020, 1, 1), [1.0, None, 2.0])

    cumulate_in_place(ts, handle_missing_how="SetMissingIfMissing")

    assert values_of(ts) == [1.0, None, 3.0]


def test_leading_missing_carry_forward():
    """Nothing to carry forward before the first value"""
    ts = daily(CalendarDateTime(2020, 1, 1), [None, 1.0, 2.0])

    cumulate_in_place(ts)

    assert values_of(ts) == [None, 1.0, 3.0]


def test_analysis_period():
    """Only the analysis period is cumulated"""
    ts = daily(CalendarDateTime(2020, 1, 1), [1.0] * 5)

    cumulate_in_place(ts, start=CalendarDateTime(2020, 1, 3))

    assert values_of(ts) == [1.0, 1.0, 1.0, 2.0, 3.0]


def test_genesis_and_description():
    """Genesis records the period and description is suffixed"""
    ts = daily(CalendarDateTime(2020, 1, 1), [1.0] * 5, description="Precip")

    cumulate_in_place(ts)

    assert ts.description == "Precip, cumulative"
    assert ts.genesis[-1] == "Cumulated 2020-01-01 to 2020-01-05."


def test_unknown_missing_type_rejected():
    """Unknown missing policies are rejected before mutation"""
    ts = daily(CalendarDateTime(2020, 1, 1), [1.0, 2.0])

    with pytest.raises(InvalidParameterError):
        cumulate_in_place(ts, handle_missing_how="Interpolate")
    assert ts.values.tolist() == [1.0, 2.0]


@pytest.mark.parametrize("how", ["CarryForwardIfMissing", "SetMissingIfMissing"])
def test_off_grid_start_rejected(how):
    """An analysis start between interval points is rejected before mutation"""
    ts = RegularTimeSeries.from_values(
        "6Hour", CalendarDateTime.parse("2000-01-01 00"), [1.0, 2.0, 3.0, 4.0], description="Precip"
    )

    with pytest.raises(InvalidParameterError):
        cumulate_in_place(ts, start=CalendarDateTime.parse("2000-01-01 03"), handle_missing_how=how)

    assert ts.values.tolist() == [1.0, 2.0, 3.0, 4.0]
    assert ts.description == "Precip"
    assert ts.genesis == ()


def test_null_series_rejected():
    """A series is required"""
    with pytest.raises(MissingInputError):
        cumulate_in_place(None)


# Test Cases: Reset

class TestReset:
    """Tests for yearly reset"""

    def test_reset_to_value(self):
        """The total restarts at the reset value on the reset date"""
        ts = daily(CalendarDateTime(2019, 12, 30), [1.0] * 5)

        cumulate_in_place(ts, reset_date="01-01")

        assert values_of(ts) == [1.0, 2.0, 0.0, 1.0, 2.0]

    def test_reset_to_explicit_value(self):
        """A non-zero reset value"""
        ts = daily(CalendarDateTime(2019, 12, 30), [1.0] * 5)

        cumulate_in_place(ts, reset_date="01-01", reset_value=10.0)

        assert values_of(ts)[2:] == [10.0, 11.0, 12.0]

    def test_reset_to_data_value(self):
        """The total restarts at the original value on the reset date"""
        ts = daily(CalendarDateTime(2019, 12, 31), [5.0, 7.0, 1.0])

        cumulate_in_place(ts, reset_date="01-01", reset_value_to_data_value=True)

        assert values_of(ts) == [5.0, 7.0, 8.0]

    def test_reset_every_year(self):
        """Each year restarts"""
        ts = RegularTimeSeries("1Month")
        ts.allocate_data_space(CalendarDateTime.parse("2019-08"), CalendarDateTime.parse("2021-02"))
        for date, _ in ts.iterate():
            ts.set(date, 1.0)

        cumulate_in_place(ts, reset_date="10-01")

        assert ts.get(CalendarDateTime.parse("2019-09")) == 2.0
        assert ts.get(CalendarDateTime.parse("2019-10")) == 0.0
        assert ts.get(CalendarDateTime.parse("2020-09")) == 11.0
        assert ts.get(CalendarDateTime.parse("2020-10")) == 0.0
        assert ts.get(CalendarDateTime.parse("2021-02")) == 4.0


# Test Cases: Incomplete Periods

class TestIncompletePeriods:
    """Tests for setting unreliable periods to missing"""

    def test_period_with_too_many_missing(self):
        """A period with more missing values than allowed is set to missing"""
        start = CalendarDateTime(2019, 1, 1)
        ts = RegularTimeSeries("1Day")
        ts.allocate_data_space(start, CalendarDateTime(2020, 12, 31))
        for date, _ in ts.iterate():
            ts.set(date, 1.0)
        ts.set(CalendarDateTime(2019, 6, 1), None)

        cumulate_in_place(ts, reset_date="01-01", allow_missing_count=0)

        assert all(ts.is_missing(v) for _, v in ts.iterate(start, CalendarDateTime(2019, 12, 31)))
        assert ts.get(CalendarDateTime(2020, 1, 1)) == 0.0, "Reset date holds the reset value"
        assert ts.get(CalendarDateTime(2020, 12, 31)) == 365.0

    def test_partial_first_period(self):
        """Intervals before the start count as missing"""
        ts = daily(CalendarDateTime(2019, 12, 30), [1.0] * 5)

        cumulate_in_place(ts, reset_date="01-01", allow_missing_count=0)

        assert values_of(ts) == [None, None, 0.0, 1.0, 2.0]

    def test_minimum_sample_size_trailing_period(self):
        """The trailing period is checked after processing"""
        ts = daily(CalendarDateTime(2020, 12, 25), [1.0] * 10)

        cumulate_in_place(ts, reset_date="01-01", minimum_sample_size=5)

        result = values_of(ts)
        assert result[:7] == [1.0, 2.0, 3.0, 4.0, 5.0, 6.0, 7.0]
        assert result[7:] == [None, None, None]

    def test_complete_periods_unchanged(self):
        """Checks pass when thresholds are met"""
        ts = daily(CalendarDateTime(2020, 1, 1), [1.0] * 5)

        cumulate_in_place(ts, reset_date="01-01", allow_missing_count=0, minimum_sample_size=1)

        assert values_of(ts) == [0.0, 1.0, 2.0, 3.0, 4.0]


# Test Cases: Starting Missing Count

def test_starting_missing_count():
    """Intervals from the previous reset to the start"""
    ts = RegularTimeSeries("1Day")

    assert calculate_starting_missing_count(ts, CalendarDateTime(2020, 1, 11), CalendarDateTime(2000, 1, 1)) == 10
    assert calculate_starting_missing_count(ts, CalendarDateTime(2020, 1, 1), CalendarDateTime(2000, 1, 1)) == 0
    assert calculate_starting_missing_count(ts, CalendarDateTime(2020, 1, 11), None) == 0


def test_starting_missing_count_previous_year():
    """A reset later in the year than the start uses the previous year"""
    ts = RegularTimeSeries("1Day")

    count = calculate_starting_missing_count(ts, CalendarDateTime(2020, 1, 1), CalendarDateTime(2000, 10, 1))

    assert count == 92, "Oct 1 to Dec 31, 2019"


def test_starting_missing_count_leap_day_reset():
    """A Feb 29 reset is found in the most recent leap year"""
    ts = RegularTimeSeries("1Day")

    count = calculate_starting_missing_count(ts, CalendarDateTime(2021, 3, 1), CalendarDateTime(2000, 2, 29))

    assert count == 366


# Test Cases: Irregular Series

class TestIrregular:
    """Tests for irregular series"""

    def make_irregular(self):
        ts = IrregularTimeSeries()
        for minute, value in [(0, 1.0), (7, None), (19, 2.0), (42, 3.0)]:
            ts.add(CalendarDateTime.parse(f"2020-01-01 00:{minute:02d}"), value)
        return ts

    def test_irregular_cumulate(self):
        """Raw samples are cumulated in order"""
        ts = self.make_irregular()

        cumulate_in_place(ts)

        assert [sample.value for sample in ts.data] == [1.0, 1.0, 3.0, 6.0]

    def test_irregular_set_missing(self):
        """Missing samples stay missing"""
        ts = self.make_irregular()

        cumulate_in_place(ts, handle_missing_how="SetMissingIfMissing")

        assert ts.is_missing(ts.data[1].value)
        assert ts.data[3].value == 6.0

    def test_irregular_reset_rejected(self):
        """Resets are not supported for irregular series"""
        ts = self.make_irregular()

        with pytest.raises(IrregularTimeSeriesNotSupportedError):
            cumulate_in_place(ts, reset_date="01-01")
        assert ts.data[2].value == 2.0, "Series is not modified"


# Test Cases: Configuration

def test_cumulate_with_config():
    """Parameters from a config model"""
    ts = daily(CalendarDateTime(2019, 12, 30), [1.0] * 5)
    config = CumulateConfig(reset_date="01-01", reset_value=100.0)

    cumulate_with_config(ts, config)

    assert values_of(ts) == [1.0, 2.0, 100.0, 101.0, 102.0]


def test_config_rejects_invalid_reset_date():
    """Reset dates are validated"""
    with pytest.raises(ValueError):
        CumulateConfig(reset_date="13-45")


def test_default_config():
    """Defaults from config/thresholds/cumulate.yaml"""
    config = load_default_cumulate_config()

    assert config.handle_missing_how == CumulateMissingType.CARRY_FORWARD
    assert config.reset_date is None
    assert config.reset_value == 0.0


if __name__ == "__main__":
    # Run tests with pytest
    pytest.main([__file__, "-v", "--tb=short"])
