"""
NqYY Low-Flow Frequency Analysis

Computes low-flow statistics following the NqYY convention, for example
7Q10: the lowest 7-day average flow expected once every 10 years.

Algorithm:
1. For every day of every calendar year in the analysis period, average the
   N-day window centered on the day (N odd, N // 2 days on each side,
   reaching into the adjacent years at year boundaries)
2. A window average is accepted only if at least N - allow_missing_count
   values in the window are present
3. The annual minimum is the smallest accepted average in the year; years
   with no accepted average are discarded
4. A log-Pearson Type III distribution is fit to the annual minima and
   evaluated at the YY-year recurrence interval

Design Principles:
- Preconditions (odd N, daily data) are checked before any data are read
- Insufficient data is not an error: years are discarded, and a result of
  None is returned if the distribution cannot be fit
- The distribution fitter is injectable so the minima can be checked alone
"""

import logging
from typing import Dict, List, Optional

import numpy as np
import pandas as pd

from frequency.distribution import DistributionFactory, DistributionFitError, LogPearsonType3Distribution
from frequency.schemas import LowFlowConfig, LowFlowResult, load_default_config
from tsdata.datetime_util import CalendarDateTime, IntervalBase, TimePrecision
from tsdata.errors import InvalidParameterError
from tsdata.series import RegularTimeSeries, TimeSeries, get_valid_period, require_regular, require_time_series

logger = logging.getLogger(__name__)


class NqYYFrequencyAnalysis:
    """
    Low-flow frequency analysis of a daily time series.

    Attributes:
        ts: Daily input series (not modified)
        number_in_average: N, days in the centered average
        recurrence_interval: YY, recurrence interval in years
        allow_missing_count: Missing days allowed in each window
        annual_minima: Minimum N-day average by year (after analyze())
        minimum_dates: Center day of each annual minimum (after analyze())
        discarded_years: Years with no accepted average (after analyze())
        analysis_result: NqYY value, or None (after analyze())
    """

    def __init__(
        self,
        ts: TimeSeries,
        number_in_average: int = 7,
        recurrence_interval: float = 10.0,
        analysis_start=None,
        analysis_end=None,
        allow_missing_count: int = 0,
        distribution_factory: DistributionFactory = LogPearsonType3Distribution
    ):
        """
        Initialize the analysis.

        Raises:
            InvalidParameterError: If number_in_average is not a positive odd number, the allowed
                missing count is negative or the series is not daily
            MissingInputError: If ts is None
            IrregularTimeSeriesNotSupportedError: If ts is irregular
        """
        # Only odd windows so the same number of days is on each side
        if number_in_average < 1 or number_in_average % 2 != 1:
            message = f"Number of values to average must be a positive odd number (got {number_in_average})."
            logger.warning(message)
            raise InvalidParameterError(message)
        if allow_missing_count < 0:
            message = f"Allowed missing count must be >= 0 (got {allow_missing_count})."
            logger.warning(message)
            raise InvalidParameterError(message)

        ts = require_time_series(ts)
        require_regular(ts, "Low-flow frequency analysis")
        if ts.interval.base != IntervalBase.DAY or ts.interval.multiplier != 1:
            message = f"Low-flow frequency analysis requires daily data; \"{ts.identifier}\" is {ts.interval}."
            logger.warning(message)
            raise InvalidParameterError(message)

        self.ts = ts
        self.number_in_average = number_in_average
        self.recurrence_interval = recurrence_interval
        self.allow_missing_count = allow_missing_count
        self.distribution_factory = distribution_factory
        self.analysis_start, self.analysis_end = get_valid_period(ts, analysis_start, analysis_end)

        self.annual_minima: Dict[int, float] = {}
        self.minimum_dates: Dict[int, CalendarDateTime] = {}
        self.discarded_years: List[int] = []
        self.analysis_result: Optional[float] = None

    @property
    def bracket(self) -> int:
        """Days on each side of the center day"""
        return self.number_in_average // 2

    @property
    def label(self) -> str:
        """Statistic label, e.g. 7Q10"""
        return f"{self.number_in_average}Q{self.recurrence_interval:g}"

    def compute_window_averages(self) -> pd.Series:
        """
        Return the accepted centered N-day average for every day of the analysis years.

        Days whose window has too many missing values are NaN.
        """
        first_year = self.analysis_start.year
        last_year = self.analysis_end.year
        bracket = self.bracket

        # Read N // 2 days beyond each end so windows reach into adjacent years
        read_start = CalendarDateTime(first_year, 1, 1).add_interval(IntervalBase.DAY, -bracket)
        read_end = CalendarDateTime(last_year, 12, 31).add_interval(IntervalBase.DAY, bracket)
        values = np.array(
            [np.nan if self.ts.is_missing(v) else v for _, v in self.ts.iterate(read_start, read_end)],
            dtype=float
        )
        index = pd.date_range(read_start.to_datetime(), read_end.to_datetime(), freq='D')

        min_periods = max(1, self.number_in_average - self.allow_missing_count)
        averages = pd.Series(values, index=index).rolling(
            window=self.number_in_average,
            center=True,
            min_periods=min_periods
        ).mean()

        if bracket > 0:
            averages = averages.iloc[bracket:-bracket]
        return averages

    def analyze(self) -> Optional[float]:
        """
        Run the analysis.

        Returns:
            NqYY value, or None if the distribution could not be fit or evaluated
        """
        averages = self.compute_window_averages()

        self.annual_minima = {}
        self.minimum_dates = {}
        self.discarded_years = []
        for year, year_averages in averages.groupby(averages.index.year):
            year = int(year)
            accepted = year_averages.dropna()
            if accepted.empty:
                self.discarded_years.append(year)
                continue
            minimum_day = accepted.idxmin()
            self.annual_minima[year] = float(accepted.min())
            self.minimum_dates[year] = CalendarDateTime.from_datetime(minimum_day, TimePrecision.DAY)
            logger.info(
                f"Minimum {self.number_in_average}-day average for {year} is "
                f"{self.annual_minima[year]:.4f} centered on {self.minimum_dates[year]}"
            )

        if self.discarded_years:
            logger.info(f"Ignored {len(self.discarded_years)} years because not enough data: {self.discarded_years}")

        self.analysis_result = None
        try:
            distribution = self.distribution_factory(self.get_annual_minima_array())
            result = distribution.calculate_for_recurrence_interval(self.recurrence_interval)
        except DistributionFitError as e:
            logger.warning(f"Unable to compute {self.label} for {self.ts.identifier}: {e}")
            return None

        if result is None or not np.isfinite(result):
            logger.warning(f"{self.label} for {self.ts.identifier} could not be evaluated")
            return None
        self.analysis_result = float(result)
        logger.info(f"{self.label} for {self.ts.identifier} is {self.analysis_result:.4f}")
        return self.analysis_result

    def get_annual_minima_array(self) -> np.ndarray:
        """Annual minima in year order (discarded years excluded)"""
        return np.array([self.annual_minima[year] for year in sorted(self.annual_minima)], dtype=float)

    def to_result(self) -> LowFlowResult:
        """Return the analysis results as a LowFlowResult."""
        return LowFlowResult(
            value=self.analysis_result,
            label=self.label,
            number_in_average=self.number_in_average,
            recurrence_interval=self.recurrence_interval,
            analysis_start_year=self.analysis_start.year,
            analysis_end_year=self.analysis_end.year,
            annual_minima=dict(self.annual_minima),
            minimum_dates={year: str(date) for year, date in self.minimum_dates.items()},
            discarded_years=list(self.discarded_years)
        )


def compute_nqyy(
    ts: TimeSeries,
    number_in_average: Optional[int] = None,
    recurrence_interval: Optional[float] = None,
    analysis_start=None,
    analysis_end=None,
    allow_missing_count: Optional[int] = None,
    config: Optional[LowFlowConfig] = None,
    distribution_factory: DistributionFactory = LogPearsonType3Distribution
) -> LowFlowResult:
    """
    Compute an NqYY low-flow statistic (e.g., 7Q10) for a daily series.

    Parameters not given are taken from config (default: config/thresholds/low_flow.yaml).

    Args:
        ts: Daily input series
        number_in_average: N, days in the centered average (odd)
        recurrence_interval: YY, recurrence interval in years
        analysis_start: First date of the analysis (its calendar year is processed in full)
        analysis_end: Last date of the analysis (its calendar year is processed in full)
        allow_missing_count: Missing days allowed in each window
        config: LowFlowConfig with default parameters
        distribution_factory: Callable fitting a distribution to the annual minima

    Returns:
        LowFlowResult (value is None if the distribution could not be fit)

    Example:
        >>> result = compute_nqyy(daily_flow_ts)
        >>> print(f"{result.label} = {result.value:.2f}")
        7Q10 = 12.34
    """
    if config is None:
        config = load_default_config()

    analysis = NqYYFrequencyAnalysis(
        ts,
        number_in_average=config.number_in_average if number_in_average is None else number_in_average,
        recurrence_interval=config.recurrence_interval if recurrence_interval is None else recurrence_interval,
        analysis_start=analysis_start,
        analysis_end=analysis_end,
        allow_missing_count=config.allow_missing_count if allow_missing_count is None else allow_missing_count,
        distribution_factory=distribution_factory
    )
    analysis.analyze()
    return analysis.to_result()


if __name__ == "__main__":
    import os

    logging.basicConfig(level=os.getenv('LOG_LEVEL', 'INFO'))

    # Example usage
    print("7Q10 Low-Flow Example")
    print("=" * 60)

    rng = np.random.default_rng(42)
    dates = pd.date_range("1990-01-01", "2019-12-31", freq="D")
    seasonal = 50.0 + 40.0 * np.sin(2 * np.pi * (dates.dayofyear - 100) / 365.25)
    flows = pd.Series(seasonal * rng.lognormal(0.0, 0.2, len(dates)), index=dates, name="Streamflow")

    daily = RegularTimeSeries.from_pandas(flows, "1Day", location="09163500", units="CFS")
    result = compute_nqyy(daily)

    print(f"Years used: {result.years_used}, discarded: {result.discarded_years}")
    print(f"{result.label} = {result.value:.2f} {daily.units}")
