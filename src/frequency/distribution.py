"""
Frequency Distributions

Distributions fit to annual extreme values (e.g., annual minimum N-day
average flows) and evaluated at a recurrence interval.

Log-Pearson Type III:
    y = log10(x)
    value(T) = 10 ** (mean(y) + K * std(y))

where K is the standardized Pearson Type III quantile for the sample skew of
y. For low flows the non-exceedance probability of a T-year event is 1 / T.

Design Principles:
- The fitter is a collaborator: the analyzer only needs something built from
  an array of values that can be evaluated at a recurrence interval
- Fitting problems raise DistributionFitError; they are not silently ignored
"""

import logging
from typing import Protocol, Sequence

import numpy as np
from scipy import stats

from tsdata.errors import TimeSeriesError

logger = logging.getLogger(__name__)


# Fewer values than this cannot give a sample skew
MINIMUM_SAMPLE_SIZE = 3


class DistributionFitError(TimeSeriesError):
    """Raised when a distribution cannot be fit or evaluated"""
    pass


class FrequencyDistribution(Protocol):
    """A fitted distribution that can be evaluated at a recurrence interval."""

    def calculate_for_recurrence_interval(self, recurrence_interval: float) -> float:
        ...


class DistributionFactory(Protocol):
    """Callable that fits a distribution to an array of values."""

    def __call__(self, values: np.ndarray) -> FrequencyDistribution:
        ...


class LogPearsonType3Distribution:
    """
    Log-Pearson Type III distribution fit by the method of moments on log10 values.

    Attributes:
        values: Sample values (all > 0)
        mean: Mean of log10(values)
        std: Sample standard deviation of log10(values)
        skew: Bias-corrected sample skew of log10(values)

    Examples:
        >>> dist = LogPearsonType3Distribution([12.0, 15.0, 9.5, 20.0, 11.0, 14.0])
        >>> dist.calculate_for_recurrence_interval(10) < min([12.0, 15.0, 9.5, 20.0, 11.0, 14.0])
        True
    """

    def __init__(self, values: Sequence[float]):
        values = np.asarray(values, dtype=float)
        if values.ndim != 1 or len(values) < MINIMUM_SAMPLE_SIZE:
            raise DistributionFitError(
                f"At least {MINIMUM_SAMPLE_SIZE} values are required to fit a log-Pearson Type III "
                f"distribution ({values.size} given)"
            )
        if not np.all(np.isfinite(values)):
            raise DistributionFitError("Values must be finite to fit a log-Pearson Type III distribution")
        if np.any(values <= 0):
            raise DistributionFitError("Values must be > 0 to fit a log-Pearson Type III distribution")

        self.values = values
        log_values = np.log10(values)
        self.mean = float(np.mean(log_values))
        self.std = float(np.std(log_values, ddof=1))
        if self.std == 0.0:
            # Constant sample; every quantile is the sample value
            self.skew = 0.0
        else:
            self.skew = float(stats.skew(log_values, bias=False))

        logger.debug(f"Fit log-Pearson III: mean={self.mean:.4f}, std={self.std:.4f}, skew={self.skew:.4f}")

    def calculate_for_probability(self, probability: float) -> float:
        """
        Return the value with the given non-exceedance probability.

        Raises:
            DistributionFitError: If the probability is not in (0, 1)
        """
        if not 0.0 < probability < 1.0:
            raise DistributionFitError(f"Probability must be between 0 and 1 (exclusive), got {probability}")
        frequency_factor = float(stats.pearson3.ppf(probability, self.skew))
        return float(10.0 ** (self.mean + frequency_factor * self.std))

    def calculate_for_recurrence_interval(self, recurrence_interval: float) -> float:
        """
        Return the low-flow value for a recurrence interval in years.

        Raises:
            DistributionFitError: If the recurrence interval is not > 1
        """
        if recurrence_interval <= 1.0:
            raise DistributionFitError(f"Recurrence interval must be > 1 year, got {recurrence_interval}")
        return self.calculate_for_probability(1.0 / recurrence_interval)
