"""
Frequency Analysis

Low-flow frequency statistics (NqYY, e.g. 7Q10) from daily time series.
"""

from .distribution import (
    DistributionFactory,
    DistributionFitError,
    FrequencyDistribution,
    LogPearsonType3Distribution
)

from .low_flow import (
    NqYYFrequencyAnalysis,
    compute_nqyy
)

from .schemas import (
    LowFlowConfig,
    LowFlowResult,
    load_default_config
)

__all__ = [
    'DistributionFactory',
    'DistributionFitError',
    'FrequencyDistribution',
    'LogPearsonType3Distribution',
    'NqYYFrequencyAnalysis',
    'compute_nqyy',
    'LowFlowConfig',
    'LowFlowResult',
    'load_default_config'
]
