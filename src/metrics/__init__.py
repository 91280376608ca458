"""
Derived Time Series Metrics

This module contains algorithms that derive new time series from existing ones.

Available metrics:
- Running Average (seven window shapes)
- Cumulative Transform (in place, with optional yearly reset)
- Traces (annual or custom-length sub-series)
- Error Time Series (percent error)
"""

from .running_average import (
    compute_running_average,
    describe_running_average,
    get_window_offsets
)

from .cumulate import (
    calculate_starting_missing_count,
    cumulate_in_place,
    cumulate_with_config
)

from .traces import (
    TracePeriod,
    create_traces,
    create_traces_with_config,
    plan_trace_periods
)

from .error_series import (
    compute_error_time_series,
    percent_error
)

from .schemas import (
    CumulateConfig,
    CumulateMissingType,
    ErrorMeasure,
    RunningAverageType,
    ShiftDataHow,
    TraceConfig,
    load_default_cumulate_config,
    load_default_trace_config
)

__all__ = [
    # Running Average
    'compute_running_average',
    'describe_running_average',
    'get_window_offsets',
    # Cumulate
    'calculate_starting_missing_count',
    'cumulate_in_place',
    'cumulate_with_config',
    # Traces
    'TracePeriod',
    'create_traces',
    'create_traces_with_config',
    'plan_trace_periods',
    # Error Time Series
    'compute_error_time_series',
    'percent_error',
    # Configuration
    'CumulateConfig',
    'CumulateMissingType',
    'ErrorMeasure',
    'RunningAverageType',
    'ShiftDataHow',
    'TraceConfig',
    'load_default_cumulate_config',
    'load_default_trace_config'
]
