"""
Configuration Schemas for Time Series Metrics

Enumerations and configuration models consumed by the running average,
cumulative, trace and error series engines.

Design Principles:
- Closed sets of tags (Enum members), parsed once from configuration strings
- Config-driven defaults loaded from YAML, with hard-coded fallbacks
- Validation at construction time (pydantic)
"""

from enum import Enum
from pathlib import Path
from typing import Optional

import yaml
from pydantic import BaseModel, Field, field_validator

from tsdata.datetime_util import CalendarDateTime, TimePrecision
from tsdata.interval import TimeInterval
from tsdata.schemas import YearType, parse_enum


CONFIG_DIR = Path(__file__).parent.parent.parent / 'config' / 'thresholds'


class RunningAverageType(str, Enum):
    """
    Running average window shapes.

    The bracket n is the number of intervals on one side of the window, or the
    number of years for NYear.
    """
    CENTERED = "Centered"
    PREVIOUS = "Previous"
    PREVIOUS_INCLUSIVE = "PreviousInclusive"
    FUTURE = "Future"
    FUTURE_INCLUSIVE = "FutureInclusive"
    N_YEAR = "NYear"
    N_ALL_YEAR = "NAllYear"

    @classmethod
    def parse(cls, value) -> "RunningAverageType":
        return parse_enum(cls, value)


class CumulateMissingType(str, Enum):
    """
    How missing values are handled when cumulating.
    """
    CARRY_FORWARD = "CarryForwardIfMissing"
    SET_MISSING = "SetMissingIfMissing"

    @classmethod
    def parse(cls, value) -> "CumulateMissingType":
        return parse_enum(cls, value)


class ErrorMeasure(str, Enum):
    """
    Error measures for comparing simulated and observed series.
    """
    PERCENT_ERROR = "PercentError"

    @classmethod
    def parse(cls, value) -> "ErrorMeasure":
        return parse_enum(cls, value)


class ShiftDataHow(str, Enum):
    """
    Whether trace data are shifted to a common reference date/time.
    """
    NO_SHIFT = "NoShift"
    SHIFT_TO_REFERENCE = "ShiftToReference"

    @classmethod
    def parse(cls, value) -> "ShiftDataHow":
        return parse_enum(cls, value)


class CumulateConfig(BaseModel):
    """
    Cumulative transform parameters.

    Attributes:
        handle_missing_how: Missing value policy
        reset_date: Optional yearly reset (MM-DD, year ignored)
        reset_value: Total after each reset
        reset_value_to_data_value: Use the raw value at the reset date instead of reset_value
        allow_missing_count: Maximum missing values per period (None = no check)
        minimum_sample_size: Minimum non-missing values per period (None = no check)
    """
    handle_missing_how: CumulateMissingType = Field(CumulateMissingType.CARRY_FORWARD)
    reset_date: Optional[str] = Field(None, description="Yearly reset, MM-DD")
    reset_value: float = Field(0.0)
    reset_value_to_data_value: bool = Field(False)
    allow_missing_count: Optional[int] = Field(None, ge=0)
    minimum_sample_size: Optional[int] = Field(None, ge=0)

    @field_validator('handle_missing_how', mode='before')
    @classmethod
    def parse_missing_type(cls, v):
        return CumulateMissingType.parse(v)

    @field_validator('reset_date')
    @classmethod
    def reset_date_must_be_month_day(cls, v):
        if v is not None:
            reset_date_as_datetime(v)
        return v

    @classmethod
    def from_yaml(cls, config_path: Path) -> "CumulateConfig":
        """Load configuration from YAML file."""
        with open(config_path, 'r') as f:
            config = yaml.safe_load(f) or {}
        return cls(**config.get('cumulate', config))


class TraceConfig(BaseModel):
    """
    Trace extraction parameters.

    Attributes:
        trace_length: Interval string for the length of each trace
        shift_data_how: Whether output traces start at the reference date
        output_year_type: Year type used to label traces
        alias_format: Legend format for the trace alias
        description_format: Legend format for the trace description
    """
    trace_length: str = Field("1Year")
    shift_data_how: ShiftDataHow = Field(ShiftDataHow.NO_SHIFT)
    output_year_type: YearType = Field(YearType.CALENDAR)
    alias_format: str = Field("%L_%z")
    description_format: str = Field("%z trace: %D")

    @field_validator('trace_length')
    @classmethod
    def trace_length_must_be_regular(cls, v):
        if not TimeInterval.parse(v).is_regular:
            raise ValueError("trace_length must be a regular interval")
        return v

    @field_validator('shift_data_how', mode='before')
    @classmethod
    def parse_shift(cls, v):
        return ShiftDataHow.parse(v)

    @field_validator('output_year_type', mode='before')
    @classmethod
    def parse_year_type(cls, v):
        return YearType.parse(v)

    @classmethod
    def from_yaml(cls, config_path: Path) -> "TraceConfig":
        """Load configuration from YAML file."""
        with open(config_path, 'r') as f:
            config = yaml.safe_load(f) or {}
        return cls(**config.get('traces', config))


def reset_date_as_datetime(text: str) -> CalendarDateTime:
    """
    Convert a MM-DD reset string to a day-precision date (year 2000, a leap year).

    Raises:
        ValueError: If the string is not a valid month/day
    """
    parts = str(text).strip().split('-')
    if len(parts) != 2:
        raise ValueError(f"Reset date must be MM-DD, got '{text}'")
    return CalendarDateTime(2000, int(parts[0]), int(parts[1]), precision=TimePrecision.DAY)


def load_default_cumulate_config() -> CumulateConfig:
    """
    Load default cumulative transform configuration.

    Returns:
        CumulateConfig from config/thresholds/cumulate.yaml, or defaults
    """
    config_path = CONFIG_DIR / 'cumulate.yaml'

    if not config_path.exists():
        # Fallback to hardcoded defaults if config file not found
        return CumulateConfig()

    return CumulateConfig.from_yaml(config_path)


def load_default_trace_config() -> TraceConfig:
    """
    Load default trace configuration.

    Returns:
        TraceConfig from config/thresholds/traces.yaml, or defaults
    """
    config_path = CONFIG_DIR / 'traces.yaml'

    if not config_path.exists():
        return TraceConfig()

    return TraceConfig.from_yaml(config_path)
