"""
Low-Flow Frequency Schemas

Configuration and result models for NqYY low-flow frequency analysis
(e.g., 7Q10: the 7-day average low flow with a 10-year recurrence interval).
"""

from pathlib import Path
from typing import Dict, List, Optional

import yaml
from pydantic import BaseModel, Field, field_validator


class LowFlowConfig(BaseModel):
    """
    NqYY analysis parameters.

    Attributes:
        number_in_average: N, days in the centered moving average (odd)
        recurrence_interval: YY, recurrence interval in years
        allow_missing_count: Missing days allowed in each N-day window
    """
    number_in_average: int = Field(7, ge=1, description="Days in the centered average (odd)")
    recurrence_interval: float = Field(10.0, gt=1.0, description="Recurrence interval, years")
    allow_missing_count: int = Field(0, ge=0, description="Missing days allowed per window")

    @field_validator('number_in_average')
    @classmethod
    def number_in_average_must_be_odd(cls, v):
        """The window is centered, so the same number of days is needed on each side"""
        if v % 2 != 1:
            raise ValueError(f"Number of values to average must be odd (got {v})")
        return v

    @classmethod
    def from_yaml(cls, config_path: Path) -> "LowFlowConfig":
        """
        Load configuration from YAML file.

        Args:
            config_path: Path to low_flow.yaml

        Returns:
            LowFlowConfig instance
        """
        with open(config_path, 'r') as f:
            config = yaml.safe_load(f) or {}
        return cls(**config.get('low_flow', config))


class LowFlowResult(BaseModel):
    """
    NqYY analysis result.

    The value is None when the distribution could not be fit or evaluated
    (e.g., too few years with enough data).
    """
    value: Optional[float] = Field(None, description="NqYY low-flow value")
    label: str = Field(..., description="Statistic label, e.g. 7Q10")
    number_in_average: int
    recurrence_interval: float
    analysis_start_year: int
    analysis_end_year: int
    annual_minima: Dict[int, float] = Field(default_factory=dict, description="Minimum N-day average by year")
    minimum_dates: Dict[int, str] = Field(default_factory=dict, description="Center day of each annual minimum")
    discarded_years: List[int] = Field(default_factory=list, description="Years without enough data")

    @property
    def years_used(self) -> int:
        return len(self.annual_minima)


def load_default_config() -> LowFlowConfig:
    """
    Load default low-flow configuration.

    Returns:
        LowFlowConfig with default parameters (7Q10)
    """
    # Default path relative to this file
    config_path = Path(__file__).parent.parent.parent / 'config' / 'thresholds' / 'low_flow.yaml'

    if not config_path.exists():
        # Fallback to hardcoded defaults if config file not found
        return LowFlowConfig()

    return LowFlowConfig.from_yaml(config_path)
