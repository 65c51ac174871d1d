"""
netdash configuration

YAML file validated by pydantic. Lookup order when no path is given:
1. Environment variable NETDASH_CONFIG
2. ./config.yaml (if exists)
3. Defaults
"""

import logging
import os
from pathlib import Path
from typing import Dict, Optional

import yaml
from pydantic import BaseModel, Field, field_validator

from ..api.queries.constants import (
    CURRENT_DATA_WINDOW,
    SIGNAL_INVALID_PLACEHOLDER,
    TRAFFIC_TOTAL_RANGE,
)
from ..api.queries.safety import validate_time_range_token

logger = logging.getLogger("netdash.config")

CONFIG_ENV_VAR = "NETDASH_CONFIG"
DEFAULT_CONFIG_FILES = ["./config.yaml"]


class SignalThresholds(BaseModel):
    """dBm lower bounds per quality label."""
    excellent: float = -50
    good: float = -60
    fair: float = -70
    poor: float = -75


class SatisfactionThresholds(BaseModel):
    """Percent lower bounds per status label."""
    excellent: float = 90
    good: float = 80
    warning: float = 70
    poor: float = 60


class Thresholds(BaseModel):
    signal: SignalThresholds = Field(default_factory=SignalThresholds)
    satisfaction: SatisfactionThresholds = Field(default_factory=SatisfactionThresholds)


class DashboardConfig(BaseModel):
    log_level: str = "INFO"
    traffic_total_range: str = TRAFFIC_TOTAL_RANGE    # LAST - FIRST lookback
    current_data_window: str = CURRENT_DATA_WINDOW    # "current state" lookback
    top_consumers_limit: int = Field(default=20, gt=0)
    range_intervals: Dict[str, str] = Field(default_factory=dict)  # overrides RANGE_INTERVALS
    signal_invalid_placeholder: float = SIGNAL_INVALID_PLACEHOLDER
    thresholds: Thresholds = Field(default_factory=Thresholds)

    @field_validator("log_level")
    @classmethod
    def known_level(cls, v: str) -> str:
        level = v.upper()
        if not isinstance(logging.getLevelName(level), int):
            raise ValueError(f"Unknown log level: {v}")
        return level

    @field_validator("traffic_total_range", "current_data_window")
    @classmethod
    def time_range_token(cls, v: str) -> str:
        return validate_time_range_token(v)

    @field_validator("range_intervals")
    @classmethod
    def interval_tokens(cls, v: Dict[str, str]) -> Dict[str, str]:
        for time_range, interval in v.items():
            validate_time_range_token(time_range)
            validate_time_range_token(interval)
        return v


def load_config_from(path: str) -> DashboardConfig:
    """Load configuration from YAML file."""
    with open(path, "r") as f:
        data = yaml.safe_load(f) or {}
    return DashboardConfig(**data)


def load_config(config_path: Optional[str] = None) -> DashboardConfig:
    """
    Load configuration from the first config file found, else defaults.

    An explicit config_path must exist; the fallback locations are optional.
    """
    if config_path:
        logger.info(f"Loading configuration from: {config_path}")
        return load_config_from(config_path)

    for config_file in [os.environ.get(CONFIG_ENV_VAR), *DEFAULT_CONFIG_FILES]:
        if not config_file:
            continue
        if Path(config_file).exists():
            logger.info(f"Loading configuration from: {config_file}")
            return load_config_from(config_file)

    logger.info("Using default configuration")
    return DashboardConfig()


def setup_logging(config: DashboardConfig):
    """Configure root logging at the configured level."""
    logging.basicConfig(level=getattr(logging, config.log_level))
