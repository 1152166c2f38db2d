"""Configuration management for the render denoiser.

Loads YAML configuration with defaults for the cross-bilateral filter
and for how denoising runs are executed.
"""

import logging
from pathlib import Path

import yaml
from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)


class FilterConfig(BaseModel):
    """Window radius, Gaussian bandwidths and boundary policy of the filter.

    Values are range-checked when they are turned into filter parameters,
    so an out-of-range value is reported rather than replaced.
    """

    radius: int = 3
    inv_sigma_pixel: float = 0.1
    inv_sigma_albedo: float = 10.0
    inv_sigma_normal: float = 10.0
    inv_sigma_depth: float = 10.0
    boundary: str = "wrap"


class ExecutionConfig(BaseModel):
    """Configuration for how a denoising run is executed."""

    method: str = "bilateral"
    workers: int | None = None


class AppConfig(BaseModel):
    """Top-level application configuration."""

    filter: FilterConfig = Field(default_factory=FilterConfig)
    execution: ExecutionConfig = Field(default_factory=ExecutionConfig)
    log_level: str = "INFO"


def load_config(path: Path | None = None) -> AppConfig:
    """Load configuration from a YAML file.

    Args:
        path: Path to the YAML configuration file.
            Defaults to configs/config.yaml.

    Returns:
        Validated application configuration.
    """
    if path is None:
        path = Path("configs/config.yaml")

    if path.exists():
        logger.info("Loading configuration from %s", path)
        with open(path) as f:
            raw = yaml.safe_load(f) or {}
        return AppConfig(**raw)

    logger.info("No config file found at %s, using defaults", path)
    return AppConfig()
