"""Infrastructure utilities for configuration, logging, and metrics."""

from .config import (
    BackoffConfig,
    FlatFilesConfig,
    MassiveConfig,
    StreamConfig,
    config_from_dict,
    config_from_env,
    load_config,
)
from .logging import JsonFormatter, configure_logging, redact
from .metrics import MetricsSink

__all__ = [
    "BackoffConfig",
    "FlatFilesConfig",
    "MassiveConfig",
    "StreamConfig",
    "config_from_dict",
    "config_from_env",
    "load_config",
    "JsonFormatter",
    "configure_logging",
    "redact",
    "MetricsSink",
]
