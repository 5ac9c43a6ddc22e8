"""Configuration management."""

from .config import (
    Config,
    ScoreConfig,
    EnsembleConfig,
    LoggingConfig,
    load_config,
)

__all__ = [
    "Config",
    "ScoreConfig",
    "EnsembleConfig",
    "LoggingConfig",
    "load_config",
]
