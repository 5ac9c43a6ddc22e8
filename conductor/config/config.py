"""Configuration management for conductor."""

from dataclasses import dataclass, field
from typing import Optional
import yaml
from pathlib import Path

from ..catalog.codec import CATALOG_RECORD_KEY


@dataclass
class ScoreConfig:
    """Configuration for reading score definitions."""

    dialect: str = "postgres"  # sqlglot dialect for handler bodies and policies
    file_suffix: str = ".score"


@dataclass
class EnsembleConfig:
    """Configuration for the storage ensemble that holds the tables."""

    type: str = "duckdb"
    path: Optional[str] = None
    catalog_key: str = CATALOG_RECORD_KEY


@dataclass
class LoggingConfig:
    """Configuration for logging."""

    level: str = "INFO"
    structured: bool = False
    log_file: Optional[str] = None


@dataclass
class Config:
    """Main configuration class."""

    score: ScoreConfig = field(default_factory=ScoreConfig)
    ensemble: EnsembleConfig = field(default_factory=EnsembleConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


def load_config(config_path: str) -> Config:
    """Load configuration from YAML file.

    Args:
        config_path: Path to YAML configuration file

    Returns:
        Parsed configuration

    Example YAML format:
        score:
          dialect: postgres
          file_suffix: .score

        ensemble:
          type: duckdb
          path: /data/ensemble

        logging:
          level: DEBUG
          structured: true
    """
    path = Path(config_path)
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with open(path, "r") as f:
        data = yaml.safe_load(f) or {}

    score = ScoreConfig(**(data.get("score") or {}))
    ensemble = EnsembleConfig(**(data.get("ensemble") or {}))
    logging_config = LoggingConfig(**(data.get("logging") or {}))

    return Config(score=score, ensemble=ensemble, logging=logging_config)
