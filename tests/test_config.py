"""Tests for configuration loading."""

import pytest

from conductor.config import Config, EnsembleConfig, load_config


def test_defaults():
    config = Config()
    assert config.score.dialect == "postgres"
    assert config.score.file_suffix == ".score"
    assert config.ensemble == EnsembleConfig(
        type="duckdb", path=None, catalog_key="_conductor_catalog.json"
    )
    assert config.logging.level == "INFO"
    assert config.logging.structured is False


def test_load_full_config(tmp_path):
    config_path = tmp_path / "conductor.yaml"
    config_path.write_text(
        """
score:
  dialect: duckdb
  file_suffix: .sc

ensemble:
  type: duckdb
  path: /data/ensemble
  catalog_key: catalog.json

logging:
  level: DEBUG
  structured: true
  log_file: conductor.log
"""
    )

    config = load_config(str(config_path))

    assert config.score.dialect == "duckdb"
    assert config.score.file_suffix == ".sc"
    assert config.ensemble.path == "/data/ensemble"
    assert config.ensemble.catalog_key == "catalog.json"
    assert config.logging.level == "DEBUG"
    assert config.logging.structured is True
    assert config.logging.log_file == "conductor.log"


def test_missing_sections_use_defaults(tmp_path):
    config_path = tmp_path / "conductor.yaml"
    config_path.write_text("ensemble:\n  path: data\n")

    config = load_config(str(config_path))

    assert config.ensemble.path == "data"
    assert config.score == Config().score
    assert config.logging == Config().logging


def test_empty_file(tmp_path):
    config_path = tmp_path / "conductor.yaml"
    config_path.write_text("")
    assert load_config(str(config_path)) == Config()


def test_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError, match="Config file not found"):
        load_config(str(tmp_path / "missing.yaml"))


def test_unknown_key(tmp_path):
    config_path = tmp_path / "conductor.yaml"
    config_path.write_text("score:\n  grammar: v2\n")
    with pytest.raises(TypeError):
        load_config(str(config_path))
