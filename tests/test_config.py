"""Tests for the configuration system."""

import os
from pathlib import Path
from unittest.mock import patch

import pytest

from agent_taskgraph.config import Config, _apply_env_overrides, load_config


def test_config_defaults():
	"""Config should have sensible defaults."""
	config = Config()
	assert config.config_dir.is_absolute()
	assert config.data_dir.is_absolute()
	assert config.db_path == config.data_dir / "taskgraph.db"
	assert config.log_dir == config.data_dir / "logs"
	assert config.locale == "en"
	assert config.enable_gui is False
	assert config.web_port == 8420
	assert config.verification_threshold == 80


def test_config_env_overrides():
	"""Environment variables should override defaults."""
	config = Config()
	with patch.dict(os.environ, {
		"AGENT_TASKGRAPH_DATA_DIR": "/tmp/test-data",
		"AGENT_TASKGRAPH_ENABLE_GUI": "true",
		"AGENT_TASKGRAPH_WEB_PORT": "9000",
	}):
		config = _apply_env_overrides(config)
		assert config.data_dir == Path("/tmp/test-data")
		assert config.db_path == Path("/tmp/test-data/taskgraph.db")
		assert config.enable_gui is True
		assert config.web_port == 9000


def test_short_env_names_are_accepted():
	"""The unprefixed names used by existing MCP client configs still work."""
	config = Config()
	with patch.dict(os.environ, {"ENABLE_GUI": "1", "WEB_PORT": "8500", "TEMPLATES_USE": "zh-TW"}):
		config = _apply_env_overrides(config)
	assert config.enable_gui is True
	assert config.web_port == 8500
	assert config.locale == "zh-TW"


def test_prefixed_env_wins_over_short_name():
	config = Config()
	with patch.dict(os.environ, {"WEB_PORT": "8500", "AGENT_TASKGRAPH_WEB_PORT": "8600"}):
		config = _apply_env_overrides(config)
	assert config.web_port == 8600


def test_invalid_env_value():
	config = Config()
	with patch.dict(os.environ, {"AGENT_TASKGRAPH_WEB_PORT": "eighty"}):
		with pytest.raises(ValueError, match="AGENT_TASKGRAPH_WEB_PORT"):
			_apply_env_overrides(config)


def test_config_ensure_dirs(tmp_path: Path):
	"""ensure_dirs should create all required directories."""
	config = Config(config_dir=tmp_path / "config", data_dir=tmp_path / "data")
	assert not config.data_dir.exists()

	config.ensure_dirs()

	assert config.config_dir.exists()
	assert config.data_dir.exists()
	assert config.log_dir.exists()


def _isolated_env(tmp_path: Path, **extra: str) -> dict:
	env = {
		"AGENT_TASKGRAPH_CONFIG_DIR": str(tmp_path / "config"),
		"AGENT_TASKGRAPH_DATA_DIR": str(tmp_path / "data"),
	}
	env.update(extra)
	return env


def test_load_config_creates_dirs(tmp_path: Path):
	"""load_config should create directories."""
	with patch.dict(os.environ, _isolated_env(tmp_path)):
		config = load_config()
	assert config.data_dir.exists()
	assert config.log_dir.exists()


def test_toml_settings_apply_below_env(tmp_path: Path):
	config_dir = tmp_path / "config"
	config_dir.mkdir()
	(config_dir / "config.toml").write_text(
		'locale = "zh-TW"\n'
		"verification_threshold = 90\n"
		"web_port = 8700\n"
	)

	with patch.dict(os.environ, _isolated_env(tmp_path, AGENT_TASKGRAPH_WEB_PORT="8800")):
		config = load_config()

	assert config.locale == "zh-TW"
	assert config.verification_threshold == 90
	assert config.web_port == 8800


def test_locale_is_normalized(tmp_path: Path):
	with patch.dict(os.environ, _isolated_env(tmp_path, AGENT_TASKGRAPH_LOCALE="zh_tw")):
		assert load_config().locale == "zh-TW"
	with patch.dict(os.environ, _isolated_env(tmp_path, AGENT_TASKGRAPH_LOCALE="klingon")):
		assert load_config().locale == "en"


def test_threshold_is_clamped(tmp_path: Path):
	with patch.dict(os.environ, _isolated_env(tmp_path, AGENT_TASKGRAPH_VERIFICATION_THRESHOLD="150")):
		assert load_config().verification_threshold == 100
