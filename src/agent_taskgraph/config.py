"""Configuration system using platformdirs for cross-platform paths."""

import os
import tomllib
from dataclasses import dataclass, field
from pathlib import Path

import platformdirs

APP_NAME = "agent-taskgraph"
APP_AUTHOR = "agent-taskgraph"

DEFAULT_WEB_PORT = 8420
DEFAULT_VERIFICATION_THRESHOLD = 80
SUPPORTED_LOCALES = ("en", "zh-TW")

_TRUE_VALUES = {"1", "true", "yes", "on"}


@dataclass
class Config:
	"""Central configuration with XDG/platform conventions."""

	config_dir: Path = field(default_factory=lambda: Path(platformdirs.user_config_dir(APP_NAME)))
	data_dir: Path = field(default_factory=lambda: Path(platformdirs.user_data_dir(APP_NAME)))

	# Derived paths
	db_path: Path = field(init=False)
	log_dir: Path = field(init=False)

	# User-configurable
	locale: str = "en"
	enable_gui: bool = False
	web_host: str = "127.0.0.1"
	web_port: int = DEFAULT_WEB_PORT
	verification_threshold: int = DEFAULT_VERIFICATION_THRESHOLD
	log_level: str = "INFO"

	def __post_init__(self) -> None:
		self.db_path = self.data_dir / "taskgraph.db"
		self.log_dir = self.data_dir / "logs"

	def ensure_dirs(self) -> None:
		"""Create all required directories."""
		self.config_dir.mkdir(parents=True, exist_ok=True)
		self.data_dir.mkdir(parents=True, exist_ok=True)
		self.log_dir.mkdir(parents=True, exist_ok=True)


def _parse_bool(value) -> bool:
	if isinstance(value, bool):
		return value
	return str(value).strip().lower() in _TRUE_VALUES


def _coerce(attr: str, value):
	"""Convert a raw env/toml value to the type of the Config field."""
	if attr in {"config_dir", "data_dir"}:
		return Path(os.path.expanduser(str(value)))
	if attr == "enable_gui":
		return _parse_bool(value)
	if attr in {"web_port", "verification_threshold"}:
		return int(value)
	return str(value)


def _apply_env_overrides(config: Config) -> Config:
	"""Apply AGENT_TASKGRAPH_* environment variable overrides."""
	env_map = {
		"AGENT_TASKGRAPH_CONFIG_DIR": "config_dir",
		"AGENT_TASKGRAPH_DATA_DIR": "data_dir",
		"AGENT_TASKGRAPH_LOCALE": "locale",
		"AGENT_TASKGRAPH_ENABLE_GUI": "enable_gui",
		"AGENT_TASKGRAPH_WEB_HOST": "web_host",
		"AGENT_TASKGRAPH_WEB_PORT": "web_port",
		"AGENT_TASKGRAPH_VERIFICATION_THRESHOLD": "verification_threshold",
		"AGENT_TASKGRAPH_LOG_LEVEL": "log_level",
		# Short names kept for existing MCP client configurations
		"DATA_DIR": "data_dir",
		"ENABLE_GUI": "enable_gui",
		"WEB_PORT": "web_port",
		"TEMPLATES_USE": "locale",
	}
	# Prefixed names win over the short ones
	for env_key, attr in sorted(env_map.items(), key=lambda item: item[0].startswith("AGENT_TASKGRAPH_")):
		val = os.getenv(env_key)
		if val:
			try:
				setattr(config, attr, _coerce(attr, val))
			except ValueError as e:
				raise ValueError(f"Invalid value for {env_key}: {val!r}") from e
	# Recompute derived paths after overrides
	config.__post_init__()
	return config


def _apply_toml(config: Config) -> Config:
	"""Apply config.toml overrides if file exists."""
	toml_path = config.config_dir / "config.toml"
	if not toml_path.exists():
		return config

	with open(toml_path, "rb") as f:
		data = tomllib.load(f)

	for key, val in data.items():
		if hasattr(config, key) and key not in {"db_path", "log_dir"}:
			setattr(config, key, _coerce(key, val))

	# Recompute derived paths after toml overrides
	config.__post_init__()
	return config


def _normalize(config: Config) -> Config:
	if config.locale not in SUPPORTED_LOCALES:
		lowered = {loc.lower(): loc for loc in SUPPORTED_LOCALES}
		config.locale = lowered.get(config.locale.replace("_", "-").lower(), "en")
	config.log_level = config.log_level.upper()
	config.verification_threshold = max(0, min(100, config.verification_threshold))
	return config


def load_config() -> Config:
	"""Load config with precedence: env vars > config.toml > defaults."""
	config = Config()
	env_config_dir = os.getenv("AGENT_TASKGRAPH_CONFIG_DIR")
	if env_config_dir:
		config.config_dir = Path(os.path.expanduser(env_config_dir))
	config = _apply_toml(config)
	config = _apply_env_overrides(config)
	config = _normalize(config)
	config.ensure_dirs()
	return config


# Singleton
_config: Config | None = None


def get_config() -> Config:
	"""Get or create the global config instance."""
	global _config
	if _config is None:
		_config = load_config()
	return _config
