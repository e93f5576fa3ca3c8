"""Centralized logging configuration for agent-taskgraph."""

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

LOG_FILE_NAME = "agent_taskgraph.log"
CONSOLE_HANDLER_NAME = "agent_taskgraph.console"


def setup_logging(
	log_dir: Path,
	level: Optional[str] = None,
	name: str = "agent_taskgraph",
	console: bool = True,
) -> logging.Logger:
	"""
	Set up logging with file and stderr handlers.

	Args:
		log_dir: Directory for log files
		level: Log level (DEBUG, INFO, WARNING, ERROR). Defaults to INFO.
		name: Logger name; the package logger by default
		console: Also log warnings and above to stderr. Passing False on a
			later call removes a stderr handler installed earlier.

	Returns:
		Configured logger

	stdout is never used: it carries the MCP stdio transport.
	"""
	log_level = getattr(logging, (level or "INFO").upper(), logging.INFO)

	logger = logging.getLogger(name)
	logger.setLevel(log_level)
	logger.propagate = False

	# Avoid duplicate handlers
	if not any(isinstance(h, RotatingFileHandler) for h in logger.handlers):
		detailed_formatter = logging.Formatter(
			"%(asctime)s [%(levelname)s] %(name)s:%(lineno)d - %(message)s",
			datefmt="%Y-%m-%d %H:%M:%S",
		)
		log_path = Path(log_dir)
		log_path.mkdir(parents=True, exist_ok=True)

		file_handler = RotatingFileHandler(
			log_path / LOG_FILE_NAME,
			maxBytes=10 * 1024 * 1024,  # 10 MB
			backupCount=5,
			encoding="utf-8",
		)
		file_handler.setLevel(logging.DEBUG)
		file_handler.setFormatter(detailed_formatter)
		logger.addHandler(file_handler)

	console_handlers = [h for h in logger.handlers if h.get_name() == CONSOLE_HANDLER_NAME]
	if console and not console_handlers:
		console_handler = logging.StreamHandler(sys.stderr)
		console_handler.set_name(CONSOLE_HANDLER_NAME)
		console_handler.setLevel(logging.WARNING)
		console_handler.setFormatter(logging.Formatter(
			"%(asctime)s [%(levelname)s] %(message)s",
			datefmt="%H:%M:%S",
		))
		logger.addHandler(console_handler)
	elif not console:
		for handler in console_handlers:
			logger.removeHandler(handler)

	return logger


def log_file_path(log_dir: Path) -> Path:
	return Path(log_dir) / LOG_FILE_NAME
