"""
Prompt rendering - Markdown responses chosen by (operation, outcome).

Templates use {placeholder} substitution only. Each locale must define the
same keys with the same placeholders; this is checked when a renderer is
created. Any template can be replaced or extended through the environment:

	AGENT_TASKGRAPH_PROMPT_<KEY>         replaces the template
	AGENT_TASKGRAPH_PROMPT_<KEY>_APPEND  is appended after a blank line

where <KEY> is the template key upper-cased with non-alphanumerics turned
into underscores (add_task.success -> ADD_TASK_SUCCESS).
"""

import logging
import os
import re
from enum import Enum
from typing import Any, Mapping, Optional

from ..errors import TaskGraphError
from . import en, zh_tw

logger = logging.getLogger(__name__)

DEFAULT_LOCALE = "en"
ENV_PREFIX = "AGENT_TASKGRAPH_PROMPT_"

LOCALES: dict[str, dict[str, str]] = {
	"en": en.TEMPLATES,
	"zh-TW": zh_tw.TEMPLATES,
}

_PLACEHOLDER = re.compile(r"\{(\w+)\}")


def placeholders(text: str) -> set[str]:
	return set(_PLACEHOLDER.findall(text))


def validate_locales(locales: Mapping[str, Mapping[str, str]] = LOCALES) -> None:
	"""
	Check that every locale has the same keys and placeholders as English.

	Raises:
		ValueError: Listing every mismatch found
	"""
	reference = locales[DEFAULT_LOCALE]
	problems = []
	for locale, templates in locales.items():
		if locale == DEFAULT_LOCALE:
			continue
		missing = sorted(set(reference) - set(templates))
		extra = sorted(set(templates) - set(reference))
		if missing:
			problems.append(f"{locale}: missing keys {', '.join(missing)}")
		if extra:
			problems.append(f"{locale}: unknown keys {', '.join(extra)}")
		for key in sorted(set(reference) & set(templates)):
			expected, actual = placeholders(reference[key]), placeholders(templates[key])
			if expected != actual:
				problems.append(
					f"{locale}: {key} placeholders {sorted(actual)} != {sorted(expected)}"
				)
	if problems:
		raise ValueError("Template sets disagree: " + "; ".join(problems))


def env_key(key: str) -> str:
	return ENV_PREFIX + re.sub(r"[^A-Za-z0-9]", "_", key).upper()


def _unescape(value: str) -> str:
	return value.replace("\\n", "\n").replace("\\t", "\t").replace("\\r", "\r")


def format_value(value: Any) -> str:
	"""String form of a template field."""
	if value is None:
		return ""
	if isinstance(value, Enum):
		return str(value.value)
	if isinstance(value, (list, tuple, set)):
		return ", ".join(format_value(v) for v in value)
	return str(value)


def substitute(template: str, fields: Mapping[str, Any]) -> str:
	"""Replace {name} placeholders; unknown names render empty."""
	return _PLACEHOLDER.sub(lambda m: format_value(fields.get(m.group(1))), template)


class PromptRenderer:
	"""Renders templates of one locale, with environment overrides."""

	def __init__(self, locale: str = DEFAULT_LOCALE, environ: Optional[Mapping[str, str]] = None):
		validate_locales()
		if locale not in LOCALES:
			logger.warning(f"Unknown template locale '{locale}', falling back to {DEFAULT_LOCALE}")
			locale = DEFAULT_LOCALE
		self.locale = locale
		self.templates = LOCALES[locale]
		self.environ = os.environ if environ is None else environ

	def has(self, key: str) -> bool:
		return key in self.templates

	def template(self, key: str) -> str:
		"""Template text for key after environment overrides."""
		base = self.templates.get(key)
		if base is None:
			raise KeyError(f"No template '{key}' in locale {self.locale}")
		name = env_key(key)
		override = self.environ.get(name)
		if override:
			return _unescape(override)
		extra = self.environ.get(f"{name}_APPEND")
		if extra:
			return f"{base}\n\n{_unescape(extra)}"
		return base

	def render(self, key: str, fields: Optional[Mapping[str, Any]] = None) -> str:
		return substitute(self.template(key), fields or {})

	def render_outcome(self, operation: str, outcome: str, fields: Optional[Mapping[str, Any]] = None) -> str:
		"""
		Render the template for an operation outcome.

		For an error kind the lookup order is <op>.<Kind>, <op>.error,
		error.<Kind>, then error.
		"""
		if outcome == "success" or self.has(f"{operation}.{outcome}"):
			return self.render(f"{operation}.{outcome}", fields)
		for key in (f"{operation}.error", f"error.{outcome}", "error"):
			if self.has(key):
				return self.render(key, fields)
		raise KeyError(f"No template for {operation}/{outcome}")

	def render_error(self, operation: str, error: TaskGraphError) -> str:
		fields = error.to_dict()
		if "path" in fields:
			fields["ids"] = " -> ".join(fields["path"])
		suggestions = fields.get("suggestions")
		if suggestions is not None and not suggestions:
			fields["suggestions"] = self.render("item.none")
		return self.render_outcome(operation, error.kind, fields)

	def render_list(self, item_key: str, rows: list[Mapping[str, Any]]) -> str:
		"""One rendered line per row, or the localized 'none' marker."""
		if not rows:
			return self.render("item.none")
		return "\n".join(self.render(item_key, row) for row in rows)


__all__ = [
	"LOCALES",
	"PromptRenderer",
	"validate_locales",
	"placeholders",
	"substitute",
	"env_key",
]
