"""Shared utilities for visualizer views."""

from datetime import datetime
from typing import Optional

from ..graph.models import TaskStatus

STATUS_ICONS = {
	TaskStatus.PENDING: "[dim][ ][/dim]",
	TaskStatus.IN_PROGRESS: "[yellow][~][/yellow]",
	TaskStatus.COMPLETED: r"[green]\[x][/green]",
	TaskStatus.BLOCKED: "[red][!][/red]",
}

STATUS_STYLES = {
	TaskStatus.PENDING: "dim",
	TaskStatus.IN_PROGRESS: "yellow",
	TaskStatus.COMPLETED: "green",
	TaskStatus.BLOCKED: "red",
}


def status_icon(status: Optional[TaskStatus]) -> str:
	"""Checkbox-style marker for a task status; '?' when the task is gone."""
	if status is None:
		return "[dim][?][/dim]"
	return STATUS_ICONS.get(status, "[ ]")


def status_style(status: Optional[TaskStatus]) -> str:
	"""Return a Rich style string for a task status."""
	if status is None:
		return "dim"
	return STATUS_STYLES.get(status, "dim")


def format_timestamp(iso_str: Optional[str], now: Optional[datetime] = None) -> str:
	"""Format an ISO timestamp as relative time (e.g. '2m ago') or absolute."""
	if not iso_str:
		return "-"
	try:
		dt = datetime.fromisoformat(iso_str)
		delta = (now or datetime.now()) - dt
		total_secs = int(delta.total_seconds())

		if total_secs < 0:
			return iso_str[:19]
		if total_secs < 60:
			return f"{total_secs}s ago"
		if total_secs < 3600:
			return f"{total_secs // 60}m ago"
		if total_secs < 86400:
			return f"{total_secs // 3600}h ago"
		return f"{total_secs // 86400}d ago"
	except (ValueError, TypeError):
		return str(iso_str)[:19]


def progress_bar(done: int, total: int, width: int = 20) -> str:
	"""Plain text bar such as '[#####-----]'."""
	if total <= 0:
		return "[" + "-" * width + "]"
	filled = round(width * done / total)
	return "[" + "#" * filled + "-" * (width - filled) + "]"
