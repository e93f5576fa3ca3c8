"""Tests for visualizer Rich views."""

from datetime import datetime, timedelta
from io import StringIO

import pytest
from rich.console import Console

from agent_taskgraph.graph.models import TaskStatus
from agent_taskgraph.visualizer import render_plan_progress, render_plan_summary, render_project_list
from agent_taskgraph.visualizer.utils import format_timestamp, progress_bar, status_icon, status_style

from .helpers import draft, finish


def _console() -> Console:
	return Console(file=StringIO(), width=120, force_terminal=False)


def _output(console: Console) -> str:
	return console.file.getvalue()


# -- utils tests --

def test_format_timestamp_relative():
	now = datetime(2026, 3, 1, 12, 0, 0)
	assert format_timestamp((now - timedelta(seconds=30)).isoformat(), now) == "30s ago"
	assert format_timestamp((now - timedelta(minutes=5)).isoformat(), now) == "5m ago"
	assert format_timestamp((now - timedelta(hours=3)).isoformat(), now) == "3h ago"
	assert format_timestamp((now - timedelta(days=2)).isoformat(), now) == "2d ago"


def test_format_timestamp_invalid_and_empty():
	assert format_timestamp("not-a-date") == "not-a-date"
	assert format_timestamp(None) == "-"


def test_progress_bar():
	assert progress_bar(1, 2, width=10) == "[#####-----]"
	assert progress_bar(0, 0, width=4) == "[----]"


def test_status_helpers():
	assert status_style(TaskStatus.COMPLETED) == "green"
	assert status_style(None) == "dim"
	assert "?" in status_icon(None)


# -- view tests --

@pytest.mark.asyncio
async def test_render_plan_progress_in_dependency_order(service, project):
	api = await service.add_task(draft("API"))
	schema = await service.add_task(draft("Schema"))
	await service.update_task(api.id, {"dependencies": [schema.id]})
	await finish(service, schema.id)

	console = _console()
	render_plan_progress(await service.store.snapshot(service.active_plan().id), console)
	out = _output(console)

	assert "Demo App v1" in out
	assert "1/2 tasks done" in out
	assert out.index("Schema") < out.index("API")
	assert "[x]" in out
	assert "needs" in out


@pytest.mark.asyncio
async def test_render_history_plan_uses_snapshot(service, project):
	task = await service.add_task(draft("Frozen"))
	old = service.active_plan()
	await service.create_plan_version()
	await finish(service, task.id)

	console = _console()
	render_plan_progress(await service.store.snapshot(old.id), console)
	out = _output(console)

	assert "read-only" in out
	assert "0/1 tasks done" in out


@pytest.mark.asyncio
async def test_render_empty_plan(service, project):
	console = _console()
	render_plan_progress(await service.store.snapshot(service.active_plan().id), console)
	assert "No tasks" in _output(console)


@pytest.mark.asyncio
async def test_render_plan_summary(service, project):
	task = await service.add_task(draft("Only"))
	await finish(service, task.id)
	await service.create_plan_version()

	console = _console()
	render_plan_summary(
		service.resolve_project(),
		await service.summarize(),
		service.list_plans(),
		console,
	)
	out = _output(console)

	assert "Demo App" in out
	assert "1/1 (100%)" in out
	assert "1 superseded" in out
	assert "v2" in out


@pytest.mark.asyncio
async def test_render_project_list_marks_current(service, project):
	await service.create_project("Second", switch=False)

	console = _console()
	render_project_list(service.list_projects(), service.session.current_project_id, console)
	out = _output(console)

	assert "Demo App" in out and "Second" in out
	assert "*" in out


def test_render_project_list_empty():
	console = _console()
	render_project_list([], None, console)
	assert "No projects yet" in _output(console)
