"""Tests for listing, searching and summarizing tasks."""

import pytest

from agent_taskgraph.errors import FieldValidationError, ProjectNotFoundError, TaskNotFoundError
from agent_taskgraph.graph.models import TaskStatus
from agent_taskgraph.graph.queries import parse_status

from .helpers import draft, finish


def test_parse_status():
	assert parse_status(None) is None
	assert parse_status("all") is None
	assert parse_status("blocked") == TaskStatus.BLOCKED
	with pytest.raises(FieldValidationError):
		parse_status("finished")


@pytest.mark.asyncio
async def test_list_tasks_filters_by_status(service, project):
	a = await service.add_task(draft("A"))
	b = await service.add_task(draft("B"))
	await service.start_task(b.id)

	assert [t.id for t in await service.list_tasks()] == [a.id, b.id]
	assert [t.id for t in await service.list_tasks(status="in_progress")] == [b.id]
	assert await service.list_tasks(status="completed") == []


@pytest.mark.asyncio
async def test_list_tasks_of_history_plan(service, project):
	a = await service.add_task(draft("A"))
	v1 = service.active_plan()
	await service.clear_all_tasks()

	assert [t.id for t in await service.list_tasks(plan_id=v1.id)] == [a.id]
	assert await service.list_tasks() == []


@pytest.mark.asyncio
async def test_ready_tasks_ignore_blocked_and_started(service, project):
	a = await service.add_task(draft("A"))
	b = await service.add_task(draft("B"))
	c = await service.add_task(draft("C", [a.id]))
	await service.block_task(b.id, "waiting")

	assert [t.id for t in await service.ready_tasks()] == [a.id]

	await finish(service, a.id)
	assert [t.id for t in await service.ready_tasks()] == [c.id]


@pytest.mark.asyncio
async def test_search_requires_every_keyword(service, project):
	await service.add_task(draft("Login form", description="Build the login form with validation"))
	await service.add_task(draft("Signup form", description="Build the signup form"))
	await service.add_task(draft("Database", description="Create the users table"))

	page = await service.search_tasks("form BUILD")
	assert page.total == 2

	page = await service.search_tasks("form validation")
	assert [t.name for t in page.tasks] == ["Login form"]

	page = await service.search_tasks("nothing-matches")
	assert page.total == 0 and page.tasks == []


@pytest.mark.asyncio
async def test_search_pagination(service, project):
	for i in range(7):
		await service.add_task(draft(f"Widget {i}"))

	first = await service.search_tasks("widget", page_size=3)
	last = await service.search_tasks("widget", page=3, page_size=3)

	assert first.total == 7 and first.total_pages == 3
	assert [t.name for t in first.tasks] == ["Widget 0", "Widget 1", "Widget 2"]
	assert [t.name for t in last.tasks] == ["Widget 6"]


@pytest.mark.asyncio
async def test_search_by_id(service, project):
	task = await service.add_task(draft("Target"))
	page = await service.search_tasks(task.id, is_id=True)
	assert [t.id for t in page.tasks] == [task.id]


@pytest.mark.asyncio
async def test_search_validates_paging(service, project):
	with pytest.raises(FieldValidationError):
		await service.search_tasks("x", page_size=21)
	with pytest.raises(FieldValidationError):
		await service.search_tasks("x", page=0)
	with pytest.raises(FieldValidationError):
		await service.search_tasks("   ")


@pytest.mark.asyncio
async def test_get_task_unknown(service):
	with pytest.raises(TaskNotFoundError):
		service.get_task("missing")


@pytest.mark.asyncio
async def test_summarize_counts_active_plan(service, project):
	a = await service.add_task(draft("A"))
	b = await service.add_task(draft("B"))
	await service.add_task(draft("C"))
	await finish(service, a.id)
	await service.block_task(b.id)

	summary = await service.summarize()

	assert summary.total == 3
	assert summary.counts == {"pending": 1, "in_progress": 0, "completed": 1, "blocked": 1}
	assert summary.completion_rate == 33.3
	assert summary.to_dict()["plan_version"] == 1


@pytest.mark.asyncio
async def test_summarize_unknown_project(service):
	with pytest.raises(ProjectNotFoundError):
		await service.summarize("ghost")
