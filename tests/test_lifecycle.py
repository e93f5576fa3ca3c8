"""Tests for status transitions, verification, splitting and bulk updates."""

import pytest

from agent_taskgraph.errors import (
	DependenciesUnmetError,
	FieldValidationError,
	InvalidTransitionError,
	PlanReadOnlyError,
	UnknownDependencyError,
)
from agent_taskgraph.graph.lifecycle import DEFAULT_BULK_SUMMARY
from agent_taskgraph.graph.models import TaskStatus

from .helpers import draft, finish, make_service


class TestTransitions:

	@pytest.mark.asyncio
	async def test_start_block_unblock(self, service, project):
		task = await service.add_task(draft("Task"))

		started = await service.start_task(task.id)
		assert started.status == TaskStatus.IN_PROGRESS

		blocked = await service.block_task(task.id, "waiting on credentials")
		assert blocked.status == TaskStatus.BLOCKED
		assert blocked.audit_notes[-1].endswith("blocked: waiting on credentials")

		unblocked = await service.unblock_task(task.id)
		assert unblocked.status == TaskStatus.PENDING

	@pytest.mark.asyncio
	async def test_invalid_transitions(self, service, project):
		task = await service.add_task(draft("Task"))

		with pytest.raises(InvalidTransitionError):
			await service.unblock_task(task.id)
		with pytest.raises(InvalidTransitionError):
			await service.complete_task(task.id, "skipped ahead")

		await finish(service, task.id)
		with pytest.raises(InvalidTransitionError) as exc_info:
			await service.start_task(task.id)
		assert exc_info.value.extra["status"] == "completed"

	@pytest.mark.asyncio
	async def test_complete_requires_summary(self, service, project):
		task = await service.add_task(draft("Task"))
		await service.start_task(task.id)

		with pytest.raises(FieldValidationError):
			await service.complete_task(task.id, "  ")
		assert service.get_task(task.id).status == TaskStatus.IN_PROGRESS

	@pytest.mark.asyncio
	async def test_complete_sets_summary_and_timestamp(self, service, project):
		task = await service.add_task(draft("Task"))
		await service.start_task(task.id)
		done = await service.complete_task(task.id, "Shipped it")

		assert done.status == TaskStatus.COMPLETED
		assert done.summary == "Shipped it"
		assert done.completed_at == done.updated_at

	@pytest.mark.asyncio
	async def test_dependencies_gate_completion(self, service, project):
		p1 = await service.add_task(draft("P1"))
		a = await service.add_task(draft("A", [p1.id]))
		b = await service.add_task(draft("B", [p1.id, a.id]))

		ready = [t.id for t in await service.ready_tasks()]
		assert ready == [p1.id]

		await service.start_task(b.id)
		with pytest.raises(DependenciesUnmetError) as exc_info:
			await service.complete_task(b.id, "too early")
		assert exc_info.value.ids == [p1.id, a.id]

		await finish(service, p1.id)
		assert [t.id for t in await service.ready_tasks()] == [a.id]

		with pytest.raises(DependenciesUnmetError) as exc_info:
			await service.complete_task(b.id, "still too early")
		assert exc_info.value.ids == [a.id]

		await finish(service, a.id)
		done = await service.complete_task(b.id, "now it works")
		assert done.status == TaskStatus.COMPLETED

	@pytest.mark.asyncio
	async def test_task_only_in_history_is_read_only(self, service, project):
		task = await service.add_task(draft("Old"))
		await service.clear_all_tasks()

		with pytest.raises(PlanReadOnlyError):
			await service.start_task(task.id)


class TestVerify:

	@pytest.mark.asyncio
	async def test_passing_score_completes(self, service, project):
		task = await service.add_task(draft("Task"))
		await service.start_task(task.id)

		result = await service.verify_task(task.id, 85, "All criteria met")

		assert result.passed
		assert result.threshold == 80
		assert result.task.status == TaskStatus.COMPLETED
		assert result.task.summary == "All criteria met"

	@pytest.mark.asyncio
	async def test_score_equal_to_threshold_passes(self, service, project):
		task = await service.add_task(draft("Task"))
		await service.start_task(task.id)
		result = await service.verify_task(task.id, 80, "Good enough")
		assert result.passed

	@pytest.mark.asyncio
	async def test_failing_score_records_feedback(self, service, project):
		task = await service.add_task(draft("Task"))

		result = await service.verify_task(task.id, 40, "Tests are missing")

		assert not result.passed
		assert result.task.status == TaskStatus.IN_PROGRESS
		assert result.task.summary is None
		assert "verification 40/80 failed: Tests are missing" in result.task.audit_notes[-1]

	@pytest.mark.asyncio
	async def test_passing_score_still_checks_dependencies(self, service, project):
		dep = await service.add_task(draft("Dep"))
		task = await service.add_task(draft("Task", [dep.id]))
		await service.start_task(task.id)

		with pytest.raises(DependenciesUnmetError):
			await service.verify_task(task.id, 95, "Looks great")

	@pytest.mark.asyncio
	@pytest.mark.parametrize("score", [-1, 101, 50.5, True, "90"])
	async def test_invalid_scores(self, service, project, score):
		task = await service.add_task(draft("Task"))
		with pytest.raises(FieldValidationError):
			await service.verify_task(task.id, score, "summary")

	@pytest.mark.asyncio
	async def test_custom_threshold(self):
		service = await make_service(threshold=60)
		try:
			await service.create_project("Lenient")
			task = await service.add_task(draft("Task"))
			await service.start_task(task.id)
			result = await service.verify_task(task.id, 65, "fine")
			assert result.passed and result.threshold == 60
		finally:
			await service.close()


class TestSplit:

	@pytest.mark.asyncio
	async def test_split_keeps_parent_waiting(self, service, project):
		base = await service.add_task(draft("Base"))
		parent = await service.add_task(draft("Big", [base.id]))

		result = await service.split_task(parent.id, [draft("Part 1"), draft("Part 2")])

		sub_ids = [s.id for s in result.subtasks]
		assert not result.replaced
		assert all(s.split_from == parent.id for s in result.subtasks)
		assert all(s.dependencies == [base.id] for s in result.subtasks)
		assert service.get_task(parent.id).dependencies == [base.id] + sub_ids
		assert service.active_plan().task_ids == [base.id, parent.id] + sub_ids

	@pytest.mark.asyncio
	async def test_sequential_split_with_sibling_names(self, service, project):
		parent = await service.add_task(draft("Big"))

		result = await service.split_task(
			parent.id,
			[draft("Design"), draft("Build"), draft("Review", ["Design"])],
			sequential=True,
		)

		design, build, review = result.subtasks
		assert design.dependencies == []
		assert build.dependencies == [design.id]
		assert review.dependencies == [design.id, build.id]

	@pytest.mark.asyncio
	async def test_forward_sibling_reference_is_rejected(self, service, project):
		parent = await service.add_task(draft("Big"))
		with pytest.raises(UnknownDependencyError):
			await service.split_task(parent.id, [draft("First", ["Second"]), draft("Second")])
		assert service.active_plan().task_ids == [parent.id]

	@pytest.mark.asyncio
	async def test_duplicate_subtask_names_are_rejected(self, service, project):
		parent = await service.add_task(draft("Big"))
		with pytest.raises(FieldValidationError):
			await service.split_task(parent.id, [draft("Same"), draft("Same")])

	@pytest.mark.asyncio
	async def test_replace_parent_rewires_dependents(self, service, project):
		base = await service.add_task(draft("Base"))
		parent = await service.add_task(draft("Big", [base.id]))
		downstream = await service.add_task(draft("Downstream", [parent.id]))

		result = await service.split_task(parent.id, [draft("Part 1"), draft("Part 2")], replace_parent=True)

		sub_ids = [s.id for s in result.subtasks]
		replaced = service.get_task(parent.id)
		assert result.replaced
		assert replaced.status == TaskStatus.COMPLETED
		assert replaced.dependencies == []
		assert "Part 1" in replaced.summary
		assert service.get_task(downstream.id).dependencies == sub_ids
		assert all(s.dependencies == [base.id] for s in result.subtasks)

	@pytest.mark.asyncio
	async def test_split_is_all_or_nothing(self, service, project, monkeypatch):
		parent = await service.add_task(draft("Big"))
		before = service.store.revision
		original = service.graph.insert
		calls = []

		def failing_insert(*args, **kwargs):
			calls.append(1)
			if len(calls) == 2:
				raise UnknownDependencyError("simulated failure", ids=["x"])
			return original(*args, **kwargs)

		monkeypatch.setattr(service.graph, "insert", failing_insert)

		with pytest.raises(UnknownDependencyError):
			await service.split_task(parent.id, [draft("Part 1"), draft("Part 2"), draft("Part 3")])

		assert service.active_plan().task_ids == [parent.id]
		assert service.get_task(parent.id).dependencies == []
		assert service.store.task_count() == 1
		assert service.store.revision == before

	@pytest.mark.asyncio
	async def test_completed_task_cannot_be_split(self, service, project):
		task = await service.add_task(draft("Done"))
		await finish(service, task.id)
		with pytest.raises(InvalidTransitionError):
			await service.split_task(task.id, [draft("Part")])


class TestBulkStatus:

	@pytest.mark.asyncio
	async def test_partial_success_is_reported_per_task(self, service, project):
		a = await service.add_task(draft("A"))
		b = await service.add_task(draft("B"))
		await finish(service, b.id)

		results = await service.update_status_bulk([a.id, b.id, "missing"], "in_progress")

		assert [r.ok for r in results] == [True, False, False]
		assert results[0].status == "in_progress"
		assert results[1].error["kind"] == "InvalidTransition"
		assert results[1].status == "completed"
		assert results[2].error["kind"] == "TaskNotFound"

	@pytest.mark.asyncio
	async def test_bulk_complete_uses_default_summary(self, service, project):
		a = await service.add_task(draft("A"))
		await service.start_task(a.id)

		results = await service.update_status_bulk([a.id], "completed")

		assert results[0].ok
		assert service.get_task(a.id).summary == DEFAULT_BULK_SUMMARY

	@pytest.mark.asyncio
	async def test_unknown_status_is_rejected(self, service, project):
		with pytest.raises(FieldValidationError):
			await service.update_status_bulk([], "done")
