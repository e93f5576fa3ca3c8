"""Tests for task creation, editing, removal and dependency validation."""

import pytest

from agent_taskgraph.errors import (
	CycleDetectedError,
	FieldValidationError,
	HasDependentsError,
	InvalidTransitionError,
	PlanReadOnlyError,
	TaskNotFoundError,
	UnknownDependencyError,
)
from agent_taskgraph.graph.models import TaskStatus

from .helpers import draft, finish


class TestAddTask:

	@pytest.mark.asyncio
	async def test_add_task_appends_to_active_plan(self, service, project):
		task = await service.add_task(draft("Schema"))

		plan = service.active_plan()
		assert plan.task_ids == [task.id]
		assert task.status == TaskStatus.PENDING
		assert task.plan_id == plan.id
		assert task.created_at == task.updated_at

	@pytest.mark.asyncio
	async def test_ids_are_unique(self, service, project):
		first = await service.add_task(draft("One"))
		second = await service.add_task(draft("Two"))
		assert first.id != second.id

	@pytest.mark.asyncio
	async def test_short_description_is_rejected(self, service, project):
		with pytest.raises(FieldValidationError) as exc_info:
			await service.add_task({"name": "Tiny", "description": "short"})
		assert any("description" in e for e in exc_info.value.extra["errors"])
		assert service.active_plan().task_ids == []

	@pytest.mark.asyncio
	async def test_long_name_is_rejected(self, service, project):
		with pytest.raises(FieldValidationError):
			await service.add_task(draft("x" * 101))

	@pytest.mark.asyncio
	async def test_unknown_dependency_is_rejected(self, service, project):
		with pytest.raises(UnknownDependencyError) as exc_info:
			await service.add_task(draft("Orphan", ["no-such-task"]))
		assert exc_info.value.ids == ["no-such-task"]
		assert service.active_plan().task_ids == []

	@pytest.mark.asyncio
	async def test_dependency_from_another_project_is_unknown(self, service, project):
		other = await service.create_project("Other", switch=False)
		foreign = await service.add_task(draft("Foreign"), project=other.id)

		with pytest.raises(UnknownDependencyError):
			await service.add_task(draft("Local", [foreign.id]))

	@pytest.mark.asyncio
	async def test_duplicate_dependencies_are_collapsed(self, service, project):
		base = await service.add_task(draft("Base"))
		task = await service.add_task(draft("Child", [base.id, base.id]))
		assert task.dependencies == [base.id]

	@pytest.mark.asyncio
	async def test_related_files_are_validated(self, service, project):
		task = await service.add_task(draft(
			"Files",
			related_files=[{"path": "src/app.py", "kind": "MODIFY", "line_start": 3, "line_end": 9}],
		))
		assert task.related_files[0].path == "src/app.py"

		with pytest.raises(FieldValidationError):
			await service.add_task(draft(
				"Bad files",
				related_files=[{"path": "src/app.py", "kind": "MODIFY", "line_start": 9, "line_end": 3}],
			))

	@pytest.mark.asyncio
	async def test_read_only_plan_rejects_new_tasks(self, service, project):
		old = service.active_plan()
		await service.create_plan_version()

		with pytest.raises(PlanReadOnlyError):
			await service.graph.add_task(old.id, draft("Late"))


class TestUpdateTask:

	@pytest.mark.asyncio
	async def test_partial_update_keeps_other_fields(self, service, project):
		task = await service.add_task(draft("Original", notes="keep me"))
		updated = await service.update_task(task.id, {"name": "Renamed"})

		assert updated.name == "Renamed"
		assert updated.notes == "keep me"
		assert updated.description == task.description
		assert updated.updated_at > task.updated_at

	@pytest.mark.asyncio
	async def test_empty_patch_is_rejected(self, service, project):
		task = await service.add_task(draft("Task"))
		with pytest.raises(FieldValidationError):
			await service.update_task(task.id, {})

	@pytest.mark.asyncio
	async def test_reverse_edge_is_a_cycle(self, service, project):
		a = await service.add_task(draft("A"))
		b = await service.add_task(draft("B", [a.id]))

		with pytest.raises(CycleDetectedError) as exc_info:
			await service.update_task(a.id, {"dependencies": [b.id]})

		assert exc_info.value.extra["path"] == [a.id, b.id, a.id]
		assert service.get_task(a.id).dependencies == []

	@pytest.mark.asyncio
	async def test_self_dependency_is_a_cycle(self, service, project):
		a = await service.add_task(draft("A"))
		with pytest.raises(CycleDetectedError):
			await service.update_task(a.id, {"dependencies": [a.id]})

	@pytest.mark.asyncio
	async def test_long_cycle_is_detected(self, service, project):
		a = await service.add_task(draft("A"))
		b = await service.add_task(draft("B", [a.id]))
		c = await service.add_task(draft("C", [b.id]))

		with pytest.raises(CycleDetectedError) as exc_info:
			await service.update_task(a.id, {"dependencies": [c.id]})
		assert exc_info.value.extra["path"] == [a.id, c.id, b.id, a.id]

	@pytest.mark.asyncio
	async def test_completed_task_cannot_be_edited(self, service, project):
		task = await service.add_task(draft("Done"))
		await finish(service, task.id)

		with pytest.raises(InvalidTransitionError):
			await service.update_task(task.id, {"notes": "late edit"})

	@pytest.mark.asyncio
	async def test_unknown_task(self, service, project):
		with pytest.raises(TaskNotFoundError):
			await service.update_task("missing", {"notes": "x"})

	@pytest.mark.asyncio
	async def test_annotate_works_on_completed_task(self, service, project):
		task = await service.add_task(draft("Done"))
		await finish(service, task.id)

		annotated = await service.annotate_task(task.id, "reviewed by QA")
		assert annotated.audit_notes[-1].endswith("reviewed by QA")
		assert annotated.status == TaskStatus.COMPLETED

	@pytest.mark.asyncio
	async def test_annotate_rejects_blank_note(self, service, project):
		task = await service.add_task(draft("Task"))
		with pytest.raises(FieldValidationError):
			await service.annotate_task(task.id, "   ")


class TestRemoveTask:

	@pytest.mark.asyncio
	async def test_remove_leaf(self, service, project):
		task = await service.add_task(draft("Leaf"))
		removed = await service.remove_task(task.id)

		assert removed == [task.id]
		assert service.active_plan().task_ids == []
		with pytest.raises(TaskNotFoundError):
			service.get_task(task.id)

	@pytest.mark.asyncio
	async def test_dependents_block_removal(self, service, project):
		a = await service.add_task(draft("A"))
		b = await service.add_task(draft("B", [a.id]))

		with pytest.raises(HasDependentsError) as exc_info:
			await service.remove_task(a.id)
		assert exc_info.value.ids == [b.id]
		assert service.active_plan().task_ids == [a.id, b.id]

	@pytest.mark.asyncio
	async def test_cascade_strips_the_edge(self, service, project):
		a = await service.add_task(draft("A"))
		b = await service.add_task(draft("B", [a.id]))

		removed = await service.remove_task(a.id, cascade=True)

		assert removed == [a.id]
		assert service.get_task(b.id).dependencies == []
		assert service.active_plan().task_ids == [b.id]

	@pytest.mark.asyncio
	async def test_cascade_deletes_dependents_recursively(self, service, project):
		a = await service.add_task(draft("A"))
		b = await service.add_task(draft("B", [a.id]))
		c = await service.add_task(draft("C", [b.id]))
		keep = await service.add_task(draft("Keep"))

		removed = await service.remove_task(a.id, cascade=True, delete_dependents=True)

		assert removed == [a.id, b.id, c.id]
		assert service.active_plan().task_ids == [keep.id]

	@pytest.mark.asyncio
	async def test_completed_task_cannot_be_removed(self, service, project):
		task = await service.add_task(draft("Done"))
		await finish(service, task.id)

		with pytest.raises(InvalidTransitionError):
			await service.remove_task(task.id)

	@pytest.mark.asyncio
	async def test_task_shared_with_history_survives_removal(self, service, project):
		task = await service.add_task(draft("Shared"))
		old = service.active_plan()
		await service.create_plan_version()

		await service.remove_task(task.id)

		assert service.get_task(task.id).id == task.id
		assert service.get_plan(old.id).task_ids == [task.id]
		assert service.active_plan().task_ids == []


class TestTopologicalOrder:

	@pytest.mark.asyncio
	async def test_order_respects_dependencies(self, service, project):
		c = await service.add_task(draft("C"))
		a = await service.add_task(draft("A"))
		b = await service.add_task(draft("B", [a.id]))
		await service.update_task(c.id, {"dependencies": [b.id]})

		order = [t.id for t in await service.topological_order()]
		assert order == [a.id, b.id, c.id]

	@pytest.mark.asyncio
	async def test_independent_tasks_keep_creation_order(self, service, project):
		ids = [(await service.add_task(draft(f"T{i}"))).id for i in range(5)]
		assert [t.id for t in await service.topological_order()] == ids
