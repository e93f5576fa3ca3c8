"""Tests for creating and updating tasks in batches."""

import pytest

from agent_taskgraph.errors import (
	CycleDetectedError,
	FieldValidationError,
	TaskNotFoundError,
	UnknownDependencyError,
)
from agent_taskgraph.graph.models import BatchMode, TaskStatus

from .helpers import draft, finish


class TestAppend:

	@pytest.mark.asyncio
	async def test_dependencies_may_name_later_drafts(self, service, project):
		result = await service.plan_tasks([draft("Deploy", ["Build"]), draft("Build")])

		deploy, build = result.created
		assert result.mode == BatchMode.APPEND
		assert deploy.dependencies == [build.id]
		assert [t.name for t in await service.topological_order()] == ["Build", "Deploy"]

	@pytest.mark.asyncio
	async def test_existing_tasks_resolve_by_name_or_id(self, service, project):
		schema = await service.add_task(draft("Schema"))
		config = await service.add_task(draft("Config"))

		result = await service.plan_tasks([draft("Api", ["Schema", config.id])])

		assert result.created[0].dependencies == [schema.id, config.id]
		assert service.active_plan().task_ids == [schema.id, config.id, result.created[0].id]

	@pytest.mark.asyncio
	async def test_cycle_inside_batch_changes_nothing(self, service, project):
		with pytest.raises(CycleDetectedError):
			await service.plan_tasks([draft("A", ["B"]), draft("B", ["A"])])
		assert service.active_plan().task_ids == []

	@pytest.mark.asyncio
	async def test_unknown_reference_changes_nothing(self, service, project):
		with pytest.raises(UnknownDependencyError):
			await service.plan_tasks([draft("A"), draft("B", ["Missing"])])
		assert service.active_plan().task_ids == []

	@pytest.mark.asyncio
	async def test_repeated_names_are_rejected(self, service, project):
		with pytest.raises(FieldValidationError):
			await service.plan_tasks([draft("Same"), draft("Same")])

	@pytest.mark.asyncio
	async def test_empty_batch_is_rejected(self, service, project):
		with pytest.raises(FieldValidationError):
			await service.plan_tasks([])

	@pytest.mark.asyncio
	async def test_unknown_mode_is_rejected(self, service, project):
		with pytest.raises(FieldValidationError):
			await service.plan_tasks([draft("A")], mode="replace")


class TestOverwrite:

	@pytest.mark.asyncio
	async def test_unfinished_tasks_are_replaced(self, service, project):
		done = await service.add_task(draft("Done"))
		await finish(service, done.id)
		stale = await service.add_task(draft("Stale"))

		result = await service.plan_tasks([draft("Fresh", ["Done"])], mode="overwrite")

		fresh = result.created[0]
		assert result.removed == [stale.id]
		assert service.active_plan().task_ids == [done.id, fresh.id]
		assert fresh.dependencies == [done.id]
		assert service.get_task(done.id).status == TaskStatus.COMPLETED
		with pytest.raises(TaskNotFoundError):
			service.get_task(stale.id)

	@pytest.mark.asyncio
	async def test_task_shared_with_history_keeps_its_record(self, service, project):
		shared = await service.add_task(draft("Shared"))
		v1 = service.active_plan()
		await service.create_plan_version()

		await service.plan_tasks([draft("Fresh")], mode="overwrite")

		assert shared.id not in service.active_plan().task_ids
		assert service.get_plan(v1.id).task_ids == [shared.id]
		assert service.get_task(shared.id).id == shared.id

	@pytest.mark.asyncio
	async def test_replaced_tasks_cannot_be_referenced(self, service, project):
		stale = await service.add_task(draft("Stale"))

		with pytest.raises(UnknownDependencyError):
			await service.plan_tasks([draft("Fresh", ["Stale"])], mode="overwrite")

		assert service.active_plan().task_ids == [stale.id]


class TestSelective:

	@pytest.mark.asyncio
	async def test_matching_names_are_updated(self, service, project):
		api = await service.add_task(draft("Api", notes="first take"))
		docs = await service.add_task(draft("Docs"))

		result = await service.plan_tasks([
			draft("Api", ["Db"], description="Rebuild the API on the new schema"),
			draft("Db"),
		], mode="selective")

		db = result.created[0]
		assert [t.id for t in result.updated] == [api.id]
		updated = service.get_task(api.id)
		assert updated.description == "Rebuild the API on the new schema"
		assert updated.notes == ""
		assert updated.dependencies == [db.id]
		assert service.active_plan().task_ids == [api.id, docs.id, db.id]

	@pytest.mark.asyncio
	async def test_completed_match_is_left_alone(self, service, project):
		setup = await service.add_task(draft("Setup"))
		await finish(service, setup.id)

		result = await service.plan_tasks(
			[draft("Setup", description="Redo the setup from scratch")],
			mode="selective",
		)

		assert [t.id for t in result.unchanged] == [setup.id]
		assert result.created == [] and result.updated == []
		assert service.get_task(setup.id).description == "Implement the Setup step"

	@pytest.mark.asyncio
	async def test_update_that_closes_a_cycle_is_rejected(self, service, project):
		base = await service.add_task(draft("Base"))
		top = await service.add_task(draft("Top", [base.id]))

		with pytest.raises(CycleDetectedError):
			await service.plan_tasks([draft("Base", ["Top"])], mode="selective")

		assert service.get_task(base.id).dependencies == []
		assert service.get_task(top.id).dependencies == [base.id]


class TestClearAll:

	@pytest.mark.asyncio
	async def test_batch_goes_into_a_new_version(self, service, project):
		old = await service.add_task(draft("Old"))
		v1 = service.active_plan()

		result = await service.plan_tasks([draft("New")], mode="clear_all")

		v2 = service.active_plan()
		assert v2.version == 2
		assert result.plan_id == v2.id
		assert v2.task_ids == [result.created[0].id]
		assert service.get_plan(v1.id).read_only
		assert service.get_plan(v1.id).task_ids == [old.id]

	@pytest.mark.asyncio
	async def test_failed_batch_keeps_the_old_version(self, service, project):
		v1 = service.active_plan()

		with pytest.raises(UnknownDependencyError):
			await service.plan_tasks([draft("New", ["nope"])], mode="clear_all")

		assert service.active_plan().id == v1.id
		assert not service.get_plan(v1.id).read_only
