"""
Plan Manager - plan versions, project switching, rollback and diff.

Tasks are shared by reference between plan versions. Superseding a plan
makes it read-only and freezes the statuses its tasks had at that moment,
which is what history diffs compare against.
"""

import logging
import uuid
from dataclasses import dataclass, field
from typing import Any, Iterable, Optional

from ..errors import FieldValidationError, PlanNotFoundError, ProjectNotFoundError, TaskNotFoundError
from .dag import topological_order, transitive_dependencies
from .models import BatchMode, Plan, Project, TaskDraft, TaskStatus, parse_input
from .projects import ProjectRegistry
from .store import CURRENT_PROJECT_KEY, GraphTx, ProjectStore
from .tasks import BatchResult, TaskGraph, dedupe, plan_deps, require_unique_names

logger = logging.getLogger(__name__)


class Session:
	"""The current-project pointer, persisted in the store's metadata."""

	def __init__(self, store: ProjectStore):
		self.store = store

	@property
	def current_project_id(self) -> Optional[str]:
		return self.store.get_meta(CURRENT_PROJECT_KEY) or None

	async def set_current(self, project_id: Optional[str]) -> None:
		async with self.store.transaction(registry=True) as tx:
			tx.set_meta(CURRENT_PROJECT_KEY, project_id or "")


@dataclass
class DiffEntry:
	task_id: str
	name: str
	old_status: Optional[TaskStatus] = None
	new_status: Optional[TaskStatus] = None

	def to_dict(self) -> dict[str, Any]:
		return {
			"task_id": self.task_id,
			"name": self.name,
			"old_status": self.old_status.value if self.old_status else None,
			"new_status": self.new_status.value if self.new_status else None,
		}


@dataclass
class PlanDiff:
	"""Changes from an older plan to a newer plan of the same project."""
	older: Plan
	newer: Plan
	added: list[DiffEntry] = field(default_factory=list)
	removed: list[DiffEntry] = field(default_factory=list)
	status_changed: list[DiffEntry] = field(default_factory=list)

	@property
	def is_empty(self) -> bool:
		return not (self.added or self.removed or self.status_changed)

	def to_dict(self) -> dict[str, Any]:
		return {
			"older": {"id": self.older.id, "version": self.older.version},
			"newer": {"id": self.newer.id, "version": self.newer.version},
			"added": [e.to_dict() for e in self.added],
			"removed": [e.to_dict() for e in self.removed],
			"status_changed": [e.to_dict() for e in self.status_changed],
		}


class PlanManager:
	"""Versioning operations over a project's plans."""

	def __init__(self, store: ProjectStore, projects: ProjectRegistry, graph: Optional[TaskGraph] = None):
		self.store = store
		self.projects = projects
		self.graph = graph or TaskGraph(store)
		self.session = Session(store)

	# -- helpers ------------------------------------------------------------

	def _supersede(
		self,
		tx: GraphTx,
		project: Project,
		task_ids: list[str],
		name: Optional[str],
		parent_plan_id: Optional[str],
	) -> Plan:
		"""Freeze the active plan and install a new active version."""
		plans = tx.plans_of_project(project.id)
		version = max((p.version for p in plans), default=0) + 1
		now = tx.now()

		old = tx.require_plan(project.active_plan_id)
		old.read_only = True
		old.status_snapshot = {
			tid: task.status
			for tid, task in ((tid, tx.task(tid)) for tid in old.task_ids)
			if task is not None
		}
		old.updated_at = now

		plan = tx.add_plan(Plan(
			id=str(uuid.uuid4()),
			project_id=project.id,
			version=version,
			name=(name or "").strip() or f"{project.name} v{version}",
			created_at=now,
			updated_at=now,
			task_ids=task_ids,
			parent_plan_id=parent_plan_id,
		))
		project.plan_history.append(old.id)
		project.active_plan_id = plan.id
		project.updated_at = now
		return plan

	def _close_over_project(self, tx: GraphTx, project: Project, task_ids: list[str]) -> list[str]:
		"""
		Add the tasks that task_ids currently depend on, transitively.

		Task records are shared between versions, so a task restored from an
		old plan may have gained dependencies that only later plans list.
		Those are pulled in from any plan of the project. Edges to tasks that
		no longer exist are dropped from the restored tasks.
		"""
		owned = dedupe(tid for plan in tx.plans_of_project(project.id) for tid in plan.task_ids)
		known = {tid for tid in owned if tx.task(tid) is not None}

		def deps_of(task_id: str) -> list[str]:
			return [d for d in tx.task(task_id).dependencies if d in known]

		closure = transitive_dependencies(deps_of, task_ids)
		result = task_ids + [tid for tid in owned if tid in closure and tid not in task_ids]

		for task_id in result:
			task = tx.task(task_id)
			dangling = [d for d in task.dependencies if d not in known]
			if dangling:
				task.dependencies = [d for d in task.dependencies if d in known]
				task.updated_at = tx.now()
				logger.warning(f"Task {task_id}: dropped edges to deleted tasks {', '.join(dangling)}")
		return result

	def _project_plan(self, tx: GraphTx, project: Project, plan_id: str) -> Plan:
		plan = tx.require_plan(plan_id)
		if plan.project_id != project.id:
			raise PlanNotFoundError(
				f"Plan {plan_id} does not belong to project '{project.name}'",
				ids=[plan_id],
			)
		return plan

	# -- operations ---------------------------------------------------------

	async def create_plan_version(
		self,
		project_id: str,
		task_selection: Optional[Iterable[str]] = None,
		name: Optional[str] = None,
	) -> Plan:
		"""
		Supersede the active plan with a new version.

		Args:
			project_id: Project to version
			task_selection: Task ids from the active plan to carry over; every
				task of the active plan when None. Closed under dependencies.
			name: Optional plan name

		Returns:
			The new active plan
		"""
		async with self.store.transaction(projects=[project_id]) as tx:
			project = tx.require_project(project_id)
			active = tx.require_plan(project.active_plan_id)

			if task_selection is None:
				selection = list(active.task_ids)
			else:
				selection = dedupe(task_selection)
				missing = [tid for tid in selection if not active.contains(tid)]
				if missing:
					raise TaskNotFoundError(
						f"Tasks not in the active plan: {', '.join(missing)}",
						ids=missing,
					)

			closure = transitive_dependencies(plan_deps(tx, active), selection)
			task_ids = [tid for tid in active.task_ids if tid in closure]
			plan = self._supersede(tx, project, task_ids, name, parent_plan_id=active.id)

		logger.info(
			f"Project {project_id}: plan v{plan.version} created with {len(task_ids)} tasks "
			f"({len(closure) - len(selection)} pulled in as dependencies)"
		)
		return plan

	async def rollback_plan(self, project_id: str, plan_id: str) -> Plan:
		"""Create a new active version from a historical plan's task set."""
		async with self.store.transaction(projects=[project_id]) as tx:
			project = tx.require_project(project_id)
			source = self._project_plan(tx, project, plan_id)
			if source.id == project.active_plan_id:
				raise FieldValidationError(
					f"Plan {plan_id} is already the active plan",
					ids=[plan_id],
				)
			restored = [tid for tid in source.task_ids if tx.task(tid) is not None]
			skipped = len(source.task_ids) - len(restored)
			task_ids = self._close_over_project(tx, project, restored)
			pulled = len(task_ids) - len(restored)
			topological_order(tx.task(tid) for tid in task_ids)
			version = max(p.version for p in tx.plans_of_project(project.id)) + 1
			plan = self._supersede(
				tx, project, task_ids,
				name=f"{project.name} v{version} (rollback to v{source.version})",
				parent_plan_id=source.id,
			)

		logger.info(
			f"Project {project_id}: rolled back to v{source.version} as v{plan.version}"
			f"{f', {skipped} deleted tasks skipped' if skipped else ''}"
			f"{f', {pulled} tasks pulled in as dependencies' if pulled else ''}"
		)
		return plan

	async def clear_all_tasks(self, project_id: str) -> Plan:
		"""Start an empty plan version; the previous one stays in history."""
		async with self.store.transaction(projects=[project_id]) as tx:
			project = tx.require_project(project_id)
			active = tx.require_plan(project.active_plan_id)
			cleared = len(active.task_ids)
			plan = self._supersede(tx, project, [], name=None, parent_plan_id=active.id)
		logger.info(f"Project {project_id}: cleared {cleared} tasks into history, now at v{plan.version}")
		return plan

	async def plan_tasks(self, project_id: str, drafts: Iterable[Any], mode: Any = BatchMode.APPEND) -> BatchResult:
		"""
		Create or update a batch of tasks in one transaction.

		Args:
			project_id: Project whose active plan receives the batch
			drafts: Task drafts; dependencies may name other drafts of the batch
			mode: append, overwrite (replace unfinished tasks), selective
				(update tasks matched by name) or clear_all (start a new empty
				version first, keeping the old one in history)

		Returns:
			BatchResult naming the created, updated and removed tasks
		"""
		try:
			mode = BatchMode(mode)
		except ValueError as e:
			raise FieldValidationError(
				f"Unknown update mode {mode!r}; expected one of: {', '.join(m.value for m in BatchMode)}",
			) from e
		drafts = [parse_input(TaskDraft, d) for d in drafts]
		if not drafts:
			raise FieldValidationError("Provide at least one task")
		require_unique_names(drafts)

		async with self.store.transaction(projects=[project_id]) as tx:
			project = tx.require_project(project_id)
			plan = tx.require_plan(project.active_plan_id)
			if mode == BatchMode.CLEAR_ALL:
				plan = self._supersede(tx, project, [], name=None, parent_plan_id=plan.id)
			result = self.graph.apply_batch(tx, plan, drafts, mode)

		logger.info(
			f"Project {project_id}: {mode.value} batch on plan v{plan.version}, "
			f"{len(result.created)} created, {len(result.updated)} updated, {len(result.removed)} removed"
		)
		return result

	async def delete_plan(self, plan_id: str) -> list[str]:
		"""
		Delete a superseded plan.

		Returns:
			Ids of tasks deleted because no other plan referenced them
		"""
		existing = self.store.get_plan(plan_id)
		if existing is None:
			raise PlanNotFoundError(f"Plan not found: {plan_id}", ids=[plan_id])

		async with self.store.transaction(projects=[existing.project_id]) as tx:
			plan = tx.require_plan(plan_id)
			project = tx.require_project(plan.project_id)
			if plan.id == project.active_plan_id:
				raise FieldValidationError(
					f"Plan {plan_id} is the active plan of '{project.name}' and cannot be deleted",
					ids=[plan_id],
				)
			tx.delete_plan(plan_id)
			project.plan_history = [pid for pid in project.plan_history if pid != plan_id]
			project.updated_at = tx.now()

			orphaned = [tid for tid in plan.task_ids if not tx.plans_containing(tid)]
			for tid in orphaned:
				tx.delete_task(tid)

		logger.info(f"Deleted plan {plan_id} (v{plan.version}) and {len(orphaned)} orphaned tasks")
		return orphaned

	async def switch_project(self, identifier: str) -> Project:
		"""Point the session at another project. A failed lookup changes nothing."""
		project = self.projects.resolve(identifier)
		await self.session.set_current(project.id)
		logger.info(f"Switched to project {project.id} '{project.name}'")
		return project

	def list_plans(self, project_id: str) -> list[Plan]:
		if self.store.get_project(project_id) is None:
			raise ProjectNotFoundError(f"Project not found: {project_id}", ids=[project_id])
		return self.store.plans_of_project(project_id)

	def get_plan(self, plan_id: str) -> Plan:
		plan = self.store.get_plan(plan_id)
		if plan is None:
			raise PlanNotFoundError(f"Plan not found: {plan_id}", ids=[plan_id])
		return plan

	async def diff_plans(self, plan_a: str, plan_b: str) -> PlanDiff:
		"""
		Compare two plans of the same project.

		The plan with the lower version is treated as the older one. Added and
		changed entries follow the newer plan's topological order, removed
		entries the older plan's.
		"""
		view_a = await self.store.snapshot(plan_a)
		view_b = await self.store.snapshot(plan_b)
		if view_a.plan.project_id != view_b.plan.project_id:
			raise FieldValidationError(
				"Plans belong to different projects and cannot be compared",
				ids=[plan_a, plan_b],
			)

		older, newer = sorted([view_a, view_b], key=lambda v: v.plan.version)
		diff = PlanDiff(older=older.plan, newer=newer.plan)
		if older.plan.id == newer.plan.id:
			return diff

		old_ids = set(older.plan.task_ids)
		new_ids = set(newer.plan.task_ids)
		for task in newer.ordered():
			if task.id not in old_ids:
				diff.added.append(DiffEntry(task.id, task.name, new_status=newer.recorded_status(task.id)))
				continue
			before, after = older.recorded_status(task.id), newer.recorded_status(task.id)
			if before != after:
				diff.status_changed.append(DiffEntry(task.id, task.name, old_status=before, new_status=after))
		for task in older.ordered():
			if task.id not in new_ids:
				diff.removed.append(DiffEntry(task.id, task.name, old_status=older.recorded_status(task.id)))
		return diff