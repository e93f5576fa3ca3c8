"""
Task Graph - tasks and dependency edges within a plan.

Every edge mutation is validated against the plan it happens in: dependencies
must resolve to tasks the plan lists, and the candidate edge set must stay
acyclic. Failed validation raises before anything is written.
"""

import logging
import uuid
from dataclasses import dataclass, field
from typing import Any, Callable, Iterable, Optional

from ..errors import (
	CycleDetectedError,
	FieldValidationError,
	HasDependentsError,
	InvalidTransitionError,
	PlanReadOnlyError,
	TaskNotFoundError,
	UnknownDependencyError,
)
from .dag import cycle_through, dependents_of
from .models import BatchMode, Plan, Task, TaskDraft, TaskPatch, parse_input
from .store import GraphTx, ProjectStore

logger = logging.getLogger(__name__)

# Patch fields that cannot be cleared by passing None
_REQUIRED_FIELDS = {"name", "description", "notes", "dependencies", "related_files"}


def dedupe(ids: Iterable[str]) -> list[str]:
	"""Drop repeated ids, keeping first occurrences in order."""
	seen: set[str] = set()
	result = []
	for item in ids:
		if item not in seen:
			seen.add(item)
			result.append(item)
	return result


def require_unique_names(drafts: list[TaskDraft], ids: Iterable[str] = ()) -> list[str]:
	"""Names of the drafts, rejecting a batch that repeats one."""
	names = [d.name for d in drafts]
	duplicates = sorted({n for n in names if names.count(n) > 1})
	if duplicates:
		raise FieldValidationError(
			f"Task names must be unique within one call: {', '.join(duplicates)}",
			ids=list(ids),
		)
	return names


def resolve_references(
	refs: Iterable[str],
	by_name: dict[str, str],
	later: Iterable[str] = (),
	owner: str = "",
) -> list[str]:
	"""
	Map dependency references to task ids.

	A reference found in by_name is a task name and resolves to its id.
	Names in later belong to drafts declared after owner and are rejected.
	Anything else is taken to be a task id already.
	"""
	later = set(later)
	resolved = []
	for ref in refs:
		if ref in by_name:
			resolved.append(by_name[ref])
		elif ref in later:
			raise UnknownDependencyError(
				f"'{owner}' depends on '{ref}', which is declared after it",
				ids=[ref],
			)
		else:
			resolved.append(ref)
	return dedupe(resolved)


@dataclass
class BatchResult:
	"""Outcome of merging a batch of drafts into a plan."""
	plan_id: str
	mode: BatchMode
	created: list[Task] = field(default_factory=list)
	updated: list[Task] = field(default_factory=list)
	# completed tasks a selective batch matched by name and left as they were
	unchanged: list[Task] = field(default_factory=list)
	removed: list[str] = field(default_factory=list)


def plan_deps(tx: GraphTx, plan: Plan, overrides: Optional[dict[str, list[str]]] = None) -> Callable[[str], list[str]]:
	"""Dependency lookup restricted to in-plan edges, with provisional overrides."""
	overrides = overrides or {}

	def deps_of(task_id: str) -> list[str]:
		if task_id in overrides:
			return overrides[task_id]
		if not plan.contains(task_id):
			return []
		task = tx.task(task_id)
		if task is None:
			return []
		return [d for d in task.dependencies if plan.contains(d)]

	return deps_of


class TaskGraph:
	"""Structural edits of a plan's tasks."""

	def __init__(self, store: ProjectStore):
		self.store = store

	# -- transaction helpers ------------------------------------------------

	def writable_plan(self, tx: GraphTx, plan_id: str) -> Plan:
		plan = tx.require_plan(plan_id)
		if plan.read_only:
			raise PlanReadOnlyError(
				f"Plan {plan_id} (version {plan.version}) is read-only; edit the active plan instead",
				ids=[plan_id],
			)
		return plan

	def task_in_plan(self, tx: GraphTx, plan: Plan, task_id: str) -> Task:
		if not plan.contains(task_id):
			raise TaskNotFoundError(f"Task {task_id} is not in plan {plan.id}", ids=[task_id])
		return tx.require_task(task_id)

	def check_edges(
		self,
		tx: GraphTx,
		plan: Plan,
		task_id: str,
		deps: list[str],
		overrides: Optional[dict[str, list[str]]] = None,
	) -> None:
		"""
		Validate giving task_id the dependency list deps inside plan.

		Args:
			tx: Open transaction
			plan: Working copy of the plan the edges belong to
			task_id: Task receiving the edges (may not be inserted yet)
			deps: Candidate dependency ids
			overrides: Other provisional edge lists to take into account

		Raises:
			UnknownDependencyError: A dependency is missing or outside the plan
			CycleDetectedError: The edges would close a cycle
		"""
		unknown = [d for d in deps if not plan.contains(d) or tx.task(d) is None]
		if unknown:
			raise UnknownDependencyError(
				f"Unknown dependencies for plan {plan.id}: {', '.join(unknown)}",
				ids=unknown,
			)

		candidate = dict(overrides or {})
		candidate[task_id] = deps
		cycle = cycle_through(plan_deps(tx, plan, candidate), task_id, deps)
		if cycle:
			raise CycleDetectedError(
				f"Dependency cycle: {' -> '.join(cycle)}",
				ids=cycle,
				extra={"path": cycle},
			)

	def insert(
		self,
		tx: GraphTx,
		plan: Plan,
		draft: TaskDraft,
		dependencies: Optional[list[str]] = None,
		split_from: Optional[str] = None,
	) -> Task:
		"""Validate and add one task to an open transaction."""
		deps = dedupe(draft.dependencies if dependencies is None else dependencies)
		task_id = str(uuid.uuid4())
		self.check_edges(tx, plan, task_id, deps)

		now = tx.now()
		task = Task(
			id=task_id,
			plan_id=plan.id,
			name=draft.name,
			description=draft.description,
			notes=draft.notes,
			dependencies=deps,
			related_files=[f.model_copy() for f in draft.related_files],
			implementation_guide=draft.implementation_guide,
			verification_criteria=draft.verification_criteria,
			split_from=split_from,
			created_at=now,
			updated_at=now,
		)
		tx.add_task(task)
		plan.task_ids.append(task.id)
		plan.updated_at = now
		return task

	def apply_batch(self, tx: GraphTx, plan: Plan, drafts: list[TaskDraft], mode: BatchMode) -> BatchResult:
		"""
		Merge a batch of drafts into a plan inside an open transaction.

		append and clear_all add every draft as a new task. overwrite first
		takes the plan's unfinished tasks out and keeps the completed ones.
		selective updates the tasks whose name matches a draft and adds the
		rest. Dependencies may name any draft of the batch, in any order, or a
		task the plan keeps; other references are task ids.
		"""
		result = BatchResult(plan_id=plan.id, mode=mode)
		now = tx.now()

		if mode == BatchMode.OVERWRITE:
			result.removed = [t.id for t in tx.plan_tasks(plan) if not t.is_terminal]
			doomed = set(result.removed)
			plan.task_ids = [tid for tid in plan.task_ids if tid not in doomed]
			plan.updated_at = now
			for tid in result.removed:
				if not tx.plans_containing(tid):
					tx.delete_task(tid)

		by_name: dict[str, str] = {}
		for task in tx.plan_tasks(plan):
			by_name.setdefault(task.name, task.id)

		targets: list[tuple[TaskDraft, Task]] = []
		for draft in drafts:
			matched = by_name.get(draft.name) if mode == BatchMode.SELECTIVE else None
			if matched is None:
				task = self.insert(tx, plan, draft, dependencies=[])
				result.created.append(task)
			else:
				task = tx.require_task(matched)
				if task.is_terminal:
					result.unchanged.append(task)
					continue
				task.description = draft.description
				task.notes = draft.notes
				task.related_files = [f.model_copy() for f in draft.related_files]
				task.implementation_guide = draft.implementation_guide
				task.verification_criteria = draft.verification_criteria
				task.updated_at = now
				result.updated.append(task)
			targets.append((draft, task))

		by_name.update({draft.name: task.id for draft, task in targets})
		edges = {
			task.id: resolve_references(draft.dependencies, by_name)
			for draft, task in targets
		}
		for _, task in targets:
			self.check_edges(tx, plan, task.id, edges[task.id], overrides=edges)
		for _, task in targets:
			task.dependencies = edges[task.id]
		return result

	# -- operations ---------------------------------------------------------

	async def add_task(self, plan_id: str, draft: Any) -> Task:
		"""Add a task to a writable plan."""
		draft = parse_input(TaskDraft, draft)
		async with self.store.transaction(plans=[plan_id]) as tx:
			plan = self.writable_plan(tx, plan_id)
			task = self.insert(tx, plan, draft)
		logger.info(f"Added task {task.id} '{task.name}' to plan {plan_id}")
		return task

	async def update_task(self, plan_id: str, task_id: str, patch: Any) -> Task:
		"""Apply a partial update, re-validating edges when dependencies change."""
		patch = parse_input(TaskPatch, patch)
		changes = {
			k: v for k, v in patch.changes().items()
			if not (v is None and k in _REQUIRED_FIELDS)
		}
		if not changes:
			raise FieldValidationError("Nothing to update: provide at least one field", ids=[task_id])

		async with self.store.transaction(plans=[plan_id]) as tx:
			plan = self.writable_plan(tx, plan_id)
			task = self.task_in_plan(tx, plan, task_id)
			if task.is_terminal:
				raise InvalidTransitionError(
					f"Task {task_id} is completed and can no longer be edited",
					ids=[task_id],
					extra={"status": task.status.value},
				)

			if "dependencies" in changes:
				deps = dedupe(changes["dependencies"])
				self.check_edges(tx, plan, task_id, deps)
				changes["dependencies"] = deps

			for key, value in changes.items():
				setattr(task, key, value)
			task.updated_at = tx.now()

		logger.info(f"Updated task {task_id}: {', '.join(sorted(changes))}")
		return task

	async def annotate_task(self, task_id: str, note: str) -> Task:
		"""Append an audit note. Allowed in every state, including completed."""
		note = (note or "").strip()
		if not note:
			raise FieldValidationError("Audit note must not be empty", ids=[task_id])

		async with self.store.transaction(tasks=[task_id]) as tx:
			task = tx.require_task(task_id)
			now = tx.now()
			task.audit_notes.append(f"{now} {note}")
			task.updated_at = now
		return task

	async def remove_task(
		self,
		plan_id: str,
		task_id: str,
		cascade: bool = False,
		delete_dependents: bool = False,
	) -> list[str]:
		"""
		Remove a task from a plan.

		Args:
			plan_id: Writable plan to remove from
			task_id: Task to remove
			cascade: Proceed even if other tasks depend on it
			delete_dependents: With cascade, remove the dependents recursively
				instead of stripping the edge from them

		Returns:
			Ids removed from the plan, the requested task first

		Raises:
			HasDependentsError: Dependents exist and cascade is off
			InvalidTransitionError: A task to remove is completed
		"""
		async with self.store.transaction(plans=[plan_id]) as tx:
			plan = self.writable_plan(tx, plan_id)
			task = self.task_in_plan(tx, plan, task_id)
			if task.is_terminal:
				raise InvalidTransitionError(
					f"Task {task_id} is completed and cannot be removed",
					ids=[task_id],
					extra={"status": task.status.value},
				)

			tasks = tx.plan_tasks(plan)
			dependents = dependents_of(tasks, task_id)
			if dependents and not cascade:
				raise HasDependentsError(
					f"Task {task_id} has dependents: {', '.join(dependents)}",
					ids=dependents,
				)

			removed = [task_id]
			if delete_dependents:
				queue = list(dependents)
				while queue:
					current = queue.pop(0)
					if current in removed:
						continue
					removed.append(current)
					queue.extend(dependents_of(tasks, current))
				finished = [tid for tid in removed if tx.require_task(tid).is_terminal]
				if finished:
					raise InvalidTransitionError(
						f"Cannot remove completed dependents: {', '.join(finished)}",
						ids=finished,
					)

			doomed = set(removed)
			now = tx.now()
			plan.task_ids = [tid for tid in plan.task_ids if tid not in doomed]
			plan.updated_at = now
			for other in tasks:
				if other.id in doomed:
					continue
				if doomed.intersection(other.dependencies):
					other.dependencies = [d for d in other.dependencies if d not in doomed]
					other.updated_at = now

			for tid in removed:
				if not tx.plans_containing(tid):
					tx.delete_task(tid)

		logger.info(f"Removed {len(removed)} task(s) from plan {plan_id}: {', '.join(removed)}")
		return removed

	async def topological_order(self, plan_id: str) -> list[Task]:
		view = await self.store.snapshot(plan_id)
		return view.ordered()
