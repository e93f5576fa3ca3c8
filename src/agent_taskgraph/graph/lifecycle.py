"""
Lifecycle Controller - status transitions, splitting and verification.

State machine:
	pending -> in_progress -> completed
	pending | in_progress -> blocked -> pending

Readiness (all dependencies completed) is derived on demand, never stored.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Iterable, Optional

from ..errors import (
	DependenciesUnmetError,
	FieldValidationError,
	InvalidTransitionError,
	PlanNotFoundError,
	PlanReadOnlyError,
	TaskGraphError,
	TaskNotFoundError,
)
from .dag import dependents_of
from .models import Plan, Task, TaskDraft, TaskStatus, parse_input
from .store import GraphTx, ProjectStore
from .tasks import TaskGraph, dedupe, require_unique_names, resolve_references

logger = logging.getLogger(__name__)

_VALID_TRANSITIONS: dict[TaskStatus, set[TaskStatus]] = {
	TaskStatus.PENDING: {TaskStatus.IN_PROGRESS, TaskStatus.BLOCKED},
	TaskStatus.IN_PROGRESS: {TaskStatus.COMPLETED, TaskStatus.BLOCKED},
	TaskStatus.BLOCKED: {TaskStatus.PENDING},
	TaskStatus.COMPLETED: set(),
}

_SPLITTABLE = {TaskStatus.PENDING, TaskStatus.IN_PROGRESS}

DEFAULT_BULK_SUMMARY = "Marked completed by bulk status update"


@dataclass
class SplitResult:
	"""Outcome of splitting one task."""
	plan_id: str
	parent: Task
	subtasks: list[Task]
	replaced: bool = False


@dataclass
class VerifyResult:
	"""Outcome of scoring a task against the verification gate."""
	task: Task
	score: int
	threshold: int
	passed: bool


@dataclass
class BulkResult:
	"""Per-id result of a bulk status update."""
	task_id: str
	ok: bool
	status: Optional[str] = None
	error: Optional[dict[str, Any]] = field(default=None)

	def to_dict(self) -> dict[str, Any]:
		data = {"task_id": self.task_id, "ok": self.ok, "status": self.status}
		if self.error:
			data["error"] = self.error
		return data


def _require_text(value: Optional[str], label: str, task_id: str) -> str:
	value = (value or "").strip()
	if not value:
		raise FieldValidationError(f"{label} must not be empty", ids=[task_id])
	return value


class LifecycleController:
	"""Moves tasks through their states under the store's locks."""

	def __init__(self, store: ProjectStore, graph: TaskGraph, verification_threshold: int = 80):
		self.store = store
		self.graph = graph
		self.verification_threshold = verification_threshold

	def _open_task(self, tx: GraphTx, task_id: str) -> tuple[Task, Plan]:
		"""The task and the writable plan listing it."""
		task = tx.require_task(task_id)
		writable = [
			plan for plan in (tx.plan(pid) for pid in tx.plans_containing(task_id))
			if plan is not None and not plan.read_only
		]
		if not writable:
			raise PlanReadOnlyError(
				f"Task {task_id} is only listed by read-only plans",
				ids=[task_id],
			)
		return task, writable[0]

	def _check_transition(self, task: Task, target: TaskStatus) -> None:
		valid = _VALID_TRANSITIONS.get(task.status, set())
		if target not in valid:
			raise InvalidTransitionError(
				f"Cannot move task {task.id} from {task.status.value} to {target.value}",
				ids=[task.id],
				extra={"status": task.status.value, "target": target.value},
			)

	def _unmet_dependencies(self, tx: GraphTx, task: Task) -> list[str]:
		unmet = []
		for dep_id in task.dependencies:
			dep = tx.task(dep_id)
			if dep is not None and dep.status != TaskStatus.COMPLETED:
				unmet.append(dep_id)
		return unmet

	async def _transition(self, task_id: str, target: TaskStatus, note: Optional[str] = None) -> Task:
		async with self.store.transaction(tasks=[task_id]) as tx:
			task, _ = self._open_task(tx, task_id)
			self._check_transition(task, target)
			now = tx.now()
			previous = task.status
			task.status = target
			task.updated_at = now
			if note:
				task.audit_notes.append(f"{now} {note}")
		logger.info(f"Task {task_id}: {previous.value} -> {target.value}")
		return task

	async def start(self, task_id: str) -> Task:
		"""pending -> in_progress."""
		return await self._transition(task_id, TaskStatus.IN_PROGRESS)

	async def block(self, task_id: str, reason: Optional[str] = None) -> Task:
		"""pending | in_progress -> blocked, recording the reason."""
		reason = (reason or "").strip()
		note = f"blocked: {reason}" if reason else "blocked"
		return await self._transition(task_id, TaskStatus.BLOCKED, note=note)

	async def unblock(self, task_id: str) -> Task:
		"""blocked -> pending."""
		return await self._transition(task_id, TaskStatus.PENDING, note="unblocked")

	async def complete(self, task_id: str, summary: str) -> Task:
		"""
		Complete an in-progress task.

		Raises:
			InvalidTransitionError: The task is not in progress
			DependenciesUnmetError: Some dependencies are not completed; ids
				lists exactly those
		"""
		summary = _require_text(summary, "Completion summary", task_id)
		async with self.store.transaction(tasks=[task_id]) as tx:
			task, _ = self._open_task(tx, task_id)
			self._check_transition(task, TaskStatus.COMPLETED)
			unmet = self._unmet_dependencies(tx, task)
			if unmet:
				raise DependenciesUnmetError(
					f"Task {task_id} has unfinished dependencies: {', '.join(unmet)}",
					ids=unmet,
				)
			now = tx.now()
			task.status = TaskStatus.COMPLETED
			task.summary = summary
			task.completed_at = now
			task.updated_at = now
		logger.info(f"Task {task_id} completed")
		return task

	async def verify(self, task_id: str, score: int, summary: str) -> VerifyResult:
		"""
		Score a task against the verification gate.

		At or above the threshold the task is completed through complete().
		Below it the feedback is recorded and a pending task is moved to
		in_progress so the agent keeps working on it.
		"""
		if isinstance(score, bool) or not isinstance(score, int) or not 0 <= score <= 100:
			raise FieldValidationError(f"Score must be an integer from 0 to 100, got {score!r}", ids=[task_id])
		summary = _require_text(summary, "Verification summary", task_id)
		threshold = self.verification_threshold

		if score >= threshold:
			task = await self.complete(task_id, summary)
			return VerifyResult(task=task, score=score, threshold=threshold, passed=True)

		async with self.store.transaction(tasks=[task_id]) as tx:
			task, _ = self._open_task(tx, task_id)
			if task.is_terminal:
				raise InvalidTransitionError(
					f"Task {task_id} is already completed",
					ids=[task_id],
					extra={"status": task.status.value},
				)
			now = tx.now()
			task.audit_notes.append(f"{now} verification {score}/{threshold} failed: {summary}")
			if task.status == TaskStatus.PENDING:
				task.status = TaskStatus.IN_PROGRESS
			task.updated_at = now
		logger.info(f"Task {task_id} failed verification with score {score}")
		return VerifyResult(task=task, score=score, threshold=threshold, passed=False)

	async def split(
		self,
		task_id: str,
		drafts: Iterable[Any],
		sequential: bool = False,
		replace_parent: bool = False,
	) -> SplitResult:
		"""
		Break a task into subtasks in one transaction.

		Args:
			task_id: Parent task, pending or in progress
			drafts: Subtask drafts; dependencies may name existing task ids or
				earlier sibling drafts by name
			sequential: Chain each subtask on the previous one
			replace_parent: Hand the parent's edges to the subtasks and mark the
				parent completed as superseded

		Returns:
			SplitResult with the updated parent and the new subtasks
		"""
		drafts = [parse_input(TaskDraft, d) for d in drafts]
		if not drafts:
			raise FieldValidationError("Split needs at least one subtask", ids=[task_id])
		names = require_unique_names(drafts, ids=[task_id])
		if any(task_id in d.dependencies for d in drafts):
			raise FieldValidationError(
				f"Subtasks cannot depend on the task being split ({task_id})",
				ids=[task_id],
			)

		async with self.store.transaction(tasks=[task_id]) as tx:
			parent, plan = self._open_task(tx, task_id)
			if parent.status not in _SPLITTABLE:
				raise InvalidTransitionError(
					f"Cannot split task {task_id} in status {parent.status.value}",
					ids=[task_id],
					extra={"status": parent.status.value},
				)

			inherited = [d for d in parent.dependencies if plan.contains(d)]
			subtasks: list[Task] = []
			by_name: dict[str, str] = {}
			for draft in drafts:
				deps = inherited + resolve_references(draft.dependencies, by_name, later=names, owner=draft.name)
				if sequential and subtasks:
					deps.append(subtasks[-1].id)
				sub = self.graph.insert(tx, plan, draft, dependencies=dedupe(deps), split_from=parent.id)
				subtasks.append(sub)
				by_name[draft.name] = sub.id

			now = tx.now()
			sub_ids = [s.id for s in subtasks]
			if replace_parent:
				for dep_id in dependents_of(tx.plan_tasks(plan), parent.id):
					if dep_id in sub_ids:
						continue
					dependent = tx.require_task(dep_id)
					deps = dedupe([d for d in dependent.dependencies if d != parent.id] + sub_ids)
					self.graph.check_edges(tx, plan, dep_id, deps)
					dependent.dependencies = deps
					dependent.updated_at = now
				parent.dependencies = []
				parent.status = TaskStatus.COMPLETED
				parent.summary = f"Superseded by split into: {', '.join(names)}"
				parent.completed_at = now
			else:
				deps = dedupe(parent.dependencies + sub_ids)
				self.graph.check_edges(tx, plan, parent.id, [d for d in deps if plan.contains(d)])
				parent.dependencies = deps
			parent.audit_notes.append(f"{now} split into {len(subtasks)} subtasks: {', '.join(sub_ids)}")
			parent.updated_at = now

		logger.info(
			f"Split task {task_id} into {len(subtasks)} subtasks"
			f"{' (parent replaced)' if replace_parent else ''}"
		)
		return SplitResult(plan_id=plan.id, parent=parent, subtasks=subtasks, replaced=replace_parent)

	async def update_status_bulk(self, plan_id: str, task_ids: Iterable[str], status: Any) -> list[BulkResult]:
		"""
		Apply one status to many tasks, each under its own transaction.

		Returns one BulkResult per id in input order; failures do not stop the
		remaining ids.
		"""
		try:
			target = TaskStatus(status)
		except ValueError as e:
			raise FieldValidationError(
				f"Unknown status {status!r}; expected one of: {', '.join(s.value for s in TaskStatus)}",
			) from e
		if self.store.get_plan(plan_id) is None:
			raise PlanNotFoundError(f"Plan not found: {plan_id}", ids=[plan_id])

		operations = {
			TaskStatus.PENDING: self.unblock,
			TaskStatus.IN_PROGRESS: self.start,
			TaskStatus.BLOCKED: lambda tid: self.block(tid, "bulk status update"),
			TaskStatus.COMPLETED: lambda tid: self.complete(tid, DEFAULT_BULK_SUMMARY),
		}
		apply = operations[target]

		results = []
		for task_id in task_ids:
			plan = self.store.get_plan(plan_id)
			try:
				if plan is None or not plan.contains(task_id):
					raise TaskNotFoundError(f"Task {task_id} is not in plan {plan_id}", ids=[task_id])
				task = await apply(task_id)
				results.append(BulkResult(task_id=task_id, ok=True, status=task.status.value))
			except TaskGraphError as e:
				current = self.store.get_task(task_id)
				results.append(BulkResult(
					task_id=task_id,
					ok=False,
					status=current.status.value if current else None,
					error=e.to_dict(),
				))

		ok = sum(1 for r in results if r.ok)
		logger.info(f"Bulk update to {target.value} on plan {plan_id}: {ok}/{len(results)} succeeded")
		return results
