"""
Query and reporting views.

Every query works on a point-in-time snapshot of one plan, so it never sees
a half-applied mutation.
"""

import logging
import math
from dataclasses import dataclass, field
from typing import Any, Optional

from ..errors import FieldValidationError, ProjectNotFoundError, TaskNotFoundError
from .models import Task, TaskStatus
from .store import PlanView, ProjectStore

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 5
MAX_PAGE_SIZE = 20


@dataclass
class SearchPage:
	"""One page of search results."""
	query: str
	tasks: list[Task]
	page: int
	page_size: int
	total: int

	@property
	def total_pages(self) -> int:
		return max(1, math.ceil(self.total / self.page_size))


@dataclass
class ProjectSummary:
	"""Status counts of a project's active plan."""
	project_id: str
	project_name: str
	plan_id: str
	plan_version: int
	counts: dict[str, int] = field(default_factory=dict)
	total: int = 0
	history_count: int = 0

	@property
	def completion_rate(self) -> float:
		if not self.total:
			return 0.0
		return round(self.counts.get(TaskStatus.COMPLETED.value, 0) / self.total * 100, 1)

	def to_dict(self) -> dict[str, Any]:
		return {
			"project_id": self.project_id,
			"project_name": self.project_name,
			"plan_id": self.plan_id,
			"plan_version": self.plan_version,
			"counts": self.counts,
			"total": self.total,
			"completion_rate": self.completion_rate,
			"history_count": self.history_count,
		}


def parse_status(value: Any) -> Optional[TaskStatus]:
	"""Optional status filter from caller input."""
	if value is None or value == "" or value == "all":
		return None
	try:
		return TaskStatus(value)
	except ValueError as e:
		raise FieldValidationError(
			f"Unknown status {value!r}; expected one of: {', '.join(s.value for s in TaskStatus)}",
		) from e


def is_ready(view: PlanView, task: Task) -> bool:
	"""Pending with every known dependency completed."""
	if task.status != TaskStatus.PENDING:
		return False
	for dep in task.dependencies:
		status = view.status_of(dep)
		if status is not None and status != TaskStatus.COMPLETED:
			return False
	return True


def _matches(task: Task, keywords: list[str]) -> bool:
	haystack = " ".join(filter(None, [
		task.name,
		task.description,
		task.notes,
		task.implementation_guide,
		task.summary,
	])).lower()
	return all(k in haystack for k in keywords)


class QueryService:
	"""Read-only views over plans and projects."""

	def __init__(self, store: ProjectStore):
		self.store = store

	async def list_tasks(self, plan_id: str, status: Any = None) -> list[Task]:
		"""Tasks of a plan in topological order, optionally filtered by status."""
		wanted = parse_status(status)
		view = await self.store.snapshot(plan_id)
		return [t for t in view.ordered() if wanted is None or t.status == wanted]

	async def ready_tasks(self, plan_id: str) -> list[Task]:
		"""Pending tasks whose dependencies are all completed, in topological order."""
		view = await self.store.snapshot(plan_id)
		return [t for t in view.ordered() if is_ready(view, t)]

	async def search_tasks(
		self,
		plan_id: str,
		query: str,
		is_id: bool = False,
		page: int = 1,
		page_size: int = DEFAULT_PAGE_SIZE,
	) -> SearchPage:
		"""
		Search a plan's tasks.

		Args:
			plan_id: Plan to search
			query: Space-separated keywords, all of which must match; or a task
				id when is_id is set
			is_id: Treat query as an exact task id
			page: 1-based page number
			page_size: Results per page, 1 to 20
		"""
		query = (query or "").strip()
		if not query:
			raise FieldValidationError("Search query must not be empty")
		if not 1 <= page_size <= MAX_PAGE_SIZE:
			raise FieldValidationError(f"page_size must be between 1 and {MAX_PAGE_SIZE}, got {page_size}")
		if page < 1:
			raise FieldValidationError(f"page must be 1 or greater, got {page}")

		view = await self.store.snapshot(plan_id)
		if is_id:
			matches = [view.tasks[query]] if query in view.tasks else []
		else:
			keywords = query.lower().split()
			matches = [t for t in view.ordered() if _matches(t, keywords)]

		start = (page - 1) * page_size
		return SearchPage(
			query=query,
			tasks=matches[start:start + page_size],
			page=page,
			page_size=page_size,
			total=len(matches),
		)

	def get_task(self, task_id: str) -> Task:
		task = self.store.get_task(task_id)
		if task is None:
			raise TaskNotFoundError(f"Task not found: {task_id}", ids=[task_id])
		return task

	async def summarize(self, project_id: str) -> ProjectSummary:
		project = self.store.get_project(project_id)
		if project is None:
			raise ProjectNotFoundError(f"Project not found: {project_id}", ids=[project_id])

		view = await self.store.snapshot(project.active_plan_id)
		counts = {s.value: 0 for s in TaskStatus}
		for task in view.tasks.values():
			counts[task.status.value] += 1
		return ProjectSummary(
			project_id=project.id,
			project_name=project.name,
			plan_id=view.plan.id,
			plan_version=view.plan.version,
			counts=counts,
			total=len(view.tasks),
			history_count=len(project.plan_history),
		)
