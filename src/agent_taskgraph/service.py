"""
Task graph service - the single entry point used by tools, CLI and web.

Wires the store, task graph, lifecycle controller, plan manager and query
layer together, and resolves the project an operation applies to: an
explicit project id or name when given, the session's current project
otherwise.
"""

import logging
from typing import Any, Iterable, Optional

from .config import Config, get_config
from .errors import PlanNotFoundError, ProjectNotFoundError
from .graph.lifecycle import BulkResult, LifecycleController, SplitResult, VerifyResult
from .graph.models import Plan, Project, Task
from .graph.plans import PlanDiff, PlanManager, Session
from .graph.projects import MAX_SUGGESTIONS, ProjectRegistry
from .graph.queries import ProjectSummary, QueryService, SearchPage
from .graph.store import ProjectStore
from .graph.tasks import BatchResult, TaskGraph

logger = logging.getLogger(__name__)


class TaskGraphService:
	"""Facade over the task graph engine."""

	def __init__(self, store: ProjectStore, verification_threshold: int = 80):
		self.store = store
		self.registry = ProjectRegistry(store)
		self.graph = TaskGraph(store)
		self.lifecycle = LifecycleController(store, self.graph, verification_threshold)
		self.plans = PlanManager(store, self.registry, self.graph)
		self.queries = QueryService(store)

	@classmethod
	def from_config(cls, config: Config) -> "TaskGraphService":
		return cls(ProjectStore(str(config.db_path)), config.verification_threshold)

	async def init(self) -> None:
		await self.store.init()

	async def close(self) -> None:
		await self.store.close()

	@property
	def session(self) -> Session:
		return self.plans.session

	@property
	def verification_threshold(self) -> int:
		return self.lifecycle.verification_threshold

	# -- resolution ---------------------------------------------------------

	def resolve_project(self, identifier: Optional[str] = None) -> Project:
		"""The named project, or the current one when identifier is empty."""
		if identifier and identifier.strip():
			return self.registry.resolve(identifier)
		current = self.session.current_project_id
		project = self.store.get_project(current) if current else None
		if project is None:
			names = [p.name for p in self.store.list_projects()[:MAX_SUGGESTIONS]]
			raise ProjectNotFoundError(
				"No project given and no current project selected",
				extra={"suggestions": names},
			)
		return project

	def active_plan(self, project: Optional[str] = None) -> Plan:
		proj = self.resolve_project(project)
		plan = self.store.get_plan(proj.active_plan_id)
		if plan is None:
			raise PlanNotFoundError(f"Active plan of '{proj.name}' is missing", ids=[proj.active_plan_id])
		return plan

	# -- projects -----------------------------------------------------------

	async def create_project(self, name: str, description: str = "", switch: bool = True) -> Project:
		project = await self.registry.create(name, description)
		if switch or self.session.current_project_id is None:
			await self.session.set_current(project.id)
		return project

	def list_projects(self) -> list[Project]:
		return self.registry.list_projects()

	async def switch_project(self, identifier: str) -> Project:
		return await self.plans.switch_project(identifier)

	async def delete_project(self, identifier: str) -> tuple[Project, dict[str, int]]:
		project = self.registry.resolve(identifier)
		counts = await self.registry.delete(project.id)
		return project, counts

	async def summarize(self, project: Optional[str] = None) -> ProjectSummary:
		return await self.queries.summarize(self.resolve_project(project).id)

	# -- plans --------------------------------------------------------------

	async def create_plan_version(
		self,
		project: Optional[str] = None,
		task_ids: Optional[Iterable[str]] = None,
		name: Optional[str] = None,
	) -> Plan:
		return await self.plans.create_plan_version(self.resolve_project(project).id, task_ids, name)

	def list_plans(self, project: Optional[str] = None) -> list[Plan]:
		return self.plans.list_plans(self.resolve_project(project).id)

	def get_plan(self, plan_id: str) -> Plan:
		return self.plans.get_plan(plan_id)

	async def rollback_plan(self, plan_id: str) -> Plan:
		plan = self.plans.get_plan(plan_id)
		return await self.plans.rollback_plan(plan.project_id, plan_id)

	async def delete_plan(self, plan_id: str) -> list[str]:
		return await self.plans.delete_plan(plan_id)

	async def diff_plans(self, plan_a: str, plan_b: str) -> PlanDiff:
		return await self.plans.diff_plans(plan_a, plan_b)

	async def clear_all_tasks(self, project: Optional[str] = None) -> Plan:
		return await self.plans.clear_all_tasks(self.resolve_project(project).id)

	# -- tasks --------------------------------------------------------------

	async def add_task(self, draft: Any, project: Optional[str] = None) -> Task:
		return await self.graph.add_task(self.active_plan(project).id, draft)

	async def update_task(self, task_id: str, patch: Any, project: Optional[str] = None) -> Task:
		return await self.graph.update_task(self.active_plan(project).id, task_id, patch)

	async def annotate_task(self, task_id: str, note: str) -> Task:
		return await self.graph.annotate_task(task_id, note)

	async def remove_task(
		self,
		task_id: str,
		project: Optional[str] = None,
		cascade: bool = False,
		delete_dependents: bool = False,
	) -> list[str]:
		plan = self.active_plan(project)
		return await self.graph.remove_task(plan.id, task_id, cascade=cascade, delete_dependents=delete_dependents)

	async def list_tasks(self, project: Optional[str] = None, status: Any = None, plan_id: Optional[str] = None) -> list[Task]:
		plan_id = plan_id or self.active_plan(project).id
		return await self.queries.list_tasks(plan_id, status)

	async def ready_tasks(self, project: Optional[str] = None) -> list[Task]:
		return await self.queries.ready_tasks(self.active_plan(project).id)

	async def search_tasks(
		self,
		query: str,
		project: Optional[str] = None,
		is_id: bool = False,
		page: int = 1,
		page_size: int = 5,
	) -> SearchPage:
		plan = self.active_plan(project)
		return await self.queries.search_tasks(plan.id, query, is_id=is_id, page=page, page_size=page_size)

	def get_task(self, task_id: str) -> Task:
		return self.queries.get_task(task_id)

	async def topological_order(self, project: Optional[str] = None) -> list[Task]:
		return await self.graph.topological_order(self.active_plan(project).id)

	async def plan_tasks(self, drafts: Iterable[Any], mode: Any = "append", project: Optional[str] = None) -> BatchResult:
		return await self.plans.plan_tasks(self.resolve_project(project).id, drafts, mode)

	async def split_task(
		self,
		task_id: str,
		subtasks: Iterable[Any],
		sequential: bool = False,
		replace_parent: bool = False,
	) -> SplitResult:
		return await self.lifecycle.split(task_id, subtasks, sequential=sequential, replace_parent=replace_parent)

	async def start_task(self, task_id: str) -> Task:
		return await self.lifecycle.start(task_id)

	async def block_task(self, task_id: str, reason: Optional[str] = None) -> Task:
		return await self.lifecycle.block(task_id, reason)

	async def unblock_task(self, task_id: str) -> Task:
		return await self.lifecycle.unblock(task_id)

	async def complete_task(self, task_id: str, summary: str) -> Task:
		return await self.lifecycle.complete(task_id, summary)

	async def verify_task(self, task_id: str, score: int, summary: str) -> VerifyResult:
		return await self.lifecycle.verify(task_id, score, summary)

	async def update_status_bulk(self, task_ids: Iterable[str], status: Any, project: Optional[str] = None) -> list[BulkResult]:
		plan = self.active_plan(project)
		return await self.lifecycle.update_status_bulk(plan.id, list(task_ids), status)

	def health(self) -> dict[str, Any]:
		return {
			"db_path": str(self.store.db_path) if self.store.db_path else ":memory:",
			"projects": len(self.store.list_projects()),
			"tasks": self.store.task_count(),
			"current_project": self.session.current_project_id,
			"revision": self.store.revision,
		}


# Singleton
_service: Optional[TaskGraphService] = None


async def get_service(config: Optional[Config] = None) -> TaskGraphService:
	"""Get or create the global service, opening its store on first use."""
	global _service
	if _service is None:
		config = config or get_config()
		service = TaskGraphService.from_config(config)
		await service.init()
		_service = service
	return _service
