"""
Project Store - SQLite-backed storage for projects, plans and tasks.

Features:
- Whole graph kept in memory, every committed change persisted to SQLite
- Per-plan asyncio locks, acquired in sorted key order
- Copy-on-access transactions: changes are applied to working copies,
  written to SQLite in one transaction, then swapped into memory
- Monotonic timestamps so creation order is total
"""

import asyncio
import contextlib
import logging
from contextlib import AsyncExitStack, asynccontextmanager
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from pathlib import Path
from typing import AsyncIterator, Iterable, Optional

import aiosqlite
import pydantic

from ..errors import (
	PlanNotFoundError,
	ProjectNotFoundError,
	StorageFailureError,
	TaskNotFoundError,
)
from .dag import topological_order
from .models import Plan, Project, Task, TaskStatus

logger = logging.getLogger(__name__)

REGISTRY_KEY = "registry"
CURRENT_PROJECT_KEY = "current_project"


@dataclass
class PlanView:
	"""A point-in-time copy of one plan and the tasks it lists."""
	plan: Plan
	tasks: dict[str, Task]
	# Dependencies referenced from the plan's tasks that the plan does not list
	external: dict[str, Task] = field(default_factory=dict)

	def ordered(self) -> list[Task]:
		return topological_order(self.tasks.values())

	def status_of(self, task_id: str) -> Optional[TaskStatus]:
		task = self.tasks.get(task_id) or self.external.get(task_id)
		return task.status if task else None

	def recorded_status(self, task_id: str) -> Optional[TaskStatus]:
		"""Status as the plan saw it: frozen for read-only plans, live otherwise."""
		if self.plan.read_only and task_id in self.plan.status_snapshot:
			return self.plan.status_snapshot[task_id]
		return self.status_of(task_id)


class GraphTx:
	"""
	In-memory transaction over the store.

	Records are copied on first access; callers mutate the copies. Nothing
	is visible to other operations until the store commits.
	"""

	def __init__(self, store: "ProjectStore"):
		self._store = store
		self.projects: dict[str, Project] = {}
		self.plans: dict[str, Plan] = {}
		self.tasks: dict[str, Task] = {}
		self.meta: dict[str, str] = {}
		self.deleted_projects: set[str] = set()
		self.deleted_plans: set[str] = set()
		self.deleted_tasks: set[str] = set()

	def now(self) -> str:
		return self._store.now()

	# -- lookups ------------------------------------------------------------

	def task(self, task_id: str) -> Optional[Task]:
		if task_id in self.deleted_tasks:
			return None
		if task_id not in self.tasks:
			base = self._store._tasks.get(task_id)
			if base is None:
				return None
			self.tasks[task_id] = base.model_copy(deep=True)
		return self.tasks[task_id]

	def require_task(self, task_id: str) -> Task:
		task = self.task(task_id)
		if task is None:
			raise TaskNotFoundError(f"Task not found: {task_id}", ids=[task_id])
		return task

	def plan(self, plan_id: str) -> Optional[Plan]:
		if plan_id in self.deleted_plans:
			return None
		if plan_id not in self.plans:
			base = self._store._plans.get(plan_id)
			if base is None:
				return None
			self.plans[plan_id] = base.model_copy(deep=True)
		return self.plans[plan_id]

	def require_plan(self, plan_id: str) -> Plan:
		plan = self.plan(plan_id)
		if plan is None:
			raise PlanNotFoundError(f"Plan not found: {plan_id}", ids=[plan_id])
		return plan

	def project(self, project_id: str) -> Optional[Project]:
		if project_id in self.deleted_projects:
			return None
		if project_id not in self.projects:
			base = self._store._projects.get(project_id)
			if base is None:
				return None
			self.projects[project_id] = base.model_copy(deep=True)
		return self.projects[project_id]

	def require_project(self, project_id: str) -> Project:
		project = self.project(project_id)
		if project is None:
			raise ProjectNotFoundError(f"Project not found: {project_id}", ids=[project_id])
		return project

	def _plan_ids(self) -> list[str]:
		ids = set(self._store._plans) | set(self.plans)
		return sorted(ids - self.deleted_plans)

	def plans_of_project(self, project_id: str) -> list[Plan]:
		"""Working copies of every plan the project owns, oldest version first."""
		plans = []
		for plan_id in self._plan_ids():
			current = self.plans.get(plan_id) or self._store._plans.get(plan_id)
			if current.project_id == project_id:
				plans.append(self.plan(plan_id))
		return sorted(plans, key=lambda p: p.version)

	def plans_containing(self, task_id: str) -> list[str]:
		result = []
		for plan_id in self._plan_ids():
			current = self.plans.get(plan_id) or self._store._plans.get(plan_id)
			if task_id in current.task_ids:
				result.append(plan_id)
		return result

	def plan_tasks(self, plan: Plan) -> list[Task]:
		"""Working copies of the tasks a plan lists."""
		return [t for t in (self.task(tid) for tid in plan.task_ids) if t is not None]

	# -- mutations ----------------------------------------------------------

	def add_task(self, task: Task) -> Task:
		if task.id in self._store._tasks or task.id in self.tasks:
			raise ValueError(f"Task {task.id} already exists")
		self.tasks[task.id] = task
		return task

	def delete_task(self, task_id: str) -> None:
		self.tasks.pop(task_id, None)
		self.deleted_tasks.add(task_id)

	def add_plan(self, plan: Plan) -> Plan:
		self.plans[plan.id] = plan
		return plan

	def delete_plan(self, plan_id: str) -> None:
		self.plans.pop(plan_id, None)
		self.deleted_plans.add(plan_id)

	def add_project(self, project: Project) -> Project:
		self.projects[project.id] = project
		return project

	def delete_project(self, project_id: str) -> None:
		self.projects.pop(project_id, None)
		self.deleted_projects.add(project_id)

	def set_meta(self, key: str, value: str) -> None:
		self.meta[key] = value


class ProjectStore:
	"""
	Durable store for the whole task graph.

	Usage:
		store = ProjectStore("data/taskgraph.db")
		await store.init()

		async with store.transaction(plans=[plan_id]) as tx:
			plan = tx.require_plan(plan_id)
			...  # committed on exit, discarded on exception

	Passing db_path=None keeps everything in memory.
	"""

	def __init__(self, db_path: Optional[str] = None):
		"""Initialize the store."""
		self.db_path = Path(db_path) if db_path else None
		self._db: Optional[aiosqlite.Connection] = None
		self._projects: dict[str, Project] = {}
		self._plans: dict[str, Plan] = {}
		self._tasks: dict[str, Task] = {}
		self._meta: dict[str, str] = {}
		self._locks: dict[str, asyncio.Lock] = {}
		self._last_ts: Optional[datetime] = None
		# Bumped on every commit, polled by the dashboard stream
		self.revision = 0

	async def init(self):
		"""Open the database, create the schema and load the graph."""
		if self.db_path is None:
			logger.info("Task store running in memory")
			return

		try:
			self.db_path.parent.mkdir(parents=True, exist_ok=True)
			self._db = await aiosqlite.connect(str(self.db_path))
			self._db.row_factory = aiosqlite.Row

			await self._db.execute("""
				CREATE TABLE IF NOT EXISTS projects (
					id TEXT PRIMARY KEY,
					data TEXT NOT NULL
				)
			""")
			await self._db.execute("""
				CREATE TABLE IF NOT EXISTS plans (
					id TEXT PRIMARY KEY,
					project_id TEXT NOT NULL,
					data TEXT NOT NULL
				)
			""")
			await self._db.execute("""
				CREATE TABLE IF NOT EXISTS tasks (
					id TEXT PRIMARY KEY,
					plan_id TEXT NOT NULL,
					data TEXT NOT NULL
				)
			""")
			await self._db.execute("""
				CREATE TABLE IF NOT EXISTS meta (
					key TEXT PRIMARY KEY,
					value TEXT NOT NULL
				)
			""")
			await self._db.execute("""
				CREATE INDEX IF NOT EXISTS idx_plans_project ON plans(project_id)
			""")
			await self._db.commit()
			await self._load()
		except (aiosqlite.Error, OSError) as e:
			raise StorageFailureError(f"Could not open task store {self.db_path}: {e}") from e

		logger.info(
			f"Task store initialized: {self.db_path} "
			f"({len(self._projects)} projects, {len(self._plans)} plans, {len(self._tasks)} tasks)"
		)

	async def close(self):
		"""Close the database connection."""
		if self._db:
			await self._db.close()
			self._db = None

	async def _load(self):
		try:
			async with self._db.execute("SELECT data FROM projects") as cursor:
				rows = await cursor.fetchall()
			projects = [Project.model_validate_json(row["data"]) for row in rows]

			async with self._db.execute("SELECT data FROM plans") as cursor:
				rows = await cursor.fetchall()
			plans = [Plan.model_validate_json(row["data"]) for row in rows]

			async with self._db.execute("SELECT data FROM tasks") as cursor:
				rows = await cursor.fetchall()
			tasks = [Task.model_validate_json(row["data"]) for row in rows]

			async with self._db.execute("SELECT key, value FROM meta") as cursor:
				rows = await cursor.fetchall()
			meta = {row["key"]: row["value"] for row in rows}
		except pydantic.ValidationError as e:
			raise StorageFailureError(f"Corrupt record in {self.db_path}: {e}") from e

		self._projects = {p.id: p for p in projects}
		self._plans = {p.id: p for p in plans}
		self._tasks = {t.id: t for t in tasks}
		self._meta = meta

		stamps = [t.updated_at for t in tasks] + [p.updated_at for p in plans] + [p.updated_at for p in projects]
		if stamps:
			self._last_ts = datetime.fromisoformat(max(stamps))

	# -- clock --------------------------------------------------------------

	def now(self) -> str:
		"""Strictly increasing ISO timestamp."""
		ts = datetime.now()
		if self._last_ts is not None and ts <= self._last_ts:
			ts = self._last_ts + timedelta(microseconds=1)
		self._last_ts = ts
		return ts.isoformat(timespec="microseconds")

	# -- reads --------------------------------------------------------------

	def get_project(self, project_id: str) -> Optional[Project]:
		project = self._projects.get(project_id)
		return project.model_copy(deep=True) if project else None

	def list_projects(self) -> list[Project]:
		projects = sorted(self._projects.values(), key=lambda p: (p.created_at, p.id))
		return [p.model_copy(deep=True) for p in projects]

	def get_plan(self, plan_id: str) -> Optional[Plan]:
		plan = self._plans.get(plan_id)
		return plan.model_copy(deep=True) if plan else None

	def plans_of_project(self, project_id: str) -> list[Plan]:
		plans = sorted(
			(p for p in self._plans.values() if p.project_id == project_id),
			key=lambda p: p.version,
		)
		return [p.model_copy(deep=True) for p in plans]

	def get_task(self, task_id: str) -> Optional[Task]:
		task = self._tasks.get(task_id)
		return task.model_copy(deep=True) if task else None

	def plans_containing(self, task_id: str) -> list[str]:
		return sorted(p.id for p in self._plans.values() if task_id in p.task_ids)

	def get_meta(self, key: str) -> Optional[str]:
		return self._meta.get(key)

	def task_count(self) -> int:
		return len(self._tasks)

	async def snapshot(self, plan_id: str) -> PlanView:
		"""Copy a plan and its tasks while holding the plan's lock."""
		async with self._hold([f"plan:{plan_id}"]):
			plan = self._plans.get(plan_id)
			if plan is None:
				raise PlanNotFoundError(f"Plan not found: {plan_id}", ids=[plan_id])
			tasks = {
				tid: self._tasks[tid].model_copy(deep=True)
				for tid in plan.task_ids
				if tid in self._tasks
			}
			external = {}
			for task in tasks.values():
				for dep in task.dependencies:
					if dep not in tasks and dep in self._tasks:
						external[dep] = self._tasks[dep].model_copy(deep=True)
			return PlanView(plan=plan.model_copy(deep=True), tasks=tasks, external=external)

	# -- locking & transactions ---------------------------------------------

	def _lock(self, key: str) -> asyncio.Lock:
		lock = self._locks.get(key)
		if lock is None:
			lock = self._locks[key] = asyncio.Lock()
		return lock

	def _forget_locks(self, keys: Iterable[str]) -> None:
		"""Drop the locks of deleted records. Holders keep their reference until release."""
		for key in keys:
			self._locks.pop(key, None)

	@asynccontextmanager
	async def _hold(self, keys: Iterable[str]) -> AsyncIterator[None]:
		async with AsyncExitStack() as stack:
			for key in sorted(set(keys)):
				await stack.enter_async_context(self._lock(key))
			yield

	def _scope_keys(
		self,
		plans: Iterable[str],
		tasks: Iterable[str],
		projects: Iterable[str],
		registry: bool,
	) -> list[str]:
		keys = {f"plan:{p}" for p in plans}
		for task_id in tasks:
			containing = self.plans_containing(task_id)
			keys.update(f"plan:{p}" for p in containing)
			if not containing:
				keys.add(f"task:{task_id}")
		for project_id in projects:
			keys.add(f"project:{project_id}")
			keys.update(f"plan:{p.id}" for p in self._plans.values() if p.project_id == project_id)
		if registry:
			keys.add(REGISTRY_KEY)
		return sorted(keys)

	@asynccontextmanager
	async def transaction(
		self,
		plans: Iterable[str] = (),
		tasks: Iterable[str] = (),
		projects: Iterable[str] = (),
		registry: bool = False,
	) -> AsyncIterator[GraphTx]:
		"""
		Run a mutation under the locks of everything it touches.

		Args:
			plans: Plan ids to lock
			tasks: Task ids; every plan listing the task is locked
			projects: Project ids; the project and all of its plans are locked
			registry: Also lock the project registry (creation, deletion)

		The lock set is re-resolved after acquiring, because the plans that
		list a task can change while waiting. Changes are committed when the
		block exits normally and discarded when it raises.
		"""
		plans, tasks, projects = list(plans), list(tasks), list(projects)
		while True:
			keys = self._scope_keys(plans, tasks, projects, registry)
			async with self._hold(keys):
				if self._scope_keys(plans, tasks, projects, registry) != keys:
					continue
				tx = GraphTx(self)
				yield tx
				await self._commit(tx)
				return

	async def _commit(self, tx: GraphTx):
		"""Persist the transaction's changed rows, then apply them in memory."""
		projects = [p for pid, p in tx.projects.items() if self._projects.get(pid) != p]
		plans = [p for pid, p in tx.plans.items() if self._plans.get(pid) != p]
		tasks = [t for tid, t in tx.tasks.items() if self._tasks.get(tid) != t]
		deleted_projects = [pid for pid in tx.deleted_projects if pid in self._projects]
		deleted_plans = [pid for pid in tx.deleted_plans if pid in self._plans]
		deleted_tasks = [tid for tid in tx.deleted_tasks if tid in self._tasks]
		meta = {k: v for k, v in tx.meta.items() if self._meta.get(k) != v}

		if not any([projects, plans, tasks, deleted_projects, deleted_plans, deleted_tasks, meta]):
			return

		if self._db:
			try:
				await self._db.executemany(
					"INSERT OR REPLACE INTO projects (id, data) VALUES (?, ?)",
					[(p.id, p.model_dump_json()) for p in projects],
				)
				await self._db.executemany(
					"INSERT OR REPLACE INTO plans (id, project_id, data) VALUES (?, ?, ?)",
					[(p.id, p.project_id, p.model_dump_json()) for p in plans],
				)
				await self._db.executemany(
					"INSERT OR REPLACE INTO tasks (id, plan_id, data) VALUES (?, ?, ?)",
					[(t.id, t.plan_id, t.model_dump_json()) for t in tasks],
				)
				await self._db.executemany(
					"DELETE FROM projects WHERE id = ?",
					[(pid,) for pid in deleted_projects],
				)
				await self._db.executemany(
					"DELETE FROM plans WHERE id = ?",
					[(pid,) for pid in deleted_plans],
				)
				await self._db.executemany(
					"DELETE FROM tasks WHERE id = ?",
					[(tid,) for tid in deleted_tasks],
				)
				await self._db.executemany(
					"INSERT OR REPLACE INTO meta (key, value) VALUES (?, ?)",
					list(meta.items()),
				)
				await self._db.commit()
			except aiosqlite.Error as e:
				with contextlib.suppress(aiosqlite.Error):
					await self._db.rollback()
				logger.error(f"Commit failed, changes discarded: {e}")
				raise StorageFailureError(f"Could not write task store: {e}") from e

		for project in projects:
			self._projects[project.id] = project.model_copy(deep=True)
		for plan in plans:
			self._plans[plan.id] = plan.model_copy(deep=True)
		for task in tasks:
			self._tasks[task.id] = task.model_copy(deep=True)
		for pid in deleted_projects:
			del self._projects[pid]
		for pid in deleted_plans:
			del self._plans[pid]
		for tid in deleted_tasks:
			del self._tasks[tid]
		self._forget_locks(
			[f"project:{pid}" for pid in deleted_projects]
			+ [f"plan:{pid}" for pid in deleted_plans]
			+ [f"task:{tid}" for tid in deleted_tasks]
		)
		self._meta.update(meta)
		self.revision += 1
		logger.debug(
			f"Committed revision {self.revision}: "
			f"{len(tasks)} tasks, {len(plans)} plans, {len(projects)} projects changed; "
			f"{len(deleted_tasks)} tasks, {len(deleted_plans)} plans, {len(deleted_projects)} projects deleted"
		)
