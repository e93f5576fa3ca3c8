"""Task tools: editing, querying and lifecycle."""

from typing import Any, Optional

from mcp.server.fastmcp import FastMCP

from ..config import Config
from ..errors import TaskGraphError
from ..graph.models import Task
from ..prompts import PromptRenderer
from ..service import TaskGraphService
from .formatting import bulk_items, file_items, note_items, or_none, task_items


def register_task_tools(mcp: FastMCP, config: Config, service: TaskGraphService, prompts: PromptRenderer) -> None:
	"""Register task tools."""

	def detail_fields(task: Task) -> dict[str, Any]:
		return {
			"name": task.name,
			"id": task.id,
			"status": task.status,
			"dependencies": or_none(prompts, task.dependencies),
			"created_at": task.created_at,
			"updated_at": task.updated_at,
			"completed_at": or_none(prompts, task.completed_at),
			"description": task.description,
			"notes": or_none(prompts, task.notes),
			"implementation_guide": or_none(prompts, task.implementation_guide),
			"verification_criteria": or_none(prompts, task.verification_criteria),
			"related_files": file_items(prompts, task.related_files),
			"summary": or_none(prompts, task.summary),
			"audit_notes": note_items(prompts, task.audit_notes),
		}

	# -- editing ------------------------------------------------------------

	@mcp.tool()
	async def add_task(
		name: str,
		description: str,
		notes: str = "",
		dependencies: Optional[list[str]] = None,
		related_files: Optional[list[dict[str, Any]]] = None,
		implementation_guide: str = "",
		verification_criteria: str = "",
		project: str = "",
	) -> str:
		"""
		Add a task to the project's active plan.

		Args:
			name: Short task name (1-100 characters)
			description: What needs to be done (at least 10 characters)
			notes: Extra notes
			dependencies: IDs of tasks in the same plan that must complete first
			related_files: Files the task touches, each {path, kind, description,
				line_start, line_end} with kind CREATE, MODIFY, DELETE or REFERENCE
			implementation_guide: How to implement the task
			verification_criteria: How to check the task is done
			project: Project id or name (default: current project)
		"""
		draft = {
			"name": name,
			"description": description,
			"notes": notes,
			"dependencies": dependencies or [],
			"related_files": related_files or [],
			"implementation_guide": implementation_guide or None,
			"verification_criteria": verification_criteria or None,
		}
		try:
			plan = service.active_plan(project)
			task = await service.add_task(draft, project=plan.project_id)
		except TaskGraphError as e:
			return prompts.render_error("add_task", e)
		return prompts.render_outcome("add_task", "success", {
			"name": task.name,
			"id": task.id,
			"version": plan.version,
			"dependencies": or_none(prompts, task.dependencies),
		})

	@mcp.tool()
	async def update_task(
		task_id: str,
		name: Optional[str] = None,
		description: Optional[str] = None,
		notes: Optional[str] = None,
		dependencies: Optional[list[str]] = None,
		related_files: Optional[list[dict[str, Any]]] = None,
		implementation_guide: Optional[str] = None,
		verification_criteria: Optional[str] = None,
		project: str = "",
	) -> str:
		"""
		Update fields of a task that is not completed. Omitted fields are kept.

		Args:
			task_id: The task ID
			name: New name
			description: New description
			notes: New notes
			dependencies: Replacement dependency list
			related_files: Replacement related files
			implementation_guide: New implementation guide
			verification_criteria: New verification criteria
			project: Project id or name (default: current project)
		"""
		given = {
			"name": name,
			"description": description,
			"notes": notes,
			"dependencies": dependencies,
			"related_files": related_files,
			"implementation_guide": implementation_guide,
			"verification_criteria": verification_criteria,
		}
		patch = {k: v for k, v in given.items() if v is not None}
		try:
			task = await service.update_task(task_id, patch, project=project)
		except TaskGraphError as e:
			return prompts.render_error("update_task", e)
		return prompts.render_outcome("update_task", "success", {
			"name": task.name,
			"id": task.id,
			"fields": sorted(patch),
		})

	@mcp.tool()
	async def annotate_task(task_id: str, note: str) -> str:
		"""
		Append an audit note to a task. Works in every state, including completed.

		Args:
			task_id: The task ID
			note: The note text
		"""
		try:
			task = await service.annotate_task(task_id, note)
		except TaskGraphError as e:
			return prompts.render_error("annotate_task", e)
		return prompts.render_outcome("annotate_task", "success", {
			"name": task.name,
			"id": task.id,
			"note_count": len(task.audit_notes),
		})

	@mcp.tool()
	async def delete_task(
		task_id: str,
		cascade: bool = False,
		delete_dependents: bool = False,
		project: str = "",
	) -> str:
		"""
		Remove a task from the active plan. Completed tasks cannot be removed.

		Args:
			task_id: The task ID
			cascade: Proceed even when other tasks depend on it; their
				dependency on it is removed
			delete_dependents: With cascade, delete the dependent tasks as well
			project: Project id or name (default: current project)
		"""
		try:
			plan = service.active_plan(project)
			tasks = {t.id: t for t in await service.list_tasks(plan_id=plan.id)}
			removed = await service.remove_task(
				task_id,
				project=plan.project_id,
				cascade=cascade or delete_dependents,
				delete_dependents=delete_dependents,
			)
		except TaskGraphError as e:
			return prompts.render_error("delete_task", e)
		return prompts.render_outcome("delete_task", "success", {
			"removed_count": len(removed),
			"removed": task_items(prompts, [tasks[tid] for tid in removed if tid in tasks]),
		})

	# -- queries ------------------------------------------------------------

	@mcp.tool()
	async def list_tasks(status: str = "all", project: str = "") -> str:
		"""
		List the active plan's tasks in dependency order.

		Args:
			status: all, pending, in_progress, blocked or completed
			project: Project id or name (default: current project)
		"""
		try:
			plan = service.active_plan(project)
			target = service.resolve_project(plan.project_id)
			tasks = await service.list_tasks(status=status, plan_id=plan.id)
		except TaskGraphError as e:
			return prompts.render_error("list_tasks", e)
		fields = {
			"project": target.name,
			"version": plan.version,
			"status_filter": status or "all",
		}
		if not tasks:
			return prompts.render("list_tasks.empty", fields)
		return prompts.render_outcome("list_tasks", "success", {
			**fields,
			"count": len(tasks),
			"tasks": task_items(prompts, tasks),
		})

	@mcp.tool()
	async def query_task(
		query: str,
		is_id: bool = False,
		page: int = 1,
		page_size: int = 5,
		project: str = "",
	) -> str:
		"""
		Search tasks of the active plan by keywords (all must match) or by ID.

		Args:
			query: Keywords separated by spaces, or a task ID when is_id is true
			is_id: Look up the query as an exact task ID
			page: Page number, starting at 1
			page_size: Results per page (1-20)
			project: Project id or name (default: current project)
		"""
		try:
			result = await service.search_tasks(query, project=project, is_id=is_id, page=page, page_size=page_size)
		except TaskGraphError as e:
			return prompts.render_error("query_task", e)
		if not result.total:
			return prompts.render("query_task.empty", {"query": result.query})
		return prompts.render_outcome("query_task", "success", {
			"query": result.query,
			"total": result.total,
			"page": result.page,
			"total_pages": result.total_pages,
			"tasks": task_items(prompts, result.tasks, start=(result.page - 1) * result.page_size + 1),
		})

	@mcp.tool()
	async def get_task_detail(task_id: str) -> str:
		"""
		Show every field of a task, including its audit notes.

		Args:
			task_id: The task ID
		"""
		try:
			task = service.get_task(task_id)
		except TaskGraphError as e:
			return prompts.render_error("get_task_detail", e)
		return prompts.render_outcome("get_task_detail", "success", detail_fields(task))

	@mcp.tool()
	async def ready_tasks(project: str = "") -> str:
		"""
		List pending tasks whose dependencies are all completed.

		Args:
			project: Project id or name (default: current project)
		"""
		try:
			tasks = await service.ready_tasks(project)
		except TaskGraphError as e:
			return prompts.render_error("ready_tasks", e)
		if not tasks:
			return prompts.render("ready_tasks.empty")
		return prompts.render_outcome("ready_tasks", "success", {
			"count": len(tasks),
			"tasks": task_items(prompts, tasks),
		})

	@mcp.tool()
	async def task_order(project: str = "") -> str:
		"""
		Show the active plan's tasks in an order that respects every dependency.

		Args:
			project: Project id or name (default: current project)
		"""
		try:
			tasks = await service.topological_order(project)
		except TaskGraphError as e:
			return prompts.render_error("task_order", e)
		return prompts.render_outcome("task_order", "success", {
			"count": len(tasks),
			"tasks": task_items(prompts, tasks),
		})

	@mcp.tool()
	async def plan_tasks(
		tasks: list[dict[str, Any]],
		update_mode: str = "append",
		project: str = "",
	) -> str:
		"""
		Create or update a whole batch of tasks at once, all or nothing.

		Args:
			tasks: Task drafts, each {name, description, notes, dependencies,
				related_files, implementation_guide, verification_criteria}.
				Names must be unique in the batch. dependencies may list task
				IDs or task names, including other tasks of this batch.
			update_mode: 'append' adds the tasks; 'overwrite' replaces every
				unfinished task and keeps completed ones; 'selective' updates
				tasks whose name matches and adds the rest; 'clear_all' moves
				the current plan to history and starts a new one with the tasks
			project: Project id or name (default: current project)
		"""
		try:
			result = await service.plan_tasks(tasks, update_mode, project)
			version = service.get_plan(result.plan_id).version
		except TaskGraphError as e:
			return prompts.render_error("plan_tasks", e)
		return prompts.render_outcome("plan_tasks", "success", {
			"version": version,
			"mode": prompts.render(f"plan_tasks.mode_{result.mode.value}"),
			"created_count": len(result.created),
			"updated_count": len(result.updated),
			"removed_count": len(result.removed),
			"created": task_items(prompts, result.created),
			"updated": task_items(prompts, result.updated),
			"unchanged": task_items(prompts, result.unchanged),
		})

	# -- lifecycle ----------------------------------------------------------

	@mcp.tool()
	async def split_tasks(
		task_id: str,
		subtasks: list[dict[str, Any]],
		sequential: bool = False,
		replace_parent: bool = False,
	) -> str:
		"""
		Break a pending or in-progress task into subtasks, all or nothing.

		Args:
			task_id: The task to split
			subtasks: Subtask drafts, each {name, description, notes,
				dependencies, related_files, implementation_guide,
				verification_criteria}. dependencies may list task IDs or the
				names of earlier subtasks in this call.
			sequential: Make each subtask depend on the previous one
			replace_parent: Hand the parent's dependencies and dependents to the
				subtasks and mark the parent as superseded; otherwise the parent
				waits for all subtasks
		"""
		try:
			result = await service.split_task(task_id, subtasks, sequential=sequential, replace_parent=replace_parent)
		except TaskGraphError as e:
			return prompts.render_error("split_tasks", e)
		return prompts.render_outcome("split_tasks", "success", {
			"parent_name": result.parent.name,
			"parent_id": result.parent.id,
			"count": len(result.subtasks),
			"mode": prompts.render("split_tasks.mode_replace" if result.replaced else "split_tasks.mode_keep"),
			"subtasks": task_items(prompts, result.subtasks),
		})

	@mcp.tool()
	async def execute_task(task_id: str) -> str:
		"""
		Start working on a pending task and get its implementation brief.

		Args:
			task_id: The task ID
		"""
		try:
			task = await service.start_task(task_id)
		except TaskGraphError as e:
			return prompts.render_error("execute_task", e)
		return prompts.render_outcome("execute_task", "success", detail_fields(task))

	@mcp.tool()
	async def block_task(task_id: str, reason: str = "") -> str:
		"""
		Mark a pending or in-progress task as blocked.

		Args:
			task_id: The task ID
			reason: Why the task cannot proceed
		"""
		try:
			task = await service.block_task(task_id, reason)
		except TaskGraphError as e:
			return prompts.render_error("block_task", e)
		return prompts.render_outcome("block_task", "success", {
			"name": task.name,
			"id": task.id,
			"reason": or_none(prompts, reason.strip()),
		})

	@mcp.tool()
	async def unblock_task(task_id: str) -> str:
		"""
		Return a blocked task to pending.

		Args:
			task_id: The task ID
		"""
		try:
			task = await service.unblock_task(task_id)
		except TaskGraphError as e:
			return prompts.render_error("unblock_task", e)
		return prompts.render_outcome("unblock_task", "success", {"name": task.name, "id": task.id})

	@mcp.tool()
	async def complete_task(task_id: str, summary: str) -> str:
		"""
		Complete an in-progress task whose dependencies are all completed.

		Args:
			task_id: The task ID
			summary: What was done
		"""
		try:
			task = await service.complete_task(task_id, summary)
		except TaskGraphError as e:
			return prompts.render_error("complete_task", e)
		return prompts.render_outcome("complete_task", "success", {
			"name": task.name,
			"id": task.id,
			"summary": task.summary,
		})

	@mcp.tool()
	async def verify_task(task_id: str, score: int, summary: str) -> str:
		"""
		Score finished work. At or above the threshold (default 80) the task is
		completed; below it the feedback is recorded and work continues.

		Args:
			task_id: The task ID
			score: 0-100 rating of how well the verification criteria are met
			summary: Completion summary when passing, or what is still missing
		"""
		try:
			result = await service.verify_task(task_id, score, summary)
		except TaskGraphError as e:
			return prompts.render_error("verify_task", e)
		return prompts.render_outcome("verify_task", "success" if result.passed else "retry", {
			"name": result.task.name,
			"id": result.task.id,
			"score": result.score,
			"threshold": result.threshold,
			"summary": summary.strip(),
		})

	@mcp.tool()
	async def update_status_bulk(task_ids: list[str], status: str, project: str = "") -> str:
		"""
		Apply a status to several tasks. Each task follows the usual rules and
		failures are reported per task.

		Args:
			task_ids: Task IDs of the active plan
			status: pending (unblock), in_progress (start), blocked or completed
			project: Project id or name (default: current project)
		"""
		try:
			results = await service.update_status_bulk(task_ids, status, project=project)
		except TaskGraphError as e:
			return prompts.render_error("update_status_bulk", e)
		return prompts.render_outcome("update_status_bulk", "success", {
			"status": status,
			"ok_count": sum(1 for r in results if r.ok),
			"total": len(results),
			"results": bulk_items(prompts, results),
		})
