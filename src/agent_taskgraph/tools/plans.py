"""Plan versioning tools."""

from typing import Optional

from mcp.server.fastmcp import FastMCP

from ..config import Config
from ..errors import TaskGraphError
from ..prompts import PromptRenderer
from ..service import TaskGraphService
from .formatting import diff_items, or_none, plan_items, plan_state, task_items


def register_plans_tools(mcp: FastMCP, config: Config, service: TaskGraphService, prompts: PromptRenderer) -> None:
	"""Register plan versioning tools."""

	@mcp.tool()
	async def create_plan_version(
		project: str = "",
		task_ids: Optional[list[str]] = None,
		name: str = "",
	) -> str:
		"""
		Start a new plan version. The current plan is kept read-only in history.

		Args:
			project: Project id or name (default: current project)
			task_ids: Tasks of the current plan to carry over (default: all).
				Their dependencies are carried over too.
			name: Optional name for the new plan
		"""
		try:
			target = service.resolve_project(project)
			previous = service.get_plan(target.active_plan_id)
			plan = await service.create_plan_version(target.id, task_ids, name or None)
		except TaskGraphError as e:
			return prompts.render_error("create_plan_version", e)
		return prompts.render_outcome("create_plan_version", "success", {
			"project": target.name,
			"version": plan.version,
			"plan_id": plan.id,
			"task_count": len(plan.task_ids),
			"previous_version": previous.version,
		})

	@mcp.tool()
	async def list_plans(project: str = "") -> str:
		"""
		List every plan version of a project, oldest first.

		Args:
			project: Project id or name (default: current project)
		"""
		try:
			target = service.resolve_project(project)
			plans = service.list_plans(target.id)
		except TaskGraphError as e:
			return prompts.render_error("list_plans", e)
		return prompts.render_outcome("list_plans", "success", {
			"project": target.name,
			"count": len(plans),
			"plans": plan_items(prompts, plans),
		})

	@mcp.tool()
	async def get_plan_info(plan_id: str) -> str:
		"""
		Show one plan and its tasks in dependency order.

		Args:
			plan_id: The plan ID
		"""
		try:
			plan = service.get_plan(plan_id)
			tasks = await service.list_tasks(plan_id=plan.id)
		except TaskGraphError as e:
			return prompts.render_error("get_plan_info", e)
		return prompts.render_outcome("get_plan_info", "success", {
			"version": plan.version,
			"name": plan.name,
			"id": plan.id,
			"state": plan_state(prompts, plan),
			"parent": or_none(prompts, plan.parent_plan_id),
			"created_at": plan.created_at,
			"task_count": len(tasks),
			"tasks": task_items(prompts, tasks),
		})

	@mcp.tool()
	async def rollback_plan(plan_id: str) -> str:
		"""
		Restore a historical plan's task set as a new active version.
		Task statuses are not rewound; tasks deleted since are skipped.

		Args:
			plan_id: The historical plan to restore
		"""
		try:
			source = service.get_plan(plan_id)
			plan = await service.rollback_plan(plan_id)
			target = service.resolve_project(plan.project_id)
		except TaskGraphError as e:
			return prompts.render_error("rollback_plan", e)
		return prompts.render_outcome("rollback_plan", "success", {
			"project": target.name,
			"version": plan.version,
			"source_version": source.version,
			"task_count": len(plan.task_ids),
			"skipped": len(source.task_ids) - len(plan.task_ids),
		})

	@mcp.tool()
	async def delete_plan(plan_id: str) -> str:
		"""
		Delete a historical plan. Tasks no other plan uses are deleted with it.

		Args:
			plan_id: The plan to delete (cannot be the active plan)
		"""
		try:
			plan = service.get_plan(plan_id)
			orphaned = await service.delete_plan(plan_id)
		except TaskGraphError as e:
			return prompts.render_error("delete_plan", e)
		return prompts.render_outcome("delete_plan", "success", {
			"version": plan.version,
			"id": plan.id,
			"orphaned": len(orphaned),
		})

	@mcp.tool()
	async def diff_plans(plan_a: str, plan_b: str) -> str:
		"""
		Compare two plans of the same project.

		Args:
			plan_a: First plan ID
			plan_b: Second plan ID
		"""
		try:
			diff = await service.diff_plans(plan_a, plan_b)
		except TaskGraphError as e:
			return prompts.render_error("diff_plans", e)
		fields = {
			"older_version": diff.older.version,
			"newer_version": diff.newer.version,
		}
		if diff.is_empty:
			return prompts.render("diff_plans.empty", fields)
		return prompts.render_outcome("diff_plans", "success", {
			**fields,
			"added_count": len(diff.added),
			"removed_count": len(diff.removed),
			"changed_count": len(diff.status_changed),
			"added": diff_items(prompts, diff.added),
			"removed": diff_items(prompts, diff.removed),
			"changed": diff_items(prompts, diff.status_changed),
		})

	@mcp.tool()
	async def clear_all_tasks(project: str = "") -> str:
		"""
		Start over with an empty plan. The current tasks stay in history as a backup.

		Args:
			project: Project id or name (default: current project)
		"""
		try:
			target = service.resolve_project(project)
			previous = service.get_plan(target.active_plan_id)
			plan = await service.clear_all_tasks(target.id)
		except TaskGraphError as e:
			return prompts.render_error("clear_all_tasks", e)
		return prompts.render_outcome("clear_all_tasks", "success", {
			"project": target.name,
			"cleared": len(previous.task_ids),
			"backup_version": previous.version,
			"version": plan.version,
		})
