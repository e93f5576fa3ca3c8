"""Project management tools."""

from mcp.server.fastmcp import FastMCP

from ..config import Config
from ..errors import TaskGraphError
from ..prompts import PromptRenderer
from ..service import TaskGraphService
from .formatting import or_none, project_items


def register_project_tools(mcp: FastMCP, config: Config, service: TaskGraphService, prompts: PromptRenderer) -> None:
	"""Register project management tools."""

	@mcp.tool()
	async def create_project(name: str, description: str = "") -> str:
		"""
		Create a new project with an empty first plan and make it current.

		Args:
			name: Display name (1-100 characters, must be unique)
			description: What the project is about
		"""
		try:
			project = await service.create_project(name, description)
		except TaskGraphError as e:
			return prompts.render_error("create_project", e)
		return prompts.render_outcome("create_project", "success", {
			"name": project.name,
			"id": project.id,
			"sanitized_name": project.sanitized_name,
			"plan_id": project.active_plan_id,
			"description": project.description,
		})

	@mcp.tool()
	async def list_projects() -> str:
		"""List all projects, marking the current one."""
		projects = service.list_projects()
		if not projects:
			return prompts.render("list_projects.empty")
		plans = {p.active_plan_id: service.get_plan(p.active_plan_id) for p in projects}
		return prompts.render_outcome("list_projects", "success", {
			"count": len(projects),
			"projects": project_items(prompts, projects, plans, service.session.current_project_id),
		})

	@mcp.tool()
	async def switch_project(project: str) -> str:
		"""
		Make another project current. Tools without an explicit project use it.

		Args:
			project: Project id or name (case-insensitive)
		"""
		try:
			target = await service.switch_project(project)
			plan = service.get_plan(target.active_plan_id)
		except TaskGraphError as e:
			return prompts.render_error("switch_project", e)
		return prompts.render_outcome("switch_project", "success", {
			"name": target.name,
			"id": target.id,
			"version": plan.version,
			"task_count": len(plan.task_ids),
		})

	@mcp.tool()
	async def delete_project(project: str) -> str:
		"""
		Delete a project with all of its plans and tasks. Cannot be undone.

		Args:
			project: Project id or name
		"""
		try:
			deleted, counts = await service.delete_project(project)
		except TaskGraphError as e:
			return prompts.render_error("delete_project", e)
		return prompts.render_outcome("delete_project", "success", {
			"name": deleted.name,
			"id": deleted.id,
			"plans": counts["plans"],
			"tasks": counts["tasks"],
		})

	@mcp.tool()
	async def get_project_info(project: str = "") -> str:
		"""
		Show a project's details and progress.

		Args:
			project: Project id or name (default: current project)
		"""
		try:
			target = service.resolve_project(project)
			summary = await service.summarize(target.id)
		except TaskGraphError as e:
			return prompts.render_error("get_project_info", e)
		return prompts.render_outcome("get_project_info", "success", {
			"name": target.name,
			"id": target.id,
			"description": or_none(prompts, target.description),
			"version": summary.plan_version,
			"plan_id": summary.plan_id,
			"history_count": summary.history_count,
			"created_at": target.created_at,
			"total": summary.total,
			"completion_rate": summary.completion_rate,
			**summary.counts,
		})
