"""Shared test fixtures and helpers for agent-taskgraph tests."""

from typing import Any, Callable, Optional

from agent_taskgraph.graph.store import ProjectStore
from agent_taskgraph.prompts import PromptRenderer
from agent_taskgraph.service import TaskGraphService


def capture_tools(
	config: Any,
	service: TaskGraphService,
	register_fn: Callable,
	prompts: Optional[PromptRenderer] = None,
) -> dict:
	"""Register tools on a mock MCP and return the captured tool functions.

	Args:
		config: Config object to pass to the registration function
		service: Service the tools operate on
		register_fn: The registration function (e.g., register_task_tools)
		prompts: Template renderer; English with no environment overrides by default

	Returns:
		Dict mapping tool name to the tool function
	"""
	captured = {}

	class MockMCP:
		def tool(self):
			def decorator(fn):
				captured[fn.__name__] = fn
				return fn
			return decorator

	register_fn(MockMCP(), config, service, prompts or PromptRenderer("en", environ={}))
	return captured


async def make_service(db_path: Optional[str] = None, threshold: int = 80) -> TaskGraphService:
	"""An initialized service, in memory unless db_path is given."""
	service = TaskGraphService(ProjectStore(db_path), verification_threshold=threshold)
	await service.init()
	return service


def draft(name: str, dependencies: Optional[list[str]] = None, **fields: Any) -> dict:
	"""A valid task draft with a description long enough to pass validation."""
	data = {
		"name": name,
		"description": fields.pop("description", f"Implement the {name} step"),
		"dependencies": dependencies or [],
	}
	data.update(fields)
	return data


async def finish(service: TaskGraphService, task_id: str, summary: str = "done and checked") -> None:
	"""Drive a pending task to completed."""
	await service.start_task(task_id)
	await service.complete_task(task_id, summary)
