"""MCP tool registration - modular tool definitions."""

import logging
from typing import Optional

from mcp.server.fastmcp import FastMCP

from ..config import Config
from ..prompts import PromptRenderer
from ..service import TaskGraphService
from .core import register_core_tools
from .plans import register_plans_tools
from .projects import register_project_tools
from .tasks import register_task_tools

logger = logging.getLogger(__name__)


def register_all_tools(
	mcp: FastMCP,
	config: Config,
	service: TaskGraphService,
	prompts: Optional[PromptRenderer] = None,
) -> None:
	"""Register all MCP tools against one service and template locale."""
	prompts = prompts or PromptRenderer(config.locale)
	register_core_tools(mcp, config, service, prompts)
	register_project_tools(mcp, config, service, prompts)
	register_plans_tools(mcp, config, service, prompts)
	register_task_tools(mcp, config, service, prompts)
	logger.info(f"Registered MCP tools (templates: {prompts.locale})")
