"""Core health check tool."""

import json

from mcp.server.fastmcp import FastMCP

from ..config import Config
from ..prompts import PromptRenderer
from ..service import TaskGraphService


def register_core_tools(mcp: FastMCP, config: Config, service: TaskGraphService, prompts: PromptRenderer) -> None:
	"""Register core tools."""

	@mcp.tool()
	async def health_check() -> str:
		"""
		Check the health of the agent-taskgraph server.
		Returns paths, settings and graph counters.
		"""
		status = {
			"server": "running",
			"config_dir": str(config.config_dir),
			"data_dir": str(config.data_dir),
			"db_exists": config.db_path.exists(),
			"locale": prompts.locale,
			"web_dashboard": config.enable_gui,
			"verification_threshold": service.verification_threshold,
			**service.health(),
		}
		return json.dumps(status, indent=2)
