"""agent-taskgraph MCP server."""

import asyncio
import contextlib
import logging
import signal
from typing import Optional

from mcp.server.fastmcp import FastMCP

from .config import Config, load_config
from .errors import StorageFailureError
from .prompts import PromptRenderer
from .service import TaskGraphService
from .tools import register_all_tools

logger = logging.getLogger(__name__)

SERVER_NAME = "agent-taskgraph"
WEB_STARTUP_TIMEOUT = 5.0


def create_server(config: Optional[Config] = None, service: Optional[TaskGraphService] = None) -> FastMCP:
	"""Build the FastMCP server with every tool registered."""
	config = config or load_config()
	service = service or TaskGraphService.from_config(config)
	mcp = FastMCP(SERVER_NAME)
	register_all_tools(mcp, config, service, PromptRenderer(config.locale))
	return mcp


async def _start_web(config: Config, service: TaskGraphService):
	"""Start the dashboard and wait until it listens. Returns (server, task) or None."""
	try:
		from .web import build_web_server
	except ImportError:
		logger.warning("ENABLE_GUI is set but the web extras are not installed (pip install 'agent-taskgraph[web]')")
		return None

	web_server = build_web_server(service, host=config.web_host, port=config.web_port)
	task = asyncio.create_task(web_server.serve(), name="web-dashboard")
	deadline = asyncio.get_running_loop().time() + WEB_STARTUP_TIMEOUT
	while not web_server.started and not task.done():
		if asyncio.get_running_loop().time() > deadline:
			logger.warning(f"Web dashboard did not report startup within {WEB_STARTUP_TIMEOUT}s")
			break
		await asyncio.sleep(0.05)
	if task.done():
		exc = task.exception()
		logger.error(f"Web dashboard failed to start on port {config.web_port}: {exc}")
		return None
	logger.info(f"Web dashboard listening on http://{config.web_host}:{config.web_port}")
	return web_server, task


async def serve(config: Config) -> int:
	"""
	Run the MCP stdio server, plus the web dashboard when enabled.

	Both stop on SIGINT/SIGTERM, and either one stopping stops the other.

	Returns:
		Process exit status
	"""
	service = TaskGraphService.from_config(config)
	try:
		await service.init()
	except StorageFailureError as e:
		logger.error(f"Startup failed, storage unavailable: {e.detail}")
		return 1

	mcp = create_server(config, service)
	loop = asyncio.get_running_loop()
	stop = asyncio.Event()
	for sig in (signal.SIGINT, signal.SIGTERM):
		with contextlib.suppress(NotImplementedError):
			loop.add_signal_handler(sig, stop.set)

	web = await _start_web(config, service) if config.enable_gui else None

	mcp_task = asyncio.create_task(mcp.run_stdio_async(), name="mcp-stdio")
	stop_task = asyncio.create_task(stop.wait(), name="shutdown-signal")
	watched = {mcp_task, stop_task}
	if web:
		watched.add(web[1])

	logger.info(f"{SERVER_NAME} serving on stdio ({config.db_path})")
	try:
		done, _ = await asyncio.wait(watched, return_when=asyncio.FIRST_COMPLETED)
		for task in done:
			if task is not stop_task and not task.cancelled() and task.exception():
				logger.error(f"{task.get_name()} stopped with an error: {task.exception()}")
	finally:
		logger.info("Shutting down")
		if web:
			web[0].should_exit = True
		for task in (mcp_task, stop_task):
			task.cancel()
		pending = [mcp_task, stop_task] + ([web[1]] if web else [])
		await asyncio.gather(*pending, return_exceptions=True)
		for sig in (signal.SIGINT, signal.SIGTERM):
			with contextlib.suppress(NotImplementedError):
				loop.remove_signal_handler(sig)
		await service.close()
	return 0
