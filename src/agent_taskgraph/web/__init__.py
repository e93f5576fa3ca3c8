"""Web dashboard for agent-taskgraph."""

from __future__ import annotations

import contextlib
import webbrowser

import uvicorn

from ..config import Config
from ..service import TaskGraphService


def create_app(service: TaskGraphService, owns_service: bool = False) -> object:
	"""Create the Starlette ASGI application."""
	from .app import build_app

	return build_app(service, owns_service=owns_service)


class EmbeddedServer(uvicorn.Server):
	"""uvicorn server that leaves SIGINT/SIGTERM to the host process."""

	def install_signal_handlers(self) -> None:
		pass

	@contextlib.contextmanager
	def capture_signals(self):
		yield


def build_web_server(service: TaskGraphService, host: str = "127.0.0.1", port: int = 8420) -> EmbeddedServer:
	"""A dashboard server to run inside an existing event loop."""
	config = uvicorn.Config(
		create_app(service),
		host=host,
		port=port,
		log_level="warning",
		# stdout carries the MCP transport: no uvicorn logging setup, no access log
		log_config=None,
		access_log=False,
	)
	return EmbeddedServer(config)


def run_web_dashboard(config: Config, port: int | None = None, open_browser: bool = True) -> None:
	"""Run the web dashboard on its own, without the MCP server."""
	port = port or config.web_port
	service = TaskGraphService.from_config(config)
	app = create_app(service, owns_service=True)

	if open_browser:
		import threading

		def _open():
			import time
			time.sleep(0.8)
			webbrowser.open(f"http://localhost:{port}")

		threading.Thread(target=_open, daemon=True).start()

	print(f"Dashboard running at http://localhost:{port}")
	print("Press Ctrl+C to stop.")
	uvicorn.run(app, host=config.web_host, port=port, log_level="warning")
