"""Starlette app with route assembly."""

from __future__ import annotations

import contextlib
import logging

from starlette.applications import Starlette
from starlette.routing import Route

from ..service import TaskGraphService
from .api import (
	api_diff,
	api_plans,
	api_projects,
	api_ready,
	api_stream,
	api_summary,
	api_tasks,
	index,
)

logger = logging.getLogger(__name__)


def build_app(service: TaskGraphService, owns_service: bool = False) -> Starlette:
	"""
	Build and return the Starlette ASGI app.

	With owns_service the app opens the service's store on startup and
	closes it on shutdown; otherwise the caller manages it.
	"""
	routes = [
		Route("/", index),
		Route("/api/projects", api_projects),
		Route("/api/plans", api_plans),
		Route("/api/tasks", api_tasks),
		Route("/api/tasks/ready", api_ready),
		Route("/api/summary", api_summary),
		Route("/api/diff", api_diff),
		Route("/api/stream", api_stream),
	]

	@contextlib.asynccontextmanager
	async def lifespan(app: Starlette):
		if owns_service:
			await service.init()
			logger.info("Dashboard opened the task store")
		try:
			yield
		finally:
			if owns_service:
				await service.close()

	app = Starlette(routes=routes, lifespan=lifespan)
	app.state.service = service
	return app
