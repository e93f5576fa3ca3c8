"""JSON API endpoints and SSE stream for the web dashboard."""

from __future__ import annotations

import asyncio
import json
from typing import AsyncGenerator

from starlette.requests import Request
from starlette.responses import HTMLResponse, JSONResponse, StreamingResponse

from ..errors import NOT_FOUND_KINDS, FieldValidationError, TaskGraphError
from ..service import TaskGraphService
from .templates import DASHBOARD_HTML

STREAM_POLL_SECONDS = 1.0
HEARTBEAT_EVERY = 15


def get_service(request: Request) -> TaskGraphService:
	"""Get the TaskGraphService from app state."""
	return request.app.state.service


def error_response(error: TaskGraphError) -> JSONResponse:
	status = 404 if error.kind in NOT_FOUND_KINDS else 400
	return JSONResponse({"error": error.to_dict()}, status_code=status)


def _project_param(request: Request) -> str | None:
	return request.query_params.get("project") or None


async def index(request: Request) -> HTMLResponse:
	"""Serve the dashboard HTML page."""
	return HTMLResponse(DASHBOARD_HTML)


async def api_projects(request: Request) -> JSONResponse:
	"""Every project with its active plan's progress."""
	service = get_service(request)
	current = service.session.current_project_id
	result = []
	for project in service.list_projects():
		try:
			summary = await service.summarize(project.id)
		except TaskGraphError as e:
			return error_response(e)
		result.append({
			"id": project.id,
			"name": project.name,
			"description": project.description,
			"current": project.id == current,
			"created_at": project.created_at,
			**summary.to_dict(),
		})
	return JSONResponse(result)


async def api_plans(request: Request) -> JSONResponse:
	"""Plan versions of a project, oldest first."""
	service = get_service(request)
	try:
		plans = service.list_plans(_project_param(request))
	except TaskGraphError as e:
		return error_response(e)
	return JSONResponse([
		{
			"id": p.id,
			"version": p.version,
			"name": p.name,
			"read_only": p.read_only,
			"task_count": len(p.task_ids),
			"parent_plan_id": p.parent_plan_id,
			"created_at": p.created_at,
		}
		for p in plans
	])


async def api_tasks(request: Request) -> JSONResponse:
	"""Tasks of a plan (the active plan by default) in dependency order."""
	service = get_service(request)
	try:
		tasks = await service.list_tasks(
			project=_project_param(request),
			status=request.query_params.get("status"),
			plan_id=request.query_params.get("plan") or None,
		)
	except TaskGraphError as e:
		return error_response(e)
	return JSONResponse([t.model_dump(mode="json") for t in tasks])


async def api_ready(request: Request) -> JSONResponse:
	"""Pending tasks whose dependencies are all completed."""
	service = get_service(request)
	try:
		tasks = await service.ready_tasks(_project_param(request))
	except TaskGraphError as e:
		return error_response(e)
	return JSONResponse([t.model_dump(mode="json") for t in tasks])


async def api_summary(request: Request) -> JSONResponse:
	"""Status counts of a project's active plan."""
	service = get_service(request)
	try:
		summary = await service.summarize(_project_param(request))
	except TaskGraphError as e:
		return error_response(e)
	return JSONResponse(summary.to_dict())


async def api_diff(request: Request) -> JSONResponse:
	"""Added, removed and status-changed tasks between two plans."""
	service = get_service(request)
	plan_a = request.query_params.get("a")
	plan_b = request.query_params.get("b")
	try:
		if not plan_a or not plan_b:
			raise FieldValidationError("Both 'a' and 'b' plan ids are required")
		diff = await service.diff_plans(plan_a, plan_b)
	except TaskGraphError as e:
		return error_response(e)
	return JSONResponse(diff.to_dict())


async def _sse_generator(service: TaskGraphService) -> AsyncGenerator[str, None]:
	"""Poll the store's revision counter and emit an update event when it moves."""
	last_revision = service.store.revision

	# Send an initial event so the browser fires onopen reliably
	yield f"event: connected\ndata: {json.dumps({'revision': last_revision})}\n\n"

	idle = 0
	while True:
		await asyncio.sleep(STREAM_POLL_SECONDS)
		revision = service.store.revision
		if revision != last_revision:
			last_revision = revision
			idle = 0
			yield f"event: update\ndata: {json.dumps({'revision': revision})}\n\n"
		else:
			idle += 1
			if idle >= HEARTBEAT_EVERY:
				idle = 0
				# Heartbeat to keep connection alive
				yield ": heartbeat\n\n"


async def api_stream(request: Request) -> StreamingResponse:
	"""SSE endpoint - tells the page to refresh after every committed change."""
	service = get_service(request)
	return StreamingResponse(
		_sse_generator(service),
		media_type="text/event-stream",
		headers={
			"Cache-Control": "no-cache",
			"Connection": "keep-alive",
			"X-Accel-Buffering": "no",
		},
	)
