"""Helpers turning domain objects into template fields."""

from typing import Any, Iterable, Optional

from ..graph.lifecycle import BulkResult
from ..graph.models import Plan, Project, RelatedFile, Task
from ..graph.plans import DiffEntry
from ..prompts import PromptRenderer


def or_none(prompts: PromptRenderer, value: Any) -> Any:
	"""The value, or the localized 'none' marker when it is empty."""
	if value is None or value == "" or value == []:
		return prompts.render("item.none")
	return value


def task_items(prompts: PromptRenderer, tasks: Iterable[Task], start: int = 1) -> str:
	rows = []
	for index, task in enumerate(tasks, start):
		deps = ""
		if task.dependencies:
			deps = prompts.render("item.task_dependencies", {"dependencies": task.dependencies})
		rows.append({
			"index": index,
			"name": task.name,
			"id": task.id,
			"status": task.status,
			"dependencies": deps,
		})
	return prompts.render_list("item.task", rows)


def project_items(prompts: PromptRenderer, projects: Iterable[Project], plans: dict[str, Plan], current: Optional[str]) -> str:
	rows = []
	for project in projects:
		plan = plans.get(project.active_plan_id)
		rows.append({
			"name": project.name,
			"id": project.id,
			"version": plan.version if plan else "?",
			"task_count": len(plan.task_ids) if plan else 0,
			"current": prompts.render("item.project_current") if project.id == current else "",
		})
	return prompts.render_list("item.project", rows)


def plan_state(prompts: PromptRenderer, plan: Plan) -> str:
	return prompts.render("item.plan_read_only" if plan.read_only else "item.plan_active")


def plan_items(prompts: PromptRenderer, plans: Iterable[Plan]) -> str:
	rows = [
		{
			"version": plan.version,
			"name": plan.name,
			"id": plan.id,
			"task_count": len(plan.task_ids),
			"state": plan_state(prompts, plan),
		}
		for plan in plans
	]
	return prompts.render_list("item.plan", rows)


def diff_items(prompts: PromptRenderer, entries: Iterable[DiffEntry]) -> str:
	rows = [
		{
			"name": e.name,
			"id": e.task_id,
			"old_status": e.old_status or "-",
			"new_status": e.new_status or "-",
		}
		for e in entries
	]
	return prompts.render_list("item.diff", rows)


def file_items(prompts: PromptRenderer, files: Iterable[RelatedFile]) -> str:
	rows = []
	for f in files:
		lines = ""
		if f.line_start:
			lines = f" L{f.line_start}" + (f"-{f.line_end}" if f.line_end else "")
		rows.append({"path": f.path, "kind": f.kind, "lines": lines, "description": f.description})
	return prompts.render_list("item.file", rows)


def note_items(prompts: PromptRenderer, notes: Iterable[str]) -> str:
	return prompts.render_list("item.note", [{"note": n} for n in notes])


def bulk_items(prompts: PromptRenderer, results: Iterable[BulkResult]) -> str:
	lines = []
	for r in results:
		if r.ok:
			lines.append(prompts.render("item.bulk_ok", {"id": r.task_id, "status": r.status}))
		else:
			error = r.error or {}
			lines.append(prompts.render("item.bulk_failed", {
				"id": r.task_id,
				"kind": error.get("kind", ""),
				"detail": error.get("detail", ""),
			}))
	return "\n".join(lines) or prompts.render("item.none")
