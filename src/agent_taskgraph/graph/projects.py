"""
Project registry: creation, lookup and cascading deletion of projects.

Project names are display strings; uniqueness is enforced on a sanitized,
filesystem-safe form so that "My App" and "my-app" cannot coexist.
"""

import difflib
import logging
import re
import unicodedata
import uuid
from typing import Optional

from ..errors import DuplicateNameError, FieldValidationError, ProjectNotFoundError
from .models import Plan, Project
from .store import CURRENT_PROJECT_KEY, ProjectStore

logger = logging.getLogger(__name__)

PROJECT_NAME_MAX = 100
SANITIZED_NAME_MAX = 50
MAX_SUGGESTIONS = 3
DEFAULT_SANITIZED = "untitled-project"

_INVALID_CHARS = re.compile(r'[<>:"/\\|?*\x00-\x1f\x7f-\x9f]')
_WHITESPACE = re.compile(r"\s+")
_EDGE_DOTS = re.compile(r"^\.+|\.+$")
_HYPHENS = re.compile(r"-+")
_WINDOWS_RESERVED = {
	"CON", "PRN", "AUX", "NUL",
	*(f"COM{i}" for i in range(1, 10)),
	*(f"LPT{i}" for i in range(1, 10)),
}


def sanitize_name(name: str) -> str:
	"""Lower-case, filesystem-safe form of a project name."""
	sanitized = unicodedata.normalize("NFC", (name or "").lower())
	sanitized = _INVALID_CHARS.sub("-", sanitized)
	sanitized = _WHITESPACE.sub("-", sanitized)
	sanitized = _EDGE_DOTS.sub("-", sanitized)
	sanitized = _HYPHENS.sub("-", sanitized).strip("-")
	if len(sanitized) > SANITIZED_NAME_MAX:
		sanitized = sanitized[:SANITIZED_NAME_MAX].rstrip("-")
	if sanitized.upper() in _WINDOWS_RESERVED:
		sanitized = f"{sanitized}-project"
	return sanitized or DEFAULT_SANITIZED


def validate_name(name: Optional[str]) -> str:
	"""Return the trimmed name or raise FieldValidationError."""
	if not isinstance(name, str) or not name.strip():
		raise FieldValidationError("Project name is required")
	trimmed = name.strip()
	problems = []
	if len(trimmed) > PROJECT_NAME_MAX:
		problems.append(f"must be at most {PROJECT_NAME_MAX} characters")
	if _INVALID_CHARS.search(trimmed):
		problems.append('contains invalid characters (<>:"/\\|?* or control characters)')
	if re.fullmatch(r"[-\s.]+", trimmed):
		problems.append("cannot consist only of dots, hyphens or spaces")
	if trimmed.upper() in _WINDOWS_RESERVED:
		problems.append("is a reserved system name")
	if problems:
		raise FieldValidationError(
			f"Invalid project name '{trimmed}': " + "; ".join(problems),
			extra={"errors": problems},
		)
	return trimmed


def suggest_names(projects: list[Project], identifier: str, limit: int = MAX_SUGGESTIONS) -> list[str]:
	"""Names similar to identifier: substring matches first, then close matches."""
	lowered = identifier.lower()
	names = [p.name for p in projects]
	suggestions = [n for n in names if lowered in n.lower() or n.lower() in lowered]
	for match in difflib.get_close_matches(lowered, [n.lower() for n in names], n=limit, cutoff=0.5):
		original = next(n for n in names if n.lower() == match)
		if original not in suggestions:
			suggestions.append(original)
	return suggestions[:limit]


class ProjectRegistry:
	"""CRUD over projects."""

	def __init__(self, store: ProjectStore):
		self.store = store

	def list_projects(self) -> list[Project]:
		return self.store.list_projects()

	def resolve(self, identifier: Optional[str]) -> Project:
		"""
		Find a project by id, exact name, then case-insensitive or sanitized name.

		Raises:
			ProjectNotFoundError: With up to three similar names as suggestions
		"""
		projects = self.store.list_projects()
		if not identifier or not identifier.strip():
			raise ProjectNotFoundError(
				"No project given and no current project selected",
				extra={"suggestions": [p.name for p in projects[:MAX_SUGGESTIONS]]},
			)
		ident = identifier.strip()

		project = self.store.get_project(ident)
		if project is not None:
			return project
		for candidate in projects:
			if candidate.name == ident:
				return candidate
		lowered, sanitized = ident.lower(), sanitize_name(ident)
		for candidate in projects:
			if candidate.name.lower() == lowered or candidate.sanitized_name == sanitized:
				return candidate

		suggestions = suggest_names(projects, ident)
		raise ProjectNotFoundError(
			f"Project not found: {ident}",
			ids=[ident],
			extra={"suggestions": suggestions},
		)

	async def create(self, name: str, description: str = "") -> Project:
		"""Create a project together with its first, active plan."""
		name = validate_name(name)
		sanitized = sanitize_name(name)

		async with self.store.transaction(registry=True) as tx:
			for existing in self.store.list_projects():
				if existing.sanitized_name == sanitized:
					raise DuplicateNameError(
						f"A project named '{existing.name}' already exists",
						ids=[existing.id],
						extra={"name": existing.name},
					)

			now = tx.now()
			project_id = str(uuid.uuid4())
			plan = tx.add_plan(Plan(
				id=str(uuid.uuid4()),
				project_id=project_id,
				version=1,
				name=f"{name} v1",
				created_at=now,
				updated_at=now,
			))
			project = tx.add_project(Project(
				id=project_id,
				name=name,
				sanitized_name=sanitized,
				description=(description or "").strip(),
				created_at=now,
				updated_at=now,
				active_plan_id=plan.id,
			))

		logger.info(f"Created project {project.id} '{project.name}'")
		return project

	async def delete(self, project_id: str) -> dict[str, int]:
		"""Delete a project with every plan and task it owns."""
		if self.store.get_project(project_id) is None:
			raise ProjectNotFoundError(f"Project not found: {project_id}", ids=[project_id])

		async with self.store.transaction(projects=[project_id], registry=True) as tx:
			project = tx.require_project(project_id)
			plans = tx.plans_of_project(project_id)
			task_ids = {tid for plan in plans for tid in plan.task_ids}
			for plan in plans:
				tx.delete_plan(plan.id)
			for task_id in task_ids:
				tx.delete_task(task_id)
			tx.delete_project(project_id)
			if self.store.get_meta(CURRENT_PROJECT_KEY) == project_id:
				tx.set_meta(CURRENT_PROJECT_KEY, "")

		logger.info(f"Deleted project {project_id} '{project.name}': {len(plans)} plans, {len(task_ids)} tasks")
		return {"plans": len(plans), "tasks": len(task_ids)}
