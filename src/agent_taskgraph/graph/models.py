"""
Graph Models - Pydantic schemas for projects, plans and tasks.

Tasks live once in the store and are shared by reference between the plan
versions that list them. A plan is a named view over that task set.
"""

from enum import Enum
from typing import Any, Optional, TypeVar

import pydantic
from pydantic import BaseModel, Field, model_validator

from ..errors import FieldValidationError

TASK_NAME_MAX = 100
TASK_DESCRIPTION_MIN = 10


class TaskStatus(str, Enum):
	"""Stored status of a task."""
	PENDING = "pending"
	IN_PROGRESS = "in_progress"
	COMPLETED = "completed"
	BLOCKED = "blocked"


class ChangeKind(str, Enum):
	"""How a task relates to a file it declares."""
	CREATE = "CREATE"
	MODIFY = "MODIFY"
	DELETE = "DELETE"
	REFERENCE = "REFERENCE"


class BatchMode(str, Enum):
	"""How a batch of task drafts is merged into the active plan."""
	APPEND = "append"
	OVERWRITE = "overwrite"
	SELECTIVE = "selective"
	CLEAR_ALL = "clear_all"


class RelatedFile(BaseModel):
	"""A file reference declared by a task. Contents are never read."""
	path: str = Field(min_length=1, description="Path relative to the project root, or absolute")
	kind: ChangeKind = Field(description="What the task does with the file")
	description: str = Field(default="", description="Why the file matters to the task")
	line_start: Optional[int] = Field(default=None, gt=0)
	line_end: Optional[int] = Field(default=None, gt=0)

	@model_validator(mode="after")
	def _check_line_range(self) -> "RelatedFile":
		if self.line_start and self.line_end and self.line_end < self.line_start:
			raise ValueError("line_end must not be before line_start")
		return self


class TaskDraft(BaseModel):
	"""Caller-supplied fields for a new task."""
	name: str = Field(min_length=1, max_length=TASK_NAME_MAX)
	description: str = Field(min_length=TASK_DESCRIPTION_MIN)
	notes: str = Field(default="")
	dependencies: list[str] = Field(default_factory=list, description="Task ids, or sibling names inside a split")
	related_files: list[RelatedFile] = Field(default_factory=list)
	implementation_guide: Optional[str] = Field(default=None)
	verification_criteria: Optional[str] = Field(default=None)


class TaskPatch(BaseModel):
	"""Partial update of a task. Only fields that were set are applied."""
	name: Optional[str] = Field(default=None, min_length=1, max_length=TASK_NAME_MAX)
	description: Optional[str] = Field(default=None, min_length=TASK_DESCRIPTION_MIN)
	notes: Optional[str] = None
	dependencies: Optional[list[str]] = None
	related_files: Optional[list[RelatedFile]] = None
	implementation_guide: Optional[str] = None
	verification_criteria: Optional[str] = None

	def changes(self) -> dict[str, Any]:
		"""The fields the caller actually provided."""
		return {name: getattr(self, name) for name in self.model_fields_set}


class Task(BaseModel):
	"""A unit of agent work inside a plan."""
	id: str = Field(description="Unique task identifier, never reused")
	plan_id: str = Field(description="Plan the task was created in")
	name: str
	description: str
	notes: str = Field(default="")
	status: TaskStatus = Field(default=TaskStatus.PENDING)
	dependencies: list[str] = Field(default_factory=list)
	related_files: list[RelatedFile] = Field(default_factory=list)
	implementation_guide: Optional[str] = Field(default=None)
	verification_criteria: Optional[str] = Field(default=None)
	summary: Optional[str] = Field(default=None, description="Set on completion only")
	split_from: Optional[str] = Field(default=None, description="Parent task when produced by a split")
	audit_notes: list[str] = Field(default_factory=list)

	# Timestamps
	created_at: str
	updated_at: str
	completed_at: Optional[str] = Field(default=None)

	@property
	def is_terminal(self) -> bool:
		return self.status == TaskStatus.COMPLETED

	def sort_key(self) -> tuple[str, str]:
		"""Creation order, then id."""
		return (self.created_at, self.id)


class Plan(BaseModel):
	"""
	A versioned view over the project's tasks.

	Only the active plan of a project accepts structural edits. A superseded
	plan is read-only and keeps the statuses its tasks had when it was
	superseded.
	"""
	id: str
	project_id: str
	version: int = Field(default=1)
	name: str = Field(default="")
	created_at: str
	updated_at: str
	task_ids: list[str] = Field(default_factory=list)
	read_only: bool = Field(default=False)
	parent_plan_id: Optional[str] = Field(default=None)
	status_snapshot: dict[str, TaskStatus] = Field(default_factory=dict)

	def contains(self, task_id: str) -> bool:
		return task_id in self.task_ids


class Project(BaseModel):
	"""A named container owning one active plan and its history."""
	id: str
	name: str
	sanitized_name: str
	description: str = Field(default="")
	created_at: str
	updated_at: str
	active_plan_id: str
	plan_history: list[str] = Field(default_factory=list, description="Superseded plan ids, oldest first")


ModelT = TypeVar("ModelT", bound=BaseModel)


def parse_input(model_cls: type[ModelT], data: Any) -> ModelT:
	"""Validate caller input, converting pydantic errors into FieldValidationError."""
	if isinstance(data, model_cls):
		return data
	try:
		return model_cls.model_validate(data)
	except pydantic.ValidationError as e:
		problems = []
		for err in e.errors():
			path = ".".join(str(p) for p in err["loc"]) or "root"
			problems.append(f"{path}: {err['msg']}")
		raise FieldValidationError(
			f"Invalid {model_cls.__name__}: " + "; ".join(problems),
			extra={"errors": problems},
		) from e
