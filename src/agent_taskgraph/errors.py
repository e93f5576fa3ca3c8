"""
Error kinds raised by the task graph engine.

Every error carries a machine-readable kind, a human-readable detail and the
identifiers it is about, so the tool layer can render it through a template.
"""

from typing import Any, Iterable, Optional


class TaskGraphError(Exception):
	"""Base class for all domain errors."""
	kind = "TaskGraphError"

	def __init__(
		self,
		detail: str,
		ids: Optional[Iterable[str]] = None,
		extra: Optional[dict[str, Any]] = None,
	):
		super().__init__(detail)
		self.detail = detail
		self.ids = list(ids or [])
		self.extra = dict(extra or {})

	def to_dict(self) -> dict[str, Any]:
		"""Structured form used by the tool and web layers."""
		data = {
			"kind": self.kind,
			"detail": self.detail,
			"ids": self.ids,
		}
		if self.extra:
			data.update(self.extra)
		return data


class FieldValidationError(TaskGraphError):
	"""A malformed input field."""
	kind = "ValidationError"


class UnknownDependencyError(TaskGraphError):
	"""A dependency id does not resolve to a task of the same plan."""
	kind = "UnknownDependency"


class CycleDetectedError(TaskGraphError):
	"""The requested edges would close a dependency cycle."""
	kind = "CycleDetected"


class HasDependentsError(TaskGraphError):
	"""Other tasks still depend on the task being removed."""
	kind = "HasDependents"


class InvalidTransitionError(TaskGraphError):
	"""The task's current state does not allow the operation."""
	kind = "InvalidTransition"


class DependenciesUnmetError(TaskGraphError):
	"""Completion attempted while dependencies are not completed."""
	kind = "DependenciesUnmet"


class ProjectNotFoundError(TaskGraphError):
	"""Raised when a project is not found."""
	kind = "ProjectNotFound"


class PlanNotFoundError(TaskGraphError):
	"""Raised when a plan is not found."""
	kind = "PlanNotFound"


class TaskNotFoundError(TaskGraphError):
	"""Raised when a task is not found."""
	kind = "TaskNotFound"


class DuplicateNameError(TaskGraphError):
	"""A project with the same (sanitized) name already exists."""
	kind = "DuplicateName"


class StorageFailureError(TaskGraphError):
	"""The durable store could not be read or written."""
	kind = "StorageFailure"


class PlanReadOnlyError(TaskGraphError):
	"""Structural edit attempted on a superseded plan."""
	kind = "PlanReadOnly"


NOT_FOUND_KINDS = frozenset({
	ProjectNotFoundError.kind,
	PlanNotFoundError.kind,
	TaskNotFoundError.kind,
})

ERROR_KINDS = (
	FieldValidationError.kind,
	UnknownDependencyError.kind,
	CycleDetectedError.kind,
	HasDependentsError.kind,
	InvalidTransitionError.kind,
	DependenciesUnmetError.kind,
	ProjectNotFoundError.kind,
	PlanNotFoundError.kind,
	TaskNotFoundError.kind,
	DuplicateNameError.kind,
	StorageFailureError.kind,
	PlanReadOnlyError.kind,
)
