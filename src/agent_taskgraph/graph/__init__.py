"""Graph module - projects, versioned plans and the task dependency graph."""

from .lifecycle import BulkResult, LifecycleController, SplitResult, VerifyResult
from .models import BatchMode, ChangeKind, Plan, Project, RelatedFile, Task, TaskDraft, TaskPatch, TaskStatus
from .plans import PlanDiff, PlanManager, Session
from .projects import ProjectRegistry, sanitize_name
from .queries import ProjectSummary, QueryService, SearchPage
from .store import PlanView, ProjectStore
from .tasks import BatchResult, TaskGraph

__all__ = [
	"Project",
	"Plan",
	"Task",
	"TaskDraft",
	"TaskPatch",
	"TaskStatus",
	"RelatedFile",
	"ChangeKind",
	"BatchMode",
	"ProjectStore",
	"PlanView",
	"TaskGraph",
	"BatchResult",
	"LifecycleController",
	"SplitResult",
	"VerifyResult",
	"BulkResult",
	"PlanManager",
	"PlanDiff",
	"Session",
	"ProjectRegistry",
	"sanitize_name",
	"QueryService",
	"SearchPage",
	"ProjectSummary",
]
