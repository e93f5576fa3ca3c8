"""Rich views for plan progress visualization."""

from typing import Optional

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table
from rich.tree import Tree

from ..graph.models import Plan, Project, TaskStatus
from ..graph.queries import ProjectSummary
from ..graph.store import PlanView
from .utils import format_timestamp, progress_bar, status_icon, status_style


def render_plan_progress(view: PlanView, console: Optional[Console] = None) -> None:
	"""Render a plan as a Rich Tree, tasks in dependency order."""
	console = console or Console()
	plan = view.plan
	ordered = view.ordered()

	done = sum(1 for t in ordered if view.recorded_status(t.id) == TaskStatus.COMPLETED)
	label = "read-only" if plan.read_only else "active"
	tree = Tree(
		f"[bold]{escape(plan.name or plan.id)}[/bold] [dim](v{plan.version}, {label}, "
		f"{done}/{len(ordered)} tasks done)[/dim]"
	)

	for task in ordered:
		status = view.recorded_status(task.id)
		branch = tree.add(f"{status_icon(status)} [{status_style(status)}]{escape(task.name)}[/] [dim]{task.id}[/dim]")
		for dep in task.dependencies:
			dep_task = view.tasks.get(dep) or view.external.get(dep)
			dep_name = dep_task.name if dep_task else dep
			outside = "" if dep in view.tasks else " (outside plan)"
			branch.add(f"[dim]needs {status_icon(view.status_of(dep))} {escape(dep_name)}{outside}[/dim]")

	if not ordered:
		tree.add("[dim]No tasks[/dim]")

	console.print(tree)


def render_plan_summary(
	project: Project,
	summary: ProjectSummary,
	plans: list[Plan],
	console: Optional[Console] = None,
) -> None:
	"""Render a summary panel for a project's active plan and its history."""
	console = console or Console()
	completed = summary.counts.get(TaskStatus.COMPLETED.value, 0)

	lines = []
	lines.append(f"[bold]Project:[/bold] {escape(project.name)}")
	if project.description:
		lines.append(f"[bold]Description:[/bold] {escape(project.description)}")
	lines.append(f"[bold]Active plan:[/bold] v{summary.plan_version} ({summary.plan_id})")
	lines.append("")
	lines.append(
		f"[bold]Progress:[/bold] {progress_bar(completed, summary.total)} "
		f"{completed}/{summary.total} ({summary.completion_rate:.0f}%)"
	)
	for status in TaskStatus:
		count = summary.counts.get(status.value, 0)
		lines.append(f"  [{status_style(status)}]{status.value:12s}[/] {count}")

	if plans:
		lines.append("")
		lines.append(f"[bold]Plan history:[/bold] {summary.history_count} superseded")
		for plan in plans[-5:]:
			marker = "*" if plan.id == summary.plan_id else " "
			lines.append(
				f" {marker} v{plan.version} {escape(plan.name)} [dim]({len(plan.task_ids)} tasks, "
				f"{format_timestamp(plan.created_at)})[/dim]"
			)

	console.print(Panel("\n".join(lines), title=f"Project: {project.id}", border_style="cyan"))


def render_project_list(
	projects: list[Project],
	current_id: Optional[str] = None,
	console: Optional[Console] = None,
) -> None:
	"""Render all projects as a table, the current one marked."""
	console = console or Console()
	if not projects:
		console.print("[dim]No projects yet.[/dim]")
		return

	table = Table(title="Projects")
	table.add_column("", width=1)
	table.add_column("Name", style="bold")
	table.add_column("ID", style="dim")
	table.add_column("Plans", justify="right")
	table.add_column("Created")

	for project in projects:
		table.add_row(
			"*" if project.id == current_id else "",
			escape(project.name),
			project.id,
			str(len(project.plan_history) + 1),
			format_timestamp(project.created_at),
		)

	console.print(table)
