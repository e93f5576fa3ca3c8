"""Visualizer package - Rich terminal views of plans and projects."""

from .plan_progress import render_plan_progress, render_plan_summary, render_project_list

__all__ = [
	"render_plan_progress",
	"render_plan_summary",
	"render_project_list",
]
