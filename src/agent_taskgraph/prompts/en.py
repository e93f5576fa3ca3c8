"""English response templates."""

TEMPLATES: dict[str, str] = {
	# -- list items ---------------------------------------------------------
	"item.project": "- **{name}** `{id}` (plan v{version}, {task_count} tasks){current}",
	"item.project_current": " <- current",
	"item.plan": "- v{version} **{name}** `{id}`: {task_count} tasks, {state}",
	"item.plan_active": "active",
	"item.plan_read_only": "read-only",
	"item.task": "{index}. **{name}** `{id}` [{status}]{dependencies}",
	"item.task_dependencies": " (depends on: {dependencies})",
	"item.diff": "- **{name}** `{id}` {old_status} -> {new_status}",
	"item.bulk_ok": "- `{id}`: {status}",
	"item.bulk_failed": "- `{id}`: failed ({kind}) {detail}",
	"item.file": "- `{path}` ({kind}){lines} {description}",
	"item.note": "- {note}",
	"item.none": "_none_",

	# -- projects -----------------------------------------------------------
	"create_project.success": (
		"## Project created\n\n"
		"**{name}** (`{id}`)\n\n"
		"- Folder-safe name: `{sanitized_name}`\n"
		"- Active plan: v1 `{plan_id}`\n"
		"{description}\n\n"
		"The project is now current. Plan tasks with `plan_tasks` or add them one at a time with `add_task`."
	),
	"list_projects.success": "## Projects ({count})\n\n{projects}",
	"list_projects.empty": "No projects yet. Create one with `create_project`.",
	"switch_project.success": (
		"## Switched project\n\n"
		"Current project is now **{name}** (`{id}`), plan v{version} with {task_count} tasks."
	),
	"delete_project.success": (
		"## Project deleted\n\n"
		"**{name}** (`{id}`) was deleted together with {plans} plans and {tasks} tasks."
	),
	"get_project_info.success": (
		"## {name}\n\n"
		"- ID: `{id}`\n"
		"- Description: {description}\n"
		"- Active plan: v{version} `{plan_id}`\n"
		"- Historical plans: {history_count}\n"
		"- Created: {created_at}\n\n"
		"### Progress\n\n"
		"{total} tasks, {completion_rate}% completed\n\n"
		"- pending: {pending}\n"
		"- in_progress: {in_progress}\n"
		"- blocked: {blocked}\n"
		"- completed: {completed}"
	),

	# -- plans --------------------------------------------------------------
	"create_plan_version.success": (
		"## Plan v{version} created\n\n"
		"Project **{project}** now works on plan `{plan_id}` with {task_count} tasks. "
		"Plan v{previous_version} is kept read-only in history."
	),
	"list_plans.success": "## Plans of {project} ({count})\n\n{plans}",
	"get_plan_info.success": (
		"## Plan v{version}: {name}\n\n"
		"- ID: `{id}`\n"
		"- State: {state}\n"
		"- Derived from: {parent}\n"
		"- Created: {created_at}\n\n"
		"### Tasks ({task_count})\n\n"
		"{tasks}"
	),
	"rollback_plan.success": (
		"## Rolled back\n\n"
		"Project **{project}** is now on plan v{version}, restored from v{source_version} "
		"with {task_count} tasks. Task statuses are unchanged. {skipped} deleted tasks were skipped."
	),
	"delete_plan.success": (
		"## Plan deleted\n\n"
		"Plan v{version} (`{id}`) was deleted; {orphaned} tasks no other plan used were removed."
	),
	"diff_plans.success": (
		"## Changes from v{older_version} to v{newer_version}\n\n"
		"### Added ({added_count})\n\n{added}\n\n"
		"### Removed ({removed_count})\n\n{removed}\n\n"
		"### Status changed ({changed_count})\n\n{changed}"
	),
	"diff_plans.empty": "Plans v{older_version} and v{newer_version} have no differences.",
	"clear_all_tasks.success": (
		"## Tasks cleared\n\n"
		"{cleared} tasks of **{project}** were moved to history as plan v{backup_version}. "
		"The project now works on the empty plan v{version}."
	),

	# -- tasks --------------------------------------------------------------
	"add_task.success": (
		"## Task added\n\n"
		"**{name}** (`{id}`) was added to plan v{version}.\n\n"
		"Dependencies: {dependencies}"
	),
	"update_task.success": "## Task updated\n\n**{name}** (`{id}`): {fields} changed.",
	"annotate_task.success": "Note recorded on **{name}** (`{id}`); {note_count} notes in total.",
	"delete_task.success": (
		"## Task deleted\n\n"
		"Removed {removed_count} tasks from the plan:\n\n{removed}"
	),
	"list_tasks.success": (
		"## Tasks of {project} (plan v{version}, {status_filter})\n\n"
		"{count} tasks in dependency order:\n\n{tasks}"
	),
	"list_tasks.empty": "No {status_filter} tasks in plan v{version} of **{project}**.",
	"query_task.success": (
		"## Search results for \"{query}\"\n\n"
		"{total} matches, page {page} of {total_pages}:\n\n{tasks}"
	),
	"query_task.empty": "No tasks match \"{query}\".",
	"get_task_detail.success": (
		"## {name}\n\n"
		"- ID: `{id}`\n"
		"- Status: {status}\n"
		"- Dependencies: {dependencies}\n"
		"- Created: {created_at}\n"
		"- Updated: {updated_at}\n"
		"- Completed: {completed_at}\n\n"
		"### Description\n\n{description}\n\n"
		"### Notes\n\n{notes}\n\n"
		"### Implementation guide\n\n{implementation_guide}\n\n"
		"### Verification criteria\n\n{verification_criteria}\n\n"
		"### Related files\n\n{related_files}\n\n"
		"### Summary\n\n{summary}\n\n"
		"### Audit notes\n\n{audit_notes}"
	),
	"ready_tasks.success": "## Ready to start ({count})\n\n{tasks}",
	"ready_tasks.empty": "No task is ready: every pending task still waits on unfinished dependencies.",
	"plan_tasks.success": (
		"## Tasks planned\n\n"
		"Plan v{version} ({mode}): {created_count} created, {updated_count} updated, {removed_count} removed.\n\n"
		"### Created\n\n{created}\n\n"
		"### Updated\n\n{updated}\n\n"
		"### Left unchanged (completed)\n\n{unchanged}"
	),
	"plan_tasks.mode_append": "new tasks appended",
	"plan_tasks.mode_overwrite": "unfinished tasks replaced, completed tasks kept",
	"plan_tasks.mode_selective": "tasks matched by name were updated",
	"plan_tasks.mode_clear_all": "the previous plan was moved to history",
	"split_tasks.success": (
		"## Task split\n\n"
		"**{parent_name}** (`{parent_id}`) was split into {count} subtasks ({mode}):\n\n{subtasks}"
	),
	"split_tasks.mode_keep": "the parent waits for all subtasks",
	"split_tasks.mode_replace": "the parent was replaced and marked superseded",
	"execute_task.success": (
		"## Executing: {name}\n\n"
		"Task `{id}` is now in progress.\n\n"
		"### Description\n\n{description}\n\n"
		"### Implementation guide\n\n{implementation_guide}\n\n"
		"### Verification criteria\n\n{verification_criteria}\n\n"
		"### Related files\n\n{related_files}\n\n"
		"When the work is done, call `verify_task` with a score and a summary."
	),
	"block_task.success": "Task **{name}** (`{id}`) is blocked: {reason}",
	"unblock_task.success": "Task **{name}** (`{id}`) is pending again.",
	"complete_task.success": (
		"## Task completed\n\n"
		"**{name}** (`{id}`) is completed.\n\n"
		"Summary: {summary}"
	),
	"verify_task.success": (
		"## Verification passed\n\n"
		"**{name}** (`{id}`) scored {score} (threshold {threshold}) and is now completed.\n\n"
		"Summary: {summary}"
	),
	"verify_task.retry": (
		"## Verification failed\n\n"
		"**{name}** (`{id}`) scored {score}, below the threshold of {threshold}. "
		"The feedback was recorded; fix the issues and verify again.\n\n"
		"Feedback: {summary}"
	),
	"update_status_bulk.success": (
		"## Bulk status update to {status}\n\n"
		"{ok_count} of {total} tasks updated:\n\n{results}"
	),
	"task_order.success": "## Execution order ({count})\n\n{tasks}",

	# -- errors -------------------------------------------------------------
	"error": "**Error ({kind})**: {detail}",
	"error.ValidationError": "**Invalid input**: {detail}",
	"error.UnknownDependency": "**Unknown dependency**: {detail}\n\nDependencies must be tasks of the same plan: {ids}",
	"error.CycleDetected": "**Dependency cycle**: the change would create the loop {ids}. Nothing was changed.",
	"error.HasDependents": (
		"**Task has dependents**: {detail}\n\n"
		"Retry with cascade to strip the dependency, or with delete_dependents to remove them as well."
	),
	"error.InvalidTransition": "**Not allowed in the current state**: {detail}",
	"error.DependenciesUnmet": "**Dependencies not completed**: finish these tasks first: {ids}",
	"error.ProjectNotFound": "**Project not found**: {detail}\n\nDid you mean: {suggestions}",
	"error.PlanNotFound": "**Plan not found**: {detail}",
	"error.TaskNotFound": "**Task not found**: {detail}",
	"error.DuplicateName": "**Name already taken**: {detail}. Choose another name or switch to the existing project.",
	"error.StorageFailure": "**Storage failure**: {detail}. No changes were saved.",
	"error.PlanReadOnly": "**Plan is read-only**: {detail}",
}
