"""CLI for agent-taskgraph: serve, doctor and viz commands."""

import argparse
import asyncio
import platform
import sys
from importlib.metadata import PackageNotFoundError
from importlib.metadata import version as pkg_version
from pathlib import Path

from .config import Config, load_config
from .errors import TaskGraphError
from .logging_config import log_file_path, setup_logging

CORE_DEPS = ["mcp", "pydantic", "aiosqlite", "platformdirs", "rich"]
OPTIONAL_EXTRAS = {
	"web": ["starlette", "uvicorn"],
}


def cmd_serve(args: argparse.Namespace) -> None:
	"""Run the MCP server (stdio transport), with the dashboard when enabled."""
	from .server import serve

	config = load_config()
	# stdout is the MCP transport; serve reports through the log file only
	setup_logging(config.log_dir, config.log_level, console=False)
	sys.exit(asyncio.run(serve(config)))


def _check_optional_extras() -> list[tuple[str, str]]:
	"""Check optional extras installation status.

	Returns list of (extra_name, status_string) tuples.
	"""
	results = []
	for extra_name, packages in OPTIONAL_EXTRAS.items():
		installed = []
		missing = []
		for pkg in packages:
			try:
				installed.append(f"{pkg} {pkg_version(pkg)}")
			except PackageNotFoundError:
				missing.append(pkg)
		if not missing:
			results.append((extra_name, ", ".join(installed)))
		else:
			results.append((extra_name, f"NOT INSTALLED (pip install agent-taskgraph[{extra_name}])"))
	return results


def _check_config_toml(config_dir: Path) -> tuple[str, str | None]:
	"""Validate config.toml. Returns (status, issue_or_none)."""
	import tomllib

	toml_path = config_dir / "config.toml"
	if not toml_path.exists():
		return "not found (optional)", None
	try:
		with open(toml_path, "rb") as f:
			tomllib.load(f)
		return "valid", None
	except tomllib.TOMLDecodeError as e:
		return f"INVALID ({e})", f"config.toml parse error: {e}"


def _check_server_startup(config: Config) -> tuple[str, str | None]:
	"""Build the server and count registered tools. Returns (status, issue_or_none)."""
	try:
		from .server import create_server
		server_instance = create_server(config)
		count = len(server_instance._tool_manager._tools)
		return f"OK ({count} tools registered)", None
	except (ImportError, TaskGraphError, ValueError) as e:
		return f"FAILED ({e})", f"Server startup failed: {e}"


async def _check_store(config: Config) -> tuple[str, str | None]:
	"""Open the task database. Returns (status, issue_or_none)."""
	from .service import TaskGraphService

	service = TaskGraphService.from_config(config)
	try:
		await service.init()
	except TaskGraphError as e:
		return f"FAILED ({e.detail})", f"Database unavailable: {e.detail}"
	try:
		health = service.health()
	finally:
		await service.close()
	return f"OK ({health['projects']} projects, {health['tasks']} tasks)", None


def cmd_doctor(args: argparse.Namespace) -> None:
	"""Health check - verify installation and configuration."""
	print("agent-taskgraph doctor")
	print(f"{'=' * 40}")

	config = load_config()
	issues: list[str] = []

	py_ver = f"{sys.version_info.major}.{sys.version_info.minor}.{sys.version_info.micro}"
	print(f"  Python:       {py_ver}")
	print(f"  Platform:     {platform.system()} {platform.machine()}")
	print()

	print("  Paths:")
	print(f"    Config dir:  {config.config_dir}")
	print(f"    Data dir:    {config.data_dir}")
	print(f"    Database:    {config.db_path}")
	print(f"    Log file:    {log_file_path(config.log_dir)}")
	print()

	print("  Core deps:")
	for dep in CORE_DEPS:
		try:
			print(f"    {dep:22s} {pkg_version(dep)}")
		except PackageNotFoundError:
			print(f"    {dep:22s} NOT INSTALLED")
			issues.append(f"{dep} package not installed")
	print()

	print("  Optional extras:")
	extras = dict(_check_optional_extras())
	for extra_name, status in extras.items():
		print(f"    {extra_name:22s} {status}")
	if config.enable_gui and "NOT INSTALLED" in extras.get("web", ""):
		issues.append("ENABLE_GUI is set but the web extra is not installed")
	print()

	print("  Config:")
	toml_status, toml_issue = _check_config_toml(config.config_dir)
	print(f"    config.toml:         {toml_status}")
	if toml_issue:
		issues.append(toml_issue)
	print(f"    locale:              {config.locale}")
	print(f"    dashboard:           {'on port ' + str(config.web_port) if config.enable_gui else 'disabled'}")
	print(f"    verify threshold:    {config.verification_threshold}")
	print()

	print("  Storage:")
	store_status, store_issue = asyncio.run(_check_store(config))
	print(f"    {store_status}")
	if store_issue:
		issues.append(store_issue)
	print()

	print("  Server:")
	server_status, server_issue = _check_server_startup(config)
	print(f"    {server_status}")
	if server_issue:
		issues.append(server_issue)
	print()

	if issues:
		print(f"  {len(issues)} issue(s) found:")
		for issue in issues:
			print(f"    - {issue}")
		sys.exit(1)
	else:
		print("  All checks passed.")


async def _render_viz(config: Config, args: argparse.Namespace) -> None:
	"""Open the store, render the requested view and close it again."""
	from .service import TaskGraphService
	from .visualizer import render_plan_progress, render_plan_summary, render_project_list

	service = TaskGraphService.from_config(config)
	await service.init()
	try:
		target = args.viz_target
		if target == "projects":
			render_project_list(service.list_projects(), service.session.current_project_id)
		elif target == "plan":
			plan_id = args.plan_id or service.active_plan(args.project).id
			render_plan_progress(await service.store.snapshot(plan_id))
		elif target == "summary":
			project = service.resolve_project(args.project)
			render_plan_summary(project, await service.summarize(project.id), service.list_plans(project.id))
	finally:
		await service.close()


def cmd_viz(args: argparse.Namespace) -> None:
	"""Visualizer subcommand - Rich terminal views of projects and plans."""
	viz_target = getattr(args, "viz_target", None)

	if viz_target == "web":
		cmd_viz_web(args)
		return

	if viz_target not in {"plan", "summary", "projects"}:
		print("Usage: agent-taskgraph viz {plan|summary|projects|web}")
		print("Run 'agent-taskgraph viz --help' for details.")
		sys.exit(1)

	config = load_config()
	setup_logging(config.log_dir, config.log_level)
	try:
		asyncio.run(_render_viz(config, args))
	except TaskGraphError as e:
		print(f"{e.kind}: {e.detail}")
		suggestions = e.extra.get("suggestions")
		if suggestions:
			print(f"Did you mean: {', '.join(suggestions)}")
		sys.exit(1)


def cmd_viz_web(args: argparse.Namespace) -> None:
	"""Launch the web dashboard."""
	try:
		from .web import run_web_dashboard
	except ImportError:
		print("Web extras not installed.")
		print("Install with: pip install -e '.[web]'")
		sys.exit(1)

	config = load_config()
	setup_logging(config.log_dir, config.log_level)
	run_web_dashboard(config, port=args.port, open_browser=not args.no_open)


def build_parser() -> argparse.ArgumentParser:
	parser = argparse.ArgumentParser(
		prog="agent-taskgraph",
		description="MCP server for agent task planning: dependency-aware tasks, plan versions and verification",
	)
	subparsers = parser.add_subparsers(dest="command")

	# serve
	serve_parser = subparsers.add_parser("serve", help="Run MCP server (stdio)")
	serve_parser.set_defaults(func=cmd_serve)

	# doctor
	doctor_parser = subparsers.add_parser("doctor", help="Health check")
	doctor_parser.set_defaults(func=cmd_doctor)

	# viz
	viz_parser = subparsers.add_parser("viz", help="Visualize projects and plans")
	viz_subparsers = viz_parser.add_subparsers(dest="viz_target")

	viz_plan = viz_subparsers.add_parser("plan", help="Plan tasks in dependency order")
	viz_plan.add_argument("project", nargs="?", default=None, help="Project id or name (default: current)")
	viz_plan.add_argument("--plan", dest="plan_id", default=None, help="Show this plan version instead of the active one")
	viz_plan.set_defaults(func=cmd_viz)

	viz_summary = viz_subparsers.add_parser("summary", help="Project progress and plan history")
	viz_summary.add_argument("project", nargs="?", default=None, help="Project id or name (default: current)")
	viz_summary.set_defaults(func=cmd_viz)

	viz_projects = viz_subparsers.add_parser("projects", help="All projects")
	viz_projects.set_defaults(func=cmd_viz)

	viz_web = viz_subparsers.add_parser("web", help="Launch web dashboard")
	viz_web.add_argument("--port", type=int, default=None, help="Server port (default: configured web_port)")
	viz_web.add_argument("--no-open", action="store_true", help="Don't auto-open browser")
	viz_web.set_defaults(func=cmd_viz)

	viz_parser.set_defaults(func=cmd_viz)
	return parser


def main(argv: list[str] | None = None) -> None:
	"""CLI entry point."""
	parser = build_parser()
	args = parser.parse_args(argv)

	if not args.command:
		parser.print_help()
		sys.exit(1)

	args.func(args)
