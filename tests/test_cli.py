"""Tests for the CLI commands."""

import argparse
import asyncio
import os
from pathlib import Path
from unittest.mock import patch

import pytest

from agent_taskgraph.cli import _check_config_toml, _check_optional_extras, build_parser, cmd_doctor, cmd_viz, main

from .helpers import draft, make_service


def _env(tmp_path: Path) -> dict:
	return {
		"AGENT_TASKGRAPH_CONFIG_DIR": str(tmp_path / "config"),
		"AGENT_TASKGRAPH_DATA_DIR": str(tmp_path / "data"),
	}


async def _seed(tmp_path: Path) -> None:
	service = await make_service(str(tmp_path / "data" / "taskgraph.db"))
	try:
		await service.create_project("Cli Demo")
		base = await service.add_task(draft("Base"))
		await service.add_task(draft("Follow-up", [base.id]))
	finally:
		await service.close()


def test_no_command_prints_help():
	with pytest.raises(SystemExit) as exc_info:
		main([])
	assert exc_info.value.code == 1


@pytest.mark.parametrize("argv", [
	["serve", "--help"],
	["doctor", "--help"],
	["viz", "--help"],
	["viz", "plan", "--help"],
	["viz", "summary", "--help"],
	["viz", "projects", "--help"],
	["viz", "web", "--help"],
])
def test_subcommands_registered(argv):
	with pytest.raises(SystemExit) as exc_info:
		main(argv)
	assert exc_info.value.code == 0


def test_viz_plan_arguments():
	args = build_parser().parse_args(["viz", "plan", "My Project", "--plan", "p-1"])
	assert args.project == "My Project"
	assert args.plan_id == "p-1"


def test_viz_without_target_exits(capsys):
	with pytest.raises(SystemExit):
		cmd_viz(argparse.Namespace(viz_target=None))
	assert "Usage" in capsys.readouterr().out


def test_viz_plan_renders_current_project(tmp_path: Path, capsys):
	with patch.dict(os.environ, _env(tmp_path)):
		asyncio.run(_seed(tmp_path))
		main(["viz", "plan"])
	out = capsys.readouterr().out
	assert "Cli Demo v1" in out
	assert out.index("Base") < out.index("Follow-up")


def test_viz_summary_unknown_project(tmp_path: Path, capsys):
	with patch.dict(os.environ, _env(tmp_path)):
		asyncio.run(_seed(tmp_path))
		with pytest.raises(SystemExit) as exc_info:
			main(["viz", "summary", "Cli Dem"])
	assert exc_info.value.code == 1
	out = capsys.readouterr().out
	assert "ProjectNotFound" in out
	assert "Did you mean: Cli Demo" in out


def test_viz_projects(tmp_path: Path, capsys):
	with patch.dict(os.environ, _env(tmp_path)):
		asyncio.run(_seed(tmp_path))
		main(["viz", "projects"])
	assert "Cli Demo" in capsys.readouterr().out


def test_serve_storage_failure_exits_quietly(tmp_path: Path, capfd):
	(tmp_path / "data" / "taskgraph.db").mkdir(parents=True)
	with patch.dict(os.environ, _env(tmp_path)):
		with pytest.raises(SystemExit) as exc_info:
			main(["serve"])
	assert exc_info.value.code == 1
	captured = capfd.readouterr()
	assert captured.err == ""
	assert captured.out == ""


def test_check_config_toml(tmp_path: Path):
	assert _check_config_toml(tmp_path)[0] == "not found (optional)"

	(tmp_path / "config.toml").write_text("locale = 'en'\n")
	assert _check_config_toml(tmp_path) == ("valid", None)

	(tmp_path / "config.toml").write_text("locale = \n")
	status, issue = _check_config_toml(tmp_path)
	assert status.startswith("INVALID")
	assert issue is not None


def test_check_optional_extras_lists_web():
	assert [name for name, _ in _check_optional_extras()] == ["web"]


def test_doctor_reports_storage(tmp_path: Path, capsys):
	with patch.dict(os.environ, _env(tmp_path)):
		asyncio.run(_seed(tmp_path))
		try:
			cmd_doctor(argparse.Namespace())
		except SystemExit:
			pass  # missing optional packages in the test environment are reported as issues
	out = capsys.readouterr().out
	assert "agent-taskgraph doctor" in out
	assert "OK (1 projects, 2 tasks)" in out
	assert "tools registered" in out
