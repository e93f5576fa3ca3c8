"""Shared pytest fixtures."""

from pathlib import Path

import pytest
import pytest_asyncio

from agent_taskgraph.config import Config

from .helpers import make_service


@pytest.fixture
def config(tmp_path: Path) -> Config:
	"""Config rooted in a temporary directory."""
	config = Config(config_dir=tmp_path / "config", data_dir=tmp_path / "data")
	config.ensure_dirs()
	return config


@pytest_asyncio.fixture
async def service():
	"""In-memory service with nothing in it."""
	svc = await make_service()
	yield svc
	await svc.close()


@pytest_asyncio.fixture
async def project(service):
	"""A current project with an empty active plan."""
	return await service.create_project("Demo App", "Sample project for tests")
