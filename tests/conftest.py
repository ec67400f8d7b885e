"""Shared fixtures: temporary projects and a fake HTTP server"""

import json
from pathlib import Path

import pytest

from vpm_tool.api.manager import PackageManager
from vpm_tool.constants import ENV_CONFIG_PATH, ENV_PACKAGES_DIR, ENV_REPOS_DIR
from vpm_tool.models.config import ConstraintConfig, DownloadConfig, ToolConfig

from .helpers import FakeServer


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    """Keep path overrides from the developer's shell out of the tests"""
    for name in (ENV_CONFIG_PATH, ENV_PACKAGES_DIR, ENV_REPOS_DIR):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def project_root(tmp_path) -> Path:
    root = tmp_path / "project"
    root.mkdir()
    return root


@pytest.fixture
def server() -> FakeServer:
    return FakeServer()


@pytest.fixture
def tool_config(tmp_path) -> ToolConfig:
    """Defaults with no retry delay and a private temp directory"""
    return ToolConfig(
        temp_dir=str(tmp_path / "tmp"),
        manifest_cache_ttl=0,
        download=DownloadConfig(retry_count=2, retry_delay=0),
        constraints=ConstraintConfig(
            mutually_exclusive=[("com.vrchat.avatars", "com.vrchat.worlds")],
            base_packages={
                "com.vrchat.avatars": "com.vrchat.base",
                "com.vrchat.worlds": "com.vrchat.base",
            },
            protected=["dev.redline-team.rpm"],
        ),
    )


@pytest.fixture
def manager_factory(project_root, tool_config, server):
    """Create a PackageManager whose repository cache holds the given descriptors"""

    def factory(*descriptors: dict) -> PackageManager:
        manager = PackageManager(project_root, config=tool_config, transport=server.transport)
        repos_dir = manager.path_resolver.get_repositories_dir()
        repos_dir.mkdir(parents=True, exist_ok=True)
        for index, descriptor in enumerate(descriptors):
            (repos_dir / f"{index:02d}_{descriptor.get('name', 'repo')}.json").write_text(
                json.dumps(descriptor), encoding="utf-8"
            )
        manager.load_repositories()
        return manager

    return factory
