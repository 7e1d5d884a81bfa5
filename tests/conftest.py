"""
Shared test fixtures and configuration.
"""

import json
from pathlib import Path

import pytest

from craft.adapters.mock import MockAdapter
from craft.adapters.registry import AdapterRegistry
from craft.adapters.shell.filesystem import FilesystemAdapter


def write_file(root: Path, rel: str, content: str = "") -> Path:
    """Create ``root/rel`` with ``content``, parents included."""
    path = root / rel
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content)
    return path


def write_json(root: Path, rel: str, data: dict) -> Path:
    return write_file(root, rel, json.dumps(data, indent=2))


@pytest.fixture
def template_dir(tmp_path: Path) -> Path:
    """An empty directory standing in for a cloned template."""
    path = tmp_path / "template"
    path.mkdir()
    return path


@pytest.fixture
def app_dir(tmp_path: Path) -> Path:
    """An empty directory standing in for the generated app."""
    path = tmp_path / "app"
    path.mkdir()
    return path


@pytest.fixture
def node_mock() -> MockAdapter:
    return MockAdapter(adapter_name="node")


@pytest.fixture
def git_mock() -> MockAdapter:
    return MockAdapter(adapter_name="git")


@pytest.fixture
def registry(node_mock: MockAdapter, git_mock: MockAdapter) -> AdapterRegistry:
    """Real filesystem adapter, mocked node and git."""
    reg = AdapterRegistry()
    reg.register(FilesystemAdapter())
    reg.register(node_mock)
    reg.register(git_mock)
    return reg
