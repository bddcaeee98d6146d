"""Shared test fixtures."""

from __future__ import annotations

import json
from collections.abc import Callable
from pathlib import Path

import pytest
import tomlkit


@pytest.fixture
def workspace(tmp_path: Path) -> Path:
    """An empty uv workspace root with members under packages/."""
    (tmp_path / "pyproject.toml").write_text(
        '[tool.uv.workspace]\nmembers = ["packages/*"]\n'
    )
    return tmp_path


@pytest.fixture
def add_package(workspace: Path) -> Callable[..., Path]:
    """Factory that writes packages/<name>/pyproject.toml into the workspace."""

    def _add(
        name: str,
        version: str = "1.0.0",
        deps: list[str] | None = None,
        optional: dict[str, list[str]] | None = None,
        groups: dict[str, list[str]] | None = None,
    ) -> Path:
        doc = tomlkit.document()
        project = tomlkit.table()
        project["name"] = name
        project["version"] = version
        project["dependencies"] = deps or []
        if optional:
            project["optional-dependencies"] = optional
        doc["project"] = project
        if groups:
            doc["dependency-groups"] = groups
        folder = workspace / "packages" / name
        folder.mkdir(parents=True)
        (folder / "pyproject.toml").write_text(tomlkit.dumps(doc))
        return folder

    return _add


@pytest.fixture
def write_changes(workspace: Path) -> Callable[..., Path]:
    """Factory that writes a change file into <workspace>/changes."""

    def _write(filename: str, *records: dict[str, str]) -> Path:
        folder = workspace / "changes"
        folder.mkdir(exist_ok=True)
        path = folder / filename
        path.write_text(json.dumps({"changes": list(records)}))
        return path

    return _write


@pytest.fixture
def sample_toml_doc() -> tomlkit.TOMLDocument:
    """Create a sample TOML document."""
    content = """\
[project]
name = "my-package"
version = "2.0.0"
dependencies = ["click>=8.0", "pydantic>=2.0"]

[project.optional-dependencies]
dev = ["pytest>=8.0"]
docs = ["sphinx>=7.0"]

[dependency-groups]
test = ["hypothesis>=6.0", {include-group = "docs"}]

[tool.uv.workspace]
members = ["packages/*", "libs/*"]

[tool.cascade-release]
change-folder = "common/changes"
"""
    return tomlkit.parse(content)
