"""TOML reading and writing utilities.

Uses tomlkit to preserve formatting and comments when modifying pyproject.toml
files. This is important for maintaining readable, diff-friendly files.
"""

from __future__ import annotations

from collections.abc import Iterator
from pathlib import Path
from typing import Any

import tomlkit
from packaging.utils import canonicalize_name
from tomlkit.exceptions import TOMLKitError

from .errors import WorkspaceError


def load_pyproject(path: Path) -> tomlkit.TOMLDocument:
    """Load and parse a pyproject.toml file.

    Returns a TOMLDocument that preserves formatting when modified and saved.

    Raises:
        WorkspaceError: If the file is missing or is not valid TOML.
    """
    try:
        return tomlkit.parse(path.read_text())
    except FileNotFoundError as exc:
        raise WorkspaceError(f"No pyproject.toml at {path}") from exc
    except TOMLKitError as exc:
        raise WorkspaceError(f"Cannot parse {path}: {exc}") from exc


def save_pyproject(path: Path, doc: tomlkit.TOMLDocument) -> None:
    """Save a TOMLDocument back to disk, preserving original formatting."""
    path.write_text(tomlkit.dumps(doc))


def get_project_name(doc: tomlkit.TOMLDocument, fallback: str) -> str:
    """Extract the canonical package name from [project].name.

    Names are normalized per PEP 503 (lowercase, hyphens instead of
    underscores) for consistent comparison.

    Args:
        doc: Parsed pyproject.toml document.
        fallback: Value to use if name is not specified.
    """
    return canonicalize_name(doc.get("project", {}).get("name", fallback))


def get_project_version(doc: tomlkit.TOMLDocument) -> str:
    """Extract version from [project].version, defaulting to '0.0.0'."""
    return str(doc.get("project", {}).get("version", "0.0.0"))


def iter_dependency_lists(
    doc: tomlkit.TOMLDocument,
) -> Iterator[tuple[str, list[Any], bool]]:
    """Yield every dependency list in a pyproject.toml.

    Yields (location, items, is_production) for:
    - [project].dependencies (runtime deps, production)
    - [project].optional-dependencies.* (published extras, production)
    - [dependency-groups].* (PEP 735 groups, development only)

    The yielded lists are the live tomlkit arrays, so callers may edit them
    in place. Items are usually PEP 508 strings; dependency groups may also
    hold ``{include-group = ...}`` tables, which callers should skip.
    """
    project = doc.get("project", {})
    deps = project.get("dependencies")
    if isinstance(deps, list):
        yield "project.dependencies", deps, True

    opt_deps = project.get("optional-dependencies")
    if isinstance(opt_deps, dict):
        for group, items in opt_deps.items():
            if isinstance(items, list):
                yield f"project.optional-dependencies.{group}", items, True

    dep_groups = doc.get("dependency-groups")
    if isinstance(dep_groups, dict):
        for group, items in dep_groups.items():
            if isinstance(items, list):
                yield f"dependency-groups.{group}", items, False


def get_workspace_member_globs(doc: tomlkit.TOMLDocument) -> list[str]:
    """Extract workspace member glob patterns from [tool.uv.workspace].

    These patterns (e.g., "packages/*", "libs/*") define which directories
    contain workspace packages.

    Raises:
        WorkspaceError: If no workspace members are defined.
    """
    members = doc.get("tool", {}).get("uv", {}).get("workspace", {}).get("members")
    if not members:
        raise WorkspaceError(
            "No [tool.uv.workspace] members defined in root pyproject.toml"
        )
    return [str(m) for m in members]


def get_tool_table(doc: tomlkit.TOMLDocument, name: str) -> dict[str, Any]:
    """Return [tool.<name>] as a plain dict, or {} when absent."""
    table = doc.get("tool", {}).get(name, {})
    return table.unwrap() if hasattr(table, "unwrap") else dict(table)
