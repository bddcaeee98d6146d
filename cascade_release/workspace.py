"""Workspace discovery: build a DependencyGraph from a uv workspace.

Reads [tool.uv.workspace].members from the root pyproject.toml to find
package directories, then extracts name, version, and internal deps from
each package's pyproject.toml.
"""

from __future__ import annotations

import glob
from pathlib import Path

from packaging.requirements import InvalidRequirement

from .deps import dep_canonical_name, dep_specifier
from .errors import WorkspaceError
from .graph import DependencyGraph
from .models import PackageNode
from .toml import (
    get_project_name,
    get_project_version,
    get_workspace_member_globs,
    iter_dependency_lists,
    load_pyproject,
)


def find_member_dirs(root: Path) -> list[Path]:
    """Expand the workspace member globs into package directories.

    Directories matched by [tool.uv.workspace].exclude are skipped, as are
    matches without a pyproject.toml. The result is sorted.

    Raises:
        WorkspaceError: If no members are configured or none are found.
    """
    root_doc = load_pyproject(root / "pyproject.toml")
    member_globs = get_workspace_member_globs(root_doc)
    workspace = root_doc.get("tool", {}).get("uv", {}).get("workspace", {})

    excluded: set[Path] = set()
    for pattern in workspace.get("exclude", []):
        excluded.update(Path(m) for m in glob.glob(str(root / pattern)))

    found: set[Path] = set()
    for pattern in member_globs:
        for match in glob.glob(str(root / pattern)):
            p = Path(match)
            if p not in excluded and (p / "pyproject.toml").exists():
                found.add(p)

    if not found:
        raise WorkspaceError("No packages found matching workspace members")
    return sorted(found)


def discover_packages(root: Path) -> DependencyGraph:
    """Scan the workspace and snapshot its packages.

    Only internal (workspace) dependencies become edges. Entries in
    [project].dependencies and [project].optional-dependencies are
    production edges; [dependency-groups] entries are development edges.
    A package listed in both is treated as a production dependency, and
    self-references (e.g. "pkg[test]" inside pkg's own extras) are ignored.

    Args:
        root: Workspace root holding the root pyproject.toml.

    Returns:
        Graph of all workspace packages, in sorted folder order.

    Raises:
        WorkspaceError: If the workspace or a manifest cannot be read.
    """
    member_dirs = find_member_dirs(root)

    # First pass: collect name and version from each package
    docs = {}
    versions: dict[str, str] = {}
    folders: dict[str, str] = {}
    for d in member_dirs:
        doc = load_pyproject(d / "pyproject.toml")
        name = get_project_name(doc, d.name)
        if name in docs:
            raise WorkspaceError(
                f"Package {name} is defined in both {folders[name]} and "
                f"{d.relative_to(root).as_posix()}"
            )
        docs[name] = doc
        versions[name] = get_project_version(doc)
        folders[name] = d.relative_to(root).as_posix()

    # Second pass: identify which deps are internal (within workspace)
    nodes: list[PackageNode] = []
    for name, doc in docs.items():
        prod: dict[str, str] = {}
        dev: dict[str, str] = {}
        for location, items, is_production in iter_dependency_lists(doc):
            for item in items:
                if not isinstance(item, str):
                    continue
                try:
                    dep_name = dep_canonical_name(item)
                except InvalidRequirement as exc:
                    raise WorkspaceError(
                        f"{folders[name]}/pyproject.toml {location}: {exc}"
                    ) from exc
                # Only track internal deps, ignore external packages
                if dep_name == name or dep_name not in docs:
                    continue
                target = prod if is_production else dev
                target.setdefault(dep_name, dep_specifier(item))
        for dep_name in prod:
            dev.pop(dep_name, None)
        nodes.append(
            PackageNode(
                name=name,
                version=versions[name],
                folder=folders[name],
                prod_dependencies=prod,
                dev_dependencies=dev,
            )
        )

    return DependencyGraph(nodes)
