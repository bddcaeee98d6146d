"""Package mutator: turn a bump plan into manifest edits.

For each affected package, [project].version is set to the new version. For
every package in the workspace, requirements on an affected package are
widened to admit its new version, in all locations:
- [project].dependencies
- [project].optional-dependencies.*
- [dependency-groups].*

Uses tomlkit to preserve formatting and comments.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from pathlib import Path

import tomlkit

from .deps import admit_version, dep_canonical_name
from .errors import WorkspaceError
from .graph import DependencyGraph
from .models import BumpPlan, ManifestEdit, PackageNode
from .toml import iter_dependency_lists, load_pyproject, save_pyproject


def _as_mapping(
    bumps: Mapping[str, BumpPlan] | Iterable[BumpPlan],
) -> dict[str, BumpPlan]:
    if isinstance(bumps, Mapping):
        return dict(bumps)
    return {bump.package_name: bump for bump in bumps}


def _touches(node: PackageNode, bumps: Mapping[str, BumpPlan]) -> bool:
    return (
        node.name in bumps
        or any(dep in bumps for dep in node.prod_dependencies)
        or any(dep in bumps for dep in node.dev_dependencies)
    )


def _edit_manifest(
    doc: tomlkit.TOMLDocument,
    node: PackageNode,
    manifest: str,
    bumps: Mapping[str, BumpPlan],
) -> list[ManifestEdit]:
    """Apply the plan to one parsed manifest in place and describe the edits."""
    edits: list[ManifestEdit] = []

    bump = bumps.get(node.name)
    if bump is not None:
        project = doc.get("project")
        if project is None:
            raise WorkspaceError(f"{manifest} has no [project] table")
        edits.append(
            ManifestEdit(
                package_name=node.name,
                manifest=manifest,
                location="version",
                old=str(project.get("version", "")),
                new=bump.new_version,
            )
        )
        project["version"] = bump.new_version

    for location, items, _ in iter_dependency_lists(doc):
        for i, item in enumerate(items):
            if not isinstance(item, str):
                continue
            dep_name = dep_canonical_name(item)
            if dep_name == node.name or dep_name not in bumps:
                continue
            new_item = admit_version(item, bumps[dep_name].new_version)
            edits.append(
                ManifestEdit(
                    package_name=node.name,
                    manifest=manifest,
                    location=location,
                    dependency=dep_name,
                    old=str(item),
                    new=new_item,
                )
            )
            if new_item != item:
                items[i] = new_item

    return edits


def apply_bumps(
    graph: DependencyGraph,
    bumps: Mapping[str, BumpPlan] | Iterable[BumpPlan],
    root: Path,
    *,
    dry_run: bool = True,
) -> list[ManifestEdit]:
    """Compute, and unless ``dry_run`` write, the manifest edits for a plan.

    Every requirement on an affected package is reported, including those
    that already admit the new version (``edit.changed`` is False for them),
    so running twice with the same plan yields the same target values.

    Args:
        graph: Workspace snapshot; package folders are relative to ``root``.
        bumps: Bump plan, as a name → BumpPlan map or a sequence.
        root: Workspace root.
        dry_run: When True (default), nothing is written.

    Returns:
        Edits in registry order, version edit first within each manifest.
    """
    bumps = _as_mapping(bumps)
    edits: list[ManifestEdit] = []
    if not bumps:
        return edits

    # Edit every manifest in memory first so a failure leaves disk untouched
    pending: list[tuple[Path, tomlkit.TOMLDocument]] = []
    for node in graph.packages():
        if not _touches(node, bumps):
            continue
        manifest = f"{node.folder}/pyproject.toml"
        path = root / manifest
        doc = load_pyproject(path)
        node_edits = _edit_manifest(doc, node, manifest, bumps)
        edits.extend(node_edits)
        if any(edit.changed for edit in node_edits):
            pending.append((path, doc))

    if not dry_run:
        for path, doc in pending:
            save_pyproject(path, doc)

    return edits


def plan_manifest_edits(
    graph: DependencyGraph,
    bumps: Mapping[str, BumpPlan] | Iterable[BumpPlan],
    root: Path,
) -> list[ManifestEdit]:
    """The edits ``apply_bumps`` would make, without touching disk."""
    return apply_bumps(graph, bumps, root, dry_run=True)


def edited_manifests(edits: Iterable[ManifestEdit]) -> list[str]:
    """Manifests with at least one changed value, in first-seen order."""
    seen: dict[str, None] = {}
    for edit in edits:
        if edit.changed:
            seen.setdefault(edit.manifest)
    return list(seen)
