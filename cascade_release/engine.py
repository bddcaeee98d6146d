"""Engine entry point: change files + workspace snapshot → release plan."""

from __future__ import annotations

from pathlib import Path

from .aggregate import aggregate
from .changes import load_change_files
from .config import ReleaseConfig
from .graph import DependencyGraph, publish_order
from .models import ChangeFile, ReleasePlan


def plan_from_changes(
    graph: DependencyGraph,
    change_files: list[ChangeFile],
    config: ReleaseConfig | None = None,
) -> ReleasePlan:
    """Aggregate parsed change files and order the result for publishing."""
    bumps = aggregate(change_files, graph, config)
    order = publish_order(graph, bumps)
    return ReleasePlan(
        bumps=[bumps[name] for name in order],
        change_files=[f.path for f in change_files],
    )


def compute_plan(
    graph: DependencyGraph,
    change_folder: Path,
    config: ReleaseConfig | None = None,
) -> ReleasePlan:
    """Compute the release plan for the change files in ``change_folder``.

    Reads change files but writes nothing, so the result is safe to discard.
    An empty or missing folder gives an empty plan.

    Raises:
        InvalidChangeFile, UnknownPackage, InvalidVersion, CyclicDependency,
        ConflictingChangeTypes: The run is aborted; no partial plan exists.
    """
    config = config or ReleaseConfig()
    change_files = load_change_files(change_folder, config.workers)
    return plan_from_changes(graph, change_files, config)
