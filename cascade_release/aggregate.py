"""Bump aggregation: merge change requests and propagate bumps.

Turns the requests from every change file into one BumpPlan per affected
package:

1. Merge requests per package, resolving conflicting severities.
2. Seed propagation with every package that asked for a real bump.
3. Walk production reverse edges breadth-first, giving each dependent
   without its own request a DEPENDENCY bump.
4. Compute the new version for every affected package.
"""

from __future__ import annotations

from collections import defaultdict, deque
from collections.abc import Iterable

from .config import ConflictPolicy, DependencyBump, ReleaseConfig
from .errors import ConflictingChangeTypes, InvalidVersion
from .graph import DependencyGraph
from .models import BumpPlan, ChangeFile, ChangeRequest, ChangeType
from .versions import bump_version


def merge_requests(
    requests: Iterable[ChangeRequest],
    graph: DependencyGraph,
    policy: ConflictPolicy = ConflictPolicy.MAX,
) -> dict[int, ChangeType]:
    """Merge requests into one explicit severity per package index.

    Packages whose requests are all NONE are left out.

    Raises:
        UnknownPackage: If a request names a package not in the graph.
        ConflictingChangeTypes: Under the STRICT policy, if one package is
            requested with different non-NONE severities.
    """
    seen: dict[int, set[ChangeType]] = defaultdict(set)
    for request in requests:
        seen[graph.index_of(request.package_name)].add(request.change_type)

    merged: dict[int, ChangeType] = {}
    for index, types in seen.items():
        types.discard(ChangeType.NONE)
        if not types:
            continue
        if policy is ConflictPolicy.STRICT and len(types) > 1:
            raise ConflictingChangeTypes(
                graph.node(index).name, (t.value for t in types)
            )
        merged[index] = max(types)
    return merged


def propagate(
    graph: DependencyGraph,
    explicit: dict[int, ChangeType],
    mode: DependencyBump = DependencyBump.PATCH,
) -> dict[int, ChangeType]:
    """Spread bumps to production dependents until nothing changes.

    Every package reached through production edges that has no explicit
    severity gets a DEPENDENCY bump. The return value maps each such package
    to the level its version should be incremented by: PATCH, or under
    INHERIT the highest level among the bumps that reached it.

    A package is re-queued only when its level goes up, and levels are
    bounded, so the walk ends on cyclic graphs too.
    """
    levels: dict[int, ChangeType] = {}
    queue = deque(sorted(explicit, key=lambda i: graph.node(i).name))

    while queue:
        node = queue.popleft()
        upstream = explicit.get(node) or levels[node]
        inherited = upstream if mode is DependencyBump.INHERIT else ChangeType.PATCH
        for dependent in graph.dependents_of(node):
            if dependent in explicit:
                continue
            current = levels.get(dependent)
            if current is not None and current >= inherited:
                continue
            levels[dependent] = inherited
            queue.append(dependent)

    return levels


def aggregate(
    changes: Iterable[ChangeFile | ChangeRequest],
    graph: DependencyGraph,
    config: ReleaseConfig | None = None,
) -> dict[str, BumpPlan]:
    """Compute the bump plan for every affected package.

    Args:
        changes: Parsed change files, or bare change requests.
        graph: Workspace snapshot.
        config: Conflict and dependency-bump policies. Defaults apply when
            omitted.

    Returns:
        Map of package name → BumpPlan, only for affected packages, keyed in
        registry order.

    Raises:
        UnknownPackage: A request names a package not in the graph.
        InvalidVersion: An affected package's version is not valid semver.
        ConflictingChangeTypes: Differing severities under STRICT policy.
    """
    config = config or ReleaseConfig()
    requests: list[ChangeRequest] = []
    for change in changes:
        if isinstance(change, ChangeFile):
            requests.extend(change.requests)
        else:
            requests.append(change)

    explicit = merge_requests(requests, graph, config.conflict_policy)
    propagated = propagate(graph, explicit, config.dependency_bump)

    plan: dict[str, BumpPlan] = {}
    for index in sorted({*explicit, *propagated}):
        node = graph.node(index)
        is_explicit = index in explicit
        level = explicit[index] if is_explicit else propagated[index]
        try:
            new_version = bump_version(node.version, level)
        except ValueError:
            raise InvalidVersion(node.name, node.version) from None
        plan[node.name] = BumpPlan(
            package_name=node.name,
            old_version=node.version,
            new_version=new_version,
            change_type=level if is_explicit else ChangeType.DEPENDENCY,
            explicit=is_explicit,
        )
    return plan
