"""Dependency graph snapshot and publish ordering.

The graph is an arena: packages live in a tuple and edges are tuples of
integer indices into it, one adjacency list per direction. Only production
edges have a reverse index, since only they take part in bump propagation
and publish ordering.
"""

from __future__ import annotations

import heapq
from collections.abc import Iterable, Iterator

from .errors import CyclicDependency, UnknownPackage
from .models import PackageNode


class DependencyGraph:
    """Immutable snapshot of workspace packages and their internal edges.

    Args:
        packages: Package nodes in registry order.

    Raises:
        ValueError: If two nodes share a name or an edge points at a package
            that is not in the snapshot.
    """

    def __init__(self, packages: Iterable[PackageNode]) -> None:
        nodes = tuple(packages)
        index: dict[str, int] = {}
        for i, node in enumerate(nodes):
            if node.name in index:
                raise ValueError(f"Duplicate package in workspace: {node.name}")
            index[node.name] = i

        def resolve(node: PackageNode, deps: Iterable[str]) -> tuple[int, ...]:
            out = []
            for dep in sorted(deps):
                if dep not in index:
                    raise ValueError(f"{node.name} depends on unknown package {dep}")
                out.append(index[dep])
            return tuple(out)

        prod = tuple(resolve(n, n.prod_dependencies) for n in nodes)
        dev = tuple(resolve(n, n.dev_dependencies) for n in nodes)

        reverse: list[list[int]] = [[] for _ in nodes]
        for i, deps in enumerate(prod):
            for d in deps:
                reverse[d].append(i)

        self._nodes = nodes
        self._index = index
        self._prod = prod
        self._dev = dev
        # Sorted by name so every traversal visits dependents in the same order
        self._dependents = tuple(
            tuple(sorted(r, key=lambda i: nodes[i].name)) for r in reverse
        )

    def __len__(self) -> int:
        return len(self._nodes)

    def __contains__(self, name: object) -> bool:
        return name in self._index

    def __iter__(self) -> Iterator[str]:
        return (node.name for node in self._nodes)

    def packages(self) -> tuple[PackageNode, ...]:
        """All package nodes in registry order."""
        return self._nodes

    def index_of(self, name: str) -> int:
        try:
            return self._index[name]
        except KeyError:
            raise UnknownPackage(name) from None

    def node(self, index: int) -> PackageNode:
        return self._nodes[index]

    def get(self, name: str) -> PackageNode:
        return self._nodes[self.index_of(name)]

    def dependencies_of(self, index: int) -> tuple[int, ...]:
        """Production dependencies of the node at ``index``."""
        return self._prod[index]

    def dependents_of(self, index: int) -> tuple[int, ...]:
        """Nodes that depend on ``index`` through a production edge."""
        return self._dependents[index]

    def dependencies(self, name: str) -> list[str]:
        return [self._nodes[i].name for i in self._prod[self.index_of(name)]]

    def dev_dependencies(self, name: str) -> list[str]:
        return [self._nodes[i].name for i in self._dev[self.index_of(name)]]

    def dependents(self, name: str) -> list[str]:
        return [self._nodes[i].name for i in self._dependents[self.index_of(name)]]


def publish_order(graph: DependencyGraph, affected: Iterable[str]) -> list[str]:
    """Order affected packages so dependencies are published first.

    Uses Kahn's algorithm over the production edges between affected
    packages. Whenever several packages are ready, the lexicographically
    smallest name goes next, so the order is the same on every run.

    Args:
        graph: Workspace snapshot.
        affected: Names of the packages to publish.

    Returns:
        The affected names in publish order (dependencies first).

    Raises:
        UnknownPackage: If a name is not in the graph.
        CyclicDependency: If the affected packages contain a cycle. Every
            package that could not be ordered is named.

    Example:
        If A depends on B, and B depends on C:
        publish_order(graph, {A, B, C}) → [C, B, A]
    """
    members = {graph.index_of(name) for name in affected}

    # Count affected production dependencies of each affected package
    in_degree = {
        i: sum(1 for d in graph.dependencies_of(i) if d in members) for i in members
    }

    ready = [graph.node(i).name for i, deg in in_degree.items() if deg == 0]
    heapq.heapify(ready)
    order: list[str] = []

    while ready:
        name = heapq.heappop(ready)
        order.append(name)
        for dependent in graph.dependents_of(graph.index_of(name)):
            if dependent not in members:
                continue
            in_degree[dependent] -= 1
            if in_degree[dependent] == 0:
                heapq.heappush(ready, graph.node(dependent).name)

    # Anything left still waits on a package inside a cycle
    if len(order) != len(members):
        placed = set(order)
        raise CyclicDependency(
            graph.node(i).name for i in members if graph.node(i).name not in placed
        )

    return order
