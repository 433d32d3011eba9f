"""Dependency graph utilities.

Provides topological sorting for determining publish order in a workspace.
Crates must be published in dependency order: when crate A depends on
crate B, the registry rejects A until B is visible there.
"""

from __future__ import annotations

import heapq
from collections import deque
from collections.abc import Mapping, Sequence

from .errors import CycleError, ManifestError
from .models import Package, PublishGap


def topo_sort(deps: Mapping[str, Sequence[str]]) -> list[str]:
    """Topologically sort nodes by their dependencies.

    Uses Kahn's algorithm, always taking the alphabetically smallest node
    whose dependencies are satisfied, so the order is stable across runs.

    Args:
        deps: Map of node → names it depends on. Names that are not keys of
              the map are ignored (they are already published).

    Returns:
        Node names in publish order (dependencies first).

    Raises:
        CycleError: If a dependency cycle is detected.

    Example:
        If A depends on B, and B depends on C:
        topo_sort({A: [B], B: [C], C: []}) → [C, B, A]
    """
    # Count incoming edges (dependencies) for each node
    in_degree = {n: 0 for n in deps}
    # Track reverse dependencies (who depends on each node)
    reverse_deps: dict[str, list[str]] = {n: [] for n in deps}

    for name, node_deps in deps.items():
        for dep in set(node_deps):
            if dep in deps:
                in_degree[name] += 1
                reverse_deps[dep].append(name)

    ready = [n for n, d in in_degree.items() if d == 0]
    heapq.heapify(ready)
    order: list[str] = []

    while ready:
        node = heapq.heappop(ready)
        order.append(node)
        for dependent in reverse_deps[node]:
            in_degree[dependent] -= 1
            if in_degree[dependent] == 0:
                heapq.heappush(ready, dependent)

    # If we didn't process all nodes, there must be a cycle
    if len(order) != len(deps):
        done = set(order)
        remaining = {n: d for n, d in deps.items() if n not in done}
        raise CycleError(find_cycle(remaining))

    return order


def find_cycle(deps: Mapping[str, Sequence[str]]) -> list[str]:
    """Find the shortest dependency cycle among the given nodes.

    Runs a BFS from every node back to itself. Ties between equally short
    cycles go to the alphabetically smallest sequence. The returned cycle
    starts at its smallest name; each entry depends on the next one, and the
    last depends on the first.

    Returns:
        The cycle, or an empty list if the graph is acyclic.
    """
    best: list[str] = []
    for start in sorted(deps):
        parent: dict[str, str] = {}
        queue = deque([start])
        found = False
        while queue and not found:
            node = queue.popleft()
            for dep in sorted(set(deps[node])):
                if dep not in deps:
                    continue
                if dep == start:
                    path = [node]
                    while path[-1] != start:
                        path.append(parent[path[-1]])
                    cycle = path[::-1]
                    if not best or (len(cycle), cycle) < (len(best), best):
                        best = cycle
                    found = True
                    break
                if dep not in parent:
                    parent[dep] = node
                    queue.append(dep)

    if best:
        pivot = best.index(min(best))
        best = best[pivot:] + best[:pivot]
    return best


def check_dependencies(
    gaps: Sequence[PublishGap], packages: Mapping[str, Package]
) -> None:
    """Ensure every package about to be published can have its deps satisfied.

    A dependency that is not part of this release must either already be on
    the registry or be published now; a dependency on an unpublishable or
    unknown package can never be satisfied.

    Raises:
        ManifestError: Naming the first offending dependency.
    """
    for gap in gaps:
        for dep in packages[gap.name].deps:
            if dep not in packages:
                raise ManifestError(
                    f"package `{gap.name}` depends on `{dep}`, "
                    "which is not a workspace package"
                )
            if not packages[dep].publishable:
                raise ManifestError(
                    f"package `{gap.name}` depends on `{dep}`, "
                    "which cannot be published"
                )


def publish_order(
    gaps: Sequence[PublishGap], packages: Mapping[str, Package]
) -> list[PublishGap]:
    """Order the publish gaps so every package follows its dependencies.

    Only edges between packages in the gap set constrain the order.

    Raises:
        ManifestError: If a dependency can never be satisfied.
        CycleError: If the packages to publish depend on each other in a cycle.
    """
    check_dependencies(gaps, packages)
    by_name = {gap.name: gap for gap in gaps}
    order = topo_sort({name: packages[name].deps for name in by_name})
    return [by_name[name] for name in order]
