"""
Path Enumerator and Paths Index.

Paths are found with a depth-bounded depth-first search that never revisits a
table already on the current path. Each path is scored by hop count plus a
penalty for every many-to-many edge it crosses, and only the cheapest
``k_shortest`` paths per (start, target) pair are kept.

The search runs on the graph's integer indices; table names are only
materialized when a path is recorded.
"""

from __future__ import annotations

import logging
from typing import Callable, Dict, Iterable, List, Optional, Sequence, Set

from autojoin.config import DEFAULT_SETTINGS, SearchSettings
from autojoin.models import Cardinality, Edge, PathObj, PathsIndex, TableGraph

logger = logging.getLogger(__name__)

# Called with (reached index, node stack, edge stack); returns whether to keep expanding
_ReachCallback = Callable[[int, List[int], List[Edge]], bool]


def calculate_path_cost(edges: Sequence[Edge], settings: SearchSettings = DEFAULT_SETTINGS) -> float:
    """Hop cost per edge plus a penalty for each N:N edge."""
    cost = len(edges) * settings.hop_cost
    for edge in edges:
        if edge.cardinality is Cardinality.MANY_TO_MANY:
            cost += settings.n_to_n_penalty
    return cost


def create_path_label(nodes: Sequence[str]) -> str:
    return "->".join(nodes)


def _make_path(
    graph: TableGraph,
    node_stack: Sequence[int],
    edge_stack: Sequence[Edge],
    settings: SearchSettings,
) -> PathObj:
    nodes = [graph.name_of(i) for i in node_stack]
    return PathObj(
        nodes=nodes,
        edges=[e.id for e in edge_stack],
        cost=calculate_path_cost(edge_stack, settings),
        label=create_path_label(nodes),
    )


def _walk(graph: TableGraph, start: int, settings: SearchSettings, on_reach: _ReachCallback) -> None:
    """Depth-first enumeration of simple paths from ``start`` up to ``max_depth`` edges."""
    on_path = [False] * graph.node_count
    on_path[start] = True
    node_stack = [start]
    edge_stack: List[Edge] = []

    def visit(current: int, depth: int) -> None:
        if depth > 0 and not on_reach(current, node_stack, edge_stack):
            return
        if depth >= settings.max_depth:
            return
        for edge in graph.neighbors(current):
            nxt = edge.target_index
            # Covers the immediate predecessor as well
            if on_path[nxt]:
                continue
            on_path[nxt] = True
            node_stack.append(nxt)
            edge_stack.append(edge)
            visit(nxt, depth + 1)
            edge_stack.pop()
            node_stack.pop()
            on_path[nxt] = False

    visit(start, 0)


def sort_paths(paths: Iterable[PathObj], k: Optional[int] = None) -> List[PathObj]:
    """Cheapest first with a deterministic tie-break; optionally keep the top ``k``."""
    ordered = sorted(paths, key=PathObj.sort_key)
    return ordered if k is None else ordered[:k]


def find_paths(
    graph: TableGraph,
    start: str,
    target: str,
    settings: SearchSettings = DEFAULT_SETTINGS,
) -> List[PathObj]:
    """
    All simple paths from ``start`` to ``target`` within ``max_depth`` edges.

    Paths are returned in discovery order; an empty list means the tables are
    not connected within the depth bound (or either is unknown).
    """
    start_index = graph.index_of(start)
    target_index = graph.index_of(target)
    if start_index is None or target_index is None or start_index == target_index:
        return []

    found: List[PathObj] = []

    def on_reach(current: int, node_stack: List[int], edge_stack: List[Edge]) -> bool:
        if current == target_index:
            found.append(_make_path(graph, node_stack, edge_stack, settings))
            return False
        return True

    _walk(graph, start_index, settings, on_reach)
    return found


def find_best_paths(
    graph: TableGraph,
    start: str,
    target: str,
    settings: SearchSettings = DEFAULT_SETTINGS,
) -> List[PathObj]:
    """The ``k_shortest`` cheapest paths from ``start`` to ``target``."""
    return sort_paths(find_paths(graph, start, target, settings), settings.k_shortest)


def _best_paths_from(
    graph: TableGraph,
    start: int,
    targets: Set[int],
    settings: SearchSettings,
) -> Dict[str, List[PathObj]]:
    """
    Cheapest paths from ``start`` to each of ``targets`` in a single walk.

    A simple path to a target never continues past that target, so every
    recorded path is one the per-pair search would also have found.
    """
    k = settings.k_shortest
    best: Dict[int, List[PathObj]] = {}

    def on_reach(current: int, node_stack: List[int], edge_stack: List[Edge]) -> bool:
        if current in targets:
            bucket = best.setdefault(current, [])
            bucket.append(_make_path(graph, node_stack, edge_stack, settings))
            if len(bucket) > k:
                bucket.sort(key=PathObj.sort_key)
                del bucket[k:]
        return True

    _walk(graph, start, settings, on_reach)

    # Targets in graph order keep the index layout stable
    return {
        graph.name_of(index): sort_paths(best[index], k)
        for index in sorted(best)
    }


def compute_paths_index(graph: TableGraph, settings: SearchSettings = DEFAULT_SETTINGS) -> PathsIndex:
    """
    Best paths between every ordered pair of tables.

    This is the full-schema precompute. The search is exponential in fan-out,
    so prefer :func:`compute_paths_for_tables` for interactive requests.
    """
    if graph.node_count > settings.max_tables_for_full_index:
        logger.warning(
            f"Computing full paths index over {graph.node_count} tables "
            f"(limit {settings.max_tables_for_full_index}); this may be slow"
        )

    index = PathsIndex()
    everything = set(range(graph.node_count))
    for start in range(graph.node_count):
        start_paths = _best_paths_from(graph, start, everything - {start}, settings)
        if start_paths:
            index.paths[graph.name_of(start)] = start_paths

    logger.info(f"Computed paths index: {len(index.paths)} start tables, {index.total_paths} paths")
    return index


def compute_paths_for_tables(
    graph: TableGraph,
    table_names: Sequence[str],
    settings: SearchSettings = DEFAULT_SETTINGS,
) -> PathsIndex:
    """
    Best paths between the requested tables only.

    Quadratic in the number of requested tables rather than in the schema
    size. Unknown table names are skipped.
    """
    requested: List[int] = []
    for name in table_names:
        index = graph.index_of(name)
        if index is None:
            logger.debug(f"Skipping unknown table {name!r} in path computation")
        elif index not in requested:
            requested.append(index)

    paths_index = PathsIndex()
    for start in requested:
        targets = set(requested) - {start}
        if not targets:
            continue
        start_paths = _best_paths_from(graph, start, targets, settings)
        if start_paths:
            paths_index.paths[graph.name_of(start)] = start_paths

    logger.debug(
        f"Computed paths for {len(requested)} tables: {paths_index.total_paths} paths"
    )
    return paths_index
