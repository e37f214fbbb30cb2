"""
Join Tree Selector - greedy approximate Steiner tree over the paths index.

Starting from the first requested table, the selector repeatedly attaches the
cheapest known path from any covered table to any uncovered requested table
until everything is covered or nothing else is reachable. The result is an
approximation; it is not guaranteed to be the minimum-cost tree.
"""

from __future__ import annotations

import logging
from typing import Dict, List, Sequence

from autojoin.models import JoinTree, PathObj, PathsIndex

logger = logging.getLogger(__name__)


def unique_tables(tables: Sequence[str]) -> List[str]:
    """Requested table names with duplicates removed, first occurrence kept."""
    return list(dict.fromkeys(tables))


def _equal_cost_alternatives(best: PathObj, candidates: List[PathObj]) -> List[PathObj]:
    """Other candidates that reach the same table at the same cost by a different route."""
    best_edges = set(best.edges)
    return [
        c for c in candidates
        if c is not best
        and c.end == best.end
        and c.cost == best.cost
        and set(c.edges) != best_edges
    ]


def select_join_tree(tables: Sequence[str], paths_index: PathsIndex) -> JoinTree:
    """
    Select the tables and edges that connect ``tables``.

    Args:
        tables: Requested table names; the first one seeds the tree
        paths_index: Best paths between (at least) the requested tables

    Returns:
        JoinTree; ``unreachable`` lists requested tables no path could attach
    """
    requested = unique_tables(tables)
    if not requested:
        return JoinTree()
    if len(requested) == 1:
        return JoinTree(nodes=list(requested))

    seed = requested[0]
    covered: List[str] = [seed]
    nodes: Dict[str, None] = {seed: None}
    edge_ids: Dict[str, None] = {}
    alternatives: List[PathObj] = []

    while len(covered) < len(requested):
        candidates: List[PathObj] = []
        for target in requested:
            if target in covered:
                continue
            for source in covered:
                candidates.extend(paths_index.get_paths(source, target))

        if not candidates:
            break

        best = min(candidates, key=PathObj.sort_key)
        ties = _equal_cost_alternatives(best, candidates)
        if ties:
            logger.debug(
                f"{len(ties)} equal-cost alternative(s) to {best.label}: "
                f"{', '.join(t.label for t in ties)}"
            )
            alternatives.extend(ties)

        logger.debug(f"Attaching path {best.label} (cost {best.cost})")
        for edge_id in best.edges:
            edge_ids.setdefault(edge_id, None)
        for node in best.nodes:
            nodes.setdefault(node, None)
            # Requested tables passed on the way are covered too
            if node in requested and node not in covered:
                covered.append(node)

    unreachable = [t for t in requested if t not in covered]
    if unreachable:
        logger.info(f"No join path from {', '.join(covered)} to {', '.join(unreachable)}")

    return JoinTree(
        nodes=list(nodes),
        edge_ids=list(edge_ids),
        unreachable=unreachable,
        alternatives=alternatives,
    )
