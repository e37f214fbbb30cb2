"""
Join resolution use cases.

``find_join_paths`` answers "how do I query these tables together" with a join
graph and the SQL that joins it. ``get_joins`` answers the same question for
the join-path editor with structured, ordered joins. Both compute paths only
for the requested tables and report ordinary failures as statuses.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Sequence, Union

from autojoin.config import DEFAULT_SETTINGS, SearchSettings
from autojoin.graph.paths import compute_paths_for_tables
from autojoin.graph.serializer import graph_from_entries
from autojoin.joins.sql import build_join_refs, plan_joins, render_join_sql
from autojoin.joins.tree import select_join_tree, unique_tables
from autojoin.models import (
    JoinEdge,
    JoinRefsResult,
    JoinResult,
    JoinStatus,
    JoinTree,
    SchemaDescription,
    TableGraph,
)
from autojoin.references import graph_for_schema

logger = logging.getLogger(__name__)

GraphSource = Union[TableGraph, SchemaDescription, Dict[str, Any]]


def resolve_graph(source: GraphSource, settings: SearchSettings = DEFAULT_SETTINGS) -> TableGraph:
    """
    TableGraph for a graph, a schema, or the dictionary form of either.

    Schemas go through :func:`graph_for_schema`. Dictionaries with
    ``nodes``/``adj`` (or a ``graph`` wrapper) are read as stored graphs.
    """
    if isinstance(source, TableGraph):
        return source
    if isinstance(source, dict) and ("nodes" in source or "graph" in source):
        return graph_from_entries(source)
    if not isinstance(source, SchemaDescription):
        source = SchemaDescription.from_dict(source)
    return graph_for_schema(source, settings)


def _select(graph: TableGraph, requested: List[str], settings: SearchSettings) -> JoinTree:
    paths_index = compute_paths_for_tables(graph, requested, settings)
    tree = select_join_tree(requested, paths_index)
    logger.debug(f"Join tree: {len(tree.nodes)} tables, {len(tree.edge_ids)} edges")
    return tree


def _join_edges(graph: TableGraph, tree: JoinTree) -> List[JoinEdge]:
    join_graph = []
    for edge_id in tree.edge_ids:
        edge = graph.edge(edge_id)
        if edge is None:
            raise KeyError(f"Edge not found: {edge_id}")
        join_graph.append(JoinEdge.from_edge(edge))
    return join_graph


def _missing(graph: TableGraph, requested: Sequence[str]) -> List[str]:
    return [name for name in requested if name not in graph]


def find_join_paths(
    source: GraphSource,
    table_names: Sequence[str],
    settings: SearchSettings = DEFAULT_SETTINGS,
) -> JoinResult:
    """
    Find the join graph and join SQL connecting ``table_names``.

    Args:
        source: Table graph, schema description, or their dictionary forms
        table_names: Tables to query together; the first one roots the join
        settings: Search settings

    Returns:
        JoinResult with status ``ok``, ``disconnected`` or ``ambiguous``

    Raises:
        SchemaFormatError: if ``source`` is malformed
    """
    if table_names is None:
        raise TypeError("table_names must be a sequence of table names")

    requested = unique_tables(table_names)
    if not requested:
        return JoinResult(status=JoinStatus.DISCONNECTED, message="No tables selected")

    graph = resolve_graph(source, settings)

    missing = _missing(graph, requested)
    if missing:
        return JoinResult(
            status=JoinStatus.DISCONNECTED,
            message=f"Tables not found in schema: {', '.join(missing)}",
            details={"missingTables": missing},
        )

    if len(requested) == 1:
        return JoinResult(
            status=JoinStatus.OK,
            sql=f"FROM {requested[0]}",
            message=f"Single table: {requested[0]}",
        )

    tree = _select(graph, requested, settings)
    if not tree.is_connected:
        return JoinResult(
            status=JoinStatus.DISCONNECTED,
            message=(
                f"Cannot join tables: {', '.join(requested)}; no path within "
                f"{settings.max_depth} hops to {', '.join(tree.unreachable)}"
            ),
            details={"unreachableTables": list(tree.unreachable)},
        )

    join_graph = _join_edges(graph, tree)
    sql = render_join_sql(plan_joins(requested, join_graph))

    if tree.is_ambiguous and settings.fail_on_ambiguity:
        labels = sorted({p.label for p in tree.alternatives})
        return JoinResult(
            status=JoinStatus.AMBIGUOUS,
            join_graph=join_graph,
            sql=sql,
            message=f"Multiple equally short join paths for {', '.join(requested)}",
            details={"alternatives": labels},
        )

    return JoinResult(
        status=JoinStatus.OK,
        join_graph=join_graph,
        sql=sql,
        message=f"Found join path for {len(requested)} tables",
    )


def get_joins(
    source: GraphSource,
    table_names: Sequence[str],
    settings: SearchSettings = DEFAULT_SETTINGS,
) -> JoinRefsResult:
    """
    Suggested joins for the join-path editor.

    Joins are ordered outward from the root table, each oriented so that its
    source table is already part of the join.
    """
    if table_names is None:
        raise TypeError("table_names must be a sequence of table names")

    requested = unique_tables(table_names)
    if not requested:
        return JoinRefsResult(status=JoinStatus.DISCONNECTED, message="No tables selected")

    graph = resolve_graph(source, settings)

    missing = _missing(graph, requested)
    if missing:
        return JoinRefsResult(
            status=JoinStatus.DISCONNECTED,
            message=f"Tables not found in schema: {', '.join(missing)}",
        )

    if len(requested) == 1:
        return JoinRefsResult(status=JoinStatus.OK, message=f"Single table: {requested[0]}")

    tree = _select(graph, requested, settings)
    if not tree.is_connected:
        return JoinRefsResult(
            status=JoinStatus.DISCONNECTED,
            message=f"No join path found between the selected tables: {', '.join(tree.unreachable)}",
        )

    joins = build_join_refs(plan_joins(requested, _join_edges(graph, tree)))

    if tree.is_ambiguous and settings.fail_on_ambiguity:
        return JoinRefsResult(
            status=JoinStatus.AMBIGUOUS,
            joins=joins,
            message=f"Multiple equally short join paths for {', '.join(requested)}",
        )

    logger.info(f"Returning {len(joins)} joins for {len(requested)} tables")
    return JoinRefsResult(
        status=JoinStatus.OK,
        joins=joins,
        message=f"Found {len(joins)} join(s) connecting {len(requested)} tables",
    )
