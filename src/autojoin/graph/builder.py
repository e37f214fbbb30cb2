"""
Schema Model Builder - turns table/FK metadata into a table graph.

Every usable foreign key contributes two directed edges: a forward edge from
the referencing table to the referenced one and a reverse edge back, with the
column pairs swapped and the cardinality inverted. The graph is always built
from scratch; callers rebuild it whenever metadata or custom references change.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Set, Tuple, Union

from autojoin.config import DEFAULT_SETTINGS, SearchSettings
from autojoin.models import (
    Cardinality,
    Edge,
    ForeignKeyConstraint,
    NodeMeta,
    SchemaDescription,
    TableGraph,
)

logger = logging.getLogger(__name__)

REVERSED_SUFFIX = "__rev"


def create_edge_id(
    source_table: str,
    constraint_name: str,
    target_table: str,
    reversed: bool = False,
) -> str:
    """Stable edge id: ``source__constraint__target`` plus ``__rev`` for reverse edges."""
    suffix = REVERSED_SUFFIX if reversed else ""
    return f"{source_table}__{constraint_name}__{target_table}{suffix}"


def infer_cardinality(fk: ForeignKeyConstraint, reversed: bool = False) -> Cardinality:
    """
    Cardinality of an edge derived from ``fk``.

    A plain catalog FK points from many child rows to one parent row, so the
    forward edge defaults to N:1. The reverse edge inverts whatever the
    forward edge carries.
    """
    forward = fk.cardinality if fk.cardinality is not None else Cardinality.MANY_TO_ONE
    return forward.inverted() if reversed else forward


def parse_nodes(schema: SchemaDescription) -> List[NodeMeta]:
    """Node metadata for each distinct table, in schema order."""
    nodes: List[NodeMeta] = []
    seen: Set[str] = set()
    for table in schema.tables:
        if table.table_name in seen:
            logger.warning(f"Duplicate table {table.table_name!r} in schema, keeping the first")
            continue
        seen.add(table.table_name)
        nodes.append(NodeMeta(
            table_name=table.table_name,
            primary_key=list(table.primary_key),
            foreign_keys=[fk.column_pairs[0].source_column for fk in table.foreign_keys if fk.column_pairs],
            columns=table.column_names,
        ))
    return nodes


def build_edges(fk: ForeignKeyConstraint) -> Tuple[Edge, Edge]:
    """Forward and reverse edge for one foreign key."""
    forward = Edge(
        id=create_edge_id(fk.source_table, fk.constraint_name, fk.target_table),
        source=fk.source_table,
        target=fk.target_table,
        constraint_name=fk.constraint_name,
        column_pairs=list(fk.column_pairs),
        cardinality=infer_cardinality(fk),
        reversed=False,
        is_custom=fk.is_custom,
    )
    reverse = Edge(
        id=create_edge_id(fk.source_table, fk.constraint_name, fk.target_table, reversed=True),
        source=fk.target_table,
        target=fk.source_table,
        constraint_name=fk.constraint_name,
        column_pairs=[pair.swapped() for pair in fk.column_pairs],
        cardinality=infer_cardinality(fk, reversed=True),
        reversed=True,
        is_custom=fk.is_custom,
    )
    return forward, reverse


def build_graph(
    schema: Union[SchemaDescription, Dict[str, Any]],
    settings: SearchSettings = DEFAULT_SETTINGS,
) -> TableGraph:
    """
    Build the table graph for a schema.

    Foreign keys are skipped when they reference their own table, when either
    endpoint is not a table of the schema, or when their edge id is already
    taken. With ``settings.parallel_edges`` disabled only the first FK of each
    ordered (source, target) pair is kept.

    Args:
        schema: SchemaDescription or its dictionary form
        settings: Search settings

    Returns:
        TableGraph with one adjacency list per table
    """
    if not isinstance(schema, SchemaDescription):
        schema = SchemaDescription.from_dict(schema)

    graph = TableGraph()
    for meta in parse_nodes(schema):
        graph.add_node(meta)

    connections: Set[Tuple[str, str]] = set()
    skipped = 0

    for fk in schema.foreign_keys():
        if fk.is_self_reference:
            logger.debug(f"Skipping self-referencing FK {fk.constraint_name} on {fk.source_table}")
            skipped += 1
            continue

        if fk.source_table not in graph or fk.target_table not in graph:
            logger.debug(
                f"Skipping FK {fk.constraint_name}: {fk.source_table} -> {fk.target_table} "
                f"references a table outside the schema"
            )
            skipped += 1
            continue

        connection = (fk.source_table, fk.target_table)
        if not settings.parallel_edges and connection in connections:
            logger.debug(
                f"Skipping FK {fk.constraint_name}: {fk.source_table} -> {fk.target_table} already connected"
            )
            skipped += 1
            continue

        forward, reverse = build_edges(fk)
        if graph.edge(forward.id) is not None:
            logger.debug(f"Skipping duplicate constraint {fk.constraint_name} on {fk.source_table}")
            skipped += 1
            continue

        graph.add_edge(forward)
        graph.add_edge(reverse)
        connections.add(connection)

    logger.info(
        f"Built table graph: {graph.node_count} tables, {graph.edge_count} edges "
        f"({skipped} foreign keys skipped)"
    )
    return graph
