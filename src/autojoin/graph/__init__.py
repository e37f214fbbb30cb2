"""
Table graph construction, path search and persistence.

Usage:
    from autojoin.graph import build_graph, compute_paths_for_tables

    graph = build_graph(schema)
    index = compute_paths_for_tables(graph, ["payment", "film"])
"""

from autojoin.graph.builder import build_graph, create_edge_id, infer_cardinality, parse_nodes
from autojoin.graph.exits import build_exit_payloads, deduplicate_paths, is_prefix
from autojoin.graph.paths import (
    calculate_path_cost,
    compute_paths_for_tables,
    compute_paths_index,
    find_best_paths,
    find_paths,
)
from autojoin.graph.serializer import (
    deserialize_graph,
    graph_from_entries,
    graph_to_entries,
    load_graph,
    save_graph,
    serialize_graph,
    serialize_paths,
)

__all__ = [
    "build_graph",
    "create_edge_id",
    "infer_cardinality",
    "parse_nodes",
    "build_exit_payloads",
    "deduplicate_paths",
    "is_prefix",
    "calculate_path_cost",
    "compute_paths_for_tables",
    "compute_paths_index",
    "find_best_paths",
    "find_paths",
    "deserialize_graph",
    "graph_from_entries",
    "graph_to_entries",
    "load_graph",
    "save_graph",
    "serialize_graph",
    "serialize_paths",
]
