"""
Persisted form of the table graph.

The graph is stored beside the connection record as plain entry lists,
``{"nodes": [[name, NodeMeta], ...], "adj": [[name, [Edge, ...]], ...]}``,
and must be turned back into a TableGraph before use.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, Union

from autojoin.models import Edge, NodeMeta, PathsIndex, SchemaFormatError, TableGraph

logger = logging.getLogger(__name__)


def graph_to_entries(graph: TableGraph) -> Dict[str, Any]:
    """Node and adjacency entry lists in table order."""
    return {
        "nodes": [[name, meta.to_dict()] for name, meta in graph.nodes.items()],
        "adj": [[name, [e.to_dict() for e in edges]] for name, edges in graph.adj.items()],
    }


def graph_from_entries(data: Dict[str, Any]) -> TableGraph:
    """
    Rebuild a TableGraph from its entry lists.

    Accepts the bare entry lists or the ``{"graph": {...}}`` wrapper stored in
    a connection's auto-join info.

    Raises:
        SchemaFormatError: if the entries are missing or inconsistent
    """
    if isinstance(data, dict) and "nodes" not in data and isinstance(data.get("graph"), dict):
        data = data["graph"]
    if not isinstance(data, dict) or not isinstance(data.get("nodes"), list) or not isinstance(data.get("adj"), list):
        raise SchemaFormatError("Stored graph must contain 'nodes' and 'adj' entry lists")

    graph = TableGraph()
    for entry in data["nodes"]:
        name, meta = _split_entry(entry, "node")
        node = NodeMeta.from_dict(meta)
        if node.table_name != name:
            raise SchemaFormatError(f"Node entry {name!r} holds metadata for {node.table_name!r}")
        graph.add_node(node)

    for entry in data["adj"]:
        name, edges = _split_entry(entry, "adjacency")
        if name not in graph:
            raise SchemaFormatError(f"Adjacency entry for unknown table {name!r}")
        for raw_edge in edges:
            edge = Edge.from_dict(raw_edge)
            if edge.source != name:
                raise SchemaFormatError(f"Edge {edge.id} stored under {name!r} starts at {edge.source!r}")
            graph.add_edge(edge)

    return graph


def _split_entry(entry: Any, kind: str):
    if not isinstance(entry, (list, tuple)) or len(entry) != 2:
        raise SchemaFormatError(f"Malformed {kind} entry: expected [name, value]")
    return entry[0], entry[1]


def serialize_graph(graph: TableGraph) -> str:
    return json.dumps(graph_to_entries(graph), indent=2)


def deserialize_graph(text: str) -> TableGraph:
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise SchemaFormatError(f"Stored graph is not valid JSON: {e}") from e
    return graph_from_entries(data)


def serialize_paths(paths_index: PathsIndex) -> str:
    return json.dumps(paths_index.to_dict(), indent=2)


def save_graph(graph: TableGraph, path: Union[str, Path]) -> Path:
    """Write the graph's entry lists to a JSON file."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w") as f:
        f.write(serialize_graph(graph))
    logger.info(f"Saved graph with {graph.node_count} tables to {path}")
    return path


def load_graph(path: Union[str, Path]) -> TableGraph:
    with open(Path(path), "r") as f:
        graph = deserialize_graph(f.read())
    logger.info(f"Loaded graph with {graph.node_count} tables, {graph.edge_count} edges from {path}")
    return graph
