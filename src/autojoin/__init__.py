"""
AutoJoin - Join Path Resolution over Schema Relationship Graphs

Builds a directed graph of tables from introspected foreign keys and answers
"how do I join these tables" for any requested subset.

Features:
- Table graph with forward and reverse edges per foreign key
- Depth-bounded enumeration of the cheapest paths between tables
- Greedy join-tree selection and deterministic join SQL
- User-declared custom references merged into the graph
- PlantUML export of graphs, exit paths and join trees
"""

__version__ = "0.1.0"
__author__ = "AutoJoin Developers"

from autojoin.models import (
    Cardinality,
    ColumnPair,
    CustomReference,
    Edge,
    ForeignKeyConstraint,
    JoinEdge,
    JoinRef,
    JoinRefsResult,
    JoinResult,
    JoinStatus,
    JoinTree,
    PathObj,
    PathsIndex,
    SchemaDescription,
    SchemaFormatError,
    TableGraph,
    TableSchema,
)
from autojoin.config import SearchSettings, load_settings

from autojoin.graph import (
    build_exit_payloads,
    build_graph,
    compute_paths_for_tables,
    compute_paths_index,
    deserialize_graph,
    serialize_graph,
)

from autojoin.joins import find_join_paths, get_joins, select_join_tree

from autojoin.references import (
    add_custom_reference,
    rebuild_graph,
    remove_custom_reference,
)

__all__ = [
    # Core models
    "Cardinality",
    "ColumnPair",
    "CustomReference",
    "Edge",
    "ForeignKeyConstraint",
    "JoinEdge",
    "JoinRef",
    "JoinRefsResult",
    "JoinResult",
    "JoinStatus",
    "JoinTree",
    "PathObj",
    "PathsIndex",
    "SchemaDescription",
    "SchemaFormatError",
    "TableGraph",
    "TableSchema",
    # Configuration
    "SearchSettings",
    "load_settings",
    # Graph
    "build_exit_payloads",
    "build_graph",
    "compute_paths_for_tables",
    "compute_paths_index",
    "deserialize_graph",
    "serialize_graph",
    # Joins
    "find_join_paths",
    "get_joins",
    "select_join_tree",
    # Custom references
    "add_custom_reference",
    "rebuild_graph",
    "remove_custom_reference",
]
