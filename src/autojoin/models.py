"""
Core data models for the autojoin package.

Defines the schema description consumed from introspection, the table graph
built from it, and the path, join-tree and join-result structures produced by
the resolver. Serialized forms use the camelCase keys of the stored
connection records.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterator, List, Optional


class SchemaFormatError(ValueError):
    """Raised when schema or graph input is missing required structure."""


class Cardinality(str, Enum):
    """Relationship multiplicity seen from the edge's source table."""
    ONE_TO_ONE = "1:1"
    ONE_TO_MANY = "1:N"
    MANY_TO_ONE = "N:1"
    MANY_TO_MANY = "N:N"
    UNKNOWN = "unknown"

    def inverted(self) -> Cardinality:
        """Cardinality seen from the other end of the relationship."""
        if self is Cardinality.ONE_TO_MANY:
            return Cardinality.MANY_TO_ONE
        if self is Cardinality.MANY_TO_ONE:
            return Cardinality.ONE_TO_MANY
        return self

    @classmethod
    def parse(cls, value: Optional[str], default: Cardinality) -> Cardinality:
        if value is None or value == "":
            return default
        try:
            return cls(value)
        except ValueError:
            raise SchemaFormatError(f"Unknown cardinality: {value!r}") from None


class JoinStatus(str, Enum):
    """Outcome of a join resolution request."""
    OK = "ok"
    DISCONNECTED = "disconnected"
    AMBIGUOUS = "ambiguous"


def _require(data: Dict[str, Any], key: str, context: str) -> Any:
    if not isinstance(data, dict):
        raise SchemaFormatError(f"{context}: expected an object, got {type(data).__name__}")
    if key not in data or data[key] is None:
        raise SchemaFormatError(f"{context}: missing required field '{key}'")
    return data[key]


def _require_list(data: Dict[str, Any], key: str, context: str) -> List[Any]:
    value = _require(data, key, context)
    if not isinstance(value, list):
        raise SchemaFormatError(f"{context}: field '{key}' must be an array")
    return value


# ---------------------------------------------------------------------------
# Schema description (input)
# ---------------------------------------------------------------------------


@dataclass
class ColumnPair:
    """One source/target column correspondence of a foreign key."""
    position: int
    source_column: str
    target_column: str

    def swapped(self) -> ColumnPair:
        """Same pair read from the target table's side."""
        return ColumnPair(self.position, self.target_column, self.source_column)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "position": self.position,
            "sourceColumn": self.source_column,
            "targetColumn": self.target_column,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any], default_position: int = 1) -> ColumnPair:
        source_column = _require(data, "sourceColumn", "column pair")
        target_column = _require(data, "targetColumn", "column pair")
        return cls(
            position=int(data.get("position") or default_position),
            source_column=source_column,
            target_column=target_column,
        )


@dataclass
class ColumnInfo:
    """Name and declared type of a column."""
    name: str
    type: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {"name": self.name, "type": self.type}

    @classmethod
    def from_dict(cls, data: Any) -> ColumnInfo:
        # Introspection sometimes hands over bare column names
        if isinstance(data, str):
            return cls(name=data)
        return cls(name=_require(data, "name", "column"), type=data.get("type"))


@dataclass
class ForeignKeyConstraint:
    """A declared (or user-declared) foreign key between two tables."""
    constraint_name: str
    source_table: str
    target_table: str
    column_pairs: List[ColumnPair] = field(default_factory=list)
    cardinality: Optional[Cardinality] = None
    is_custom: bool = False

    @property
    def is_self_reference(self) -> bool:
        return self.source_table == self.target_table

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "constraintName": self.constraint_name,
            "sourceTable": self.source_table,
            "targetTable": self.target_table,
            "columnPairs": [p.to_dict() for p in self.column_pairs],
        }
        if self.cardinality is not None:
            data["cardinality"] = self.cardinality.value
        if self.is_custom:
            data["isCustom"] = True
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any], owner_table: Optional[str] = None) -> ForeignKeyConstraint:
        """Create from dictionary; column pairs are ordered by position."""
        context = f"foreign key of table {owner_table!r}" if owner_table else "foreign key"
        name = _require(data, "constraintName", context)
        raw_pairs = _require_list(data, "columnPairs", f"{context} {name!r}")
        if not raw_pairs:
            raise SchemaFormatError(f"{context} {name!r}: 'columnPairs' is empty")
        pairs = [ColumnPair.from_dict(p, i + 1) for i, p in enumerate(raw_pairs)]
        pairs.sort(key=lambda p: p.position)
        source = data.get("sourceTable") or owner_table
        if not source:
            raise SchemaFormatError(f"{context} {name!r}: missing required field 'sourceTable'")
        raw_cardinality = data.get("cardinality")
        return cls(
            constraint_name=name,
            source_table=source,
            target_table=_require(data, "targetTable", f"{context} {name!r}"),
            column_pairs=pairs,
            cardinality=Cardinality.parse(raw_cardinality, Cardinality.UNKNOWN) if raw_cardinality else None,
            is_custom=bool(data.get("isCustom", False)),
        )


@dataclass
class TableSchema:
    """Introspected metadata for one table."""
    table_name: str
    primary_key: List[str] = field(default_factory=list)
    columns: List[ColumnInfo] = field(default_factory=list)
    foreign_keys: List[ForeignKeyConstraint] = field(default_factory=list)

    @property
    def column_names(self) -> List[str]:
        return [c.name for c in self.columns]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "tableName": self.table_name,
            "primaryKey": list(self.primary_key),
            "columns": [c.to_dict() for c in self.columns],
            "foreignKeys": [fk.to_dict() for fk in self.foreign_keys],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> TableSchema:
        name = _require(data, "tableName", "table")
        foreign_keys = data.get("foreignKeys") or []
        if not isinstance(foreign_keys, list):
            raise SchemaFormatError(f"table {name!r}: field 'foreignKeys' must be an array")
        return cls(
            table_name=name,
            primary_key=list(data.get("primaryKey") or []),
            columns=[ColumnInfo.from_dict(c) for c in data.get("columns") or []],
            foreign_keys=[ForeignKeyConstraint.from_dict(fk, name) for fk in foreign_keys],
        )


@dataclass
class CustomReference:
    """A user-declared relationship that the catalog does not know about."""
    id: str
    source_table: str
    source_column: str
    target_table: str
    target_column: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "sourceTable": self.source_table,
            "sourceColumn": self.source_column,
            "targetTable": self.target_table,
            "targetColumn": self.target_column,
            "isCustom": True,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> CustomReference:
        context = "custom reference"
        return cls(
            id=str(_require(data, "id", context)),
            source_table=_require(data, "sourceTable", context),
            source_column=_require(data, "sourceColumn", context),
            target_table=_require(data, "targetTable", context),
            target_column=_require(data, "targetColumn", context),
        )


@dataclass
class SchemaDescription:
    """Tables of one connection plus its user-declared references."""
    tables: List[TableSchema] = field(default_factory=list)
    custom_references: List[CustomReference] = field(default_factory=list)

    @property
    def table_names(self) -> List[str]:
        return [t.table_name for t in self.tables]

    def get_table(self, name: str) -> Optional[TableSchema]:
        for table in self.tables:
            if table.table_name == name:
                return table
        return None

    def foreign_keys(self) -> List[ForeignKeyConstraint]:
        """All foreign keys in table order."""
        return [fk for table in self.tables for fk in table.foreign_keys]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "tables": [t.to_dict() for t in self.tables],
            "customReferences": [r.to_dict() for r in self.custom_references],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> SchemaDescription:
        """
        Create from dictionary.

        Accepts both ``{"tables": [...]}`` and the ``{"schema": {"tables": [...]}}``
        wrapper produced by the introspection endpoint.

        Raises:
            SchemaFormatError: if the tables array or a required field is missing
        """
        if isinstance(data, dict) and "tables" not in data and isinstance(data.get("schema"), dict):
            data = {**data["schema"], **{k: v for k, v in data.items() if k != "schema"}}
        raw_tables = _require_list(data, "tables", "schema")
        references = data.get("customReferences") or []
        return cls(
            tables=[TableSchema.from_dict(t) for t in raw_tables],
            custom_references=[CustomReference.from_dict(r) for r in references],
        )


# ---------------------------------------------------------------------------
# Table graph
# ---------------------------------------------------------------------------


@dataclass
class NodeMeta:
    """Per-table metadata stored on a graph node."""
    table_name: str
    primary_key: List[str] = field(default_factory=list)
    foreign_keys: List[str] = field(default_factory=list)  # FK source columns
    columns: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "tableName": self.table_name,
            "primaryKey": list(self.primary_key),
            "foreignKeys": list(self.foreign_keys),
            "columns": list(self.columns),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> NodeMeta:
        return cls(
            table_name=_require(data, "tableName", "node"),
            primary_key=list(data.get("primaryKey") or []),
            foreign_keys=list(data.get("foreignKeys") or []),
            columns=list(data.get("columns") or []),
        )


@dataclass
class Edge:
    """A directed traversal step between two tables, derived from one FK."""
    id: str
    source: str
    target: str
    constraint_name: str
    column_pairs: List[ColumnPair] = field(default_factory=list)
    cardinality: Cardinality = Cardinality.UNKNOWN
    reversed: bool = False
    join_type: str = "inner"
    is_custom: bool = False

    # Arena slots, assigned by TableGraph.add_edge
    source_index: int = field(default=-1, compare=False, repr=False)
    target_index: int = field(default=-1, compare=False, repr=False)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "from": self.source,
            "to": self.target,
            "payload": {
                "constraintName": self.constraint_name,
                "joinType": self.join_type,
                "columnPairs": [p.to_dict() for p in self.column_pairs],
                "cardinality": self.cardinality.value,
                "reversed": self.reversed,
                "isCustom": self.is_custom,
            },
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> Edge:
        payload = _require(data, "payload", "edge")
        return cls(
            id=_require(data, "id", "edge"),
            source=_require(data, "from", "edge"),
            target=_require(data, "to", "edge"),
            constraint_name=_require(payload, "constraintName", "edge payload"),
            column_pairs=[ColumnPair.from_dict(p, i + 1) for i, p in enumerate(payload.get("columnPairs") or [])],
            cardinality=Cardinality.parse(payload.get("cardinality"), Cardinality.UNKNOWN),
            reversed=bool(payload.get("reversed", False)),
            join_type=payload.get("joinType", "inner"),
            is_custom=bool(payload.get("isCustom", False)),
        )


class TableGraph:
    """
    Directed multigraph of tables backed by an index arena.

    Every table gets a stable integer index in insertion order. Node metadata
    lives in a dense list and adjacency is a list of edge lists indexed by the
    source table's index, so path search works on integers only. Name-keyed
    views (``nodes``, ``adj``) are provided for lookups and serialization.
    """

    def __init__(self) -> None:
        self._names: List[str] = []
        self._metas: List[NodeMeta] = []
        self._adjacency: List[List[Edge]] = []
        self._index: Dict[str, int] = {}
        self._edges_by_id: Dict[str, Edge] = {}

    def add_node(self, meta: NodeMeta) -> int:
        """Add a table node and return its index (existing index if present)."""
        existing = self._index.get(meta.table_name)
        if existing is not None:
            return existing
        index = len(self._names)
        self._names.append(meta.table_name)
        self._metas.append(meta)
        self._adjacency.append([])
        self._index[meta.table_name] = index
        return index

    def add_edge(self, edge: Edge) -> None:
        """Attach an edge to its source table's adjacency list."""
        if edge.source not in self._index or edge.target not in self._index:
            raise SchemaFormatError(f"Edge {edge.id} references unknown table")
        if edge.source == edge.target:
            raise SchemaFormatError(f"Edge {edge.id} is a self-loop")
        if edge.id in self._edges_by_id:
            raise SchemaFormatError(f"Duplicate edge id: {edge.id}")
        edge.source_index = self._index[edge.source]
        edge.target_index = self._index[edge.target]
        self._adjacency[edge.source_index].append(edge)
        self._edges_by_id[edge.id] = edge

    def index_of(self, name: str) -> Optional[int]:
        return self._index.get(name)

    def name_of(self, index: int) -> str:
        return self._names[index]

    def neighbors(self, index: int) -> List[Edge]:
        return self._adjacency[index]

    def edge(self, edge_id: str) -> Optional[Edge]:
        return self._edges_by_id.get(edge_id)

    def edges(self) -> Iterator[Edge]:
        for edges in self._adjacency:
            yield from edges

    @property
    def table_names(self) -> List[str]:
        return list(self._names)

    @property
    def nodes(self) -> Dict[str, NodeMeta]:
        return dict(zip(self._names, self._metas))

    @property
    def adj(self) -> Dict[str, List[Edge]]:
        return {name: list(edges) for name, edges in zip(self._names, self._adjacency)}

    @property
    def node_count(self) -> int:
        return len(self._names)

    @property
    def edge_count(self) -> int:
        return len(self._edges_by_id)

    def __contains__(self, name: object) -> bool:
        return name in self._index

    def __len__(self) -> int:
        return len(self._names)

    def __repr__(self) -> str:
        return f"TableGraph(nodes={self.node_count}, edges={self.edge_count})"


# ---------------------------------------------------------------------------
# Paths and exits
# ---------------------------------------------------------------------------


@dataclass
class PathObj:
    """A simple route between two tables with its cost."""
    nodes: List[str]
    edges: List[str]
    cost: float
    label: str

    @property
    def start(self) -> str:
        return self.nodes[0]

    @property
    def end(self) -> str:
        return self.nodes[-1]

    @property
    def hops(self) -> int:
        return len(self.edges)

    def sort_key(self):
        """Cost first, then label and edge ids so ties resolve deterministically."""
        return (self.cost, self.label, tuple(self.edges))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "nodes": list(self.nodes),
            "edges": list(self.edges),
            "cost": self.cost,
            "label": self.label,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> PathObj:
        return cls(
            nodes=list(data["nodes"]),
            edges=list(data["edges"]),
            cost=float(data["cost"]),
            label=data.get("label") or "->".join(data["nodes"]),
        )


@dataclass
class PathsIndex:
    """Best known routes: start table -> target table -> paths, cheapest first."""
    paths: Dict[str, Dict[str, List[PathObj]]] = field(default_factory=dict)

    def get_paths(self, start: str, target: str) -> List[PathObj]:
        return self.paths.get(start, {}).get(target, [])

    def best(self, start: str, target: str) -> Optional[PathObj]:
        candidates = self.get_paths(start, target)
        return candidates[0] if candidates else None

    @property
    def total_paths(self) -> int:
        return sum(len(p) for targets in self.paths.values() for p in targets.values())

    def to_dict(self) -> Dict[str, Any]:
        return {
            "paths": [
                [start, [[target, [p.to_dict() for p in paths]] for target, paths in targets.items()]]
                for start, targets in self.paths.items()
            ]
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> PathsIndex:
        index = cls()
        for start, targets in data.get("paths", []):
            index.paths[start] = {
                target: [PathObj.from_dict(p) for p in paths] for target, paths in targets
            }
        return index


@dataclass
class ExitPayload:
    """Paths out of a start table that share the same first hop."""
    exit_to: str
    paths: List[PathObj] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {"exitTo": self.exit_to, "paths": [p.to_dict() for p in self.paths]}


# ---------------------------------------------------------------------------
# Join trees and results
# ---------------------------------------------------------------------------


@dataclass
class JoinTree:
    """Tables and edges selected to connect a requested table subset."""
    nodes: List[str] = field(default_factory=list)
    edge_ids: List[str] = field(default_factory=list)
    unreachable: List[str] = field(default_factory=list)
    alternatives: List[PathObj] = field(default_factory=list)

    @property
    def is_connected(self) -> bool:
        return not self.unreachable

    @property
    def is_ambiguous(self) -> bool:
        return bool(self.alternatives)


@dataclass
class JoinEdge:
    """One edge of a resolved join graph."""
    source: str
    target: str
    constraint_name: str
    column_pairs: List[ColumnPair] = field(default_factory=list)
    cardinality: Cardinality = Cardinality.UNKNOWN

    @classmethod
    def from_edge(cls, edge: Edge) -> JoinEdge:
        return cls(
            source=edge.source,
            target=edge.target,
            constraint_name=edge.constraint_name,
            column_pairs=list(edge.column_pairs),
            cardinality=edge.cardinality,
        )

    def flipped(self) -> JoinEdge:
        """The same join read from the target table's side."""
        return JoinEdge(
            source=self.target,
            target=self.source,
            constraint_name=self.constraint_name,
            column_pairs=[p.swapped() for p in self.column_pairs],
            cardinality=self.cardinality.inverted(),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "from": self.source,
            "to": self.target,
            "constraintName": self.constraint_name,
            "columnPairs": [
                {"sourceColumn": p.source_column, "targetColumn": p.target_column}
                for p in self.column_pairs
            ],
        }


@dataclass
class JoinRef:
    """Structured join for the join-path editor."""
    constraint_name: str
    source_table: str
    target_table: str
    join_type: str = "inner"
    column_pairs: List[ColumnPair] = field(default_factory=list)
    cardinality: Cardinality = Cardinality.UNKNOWN

    def to_dict(self) -> Dict[str, Any]:
        return {
            "constraintName": self.constraint_name,
            "sourceTable": self.source_table,
            "targetTable": self.target_table,
            "joinType": self.join_type,
            "columnPairs": [p.to_dict() for p in self.column_pairs],
            "cardinality": self.cardinality.value,
        }


@dataclass
class JoinResult:
    """Query-resolution outcome: join graph plus the SQL that joins it."""
    status: JoinStatus
    join_graph: List[JoinEdge] = field(default_factory=list)
    sql: str = ""
    message: str = ""
    details: Optional[Dict[str, Any]] = None

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "status": self.status.value,
            "joinGraph": [e.to_dict() for e in self.join_graph],
            "sql": self.sql,
            "message": self.message,
        }
        if self.details is not None:
            data["details"] = self.details
        return data


@dataclass
class JoinRefsResult:
    """Join-editing outcome: ordered structured joins."""
    status: JoinStatus
    joins: List[JoinRef] = field(default_factory=list)
    message: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "status": self.status.value,
            "joins": [j.to_dict() for j in self.joins],
            "message": self.message,
        }
