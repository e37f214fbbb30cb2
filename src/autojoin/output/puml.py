"""
PlantUML export of table graphs, exit payloads and selected join trees.

Each foreign key is drawn once, from the referencing table to the referenced
one, labelled with its constraint name, column pairs and cardinality.
"""

from __future__ import annotations

import logging
import re
from datetime import datetime
from pathlib import Path
from typing import Iterable, List, Optional, Set, Tuple

from autojoin.graph.exits import ExitPayloads
from autojoin.models import Edge, JoinTree, TableGraph

logger = logging.getLogger(__name__)

MAX_NOTE_PATHS = 3

_HEADER = """@startuml
skinparam classAttributeIconSize 0
skinparam ArrowThickness 1
skinparam ArrowColor #888888
skinparam ClassBorderColor #444444
skinparam ClassBackgroundColor #f8f8f8
skinparam NoteBorderColor #888888
skinparam NoteBackgroundColor #ffffcc

legend right
  |= Color |= Meaning |
  | Blue | Selected join path |
  | Black | Regular connection |
endlegend

"""


def _alias(table_name: str) -> str:
    return re.sub(r"\W", "_", table_name)


def _relationship_key(edge: Edge) -> Tuple[str, str, str]:
    """Identifies the FK behind an edge regardless of direction."""
    if edge.reversed:
        return (edge.target, edge.constraint_name, edge.source)
    return (edge.source, edge.constraint_name, edge.target)


def _forward_edges(graph: TableGraph) -> Iterable[Edge]:
    return (e for e in graph.edges() if not e.reversed)


def _classes(graph: TableGraph) -> List[str]:
    lines = []
    for name, meta in graph.nodes.items():
        lines.append(f'class "{name}" as {_alias(name)} {{')
        for column in meta.primary_key:
            lines.append(f"  +{column} <<PK>>")
        if not meta.primary_key:
            lines.append("  +table")
        lines.append("}")
    return lines


def _arrow(edge: Edge, highlighted: bool) -> str:
    columns = ", ".join(f"{p.source_column}={p.target_column}" for p in edge.column_pairs)
    arrow = "-[#blue,bold]->" if highlighted else "-->"
    custom = " (custom)" if edge.is_custom else ""
    return (
        f"{_alias(edge.source)} {arrow} {_alias(edge.target)} : "
        f"{edge.constraint_name}{custom}\\n{columns}\\n{edge.cardinality.value}"
    )


def _body(graph: TableGraph, highlight: Optional[Set[Tuple[str, str, str]]] = None) -> List[str]:
    highlight = highlight or set()
    lines = _classes(graph)
    for edge in _forward_edges(graph):
        lines.append(_arrow(edge, _relationship_key(edge) in highlight))
    return lines


def _exit_notes(exit_payloads: ExitPayloads) -> List[str]:
    lines = []
    for table_name, exits in exit_payloads.items():
        if not exits:
            continue
        lines.append(f"note right of {_alias(table_name)}")
        lines.append("  **Exit Paths:**")
        for exit_payload in exits:
            lines.append(f"  {exit_payload.exit_to}:")
            for path in exit_payload.paths[:MAX_NOTE_PATHS]:
                lines.append(f"    {path.label}")
            if len(exit_payload.paths) > MAX_NOTE_PATHS:
                lines.append(f"    ... ({len(exit_payload.paths) - MAX_NOTE_PATHS} more)")
        lines.append("end note")
    return lines


def _document(lines: List[str]) -> str:
    return _HEADER + "\n".join(lines) + "\n@enduml\n"


def export_graph_puml(graph: TableGraph) -> str:
    """Class diagram of every table and foreign key."""
    return _document(_body(graph))


def export_node_exits_puml(graph: TableGraph, exit_payloads: ExitPayloads) -> str:
    """Graph diagram with each table's exit paths attached as notes."""
    return _document(_body(graph) + _exit_notes(exit_payloads))


def export_join_tree_puml(
    graph: TableGraph,
    join_tree: JoinTree,
    exit_payloads: Optional[ExitPayloads] = None,
) -> str:
    """Graph diagram with the join tree's relationships highlighted."""
    highlight = set()
    for edge_id in join_tree.edge_ids:
        edge = graph.edge(edge_id)
        if edge is not None:
            highlight.add(_relationship_key(edge))
    lines = _body(graph, highlight)
    if exit_payloads:
        lines += _exit_notes(exit_payloads)
    return _document(lines)


class PumlWriter:
    """
    Writes PlantUML diagrams into an output directory.

    Output Structure:
        <output_dir>/
        ├── full-graph.puml
        ├── exits-visualization.puml
        └── join-<tables>-<timestamp>.puml
    """

    def __init__(self, output_dir: Path):
        self.output_dir = Path(output_dir)
        self.output_dir.mkdir(parents=True, exist_ok=True)

    def _write(self, filename: str, content: str) -> Path:
        path = self.output_dir / filename
        with open(path, "w") as f:
            f.write(content)
        logger.info(f"Wrote {path}")
        return path

    def write_graph(self, graph: TableGraph) -> Path:
        return self._write("full-graph.puml", export_graph_puml(graph))

    def write_exits(self, graph: TableGraph, exit_payloads: ExitPayloads) -> Path:
        return self._write("exits-visualization.puml", export_node_exits_puml(graph, exit_payloads))

    def write_join_tree(
        self,
        graph: TableGraph,
        tables: List[str],
        join_tree: JoinTree,
        exit_payloads: Optional[ExitPayloads] = None,
    ) -> Path:
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        filename = f"join-{'_'.join(_alias(t) for t in tables)}-{timestamp}.puml"
        return self._write(filename, export_join_tree_puml(graph, join_tree, exit_payloads))
