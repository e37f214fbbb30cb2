"""
Custom Reference Overlay - user-declared relationships.

A custom reference joins two columns the catalog has no foreign key for. It
is turned into a synthetic foreign key on its source table, merged with the
catalog foreign keys, and the whole graph is rebuilt. Adding or removing a
reference always triggers a full rebuild; the graph is never patched.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Union

from autojoin.config import DEFAULT_SETTINGS, SearchSettings
from autojoin.graph.builder import build_graph
from autojoin.loader import read_document
from autojoin.models import (
    Cardinality,
    ColumnPair,
    CustomReference,
    ForeignKeyConstraint,
    SchemaDescription,
    SchemaFormatError,
    TableGraph,
)

logger = logging.getLogger(__name__)

CUSTOM_PREFIX = "custom_"
CUSTOM_CARDINALITY = Cardinality.ONE_TO_MANY


def to_foreign_key(ref: CustomReference) -> ForeignKeyConstraint:
    """Synthetic foreign key for a custom reference."""
    return ForeignKeyConstraint(
        constraint_name=f"{CUSTOM_PREFIX}{ref.id}",
        source_table=ref.source_table,
        target_table=ref.target_table,
        column_pairs=[ColumnPair(1, ref.source_column, ref.target_column)],
        cardinality=CUSTOM_CARDINALITY,
        is_custom=True,
    )


def apply_custom_references(
    schema: SchemaDescription,
    references: Optional[Sequence[CustomReference]] = None,
) -> SchemaDescription:
    """
    Schema whose foreign keys include ``references``.

    Custom foreign keys already present on the tables are replaced, so the
    result reflects exactly the given reference set. ``schema`` itself is not
    modified. Defaults to the schema's own ``custom_references``.
    """
    if references is None:
        references = schema.custom_references

    by_source: Dict[str, List[ForeignKeyConstraint]] = {}
    for ref in references:
        by_source.setdefault(ref.source_table, []).append(to_foreign_key(ref))

    known = set(schema.table_names)
    for source in by_source:
        if source not in known:
            logger.warning(f"Ignoring custom reference(s) on unknown table {source!r}")

    tables = [
        replace(
            table,
            foreign_keys=[fk for fk in table.foreign_keys if not fk.is_custom]
            + by_source.get(table.table_name, []),
        )
        for table in schema.tables
    ]
    return SchemaDescription(tables=tables, custom_references=list(references))


def add_custom_reference(
    references: Sequence[CustomReference],
    ref: CustomReference,
) -> List[CustomReference]:
    """Reference list with ``ref`` added, replacing any reference with the same id."""
    updated = [r for r in references if r.id != ref.id]
    if len(updated) != len(references):
        logger.info(f"Replacing custom reference {ref.id}")
    updated.append(ref)
    return updated


def remove_custom_reference(
    references: Sequence[CustomReference],
    reference_id: str,
) -> List[CustomReference]:
    """Reference list without the reference ``reference_id``."""
    updated = [r for r in references if r.id != reference_id]
    if len(updated) == len(references):
        logger.warning(f"Custom reference {reference_id} not found")
    return updated


def rebuild_graph(
    schema: SchemaDescription,
    references: Optional[Sequence[CustomReference]] = None,
    settings: SearchSettings = DEFAULT_SETTINGS,
) -> TableGraph:
    """Build the graph from scratch for the schema plus its custom references."""
    merged = apply_custom_references(schema, references)
    graph = build_graph(merged, settings)
    logger.info(f"Rebuilt graph with {len(merged.custom_references)} custom reference(s)")
    return graph


def graph_for_schema(schema: SchemaDescription, settings: SearchSettings = DEFAULT_SETTINGS) -> TableGraph:
    """
    Graph for a schema as stored.

    A schema with a ``customReferences`` list is rebuilt from that list.
    Without one, custom foreign keys carried inline on the tables are kept.
    """
    if schema.custom_references:
        return rebuild_graph(schema, schema.custom_references, settings)
    return build_graph(schema, settings)


def load_custom_references(path: Union[str, Path]) -> List[CustomReference]:
    """
    Load custom references from a YAML or JSON file.

    The file holds either a list of references or a mapping with a
    ``customReferences`` (or ``references``) list.
    """
    path = Path(path)
    data = read_document(path) or []
    if isinstance(data, dict):
        data = data.get("customReferences", data.get("references", []))
    if not isinstance(data, list):
        raise SchemaFormatError(f"Custom references in {path} must be a list")

    references = [CustomReference.from_dict(item) for item in data]
    logger.info(f"Loaded {len(references)} custom references from {path}")
    return references
