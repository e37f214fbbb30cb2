"""
Loading and saving schema descriptions.

Schema descriptions come from the introspection collaborator as JSON; YAML is
accepted for hand-written fixtures and overrides.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Union

import yaml

from autojoin.models import SchemaDescription, SchemaFormatError

logger = logging.getLogger(__name__)

YAML_SUFFIXES = (".yaml", ".yml")


def read_document(path: Union[str, Path]) -> Any:
    """Read a JSON or YAML document, chosen by file suffix."""
    path = Path(path)
    with open(path, "r") as f:
        if path.suffix.lower() in YAML_SUFFIXES:
            return yaml.safe_load(f)
        try:
            return json.load(f)
        except json.JSONDecodeError as e:
            raise SchemaFormatError(f"Invalid JSON in {path}: {e}") from e


def write_document(data: Any, path: Union[str, Path]) -> Path:
    """Write a JSON or YAML document, chosen by file suffix."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w") as f:
        if path.suffix.lower() in YAML_SUFFIXES:
            yaml.safe_dump(data, f, sort_keys=False)
        else:
            json.dump(data, f, indent=2)
    return path


def load_schema(path: Union[str, Path]) -> SchemaDescription:
    """
    Load a schema description from disk.

    Args:
        path: JSON or YAML file with ``tables`` (optionally wrapped in ``schema``)

    Returns:
        Parsed SchemaDescription

    Raises:
        SchemaFormatError: if the document lacks the required structure
    """
    data = read_document(path)
    if data is None:
        raise SchemaFormatError(f"Schema file is empty: {path}")

    schema = SchemaDescription.from_dict(data)
    logger.info(
        f"Loaded schema from {path}: {len(schema.tables)} tables, "
        f"{len(schema.foreign_keys())} foreign keys, "
        f"{len(schema.custom_references)} custom references"
    )
    return schema


def save_schema(schema: SchemaDescription, path: Union[str, Path]) -> Path:
    """Write a schema description (with its custom references) to disk."""
    return write_document(schema.to_dict(), path)
