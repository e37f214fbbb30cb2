"""
Search settings for path enumeration and join selection.
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, fields
from pathlib import Path
from typing import Any, Dict, Union

import yaml

logger = logging.getLogger(__name__)

MAX_DEPTH = 8
K_SHORTEST = 3
COST_WEIGHTS = {"hop": 1.0, "n_to_n_penalty": 0.5}


@dataclass(frozen=True)
class SearchSettings:
    """Tunables for graph construction, path search and join selection."""
    max_depth: int = MAX_DEPTH
    k_shortest: int = K_SHORTEST
    hop_cost: float = COST_WEIGHTS["hop"]
    n_to_n_penalty: float = COST_WEIGHTS["n_to_n_penalty"]

    # Keep every FK between the same ordered table pair as its own edge.
    # False restores "first FK wins".
    parallel_edges: bool = True

    # Report "ambiguous" instead of picking among equal-cost join paths
    fail_on_ambiguity: bool = False

    # Full-schema path index is exponential in fan-out; warn above this size
    max_tables_for_full_index: int = 200

    def __post_init__(self):
        if self.max_depth < 1:
            raise ValueError(f"max_depth must be >= 1, got {self.max_depth}")
        if self.k_shortest < 1:
            raise ValueError(f"k_shortest must be >= 1, got {self.k_shortest}")
        if self.hop_cost <= 0:
            raise ValueError(f"hop_cost must be > 0, got {self.hop_cost}")
        if self.n_to_n_penalty < 0:
            raise ValueError(f"n_to_n_penalty must be >= 0, got {self.n_to_n_penalty}")
        if self.max_tables_for_full_index < 1:
            raise ValueError(
                f"max_tables_for_full_index must be >= 1, got {self.max_tables_for_full_index}"
            )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> SearchSettings:
        """Create from dictionary, ignoring unknown keys with a warning."""
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            logger.warning(f"Ignoring unknown search settings: {', '.join(unknown)}")
        return cls(**{k: v for k, v in data.items() if k in known})


DEFAULT_SETTINGS = SearchSettings()


def load_settings(path: Union[str, Path]) -> SearchSettings:
    """
    Load search settings from a YAML file.

    The settings may sit at the top level or under a ``search:`` key.
    A missing or empty file yields the defaults.
    """
    path = Path(path)
    if not path.exists():
        logger.warning(f"Settings file not found: {path}, using defaults")
        return SearchSettings()

    with open(path, "r") as f:
        data = yaml.safe_load(f) or {}

    if not isinstance(data, dict):
        raise ValueError(f"Settings file {path} must contain a mapping")
    if isinstance(data.get("search"), dict):
        data = data["search"]

    settings = SearchSettings.from_dict(data)
    logger.info(f"Loaded search settings from {path}")
    return settings
