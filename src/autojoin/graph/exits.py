"""
Exit Payload Builder - groups a table's best paths by their first hop.

Used to explain which neighbouring table a route leaves through; join-tree
selection does not depend on it.
"""

from __future__ import annotations

from typing import Any, Dict, List, Set, Tuple

from autojoin.models import ExitPayload, PathObj, PathsIndex

ExitPayloads = Dict[str, List[ExitPayload]]


def is_prefix(shorter: PathObj, longer: PathObj) -> bool:
    """Whether ``shorter``'s node sequence is a strict prefix of ``longer``'s."""
    if len(shorter.nodes) >= len(longer.nodes):
        return False
    return longer.nodes[:len(shorter.nodes)] == shorter.nodes


def deduplicate_paths(paths: List[PathObj]) -> List[PathObj]:
    """
    Keep only maximal alternatives.

    Exact duplicates are dropped, the remainder is ordered longest first, and
    any path that is a strict prefix of an already kept path is discarded.
    """
    if len(paths) <= 1:
        return list(paths)

    unique: List[PathObj] = []
    seen: Set[Tuple[Tuple[str, ...], Tuple[str, ...]]] = set()
    for path in paths:
        key = (tuple(path.nodes), tuple(path.edges))
        if key not in seen:
            seen.add(key)
            unique.append(path)

    unique.sort(key=lambda p: len(p.nodes), reverse=True)

    result: List[PathObj] = []
    for path in unique:
        if not any(is_prefix(path, kept) for kept in result):
            result.append(path)
    return result


def build_exit_payloads(paths_index: PathsIndex) -> ExitPayloads:
    """Bucket each start table's paths by first hop, in discovery order."""
    payloads: ExitPayloads = {}
    for start, targets in paths_index.paths.items():
        exits: Dict[str, List[PathObj]] = {}
        for paths in targets.values():
            for path in paths:
                if len(path.nodes) >= 2:
                    exits.setdefault(path.nodes[1], []).append(path)
        if exits:
            payloads[start] = [
                ExitPayload(exit_to=exit_to, paths=deduplicate_paths(paths))
                for exit_to, paths in exits.items()
            ]
    return payloads


def exit_payloads_to_dict(payloads: ExitPayloads) -> Dict[str, Any]:
    return {"exits": {start: [e.to_dict() for e in exits] for start, exits in payloads.items()}}
