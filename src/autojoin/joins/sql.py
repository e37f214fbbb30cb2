"""
SQL Join Generator - linearizes a selected edge set into join order.

Edges are emitted outward from a root table: an edge can be emitted once one
of its tables is already part of the join and the other is not, flipping it
when it points back towards the included side. Pending edges are rescanned
until a full pass makes no progress, so the result does not depend on the
order the edges were discovered in.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List, Optional, Sequence

from autojoin.models import JoinEdge, JoinRef

logger = logging.getLogger(__name__)


@dataclass
class JoinPlan:
    """Root table plus joins in emission order, each oriented away from the root."""
    root: Optional[str]
    steps: List[JoinEdge] = field(default_factory=list)
    dropped: List[JoinEdge] = field(default_factory=list)

    @property
    def tables(self) -> List[str]:
        if self.root is None:
            return []
        return [self.root] + [step.target for step in self.steps]


def choose_root(requested: Sequence[str], edges: Sequence[JoinEdge]) -> Optional[str]:
    """First requested table no selected edge points into; else the first requested table."""
    inbound = {edge.target for edge in edges}
    for table in requested:
        if table not in inbound:
            return table
    if requested:
        return requested[0]
    return edges[0].source if edges else None


def plan_joins(requested: Sequence[str], edges: Sequence[JoinEdge]) -> JoinPlan:
    """
    Order ``edges`` into joins reachable from the root table.

    Edges whose tables are both already joined would close a cycle and are
    dropped; edges never connected to the root are dropped when no further
    progress is possible.
    """
    plan = JoinPlan(root=choose_root(requested, edges))
    if plan.root is None:
        return plan

    included = {plan.root}
    pending: List[JoinEdge] = []
    for edge in edges:
        if edge.column_pairs:
            pending.append(edge)
        else:
            logger.warning(f"Dropping join {edge.constraint_name}: no column pairs")
            plan.dropped.append(edge)

    progress = True
    while pending and progress:
        progress = False
        remaining: List[JoinEdge] = []
        for edge in pending:
            if edge.source in included and edge.target not in included:
                step = edge
            elif edge.target in included and edge.source not in included:
                step = edge.flipped()
            elif edge.source in included and edge.target in included:
                logger.debug(f"Skipping join {edge.constraint_name}: both tables already joined")
                plan.dropped.append(edge)
                continue
            else:
                remaining.append(edge)
                continue

            plan.steps.append(step)
            included.add(step.target)
            progress = True
        pending = remaining

    if pending:
        logger.warning(
            f"Dropping {len(pending)} join(s) not connected to {plan.root}: "
            f"{', '.join(e.constraint_name for e in pending)}"
        )
        plan.dropped.extend(pending)

    return plan


def render_join_sql(plan: JoinPlan) -> str:
    """``FROM root`` followed by one ``JOIN ... ON ...`` line per step."""
    if plan.root is None:
        return ""
    lines = [f"FROM {plan.root}"]
    for step in plan.steps:
        conditions = " AND ".join(
            f"{step.source}.{pair.source_column} = {step.target}.{pair.target_column}"
            for pair in step.column_pairs
        )
        lines.append(f"JOIN {step.target} ON {conditions}")
    return "\n".join(lines)


def generate_join_sql(requested: Sequence[str], edges: Sequence[JoinEdge]) -> str:
    """Join SQL for the selected edges; empty when there is nothing to join."""
    if not edges:
        return f"FROM {requested[0]}" if len(requested) == 1 else ""
    return render_join_sql(plan_joins(requested, edges))


def build_join_refs(plan: JoinPlan) -> List[JoinRef]:
    """Structured joins for the join-path editor, in emission order."""
    return [
        JoinRef(
            constraint_name=step.constraint_name,
            source_table=step.source,
            target_table=step.target,
            join_type="inner",
            column_pairs=list(step.column_pairs),
            cardinality=step.cardinality,
        )
        for step in plan.steps
    ]
