"""
Join tree selection, join SQL generation and the resolution use cases.
"""

from autojoin.joins.resolver import find_join_paths, get_joins, resolve_graph
from autojoin.joins.sql import (
    JoinPlan,
    build_join_refs,
    choose_root,
    generate_join_sql,
    plan_joins,
    render_join_sql,
)
from autojoin.joins.tree import select_join_tree

__all__ = [
    "find_join_paths",
    "get_joins",
    "resolve_graph",
    "JoinPlan",
    "build_join_refs",
    "choose_root",
    "generate_join_sql",
    "plan_joins",
    "render_join_sql",
    "select_join_tree",
]
