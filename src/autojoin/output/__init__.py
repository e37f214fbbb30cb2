"""
Diagram output for table graphs and join trees.
"""

from autojoin.output.puml import (
    PumlWriter,
    export_graph_puml,
    export_join_tree_puml,
    export_node_exits_puml,
)

__all__ = [
    "PumlWriter",
    "export_graph_puml",
    "export_join_tree_puml",
    "export_node_exits_puml",
]
