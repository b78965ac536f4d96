"""
Output nodes - presentation sinks.
"""

from node_studio.nodes.output.display import (
    DISPLAY_NODE,
    display_executor,
    register_output_nodes,
)

__all__ = ["DISPLAY_NODE", "display_executor", "register_output_nodes"]
