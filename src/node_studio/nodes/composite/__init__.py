"""
Composite nodes - combining images.
"""

from node_studio.nodes.composite.combine import (
    COMBINE_NODE,
    combine_executor,
    register_composite_nodes,
)

__all__ = ["COMBINE_NODE", "combine_executor", "register_composite_nodes"]
