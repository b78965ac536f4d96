"""
Nodes package - All node implementations.

This package contains node implementations organized by category:
- generator: Create Image, Gradient, Perlin Noise
- composite: Combine
- output: Display
"""

from node_studio.core.node_types import NodeRegistry
from node_studio.nodes.composite import register_composite_nodes
from node_studio.nodes.generator import register_generator_nodes
from node_studio.nodes.output import register_output_nodes


def register_all_nodes(registry: NodeRegistry | None = None) -> NodeRegistry:
    """Register all built-in nodes and return the registry used."""
    registry = registry if registry is not None else NodeRegistry.instance()
    register_generator_nodes(registry)
    register_composite_nodes(registry)
    register_output_nodes(registry)
    return registry


__all__ = [
    "register_all_nodes",
]
