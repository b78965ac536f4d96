"""
Generator Nodes package.

Nodes that create images from parameters alone.
"""

from node_studio.core.node_types import NodeRegistry
from node_studio.nodes.generator.fill import (
    CREATE_IMAGE_NODE,
    GRADIENT_NODE,
    create_image_executor,
    gradient_executor,
    linear_gradient,
    register_fill_nodes,
)
from node_studio.nodes.generator.noise import (
    PERLIN_NOISE_NODE,
    perlin_noise_executor,
    register_noise_nodes,
    render_noise,
)


def register_generator_nodes(registry: NodeRegistry | None = None) -> None:
    """Register all generator node types."""
    register_fill_nodes(registry)
    register_noise_nodes(registry)


__all__ = [
    "CREATE_IMAGE_NODE",
    "GRADIENT_NODE",
    "PERLIN_NOISE_NODE",
    "create_image_executor",
    "gradient_executor",
    "perlin_noise_executor",
    "linear_gradient",
    "render_noise",
    "register_fill_nodes",
    "register_noise_nodes",
    "register_generator_nodes",
]
