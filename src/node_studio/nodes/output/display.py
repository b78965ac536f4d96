"""
Output Nodes - Nodes that present computed images.

The Display node is a sink: it never creates or changes pixels, it only
hands its input on so the preview layer can show it.
"""

from __future__ import annotations

from typing import Any

from node_studio.core.data_types import DataType
from node_studio.core.node_types import (
    InputDefinition,
    NodeCategory,
    NodeRegistry,
    NodeType,
)


async def display_executor(
    inputs: dict[str, Any],
    parameters: dict[str, Any],
    context: Any,
) -> dict[str, Any]:
    """
    Execute display node - passes the image through for presentation.

    The actual display is handled by whoever receives the pass output.
    """
    return {"image": inputs.get("image")}


DISPLAY_NODE = NodeType(
    id="Display",
    name="Display Image",
    description="Show an image",
    category=NodeCategory.OUTPUT,
    inputs=[
        InputDefinition(
            name="image",
            label="Image",
            data_type=DataType.IMAGE,
            description="Image to display",
        ),
    ],
    outputs=[],  # Terminal node - no outputs
    parameters=[],
    executor=display_executor,
)


def register_output_nodes(registry: NodeRegistry | None = None) -> None:
    """Register all output node types."""
    registry = registry if registry is not None else NodeRegistry.instance()
    registry.register(DISPLAY_NODE)
