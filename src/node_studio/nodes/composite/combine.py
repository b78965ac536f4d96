"""
Combine Node - Blend two images with a selectable blend mode.
"""

from __future__ import annotations

from typing import Any

from node_studio.core.blend import BlendMode, blend_images
from node_studio.core.data_types import DataType, ImageData
from node_studio.core.node_types import (
    InputDefinition,
    NodeCategory,
    NodeRegistry,
    NodeType,
    OutputDefinition,
    ParameterDefinition,
)
from node_studio.core.project import ProjectSettings


async def combine_executor(
    inputs: dict[str, Any],
    parameters: dict[str, Any],
    context: Any,
) -> dict[str, Any]:
    """
    Execute combine node.

    With both inputs connected the images are blended (size taken from A).
    With one input that image is passed through unchanged; with none a
    blank buffer of the default size is produced.
    """
    image_a = inputs.get("A")
    image_b = inputs.get("B")

    if image_a is None and image_b is None:
        settings = getattr(context, "settings", None) or ProjectSettings()
        return {"image": ImageData.empty(settings.default_width, settings.default_height)}
    if image_b is None:
        return {"image": image_a}
    if image_a is None:
        return {"image": image_b}

    mode = BlendMode.parse(parameters.get("mode", "multiply"))
    alpha = float(parameters.get("alpha", 1.0))
    return {"image": blend_images(image_a, image_b, mode, alpha)}


COMBINE_NODE = NodeType(
    id="Combine",
    name="Combine Images",
    description="Blend image B over image A",
    category=NodeCategory.COMPOSITE,
    inputs=[
        InputDefinition(
            name="A",
            label="A",
            data_type=DataType.IMAGE,
            description="Base image (sets the output size)",
        ),
        InputDefinition(
            name="B",
            label="B",
            data_type=DataType.IMAGE,
            description="Blend image",
        ),
    ],
    outputs=[
        OutputDefinition(
            name="image",
            label="Image",
            data_type=DataType.IMAGE,
            description="Combined image",
        ),
    ],
    parameters=[
        ParameterDefinition.enum(
            name="mode",
            label="Mode",
            options=[
                (BlendMode.BLEND.value, "Blend"),
                (BlendMode.ADD.value, "Add"),
                (BlendMode.MULTIPLY.value, "Multiply"),
                (BlendMode.SCREEN.value, "Screen"),
                (BlendMode.OVERLAY.value, "Overlay"),
            ],
            default=BlendMode.MULTIPLY.value,
        ),
        ParameterDefinition.slider(
            name="alpha",
            label="Alpha",
            default=1.0,
            min_value=0.0,
            max_value=1.0,
            step=0.05,
            description="Mix factor for blend mode",
        ),
    ],
    executor=combine_executor,
)


def register_composite_nodes(registry: NodeRegistry | None = None) -> None:
    """Register all composite node types."""
    registry = registry if registry is not None else NodeRegistry.instance()
    registry.register(COMBINE_NODE)
