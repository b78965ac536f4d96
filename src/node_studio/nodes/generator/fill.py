"""
Fill Nodes - Nodes that generate flat colors and gradients.

These have no inputs; they produce a new buffer from their parameters.
"""

from __future__ import annotations

from typing import Any

import numpy as np

from node_studio.core.data_types import DataType, ImageData, clamp_dimension, parse_color
from node_studio.core.node_types import (
    NodeCategory,
    NodeRegistry,
    NodeType,
    OutputDefinition,
    ParameterDefinition,
)


def _size_parameters() -> list[ParameterDefinition]:
    return [
        ParameterDefinition.integer(
            name="width",
            label="Width",
            default=256,
            min_value=8,
            max_value=2048,
        ),
        ParameterDefinition.integer(
            name="height",
            label="Height",
            default=256,
            min_value=8,
            max_value=2048,
        ),
    ]


def _image_output(description: str) -> OutputDefinition:
    return OutputDefinition(
        name="image",
        label="Image",
        data_type=DataType.IMAGE,
        description=description,
    )


async def create_image_executor(
    inputs: dict[str, Any],
    parameters: dict[str, Any],
    context: Any,
) -> dict[str, Any]:
    """Fill a new buffer with a single color."""
    width = clamp_dimension(parameters.get("width", 256))
    height = clamp_dimension(parameters.get("height", 256))
    color = parse_color(parameters.get("color", "#8b5cf6"))
    return {"image": ImageData.filled(width, height, color)}


CREATE_IMAGE_NODE = NodeType(
    id="CreateImage",
    name="Create Image",
    description="Solid color image",
    category=NodeCategory.GENERATOR,
    inputs=[],
    outputs=[_image_output("The filled image")],
    parameters=[
        *_size_parameters(),
        ParameterDefinition.color(
            name="color",
            label="Color",
            default="#8b5cf6",
        ),
    ],
    executor=create_image_executor,
)


def linear_gradient(
    width: int,
    height: int,
    start: tuple[int, int, int, int],
    end: tuple[int, int, int, int],
    vertical: bool = False,
) -> ImageData:
    """
    Interpolate from start at one edge to end at the opposite edge.

    Samples are taken at pixel centres, so t = (i + 0.5) / extent.
    """
    width, height = clamp_dimension(width), clamp_dimension(height)
    extent = height if vertical else width
    t = (np.arange(extent, dtype=np.float64) + 0.5) / extent

    c0 = np.asarray(start, dtype=np.float64)
    c1 = np.asarray(end, dtype=np.float64)
    ramp = c0 + t[:, None] * (c1 - c0)            # (extent, 4)
    ramp = np.floor(ramp + 0.5).clip(0, 255).astype(np.uint8)

    if vertical:
        pixels = np.broadcast_to(ramp[:, None, :], (height, width, 4))
    else:
        pixels = np.broadcast_to(ramp[None, :, :], (height, width, 4))
    return ImageData(pixels=np.array(pixels, dtype=np.uint8))


async def gradient_executor(
    inputs: dict[str, Any],
    parameters: dict[str, Any],
    context: Any,
) -> dict[str, Any]:
    """Render a two-color linear gradient."""
    image = linear_gradient(
        parameters.get("width", 256),
        parameters.get("height", 256),
        parse_color(parameters.get("color1", "#0ea5e9")),
        parse_color(parameters.get("color2", "#8b5cf6")),
        vertical=parameters.get("direction") == "vertical",
    )
    return {"image": image}


GRADIENT_NODE = NodeType(
    id="Gradient",
    name="Add Gradient",
    description="Linear two-color gradient",
    category=NodeCategory.GENERATOR,
    inputs=[],
    outputs=[_image_output("The gradient image")],
    parameters=[
        ParameterDefinition.enum(
            name="direction",
            label="Direction",
            options=[
                ("horizontal", "Horizontal"),
                ("vertical", "Vertical"),
            ],
            default="horizontal",
        ),
        *_size_parameters(),
        ParameterDefinition.color(
            name="color1",
            label="Color A",
            default="#0ea5e9",
        ),
        ParameterDefinition.color(
            name="color2",
            label="Color B",
            default="#8b5cf6",
        ),
    ],
    executor=gradient_executor,
)


def register_fill_nodes(registry: NodeRegistry | None = None) -> None:
    """Register the color and gradient node types."""
    registry = registry if registry is not None else NodeRegistry.instance()
    registry.register(CREATE_IMAGE_NODE)
    registry.register(GRADIENT_NODE)
