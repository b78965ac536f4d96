"""
Noise Node - Fractal Perlin noise as an opaque grayscale image.
"""

from __future__ import annotations

from typing import Any

import numpy as np

from node_studio.core.data_types import DataType, ImageData, clamp_dimension
from node_studio.core.noise import DEFAULT_SEED, create_perlin, fractal_noise
from node_studio.core.node_types import (
    NodeCategory,
    NodeRegistry,
    NodeType,
    OutputDefinition,
    ParameterDefinition,
)


MIN_SCALE = 0.0001
MIN_CONTRAST = 0.01


def render_noise(
    width: int,
    height: int,
    scale: float = 0.02,
    octaves: int = 4,
    seed: int = DEFAULT_SEED,
    contrast: float = 1.0,
) -> ImageData:
    """
    Render fractal noise to a grayscale buffer.

    The octave sum is normalized to [0, 1], raised to the contrast
    exponent, and written as round(v * 255) to R, G and B with alpha 255.
    """
    width, height = clamp_dimension(width), clamp_dimension(height)
    octaves = max(1, int(octaves))
    scale = max(MIN_SCALE, float(scale))
    contrast = max(MIN_CONTRAST, float(contrast))

    perlin = create_perlin(int(seed))
    values = fractal_noise(perlin, width, height, scale, octaves)
    values = np.power(np.clip(values, 0.0, 1.0), contrast)

    gray = np.floor(values * 255.0 + 0.5).astype(np.uint8)
    pixels = np.empty((height, width, 4), dtype=np.uint8)
    pixels[..., 0] = gray
    pixels[..., 1] = gray
    pixels[..., 2] = gray
    pixels[..., 3] = 255
    return ImageData(pixels=pixels)


async def perlin_noise_executor(
    inputs: dict[str, Any],
    parameters: dict[str, Any],
    context: Any,
) -> dict[str, Any]:
    """Execute noise node - renders fractal Perlin noise."""
    image = render_noise(
        width=parameters.get("width", 256),
        height=parameters.get("height", 256),
        scale=parameters.get("scale", 0.02),
        octaves=parameters.get("octaves", 4),
        seed=parameters.get("seed", DEFAULT_SEED),
        contrast=parameters.get("contrast", 1.0),
    )
    return {"image": image}


PERLIN_NOISE_NODE = NodeType(
    id="PerlinNoise",
    name="Perlin Noise",
    description="Seeded fractal Perlin noise",
    category=NodeCategory.GENERATOR,
    inputs=[],
    outputs=[
        OutputDefinition(
            name="image",
            label="Image",
            data_type=DataType.IMAGE,
            description="Grayscale noise image",
        ),
    ],
    parameters=[
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
        ParameterDefinition.slider(
            name="scale",
            label="Scale",
            default=0.02,
            min_value=0.002,
            max_value=0.1,
            step=0.002,
            description="Base frequency (cycles per pixel)",
        ),
        ParameterDefinition.integer(
            name="octaves",
            label="Octaves",
            default=4,
            min_value=1,
            max_value=8,
        ),
        ParameterDefinition.slider(
            name="contrast",
            label="Contrast",
            default=1.0,
            min_value=0.3,
            max_value=2.0,
            step=0.05,
            description="Exponent applied to the normalized noise",
        ),
        ParameterDefinition.seed(default=DEFAULT_SEED),
    ],
    executor=perlin_noise_executor,
)


def register_noise_nodes(registry: NodeRegistry | None = None) -> None:
    """Register the noise node type."""
    registry = registry if registry is not None else NodeRegistry.instance()
    registry.register(PERLIN_NOISE_NODE)
