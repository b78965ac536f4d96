"""
Blend Modes - Pixel-wise operators for combining two raster buffers.

All operators work on normalized float channels in [0, 1]. The result
is clamped back to [0, 1] and converted to 8-bit; the output alpha is
always fully opaque regardless of the input alpha channels.
"""

from __future__ import annotations

from enum import Enum
from typing import Callable

import numpy as np
from numpy.typing import NDArray

from node_studio.core.data_types import ImageData


class BlendMode(Enum):
    """Blend modes for combining images."""
    BLEND = "blend"
    ADD = "add"
    MULTIPLY = "multiply"
    SCREEN = "screen"
    OVERLAY = "overlay"

    @classmethod
    def parse(cls, value: str | BlendMode | None) -> BlendMode:
        """Resolve a mode name; unknown names fall back to BLEND."""
        if isinstance(value, BlendMode):
            return value
        try:
            return cls(str(value).lower())
        except ValueError:
            return cls.BLEND


Channels = NDArray[np.float64]


def add(a: Channels, b: Channels) -> Channels:
    return a + b


def multiply(a: Channels, b: Channels) -> Channels:
    return a * b


def screen(a: Channels, b: Channels) -> Channels:
    return 1.0 - (1.0 - a) * (1.0 - b)


def overlay(a: Channels, b: Channels) -> Channels:
    # Threshold is taken from the base (A) channel
    return np.where(a < 0.5, 2.0 * a * b, 1.0 - 2.0 * (1.0 - a) * (1.0 - b))


def linear_blend(a: Channels, b: Channels, alpha: float) -> Channels:
    alpha = min(1.0, max(0.0, float(alpha)))
    return a * (1.0 - alpha) + b * alpha


_OPERATORS: dict[BlendMode, Callable[[Channels, Channels], Channels]] = {
    BlendMode.ADD: add,
    BlendMode.MULTIPLY: multiply,
    BlendMode.SCREEN: screen,
    BlendMode.OVERLAY: overlay,
}


def blend_channels(
    a: Channels,
    b: Channels,
    mode: str | BlendMode,
    alpha: float = 1.0,
) -> Channels:
    """Apply a blend mode to normalized channel arrays of equal shape."""
    mode = BlendMode.parse(mode)
    operator = _OPERATORS.get(mode)
    if operator is None:
        return linear_blend(a, b, alpha)
    return operator(a, b)


def _fit_to(image: ImageData, width: int, height: int) -> NDArray[np.uint8]:
    """Crop or pad (transparent black) an image's pixels to width x height."""
    if image.size == (width, height):
        return image.pixels
    out = np.zeros((height, width, 4), dtype=np.uint8)
    h = min(height, image.height)
    w = min(width, image.width)
    out[:h, :w] = image.pixels[:h, :w]
    return out


def blend_images(
    image_a: ImageData,
    image_b: ImageData,
    mode: str | BlendMode,
    alpha: float = 1.0,
) -> ImageData:
    """
    Combine two images pixel by pixel.

    The result takes its dimensions from image_a; image_b is cropped or
    padded to match. Color channels are blended, the alpha channel of the
    result is always 255.
    """
    width, height = image_a.size
    rgb_a = image_a.pixels[..., :3].astype(np.float64) / 255.0
    rgb_b = _fit_to(image_b, width, height)[..., :3].astype(np.float64) / 255.0

    result = np.clip(blend_channels(rgb_a, rgb_b, mode, alpha), 0.0, 1.0)

    out = np.empty((height, width, 4), dtype=np.uint8)
    out[..., :3] = np.floor(result * 255.0 + 0.5).astype(np.uint8)
    out[..., 3] = 255
    return ImageData(pixels=out)
