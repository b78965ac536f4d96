"""
Data Types - Core data structures for raster data flowing through the graph.

This module defines the data types that flow through node connections:
- DataType: Enum of supported socket data types
- ImageData: Fixed-size RGBA 8-bit raster buffer
- ImageMetadata: Provenance information attached to a buffer
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any, TypeAlias

import numpy as np
from numpy.typing import NDArray


class DataType(Enum):
    """
    Enumeration of data types that can flow through node connections.

    Each input/output socket has a DataType that determines what
    kinds of connections are valid.
    """
    IMAGE = auto()          # RGBA raster buffer

    def is_compatible_with(self, other: DataType) -> bool:
        """Check if an output of this type can feed an input of the other."""
        return self == other


# Type alias for parameter values
ParameterValue: TypeAlias = str | int | float | bool | list | dict | None

# (red, green, blue, alpha), each 0..255
RGBA: TypeAlias = tuple[int, int, int, int]


def clamp_dimension(value: Any) -> int:
    """Floor a width/height to an integer of at least 1."""
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 1
    if not math.isfinite(number):
        return 1
    return max(1, int(math.floor(number)))


def parse_color(value: str | tuple) -> RGBA:
    """
    Parse a CSS-style color ("#rgb", "#rrggbb", "#rrggbbaa", "red", ...)
    or an RGB(A) tuple into an RGBA tuple.

    Raises:
        ValueError: If the color cannot be parsed.
    """
    from PIL import ImageColor

    if isinstance(value, (tuple, list)):
        if len(value) not in (3, 4):
            raise ValueError(f"Expected 3 or 4 color components, got {value!r}")
        components = [max(0, min(255, int(c))) for c in value]
        if len(components) == 3:
            components.append(255)
        return tuple(components)  # type: ignore[return-value]

    return ImageColor.getcolor(str(value), "RGBA")  # type: ignore[return-value]


@dataclass
class ImageMetadata:
    """Metadata associated with a raster buffer."""

    # Node that produced the buffer during a pass
    source_node_id: str | None = None
    source_type_id: str | None = None

    custom: dict[str, Any] = field(default_factory=dict)

    def copy(self) -> ImageMetadata:
        """Create a shallow copy of this metadata."""
        return ImageMetadata(
            source_node_id=self.source_node_id,
            source_type_id=self.source_type_id,
            custom=self.custom.copy(),
        )


@dataclass(eq=False)
class ImageData:
    """
    RGBA raster buffer exchanged between nodes.

    Pixels are stored as a numpy array in HWC format, shape
    (height, width, 4), dtype uint8. Width and height are always >= 1.
    Once published by the execution engine the buffer is frozen
    (read-only); transformations must build a new ImageData.

    Attributes:
        pixels: numpy array of shape (H, W, 4) with uint8 values [0, 255]
        metadata: Optional metadata about the buffer
    """
    pixels: NDArray[np.uint8]
    metadata: ImageMetadata = field(default_factory=ImageMetadata)

    def __post_init__(self) -> None:
        if self.pixels.dtype != np.uint8:
            raise TypeError(f"Expected uint8 pixels, got {self.pixels.dtype}")
        if self.pixels.ndim != 3 or self.pixels.shape[2] != 4:
            raise ValueError(f"Expected (H, W, 4) pixels, got shape {self.pixels.shape}")
        if self.pixels.shape[0] < 1 or self.pixels.shape[1] < 1:
            raise ValueError("Image dimensions must be at least 1x1")

    @classmethod
    def from_numpy(
        cls,
        array: NDArray,
        metadata: ImageMetadata | None = None
    ) -> ImageData:
        """
        Create ImageData from a numpy array.

        Handles various input formats:
        - float [0, 1] -> uint8 [0, 255] (rounded, clipped)
        - HW (grayscale) -> opaque HWC
        - HWC with 3 channels -> opaque RGBA
        """
        arr = np.asarray(array)

        if arr.dtype != np.uint8:
            arr = np.floor(np.clip(arr.astype(np.float64), 0.0, 1.0) * 255.0 + 0.5)
            arr = arr.astype(np.uint8)

        if arr.ndim == 2:
            arr = np.stack([arr, arr, arr], axis=-1)
        if arr.ndim != 3:
            raise ValueError(f"Unsupported array shape: {arr.shape}")
        if arr.shape[2] == 3:
            alpha = np.full(arr.shape[:2] + (1,), 255, dtype=np.uint8)
            arr = np.concatenate([arr, alpha], axis=-1)

        return cls(pixels=np.array(arr, dtype=np.uint8, copy=True), metadata=metadata or ImageMetadata())

    @classmethod
    def from_pil(cls, image, metadata: ImageMetadata | None = None) -> ImageData:
        """Create ImageData from a PIL Image."""
        from PIL import Image

        if not isinstance(image, Image.Image):
            raise TypeError(f"Expected PIL Image, got {type(image)}")

        if image.mode != "RGBA":
            image = image.convert("RGBA")

        arr = np.array(image, dtype=np.uint8)
        return cls(pixels=arr, metadata=metadata or ImageMetadata())

    @classmethod
    def from_bytes(
        cls,
        width: int,
        height: int,
        data: bytes | bytearray | memoryview,
        metadata: ImageMetadata | None = None,
    ) -> ImageData:
        """Create ImageData from packed row-major RGBA bytes."""
        width, height = clamp_dimension(width), clamp_dimension(height)
        expected = width * height * 4
        if len(data) != expected:
            raise ValueError(f"Expected {expected} bytes for {width}x{height}, got {len(data)}")
        arr = np.frombuffer(bytes(data), dtype=np.uint8).reshape(height, width, 4).copy()
        return cls(pixels=arr, metadata=metadata or ImageMetadata())

    @classmethod
    def empty(cls, width: int, height: int) -> ImageData:
        """Create a fully transparent black buffer of the given size."""
        width, height = clamp_dimension(width), clamp_dimension(height)
        return cls(pixels=np.zeros((height, width, 4), dtype=np.uint8))

    @classmethod
    def filled(cls, width: int, height: int, color: RGBA) -> ImageData:
        """Create a buffer filled with a single RGBA color."""
        width, height = clamp_dimension(width), clamp_dimension(height)
        arr = np.empty((height, width, 4), dtype=np.uint8)
        arr[...] = np.asarray(color, dtype=np.uint8)
        return cls(pixels=arr)

    @property
    def width(self) -> int:
        """Image width in pixels."""
        return self.pixels.shape[1]

    @property
    def height(self) -> int:
        """Image height in pixels."""
        return self.pixels.shape[0]

    @property
    def size(self) -> tuple[int, int]:
        """Image size as (width, height)."""
        return (self.width, self.height)

    @property
    def is_frozen(self) -> bool:
        return not self.pixels.flags.writeable

    def freeze(self) -> ImageData:
        """Mark the pixel buffer read-only and return self."""
        self.pixels.flags.writeable = False
        return self

    def get_pixel(self, x: int, y: int) -> RGBA:
        """Get the RGBA sample at column x, row y."""
        r, g, b, a = self.pixels[y, x]
        return (int(r), int(g), int(b), int(a))

    def to_bytes(self) -> bytes:
        """Packed row-major RGBA bytes (width * height * 4)."""
        return self.pixels.tobytes()

    def to_numpy(self, dtype: np.dtype = np.uint8) -> NDArray:
        """
        Convert to numpy array.

        Args:
            dtype: uint8 for raw samples, a float dtype for values in [0, 1]

        Returns:
            Array in HWC format (always a copy)
        """
        if dtype == np.uint8:
            return self.pixels.copy()
        return self.pixels.astype(dtype) / 255.0

    def to_pil(self):
        """Convert to PIL Image."""
        from PIL import Image

        return Image.fromarray(np.ascontiguousarray(self.pixels))

    def thumbnail(self, max_width: int = 260) -> ImageData:
        """
        Create a preview copy no wider than max_width.

        Uses nearest-neighbour sampling so procedural textures keep
        their hard pixel edges. Images narrower than max_width are
        copied at full size.
        """
        from PIL import Image

        scale = min(1.0, max_width / self.width)
        width = max(1, round(self.width * scale))
        height = max(1, round(self.height * scale))
        if (width, height) == self.size:
            return self.copy()

        pil_image = self.to_pil().resize((width, height), Image.Resampling.NEAREST)
        return ImageData.from_pil(pil_image, self.metadata.copy())

    def copy(self) -> ImageData:
        """Create a writable copy of this buffer."""
        return ImageData(
            pixels=self.pixels.copy(),
            metadata=self.metadata.copy(),
        )
