"""
Tests for the raster buffer and helpers.
"""

import numpy as np
import pytest

from node_studio.core.data_types import (
    DataType,
    ImageData,
    ImageMetadata,
    clamp_dimension,
    parse_color,
)


class TestHelpers:
    """Tests for clamp_dimension and parse_color."""

    @pytest.mark.parametrize(
        "value, expected",
        [(10, 10), (10.9, 10), (0, 1), (-5, 1), (float("nan"), 1), ("abc", 1), (None, 1)],
    )
    def test_clamp_dimension(self, value, expected):
        assert clamp_dimension(value) == expected

    def test_parse_hex_colors(self):
        assert parse_color("#ff0000") == (255, 0, 0, 255)
        assert parse_color("#0f0") == (0, 255, 0, 255)
        assert parse_color("#0000ff80") == (0, 0, 255, 128)

    def test_parse_named_color(self):
        assert parse_color("white") == (255, 255, 255, 255)

    def test_parse_tuple(self):
        assert parse_color((1, 2, 3)) == (1, 2, 3, 255)
        assert parse_color((300, -1, 3, 4)) == (255, 0, 3, 4)

    def test_parse_invalid(self):
        with pytest.raises(ValueError):
            parse_color("not-a-color")

    def test_data_type_compatibility(self):
        assert DataType.IMAGE.is_compatible_with(DataType.IMAGE)


class TestImageData:
    """Tests for ImageData."""

    def test_empty_is_transparent(self):
        image = ImageData.empty(4, 3)
        assert image.size == (4, 3)
        assert image.pixels.shape == (3, 4, 4)
        assert image.get_pixel(0, 0) == (0, 0, 0, 0)

    def test_empty_clamps_size(self):
        assert ImageData.empty(0, -2).size == (1, 1)

    def test_filled(self):
        image = ImageData.filled(2, 2, (10, 20, 30, 40))
        assert image.get_pixel(1, 1) == (10, 20, 30, 40)

    def test_rejects_wrong_dtype(self):
        with pytest.raises(TypeError):
            ImageData(pixels=np.zeros((2, 2, 4), dtype=np.float32))

    def test_rejects_wrong_shape(self):
        with pytest.raises(ValueError):
            ImageData(pixels=np.zeros((2, 2, 3), dtype=np.uint8))

    def test_from_numpy_float_rounds(self):
        arr = np.full((1, 1, 4), 0.5)
        image = ImageData.from_numpy(arr)
        # 0.5 * 255 = 127.5 rounds half up
        assert image.get_pixel(0, 0) == (128, 128, 128, 128)

    def test_from_numpy_grayscale_is_opaque(self):
        image = ImageData.from_numpy(np.zeros((2, 3), dtype=np.uint8))
        assert image.size == (3, 2)
        assert image.get_pixel(2, 1) == (0, 0, 0, 255)

    def test_bytes_layout_is_row_major_rgba(self):
        data = bytes(range(2 * 1 * 4))
        image = ImageData.from_bytes(2, 1, data)
        assert image.get_pixel(1, 0) == (4, 5, 6, 7)
        assert image.to_bytes() == data

    def test_from_bytes_length_mismatch(self):
        with pytest.raises(ValueError):
            ImageData.from_bytes(2, 2, b"\x00" * 3)

    def test_freeze(self):
        image = ImageData.empty(2, 2)
        assert not image.is_frozen

        image.freeze()

        assert image.is_frozen
        with pytest.raises(ValueError):
            image.pixels[0, 0, 0] = 1

    def test_copy_is_writable(self):
        image = ImageData.filled(2, 2, (1, 2, 3, 4)).freeze()
        image.metadata.source_node_id = "node_x"

        clone = image.copy()
        clone.pixels[0, 0, 0] = 99

        assert not clone.is_frozen
        assert image.get_pixel(0, 0) == (1, 2, 3, 4)
        assert clone.metadata.source_node_id == "node_x"

    def test_to_numpy_float(self):
        image = ImageData.filled(1, 1, (255, 0, 51, 255))
        arr = image.to_numpy(np.float32)
        assert arr[0, 0, 0] == pytest.approx(1.0)
        assert arr[0, 0, 2] == pytest.approx(0.2)

    def test_pil_conversion(self):
        image = ImageData.filled(3, 2, (9, 8, 7, 6))
        pil_image = image.to_pil()
        assert pil_image.mode == "RGBA"
        assert pil_image.size == (3, 2)
        assert ImageData.from_pil(pil_image).get_pixel(2, 1) == (9, 8, 7, 6)

    def test_thumbnail_limits_width(self):
        image = ImageData.empty(520, 100)
        image.metadata = ImageMetadata(source_node_id="node_a")

        thumb = image.thumbnail(260)

        assert thumb.size == (260, 50)
        assert thumb.metadata.source_node_id == "node_a"

    def test_thumbnail_keeps_small_images(self):
        image = ImageData.filled(100, 40, (1, 1, 1, 1))
        assert image.thumbnail(260).size == (100, 40)

    def test_thumbnail_is_nearest_neighbour(self):
        pixels = np.zeros((2, 4, 4), dtype=np.uint8)
        pixels[:, 2:] = 255
        thumb = ImageData(pixels=pixels).thumbnail(2)
        assert thumb.get_pixel(0, 0) == (0, 0, 0, 0)
        assert thumb.get_pixel(1, 0) == (255, 255, 255, 255)
