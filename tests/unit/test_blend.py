"""
Tests for blend modes.
"""

import numpy as np
import pytest

from node_studio.core.blend import BlendMode, blend_channels, blend_images
from node_studio.core.data_types import ImageData


WHITE = (255, 255, 255, 255)
BLACK = (0, 0, 0, 255)


def solid(color, width=4, height=4):
    return ImageData.filled(width, height, color)


class TestBlendMode:
    """Tests for mode parsing."""

    def test_parse_known(self):
        assert BlendMode.parse("screen") is BlendMode.SCREEN
        assert BlendMode.parse("Overlay") is BlendMode.OVERLAY

    def test_parse_unknown_falls_back_to_blend(self):
        assert BlendMode.parse("dissolve") is BlendMode.BLEND
        assert BlendMode.parse(None) is BlendMode.BLEND


class TestBlendImages:
    """Tests for blend_images."""

    def test_multiply_white_black_is_black(self):
        result = blend_images(solid(WHITE), solid(BLACK), "multiply")
        assert result.get_pixel(2, 2) == (0, 0, 0, 255)

    def test_blend_alpha_zero_is_a(self):
        a = solid((200, 100, 50, 255))
        b = solid((10, 20, 30, 255))
        assert blend_images(a, b, "blend", 0.0).get_pixel(0, 0) == (200, 100, 50, 255)

    def test_blend_alpha_one_is_b(self):
        a = solid((200, 100, 50, 255))
        b = solid((10, 20, 30, 255))
        assert blend_images(a, b, "blend", 1.0).get_pixel(0, 0) == (10, 20, 30, 255)

    def test_blend_alpha_is_clamped(self):
        a = solid((200, 100, 50, 255))
        b = solid((10, 20, 30, 255))
        assert blend_images(a, b, "blend", 5.0).get_pixel(0, 0) == (10, 20, 30, 255)

    def test_add_saturates(self):
        result = blend_images(solid((200, 10, 0, 255)), solid((100, 10, 0, 255)), "add")
        assert result.get_pixel(0, 0) == (255, 20, 0, 255)

    def test_screen(self):
        result = blend_images(solid(BLACK), solid((0, 128, 255, 255)), "screen")
        assert result.get_pixel(0, 0) == (0, 128, 255, 255)

    def test_overlay_uses_base_threshold(self):
        dark = (51, 51, 51, 255)      # 0.2
        light = (204, 204, 204, 255)  # 0.8
        mid = (128, 128, 128, 255)

        low = blend_images(solid(dark), solid(mid), "overlay").get_pixel(0, 0)
        high = blend_images(solid(light), solid(mid), "overlay").get_pixel(0, 0)

        # 2ab and 1 - 2(1-a)(1-b)
        assert low[0] == int(np.floor(2 * 0.2 * (128 / 255) * 255 + 0.5))
        assert high[0] == int(np.floor((1 - 2 * 0.2 * (1 - 128 / 255)) * 255 + 0.5))

    def test_output_alpha_always_opaque(self):
        a = solid((100, 100, 100, 0))
        b = solid((100, 100, 100, 10))
        for mode in BlendMode:
            assert blend_images(a, b, mode).get_pixel(0, 0)[3] == 255

    def test_size_taken_from_a(self):
        a = solid(WHITE, 6, 3)
        b = solid(WHITE, 2, 8)

        result = blend_images(a, b, "multiply")

        assert result.size == (6, 3)
        # Outside B's area the padding is black
        assert result.get_pixel(1, 1) == (255, 255, 255, 255)
        assert result.get_pixel(5, 1) == (0, 0, 0, 255)

    def test_inputs_untouched(self):
        a = solid(WHITE).freeze()
        b = solid(BLACK).freeze()
        blend_images(a, b, "screen")
        assert a.get_pixel(0, 0) == WHITE
        assert b.get_pixel(0, 0) == BLACK


class TestBlendChannels:
    """Tests for the float-channel operators."""

    def test_unknown_mode_is_linear_blend(self):
        a = np.array([0.0, 1.0])
        b = np.array([1.0, 0.0])
        assert np.allclose(blend_channels(a, b, "nope", 0.25), [0.25, 0.75])

    def test_multiply(self):
        assert blend_channels(np.array([0.5]), np.array([0.5]), BlendMode.MULTIPLY)[0] == pytest.approx(0.25)
