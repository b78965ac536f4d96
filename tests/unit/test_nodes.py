"""
Tests for the built-in node types.
"""

import numpy as np
import pytest

from node_studio.core.data_types import ImageData
from node_studio.core.execution import ExecutionContext
from node_studio.core.node_types import (
    NodeCategory,
    NodeRegistry,
    ParameterDefinition,
    node_type,
)
from node_studio.core.noise import PerlinNoise
from node_studio.core.project import ProjectSettings
from node_studio.nodes.composite import combine_executor
from node_studio.nodes.generator import (
    create_image_executor,
    gradient_executor,
    linear_gradient,
    perlin_noise_executor,
    render_noise,
)
from node_studio.nodes.output import display_executor


def make_context(**settings):
    from uuid import uuid4

    return ExecutionContext(pass_id=uuid4(), settings=ProjectSettings(**settings))


class TestRegistry:
    """Tests for built-in registration."""

    def test_all_builtins_registered(self, registry):
        assert {t.id for t in registry.get_all()} == {
            "CreateImage", "Gradient", "PerlinNoise", "Combine", "Display",
        }

    def test_list_by_category(self, registry):
        generators = {t.id for t in registry.list_by_category(NodeCategory.GENERATOR)}
        assert generators == {"CreateImage", "Gradient", "PerlinNoise"}

    def test_registry_is_singleton(self, registry):
        assert NodeRegistry() is registry

    def test_decorator_registers(self, registry):
        @node_type("Invert", "Invert", NodeCategory.COMPOSITE)
        async def invert(inputs, parameters, context):
            return {}

        assert registry.get("Invert") is invert
        assert invert.executor is not None

    def test_default_parameters_are_fresh(self, registry):
        perlin = registry.get("PerlinNoise")
        params = perlin.get_default_parameters()
        params["seed"] = 1

        assert perlin.get_default_parameters()["seed"] == 1337

    def test_seed_parameter_range(self):
        seed = ParameterDefinition.seed()
        assert seed.coerce(0) == 1
        assert seed.coerce(2**31) == 2**30


class TestCreateImage:
    """Tests for the CreateImage node."""

    @pytest.mark.asyncio
    async def test_fills_color(self):
        out = await create_image_executor(
            {}, {"width": 5, "height": 3, "color": "#102030"}, make_context()
        )
        image = out["image"]
        assert image.size == (5, 3)
        assert image.get_pixel(4, 2) == (16, 32, 48, 255)


class TestGradient:
    """Tests for the Gradient node."""

    def test_horizontal_samples_pixel_centres(self):
        image = linear_gradient(2, 1, (0, 0, 0, 255), (255, 255, 255, 255))
        # t = 0.25 and 0.75
        assert image.get_pixel(0, 0) == (64, 64, 64, 255)
        assert image.get_pixel(1, 0) == (191, 191, 191, 255)

    def test_vertical(self):
        image = linear_gradient(3, 4, (0, 0, 0, 255), (255, 0, 0, 255), vertical=True)
        column = [image.get_pixel(1, y)[0] for y in range(4)]
        assert column == sorted(column)
        assert image.get_pixel(0, 2) == image.get_pixel(2, 2)

    @pytest.mark.asyncio
    async def test_executor_defaults(self):
        out = await gradient_executor({}, {"width": 16, "height": 8}, make_context())
        image = out["image"]
        assert image.size == (16, 8)
        # Left edge is close to color1 (#0ea5e9), right edge to color2 (#8b5cf6)
        left = image.get_pixel(0, 0)
        right = image.get_pixel(15, 0)
        assert abs(left[0] - 0x0E) < 10
        assert abs(right[0] - 0x8B) < 10

    def test_buffer_is_writable_copy(self):
        image = linear_gradient(1, 1, (0, 0, 0, 255), (255, 255, 255, 255))
        assert not image.is_frozen


class TestPerlinNoiseNode:
    """Tests for the PerlinNoise node."""

    def test_single_octave_matches_direct_noise(self):
        scale = 0.05
        image = render_noise(12, 7, scale=scale, octaves=1, seed=42, contrast=1.0)
        perlin = PerlinNoise(42)

        for y in range(7):
            for x in range(12):
                value = min(1.0, max(0.0, perlin.noise2d(x * scale, y * scale)))
                expected = int(np.floor(value * 255 + 0.5))
                assert abs(image.get_pixel(x, y)[0] - expected) <= 1

    def test_grayscale_and_opaque(self):
        image = render_noise(16, 16, seed=3)
        pixels = image.pixels
        assert np.array_equal(pixels[..., 0], pixels[..., 1])
        assert np.array_equal(pixels[..., 1], pixels[..., 2])
        assert (pixels[..., 3] == 255).all()

    def test_deterministic(self):
        a = render_noise(32, 32, seed=9)
        b = render_noise(32, 32, seed=9)
        assert np.array_equal(a.pixels, b.pixels)

    def test_seed_sensitive(self):
        a = render_noise(32, 32, scale=0.1, seed=9)
        b = render_noise(32, 32, scale=0.1, seed=10)
        assert not np.array_equal(a.pixels, b.pixels)

    def test_contrast_darkens(self):
        flat = render_noise(32, 32, scale=0.1, seed=5, contrast=1.0)
        steep = render_noise(32, 32, scale=0.1, seed=5, contrast=2.0)
        assert (steep.pixels[..., 0] <= flat.pixels[..., 0]).all()

    def test_degenerate_parameters_are_floored(self):
        image = render_noise(0, 0, scale=0, octaves=0, seed=1, contrast=-3)
        assert image.size == (1, 1)

    @pytest.mark.asyncio
    async def test_executor_uses_parameters(self):
        out = await perlin_noise_executor(
            {}, {"width": 20, "height": 10, "seed": 4}, make_context()
        )
        assert out["image"].size == (20, 10)


class TestCombine:
    """Tests for the Combine node."""

    @pytest.mark.asyncio
    async def test_no_inputs_gives_blank_default_size(self):
        out = await combine_executor({}, {}, make_context(default_width=12, default_height=6))
        image = out["image"]
        assert image.size == (12, 6)
        assert not image.pixels.any()

    @pytest.mark.asyncio
    async def test_single_input_passes_through(self):
        a = ImageData.filled(3, 3, (1, 2, 3, 4))

        out = await combine_executor({"A": a}, {"mode": "screen"}, make_context())
        assert out["image"] is a

        out = await combine_executor({"A": None, "B": a}, {}, make_context())
        assert out["image"] is a

    @pytest.mark.asyncio
    async def test_blends_both_inputs(self):
        a = ImageData.filled(3, 3, (255, 255, 255, 255))
        b = ImageData.filled(3, 3, (0, 0, 0, 255))

        out = await combine_executor({"A": a, "B": b}, {"mode": "multiply"}, make_context())

        assert out["image"].get_pixel(1, 1) == (0, 0, 0, 255)


class TestDisplay:
    """Tests for the Display node."""

    @pytest.mark.asyncio
    async def test_passes_image_through(self):
        image = ImageData.empty(2, 2)
        out = await display_executor({"image": image}, {}, make_context())
        assert out["image"] is image

    @pytest.mark.asyncio
    async def test_unconnected_gives_none(self):
        out = await display_executor({}, {}, make_context())
        assert out["image"] is None
