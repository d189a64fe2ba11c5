"""Unit tests for the single-frame renderer."""

import random

import numpy as np
import pytest

from stippler.config import ProcessingConfig, StippleParameters
from stippler.core.renderer import FrameRenderer, Region, fit_contain
from stippler.core.stipple import StippleEngine
from stippler.domain import PixelBuffer
from stippler.exceptions import InputError
from stippler.io.surface import PillowSurface

BACKGROUND = (0x0B, 0x0F, 0x1A)


def dark_square(size: int = 64, lo: int = 16, hi: int = 48) -> PixelBuffer:
    """White frame with a black square in the middle."""
    data = np.full((size, size, 4), 255, dtype=np.uint8)
    data[lo:hi, lo:hi, :3] = 0
    return PixelBuffer(data)


@pytest.fixture
def renderer():
    """Renderer over a 64x64 surface with a seeded engine."""
    return FrameRenderer(PillowSurface(64, 64), StippleEngine(random.Random(0)))


class TestFitContain:
    """Tests for fit_contain."""

    def test_wide_source_letterboxed(self):
        """Test a wide source is centred vertically."""
        assert fit_contain(200, 100, 100, 100) == Region(0, 25, 100, 50)

    def test_tall_source_pillarboxed(self):
        """Test a tall source is centred horizontally."""
        assert fit_contain(100, 200, 100, 100) == Region(25, 0, 50, 100)

    def test_same_aspect_fills(self):
        """Test a matching aspect fills the canvas."""
        assert fit_contain(32, 18, 1920, 1080) == Region(0, 0, 1920, 1080)

    def test_zero_source(self):
        """Test zero-area sources are rejected."""
        with pytest.raises(InputError):
            fit_contain(0, 10, 100, 100)


class TestFrameRenderer:
    """Tests for FrameRenderer class."""

    def test_full_region(self, renderer):
        """Test the default region covers the surface."""
        assert renderer.full_region() == Region(0, 0, 64, 64)

    def test_render_draws_icons(self, renderer):
        """Test a dark shape produces icons on the background."""
        params = StippleParameters(density=100, dispersion_amount=0)
        count = renderer.render_buffer(dark_square(), params)

        pixels = renderer.surface.read_pixels().data
        assert count > 0
        assert tuple(pixels[0, 0, :3]) == BACKGROUND
        assert (pixels[..., :3] == 255).all(axis=2).any()

    def test_blank_frame_draws_nothing(self, renderer):
        """Test a frame without a silhouette leaves only the background."""
        count = renderer.render_buffer(
            PixelBuffer.solid(64, 64, (255, 255, 255)), StippleParameters()
        )
        pixels = renderer.surface.read_pixels().data
        assert count == 0
        assert (pixels[..., :3] == BACKGROUND).all()

    def test_invert_selects_bright_area(self, renderer):
        """Test inverting stipples the bright surround instead of the square."""
        params = StippleParameters(density=100)
        plain = renderer.render_buffer(dark_square(), params)
        inverted = renderer.render_buffer(
            dark_square(), params.model_copy(update={"invert_threshold": True})
        )
        assert inverted > plain

    def test_source_resampled_to_surface(self, renderer):
        """Test small sources are scaled before the silhouette is taken."""
        params = StippleParameters(density=100, dispersion_amount=0)
        small = renderer.render_buffer(dark_square(16, 4, 12), params)
        large = renderer.render_buffer(dark_square(64, 16, 48), params)
        assert small == large

    def test_region_offsets_icons(self):
        """Test icons stay inside the target region when not dispersed."""
        surface = PillowSurface(100, 50)
        renderer = FrameRenderer(surface, StippleEngine(random.Random(0)))
        buffer = PixelBuffer.solid(10, 10, (0, 0, 0))
        params = StippleParameters(density=100, dispersion_amount=0, icon_type="circle", icon_size=5)

        region = fit_contain(10, 10, 100, 50)
        renderer.render_buffer(buffer, params, region)

        pixels = surface.read_pixels().data
        assert (pixels[:, :20, :3] == BACKGROUND).all()
        assert (pixels[:, 80:, :3] == BACKGROUND).all()

    def test_zero_area_rejected(self, renderer):
        """Test zero-area frames raise InputError."""
        with pytest.raises(InputError):
            renderer.render_buffer(PixelBuffer.solid(0, 0, (0, 0, 0)), StippleParameters())


class TestRenderProgressive:
    """Tests for FrameRenderer.render_progressive."""

    def test_yields_quick_then_full(self, renderer):
        """Test two passes are produced, the first sparser."""
        passes = list(renderer.render_progressive(dark_square(), StippleParameters(density=100)))
        assert len(passes) == 2

        def lit(buffer: PixelBuffer) -> int:
            return int((buffer.data[..., :3] == 255).all(axis=2).sum())

        assert lit(passes[0]) < lit(passes[1])

    def test_quick_density_bounds(self, renderer, monkeypatch):
        """Test the quick pass density is clamped into the preview range."""
        seen: list[int] = []
        original = renderer.render_buffer

        def spy(buffer, params, region=None):
            seen.append(params.density)
            return original(buffer, params, region)

        monkeypatch.setattr(renderer, "render_buffer", spy)
        processing = ProcessingConfig(quick_preview_density_min=10, quick_preview_density_max=30)
        list(renderer.render_progressive(dark_square(), StippleParameters(density=80), processing))
        assert seen == [30, 80]
