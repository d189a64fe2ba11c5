"""Unit tests for the Pillow drawing surface."""

import math

import pytest

from stippler.domain import IconStyle, PixelBuffer
from stippler.exceptions import ConfigurationError, InputError
from stippler.io.surface import IDENTITY, PillowSurface

BLACK = (0, 0, 0)
WHITE_FILL = IconStyle(fill=(255, 255, 255), stroke=(255, 255, 255), stroke_width=1)


class TestPillowSurface:
    """Tests for PillowSurface class."""

    def test_size(self):
        """Test surface dimensions."""
        surface = PillowSurface(64, 32)
        assert surface.width == 64
        assert surface.height == 32

    @pytest.mark.parametrize(("width", "height"), [(0, 10), (10, -1)])
    def test_rejects_non_positive_size(self, width, height):
        """Test zero or negative sizes are rejected."""
        with pytest.raises(ConfigurationError):
            PillowSurface(width, height)

    def test_rejects_oversized(self):
        """Test sizes beyond the limit are rejected."""
        with pytest.raises(ConfigurationError, match="exceeds"):
            PillowSurface(200, 100, max_dimension=128)

    def test_clear(self):
        """Test clear fills every pixel with an opaque color."""
        surface = PillowSurface(4, 3)
        surface.clear((10, 20, 30))
        pixels = surface.read_pixels()
        assert (pixels.data == (10, 20, 30, 255)).all()

    def test_translate_and_rotate(self):
        """Test transforms compose like a canvas context."""
        surface = PillowSurface(10, 10)
        surface.translate(5, 5)
        surface.rotate(math.pi / 2)
        x, y = surface.apply(1, 0)
        assert math.isclose(x, 5.0, abs_tol=1e-9)
        assert math.isclose(y, 6.0)

    def test_save_restore(self):
        """Test restore returns to the saved transform."""
        surface = PillowSurface(10, 10)
        surface.save()
        surface.translate(3, 4)
        surface.restore()
        assert surface.transform == IDENTITY

    def test_restore_on_empty_stack(self):
        """Test restoring without a save is a no-op."""
        surface = PillowSurface(10, 10)
        surface.translate(1, 1)
        surface.restore()
        assert surface.apply(0, 0) == (1.0, 1.0)

    def test_draw_polygon_uses_transform(self):
        """Test polygons land at the translated position."""
        surface = PillowSurface(20, 20)
        surface.clear(BLACK)
        surface.translate(10, 10)
        surface.draw_polygon([(-3, -3), (3, -3), (3, 3), (-3, 3)], WHITE_FILL)

        image = surface.to_image()
        assert image.getpixel((10, 10))[:3] == (255, 255, 255)
        assert image.getpixel((1, 1))[:3] == BLACK

    def test_draw_circle(self):
        """Test circles fill around their center."""
        surface = PillowSurface(20, 20)
        surface.clear(BLACK)
        surface.draw_circle((10, 10), 4, WHITE_FILL)

        image = surface.to_image()
        assert image.getpixel((10, 10))[:3] == (255, 255, 255)
        assert image.getpixel((18, 18))[:3] == BLACK

    def test_degenerate_polygon_ignored(self):
        """Test polygons with fewer than three points draw nothing."""
        surface = PillowSurface(5, 5)
        surface.clear(BLACK)
        surface.draw_polygon([(0, 0), (4, 4)], WHITE_FILL)
        assert not surface.read_pixels().data[..., :3].any()

    def test_draw_buffer_resamples(self):
        """Test frames are scaled to the target region."""
        surface = PillowSurface(8, 8)
        surface.clear(BLACK)
        surface.draw_buffer(PixelBuffer.solid(2, 2, (200, 100, 50)), 2, 2, 4, 4)

        region = surface.read_pixels(2, 2, 4, 4)
        assert region.size == (4, 4)
        assert (region.data == (200, 100, 50, 255)).all()
        assert tuple(surface.read_pixels(0, 0, 1, 1).data[0, 0]) == (0, 0, 0, 255)

    def test_draw_buffer_composites_alpha(self):
        """Test transparent frames leave the background visible."""
        surface = PillowSurface(4, 4)
        surface.clear((9, 9, 9))
        surface.draw_buffer(PixelBuffer.solid(4, 4, (255, 255, 255), alpha=0))
        assert (surface.read_pixels().data == (9, 9, 9, 255)).all()

    def test_draw_empty_buffer(self):
        """Test zero-area frames are rejected."""
        surface = PillowSurface(4, 4)
        with pytest.raises(InputError):
            surface.draw_buffer(PixelBuffer.solid(0, 4, BLACK))

    def test_read_pixels_is_copy(self):
        """Test later drawing does not change an earlier read."""
        surface = PillowSurface(4, 4)
        surface.clear(BLACK)
        before = surface.read_pixels()
        surface.clear((255, 255, 255))
        assert not before.data[..., :3].any()
