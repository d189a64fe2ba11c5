"""Drawing surfaces for rendered frames.

This module provides the RenderSurface protocol consumed by the renderer and
a Pillow implementation. The surface keeps a canvas-style affine transform
stack (save/restore, translate, rotate) and applies it to polygon and circle
coordinates before rasterizing.
"""

import math
from typing import Protocol

import numpy as np
from PIL import Image, ImageDraw

from stippler.domain import IconStyle, PixelBuffer
from stippler.exceptions import ConfigurationError, InputError

RGB = tuple[int, int, int]
# Affine transform (a, b, c, d, e, f): x' = a*x + c*y + e, y' = b*x + d*y + f
Transform = tuple[float, float, float, float, float, float]

IDENTITY: Transform = (1.0, 0.0, 0.0, 1.0, 0.0, 0.0)

DEFAULT_MAX_DIMENSION = 8192


class RenderSurface(Protocol):
    """Drawing target shared by all frames of a render or export job."""

    @property
    def width(self) -> int: ...

    @property
    def height(self) -> int: ...

    def save(self) -> None: ...

    def restore(self) -> None: ...

    def translate(self, dx: float, dy: float) -> None: ...

    def rotate(self, radians: float) -> None: ...

    def clear(self, color: RGB) -> None: ...

    def draw_polygon(self, points: list[tuple[float, float]], style: IconStyle) -> None: ...

    def draw_circle(
        self, center: tuple[float, float], radius: float, style: IconStyle
    ) -> None: ...

    def draw_buffer(
        self,
        buffer: PixelBuffer,
        x: int = 0,
        y: int = 0,
        width: int | None = None,
        height: int | None = None,
    ) -> None: ...

    def read_pixels(
        self,
        x: int = 0,
        y: int = 0,
        width: int | None = None,
        height: int | None = None,
    ) -> PixelBuffer: ...


class PillowSurface:
    """RenderSurface backed by a Pillow RGBA image.

    Example:
        surface = PillowSurface(640, 360)
        surface.clear((0, 0, 0))
        surface.translate(100, 100)
        surface.draw_polygon([(0, 0), (10, 0), (0, 10)], IconStyle())
        frame = surface.read_pixels()
    """

    def __init__(
        self, width: int, height: int, max_dimension: int = DEFAULT_MAX_DIMENSION
    ) -> None:
        """Create a surface.

        Args:
            width: Width in pixels
            height: Height in pixels
            max_dimension: Largest accepted width or height

        Raises:
            ConfigurationError: If the size is not positive or exceeds the limit
        """
        if width <= 0 or height <= 0:
            raise ConfigurationError(f"surface size must be positive, got {width}x{height}")
        if width > max_dimension or height > max_dimension:
            raise ConfigurationError(
                f"surface size {width}x{height} exceeds the {max_dimension}px limit"
            )

        self._image = Image.new("RGBA", (width, height), (0, 0, 0, 255))
        self._draw = ImageDraw.Draw(self._image)
        self._transform: Transform = IDENTITY
        self._stack: list[Transform] = []

    @property
    def width(self) -> int:
        """Width in pixels."""
        return self._image.width

    @property
    def height(self) -> int:
        """Height in pixels."""
        return self._image.height

    @property
    def transform(self) -> Transform:
        """Current affine transform."""
        return self._transform

    def save(self) -> None:
        """Push the current transform."""
        self._stack.append(self._transform)

    def restore(self) -> None:
        """Pop the most recently saved transform (no-op on an empty stack)."""
        if self._stack:
            self._transform = self._stack.pop()

    def translate(self, dx: float, dy: float) -> None:
        """Move the origin by (dx, dy) in current coordinates."""
        a, b, c, d, e, f = self._transform
        self._transform = (a, b, c, d, e + a * dx + c * dy, f + b * dx + d * dy)

    def rotate(self, radians: float) -> None:
        """Rotate subsequent drawing clockwise (y axis points down)."""
        cos_r = math.cos(radians)
        sin_r = math.sin(radians)
        a, b, c, d, e, f = self._transform
        self._transform = (
            a * cos_r + c * sin_r,
            b * cos_r + d * sin_r,
            c * cos_r - a * sin_r,
            d * cos_r - b * sin_r,
            e,
            f,
        )

    def apply(self, x: float, y: float) -> tuple[float, float]:
        """Map a point from current to surface coordinates."""
        a, b, c, d, e, f = self._transform
        return (a * x + c * y + e, b * x + d * y + f)

    def clear(self, color: RGB) -> None:
        """Fill the whole surface with an opaque color, ignoring the transform."""
        self._draw.rectangle((0, 0, self.width, self.height), fill=(*color, 255))

    def draw_polygon(self, points: list[tuple[float, float]], style: IconStyle) -> None:
        """Fill and stroke a closed polygon given in current coordinates."""
        if len(points) < 3:
            return
        mapped = [self.apply(x, y) for x, y in points]
        self._draw.polygon(
            mapped,
            fill=(*style.fill, 255),
            outline=(*style.stroke, 255),
            width=_stroke_pixels(style.stroke_width),
        )

    def draw_circle(
        self, center: tuple[float, float], radius: float, style: IconStyle
    ) -> None:
        """Fill and stroke a disc centred on a point in current coordinates."""
        cx, cy = self.apply(*center)
        self._draw.ellipse(
            (cx - radius, cy - radius, cx + radius, cy + radius),
            fill=(*style.fill, 255),
            outline=(*style.stroke, 255),
            width=_stroke_pixels(style.stroke_width),
        )

    def draw_buffer(
        self,
        buffer: PixelBuffer,
        x: int = 0,
        y: int = 0,
        width: int | None = None,
        height: int | None = None,
    ) -> None:
        """Composite a frame onto the surface, resampling it to the target size.

        Args:
            buffer: Frame to draw
            x: Left edge in surface pixels
            y: Top edge in surface pixels
            width: Target width (default: surface width)
            height: Target height (default: surface height)
        """
        if buffer.is_empty():
            raise InputError("cannot draw a zero-area buffer")

        target = (width or self.width, height or self.height)
        image = buffer.to_image()
        if image.size != target:
            image = image.resize(target, Image.Resampling.BILINEAR)
        self._image.alpha_composite(image, (x, y))

    def read_pixels(
        self,
        x: int = 0,
        y: int = 0,
        width: int | None = None,
        height: int | None = None,
    ) -> PixelBuffer:
        """Read back a rectangular region as a PixelBuffer.

        Args:
            x: Left edge of the region
            y: Top edge of the region
            width: Region width (default: to the right edge)
            height: Region height (default: to the bottom edge)

        Returns:
            Copy of the region's pixels
        """
        w = self.width - x if width is None else width
        h = self.height - y if height is None else height
        region = self._image.crop((x, y, x + w, y + h))
        return PixelBuffer(np.array(region, dtype=np.uint8))

    def to_image(self) -> Image.Image:
        """Return a copy of the surface as a Pillow image."""
        return self._image.copy()


def _stroke_pixels(stroke_width: float) -> int:
    """Pillow strokes in whole pixels; hairlines still get one."""
    return max(1, round(stroke_width))
