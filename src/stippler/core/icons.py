"""Icon geometry and dispatch.

Each icon variant maps to a pure function producing its outline in local
coordinates (origin at the stipple position, before rotation). Drawing is
delegated to a RenderSurface, which owns the translate/rotate/fill/stroke
primitives.
"""

import math
from collections.abc import Callable

from stippler.config import IconType
from stippler.domain import IconDrawInstruction
from stippler.io.surface import RenderSurface

Polygon = list[tuple[float, float]]


def cursor_path(size: float) -> Polygon:
    """Outline of the arrow cursor, tip at the origin."""
    s = size
    return [
        (0.0, 0.0),
        (0.0, s * 1.5),
        (s * 0.4, s * 1.1),
        (s * 0.7, s * 1.8),
        (s * 0.9, s * 1.7),
        (s * 0.6, s),
        (s * 1.1, s * 0.95),
    ]


def triangle_path(size: float) -> Polygon:
    """Outline of the upright triangle centred on the origin."""
    h = size * 1.2
    return [
        (0.0, -h * 0.6),
        (-h * 0.5, h * 0.6),
        (h * 0.5, h * 0.6),
    ]


def star_path(size: float) -> Polygon:
    """Outline of the five-pointed star, first point straight up."""
    outer = size * 0.8
    inner = size * 0.35
    points: Polygon = []
    for i in range(10):
        r = outer if i % 2 == 0 else inner
        a = (math.pi / 5) * i - math.pi / 2
        points.append((math.cos(a) * r, math.sin(a) * r))
    return points


def circle_radius(size: float) -> float:
    """Radius of the circle icon."""
    return size * 0.6


POLYGON_ICONS: dict[IconType, Callable[[float], Polygon]] = {
    IconType.CURSOR: cursor_path,
    IconType.TRIANGLE: triangle_path,
    IconType.STAR: star_path,
}


def icon_outline(icon_type: IconType, size: float) -> Polygon:
    """Get the local outline of a polygon icon.

    Circles have no polygon outline; unknown types fall back to the cursor.
    """
    return POLYGON_ICONS.get(icon_type, cursor_path)(size)


def draw_instruction(surface: RenderSurface, instruction: IconDrawInstruction) -> None:
    """Draw a single placed icon on a surface.

    Args:
        surface: Target drawing surface
        instruction: Placed icon to draw
    """
    if instruction.icon_type == IconType.CIRCLE:
        # Circles are rotation invariant
        surface.draw_circle(
            (instruction.x, instruction.y),
            circle_radius(instruction.size),
            instruction.style,
        )
        return

    surface.save()
    try:
        surface.translate(instruction.x, instruction.y)
        surface.rotate(instruction.rotation)
        surface.draw_polygon(
            icon_outline(instruction.icon_type, instruction.size),
            instruction.style,
        )
    finally:
        surface.restore()
