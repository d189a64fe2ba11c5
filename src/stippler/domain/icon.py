"""Icon draw instructions produced by the stipple engine."""

from dataclasses import dataclass

from stippler.config import IconType

RGB = tuple[int, int, int]

WHITE: RGB = (255, 255, 255)
BLACK: RGB = (0, 0, 0)


@dataclass(frozen=True, slots=True)
class IconStyle:
    """Fill and stroke settings for one icon.

    Attributes:
        fill: Fill color
        stroke: Outline color
        stroke_width: Outline width in pixels
    """

    fill: RGB = WHITE
    stroke: RGB = BLACK
    stroke_width: float = 0.6


STIPPLE_STYLE = IconStyle()


@dataclass(frozen=True, slots=True)
class IconDrawInstruction:
    """A placed, rotated icon ready for a drawing surface.

    Attributes:
        x: Final X position (after dispersion) in surface pixels
        y: Final Y position (after dispersion) in surface pixels
        rotation: Rotation in radians
        icon_type: Glyph to draw
        size: Icon size in pixels
        style: Fill and stroke settings
    """

    x: float
    y: float
    rotation: float
    icon_type: IconType
    size: float
    style: IconStyle = STIPPLE_STYLE
