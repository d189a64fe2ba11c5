"""Single-frame rendering pipeline.

Runs pixels -> silhouette -> edges -> stipples -> icon draws against a
RenderSurface. The source frame is first composited onto the surface at the
target region size, so resampling to the output resolution is done by the
surface before the silhouette is extracted.
"""

from collections.abc import Iterator
from dataclasses import dataclass

import structlog

from stippler.config import ProcessingConfig, StippleParameters
from stippler.core.icons import draw_instruction
from stippler.core.silhouette import detect_edges, extract_silhouette
from stippler.core.stipple import StippleEngine
from stippler.domain import PixelBuffer
from stippler.exceptions import InputError
from stippler.io.surface import RenderSurface
from stippler.utils.numeric import clamp

logger = structlog.get_logger("stippler")


@dataclass(frozen=True, slots=True)
class Region:
    """Placement of the source frame on the surface.

    Attributes:
        x: Left edge in surface pixels
        y: Top edge in surface pixels
        width: Width in surface pixels
        height: Height in surface pixels
    """

    x: int
    y: int
    width: int
    height: int


def fit_contain(source_width: int, source_height: int, width: int, height: int) -> Region:
    """Fit a source into a canvas, keeping aspect ratio and centering it.

    Args:
        source_width: Source width in pixels
        source_height: Source height in pixels
        width: Canvas width in pixels
        height: Canvas height in pixels

    Returns:
        Region covering the largest centred rectangle with the source's aspect
    """
    if source_width <= 0 or source_height <= 0:
        raise InputError(f"cannot fit a {source_width}x{source_height} source")

    scale = min(width / source_width, height / source_height)
    fitted_width = max(1, int(source_width * scale))
    fitted_height = max(1, int(source_height * scale))
    return Region(
        x=(width - fitted_width) // 2,
        y=(height - fitted_height) // 2,
        width=fitted_width,
        height=fitted_height,
    )


class FrameRenderer:
    """Renders stippled frames onto a shared surface.

    Example:
        renderer = FrameRenderer(PillowSurface(640, 480))
        count = renderer.render_buffer(buffer, StippleParameters())
        frame = renderer.surface.read_pixels()
    """

    def __init__(self, surface: RenderSurface, engine: StippleEngine | None = None) -> None:
        """Initialize the renderer.

        Args:
            surface: Drawing surface reused for every frame
            engine: Stipple engine (a fresh unseeded engine if None)
        """
        self.surface = surface
        self.engine = engine if engine is not None else StippleEngine()

    def full_region(self) -> Region:
        """Region covering the whole surface."""
        return Region(0, 0, self.surface.width, self.surface.height)

    def render_buffer(
        self,
        buffer: PixelBuffer,
        params: StippleParameters,
        region: Region | None = None,
    ) -> int:
        """Render one stippled frame.

        Args:
            buffer: Source frame at any resolution
            params: Stipple parameters for this frame
            region: Placement of the source on the surface (default: whole surface)

        Returns:
            Number of icons drawn

        Raises:
            InputError: If the source frame has zero area
        """
        if buffer.is_empty():
            raise InputError("zero-area frame")

        region = region or self.full_region()

        self.surface.clear(params.background_color)
        self.surface.draw_buffer(buffer, region.x, region.y, region.width, region.height)
        pixels = self.surface.read_pixels(region.x, region.y, region.width, region.height)

        mask = extract_silhouette(pixels, params.threshold, params.invert_threshold)
        edges = detect_edges(mask)

        self.surface.clear(params.background_color)
        instructions = self.engine.render(
            mask,
            edges,
            region.width,
            region.height,
            (region.x, region.y),
            params,
        )
        for instruction in instructions:
            draw_instruction(self.surface, instruction)

        logger.debug(
            "Frame rendered",
            width=region.width,
            height=region.height,
            inside=int(mask.sum()),
            edges=int(edges.sum()),
            icons=len(instructions),
        )
        return len(instructions)

    def render_progressive(
        self,
        buffer: PixelBuffer,
        params: StippleParameters,
        processing: ProcessingConfig | None = None,
        region: Region | None = None,
    ) -> Iterator[PixelBuffer]:
        """Render a quick low-density pass, then the full pass.

        Yields the surface contents after each pass so a caller can show the
        quick result while the full one is computed.

        Args:
            buffer: Source frame
            params: Full-quality parameters
            processing: Bounds for the quick pass density
            region: Placement of the source on the surface

        Yields:
            Surface pixels after the quick pass, then after the full pass
        """
        processing = processing or ProcessingConfig()
        quick_density = clamp(
            params.density,
            processing.quick_preview_density_min,
            processing.quick_preview_density_max,
        )
        quick = params.model_copy(update={"density": int(quick_density)})

        for stage in (quick, params):
            self.render_buffer(buffer, stage, region)
            yield self.surface.read_pixels()
