"""Stipple placement.

The StippleEngine samples the silhouette on a regular grid and turns every
inside sample into an IconDrawInstruction. Samples close to an edge are
pushed furthest away from the shape's center and get the most rotation
jitter, which gives the characteristic "exploding edges" look.
"""

import math
import random

import numpy as np

from stippler.config import IconType, StippleParameters
from stippler.domain import STIPPLE_STYLE, IconDrawInstruction, Mask
from stippler.exceptions import InputError
from stippler.utils.numeric import round_half_up

EDGE_SEARCH_RADIUS = 8


def grid_step(density: float) -> int:
    """Sampling stride for a density value.

    density=10 gives 32, density=60 gives 17, density=100 gives 5.
    """
    return max(2, round_half_up(35 - (density / 100) * 30))


def estimate_edge_distance(
    edges: Mask, x: int, y: int, radius: int = EDGE_SEARCH_RADIUS
) -> float:
    """Approximate the distance from (x, y) to the nearest edge pixel.

    Searches square windows of growing radius around the sample, each scanned
    row by row, and returns the Euclidean distance to the first edge pixel of
    the first window that contains one. Windows are clipped to the mask.
    This is a bounded local estimate, not an exact distance transform.

    Args:
        edges: Edge mask of shape (height, width)
        x: Sample column
        y: Sample row
        radius: Largest window radius to search

    Returns:
        0 if the sample is an edge, the distance to the first edge found, or
        radius when no edge lies within the search window
    """
    if edges[y, x]:
        return 0.0

    height, width = edges.shape
    for r in range(1, radius + 1):
        top = max(0, y - r)
        left = max(0, x - r)
        window = edges[top : min(height, y + r + 1), left : min(width, x + r + 1)]
        hits = np.flatnonzero(window)
        if hits.size:
            row, col = divmod(int(hits[0]), window.shape[1])
            return math.hypot(left + col - x, top + row - y)

    return float(radius)


class StippleEngine:
    """Places icon stipples over a silhouette.

    The only source of non-determinism is rotation jitter, drawn from an
    injectable random.Random. Pass a seeded instance for reproducible output.

    Example:
        engine = StippleEngine(rng=random.Random(7))
        instructions = engine.render(mask, edges, width, height, (0, 0), params)
    """

    def __init__(self, rng: random.Random | None = None) -> None:
        """Initialize the engine.

        Args:
            rng: Random source for rotation jitter (fresh unseeded if None)
        """
        self.rng = rng if rng is not None else random.Random()

    def render(
        self,
        mask: Mask,
        edges: Mask,
        width: int,
        height: int,
        origin: tuple[float, float],
        params: StippleParameters,
    ) -> list[IconDrawInstruction]:
        """Compute the placed icons for one frame.

        Args:
            mask: Silhouette mask of shape (height, width)
            edges: Edge mask of shape (height, width)
            width: Width of the sampled region in pixels
            height: Height of the sampled region in pixels
            origin: Surface position of the region's top-left corner
            params: Stipple parameters for this frame

        Returns:
            Instructions in row-major sample order

        Raises:
            InputError: If the mask shapes do not match the region size
        """
        if mask.shape != (height, width) or edges.shape != (height, width):
            raise InputError(
                f"mask shapes {mask.shape} and {edges.shape} do not match "
                f"region {width}x{height}"
            )

        origin_x, origin_y = origin
        step = grid_step(params.density)
        center_x = origin_x + width / 2
        center_y = origin_y + height / 2
        max_dispersion = max(width, height) * params.dispersion_amount / 100
        icon_type = params.icon_type if isinstance(params.icon_type, IconType) else IconType.CURSOR

        instructions: list[IconDrawInstruction] = []
        for y in range(0, height, step):
            for x in range(0, width, step):
                if not mask[y, x]:
                    continue

                distance = estimate_edge_distance(edges, x, y)
                normalized = min(distance / EDGE_SEARCH_RADIUS, 1.0)

                away = math.atan2(origin_y + y - center_y, origin_x + x - center_x)
                strength = (1 - normalized) * max_dispersion
                tx = origin_x + x + math.cos(away) * strength
                ty = origin_y + y + math.sin(away) * strength

                jitter = self.rng.random() - 0.5
                rotation = math.radians(jitter * params.rotation_variance * (1 - normalized))

                instructions.append(
                    IconDrawInstruction(
                        x=tx,
                        y=ty,
                        rotation=rotation,
                        icon_type=icon_type,
                        size=params.icon_size,
                        style=STIPPLE_STYLE,
                    )
                )

        return instructions
