"""Silhouette extraction and edge detection.

Both operations are pure, vectorized over the whole frame with numpy, and
return fresh uint8 masks holding only 0 and 1.
"""

import numpy as np

from stippler.domain import Mask, PixelBuffer
from stippler.exceptions import InputError


def extract_silhouette(buffer: PixelBuffer, threshold: float, invert: bool) -> Mask:
    """Classify each pixel as inside or outside the silhouette.

    A pixel is inside when its unweighted brightness (R+G+B)/3 is strictly
    below the threshold. The comparison is done on the channel sum against
    3*threshold so it stays exact for integer thresholds.

    Args:
        buffer: RGBA frame
        threshold: Brightness threshold (0-255)
        invert: Flip inside and outside

    Returns:
        Mask of shape (height, width), 1 = inside
    """
    rgb_sum = buffer.data[..., :3].sum(axis=2, dtype=np.int32)
    inside = rgb_sum < threshold * 3
    if invert:
        inside = ~inside
    return inside.astype(np.uint8)


def detect_edges(mask: Mask) -> Mask:
    """Mark silhouette pixels that touch the outside.

    A pixel is an edge when it is inside and at least one of its four
    neighbours (left, right, up, down) is outside. The outermost rows and
    columns are never evaluated and are always 0.

    Args:
        mask: Silhouette mask of shape (height, width)

    Returns:
        Edge mask of the same shape

    Raises:
        InputError: If the mask is not two-dimensional
    """
    if mask.ndim != 2:
        raise InputError(f"expected a 2D mask, got shape {mask.shape}")

    edges = np.zeros(mask.shape, dtype=np.uint8)
    height, width = mask.shape
    if height < 3 or width < 3:
        return edges

    inside = mask.astype(bool)
    center = inside[1:-1, 1:-1]
    all_neighbours_inside = (
        inside[1:-1, :-2] & inside[1:-1, 2:] & inside[:-2, 1:-1] & inside[2:, 1:-1]
    )
    edges[1:-1, 1:-1] = center & ~all_neighbours_inside
    return edges
