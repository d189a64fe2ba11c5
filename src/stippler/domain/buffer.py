"""Pixel and mask types shared by the rendering pipeline.

This module defines the raster types that flow through the pipeline:
- PixelBuffer: An immutable RGBA frame
- Mask: A binary per-pixel classification (numpy uint8 array of 0/1)
"""

from dataclasses import dataclass
from typing import TypeAlias

import numpy as np
import numpy.typing as npt
from PIL import Image

from stippler.exceptions import InputError

Mask: TypeAlias = npt.NDArray[np.uint8]


@dataclass(frozen=True, slots=True)
class PixelBuffer:
    """An RGBA frame in row-major order.

    The wrapped array has shape (height, width, 4) and dtype uint8. The buffer
    keeps a read-only copy of the array it is given, so the caller may go on
    mutating its own array and stages can share a buffer without further
    copies.

    Attributes:
        data: RGBA samples, shape (height, width, 4)
    """

    data: npt.NDArray[np.uint8]

    def __post_init__(self) -> None:
        if not isinstance(self.data, np.ndarray):
            raise InputError(f"expected a numpy array, got {type(self.data).__name__}")
        if self.data.ndim != 3 or self.data.shape[2] != 4:
            raise InputError(f"expected shape (height, width, 4), got {self.data.shape}")
        if self.data.dtype != np.uint8:
            raise InputError(f"expected uint8 samples, got {self.data.dtype}")
        data = self.data.copy()
        data.flags.writeable = False
        object.__setattr__(self, "data", data)

    @property
    def width(self) -> int:
        """Width in pixels."""
        return int(self.data.shape[1])

    @property
    def height(self) -> int:
        """Height in pixels."""
        return int(self.data.shape[0])

    @property
    def size(self) -> tuple[int, int]:
        """Return (width, height)."""
        return self.width, self.height

    def is_empty(self) -> bool:
        """Check whether the buffer has zero area."""
        return self.width == 0 or self.height == 0

    def to_image(self) -> Image.Image:
        """Convert to a Pillow RGBA image."""
        return Image.fromarray(np.ascontiguousarray(self.data))

    @classmethod
    def from_image(cls, image: Image.Image) -> "PixelBuffer":
        """Create a buffer from any Pillow image.

        Args:
            image: Source image in any mode

        Returns:
            PixelBuffer holding an RGBA copy of the image
        """
        rgba = image if image.mode == "RGBA" else image.convert("RGBA")
        return cls(np.array(rgba, dtype=np.uint8))

    @classmethod
    def from_bgr(cls, frame: npt.NDArray[np.uint8]) -> "PixelBuffer":
        """Create a buffer from an OpenCV BGR frame.

        Args:
            frame: Array of shape (height, width, 3) in BGR channel order

        Returns:
            PixelBuffer with an opaque alpha channel
        """
        if frame.ndim != 3 or frame.shape[2] != 3:
            raise InputError(f"expected BGR frame of shape (h, w, 3), got {frame.shape}")
        height, width = frame.shape[:2]
        rgba = np.empty((height, width, 4), dtype=np.uint8)
        rgba[..., :3] = frame[..., ::-1]
        rgba[..., 3] = 255
        return cls(rgba)

    @classmethod
    def solid(
        cls, width: int, height: int, color: tuple[int, int, int], alpha: int = 255
    ) -> "PixelBuffer":
        """Create a buffer filled with a single color.

        Args:
            width: Width in pixels
            height: Height in pixels
            color: RGB fill color
            alpha: Alpha value for every pixel

        Returns:
            Uniformly filled PixelBuffer
        """
        data = np.empty((height, width, 4), dtype=np.uint8)
        data[..., :3] = color
        data[..., 3] = alpha
        return cls(data)


def empty_mask(width: int, height: int) -> Mask:
    """Create an all-zero mask of the given size."""
    return np.zeros((height, width), dtype=np.uint8)
