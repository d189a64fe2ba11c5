"""Frame sources for still images and video files.

A FrameSource yields pixel buffers at requested timestamps. Seeking is
asynchronous; readiness is exposed either as an exact ``wait_for_frame``
notification or, for sources without one, as a pollable ``is_ready`` check.
"""

import asyncio
import math
from pathlib import Path
from typing import Protocol

import cv2
from PIL import Image, UnidentifiedImageError

from stippler.domain import PixelBuffer
from stippler.exceptions import SourceLoadError, SourceUnavailableError


class FrameSource(Protocol):
    """Provider of frames for rendering and export.

    Sources may additionally define ``async def wait_for_frame(self) -> None``,
    resolved once the frame for the last seek has been decoded.
    """

    @property
    def duration(self) -> float: ...

    @property
    def width(self) -> int: ...

    @property
    def height(self) -> int: ...

    async def seek(self, timestamp: float) -> None: ...

    def is_ready(self) -> bool: ...

    def current_frame(self) -> PixelBuffer | None: ...


class StillImageSource:
    """A single image presented as an endless, always-ready clip.

    Example:
        source = StillImageSource.open(Path("photo.png"))
        frame = source.current_frame()
    """

    def __init__(self, buffer: PixelBuffer) -> None:
        """Initialize the source.

        Args:
            buffer: The image frame
        """
        self._buffer: PixelBuffer | None = buffer

    @classmethod
    def open(cls, path: Path) -> "StillImageSource":
        """Load an image file.

        Args:
            path: Path to any image format Pillow can read

        Raises:
            SourceLoadError: If the file is missing or not a readable image
        """
        if not path.exists():
            raise SourceLoadError(str(path), "file not found")
        try:
            with Image.open(path) as image:
                image.load()
                return cls(PixelBuffer.from_image(image))
        except (UnidentifiedImageError, OSError) as e:
            raise SourceLoadError(str(path), str(e)) from e

    @property
    def duration(self) -> float:
        """Still images have no natural end."""
        return math.inf

    @property
    def width(self) -> int:
        """Native width in pixels."""
        return self._require().width

    @property
    def height(self) -> int:
        """Native height in pixels."""
        return self._require().height

    async def seek(self, timestamp: float) -> None:  # noqa: ARG002
        """Every timestamp shows the same image."""
        self._require()

    def is_ready(self) -> bool:
        """The image is decoded up front."""
        return self._buffer is not None

    def current_frame(self) -> PixelBuffer | None:
        """Return the image."""
        return self._buffer

    def close(self) -> None:
        """Release the image."""
        self._buffer = None

    def _require(self) -> PixelBuffer:
        if self._buffer is None:
            raise SourceUnavailableError("image source is closed")
        return self._buffer


class VideoFileSource:
    """Video file decoded with OpenCV.

    Seeking positions the capture and grabs the frame in a worker thread;
    ``wait_for_frame`` decodes the grabbed frame. When a grab fails the last
    decoded frame is kept, so a late frame renders with stale pixels.

    Example:
        with VideoFileSource(Path("clip.mp4")) as source:
            await source.seek(1.5)
            await source.wait_for_frame()
            frame = source.current_frame()
    """

    def __init__(self, path: Path) -> None:
        """Initialize the source.

        Args:
            path: Path to the video file
        """
        self._path = path
        self._capture: cv2.VideoCapture | None = None
        self._frame: PixelBuffer | None = None
        self._grabbed = False
        self._ready = False
        self._fps = 0.0
        self._frame_count = 0
        self._width = 0
        self._height = 0

    def open(self) -> None:
        """Open the video file and read its metadata.

        Raises:
            SourceLoadError: If the file is missing or cannot be decoded
        """
        if not self._path.exists():
            raise SourceLoadError(str(self._path), "file not found")

        capture = cv2.VideoCapture(str(self._path))
        if not capture.isOpened():
            capture.release()
            raise SourceLoadError(str(self._path), "no decoder could open the file")

        self._capture = capture
        self._fps = float(capture.get(cv2.CAP_PROP_FPS) or 0.0)
        self._frame_count = int(capture.get(cv2.CAP_PROP_FRAME_COUNT) or 0)
        self._width = int(capture.get(cv2.CAP_PROP_FRAME_WIDTH) or 0)
        self._height = int(capture.get(cv2.CAP_PROP_FRAME_HEIGHT) or 0)

    @property
    def duration(self) -> float:
        """Natural duration in seconds (0 when the container does not say)."""
        if self._fps <= 0:
            return 0.0
        return self._frame_count / self._fps

    @property
    def fps(self) -> float:
        """Native frame rate."""
        return self._fps

    @property
    def width(self) -> int:
        """Native width in pixels."""
        return self._width

    @property
    def height(self) -> int:
        """Native height in pixels."""
        return self._height

    async def seek(self, timestamp: float) -> None:
        """Position the capture at a timestamp and grab that frame.

        Raises:
            SourceUnavailableError: If the source is closed
        """
        capture = self._require()
        self._ready = False
        self._grabbed = await asyncio.to_thread(self._grab, capture, timestamp)

    async def wait_for_frame(self) -> None:
        """Decode the frame grabbed by the last seek."""
        capture = self._require()
        if not self._grabbed:
            return
        ok, frame = await asyncio.to_thread(capture.retrieve)
        self._grabbed = False
        if ok and frame is not None:
            self._frame = PixelBuffer.from_bgr(frame)
            self._ready = True

    def is_ready(self) -> bool:
        """Check whether the frame for the last seek has been decoded."""
        return self._ready

    def current_frame(self) -> PixelBuffer | None:
        """Most recently decoded frame, possibly from an earlier seek."""
        return self._frame

    def close(self) -> None:
        """Release the capture."""
        if self._capture is not None:
            self._capture.release()
            self._capture = None
        self._ready = False

    @staticmethod
    def _grab(capture: cv2.VideoCapture, timestamp: float) -> bool:
        capture.set(cv2.CAP_PROP_POS_MSEC, max(0.0, timestamp) * 1000.0)
        return bool(capture.grab())

    def _require(self) -> cv2.VideoCapture:
        if self._capture is None:
            raise SourceUnavailableError(f"video '{self._path}' is not open")
        return self._capture

    def __enter__(self) -> "VideoFileSource":
        """Context manager entry."""
        self.open()
        return self

    def __exit__(self, _exc_type: object, _exc_val: object, _exc_tb: object) -> None:
        """Context manager exit."""
        self.close()


IMAGE_SUFFIXES = frozenset(
    {".png", ".jpg", ".jpeg", ".gif", ".bmp", ".webp", ".tif", ".tiff"}
)


def open_source(path: Path) -> StillImageSource | VideoFileSource:
    """Open an image or video file based on its extension.

    Args:
        path: Path to the media file

    Returns:
        StillImageSource for image files, an opened VideoFileSource otherwise

    Raises:
        SourceLoadError: If the file cannot be opened
    """
    if path.suffix.lower() in IMAGE_SUFFIXES:
        return StillImageSource.open(path)
    source = VideoFileSource(path)
    source.open()
    return source
