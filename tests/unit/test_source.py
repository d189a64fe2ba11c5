"""Unit tests for frame sources.

Video tests decode a small Motion-JPEG clip written with OpenCV itself, so
they run without an ffmpeg binary on PATH.
"""

import asyncio
import math
from pathlib import Path

import cv2
import numpy as np
import pytest
from PIL import Image

from stippler.domain import PixelBuffer
from stippler.exceptions import SourceLoadError, SourceUnavailableError
from stippler.io.source import StillImageSource, VideoFileSource, open_source

CLIP_FPS = 10
CLIP_FRAMES = 20
CLIP_SIZE = (64, 48)


def brightness(frame: PixelBuffer | None) -> float:
    """Mean RGB level of a frame."""
    assert frame is not None
    return float(frame.data[..., :3].mean())


async def seek_and_decode(source: VideoFileSource, timestamp: float) -> None:
    """Seek, then wait for the decoded frame."""
    await source.seek(timestamp)
    await source.wait_for_frame()


@pytest.fixture
def clip(tmp_path: Path) -> Path:
    """Two-second gray ramp: frame i is filled with level i * 10."""
    path = tmp_path / "ramp.avi"
    writer = cv2.VideoWriter(
        str(path), cv2.VideoWriter_fourcc(*"MJPG"), CLIP_FPS, CLIP_SIZE
    )
    assert writer.isOpened()
    width, height = CLIP_SIZE
    for i in range(CLIP_FRAMES):
        writer.write(np.full((height, width, 3), i * 10, dtype=np.uint8))
    writer.release()
    return path


@pytest.fixture
def video(clip: Path):
    """Opened video source over the ramp clip."""
    with VideoFileSource(clip) as source:
        yield source


class TestVideoFileSource:
    """Tests for VideoFileSource class."""

    def test_metadata(self, video):
        """Test rate, size and duration come from the container."""
        assert video.fps == pytest.approx(CLIP_FPS)
        assert (video.width, video.height) == CLIP_SIZE
        assert video.duration == pytest.approx(CLIP_FRAMES / CLIP_FPS)

    def test_seek_decodes_frame_at_timestamp(self, video):
        """Test later timestamps decode brighter frames of the ramp."""
        levels = []
        for timestamp in (0.0, 0.6, 1.2, 1.8):
            asyncio.run(seek_and_decode(video, timestamp))
            levels.append(brightness(video.current_frame()))

        for level, expected in zip(levels, (0, 60, 120, 180), strict=True):
            assert level == pytest.approx(expected, abs=8)
        assert levels == sorted(levels)

    def test_frame_is_rgba(self, video):
        """Test decoded frames match the native size with opaque alpha."""
        asyncio.run(seek_and_decode(video, 0.5))
        frame = video.current_frame()
        assert frame is not None
        assert frame.size == CLIP_SIZE
        assert (frame.data[..., 3] == 255).all()

    def test_ready_only_after_decode(self, video):
        """Test a seek clears readiness until the frame has been decoded."""
        asyncio.run(video.seek(0.3))
        assert not video.is_ready()
        asyncio.run(video.wait_for_frame())
        assert video.is_ready()

    def test_seek_past_end_keeps_last_frame(self, video):
        """Test a failed grab leaves the previous frame in place."""
        asyncio.run(seek_and_decode(video, 1.0))
        previous = video.current_frame()
        assert previous is not None

        asyncio.run(seek_and_decode(video, 60.0))

        assert not video.is_ready()
        assert video.current_frame() is previous

    def test_closed_source_unavailable(self, clip):
        """Test seeking a closed source raises SourceUnavailableError."""
        source = VideoFileSource(clip)
        source.open()
        source.close()
        with pytest.raises(SourceUnavailableError, match="not open"):
            asyncio.run(source.seek(0.0))
        with pytest.raises(SourceUnavailableError):
            asyncio.run(source.wait_for_frame())
        assert not source.is_ready()

    def test_unopened_source_unavailable(self, clip):
        """Test a source must be opened before seeking."""
        with pytest.raises(SourceUnavailableError):
            asyncio.run(VideoFileSource(clip).seek(0.0))

    def test_missing_file(self, tmp_path):
        """Test a missing file raises SourceLoadError."""
        with pytest.raises(SourceLoadError, match="file not found"):
            VideoFileSource(tmp_path / "missing.avi").open()

    def test_undecodable_file(self, tmp_path):
        """Test a file no decoder accepts raises SourceLoadError."""
        path = tmp_path / "bogus.avi"
        path.write_bytes(b"not a video at all")
        with pytest.raises(SourceLoadError):
            VideoFileSource(path).open()

    def test_context_manager_releases(self, clip):
        """Test leaving the context closes the capture."""
        with VideoFileSource(clip) as source:
            asyncio.run(seek_and_decode(source, 0.0))
        with pytest.raises(SourceUnavailableError):
            asyncio.run(source.seek(0.0))


class TestStillImageSource:
    """Tests for StillImageSource class."""

    def test_always_ready(self):
        """Test a still image is ready at any timestamp and never ends."""
        frame = PixelBuffer.solid(6, 4, (9, 9, 9))
        source = StillImageSource(frame)
        asyncio.run(source.seek(123.0))
        assert source.is_ready()
        assert source.current_frame() is frame
        assert math.isinf(source.duration)
        assert (source.width, source.height) == (6, 4)

    def test_closed(self):
        """Test a closed image source refuses to seek."""
        source = StillImageSource(PixelBuffer.solid(2, 2, (0, 0, 0)))
        source.close()
        assert not source.is_ready()
        assert source.current_frame() is None
        with pytest.raises(SourceUnavailableError, match="closed"):
            asyncio.run(source.seek(0.0))

    def test_open_missing(self, tmp_path):
        """Test a missing image raises SourceLoadError."""
        with pytest.raises(SourceLoadError, match="file not found"):
            StillImageSource.open(tmp_path / "missing.png")


class TestOpenSource:
    """Tests for open_source dispatch."""

    def test_image_suffix(self, tmp_path):
        """Test image extensions open a still source."""
        path = tmp_path / "still.PNG"
        Image.new("RGB", (3, 3)).save(path, format="PNG")
        assert isinstance(open_source(path), StillImageSource)

    def test_video_suffix(self, clip):
        """Test other extensions open an already opened video source."""
        source = open_source(clip)
        try:
            assert isinstance(source, VideoFileSource)
            assert source.width == CLIP_SIZE[0]
        finally:
            source.close()
