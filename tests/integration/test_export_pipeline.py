"""End-to-end tests for the render and export pipeline.

These tests run real images through the Pillow surface and real encoders.
The video test is skipped when ffmpeg is not installed.
"""

import asyncio
import io
import random
import shutil
from pathlib import Path

import numpy as np
import pytest
from PIL import Image

from stippler.config import AnimationPreset, ExportConfig, ExportResolution, StippleParameters
from stippler.core import FrameExporter, FrameRenderer, StippleEngine, fit_contain
from stippler.domain import PixelBuffer, ProgressKind
from stippler.io import (
    FfmpegVideoEncoder,
    GifEncoder,
    PillowSurface,
    StillImageSource,
    open_source,
)


async def no_wait(_seconds: float) -> None:
    """Sleep replacement that only yields."""
    await asyncio.sleep(0)


@pytest.fixture
def portrait(tmp_path: Path) -> Path:
    """A dark disc on a light background, saved as PNG."""
    size = 80
    yy, xx = np.mgrid[0:size, 0:size]
    inside = (xx - 40) ** 2 + (yy - 40) ** 2 < 25**2
    data = np.full((size, size, 3), 230, dtype=np.uint8)
    data[inside] = 20
    path = tmp_path / "portrait.png"
    Image.fromarray(data).save(path)
    return path


class TestStillRender:
    """Still image rendering from file to stippled frame."""

    def test_render_from_file(self, portrait):
        """Test a dark disc produces icons clustered on the disc."""
        source = StillImageSource.open(portrait)
        frame = source.current_frame()
        surface = PillowSurface(frame.width, frame.height)
        renderer = FrameRenderer(surface, StippleEngine(random.Random(4)))

        params = StippleParameters(density=90, dispersion_amount=0)
        count = renderer.render_buffer(frame, params)
        pixels = surface.read_pixels().data

        assert count > 0
        white = (pixels[..., :3] == 255).all(axis=2)
        assert white[25:55, 25:55].sum() > white[:15, :15].sum()

    def test_render_into_letterboxed_canvas(self, portrait):
        """Test rendering into a wider canvas keeps the margins empty."""
        frame = StillImageSource.open(portrait).current_frame()
        surface = PillowSurface(200, 80)
        renderer = FrameRenderer(surface, StippleEngine(random.Random(4)))
        params = StippleParameters(dispersion_amount=0, icon_type="circle", icon_size=5)

        renderer.render_buffer(frame, params, fit_contain(80, 80, 200, 80))
        pixels = surface.read_pixels().data

        background = np.array(params.background_color, dtype=np.uint8)
        assert (pixels[:, :50, :3] == background).all()
        assert (pixels[:, 150:, :3] == background).all()


class TestGifExport:
    """Still image to animated GIF."""

    def test_export_gif(self, portrait):
        """Test a still image exports to an animated GIF with every frame."""
        events: list[tuple[ProgressKind, int]] = []
        exporter = FrameExporter(engine=StippleEngine(random.Random(9)), sleep=no_wait)
        source = open_source(portrait)

        result = asyncio.run(
            exporter.export(
                source,
                GifEncoder(),
                StippleParameters(),
                ExportConfig(fps=10, duration_sec=0.5, animation=AnimationPreset.PULSE_DENSITY),
                progress=lambda kind, percent: events.append((kind, percent)),
            )
        )

        assert result.frame_count == 5
        assert result.data.startswith(b"GIF8")
        assert events[-1] == (ProgressKind.COMPLETE, 100)
        with Image.open(io.BytesIO(result.data)) as image:
            assert image.size == (80, 80)
            assert image.n_frames >= 2

    def test_export_gif_resized(self, portrait):
        """Test resolution presets change the output size."""
        exporter = FrameExporter(sleep=no_wait)
        result = asyncio.run(
            exporter.export(
                StillImageSource.open(portrait),
                GifEncoder(),
                StippleParameters(),
                ExportConfig(fps=5, duration_sec=0.2, resolution=ExportResolution.HD),
            )
        )
        assert (result.width, result.height) == (720, 720)


@pytest.mark.skipif(shutil.which("ffmpeg") is None, reason="ffmpeg not installed")
class TestVideoExport:
    """Still image to encoded video through ffmpeg."""

    def test_export_video(self, portrait):
        """Test a short clip is encoded and can be decoded again."""
        exporter = FrameExporter(sleep=no_wait)
        encoder = FfmpegVideoEncoder(bitrate=500_000)
        result = asyncio.run(
            exporter.export(
                StillImageSource.open(portrait),
                encoder,
                StippleParameters(),
                ExportConfig(fps=10, duration_sec=0.5),
            )
        )
        assert result.frame_count == 5
        assert len(result.data) > 0
        assert encoder.extension in {"webm", "mp4"}

    def test_round_trip_through_video_source(self, portrait, tmp_path):
        """Test an exported clip can be used as a video source."""
        exporter = FrameExporter(sleep=no_wait)
        encoder = FfmpegVideoEncoder(bitrate=500_000)
        clip = asyncio.run(
            exporter.export(
                StillImageSource.open(portrait),
                encoder,
                StippleParameters(),
                ExportConfig(fps=10, duration_sec=1),
            )
        )
        path = tmp_path / f"clip.{encoder.extension}"
        path.write_bytes(clip.data)

        source = open_source(path)
        try:
            assert (source.width, source.height) == (80, 80)
            gif = asyncio.run(
                FrameExporter(sleep=no_wait).export(
                    source,
                    GifEncoder(),
                    StippleParameters(),
                    ExportConfig(fps=5, duration_sec=0.4),
                )
            )
            assert gif.frame_count == 2
        finally:
            source.close()


class TestPixelBufferFromFile:
    """PixelBuffer construction from decoded files."""

    def test_grayscale_file(self, tmp_path):
        """Test non-RGBA files are converted on load."""
        path = tmp_path / "gray.png"
        Image.new("L", (5, 4), 60).save(path)
        frame = StillImageSource.open(path).current_frame()
        assert isinstance(frame, PixelBuffer)
        assert tuple(frame.data[0, 0]) == (60, 60, 60, 255)
