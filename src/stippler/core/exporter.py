"""Frame-by-frame export orchestration.

The FrameExporter drives one export job as a strictly sequential chain of
suspending steps per frame:

    seek -> await decode -> render -> pace

followed by a flush and finalize once every frame has been delivered. Frames
reach the sink one at a time in increasing timestamp order. A cancellation
token is checked at every suspension point.

Key components:
- total_frames: Frame count for a clip length and rate
- frame_timestamp: Exact source timestamp for an output frame
- FrameExporter: The job runner
"""

import asyncio
import math
import time
import traceback
from collections.abc import Awaitable, Callable
from typing import ClassVar

import structlog

from stippler.config import (
    AnimationPreset,
    ExportConfig,
    ProcessingConfig,
    StippleParameters,
    map_export_size,
)
from stippler.core.animation import apply_animation
from stippler.core.renderer import FrameRenderer
from stippler.core.stipple import StippleEngine
from stippler.domain import (
    CancellationToken,
    ExportJob,
    ExportResult,
    ExportState,
    PixelBuffer,
    ProgressKind,
    ProgressSink,
)
from stippler.exceptions import (
    ConfigurationError,
    ExportCancelledError,
    ExportInProgressError,
    SinkError,
    SourceUnavailableError,
    StipplerError,
)
from stippler.io.encoder import FrameSink
from stippler.io.source import FrameSource
from stippler.io.surface import PillowSurface, RenderSurface
from stippler.utils import ExportLogger, ExportStats, round_half_up

Sleep = Callable[[float], Awaitable[None]]
SurfaceFactory = Callable[[int, int], RenderSurface]


def total_frames(duration_sec: float, fps: float) -> int:
    """Number of frames in a clip, never less than one."""
    return max(1, math.floor(duration_sec * fps))


def frame_timestamp(
    frame_index: int, fps: float, source_duration: float, epsilon: float = 0.001
) -> float:
    """Source timestamp for an output frame.

    Clamped to stay epsilon short of the source end, since seeking exactly to
    the end yields no frame on most decoders.
    """
    return max(0.0, min(source_duration - epsilon, frame_index / fps))


def frame_delay_ms(fps: float) -> int:
    """Per-frame delay in whole milliseconds."""
    return max(0, round_half_up(1000 / fps))


class FrameExporter:
    """Renders a source into an encoder, one frame at a time.

    Only one job may run against a given source at a time; a second call to
    export() for a busy source raises ExportInProgressError.

    Example:
        exporter = FrameExporter()
        result = await exporter.export(
            source=VideoFileSource(path),
            sink=FfmpegVideoEncoder(),
            params=StippleParameters(),
            config=ExportConfig(fps=24, duration_sec=3),
        )
    """

    _active_sources: ClassVar[set[int]] = set()

    def __init__(
        self,
        processing: ProcessingConfig | None = None,
        engine: StippleEngine | None = None,
        sleep: Sleep = asyncio.sleep,
        surface_factory: SurfaceFactory | None = None,
        logger: structlog.stdlib.BoundLogger | None = None,
    ) -> None:
        """Initialize the exporter.

        Args:
            processing: Polling, pacing and surface settings
            engine: Stipple engine shared by all frames (unseeded if None)
            sleep: Coroutine used for every timed wait
            surface_factory: Builds the drawing surface for a job size
            logger: Structured logger (the "stippler" logger if None)
        """
        self.processing = processing or ProcessingConfig()
        self.engine = engine
        self._sleep = sleep
        self._surface_factory = surface_factory or self._default_surface
        self.logger = logger or structlog.get_logger("stippler")
        self.last_stats: ExportStats | None = None
        self.last_job: ExportJob | None = None

    def _default_surface(self, width: int, height: int) -> RenderSurface:
        return PillowSurface(width, height, max_dimension=self.processing.max_surface_dimension)

    async def export(
        self,
        source: FrameSource,
        sink: FrameSink,
        params: StippleParameters,
        config: ExportConfig | None = None,
        size: tuple[int, int] | None = None,
        progress: ProgressSink | None = None,
        cancel: CancellationToken | None = None,
    ) -> ExportResult:
        """Run an export job to completion.

        Args:
            source: Frame provider
            sink: Encoder receiving rendered frames
            params: Base stipple parameters, animated per frame
            config: Rate, length, resolution and animation settings
            size: Explicit output size (overrides config.resolution)
            progress: Callback receiving (kind, percent) events
            cancel: Cooperative cancellation token

        Returns:
            ExportResult with the finalized encoder output

        Raises:
            ConfigurationError: Invalid size, rate or length (before any frame work)
            ExportInProgressError: Another job is running for this source
            SourceUnavailableError: Source cannot produce frames
            SinkError: Encoder rejected a frame or failed to finalize
            ExportCancelledError: The token was cancelled
        """
        config = config or ExportConfig()
        cancel = cancel or CancellationToken()
        notify = progress or (lambda _kind, _percent: None)

        width, height = self._resolve_size(source, config, size)
        self._validate(config, width, height)

        key = id(source)
        if key in self._active_sources:
            raise ExportInProgressError()
        self._active_sources.add(key)

        try:
            return await self._run(source, sink, params, config, width, height, notify, cancel)
        finally:
            self._active_sources.discard(key)

    def _resolve_size(
        self, source: FrameSource, config: ExportConfig, size: tuple[int, int] | None
    ) -> tuple[int, int]:
        if size is not None:
            return size
        if source.width <= 0 or source.height <= 0:
            raise ConfigurationError(
                f"source reports no resolution ({source.width}x{source.height})"
            )
        return map_export_size(source.width, source.height, config.resolution)

    def _validate(self, config: ExportConfig, width: int, height: int) -> None:
        if config.fps <= 0:
            raise ConfigurationError(f"fps must be positive, got {config.fps}")
        if not math.isfinite(config.duration_sec) or config.duration_sec <= 0:
            raise ConfigurationError(f"duration must be positive, got {config.duration_sec}")
        limit = self.processing.max_surface_dimension
        if width <= 0 or height <= 0 or width > limit or height > limit:
            raise ConfigurationError(
                f"output size {width}x{height} outside 1-{limit}px"
            )

    async def _run(
        self,
        source: FrameSource,
        sink: FrameSink,
        params: StippleParameters,
        config: ExportConfig,
        width: int,
        height: int,
        notify: ProgressSink,
        cancel: CancellationToken,
    ) -> ExportResult:
        frames = total_frames(config.duration_sec, config.fps)
        job = ExportJob(
            source_duration=source.duration,
            fps=config.fps,
            total_frames=frames,
            width=width,
            height=height,
        )
        export_logger = ExportLogger(self.logger, total_frames=frames)
        stats = export_logger.stats
        stats.start_time = time.time()
        self.last_job = job
        self.last_stats = stats

        surface = self._surface_factory(width, height)
        renderer = FrameRenderer(surface, self.engine)
        try:
            sink.open(width, height, config.fps)
        except Exception as e:
            job.transition(ExportState.FAILED)
            export_logger.log_export_error(e)
            notify(ProgressKind.FAILED, 0)
            raise

        export_logger.log_export_start(width, height, config.fps, frames, config.animation.value)
        notify(ProgressKind.START, 0)

        try:
            for frame_index in range(frames):
                job.frame_index = frame_index
                await self._seek(job, source, cancel, export_logger)
                frame = await self._await_decode(job, source, cancel, export_logger)
                self._render(job, renderer, sink, frame, params, config.animation, export_logger)
                await self._pace(job, cancel)

                percent = min(100, round_half_up((frame_index + 1) / frames * 100))
                notify(ProgressKind.PROGRESS, percent)

            job.transition(ExportState.FINALIZING)
            self._checkpoint(job, cancel)
            await self._sleep(self.processing.flush_interval_ms / 1000)
            self._checkpoint(job, cancel)
            try:
                data = sink.finalize()
            except StipplerError:
                raise
            except Exception as e:
                raise SinkError(str(e)) from e
            job.transition(ExportState.DONE)

        except ExportCancelledError:
            job.transition(ExportState.CANCELLED)
            sink.abort()
            stats.end_time = time.time()
            export_logger.log_export_cancelled(stats.frames_rendered)
            notify(ProgressKind.CANCELLED, self._percent(stats.frames_rendered, frames))
            raise

        except (asyncio.CancelledError, KeyboardInterrupt):
            # Task cancelled or interrupted from outside the token
            job.transition(ExportState.CANCELLED)
            sink.abort()
            stats.end_time = time.time()
            export_logger.log_export_cancelled(stats.frames_rendered)
            notify(ProgressKind.CANCELLED, self._percent(stats.frames_rendered, frames))
            raise

        except Exception as e:
            job.transition(ExportState.FAILED)
            sink.abort()
            stats.end_time = time.time()
            export_logger.log_export_error(e, traceback.format_exc())
            notify(ProgressKind.FAILED, self._percent(stats.frames_rendered, frames))
            raise

        stats.end_time = time.time()
        export_logger.log_export_complete(len(data))
        notify(ProgressKind.COMPLETE, 100)

        return ExportResult(
            data=data,
            frame_count=stats.frames_rendered,
            width=width,
            height=height,
            fps=config.fps,
        )

    async def _seek(
        self,
        job: ExportJob,
        source: FrameSource,
        cancel: CancellationToken,
        export_logger: ExportLogger,
    ) -> None:
        job.transition(ExportState.SEEKING)
        self._checkpoint(job, cancel)

        timestamp = frame_timestamp(
            job.frame_index, job.fps, job.source_duration, self.processing.seek_epsilon
        )
        export_logger.log_frame_start(job.frame_index, timestamp)
        try:
            await source.seek(timestamp)
        except StipplerError:
            raise
        except Exception as e:
            raise SourceUnavailableError(f"seek to {timestamp:.3f}s failed: {e}") from e

    async def _await_decode(
        self,
        job: ExportJob,
        source: FrameSource,
        cancel: CancellationToken,
        export_logger: ExportLogger,
    ) -> PixelBuffer:
        job.transition(ExportState.AWAITING_DECODE)
        self._checkpoint(job, cancel)

        attempts = 0
        wait_for_frame = getattr(source, "wait_for_frame", None)
        if callable(wait_for_frame):
            await wait_for_frame()
        else:
            interval = self.processing.decode_poll_interval_ms / 1000
            while not source.is_ready() and attempts < self.processing.decode_poll_attempts:
                await self._sleep(interval)
                attempts += 1
                self._checkpoint(job, cancel)

        frame = source.current_frame()
        if frame is None:
            raise SourceUnavailableError(
                f"no frame available at frame {job.frame_index}"
            )
        if not source.is_ready():
            export_logger.log_frame_late(job.frame_index, attempts)
        return frame

    def _render(
        self,
        job: ExportJob,
        renderer: FrameRenderer,
        sink: FrameSink,
        frame: PixelBuffer,
        params: StippleParameters,
        animation: AnimationPreset,
        export_logger: ExportLogger,
    ) -> None:
        job.transition(ExportState.RENDERING)
        start = time.perf_counter()

        frame_params = apply_animation(params, animation, job.progress)
        icons = renderer.render_buffer(frame, frame_params)
        pixels = renderer.surface.read_pixels()
        try:
            sink.write_frame(pixels, frame_delay_ms(job.fps))
        except StipplerError:
            raise
        except Exception as e:
            raise SinkError(str(e)) from e

        export_logger.log_frame_complete(
            job.frame_index, icons, (time.perf_counter() - start) * 1000
        )

    async def _pace(self, job: ExportJob, cancel: CancellationToken) -> None:
        job.transition(ExportState.PACING)
        self._checkpoint(job, cancel)
        await self._sleep(frame_delay_ms(job.fps) / 1000)

    @staticmethod
    def _checkpoint(job: ExportJob, cancel: CancellationToken) -> None:
        if cancel.cancelled:
            raise ExportCancelledError(job.frame_index, job.total_frames)

    @staticmethod
    def _percent(done: int, total: int) -> int:
        return min(100, round_half_up(done / total * 100))
