"""Logging utilities for Stippler."""

import logging
from dataclasses import dataclass, field
from pathlib import Path

import structlog

_HANDLER_TAG = "_stippler_handler"


@dataclass
class ExportStats:
    """Statistics from an export run."""

    total_frames: int = 0
    frames_rendered: int = 0
    late_frames: int = 0
    icons_drawn: int = 0
    frame_timings_ms: list[float] = field(default_factory=list)
    start_time: float | None = None
    end_time: float | None = None
    was_cancelled: bool = False
    error: str | None = None

    @property
    def duration_seconds(self) -> float:
        """Calculate export duration."""
        if self.start_time and self.end_time:
            return self.end_time - self.start_time
        return 0.0

    @property
    def avg_frame_time_ms(self) -> float | None:
        """Average render time per frame in milliseconds."""
        if not self.frame_timings_ms:
            return None
        return sum(self.frame_timings_ms) / len(self.frame_timings_ms)


def configure_logging(
    log_file: Path | None = None,
    console_level: str = "INFO",
    file_level: str = "DEBUG",
    quiet: bool = False,
) -> structlog.stdlib.BoundLogger:
    """Configure dual-output structured logging.

    Safe to call more than once: handlers installed by a previous call are
    replaced rather than duplicated.

    Args:
        log_file: Path to log file (no file output if None)
        console_level: Logging level for console output
        file_level: Logging level for file output
        quiet: If True, suppress console output except errors

    Returns:
        Configured structlog logger
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG)
    for handler in list(root_logger.handlers):
        if getattr(handler, _HANDLER_TAG, False):
            root_logger.removeHandler(handler)
            handler.close()

    if log_file is not None:
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(getattr(logging, file_level.upper()))
        file_handler.setFormatter(
            logging.Formatter("%(asctime)s | %(levelname)-8s | %(name)s | %(message)s")
        )
        setattr(file_handler, _HANDLER_TAG, True)
        root_logger.addHandler(file_handler)

    console_handler = logging.StreamHandler()
    console_handler.setLevel(
        logging.ERROR if quiet else getattr(logging, console_level.upper())
    )
    console_handler.setFormatter(logging.Formatter("%(message)s"))
    setattr(console_handler, _HANDLER_TAG, True)
    root_logger.addHandler(console_handler)

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    logger = structlog.get_logger("stippler")
    logger.info(
        "Logging initialized",
        log_file=str(log_file) if log_file else None,
        level=file_level,
    )

    return logger


class ExportLogger:
    """Logger for tracking export progress and statistics."""

    def __init__(self, logger: structlog.stdlib.BoundLogger, total_frames: int = 0) -> None:
        self._logger = logger
        self._stats = ExportStats(total_frames=total_frames)

    def log_export_start(
        self, width: int, height: int, fps: int, total_frames: int, animation: str
    ) -> None:
        """Log start of an export job."""
        self._logger.info(
            "Export started",
            width=width,
            height=height,
            fps=fps,
            total_frames=total_frames,
            animation=animation,
        )
        self._stats.total_frames = total_frames

    def log_frame_start(self, frame_index: int, timestamp: float) -> None:
        """Log start of frame processing."""
        self._logger.debug("Seeking frame", frame=frame_index, timestamp=round(timestamp, 4))

    def log_frame_late(self, frame_index: int, attempts: int) -> None:
        """Log a frame rendered with stale pixels."""
        self._logger.warning(
            "Frame not decoded in time, rendering last available pixels",
            frame=frame_index,
            attempts=attempts,
        )
        self._stats.late_frames += 1

    def log_frame_complete(self, frame_index: int, icons: int, duration_ms: float) -> None:
        """Log a rendered frame."""
        self._logger.debug(
            "Frame rendered",
            frame=frame_index,
            icons=icons,
            duration_ms=round(duration_ms, 2),
        )
        self._stats.frames_rendered += 1
        self._stats.icons_drawn += icons
        self._stats.frame_timings_ms.append(duration_ms)

    def log_export_cancelled(self, frames_completed: int) -> None:
        """Log a cancelled export."""
        self._logger.info("Export cancelled", frames_completed=frames_completed)
        self._stats.was_cancelled = True

    def log_export_error(self, error: Exception, traceback: str | None = None) -> None:
        """Log a failed export."""
        self._logger.error(
            "Export failed",
            error=str(error),
            error_type=type(error).__name__,
            traceback=traceback,
        )
        self._stats.error = str(error)

    def log_export_complete(self, size_bytes: int) -> None:
        """Log a finished export."""
        self._logger.info(
            "Export complete",
            frames=self._stats.frames_rendered,
            late_frames=self._stats.late_frames,
            icons=self._stats.icons_drawn,
            bytes=size_bytes,
        )

    @property
    def stats(self) -> ExportStats:
        """Get current export statistics."""
        return self._stats
