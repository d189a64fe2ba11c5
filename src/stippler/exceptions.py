"""Exception hierarchy for Stippler."""


class StipplerError(Exception):
    """Base exception for all Stippler errors."""

    pass


class InputError(StipplerError):
    """Malformed or zero-area pixel data handed to the pipeline."""

    def __init__(self, reason: str) -> None:
        self.reason = reason
        super().__init__(f"Invalid input: {reason}")


class ConfigurationError(StipplerError):
    """Requested output format, size or rate cannot be produced."""

    def __init__(self, reason: str) -> None:
        self.reason = reason
        super().__init__(f"Unsupported configuration: {reason}")


class SourceError(StipplerError):
    """Errors related to image or video sources."""

    pass


class SourceLoadError(SourceError):
    """Error opening an image or video file."""

    def __init__(self, path: str, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"Failed to load source '{path}': {reason}")


class SourceUnavailableError(SourceError):
    """Source cannot produce frames any more (closed, unreadable, empty)."""

    def __init__(self, reason: str) -> None:
        self.reason = reason
        super().__init__(f"Source unavailable: {reason}")


class SinkError(StipplerError):
    """Encoder rejected a frame or failed to finalize."""

    def __init__(self, reason: str) -> None:
        self.reason = reason
        super().__init__(f"Encoder failed: {reason}")


class ExportError(StipplerError):
    """Errors related to export job orchestration."""

    pass


class ExportStateError(ExportError):
    """Illegal export state transition."""

    def __init__(self, current: str, requested: str) -> None:
        self.current = current
        self.requested = requested
        super().__init__(f"Cannot move export job from '{current}' to '{requested}'")


class ExportInProgressError(ExportError):
    """An export job is already running against the same source."""

    def __init__(self) -> None:
        super().__init__("An export is already running for this source")


class ExportCancelledError(ExportError):
    """Export was cancelled through its cancellation token."""

    def __init__(self, frames_completed: int, total_frames: int) -> None:
        self.frames_completed = frames_completed
        self.total_frames = total_frames
        super().__init__(
            f"Export cancelled: {frames_completed} of {total_frames} frames rendered"
        )
