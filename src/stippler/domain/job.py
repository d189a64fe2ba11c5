"""Export job state and progress reporting types.

This module defines the bookkeeping for one export run:
- ExportState: States of the export state machine
- ExportJob: Mutable job record owned by a FrameExporter
- ProgressKind / ProgressEvent: Events delivered to the progress sink
- CancellationToken: Cooperative cancellation flag
- ExportResult: Encoded output of a finished job
"""

from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum
from typing import ClassVar

from stippler.exceptions import ExportStateError


class ExportState(Enum):
    """States of an export job."""

    IDLE = "idle"
    SEEKING = "seeking"
    AWAITING_DECODE = "awaiting_decode"
    RENDERING = "rendering"
    PACING = "pacing"
    FINALIZING = "finalizing"
    DONE = "done"
    FAILED = "failed"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        """Check whether no further transitions are possible."""
        return self in (ExportState.DONE, ExportState.FAILED, ExportState.CANCELLED)


class ProgressKind(Enum):
    """Kind of progress event."""

    START = "start"
    PROGRESS = "progress"
    COMPLETE = "complete"
    FAILED = "failed"
    CANCELLED = "cancelled"


@dataclass(frozen=True, slots=True)
class ProgressEvent:
    """A single progress notification.

    Attributes:
        kind: Event kind
        percent: Completion percentage (0-100)
    """

    kind: ProgressKind
    percent: int


ProgressSink = Callable[[ProgressKind, int], None]


@dataclass
class ExportJob:
    """Record of one export run.

    Attributes:
        source_duration: Natural duration of the source in seconds
        fps: Output frame rate
        total_frames: Number of frames the job produces
        width: Output width in pixels
        height: Output height in pixels
        frame_index: Index of the frame currently being produced
        state: Current state machine state
    """

    # Allowed forward transitions; FAILED and CANCELLED are reachable from
    # every non-terminal state and are handled separately.
    TRANSITIONS: ClassVar[dict[ExportState, frozenset[ExportState]]] = {
        ExportState.IDLE: frozenset({ExportState.SEEKING}),
        ExportState.SEEKING: frozenset({ExportState.AWAITING_DECODE}),
        ExportState.AWAITING_DECODE: frozenset({ExportState.RENDERING}),
        ExportState.RENDERING: frozenset({ExportState.PACING}),
        ExportState.PACING: frozenset({ExportState.SEEKING, ExportState.FINALIZING}),
        ExportState.FINALIZING: frozenset({ExportState.DONE}),
    }

    source_duration: float
    fps: int
    total_frames: int
    width: int
    height: int
    frame_index: int = 0
    state: ExportState = ExportState.IDLE
    history: list[ExportState] = field(default_factory=list, repr=False)

    def transition(self, new_state: ExportState) -> None:
        """Move the job to a new state.

        Args:
            new_state: Requested state

        Raises:
            ExportStateError: If the transition is not allowed
        """
        if self.state.is_terminal:
            raise ExportStateError(self.state.value, new_state.value)

        allowed = self.TRANSITIONS.get(self.state, frozenset())
        if new_state not in allowed and new_state not in (
            ExportState.FAILED,
            ExportState.CANCELLED,
        ):
            raise ExportStateError(self.state.value, new_state.value)

        self.history.append(self.state)
        self.state = new_state

    @property
    def progress(self) -> float:
        """Progress fraction of the current frame, used to drive animations."""
        if self.total_frames <= 1:
            return 1.0
        return self.frame_index / (self.total_frames - 1)


class CancellationToken:
    """Cooperative cancellation flag checked at every export suspension point."""

    def __init__(self) -> None:
        self._cancelled = False

    def cancel(self) -> None:
        """Request cancellation."""
        self._cancelled = True

    @property
    def cancelled(self) -> bool:
        """Check whether cancellation was requested."""
        return self._cancelled


@dataclass(frozen=True)
class ExportResult:
    """Encoded output of a finished export job.

    Attributes:
        data: Complete encoded file contents
        frame_count: Number of frames written to the encoder
        width: Output width in pixels
        height: Output height in pixels
        fps: Output frame rate
    """

    data: bytes
    frame_count: int
    width: int
    height: int
    fps: int

    @property
    def duration_seconds(self) -> float:
        """Playback duration of the encoded clip."""
        return self.frame_count / self.fps
