"""Domain models for stippler.

This module contains the data types that flow through the rendering and
export pipeline. All models are designed to be:

- Immutable where possible (frozen dataclasses, read-only arrays)
- Created fresh per frame, never persisted across frames
- Independent of the drawing, decoding and encoding backends

Key classes:
- PixelBuffer: An RGBA frame
- Mask: Binary per-pixel mask (numpy uint8 array)
- IconDrawInstruction: A placed, rotated icon
- ExportJob: State of one export run
- ProgressEvent: A progress notification
"""

from stippler.domain.buffer import Mask, PixelBuffer, empty_mask
from stippler.domain.icon import STIPPLE_STYLE, IconDrawInstruction, IconStyle
from stippler.domain.job import (
    CancellationToken,
    ExportJob,
    ExportResult,
    ExportState,
    ProgressEvent,
    ProgressKind,
    ProgressSink,
)

__all__: list[str] = [
    # Enums
    "ExportState",
    "ProgressKind",
    # Raster types
    "Mask",
    "PixelBuffer",
    "empty_mask",
    # Icons
    "IconDrawInstruction",
    "IconStyle",
    "STIPPLE_STYLE",
    # Export
    "CancellationToken",
    "ExportJob",
    "ExportResult",
    "ProgressEvent",
    "ProgressSink",
]
