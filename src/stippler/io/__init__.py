"""Media I/O layer for stippler.

This module holds the collaborators the rendering core talks to: frame
sources, the drawing surface and frame encoders. It isolates Pillow, OpenCV
and ffmpeg from the core algorithms.

Key classes:
- StillImageSource / VideoFileSource: Frame providers
- PillowSurface: Drawing surface with a canvas-style transform stack
- FfmpegVideoEncoder / GifEncoder: Frame sinks
"""

from stippler.io.encoder import FfmpegVideoEncoder, FrameSink, GifEncoder
from stippler.io.source import (
    FrameSource,
    StillImageSource,
    VideoFileSource,
    open_source,
)
from stippler.io.surface import PillowSurface, RenderSurface

__all__ = [
    "FfmpegVideoEncoder",
    "FrameSink",
    "FrameSource",
    "GifEncoder",
    "PillowSurface",
    "RenderSurface",
    "StillImageSource",
    "VideoFileSource",
    "open_source",
]
