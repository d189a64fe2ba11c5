"""Core rendering and export algorithms for stippler.

This module contains the core algorithms for:

- Silhouette extraction and edge detection
- Stipple placement (grid sampling, edge distance, dispersion, jitter)
- Icon geometry
- Animation curves across exported clips
- Frame export orchestration

The mask, stipple and animation functions are pure; the only randomness is
the rotation jitter, drawn from an injectable random.Random.

Key functions:
- extract_silhouette: Brightness threshold mask
- detect_edges: 4-neighbour boundary mask
- grid_step: Sampling stride for a density
- apply_animation: Per-frame parameters for a preset
- total_frames: Frame count for a clip

Key classes:
- StippleEngine: Places icons over a silhouette
- FrameRenderer: Runs the pipeline against a drawing surface
- FrameExporter: Drives seek/decode/render/pace for every frame
"""

from stippler.core.animation import apply_animation
from stippler.core.exporter import (
    FrameExporter,
    frame_delay_ms,
    frame_timestamp,
    total_frames,
)
from stippler.core.icons import (
    circle_radius,
    cursor_path,
    draw_instruction,
    icon_outline,
    star_path,
    triangle_path,
)
from stippler.core.renderer import FrameRenderer, Region, fit_contain
from stippler.core.silhouette import detect_edges, extract_silhouette
from stippler.core.stipple import (
    EDGE_SEARCH_RADIUS,
    StippleEngine,
    estimate_edge_distance,
    grid_step,
)

__all__ = [
    "EDGE_SEARCH_RADIUS",
    # Exporter
    "FrameExporter",
    # Renderer
    "FrameRenderer",
    "Region",
    # Stipple engine
    "StippleEngine",
    # Animation
    "apply_animation",
    # Icons
    "circle_radius",
    "cursor_path",
    "detect_edges",
    "draw_instruction",
    "estimate_edge_distance",
    # Masks
    "extract_silhouette",
    "fit_contain",
    "frame_delay_ms",
    "frame_timestamp",
    "grid_step",
    "icon_outline",
    "star_path",
    "total_frames",
    "triangle_path",
]
