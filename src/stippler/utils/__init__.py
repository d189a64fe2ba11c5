"""Utility functions for stippler.

This module provides utility functions including:

- Logging setup and configuration
- Export progress and statistics tracking
- Numeric helpers (half-up rounding, clamping)
"""

from stippler.utils.logging import (
    ExportLogger,
    ExportStats,
    configure_logging,
)
from stippler.utils.numeric import clamp, round_half_up

__all__ = [
    "ExportLogger",
    "ExportStats",
    "clamp",
    "configure_logging",
    "round_half_up",
]
