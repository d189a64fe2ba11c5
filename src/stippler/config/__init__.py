"""Configuration management for stippler.

This module provides configuration management using Pydantic models.
Configuration can be provided via CLI arguments or defaults.

Key classes:
- StippleParameters: Per-frame style parameters (clamped, frozen)
- ExportConfig: Clip export settings
- ProcessingConfig: Pacing, polling and surface limits
- LoggingConfig: Logging settings
- StipplerSettings: Main application settings
"""

from stippler.config.settings import (
    AnimationPreset,
    ExportConfig,
    ExportResolution,
    IconType,
    LoggingConfig,
    ProcessingConfig,
    StippleParameters,
    StipplerSettings,
    get_default_settings,
    map_export_size,
)

__all__ = [
    "AnimationPreset",
    "ExportConfig",
    "ExportResolution",
    "IconType",
    "LoggingConfig",
    "ProcessingConfig",
    "StippleParameters",
    "StipplerSettings",
    "get_default_settings",
    "map_export_size",
]
