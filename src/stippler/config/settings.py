"""Configuration settings for Stippler."""

from enum import Enum
from pathlib import Path
from typing import Any

from PIL import ImageColor
from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator

from stippler.utils.numeric import clamp, round_half_up


class IconType(str, Enum):
    """Glyph drawn at each stipple position."""

    CURSOR = "cursor"
    CIRCLE = "circle"
    TRIANGLE = "triangle"
    STAR = "star"


class AnimationPreset(str, Enum):
    """Parameter curve applied across an exported clip.

    WAVE_DISPERSION, BLINK_THRESHOLD and ICON_SCALE_PULSE are accepted but
    have no curve yet; they leave the parameters unchanged.
    """

    NONE = "none"
    PULSE_DENSITY = "pulseDensity"
    SWEEP_THRESHOLD = "sweepThreshold"
    SPIN_ROTATION = "spinRotation"
    WAVE_DISPERSION = "waveDispersion"
    BLINK_THRESHOLD = "blinkThreshold"
    ICON_SCALE_PULSE = "iconScalePulse"


class ExportResolution(str, Enum):
    """Output resolution for exported clips."""

    SOURCE = "source"
    FULL_HD = "1080p"
    HD = "720p"


# (low, high, integral) for every clamped parameter
_PARAMETER_RANGES: dict[str, tuple[float, float, bool]] = {
    "density": (10, 100, True),
    "icon_size": (5, 30, True),
    "threshold": (0, 255, True),
    "dispersion_amount": (0, 100, False),
    "rotation_variance": (0, 45, True),
}


class StippleParameters(BaseModel):
    """Style parameters for one stipple rendering.

    Numeric fields are clamped into their documented ranges instead of being
    rejected, so derived per-frame copies (see core.animation) can never leave
    the valid envelope. Instances are frozen; use ``model_copy(update=...)``.
    """

    model_config = ConfigDict(frozen=True)

    density: int = Field(default=60, description="Sampling density (10-100)")
    icon_size: int = Field(default=14, description="Icon size in pixels (5-30)")
    threshold: int = Field(default=120, description="Brightness threshold (0-255)")
    invert_threshold: bool = Field(
        default=False,
        description="Treat bright pixels as the silhouette instead of dark ones",
    )
    dispersion_amount: float = Field(
        default=70.0,
        description="Maximum push away from the center as percent of the larger side",
    )
    rotation_variance: int = Field(
        default=18,
        description="Maximum rotation jitter in degrees (0-45)",
    )
    background_color: tuple[int, int, int] = Field(
        default=(0x0B, 0x0F, 0x1A),
        description="Background fill color",
    )
    icon_type: IconType = Field(default=IconType.CURSOR, description="Icon glyph")

    @field_validator(*_PARAMETER_RANGES.keys(), mode="before")
    @classmethod
    def _clamp_to_range(cls, value: Any, info: ValidationInfo) -> Any:
        low, high, integral = _PARAMETER_RANGES[info.field_name]
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            return value
        value = clamp(value, low, high)
        return round_half_up(value) if integral else float(value)

    @field_validator("background_color", mode="before")
    @classmethod
    def _parse_color(cls, value: Any) -> Any:
        if isinstance(value, str):
            try:
                rgb = ImageColor.getrgb(value)
            except ValueError as e:
                raise ValueError(f"Unrecognized color '{value}'") from e
            return tuple(rgb[:3])
        if isinstance(value, (tuple, list)) and not all(
            isinstance(c, int) and 0 <= c <= 255 for c in value
        ):
            raise ValueError(f"Color channels must be integers in 0-255, got {value}")
        return value

    @field_validator("icon_type", mode="before")
    @classmethod
    def _fallback_icon(cls, value: Any) -> Any:
        if isinstance(value, IconType):
            return value
        try:
            return IconType(value)
        except ValueError:
            return IconType.CURSOR


class ExportConfig(BaseModel):
    """Configuration for video and GIF export."""

    fps: int = Field(default=30, ge=1, le=60, description="Output frames per second")
    duration_sec: float = Field(default=5.0, gt=0.0, description="Clip length in seconds")
    resolution: ExportResolution = Field(
        default=ExportResolution.SOURCE,
        description="Output resolution",
    )
    animation: AnimationPreset = Field(
        default=AnimationPreset.NONE,
        description="Parameter animation applied across the clip",
    )
    bitrate: int = Field(
        default=10_000_000,
        ge=100_000,
        description="Target video bitrate in bits per second",
    )
    seed: int | None = Field(
        default=None,
        description="Seed for rotation jitter (None = fresh per run)",
    )


class ProcessingConfig(BaseModel):
    """Configuration for frame processing and export pacing."""

    quick_preview_density_min: int = Field(
        default=10,
        ge=10,
        le=100,
        description="Lower density bound for the quick preview pass",
    )
    quick_preview_density_max: int = Field(
        default=30,
        ge=10,
        le=100,
        description="Upper density bound for the quick preview pass",
    )
    decode_poll_attempts: int = Field(
        default=5,
        ge=0,
        le=100,
        description="Readiness polls before rendering a late frame anyway",
    )
    decode_poll_interval_ms: float = Field(
        default=50.0,
        ge=0.0,
        description="Delay between readiness polls",
    )
    flush_interval_ms: float = Field(
        default=250.0,
        ge=0.0,
        description="Wait after the last frame before finalizing the encoder",
    )
    seek_epsilon: float = Field(
        default=0.001,
        gt=0.0,
        description="Distance kept from the end of the source when seeking",
    )
    max_surface_dimension: int = Field(
        default=8192,
        ge=16,
        description="Largest width or height the drawing surface accepts",
    )


class LoggingConfig(BaseModel):
    """Logging configuration."""

    log_file: Path | None = Field(
        default=None,
        description="Path to log file",
    )
    log_level: str = Field(
        default="WARNING",
        description="Console log level",
    )
    file_log_level: str = Field(
        default="DEBUG",
        description="File log level (more verbose)",
    )


class StipplerSettings(BaseModel):
    """Main application settings."""

    stipple: StippleParameters = Field(default_factory=StippleParameters)
    export: ExportConfig = Field(default_factory=ExportConfig)
    processing: ProcessingConfig = Field(default_factory=ProcessingConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


def get_default_settings() -> StipplerSettings:
    """Get default application settings."""
    return StipplerSettings()


def map_export_size(
    source_width: int, source_height: int, resolution: ExportResolution
) -> tuple[int, int]:
    """Compute the output size for an export resolution preset.

    Presets keep the source aspect ratio and round both sides up to even
    numbers, which most video encoders require.

    Args:
        source_width: Native source width in pixels
        source_height: Native source height in pixels
        resolution: Requested resolution preset

    Returns:
        Tuple of (width, height)
    """
    if resolution == ExportResolution.SOURCE:
        return source_width, source_height

    target_height = 1080 if resolution == ExportResolution.FULL_HD else 720
    ratio = source_width / source_height
    width = round_half_up(target_height * ratio)

    def even(n: int) -> int:
        return n if n % 2 == 0 else n + 1

    return even(width), even(target_height)
