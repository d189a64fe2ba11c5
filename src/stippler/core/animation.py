"""Animation curves that vary stipple parameters across a clip."""

import math

from stippler.config import AnimationPreset, StippleParameters
from stippler.utils.numeric import clamp, round_half_up

PULSE_DENSITY_AMPLITUDE = 30


def apply_animation(
    base: StippleParameters,
    preset: AnimationPreset | str,
    progress: float,
) -> StippleParameters:
    """Derive the parameters for one frame of an animated export.

    Args:
        base: Parameters chosen by the user
        preset: Animation preset (enum or its string value)
        progress: Position in the clip, 0 at the first frame and 1 at the last

    Returns:
        A new StippleParameters; base is returned unchanged for ``none``, for
        the reserved presets without a curve, and for unknown names
    """
    try:
        preset = AnimationPreset(preset)
    except ValueError:
        return base

    progress = clamp(progress, 0.0, 1.0)

    if preset == AnimationPreset.PULSE_DENSITY:
        wave = math.sin(progress * math.pi * 2) * PULSE_DENSITY_AMPLITUDE
        density = clamp(round_half_up(base.density + wave), 10, 100)
        return base.model_copy(update={"density": int(density)})

    if preset == AnimationPreset.SWEEP_THRESHOLD:
        threshold = clamp(round_half_up(50 + progress * 205), 0, 255)
        return base.model_copy(update={"threshold": int(threshold)})

    if preset == AnimationPreset.SPIN_ROTATION:
        rotation = clamp(round_half_up(5 + progress * 45), 0, 45)
        return base.model_copy(update={"rotation_variance": int(rotation)})

    # NONE, plus WAVE_DISPERSION, BLINK_THRESHOLD and ICON_SCALE_PULSE which
    # have no defined curve yet.
    return base
