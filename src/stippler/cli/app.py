"""CLI application entry point for stippler.

This module provides the main CLI interface using Typer.
"""

import asyncio
import random
import signal
from pathlib import Path
from typing import Annotated

import typer

from stippler import __version__
from stippler.cli.output import (
    SYM_OK,
    console,
    create_progress,
    format_file_size,
    print_cancellation_summary,
    print_error,
    print_export_info,
    print_header,
    print_source_info,
    print_step,
    print_success,
)
from stippler.config import (
    AnimationPreset,
    ExportConfig,
    ExportResolution,
    IconType,
    LoggingConfig,
    StippleParameters,
    StipplerSettings,
    map_export_size,
)
from stippler.core import FrameExporter, FrameRenderer, StippleEngine, fit_contain, total_frames
from stippler.domain import CancellationToken, ExportResult, ProgressKind
from stippler.exceptions import (
    ExportCancelledError,
    SourceLoadError,
    SourceUnavailableError,
    StipplerError,
)
from stippler.io import (
    FfmpegVideoEncoder,
    FrameSink,
    GifEncoder,
    PillowSurface,
    StillImageSource,
    VideoFileSource,
    open_source,
)
from stippler.utils import configure_logging

# Create the Typer app
app = typer.Typer(
    name="stippler",
    help="Render images and videos as fields of dispersed icon stipples.",
    add_completion=False,
    no_args_is_help=True,
)

# Shared stipple parameter options
Density = Annotated[
    int, typer.Option("--density", "-d", help="Sampling density (10-100)", min=10, max=100)
]
IconSize = Annotated[
    int, typer.Option("--icon-size", "-s", help="Icon size in pixels (5-30)", min=5, max=30)
]
Threshold = Annotated[
    int, typer.Option("--threshold", "-t", help="Brightness threshold (0-255)", min=0, max=255)
]
Invert = Annotated[
    bool, typer.Option("--invert", help="Use bright pixels as the silhouette")
]
Dispersion = Annotated[
    float,
    typer.Option("--dispersion", help="Dispersion amount in percent (0-100)", min=0.0, max=100.0),
]
Rotation = Annotated[
    int,
    typer.Option("--rotation", "-r", help="Rotation variance in degrees (0-45)", min=0, max=45),
]
Background = Annotated[
    str, typer.Option("--background", "-b", help="Background color (#rrggbb or name)")
]
Icon = Annotated[
    str, typer.Option("--icon", "-i", help="Icon type (cursor|circle|triangle|star)")
]
Seed = Annotated[
    int | None, typer.Option("--seed", help="Seed for rotation jitter (reproducible output)")
]
LogFile = Annotated[Path | None, typer.Option("--log-file", help="Write detailed logs to file")]
LogLevel = Annotated[
    str, typer.Option("--log-level", help="Logging level (DEBUG|INFO|WARNING|ERROR)")
]
Quiet = Annotated[bool, typer.Option("--quiet", "-q", help="Minimal console output")]

# Shared export options
Fps = Annotated[int, typer.Option("--fps", help="Output frames per second", min=1, max=60)]
Duration = Annotated[
    float, typer.Option("--duration", help="Clip length in seconds", min=0.01)
]
Resolution = Annotated[
    str, typer.Option("--resolution", help="Output resolution (source|1080p|720p)")
]
Animation = Annotated[
    str,
    typer.Option(
        "--animation",
        "-a",
        help="Animation preset (none|pulseDensity|sweepThreshold|spinRotation)",
    ),
]

defaults = StippleParameters()


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"[bold blue]Stippler[/bold blue] v{__version__}")
        raise typer.Exit()


@app.callback()
def main_callback(
    _version: Annotated[  # noqa: ARG001
        bool | None,
        typer.Option(
            "--version",
            "-V",
            help="Show version and exit",
            callback=version_callback,
            is_eager=True,
        ),
    ] = None,
) -> None:
    """Render images and videos as fields of dispersed icon stipples."""


def _build_params(
    density: int,
    icon_size: int,
    threshold: int,
    invert: bool,
    dispersion: float,
    rotation: int,
    background: str,
    icon: str,
) -> StippleParameters:
    """Build stipple parameters from CLI values, exiting on bad input."""
    if icon.lower() not in {t.value for t in IconType}:
        print_error(
            f"Invalid icon: {icon}",
            details="Valid values: cursor, circle, triangle, star",
        )
        raise typer.Exit(code=1)
    try:
        return StippleParameters(
            density=density,
            icon_size=icon_size,
            threshold=threshold,
            invert_threshold=invert,
            dispersion_amount=dispersion,
            rotation_variance=rotation,
            background_color=background,
            icon_type=icon.lower(),
        )
    except ValueError as e:
        print_error("Invalid parameters", details=str(e))
        raise typer.Exit(code=1) from None


def _build_export_config(
    fps: int, duration: float, resolution: str, animation: str, bitrate: int, seed: int | None
) -> ExportConfig:
    """Build the export configuration from CLI values, exiting on bad input."""
    try:
        resolution_pref = ExportResolution(resolution.lower())
    except ValueError:
        print_error(
            f"Invalid resolution: {resolution}",
            details="Valid values: source, 1080p, 720p",
        )
        raise typer.Exit(code=1) from None

    try:
        animation_pref = AnimationPreset(animation)
    except ValueError:
        print_error(
            f"Invalid animation: {animation}",
            details="Valid values: " + ", ".join(p.value for p in AnimationPreset),
        )
        raise typer.Exit(code=1) from None

    return ExportConfig(
        fps=fps,
        duration_sec=duration,
        resolution=resolution_pref,
        animation=animation_pref,
        bitrate=bitrate,
        seed=seed,
    )


def _validate_input(path: Path) -> None:
    if not path.exists():
        print_error(
            f"Input file not found: {path}",
            details=f"The file '{path}' does not exist or is not accessible.",
        )
        raise typer.Exit(code=1)

    if not path.is_file():
        print_error(
            f"Input path is not a file: {path}",
            details="Please provide a path to an image or video file.",
        )
        raise typer.Exit(code=1)


def stippled_path(input_path: Path, extension: str) -> Path:
    """Default output path: {stem}-stippled.{extension} next to the input."""
    return input_path.with_name(f"{input_path.stem}-stippled.{extension}")


@app.command()
def render(
    input_image: Annotated[
        Path,
        typer.Argument(help="Path to input image", show_default=False),
    ],
    output: Annotated[
        Path | None,
        typer.Option("--output", "-o", help="Output PNG path (default: {name}-stippled.png)"),
    ] = None,
    width: Annotated[
        int | None,
        typer.Option("--width", help="Canvas width; the image is fitted inside", min=1),
    ] = None,
    height: Annotated[
        int | None,
        typer.Option("--height", help="Canvas height; the image is fitted inside", min=1),
    ] = None,
    quick_preview: Annotated[
        Path | None,
        typer.Option("--quick-preview", help="Also save the low-density preview pass"),
    ] = None,
    density: Density = defaults.density,
    icon_size: IconSize = defaults.icon_size,
    threshold: Threshold = defaults.threshold,
    invert: Invert = defaults.invert_threshold,
    dispersion: Dispersion = defaults.dispersion_amount,
    rotation: Rotation = defaults.rotation_variance,
    background: Background = "#0b0f1a",
    icon: Icon = defaults.icon_type.value,
    seed: Seed = None,
    log_file: LogFile = None,
    log_level: LogLevel = "WARNING",
    quiet: Quiet = False,
) -> None:
    """Render a still image as a stippled PNG.

    Example:
        stippler render portrait.jpg --density 80 --icon star
    """
    _validate_input(input_image)
    if (width is None) != (height is None):
        print_error("--width and --height must be given together")
        raise typer.Exit(code=1)

    params = _build_params(
        density, icon_size, threshold, invert, dispersion, rotation, background, icon
    )
    settings = StipplerSettings(
        stipple=params,
        logging=LoggingConfig(log_file=log_file, log_level=log_level),
    )
    configure_logging(
        log_file=settings.logging.log_file,
        console_level=settings.logging.log_level,
        file_level=settings.logging.file_log_level,
        quiet=quiet,
    )

    if not quiet:
        print_header(__version__)

    try:
        if not quiet:
            print_step("Loading image")
        source = StillImageSource.open(input_image)
        buffer = source.current_frame()
        if buffer is None:
            raise SourceUnavailableError("image has no pixels")

        if not quiet:
            print_source_info(
                str(input_image), "image", buffer.width, buffer.height, source.duration
            )
            print_step("Rendering")

        canvas_width = width or buffer.width
        canvas_height = height or buffer.height
        surface = PillowSurface(
            canvas_width,
            canvas_height,
            max_dimension=settings.processing.max_surface_dimension,
        )
        region = (
            fit_contain(buffer.width, buffer.height, canvas_width, canvas_height)
            if width is not None
            else None
        )
        renderer = FrameRenderer(surface, StippleEngine(random.Random(seed)))
        passes = renderer.render_progressive(buffer, params, settings.processing, region)

        quick = next(passes)
        if quick_preview is not None:
            quick.to_image().save(quick_preview, format="PNG")

        full = next(passes)
        output_path = output or stippled_path(input_image, "png")
        full.to_image().save(output_path, format="PNG")

        if not quiet:
            console.print(f"\n[bold green]{SYM_OK} Complete[/bold green]")
            console.print(
                f"  [bold]{output_path}[/bold] "
                f"({format_file_size(output_path.stat().st_size)})"
            )

    except SourceLoadError as e:
        print_error(f"Could not load image: {e.reason}")
        raise typer.Exit(code=1)
    except StipplerError as e:
        print_error(str(e))
        raise typer.Exit(code=1)
    except OSError as e:
        print_error(f"Could not write output: {e}")
        raise typer.Exit(code=1)


@app.command()
def video(
    input_file: Annotated[
        Path,
        typer.Argument(help="Path to input video (or image)", show_default=False),
    ],
    output: Annotated[
        Path | None,
        typer.Option("--output", "-o", help="Output path (default: {name}-stippled.{ext})"),
    ] = None,
    fps: Fps = 30,
    duration: Duration = 5.0,
    resolution: Resolution = "source",
    animation: Animation = "none",
    bitrate: Annotated[
        int, typer.Option("--bitrate", help="Target bitrate in bits/s", min=100_000)
    ] = 10_000_000,
    density: Density = defaults.density,
    icon_size: IconSize = defaults.icon_size,
    threshold: Threshold = defaults.threshold,
    invert: Invert = defaults.invert_threshold,
    dispersion: Dispersion = defaults.dispersion_amount,
    rotation: Rotation = defaults.rotation_variance,
    background: Background = "#0b0f1a",
    icon: Icon = defaults.icon_type.value,
    seed: Seed = None,
    log_file: LogFile = None,
    log_level: LogLevel = "WARNING",
    quiet: Quiet = False,
) -> None:
    """Export a stippled video clip.

    Every output frame is seeked exactly, rendered, and streamed to ffmpeg at
    a steady rate.

    Example:
        stippler video clip.mp4 --fps 24 --duration 4 --animation sweepThreshold
    """
    _validate_input(input_file)
    params = _build_params(
        density, icon_size, threshold, invert, dispersion, rotation, background, icon
    )
    config = _build_export_config(fps, duration, resolution, animation, bitrate, seed)
    encoder = FfmpegVideoEncoder(bitrate=config.bitrate)
    _export(input_file, output, encoder, params, config, log_file, log_level, quiet)


@app.command()
def gif(
    input_file: Annotated[
        Path,
        typer.Argument(help="Path to input image or video", show_default=False),
    ],
    output: Annotated[
        Path | None,
        typer.Option("--output", "-o", help="Output path (default: {name}-stippled.gif)"),
    ] = None,
    fps: Fps = 15,
    duration: Duration = 2.0,
    resolution: Resolution = "source",
    animation: Animation = "none",
    density: Density = defaults.density,
    icon_size: IconSize = defaults.icon_size,
    threshold: Threshold = defaults.threshold,
    invert: Invert = defaults.invert_threshold,
    dispersion: Dispersion = defaults.dispersion_amount,
    rotation: Rotation = defaults.rotation_variance,
    background: Background = "#0b0f1a",
    icon: Icon = defaults.icon_type.value,
    seed: Seed = None,
    log_file: LogFile = None,
    log_level: LogLevel = "WARNING",
    quiet: Quiet = False,
) -> None:
    """Export a stippled animated GIF.

    With a still image as input, use --animation to make the frames differ.

    Example:
        stippler gif logo.png --animation pulseDensity --fps 12 --duration 2
    """
    _validate_input(input_file)
    params = _build_params(
        density, icon_size, threshold, invert, dispersion, rotation, background, icon
    )
    config = _build_export_config(fps, duration, resolution, animation, 10_000_000, seed)
    _export(input_file, output, GifEncoder(), params, config, log_file, log_level, quiet)


def _export(
    input_file: Path,
    output: Path | None,
    sink: FfmpegVideoEncoder | GifEncoder,
    params: StippleParameters,
    config: ExportConfig,
    log_file: Path | None,
    log_level: str,
    quiet: bool,
) -> None:
    """Shared body of the video and gif commands."""
    settings = StipplerSettings(
        stipple=params,
        export=config,
        logging=LoggingConfig(log_file=log_file, log_level=log_level),
    )
    logger = configure_logging(
        log_file=settings.logging.log_file,
        console_level=settings.logging.log_level,
        file_level=settings.logging.file_log_level,
        quiet=quiet,
    )

    if not quiet:
        print_header(__version__)

    exporter = FrameExporter(
        processing=settings.processing,
        engine=StippleEngine(random.Random(config.seed)),
        logger=logger,
    )
    token = CancellationToken()
    source: StillImageSource | VideoFileSource | None = None

    try:
        if not quiet:
            print_step("Loading source")
        source = open_source(input_file)
        kind = "image" if isinstance(source, StillImageSource) else "video"
        width, height = map_export_size(source.width, source.height, config.resolution)

        if not quiet:
            print_source_info(str(input_file), kind, source.width, source.height, source.duration)
            print_step("Exporting")
            print_export_info(
                width,
                height,
                config.fps,
                total_frames(config.duration_sec, config.fps),
                config.animation.value,
            )

        result = asyncio.run(
            _run_export(exporter, source, sink, params, config, token, quiet)
        )

        output_path = output or stippled_path(input_file, sink.extension)
        output_path.write_bytes(result.data)

        stats = exporter.last_stats
        if not quiet and stats is not None:
            print_success(
                output_path=str(output_path),
                file_size=format_file_size(len(result.data)),
                total_time_s=stats.duration_seconds,
                frames=result.frame_count,
                icons=stats.icons_drawn,
                late_frames=stats.late_frames,
                avg_time_ms=stats.avg_frame_time_ms,
            )

    except ExportCancelledError as e:
        if not quiet:
            print_cancellation_summary(e.frames_completed, e.total_frames)
        raise typer.Exit(code=130) from None  # Standard Unix SIGINT exit code
    except SourceLoadError as e:
        print_error(f"Could not load source: {e.reason}")
        raise typer.Exit(code=1)
    except StipplerError as e:
        print_error(str(e))
        raise typer.Exit(code=1)
    except OSError as e:
        print_error(f"Could not write output: {e}")
        raise typer.Exit(code=1)
    finally:
        if source is not None:
            source.close()


async def _run_export(
    exporter: FrameExporter,
    source: StillImageSource | VideoFileSource,
    sink: FrameSink,
    params: StippleParameters,
    config: ExportConfig,
    token: CancellationToken,
    quiet: bool,
) -> ExportResult:
    """Run the export with Ctrl+C mapped to the cancellation token."""
    loop = asyncio.get_running_loop()
    try:
        loop.add_signal_handler(signal.SIGINT, token.cancel)
        handler_installed = True
    except (NotImplementedError, RuntimeError):
        handler_installed = False

    try:
        if quiet:
            return await exporter.export(source, sink, params, config, cancel=token)

        with create_progress() as progress:
            task_id = progress.add_task("Exporting", total=100)

            def update_progress(kind: ProgressKind, percent: int) -> None:
                if kind in (ProgressKind.START, ProgressKind.PROGRESS, ProgressKind.COMPLETE):
                    progress.update(task_id, completed=percent)

            return await exporter.export(
                source, sink, params, config, progress=update_progress, cancel=token
            )
    finally:
        if handler_installed:
            loop.remove_signal_handler(signal.SIGINT)


def cli() -> None:
    """Entry point for the CLI application."""
    app()


def main() -> None:
    """Entry point for the CLI application (alias for cli)."""
    cli()


if __name__ == "__main__":
    cli()
