"""Rich console output helpers for the CLI.

This module provides user-friendly console output using Rich library
with progress bars and formatted messages.
"""


from rich.console import Console
from rich.markup import escape
from rich.progress import (
    BarColumn,
    Progress,
    TaskProgressColumn,
    TextColumn,
    TimeElapsedColumn,
)
from rich.text import Text

console = Console()

# Unicode symbols for consistent visual language
SYM_STEP = "▸"  # Step indicator
SYM_OK = "✓"  # Success
SYM_ERR = "✗"  # Error
SYM_DOT = "·"  # Separator/secondary info


def create_progress() -> Progress:
    """Create a rich progress bar for frame export.

    Returns:
        Configured Progress instance with bar and time elapsed.
    """
    return Progress(
        TextColumn("  "),
        BarColumn(bar_width=40, complete_style="green", finished_style="green"),
        TaskProgressColumn(),
        TimeElapsedColumn(),
        console=console,
        transient=False,
    )


def print_header(version: str) -> None:
    """Print application header.

    Args:
        version: Application version string
    """
    console.print(f"\n[bold]Stippler[/bold] v{version}")
    console.print("─" * 44)


def print_step(message: str) -> None:
    """Print a processing step indicator.

    Args:
        message: Step description message
    """
    console.print(f"\n{SYM_STEP} {message}")


def print_source_info(path: str, kind: str, width: int, height: int, duration: float) -> None:
    """Print source media information.

    Args:
        path: Path to the source file
        kind: "image" or "video"
        width: Native width in pixels
        height: Native height in pixels
        duration: Natural duration in seconds (inf for images)
    """
    line = Text("  ")
    line.append(path)
    line.append(f" ({kind})")
    console.print(line)
    if duration == float("inf"):
        console.print(f"  {width}×{height}")
    else:
        console.print(f"  {width}×{height} {SYM_DOT} {_format_time(duration)}")


def print_export_info(
    width: int, height: int, fps: int, frames: int, animation: str
) -> None:
    """Print export configuration.

    Args:
        width: Output width in pixels
        height: Output height in pixels
        fps: Output frame rate
        frames: Number of frames to render
        animation: Animation preset name
    """
    console.print(
        f"  {width}×{height} {SYM_DOT} {fps} fps {SYM_DOT} {frames} frames "
        f"{SYM_DOT} animation: {animation}"
    )
    console.print("  Ctrl+C to cancel")


def _format_time(seconds: float) -> str:
    """Format seconds into human-readable time string."""
    if seconds < 1:
        return f"{seconds * 1000:.0f}ms"
    elif seconds < 60:
        return f"{seconds:.1f}s"
    else:
        mins = int(seconds // 60)
        secs = seconds % 60
        return f"{mins}m {secs:.1f}s"


def format_file_size(size_bytes: int) -> str:
    """Format a byte count in human-readable form (e.g. "428 KB")."""
    if size_bytes < 1024:
        return f"{size_bytes} B"
    elif size_bytes < 1024 * 1024:
        return f"{size_bytes / 1024:.0f} KB"
    else:
        return f"{size_bytes / (1024 * 1024):.1f} MB"


def print_success(
    output_path: str,
    file_size: str,
    total_time_s: float,
    frames: int,
    icons: int,
    late_frames: int = 0,
    avg_time_ms: float | None = None,
) -> None:
    """Print success message with summary.

    Args:
        output_path: Path to output file
        file_size: Human-readable file size string
        total_time_s: Total processing time in seconds
        frames: Number of frames rendered
        icons: Total number of icons drawn
        late_frames: Frames rendered with stale source pixels
        avg_time_ms: Average render time per frame in milliseconds
    """
    time_str = _format_time(total_time_s)

    console.print(f"\n[bold green]{SYM_OK} Complete[/bold green] in {time_str}")

    line = Text("  ")
    line.append(output_path, style="bold")
    line.append(f" ({file_size})")
    console.print(line)

    late_style = "yellow" if late_frames > 0 else "green"
    console.print(
        f"  {frames} frames {SYM_DOT} {icons:,} icons {SYM_DOT} "
        f"[{late_style}]{late_frames} late[/{late_style}]"
    )

    if avg_time_ms is not None:
        console.print(f"  {avg_time_ms:.1f}ms avg render")


def print_error(message: str, details: str | None = None) -> None:
    """Print error message.

    Args:
        message: Main error message
        details: Optional detailed error information
    """
    console.print(f"\n[bold red]{SYM_ERR} Error:[/bold red] {escape(message)}")
    if details:
        console.print(f"  {escape(details)}")


def print_cancellation_summary(frames_completed: int, total_frames: int) -> None:
    """Print cancellation summary.

    Args:
        frames_completed: Frames rendered before cancellation
        total_frames: Frames the job would have rendered
    """
    console.print(f"\n{SYM_DOT} [bold]Cancelled[/bold]")
    console.print(f"  {frames_completed} of {total_frames} frames rendered")
    console.print("  No output file created")
