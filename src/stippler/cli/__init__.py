"""Command-line interface for stippler.

This module provides the CLI using Typer with rich output for
user-friendly feedback and progress reporting.

Key features:
- Still image rendering with an optional quick preview pass
- Video and animated GIF export with a live progress bar
- Ctrl+C cancellation that leaves no partial output
- Detailed error reporting
"""

from stippler.cli.app import cli, main

__all__ = ["cli", "main"]
