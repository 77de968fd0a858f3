"""Standardized terminal output utilities.

All user-facing CLI messages go through these functions so downloads,
progress and errors look the same everywhere.

Basic Usage:
    from fileshare_cli.output import success, info, warn, error, detail

    success("Downloaded report.pdf (1.2 MB)")
    info("Resolving docs/a/b/report.pdf")
    warn("No stored MD5; checksum not verified")
    error("File already exists at ./report.pdf")
    detail(" 40% Transferred 400 of 1000 bytes")

What-If Mode:
    Add dry_run=True to prefix messages with [DRY RUN], for operations that
    are only reported and not performed:

    info('Performing the operation "Download" on target "/tmp/a.pdf"', dry_run=True)
    # Output: → [DRY RUN] Performing the operation "Download" on target "/tmp/a.pdf"
"""

from __future__ import annotations

import sys
from typing import TextIO

import click

# ANSI color codes via click's style system
_STYLES = {
    "success": {"fg": "green"},
    "info": {"fg": "blue"},
    "warn": {"fg": "yellow"},
    "error": {"fg": "red"},
    "detail": {"fg": "bright_black"},  # Dimmed/gray
}

_PREFIXES = {
    "success": "✓",  # checkmark
    "info": "→",  # arrow
    "warn": "⚠",  # warning
    "error": "✗",  # X
    "detail": " ",  # space (no prefix, just indent)
}


def _output(
    message: str,
    style: str,
    *,
    file: TextIO | None = None,
    nl: bool = True,
    dry_run: bool = False,
) -> None:
    """Internal helper for styled output."""
    if dry_run:
        message = f"[DRY RUN] {message}"

    fg_color = _STYLES[style]["fg"]
    styled_prefix = click.style(_PREFIXES[style], fg=fg_color)
    styled_message = click.style(message, fg=fg_color)
    click.echo(f"{styled_prefix} {styled_message}", file=file, nl=nl)


def success(
    message: str, *, file: TextIO | None = None, nl: bool = True, dry_run: bool = False
) -> None:
    """Print a success message with green checkmark (stdout).

    Example:
        >>> success("Downloaded report.pdf")
        ✓ Downloaded report.pdf
    """
    _output(message, "success", file=file, nl=nl, dry_run=dry_run)


def info(
    message: str, *, file: TextIO | None = None, nl: bool = True, dry_run: bool = False
) -> None:
    """Print an info message with blue arrow (stdout)."""
    _output(message, "info", file=file, nl=nl, dry_run=dry_run)


def warn(
    message: str, *, file: TextIO | None = None, nl: bool = True, dry_run: bool = False
) -> None:
    """Print a warning message with yellow warning symbol (stderr)."""
    _output(message, "warn", file=file or sys.stderr, nl=nl, dry_run=dry_run)


def error(
    message: str, *, file: TextIO | None = None, nl: bool = True, dry_run: bool = False
) -> None:
    """Print an error message with red X (stderr).

    Example:
        >>> error("Remote file not found: docs/a.pdf")
        ✗ Remote file not found: docs/a.pdf
    """
    _output(message, "error", file=file or sys.stderr, nl=nl, dry_run=dry_run)


def detail(
    message: str, *, file: TextIO | None = None, nl: bool = True, dry_run: bool = False
) -> None:
    """Print a detail/progress message in dimmed text (stdout)."""
    _output(message, "detail", file=file, nl=nl, dry_run=dry_run)
