"""Shared formatting helpers for CLI commands."""

from __future__ import annotations

from typing import TYPE_CHECKING

from rich.table import Table
from rich.text import Text


if TYPE_CHECKING:
    from apkfetch.core.models import LockedArtifactSet


def format_size(size_bytes: int) -> str:
    """Format size in bytes to human-readable format."""
    size = float(size_bytes)
    for unit in ["B", "KB", "MB", "GB"]:
        if size < 1024.0:
            return f"{size:.1f} {unit}"
        size /= 1024.0
    return f"{size:.1f} TB"


def _format_count(count: int) -> Text:
    """Dim zero counts so populated categories stand out."""
    return Text(str(count), style="dim" if count == 0 else "green")


def artifact_summary_table(artifacts: LockedArtifactSet) -> Table:
    """Build a table with one row per artifact category."""
    table = Table(title=artifacts.lockfile.name)
    table.add_column("Category")
    table.add_column("Files", justify="right")
    table.add_column("Size", justify="right")

    for name, paths in artifacts.output_groups.items():
        if name == "lockfile":
            continue
        size = sum(p.stat().st_size for p in paths if p.exists())
        table.add_row(name, _format_count(len(paths)), format_size(size))
    return table
