"""Status command for CLI."""

from __future__ import annotations

from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table

from apkfetch.cli.formatting import format_size
from apkfetch.cli.main import app, load_settings, report_errors


@app.command()
def status(
    ctx: typer.Context,
    lockfile: Path | None = typer.Option(
        None,
        "--lockfile",
        help="Lockfile whose keyrings make up the keyring collection.",
    ),
) -> None:
    """Show the cache collections and their sizes."""
    from apkfetch.adapters.cache import FileCache
    from apkfetch.core.address import cache_path_from_url
    from apkfetch.core.descriptors import collect
    from apkfetch.lockfile import load_lock

    settings = load_settings(ctx)
    cache = FileCache(settings.cache_dir)

    if not cache.root.exists():
        typer.echo(f"Cache is empty: {cache.root}")
        return

    keyrings = []
    if lockfile is not None:
        with report_errors():
            contents = load_lock(lockfile)
        keyrings = [cache_path_from_url(k.url) for k in contents.keyrings]

    # Build Rich table
    table = Table(title=str(cache.root))
    table.add_column("Collection")
    table.add_column("Files", justify="right")
    table.add_column("Size", justify="right")

    for collection in collect(cache, keyrings):
        table.add_row(collection.name, str(len(collection.files)), format_size(collection.total_size))

    console = Console(force_terminal=True)
    console.print(table)

    stats = cache.statistics()
    typer.echo(f"Total: {stats['file_count']} files, {format_size(stats['total_size'])}")
