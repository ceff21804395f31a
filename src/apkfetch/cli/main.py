"""CLI commands for apkfetch."""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import TYPE_CHECKING

import typer

from apkfetch.core.exceptions import ApkFetchError


if TYPE_CHECKING:
    from apkfetch import FetchSettings, Importer
    from apkfetch.core.ports import ProgressReporter


app = typer.Typer(
    name="apkfetch",
    help="Range-fetch Alpine packages into a content-addressed cache.",
    no_args_is_help=True,
)


@contextmanager
def report_errors() -> Iterator[None]:
    """Turn library errors into an error line, a hint, and exit code 1."""
    try:
        yield
    except ApkFetchError as e:
        typer.echo(f"Error: {e}", err=True)
        if e.recovery_hint:
            typer.echo(f"Hint: {e.recovery_hint}", err=True)
        raise typer.Exit(1) from None


def load_settings(ctx: typer.Context) -> FetchSettings:
    """Build settings from the global options and the environment.

    This is the only place the environment is read.
    """
    from apkfetch.config import FetchSettings

    options = ctx.obj or {}
    with report_errors():
        return FetchSettings.from_env(
            cache_dir=options.get("cache_dir"),
            host_version=options.get("host_version"),
            max_workers=options.get("max_workers"),
        )


def build_importer(ctx: typer.Context, progress: ProgressReporter | None = None) -> Importer:
    """Create an Importer wired from the resolved settings."""
    from apkfetch import Importer

    settings = load_settings(ctx)
    with report_errors():
        return Importer.from_settings(settings, progress=progress)


@app.callback()
def main_callback(
    ctx: typer.Context,
    log_level: str | None = typer.Option(
        None,
        "--log-level",
        "-l",
        help="Logging level (DEBUG, INFO, WARNING, ERROR). Defaults to APKFETCH_LOG_LEVEL or WARNING.",
    ),
    cache_dir: Path | None = typer.Option(
        None,
        "--cache-dir",
        help="Cache root. Defaults to APKFETCH_CACHE_DIR or .apkfetch/cache under the project root.",
    ),
    host_version: str | None = typer.Option(
        None,
        "--host-version",
        help="Downloader version of the host; below 7.1.0 ranges are sent in the URL fragment.",
    ),
    max_workers: int | None = typer.Option(
        None,
        "--max-workers",
        "-w",
        help="Parallel package imports. Defaults to APKFETCH_MAX_WORKERS or 1.",
    ),
) -> None:
    """Range-fetch Alpine packages into a content-addressed cache."""
    from apkfetch.log_utils import configure_logging

    configure_logging(log_level)
    ctx.obj = {
        "cache_dir": cache_dir,
        "host_version": host_version,
        "max_workers": max_workers,
    }


@app.command()
def fetch(
    ctx: typer.Context,
    lockfile: Path = typer.Argument(..., help="Path to an apko.lock.json file."),
    build_file: bool = typer.Option(
        False,
        "--build-file",
        "-b",
        help="Write a BUILD.bazel descriptor to the cache root.",
    ),
) -> None:
    """Import every keyring, index, and package a lockfile lists."""
    from rich.console import Console

    from apkfetch import RichProgressReporter, load_lock
    from apkfetch.cli.formatting import artifact_summary_table
    from apkfetch.core.address import cache_path_from_url
    from apkfetch.core.descriptors import write_descriptor

    with report_errors():
        contents = load_lock(lockfile)

    with (
        report_errors(),
        RichProgressReporter() as progress,
        build_importer(ctx, progress) as importer,
    ):
        artifacts = importer.import_lock(contents)

    for path in artifacts.apks:
        typer.echo(str(path))

    console = Console(force_terminal=True)
    console.print(artifact_summary_table(artifacts))

    if build_file:
        keyrings = [cache_path_from_url(k.url) for k in contents.keyrings]
        descriptor = write_descriptor(importer.cache, keyrings)
        typer.echo(f"Wrote {descriptor}")


@app.command()
def package(
    ctx: typer.Context,
    url: str = typer.Argument(..., help="Full URL of the .apk file."),
    arch: str = typer.Option(..., "--arch", "-a", help="Package architecture."),
    name: str = typer.Option(..., "--name", "-n", help="Package name."),
    version: str = typer.Option(..., "--version", "-v", help="Package version, e.g. 3.44.0-r0."),
    signature_range: str = typer.Option(..., "--signature-range", help="bytes=START-END of the signature."),
    control_range: str = typer.Option(..., "--control-range", help="bytes=START-END of the control segment."),
    control_checksum: str = typer.Option(..., "--control-checksum", help="Digest of the control segment."),
    data_range: str = typer.Option(..., "--data-range", help="bytes=START-END of the data segment."),
    data_checksum: str = typer.Option(..., "--data-checksum", help="Digest of the data segment."),
) -> None:
    """Import one package from explicit ranges and checksums."""
    from apkfetch import RichProgressReporter
    from apkfetch.core.address import repository_url
    from apkfetch.core.digest import Digest
    from apkfetch.core.models import ByteRange, PackageImport, PackageReference, Segment, SegmentKind

    try:
        with report_errors():
            request = PackageImport(
                reference=PackageReference(
                    repository_url=repository_url(url, arch),
                    architecture=arch,
                    package_name=name,
                    version=version,
                ),
                url=url,
                signature=Segment(SegmentKind.SIGNATURE, ByteRange.parse(signature_range)),
                control=Segment(
                    SegmentKind.CONTROL, ByteRange.parse(control_range), Digest.parse(control_checksum)
                ),
                data=Segment(SegmentKind.DATA, ByteRange.parse(data_range), Digest.parse(data_checksum)),
            )
    except ValueError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1) from None

    with (
        report_errors(),
        RichProgressReporter() as progress,
        build_importer(ctx, progress) as importer,
    ):
        artifact = importer.import_package(request)
    typer.echo(str(artifact))


@app.command()
def repository(
    ctx: typer.Context,
    url: str = typer.Argument(..., help="Full URL of the APKINDEX.tar.gz archive."),
    arch: str = typer.Argument(..., help="Architecture the index describes."),
) -> None:
    """Check range support, then import a repository index."""
    from apkfetch import RichProgressReporter
    from apkfetch.core.models import RepositoryImport

    with (
        report_errors(),
        RichProgressReporter() as progress,
        build_importer(ctx, progress) as importer,
    ):
        path = importer.import_repository(RepositoryImport(url=url, architecture=arch))
    typer.echo(str(path))


@app.command()
def keyring(
    ctx: typer.Context,
    url: str = typer.Argument(..., help="Full URL of the public key."),
) -> None:
    """Import one public signing key."""
    from apkfetch.core.models import KeyringImport

    with report_errors(), build_importer(ctx) as importer:
        path = importer.import_keyring(KeyringImport(url=url))
    typer.echo(str(path))


@app.command()
def probe(
    ctx: typer.Context,
    url: str = typer.Argument(..., help="URL to request the first byte of."),
) -> None:
    """Check that a host honours partial-content requests."""
    with report_errors(), build_importer(ctx) as importer:
        importer.probe(url)
    typer.echo(f"Range requests supported ({importer.downloader.strategy.name}): {url}")


@app.command()
def address(
    url: str = typer.Argument(..., help="Package, index, or keyring URL."),
    arch: str | None = typer.Option(None, "--arch", "-a", help="Architecture of a package or index URL."),
    name: str | None = typer.Option(None, "--name", "-n", help="Package name."),
    version: str | None = typer.Option(None, "--version", "-v", help="Package version."),
) -> None:
    """Print the cache-relative path a URL is stored under.

    Without options the plain URL translation is printed. With --arch the
    index path is printed, and with --arch, --name and --version the
    assembled package path.
    """
    from apkfetch.core.address import cache_path_from_url, index_path, repository_dir

    if (name or version) and not (arch and name and version):
        typer.echo("Error: --name and --version require each other and --arch.", err=True)
        raise typer.Exit(1)

    try:
        if arch and name and version:
            result = repository_dir(url, arch) / f"{name}-{version}.apk"
        elif arch:
            result = index_path(url, arch)
        else:
            result = cache_path_from_url(url)
    except ValueError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1) from None

    typer.echo(str(result))


def main() -> None:
    """Entry point for the CLI."""
    app()
