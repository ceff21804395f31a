"""Filesystem transport adapter for local mirrors."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

from apkfetch.core.exceptions import TransportError, TransportNotFoundError
from apkfetch.core.ranges import decode_fragment_range


if TYPE_CHECKING:
    from apkfetch.core.ports import ProgressCallback
    from apkfetch.core.ranges import FetchRequest


# Chunk size for reading files (64KB)
_CHUNK_SIZE = 64 * 1024


def strip_file_scheme(uri: str) -> str:
    """Strip file:// prefix from URI, returning plain path.

    Args:
        uri: URI that may have file:// prefix.

    Returns:
        The path without file:// prefix.
    """
    if uri.startswith("file://"):
        return uri[7:]  # len("file://") == 7
    return uri


class FilesystemTransport:
    """Transport adapter serving ``file://`` URLs and plain paths.

    Implements TransportPort for local mirrors of a package repository.
    Useful for local development and testing without a network.

    Attributes:
        honor_ranges: When False, every request returns the whole file,
            like a proxy that strips Range headers.
    """

    def __init__(self, honor_ranges: bool = True) -> None:
        self.honor_ranges = honor_ranges

    def fetch(self, request: FetchRequest, dest: Path, progress: ProgressCallback) -> int:
        """Copy a file, or a byte range of it, to dest.

        Raises:
            TransportNotFoundError: If the source file does not exist.
            TransportError: If the range starts past the end of the file,
                where an HTTP server would answer 416.
        """
        base_url, _ = decode_fragment_range(request.url)
        source = Path(strip_file_scheme(base_url))
        try:
            size = source.stat().st_size
        except FileNotFoundError as e:
            raise TransportNotFoundError(
                f"File not found: {source}",
                url=request.url,
                cause=e,
            ) from e

        start, remaining = 0, size
        byte_range = request.byte_range if self.honor_ranges else None
        if byte_range is not None:
            if byte_range.start >= size:
                raise TransportError(
                    f"Range {byte_range.header_value} not satisfiable for {source} ({size} bytes)",
                    url=request.url,
                    status_code=416,
                )
            start = byte_range.start
            end = size - 1 if byte_range.end is None else min(byte_range.end, size - 1)
            remaining = max(end - start + 1, 0)

        total = remaining
        written = 0
        with source.open("rb") as src, dest.open("wb") as dst:
            src.seek(start)
            while remaining > 0:
                chunk = src.read(min(_CHUNK_SIZE, remaining))
                if not chunk:
                    break
                dst.write(chunk)
                written += len(chunk)
                remaining -= len(chunk)
                progress(written, total)
        return written
