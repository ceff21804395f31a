"""Reassembly of range-fetched segments into an .apk file.

An .apk is three gzip members written back to back. Gzip readers decode
concatenated members as one stream, so assembly is a plain byte copy in
signature, control, data order; nothing is decompressed.
"""

from __future__ import annotations

import logging
import os
import shutil
import tempfile
from pathlib import Path

from apkfetch.core.exceptions import AssemblyIncompleteError
from apkfetch.core.models import SegmentKind


logger = logging.getLogger(__name__)

_CHUNK_SIZE = 64 * 1024


def _check_segment(kind: SegmentKind, path: Path) -> None:
    try:
        size = path.stat().st_size
    except FileNotFoundError:
        raise AssemblyIncompleteError(kind.value, path) from None
    if size == 0:
        raise AssemblyIncompleteError(kind.value, path)


def concatenate_gzip_segments(
    output: Path,
    signature: Path,
    control: Path,
    data: Path,
) -> Path:
    """Write signature + control + data to output.

    All segments are checked before any byte is written. The result is
    written to a temporary file beside output and renamed into place, so
    readers never observe a partial artifact.

    Args:
        output: Destination .apk path.
        signature: Signature segment file.
        control: Control segment file.
        data: Data segment file.

    Returns:
        The output path.

    Raises:
        AssemblyIncompleteError: If any segment is missing or empty.
    """
    segments = (
        (SegmentKind.SIGNATURE, signature),
        (SegmentKind.CONTROL, control),
        (SegmentKind.DATA, data),
    )
    for kind, path in segments:
        _check_segment(kind, path)

    output.parent.mkdir(parents=True, exist_ok=True)
    with tempfile.NamedTemporaryFile(
        delete=False, dir=output.parent, prefix=f".{output.name}.", suffix=".tmp"
    ) as tmp_file:
        tmp_path = Path(tmp_file.name)
        try:
            for _kind, path in segments:
                with path.open("rb") as src:
                    shutil.copyfileobj(src, tmp_file, _CHUNK_SIZE)
        except BaseException:
            tmp_file.close()
            tmp_path.unlink(missing_ok=True)
            raise

    os.replace(tmp_path, output)
    logger.debug("Assembled %s from %d segments", output, len(segments))
    return output
