"""Lockfile loading.

Reads ``apko.lock.json`` documents into import requests. The lockfile
format is owned by apko; only the fields needed for importing are read
and unknown fields are ignored.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from apkfetch.core.address import repository_url
from apkfetch.core.digest import Digest
from apkfetch.core.exceptions import ApkFetchError, LockfileLoadError
from apkfetch.core.models import (
    ByteRange,
    KeyringImport,
    LockContents,
    PackageImport,
    PackageReference,
    RepositoryImport,
    Segment,
    SegmentKind,
)


DEFAULT_LOCKFILE = "apko.lock.json"


def _require(entry: dict[str, Any], key: str, where: str) -> Any:
    if key not in entry:
        raise KeyError(f"{where}: missing '{key}'")
    return entry[key]


def _segment(entry: dict[str, Any], kind: SegmentKind, where: str) -> Segment:
    section = _require(entry, kind.value, where)
    byte_range = ByteRange.parse(_require(section, "range", f"{where}.{kind.value}"))
    # Signature checksums change whenever a repository is re-signed
    if kind is SegmentKind.SIGNATURE:
        return Segment(kind, byte_range)
    checksum = _require(section, "checksum", f"{where}.{kind.value}")
    return Segment(kind, byte_range, Digest.parse(checksum))


def parse_package(entry: dict[str, Any], where: str = "package") -> PackageImport:
    """Build a PackageImport from one ``contents.packages`` entry."""
    url = _require(entry, "url", where)
    architecture = _require(entry, "architecture", where)
    reference = PackageReference(
        repository_url=repository_url(url, architecture),
        architecture=architecture,
        package_name=_require(entry, "name", where),
        version=_require(entry, "version", where),
    )
    return PackageImport(
        reference=reference,
        url=url,
        signature=_segment(entry, SegmentKind.SIGNATURE, where),
        control=_segment(entry, SegmentKind.CONTROL, where),
        data=_segment(entry, SegmentKind.DATA, where),
    )


def parse_lock(document: dict[str, Any], path: Path) -> LockContents:
    """Build LockContents from a decoded lockfile document.

    Raises:
        LockfileLoadError: If a required field is missing or invalid.
    """
    try:
        contents = _require(document, "contents", "lockfile")
        keyrings = tuple(
            KeyringImport(url=_require(k, "url", f"keyring[{i}]"), name=k.get("name", ""))
            for i, k in enumerate(contents.get("keyring", []))
        )
        repositories = tuple(
            RepositoryImport(
                url=_require(r, "url", f"repositories[{i}]"),
                architecture=_require(r, "architecture", f"repositories[{i}]"),
                name=r.get("name", ""),
            )
            for i, r in enumerate(contents.get("repositories", []))
        )
        packages = tuple(
            parse_package(p, f"packages[{i}]") for i, p in enumerate(contents.get("packages", []))
        )
    except (KeyError, TypeError, AttributeError, ValueError, ApkFetchError) as e:
        raise LockfileLoadError(
            f"Invalid lockfile {path}: {e}",
            lockfile_path=path,
            cause=e,
        ) from e

    return LockContents(
        path=path,
        keyrings=keyrings,
        repositories=repositories,
        packages=packages,
    )


def load_lock(path: Path) -> LockContents:
    """Load an apko lockfile.

    Args:
        path: Path to the lockfile.

    Returns:
        The parsed import requests.

    Raises:
        LockfileLoadError: If the file cannot be read or is invalid.
    """
    try:
        with path.open() as f:
            document = json.load(f)
    except json.JSONDecodeError as e:
        raise LockfileLoadError(
            f"Lockfile {path} is not valid JSON: {e.msg}",
            lockfile_path=path,
            line=e.lineno,
            cause=e,
        ) from e
    except OSError as e:
        raise LockfileLoadError(
            f"Could not read lockfile {path}: {e}",
            lockfile_path=path,
            cause=e,
        ) from e

    if not isinstance(document, dict):
        raise LockfileLoadError(f"Lockfile {path} must contain a JSON object", lockfile_path=path)
    return parse_lock(document, path)
