"""Core domain models for apkfetch.

These models are pure Python dataclasses with no I/O dependencies.
They describe what to import (package, repository index, keyring) and
what an import produced.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING


if TYPE_CHECKING:
    from apkfetch.core.digest import Digest


_RANGE_PATTERN = re.compile(r"^bytes=(\d+)-(\d*)$")


class SegmentKind(str, Enum):
    """The three logical parts stored back-to-back in an .apk file."""

    SIGNATURE = "signature"
    CONTROL = "control"
    DATA = "data"

    @property
    def suffix(self) -> str:
        """File suffix used for the segment in the cache."""
        return {"signature": "sig", "control": "ctl", "data": "dat"}[self.value]


class ProbeState(str, Enum):
    """Lifecycle of a setup probe. VERIFIED and ABORTED are terminal."""

    NOT_CHECKED = "not_checked"
    VERIFIED = "verified"
    ABORTED = "aborted"


@dataclass(frozen=True, slots=True)
class ByteRange:
    """A closed byte interval in Range-header form (``bytes=START-END``).

    Attributes:
        start: First byte offset.
        end: Last byte offset (inclusive), or None for "to the end".

    Example:
        >>> ByteRange.parse("bytes=0-698").length
        699
    """

    start: int
    end: int | None = None

    def __post_init__(self) -> None:
        """Validate offsets."""
        if self.start < 0:
            raise ValueError("Byte range start cannot be negative")
        if self.end is not None and self.end < self.start:
            raise ValueError(f"Byte range end {self.end} is before start {self.start}")

    @classmethod
    def parse(cls, text: str) -> ByteRange:
        """Parse a ``bytes=START-END`` expression.

        Raises:
            ValueError: If the expression is not a single byte range.
        """
        match = _RANGE_PATTERN.match(text.strip())
        if match is None:
            raise ValueError(f"Invalid byte range '{text}', expected bytes=START-END")
        start, end = match.groups()
        return cls(int(start), int(end) if end else None)

    @property
    def header_value(self) -> str:
        """Render as a Range header value."""
        end = "" if self.end is None else str(self.end)
        return f"bytes={self.start}-{end}"

    @property
    def length(self) -> int | None:
        """Number of bytes covered, or None for open-ended ranges."""
        if self.end is None:
            return None
        return self.end - self.start + 1

    def __str__(self) -> str:
        return self.header_value


@dataclass(frozen=True, slots=True)
class BasicCredentials:
    """Login and password attached to a single request.

    The password is excluded from repr so credentials never reach logs.
    """

    login: str
    password: str = field(repr=False)


@dataclass(frozen=True, slots=True)
class PackageReference:
    """Identity of one package inside a repository.

    Attributes:
        repository_url: Repository prefix (e.g. "https://packages.wolfi.dev/os").
        architecture: Package architecture (e.g. "x86_64").
        package_name: Package name.
        version: Package version including release (e.g. "3.44.0-r0").
    """

    repository_url: str
    architecture: str
    package_name: str
    version: str

    def __post_init__(self) -> None:
        """Validate reference fields after initialization."""
        if not self.package_name:
            raise ValueError("Package name cannot be empty")
        if not self.version:
            raise ValueError("Package version cannot be empty")
        if not self.architecture:
            raise ValueError("Package architecture cannot be empty")

    @property
    def label(self) -> str:
        """Short human-readable name, e.g. "sqlite-libs-3.44.0-r0"."""
        return f"{self.package_name}-{self.version}"


@dataclass(frozen=True, slots=True)
class Segment:
    """One byte range of a package file and its expected digest.

    Attributes:
        kind: Which logical part of the package this is.
        byte_range: Where the segment lives inside the remote object.
        digest: Expected digest, or None when the segment is not verified.
    """

    kind: SegmentKind
    byte_range: ByteRange
    digest: Digest | None = None


@dataclass(frozen=True, slots=True)
class PackageImport:
    """A request to import one package by range-fetching its segments.

    Attributes:
        reference: The package identity.
        url: Full URL of the .apk file.
        signature: Signature segment. Its checksum is not stable across
            repository re-signing, so it is never verified.
        control: Control segment, verified.
        data: Data segment, verified.
    """

    reference: PackageReference
    url: str
    signature: Segment
    control: Segment
    data: Segment

    def __post_init__(self) -> None:
        """Check that each segment is in its slot and verified segments carry digests."""
        slots = (
            (self.signature, SegmentKind.SIGNATURE),
            (self.control, SegmentKind.CONTROL),
            (self.data, SegmentKind.DATA),
        )
        for segment, kind in slots:
            if segment.kind is not kind:
                raise ValueError(f"Expected a {kind.value} segment, got {segment.kind.value}")
        if self.control.digest is None or self.data.digest is None:
            raise ValueError("Control and data segments require a digest")

    @property
    def segments(self) -> tuple[Segment, Segment, Segment]:
        """Segments in assembly order."""
        return (self.signature, self.control, self.data)


@dataclass(frozen=True, slots=True)
class RepositoryImport:
    """A request to import a repository index (APKINDEX.tar.gz).

    Attributes:
        url: Full URL of the index archive.
        architecture: Architecture the index describes.
        name: Optional display name from the lockfile.
    """

    url: str
    architecture: str
    name: str = ""


@dataclass(frozen=True, slots=True)
class KeyringImport:
    """A request to import one public signing key.

    Attributes:
        url: Full URL of the public key file.
        name: Optional display name from the lockfile.
    """

    url: str
    name: str = ""


@dataclass(frozen=True, slots=True)
class LockContents:
    """Everything a lockfile asks to import.

    Attributes:
        path: The lockfile the contents were read from.
        keyrings: Public keys to fetch.
        repositories: Repository indexes to fetch.
        packages: Packages to range-fetch and assemble.
    """

    path: Path
    keyrings: tuple[KeyringImport, ...] = ()
    repositories: tuple[RepositoryImport, ...] = ()
    packages: tuple[PackageImport, ...] = ()


@dataclass(frozen=True, slots=True)
class LockedArtifactSet:
    """Flat bundle of everything one lockfile materialized.

    There is no ordering between categories. ``files`` is the plain union,
    and ``output_groups`` exposes each category by name.
    """

    lockfile: Path
    apks: tuple[Path, ...] = ()
    indexes: tuple[Path, ...] = ()
    keyrings: tuple[Path, ...] = ()

    @property
    def files(self) -> frozenset[Path]:
        """Union of all files in the set."""
        return frozenset((self.lockfile, *self.apks, *self.indexes, *self.keyrings))

    @property
    def output_groups(self) -> dict[str, tuple[Path, ...]]:
        """Per-category named groups."""
        return {
            "lockfile": (self.lockfile,),
            "apks": self.apks,
            "indexes": self.indexes,
            "keyrings": self.keyrings,
        }
