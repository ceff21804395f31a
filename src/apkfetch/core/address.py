"""Cache-address derivation from source URLs.

The on-disk layout is shared with apko's package cache, so every path here
must match go-apk's ``cacheDirFromURL`` byte for byte. The examples below
are the contract; do not "fix" the short-URL quirk.

    https://packages.wolfi.dev/os/wolfi-signing.rsa.pub
        -> https%3A%2F%2Fpackages.wolfi.dev%2F/os/wolfi-signing.rsa.pub
    https://packages.wolfi.dev/os/aarch64/sqlite-libs-3.44.0-r0.apk
        -> https%3A%2F%2Fpackages.wolfi.dev%2Fos/aarch64/sqlite-libs-3.44.0-r0.apk
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import PurePosixPath
from typing import TYPE_CHECKING
from urllib.parse import quote_plus


if TYPE_CHECKING:
    from apkfetch.core.models import PackageImport


INDEX_FILENAME = "latest.tar.gz"


def url_escape(value: str) -> str:
    """Escape a string the way Go's ``url.QueryEscape`` does.

    Keeps ``A-Z a-z 0-9 - _ . ~``, turns spaces into ``+`` and
    percent-encodes everything else with upper-case hex.
    """
    return quote_plus(value, safe="")


def split_url(url: str) -> tuple[str, str, str]:
    """Split a URL into (repository prefix, middle segment, filename).

    The middle segment is the architecture for packages and indexes, and
    the last repository path component for keyrings.
    """
    parts = url.rsplit("/", 2)
    if len(parts) != 3:
        raise ValueError(f"URL needs at least two path separators: {url}")
    repo, segment, filename = parts
    # apko appends a separator when the repository part is short
    if len(repo.split("/")) <= 3:
        repo += "/"
    return repo, segment, filename


def cache_path_from_url(url: str) -> PurePosixPath:
    """Translate a URL into its cache-relative path.

    Interprets the URL as ``{repo}/{arch}/{file}``; keyring URLs reuse the
    same split even though their middle segment is not an architecture.
    """
    repo, segment, filename = split_url(url)
    return PurePosixPath(url_escape(repo), segment, filename)


def repository_url(url: str, architecture: str) -> str:
    """Return the repository prefix of a package or index URL.

    Everything before ``/{architecture}/`` is the repository. URLs that do
    not contain the architecture fall back to the ``split_url`` prefix.
    """
    marker = f"/{architecture}/"
    index = url.rfind(marker)
    if index != -1:
        repo = url[:index]
        if len(repo.split("/")) <= 3:
            repo += "/"
        return repo
    return split_url(url)[0]


def repository_dir(url: str, architecture: str) -> PurePosixPath:
    """Cache directory holding one repository architecture."""
    return PurePosixPath(url_escape(repository_url(url, architecture)), architecture)


def index_path(url: str, architecture: str) -> PurePosixPath:
    """Cache path of a repository's APKINDEX archive."""
    return repository_dir(url, architecture) / "APKINDEX" / INDEX_FILENAME


@dataclass(frozen=True, slots=True)
class PackageAddress:
    """Cache-relative paths for one package import.

    Attributes:
        signature: Where the signature segment is stored.
        control: Where the control segment is stored.
        data: Where the data segment is stored.
        artifact: Where the assembled .apk is written.
    """

    signature: PurePosixPath
    control: PurePosixPath
    data: PurePosixPath
    artifact: PurePosixPath

    @classmethod
    def for_import(cls, request: PackageImport) -> PackageAddress:
        """Derive all paths for a package import.

        The signature segment is named after the control digest because
        signature checksums are not stable.
        """
        ref = request.reference
        base = repository_dir(request.url, ref.architecture)
        segment_dir = base / ref.label

        # Both digests are guaranteed by PackageImport
        assert request.control.digest is not None
        assert request.data.digest is not None
        control_hex = request.control.digest.hex
        data_hex = request.data.digest.hex

        return cls(
            signature=segment_dir / f"{control_hex}.sig.tar.gz",
            control=segment_dir / f"{control_hex}.ctl.tar.gz",
            data=segment_dir / f"{data_hex}.dat.tar.gz",
            artifact=base / f"{ref.label}.apk",
        )
