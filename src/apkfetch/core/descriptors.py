"""Named artifact collections and their build descriptor.

Downstream tooling consumes the cache through three named collections:
every fetched archive (``all``), repository indexes (``index``) and
public keys (``keyring``). The descriptor is a Bazel filegroup file so
that the cache root can be mounted as an external repository.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING


if TYPE_CHECKING:
    from pathlib import Path, PurePosixPath

    from apkfetch.core.ports import CachePort


ALL_PATTERNS = ["**/*.tar.gz", "**/*.apk"]
INDEX_PATTERNS = ["**/APKINDEX/*.tar.gz"]

DESCRIPTOR_FILENAME = "BUILD.bazel"
DESCRIPTOR_HEADER = "# Generated by apkfetch. DO NOT EDIT\n"

_GLOB_TEMPLATE = """\
filegroup(
    name = "{name}",
    srcs = glob(
        {patterns},
        allow_empty = True,
    ),
    visibility = ["//visibility:public"]
)
"""

_FILES_TEMPLATE = """\
filegroup(
    name = "{name}",
    srcs = {files},
    visibility = ["//visibility:public"]
)
"""


def _starlark_list(items: list[str]) -> str:
    return "[" + ", ".join(f'"{item}"' for item in items) + "]"


@dataclass(frozen=True, slots=True)
class ArtifactCollection:
    """A named set of cache files.

    Attributes:
        name: Collection name ("all", "index", "keyring").
        files: Matching files, sorted.
    """

    name: str
    files: tuple[Path, ...]

    @property
    def total_size(self) -> int:
        """Combined size of the files in bytes."""
        return sum(p.stat().st_size for p in self.files if p.exists())


def collect(cache: CachePort, keyrings: list[PurePosixPath] | None = None) -> list[ArtifactCollection]:
    """Build the named collections for a cache.

    Args:
        cache: The cache to scan.
        keyrings: Addresses of fetched keys. Keys are not found by glob
            because their names are not constrained.
    """
    key_paths = [cache.resolve(address) for address in keyrings or []]
    return [
        ArtifactCollection("all", tuple(cache.glob(ALL_PATTERNS))),
        ArtifactCollection("index", tuple(cache.glob(INDEX_PATTERNS))),
        ArtifactCollection("keyring", tuple(sorted(p for p in key_paths if p.is_file()))),
    ]


def render_descriptor(keyrings: list[PurePosixPath] | None = None) -> str:
    """Render the filegroup descriptor for the cache root."""
    blocks = [
        DESCRIPTOR_HEADER,
        _GLOB_TEMPLATE.format(name="all", patterns=_starlark_list(ALL_PATTERNS)),
        _GLOB_TEMPLATE.format(name="index", patterns=_starlark_list(INDEX_PATTERNS)),
    ]
    if keyrings:
        files = sorted(str(address) for address in keyrings)
        blocks.append(_FILES_TEMPLATE.format(name="keyring", files=_starlark_list(files)))
    return "\n".join(blocks)


def write_descriptor(cache: CachePort, keyrings: list[PurePosixPath] | None = None) -> Path:
    """Write the descriptor to the cache root and return its path."""
    path = cache.root / DESCRIPTOR_FILENAME
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(render_descriptor(keyrings))
    return path
