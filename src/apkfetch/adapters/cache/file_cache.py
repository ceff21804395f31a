"""File-based cache adapter implementing CachePort."""

from __future__ import annotations

import contextlib
from pathlib import Path, PurePosixPath


class FileCache:
    """Content-addressed cache directory.

    Files live at URL-derived addresses under cache_dir, matching the
    layout apko uses, so an apko cache and this one are interchangeable.
    Writers rename complete files into place; any file found here is
    complete.

    Attributes:
        cache_dir: Directory where cached files are stored.
    """

    def __init__(self, cache_dir: Path) -> None:
        """Initialize the cache with a directory path.

        Args:
            cache_dir: Directory where cached files will be stored.
        """
        self.cache_dir = cache_dir

    @property
    def root(self) -> Path:
        """Cache root directory."""
        return self.cache_dir

    def resolve(self, address: PurePosixPath) -> Path:
        """Absolute path for a cache-relative address.

        Raises:
            ValueError: If the address escapes the cache root.
        """
        if address.is_absolute() or ".." in address.parts:
            raise ValueError(f"Cache address must be relative and inside the cache: {address}")
        return self.cache_dir.joinpath(*address.parts)

    def get(self, address: PurePosixPath) -> Path | None:
        """Path of a cached, non-empty file, or None if not cached."""
        path = self.resolve(address)
        try:
            if path.is_file() and path.stat().st_size > 0:
                return path
        except OSError:
            return None
        return None

    def glob(self, patterns: list[str]) -> list[Path]:
        """All cached files matching any of the patterns, sorted.

        Temporary files of in-flight writes are never matched.
        """
        if not self.cache_dir.exists():
            return []
        matches: set[Path] = set()
        for pattern in patterns:
            for path in self.cache_dir.glob(pattern):
                if path.is_file() and not path.name.startswith("."):
                    matches.add(path)
        return sorted(matches)

    def size(self) -> int:
        """Calculate total cache size in bytes."""
        return self.statistics()["total_size"]

    def statistics(self) -> dict[str, int]:
        """Get cache statistics.

        Returns:
            Dictionary with 'total_size' (bytes) and 'file_count' (number of files).
        """
        total_size = 0
        file_count = 0

        if not self.cache_dir.exists():
            return {"total_size": 0, "file_count": 0}

        for file_path in self.cache_dir.rglob("*"):
            if file_path.is_file():
                with contextlib.suppress(OSError):
                    total_size += file_path.stat().st_size
                    file_count += 1

        return {"total_size": total_size, "file_count": file_count}
