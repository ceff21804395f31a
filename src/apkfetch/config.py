"""Configuration utilities for apkfetch.

This module provides project-root discovery and the settings object the
CLI builds from its options and the environment. Library code receives
settings explicitly and never reads the environment itself.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path

from apkfetch.core.exceptions import ConfigurationError


AUTH_ENV_VAR = "HTTP_AUTH"
HOST_VERSION_ENV_VAR = "APKFETCH_HOST_VERSION"
CACHE_DIR_ENV_VAR = "APKFETCH_CACHE_DIR"
MAX_WORKERS_ENV_VAR = "APKFETCH_MAX_WORKERS"

DEFAULT_CACHE_DIR = Path(".apkfetch") / "cache"
DEFAULT_TIMEOUT = 60.0


def find_project_root(start: Path | None = None) -> Path:
    """Find the project root directory by walking up from start directory.

    Searches for marker files in the following priority order:
    1. .apkfetch - Explicit project marker
    2. apko.lock.json - apko lockfile
    3. pyproject.toml - Python project root
    4. .git - Version control root

    Args:
        start: Directory to start searching from. If None, uses current directory.

    Returns:
        Path to project root directory. Returns start directory if no markers found.
    """
    if start is None:
        start = Path.cwd()

    markers = [".apkfetch", "apko.lock.json", "pyproject.toml", ".git"]
    current = start.resolve()

    for parent in [current, *current.parents]:
        for marker in markers:
            if (parent / marker).exists():
                return parent

    return start.resolve()


@dataclass(frozen=True, slots=True)
class FetchSettings:
    """Resolved configuration for one apkfetch run.

    Attributes:
        cache_dir: Root of the content-addressed cache.
        http_auth: Raw ``basic:REALM:USER:PASSWORD`` descriptor, or None.
        host_version: Host downloader version selecting the range
            strategy; None means a current host (Range header).
        max_workers: Parallel package imports; 1 imports sequentially.
        timeout: HTTP timeout in seconds.
    """

    cache_dir: Path
    http_auth: str | None = None
    host_version: str | None = None
    max_workers: int = 1
    timeout: float = DEFAULT_TIMEOUT

    def __post_init__(self) -> None:
        """Validate numeric settings."""
        if self.max_workers < 1:
            raise ConfigurationError("max_workers must be at least 1")
        if self.timeout <= 0:
            raise ConfigurationError("timeout must be positive")

    def __repr__(self) -> str:
        auth = "<set>" if self.http_auth else None
        return (
            f"FetchSettings(cache_dir={self.cache_dir!r}, http_auth={auth!r}, "
            f"host_version={self.host_version!r}, max_workers={self.max_workers!r}, "
            f"timeout={self.timeout!r})"
        )

    @classmethod
    def from_env(
        cls,
        environ: Mapping[str, str] | None = None,
        *,
        cache_dir: Path | None = None,
        host_version: str | None = None,
        max_workers: int | None = None,
        timeout: float | None = None,
        root: Path | None = None,
    ) -> FetchSettings:
        """Build settings from explicit values, then the environment.

        Explicit arguments win over environment variables. A relative
        cache directory is resolved against the project root.

        Raises:
            ConfigurationError: If an environment value is invalid.
        """
        env = os.environ if environ is None else environ

        if cache_dir is None:
            env_cache = env.get(CACHE_DIR_ENV_VAR)
            cache_dir = Path(env_cache) if env_cache else DEFAULT_CACHE_DIR
        if not cache_dir.is_absolute():
            cache_dir = find_project_root(root) / cache_dir

        if max_workers is None:
            raw_workers = env.get(MAX_WORKERS_ENV_VAR)
            try:
                max_workers = int(raw_workers) if raw_workers else 1
            except ValueError:
                raise ConfigurationError(
                    f"{MAX_WORKERS_ENV_VAR} must be an integer, got '{raw_workers}'"
                ) from None

        return cls(
            cache_dir=cache_dir,
            http_auth=env.get(AUTH_ENV_VAR) or None,
            host_version=host_version or env.get(HOST_VERSION_ENV_VAR) or None,
            max_workers=max_workers,
            timeout=DEFAULT_TIMEOUT if timeout is None else timeout,
        )
