"""Port interfaces for hexagonal architecture.

Ports define contracts that adapters must implement. The core domain
depends only on these protocols, never on concrete implementations.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import TYPE_CHECKING, Protocol, runtime_checkable


if TYPE_CHECKING:
    import builtins
    from concurrent.futures import Future
    from pathlib import Path, PurePosixPath

    from apkfetch.core.models import BasicCredentials, ByteRange
    from apkfetch.core.ranges import FetchRequest

ProgressCallback = Callable[[int, int], None]


@runtime_checkable
class TransportPort(Protocol):
    """Fetches one URL to a local file (HTTP, local filesystem)."""

    def fetch(self, request: FetchRequest, dest: Path, progress: ProgressCallback) -> int:
        """Write the response body for request to dest.

        Implementations must honour a ``Range`` header in request.headers
        and the ``#_apk_range_`` URL fragment convention.

        Args:
            request: URL, headers and credentials to send.
            dest: Local path to write to. Parent directory exists.
            progress: Callback function(bytes_written, total_bytes).

        Returns:
            Number of bytes written.

        Raises:
            TransportError: For non-success responses or connection failures.
        """
        ...


@runtime_checkable
class RangeStrategy(Protocol):
    """Turns a URL plus byte range into a request the transport can send.

    Selected once per process from the host's capabilities.
    """

    name: str

    def build_request(
        self,
        url: str,
        byte_range: ByteRange | None,
        credentials: BasicCredentials | None = None,
    ) -> FetchRequest:
        """Build the request for a (possibly partial) fetch of url."""
        ...


@runtime_checkable
class CachePort(Protocol):
    """Local content-addressed cache directory."""

    @property
    def root(self) -> Path:
        """Cache root directory."""
        ...

    def resolve(self, address: PurePosixPath) -> Path:
        """Absolute path for a cache-relative address."""
        ...

    def get(self, address: PurePosixPath) -> Path | None:
        """Path of a complete, non-empty cached file, or None."""
        ...

    def glob(self, patterns: builtins.list[str]) -> builtins.list[Path]:
        """All cached files matching any of the glob patterns, sorted."""
        ...


@runtime_checkable
class ProgressReporter(Protocol):
    """Reports download progress to the user.

    This protocol defines the contract for progress display adapters.
    The core domain uses this to report progress without depending
    on any specific UI library.
    """

    def start_task(self, name: str, total: int) -> ProgressCallback:
        """Start tracking a download task.

        Args:
            name: Human-readable name for the task (segment or file).
            total: Total bytes to download, 0 when unknown.

        Returns:
            A ProgressCallback to call with (bytes_downloaded, total_bytes).
        """
        ...

    def finish_task(self, name: str) -> None:
        """Mark a task as complete.

        Args:
            name: The task name passed to start_task().
        """
        ...


class NullProgressReporter:
    """A ProgressReporter that produces no output.

    Used as the default when no progress reporting is desired.
    """

    def start_task(self, name: str, total: int) -> ProgressCallback:  # noqa: ARG002
        """Return a no-op callback."""
        return lambda _downloaded, _total: None

    def finish_task(self, name: str) -> None:
        """Do nothing."""
        _ = name  # Unused but required by protocol


@runtime_checkable
class ExecutorPort(Protocol):
    """Executor for running independent imports.

    Imports of different packages resolve to disjoint cache addresses, so
    they can be submitted here without further coordination.
    """

    def submit(
        self, fn: Callable[..., object], *args: object, **kwargs: object
    ) -> Future[object]:  # type: ignore[name-defined, unused-ignore]
        """Submit a function for execution.

        Returns:
            Future representing the pending result.
        """
        ...

    def __enter__(self) -> ExecutorPort:
        """Enter context manager."""
        ...

    def __exit__(
        self, exc_type: object, exc_val: object, exc_tb: object
    ) -> object | None:
        """Exit context manager."""
        ...
