"""RouterTransport composite adapter for URI scheme-based routing."""

from __future__ import annotations

from typing import TYPE_CHECKING

from apkfetch.core.exceptions import UnsupportedSchemeError


if TYPE_CHECKING:
    from pathlib import Path

    from apkfetch.core.ports import ProgressCallback, TransportPort
    from apkfetch.core.ranges import FetchRequest


def parse_uri_scheme(uri: str) -> str | None:
    """Extract the URI scheme from a source string.

    Args:
        uri: Source URI or file path.

    Returns:
        The scheme (e.g., 'https', 'file') or None for local paths.
    """
    if "://" in uri:
        scheme = uri.split("://", 1)[0]
        # Avoid confusing Windows drive letters (C:) with schemes
        if len(scheme) > 1:
            return scheme.lower()
    return None


class RouterTransport:
    """Transport adapter that routes to backends based on URI scheme.

    Implements TransportPort by delegating to scheme-specific adapters.
    """

    def __init__(self, backends: dict[str | None, TransportPort]) -> None:
        """Initialize with scheme-to-adapter mapping.

        Args:
            backends: Mapping of scheme (e.g., 'https', 'file') to TransportPort.
                      Use None as key for default (local paths without scheme).
        """
        self._backends = backends

    def backend_for(self, uri: str) -> TransportPort:
        """Get the backend responsible for a URI.

        Raises:
            UnsupportedSchemeError: If no backend serves the scheme.
        """
        scheme = parse_uri_scheme(uri)
        if scheme in self._backends:
            return self._backends[scheme]
        scheme_display = f"'{scheme}'" if scheme else "local path"
        supported = ", ".join(sorted(s for s in self._backends if s is not None))
        raise UnsupportedSchemeError(
            f"No transport registered for scheme {scheme_display} (supported: {supported})",
            url=uri,
        )

    def fetch(self, request: FetchRequest, dest: Path, progress: ProgressCallback) -> int:
        """Fetch by delegating to the appropriate backend."""
        return self.backend_for(request.url).fetch(request, dest, progress)

    def close(self) -> None:
        """Close every backend that holds a connection pool."""
        closed: set[int] = set()
        for backend in self._backends.values():
            close = getattr(backend, "close", None)
            if close is not None and id(backend) not in closed:
                closed.add(id(backend))
                close()


def create_router(timeout: float | None = None) -> RouterTransport:
    """Create a RouterTransport with default backends.

    Args:
        timeout: Optional HTTP timeout in seconds.

    Returns:
        RouterTransport configured with HttpTransport and FilesystemTransport.
    """
    from apkfetch.adapters.transport import FilesystemTransport, HttpTransport

    http = HttpTransport() if timeout is None else HttpTransport(timeout=timeout)
    fs = FilesystemTransport()
    return RouterTransport(
        backends={
            "https": http,
            "http": http,
            "file": fs,
            None: fs,
        }
    )
