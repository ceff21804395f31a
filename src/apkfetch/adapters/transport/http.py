"""HTTP transport adapter using httpx."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import httpx

from apkfetch.core.exceptions import (
    TransportAccessError,
    TransportError,
    TransportNotFoundError,
)
from apkfetch.core.ranges import decode_fragment_range


if TYPE_CHECKING:
    from pathlib import Path

    from apkfetch.core.ports import ProgressCallback
    from apkfetch.core.ranges import FetchRequest


logger = logging.getLogger(__name__)

# Chunk size for streaming downloads (64KB)
_CHUNK_SIZE = 64 * 1024
DEFAULT_TIMEOUT = 60.0


class HttpTransport:
    """Transport adapter for http:// and https:// URLs.

    Implements TransportPort. A ``#_apk_range_`` fragment is translated
    into a Range header, since fragments are never sent on the wire.
    """

    def __init__(
        self,
        client: httpx.Client | None = None,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        """Initialize HTTP transport.

        Args:
            client: Optional httpx client. If not provided, creates one that
                follows redirects.
            timeout: Request timeout in seconds for the default client.
        """
        self._client = client or httpx.Client(follow_redirects=True, timeout=timeout)

    def fetch(self, request: FetchRequest, dest: Path, progress: ProgressCallback) -> int:
        """Stream a GET response body to dest, exactly as sent.

        Any Content-Encoding the server applied is kept, so the file holds
        the bytes the server sent.

        Args:
            request: URL, headers and credentials to send.
            dest: Local destination path.
            progress: Callback function(bytes_downloaded, total_bytes).

        Returns:
            Number of bytes written.

        Raises:
            TransportNotFoundError: On 404.
            TransportAccessError: On 401 or 403.
            TransportError: On other non-2xx statuses or connection errors.
        """
        url, fragment_range = decode_fragment_range(request.url)
        headers = dict(request.headers)
        # Segments are verified against the bytes on the wire, never a decoded body
        headers.setdefault("Accept-Encoding", "identity")
        if fragment_range is not None and "Range" not in headers:
            headers["Range"] = fragment_range.header_value

        auth = None
        if request.credentials is not None:
            auth = httpx.BasicAuth(request.credentials.login, request.credentials.password)

        logger.debug("GET %s range=%s auth=%s", url, headers.get("Range"), auth is not None)
        try:
            with self._client.stream("GET", url, headers=headers, auth=auth) as response:
                self._raise_for_status(response, url)
                total = int(response.headers.get("Content-Length") or 0)
                written = 0
                with dest.open("wb") as f:
                    for chunk in response.iter_raw(_CHUNK_SIZE):
                        f.write(chunk)
                        written += len(chunk)
                        progress(written, total)
        except httpx.HTTPError as e:
            raise TransportError(f"Request to {url} failed: {e}", url=url, cause=e) from e

        return written

    @staticmethod
    def _raise_for_status(response: httpx.Response, url: str) -> None:
        """Translate unsuccessful status codes into domain exceptions."""
        status = response.status_code
        if response.is_success:
            return
        message = f"GET {url} returned HTTP {status}"
        if status == 404:
            raise TransportNotFoundError(message, url=url, status_code=status)
        if status in (401, 403):
            raise TransportAccessError(message, url=url, status_code=status)
        raise TransportError(message, url=url, status_code=status)

    def close(self) -> None:
        """Close the underlying client."""
        self._client.close()
