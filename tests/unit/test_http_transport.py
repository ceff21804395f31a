"""Unit tests for HttpTransport using httpx.MockTransport."""

import gzip
from pathlib import Path

import httpx
import pytest

from apkfetch.adapters.transport import HttpTransport
from apkfetch.core.exceptions import (
    TransportAccessError,
    TransportError,
    TransportNotFoundError,
)
from apkfetch.core.models import BasicCredentials, ByteRange
from apkfetch.core.ranges import FetchRequest, FragmentRangeStrategy, HeaderRangeStrategy

from conftest import unread_response


def _static(status: int, body: bytes = b""):
    def handler(request: httpx.Request) -> httpx.Response:
        return unread_response(status, body)

    return httpx.Client(transport=httpx.MockTransport(handler))


@pytest.mark.transport
@pytest.mark.tier(1)
class TestHttpTransport:
    """Tests for HttpTransport.fetch()."""

    def test_range_header_returns_partial_body(self, fake_repo, tmp_path: Path) -> None:
        """A Range header yields only the requested bytes."""
        transport = HttpTransport(client=fake_repo.client())
        request = HeaderRangeStrategy().build_request(fake_repo.package_url, ByteRange(0, 0))

        written = transport.fetch(request, tmp_path / "out", lambda d, t: None)

        assert written == 1
        assert (tmp_path / "out").read_bytes() == fake_repo.package.content[:1]

    def test_fragment_is_sent_as_range_header(self, fake_repo, tmp_path: Path) -> None:
        """The fragment never reaches the wire; it becomes a Range header."""
        transport = HttpTransport(client=fake_repo.client())
        request = FragmentRangeStrategy().build_request(fake_repo.package_url, ByteRange(0, 9))

        transport.fetch(request, tmp_path / "out", lambda d, t: None)

        sent = fake_repo.server.requests[-1]
        assert sent.url.fragment == ""
        assert sent.headers["Range"] == "bytes=0-9"
        assert (tmp_path / "out").read_bytes() == fake_repo.package.content[:10]

    def test_basic_auth_header(self, fake_repo, tmp_path: Path) -> None:
        """Credentials become an Authorization header."""
        transport = HttpTransport(client=fake_repo.client())
        request = FetchRequest(
            url=fake_repo.key_url, credentials=BasicCredentials("alice", "secret")
        )

        transport.fetch(request, tmp_path / "out", lambda d, t: None)

        # base64("alice:secret")
        assert fake_repo.server.requests[-1].headers["Authorization"] == "Basic YWxpY2U6c2VjcmV0"

    def test_no_credentials_no_header(self, fake_repo, tmp_path: Path) -> None:
        """Requests without credentials carry no Authorization header."""
        transport = HttpTransport(client=fake_repo.client())

        transport.fetch(FetchRequest(url=fake_repo.key_url), tmp_path / "out", lambda d, t: None)

        assert "Authorization" not in fake_repo.server.requests[-1].headers

    def test_404_raises_not_found(self, tmp_path: Path) -> None:
        """404 maps to TransportNotFoundError."""
        transport = HttpTransport(client=_static(404))

        with pytest.raises(TransportNotFoundError) as exc_info:
            transport.fetch(FetchRequest(url="https://example.dev/a"), tmp_path / "out", lambda d, t: None)

        assert exc_info.value.status_code == 404

    @pytest.mark.parametrize("status", [401, 403])
    def test_auth_failures_raise_access_error(self, status: int, tmp_path: Path) -> None:
        """401 and 403 map to TransportAccessError."""
        transport = HttpTransport(client=_static(status))

        with pytest.raises(TransportAccessError):
            transport.fetch(FetchRequest(url="https://example.dev/a"), tmp_path / "out", lambda d, t: None)

    def test_server_error_raises_transport_error(self, tmp_path: Path) -> None:
        """Other non-2xx statuses raise TransportError."""
        transport = HttpTransport(client=_static(503))

        with pytest.raises(TransportError) as exc_info:
            transport.fetch(FetchRequest(url="https://example.dev/a"), tmp_path / "out", lambda d, t: None)

        assert exc_info.value.status_code == 503

    def test_connection_error_is_wrapped(self, tmp_path: Path) -> None:
        """httpx errors are wrapped in TransportError."""

        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        transport = HttpTransport(client=httpx.Client(transport=httpx.MockTransport(handler)))

        with pytest.raises(TransportError) as exc_info:
            transport.fetch(FetchRequest(url="https://example.dev/a"), tmp_path / "out", lambda d, t: None)

        assert isinstance(exc_info.value.cause, httpx.ConnectError)

    def test_reports_progress(self, fake_repo, tmp_path: Path) -> None:
        """Progress reaches the body length."""
        transport = HttpTransport(client=fake_repo.client())
        calls: list[tuple[int, int]] = []

        transport.fetch(
            FetchRequest(url=fake_repo.key_url), tmp_path / "out", lambda d, t: calls.append((d, t))
        )

        size = len(fake_repo.server.files[fake_repo.key_url])
        assert calls[-1] == (size, size)

    def test_encoded_body_is_written_as_sent(self, tmp_path: Path) -> None:
        """A Content-Encoding reply is stored undecoded and identity is requested."""
        body = gzip.compress(b"control segment bytes " * 4)
        sent: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            sent.append(request)
            return unread_response(206, body, headers={"Content-Encoding": "gzip"})

        transport = HttpTransport(client=httpx.Client(transport=httpx.MockTransport(handler)))
        request = HeaderRangeStrategy().build_request("https://example.dev/a.apk", ByteRange(0, len(body) - 1))

        written = transport.fetch(request, tmp_path / "out", lambda d, t: None)

        assert written == len(body)
        assert (tmp_path / "out").read_bytes() == body
        assert sent[0].headers["Accept-Encoding"] == "identity"
