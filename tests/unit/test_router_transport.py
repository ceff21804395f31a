"""Unit tests for RouterTransport."""

from pathlib import Path

import pytest

from apkfetch.adapters.transport import FilesystemTransport, HttpTransport, RouterTransport, create_router
from apkfetch.adapters.transport.router import parse_uri_scheme
from apkfetch.core.exceptions import ApkFetchError, UnsupportedSchemeError
from apkfetch.core.ranges import FetchRequest


@pytest.mark.transport
@pytest.mark.tier(0)
class TestParseUriScheme:
    """Tests for parse_uri_scheme()."""

    @pytest.mark.parametrize(
        ("uri", "expected"),
        [
            ("https://packages.wolfi.dev/os/a.apk", "https"),
            ("HTTP://example.dev/a", "http"),
            ("file:///srv/a.apk", "file"),
            ("/srv/a.apk", None),
            ("C://windows/a.apk", None),
        ],
    )
    def test_scheme(self, uri: str, expected: str | None) -> None:
        """Schemes are lower-cased; paths and drive letters have none."""
        assert parse_uri_scheme(uri) == expected


@pytest.mark.transport
@pytest.mark.tier(1)
class TestRouterTransport:
    """Tests for routing."""

    def test_routes_by_scheme(self, tmp_path: Path) -> None:
        """Local paths go to the default backend."""
        source = tmp_path / "a.bin"
        source.write_bytes(b"abc")
        router = RouterTransport({None: FilesystemTransport()})

        written = router.fetch(FetchRequest(url=str(source)), tmp_path / "out", lambda d, t: None)

        assert written == 3

    def test_unknown_scheme_raises(self) -> None:
        """Unregistered schemes are rejected with a library error."""
        router = RouterTransport({None: FilesystemTransport()})
        with pytest.raises(UnsupportedSchemeError, match="No transport registered for scheme 's3'"):
            router.backend_for("s3://bucket/a.apk")

    def test_fetch_with_unknown_scheme_has_hint(self, tmp_path: Path) -> None:
        """Fetching an unsupported URL raises an ApkFetchError carrying the URL."""
        url = "ftp://h.dev/os/x86_64/p.apk"

        with pytest.raises(ApkFetchError) as exc_info:
            create_router().fetch(FetchRequest(url=url), tmp_path / "out", lambda d, t: None)

        assert isinstance(exc_info.value, UnsupportedSchemeError)
        assert exc_info.value.url == url
        assert "file://" in exc_info.value.recovery_hint

    def test_create_router_defaults(self) -> None:
        """The default router serves http(s), file and plain paths."""
        router = create_router(timeout=5.0)

        assert isinstance(router.backend_for("https://example.dev/a"), HttpTransport)
        assert isinstance(router.backend_for("http://example.dev/a"), HttpTransport)
        assert isinstance(router.backend_for("file:///a"), FilesystemTransport)
        assert isinstance(router.backend_for("/a"), FilesystemTransport)

    def test_close_closes_shared_http_backend(self) -> None:
        """close() shuts the HTTP client shared by http and https."""
        router = create_router()
        http = router.backend_for("https://example.dev/a")

        router.close()

        assert http._client.is_closed
