"""Pytest configuration and shared fixtures.

This module registers custom markers for CI job separation and provides
shared fixtures for the test suite: a fake package served over a
range-honouring httpx.MockTransport, and helpers to build import requests.
"""

from __future__ import annotations

import gzip
import hashlib
import json
import re
from dataclasses import dataclass
from pathlib import Path

import httpx
import pytest

from apkfetch.core.digest import Digest
from apkfetch.core.models import (
    ByteRange,
    PackageImport,
    PackageReference,
    Segment,
    SegmentKind,
)


REPO_URL = "https://packages.example.dev/os"
ARCH = "x86_64"
PACKAGE_URL = f"{REPO_URL}/{ARCH}/hello-1.0-r0.apk"
INDEX_URL = f"{REPO_URL}/{ARCH}/APKINDEX.tar.gz"
KEY_URL = f"{REPO_URL}/example-signing.rsa.pub"

_RANGE_HEADER = re.compile(r"^bytes=(\d+)-(\d*)$")


class UnreadBody(httpx.SyncByteStream):
    """A response body that is not read until the client streams it."""

    def __init__(self, body: bytes) -> None:
        self._body = body

    def __iter__(self):
        yield self._body


def unread_response(status: int, body: bytes = b"", headers: dict[str, str] | None = None) -> httpx.Response:
    """An httpx.Response whose body can still be consumed with ``iter_raw``."""
    merged = {"Content-Length": str(len(body)), **(headers or {})}
    return httpx.Response(status, headers=merged, stream=UnreadBody(body))


def pytest_configure(config: pytest.Config) -> None:
    """Register custom markers."""
    config.addinivalue_line("markers", "core: Core models, ports, and services")
    config.addinivalue_line("markers", "transport: Transport adapters (http, filesystem)")
    config.addinivalue_line("markers", "cache: File cache adapter")
    config.addinivalue_line("markers", "progress: Rich progress integration")
    config.addinivalue_line("markers", "cli: CLI tests")
    config.addinivalue_line("markers", "e2e: End-to-end tests")
    config.addinivalue_line(
        "markers",
        "tier: Test tier for CI job separation (0=instant, 1=fast, 2=standard, 3=slow, 4=manual)",
    )


@dataclass
class FakePackage:
    """An .apk made of three gzip members, plus the ranges of each."""

    signature: bytes
    control: bytes
    data: bytes

    @property
    def content(self) -> bytes:
        return self.signature + self.control + self.data

    def byte_range(self, kind: SegmentKind) -> ByteRange:
        offsets = {
            SegmentKind.SIGNATURE: (0, len(self.signature)),
            SegmentKind.CONTROL: (len(self.signature), len(self.control)),
            SegmentKind.DATA: (len(self.signature) + len(self.control), len(self.data)),
        }
        start, length = offsets[kind]
        return ByteRange(start, start + length - 1)

    def digest(self, kind: SegmentKind) -> Digest:
        part = {
            SegmentKind.SIGNATURE: self.signature,
            SegmentKind.CONTROL: self.control,
            SegmentKind.DATA: self.data,
        }[kind]
        return Digest("sha256", hashlib.sha256(part).digest())

    def import_request(self, url: str = PACKAGE_URL, repository: str = REPO_URL) -> PackageImport:
        return PackageImport(
            reference=PackageReference(
                repository_url=repository,
                architecture=ARCH,
                package_name="hello",
                version="1.0-r0",
            ),
            url=url,
            signature=Segment(SegmentKind.SIGNATURE, self.byte_range(SegmentKind.SIGNATURE)),
            control=Segment(
                SegmentKind.CONTROL,
                self.byte_range(SegmentKind.CONTROL),
                self.digest(SegmentKind.CONTROL),
            ),
            data=Segment(
                SegmentKind.DATA,
                self.byte_range(SegmentKind.DATA),
                self.digest(SegmentKind.DATA),
            ),
        )

    def lock_entry(self, url: str = PACKAGE_URL) -> dict[str, object]:
        """The package as it appears in apko.lock.json."""

        def section(kind: SegmentKind) -> dict[str, str]:
            return {"range": str(self.byte_range(kind)), "checksum": self.digest(kind).sri}

        return {
            "name": "hello",
            "version": "1.0-r0",
            "url": url,
            "architecture": ARCH,
            "signature": section(SegmentKind.SIGNATURE),
            "control": section(SegmentKind.CONTROL),
            "data": section(SegmentKind.DATA),
        }


def make_fake_package() -> FakePackage:
    return FakePackage(
        signature=gzip.compress(b".SIGN.RSA.example-signing.rsa.pub", mtime=0),
        control=gzip.compress(b"pkgname = hello\npkgver = 1.0-r0\n", mtime=0),
        data=gzip.compress(b"usr/bin/hello\n" * 16, mtime=0),
    )


class RangeServer:
    """httpx.MockTransport handler serving static bodies with Range support.

    Records every request so tests can assert on headers and counts.
    """

    def __init__(self, files: dict[str, bytes], honor_ranges: bool = True) -> None:
        self.files = files
        self.honor_ranges = honor_ranges
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        body = self.files.get(str(request.url))
        if body is None:
            return httpx.Response(404)

        header = request.headers.get("Range")
        match = _RANGE_HEADER.match(header) if header else None
        if match is None or not self.honor_ranges:
            return unread_response(200, body)

        start = int(match.group(1))
        end = int(match.group(2)) if match.group(2) else len(body) - 1
        end = min(end, len(body) - 1)
        return unread_response(
            206,
            body[start : end + 1],
            headers={"Content-Range": f"bytes {start}-{end}/{len(body)}"},
        )

    def client(self) -> httpx.Client:
        return httpx.Client(transport=httpx.MockTransport(self))


@dataclass
class FakeRepository:
    """A package repository served by a RangeServer.

    Attributes:
        package: The single package the repository holds.
        server: The mock server; flip ``honor_ranges`` to emulate a
            proxy that strips Range headers.
    """

    package: FakePackage
    server: RangeServer
    url: str = REPO_URL
    arch: str = ARCH
    package_url: str = PACKAGE_URL
    index_url: str = INDEX_URL
    key_url: str = KEY_URL

    def client(self) -> httpx.Client:
        return self.server.client()

    def lock_document(self) -> dict[str, object]:
        """An apko.lock.json document listing everything in the repository."""
        return {
            "version": "v1",
            "contents": {
                "keyring": [{"name": "example-signing", "url": self.key_url}],
                "repositories": [
                    {"name": "example/x86_64", "url": self.index_url, "architecture": self.arch}
                ],
                "packages": [self.package.lock_entry(self.package_url)],
            },
        }


@pytest.fixture
def fake_package() -> FakePackage:
    """A small, deterministic three-segment package."""
    return make_fake_package()


@pytest.fixture
def fake_repo(fake_package: FakePackage) -> FakeRepository:
    """Mock HTTP repository hosting the fake package, its index and a key."""
    server = RangeServer(
        {
            PACKAGE_URL: fake_package.content,
            INDEX_URL: gzip.compress(b"P:hello\nV:1.0-r0\n", mtime=0),
            KEY_URL: b"-----BEGIN PUBLIC KEY-----\nexample\n-----END PUBLIC KEY-----\n",
        }
    )
    return FakeRepository(package=fake_package, server=server)


@pytest.fixture
def cache_dir(tmp_path: Path) -> Path:
    """An empty cache root."""
    path = tmp_path / "cache"
    path.mkdir()
    return path


@pytest.fixture
def mirror_lockfile(fake_repo: FakeRepository, tmp_path: Path) -> Path:
    """An apko.lock.json whose URLs point at a local file:// mirror."""
    root = tmp_path / "mirror"

    def local(url: str) -> str:
        path = root / url.removeprefix("https://")
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(fake_repo.server.files[url])
        return f"file://{path}"

    document = fake_repo.lock_document()
    contents = document["contents"]
    assert isinstance(contents, dict)
    for entry in [*contents["keyring"], *contents["repositories"], *contents["packages"]]:
        entry["url"] = local(entry["url"])

    lockfile = tmp_path / "apko.lock.json"
    lockfile.write_text(json.dumps(document, indent=2))
    return lockfile
