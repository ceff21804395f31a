"""Tests for cache-address derivation."""

from pathlib import PurePosixPath

import pytest

from apkfetch.core.address import (
    PackageAddress,
    cache_path_from_url,
    index_path,
    repository_url,
    split_url,
    url_escape,
)


WOLFI = "https://packages.wolfi.dev/os"


@pytest.mark.core
@pytest.mark.tier(0)
class TestUrlEscape:
    """Tests for url_escape()."""

    def test_escapes_scheme_and_slashes(self) -> None:
        """Colons and slashes are percent-encoded with upper-case hex."""
        assert url_escape(WOLFI) == "https%3A%2F%2Fpackages.wolfi.dev%2Fos"

    def test_keeps_unreserved_characters(self) -> None:
        """Letters, digits and -_.~ pass through unchanged."""
        assert url_escape("a-Z_0.9~") == "a-Z_0.9~"

    def test_space_becomes_plus(self) -> None:
        """Spaces are encoded as '+', like a query string."""
        assert url_escape("a b") == "a+b"


@pytest.mark.core
@pytest.mark.tier(0)
class TestCachePathFromUrl:
    """Tests for cache_path_from_url()."""

    def test_keyring_url_gets_trailing_separator(self) -> None:
        """A short repository prefix is escaped with a trailing '/'."""
        result = cache_path_from_url(f"{WOLFI}/wolfi-signing.rsa.pub")

        assert result == PurePosixPath(
            "https%3A%2F%2Fpackages.wolfi.dev%2F/os/wolfi-signing.rsa.pub"
        )

    def test_package_url(self) -> None:
        """A package URL maps to {escaped repo}/{arch}/{file}."""
        result = cache_path_from_url(f"{WOLFI}/aarch64/sqlite-libs-3.44.0-r0.apk")

        assert result == PurePosixPath(
            "https%3A%2F%2Fpackages.wolfi.dev%2Fos/aarch64/sqlite-libs-3.44.0-r0.apk"
        )

    def test_translation_is_deterministic(self) -> None:
        """Translating the same URL twice yields the same path."""
        url = f"{WOLFI}/x86_64/hello-1.0-r0.apk"
        assert cache_path_from_url(url) == cache_path_from_url(url)

    def test_url_without_enough_separators_raises(self) -> None:
        """A URL that cannot be split into repo/segment/file is rejected."""
        with pytest.raises(ValueError, match="two path separators"):
            cache_path_from_url("pkg.apk")


@pytest.mark.core
@pytest.mark.tier(0)
class TestSplitUrl:
    """Tests for split_url() and its short-prefix behaviour."""

    def test_short_prefix_receives_separator(self) -> None:
        """Prefixes with three or fewer components get a trailing '/'."""
        repo, segment, filename = split_url("https://packages.example.dev/os/pkg.apk")

        assert repo == "https://packages.example.dev/"
        assert segment == "os"
        assert filename == "pkg.apk"

    def test_long_prefix_unchanged(self) -> None:
        """Prefixes with more components are left alone."""
        repo, segment, _ = split_url("https://packages.example.dev/os/aarch64/pkg.apk")

        assert repo == "https://packages.example.dev/os"
        assert segment == "aarch64"


@pytest.mark.core
@pytest.mark.tier(0)
class TestRepositoryUrl:
    """Tests for repository_url() and index_path()."""

    def test_cuts_before_architecture(self) -> None:
        """Everything before /{arch}/ is the repository."""
        url = "https://example.dev/a/b/c/x86_64/hello-1.0-r0.apk"
        assert repository_url(url, "x86_64") == "https://example.dev/a/b/c"

    def test_missing_architecture_falls_back_to_split(self) -> None:
        """URLs without the architecture use the split prefix."""
        url = f"{WOLFI}/aarch64/hello-1.0-r0.apk"
        assert repository_url(url, "x86_64") == WOLFI

    def test_index_path(self) -> None:
        """Indexes are stored as APKINDEX/latest.tar.gz under the arch dir."""
        result = index_path(f"{WOLFI}/x86_64/APKINDEX.tar.gz", "x86_64")

        assert result == PurePosixPath(
            "https%3A%2F%2Fpackages.wolfi.dev%2Fos/x86_64/APKINDEX/latest.tar.gz"
        )


@pytest.mark.core
@pytest.mark.tier(0)
class TestPackageAddress:
    """Tests for PackageAddress.for_import()."""

    def test_segment_and_artifact_paths(self, fake_package) -> None:
        """Segments are named by digest, the artifact by label."""
        from apkfetch.core.models import SegmentKind

        request = fake_package.import_request()
        address = PackageAddress.for_import(request)

        control_hex = fake_package.digest(SegmentKind.CONTROL).hex
        data_hex = fake_package.digest(SegmentKind.DATA).hex
        base = PurePosixPath("https%3A%2F%2Fpackages.example.dev%2Fos/x86_64")

        assert address.signature == base / "hello-1.0-r0" / f"{control_hex}.sig.tar.gz"
        assert address.control == base / "hello-1.0-r0" / f"{control_hex}.ctl.tar.gz"
        assert address.data == base / "hello-1.0-r0" / f"{data_hex}.dat.tar.gz"
        assert address.artifact == base / "hello-1.0-r0.apk"

    def test_address_is_deterministic(self, fake_package) -> None:
        """The same request always maps to the same address."""
        request = fake_package.import_request()
        assert PackageAddress.for_import(request) == PackageAddress.for_import(request)
