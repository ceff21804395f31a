"""Imports from a local file:// mirror through the default router."""

from pathlib import Path

import pytest

from apkfetch import EnvironmentMisconfiguredError, FetchSettings, Importer, load_lock
from apkfetch.adapters.cache import FileCache
from apkfetch.adapters.transport import FilesystemTransport, RouterTransport
from apkfetch.core.descriptors import collect


@pytest.mark.e2e
@pytest.mark.tier(2)
class TestLocalMirror:
    """Lockfiles pointing at file:// URLs."""

    def test_import_from_settings(self, fake_repo, mirror_lockfile: Path, tmp_path: Path) -> None:
        """Importer.from_settings handles file:// URLs out of the box."""
        settings = FetchSettings(cache_dir=tmp_path / "cache")
        importer = Importer.from_settings(settings)

        artifacts = importer.import_lock(load_lock(mirror_lockfile))

        assert artifacts.apks[0].read_bytes() == fake_repo.package.content

    def test_collections_after_import(self, mirror_lockfile: Path, tmp_path: Path) -> None:
        """The all and index collections see the imported files."""
        importer = Importer.from_settings(FetchSettings(cache_dir=tmp_path / "cache"))
        importer.import_lock(load_lock(mirror_lockfile))

        collections = {c.name: c for c in collect(importer.cache)}

        names = {p.name for p in collections["all"].files}
        assert "hello-1.0-r0.apk" in names
        assert "latest.tar.gz" in names
        assert len(collections["index"].files) == 1

    def test_mirror_ignoring_ranges_aborts(self, mirror_lockfile: Path, tmp_path: Path) -> None:
        """A mirror that ignores ranges is caught by the probe."""
        fs = FilesystemTransport(honor_ranges=False)
        importer = Importer(
            transport=RouterTransport({"file": fs, None: fs}),
            cache=FileCache(tmp_path / "cache"),
        )

        with pytest.raises(EnvironmentMisconfiguredError):
            importer.import_lock(load_lock(mirror_lockfile))

        assert not list((tmp_path / "cache").rglob("*.apk"))
