"""Core domain services for apkfetch."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING

from apkfetch.core.address import PackageAddress, cache_path_from_url, index_path
from apkfetch.core.assembly import concatenate_gzip_segments
from apkfetch.core.auth import AuthScopeResolver
from apkfetch.core.fetch_operations import RangeDownloader, SetupProbe
from apkfetch.core.models import (
    KeyringImport,
    LockContents,
    LockedArtifactSet,
    PackageImport,
    RepositoryImport,
)
from apkfetch.core.ports import (
    CachePort,
    ExecutorPort,
    NullProgressReporter,
    ProgressReporter,
    RangeStrategy,
    TransportPort,
)
from apkfetch.core.ranges import HostCapabilities, select_range_strategy


if TYPE_CHECKING:
    from apkfetch.config import FetchSettings


logger = logging.getLogger(__name__)


class Importer:
    """Orchestrates package, repository index, and keyring imports.

    Each import either fully succeeds, leaving its artifact at the
    expected cache address, or raises. Nothing is retried. Use it as a
    context manager, or call close(), to release HTTP connections.
    """

    def __init__(
        self,
        transport: TransportPort,
        cache: CachePort,
        auth: AuthScopeResolver | None = None,
        strategy: RangeStrategy | None = None,
        executor: ExecutorPort | None = None,
        progress: ProgressReporter | None = None,
    ) -> None:
        self._transport = transport
        self._cache = cache
        self._executor = executor
        self._downloader = RangeDownloader(
            transport=transport,
            strategy=strategy if strategy is not None else select_range_strategy(HostCapabilities()),
            auth=auth,
            progress=progress if progress is not None else NullProgressReporter(),
        )
        self._probes: dict[str, SetupProbe] = {}

    def __enter__(self) -> Importer:
        return self

    def __exit__(self, exc_type: object, exc_val: object, exc_tb: object) -> None:
        self.close()

    def close(self) -> None:
        """Release the transport's connections, if it holds any."""
        close = getattr(self._transport, "close", None)
        if close is not None:
            close()

    @classmethod
    def from_settings(
        cls,
        settings: FetchSettings,
        progress: ProgressReporter | None = None,
    ) -> Importer:
        """Create an Importer with default adapters.

        Args:
            settings: Resolved configuration.
            progress: Optional progress reporter.

        Returns:
            Importer with RouterTransport, FileCache and the range strategy
            matching settings.host_version.

        Raises:
            MalformedAuthDescriptorError: If settings.http_auth is malformed.
        """
        from apkfetch.adapters.cache import FileCache
        from apkfetch.adapters.executor import ThreadPoolExecutorAdapter
        from apkfetch.adapters.transport import create_router

        auth = AuthScopeResolver.from_value(settings.http_auth)
        strategy = select_range_strategy(HostCapabilities(settings.host_version))
        logger.debug("Using %s range strategy", strategy.name)

        executor = None
        if settings.max_workers > 1:
            executor = ThreadPoolExecutorAdapter(max_workers=settings.max_workers)

        return cls(
            transport=create_router(timeout=settings.timeout),
            cache=FileCache(settings.cache_dir),
            auth=auth,
            strategy=strategy,
            executor=executor,
            progress=progress,
        )

    @property
    def cache(self) -> CachePort:
        """The cache imports are written to."""
        return self._cache

    @property
    def downloader(self) -> RangeDownloader:
        """The range downloader shared by all imports."""
        return self._downloader

    def probe(self, url: str) -> SetupProbe:
        """Return the setup probe for url, running it on first use.

        Raises:
            EnvironmentMisconfiguredError: If the host ignores ranges.
        """
        probe = self._probes.get(url)
        if probe is None:
            probe = SetupProbe(self._downloader, url)
            self._probes[url] = probe
        probe.check()
        return probe

    def import_package(self, request: PackageImport) -> Path:
        """Range-fetch and assemble one package.

        Returns:
            Absolute path of the assembled .apk.

        Raises:
            TransportError: If a segment fetch fails.
            IntegrityMismatchError: If control or data don't match.
            AssemblyIncompleteError: If a segment is missing or empty.
        """
        address = PackageAddress.for_import(request)
        label = request.reference.label
        logger.info("Importing %s", label)

        paths = {
            request.signature.kind: self._cache.resolve(address.signature),
            request.control.kind: self._cache.resolve(address.control),
            request.data.kind: self._cache.resolve(address.data),
        }
        for segment in request.segments:
            # signature.digest is always None: signature checksums are not stable
            self._downloader.download(
                request.url,
                paths[segment.kind],
                segment.byte_range,
                segment.digest,
                label=f"{label} {request.reference.architecture} {segment.kind.suffix}",
            )

        artifact = self._cache.resolve(address.artifact)
        concatenate_gzip_segments(
            artifact,
            signature=paths[request.signature.kind],
            control=paths[request.control.kind],
            data=paths[request.data.kind],
        )
        logger.info("Imported %s", artifact.name)
        return artifact

    def import_repository(self, request: RepositoryImport) -> Path:
        """Check range support against an index, then fetch the index.

        Returns:
            Absolute path of ``APKINDEX/latest.tar.gz``.

        Raises:
            EnvironmentMisconfiguredError: If the host ignores ranges.
            TransportError: If the index fetch fails.
        """
        self.probe(request.url)
        dest = self._cache.resolve(index_path(request.url, request.architecture))
        logger.info("Fetching index %s", request.name or request.url)
        return self._downloader.download(request.url, dest, label=f"APKINDEX {request.architecture}")

    def import_keyring(self, request: KeyringImport) -> Path:
        """Fetch one public key to its URL-derived cache path."""
        dest = self._cache.resolve(cache_path_from_url(request.url))
        logger.info("Fetching keyring %s", request.name or request.url)
        return self._downloader.download(request.url, dest, label=dest.name)

    def import_packages(self, requests: list[PackageImport]) -> list[Path]:
        """Import several packages, in parallel when an executor is set.

        Results keep the order of requests. The first failure propagates.
        """
        if not requests:
            return []

        if self._executor is None:
            return [self.import_package(request) for request in requests]

        executor = self._executor
        results: list[Path] = []
        with executor:
            futures = [executor.submit(self.import_package, request) for request in requests]
            for future in futures:
                result = future.result()
                assert isinstance(result, Path)
                results.append(result)
        return results

    def import_lock(self, contents: LockContents) -> LockedArtifactSet:
        """Import everything a lockfile lists.

        Keyrings first, then repository indexes (which run the setup
        probe), then packages.

        Returns:
            LockedArtifactSet bundling the lockfile and every artifact.
        """
        keyrings = tuple(self.import_keyring(k) for k in contents.keyrings)
        indexes = tuple(self.import_repository(r) for r in contents.repositories)
        apks = tuple(self.import_packages(list(contents.packages)))
        logger.info(
            "Imported %d packages, %d indexes, %d keys from %s",
            len(apks),
            len(indexes),
            len(keyrings),
            contents.path.name,
        )
        return LockedArtifactSet(
            lockfile=contents.path,
            apks=apks,
            indexes=indexes,
            keyrings=keyrings,
        )
