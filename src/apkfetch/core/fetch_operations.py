"""Fetch operation implementations for Importer.

This module contains the range download and setup probe logic that
Importer delegates to. Both talk to the network only through a
TransportPort.
"""

from __future__ import annotations

import logging
import os
import tempfile
from pathlib import Path
from typing import TYPE_CHECKING

from apkfetch.core.auth import AuthScopeResolver
from apkfetch.core.digest import compute_digest, verify_digest
from apkfetch.core.exceptions import EnvironmentMisconfiguredError
from apkfetch.core.models import ByteRange, ProbeState
from apkfetch.core.ports import NullProgressReporter


if TYPE_CHECKING:
    from apkfetch.core.digest import Digest
    from apkfetch.core.ports import ProgressReporter, RangeStrategy, TransportPort


logger = logging.getLogger(__name__)

PROBE_RANGE = ByteRange(0, 0)


class RangeDownloader:
    """Fetches a URL, or a byte range of it, into a local file.

    Every fetch lands in a temporary file beside the destination, is
    checked against the expected digest when one is given, and only then
    renamed into place. A failed fetch leaves no destination file.
    """

    def __init__(
        self,
        transport: TransportPort,
        strategy: RangeStrategy,
        auth: AuthScopeResolver | None = None,
        progress: ProgressReporter | None = None,
    ) -> None:
        self._transport = transport
        self._strategy = strategy
        self._auth = auth if auth is not None else AuthScopeResolver()
        self._progress = progress if progress is not None else NullProgressReporter()

    @property
    def strategy(self) -> RangeStrategy:
        """The range strategy in use."""
        return self._strategy

    def download(
        self,
        url: str,
        dest: Path,
        byte_range: ByteRange | None = None,
        integrity: Digest | None = None,
        *,
        label: str | None = None,
    ) -> Path:
        """Download url (or byte_range of it) to dest.

        If dest already exists and matches integrity, it is reused without
        a request. Without integrity, dest is always refetched.

        Args:
            url: Remote object URL.
            dest: Final local path.
            byte_range: Part of the object to fetch, None for all of it.
            integrity: Expected digest of the received bytes.
            label: Name shown by the progress reporter.

        Returns:
            dest.

        Raises:
            TransportError: If the transport fails.
            IntegrityMismatchError: If the bytes don't match integrity.
        """
        if integrity is not None and dest.is_file():
            if compute_digest(dest, integrity.algorithm) == integrity:
                logger.debug("Reusing verified %s", dest)
                return dest
            logger.info("Cached %s does not match %s, fetching again", dest.name, integrity)

        credentials = self._auth.lookup(url)
        request = self._strategy.build_request(url, byte_range, credentials)
        task = label or dest.name

        dest.parent.mkdir(parents=True, exist_ok=True)
        with tempfile.NamedTemporaryFile(
            delete=False, dir=dest.parent, prefix=f".{dest.name}.", suffix=".part"
        ) as tmp_file:
            tmp_path = Path(tmp_file.name)

        try:
            callback = self._progress.start_task(task, (byte_range and byte_range.length) or 0)
            try:
                received = self._transport.fetch(request, tmp_path, callback)
            finally:
                self._progress.finish_task(task)
            logger.debug(
                "Fetched %d bytes from %s (%s, strategy=%s)",
                received,
                url,
                byte_range or "full",
                self._strategy.name,
            )
            if integrity is not None:
                verify_digest(tmp_path, integrity, url=url)
            os.replace(tmp_path, dest)
        finally:
            tmp_path.unlink(missing_ok=True)

        return dest


class SetupProbe:
    """Checks once that a host honours partial-content requests.

    Requests ``bytes=0-0`` into a throwaway location and expects exactly
    one byte back. A host that ignores ranges would otherwise send whole
    packages for every segment, failing much later during assembly.
    """

    def __init__(self, downloader: RangeDownloader, url: str) -> None:
        self._downloader = downloader
        self._url = url
        self._state = ProbeState.NOT_CHECKED
        self._received: int | None = None

    @property
    def url(self) -> str:
        """The probed URL."""
        return self._url

    @property
    def state(self) -> ProbeState:
        """Current probe state."""
        return self._state

    def check(self) -> ProbeState:
        """Run the probe if it has not run yet.

        Returns:
            ProbeState.VERIFIED.

        Raises:
            EnvironmentMisconfiguredError: If the probe received anything
                other than one byte, now or on an earlier call.
            TransportError: If the probe request itself fails.
        """
        if self._state is ProbeState.VERIFIED:
            return self._state
        if self._state is ProbeState.ABORTED:
            raise EnvironmentMisconfiguredError(self._url, self._received or 0)

        with tempfile.TemporaryDirectory(prefix="apkfetch-rangecheck-") as scratch:
            output = Path(scratch) / "output"
            self._downloader.download(self._url, output, PROBE_RANGE, label="range check")
            self._received = output.stat().st_size

        if self._received != 1:
            self._state = ProbeState.ABORTED
            logger.error("Range check against %s returned %d bytes", self._url, self._received)
            raise EnvironmentMisconfiguredError(self._url, self._received)

        self._state = ProbeState.VERIFIED
        logger.debug("Range check against %s passed", self._url)
        return self._state
