"""apkfetch - Range-fetch Alpine packages into a content-addressed cache.

This library imports .apk packages by fetching their signature, control
and data segments as separate byte ranges, verifying each against the
digests recorded in an apko lockfile, and concatenating them into the
package file at the path apko's own cache would use.

Example:
    >>> from pathlib import Path
    >>> from apkfetch import FetchSettings, Importer, load_lock
    >>> settings = FetchSettings.from_env()
    >>> importer = Importer.from_settings(settings)
    >>> artifacts = importer.import_lock(load_lock(Path("apko.lock.json")))
"""

from apkfetch.adapters.cache import FileCache
from apkfetch.adapters.transport import (
    FilesystemTransport,
    HttpTransport,
    RouterTransport,
    create_router,
)
from apkfetch.config import FetchSettings, find_project_root
from apkfetch.core.address import PackageAddress, cache_path_from_url, url_escape
from apkfetch.core.auth import AuthDescriptor, AuthScopeResolver
from apkfetch.core.digest import Digest
from apkfetch.core.exceptions import (
    ApkFetchError,
    AssemblyIncompleteError,
    ConfigurationError,
    EnvironmentMisconfiguredError,
    IntegrityMismatchError,
    InvalidDigestError,
    LockfileLoadError,
    MalformedAuthDescriptorError,
    TransportAccessError,
    TransportError,
    TransportNotFoundError,
    UnsupportedSchemeError,
)
from apkfetch.core.fetch_operations import RangeDownloader, SetupProbe
from apkfetch.core.models import (
    ByteRange,
    KeyringImport,
    LockContents,
    LockedArtifactSet,
    PackageImport,
    PackageReference,
    ProbeState,
    RepositoryImport,
    Segment,
    SegmentKind,
)
from apkfetch.core.ports import (
    CachePort,
    NullProgressReporter,
    ProgressCallback,
    ProgressReporter,
    TransportPort,
)
from apkfetch.core.ranges import FragmentRangeStrategy, HeaderRangeStrategy
from apkfetch.core.services import Importer
from apkfetch.lockfile import load_lock
from apkfetch.progress import RichProgressReporter


__version__ = "0.1.0"

__all__ = [
    "ApkFetchError",
    "AssemblyIncompleteError",
    "AuthDescriptor",
    "AuthScopeResolver",
    "ByteRange",
    "CachePort",
    "ConfigurationError",
    "Digest",
    "EnvironmentMisconfiguredError",
    "FetchSettings",
    "FileCache",
    "FilesystemTransport",
    "FragmentRangeStrategy",
    "HeaderRangeStrategy",
    "HttpTransport",
    "Importer",
    "IntegrityMismatchError",
    "InvalidDigestError",
    "KeyringImport",
    "LockContents",
    "LockedArtifactSet",
    "LockfileLoadError",
    "MalformedAuthDescriptorError",
    "NullProgressReporter",
    "PackageAddress",
    "PackageImport",
    "PackageReference",
    "ProbeState",
    "ProgressCallback",
    "ProgressReporter",
    "RangeDownloader",
    "RepositoryImport",
    "RichProgressReporter",
    "RouterTransport",
    "Segment",
    "SegmentKind",
    "SetupProbe",
    "TransportAccessError",
    "TransportError",
    "TransportNotFoundError",
    "TransportPort",
    "UnsupportedSchemeError",
    "__version__",
    "cache_path_from_url",
    "create_router",
    "find_project_root",
    "load_lock",
    "url_escape",
]
