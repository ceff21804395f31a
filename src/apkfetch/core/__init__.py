"""Core domain module for apkfetch.

This module contains the domain models, address derivation, digest and
range handling, and port definitions. Network and cache I/O happen only
through the ports.
"""

from apkfetch.core.address import PackageAddress, cache_path_from_url, url_escape
from apkfetch.core.digest import Digest
from apkfetch.core.models import (
    ByteRange,
    PackageImport,
    PackageReference,
    Segment,
    SegmentKind,
)
from apkfetch.core.ports import CachePort, ProgressCallback, RangeStrategy, TransportPort


__all__ = [
    "ByteRange",
    "CachePort",
    "Digest",
    "PackageAddress",
    "PackageImport",
    "PackageReference",
    "ProgressCallback",
    "RangeStrategy",
    "Segment",
    "SegmentKind",
    "TransportPort",
    "cache_path_from_url",
    "url_escape",
]
