"""Range-request strategies.

Hosts that understand a ``Range`` request header get one. Older hosts
instead receive the range encoded as a URL fragment
(``#_apk_range_bytes_0-698``), which the transport consuming the URL turns
back into a partial read. The strategy is chosen once from the host's
capabilities and then used for every fetch.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from packaging.version import InvalidVersion, Version

from apkfetch.core.exceptions import ConfigurationError
from apkfetch.core.models import ByteRange


if TYPE_CHECKING:
    from apkfetch.core.models import BasicCredentials
    from apkfetch.core.ports import RangeStrategy


RANGE_FRAGMENT_PREFIX = "_apk_range_"
# First host version whose downloader forwards request headers
RANGE_HEADER_MIN_VERSION = Version("7.1.0")


@dataclass(frozen=True, slots=True)
class FetchRequest:
    """Everything a transport needs to perform one GET.

    Attributes:
        url: URL to request, possibly carrying a range fragment.
        headers: Extra request headers.
        credentials: Basic-auth credentials, or None.
    """

    url: str
    headers: dict[str, str] = field(default_factory=dict)
    credentials: BasicCredentials | None = None

    @property
    def byte_range(self) -> ByteRange | None:
        """The range requested by header or fragment, if any."""
        header = self.headers.get("Range")
        if header:
            return ByteRange.parse(header)
        return decode_fragment_range(self.url)[1]


def encode_fragment_range(url: str, byte_range: ByteRange | str) -> str:
    """Append the range fragment to a URL.

    Example:
        >>> encode_fragment_range("https://h/p.apk", "bytes=0-0")
        'https://h/p.apk#_apk_range_bytes_0-0'
    """
    return f"{url}#{RANGE_FRAGMENT_PREFIX}{str(byte_range).replace('=', '_')}"


def decode_fragment_range(url: str) -> tuple[str, ByteRange | None]:
    """Split a URL into its base and the range encoded in its fragment.

    URLs without a range fragment are returned unchanged with None.
    """
    base, sep, fragment = url.partition("#")
    if not sep or not fragment.startswith(RANGE_FRAGMENT_PREFIX):
        return url, None
    encoded = fragment[len(RANGE_FRAGMENT_PREFIX) :]
    return base, ByteRange.parse(encoded.replace("_", "=", 1))


@dataclass(frozen=True, slots=True)
class HostCapabilities:
    """What the fetching host supports.

    Attributes:
        version: Host downloader version, or None for a current host.
    """

    version: str | None = None

    @property
    def supports_range_header(self) -> bool:
        """True when the host forwards a Range header."""
        if not self.version:
            return True
        try:
            return Version(self.version) >= RANGE_HEADER_MIN_VERSION
        except InvalidVersion as e:
            raise ConfigurationError(f"Invalid host version '{self.version}'") from e


class HeaderRangeStrategy:
    """Sends the range as a ``Range`` request header."""

    name = "header"

    def build_request(
        self,
        url: str,
        byte_range: ByteRange | None,
        credentials: BasicCredentials | None = None,
    ) -> FetchRequest:
        """Build a request carrying a Range header."""
        headers = {"Range": byte_range.header_value} if byte_range is not None else {}
        return FetchRequest(url=url, headers=headers, credentials=credentials)


class FragmentRangeStrategy:
    """Encodes the range in the URL fragment for legacy hosts."""

    name = "fragment"

    def build_request(
        self,
        url: str,
        byte_range: ByteRange | None,
        credentials: BasicCredentials | None = None,
    ) -> FetchRequest:
        """Build a request whose URL carries the range fragment."""
        if byte_range is None:
            return FetchRequest(url=url, credentials=credentials)
        return FetchRequest(url=encode_fragment_range(url, byte_range), credentials=credentials)


def select_range_strategy(capabilities: HostCapabilities) -> RangeStrategy:
    """Pick the range strategy for a host."""
    if capabilities.supports_range_header:
        return HeaderRangeStrategy()
    return FragmentRangeStrategy()
