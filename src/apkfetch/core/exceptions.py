"""Domain exceptions for apkfetch.

All library errors inherit from ApkFetchError, allowing users to catch
any library exception with a single except clause. Each exception provides
a recovery_hint property with guidance on resolving the error.

Every error is fatal to the import that raised it. Nothing in the library
retries; retry policy belongs to the caller.
"""

from __future__ import annotations

from typing import TYPE_CHECKING


if TYPE_CHECKING:
    from pathlib import Path

    from apkfetch.core.digest import Digest


SETUP_DOCS_URL = "https://github.com/chainguard-dev/rules_apko/blob/main/docs/initial-setup.md"


class ApkFetchError(Exception):
    """Base class for all apkfetch exceptions.

    Catch this to handle any error from the library.
    """

    @property
    def recovery_hint(self) -> str | None:
        """Optional guidance on how to resolve this error."""
        return None


class ConfigurationError(ApkFetchError):
    """Raised for configuration problems (missing or invalid settings)."""

    pass


class InvalidDigestError(ConfigurationError):
    """Raised when a checksum declaration cannot be parsed.

    Attributes:
        value: The raw checksum string.
    """

    def __init__(self, value: str, reason: str) -> None:
        self.value = value
        super().__init__(f"Invalid digest '{value}': {reason}")

    @property
    def recovery_hint(self) -> str:
        """Describe the accepted digest forms."""
        return "Use 'sha256-<base64>' (SRI) or 'sha256:<hex>'; sha1 and sha512 are also accepted"


class MalformedAuthDescriptorError(ConfigurationError):
    """Raised when HTTP_AUTH does not have the form basic:REALM:USER:PASSWORD.

    The offending value is never stored, since it carries a password.

    Attributes:
        reason: What was wrong with the descriptor.
    """

    def __init__(self, reason: str) -> None:
        self.reason = reason
        super().__init__(
            f"malformed HTTP_AUTH environment variable wanted "
            f"basic:REALM:USER:PASSWORD, but {reason}"
        )

    @property
    def recovery_hint(self) -> str:
        """Show the expected format."""
        return "Set HTTP_AUTH=basic:REALM:USER:PASSWORD or unset it"


class TransportError(ApkFetchError):
    """Raised when a fetch does not complete with a success status.

    Attributes:
        url: The URL that was requested.
        status_code: HTTP status code, if a response was received.
        cause: The underlying exception, if any.
    """

    def __init__(
        self,
        message: str,
        url: str,
        status_code: int | None = None,
        cause: Exception | None = None,
    ) -> None:
        self.url = url
        self.status_code = status_code
        self.cause = cause
        super().__init__(message)

    @property
    def recovery_hint(self) -> str:
        """Suggest checking connectivity to the host."""
        return f"Check that {self.url} is reachable from this machine"


class TransportNotFoundError(TransportError):
    """Raised when the requested object doesn't exist."""

    @property
    def recovery_hint(self) -> str:
        """Suggest regenerating the lockfile."""
        return f"Verify the URL exists or regenerate the lockfile: {self.url}"


class TransportAccessError(TransportError):
    """Raised when the host rejects the request (401/403)."""

    @property
    def recovery_hint(self) -> str:
        """Suggest checking credentials."""
        return "Check HTTP_AUTH credentials and that its REALM matches the URL host"


class UnsupportedSchemeError(TransportError):
    """Raised when no transport serves a URL's scheme."""

    @property
    def recovery_hint(self) -> str:
        """Suggest a supported URL form."""
        return "Use an http://, https:// or file:// URL, or a local path"


class IntegrityMismatchError(ApkFetchError):
    """Raised when a downloaded segment does not match its expected digest.

    Attributes:
        url: The URL the segment was fetched from.
        expected: The declared digest.
        actual: The digest of the received bytes.
    """

    def __init__(self, url: str, expected: Digest, actual: Digest) -> None:
        self.url = url
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"Integrity check failed for {url}: expected {expected}, got {actual}"
        )

    @property
    def recovery_hint(self) -> str:
        """Suggest refreshing the lockfile."""
        return "The remote package changed or the byte range is wrong; regenerate the lockfile"


class EnvironmentMisconfiguredError(ApkFetchError):
    """Raised when the host ignores Range requests.

    A 1-byte range request returning anything other than one byte means
    every later partial fetch would silently receive the whole object.

    Attributes:
        url: The probed URL.
        received: Number of bytes the probe received.
    """

    def __init__(self, url: str, received: int) -> None:
        self.url = url
        self.received = received
        super().__init__(
            "\n\n"
            "‼️ We encountered an issue with your current configuration that "
            "prevents partial package fetching during downloads.\n\n"
            f"A request for the first byte of {url} returned {received} bytes "
            "instead of 1.\n"
            "This may indicate either a misconfiguration or that the initial "
            "setup hasn't been performed correctly.\n"
            "To resolve this issue and enable partial package fetching, please "
            "follow the step-by-step instructions in our documentation.\n\n"
            f"📚 Documentation: {SETUP_DOCS_URL}\n"
        )

    @property
    def recovery_hint(self) -> str:
        """Point at the setup documentation."""
        return (
            "Make sure no proxy or mirror strips the Range header, or set "
            f"APKFETCH_HOST_VERSION to select the fragment strategy. See {SETUP_DOCS_URL}"
        )


class AssemblyIncompleteError(ApkFetchError):
    """Raised when a segment is missing or empty at concatenation time.

    Attributes:
        segment: The segment kind ("signature", "control" or "data").
        path: The segment file that was expected.
    """

    def __init__(self, segment: str, path: Path) -> None:
        self.segment = segment
        self.path = path
        super().__init__(f"Cannot assemble package: {segment} segment {path} is missing or empty")

    @property
    def recovery_hint(self) -> str:
        """Suggest re-importing."""
        return f"Delete {self.path.parent} and import the package again"


class LockfileLoadError(ApkFetchError):
    """Raised when a lockfile cannot be loaded.

    Attributes:
        lockfile_path: Path to the lockfile that failed to load.
        line: Line number where the error occurred (if available).
        cause: The underlying exception, if any.
    """

    def __init__(
        self,
        message: str,
        lockfile_path: Path,
        line: int | None = None,
        cause: Exception | None = None,
    ) -> None:
        self.lockfile_path = lockfile_path
        self.line = line
        self.cause = cause
        super().__init__(message)

    @property
    def recovery_hint(self) -> str:
        """Suggest checking the lockfile at the specific line."""
        if self.line:
            return f"Check {self.lockfile_path.name} at line {self.line}"
        return f"Check {self.lockfile_path.name} against the apko lockfile format"
