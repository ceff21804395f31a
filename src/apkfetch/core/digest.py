"""Content digests: parsing, normalization, and verification.

Lockfiles describe expected digests as SRI strings (``sha256-<base64>``),
while other tooling writes ``sha256:<hex>``. Both are parsed into a single
canonical Digest so that comparison and cache-address derivation never
depend on the caller's input encoding.
"""

from __future__ import annotations

import base64
import binascii
import hashlib
import re
from dataclasses import dataclass
from typing import TYPE_CHECKING

from apkfetch.core.exceptions import IntegrityMismatchError, InvalidDigestError


if TYPE_CHECKING:
    from pathlib import Path


# Digest sizes in bytes for the supported algorithms
DIGEST_SIZES = {"sha1": 20, "sha256": 32, "sha512": 64}

_CHUNK_SIZE = 64 * 1024
_HEX_PATTERN = re.compile(r"^[0-9a-fA-F]+$")


@dataclass(frozen=True, slots=True)
class Digest:
    """A normalized content hash.

    Attributes:
        algorithm: Lower-case algorithm name ("sha1", "sha256", "sha512").
        value: Raw digest bytes.

    Example:
        >>> d = Digest.parse("sha256:" + "00" * 32)
        >>> d.sri
        'sha256-AAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAA='
    """

    algorithm: str
    value: bytes

    def __post_init__(self) -> None:
        """Validate algorithm and digest length."""
        size = DIGEST_SIZES.get(self.algorithm)
        if size is None:
            raise InvalidDigestError(
                f"{self.algorithm}:{self.value.hex()}",
                f"unsupported algorithm '{self.algorithm}'",
            )
        if len(self.value) != size:
            raise InvalidDigestError(
                f"{self.algorithm}:{self.value.hex()}",
                f"expected {size} bytes for {self.algorithm}, got {len(self.value)}",
            )

    @classmethod
    def parse(cls, text: str) -> Digest:
        """Parse an SRI or ``algorithm:value`` digest string.

        The value may be hex or base64 in either form. Hex is tried first
        when the length matches the algorithm's hex length.

        Raises:
            InvalidDigestError: If the string cannot be parsed.
        """
        raw = text.strip()
        match = re.match(r"^([A-Za-z0-9]+)[-:](.+)$", raw)
        if match is None:
            raise InvalidDigestError(text, "expected 'algorithm-value' or 'algorithm:value'")

        algorithm = match.group(1).lower()
        encoded = match.group(2)
        size = DIGEST_SIZES.get(algorithm)
        if size is None:
            raise InvalidDigestError(text, f"unsupported algorithm '{algorithm}'")

        if len(encoded) == size * 2 and _HEX_PATTERN.match(encoded):
            return cls(algorithm, bytes.fromhex(encoded))

        try:
            value = base64.b64decode(encoded, validate=True)
        except (binascii.Error, ValueError) as e:
            raise InvalidDigestError(text, "value is neither hex nor base64") from e
        return cls(algorithm, value)

    @property
    def hex(self) -> str:
        """Lower-case hex encoding of the digest bytes."""
        return self.value.hex()

    @property
    def sri(self) -> str:
        """Subresource-integrity form, e.g. ``sha256-<base64>``."""
        return f"{self.algorithm}-{base64.b64encode(self.value).decode('ascii')}"

    def __str__(self) -> str:
        return f"{self.algorithm}:{self.hex}"


def compute_digest(path: Path, algorithm: str) -> Digest:
    """Hash a file in chunks with the given algorithm."""
    hasher = hashlib.new(algorithm)
    with path.open("rb") as f:
        for chunk in iter(lambda: f.read(_CHUNK_SIZE), b""):
            hasher.update(chunk)
    return Digest(algorithm, hasher.digest())


def verify_digest(path: Path, expected: Digest, *, url: str = "") -> Digest:
    """Check that a file's content matches an expected digest.

    Args:
        path: The downloaded segment.
        expected: The digest declared for the segment.
        url: Source URL, used in the error message.

    Returns:
        The computed digest (equal to expected).

    Raises:
        IntegrityMismatchError: If the digests differ.
    """
    actual = compute_digest(path, expected.algorithm)
    if actual != expected:
        raise IntegrityMismatchError(url or str(path), expected=expected, actual=actual)
    return actual
