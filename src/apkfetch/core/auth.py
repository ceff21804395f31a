"""Scoped basic-auth credentials from a single descriptor.

One globally configured secret (``HTTP_AUTH=basic:REALM:USER:PASSWORD``)
must only ever be sent to URLs under ``https://REALM``. The descriptor is
passed in explicitly; nothing here reads the environment.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from apkfetch.core.exceptions import MalformedAuthDescriptorError
from apkfetch.core.models import BasicCredentials


@dataclass(frozen=True, slots=True)
class AuthDescriptor:
    """Parsed form of ``scheme:realm:user:password``.

    Attributes:
        scheme: Always "basic".
        realm: Host prefix (after ``https://``) the credentials apply to.
        username: Login name.
        password: Password. Excluded from repr.
    """

    scheme: str
    realm: str
    username: str
    password: str = field(repr=False)

    @classmethod
    def parse(cls, value: str) -> AuthDescriptor:
        """Parse a descriptor string.

        Only the first three colons split, so passwords may contain colons.

        Raises:
            MalformedAuthDescriptorError: On wrong field count or a scheme
                other than basic.
        """
        parts = value.split(":", 3)
        if len(parts) != 4:
            raise MalformedAuthDescriptorError(f"got {len(parts)} parts")
        scheme, realm, username, password = parts
        if scheme.lower() != "basic":
            raise MalformedAuthDescriptorError(f"got {scheme} for first part")
        return cls(scheme="basic", realm=realm, username=username, password=password)

    def applies_to(self, url: str) -> bool:
        """Whether the URL is inside this descriptor's realm."""
        return url.startswith(f"https://{self.realm}")


class AuthScopeResolver:
    """Decides per URL whether to attach credentials.

    Example:
        >>> resolver = AuthScopeResolver.from_value("basic:example.dev:alice:secret")
        >>> resolver.credentials_for("https://other.dev/x")
        {}
    """

    def __init__(self, descriptor: AuthDescriptor | None = None) -> None:
        self._descriptor = descriptor

    @classmethod
    def from_value(cls, value: str | None) -> AuthScopeResolver:
        """Build a resolver from an optional raw descriptor string.

        An absent or empty value yields a resolver that never attaches
        credentials.
        """
        if not value:
            return cls(None)
        return cls(AuthDescriptor.parse(value))

    @property
    def descriptor(self) -> AuthDescriptor | None:
        """The parsed descriptor, if any."""
        return self._descriptor

    def credentials_for(self, url: str) -> dict[str, BasicCredentials]:
        """Return a credential map for the URL.

        Returns:
            ``{url: BasicCredentials}`` when the URL is in the realm,
            otherwise an empty dict.
        """
        descriptor = self._descriptor
        if descriptor is None or not descriptor.applies_to(url):
            return {}
        return {url: BasicCredentials(login=descriptor.username, password=descriptor.password)}

    def lookup(self, url: str) -> BasicCredentials | None:
        """Credentials for exactly this URL, or None."""
        return self.credentials_for(url).get(url)
