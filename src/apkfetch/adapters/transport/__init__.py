"""Transport backend adapters."""

from apkfetch.adapters.transport.filesystem import FilesystemTransport
from apkfetch.adapters.transport.http import HttpTransport
from apkfetch.adapters.transport.router import RouterTransport, create_router


__all__ = ["FilesystemTransport", "HttpTransport", "RouterTransport", "create_router"]
