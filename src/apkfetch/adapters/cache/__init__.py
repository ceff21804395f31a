"""Cache adapters."""

from apkfetch.adapters.cache.file_cache import FileCache


__all__ = ["FileCache"]
