"""Local development against a file:// mirror.

Useful when a repository has been mirrored to disk. Setting
honor_ranges=False emulates a proxy that strips Range headers, which the
setup probe reports before any package is fetched.
"""

from pathlib import Path

from apkfetch import (
    EnvironmentMisconfiguredError,
    FileCache,
    FilesystemTransport,
    Importer,
    RouterTransport,
    load_lock,
)


mirror = FilesystemTransport()
importer = Importer(
    transport=RouterTransport({"file": mirror, None: mirror}),
    cache=FileCache(Path("./.apkfetch/cache")),
)
artifacts = importer.import_lock(load_lock(Path("apko.lock.json")))
print(f"Imported {len(artifacts.apks)} packages")

broken = FilesystemTransport(honor_ranges=False)
strict = Importer(
    transport=RouterTransport({"file": broken, None: broken}),
    cache=FileCache(Path("./.apkfetch/scratch")),
)
try:
    strict.import_lock(load_lock(Path("apko.lock.json")))
except EnvironmentMisconfiguredError as e:
    print(f"Probe caught it: {e.recovery_hint}")
