"""Basic usage: import everything an apko lockfile lists.

Run from a directory containing apko.lock.json. Settings come from the
environment (HTTP_AUTH, APKFETCH_CACHE_DIR, ...) with sensible defaults.
"""

from pathlib import Path

from apkfetch import FetchSettings, Importer, RichProgressReporter, load_lock
from apkfetch.log_utils import configure_logging


configure_logging("INFO")

settings = FetchSettings.from_env()
contents = load_lock(Path("apko.lock.json"))

with (
    RichProgressReporter() as progress,
    Importer.from_settings(settings, progress=progress) as importer,
):
    artifacts = importer.import_lock(contents)

for name, paths in artifacts.output_groups.items():
    print(f"{name}: {len(paths)} file(s)")
for apk in artifacts.apks:
    print(apk)
