"""Error handling patterns with recovery hints.

Every library error derives from ApkFetchError and carries a
recovery_hint with actionable guidance.
"""

from pathlib import Path

from apkfetch import (
    ApkFetchError,
    EnvironmentMisconfiguredError,
    FetchSettings,
    Importer,
    IntegrityMismatchError,
    LockfileLoadError,
    TransportAccessError,
    load_lock,
)


def import_lockfile(path: Path) -> int:
    """Import a lockfile and return a process exit code."""
    try:
        contents = load_lock(path)
    except LockfileLoadError as e:
        # The hint names the offending line for JSON syntax errors
        print(f"Cannot read {path}: {e}")
        print(f"Hint: {e.recovery_hint}")
        return 2

    try:
        with Importer.from_settings(FetchSettings.from_env()) as importer:
            importer.import_lock(contents)
    except EnvironmentMisconfiguredError as e:
        # The host (or a proxy) ignores Range headers
        print(e)
        return 3
    except IntegrityMismatchError as e:
        print(f"{e.url}: expected {e.expected}, got {e.actual}")
        print(f"Hint: {e.recovery_hint}")
        return 4
    except TransportAccessError as e:
        print(f"Access denied for {e.url} (HTTP {e.status_code})")
        print(f"Hint: {e.recovery_hint}")
        return 5
    except ApkFetchError as e:
        print(f"Error: {e}")
        if e.recovery_hint:
            print(f"Hint: {e.recovery_hint}")
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(import_lockfile(Path("apko.lock.json")))
