"""Progress display adapters."""

from apkfetch.progress.rich_progress import RichProgressReporter


__all__ = ["RichProgressReporter"]
