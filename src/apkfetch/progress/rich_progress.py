"""Rich-based progress reporter for terminal output."""

from __future__ import annotations

import threading
from typing import TYPE_CHECKING

from rich.progress import (
    BarColumn,
    DownloadColumn,
    Progress,
    TaskID,
    TextColumn,
    TransferSpeedColumn,
)


if TYPE_CHECKING:
    from types import TracebackType

    from rich.console import Console

    from apkfetch.core.ports import ProgressCallback


class RichProgressReporter:
    """Progress reporter using Rich for terminal display.

    Shows one bar per segment or file. Finished bars are removed so a
    lockfile with hundreds of packages does not flood the terminal.
    Safe to use from parallel imports.

    Example:
        with RichProgressReporter() as reporter:
            importer = Importer.from_settings(settings, progress=reporter)
    """

    def __init__(self, console: Console | None = None) -> None:
        """Initialize the progress display."""
        self._progress = Progress(
            TextColumn("[bold blue]{task.description}"),
            BarColumn(),
            DownloadColumn(),
            TransferSpeedColumn(),
            console=console,
            transient=True,
        )
        # Parallel imports may reuse a name, so each name holds a stack of tasks
        self._tasks: dict[str, list[TaskID]] = {}
        self._lock = threading.Lock()
        self._started = False

    def __enter__(self) -> RichProgressReporter:
        """Start the progress display."""
        self._progress.start()
        self._started = True
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        """Stop the progress display."""
        self._progress.stop()
        self._started = False

    def start_task(self, name: str, total: int) -> ProgressCallback:
        """Start tracking a download task.

        Args:
            name: Human-readable name for the task.
            total: Total bytes to download, 0 when unknown.

        Returns:
            A callback to update progress.
        """
        with self._lock:
            # Auto-start if not in context manager
            if not self._started:
                self._progress.start()
                self._started = True
            task_id = self._progress.add_task(name, total=total or None)
            self._tasks.setdefault(name, []).append(task_id)

        def callback(downloaded: int, reported_total: int) -> None:
            if reported_total and not total:
                self._progress.update(task_id, total=reported_total)
            self._progress.update(task_id, completed=downloaded)

        return callback

    def finish_task(self, name: str) -> None:
        """Remove a finished task from the display.

        Args:
            name: The task name.
        """
        with self._lock:
            stack = self._tasks.get(name)
            task_id = stack.pop() if stack else None
            if stack is not None and not stack:
                del self._tasks[name]
        if task_id is not None:
            self._progress.remove_task(task_id)
