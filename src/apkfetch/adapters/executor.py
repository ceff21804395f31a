"""Executor adapters implementing ExecutorPort."""

from __future__ import annotations

from concurrent.futures import Future, ThreadPoolExecutor
from typing import TYPE_CHECKING


if TYPE_CHECKING:
    from collections.abc import Callable


class SynchronousExecutor:
    """Runs each submitted import immediately in the calling thread.

    Used for sequential imports and in tests. Exceptions are captured in
    the returned future, as a thread pool would.
    """

    def submit(
        self,
        fn: Callable[..., object],
        *args: object,
        **kwargs: object,
    ) -> Future[object]:
        """Execute fn now and return an already-completed future."""
        future: Future[object] = Future()
        try:
            future.set_result(fn(*args, **kwargs))
        except Exception as e:
            future.set_exception(e)
        return future

    def __enter__(self) -> SynchronousExecutor:
        return self

    def __exit__(
        self, exc_type: object, exc_val: object, exc_tb: object
    ) -> object | None:
        return None


class ThreadPoolExecutorAdapter:
    """Runs package imports on a pool of worker threads.

    The pool is created on entry and shut down on exit, so one adapter
    can serve several batches.
    """

    def __init__(self, max_workers: int | None = None) -> None:
        """Initialize the adapter.

        Args:
            max_workers: Maximum number of concurrent imports. None uses
                the ThreadPoolExecutor default.
        """
        self._max_workers = max_workers
        self._executor: ThreadPoolExecutor | None = None

    def submit(
        self,
        fn: Callable[..., object],
        *args: object,
        **kwargs: object,
    ) -> Future[object]:
        """Submit fn to the pool.

        Raises:
            RuntimeError: If called outside the context manager.
        """
        if self._executor is None:
            raise RuntimeError("ThreadPoolExecutorAdapter must be used as a context manager")
        return self._executor.submit(fn, *args, **kwargs)

    def __enter__(self) -> ThreadPoolExecutorAdapter:
        self._executor = ThreadPoolExecutor(
            max_workers=self._max_workers, thread_name_prefix="apkfetch-import"
        )
        return self

    def __exit__(
        self, exc_type: object, exc_val: object, exc_tb: object
    ) -> object | None:
        executor, self._executor = self._executor, None
        if executor is not None:
            # Don't start queued imports once one has failed
            executor.shutdown(wait=True, cancel_futures=exc_type is not None)
        return None
