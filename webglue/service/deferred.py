"""Run a callable inline or on a reactor's worker pool.

`run_deferred()` is the only entry point most callers need. The reactor is an
explicit `Scheduler` passed in by the caller; `AsyncioScheduler` is the
bundled implementation, backed by an asyncio event loop and its default
thread-pool executor.

Dispatch rules:

- scheduler active: the block is handed to `scheduler.run_deferred()`. The
  caller waits until the work is scheduled, never until it completes.
- scheduler inactive, no autostart: the block runs synchronously.
- scheduler inactive, autostart: the scheduler is started, the block is
  dispatched from the startup callback, and the scheduler is stopped again
  before `run_deferred()` returns.
"""
from __future__ import annotations

import asyncio
import threading
from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Protocol, TypeVar, runtime_checkable

from ..logging_conf import get_logger

__all__ = ["AsyncioScheduler", "Scheduler", "run_deferred"]

logger = get_logger("service.deferred")

T = TypeVar("T")


@runtime_checkable
class Scheduler(Protocol):
    """A reactor able to run work on worker threads."""

    def is_active(self) -> bool: ...

    def run_deferred(self, block: Callable[[], Any]) -> Any: ...

    def start(self, on_start: Callable[[], Any]) -> None: ...

    def stop(self) -> None: ...


def run_deferred(scheduler: Scheduler, block: Callable[[], T], *, autostart: bool = False) -> Any:
    """Dispatch `block` according to the scheduler's state.

    Returns the block's result when it ran inline, whatever
    `scheduler.run_deferred()` returned when it was deferred, and None when the
    scheduler had to be started for the call. Exceptions raised by an inline
    block propagate unchanged.
    """
    if scheduler.is_active():
        logger.debug("deferred.dispatch", extra={"event": "deferred_dispatch"})
        return scheduler.run_deferred(block)

    if not autostart:
        logger.debug("deferred.inline", extra={"event": "deferred_inline"})
        return block()

    def on_start() -> None:
        try:
            run_deferred(scheduler, block)
        finally:
            scheduler.stop()

    logger.debug("deferred.autostart", extra={"event": "deferred_autostart"})
    scheduler.start(on_start)
    return None


def _running_loop() -> asyncio.AbstractEventLoop | None:
    try:
        return asyncio.get_running_loop()
    except RuntimeError:
        return None


class AsyncioScheduler:
    """A `Scheduler` backed by a private asyncio event loop.

    `start()` runs the loop in the calling thread until `stop()` is called,
    then waits for outstanding worker jobs before returning. Deferred blocks
    run on a `ThreadPoolExecutor` created for each run of the loop; failures
    are logged, the caller never sees them.
    """

    def __init__(self, max_workers: int | None = None) -> None:
        self._max_workers = max_workers
        self._loop: asyncio.AbstractEventLoop | None = None
        self._lock = threading.Lock()
        # Threads blocked in run_deferred() until the loop accepts their job.
        self._waiters: set[threading.Event] = set()

    def is_active(self) -> bool:
        loop = self._loop
        return loop is not None and loop.is_running()

    def start(self, on_start: Callable[[], Any]) -> None:
        with self._lock:
            if self._loop is not None:
                raise RuntimeError("scheduler is already running")
            loop = asyncio.new_event_loop()
            self._loop = loop

        failure: list[BaseException] = []

        def _boot() -> None:
            try:
                on_start()
            except BaseException as e:
                failure.append(e)
                loop.stop()

        try:
            loop.set_default_executor(ThreadPoolExecutor(max_workers=self._max_workers))
            loop.call_soon(_boot)
            logger.debug("scheduler.start", extra={"event": "scheduler_start"})
            loop.run_forever()
            loop.run_until_complete(loop.shutdown_default_executor())
        finally:
            self._detach()
            loop.close()
            logger.debug("scheduler.stop", extra={"event": "scheduler_stop"})

        if failure:
            raise failure[0]

    def stop(self) -> None:
        loop = self._loop
        if loop is None:
            return
        if _running_loop() is loop:
            loop.stop()
        else:
            loop.call_soon_threadsafe(loop.stop)

    def run_deferred(self, block: Callable[[], T]) -> asyncio.Future[T]:
        """Submit `block` to the worker pool and return its future.

        Safe to call from the loop thread or any other thread. From another
        thread the call blocks until the loop has accepted the job.
        """
        loop = self._loop
        if loop is None or not loop.is_running():
            raise RuntimeError("scheduler is not running")

        if _running_loop() is loop:
            return self._submit(loop, block)

        scheduled = threading.Event()
        submitted: list[asyncio.Future[T]] = []

        def _submit_from_loop() -> None:
            try:
                submitted.append(self._submit(loop, block))
            finally:
                scheduled.set()

        with self._lock:
            if self._loop is not loop:
                raise RuntimeError("scheduler is not running")
            self._waiters.add(scheduled)
        try:
            loop.call_soon_threadsafe(_submit_from_loop)
            scheduled.wait()
        finally:
            with self._lock:
                self._waiters.discard(scheduled)

        if not submitted:
            raise RuntimeError("scheduler stopped before accepting the deferred job")
        return submitted[0]

    def _detach(self) -> None:
        """Forget the loop and wake every thread still waiting on it.

        Jobs queued after the final loop iteration are never run; their
        submitters get a RuntimeError instead of blocking forever.
        """
        with self._lock:
            self._loop = None
            waiters = list(self._waiters)
            self._waiters.clear()
        for event in waiters:
            event.set()

    def _submit(self, loop: asyncio.AbstractEventLoop, block: Callable[[], T]) -> asyncio.Future[T]:
        future = loop.run_in_executor(None, block)
        future.add_done_callback(_log_failure)
        return future


def _log_failure(future: asyncio.Future[Any]) -> None:
    if future.cancelled():
        return
    exc = future.exception()
    if exc is not None:
        logger.error(
            "deferred.error",
            extra={"event": "deferred_error", "error": str(exc)},
            exc_info=(type(exc), exc, exc.__traceback__),
        )
