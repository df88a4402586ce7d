"""Helpers for chaining concurrent.futures.Future stages.

A continuation registered with `then` runs only when its predecessor
finished successfully. A cancelled predecessor cancels the continuation,
and a failed predecessor passes its exception through unchanged.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from concurrent.futures import Executor, Future
from typing import Any, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")
R = TypeVar("R")


def completed(value: Any = None) -> Future[Any]:
    """Return a future that already holds a result."""
    future: Future[Any] = Future()
    future.set_result(value)
    return future


def cancelled() -> Future[Any]:
    """Return a future that is already cancelled."""
    future: Future[Any] = Future()
    future.cancel()
    return future


def then(prior: Future[T], fn: Callable[[T], R], executor: Executor) -> Future[R]:
    """Schedule fn to run after prior completes successfully.

    Args:
        prior: Predecessor stage.
        fn: Continuation, called with the predecessor's result.
        executor: Executor the continuation runs on.

    Returns:
        Future for the continuation's result. It fails with RuntimeError if
        the executor refuses the continuation.
    """
    chained: Future[R] = Future()

    def _run(value: T) -> None:
        if not chained.set_running_or_notify_cancel():
            return
        try:
            chained.set_result(fn(value))
        except Exception as e:
            chained.set_exception(e)

    def _on_done(done: Future[T]) -> None:
        if done.cancelled():
            logger.debug("Predecessor cancelled, skipping continuation")
            chained.cancel()
            return
        error = done.exception()
        if error is not None:
            if chained.set_running_or_notify_cancel():
                chained.set_exception(error)
            return
        try:
            executor.submit(_run, done.result())
        except RuntimeError as e:
            # Executor already shut down
            logger.debug("Continuation could not be scheduled: %s", e)
            if chained.set_running_or_notify_cancel():
                chained.set_exception(e)

    prior.add_done_callback(_on_done)
    return chained
