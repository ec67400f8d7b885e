# vpm_tool/utils/async_utils.py
"""Asynchronous operation utilities"""

import asyncio
import concurrent.futures
import logging
import threading
from typing import Any, Callable, Coroutine, Optional, TypeVar

from ..api.exceptions import OperationCancelledError

logger = logging.getLogger(__name__)

T = TypeVar('T')

ProgressCallback = Callable[[float], None]


def run_async(coro: Coroutine[Any, Any, T]) -> T:
    """
    Run async coroutine in sync context

    Args:
        coro: Coroutine to run

    Returns:
        Coroutine result
    """
    try:
        asyncio.get_running_loop()
    except RuntimeError:
        # No running loop, use asyncio.run
        return asyncio.run(coro)

    # Already in async context, run on a fresh loop in a worker thread
    with concurrent.futures.ThreadPoolExecutor(max_workers=1) as executor:
        return executor.submit(asyncio.run, coro).result()


async def retry_async(coro_func: Callable[..., Coroutine[Any, Any, T]],
                      *args,
                      max_attempts: int = 3,
                      delay_for: Callable[[int], float] = lambda attempt: 1.0,
                      exceptions: tuple = (Exception,),
                      cancel_token: Optional['CancellationToken'] = None,
                      **kwargs) -> T:
    """
    Retry async operation with backoff

    Args:
        coro_func: Coroutine function
        *args: Function arguments
        max_attempts: Maximum attempts
        delay_for: Delay in seconds after the given (1-based) failed attempt
        exceptions: Exceptions that trigger a retry
        cancel_token: Token checked before every attempt
        **kwargs: Function keyword arguments

    Returns:
        Function result

    Raises:
        Last exception if all attempts fail
    """
    max_attempts = max(1, max_attempts)

    for attempt in range(1, max_attempts + 1):
        if cancel_token:
            cancel_token.raise_if_cancelled()
        try:
            return await coro_func(*args, **kwargs)
        except exceptions as e:
            if attempt >= max_attempts:
                raise
            delay = delay_for(attempt)
            logger.info(f"Attempt {attempt}/{max_attempts} failed ({e}), retrying in {delay:.1f}s")
            await asyncio.sleep(delay)


class CancellationToken:
    """Thread-safe cancellation flag checked by long-running operations"""

    def __init__(self):
        self._event = threading.Event()

    def cancel(self) -> None:
        """Request cancellation"""
        self._event.set()

    @property
    def is_cancelled(self) -> bool:
        return self._event.is_set()

    def raise_if_cancelled(self) -> None:
        """Raise OperationCancelledError if cancellation was requested"""
        if self._event.is_set():
            raise OperationCancelledError()


def scale_progress(callback: Optional[ProgressCallback],
                   start: float,
                   end: float) -> Optional[ProgressCallback]:
    """
    Map a [0, 1] progress callback into the [start, end] range of another

    Args:
        callback: Outer callback (may be None)
        start: Lower bound of the outer range
        end: Upper bound of the outer range

    Returns:
        Inner callback or None when there is no outer callback
    """
    if callback is None:
        return None

    def scaled(fraction: float) -> None:
        fraction = min(max(fraction, 0.0), 1.0)
        callback(start + (end - start) * fraction)

    return scaled
