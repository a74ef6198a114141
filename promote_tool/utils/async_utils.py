"""Blocking-call helpers"""

import concurrent.futures
from typing import Callable, Optional, TypeVar

from .time_utils import format_duration

T = TypeVar('T')


class CallTimeoutError(Exception):
    """Raised when a blocking call exceeds its timeout

    ``future`` is the abandoned call, which may still be running.
    """

    def __init__(self, timeout: float, future: Optional[concurrent.futures.Future] = None):
        super().__init__(f"timed out after {format_duration(timeout)}")
        self.timeout = timeout
        self.future = future


def call_with_timeout(func: Callable[..., T],
                      timeout: Optional[float],
                      *args,
                      **kwargs) -> T:
    """
    Run a blocking callable with an upper bound on the wait

    The call runs on a worker thread. When the timeout expires the caller
    stops waiting and CallTimeoutError is raised. The worker cannot be
    interrupted; it is left to finish on its own and its result discarded.
    Callers that must not overlap with it can wait on the error's
    ``future``.

    Args:
        func: Callable to run
        timeout: Seconds to wait (None waits forever)
        *args: Positional arguments
        **kwargs: Keyword arguments

    Returns:
        The callable's result

    Raises:
        CallTimeoutError: If the timeout expired
    """
    if timeout is None:
        return func(*args, **kwargs)

    pool = concurrent.futures.ThreadPoolExecutor(max_workers=1, thread_name_prefix="promote-call")
    future = pool.submit(func, *args, **kwargs)
    try:
        return future.result(timeout=timeout)
    except concurrent.futures.TimeoutError:
        raise CallTimeoutError(timeout, future)
    finally:
        pool.shutdown(wait=False)
