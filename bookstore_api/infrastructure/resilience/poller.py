"""Bounded polling for read-after-write checks.

Some targets apply writes asynchronously (or cache reads), so a GET right
after a DELETE may still return the old resource. ``await_until`` keeps
re-evaluating a predicate until it holds or the timeout elapses. It blocks
the calling thread and can only be cut short by its own timeout.
"""

import logging
import time
from typing import Callable, Optional, Tuple, Type

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_S = 10.0
DEFAULT_POLL_INTERVAL_S = 0.5


class PollTimeoutError(AssertionError):
    """Raised when the condition did not hold before the timeout."""

    def __init__(
        self,
        description: str,
        timeout: float,
        attempts: int,
        last_exception: Optional[BaseException] = None,
    ):
        self.description = description
        self.timeout = timeout
        self.attempts = attempts
        self.last_exception = last_exception
        message = f"Condition '{description}' not met within {timeout:.2f}s after {attempts} attempt(s)"
        if last_exception is not None:
            message += f". Last error: {type(last_exception).__name__}: {last_exception}"
        super().__init__(message)


def await_until(
    predicate: Callable[[], bool],
    timeout: float = DEFAULT_TIMEOUT_S,
    poll_interval: float = DEFAULT_POLL_INTERVAL_S,
    description: Optional[str] = None,
    ignored_exceptions: Tuple[Type[BaseException], ...] = (Exception,),
    clock: Callable[[], float] = time.monotonic,
    sleep: Callable[[float], None] = time.sleep,
) -> int:
    """Polls ``predicate`` until it returns True.

    The predicate is always evaluated at least once. Exceptions listed in
    ``ignored_exceptions`` count as a False result; anything else propagates.

    Args:
        predicate: Zero-argument callable, typically "GET now returns 404".
        timeout: Maximum time to keep polling, in seconds.
        poll_interval: Pause between evaluations, in seconds.
        description: Label for log lines and the timeout error.
        ignored_exceptions: Transient evaluation errors to swallow.
        clock: Monotonic time source.
        sleep: Sleep function.

    Returns:
        The number of attempts it took.

    Raises:
        PollTimeoutError: If the predicate never returned True in time.
        ValueError: If timeout or poll_interval is negative.
    """
    if timeout < 0 or poll_interval < 0:
        raise ValueError("timeout and poll_interval must be non-negative")

    label = description or getattr(predicate, "__name__", "condition")
    deadline = clock() + timeout
    attempts = 0
    last_exception: Optional[BaseException] = None

    while True:
        attempts += 1
        try:
            if predicate():
                logger.debug(f"Condition '{label}' met after {attempts} attempt(s)")
                return attempts
        except ignored_exceptions as e:
            last_exception = e
            logger.debug(f"Ignoring {type(e).__name__} while polling '{label}' (attempt {attempts}): {e}")

        remaining = deadline - clock()
        if remaining <= 0:
            logger.warning(f"Condition '{label}' not met within {timeout:.2f}s ({attempts} attempts)")
            raise PollTimeoutError(label, timeout, attempts, last_exception)
        sleep(min(poll_interval, remaining))
