"""
Bounded, cancellable polling for long-running remote work.

Used for analytics query executions and transaction confirmations. The
poller never sleeps past its deadline, so a timeout of N seconds fails
within N seconds (plus the duration of the last check). Clock and wait
functions are injectable so tests can run against a simulated clock.
"""

import threading
import time
from typing import Callable, Optional, TypeVar

import bittensor as bt

from lst_rewards.utils.error_handling import QueryCancelled, QueryTimeout, RewardsTimeoutError

T = TypeVar("T")


class QueryPoller:
    """
    Repeatedly run a check until it yields a result or the deadline passes.

    ``check`` returns None while the remote work is still pending and any
    other value once it is done. Exceptions raised by ``check`` propagate
    unchanged. Waiting between checks goes through ``wait(seconds)``, which
    returns True when the poller has been cancelled.
    """

    def __init__(
        self,
        interval: float,
        backoff: float = 1.0,
        max_interval: Optional[float] = None,
        clock: Callable[[], float] = time.monotonic,
        wait: Optional[Callable[[float], bool]] = None,
    ):
        if interval <= 0:
            raise ValueError("Polling interval must be positive")
        if backoff < 1.0:
            raise ValueError("Backoff factor must be >= 1.0")
        self.interval = interval
        self.backoff = backoff
        self.max_interval = max_interval
        self.clock = clock
        self._cancelled = threading.Event()
        self._wait = wait or self._cancelled.wait

    def cancel(self) -> None:
        """Stop an in-flight poll; it raises QueryCancelled at the next wait."""
        self._cancelled.set()

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    def poll(
        self,
        check: Callable[[], Optional[T]],
        timeout: float,
        description: str = "query",
        timeout_error: type = QueryTimeout,
    ) -> T:
        """
        Run ``check`` until it returns a value or ``timeout`` seconds elapse.

        Raises:
            QueryCancelled: If :meth:`cancel` was called
            RewardsTimeoutError: ``timeout_error`` when the deadline passes
        """
        if not issubclass(timeout_error, RewardsTimeoutError):
            raise TypeError("timeout_error must be a RewardsTimeoutError subclass")

        deadline = self.clock() + timeout
        delay = self.interval
        attempts = 0

        while True:
            if self.cancelled:
                raise QueryCancelled(f"Polling for {description} was cancelled", attempts=attempts)

            attempts += 1
            result = check()
            if result is not None:
                bt.logging.debug(f"{description} ready after {attempts} checks")
                return result

            remaining = deadline - self.clock()
            if remaining <= 0:
                raise timeout_error(
                    f"Timed out waiting for {description} after {timeout:g}s",
                    attempts=attempts,
                )

            if self._wait(min(delay, remaining)):
                raise QueryCancelled(f"Polling for {description} was cancelled", attempts=attempts)

            delay *= self.backoff
            if self.max_interval is not None:
                delay = min(delay, self.max_interval)
