"""Retry policy for chaos result fetches, built on tenacity."""

from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Optional

from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception,
    stop_after_attempt,
    stop_never,
    wait_exponential_jitter,
)

from chaos_exporter.exceptions import SourceError


def is_transient(error: BaseException) -> bool:
    """Only non-permanent source errors are worth another attempt."""
    return isinstance(error, SourceError) and not error.permanent


@dataclass
class RetryConfig:
    """
    Retry behavior of the poll loop.

    Attributes:
        enabled: Retry transient failures instead of giving up at once
        min_wait_seconds: Wait before the first retry
        max_wait_seconds: Cap on the wait between retries
        jitter_seconds: Upper bound of the random jitter added to each wait
        max_consecutive_failures: Give up after this many failed attempts
            in a row; 0 retries forever
    """

    enabled: bool = True
    min_wait_seconds: float = 1.0
    max_wait_seconds: float = 30.0
    jitter_seconds: float = 1.0
    max_consecutive_failures: int = 0

    def stop_strategy(self):
        if not self.enabled:
            return stop_after_attempt(1)
        if self.max_consecutive_failures > 0:
            return stop_after_attempt(self.max_consecutive_failures)
        return stop_never

    def wait_strategy(self):
        return wait_exponential_jitter(
            initial=self.min_wait_seconds,
            max=self.max_wait_seconds,
            jitter=self.jitter_seconds,
        )

    def retrying(
        self,
        sleep: Callable[[float], Awaitable[Any]],
        before_sleep: Optional[Callable[[RetryCallState], None]] = None
    ) -> AsyncRetrying:
        """
        Build an ``AsyncRetrying`` controller for one poll.

        The last error is re-raised when the policy gives up or the error
        is permanent.
        """
        options = {}
        if before_sleep is not None:
            options["before_sleep"] = before_sleep
        return AsyncRetrying(
            stop=self.stop_strategy(),
            wait=self.wait_strategy(),
            retry=retry_if_exception(is_transient),
            sleep=sleep,
            reraise=True,
            **options,
        )
