import logging
from collections.abc import Awaitable, Callable
from typing import TypeVar

import httpx
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

from infrastructure.resilience.circuit_breaker import CircuitBreaker

logger = logging.getLogger(__name__)

T = TypeVar('T')


def is_transient_error(exc: BaseException) -> bool:
    """Network failures, timeouts and 5xx responses are worth retrying."""
    if isinstance(exc, httpx.TransportError):
        return True
    if isinstance(exc, httpx.HTTPStatusError):
        return exc.response.status_code >= 500
    return False


class ResiliencePolicy:
    """Retry with exponential backoff around a circuit breaker.

    Each attempt passes through the breaker, so attempts count toward opening
    it, and an open breaker raises CircuitBreakerError which is never retried.
    Task cancellation propagates out of the in-flight attempt or the backoff
    sleep and ends the loop.
    """

    def __init__(
        self,
        circuit_breaker: CircuitBreaker,
        retry_attempts: int = 3,
        base_delay: float = 0.2,
        max_delay: float = 5.0,
    ):
        self.circuit_breaker = circuit_breaker
        self.retry_attempts = max(1, retry_attempts)
        self.base_delay = base_delay
        self.max_delay = max_delay
        # retry n waits base_delay * 2**n, n counted from 1
        self.wait = wait_exponential(multiplier=base_delay * 2, max=max_delay)

    async def execute(self, func: Callable[[], Awaitable[T]]) -> T:
        retrying = AsyncRetrying(
            stop=stop_after_attempt(self.retry_attempts),
            wait=self.wait,
            retry=retry_if_exception(is_transient_error),
            before_sleep=self._log_retry,
            reraise=True,
        )
        async for attempt in retrying:
            with attempt:
                return await self.circuit_breaker.call(func)
        raise AssertionError('unreachable')

    def _log_retry(self, retry_state: RetryCallState) -> None:
        exc = retry_state.outcome.exception() if retry_state.outcome else None
        sleep = retry_state.next_action.sleep if retry_state.next_action else 0.0
        logger.warning(
            f'Upstream attempt {retry_state.attempt_number}/{self.retry_attempts} failed '
            f'({exc.__class__.__name__}), retrying in {sleep:.2f}s'
        )
