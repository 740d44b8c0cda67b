import asyncio
import logging
import time
from collections.abc import Awaitable, Callable
from enum import Enum
from typing import Any, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar('T')


class CircuitBreakerState(Enum):
    CLOSED = 'CLOSED'
    OPEN = 'OPEN'
    HALF_OPEN = 'HALF_OPEN'


class CircuitBreakerError(Exception):
    """Raised when circuit breaker is open and blocking calls"""
    def __init__(self, name: str, failure_count: int, retry_after: float):
        self.name = name
        self.failure_count = failure_count
        self.retry_after = retry_after
        super().__init__(
            f'Circuit breaker OPEN for {name} ({failure_count} failures, retry in {retry_after:.1f}s)'
        )


class CircuitBreaker:
    """In-process circuit breaker shared by every call to one upstream.

    All state reads and transitions happen under an asyncio lock; the guarded
    call itself runs outside it so concurrent requests are not serialised.
    """

    def __init__(
            self,
            name: str,
            failure_threshold: int = 5,
            recovery_timeout: float = 30,
            success_threshold: int = 1,
            is_failure: Callable[[Exception], bool] | None = None,
            clock: Callable[[], float] = time.monotonic,
    ):
        self.name = name
        self.failure_threshold = failure_threshold
        self.recovery_timeout = recovery_timeout
        self.success_threshold = success_threshold
        self._is_failure = is_failure or (lambda exc: True)
        self._clock = clock

        self._state = CircuitBreakerState.CLOSED
        self._failure_count = 0
        self._consecutive_successes = 0
        self._opened_at: float | None = None
        self._lock = asyncio.Lock()

    @property
    def state(self) -> CircuitBreakerState:
        return self._state

    @property
    def failure_count(self) -> int:
        return self._failure_count

    async def call(self, func: Callable[[], Awaitable[T]]) -> T:
        """Execute function with circuit breaker protection"""
        await self._before_call()

        try:
            result = await func()
        except Exception as exc:
            if self._is_failure(exc):
                await self._on_failure()
            raise

        await self._on_success()
        return result

    async def _before_call(self) -> None:
        async with self._lock:
            if self._state != CircuitBreakerState.OPEN:
                return

            elapsed = self._clock() - (self._opened_at or 0.0)
            if elapsed >= self.recovery_timeout:
                self._transition(CircuitBreakerState.HALF_OPEN, 'attempting_recovery')
                return

            raise CircuitBreakerError(self.name, self._failure_count, self.recovery_timeout - elapsed)

    async def _on_success(self) -> None:
        async with self._lock:
            if self._state == CircuitBreakerState.HALF_OPEN:
                self._consecutive_successes += 1
                if self._consecutive_successes >= self.success_threshold:
                    self._transition(
                        CircuitBreakerState.CLOSED,
                        f'recovery_successful after {self._consecutive_successes} successes',
                    )
            elif self._state == CircuitBreakerState.CLOSED:
                self._failure_count = 0

    async def _on_failure(self) -> None:
        async with self._lock:
            self._failure_count += 1

            if self._state == CircuitBreakerState.HALF_OPEN:
                self._transition(CircuitBreakerState.OPEN, 'failure_during_recovery')
                return

            if self._state == CircuitBreakerState.CLOSED and self._failure_count >= self.failure_threshold:
                self._transition(CircuitBreakerState.OPEN, f'{self._failure_count}_consecutive_failures')
            else:
                logger.warning(
                    f'Upstream failure for {self.name}: {self._failure_count}/{self.failure_threshold}'
                )

    def _transition(self, new_state: CircuitBreakerState, reason: str) -> None:
        old_state = self._state
        self._state = new_state
        self._consecutive_successes = 0

        if new_state == CircuitBreakerState.OPEN:
            self._opened_at = self._clock()
        elif new_state == CircuitBreakerState.CLOSED:
            self._failure_count = 0
            self._opened_at = None

        log = logger.warning if new_state == CircuitBreakerState.OPEN else logger.info
        log(
            f'Circuit breaker {self.name}: {old_state.value} -> {new_state.value} ({reason})',
            extra={'extra_data': {
                'circuit_breaker': self.name,
                'old_state': old_state.value,
                'new_state': new_state.value,
                'failure_count': self._failure_count,
                'reason': reason,
            }},
        )

    def get_status(self) -> dict[str, Any]:
        """Get current circuit breaker status for monitoring"""
        return {
            'name': self.name,
            'state': self._state.value,
            'status': 'healthy' if self._state == CircuitBreakerState.CLOSED else 'unhealthy',
            'failure_count': self._failure_count,
            'failure_threshold': self.failure_threshold,
            'recovery_timeout': self.recovery_timeout,
        }
