import asyncio
import logging
import time
from typing import Any, Awaitable, Callable

from sqlalchemy.exc import DBAPIError, InterfaceError, OperationalError

from .errors import BackendUnavailable, DashboardError
from .settings import settings

logger = logging.getLogger(__name__)

BACKEND_ERRORS = (
    asyncio.TimeoutError,
    ConnectionError,
    OSError,
    OperationalError,
    InterfaceError,
)


class CircuitBreaker:
    """Guards every backend round-trip with a timeout and a circuit breaker.

    Only transport-level failures count towards opening the circuit. Domain
    failures (validation, authorization, lifecycle) are the caller's answer
    and pass through untouched.
    """

    def __init__(
        self,
        failure_threshold: int = 3,
        base_recovery_time: int = 10,
        max_recovery_time: int = 60,
        timeout: float = 10.0,
    ):
        self.failure_count = 0
        self.failure_threshold = failure_threshold
        self.base_recovery_time = base_recovery_time
        self.max_recovery_time = max_recovery_time
        self.timeout = timeout
        self.last_failure_time = 0.0
        self.state = "CLOSED"

    @property
    def current_recovery_time(self):
        return min(
            self.base_recovery_time
            * (2 ** max(self.failure_count - self.failure_threshold, 0)),
            self.max_recovery_time,
        )

    def _open(self):
        self.state = "OPEN"
        self.last_failure_time = time.time()
        logger.warning(f"Circuit opened after {self.failure_count} failures.")

    def _half_open(self):
        self.state = "HALF_OPEN"
        logger.info("Circuit half-open: testing backend...")

    def _close(self):
        if self.state != "CLOSED":
            logger.info("Circuit closed: backend stable again.")
        self.state = "CLOSED"
        self.failure_count = 0

    def reset(self):
        self._close()
        self.last_failure_time = 0.0

    async def call(self, func: Callable[..., Awaitable[Any]], *args, **kwargs) -> Any:
        now = time.time()

        if self.state == "OPEN":
            cooldown = self.current_recovery_time
            remaining = cooldown - (now - self.last_failure_time)
            if remaining > 0:
                raise BackendUnavailable(
                    f"Data source unavailable, retry after {remaining:.1f}s"
                )
            self._half_open()

        try:
            result = await asyncio.wait_for(func(*args, **kwargs), self.timeout)
        except DashboardError:
            raise
        except BACKEND_ERRORS as e:
            self._record_failure(e)
            raise BackendUnavailable(
                "Data source did not answer in time; the operation was not applied"
                if isinstance(e, asyncio.TimeoutError)
                else "Data source is unreachable; the operation was not applied"
            ) from e
        except DBAPIError as e:
            if e.connection_invalidated:
                self._record_failure(e)
                raise BackendUnavailable(
                    "Lost connection to the data source; the operation was not applied"
                ) from e
            raise

        self._close()
        return result

    def _record_failure(self, error: Exception):
        self.failure_count += 1
        logger.error(f"Backend call failed ({self.failure_count}): {error!r}")
        if self.failure_count >= self.failure_threshold:
            self._open()


breaker = CircuitBreaker(
    failure_threshold=settings.BREAKER_FAILURE_THRESHOLD,
    base_recovery_time=settings.BREAKER_RECOVERY_SECONDS,
    max_recovery_time=settings.BREAKER_MAX_RECOVERY_SECONDS,
    timeout=settings.BACKEND_TIMEOUT_SECONDS,
)
