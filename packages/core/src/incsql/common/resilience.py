"""
Resilience Module: Circuit Breakers for partition scans.

A single breaker guards the SQL execution channel. When the datasource keeps
failing, further scans fail fast instead of piling up on a dead database,
both for synchronous scans and for the parallel scan pool.
"""
import pybreaker
from typing import List, Optional, Type
from incsql.common.logger import get_logger
from incsql.common.settings import settings

logger = get_logger("resilience")

class ObservabilityListener(pybreaker.CircuitBreakerListener):
    """Listener to export circuit breaker state changes and failures to logs."""

    def state_change(self, cb, old_state, new_state):
        logger.warning(
            f"Circuit Breaker '{cb.name}' changed state: {old_state.name} -> {new_state.name}"
        )

    def failure(self, cb, exc):
        logger.error(
            f"Circuit Breaker '{cb.name}' recorded failure: {type(exc).__name__}: {exc}"
        )


def create_breaker(
    name: str,
    fail_max: int = 5,
    reset_timeout: int = 60,
    exclude: Optional[List[Type[Exception]]] = None
) -> pybreaker.CircuitBreaker:
    """Factory to create a configured Circuit Breaker."""
    return pybreaker.CircuitBreaker(
        fail_max=fail_max,
        reset_timeout=reset_timeout,
        name=name,
        listeners=[ObservabilityListener()],
        exclude=exclude or []
    )


SCAN_BREAKER = create_breaker(
    name="SCAN_BREAKER",
    fail_max=settings.scan_breaker_fail_max,
    reset_timeout=settings.scan_breaker_reset_timeout_sec,
)
