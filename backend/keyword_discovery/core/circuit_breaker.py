"""Async circuit breaker shared by the API clients.

CLOSED lets every call through and counts consecutive failures. Reaching
``failure_threshold`` flips it to OPEN, which rejects calls until
``recovery_timeout`` seconds have passed since the last failure. The next
call then goes through in HALF_OPEN: a success closes the circuit, a
failure reopens it.

Transitions are reported to an event logger (anything with the ``circuit_*``
methods of ``CircuitEventLogger``), so each integration logs them under its
own logger name. Without one, the module logger is used.
"""

import asyncio
import time
from dataclasses import dataclass
from enum import Enum
from typing import Protocol

from keyword_discovery.core.logging import get_logger

logger = get_logger(__name__)


class CircuitState(Enum):
    CLOSED = "closed"
    OPEN = "open"
    HALF_OPEN = "half_open"


@dataclass
class CircuitBreakerConfig:
    failure_threshold: int
    recovery_timeout: float


class CircuitEventLogger(Protocol):
    """Logger hooks an integration provides for circuit transitions."""

    def circuit_state_change(
        self, previous_state: str, new_state: str, failure_count: int
    ) -> None: ...

    def circuit_open(self, failure_count: int, recovery_timeout: float) -> None: ...

    def circuit_recovery_attempt(self) -> None: ...

    def circuit_closed(self) -> None: ...


class _ModuleEventLogger:
    """Reports transitions of an unnamed integration to the module logger."""

    def __init__(self, circuit_name: str) -> None:
        self._extra = {"circuit_name": circuit_name}

    def circuit_state_change(
        self, previous_state: str, new_state: str, failure_count: int
    ) -> None:
        logger.info(
            f"Circuit {previous_state} -> {new_state}",
            extra={**self._extra, "failure_count": failure_count},
        )

    def circuit_open(self, failure_count: int, recovery_timeout: float) -> None:
        logger.warning(
            "Circuit opened, rejecting calls",
            extra={
                **self._extra,
                "failure_count": failure_count,
                "recovery_timeout": recovery_timeout,
            },
        )

    def circuit_recovery_attempt(self) -> None:
        logger.info("Circuit half-open, probing service", extra=self._extra)

    def circuit_closed(self) -> None:
        logger.info("Circuit closed, service recovered", extra=self._extra)


class CircuitBreaker:
    """Guards one external service; every method takes the same lock."""

    def __init__(
        self,
        config: CircuitBreakerConfig,
        name: str = "default",
        event_logger: CircuitEventLogger | None = None,
    ) -> None:
        self._config = config
        self._name = name
        self._events: CircuitEventLogger = event_logger or _ModuleEventLogger(name)
        self._state = CircuitState.CLOSED
        self._failure_count = 0
        self._last_failure_time: float | None = None
        self._lock = asyncio.Lock()

    @property
    def name(self) -> str:
        return self._name

    @property
    def state(self) -> CircuitState:
        return self._state

    @property
    def failure_count(self) -> int:
        """Consecutive failures since the last success."""
        return self._failure_count

    @property
    def is_closed(self) -> bool:
        return self._state is CircuitState.CLOSED

    @property
    def is_open(self) -> bool:
        return self._state is CircuitState.OPEN

    @property
    def is_half_open(self) -> bool:
        return self._state is CircuitState.HALF_OPEN

    def _move_to(self, state: CircuitState) -> None:
        previous, self._state = self._state, state
        self._events.circuit_state_change(
            previous.value, state.value, self._failure_count
        )
        if state is CircuitState.OPEN:
            self._events.circuit_open(
                self._failure_count, self._config.recovery_timeout
            )
        elif state is CircuitState.HALF_OPEN:
            self._events.circuit_recovery_attempt()
        else:
            self._events.circuit_closed()

    async def can_execute(self) -> bool:
        """Whether a call may go out now; may move OPEN to HALF_OPEN."""
        async with self._lock:
            if self._state is not CircuitState.OPEN:
                return True
            if self._last_failure_time is None:
                return False
            waited = time.monotonic() - self._last_failure_time
            if waited < self._config.recovery_timeout:
                return False
            self._move_to(CircuitState.HALF_OPEN)
            return True

    async def record_success(self) -> None:
        async with self._lock:
            was_probing = self._state is CircuitState.HALF_OPEN
            self._failure_count = 0
            if was_probing:
                self._last_failure_time = None
                self._move_to(CircuitState.CLOSED)

    async def record_failure(self) -> None:
        async with self._lock:
            self._failure_count += 1
            self._last_failure_time = time.monotonic()
            if self._state is CircuitState.HALF_OPEN or (
                self._state is CircuitState.CLOSED
                and self._failure_count >= self._config.failure_threshold
            ):
                self._move_to(CircuitState.OPEN)
