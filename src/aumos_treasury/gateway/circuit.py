# SPDX-License-Identifier: BSL-1.1
# Copyright (c) 2026 MuVeraAI Corporation
from __future__ import annotations

import asyncio
import logging
import threading
import time
from datetime import datetime, timezone
from typing import Awaitable, Callable, TypeVar

from pydantic import BaseModel

from aumos_treasury.audit.logger import AuditLogger
from aumos_treasury.audit.record import AuditEventType
from aumos_treasury.config import CircuitBreakerConfig
from aumos_treasury.errors import CircuitOpenError
from aumos_treasury.types import CircuitState

T = TypeVar("T")

logger = logging.getLogger("aumos.treasury.circuit")


class CircuitBreakerStats(BaseModel, frozen=True):
    """Read-only snapshot of one breaker."""

    name: str
    state: CircuitState
    failures: int
    successes: int
    last_failure: datetime | None
    retry_after_seconds: float


class CircuitBreaker:
    """
    Fault-isolation state machine guarding calls to one remote service.

    - ``closed``: calls pass through. ``failure_threshold`` consecutive
      failures open the circuit.
    - ``open``: calls fail immediately with :class:`CircuitOpenError` until
      ``cooldown_seconds`` have passed since the last failure, then the next
      call moves the circuit to ``half-open``.
    - ``half-open``: up to ``success_threshold`` calls at a time pass through
      as trials; further calls are rejected until a trial finishes.
      ``success_threshold`` consecutive successes close the circuit; any
      failure reopens it.

    State is guarded by a lock that is never held while the operation runs,
    so concurrent calls to the same service serialize only their
    bookkeeping.

    Example::

        breaker = CircuitBreaker("carol")
        result = await breaker.execute(lambda: client.call_tool("get_sensor", {}))
    """

    def __init__(
        self,
        name: str,
        config: CircuitBreakerConfig | None = None,
        audit: AuditLogger | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.name = name
        self._config = config or CircuitBreakerConfig()
        self._audit = audit
        self._clock = clock

        self._state: CircuitState = "closed"
        self._failures = 0
        self._successes = 0
        self._last_failure_at: float | None = None
        self._last_failure_wall: datetime | None = None
        self._trials = 0
        self._lock = threading.Lock()

    @property
    def state(self) -> CircuitState:
        with self._lock:
            return self._state

    async def execute(
        self,
        operation: Callable[[], Awaitable[T]],
        timeout: float | None = None,
    ) -> T:
        """
        Run ``operation`` through the breaker.

        Args:
            operation: Zero-argument callable returning an awaitable.
            timeout: Optional bound in seconds; a timeout counts as a failure.

        Raises:
            CircuitOpenError: If the circuit is open, or half-open with every
                trial slot taken; ``operation`` is not called.
            Exception: Whatever ``operation`` raised, after it was recorded.
        """
        trial = self._admit()
        try:
            if timeout is None:
                result = await operation()
            else:
                result = await asyncio.wait_for(operation(), timeout=timeout)
        except Exception:
            self._on_failure(trial)
            raise
        except BaseException:
            self._end_trial(trial)
            raise
        self._on_success(trial)
        return result

    def reset(self) -> None:
        """Force the circuit closed and clear every counter."""
        with self._lock:
            previous = self._state
            self._state = "closed"
            self._failures = 0
            self._successes = 0
            self._trials = 0
            self._last_failure_at = None
            self._last_failure_wall = None
        logger.info("Circuit %s manually reset", self.name)
        if previous != "closed":
            self._record_transition(previous, "closed", "manual reset")

    def stats(self) -> CircuitBreakerStats:
        with self._lock:
            return CircuitBreakerStats(
                name=self.name,
                state=self._state,
                failures=self._failures,
                successes=self._successes,
                last_failure=self._last_failure_wall,
                retry_after_seconds=self._retry_after() if self._state == "open" else 0.0,
            )

    # ─── Private helpers ──────────────────────────────────────────────────────

    def _admit(self) -> bool:
        """Let a call through or raise. Returns True when the call is a half-open trial."""
        transition: tuple[CircuitState, CircuitState, str] | None = None
        trial = False
        retry_after: float | None = None
        with self._lock:
            if self._state == "open" and self._cooldown_elapsed():
                self._state = "half-open"
                transition = ("open", "half-open", "cooldown elapsed")
            if self._state == "open":
                retry_after = self._retry_after()
            elif self._state == "half-open":
                if self._trials >= self._config.success_threshold:
                    retry_after = 0.0
                else:
                    self._trials += 1
                    trial = True
        if transition is not None:
            self._record_transition(*transition)
        if retry_after is not None:
            raise CircuitOpenError(self.name, retry_after)
        return trial

    def _on_success(self, trial: bool) -> None:
        transition: tuple[CircuitState, CircuitState, str] | None = None
        with self._lock:
            self._release_trial(trial)
            self._failures = 0
            if self._state == "half-open":
                self._successes += 1
                if self._successes >= self._config.success_threshold:
                    self._state = "closed"
                    self._successes = 0
                    transition = ("half-open", "closed", "recovered")
        if transition is not None:
            self._record_transition(*transition)

    def _on_failure(self, trial: bool) -> None:
        transition: tuple[CircuitState, CircuitState, str] | None = None
        with self._lock:
            self._release_trial(trial)
            self._failures += 1
            self._successes = 0
            self._last_failure_at = self._clock()
            self._last_failure_wall = datetime.now(tz=timezone.utc)
            if self._state == "half-open":
                self._state = "open"
                transition = ("half-open", "open", "trial call failed")
            elif self._state == "closed" and self._failures >= self._config.failure_threshold:
                self._state = "open"
                transition = ("closed", "open", "failure threshold reached")
        if transition is not None:
            self._record_transition(*transition)

    def _end_trial(self, trial: bool) -> None:
        with self._lock:
            self._release_trial(trial)

    def _release_trial(self, trial: bool) -> None:
        """Caller holds the lock."""
        if trial:
            self._trials = max(0, self._trials - 1)

    def _cooldown_elapsed(self) -> bool:
        if self._last_failure_at is None:
            return True
        return self._clock() - self._last_failure_at >= self._config.cooldown_seconds

    def _retry_after(self) -> float:
        if self._last_failure_at is None:
            return 0.0
        elapsed = self._clock() - self._last_failure_at
        return max(0.0, self._config.cooldown_seconds - elapsed)

    def _record_transition(self, previous: CircuitState, current: CircuitState, reason: str) -> None:
        logger.info("Circuit %s: %s -> %s (%s)", self.name, previous, current, reason)
        if self._audit is not None:
            self._audit.log(
                AuditEventType.BREAKER_TRANSITION,
                f"Circuit {self.name}: {previous} -> {current} ({reason})",
                agent_id=self.name,
                data={"from": previous, "to": current, "reason": reason},
            )
