# SPDX-License-Identifier: BSL-1.1
# Copyright (c) 2026 MuVeraAI Corporation
from __future__ import annotations

import collections
import logging
import threading
from typing import Any

from aumos_treasury.audit.query import AuditFilter, AuditQueryResult, apply_filter
from aumos_treasury.audit.record import AuditEvent, create_event
from aumos_treasury.config import AuditConfig

logger = logging.getLogger("aumos.treasury.audit")


class AuditLogger:
    """
    Records treasury transitions as immutable audit events.

    Audit logging is RECORDING ONLY. Nothing here feeds back into budget
    decisions; the ledger is the single source of truth for spending.

    Events are held in a bounded deque. When :attr:`~AuditConfig.max_records`
    is reached the oldest event is evicted. When
    :attr:`~AuditConfig.emit_log_records` is set, each event is also emitted
    to the ``aumos.treasury.audit`` logger with its fields in ``extra``.

    Example::

        audit = AuditLogger(AuditConfig(max_records=1000))
        audit.log("reservation_taken", "Reserved 0.25 USDC", agent_id="carol",
                  amount=250_000)
        result = audit.query(AuditFilter(agent_id="carol"))
    """

    def __init__(self, config: AuditConfig | None = None) -> None:
        self._config = config or AuditConfig()
        self._events: collections.deque[AuditEvent] = collections.deque(
            maxlen=self._config.max_records
        )
        self._lock = threading.Lock()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def log(
        self,
        event_type: str,
        detail: str = "",
        agent_id: str | None = None,
        tool_name: str | None = None,
        amount: int | None = None,
        data: dict[str, Any] | None = None,
        level: int = logging.INFO,
    ) -> AuditEvent:
        """
        Record one event.

        Args:
            event_type: One of the :class:`~aumos_treasury.audit.record.AuditEventType`
                constants.
            detail: Short human-readable description.
            agent_id: Remote-service id involved, if any.
            tool_name: Operation involved, if any.
            amount: Amount in base units, if any.
            data: Additional structured fields.
            level: Log level used when the event is mirrored to ``logging``.

        Returns:
            The stored :class:`~aumos_treasury.audit.record.AuditEvent`.
        """
        event = create_event(
            event_type=event_type,
            detail=detail,
            agent_id=agent_id,
            tool_name=tool_name,
            amount=amount,
            data=data,
        )
        with self._lock:
            self._events.append(event)
        if self._config.emit_log_records:
            logger.log(
                level,
                "%s: %s",
                event_type,
                detail,
                extra={
                    "event_id": event.event_id,
                    "event_type": event_type,
                    "agent_id": agent_id,
                    "tool_name": tool_name,
                    "amount": amount,
                },
            )
        return event

    def query(self, audit_filter: AuditFilter | None = None) -> AuditQueryResult:
        """Return stored events matching ``audit_filter`` (all events when None)."""
        with self._lock:
            events = list(self._events)
        return apply_filter(events=events, audit_filter=audit_filter or AuditFilter())

    def count(self) -> int:
        """Return the number of stored events."""
        return len(self._events)

    def clear(self) -> int:
        """
        Remove all stored events.

        Returns:
            The number of events that were cleared.
        """
        with self._lock:
            count = len(self._events)
            self._events.clear()
        return count

    def latest(self, n: int = 10) -> list[AuditEvent]:
        """
        Return the ``n`` most recent events, most recent last.

        Raises:
            ValueError: If ``n`` < 1.
        """
        if n < 1:
            raise ValueError(f"n must be >= 1; got {n}.")
        with self._lock:
            events = list(self._events)
        return events[-n:]
