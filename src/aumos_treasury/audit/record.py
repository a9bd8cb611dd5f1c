# SPDX-License-Identifier: BSL-1.1
# Copyright (c) 2026 MuVeraAI Corporation
from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, Field


class AuditEventType(str):
    """Transition points written to the audit stream."""

    AUTHORIZATION_GRANTED = "authorization_granted"
    AUTHORIZATION_DENIED = "authorization_denied"
    INSTRUMENT_FAILED = "instrument_failed"
    ABOVE_THRESHOLD_APPROVED = "above_threshold_approved"
    RESERVATION_TAKEN = "reservation_taken"
    RESERVATION_DENIED = "reservation_denied"
    RESERVATION_RELEASED = "reservation_released"
    RESERVATION_COMMITTED = "reservation_committed"
    PAYMENT_STATUS = "payment_status"
    ALLOCATION_SET = "allocation_set"
    BREAKER_TRANSITION = "breaker_transition"


class AuditEvent(BaseModel, frozen=True):
    """
    An immutable, informational record of one transition.

    The ledger stays the source of truth for spend accounting; audit events
    only describe what happened and why.

    Attributes:
        event_id: Unique UUID for this event.
        event_type: One of the :class:`AuditEventType` constants.
        agent_id: Remote-service id involved, if any.
        tool_name: Operation involved, if any.
        amount: Amount in base units, if any.
        detail: Short human-readable description.
        data: Additional structured fields.
        timestamp: UTC timestamp when the event was created.
    """

    event_id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    event_type: str
    agent_id: str | None = None
    tool_name: str | None = None
    amount: int | None = None
    detail: str = ""
    data: dict[str, Any] = Field(default_factory=dict)
    timestamp: datetime = Field(
        default_factory=lambda: datetime.now(tz=timezone.utc)
    )


def create_event(
    event_type: str,
    detail: str = "",
    agent_id: str | None = None,
    tool_name: str | None = None,
    amount: int | None = None,
    data: dict[str, Any] | None = None,
) -> AuditEvent:
    """Construct an :class:`AuditEvent`, normalising optional collections."""
    return AuditEvent(
        event_type=event_type,
        agent_id=agent_id,
        tool_name=tool_name,
        amount=amount,
        detail=detail,
        data=data or {},
    )
