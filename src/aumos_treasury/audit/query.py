# SPDX-License-Identifier: BSL-1.1
# Copyright (c) 2026 MuVeraAI Corporation
from __future__ import annotations

from collections import Counter
from datetime import datetime

from pydantic import BaseModel

from aumos_treasury.audit.record import AuditEvent


class AuditFilter(BaseModel, frozen=True):
    """
    Filter criteria for querying audit events.

    All fields are optional and combined with AND logic.

    Attributes:
        event_type: Only include events of this type.
        agent_id: Only include events about this remote-service id.
        since: Only include events at or after this UTC timestamp.
        until: Only include events before this UTC timestamp.
        limit: Maximum number of events to return. 0 means no limit.
        offset: Number of events to skip before collecting results.
    """

    event_type: str | None = None
    agent_id: str | None = None
    since: datetime | None = None
    until: datetime | None = None
    limit: int = 0
    offset: int = 0


class AuditQueryResult(BaseModel, frozen=True):
    """
    Result of an audit query.

    Attributes:
        events: The matching events, ordered oldest-first.
        total_matched: Number of matches before ``limit``/``offset`` apply.
        filter_applied: The :class:`AuditFilter` used.
    """

    events: list[AuditEvent]
    total_matched: int
    filter_applied: AuditFilter


def apply_filter(events: list[AuditEvent], audit_filter: AuditFilter) -> AuditQueryResult:
    """Apply ``audit_filter`` to ``events`` and paginate the matches."""
    matched = [event for event in events if _event_matches(event, audit_filter)]

    paginated = matched[audit_filter.offset :]
    if audit_filter.limit > 0:
        paginated = paginated[: audit_filter.limit]

    return AuditQueryResult(
        events=paginated,
        total_matched=len(matched),
        filter_applied=audit_filter,
    )


def count_by_type(events: list[AuditEvent]) -> dict[str, int]:
    """Return how many events of each type appear in ``events``."""
    return dict(Counter(event.event_type for event in events))


def _event_matches(event: AuditEvent, audit_filter: AuditFilter) -> bool:
    if audit_filter.event_type is not None and event.event_type != audit_filter.event_type:
        return False
    if audit_filter.agent_id is not None and event.agent_id != audit_filter.agent_id:
        return False
    if audit_filter.since is not None and event.timestamp < audit_filter.since:
        return False
    if audit_filter.until is not None and event.timestamp >= audit_filter.until:
        return False
    return True
