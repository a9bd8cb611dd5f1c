# SPDX-License-Identifier: BSL-1.1
# Copyright (c) 2026 MuVeraAI Corporation
from __future__ import annotations

from aumos_treasury.audit.logger import AuditLogger
from aumos_treasury.audit.query import AuditFilter, AuditQueryResult, apply_filter, count_by_type
from aumos_treasury.audit.record import AuditEvent, AuditEventType, create_event

__all__ = [
    "AuditLogger",
    "AuditFilter",
    "AuditQueryResult",
    "AuditEvent",
    "AuditEventType",
    "apply_filter",
    "count_by_type",
    "create_event",
]
