# SPDX-License-Identifier: BSL-1.1
# Copyright (c) 2026 MuVeraAI Corporation
"""
JSON-ready read models for operator-facing tools.

These functions only reshape snapshots; they never touch the policy or the
ledger. Amounts are rendered as USDC strings so the output can be handed
straight to ``json.dumps``.
"""
from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from aumos_treasury.amounts import format_usdc
from aumos_treasury.budget.models import BudgetStatus
from aumos_treasury.ledger.entry import LedgerEntry

MIN_HISTORY_LIMIT = 1
MAX_HISTORY_LIMIT = 50
DEFAULT_HISTORY_LIMIT = 10


def clamp_history_limit(limit: int | None) -> int:
    """Clamp a requested payment-history size into ``1..50`` (default 10)."""
    if limit is None:
        return DEFAULT_HISTORY_LIMIT
    return max(MIN_HISTORY_LIMIT, min(MAX_HISTORY_LIMIT, int(limit)))


def budget_status_report(status: BudgetStatus, daily_limit: int | None = None) -> dict[str, Any]:
    """
    Render a :class:`BudgetStatus` with 2-place USDC strings.

    Args:
        status: Snapshot from ``BudgetPolicy.status()``.
        daily_limit: Configured daily limit; included when given.

    Returns:
        A dict of strings and lists, safe to serialize as JSON.
    """
    report: dict[str, Any] = {
        "total_budget_usdc": format_usdc(status.total_budget),
        "total_spent_usdc": format_usdc(status.total_spent),
        "remaining_usdc": format_usdc(status.remaining),
        "daily_spent_usdc": format_usdc(status.daily_spent),
        "daily_remaining_usdc": format_usdc(status.daily_remaining),
        "in_flight_usdc": format_usdc(status.in_flight),
        "spending_by_agent": [
            {
                "agent": agent.agent_id,
                "spent_usdc": format_usdc(agent.spent),
                "percentage": f"{agent.percentage_of_total_spent:.1f}%",
            }
            for agent in status.per_agent
        ],
        "last_updated": status.as_of.isoformat(),
    }
    if daily_limit is not None:
        report["daily_limit_usdc"] = format_usdc(daily_limit)
    return report


def payment_history_report(
    entries: Sequence[LedgerEntry],
    limit: int | None = DEFAULT_HISTORY_LIMIT,
) -> dict[str, Any]:
    """
    Render ledger entries (newest first) with 6-place USDC strings.

    ``limit`` is clamped into ``1..50`` before ``entries`` is truncated.
    """
    selected = list(entries)[: clamp_history_limit(limit)]
    return {
        "payments": [
            {
                "id": entry.id,
                "timestamp": entry.timestamp.isoformat(),
                "agent": entry.agent_id,
                "tool": entry.tool_name,
                "amount_usdc": format_usdc(entry.amount, places=6),
                "status": entry.status,
                "error": entry.error,
            }
            for entry in selected
        ],
        "total_entries": len(selected),
    }
