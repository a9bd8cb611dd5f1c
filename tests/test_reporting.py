# SPDX-License-Identifier: BSL-1.1
# Copyright (c) 2026 MuVeraAI Corporation
"""Tests for the operator-facing report read models."""

from __future__ import annotations

import json
from datetime import datetime, timezone

from aumos_treasury.budget.models import AgentSpending, BudgetStatus
from aumos_treasury.ledger.entry import LedgerEntry
from aumos_treasury.reporting import (
    budget_status_report,
    clamp_history_limit,
    payment_history_report,
)

AS_OF = datetime(2026, 3, 14, 12, 0, tzinfo=timezone.utc)


def _status() -> BudgetStatus:
    return BudgetStatus(
        total_budget=100_000_000,
        total_spent=2_500_000,
        remaining=97_500_000,
        daily_spent=2_500_000,
        daily_remaining=7_500_000,
        in_flight=250_000,
        per_agent=[
            AgentSpending(agent_id="carol", spent=2_000_000, percentage_of_total_spent=80.0),
            AgentSpending(agent_id="dave", spent=500_000, percentage_of_total_spent=20.0),
        ],
        as_of=AS_OF,
    )


def _entries(count: int) -> list[LedgerEntry]:
    return [
        LedgerEntry(
            id=f"auth-{index}",
            timestamp=AS_OF,
            agent_id="carol",
            tool_name="get_sensor",
            amount=250_000,
        )
        for index in range(count)
    ]


# ---------------------------------------------------------------------------
# TestBudgetStatusReport
# ---------------------------------------------------------------------------


class TestBudgetStatusReport:
    def test_amounts_are_two_place_strings(self) -> None:
        report = budget_status_report(_status())
        assert report["total_budget_usdc"] == "100.00"
        assert report["total_spent_usdc"] == "2.50"
        assert report["remaining_usdc"] == "97.50"
        assert report["daily_remaining_usdc"] == "7.50"
        assert report["in_flight_usdc"] == "0.25"
        assert report["last_updated"] == "2026-03-14T12:00:00+00:00"
        assert "daily_limit_usdc" not in report

    def test_per_agent_percentages(self) -> None:
        report = budget_status_report(_status(), daily_limit=10_000_000)
        assert report["spending_by_agent"][0] == {
            "agent": "carol",
            "spent_usdc": "2.00",
            "percentage": "80.0%",
        }
        assert report["daily_limit_usdc"] == "10.00"

    def test_report_is_json_serializable(self) -> None:
        assert json.loads(json.dumps(budget_status_report(_status())))


# ---------------------------------------------------------------------------
# TestPaymentHistoryReport
# ---------------------------------------------------------------------------


class TestPaymentHistoryReport:
    def test_entries_are_rendered_with_six_places(self) -> None:
        report = payment_history_report(_entries(1))
        payment = report["payments"][0]
        assert payment == {
            "id": "auth-0",
            "timestamp": "2026-03-14T12:00:00+00:00",
            "agent": "carol",
            "tool": "get_sensor",
            "amount_usdc": "0.250000",
            "status": "pending",
            "error": None,
        }
        assert report["total_entries"] == 1

    def test_limit_truncates(self) -> None:
        assert payment_history_report(_entries(20), limit=5)["total_entries"] == 5

    def test_limit_is_clamped(self) -> None:
        assert clamp_history_limit(0) == 1
        assert clamp_history_limit(500) == 50
        assert clamp_history_limit(None) == 10
        assert payment_history_report(_entries(60), limit=100)["total_entries"] == 50
