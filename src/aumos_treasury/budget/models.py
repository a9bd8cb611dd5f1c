# SPDX-License-Identifier: BSL-1.1
# Copyright (c) 2026 MuVeraAI Corporation
from __future__ import annotations

from datetime import datetime, timezone

from pydantic import BaseModel, Field

from aumos_treasury.types import RejectionTier


# ─── Check result ─────────────────────────────────────────────────────────────


class ApprovalResult(BaseModel, frozen=True):
    """
    Outcome of a spend-limit check. Denials are values, never exceptions.

    Attributes:
        allowed: True when every tier passed.
        reason: Human-readable explanation when denied.
        tier: The tier that denied the request.
    """

    allowed: bool
    reason: str | None = None
    tier: RejectionTier | None = None

    @classmethod
    def allow(cls) -> ApprovalResult:
        return cls(allowed=True)

    @classmethod
    def deny(cls, tier: RejectionTier, reason: str) -> ApprovalResult:
        return cls(allowed=False, reason=reason, tier=tier)


# ─── Reservation ──────────────────────────────────────────────────────────────


class Reservation(BaseModel, frozen=True):
    """An opaque token for an in-flight hold taken by ``reserve()``."""

    reservation_id: str
    agent_id: str
    amount: int
    created_at: datetime = Field(default_factory=lambda: datetime.now(tz=timezone.utc))


# ─── Read models ──────────────────────────────────────────────────────────────


class AgentAllocation(BaseModel, frozen=True):
    """
    Point-in-time view of one agent's allocation.

    Attributes:
        agent_id: Remote-service id.
        allocated: Spend ceiling for this agent.
        reserved: Amount currently held by in-flight payments.
        spent: Accepted spend recorded in the ledger.
        available: ``allocated - spent - reserved`` (never below zero).
    """

    agent_id: str
    allocated: int
    reserved: int
    spent: int
    available: int


class AgentSpending(BaseModel, frozen=True):
    """Accepted spend for one agent and its share of all accepted spend."""

    agent_id: str
    spent: int
    percentage_of_total_spent: float


class BudgetStatus(BaseModel, frozen=True):
    """
    Point-in-time budget snapshot for operator reporting.

    Attributes:
        total_budget: Configured total budget.
        total_spent: Accepted spend, ever.
        remaining: ``total_budget - total_spent``.
        daily_spent: Accepted spend credited to today (UTC).
        daily_remaining: ``daily_limit - daily_spent``.
        in_flight: Sum of outstanding reservations.
        per_agent: Spend per agent, for every allocated or ledger-known agent.
        as_of: UTC time the snapshot was taken.
    """

    total_budget: int
    total_spent: int
    remaining: int
    daily_spent: int
    daily_remaining: int
    in_flight: int
    per_agent: list[AgentSpending]
    as_of: datetime
