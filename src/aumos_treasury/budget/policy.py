# SPDX-License-Identifier: BSL-1.1
# Copyright (c) 2026 MuVeraAI Corporation
from __future__ import annotations

import logging
import threading
import uuid
from datetime import datetime, timezone

from aumos_treasury.amounts import format_usdc
from aumos_treasury.audit.logger import AuditLogger
from aumos_treasury.audit.record import AuditEventType
from aumos_treasury.budget.models import (
    AgentAllocation,
    AgentSpending,
    ApprovalResult,
    BudgetStatus,
    Reservation,
)
from aumos_treasury.config import BudgetConfig
from aumos_treasury.ledger.ledger import PaymentLedger

logger = logging.getLogger("aumos.treasury.budget")


class BudgetPolicy:
    """
    Multi-tier spend limits with a reserve / commit / release protocol.

    Tiers, evaluated in order and short-circuiting on the first failure:

    1. per-request limit
    2. daily limit (today's accepted spend plus outstanding reservations)
    3. total budget (all accepted spend plus outstanding reservations)
    4. the agent's allocation, when one exists
       (``allocated - spent_by_agent - reserved_by_agent``)

    Design contract
    ---------------
    - ``can_approve()`` is read-only.
    - ``reserve()`` re-runs the checks and takes the hold in one critical
      section, so a hold is visible to every later check before the caller
      goes on to build a payment instrument.
    - ``commit_reservation()`` turns a hold into ledger spend atomically with
      the ledger's ``accepted`` transition.
    - ``release_reservation()`` is floored at zero and safe to call twice.

    Locking: one budget-wide lock covers the daily and total tiers, and one
    lock per agent covers that agent's allocation and holds. The budget-wide
    lock is always taken first. No lock is held across an ``await``.
    """

    def __init__(
        self,
        config: BudgetConfig,
        ledger: PaymentLedger,
        audit: AuditLogger | None = None,
    ) -> None:
        self._config = config
        self._ledger = ledger
        self._audit = audit or AuditLogger()

        self._allocations: dict[str, int] = {}          # agent_id -> allocated
        self._reserved: dict[str, int] = {}             # agent_id -> held amount
        self._in_flight = 0

        self._budget_lock = threading.Lock()
        self._agent_locks: dict[str, threading.Lock] = {}
        self._agent_locks_guard = threading.Lock()

    @property
    def config(self) -> BudgetConfig:
        return self._config

    # ------------------------------------------------------------------
    # Allocations
    # ------------------------------------------------------------------

    def allocate(self, agent_id: str, amount: int) -> AgentAllocation:
        """
        Set (or replace) the spend ceiling for ``agent_id``.

        Holds already taken for the agent are kept.

        Raises:
            ValueError: If ``agent_id`` is empty or ``amount`` is negative.
        """
        if not agent_id:
            raise ValueError("agent_id must be a non-empty string.")
        if amount < 0:
            raise ValueError(f"Allocation must be >= 0; got {amount}.")
        with self._agent_lock(agent_id):
            self._allocations[agent_id] = amount
            snapshot = self._snapshot(agent_id, amount)
        self._audit.log(
            AuditEventType.ALLOCATION_SET,
            f"Allocated {format_usdc(amount)} USDC to {agent_id}",
            agent_id=agent_id,
            amount=amount,
        )
        return snapshot

    def allocation(self, agent_id: str) -> AgentAllocation | None:
        """Return a snapshot of the allocation for ``agent_id``, or None."""
        with self._agent_lock(agent_id):
            allocated = self._allocations.get(agent_id)
            if allocated is None:
                return None
            return self._snapshot(agent_id, allocated)

    def allocations(self) -> list[AgentAllocation]:
        """Return snapshots of every allocation."""
        snapshots = [self.allocation(agent_id) for agent_id in list(self._allocations)]
        return [snapshot for snapshot in snapshots if snapshot is not None]

    def reserved(self, agent_id: str) -> int:
        """Amount currently held for ``agent_id``."""
        with self._agent_lock(agent_id):
            return self._reserved.get(agent_id, 0)

    def in_flight(self) -> int:
        """Sum of all outstanding holds."""
        with self._budget_lock:
            return self._in_flight

    # ------------------------------------------------------------------
    # Checks
    # ------------------------------------------------------------------

    def can_approve(self, agent_id: str, amount: int) -> ApprovalResult:
        """
        Check ``amount`` for ``agent_id`` against every tier. Read-only.

        Raises:
            ValueError: If ``amount`` is negative.
        """
        self._validate_amount(amount)
        with self._budget_lock, self._agent_lock(agent_id):
            return self._evaluate(agent_id, amount)

    def is_auto_approvable(self, amount: int) -> bool:
        """True when ``amount`` is at or below the auto-approve threshold."""
        return amount <= self._config.auto_approve_threshold

    # ------------------------------------------------------------------
    # Reserve / commit / release
    # ------------------------------------------------------------------

    def reserve(self, agent_id: str, amount: int) -> Reservation | None:
        """
        Check every tier and, if they pass, hold ``amount`` for ``agent_id``.

        Returns:
            A :class:`Reservation` token, or None when a tier denied it.

        Raises:
            ValueError: If ``amount`` is negative.
        """
        self._validate_amount(amount)
        with self._budget_lock, self._agent_lock(agent_id):
            result = self._evaluate(agent_id, amount)
            if result.allowed:
                self._reserved[agent_id] = self._reserved.get(agent_id, 0) + amount
                self._in_flight += amount

        if not result.allowed:
            self._audit.log(
                AuditEventType.RESERVATION_DENIED,
                result.reason or "denied",
                agent_id=agent_id,
                amount=amount,
                data={"tier": result.tier},
            )
            return None

        reservation = Reservation(
            reservation_id=str(uuid.uuid4()),
            agent_id=agent_id,
            amount=amount,
        )
        self._audit.log(
            AuditEventType.RESERVATION_TAKEN,
            f"Reserved {format_usdc(amount, places=6)} USDC for {agent_id}",
            agent_id=agent_id,
            amount=amount,
            data={"reservation_id": reservation.reservation_id},
        )
        return reservation

    def release_reservation(self, agent_id: str, amount: int) -> int:
        """
        Drop up to ``amount`` of ``agent_id``'s hold, never going below zero.

        Releasing more than is held (or releasing twice) only clears what is
        actually held for that agent.

        Returns:
            The amount actually released.
        """
        with self._budget_lock, self._agent_lock(agent_id):
            released = self._drop_hold(agent_id, amount)

        self._audit.log(
            AuditEventType.RESERVATION_RELEASED,
            f"Released {format_usdc(released, places=6)} USDC for {agent_id}",
            agent_id=agent_id,
            amount=released,
            data={"requested": amount},
        )
        return released

    def commit_reservation(self, agent_id: str, entry_id: str) -> bool:
        """
        Mark ledger entry ``entry_id`` accepted and convert its hold into spend.

        The ledger transition and the hold decrement happen under the same
        locks, so ``spent + reserved`` never counts the amount twice and never
        drops it.

        Returns:
            True if the ledger entry transitioned to ``accepted``.
        """
        with self._budget_lock, self._agent_lock(agent_id):
            entry = self._ledger.get_entry(entry_id)
            if entry is None:
                logger.warning("Cannot commit unknown ledger entry %s", entry_id)
                return False
            if not self._ledger.update_status(entry_id, "accepted"):
                return False
            self._drop_hold(agent_id, entry.amount)

        self._audit.log(
            AuditEventType.RESERVATION_COMMITTED,
            f"Committed {format_usdc(entry.amount, places=6)} USDC for {agent_id}",
            agent_id=agent_id,
            tool_name=entry.tool_name,
            amount=entry.amount,
            data={"authorization_id": entry_id},
        )
        return True

    # ------------------------------------------------------------------
    # Reporting
    # ------------------------------------------------------------------

    def status(self) -> BudgetStatus:
        """Return a point-in-time :class:`BudgetStatus` snapshot."""
        total_spent = self._ledger.total_spent()
        daily_spent = self._ledger.today_spending()

        agent_ids = list(dict.fromkeys([*self._allocations, *self._ledger.agent_ids()]))
        per_agent: list[AgentSpending] = []
        for agent_id in agent_ids:
            spent = self._ledger.spent_by_agent(agent_id)
            percentage = (spent / total_spent) * 100 if total_spent > 0 else 0.0
            per_agent.append(
                AgentSpending(
                    agent_id=agent_id,
                    spent=spent,
                    percentage_of_total_spent=percentage,
                )
            )

        return BudgetStatus(
            total_budget=self._config.total_budget,
            total_spent=total_spent,
            remaining=self._config.total_budget - total_spent,
            daily_spent=daily_spent,
            daily_remaining=self._config.daily_limit - daily_spent,
            in_flight=self.in_flight(),
            per_agent=per_agent,
            as_of=datetime.now(tz=timezone.utc),
        )

    def format_status(self) -> str:
        """Render the current status as a multi-line operator report."""
        status = self.status()
        lines = [
            "=== Budget Status ===",
            f"Total Budget: ${format_usdc(status.total_budget)} USDC",
            f"Total Spent: ${format_usdc(status.total_spent)} USDC",
            f"Remaining: ${format_usdc(status.remaining)} USDC",
            "",
            f"Daily Limit: ${format_usdc(self._config.daily_limit)} USDC",
            f"Today's Spending: ${format_usdc(status.daily_spent)} USDC",
            f"Daily Remaining: ${format_usdc(status.daily_remaining)} USDC",
        ]
        if status.in_flight:
            lines.append(f"In Flight: ${format_usdc(status.in_flight)} USDC")

        if status.per_agent:
            lines.extend(["", "=== By Agent ==="])
            for agent in status.per_agent:
                lines.append(
                    f"{agent.agent_id}: ${format_usdc(agent.spent)} USDC "
                    f"({agent.percentage_of_total_spent:.1f}%)"
                )
        return "\n".join(lines)

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _evaluate(self, agent_id: str, amount: int) -> ApprovalResult:
        """Run every tier. Caller holds the budget lock and the agent lock."""
        config = self._config

        if amount > config.per_request_limit:
            return ApprovalResult.deny(
                "per_request",
                f"Amount exceeds per-request limit of "
                f"${format_usdc(config.per_request_limit)} USDC",
            )

        if self._ledger.today_spending() + self._in_flight + amount > config.daily_limit:
            return ApprovalResult.deny(
                "daily",
                f"Would exceed daily limit of ${format_usdc(config.daily_limit)} USDC",
            )

        if self._ledger.total_spent() + self._in_flight + amount > config.total_budget:
            return ApprovalResult.deny(
                "total",
                f"Would exceed total budget of ${format_usdc(config.total_budget)} USDC",
            )

        allocated = self._allocations.get(agent_id)
        if allocated is not None:
            available = (
                allocated
                - self._ledger.spent_by_agent(agent_id)
                - self._reserved.get(agent_id, 0)
            )
            if amount > available:
                return ApprovalResult.deny(
                    "allocation",
                    f"Would exceed agent allocation of ${format_usdc(allocated)} USDC "
                    f"for {agent_id}",
                )

        return ApprovalResult.allow()

    def _snapshot(self, agent_id: str, allocated: int) -> AgentAllocation:
        """Build an allocation read model. Caller holds the agent lock."""
        reserved = self._reserved.get(agent_id, 0)
        spent = self._ledger.spent_by_agent(agent_id)
        return AgentAllocation(
            agent_id=agent_id,
            allocated=allocated,
            reserved=reserved,
            spent=spent,
            available=max(0, allocated - spent - reserved),
        )

    def _drop_hold(self, agent_id: str, amount: int) -> int:
        """Decrement the agent's hold. Caller holds both locks."""
        held = self._reserved.get(agent_id, 0)
        dropped = min(held, max(0, amount))
        remaining = held - dropped
        if remaining:
            self._reserved[agent_id] = remaining
        else:
            self._reserved.pop(agent_id, None)
        self._in_flight = max(0, self._in_flight - dropped)
        return dropped

    def _agent_lock(self, agent_id: str) -> threading.Lock:
        with self._agent_locks_guard:
            lock = self._agent_locks.get(agent_id)
            if lock is None:
                lock = threading.Lock()
                self._agent_locks[agent_id] = lock
            return lock

    @staticmethod
    def _validate_amount(amount: int) -> None:
        if amount < 0:
            raise ValueError(f"Amount must be >= 0; got {amount}.")
