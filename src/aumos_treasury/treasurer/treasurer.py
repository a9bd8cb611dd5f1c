# SPDX-License-Identifier: BSL-1.1
# Copyright (c) 2026 MuVeraAI Corporation
from __future__ import annotations

import logging
import threading
import uuid
from collections.abc import Iterable, Sequence
from datetime import datetime, timedelta, timezone
from typing import NamedTuple

from aumos_treasury.amounts import format_usdc
from aumos_treasury.audit.logger import AuditLogger
from aumos_treasury.audit.record import AuditEventType
from aumos_treasury.budget.models import AgentAllocation, ApprovalResult, BudgetStatus
from aumos_treasury.budget.policy import BudgetPolicy
from aumos_treasury.config import TreasuryConfig
from aumos_treasury.errors import PaymentInstrumentError
from aumos_treasury.gateway.registry import ServiceDescriptor
from aumos_treasury.ledger.entry import LedgerEntry
from aumos_treasury.ledger.ledger import PaymentLedger
from aumos_treasury.payment import Authorization, PaymentContext, PaymentRequirement
from aumos_treasury.treasurer.wallet import PaymentConfirmer, Wallet
from aumos_treasury.types import is_terminal_payment_status, to_ledger_status

logger = logging.getLogger("aumos.treasury.treasurer")

STALE_AUTHORIZATION_ERROR = "expired without settlement status"


class _Correlation(NamedTuple):
    agent_id: str
    tool_name: str


class Treasurer:
    """
    Authorizes payment challenges against the budget and reconciles settlement.

    The payment client calls two methods:

    - :meth:`on_payment_required` when a remote service asks to be paid.
      The treasurer checks the budget, takes a reservation, asks the wallet
      for a payment instrument and records the authorization in the ledger.
    - :meth:`on_status` with each settlement status for a granted
      authorization. Acceptance commits the reservation into spend; any other
      terminal outcome releases it.

    Neither method raises. Denials and failures come back as ``None`` and are
    written to the audit stream.

    Example::

        treasurer = Treasurer(wallet, TreasuryConfig(budget=BudgetConfig.from_usdc(
            total_budget="100", daily_limit="10", per_request_limit="5",
            auto_approve_under="1",
        )))
        treasurer.allocate_budget_to_agent("carol", 50_000_000)

        authorization = await treasurer.on_payment_required(
            [PaymentRequirement(max_amount_required=250_000)],
            PaymentContext(agent_id="carol", tool_name="get_sensor"),
        )
        await treasurer.on_status("accepted", authorization)
    """

    def __init__(
        self,
        wallet: Wallet,
        config: TreasuryConfig,
        ledger: PaymentLedger | None = None,
        audit: AuditLogger | None = None,
        confirmer: PaymentConfirmer | None = None,
    ) -> None:
        self._wallet = wallet
        self._config = config
        self._confirmer = confirmer
        self.audit = audit or AuditLogger(config.audit)
        self.ledger = ledger if ledger is not None else PaymentLedger()
        self.policy = BudgetPolicy(config.budget, self.ledger, audit=self.audit)

        self._pending: dict[str, _Correlation] = {}
        self._pending_lock = threading.Lock()

    # ------------------------------------------------------------------
    # Payment client contract
    # ------------------------------------------------------------------

    async def on_payment_required(
        self,
        requirements: Sequence[PaymentRequirement],
        context: PaymentContext | None = None,
    ) -> Authorization | None:
        """
        Decide whether to pay for a remote operation.

        Only the first requirement is considered. Missing context resolves to
        the ``'unknown'`` agent and tool.

        Args:
            requirements: Payment options offered by the remote service.
            context: Who is paying for what.

        Returns:
            An :class:`~aumos_treasury.payment.Authorization`, or None when the
            payment is denied or cannot be built.
        """
        if not requirements:
            logger.info("No payment requirements provided")
            return None

        requirement = requirements[0]
        ctx = context or PaymentContext()
        agent_id = ctx.resolved_agent_id()
        tool_name = ctx.resolved_tool_name()

        try:
            return await self._authorize(requirement, agent_id, tool_name)
        except Exception:
            logger.exception(
                "Unexpected failure authorizing payment for %s/%s", agent_id, tool_name
            )
            return None

    async def on_status(
        self,
        status: str,
        authorization: Authorization,
        context: PaymentContext | None = None,
    ) -> None:
        """
        Reconcile a settlement status for a granted authorization.

        ``accepted`` commits the reservation into ledger spend; ``rejected``,
        ``declined`` and ``error`` record the outcome and release the
        reservation. ``sending`` and unrecognised statuses leave the entry
        pending.
        """
        authorization_id = authorization.authorization_id
        try:
            self._reconcile(status, authorization_id)
        except Exception:
            logger.exception(
                "Unexpected failure reconciling status %r for %s", status, authorization_id
            )

    # ------------------------------------------------------------------
    # Budget administration and reporting
    # ------------------------------------------------------------------

    def allocate_budget_to_agent(self, agent_id: str, amount: int) -> AgentAllocation:
        """Set the spend ceiling for one remote service."""
        return self.policy.allocate(agent_id, amount)

    def apply_registry_allocations(
        self, descriptors: Iterable[ServiceDescriptor]
    ) -> list[AgentAllocation]:
        """Allocate every descriptor that declares a ``budget_allocation``."""
        return [
            self.policy.allocate(descriptor.id, descriptor.budget_allocation)
            for descriptor in descriptors
            if descriptor.budget_allocation is not None
        ]

    def budget_status(self) -> BudgetStatus:
        return self.policy.status()

    def format_budget_status(self) -> str:
        return self.policy.format_status()

    def recent_payments(self, limit: int = 10) -> list[LedgerEntry]:
        return self.ledger.recent_entries(limit)

    def pending_authorizations(self) -> list[str]:
        """Ids of authorizations still waiting for a terminal status."""
        with self._pending_lock:
            return list(self._pending)

    def expire_stale_authorizations(
        self,
        max_age: timedelta,
        now: datetime | None = None,
    ) -> list[str]:
        """
        Fail pending authorizations older than ``max_age`` and free their holds.

        A reservation lives only in memory and is released by a status
        callback. If that callback never arrives the hold is stuck; an
        operator can call this to mark such entries ``error`` and release
        them. It is never run implicitly.

        Returns:
            The ids of the entries that were expired.
        """
        cutoff = (now or datetime.now(tz=timezone.utc)) - max_age
        expired: list[str] = []
        for entry in self.ledger.pending_entries():
            if entry.timestamp > cutoff:
                continue
            if not self.ledger.update_status(entry.id, "error", STALE_AUTHORIZATION_ERROR):
                continue
            correlation = self._pop_correlation(entry.id)
            if correlation is not None:
                self.policy.release_reservation(correlation.agent_id, entry.amount)
            self.audit.log(
                AuditEventType.PAYMENT_STATUS,
                f"Payment {entry.id} expired without settlement status",
                agent_id=entry.agent_id,
                tool_name=entry.tool_name,
                amount=entry.amount,
                data={"authorization_id": entry.id, "status": "error"},
                level=logging.WARNING,
            )
            expired.append(entry.id)
        return expired

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    async def _authorize(
        self,
        requirement: PaymentRequirement,
        agent_id: str,
        tool_name: str,
    ) -> Authorization | None:
        amount = requirement.max_amount_required
        logger.info(
            "Payment required: %s USDC for %s/%s",
            format_usdc(amount, places=6),
            agent_id,
            tool_name,
        )

        check = self.policy.can_approve(agent_id, amount)
        if not check.allowed:
            self._deny(agent_id, tool_name, amount, check)
            return None

        if not self.policy.is_auto_approvable(amount):
            confirmation = await self._confirm_above_threshold(agent_id, tool_name, amount)
            if not confirmation.allowed:
                self._deny(agent_id, tool_name, amount, confirmation)
                return None

        reservation = self.policy.reserve(agent_id, amount)
        if reservation is None:
            logger.info("Failed to reserve budget for %s/%s", agent_id, tool_name)
            return None

        try:
            payment = await self._wallet.create_payment(requirement)
        except Exception as exc:
            self.policy.release_reservation(agent_id, amount)
            self._instrument_failed(agent_id, tool_name, amount, exc)
            return None
        except BaseException:
            # Cancelled or timed out by the caller.
            self.policy.release_reservation(agent_id, amount)
            raise

        authorization_id = str(uuid.uuid4())
        try:
            self.ledger.record_authorization(
                authorization_id, agent_id, tool_name, requirement, payment
            )
        except PaymentInstrumentError as exc:
            self.policy.release_reservation(agent_id, amount)
            self._instrument_failed(agent_id, tool_name, amount, exc)
            return None
        except BaseException:
            self.policy.release_reservation(agent_id, amount)
            raise

        with self._pending_lock:
            self._pending[authorization_id] = _Correlation(agent_id, tool_name)

        self.audit.log(
            AuditEventType.AUTHORIZATION_GRANTED,
            f"Payment authorized: {authorization_id} "
            f"({format_usdc(amount, places=6)} USDC)",
            agent_id=agent_id,
            tool_name=tool_name,
            amount=amount,
            data={
                "authorization_id": authorization_id,
                "reservation_id": reservation.reservation_id,
            },
        )
        return Authorization(payment=payment, authorization_id=authorization_id)

    async def _confirm_above_threshold(
        self,
        agent_id: str,
        tool_name: str,
        amount: int,
    ) -> ApprovalResult:
        policy = self._config.budget.above_threshold
        threshold = format_usdc(self._config.budget.auto_approve_threshold)

        if policy == "approve":
            self.audit.log(
                AuditEventType.ABOVE_THRESHOLD_APPROVED,
                f"Approving {format_usdc(amount)} USDC above the "
                f"{threshold} USDC auto-approve threshold without confirmation",
                agent_id=agent_id,
                tool_name=tool_name,
                amount=amount,
                level=logging.WARNING,
            )
            return ApprovalResult.allow()

        if policy == "deny":
            return ApprovalResult.deny(
                "confirmation",
                f"Amount exceeds auto-approve threshold of ${threshold} USDC",
            )

        if self._confirmer is None:
            return ApprovalResult.deny(
                "confirmation",
                f"Amount exceeds auto-approve threshold of ${threshold} USDC "
                "and no confirmer is configured",
            )
        try:
            confirmed = await self._confirmer(agent_id, tool_name, amount)
        except Exception as exc:
            logger.warning("Payment confirmation failed for %s/%s: %s", agent_id, tool_name, exc)
            confirmed = False
        if not confirmed:
            return ApprovalResult.deny("confirmation", "Payment was not confirmed")
        return ApprovalResult.allow()

    def _reconcile(self, status: str, authorization_id: str) -> None:
        ledger_status = to_ledger_status(status)
        terminal = is_terminal_payment_status(status)
        with self._pending_lock:
            correlation = self._pending.get(authorization_id)

        logger.info("Payment %s status: %s", authorization_id, status)

        if ledger_status == "accepted" and correlation is not None:
            transitioned = self.policy.commit_reservation(
                correlation.agent_id, authorization_id
            )
        else:
            transitioned = self.ledger.update_status(authorization_id, ledger_status)

        if terminal:
            self._pop_correlation(authorization_id)

        if not transitioned:
            return

        entry = self.ledger.get_entry(authorization_id)
        if entry is None:
            return
        if ledger_status != "accepted" and correlation is not None:
            self.policy.release_reservation(correlation.agent_id, entry.amount)

        self.audit.log(
            AuditEventType.PAYMENT_STATUS,
            f"Payment {authorization_id} {status}",
            agent_id=entry.agent_id,
            tool_name=entry.tool_name,
            amount=entry.amount,
            data={"authorization_id": authorization_id, "status": status},
        )

    def _deny(
        self,
        agent_id: str,
        tool_name: str,
        amount: int,
        result: ApprovalResult,
    ) -> None:
        self.audit.log(
            AuditEventType.AUTHORIZATION_DENIED,
            f"Payment declined: {result.reason}",
            agent_id=agent_id,
            tool_name=tool_name,
            amount=amount,
            data={"tier": result.tier},
        )

    def _instrument_failed(
        self,
        agent_id: str,
        tool_name: str,
        amount: int,
        exc: Exception,
    ) -> None:
        self.audit.log(
            AuditEventType.INSTRUMENT_FAILED,
            f"Wallet could not create payment: {exc}",
            agent_id=agent_id,
            tool_name=tool_name,
            amount=amount,
            data={"error_type": type(exc).__name__},
            level=logging.ERROR,
        )

    def _pop_correlation(self, authorization_id: str) -> _Correlation | None:
        with self._pending_lock:
            return self._pending.pop(authorization_id, None)
