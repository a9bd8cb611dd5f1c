# SPDX-License-Identifier: BSL-1.1
# Copyright (c) 2026 MuVeraAI Corporation
from __future__ import annotations

from typing import Literal

# ─── Identity ─────────────────────────────────────────────────────────────────

UNKNOWN = "unknown"
"""Sentinel used when a payment context does not name an agent or tool."""

# ─── Ledger status ────────────────────────────────────────────────────────────

LedgerStatus = Literal["pending", "accepted", "rejected", "error"]

TERMINAL_LEDGER_STATUSES = frozenset({"accepted", "rejected", "error"})


# ─── Payment status (settlement callbacks) ────────────────────────────────────


class PaymentStatus(str):
    """
    Status values delivered by the payment client's settlement callbacks.

    The vocabulary is closed: anything not listed here is treated as
    ``pending``.
    """

    ACCEPTED = "accepted"
    REJECTED = "rejected"
    DECLINED = "declined"
    ERROR = "error"
    SENDING = "sending"


TERMINAL_PAYMENT_STATUSES = frozenset(
    {
        PaymentStatus.ACCEPTED,
        PaymentStatus.REJECTED,
        PaymentStatus.DECLINED,
        PaymentStatus.ERROR,
    }
)

_LEDGER_STATUS_BY_PAYMENT_STATUS: dict[str, LedgerStatus] = {
    PaymentStatus.ACCEPTED: "accepted",
    PaymentStatus.REJECTED: "rejected",
    PaymentStatus.DECLINED: "rejected",
    PaymentStatus.ERROR: "error",
}


def to_ledger_status(status: str) -> LedgerStatus:
    """Map a settlement status onto the ledger vocabulary."""
    return _LEDGER_STATUS_BY_PAYMENT_STATUS.get(status, "pending")


def is_terminal_payment_status(status: str) -> bool:
    """Return True for settlement statuses that end a payment's lifecycle."""
    return status in TERMINAL_PAYMENT_STATUSES


# ─── Circuit breaker ──────────────────────────────────────────────────────────

CircuitState = Literal["closed", "open", "half-open"]

# ─── Remote services ──────────────────────────────────────────────────────────

ServiceStatus = Literal["healthy", "degraded", "offline"]

# ─── Budget policy ────────────────────────────────────────────────────────────

AboveThresholdPolicy = Literal["deny", "confirm", "approve"]

RejectionTier = Literal["per_request", "daily", "total", "allocation", "confirmation"]
