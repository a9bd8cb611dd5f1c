# SPDX-License-Identifier: BSL-1.1
# Copyright (c) 2026 MuVeraAI Corporation
from __future__ import annotations

import math


class TreasuryError(Exception):
    """Base class for all aumos-treasury errors."""

    def __init__(self, message: str, code: str = "TREASURY_ERROR") -> None:
        super().__init__(message)
        self.code = code
        self.message = message

    def __repr__(self) -> str:
        return f"{type(self).__name__}(code={self.code!r}, message={self.message!r})"


class CircuitOpenError(TreasuryError):
    """
    Raised when a call is short-circuited because a service's breaker is open.

    Attributes:
        circuit_name: The breaker (remote-service id) that rejected the call.
        retry_after_seconds: Remaining cooldown before a trial call is allowed.
    """

    def __init__(self, circuit_name: str, retry_after_seconds: float) -> None:
        super().__init__(
            f"Circuit breaker '{circuit_name}' is open. "
            f"Retry after {math.ceil(retry_after_seconds)}s",
            code="CIRCUIT_OPEN",
        )
        self.circuit_name = circuit_name
        self.retry_after_seconds = retry_after_seconds


class PaymentInstrumentError(TreasuryError):
    """Raised by a wallet that cannot construct a payment instrument."""

    def __init__(self, message: str) -> None:
        super().__init__(message, code="INSTRUMENT_FAILURE")


class DuplicateEntryError(TreasuryError):
    """Raised when a ledger entry id is recorded twice."""

    def __init__(self, entry_id: str) -> None:
        super().__init__(
            f"Ledger entry '{entry_id}' already exists.",
            code="DUPLICATE_ENTRY",
        )
        self.entry_id = entry_id


class LedgerImportError(TreasuryError):
    """Raised when a ledger persistence document cannot be imported."""

    def __init__(self, message: str) -> None:
        super().__init__(message, code="LEDGER_IMPORT")
