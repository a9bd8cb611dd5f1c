# SPDX-License-Identifier: BSL-1.1
# Copyright (c) 2026 MuVeraAI Corporation
from __future__ import annotations

from aumos_treasury.ledger.entry import LedgerDocument, LedgerEntry
from aumos_treasury.ledger.file import load_ledger, save_ledger
from aumos_treasury.ledger.ledger import PaymentLedger

__all__ = [
    "PaymentLedger",
    "LedgerEntry",
    "LedgerDocument",
    "save_ledger",
    "load_ledger",
]
