# SPDX-License-Identifier: BSL-1.1
# Copyright (c) 2026 MuVeraAI Corporation
from __future__ import annotations

from aumos_treasury.treasurer.treasurer import STALE_AUTHORIZATION_ERROR, Treasurer
from aumos_treasury.treasurer.wallet import PaymentConfirmer, Wallet

__all__ = [
    "Treasurer",
    "Wallet",
    "PaymentConfirmer",
    "STALE_AUTHORIZATION_ERROR",
]
