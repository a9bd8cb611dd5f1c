# SPDX-License-Identifier: BSL-1.1
# Copyright (c) 2026 MuVeraAI Corporation
from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Awaitable, Callable

from aumos_treasury.payment import PaymentRequirement


class Wallet(ABC):
    """
    Capability that turns a payment requirement into a signed payment instrument.

    Settlement itself happens elsewhere; the treasurer only needs the
    instrument to hand back to the payment client. Implementations should
    raise :class:`~aumos_treasury.errors.PaymentInstrumentError` when they
    cannot build one, but any exception is treated as an instrument failure.
    """

    @abstractmethod
    async def create_payment(self, requirement: PaymentRequirement) -> Any:
        ...


PaymentConfirmer = Callable[[str, str, int], Awaitable[bool]]
"""
Out-of-band confirmation hook for payments above the auto-approve threshold.

Called as ``await confirmer(agent_id, tool_name, amount)``; returning False
(or raising) denies the payment.
"""
