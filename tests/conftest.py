# SPDX-License-Identifier: BSL-1.1
# Copyright (c) 2026 MuVeraAI Corporation
"""Shared fixtures for aumos-treasury tests."""

from __future__ import annotations

import asyncio
from datetime import datetime, timedelta, timezone
from typing import Any

import pytest

from aumos_treasury.audit.logger import AuditLogger
from aumos_treasury.budget.policy import BudgetPolicy
from aumos_treasury.config import BudgetConfig, TreasuryConfig
from aumos_treasury.errors import PaymentInstrumentError
from aumos_treasury.gateway.registry import ToolClient
from aumos_treasury.gateway.result import ContentBlock, ToolCallResult
from aumos_treasury.ledger.ledger import PaymentLedger
from aumos_treasury.payment import PaymentRequirement
from aumos_treasury.treasurer.wallet import Wallet

START = datetime(2026, 3, 14, 12, 0, tzinfo=timezone.utc)


# ---------------------------------------------------------------------------
# Test doubles
# ---------------------------------------------------------------------------


class FrozenClock:
    """Wall clock for the ledger; only moves when told to."""

    def __init__(self, now: datetime = START) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, delta: timedelta) -> None:
        self.now = self.now + delta


class ManualClock:
    """Monotonic clock for circuit breakers; only moves when told to."""

    def __init__(self, start: float = 1_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeWallet(Wallet):
    """Signs instantly unless told to fail, stall, or hand back a fixed instrument."""

    def __init__(self, fail: bool = False, delay: float = 0.0, instrument: Any = None) -> None:
        self.fail = fail
        self.delay = delay
        self.instrument = instrument
        self.calls: list[PaymentRequirement] = []

    async def create_payment(self, requirement: PaymentRequirement) -> Any:
        self.calls.append(requirement)
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.fail:
            raise PaymentInstrumentError("signer unavailable")
        if self.instrument is not None:
            return self.instrument
        return {"scheme": "exact", "value": str(requirement.max_amount_required)}


class FakeToolClient(ToolClient):
    """Returns canned text, an error result, a raw response, or raises. Records every call."""

    def __init__(
        self,
        text: str = "ok",
        is_error: bool = False,
        exception: Exception | None = None,
        response: Any = None,
    ) -> None:
        self.text = text
        self.is_error = is_error
        self.exception = exception
        self.response = response
        self.calls: list[tuple[str, dict[str, Any]]] = []

    async def call_tool(self, name: str, arguments: dict[str, Any]) -> Any:
        self.calls.append((name, arguments))
        if self.exception is not None:
            raise self.exception
        if self.response is not None:
            return self.response
        return ToolCallResult(
            content=[ContentBlock(type="text", text=self.text)],
            is_error=self.is_error,
        )


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def clock() -> FrozenClock:
    return FrozenClock()


@pytest.fixture
def ledger(clock: FrozenClock) -> PaymentLedger:
    """An empty ledger on a frozen clock."""
    return PaymentLedger(clock=clock)


@pytest.fixture
def budget_config() -> BudgetConfig:
    """100 USDC total, 10 per day, 5 per request, auto-approve up to 1."""
    return BudgetConfig.from_usdc(
        total_budget="100",
        daily_limit="10",
        per_request_limit="5",
        auto_approve_under="1",
    )


@pytest.fixture
def audit() -> AuditLogger:
    return AuditLogger()


@pytest.fixture
def policy(budget_config: BudgetConfig, ledger: PaymentLedger, audit: AuditLogger) -> BudgetPolicy:
    return BudgetPolicy(budget_config, ledger, audit=audit)


@pytest.fixture
def treasury_config(budget_config: BudgetConfig) -> TreasuryConfig:
    return TreasuryConfig(budget=budget_config)


@pytest.fixture
def wallet() -> FakeWallet:
    return FakeWallet()
