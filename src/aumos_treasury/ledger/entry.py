# SPDX-License-Identifier: BSL-1.1
# Copyright (c) 2026 MuVeraAI Corporation
from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator
from pydantic.alias_generators import to_camel

from aumos_treasury.amounts import parse_amount
from aumos_treasury.payment import PaymentRequirement
from aumos_treasury.types import LedgerStatus


class LedgerEntry(BaseModel):
    """
    One payment attempt.

    Entries move from ``pending`` to exactly one terminal status and are never
    deleted. The ledger hands out copies; mutating a returned entry has no
    effect on the ledger.

    Attributes:
        id: Authorization id.
        timestamp: UTC time the authorization was recorded.
        agent_id: Remote-service id that was paid.
        tool_name: Operation that was paid for.
        amount: Amount in base units (serialized as an integer string).
        status: Current ledger status.
        error: Optional error text attached to the last transition.
        requirement: The payment requirement that was authorized.
        payment: The payment instrument the wallet produced.
        settled_at: UTC time of the terminal transition, if any.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: str
    timestamp: datetime = Field(default_factory=lambda: datetime.now(tz=timezone.utc))
    agent_id: str
    tool_name: str
    amount: int
    status: LedgerStatus = "pending"
    error: str | None = None
    requirement: PaymentRequirement | None = None
    payment: Any = None
    settled_at: datetime | None = None

    @field_validator("amount", mode="before")
    @classmethod
    def _parse_amount(cls, value: Any) -> int:
        return parse_amount(value)

    @field_serializer("amount")
    def _amount_as_string(self, value: int) -> str:
        return str(value)


class LedgerDocument(BaseModel):
    """
    The ledger's persistence document.

    On the wire this is ``{"entries": [...], "dailySpending": {"YYYY-MM-DD": "amount"}}``.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    entries: list[LedgerEntry] = Field(default_factory=list)
    daily_spending: dict[str, int] = Field(default_factory=dict)

    @field_validator("daily_spending", mode="before")
    @classmethod
    def _parse_daily_amounts(cls, value: Any) -> Any:
        if isinstance(value, dict):
            return {str(day): parse_amount(amount) for day, amount in value.items()}
        return value

    @field_serializer("daily_spending")
    def _daily_amounts_as_strings(self, value: dict[str, int]) -> dict[str, str]:
        return {day: str(amount) for day, amount in value.items()}
