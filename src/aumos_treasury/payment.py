# SPDX-License-Identifier: BSL-1.1
# Copyright (c) 2026 MuVeraAI Corporation
"""
Payment-challenge value types shared by the ledger and the treasurer.

A remote service that wants to be paid answers a tool call with one or more
:class:`PaymentRequirement` objects. The treasurer turns the first of them
into an :class:`Authorization` carrying a wallet-built payment instrument.
"""
from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_serializer
from pydantic.alias_generators import to_camel

from aumos_treasury.types import UNKNOWN


class PaymentRequirement(BaseModel, frozen=True):
    """
    A single way of paying for a remote operation.

    Only ``max_amount_required`` is interpreted here; the remaining fields
    are carried through to the wallet and the ledger untouched.

    Attributes:
        max_amount_required: Price of the operation in USDC base units.
        scheme: Settlement scheme name (e.g. ``'exact'``).
        network: Settlement network (e.g. ``'base-sepolia'``).
        pay_to: Recipient address.
        asset: Token contract address.
        resource: The resource being paid for.
        description: Human-readable description from the remote service.
        extra: Any additional scheme-specific fields.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    max_amount_required: int = Field(ge=0)
    scheme: str | None = None
    network: str | None = None
    pay_to: str | None = None
    asset: str | None = None
    resource: str | None = None
    description: str | None = None
    extra: dict[str, Any] = Field(default_factory=dict)

    @field_serializer("max_amount_required")
    def _amount_as_string(self, value: int) -> str:
        return str(value)


class PaymentContext(BaseModel, frozen=True):
    """
    Who is paying for what.

    Callers may name the agent and tool explicitly, or hand over the raw
    request shape (``method``, ``params``, ``metadata``) the payment client
    saw. Resolution never fails: anything that cannot be determined resolves
    to :data:`~aumos_treasury.types.UNKNOWN`.

    Attributes:
        agent_id: Remote-service id being paid.
        tool_name: Operation being paid for.
        method: Request method of the call that triggered the payment
            (e.g. ``'tools/call'``).
        params: Request parameters of that call.
        metadata: Free-form metadata attached by the caller.
    """

    agent_id: str | None = None
    tool_name: str | None = None
    method: str | None = None
    params: dict[str, Any] = Field(default_factory=dict)
    metadata: dict[str, Any] = Field(default_factory=dict)

    def resolved_agent_id(self) -> str:
        """Return the remote-service id, falling back to ``'unknown'``."""
        if self.agent_id:
            return self.agent_id
        for source in (self.metadata, self.params):
            value = source.get("agentId")
            if value:
                return str(value)
        return UNKNOWN

    def resolved_tool_name(self) -> str:
        """Return the operation name, falling back to ``'unknown'``."""
        if self.tool_name:
            return self.tool_name
        if self.method == "tools/call" and self.params.get("name"):
            return str(self.params["name"])
        value = self.metadata.get("toolName")
        if value:
            return str(value)
        return UNKNOWN


class Authorization(BaseModel, frozen=True):
    """
    A granted payment: the wallet's instrument plus the ledger id tracking it.

    Attributes:
        payment: Opaque payment instrument produced by the wallet.
        authorization_id: Ledger entry id; echoed back in status callbacks.
    """

    payment: Any
    authorization_id: str
