# SPDX-License-Identifier: BSL-1.1
# Copyright (c) 2026 MuVeraAI Corporation
from __future__ import annotations

from decimal import Decimal
from typing import Annotated

from pydantic import BaseModel, Field

from aumos_treasury.amounts import usdc_to_base_units
from aumos_treasury.types import AboveThresholdPolicy

BaseUnits = Annotated[int, Field(ge=0)]


class BudgetConfig(BaseModel, frozen=True):
    """
    Spend limits enforced by the BudgetPolicy.

    All amounts are integers in USDC base units (6 decimals). The snapshot is
    immutable; build a new policy to change limits.

    Attributes:
        total_budget: Ceiling on all accepted spending, ever.
        daily_limit: Ceiling on accepted spending per UTC calendar day.
        per_request_limit: Ceiling on any single payment.
        auto_approve_threshold: Payments at or below this amount are approved
            without confirmation.
        above_threshold: What happens to payments above the auto-approve
            threshold. ``'deny'`` rejects them, ``'confirm'`` asks the
            treasurer's confirmer (and denies when none is configured),
            ``'approve'`` lets them through with a warning audit event.
    """

    total_budget: BaseUnits
    daily_limit: BaseUnits
    per_request_limit: BaseUnits
    auto_approve_threshold: BaseUnits = 0
    above_threshold: AboveThresholdPolicy = "confirm"

    @classmethod
    def from_usdc(
        cls,
        total_budget: Decimal | int | str,
        daily_limit: Decimal | int | str,
        per_request_limit: Decimal | int | str,
        auto_approve_under: Decimal | int | str = 0,
        above_threshold: AboveThresholdPolicy = "confirm",
    ) -> BudgetConfig:
        """
        Build a config from human-readable USDC amounts.

        Example::

            BudgetConfig.from_usdc(total_budget="100", daily_limit="10",
                                   per_request_limit="5", auto_approve_under="1")
        """
        return cls(
            total_budget=usdc_to_base_units(total_budget),
            daily_limit=usdc_to_base_units(daily_limit),
            per_request_limit=usdc_to_base_units(per_request_limit),
            auto_approve_threshold=usdc_to_base_units(auto_approve_under),
            above_threshold=above_threshold,
        )


class CircuitBreakerConfig(BaseModel, frozen=True):
    """
    Thresholds for a per-service circuit breaker.

    Attributes:
        failure_threshold: Consecutive failures that open a closed circuit.
        success_threshold: Consecutive half-open successes that close it again.
        cooldown_seconds: Time after the last failure before an open circuit
            lets a trial call through (half-open).
    """

    failure_threshold: Annotated[int, Field(gt=0)] = 5
    success_threshold: Annotated[int, Field(gt=0)] = 2
    cooldown_seconds: Annotated[float, Field(ge=0)] = 30.0


class GatewayConfig(BaseModel, frozen=True):
    """
    Configuration for the Gateway.

    Attributes:
        default_timeout_seconds: Upper bound on a single remote tool call.
            A timeout counts as a failure for circuit-breaker accounting.
            ``None`` disables the timeout.
        circuit_breaker: Thresholds applied to every per-service breaker.
    """

    default_timeout_seconds: Annotated[float, Field(gt=0)] | None = 30.0
    circuit_breaker: CircuitBreakerConfig = Field(default_factory=CircuitBreakerConfig)


class AuditConfig(BaseModel, frozen=True):
    """
    Configuration for the AuditLogger.

    Attributes:
        max_records: Maximum number of audit events retained in memory.
            Oldest events are evicted when this limit is reached.
        emit_log_records: When True, every event is also written to the
            ``aumos.treasury.audit`` logger at INFO level.
    """

    max_records: Annotated[int, Field(gt=0)] = 10_000
    emit_log_records: bool = True


class TreasuryConfig(BaseModel, frozen=True):
    """
    Top-level configuration for the Treasurer.

    Example::

        config = TreasuryConfig(
            budget=BudgetConfig.from_usdc("100", "10", "5", "1"),
            audit=AuditConfig(max_records=5000),
        )
    """

    budget: BudgetConfig
    audit: AuditConfig = Field(default_factory=AuditConfig)
