# SPDX-License-Identifier: BSL-1.1
# Copyright (c) 2026 MuVeraAI Corporation
"""
aumos-treasury: budget-controlled payment authorization and call resilience.

Quick start::

    import asyncio

    from aumos_treasury import (
        BudgetConfig,
        PaymentContext,
        PaymentRequirement,
        Treasurer,
        TreasuryConfig,
    )

    treasurer = Treasurer(my_wallet, TreasuryConfig(budget=BudgetConfig.from_usdc(
        total_budget="100", daily_limit="10", per_request_limit="5",
        auto_approve_under="1",
    )))
    treasurer.allocate_budget_to_agent("carol", 5_000_000)

    authorization = asyncio.run(treasurer.on_payment_required(
        [PaymentRequirement(max_amount_required=250_000)],
        PaymentContext(agent_id="carol", tool_name="get_sensor"),
    ))
    asyncio.run(treasurer.on_status("accepted", authorization))
    print(treasurer.format_budget_status())
"""
from __future__ import annotations

from aumos_treasury.amounts import (
    BASE_UNITS_PER_USDC,
    USDC_DECIMALS,
    base_units_to_usdc,
    format_usdc,
    usdc_to_base_units,
)
from aumos_treasury.audit.logger import AuditLogger
from aumos_treasury.audit.query import AuditFilter, AuditQueryResult
from aumos_treasury.audit.record import AuditEvent, AuditEventType
from aumos_treasury.budget.models import (
    AgentAllocation,
    AgentSpending,
    ApprovalResult,
    BudgetStatus,
    Reservation,
)
from aumos_treasury.budget.policy import BudgetPolicy
from aumos_treasury.config import (
    AuditConfig,
    BudgetConfig,
    CircuitBreakerConfig,
    GatewayConfig,
    TreasuryConfig,
)
from aumos_treasury.errors import (
    CircuitOpenError,
    DuplicateEntryError,
    LedgerImportError,
    PaymentInstrumentError,
    TreasuryError,
)
from aumos_treasury.gateway.circuit import CircuitBreaker, CircuitBreakerStats
from aumos_treasury.gateway.gateway import Gateway
from aumos_treasury.gateway.registry import (
    InMemoryRegistry,
    ServiceDescriptor,
    ServiceRegistry,
    ToolClient,
    ToolDescriptor,
)
from aumos_treasury.gateway.result import ContentBlock, ToolCallResult, ToolResult
from aumos_treasury.ledger.entry import LedgerDocument, LedgerEntry
from aumos_treasury.ledger.file import load_ledger, save_ledger
from aumos_treasury.ledger.ledger import PaymentLedger
from aumos_treasury.payment import Authorization, PaymentContext, PaymentRequirement
from aumos_treasury.reporting import budget_status_report, payment_history_report
from aumos_treasury.treasurer.treasurer import STALE_AUTHORIZATION_ERROR, Treasurer
from aumos_treasury.treasurer.wallet import PaymentConfirmer, Wallet
from aumos_treasury.types import (
    UNKNOWN,
    AboveThresholdPolicy,
    CircuitState,
    LedgerStatus,
    PaymentStatus,
    RejectionTier,
)

__version__ = "0.1.0"

__all__ = [
    # Core types
    "UNKNOWN",
    "LedgerStatus",
    "PaymentStatus",
    "CircuitState",
    "AboveThresholdPolicy",
    "RejectionTier",
    # Amounts
    "USDC_DECIMALS",
    "BASE_UNITS_PER_USDC",
    "usdc_to_base_units",
    "base_units_to_usdc",
    "format_usdc",
    # Configuration
    "TreasuryConfig",
    "BudgetConfig",
    "GatewayConfig",
    "CircuitBreakerConfig",
    "AuditConfig",
    # Payment values
    "PaymentRequirement",
    "PaymentContext",
    "Authorization",
    # Ledger
    "PaymentLedger",
    "LedgerEntry",
    "LedgerDocument",
    "save_ledger",
    "load_ledger",
    # Budget
    "BudgetPolicy",
    "ApprovalResult",
    "Reservation",
    "AgentAllocation",
    "AgentSpending",
    "BudgetStatus",
    # Treasurer
    "Treasurer",
    "Wallet",
    "PaymentConfirmer",
    "STALE_AUTHORIZATION_ERROR",
    # Gateway
    "Gateway",
    "CircuitBreaker",
    "CircuitBreakerStats",
    "ServiceRegistry",
    "InMemoryRegistry",
    "ServiceDescriptor",
    "ToolDescriptor",
    "ToolClient",
    "ContentBlock",
    "ToolCallResult",
    "ToolResult",
    # Audit
    "AuditLogger",
    "AuditEvent",
    "AuditEventType",
    "AuditFilter",
    "AuditQueryResult",
    # Reporting
    "budget_status_report",
    "payment_history_report",
    # Errors
    "TreasuryError",
    "CircuitOpenError",
    "PaymentInstrumentError",
    "DuplicateEntryError",
    "LedgerImportError",
]
