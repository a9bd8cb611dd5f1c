# SPDX-License-Identifier: BSL-1.1
# Copyright (c) 2026 MuVeraAI Corporation
from __future__ import annotations

from aumos_treasury.budget.models import (
    AgentAllocation,
    AgentSpending,
    ApprovalResult,
    BudgetStatus,
    Reservation,
)
from aumos_treasury.budget.policy import BudgetPolicy

__all__ = [
    "BudgetPolicy",
    "ApprovalResult",
    "Reservation",
    "AgentAllocation",
    "AgentSpending",
    "BudgetStatus",
]
