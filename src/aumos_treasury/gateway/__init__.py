# SPDX-License-Identifier: BSL-1.1
# Copyright (c) 2026 MuVeraAI Corporation
from __future__ import annotations

from aumos_treasury.gateway.circuit import CircuitBreaker, CircuitBreakerStats
from aumos_treasury.gateway.gateway import Gateway
from aumos_treasury.gateway.registry import (
    InMemoryRegistry,
    ServiceDescriptor,
    ServiceRegistry,
    ToolClient,
    ToolDescriptor,
)
from aumos_treasury.gateway.result import (
    ContentBlock,
    ToolCallResult,
    ToolResult,
    normalize_tool_call_result,
)

__all__ = [
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
    "normalize_tool_call_result",
]
