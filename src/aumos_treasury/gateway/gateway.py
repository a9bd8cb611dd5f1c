# SPDX-License-Identifier: BSL-1.1
# Copyright (c) 2026 MuVeraAI Corporation
from __future__ import annotations

import asyncio
import logging
import threading
from collections.abc import Sequence
from typing import Any, Callable

from pydantic import ValidationError

from aumos_treasury.audit.logger import AuditLogger
from aumos_treasury.config import GatewayConfig
from aumos_treasury.errors import CircuitOpenError
from aumos_treasury.gateway.circuit import CircuitBreaker, CircuitBreakerStats
from aumos_treasury.gateway.registry import ServiceRegistry
from aumos_treasury.gateway.result import ToolCallResult, ToolResult, normalize_tool_call_result

logger = logging.getLogger("aumos.treasury.gateway")


class Gateway:
    """
    Routes tool calls to remote services through per-service circuit breakers.

    Payment for a call is handled by the service's client (which consults the
    treasurer); the gateway only deals with reachability. Every outcome is
    returned as a :class:`~aumos_treasury.gateway.result.ToolResult`; nothing
    raised by a remote call escapes.

    Breakers are created lazily on first use and live as long as the gateway.

    Example::

        gateway = Gateway(registry)
        result = await gateway.call_tool_with_fallback(
            "carol", "get_sensor", {"entity_id": "sensor.kitchen"},
            fallback_ids=["dave"],
        )
    """

    def __init__(
        self,
        registry: ServiceRegistry,
        config: GatewayConfig | None = None,
        audit: AuditLogger | None = None,
        clock: Callable[[], float] | None = None,
    ) -> None:
        self._registry = registry
        self._config = config or GatewayConfig()
        self._audit = audit
        self._clock = clock
        self._breakers: dict[str, CircuitBreaker] = {}
        self._breakers_lock = threading.Lock()

    # ------------------------------------------------------------------
    # Tool calls
    # ------------------------------------------------------------------

    async def call_tool(
        self,
        agent_id: str,
        tool_name: str,
        args: dict[str, Any] | None = None,
    ) -> ToolResult:
        """
        Call ``tool_name`` on ``agent_id`` through that service's breaker.

        Returns:
            A successful :class:`ToolResult` with the parsed data, or a failed
            one explaining why. An open circuit yields a "temporarily
            unavailable" failure with ``retry_after_seconds`` set.
        """
        descriptor = self._registry.get_agent(agent_id)
        if descriptor is None:
            return ToolResult.failure(f"Agent not found: {agent_id}", agent_id=agent_id)

        client = self._registry.get_client(agent_id)
        if client is None:
            return ToolResult.failure(f"No connection to agent: {agent_id}", agent_id=agent_id)

        breaker = self.circuit_breaker(agent_id)
        arguments = dict(args or {})

        async def invoke() -> ToolCallResult:
            # A response that is not a tool result counts against the breaker.
            return ToolCallResult.model_validate(await client.call_tool(tool_name, arguments))

        try:
            response = await breaker.execute(
                invoke,
                timeout=self._config.default_timeout_seconds,
            )
        except CircuitOpenError as exc:
            return ToolResult.failure(
                f"Agent {agent_id} is temporarily unavailable. {exc.message}",
                agent_id=agent_id,
                retry_after_seconds=exc.retry_after_seconds,
            )
        except asyncio.TimeoutError:
            logger.warning(
                "Call to %s/%s timed out after %ss",
                agent_id,
                tool_name,
                self._config.default_timeout_seconds,
            )
            return ToolResult.failure(
                f"Call to {agent_id}/{tool_name} timed out after "
                f"{self._config.default_timeout_seconds}s",
                agent_id=agent_id,
            )
        except ValidationError as exc:
            logger.error(
                "Malformed result from %s/%s: %s", agent_id, tool_name, exc, exc_info=True
            )
            return ToolResult.failure(
                f"Agent {agent_id} returned a malformed result for {tool_name}",
                agent_id=agent_id,
            )
        except Exception as exc:
            logger.error("Error calling %s/%s: %s", agent_id, tool_name, exc, exc_info=True)
            return ToolResult.failure(str(exc) or type(exc).__name__, agent_id=agent_id)

        return normalize_tool_call_result(response, agent_id=agent_id)

    async def call_tool_with_fallback(
        self,
        primary_id: str,
        tool_name: str,
        args: dict[str, Any] | None,
        fallback_ids: Sequence[str],
    ) -> ToolResult:
        """
        Try the primary service, then each fallback in order.

        Fallbacks that are not currently healthy, or that do not expose
        ``tool_name``, are skipped.

        Returns:
            The first successful result, or a failure naming the primary.
        """
        result = await self.call_tool(primary_id, tool_name, args)
        if result.success:
            return result

        for fallback_id in fallback_ids:
            descriptor = self._registry.get_agent(fallback_id)
            if descriptor is None or not descriptor.is_healthy:
                continue
            if not descriptor.has_tool(tool_name):
                continue

            logger.info(
                "Primary agent %s failed, trying fallback: %s", primary_id, fallback_id
            )
            fallback_result = await self.call_tool(fallback_id, tool_name, args)
            if fallback_result.success:
                return fallback_result

        return ToolResult.failure(
            f"All agents failed for tool {tool_name}. Primary: {primary_id}",
            agent_id=primary_id,
        )

    # ------------------------------------------------------------------
    # Breakers
    # ------------------------------------------------------------------

    def circuit_breaker(self, agent_id: str) -> CircuitBreaker:
        """Return the breaker for ``agent_id``, creating it on first use."""
        with self._breakers_lock:
            breaker = self._breakers.get(agent_id)
            if breaker is None:
                kwargs: dict[str, Any] = {}
                if self._clock is not None:
                    kwargs["clock"] = self._clock
                breaker = CircuitBreaker(
                    agent_id,
                    self._config.circuit_breaker,
                    audit=self._audit,
                    **kwargs,
                )
                self._breakers[agent_id] = breaker
            return breaker

    def circuit_breaker_stats(self) -> dict[str, CircuitBreakerStats]:
        with self._breakers_lock:
            breakers = list(self._breakers.items())
        return {agent_id: breaker.stats() for agent_id, breaker in breakers}

    def reset_circuit_breaker(self, agent_id: str) -> bool:
        """Reset one breaker. Returns False if none exists for ``agent_id``."""
        with self._breakers_lock:
            breaker = self._breakers.get(agent_id)
        if breaker is None:
            return False
        breaker.reset()
        return True

    def reset_all_circuit_breakers(self) -> None:
        with self._breakers_lock:
            breakers = list(self._breakers.values())
        for breaker in breakers:
            breaker.reset()
