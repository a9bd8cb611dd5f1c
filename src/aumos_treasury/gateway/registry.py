# SPDX-License-Identifier: BSL-1.1
# Copyright (c) 2026 MuVeraAI Corporation
"""
Lookup contract for remote services.

Discovery and health checking live outside this package. The gateway only
needs to resolve a service id to its descriptor and to a client that can
call its tools; :class:`ServiceRegistry` is that contract and
:class:`InMemoryRegistry` is a single-process implementation suitable for
tests and static configurations.
"""
from __future__ import annotations

import threading
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field

from aumos_treasury.gateway.result import ToolCallResult
from aumos_treasury.types import ServiceStatus


class ToolDescriptor(BaseModel, frozen=True):
    """A tool exposed by a remote service."""

    name: str
    description: str = ""
    parameters: dict[str, Any] = Field(default_factory=dict)
    pricing: int | None = None


class ServiceDescriptor(BaseModel):
    """
    What the registry knows about one remote service.

    Attributes:
        id: Remote-service id (also the breaker and allocation key).
        name: Display name.
        description: What the service does.
        url: Endpoint the client talks to.
        status: Last known health.
        tools: Tools the service exposes.
        last_health_check: When ``status`` was last refreshed.
        budget_allocation: Optional spend ceiling in base units.
    """

    id: str
    name: str
    description: str = ""
    url: str = ""
    status: ServiceStatus = "offline"
    tools: list[ToolDescriptor] = Field(default_factory=list)
    last_health_check: datetime | None = None
    budget_allocation: int | None = Field(default=None, ge=0)

    def has_tool(self, tool_name: str) -> bool:
        return any(tool.name == tool_name for tool in self.tools)

    @property
    def is_healthy(self) -> bool:
        return self.status == "healthy"


class ToolClient(ABC):
    """A connection able to invoke tools on one remote service."""

    @abstractmethod
    async def call_tool(self, name: str, arguments: dict[str, Any]) -> ToolCallResult:
        ...


class ServiceRegistry(ABC):
    """Minimal lookup interface consumed by the gateway."""

    @abstractmethod
    def get_agent(self, agent_id: str) -> ServiceDescriptor | None:
        ...

    @abstractmethod
    def get_client(self, agent_id: str) -> ToolClient | None:
        ...


class InMemoryRegistry(ServiceRegistry):
    """
    In-process registry for static configurations and testing.

    Descriptors are stored and returned as deep copies.
    """

    def __init__(self) -> None:
        self._agents: dict[str, ServiceDescriptor] = {}
        self._clients: dict[str, ToolClient] = {}
        self._lock = threading.Lock()

    def register(self, descriptor: ServiceDescriptor, client: ToolClient | None = None) -> None:
        """Add or replace a service, optionally with its client."""
        with self._lock:
            self._agents[descriptor.id] = descriptor.model_copy(deep=True)
            if client is not None:
                self._clients[descriptor.id] = client
            else:
                self._clients.pop(descriptor.id, None)

    def unregister(self, agent_id: str) -> bool:
        """Remove a service. Returns False if it was not registered."""
        with self._lock:
            self._clients.pop(agent_id, None)
            return self._agents.pop(agent_id, None) is not None

    def set_status(self, agent_id: str, status: ServiceStatus) -> None:
        """
        Update the health of a registered service.

        Raises:
            KeyError: If ``agent_id`` is not registered.
        """
        with self._lock:
            descriptor = self._agents.get(agent_id)
            if descriptor is None:
                raise KeyError(f"No service registered with id {agent_id!r}.")
            descriptor.status = status

    def get_agent(self, agent_id: str) -> ServiceDescriptor | None:
        with self._lock:
            descriptor = self._agents.get(agent_id)
            return descriptor.model_copy(deep=True) if descriptor is not None else None

    def get_client(self, agent_id: str) -> ToolClient | None:
        with self._lock:
            return self._clients.get(agent_id)

    def list_agents(self) -> list[ServiceDescriptor]:
        with self._lock:
            return [descriptor.model_copy(deep=True) for descriptor in self._agents.values()]
