# SPDX-License-Identifier: BSL-1.1
# Copyright (c) 2026 MuVeraAI Corporation
from __future__ import annotations

import json
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class ContentBlock(BaseModel, frozen=True):
    """One block of a remote tool's response. Only ``text`` blocks are read."""

    type: str = "text"
    text: str | None = None


class ToolCallResult(BaseModel, frozen=True):
    """
    Raw result returned by a :class:`~aumos_treasury.gateway.registry.ToolClient`.

    Clients may also return the plain wire mapping
    (``{"content": [...], "isError": false}``); the gateway validates it
    into this model.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    content: list[ContentBlock] = Field(default_factory=list)
    is_error: bool = False

    def text(self) -> str:
        """Join all text blocks with newlines."""
        return "\n".join(
            block.text for block in self.content if block.type == "text" and block.text is not None
        )


class ToolResult(BaseModel, frozen=True):
    """
    Normalized outcome of a tool call through the gateway.

    Attributes:
        success: True when the remote tool returned a non-error result.
        data: Parsed payload (JSON when the text looks like JSON, else text).
        error: Explanation when ``success`` is False.
        agent_id: The service that produced this result.
        retry_after_seconds: Set when the service's circuit is open.
    """

    success: bool
    data: Any = None
    error: str | None = None
    agent_id: str | None = None
    retry_after_seconds: float | None = None

    @classmethod
    def failure(
        cls,
        error: str,
        agent_id: str | None = None,
        retry_after_seconds: float | None = None,
    ) -> ToolResult:
        return cls(
            success=False,
            error=error,
            agent_id=agent_id,
            retry_after_seconds=retry_after_seconds,
        )


def normalize_tool_call_result(result: ToolCallResult, agent_id: str | None = None) -> ToolResult:
    """
    Convert a raw tool response into a :class:`ToolResult`.

    Error responses become failures carrying the response text. Successful
    text that starts with ``{`` or ``[`` is parsed as JSON, falling back to
    the raw text when it does not parse.
    """
    text = result.text()
    if result.is_error:
        return ToolResult.failure(text or "Tool returned an error", agent_id=agent_id)

    data: Any = text
    if text.startswith(("{", "[")):
        try:
            data = json.loads(text)
        except json.JSONDecodeError:
            data = text
    return ToolResult(success=True, data=data, agent_id=agent_id)
