"""Provider-agnostic contract implemented by every LLM adapter."""

import json
from collections.abc import Sequence
from typing import Any, Protocol, runtime_checkable

from supportdesk.models.chat import Message
from supportdesk.models.llm import GenerateOptions, LLMResponse, ToolResult
from supportdesk.tools.base import ToolFormat
from supportdesk.tools.registry import ToolsRegistry

DEFAULT_MAX_TOKENS = 500
DEFAULT_TEMPERATURE = 0.7


@runtime_checkable
class LLMProvider(Protocol):
    """A hosted chat model able to request and consume tool calls."""

    tool_format: ToolFormat

    async def generate_reply(
        self,
        history: Sequence[Message],
        user_message: str,
        options: GenerateOptions | None = None,
        tools: ToolsRegistry | None = None,
    ) -> LLMResponse:
        """Produce the first response to ``user_message``."""
        ...

    async def continue_with_tool_results(
        self,
        history: Sequence[Message],
        user_message: str,
        previous_response: LLMResponse,
        tool_results: Sequence[ToolResult],
        options: GenerateOptions | None = None,
        tools: ToolsRegistry | None = None,
    ) -> LLMResponse:
        """Resume after the tool calls in ``previous_response`` were executed."""
        ...


def serialize_tool_result(result: ToolResult) -> str:
    """JSON payload handed back to the model for one tool result."""
    if result.success:
        return json.dumps(result.result, default=str)
    return json.dumps({"error": result.error or "Tool execution failed"})


def upstream_error_message(body: Any, fallback: str) -> str:
    """Pull the provider's own error message out of an error response body."""
    if isinstance(body, dict):
        error = body.get("error", body)
        if isinstance(error, dict) and isinstance(error.get("message"), str):
            return error["message"]
    return fallback
