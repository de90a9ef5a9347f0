"""Anthropic Messages API adapter."""

from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

import anthropic
from anthropic import AsyncAnthropic

from supportdesk.clients.base import DEFAULT_MAX_TOKENS, DEFAULT_TEMPERATURE, serialize_tool_result, upstream_error_message
from supportdesk.clients.prompts import build_conversation_context, build_system_prompt
from supportdesk.errors import (
    ProviderAuthError,
    ProviderConnectionError,
    ProviderRateLimitError,
    UpstreamProviderError,
)
from supportdesk.models.chat import Message
from supportdesk.models.llm import GenerateOptions, LLMResponse, ToolCall, ToolResult
from supportdesk.tools.registry import ToolsRegistry
from supportdesk.utils.logging import get_logger

logger = get_logger(__name__)


@dataclass
class AnthropicConfig:
    """Configuration for Anthropic API client."""

    model: str = "claude-3-5-sonnet-20241022"
    max_tokens: int = DEFAULT_MAX_TOKENS
    temperature: float = DEFAULT_TEMPERATURE


class AnthropicProvider:
    """Chat provider backed by Anthropic's Messages API.

    History is folded into a single user turn; tool results are sent back as
    ``tool_result`` blocks answering the previous assistant ``tool_use`` blocks.
    """

    tool_format = "anthropic"

    def __init__(
        self,
        api_key: str | None = None,
        config: AnthropicConfig | None = None,
        client: AsyncAnthropic | None = None,
    ):
        """Initialize Anthropic provider.

        Args:
            api_key: Anthropic API key (ignored when ``client`` is given)
            config: Model and sampling defaults
            client: Pre-built SDK client
        """
        if client is None and not api_key:
            raise ValueError("LLM_API_KEY environment variable is required")

        self.config = config or AnthropicConfig()
        self.client = client or AsyncAnthropic(api_key=api_key, max_retries=0)

    async def generate_reply(
        self,
        history: Sequence[Message],
        user_message: str,
        options: GenerateOptions | None = None,
        tools: ToolsRegistry | None = None,
    ) -> LLMResponse:
        messages = [{"role": "user", "content": self._build_user_content(history, user_message)}]
        return await self._create_message(messages, options, tools)

    async def continue_with_tool_results(
        self,
        history: Sequence[Message],
        user_message: str,
        previous_response: LLMResponse,
        tool_results: Sequence[ToolResult],
        options: GenerateOptions | None = None,
        tools: ToolsRegistry | None = None,
    ) -> LLMResponse:
        assistant_content: list[dict[str, Any]] = []
        if previous_response.text:
            assistant_content.append({"type": "text", "text": previous_response.text})
        for call in previous_response.tool_calls:
            assistant_content.append({"type": "tool_use", "id": call.id, "name": call.name, "input": call.arguments})

        messages = [
            {"role": "user", "content": self._build_user_content(history, user_message)},
            {"role": "assistant", "content": assistant_content},
            {
                "role": "user",
                "content": [
                    {
                        "type": "tool_result",
                        "tool_use_id": result.tool_call_id,
                        "content": serialize_tool_result(result),
                        "is_error": not result.success,
                    }
                    for result in tool_results
                ],
            },
        ]
        return await self._create_message(messages, options, tools)

    def _build_user_content(self, history: Sequence[Message], user_message: str) -> str:
        context = build_conversation_context(history)
        if context:
            return f"Previous conversation:\n{context}\n\nCurrent message: {user_message}"
        return user_message

    async def _create_message(
        self,
        messages: list[dict[str, Any]],
        options: GenerateOptions | None,
        tools: ToolsRegistry | None,
    ) -> LLMResponse:
        options = options or GenerateOptions()
        request_params: dict[str, Any] = {
            "model": self.config.model,
            "max_tokens": options.max_tokens if options.max_tokens is not None else self.config.max_tokens,
            "temperature": options.temperature if options.temperature is not None else self.config.temperature,
            "system": build_system_prompt(tools),
            "messages": messages,
        }
        if tools is not None and tools.get_tool_names():
            request_params["tools"] = tools.get_all_provider_tools(self.tool_format)

        logger.debug(f"Making Anthropic API call with model: {request_params['model']}, {len(messages)} messages")

        try:
            response = await self.client.messages.create(**request_params)
        except anthropic.AuthenticationError as e:
            raise ProviderAuthError("Invalid Anthropic API key") from e
        except anthropic.RateLimitError as e:
            raise ProviderRateLimitError("Rate limit exceeded. Please try again later.") from e
        except anthropic.APIStatusError as e:
            logger.error(f"Anthropic API error {e.status_code}: {e.message}")
            raise UpstreamProviderError(upstream_error_message(e.body, e.message or "Anthropic API error")) from e
        except anthropic.APIConnectionError as e:
            logger.error(f"Failed to reach Anthropic API: {e}")
            raise ProviderConnectionError("Failed to connect to Anthropic API") from e

        return self._parse_response(response)

    def _parse_response(self, response: Any) -> LLMResponse:
        """Collect text and ``tool_use`` blocks from a Messages API response."""
        text_parts: list[str] = []
        tool_calls: list[ToolCall] = []

        for block in response.content:
            if block.type == "text":
                text_parts.append(block.text)
            elif block.type == "tool_use":
                tool_calls.append(ToolCall(id=block.id, name=block.name, arguments=dict(block.input or {})))
            else:
                logger.warning(f"Unknown content block type: {block.type}")

        text = "".join(text_parts)
        if not text and not tool_calls:
            raise UpstreamProviderError("Empty response from Anthropic", code="EMPTY_RESPONSE")

        logger.debug(f"Response received - Stop reason: {response.stop_reason}, tool calls: {len(tool_calls)}")
        return LLMResponse(text=text, tool_calls=tool_calls)
