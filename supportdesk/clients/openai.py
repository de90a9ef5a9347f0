"""OpenAI Chat Completions adapter."""

import json
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

import openai
from openai import AsyncOpenAI

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
class OpenAIConfig:
    """Configuration for OpenAI API client."""

    model: str = "gpt-3.5-turbo"
    max_tokens: int = DEFAULT_MAX_TOKENS
    temperature: float = DEFAULT_TEMPERATURE


class OpenAIProvider:
    """Chat provider backed by OpenAI's Chat Completions API."""

    tool_format = "openai"

    def __init__(
        self,
        api_key: str | None = None,
        config: OpenAIConfig | None = None,
        client: AsyncOpenAI | None = None,
    ):
        if client is None and not api_key:
            raise ValueError("LLM_API_KEY environment variable is required")

        self.config = config or OpenAIConfig()
        self.client = client or AsyncOpenAI(api_key=api_key, max_retries=0)

    async def generate_reply(
        self,
        history: Sequence[Message],
        user_message: str,
        options: GenerateOptions | None = None,
        tools: ToolsRegistry | None = None,
    ) -> LLMResponse:
        return await self._create_completion(self._build_messages(history, user_message, tools), options, tools)

    async def continue_with_tool_results(
        self,
        history: Sequence[Message],
        user_message: str,
        previous_response: LLMResponse,
        tool_results: Sequence[ToolResult],
        options: GenerateOptions | None = None,
        tools: ToolsRegistry | None = None,
    ) -> LLMResponse:
        messages = self._build_messages(history, user_message, tools)
        messages.append(
            {
                "role": "assistant",
                "content": previous_response.text or None,
                "tool_calls": [
                    {
                        "id": call.id,
                        "type": "function",
                        "function": {"name": call.name, "arguments": json.dumps(call.arguments)},
                    }
                    for call in previous_response.tool_calls
                ],
            }
        )
        for result in tool_results:
            messages.append({"role": "tool", "tool_call_id": result.tool_call_id, "content": serialize_tool_result(result)})

        return await self._create_completion(messages, options, tools)

    def _build_messages(
        self, history: Sequence[Message], user_message: str, tools: ToolsRegistry | None
    ) -> list[dict[str, Any]]:
        messages: list[dict[str, Any]] = [{"role": "system", "content": build_system_prompt(tools)}]
        context = build_conversation_context(history)
        if context:
            messages.append({"role": "system", "content": f"Previous conversation:\n{context}"})
        messages.append({"role": "user", "content": user_message})
        return messages

    async def _create_completion(
        self,
        messages: list[dict[str, Any]],
        options: GenerateOptions | None,
        tools: ToolsRegistry | None,
    ) -> LLMResponse:
        options = options or GenerateOptions()
        request_params: dict[str, Any] = {
            "model": self.config.model,
            "messages": messages,
            "max_tokens": options.max_tokens if options.max_tokens is not None else self.config.max_tokens,
            "temperature": options.temperature if options.temperature is not None else self.config.temperature,
        }
        if tools is not None and tools.get_tool_names():
            request_params["tools"] = tools.get_all_provider_tools(self.tool_format)

        logger.debug(f"Making OpenAI API call with model: {request_params['model']}, {len(messages)} messages")

        try:
            completion = await self.client.chat.completions.create(**request_params)
        except openai.AuthenticationError as e:
            raise ProviderAuthError("Invalid OpenAI API key") from e
        except openai.RateLimitError as e:
            raise ProviderRateLimitError("Rate limit exceeded. Please try again later.") from e
        except openai.APIStatusError as e:
            logger.error(f"OpenAI API error {e.status_code}: {e.message}")
            raise UpstreamProviderError(upstream_error_message(e.body, e.message or "OpenAI API error")) from e
        except openai.APIConnectionError as e:
            logger.error(f"Failed to reach OpenAI API: {e}")
            raise ProviderConnectionError("Failed to connect to OpenAI API") from e

        return self._parse_completion(completion)

    def _parse_completion(self, completion: Any) -> LLMResponse:
        message = completion.choices[0].message if completion.choices else None
        text = (message.content or "") if message else ""

        tool_calls: list[ToolCall] = []
        for call in (message.tool_calls or []) if message else []:
            tool_calls.append(
                ToolCall(id=call.id, name=call.function.name, arguments=_parse_arguments(call.function.arguments))
            )

        if not text and not tool_calls:
            raise UpstreamProviderError("Empty response from OpenAI", code="EMPTY_RESPONSE")

        return LLMResponse(text=text, tool_calls=tool_calls)


def _parse_arguments(raw: str | None) -> dict[str, Any]:
    """Decode a function-call argument string; malformed input yields ``{}``."""
    if not raw:
        return {}
    try:
        arguments = json.loads(raw)
    except json.JSONDecodeError:
        logger.warning(f"Could not decode tool call arguments: {raw!r}")
        return {}
    return arguments if isinstance(arguments, dict) else {}
