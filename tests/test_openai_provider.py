"""Tests for the OpenAI provider adapter."""

import json
from datetime import UTC, datetime
from types import SimpleNamespace
from unittest.mock import AsyncMock, Mock

import httpx
import openai
import pytest

from supportdesk.clients.openai import OpenAIConfig, OpenAIProvider
from supportdesk.errors import (
    ProviderAuthError,
    ProviderConnectionError,
    ProviderRateLimitError,
    UpstreamProviderError,
)
from supportdesk.models.chat import Message
from supportdesk.models.llm import LLMResponse, ToolCall, ToolResult
from supportdesk.tools import create_default_registry

API_URL = "https://api.openai.com/v1/chat/completions"


def completion(content=None, tool_calls=None):
    message = SimpleNamespace(content=content, tool_calls=tool_calls)
    return SimpleNamespace(choices=[SimpleNamespace(message=message, finish_reason="stop")])


def function_call(call_id, name, arguments):
    return SimpleNamespace(id=call_id, type="function", function=SimpleNamespace(name=name, arguments=arguments))


def status_error(error_class, status_code, body=None):
    response = httpx.Response(status_code, request=httpx.Request("POST", API_URL))
    return error_class("error", response=response, body=body)


@pytest.fixture
def sdk_client():
    client = Mock()
    client.chat.completions.create = AsyncMock(return_value=completion('{"answer": "Hi"}'))
    return client


@pytest.fixture
def provider(sdk_client):
    return OpenAIProvider(config=OpenAIConfig(model="gpt-test"), client=sdk_client)


class TestOpenAIRequest:
    """Tests for request construction."""

    def test_requires_key_or_client(self):
        """Test construction fails without credentials."""
        with pytest.raises(ValueError):
            OpenAIProvider()

    @pytest.mark.asyncio
    async def test_history_sent_as_system_context(self, provider, sdk_client):
        """Test system prompt, history context and user message ordering."""
        now = datetime.now(UTC)
        history = [Message(id="m1", conversation_id="c", role="user", content="Hello", timestamp=now)]

        await provider.generate_reply(history, "Where is my order?")

        params = sdk_client.chat.completions.create.call_args.kwargs
        assert params["model"] == "gpt-test"
        messages = params["messages"]
        assert [m["role"] for m in messages] == ["system", "system", "user"]
        assert messages[1]["content"] == "Previous conversation:\nCustomer: Hello"
        assert messages[2]["content"] == "Where is my order?"
        assert "tools" not in params

    @pytest.mark.asyncio
    async def test_tools_declared_as_functions(self, provider, sdk_client):
        """Test registry tools are sent in function format."""
        await provider.generate_reply([], "Book me in", tools=create_default_registry())

        params = sdk_client.chat.completions.create.call_args.kwargs
        assert [m["role"] for m in params["messages"]] == ["system", "user"]
        assert params["tools"][0]["type"] == "function"
        assert params["tools"][0]["function"]["name"] == "schedule_appointment"

    @pytest.mark.asyncio
    async def test_continuation_appends_tool_messages(self, provider, sdk_client):
        """Test the assistant tool call message and one tool message per result."""
        previous = LLMResponse(
            text="",
            tool_calls=[
                ToolCall(id="call_1", name="schedule_appointment", arguments={"customerName": "Jane"}),
                ToolCall(id="call_2", name="schedule_appointment", arguments={}),
            ],
        )
        results = [
            ToolResult(tool_call_id="call_1", success=True, result={"message": "ok"}),
            ToolResult(tool_call_id="call_2", success=False, error="bad"),
        ]

        await provider.continue_with_tool_results([], "Book", previous, results)

        messages = sdk_client.chat.completions.create.call_args.kwargs["messages"]
        assistant = messages[2]
        assert assistant["role"] == "assistant"
        assert assistant["content"] is None
        assert assistant["tool_calls"][0]["id"] == "call_1"
        assert json.loads(assistant["tool_calls"][0]["function"]["arguments"]) == {"customerName": "Jane"}

        assert messages[3] == {"role": "tool", "tool_call_id": "call_1", "content": '{"message": "ok"}'}
        assert messages[4] == {"role": "tool", "tool_call_id": "call_2", "content": '{"error": "bad"}'}


class TestOpenAIResponse:
    """Tests for completion parsing."""

    @pytest.mark.asyncio
    async def test_tool_calls_parsed(self, provider, sdk_client):
        """Test function calls become tool calls with decoded arguments."""
        sdk_client.chat.completions.create.return_value = completion(
            tool_calls=[function_call("call_1", "schedule_appointment", '{"customerName": "Jane"}')]
        )

        response = await provider.generate_reply([], "Book")

        assert response.text == ""
        assert response.tool_calls == [
            ToolCall(id="call_1", name="schedule_appointment", arguments={"customerName": "Jane"})
        ]

    @pytest.mark.asyncio
    async def test_malformed_arguments_become_empty(self, provider, sdk_client):
        """Test undecodable arguments do not raise."""
        sdk_client.chat.completions.create.return_value = completion(
            tool_calls=[function_call("call_1", "schedule_appointment", "{not json")]
        )

        response = await provider.generate_reply([], "Book")

        assert response.tool_calls[0].arguments == {}

    @pytest.mark.asyncio
    async def test_empty_completion(self, provider, sdk_client):
        """Test a completion with neither content nor tool calls is an error."""
        sdk_client.chat.completions.create.return_value = completion(content="")

        with pytest.raises(UpstreamProviderError) as exc_info:
            await provider.generate_reply([], "Hi")
        assert exc_info.value.code == "EMPTY_RESPONSE"


class TestOpenAIErrors:
    """Tests for SDK error mapping."""

    @pytest.mark.asyncio
    async def test_authentication_error(self, provider, sdk_client):
        sdk_client.chat.completions.create.side_effect = status_error(openai.AuthenticationError, 401)

        with pytest.raises(ProviderAuthError):
            await provider.generate_reply([], "Hi")

    @pytest.mark.asyncio
    async def test_rate_limit_error(self, provider, sdk_client):
        sdk_client.chat.completions.create.side_effect = status_error(openai.RateLimitError, 429)

        with pytest.raises(ProviderRateLimitError):
            await provider.generate_reply([], "Hi")

    @pytest.mark.asyncio
    async def test_server_error(self, provider, sdk_client):
        """Test the upstream error message is preserved."""
        body = {"message": "The server had an error", "type": "server_error"}
        sdk_client.chat.completions.create.side_effect = status_error(openai.InternalServerError, 500, body)

        with pytest.raises(UpstreamProviderError) as exc_info:
            await provider.generate_reply([], "Hi")
        assert exc_info.value.message == "The server had an error"

    @pytest.mark.asyncio
    async def test_connection_error(self, provider, sdk_client):
        sdk_client.chat.completions.create.side_effect = openai.APIConnectionError(
            request=httpx.Request("POST", API_URL)
        )

        with pytest.raises(ProviderConnectionError):
            await provider.generate_reply([], "Hi")
