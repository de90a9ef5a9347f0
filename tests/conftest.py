"""Shared fixtures: in-memory database, scripted LLM provider, test app."""

from collections.abc import Sequence

import pytest
from fastapi.testclient import TestClient

from supportdesk.config import Settings
from supportdesk.db.database import create_db_engine, init_db
from supportdesk.db.repositories import Repositories
from supportdesk.main import create_app
from supportdesk.models.chat import Message
from supportdesk.models.llm import GenerateOptions, LLMResponse, ToolCall, ToolResult
from supportdesk.tools.registry import ToolsRegistry


class FakeProvider:
    """LLM provider that replays queued responses and records every call."""

    tool_format = "openai"

    def __init__(self, responses: Sequence[LLMResponse] | None = None) -> None:
        self.responses = list(responses or [])
        self.calls: list[dict] = []

    def queue(self, *responses: LLMResponse) -> None:
        self.responses.extend(responses)

    def _next(self) -> LLMResponse:
        if not self.responses:
            return LLMResponse(text='{"answer": "Happy to help!", "proposed_actions": []}')
        return self.responses.pop(0)

    async def generate_reply(
        self,
        history: Sequence[Message],
        user_message: str,
        options: GenerateOptions | None = None,
        tools: ToolsRegistry | None = None,
    ) -> LLMResponse:
        self.calls.append(
            {"kind": "generate", "history": list(history), "user_message": user_message, "options": options, "tools": tools}
        )
        return self._next()

    async def continue_with_tool_results(
        self,
        history: Sequence[Message],
        user_message: str,
        previous_response: LLMResponse,
        tool_results: Sequence[ToolResult],
        options: GenerateOptions | None = None,
        tools: ToolsRegistry | None = None,
    ) -> LLMResponse:
        self.calls.append(
            {
                "kind": "continue",
                "previous_response": previous_response,
                "tool_results": list(tool_results),
                "options": options,
            }
        )
        return self._next()


def tool_call_response(*calls: tuple[str, str, dict]) -> LLMResponse:
    """Provider response requesting ``(id, name, arguments)`` tool calls."""
    return LLMResponse(text="", tool_calls=[ToolCall(id=i, name=n, arguments=a) for i, n, a in calls])


@pytest.fixture
def settings() -> Settings:
    """Settings for an isolated in-process app."""
    return Settings(
        environment="test",
        database_url="sqlite://",
        create_schema=True,
        redis_enabled=False,
        llm_provider="openai",
        llm_api_key="test-key",
        jwt_secret="test-secret",
        bcrypt_rounds=4,
        chat_rate_limit=10,
        chat_rate_window_ms=60_000,
        log_level="WARNING",
    )


@pytest.fixture
def fake_provider() -> FakeProvider:
    return FakeProvider()


@pytest.fixture
def client(settings: Settings, fake_provider: FakeProvider):
    """Test client with startup and shutdown run."""
    with TestClient(create_app(settings, fake_provider)) as test_client:
        yield test_client


@pytest.fixture
def container(client: TestClient):
    return client.app.state.container


@pytest.fixture
def repos() -> Repositories:
    """Repositories over a fresh in-memory database."""
    engine = create_db_engine("sqlite://")
    init_db(engine)
    yield Repositories.from_engine(engine)
    engine.dispose()
