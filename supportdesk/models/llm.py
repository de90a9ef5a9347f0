"""LLM-related data models and types (provider-agnostic)."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

MAX_PROPOSED_ACTIONS = 3


class CamelModel(BaseModel):
    """Base model serialised with camelCase keys."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ToolCall(CamelModel):
    """A function invocation requested by the model."""

    id: str
    name: str
    arguments: dict[str, Any] = Field(default_factory=dict)


class ToolResult(CamelModel):
    """Outcome of executing one tool call."""

    tool_call_id: str = ""
    success: bool
    result: Any = None
    error: str | None = None


class GenerateOptions(BaseModel):
    """Per-request generation parameters; ``None`` falls back to provider defaults."""

    max_tokens: int | None = None
    temperature: float | None = None


class LLMResponse(BaseModel):
    """Common shape returned by every provider adapter."""

    text: str = ""
    tool_calls: list[ToolCall] = Field(default_factory=list)

    @property
    def has_tool_calls(self) -> bool:
        return bool(self.tool_calls)


class StructuredLLMResponse(CamelModel):
    """Final output of one orchestrated reply."""

    answer: str
    proposed_actions: list[str] = Field(default_factory=list, max_length=MAX_PROPOSED_ACTIONS)
    tool_calls: list[ToolCall] | None = None
