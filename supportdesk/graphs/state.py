"""State definitions for the tool-augmented reply graph."""

import operator
from typing import Annotated, Literal

from pydantic import BaseModel, Field

from supportdesk.models.chat import Message
from supportdesk.models.llm import GenerateOptions, LLMResponse, ToolCall, ToolResult

Phase = Literal["awaiting_initial", "awaiting_tool_execution", "awaiting_continuation", "done"]


class OrchestrationState(BaseModel):
    """State carried through one orchestrated reply.

    ``iterations`` counts provider round-trips; ``executed_tool_calls``
    accumulates across rounds, everything else is replaced by each node.
    """

    history: list[Message] = Field(default_factory=list)
    user_message: str
    options: GenerateOptions = Field(default_factory=GenerateOptions)

    response: LLMResponse | None = None
    tool_results: list[ToolResult] = Field(default_factory=list)
    executed_tool_calls: Annotated[list[ToolCall], operator.add] = Field(default_factory=list)

    iterations: int = 0
    max_iterations: int = 5
    phase: Phase = "awaiting_initial"
