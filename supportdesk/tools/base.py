"""Base types and definitions for tools."""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Literal

from supportdesk.models.llm import ToolResult

ToolFormat = Literal["openai", "anthropic"]


@dataclass
class ToolParameter:
    """One entry of a tool's flat parameter schema."""

    type: str | list[str]
    description: str
    enum: list[str] | None = None

    def to_schema(self) -> dict[str, Any]:
        schema: dict[str, Any] = {"type": self.type, "description": self.description}
        if self.enum is not None:
            schema["enum"] = list(self.enum)
        return schema


@dataclass
class ToolDefinition:
    """Definition of a tool available to the AI assistant."""

    name: str
    description: str
    properties: dict[str, ToolParameter] = field(default_factory=dict)
    required: list[str] = field(default_factory=list)

    def get_json_schema(self) -> dict[str, Any]:
        """Get JSON schema for this tool's input."""
        return {
            "type": "object",
            "properties": {name: param.to_schema() for name, param in self.properties.items()},
            "required": list(self.required),
        }


class BaseTool(ABC):
    """A server-side capability the model may invoke.

    Subclasses declare a :class:`ToolDefinition` and implement ``execute``.
    Validation problems are reported as a failed :class:`ToolResult`; the
    registry attaches the originating call id.
    """

    definition: ToolDefinition

    @property
    def name(self) -> str:
        return self.definition.name

    @abstractmethod
    async def execute(self, args: dict[str, Any]) -> ToolResult:
        """Run the tool with model-supplied arguments."""

    def to_openai_format(self) -> dict[str, Any]:
        """Chat Completions function declaration (strict mode)."""
        schema = self.definition.get_json_schema()
        return {
            "type": "function",
            "function": {
                "name": self.definition.name,
                "description": self.definition.description,
                "parameters": {**schema, "additionalProperties": False},
                "strict": True,
            },
        }

    def to_anthropic_format(self) -> dict[str, Any]:
        """Anthropic Messages tool declaration."""
        return {
            "name": self.definition.name,
            "description": self.definition.description,
            "input_schema": self.definition.get_json_schema(),
        }

    def to_provider_format(self, tool_format: ToolFormat) -> dict[str, Any]:
        if tool_format == "openai":
            return self.to_openai_format()
        if tool_format == "anthropic":
            return self.to_anthropic_format()
        raise ValueError(f"Unsupported tool format: {tool_format}")
