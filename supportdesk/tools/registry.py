"""Tools registry for managing AI assistant tools."""

from typing import Any

from supportdesk.models.llm import ToolCall, ToolResult
from supportdesk.tools.base import BaseTool, ToolDefinition, ToolFormat
from supportdesk.tools.schedule_appointment import ScheduleAppointmentTool
from supportdesk.utils.logging import get_logger

logger = get_logger(__name__)


class ToolsRegistry:
    """Registry for managing AI assistant tools."""

    def __init__(self, tools: list[BaseTool] | None = None):
        self._tools: dict[str, BaseTool] = {}
        for tool in tools or []:
            self.register(tool)

    def register(self, tool: BaseTool) -> None:
        """Register a tool, replacing any tool with the same name."""
        self._tools[tool.name] = tool

    def get(self, name: str) -> BaseTool | None:
        return self._tools.get(name)

    def get_all(self) -> list[BaseTool]:
        return list(self._tools.values())

    def definitions(self) -> list[ToolDefinition]:
        return [tool.definition for tool in self._tools.values()]

    def get_tool_names(self) -> list[str]:
        """Get list of all registered tool names."""
        return list(self._tools.keys())

    def has_tool(self, name: str) -> bool:
        """Check if a tool is registered."""
        return name in self._tools

    def get_all_provider_tools(self, tool_format: ToolFormat) -> list[dict[str, Any]]:
        """Translate every tool into the given provider's declaration shape."""
        return [tool.to_provider_format(tool_format) for tool in self._tools.values()]

    async def execute_tool_calls(self, tool_calls: list[ToolCall]) -> list[ToolResult]:
        """Execute tool calls in order, one result per call.

        Failures never abort the batch: an unknown tool or a raised exception
        becomes an unsuccessful result tagged with the call id.
        """
        results: list[ToolResult] = []

        for call in tool_calls:
            tool = self.get(call.name)
            if tool is None:
                logger.warning(f"Model requested unknown tool: {call.name}")
                results.append(ToolResult(tool_call_id=call.id, success=False, error=f"Unknown tool: {call.name}"))
                continue

            try:
                result = await tool.execute(call.arguments)
            except Exception as e:
                logger.error(f"Tool {call.name} raised: {e}", exc_info=True)
                results.append(ToolResult(tool_call_id=call.id, success=False, error=str(e) or "Tool execution failed"))
                continue

            results.append(result.model_copy(update={"tool_call_id": call.id}))
            logger.debug(f"Tool {call.name} ({call.id}) success={result.success}")

        return results


def create_default_registry() -> ToolsRegistry:
    """Build the registry with every shipped tool."""
    return ToolsRegistry([ScheduleAppointmentTool()])
