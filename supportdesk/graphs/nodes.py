"""Node implementations for the reply graph."""

from typing import Any

from supportdesk.clients.base import LLMProvider
from supportdesk.graphs.edges import next_phase
from supportdesk.graphs.state import OrchestrationState
from supportdesk.tools.registry import ToolsRegistry
from supportdesk.utils.logging import get_logger

logger = get_logger(__name__)


class OrchestrationNodes:
    """Graph nodes bound to one provider and tool registry.

    Provider errors are not caught here; they abort the graph run and reach
    the caller unchanged. Tool failures come back as unsuccessful results.
    """

    def __init__(self, provider: LLMProvider, registry: ToolsRegistry):
        self.provider = provider
        self.registry = registry

    async def generate(self, state: OrchestrationState) -> dict[str, Any]:
        """First provider round-trip."""
        logger.info(f"Generating reply ({len(state.history)} history messages)")

        response = await self.provider.generate_reply(
            state.history,
            state.user_message,
            state.options,
            self.registry,
        )
        iterations = 1

        return {
            "response": response,
            "iterations": iterations,
            "phase": next_phase(response, iterations, state.max_iterations),
        }

    async def execute_tools(self, state: OrchestrationState) -> dict[str, Any]:
        """Run every tool call of the last response, one result per call."""
        tool_calls = state.response.tool_calls if state.response else []
        logger.info(f"Executing {len(tool_calls)} tool calls: {[call.name for call in tool_calls]}")

        results = await self.registry.execute_tool_calls(tool_calls)

        return {
            "tool_results": results,
            "executed_tool_calls": tool_calls,
            "phase": "awaiting_continuation",
        }

    async def continue_with_results(self, state: OrchestrationState) -> dict[str, Any]:
        """Send tool results back to the provider."""
        response = await self.provider.continue_with_tool_results(
            state.history,
            state.user_message,
            state.response,
            state.tool_results,
            state.options,
            self.registry,
        )
        iterations = state.iterations + 1
        logger.debug(f"Continuation round-trip {iterations} returned {len(response.tool_calls)} tool calls")

        return {
            "response": response,
            "iterations": iterations,
            "phase": next_phase(response, iterations, state.max_iterations),
        }
