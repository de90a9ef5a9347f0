"""Tool-augmented reply graph: generate, execute tools, continue, repeat."""

from collections.abc import Sequence

from langgraph.graph import END, StateGraph

from supportdesk.clients.base import LLMProvider
from supportdesk.clients.parsing import parse_structured_response
from supportdesk.graphs.edges import route_provider_output
from supportdesk.graphs.nodes import OrchestrationNodes
from supportdesk.graphs.state import OrchestrationState
from supportdesk.models.chat import Message
from supportdesk.models.llm import GenerateOptions, StructuredLLMResponse
from supportdesk.tools.registry import ToolsRegistry
from supportdesk.utils.logging import get_logger

logger = get_logger(__name__)


def create_orchestration_graph(provider: LLMProvider, registry: ToolsRegistry):
    """Create the reply graph.

    ``generate`` and ``continue`` each make one provider round-trip and are
    followed by a routing decision; ``execute_tools`` always feeds
    ``continue``.

    Args:
        provider: LLM adapter used for every round-trip
        registry: Tools offered to the model and used to execute its calls

    Returns:
        Compiled LangGraph workflow
    """
    nodes = OrchestrationNodes(provider, registry)

    workflow = StateGraph(OrchestrationState)

    workflow.add_node("generate", nodes.generate)
    workflow.add_node("execute_tools", nodes.execute_tools)
    workflow.add_node("continue", nodes.continue_with_results)

    workflow.set_entry_point("generate")

    workflow.add_conditional_edges(
        "generate",
        route_provider_output,
        {
            "execute_tools": "execute_tools",
            "end": END,
        },
    )
    workflow.add_edge("execute_tools", "continue")
    workflow.add_conditional_edges(
        "continue",
        route_provider_output,
        {
            "execute_tools": "execute_tools",
            "end": END,
        },
    )

    return workflow.compile()


class LLMOrchestrator:
    """Runs the reply graph for one user message."""

    def __init__(self, provider: LLMProvider, registry: ToolsRegistry, max_iterations: int = 5):
        if max_iterations < 1:
            raise ValueError("max_iterations must be at least 1")

        self.provider = provider
        self.registry = registry
        self.max_iterations = max_iterations
        self.graph = create_orchestration_graph(provider, registry)

    async def run(
        self,
        history: Sequence[Message],
        user_message: str,
        options: GenerateOptions | None = None,
    ) -> StructuredLLMResponse:
        """Produce a structured reply, executing requested tools along the way.

        Args:
            history: Prior conversation messages, oldest first
            user_message: The message being answered
            options: Generation parameters for every round-trip

        Returns:
            Parsed answer and proposed actions of the last response, plus every
            tool call that was executed

        Raises:
            UpstreamProviderError: If any provider round-trip fails
        """
        initial_state = OrchestrationState(
            history=list(history),
            user_message=user_message,
            options=options or GenerateOptions(),
            max_iterations=self.max_iterations,
        )

        # Each round-trip after the first costs two graph steps.
        config = {"recursion_limit": 2 * self.max_iterations + 2}

        result = await self.graph.ainvoke(initial_state, config)
        final_state = OrchestrationState.model_validate(result)

        logger.info(
            f"Reply finished after {final_state.iterations} round-trips, "
            f"{len(final_state.executed_tool_calls)} tool calls executed"
        )

        text = final_state.response.text if final_state.response else ""
        structured = parse_structured_response(text)
        if final_state.executed_tool_calls:
            structured.tool_calls = list(final_state.executed_tool_calls)
        return structured
