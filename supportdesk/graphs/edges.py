"""Edge logic and routing for the reply graph."""

from typing import Literal

from supportdesk.graphs.state import OrchestrationState, Phase
from supportdesk.models.llm import LLMResponse
from supportdesk.utils.logging import get_logger

logger = get_logger(__name__)


def next_phase(response: LLMResponse, iterations: int, max_iterations: int) -> Phase:
    """Decide what follows a provider response.

    Tool calls are only executed while another round-trip is still allowed;
    at the ceiling the response is final even if it requests tools.
    """
    if not response.has_tool_calls:
        return "done"

    if iterations >= max_iterations:
        logger.warning(
            f"Tool iteration ceiling ({max_iterations}) reached with {len(response.tool_calls)} "
            "pending tool calls, returning last response"
        )
        return "done"

    return "awaiting_tool_execution"


def route_provider_output(state: OrchestrationState) -> Literal["execute_tools", "end"]:
    """Route from a provider node based on the recorded phase."""
    logger.debug(f"Routing after round-trip {state.iterations}, phase: {state.phase}")

    if state.phase == "awaiting_tool_execution":
        return "execute_tools"
    return "end"
