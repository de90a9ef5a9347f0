"""LLM service for high-level reply generation."""

from collections.abc import Sequence

from supportdesk.clients.base import LLMProvider
from supportdesk.clients.parsing import parse_structured_response
from supportdesk.graphs.orchestration import LLMOrchestrator
from supportdesk.models.chat import Message
from supportdesk.models.llm import GenerateOptions, StructuredLLMResponse
from supportdesk.tools.registry import ToolsRegistry
from supportdesk.utils.logging import get_logger

logger = get_logger(__name__)


class LLMService:
    """Entry point for chat services: plain replies and tool-augmented replies."""

    def __init__(self, provider: LLMProvider, registry: ToolsRegistry, max_tool_iterations: int = 5):
        """Initialize LLM service.

        Args:
            provider: Configured LLM adapter
            registry: Tools available to structured replies
            max_tool_iterations: Ceiling on provider round-trips per message
        """
        self.provider = provider
        self.registry = registry
        self.orchestrator = LLMOrchestrator(provider, registry, max_iterations=max_tool_iterations)

    async def generate_reply(
        self,
        history: Sequence[Message],
        user_message: str,
        options: GenerateOptions | None = None,
    ) -> str:
        """Single tool-less round-trip returning just the answer text."""
        response = await self.provider.generate_reply(history, user_message, options)
        return parse_structured_response(response.text).answer

    async def generate_structured_reply(
        self,
        history: Sequence[Message],
        user_message: str,
        options: GenerateOptions | None = None,
    ) -> StructuredLLMResponse:
        """Tool-augmented reply parsed into answer and proposed actions."""
        logger.debug(f"Structured reply with tools: {self.registry.get_tool_names()}")
        return await self.orchestrator.run(history, user_message, options)
