"""LLM provider adapters."""

from supportdesk.clients.anthropic import AnthropicConfig, AnthropicProvider
from supportdesk.clients.base import LLMProvider
from supportdesk.clients.openai import OpenAIConfig, OpenAIProvider
from supportdesk.config import Settings


def create_provider(settings: Settings) -> LLMProvider:
    """Build the provider selected by ``LLM_PROVIDER``."""
    if settings.llm_provider == "anthropic":
        return AnthropicProvider(api_key=settings.llm_api_key, config=AnthropicConfig(model=settings.anthropic_model))
    return OpenAIProvider(api_key=settings.llm_api_key, config=OpenAIConfig(model=settings.openai_model))


__all__ = ["AnthropicProvider", "LLMProvider", "OpenAIProvider", "create_provider"]
