"""Customer-facing chat, addressed by tenant slug and anonymous visitor id."""

import asyncio
from typing import Any

from supportdesk.db.repositories import Repositories
from supportdesk.errors import (
    AppError,
    ForbiddenError,
    InternalError,
    NotFoundError,
    RateLimitError,
    ValidationError,
)
from supportdesk.models.api import ChatResponse, ConversationSummary, ExecutedToolCall, TenantPublicInfo
from supportdesk.models.chat import Conversation, Customer, Message, Tenant
from supportdesk.models.llm import GenerateOptions, StructuredLLMResponse
from supportdesk.services.chat import validate_message
from supportdesk.services.llm import LLMService
from supportdesk.services.rate_limiter import RateLimiter
from supportdesk.utils.logging import get_logger

logger = get_logger(__name__)

TOOL_REPLY_OPTIONS = GenerateOptions(max_tokens=1000, temperature=0.7)

FALLBACK_ANSWER = "I'm sorry, I wasn't able to complete that request. Could you rephrase it or try again?"


class PublicChatService:
    """Handles website visitors chatting with a tenant's assistant.

    A message is validated, attached to the visitor's conversation (created on
    first contact as a lead), rate limited per tenant and customer, then
    answered by the tool-augmented reply graph.
    """

    def __init__(
        self,
        repositories: Repositories,
        llm_service: LLMService,
        rate_limiter: RateLimiter,
        rate_limit: int = 10,
        rate_window_ms: int = 60_000,
    ):
        self.repos = repositories
        self.llm = llm_service
        self.rate_limiter = rate_limiter
        self.rate_limit = rate_limit
        self.rate_window_ms = rate_window_ms

    async def process_message(
        self,
        slug: str,
        visitor_id: Any,
        message: Any,
        conversation_id: str | None = None,
    ) -> ChatResponse:
        """Answer one visitor message.

        Args:
            slug: Public tenant identifier
            visitor_id: Anonymous id generated by the widget
            message: Raw message text
            conversation_id: Conversation to continue; defaults to the
                visitor's latest active conversation

        Returns:
            The stored assistant message with proposed actions and the tools
            that ran

        Raises:
            ValidationError: Missing visitor id, or an empty or oversized message
            NotFoundError: Unknown tenant or conversation
            ForbiddenError: Conversation belongs to another tenant or visitor
            RateLimitError: Too many messages in the current window
            UpstreamProviderError: The LLM provider failed
        """
        _require_visitor_id(visitor_id)
        text = validate_message(message)

        conversation, is_new, history = await asyncio.to_thread(
            self._record_user_message, slug, visitor_id, text, conversation_id
        )

        reply = await self._generate(history, text, conversation.id)
        answer = reply.answer.strip() or FALLBACK_ANSWER

        ai_message = await asyncio.to_thread(
            self._record_reply, conversation.id, answer, reply.proposed_actions
        )

        tool_calls = None
        if reply.tool_calls:
            tool_calls = [ExecutedToolCall(name=call.name, arguments=call.arguments) for call in reply.tool_calls]

        return ChatResponse(
            message=ai_message,
            conversation_id=conversation.id,
            is_new_conversation=is_new,
            proposed_actions=reply.proposed_actions,
            tool_calls=tool_calls,
        )

    def _record_user_message(
        self, slug: str, visitor_id: str, text: str, conversation_id: str | None
    ) -> tuple[Conversation, bool, list[Message]]:
        tenant = self._get_tenant(slug)
        customer = self.repos.customers.find_or_create(tenant.id, visitor_id)
        conversation, is_new = self._resolve_conversation(tenant, customer, conversation_id)

        rate_key = f"{tenant.id}:{customer.id}"
        if not self.rate_limiter.check(rate_key, self.rate_limit, self.rate_window_ms):
            raise RateLimitError(
                "Too many messages. Please wait a moment before sending another message.",
                code="RATE_LIMIT_EXCEEDED",
            )

        self.repos.messages.create(conversation.id, "user", text)
        history = self.repos.messages.list_by_conversation(conversation.id)
        return conversation, is_new, history

    def _record_reply(self, conversation_id: str, answer: str, proposed_actions: list[str]) -> Message:
        ai_message = self.repos.messages.create(
            conversation_id, "assistant", answer, proposed_actions=proposed_actions
        )
        self.repos.conversations.touch(conversation_id)
        return ai_message

    def get_conversation_history(self, slug: str, conversation_id: str, visitor_id: Any) -> list[Message]:
        _require_visitor_id(visitor_id)
        tenant = self._get_tenant(slug)

        customer = self.repos.customers.find_by_visitor_id(tenant.id, visitor_id)
        if customer is None:
            raise NotFoundError("Customer not found", code="CUSTOMER_NOT_FOUND")

        conversation = self.repos.conversations.get(conversation_id)
        if conversation is None:
            raise NotFoundError("Conversation not found", code="CONVERSATION_NOT_FOUND")
        if conversation.tenant_id != tenant.id or conversation.customer_id != customer.id:
            raise ForbiddenError("Access denied", code="FORBIDDEN")

        return self.repos.messages.list_by_conversation(conversation_id)

    def get_tenant_public_info(self, slug: str) -> TenantPublicInfo:
        tenant = self._get_tenant(slug)
        return TenantPublicInfo(
            name=tenant.name,
            slug=tenant.slug,
            welcome_message=tenant.settings.welcome_message,
            brand_color=tenant.settings.brand_color,
        )

    def get_visitor_conversations(self, slug: str, visitor_id: Any) -> list[ConversationSummary]:
        """All of a visitor's conversations with one tenant, most recent first."""
        _require_visitor_id(visitor_id)
        tenant = self._get_tenant(slug)

        customer = self.repos.customers.find_by_visitor_id(tenant.id, visitor_id)
        if customer is None:
            return []

        return [
            ConversationSummary(id=c.id, created_at=c.created_at, updated_at=c.updated_at)
            for c in self.repos.conversations.find_by_customer_id(customer.id)
        ]

    def _get_tenant(self, slug: str) -> Tenant:
        tenant = self.repos.tenants.find_by_slug(slug)
        if tenant is None:
            raise NotFoundError("Business not found", code="TENANT_NOT_FOUND")
        return tenant

    def _resolve_conversation(
        self, tenant: Tenant, customer: Customer, conversation_id: str | None
    ) -> tuple[Conversation, bool]:
        if conversation_id:
            conversation = self.repos.conversations.get(conversation_id)
            if conversation is None:
                raise NotFoundError("Conversation not found", code="CONVERSATION_NOT_FOUND")
            if conversation.tenant_id != tenant.id or conversation.customer_id != customer.id:
                raise ForbiddenError("Access denied", code="FORBIDDEN")
            return conversation, False

        conversation = self.repos.conversations.find_active_by_tenant_and_customer(tenant.id, customer.id)
        if conversation is not None:
            return conversation, False

        conversation = self.repos.conversations.create(tenant_id=tenant.id, customer_id=customer.id, is_lead=True)
        logger.info(f"New lead conversation {conversation.id} for tenant {tenant.slug}")
        return conversation, True

    async def _generate(self, history: list[Message], text: str, conversation_id: str) -> StructuredLLMResponse:
        try:
            return await self.llm.generate_structured_reply(history, text, TOOL_REPLY_OPTIONS)
        except AppError:
            raise
        except Exception as e:
            logger.error(f"Reply generation failed for {conversation_id}: {e}", exc_info=True)
            raise InternalError("Failed to generate response from AI", code="LLM_GENERATION_FAILED") from e


def _require_visitor_id(visitor_id: Any) -> None:
    if not visitor_id or not isinstance(visitor_id, str):
        raise ValidationError("Visitor ID is required", code="MISSING_VISITOR_ID")
