"""Request and response models for the REST API."""

from datetime import datetime
from typing import Any

from supportdesk.models.chat import Conversation, Message, Tenant, TenantSettings, User, VisitorConversation
from supportdesk.models.llm import CamelModel


class PublicChatRequest(CamelModel):
    """Body of ``POST /api/chat/{slug}/message``.

    Fields are checked by the service so missing values get specific error codes.
    """

    message: Any = None
    visitor_id: Any = None
    conversation_id: str | None = None


class InternalChatRequest(CamelModel):
    """Body of ``POST /api/internal/chat/message``."""

    message: Any = None
    session_id: str | None = None


class ExecutedToolCall(CamelModel):
    name: str
    arguments: dict[str, Any]


class ChatResponse(CamelModel):
    """Reply to a chat message."""

    message: Message
    conversation_id: str
    is_new_conversation: bool | None = None
    proposed_actions: list[str] | None = None
    tool_calls: list[ExecutedToolCall] | None = None


class MessagesResponse(CamelModel):
    messages: list[Message]


class ConversationSummary(CamelModel):
    id: str
    created_at: datetime
    updated_at: datetime


class ConversationSummaries(CamelModel):
    conversations: list[ConversationSummary]


class ConversationList(CamelModel):
    conversations: list[Conversation]


class VisitorConversationList(CamelModel):
    conversations: list[VisitorConversation]


class ConversationPage(CamelModel):
    conversations: list[Conversation]
    total: int


class ConversationDetails(CamelModel):
    conversation: Conversation
    messages: list[Message]


class StatusUpdateRequest(CamelModel):
    status: str | None = None


class TenantPublicInfo(CamelModel):
    name: str
    slug: str
    welcome_message: str | None = None
    brand_color: str | None = None


class OwnerRegisterRequest(CamelModel):
    email: str | None = None
    password: str | None = None
    name: str | None = None
    business_name: str | None = None
    business_slug: str | None = None


class CustomerRegisterRequest(CamelModel):
    email: str | None = None
    password: str | None = None
    name: str | None = None
    visitor_id: str | None = None


class LoginRequest(CamelModel):
    email: str | None = None
    password: str | None = None
    visitor_id: str | None = None


class UserSummary(CamelModel):
    id: str
    email: str | None = None
    name: str | None = None
    role: str

    @classmethod
    def from_user(cls, user: User) -> "UserSummary":
        return cls(id=user.id, email=user.email, name=user.name, role=user.role)


class TenantSummary(CamelModel):
    id: str
    slug: str
    name: str
    settings: TenantSettings | None = None

    @classmethod
    def from_tenant(cls, tenant: Tenant, include_settings: bool = False) -> "TenantSummary":
        return cls(
            id=tenant.id,
            slug=tenant.slug,
            name=tenant.name,
            settings=tenant.settings if include_settings else None,
        )


class AuthResponse(CamelModel):
    token: str
    user: UserSummary
    tenant: TenantSummary | None = None


class MeResponse(CamelModel):
    user: UserSummary
    tenant: TenantSummary | None = None
    linked_tenants: int | None = None


class SuccessResponse(CamelModel):
    success: bool = True


class HealthResponse(CamelModel):
    status: str = "ok"
