"""Domain records and API payloads for conversations, tenants and users."""

from datetime import datetime
from typing import Any, Literal

from pydantic import Field

from supportdesk.models.llm import CamelModel

MessageRole = Literal["user", "assistant"]
ConversationStatus = Literal["active", "archived", "resolved"]
UserRole = Literal["owner", "admin", "customer"]
AuthProvider = Literal["credentials", "system", "anonymous"]

CONVERSATION_STATUSES: tuple[str, ...] = ("active", "archived", "resolved")


class Message(CamelModel):
    """A single chat message; immutable once stored."""

    id: str
    conversation_id: str
    role: MessageRole
    content: str
    timestamp: datetime
    proposed_actions: list[str] | None = None


class Customer(CamelModel):
    """Tenant-scoped identity of a website visitor."""

    id: str
    tenant_id: str
    visitor_id: str
    user_id: str | None = None
    email: str | None = None
    name: str | None = None
    metadata: dict[str, Any] = Field(default_factory=dict)
    created_at: datetime | None = None
    updated_at: datetime | None = None


class Conversation(CamelModel):
    """A chat thread, optionally owned by a tenant and customer."""

    id: str
    tenant_id: str | None = None
    customer_id: str | None = None
    status: ConversationStatus = "active"
    is_lead: bool = True
    lead_converted_at: datetime | None = None
    metadata: dict[str, Any] = Field(default_factory=dict)
    created_at: datetime
    updated_at: datetime
    customer: Customer | None = None
    messages: list[Message] | None = None


class TenantSettings(CamelModel):
    welcome_message: str | None = None
    brand_color: str | None = None
    business_hours: str | None = None


class Tenant(CamelModel):
    """A business account owning customers and conversations."""

    id: str
    slug: str
    name: str
    owner_id: str
    settings: TenantSettings = Field(default_factory=TenantSettings)
    created_at: datetime
    updated_at: datetime


class User(CamelModel):
    """A registered owner, admin or customer."""

    id: str
    email: str | None = None
    phone: str | None = None
    password_hash: str | None = Field(default=None, exclude=True)
    name: str | None = None
    role: UserRole
    auth_provider: AuthProvider = "credentials"
    auth_provider_id: str | None = None
    fingerprint_id: str | None = None
    email_verified: bool = False
    created_at: datetime
    updated_at: datetime


class ConversationFilters(CamelModel):
    status: ConversationStatus | None = None
    is_lead: bool | None = None
    limit: int = 50
    offset: int = 0


class VisitorConversation(CamelModel):
    """Conversation summary listed for a visitor across tenants."""

    id: str
    tenant_slug: str
    tenant_name: str
    status: ConversationStatus
    updated_at: datetime


class RecentActivity(CamelModel):
    conversation_id: str
    customer_name: str | None = None
    last_message: str
    timestamp: datetime


class DashboardStats(CamelModel):
    total_conversations: int
    active_leads: int
    converted_leads: int
    resolved_conversations: int
    recent_activity: list[RecentActivity]
