"""Tenant owner views: conversation management, leads and dashboard."""

from supportdesk.db.repositories import Repositories
from supportdesk.errors import ForbiddenError, InternalError, NotFoundError, ValidationError
from supportdesk.models.api import ConversationDetails, ConversationPage
from supportdesk.models.chat import CONVERSATION_STATUSES, Conversation, ConversationFilters, DashboardStats
from supportdesk.utils.logging import get_logger

logger = get_logger(__name__)

MAX_PAGE_SIZE = 100
DEFAULT_PAGE_SIZE = 50
RECENT_ACTIVITY_LIMIT = 10


def build_filters(
    status: str | None = None,
    is_lead: bool | None = None,
    limit: int | None = None,
    offset: int | None = None,
) -> ConversationFilters:
    """Normalise query parameters: page size is capped, offsets never go negative."""
    if status is not None and status not in CONVERSATION_STATUSES:
        raise ValidationError("Invalid status filter", code="INVALID_STATUS")

    page_size = DEFAULT_PAGE_SIZE if not limit or limit < 1 else min(limit, MAX_PAGE_SIZE)
    return ConversationFilters(status=status, is_lead=is_lead, limit=page_size, offset=max(offset or 0, 0))


class OwnerService:
    """Operations an owner performs on their own tenant's conversations."""

    def __init__(self, repositories: Repositories):
        self.repos = repositories

    def get_conversations(self, tenant_id: str, filters: ConversationFilters | None = None) -> ConversationPage:
        conversations, total = self.repos.conversations.list_by_tenant(tenant_id, filters or ConversationFilters())
        return ConversationPage(conversations=conversations, total=total)

    def get_leads(self, tenant_id: str, limit: int | None = None, offset: int | None = None) -> ConversationPage:
        """Active conversations still marked as leads."""
        return self.get_conversations(tenant_id, build_filters("active", True, limit, offset))

    def get_conversation_details(self, tenant_id: str, conversation_id: str) -> ConversationDetails:
        conversation = self.repos.conversations.get_with_customer(conversation_id)
        self._check_access(conversation, tenant_id)

        messages = self.repos.messages.list_by_conversation(conversation_id)
        return ConversationDetails(conversation=conversation, messages=messages)

    def update_conversation_status(self, tenant_id: str, conversation_id: str, status: str | None) -> Conversation:
        if not status or status not in CONVERSATION_STATUSES:
            raise ValidationError("Invalid status", code="INVALID_STATUS")

        self._check_access(self.repos.conversations.get(conversation_id), tenant_id)

        updated = self.repos.conversations.update_status(conversation_id, status)
        if updated is None:
            raise InternalError("Failed to update conversation", code="UPDATE_FAILED")
        logger.info(f"Conversation {conversation_id} marked {status}")
        return updated

    def convert_lead(self, tenant_id: str, conversation_id: str) -> Conversation:
        conversation = self.repos.conversations.get(conversation_id)
        self._check_access(conversation, tenant_id)

        if not conversation.is_lead:
            raise ValidationError("Conversation is not a lead", code="NOT_A_LEAD")

        updated = self.repos.conversations.convert_lead(conversation_id)
        if updated is None:
            raise InternalError("Failed to convert lead", code="CONVERSION_FAILED")
        logger.info(f"Lead {conversation_id} converted")
        return updated

    def get_dashboard_stats(self, tenant_id: str) -> DashboardStats:
        stats = self.repos.conversations.get_stats(tenant_id)
        activity = self.repos.conversations.get_recent_activity(tenant_id, limit=RECENT_ACTIVITY_LIMIT)
        return DashboardStats(**stats, recent_activity=activity)

    def _check_access(self, conversation: Conversation | None, tenant_id: str) -> None:
        if conversation is None:
            raise NotFoundError("Conversation not found", code="CONVERSATION_NOT_FOUND")
        if conversation.tenant_id != tenant_id:
            raise ForbiddenError("Access denied", code="FORBIDDEN")
