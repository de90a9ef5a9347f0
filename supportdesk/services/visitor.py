"""Cross-tenant conversation list for an anonymous visitor."""

from supportdesk.db.repositories import Repositories
from supportdesk.errors import NotFoundError, ValidationError
from supportdesk.models.chat import CONVERSATION_STATUSES, VisitorConversation

DEFAULT_LIMIT = 5


class VisitorService:
    def __init__(self, repositories: Repositories):
        self.repos = repositories

    def list_conversations(
        self,
        visitor_id: str | None,
        limit: int | None = DEFAULT_LIMIT,
        status: str | None = "active",
        include_conversation_id: str | None = None,
    ) -> list[VisitorConversation]:
        """Visitor's conversations across tenants; ``status`` of ``None`` or ``"all"`` disables the filter."""
        if not visitor_id:
            raise ValidationError("Visitor ID is required", code="MISSING_VISITOR_ID")

        if status == "all":
            status = None
        if status is not None and status not in CONVERSATION_STATUSES:
            raise ValidationError("Invalid status filter", code="INVALID_STATUS")

        return self.repos.conversations.find_by_visitor_across_tenants(
            visitor_id,
            limit=limit if limit and limit > 0 else DEFAULT_LIMIT,
            status=status,
            include_conversation_id=include_conversation_id or None,
        )

    def delete_conversation(self, conversation_id: str, visitor_id: str | None) -> None:
        if not visitor_id:
            raise ValidationError("Visitor ID is required", code="MISSING_VISITOR_ID")
        if not self.repos.conversations.delete_by_visitor(conversation_id, visitor_id):
            raise NotFoundError("Conversation not found", code="CONVERSATION_NOT_FOUND")
