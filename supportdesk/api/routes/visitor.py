"""Visitor endpoints spanning every tenant a visitor has chatted with."""

from typing import Annotated

from fastapi import APIRouter, Query

from supportdesk.api.dependencies import Container
from supportdesk.models.api import SuccessResponse, VisitorConversationList

router = APIRouter(prefix="/visitor", tags=["Visitor"])

VisitorIdQuery = Annotated[str | None, Query(alias="visitorId")]


@router.get("/conversations", response_model=VisitorConversationList)
def list_conversations(
    container: Container,
    visitor_id: VisitorIdQuery = None,
    limit: int | None = None,
    status: str | None = "active",
    include_conversation_id: Annotated[str | None, Query(alias="includeConversationId")] = None,
) -> VisitorConversationList:
    """Most recent conversations first; ``status=all`` disables the status filter."""
    conversations = container.visitor.list_conversations(
        visitor_id,
        limit=limit,
        status=status,
        include_conversation_id=include_conversation_id,
    )
    return VisitorConversationList(conversations=conversations)


@router.delete("/conversations/{conversation_id}", response_model=SuccessResponse)
def delete_conversation(
    conversation_id: str, container: Container, visitor_id: VisitorIdQuery = None
) -> SuccessResponse:
    container.visitor.delete_conversation(conversation_id, visitor_id)
    return SuccessResponse()
