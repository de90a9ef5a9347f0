"""Customer-facing chat endpoints, addressed by tenant slug."""

from typing import Annotated

from fastapi import APIRouter, Query

from supportdesk.api.dependencies import Container
from supportdesk.models.api import (
    ChatResponse,
    ConversationSummaries,
    MessagesResponse,
    PublicChatRequest,
    TenantPublicInfo,
)
from supportdesk.utils.logging import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/chat", tags=["Public chat"])

VisitorIdQuery = Annotated[str | None, Query(alias="visitorId")]


@router.post("/{slug}/message", response_model=ChatResponse, response_model_exclude_none=True)
async def send_message(slug: str, request: PublicChatRequest, container: Container) -> ChatResponse:
    """Answer a visitor's message with the tenant's assistant.

    Starts a new lead conversation on first contact; otherwise continues the
    given conversation or the visitor's latest active one.
    """
    logger.info(f"Chat message for {slug} from visitor {request.visitor_id}")
    return await container.public_chat.process_message(
        slug,
        visitor_id=request.visitor_id,
        message=request.message,
        conversation_id=request.conversation_id,
    )


@router.get("/{slug}/conversations/{conversation_id}", response_model=MessagesResponse)
def get_conversation_history(
    slug: str, conversation_id: str, container: Container, visitor_id: VisitorIdQuery = None
) -> MessagesResponse:
    messages = container.public_chat.get_conversation_history(slug, conversation_id, visitor_id)
    return MessagesResponse(messages=messages)


@router.get("/{slug}/info", response_model=TenantPublicInfo)
def get_tenant_info(slug: str, container: Container) -> TenantPublicInfo:
    return container.public_chat.get_tenant_public_info(slug)


@router.get("/{slug}/conversations", response_model=ConversationSummaries)
def list_visitor_conversations(
    slug: str, container: Container, visitor_id: VisitorIdQuery = None
) -> ConversationSummaries:
    conversations = container.public_chat.get_visitor_conversations(slug, visitor_id)
    return ConversationSummaries(conversations=conversations)
