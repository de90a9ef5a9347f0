"""Owner dashboard endpoints; every route requires an owner token with a tenant."""

from typing import Annotated

from fastapi import APIRouter, Query

from supportdesk.api.dependencies import Container, OwnerAuth
from supportdesk.models.api import ConversationDetails, ConversationPage, StatusUpdateRequest
from supportdesk.models.chat import Conversation, DashboardStats
from supportdesk.services.owner import build_filters

router = APIRouter(prefix="/owner", tags=["Owner"])


@router.get("/conversations", response_model=ConversationPage, response_model_exclude_none=True)
def list_conversations(
    auth: OwnerAuth,
    container: Container,
    status: str | None = None,
    is_lead: Annotated[str | None, Query(alias="isLead")] = None,
    limit: int | None = None,
    offset: int | None = None,
) -> ConversationPage:
    """Page through the tenant's conversations.

    ``isLead`` is true only for the literal string ``"true"``.
    """
    filters = build_filters(
        status=status or None,
        is_lead=None if is_lead is None else is_lead == "true",
        limit=limit,
        offset=offset,
    )
    return container.owner.get_conversations(auth.tenant_id, filters)


@router.get("/conversations/{conversation_id}", response_model=ConversationDetails, response_model_exclude_none=True)
def get_conversation(conversation_id: str, auth: OwnerAuth, container: Container) -> ConversationDetails:
    return container.owner.get_conversation_details(auth.tenant_id, conversation_id)


@router.patch("/conversations/{conversation_id}/status", response_model=Conversation, response_model_exclude_none=True)
def update_status(
    conversation_id: str, request: StatusUpdateRequest, auth: OwnerAuth, container: Container
) -> Conversation:
    return container.owner.update_conversation_status(auth.tenant_id, conversation_id, request.status)


@router.post("/conversations/{conversation_id}/convert", response_model=Conversation, response_model_exclude_none=True)
def convert_lead(conversation_id: str, auth: OwnerAuth, container: Container) -> Conversation:
    return container.owner.convert_lead(auth.tenant_id, conversation_id)


@router.get("/leads", response_model=ConversationPage, response_model_exclude_none=True)
def list_leads(
    auth: OwnerAuth, container: Container, limit: int | None = None, offset: int | None = None
) -> ConversationPage:
    return container.owner.get_leads(auth.tenant_id, limit=limit, offset=offset)


@router.get("/dashboard/stats", response_model=DashboardStats)
def dashboard_stats(auth: OwnerAuth, container: Container) -> DashboardStats:
    return container.owner.get_dashboard_stats(auth.tenant_id)
