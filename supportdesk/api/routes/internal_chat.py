"""Tenant-less chat used for internal testing of the assistant."""

from fastapi import APIRouter

from supportdesk.api.dependencies import Container
from supportdesk.models.api import (
    ChatResponse,
    ConversationList,
    InternalChatRequest,
    MessagesResponse,
    SuccessResponse,
)

router = APIRouter(prefix="/internal/chat", tags=["Internal chat"])


@router.post("/message", response_model=ChatResponse, response_model_exclude_none=True)
async def send_message(request: InternalChatRequest, container: Container) -> ChatResponse:
    return await container.chat.process_message(request.message, session_id=request.session_id)


@router.get("/history/{conversation_id}", response_model=MessagesResponse)
def get_history(conversation_id: str, container: Container) -> MessagesResponse:
    return MessagesResponse(messages=container.chat.get_conversation_history(conversation_id))


@router.get("/conversations", response_model=ConversationList, response_model_exclude_none=True)
def list_conversations(container: Container) -> ConversationList:
    return ConversationList(conversations=container.chat.get_all_conversations())


@router.delete("/conversations/{conversation_id}", response_model=SuccessResponse)
def delete_conversation(conversation_id: str, container: Container) -> SuccessResponse:
    container.chat.delete_conversation(conversation_id)
    return SuccessResponse()
