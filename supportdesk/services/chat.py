"""Internal (tenant-less) chat service and shared message checks."""

import asyncio
from typing import Any

from supportdesk.db.repositories import Repositories
from supportdesk.errors import AppError, InternalError, NotFoundError, ValidationError
from supportdesk.models.api import ChatResponse
from supportdesk.models.chat import Conversation, Message
from supportdesk.models.llm import GenerateOptions
from supportdesk.services.llm import LLMService
from supportdesk.utils.logging import get_logger
from supportdesk.utils.validation import validate_max_length

logger = get_logger(__name__)

MAX_MESSAGE_LENGTH = 5000

# Plain replies are short; tool-augmented replies get more room.
PLAIN_REPLY_OPTIONS = GenerateOptions(max_tokens=500, temperature=0.7)


def validate_message(text: Any) -> str:
    """Return the trimmed message or raise a 400 describing the problem."""
    if not text or not isinstance(text, str):
        raise ValidationError("Message is required", code="INVALID_MESSAGE")

    trimmed = text.strip()
    if not trimmed:
        raise ValidationError("Message cannot be empty", code="EMPTY_MESSAGE")
    length = validate_max_length(trimmed, MAX_MESSAGE_LENGTH, "Message")
    if not length.valid:
        raise ValidationError(length.error, code="MESSAGE_TOO_LONG")
    return trimmed


class ChatService:
    """Conversations that belong to no tenant, answered without tools."""

    def __init__(self, repositories: Repositories, llm_service: LLMService):
        self.repos = repositories
        self.llm = llm_service

    async def process_message(self, message: Any, session_id: str | None = None) -> ChatResponse:
        text = validate_message(message)

        conversation_id, history = await asyncio.to_thread(self._record_user_message, text, session_id)

        try:
            reply = await self.llm.generate_reply(history, text, PLAIN_REPLY_OPTIONS)
        except AppError:
            raise
        except Exception as e:
            logger.error(f"Reply generation failed for {conversation_id}: {e}", exc_info=True)
            raise InternalError("Failed to generate response from AI", code="LLM_GENERATION_FAILED") from e

        ai_message = await asyncio.to_thread(self._record_reply, conversation_id, reply)

        return ChatResponse(message=ai_message, conversation_id=conversation_id)

    def _record_user_message(self, text: str, session_id: str | None) -> tuple[str, list[Message]]:
        if session_id:
            if self.repos.conversations.get(session_id) is None:
                raise NotFoundError("Conversation not found", code="CONVERSATION_NOT_FOUND")
            conversation_id = session_id
        else:
            conversation_id = self.repos.conversations.create().id
            logger.info(f"Started internal conversation {conversation_id}")

        self.repos.messages.create(conversation_id, "user", text)
        return conversation_id, self.repos.messages.list_by_conversation(conversation_id)

    def _record_reply(self, conversation_id: str, reply: str) -> Message:
        ai_message = self.repos.messages.create(conversation_id, "assistant", reply)
        self.repos.conversations.touch(conversation_id)
        return ai_message

    def get_conversation_history(self, conversation_id: str) -> list[Message]:
        if self.repos.conversations.get(conversation_id) is None:
            raise NotFoundError("Conversation not found", code="CONVERSATION_NOT_FOUND")
        return self.repos.messages.list_by_conversation(conversation_id)

    def get_all_conversations(self) -> list[Conversation]:
        """The 50 most recently updated conversations."""
        return self.repos.conversations.list_recent(limit=50)

    def delete_conversation(self, conversation_id: str) -> None:
        if self.repos.conversations.get(conversation_id) is None:
            raise NotFoundError("Conversation not found", code="CONVERSATION_NOT_FOUND")
        self.repos.conversations.delete(conversation_id)
        logger.info(f"Deleted conversation {conversation_id}")
