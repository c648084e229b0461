import logging
from datetime import UTC, datetime
from uuid import UUID

from photogram.config_secrets import EMPTY_RESULT_IS_ERROR
from photogram.core.db import DuplicateRowError
from photogram.models.models import Message, MessageLike, MessageType
from photogram.repositories.chats_repository import ChatsRepository
from photogram.repositories.messages_repository import MessagesRepository
from photogram.services.errors import (
    AlreadyLikedError,
    ChatNotFoundError,
    MessageNotFoundError,
    NoLikesError,
    NoMessagesError,
    NotLikedError,
    NotParticipantError,
    OwnMessageError,
    ServiceError,
    ensure_counter_updated,
    ensure_not_empty,
)

logger = logging.getLogger(__name__)


class MessageService:
    """Messages of a chat; every operation requires membership of the owning chat."""

    def __init__(
        self,
        messages_repository: MessagesRepository,
        chats_repository: ChatsRepository,
        empty_result_is_error: bool = EMPTY_RESULT_IS_ERROR,
    ):
        self.messages_repository = messages_repository
        self.chats_repository = chats_repository
        self.empty_result_is_error = empty_result_is_error

    async def send_text_message(self, chat_id: UUID, sender_id: UUID, text_content: str) -> Message:
        if await self.chats_repository.get_chat(chat_id) is None:
            raise ChatNotFoundError("Chat doesn't exist! Create a chat first")
        await self._ensure_member(chat_id, sender_id)

        message = Message(
            chat_id=chat_id,
            sender_id=sender_id,
            type=MessageType.TEXT,
            text_content=text_content,
            sent_at=datetime.now(UTC),
        )
        if await self.messages_repository.insert_message(message) == 0:
            raise ServiceError("Message wasn't added")
        return message

    async def get_all_chat_messages(self, chat_id: UUID, user_id: UUID) -> list[Message]:
        await self._ensure_member(chat_id, user_id)
        messages = await self.messages_repository.list_chat_messages(chat_id)
        return ensure_not_empty(messages, NoMessagesError, self.empty_result_is_error)

    async def unsend_message(self, message_id: UUID, user_id: UUID) -> bool:
        """Only the sender can unsend a message, and only while still a member of the chat"""
        await self._get_member_message(message_id, user_id)
        if await self.messages_repository.delete_message(message_id, user_id) == 0:
            raise MessageNotFoundError()
        return True

    async def edit_text_message(self, message_id: UUID, text_content: str, user_id: UUID) -> bool:
        await self._get_member_message(message_id, user_id)
        if await self.messages_repository.update_text(message_id, user_id, text_content) == 0:
            raise MessageNotFoundError()
        return True

    async def read_message(self, message_id: UUID, user_id: UUID) -> bool:
        message = await self._get_member_message(message_id, user_id)
        if message.sender_id == user_id:
            raise OwnMessageError()

        if await self.messages_repository.mark_read(message_id) == 0:
            raise MessageNotFoundError()
        return True

    async def like_message(self, message_id: UUID, user_id: UUID) -> bool:
        await self._get_member_message(message_id, user_id)
        if await self.messages_repository.like_exists(message_id, user_id):
            raise AlreadyLikedError("Message was already liked by this user")

        try:
            affected = await self.messages_repository.insert_like(message_id, user_id, datetime.now(UTC))
        except DuplicateRowError as exc:
            raise AlreadyLikedError("Message was already liked by this user") from exc
        if affected == 0:
            raise ServiceError("Like wasn't added")

        affected = await self.messages_repository.increment_likes(message_id)
        ensure_counter_updated(affected, f"likes of message {message_id}")
        return True

    async def unlike_message(self, message_id: UUID, user_id: UUID) -> bool:
        await self._get_member_message(message_id, user_id)
        if await self.messages_repository.delete_like(message_id, user_id) == 0:
            raise NotLikedError()

        affected = await self.messages_repository.decrement_likes(message_id)
        ensure_counter_updated(affected, f"likes of message {message_id}")
        return True

    async def get_message_likes(self, message_id: UUID, user_id: UUID) -> list[MessageLike]:
        await self._get_member_message(message_id, user_id)
        likes = await self.messages_repository.list_likes(message_id)
        return ensure_not_empty(likes, NoLikesError, self.empty_result_is_error)

    async def _ensure_member(self, chat_id: UUID, user_id: UUID) -> None:
        if not await self.chats_repository.is_member(chat_id, user_id):
            logger.warning("User %s is not a member of chat %s", user_id, chat_id)
            raise NotParticipantError()

    async def _get_member_message(self, message_id: UUID, user_id: UUID) -> Message:
        message = await self.messages_repository.get_message(message_id)
        if message is None:
            raise MessageNotFoundError()
        await self._ensure_member(message.chat_id, user_id)
        return message
