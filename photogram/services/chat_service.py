import logging
from datetime import UTC, datetime
from typing import Optional
from uuid import UUID, uuid4

from photogram.config_secrets import EMPTY_RESULT_IS_ERROR
from photogram.core.db import DuplicateRowError, MissingReferenceError
from photogram.models.models import Chat, ChatParticipant, ChatType, Message, MessageType
from photogram.repositories.chats_repository import ChatsRepository
from photogram.repositories.messages_repository import MessagesRepository
from photogram.repositories.users_repository import UsersRepository
from photogram.services.errors import (
    AlreadyParticipantError,
    ChatAlreadyExistsError,
    ChatNotFoundError,
    CreatorCannotLeaveError,
    NoChatsError,
    NoParticipantsError,
    NotChatCreatorError,
    NotParticipantError,
    ParticipantNotFoundError,
    SelfChatError,
    ServiceError,
    UserNotFoundError,
    ensure_not_empty,
)

logger = logging.getLogger(__name__)


class ChatService:
    """
    Chat membership rules.

    One-to-one chats exist at most once per unordered pair of users. Group
    chats belong to their creator, who is implicitly a member without a row
    in ``group_chats_participants``; only the creator manages participants,
    name and cover, and the creator cannot leave.
    """

    def __init__(
        self,
        chats_repository: ChatsRepository,
        messages_repository: MessagesRepository,
        users_repository: UsersRepository,
        empty_result_is_error: bool = EMPTY_RESULT_IS_ERROR,
    ):
        self.chats_repository = chats_repository
        self.messages_repository = messages_repository
        self.users_repository = users_repository
        self.empty_result_is_error = empty_result_is_error

    async def create_one_to_one_chat(self, sender_id: UUID, recipient_id: UUID, first_message: str) -> Chat:
        """Open a chat between two users, anchored by its first message"""
        if sender_id == recipient_id:
            raise SelfChatError()
        await self._ensure_user_exists(recipient_id)

        if await self.chats_repository.find_one_to_one_chat(sender_id, recipient_id) is not None:
            raise ChatAlreadyExistsError()

        now = datetime.now(UTC)
        chat = Chat(id=uuid4(), type=ChatType.ONE_TO_ONE, user1=sender_id, user2=recipient_id, created_at=now)
        try:
            affected = await self.chats_repository.insert_one_to_one_chat(chat)
        except DuplicateRowError as exc:
            raise ChatAlreadyExistsError() from exc
        except MissingReferenceError as exc:
            raise UserNotFoundError() from exc
        if affected == 0:
            raise ServiceError("Chat wasn't created")

        # The chat row must exist first for the message's foreign key; both
        # writes share the transaction, so a failed anchor undoes the chat.
        message = Message(
            chat_id=chat.id,
            sender_id=sender_id,
            type=MessageType.TEXT,
            text_content=first_message,
            sent_at=now,
        )
        if await self.messages_repository.insert_message(message) == 0:
            raise ServiceError("First message wasn't added")

        logger.info("User %s opened chat %s with %s", sender_id, chat.id, recipient_id)
        return chat

    async def create_group_chat(self, name: str, creator_id: UUID) -> Chat:
        chat = Chat(id=uuid4(), type=ChatType.GROUP, name=name, creator_id=creator_id, created_at=datetime.now(UTC))
        if await self.chats_repository.insert_group_chat(chat) == 0:
            raise ServiceError("Chat wasn't created")

        logger.info("User %s created group chat %s", creator_id, chat.id)
        return chat

    async def add_participant(self, chat_id: UUID, participant_id: UUID, requesting_user_id: UUID) -> bool:
        chat = await self._get_owned_group_chat(chat_id, requesting_user_id)

        if participant_id == chat.creator_id:
            raise AlreadyParticipantError("The chat creator is already a member")
        await self._ensure_user_exists(participant_id)
        if await self.chats_repository.participant_exists(chat_id, participant_id):
            raise AlreadyParticipantError()

        try:
            await self.chats_repository.insert_participant(chat_id, participant_id, datetime.now(UTC))
        except DuplicateRowError as exc:
            raise AlreadyParticipantError() from exc
        except MissingReferenceError as exc:
            raise UserNotFoundError() from exc

        logger.info("Added %s to chat %s", participant_id, chat_id)
        return True

    async def delete_participant(self, chat_id: UUID, participant_id: UUID, requesting_user_id: UUID) -> bool:
        await self._get_owned_group_chat(chat_id, requesting_user_id)

        if await self.chats_repository.delete_participant(chat_id, participant_id) == 0:
            raise ParticipantNotFoundError()

        logger.info("Removed %s from chat %s", participant_id, chat_id)
        return True

    async def leave_group_chat(self, chat_id: UUID, user_id: UUID) -> bool:
        chat = await self._get_group_chat(chat_id)
        if chat.creator_id == user_id:
            raise CreatorCannotLeaveError()

        if await self.chats_repository.delete_participant(chat_id, user_id) == 0:
            raise NotParticipantError()

        logger.info("User %s left chat %s", user_id, chat_id)
        return True

    async def get_chat_participants(self, chat_id: UUID, user_id: UUID) -> list[ChatParticipant]:
        """Participant rows of a chat, visible to its members only"""
        chat_exists = await self.chats_repository.get_chat(chat_id) is not None
        if chat_exists and not await self.chats_repository.is_member(chat_id, user_id):
            logger.warning("User %s is not a member of chat %s", user_id, chat_id)
            raise NotParticipantError()

        participants = await self.chats_repository.list_participants(chat_id)
        return ensure_not_empty(participants, NoParticipantsError, self.empty_result_is_error)

    async def edit_group_chat_name(self, chat_id: UUID, name: str, requesting_user_id: UUID) -> bool:
        await self._get_owned_group_chat(chat_id, requesting_user_id)
        if await self.chats_repository.update_chat_name(chat_id, name) == 0:
            raise ChatNotFoundError()
        return True

    async def change_chat_cover(self, chat_id: UUID, cover: str, requesting_user_id: UUID) -> bool:
        await self._get_owned_group_chat(chat_id, requesting_user_id)
        if await self.chats_repository.update_chat_cover(chat_id, cover) == 0:
            raise ChatNotFoundError()
        return True

    async def delete_chat_cover(self, chat_id: UUID, requesting_user_id: UUID) -> bool:
        await self._get_owned_group_chat(chat_id, requesting_user_id)
        if await self.chats_repository.update_chat_cover(chat_id, None) == 0:
            raise ChatNotFoundError()
        return True

    async def delete_group_chat_permanently(self, chat_id: UUID, requesting_user_id: UUID) -> bool:
        """Remove the participants, then the chat; its messages cascade with it"""
        await self._get_owned_group_chat(chat_id, requesting_user_id)

        removed = await self.chats_repository.delete_participants(chat_id)
        if await self.chats_repository.delete_chat(chat_id) == 0:
            raise ChatNotFoundError()

        logger.info("Deleted group chat %s with %d participants", chat_id, removed)
        return True

    async def get_user_one_to_one_chats(self, user_id: UUID) -> list[Chat]:
        chats = await self.chats_repository.list_one_to_one_chats(user_id)
        return ensure_not_empty(chats, NoChatsError, self.empty_result_is_error)

    async def get_user_group_chats(self, user_id: UUID) -> list[Chat]:
        chats = await self.chats_repository.list_group_chats(user_id)
        return ensure_not_empty(chats, NoChatsError, self.empty_result_is_error)

    async def get_all_chats(self, user_id: UUID) -> list[Chat]:
        chats = await self.chats_repository.list_one_to_one_chats(user_id)
        chats += await self.chats_repository.list_group_chats(user_id)
        return ensure_not_empty(chats, NoChatsError, self.empty_result_is_error)

    async def _get_group_chat(self, chat_id: UUID) -> Chat:
        chat: Optional[Chat] = await self.chats_repository.get_chat(chat_id)
        if chat is None or not chat.is_group:
            raise ChatNotFoundError()
        return chat

    async def _get_owned_group_chat(self, chat_id: UUID, requesting_user_id: UUID) -> Chat:
        chat = await self._get_group_chat(chat_id)
        if chat.creator_id != requesting_user_id:
            logger.warning("User %s is not the creator of chat %s", requesting_user_id, chat_id)
            raise NotChatCreatorError()
        return chat

    async def _ensure_user_exists(self, user_id: UUID) -> None:
        if not await self.users_repository.user_exists(user_id):
            raise UserNotFoundError()
