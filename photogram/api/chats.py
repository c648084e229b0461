from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, status

from photogram.api.dependencies import get_chat_service
from photogram.core.auth import get_current_user_id
from photogram.models.models import Chat
from photogram.schemas.schemas import (
    ChatCoverUpdate,
    ChatNameUpdate,
    ChatResponse,
    ChatsResponse,
    GroupChatCreate,
    GroupChatResponse,
    OneToOneChatCreate,
    OneToOneChatResponse,
    ParticipantAdd,
    ParticipantsResponse,
    SuccessResponse,
)
from photogram.services.chat_service import ChatService

router = APIRouter(prefix="/api/v1/chats", tags=["chats"])

Service = Annotated[ChatService, Depends(get_chat_service)]
CurrentUserId = Annotated[UUID, Depends(get_current_user_id)]


def _chats_response(chats: list[Chat]) -> ChatsResponse:
    return ChatsResponse(chats=[ChatResponse.model_validate(chat.model_dump(mode="json")) for chat in chats])


@router.post("/one-to-one", status_code=status.HTTP_201_CREATED)
async def create_one_to_one_chat(
    data: OneToOneChatCreate,
    user_id: CurrentUserId,
    service: Service,
) -> OneToOneChatResponse:
    """
    Open a one-to-one chat with its first message.

    Parameters:
    - **data**: recipient id and the first message text

    Raises:
    - **400 Bad Request**: If users try to open a chat with themselves
    - **404 Not Found**: If the recipient does not exist
    - **409 Conflict**: If a chat between the two users already exists
    """
    chat = await service.create_one_to_one_chat(user_id, data.recipient_id, data.first_message)
    return OneToOneChatResponse(id=chat.id, user1=chat.user1, user2=chat.user2, created_at=chat.created_at)


@router.get("/one-to-one", status_code=status.HTTP_200_OK)
async def get_one_to_one_chats(user_id: CurrentUserId, service: Service) -> ChatsResponse:
    return _chats_response(await service.get_user_one_to_one_chats(user_id))


@router.post("/group", status_code=status.HTTP_201_CREATED)
async def create_group_chat(data: GroupChatCreate, user_id: CurrentUserId, service: Service) -> GroupChatResponse:
    chat = await service.create_group_chat(data.name, user_id)
    return GroupChatResponse(
        id=chat.id,
        name=chat.name,
        cover=chat.cover,
        creator_id=chat.creator_id,
        created_at=chat.created_at,
    )


@router.get("/group", status_code=status.HTTP_200_OK)
async def get_group_chats(user_id: CurrentUserId, service: Service) -> ChatsResponse:
    return _chats_response(await service.get_user_group_chats(user_id))


@router.get("", status_code=status.HTTP_200_OK)
async def get_all_chats(user_id: CurrentUserId, service: Service) -> ChatsResponse:
    """
    List every chat the current user belongs to.

    Raises:
    - **404 Not Found**: If the user has no chats
    """
    return _chats_response(await service.get_all_chats(user_id))


@router.post("/{chat_id}/participants", status_code=status.HTTP_200_OK)
async def add_participant(
    chat_id: UUID,
    data: ParticipantAdd,
    user_id: CurrentUserId,
    service: Service,
) -> SuccessResponse:
    """
    Add a participant to a group chat. Only the chat creator can do this.

    Raises:
    - **403 Forbidden**: If the current user is not the chat creator
    - **404 Not Found**: If the group chat or the user does not exist
    - **409 Conflict**: If the user already participates
    """
    await service.add_participant(chat_id, data.participant_id, user_id)
    return SuccessResponse()


@router.get("/{chat_id}/participants", status_code=status.HTTP_200_OK)
async def get_chat_participants(chat_id: UUID, user_id: CurrentUserId, service: Service) -> ParticipantsResponse:
    """
    List the participant rows of a chat.

    Raises:
    - **403 Forbidden**: If the current user is not a member of the chat
    - **404 Not Found**: If the chat has no participants, including a deleted chat
    """
    return ParticipantsResponse(participants=await service.get_chat_participants(chat_id, user_id))


@router.delete("/{chat_id}/participants/{participant_id}", status_code=status.HTTP_200_OK)
async def delete_participant(
    chat_id: UUID,
    participant_id: UUID,
    user_id: CurrentUserId,
    service: Service,
) -> SuccessResponse:
    await service.delete_participant(chat_id, participant_id, user_id)
    return SuccessResponse()


@router.post("/{chat_id}/leave", status_code=status.HTTP_200_OK)
async def leave_group_chat(chat_id: UUID, user_id: CurrentUserId, service: Service) -> SuccessResponse:
    await service.leave_group_chat(chat_id, user_id)
    return SuccessResponse()


@router.patch("/{chat_id}/name", status_code=status.HTTP_200_OK)
async def edit_group_chat_name(
    chat_id: UUID,
    data: ChatNameUpdate,
    user_id: CurrentUserId,
    service: Service,
) -> SuccessResponse:
    await service.edit_group_chat_name(chat_id, data.name, user_id)
    return SuccessResponse()


@router.patch("/{chat_id}/cover", status_code=status.HTTP_200_OK)
async def change_chat_cover(
    chat_id: UUID,
    data: ChatCoverUpdate,
    user_id: CurrentUserId,
    service: Service,
) -> SuccessResponse:
    await service.change_chat_cover(chat_id, data.cover, user_id)
    return SuccessResponse()


@router.delete("/{chat_id}/cover", status_code=status.HTTP_200_OK)
async def delete_chat_cover(chat_id: UUID, user_id: CurrentUserId, service: Service) -> SuccessResponse:
    await service.delete_chat_cover(chat_id, user_id)
    return SuccessResponse()


@router.delete("/{chat_id}", status_code=status.HTTP_200_OK)
async def delete_group_chat(chat_id: UUID, user_id: CurrentUserId, service: Service) -> SuccessResponse:
    """
    Permanently delete a group chat with its participants and messages.

    Raises:
    - **403 Forbidden**: If the current user is not the chat creator
    - **404 Not Found**: If the group chat does not exist
    """
    await service.delete_group_chat_permanently(chat_id, user_id)
    return SuccessResponse()
