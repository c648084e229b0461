from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, status

from photogram.api.dependencies import get_message_service
from photogram.core.auth import get_current_user_id
from photogram.models.models import Message
from photogram.schemas.schemas import (
    MessageLikesResponse,
    MessagesResponse,
    SuccessResponse,
    TextMessageCreate,
    TextMessageEdit,
)
from photogram.services.message_service import MessageService

router = APIRouter(prefix="/api/v1/messages", tags=["messages"])

Service = Annotated[MessageService, Depends(get_message_service)]
CurrentUserId = Annotated[UUID, Depends(get_current_user_id)]


@router.post("", status_code=status.HTTP_201_CREATED)
async def send_text_message(data: TextMessageCreate, user_id: CurrentUserId, service: Service) -> Message:
    """
    Send a text message to a chat the current user belongs to.

    Raises:
    - **403 Forbidden**: If the user is not a member of the chat
    - **404 Not Found**: If the chat does not exist
    """
    return await service.send_text_message(data.chat_id, user_id, data.text_content)


@router.get("/chat/{chat_id}", status_code=status.HTTP_200_OK)
async def get_all_chat_messages(chat_id: UUID, user_id: CurrentUserId, service: Service) -> MessagesResponse:
    return MessagesResponse(messages=await service.get_all_chat_messages(chat_id, user_id))


@router.delete("/{message_id}", status_code=status.HTTP_200_OK)
async def unsend_message(message_id: UUID, user_id: CurrentUserId, service: Service) -> SuccessResponse:
    await service.unsend_message(message_id, user_id)
    return SuccessResponse()


@router.patch("/{message_id}", status_code=status.HTTP_200_OK)
async def edit_text_message(
    message_id: UUID,
    data: TextMessageEdit,
    user_id: CurrentUserId,
    service: Service,
) -> SuccessResponse:
    await service.edit_text_message(message_id, data.text_content, user_id)
    return SuccessResponse()


@router.post("/{message_id}/read", status_code=status.HTTP_200_OK)
async def read_message(message_id: UUID, user_id: CurrentUserId, service: Service) -> SuccessResponse:
    await service.read_message(message_id, user_id)
    return SuccessResponse()


@router.post("/{message_id}/like", status_code=status.HTTP_200_OK)
async def like_message(message_id: UUID, user_id: CurrentUserId, service: Service) -> SuccessResponse:
    await service.like_message(message_id, user_id)
    return SuccessResponse()


@router.delete("/{message_id}/like", status_code=status.HTTP_200_OK)
async def unlike_message(message_id: UUID, user_id: CurrentUserId, service: Service) -> SuccessResponse:
    await service.unlike_message(message_id, user_id)
    return SuccessResponse()


@router.get("/{message_id}/likes", status_code=status.HTTP_200_OK)
async def get_message_likes(message_id: UUID, user_id: CurrentUserId, service: Service) -> MessageLikesResponse:
    return MessageLikesResponse(likes=await service.get_message_likes(message_id, user_id))
