from datetime import date, datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, EmailStr, Field, field_validator

from photogram.models.models import (
    ChatParticipant,
    FollowEdge,
    MarkedUser,
    Message,
    MessageLike,
    Photo,
    PhotoLike,
    SavedContent,
    User,
)


def _not_blank(v: str) -> str:
    if not v or not v.strip():
        raise ValueError("Value must not be blank")
    return v.strip()


# Generic responses
class SuccessResponse(BaseModel):
    success: bool = True


class ErrorDetail(BaseModel):
    code: str
    message: str


class ErrorResponse(BaseModel):
    success: bool = False
    error: ErrorDetail


# Auth Schemas
class SignUpRequest(BaseModel):
    email: EmailStr
    password: str = Field(min_length=8, max_length=72)
    user_name: str = Field(min_length=1, max_length=50)
    full_name: str = Field(min_length=1, max_length=100)
    date_of_birth: date

    @field_validator("user_name", "full_name")
    @classmethod
    def validate_names(cls, v):
        return _not_blank(v)


class SignInRequest(BaseModel):
    email: EmailStr
    password: str


class TokenPair(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    expire_time: datetime
    user_id: UUID


class ChangeEmailRequest(BaseModel):
    email: EmailStr


class ChangePasswordRequest(BaseModel):
    current_password: str
    new_password: str = Field(min_length=8, max_length=72)


# User Schemas
class UserResponse(BaseModel):
    user: User


class UsersResponse(BaseModel):
    users: list[User]


class ChangeUserNameRequest(BaseModel):
    user_name: str = Field(min_length=1, max_length=50)

    @field_validator("user_name")
    @classmethod
    def validate_user_name(cls, v):
        return _not_blank(v)


class ChangeFullNameRequest(BaseModel):
    full_name: str = Field(min_length=1, max_length=100)

    @field_validator("full_name")
    @classmethod
    def validate_full_name(cls, v):
        return _not_blank(v)


class ChangeDateOfBirthRequest(BaseModel):
    date_of_birth: date


class AvatarRequest(BaseModel):
    avatar: str = Field(min_length=1)


class BioRequest(BaseModel):
    bio: str = Field(max_length=300)


class FollowersResponse(BaseModel):
    followers: list[FollowEdge]


class FollowingResponse(BaseModel):
    following: list[FollowEdge]


# Chat Schemas
class OneToOneChatCreate(BaseModel):
    recipient_id: UUID
    first_message: str = Field(min_length=1, max_length=2000)


class GroupChatCreate(BaseModel):
    name: str = Field(min_length=1, max_length=100)

    @field_validator("name")
    @classmethod
    def validate_name(cls, v):
        return _not_blank(v)


class OneToOneChatResponse(BaseModel):
    id: UUID
    user1: UUID
    user2: UUID
    created_at: datetime


class GroupChatResponse(BaseModel):
    id: UUID
    name: str
    cover: Optional[str] = None
    creator_id: UUID
    created_at: datetime


class ChatResponse(BaseModel):
    id: UUID
    type: str
    created_at: datetime
    name: Optional[str] = None
    cover: Optional[str] = None
    creator_id: Optional[UUID] = None
    user1: Optional[UUID] = None
    user2: Optional[UUID] = None


class ChatsResponse(BaseModel):
    chats: list[ChatResponse]


class ParticipantAdd(BaseModel):
    participant_id: UUID


class ParticipantsResponse(BaseModel):
    participants: list[ChatParticipant]


class ChatNameUpdate(BaseModel):
    name: str = Field(min_length=1, max_length=100)

    @field_validator("name")
    @classmethod
    def validate_name(cls, v):
        return _not_blank(v)


class ChatCoverUpdate(BaseModel):
    cover: str = Field(min_length=1)


# Message Schemas
class TextMessageCreate(BaseModel):
    chat_id: UUID
    text_content: str = Field(min_length=1, max_length=2000)


class TextMessageEdit(BaseModel):
    text_content: str = Field(min_length=1, max_length=2000)


class MessagesResponse(BaseModel):
    messages: list[Message]


class MessageLikesResponse(BaseModel):
    likes: list[MessageLike]


# Photo Schemas
class PhotoCreate(BaseModel):
    file_name: str = Field(min_length=1)
    description: str = Field(default="", max_length=2200)


class PhotoDescriptionUpdate(BaseModel):
    description: str = Field(max_length=2200)


class MarkUserRequest(BaseModel):
    marked_user_id: UUID


class PhotoResponse(BaseModel):
    photo: Photo


class PhotosResponse(BaseModel):
    photos: list[Photo]


class PhotoLikesResponse(BaseModel):
    likes: list[PhotoLike]


class SavedContentResponse(BaseModel):
    saved_content: list[SavedContent]


class SavingsResponse(BaseModel):
    savings: int


class MarkedUsersResponse(BaseModel):
    marked_users: list[MarkedUser]
