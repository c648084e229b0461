from datetime import date, datetime
from enum import Enum
from typing import Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, EmailStr, Field


class ChatType(str, Enum):
    ONE_TO_ONE = "one-to-one"
    GROUP = "group"


class MessageType(str, Enum):
    TEXT = "text"
    MEDIA = "media"
    SHARED_POST = "shared-post"


# Database models
class User(BaseModel):
    id: UUID = Field(default_factory=uuid4)
    user_name: str
    full_name: str
    date_of_birth: date
    avatar: Optional[str] = None
    bio: Optional[str] = None
    followers: int = 0
    followings: int = 0
    posts: int = 0


class AuthCredentials(BaseModel):
    user_id: UUID
    email: EmailStr
    password_hash: str
    date_of_registration: datetime


class FollowEdge(BaseModel):
    follower_id: UUID  # User who follows
    followed_id: UUID  # User being followed
    follow_date: datetime


class Chat(BaseModel):
    """One row of the chats table; which fields are set depends on the type."""

    id: UUID = Field(default_factory=uuid4)
    type: ChatType
    created_at: datetime
    # one-to-one chats
    user1: Optional[UUID] = None
    user2: Optional[UUID] = None
    # group chats
    name: Optional[str] = None
    cover: Optional[str] = None
    creator_id: Optional[UUID] = None

    @property
    def is_group(self) -> bool:
        return self.type is ChatType.GROUP

    def has_party(self, user_id: UUID) -> bool:
        return self.type is ChatType.ONE_TO_ONE and user_id in (self.user1, self.user2)


class ChatParticipant(BaseModel):
    chat_id: UUID
    participant_id: UUID
    joined_at: datetime


class Message(BaseModel):
    id: UUID = Field(default_factory=uuid4)
    chat_id: UUID
    sender_id: UUID
    type: MessageType = MessageType.TEXT
    text_content: Optional[str] = None
    media_url: Optional[str] = None
    shared_post_id: Optional[UUID] = None
    sent_at: datetime
    is_read: bool = False
    likes: int = 0


class MessageLike(BaseModel):
    message_id: UUID
    liked_by: UUID
    liked_at: datetime


class Photo(BaseModel):
    id: UUID = Field(default_factory=uuid4)
    user_id: UUID
    file_name: str
    description: str = ""
    likes: int = 0
    sharings: int = 0
    savings: int = 0
    marked_users: bool = False
    archived: bool = False
    date_of_publishing: datetime


class PhotoLike(BaseModel):
    photo_id: UUID
    user_id: UUID
    liked_at: datetime


class SavedContent(BaseModel):
    photo_id: UUID
    saver_id: UUID
    saved_at: datetime


class MarkedUser(BaseModel):
    photo_id: UUID
    marked_user_id: UUID
    marked_at: datetime
