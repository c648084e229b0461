"""
In-memory stand-ins for the SQL repositories.

The store keeps one dict per table keyed by primary key. ``transaction()``
snapshots every table and restores them when the block raises, the same
all-or-nothing outcome ``get_transaction`` gives a request. Repositories
return affected-row counts, raise ``DuplicateRowError`` on primary key
collisions and ``MissingReferenceError`` for chat rows naming unknown users,
and guard decrements at zero, like their SQL counterparts.
"""

import copy
from contextlib import asynccontextmanager
from datetime import UTC, date, datetime
from typing import Any, Optional
from uuid import UUID, uuid4

from photogram.core.db import DuplicateRowError, MissingReferenceError
from photogram.models.models import (
    AuthCredentials,
    Chat,
    ChatParticipant,
    ChatType,
    FollowEdge,
    MarkedUser,
    Message,
    MessageLike,
    Photo,
    PhotoLike,
    SavedContent,
    User,
)

TABLES = (
    "users",
    "credentials",
    "follows",
    "chats",
    "participants",
    "messages",
    "message_likes",
    "photos",
    "photo_likes",
    "saved",
    "marked",
)


class InMemoryStore:
    def __init__(self):
        self.users: dict[UUID, User] = {}
        self.credentials: dict[UUID, AuthCredentials] = {}
        self.follows: dict[tuple[UUID, UUID], FollowEdge] = {}
        self.chats: dict[UUID, Chat] = {}
        self.participants: dict[tuple[UUID, UUID], ChatParticipant] = {}
        self.messages: dict[UUID, Message] = {}
        self.message_likes: dict[tuple[UUID, UUID], MessageLike] = {}
        self.photos: dict[UUID, Photo] = {}
        self.photo_likes: dict[tuple[UUID, UUID], PhotoLike] = {}
        self.saved: dict[tuple[UUID, UUID], SavedContent] = {}
        self.marked: dict[tuple[UUID, UUID], MarkedUser] = {}

    @asynccontextmanager
    async def transaction(self):
        snapshot = {name: copy.deepcopy(getattr(self, name)) for name in TABLES}
        try:
            yield self
        except BaseException:
            for name, table in snapshot.items():
                setattr(self, name, table)
            raise

    def add_user(self, user_name: str = "user", **fields: Any) -> User:
        user = User(
            user_name=user_name,
            full_name=fields.pop("full_name", user_name.title()),
            date_of_birth=fields.pop("date_of_birth", date(1990, 1, 1)),
            **fields,
        )
        self.users[user.id] = user
        return user

    # Cascades mirroring the ON DELETE CASCADE foreign keys
    def cascade_chat(self, chat_id: UUID) -> None:
        self.participants = {k: v for k, v in self.participants.items() if k[0] != chat_id}
        for message_id in [m.id for m in self.messages.values() if m.chat_id == chat_id]:
            self.cascade_message(message_id)

    def cascade_message(self, message_id: UUID) -> None:
        self.messages.pop(message_id, None)
        self.message_likes = {k: v for k, v in self.message_likes.items() if k[0] != message_id}

    def cascade_photo(self, photo_id: UUID) -> None:
        self.photos.pop(photo_id, None)
        self.photo_likes = {k: v for k, v in self.photo_likes.items() if k[0] != photo_id}
        self.saved = {k: v for k, v in self.saved.items() if k[0] != photo_id}
        self.marked = {k: v for k, v in self.marked.items() if k[0] != photo_id}

    def cascade_user(self, user_id: UUID) -> None:
        self.credentials.pop(user_id, None)
        self.follows = {k: v for k, v in self.follows.items() if user_id not in k}
        for photo_id in [p.id for p in self.photos.values() if p.user_id == user_id]:
            self.cascade_photo(photo_id)
        self.photo_likes = {k: v for k, v in self.photo_likes.items() if k[1] != user_id}
        self.saved = {k: v for k, v in self.saved.items() if k[1] != user_id}
        self.marked = {k: v for k, v in self.marked.items() if k[1] != user_id}
        owned = [c.id for c in self.chats.values() if c.creator_id == user_id or user_id in (c.user1, c.user2)]
        for chat_id in owned:
            self.chats.pop(chat_id)
            self.cascade_chat(chat_id)
        self.participants = {k: v for k, v in self.participants.items() if k[1] != user_id}
        for message_id in [m.id for m in self.messages.values() if m.sender_id == user_id]:
            self.cascade_message(message_id)
        self.message_likes = {k: v for k, v in self.message_likes.items() if k[1] != user_id}


def _increment(row: Optional[Any], column: str) -> int:
    if row is None:
        return 0
    setattr(row, column, getattr(row, column) + 1)
    return 1


def _decrement(row: Optional[Any], column: str) -> int:
    if row is None or getattr(row, column) <= 0:
        return 0
    setattr(row, column, getattr(row, column) - 1)
    return 1


class FakeUsersRepository:
    def __init__(self, store: InMemoryStore):
        self.store = store

    async def insert_user(self, user: User) -> int:
        if user.id in self.store.users:
            raise DuplicateRowError("users")
        self.store.users[user.id] = user.model_copy()
        return 1

    async def get_user(self, user_id: UUID) -> Optional[User]:
        user = self.store.users.get(user_id)
        return user.model_copy() if user else None

    async def get_all_users(self) -> list[User]:
        return sorted((u.model_copy() for u in self.store.users.values()), key=lambda u: u.user_name)

    async def user_exists(self, user_id: UUID) -> bool:
        return user_id in self.store.users

    async def update_profile_field(self, user_id: UUID, column: str, value: Any) -> int:
        user = self.store.users.get(user_id)
        if user is None:
            return 0
        setattr(user, column, value)
        return 1

    async def increment_counter(self, user_id: UUID, column: str) -> int:
        return _increment(self.store.users.get(user_id), column)

    async def decrement_counter(self, user_id: UUID, column: str) -> int:
        return _decrement(self.store.users.get(user_id), column)

    async def delete_user(self, user_id: UUID) -> int:
        if self.store.users.pop(user_id, None) is None:
            return 0
        self.store.cascade_user(user_id)
        return 1

    async def release_user_counters(self, user_id: UUID) -> None:
        store = self.store
        for follower_id, followed_id in store.follows:
            if follower_id == user_id:
                _decrement(store.users.get(followed_id), "followers")
            if followed_id == user_id:
                _decrement(store.users.get(follower_id), "followings")
        for photo_id, liker_id in store.photo_likes:
            if liker_id == user_id:
                _decrement(store.photos.get(photo_id), "likes")
        for photo_id, saver_id in store.saved:
            if saver_id == user_id:
                _decrement(store.photos.get(photo_id), "savings")
        for message_id, liked_by in store.message_likes:
            if liked_by == user_id:
                _decrement(store.messages.get(message_id), "likes")
        for photo_id, marked_user_id in store.marked:
            others = [k for k in store.marked if k[0] == photo_id and k[1] != user_id]
            if marked_user_id == user_id and not others:
                store.photos[photo_id].marked_users = False

    async def follow_exists(self, follower_id: UUID, followed_id: UUID) -> bool:
        return (follower_id, followed_id) in self.store.follows

    async def insert_follow(self, follower_id: UUID, followed_id: UUID, follow_date: datetime) -> int:
        if (follower_id, followed_id) in self.store.follows:
            raise DuplicateRowError("follows")
        self.store.follows[(follower_id, followed_id)] = FollowEdge(
            follower_id=follower_id,
            followed_id=followed_id,
            follow_date=follow_date,
        )
        return 1

    async def delete_follow(self, follower_id: UUID, followed_id: UUID) -> int:
        return 1 if self.store.follows.pop((follower_id, followed_id), None) else 0

    async def list_followers(self, user_id: UUID) -> list[FollowEdge]:
        return [edge for key, edge in self.store.follows.items() if key[1] == user_id]

    async def list_followings(self, user_id: UUID) -> list[FollowEdge]:
        return [edge for key, edge in self.store.follows.items() if key[0] == user_id]


class FakeAuthRepository:
    def __init__(self, store: InMemoryStore):
        self.store = store

    def _by_email(self, email: str) -> Optional[AuthCredentials]:
        return next((c for c in self.store.credentials.values() if c.email == email), None)

    async def email_exists(self, email: str) -> bool:
        return self._by_email(email) is not None

    async def insert_credentials(
        self,
        user_id: UUID,
        email: str,
        password_hash: str,
        date_of_registration: datetime,
    ) -> int:
        if user_id in self.store.credentials or self._by_email(email):
            raise DuplicateRowError("auth_credentials")
        self.store.credentials[user_id] = AuthCredentials(
            user_id=user_id,
            email=email,
            password_hash=password_hash,
            date_of_registration=date_of_registration,
        )
        return 1

    async def get_credentials(self, user_id: UUID) -> Optional[AuthCredentials]:
        return self.store.credentials.get(user_id)

    async def get_credentials_by_email(self, email: str) -> Optional[AuthCredentials]:
        return self._by_email(email)

    async def update_email(self, user_id: UUID, email: str) -> int:
        owner = self._by_email(email)
        if owner is not None and owner.user_id != user_id:
            raise DuplicateRowError("auth_credentials")
        credentials = self.store.credentials.get(user_id)
        if credentials is None:
            return 0
        credentials.email = email
        return 1

    async def update_password(self, user_id: UUID, new_hash: str, current_hash: str) -> int:
        credentials = self.store.credentials.get(user_id)
        if credentials is None or credentials.password_hash != current_hash:
            return 0
        credentials.password_hash = new_hash
        return 1

    async def delete_credentials(self, user_id: UUID) -> int:
        return 1 if self.store.credentials.pop(user_id, None) else 0


class FakeChatsRepository:
    def __init__(self, store: InMemoryStore):
        self.store = store

    async def get_chat(self, chat_id: UUID) -> Optional[Chat]:
        return self.store.chats.get(chat_id)

    async def find_one_to_one_chat(self, user_a: UUID, user_b: UUID) -> Optional[Chat]:
        pair = {user_a, user_b}
        return next(
            (c for c in self.store.chats.values() if c.type is ChatType.ONE_TO_ONE and {c.user1, c.user2} == pair),
            None,
        )

    async def insert_one_to_one_chat(self, chat: Chat) -> int:
        if chat.id in self.store.chats or await self.find_one_to_one_chat(chat.user1, chat.user2):
            raise DuplicateRowError("chats")
        if chat.user1 not in self.store.users or chat.user2 not in self.store.users:
            raise MissingReferenceError("chats")
        self.store.chats[chat.id] = chat
        return 1

    async def insert_group_chat(self, chat: Chat) -> int:
        if chat.id in self.store.chats:
            raise DuplicateRowError("chats")
        self.store.chats[chat.id] = chat
        return 1

    async def update_chat_name(self, chat_id: UUID, name: str) -> int:
        chat = self.store.chats.get(chat_id)
        if chat is None or not chat.is_group:
            return 0
        chat.name = name
        return 1

    async def update_chat_cover(self, chat_id: UUID, cover: Optional[str]) -> int:
        chat = self.store.chats.get(chat_id)
        if chat is None or not chat.is_group:
            return 0
        chat.cover = cover
        return 1

    async def delete_chat(self, chat_id: UUID) -> int:
        if self.store.chats.pop(chat_id, None) is None:
            return 0
        self.store.cascade_chat(chat_id)
        return 1

    async def list_one_to_one_chats(self, user_id: UUID) -> list[Chat]:
        return [c for c in self.store.chats.values() if c.has_party(user_id)]

    async def list_group_chats(self, user_id: UUID) -> list[Chat]:
        return [
            c
            for c in self.store.chats.values()
            if c.is_group and (c.creator_id == user_id or (c.id, user_id) in self.store.participants)
        ]

    async def is_member(self, chat_id: UUID, user_id: UUID) -> bool:
        chat = self.store.chats.get(chat_id)
        if chat is None:
            return False
        if chat.has_party(user_id) or (chat.is_group and chat.creator_id == user_id):
            return True
        return (chat_id, user_id) in self.store.participants

    async def participant_exists(self, chat_id: UUID, participant_id: UUID) -> bool:
        return (chat_id, participant_id) in self.store.participants

    async def insert_participant(self, chat_id: UUID, participant_id: UUID, joined_at: datetime) -> int:
        if (chat_id, participant_id) in self.store.participants:
            raise DuplicateRowError("group_chats_participants")
        if participant_id not in self.store.users:
            raise MissingReferenceError("group_chats_participants")
        self.store.participants[(chat_id, participant_id)] = ChatParticipant(
            chat_id=chat_id,
            participant_id=participant_id,
            joined_at=joined_at,
        )
        return 1

    async def delete_participant(self, chat_id: UUID, participant_id: UUID) -> int:
        return 1 if self.store.participants.pop((chat_id, participant_id), None) else 0

    async def delete_participants(self, chat_id: UUID) -> int:
        keys = [k for k in self.store.participants if k[0] == chat_id]
        for key in keys:
            del self.store.participants[key]
        return len(keys)

    async def list_participants(self, chat_id: UUID) -> list[ChatParticipant]:
        return [p for key, p in self.store.participants.items() if key[0] == chat_id]


class FakeMessagesRepository:
    def __init__(self, store: InMemoryStore):
        self.store = store

    async def insert_message(self, message: Message) -> int:
        if message.id in self.store.messages:
            raise DuplicateRowError("messages")
        self.store.messages[message.id] = message.model_copy()
        return 1

    async def get_message(self, message_id: UUID) -> Optional[Message]:
        return self.store.messages.get(message_id)

    async def list_chat_messages(self, chat_id: UUID) -> list[Message]:
        return sorted((m for m in self.store.messages.values() if m.chat_id == chat_id), key=lambda m: m.sent_at)

    async def delete_message(self, message_id: UUID, sender_id: UUID) -> int:
        message = self.store.messages.get(message_id)
        if message is None or message.sender_id != sender_id:
            return 0
        self.store.cascade_message(message_id)
        return 1

    async def update_text(self, message_id: UUID, sender_id: UUID, text_content: str) -> int:
        message = self.store.messages.get(message_id)
        if message is None or message.sender_id != sender_id or message.type != "text":
            return 0
        message.text_content = text_content
        return 1

    async def mark_read(self, message_id: UUID) -> int:
        message = self.store.messages.get(message_id)
        if message is None:
            return 0
        message.is_read = True
        return 1

    async def like_exists(self, message_id: UUID, user_id: UUID) -> bool:
        return (message_id, user_id) in self.store.message_likes

    async def insert_like(self, message_id: UUID, user_id: UUID, liked_at: datetime) -> int:
        if (message_id, user_id) in self.store.message_likes:
            raise DuplicateRowError("messages_likes")
        self.store.message_likes[(message_id, user_id)] = MessageLike(
            message_id=message_id,
            liked_by=user_id,
            liked_at=liked_at,
        )
        return 1

    async def delete_like(self, message_id: UUID, user_id: UUID) -> int:
        return 1 if self.store.message_likes.pop((message_id, user_id), None) else 0

    async def increment_likes(self, message_id: UUID) -> int:
        return _increment(self.store.messages.get(message_id), "likes")

    async def decrement_likes(self, message_id: UUID) -> int:
        return _decrement(self.store.messages.get(message_id), "likes")

    async def list_likes(self, message_id: UUID) -> list[MessageLike]:
        return [like for key, like in self.store.message_likes.items() if key[0] == message_id]


class FakePhotosRepository:
    def __init__(self, store: InMemoryStore):
        self.store = store

    def _owned(self, photo_id: UUID, user_id: UUID) -> Optional[Photo]:
        photo = self.store.photos.get(photo_id)
        if photo is None or photo.user_id != user_id:
            return None
        return photo

    async def insert_photo(self, photo: Photo) -> int:
        if photo.id in self.store.photos:
            raise DuplicateRowError("photos")
        self.store.photos[photo.id] = photo.model_copy()
        return 1

    async def get_photo(self, photo_id: UUID) -> Optional[Photo]:
        photo = self.store.photos.get(photo_id)
        return photo.model_copy() if photo else None

    async def list_user_photos(self, user_id: UUID, archived: Optional[bool] = None) -> list[Photo]:
        return [
            p.model_copy()
            for p in self.store.photos.values()
            if p.user_id == user_id and (archived is None or p.archived == archived)
        ]

    async def list_public_photos(self) -> list[Photo]:
        photos = [p.model_copy() for p in self.store.photos.values() if not p.archived]
        return sorted(photos, key=lambda p: p.date_of_publishing, reverse=True)

    async def update_description(self, photo_id: UUID, user_id: UUID, description: str) -> int:
        photo = self._owned(photo_id, user_id)
        if photo is None:
            return 0
        photo.description = description
        return 1

    async def set_archived(self, photo_id: UUID, user_id: UUID, archived: bool) -> int:
        photo = self._owned(photo_id, user_id)
        if photo is None:
            return 0
        photo.archived = archived
        return 1

    async def delete_photo(self, photo_id: UUID, user_id: UUID) -> int:
        if self._owned(photo_id, user_id) is None:
            return 0
        self.store.cascade_photo(photo_id)
        return 1

    async def increment_counter(self, photo_id: UUID, column: str) -> int:
        return _increment(self.store.photos.get(photo_id), column)

    async def decrement_counter(self, photo_id: UUID, column: str) -> int:
        return _decrement(self.store.photos.get(photo_id), column)

    async def get_counter(self, photo_id: UUID, column: str) -> Optional[int]:
        photo = self.store.photos.get(photo_id)
        return getattr(photo, column) if photo else None

    async def set_marked_users_flag(self, photo_id: UUID, value: bool) -> int:
        photo = self.store.photos.get(photo_id)
        if photo is None:
            return 0
        photo.marked_users = value
        return 1

    async def like_exists(self, photo_id: UUID, user_id: UUID) -> bool:
        return (photo_id, user_id) in self.store.photo_likes

    async def insert_like(self, photo_id: UUID, user_id: UUID, liked_at: datetime) -> int:
        if (photo_id, user_id) in self.store.photo_likes:
            raise DuplicateRowError("likes")
        self.store.photo_likes[(photo_id, user_id)] = PhotoLike(photo_id=photo_id, user_id=user_id, liked_at=liked_at)
        return 1

    async def delete_like(self, photo_id: UUID, user_id: UUID) -> int:
        return 1 if self.store.photo_likes.pop((photo_id, user_id), None) else 0

    async def list_likes(self, photo_id: UUID) -> list[PhotoLike]:
        return [like for key, like in self.store.photo_likes.items() if key[0] == photo_id]

    async def saved_exists(self, photo_id: UUID, saver_id: UUID) -> bool:
        return (photo_id, saver_id) in self.store.saved

    async def insert_saved(self, photo_id: UUID, saver_id: UUID, saved_at: datetime) -> int:
        if (photo_id, saver_id) in self.store.saved:
            raise DuplicateRowError("saved_content")
        self.store.saved[(photo_id, saver_id)] = SavedContent(photo_id=photo_id, saver_id=saver_id, saved_at=saved_at)
        return 1

    async def delete_saved(self, photo_id: UUID, saver_id: UUID) -> int:
        return 1 if self.store.saved.pop((photo_id, saver_id), None) else 0

    async def list_saved_by_user(self, saver_id: UUID) -> list[SavedContent]:
        return [s for key, s in self.store.saved.items() if key[1] == saver_id]

    async def marked_exists(self, photo_id: UUID, marked_user_id: UUID) -> bool:
        return (photo_id, marked_user_id) in self.store.marked

    async def insert_marked(self, photo_id: UUID, marked_user_id: UUID, marked_at: datetime) -> int:
        if (photo_id, marked_user_id) in self.store.marked:
            raise DuplicateRowError("marked_users")
        self.store.marked[(photo_id, marked_user_id)] = MarkedUser(
            photo_id=photo_id,
            marked_user_id=marked_user_id,
            marked_at=marked_at,
        )
        return 1

    async def delete_marked(self, photo_id: UUID, marked_user_id: UUID) -> int:
        return 1 if self.store.marked.pop((photo_id, marked_user_id), None) else 0

    async def list_marked(self, photo_id: UUID) -> list[MarkedUser]:
        return [m for key, m in self.store.marked.items() if key[0] == photo_id]

    async def count_marked(self, photo_id: UUID) -> int:
        return sum(1 for key in self.store.marked if key[0] == photo_id)


def add_photo(store: InMemoryStore, owner: User, **fields: Any) -> Photo:
    """Insert a photo directly, bumping the owner's posts counter like the service does."""
    photo = Photo(
        id=uuid4(),
        user_id=owner.id,
        file_name=fields.pop("file_name", "photo.jpg"),
        date_of_publishing=fields.pop("date_of_publishing", datetime.now(UTC)),
        **fields,
    )
    store.photos[photo.id] = photo
    store.users[owner.id].posts += 1
    return photo


class RecordingTransaction:
    def __init__(self, events: list[str]):
        self.events = events

    async def __aenter__(self):
        self.events.append("begin")
        return self

    async def __aexit__(self, exc_type, exc, tb):
        self.events.append("rollback" if exc_type else "commit")
        return False


class RecordingConnection:
    """Connection stand-in that records how its transactions end."""

    def __init__(self):
        self.events: list[str] = []

    def transaction(self) -> RecordingTransaction:
        return RecordingTransaction(self.events)


class FakePool:
    def __init__(self):
        self.connection = RecordingConnection()

    @asynccontextmanager
    async def acquire(self):
        yield self.connection
