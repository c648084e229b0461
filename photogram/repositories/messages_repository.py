from datetime import datetime
from typing import Optional
from uuid import UUID

import asyncpg
from asyncpg import Connection, Record

from photogram.core.db import DuplicateRowError, affected_rows
from photogram.models.models import Message, MessageLike, MessageType

MESSAGE_COLUMNS = "id, chat_id, sender_id, type, text_content, media_url, shared_post_id, sent_at, is_read, likes"


class MessagesRepository:
    """SQL access to messages and messages_likes, bound to one unit of work."""

    def __init__(self, connection: Connection):
        self.connection = connection

    async def insert_message(self, message: Message) -> int:
        status = await self.connection.execute(
            """
            INSERT INTO messages (
                id, chat_id, sender_id, type, text_content, media_url, shared_post_id, sent_at, is_read, likes
            ) VALUES ($1, $2, $3, $4, $5, $6, $7, $8, $9, $10)
            """,
            message.id,
            message.chat_id,
            message.sender_id,
            message.type.value,
            message.text_content,
            message.media_url,
            message.shared_post_id,
            message.sent_at,
            message.is_read,
            message.likes,
        )
        return affected_rows(status)

    async def get_message(self, message_id: UUID) -> Optional[Message]:
        row = await self.connection.fetchrow(
            f"SELECT {MESSAGE_COLUMNS} FROM messages WHERE id = $1",
            message_id,
        )
        if row is None:
            return None
        return _message_from_record(row)

    async def list_chat_messages(self, chat_id: UUID) -> list[Message]:
        rows = await self.connection.fetch(
            f"""
            SELECT {MESSAGE_COLUMNS}
            FROM messages
            WHERE chat_id = $1
            ORDER BY sent_at ASC
            """,
            chat_id,
        )
        return [_message_from_record(row) for row in rows]

    async def delete_message(self, message_id: UUID, sender_id: UUID) -> int:
        status = await self.connection.execute(
            "DELETE FROM messages WHERE id = $1 AND sender_id = $2",
            message_id,
            sender_id,
        )
        return affected_rows(status)

    async def update_text(self, message_id: UUID, sender_id: UUID, text_content: str) -> int:
        status = await self.connection.execute(
            """
            UPDATE messages
            SET text_content = $3
            WHERE id = $1 AND sender_id = $2 AND type = 'text'
            """,
            message_id,
            sender_id,
            text_content,
        )
        return affected_rows(status)

    async def mark_read(self, message_id: UUID) -> int:
        status = await self.connection.execute("UPDATE messages SET is_read = TRUE WHERE id = $1", message_id)
        return affected_rows(status)

    # Likes ledger
    async def like_exists(self, message_id: UUID, user_id: UUID) -> bool:
        exists = await self.connection.fetchval(
            "SELECT 1 FROM messages_likes WHERE message_id = $1 AND liked_by = $2",
            message_id,
            user_id,
        )
        return bool(exists)

    async def insert_like(self, message_id: UUID, user_id: UUID, liked_at: datetime) -> int:
        try:
            status = await self.connection.execute(
                """
                INSERT INTO messages_likes (message_id, liked_by, liked_at)
                VALUES ($1, $2, $3)
                """,
                message_id,
                user_id,
                liked_at,
            )
        except asyncpg.UniqueViolationError as exc:
            raise DuplicateRowError("messages_likes") from exc
        return affected_rows(status)

    async def delete_like(self, message_id: UUID, user_id: UUID) -> int:
        status = await self.connection.execute(
            "DELETE FROM messages_likes WHERE message_id = $1 AND liked_by = $2",
            message_id,
            user_id,
        )
        return affected_rows(status)

    async def increment_likes(self, message_id: UUID) -> int:
        status = await self.connection.execute(
            "UPDATE messages SET likes = likes + 1 WHERE id = $1",
            message_id,
        )
        return affected_rows(status)

    async def decrement_likes(self, message_id: UUID) -> int:
        status = await self.connection.execute(
            "UPDATE messages SET likes = likes - 1 WHERE id = $1 AND likes > 0",
            message_id,
        )
        return affected_rows(status)

    async def list_likes(self, message_id: UUID) -> list[MessageLike]:
        rows = await self.connection.fetch(
            """
            SELECT message_id, liked_by, liked_at
            FROM messages_likes
            WHERE message_id = $1
            ORDER BY liked_at
            """,
            message_id,
        )
        return [
            MessageLike(message_id=row["message_id"], liked_by=row["liked_by"], liked_at=row["liked_at"])
            for row in rows
        ]


def _message_from_record(row: Record) -> Message:
    return Message(
        id=row["id"],
        chat_id=row["chat_id"],
        sender_id=row["sender_id"],
        type=MessageType(row["type"]),
        text_content=row["text_content"],
        media_url=row["media_url"],
        shared_post_id=row["shared_post_id"],
        sent_at=row["sent_at"],
        is_read=row["is_read"],
        likes=row["likes"],
    )
