from datetime import datetime
from typing import Optional
from uuid import UUID

import asyncpg
from asyncpg import Connection, Record

from photogram.core.db import DuplicateRowError, MissingReferenceError, affected_rows
from photogram.models.models import Chat, ChatParticipant, ChatType

CHAT_COLUMNS = "id, type, name, cover, creator_id, user1, user2, created_at"


class ChatsRepository:
    """SQL access to chats and group_chats_participants, bound to one unit of work."""

    def __init__(self, connection: Connection):
        self.connection = connection

    async def get_chat(self, chat_id: UUID) -> Optional[Chat]:
        row = await self.connection.fetchrow(
            f"SELECT {CHAT_COLUMNS} FROM chats WHERE id = $1",
            chat_id,
        )
        if row is None:
            return None
        return _chat_from_record(row)

    async def find_one_to_one_chat(self, user_a: UUID, user_b: UUID) -> Optional[Chat]:
        """Look up the one-to-one chat of an unordered pair of users."""
        row = await self.connection.fetchrow(
            f"""
            SELECT {CHAT_COLUMNS}
            FROM chats
            WHERE type = 'one-to-one'
              AND ((user1 = $1 AND user2 = $2) OR (user1 = $2 AND user2 = $1))
            """,
            user_a,
            user_b,
        )
        if row is None:
            return None
        return _chat_from_record(row)

    async def insert_one_to_one_chat(self, chat: Chat) -> int:
        try:
            status = await self.connection.execute(
                """
                INSERT INTO chats (id, type, user1, user2, created_at)
                VALUES ($1, 'one-to-one', $2, $3, $4)
                """,
                chat.id,
                chat.user1,
                chat.user2,
                chat.created_at,
            )
        except asyncpg.UniqueViolationError as exc:
            raise DuplicateRowError("chats") from exc
        except asyncpg.ForeignKeyViolationError as exc:
            raise MissingReferenceError("chats") from exc
        return affected_rows(status)

    async def insert_group_chat(self, chat: Chat) -> int:
        status = await self.connection.execute(
            """
            INSERT INTO chats (id, type, name, cover, creator_id, created_at)
            VALUES ($1, 'group', $2, $3, $4, $5)
            """,
            chat.id,
            chat.name,
            chat.cover,
            chat.creator_id,
            chat.created_at,
        )
        return affected_rows(status)

    async def update_chat_name(self, chat_id: UUID, name: str) -> int:
        status = await self.connection.execute(
            "UPDATE chats SET name = $2 WHERE id = $1 AND type = 'group'",
            chat_id,
            name,
        )
        return affected_rows(status)

    async def update_chat_cover(self, chat_id: UUID, cover: Optional[str]) -> int:
        status = await self.connection.execute(
            "UPDATE chats SET cover = $2 WHERE id = $1 AND type = 'group'",
            chat_id,
            cover,
        )
        return affected_rows(status)

    async def delete_chat(self, chat_id: UUID) -> int:
        status = await self.connection.execute("DELETE FROM chats WHERE id = $1", chat_id)
        return affected_rows(status)

    async def list_one_to_one_chats(self, user_id: UUID) -> list[Chat]:
        rows = await self.connection.fetch(
            f"""
            SELECT {CHAT_COLUMNS}
            FROM chats
            WHERE type = 'one-to-one' AND (user1 = $1 OR user2 = $1)
            ORDER BY created_at DESC
            """,
            user_id,
        )
        return [_chat_from_record(row) for row in rows]

    async def list_group_chats(self, user_id: UUID) -> list[Chat]:
        """Group chats the user created or participates in."""
        rows = await self.connection.fetch(
            f"""
            SELECT {CHAT_COLUMNS}
            FROM chats
            WHERE type = 'group'
              AND (
                creator_id = $1
                OR id IN (SELECT chat_id FROM group_chats_participants WHERE participant_id = $1)
              )
            ORDER BY created_at DESC
            """,
            user_id,
        )
        return [_chat_from_record(row) for row in rows]

    async def is_member(self, chat_id: UUID, user_id: UUID) -> bool:
        """Party of a one-to-one chat, creator of a group chat, or participant row."""
        exists = await self.connection.fetchval(
            """
            SELECT 1
            FROM chats c
            WHERE c.id = $1
              AND (
                (c.type = 'one-to-one' AND (c.user1 = $2 OR c.user2 = $2))
                OR (c.type = 'group' AND c.creator_id = $2)
                OR EXISTS (
                    SELECT 1 FROM group_chats_participants p
                    WHERE p.chat_id = c.id AND p.participant_id = $2
                )
              )
            """,
            chat_id,
            user_id,
        )
        return bool(exists)

    # Participants
    async def participant_exists(self, chat_id: UUID, participant_id: UUID) -> bool:
        exists = await self.connection.fetchval(
            """
            SELECT 1 FROM group_chats_participants
            WHERE chat_id = $1 AND participant_id = $2
            """,
            chat_id,
            participant_id,
        )
        return bool(exists)

    async def insert_participant(self, chat_id: UUID, participant_id: UUID, joined_at: datetime) -> int:
        try:
            status = await self.connection.execute(
                """
                INSERT INTO group_chats_participants (chat_id, participant_id, joined_at)
                VALUES ($1, $2, $3)
                """,
                chat_id,
                participant_id,
                joined_at,
            )
        except asyncpg.UniqueViolationError as exc:
            raise DuplicateRowError("group_chats_participants") from exc
        except asyncpg.ForeignKeyViolationError as exc:
            raise MissingReferenceError("group_chats_participants") from exc
        return affected_rows(status)

    async def delete_participant(self, chat_id: UUID, participant_id: UUID) -> int:
        status = await self.connection.execute(
            """
            DELETE FROM group_chats_participants
            WHERE chat_id = $1 AND participant_id = $2
            """,
            chat_id,
            participant_id,
        )
        return affected_rows(status)

    async def delete_participants(self, chat_id: UUID) -> int:
        status = await self.connection.execute(
            "DELETE FROM group_chats_participants WHERE chat_id = $1",
            chat_id,
        )
        return affected_rows(status)

    async def list_participants(self, chat_id: UUID) -> list[ChatParticipant]:
        rows = await self.connection.fetch(
            """
            SELECT chat_id, participant_id, joined_at
            FROM group_chats_participants
            WHERE chat_id = $1
            ORDER BY joined_at
            """,
            chat_id,
        )
        return [
            ChatParticipant(
                chat_id=row["chat_id"],
                participant_id=row["participant_id"],
                joined_at=row["joined_at"],
            )
            for row in rows
        ]


def _chat_from_record(row: Record) -> Chat:
    return Chat(
        id=row["id"],
        type=ChatType(row["type"]),
        name=row["name"],
        cover=row["cover"],
        creator_id=row["creator_id"],
        user1=row["user1"],
        user2=row["user2"],
        created_at=row["created_at"],
    )
