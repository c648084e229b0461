from datetime import datetime
from typing import Optional
from uuid import UUID

import asyncpg
from asyncpg import Connection, Record

from photogram.core.db import DuplicateRowError, affected_rows
from photogram.models.models import MarkedUser, Photo, PhotoLike, SavedContent

PHOTO_COLUMNS = (
    "id, user_id, file_name, description, likes, sharings, savings, marked_users, archived, date_of_publishing"
)
COUNTER_COLUMNS = frozenset({"likes", "sharings", "savings"})


class PhotosRepository:
    """SQL access to photos and their likes, saved_content and marked_users relations."""

    def __init__(self, connection: Connection):
        self.connection = connection

    async def insert_photo(self, photo: Photo) -> int:
        status = await self.connection.execute(
            """
            INSERT INTO photos (
                id, user_id, file_name, description, likes, sharings, savings,
                marked_users, archived, date_of_publishing
            ) VALUES ($1, $2, $3, $4, $5, $6, $7, $8, $9, $10)
            """,
            photo.id,
            photo.user_id,
            photo.file_name,
            photo.description,
            photo.likes,
            photo.sharings,
            photo.savings,
            photo.marked_users,
            photo.archived,
            photo.date_of_publishing,
        )
        return affected_rows(status)

    async def get_photo(self, photo_id: UUID) -> Optional[Photo]:
        row = await self.connection.fetchrow(f"SELECT {PHOTO_COLUMNS} FROM photos WHERE id = $1", photo_id)
        if row is None:
            return None
        return _photo_from_record(row)

    async def list_user_photos(self, user_id: UUID, archived: Optional[bool] = None) -> list[Photo]:
        """All photos of a user, optionally only the archived or unarchived ones."""
        if archived is None:
            rows = await self.connection.fetch(
                f"""
                SELECT {PHOTO_COLUMNS}
                FROM photos
                WHERE user_id = $1
                ORDER BY date_of_publishing
                """,
                user_id,
            )
        else:
            rows = await self.connection.fetch(
                f"""
                SELECT {PHOTO_COLUMNS}
                FROM photos
                WHERE user_id = $1 AND archived = $2
                ORDER BY date_of_publishing
                """,
                user_id,
                archived,
            )
        return [_photo_from_record(row) for row in rows]

    async def list_public_photos(self) -> list[Photo]:
        rows = await self.connection.fetch(
            f"""
            SELECT {PHOTO_COLUMNS}
            FROM photos
            WHERE archived = FALSE
            ORDER BY date_of_publishing DESC
            """
        )
        return [_photo_from_record(row) for row in rows]

    async def update_description(self, photo_id: UUID, user_id: UUID, description: str) -> int:
        status = await self.connection.execute(
            "UPDATE photos SET description = $3 WHERE id = $1 AND user_id = $2",
            photo_id,
            user_id,
            description,
        )
        return affected_rows(status)

    async def set_archived(self, photo_id: UUID, user_id: UUID, archived: bool) -> int:
        status = await self.connection.execute(
            "UPDATE photos SET archived = $3 WHERE id = $1 AND user_id = $2",
            photo_id,
            user_id,
            archived,
        )
        return affected_rows(status)

    async def delete_photo(self, photo_id: UUID, user_id: UUID) -> int:
        status = await self.connection.execute(
            "DELETE FROM photos WHERE id = $1 AND user_id = $2",
            photo_id,
            user_id,
        )
        return affected_rows(status)

    async def increment_counter(self, photo_id: UUID, column: str) -> int:
        if column not in COUNTER_COLUMNS:
            raise ValueError(f"Unknown counter column: {column}")
        status = await self.connection.execute(
            f"UPDATE photos SET {column} = {column} + 1 WHERE id = $1",
            photo_id,
        )
        return affected_rows(status)

    async def decrement_counter(self, photo_id: UUID, column: str) -> int:
        """Decrement a counter; matches no row rather than going below zero."""
        if column not in COUNTER_COLUMNS:
            raise ValueError(f"Unknown counter column: {column}")
        status = await self.connection.execute(
            f"UPDATE photos SET {column} = {column} - 1 WHERE id = $1 AND {column} > 0",
            photo_id,
        )
        return affected_rows(status)

    async def get_counter(self, photo_id: UUID, column: str) -> Optional[int]:
        if column not in COUNTER_COLUMNS:
            raise ValueError(f"Unknown counter column: {column}")
        return await self.connection.fetchval(f"SELECT {column} FROM photos WHERE id = $1", photo_id)

    async def set_marked_users_flag(self, photo_id: UUID, value: bool) -> int:
        status = await self.connection.execute(
            "UPDATE photos SET marked_users = $2 WHERE id = $1",
            photo_id,
            value,
        )
        return affected_rows(status)

    # Likes
    async def like_exists(self, photo_id: UUID, user_id: UUID) -> bool:
        exists = await self.connection.fetchval(
            "SELECT 1 FROM likes WHERE photo_id = $1 AND user_id = $2",
            photo_id,
            user_id,
        )
        return bool(exists)

    async def insert_like(self, photo_id: UUID, user_id: UUID, liked_at: datetime) -> int:
        try:
            status = await self.connection.execute(
                "INSERT INTO likes (photo_id, user_id, liked_at) VALUES ($1, $2, $3)",
                photo_id,
                user_id,
                liked_at,
            )
        except asyncpg.UniqueViolationError as exc:
            raise DuplicateRowError("likes") from exc
        return affected_rows(status)

    async def delete_like(self, photo_id: UUID, user_id: UUID) -> int:
        status = await self.connection.execute(
            "DELETE FROM likes WHERE photo_id = $1 AND user_id = $2",
            photo_id,
            user_id,
        )
        return affected_rows(status)

    async def list_likes(self, photo_id: UUID) -> list[PhotoLike]:
        rows = await self.connection.fetch(
            "SELECT photo_id, user_id, liked_at FROM likes WHERE photo_id = $1 ORDER BY liked_at",
            photo_id,
        )
        return [PhotoLike(photo_id=row["photo_id"], user_id=row["user_id"], liked_at=row["liked_at"]) for row in rows]

    # Saved content
    async def saved_exists(self, photo_id: UUID, saver_id: UUID) -> bool:
        exists = await self.connection.fetchval(
            "SELECT 1 FROM saved_content WHERE photo_id = $1 AND saver_id = $2",
            photo_id,
            saver_id,
        )
        return bool(exists)

    async def insert_saved(self, photo_id: UUID, saver_id: UUID, saved_at: datetime) -> int:
        try:
            status = await self.connection.execute(
                "INSERT INTO saved_content (photo_id, saver_id, saved_at) VALUES ($1, $2, $3)",
                photo_id,
                saver_id,
                saved_at,
            )
        except asyncpg.UniqueViolationError as exc:
            raise DuplicateRowError("saved_content") from exc
        return affected_rows(status)

    async def delete_saved(self, photo_id: UUID, saver_id: UUID) -> int:
        status = await self.connection.execute(
            "DELETE FROM saved_content WHERE photo_id = $1 AND saver_id = $2",
            photo_id,
            saver_id,
        )
        return affected_rows(status)

    async def list_saved_by_user(self, saver_id: UUID) -> list[SavedContent]:
        rows = await self.connection.fetch(
            """
            SELECT photo_id, saver_id, saved_at
            FROM saved_content
            WHERE saver_id = $1
            ORDER BY saved_at DESC
            """,
            saver_id,
        )
        return [SavedContent(photo_id=row["photo_id"], saver_id=row["saver_id"], saved_at=row["saved_at"]) for row in rows]

    # Marked users
    async def marked_exists(self, photo_id: UUID, marked_user_id: UUID) -> bool:
        exists = await self.connection.fetchval(
            "SELECT 1 FROM marked_users WHERE photo_id = $1 AND marked_user_id = $2",
            photo_id,
            marked_user_id,
        )
        return bool(exists)

    async def insert_marked(self, photo_id: UUID, marked_user_id: UUID, marked_at: datetime) -> int:
        try:
            status = await self.connection.execute(
                "INSERT INTO marked_users (photo_id, marked_user_id, marked_at) VALUES ($1, $2, $3)",
                photo_id,
                marked_user_id,
                marked_at,
            )
        except asyncpg.UniqueViolationError as exc:
            raise DuplicateRowError("marked_users") from exc
        return affected_rows(status)

    async def delete_marked(self, photo_id: UUID, marked_user_id: UUID) -> int:
        status = await self.connection.execute(
            "DELETE FROM marked_users WHERE photo_id = $1 AND marked_user_id = $2",
            photo_id,
            marked_user_id,
        )
        return affected_rows(status)

    async def list_marked(self, photo_id: UUID) -> list[MarkedUser]:
        rows = await self.connection.fetch(
            """
            SELECT photo_id, marked_user_id, marked_at
            FROM marked_users
            WHERE photo_id = $1
            ORDER BY marked_at
            """,
            photo_id,
        )
        return [
            MarkedUser(photo_id=row["photo_id"], marked_user_id=row["marked_user_id"], marked_at=row["marked_at"])
            for row in rows
        ]

    async def count_marked(self, photo_id: UUID) -> int:
        count = await self.connection.fetchval("SELECT COUNT(*) FROM marked_users WHERE photo_id = $1", photo_id)
        return count or 0


def _photo_from_record(row: Record) -> Photo:
    return Photo(
        id=row["id"],
        user_id=row["user_id"],
        file_name=row["file_name"],
        description=row["description"],
        likes=row["likes"],
        sharings=row["sharings"],
        savings=row["savings"],
        marked_users=row["marked_users"],
        archived=row["archived"],
        date_of_publishing=row["date_of_publishing"],
    )
