from datetime import datetime
from typing import Any, Optional
from uuid import UUID

import asyncpg
from asyncpg import Connection, Record

from photogram.core.db import DuplicateRowError, affected_rows
from photogram.models.models import FollowEdge, User

# Columns that may be interpolated into statements; everything else is a parameter.
PROFILE_COLUMNS = frozenset({"user_name", "full_name", "date_of_birth", "avatar", "bio"})
COUNTER_COLUMNS = frozenset({"followers", "followings", "posts"})


class UsersRepository:
    """SQL access to users and the follows relation, bound to one unit of work."""

    def __init__(self, connection: Connection):
        self.connection = connection

    async def insert_user(self, user: User) -> int:
        status = await self.connection.execute(
            """
            INSERT INTO users (id, user_name, full_name, date_of_birth, avatar, bio, followers, followings, posts)
            VALUES ($1, $2, $3, $4, $5, $6, $7, $8, $9)
            """,
            user.id,
            user.user_name,
            user.full_name,
            user.date_of_birth,
            user.avatar,
            user.bio,
            user.followers,
            user.followings,
            user.posts,
        )
        return affected_rows(status)

    async def get_user(self, user_id: UUID) -> Optional[User]:
        row = await self.connection.fetchrow(
            """
            SELECT id, user_name, full_name, date_of_birth, avatar, bio, followers, followings, posts
            FROM users
            WHERE id = $1
            """,
            user_id,
        )
        if row is None:
            return None
        return _user_from_record(row)

    async def get_all_users(self) -> list[User]:
        rows = await self.connection.fetch(
            """
            SELECT id, user_name, full_name, date_of_birth, avatar, bio, followers, followings, posts
            FROM users
            ORDER BY user_name
            """
        )
        return [_user_from_record(row) for row in rows]

    async def user_exists(self, user_id: UUID) -> bool:
        exists = await self.connection.fetchval("SELECT 1 FROM users WHERE id = $1", user_id)
        return bool(exists)

    async def update_profile_field(self, user_id: UUID, column: str, value: Any) -> int:
        if column not in PROFILE_COLUMNS:
            raise ValueError(f"Unknown profile column: {column}")
        status = await self.connection.execute(
            f"UPDATE users SET {column} = $2 WHERE id = $1",
            user_id,
            value,
        )
        return affected_rows(status)

    async def increment_counter(self, user_id: UUID, column: str) -> int:
        if column not in COUNTER_COLUMNS:
            raise ValueError(f"Unknown counter column: {column}")
        status = await self.connection.execute(
            f"UPDATE users SET {column} = {column} + 1 WHERE id = $1",
            user_id,
        )
        return affected_rows(status)

    async def decrement_counter(self, user_id: UUID, column: str) -> int:
        """Decrement a counter; matches no row rather than going below zero."""
        if column not in COUNTER_COLUMNS:
            raise ValueError(f"Unknown counter column: {column}")
        status = await self.connection.execute(
            f"UPDATE users SET {column} = {column} - 1 WHERE id = $1 AND {column} > 0",
            user_id,
        )
        return affected_rows(status)

    async def delete_user(self, user_id: UUID) -> int:
        status = await self.connection.execute("DELETE FROM users WHERE id = $1", user_id)
        return affected_rows(status)

    async def release_user_counters(self, user_id: UUID) -> None:
        """
        Give back every counter contribution the user made on rows owned by others.

        Runs before the user row is deleted, while the relation rows that the
        counters summarize still exist.
        """
        await self.connection.execute(
            """
            UPDATE users SET followers = followers - 1
            WHERE id IN (SELECT followed_id FROM follows WHERE follower_id = $1) AND followers > 0
            """,
            user_id,
        )
        await self.connection.execute(
            """
            UPDATE users SET followings = followings - 1
            WHERE id IN (SELECT follower_id FROM follows WHERE followed_id = $1) AND followings > 0
            """,
            user_id,
        )
        await self.connection.execute(
            """
            UPDATE photos SET likes = likes - 1
            WHERE id IN (SELECT photo_id FROM likes WHERE user_id = $1) AND likes > 0
            """,
            user_id,
        )
        await self.connection.execute(
            """
            UPDATE photos SET savings = savings - 1
            WHERE id IN (SELECT photo_id FROM saved_content WHERE saver_id = $1) AND savings > 0
            """,
            user_id,
        )
        await self.connection.execute(
            """
            UPDATE messages SET likes = likes - 1
            WHERE id IN (SELECT message_id FROM messages_likes WHERE liked_by = $1) AND likes > 0
            """,
            user_id,
        )
        # Photos where the user is the only one marked lose their flag.
        await self.connection.execute(
            """
            UPDATE photos p SET marked_users = FALSE
            WHERE p.id IN (SELECT photo_id FROM marked_users WHERE marked_user_id = $1)
              AND NOT EXISTS (
                SELECT 1 FROM marked_users m
                WHERE m.photo_id = p.id AND m.marked_user_id <> $1
              )
            """,
            user_id,
        )

    # Follows
    async def follow_exists(self, follower_id: UUID, followed_id: UUID) -> bool:
        exists = await self.connection.fetchval(
            """
            SELECT 1 FROM follows
            WHERE follower_id = $1 AND followed_id = $2
            """,
            follower_id,
            followed_id,
        )
        return bool(exists)

    async def insert_follow(self, follower_id: UUID, followed_id: UUID, follow_date: datetime) -> int:
        try:
            status = await self.connection.execute(
                """
                INSERT INTO follows (follower_id, followed_id, follow_date)
                VALUES ($1, $2, $3)
                """,
                follower_id,
                followed_id,
                follow_date,
            )
        except asyncpg.UniqueViolationError as exc:
            raise DuplicateRowError("follows") from exc
        return affected_rows(status)

    async def delete_follow(self, follower_id: UUID, followed_id: UUID) -> int:
        status = await self.connection.execute(
            """
            DELETE FROM follows
            WHERE follower_id = $1 AND followed_id = $2
            """,
            follower_id,
            followed_id,
        )
        return affected_rows(status)

    async def list_followers(self, user_id: UUID) -> list[FollowEdge]:
        rows = await self.connection.fetch(
            """
            SELECT follower_id, followed_id, follow_date
            FROM follows
            WHERE followed_id = $1
            ORDER BY follow_date DESC
            """,
            user_id,
        )
        return [_follow_from_record(row) for row in rows]

    async def list_followings(self, user_id: UUID) -> list[FollowEdge]:
        rows = await self.connection.fetch(
            """
            SELECT follower_id, followed_id, follow_date
            FROM follows
            WHERE follower_id = $1
            ORDER BY follow_date DESC
            """,
            user_id,
        )
        return [_follow_from_record(row) for row in rows]


def _user_from_record(row: Record) -> User:
    return User(
        id=row["id"],
        user_name=row["user_name"],
        full_name=row["full_name"],
        date_of_birth=row["date_of_birth"],
        avatar=row["avatar"],
        bio=row["bio"],
        followers=row["followers"],
        followings=row["followings"],
        posts=row["posts"],
    )


def _follow_from_record(row: Record) -> FollowEdge:
    return FollowEdge(
        follower_id=row["follower_id"],
        followed_id=row["followed_id"],
        follow_date=row["follow_date"],
    )
