"""
Utility script to create the database schema.

Relation tables carry composite primary keys, so a duplicate follow, like,
saving, marking or participant row is rejected by the database even when two
requests pass the services' pre-checks at once. Counters are guarded by
CHECK constraints and every relation row cascades with its owner.
"""

import asyncio
import logging
from typing import Optional

import asyncpg

from photogram.config_secrets import DATABASE_URL

logger = logging.getLogger(__name__)

TABLES: list[tuple[str, str]] = [
    (
        "users",
        """
        CREATE TABLE IF NOT EXISTS users (
            id UUID PRIMARY KEY,
            user_name TEXT NOT NULL,
            full_name TEXT NOT NULL,
            date_of_birth DATE NOT NULL,
            avatar TEXT,
            bio TEXT,
            followers INTEGER NOT NULL DEFAULT 0 CHECK (followers >= 0),
            followings INTEGER NOT NULL DEFAULT 0 CHECK (followings >= 0),
            posts INTEGER NOT NULL DEFAULT 0 CHECK (posts >= 0)
        );
        """,
    ),
    (
        "auth_credentials",
        """
        CREATE TABLE IF NOT EXISTS auth_credentials (
            user_id UUID PRIMARY KEY REFERENCES users(id) ON DELETE CASCADE,
            email TEXT UNIQUE NOT NULL,
            password_hash TEXT NOT NULL,
            date_of_registration TIMESTAMPTZ NOT NULL
        );
        """,
    ),
    (
        "follows",
        """
        CREATE TABLE IF NOT EXISTS follows (
            follower_id UUID NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            followed_id UUID NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            follow_date TIMESTAMPTZ NOT NULL,
            PRIMARY KEY (follower_id, followed_id),
            CHECK (follower_id <> followed_id)
        );
        CREATE INDEX IF NOT EXISTS idx_follows_followed_id ON follows(followed_id);
        """,
    ),
    (
        "chats",
        """
        CREATE TABLE IF NOT EXISTS chats (
            id UUID PRIMARY KEY,
            type TEXT NOT NULL CHECK (type IN ('one-to-one', 'group')),
            name TEXT,
            cover TEXT,
            creator_id UUID REFERENCES users(id) ON DELETE CASCADE,
            user1 UUID REFERENCES users(id) ON DELETE CASCADE,
            user2 UUID REFERENCES users(id) ON DELETE CASCADE,
            created_at TIMESTAMPTZ NOT NULL,
            CHECK (
                (type = 'one-to-one' AND user1 IS NOT NULL AND user2 IS NOT NULL AND user1 <> user2)
                OR (type = 'group' AND creator_id IS NOT NULL AND name IS NOT NULL)
            )
        );
        CREATE UNIQUE INDEX IF NOT EXISTS uq_chats_one_to_one_pair
            ON chats (LEAST(user1, user2), GREATEST(user1, user2))
            WHERE type = 'one-to-one';
        CREATE INDEX IF NOT EXISTS idx_chats_creator_id ON chats(creator_id);
        """,
    ),
    (
        "group_chats_participants",
        """
        CREATE TABLE IF NOT EXISTS group_chats_participants (
            chat_id UUID NOT NULL REFERENCES chats(id) ON DELETE CASCADE,
            participant_id UUID NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            joined_at TIMESTAMPTZ NOT NULL,
            PRIMARY KEY (chat_id, participant_id)
        );
        CREATE INDEX IF NOT EXISTS idx_participants_participant_id ON group_chats_participants(participant_id);
        """,
    ),
    (
        "messages",
        """
        CREATE TABLE IF NOT EXISTS messages (
            id UUID PRIMARY KEY,
            chat_id UUID NOT NULL REFERENCES chats(id) ON DELETE CASCADE,
            sender_id UUID NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            type TEXT NOT NULL CHECK (type IN ('text', 'media', 'shared-post')),
            text_content TEXT,
            media_url TEXT,
            shared_post_id UUID,
            sent_at TIMESTAMPTZ NOT NULL,
            is_read BOOLEAN NOT NULL DEFAULT FALSE,
            likes INTEGER NOT NULL DEFAULT 0 CHECK (likes >= 0)
        );
        CREATE INDEX IF NOT EXISTS idx_messages_chat_id_sent_at ON messages(chat_id, sent_at);
        """,
    ),
    (
        "messages_likes",
        """
        CREATE TABLE IF NOT EXISTS messages_likes (
            message_id UUID NOT NULL REFERENCES messages(id) ON DELETE CASCADE,
            liked_by UUID NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            liked_at TIMESTAMPTZ NOT NULL,
            PRIMARY KEY (message_id, liked_by)
        );
        """,
    ),
    (
        "photos",
        """
        CREATE TABLE IF NOT EXISTS photos (
            id UUID PRIMARY KEY,
            user_id UUID NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            file_name TEXT NOT NULL,
            description TEXT NOT NULL DEFAULT '',
            likes INTEGER NOT NULL DEFAULT 0 CHECK (likes >= 0),
            sharings INTEGER NOT NULL DEFAULT 0 CHECK (sharings >= 0),
            savings INTEGER NOT NULL DEFAULT 0 CHECK (savings >= 0),
            marked_users BOOLEAN NOT NULL DEFAULT FALSE,
            archived BOOLEAN NOT NULL DEFAULT FALSE,
            date_of_publishing TIMESTAMPTZ NOT NULL
        );
        CREATE INDEX IF NOT EXISTS idx_photos_user_id ON photos(user_id);
        CREATE INDEX IF NOT EXISTS idx_photos_date_of_publishing ON photos(date_of_publishing DESC);
        """,
    ),
    (
        "likes",
        """
        CREATE TABLE IF NOT EXISTS likes (
            photo_id UUID NOT NULL REFERENCES photos(id) ON DELETE CASCADE,
            user_id UUID NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            liked_at TIMESTAMPTZ NOT NULL,
            PRIMARY KEY (photo_id, user_id)
        );
        """,
    ),
    (
        "saved_content",
        """
        CREATE TABLE IF NOT EXISTS saved_content (
            photo_id UUID NOT NULL REFERENCES photos(id) ON DELETE CASCADE,
            saver_id UUID NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            saved_at TIMESTAMPTZ NOT NULL,
            PRIMARY KEY (photo_id, saver_id)
        );
        CREATE INDEX IF NOT EXISTS idx_saved_content_saver_id ON saved_content(saver_id);
        """,
    ),
    (
        "marked_users",
        """
        CREATE TABLE IF NOT EXISTS marked_users (
            photo_id UUID NOT NULL REFERENCES photos(id) ON DELETE CASCADE,
            marked_user_id UUID NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            marked_at TIMESTAMPTZ NOT NULL,
            PRIMARY KEY (photo_id, marked_user_id)
        );
        """,
    ),
]


async def create_database_tables(connection_string: Optional[str] = None) -> None:
    """
    Create every table, constraint and index in dependency order.

    Args:
        connection_string: Database connection string. If not provided,
            uses the DATABASE_URL from config_secrets.py.
    """
    logger.info("Connecting to database...")
    conn = await asyncpg.connect(connection_string or DATABASE_URL)

    try:
        async with conn.transaction():
            for name, ddl in TABLES:
                await conn.execute(ddl)
                logger.info("Created %s table", name)
        logger.info("All tables created successfully")
    finally:
        await conn.close()


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    asyncio.run(create_database_tables())
