"""
SQL repositories against a mocked asyncpg connection.

These check the translation layer only: status strings into affected-row
counts, unique violations into ``DuplicateRowError``, records into models.
"""

from datetime import UTC, date, datetime
from unittest.mock import AsyncMock
from uuid import uuid4

import asyncpg
import pytest

from photogram.core.db import DuplicateRowError, MissingReferenceError, affected_rows
from photogram.models.models import Chat, ChatType
from photogram.repositories.chats_repository import ChatsRepository
from photogram.repositories.messages_repository import MessagesRepository
from photogram.repositories.photos_repository import PhotosRepository
from photogram.repositories.users_repository import UsersRepository


@pytest.fixture
def connection():
    return AsyncMock()


class TestAffectedRows:
    @pytest.mark.parametrize(
        ("status", "expected"),
        [
            ("UPDATE 1", 1),
            ("UPDATE 0", 0),
            ("INSERT 0 1", 1),
            ("DELETE 3", 3),
            ("", 0),
            ("SELECT", 0),
        ],
    )
    def test_parses_command_status(self, status, expected):
        assert affected_rows(status) == expected


class TestUsersRepository:
    async def test_guarded_decrement_reports_zero_rows(self, connection):
        connection.execute.return_value = "UPDATE 0"

        affected = await UsersRepository(connection).decrement_counter(uuid4(), "followers")

        assert affected == 0
        statement = connection.execute.await_args.args[0]
        assert "followers > 0" in statement

    async def test_unknown_counter_column_is_refused(self, connection):
        with pytest.raises(ValueError):
            await UsersRepository(connection).increment_counter(uuid4(), "followers; DROP TABLE users")

        connection.execute.assert_not_awaited()

    async def test_duplicate_follow(self, connection):
        connection.execute.side_effect = asyncpg.UniqueViolationError("duplicate key")

        with pytest.raises(DuplicateRowError):
            await UsersRepository(connection).insert_follow(uuid4(), uuid4(), datetime.now(UTC))

    async def test_get_user_maps_record(self, connection):
        user_id = uuid4()
        connection.fetchrow.return_value = {
            "id": user_id,
            "user_name": "alice",
            "full_name": "Alice",
            "date_of_birth": date(1990, 1, 1),
            "avatar": None,
            "bio": None,
            "followers": 2,
            "followings": 3,
            "posts": 4,
        }

        user = await UsersRepository(connection).get_user(user_id)

        assert user.id == user_id
        assert (user.followers, user.followings, user.posts) == (2, 3, 4)

    async def test_get_missing_user(self, connection):
        connection.fetchrow.return_value = None

        assert await UsersRepository(connection).get_user(uuid4()) is None


class TestChatsRepository:
    async def test_duplicate_pair(self, connection):
        connection.execute.side_effect = asyncpg.UniqueViolationError("uq_chats_one_to_one_pair")
        chat = Chat(type=ChatType.ONE_TO_ONE, user1=uuid4(), user2=uuid4(), created_at=datetime.now(UTC))

        with pytest.raises(DuplicateRowError):
            await ChatsRepository(connection).insert_one_to_one_chat(chat)

    async def test_unknown_user_in_pair(self, connection):
        connection.execute.side_effect = asyncpg.ForeignKeyViolationError("chats_user2_fkey")
        chat = Chat(type=ChatType.ONE_TO_ONE, user1=uuid4(), user2=uuid4(), created_at=datetime.now(UTC))

        with pytest.raises(MissingReferenceError):
            await ChatsRepository(connection).insert_one_to_one_chat(chat)

    async def test_unknown_participant(self, connection):
        connection.execute.side_effect = asyncpg.ForeignKeyViolationError("participant_id_fkey")

        with pytest.raises(MissingReferenceError):
            await ChatsRepository(connection).insert_participant(uuid4(), uuid4(), datetime.now(UTC))

    async def test_pair_lookup_checks_both_directions(self, connection):
        connection.fetchrow.return_value = None
        first, second = uuid4(), uuid4()

        assert await ChatsRepository(connection).find_one_to_one_chat(first, second) is None

        statement, *params = connection.fetchrow.await_args.args
        assert "(user1 = $2 AND user2 = $1)" in statement
        assert params == [first, second]

    async def test_get_chat_maps_type(self, connection):
        chat_id, creator_id = uuid4(), uuid4()
        connection.fetchrow.return_value = {
            "id": chat_id,
            "type": "group",
            "name": "friends",
            "cover": None,
            "creator_id": creator_id,
            "user1": None,
            "user2": None,
            "created_at": datetime.now(UTC),
        }

        chat = await ChatsRepository(connection).get_chat(chat_id)

        assert chat.is_group
        assert chat.creator_id == creator_id

    async def test_membership(self, connection):
        connection.fetchval.return_value = None

        assert await ChatsRepository(connection).is_member(uuid4(), uuid4()) is False


class TestMessagesRepository:
    async def test_duplicate_like(self, connection):
        connection.execute.side_effect = asyncpg.UniqueViolationError("duplicate key")

        with pytest.raises(DuplicateRowError):
            await MessagesRepository(connection).insert_like(uuid4(), uuid4(), datetime.now(UTC))

    async def test_edit_only_touches_senders_text_messages(self, connection):
        connection.execute.return_value = "UPDATE 0"

        assert await MessagesRepository(connection).update_text(uuid4(), uuid4(), "text") == 0

        statement = connection.execute.await_args.args[0]
        assert "sender_id = $2" in statement
        assert "type = 'text'" in statement


class TestPhotosRepository:
    async def test_owner_scoped_delete(self, connection):
        connection.execute.return_value = "DELETE 1"

        assert await PhotosRepository(connection).delete_photo(uuid4(), uuid4()) == 1

        statement = connection.execute.await_args.args[0]
        assert "user_id = $2" in statement

    async def test_duplicate_saving(self, connection):
        connection.execute.side_effect = asyncpg.UniqueViolationError("duplicate key")

        with pytest.raises(DuplicateRowError):
            await PhotosRepository(connection).insert_saved(uuid4(), uuid4(), datetime.now(UTC))

    async def test_count_marked_defaults_to_zero(self, connection):
        connection.fetchval.return_value = None

        assert await PhotosRepository(connection).count_marked(uuid4()) == 0
