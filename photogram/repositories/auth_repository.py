from datetime import datetime
from typing import Optional
from uuid import UUID

import asyncpg
from asyncpg import Connection, Record

from photogram.core.db import DuplicateRowError, affected_rows
from photogram.models.models import AuthCredentials


class AuthRepository:
    """SQL access to auth_credentials, bound to one unit of work."""

    def __init__(self, connection: Connection):
        self.connection = connection

    async def email_exists(self, email: str) -> bool:
        exists = await self.connection.fetchval(
            "SELECT 1 FROM auth_credentials WHERE email = $1",
            email,
        )
        return bool(exists)

    async def insert_credentials(
        self,
        user_id: UUID,
        email: str,
        password_hash: str,
        date_of_registration: datetime,
    ) -> int:
        try:
            status = await self.connection.execute(
                """
                INSERT INTO auth_credentials (user_id, email, password_hash, date_of_registration)
                VALUES ($1, $2, $3, $4)
                """,
                user_id,
                email,
                password_hash,
                date_of_registration,
            )
        except asyncpg.UniqueViolationError as exc:
            raise DuplicateRowError("auth_credentials") from exc
        return affected_rows(status)

    async def get_credentials(self, user_id: UUID) -> Optional[AuthCredentials]:
        row = await self.connection.fetchrow(
            """
            SELECT user_id, email, password_hash, date_of_registration
            FROM auth_credentials
            WHERE user_id = $1
            """,
            user_id,
        )
        if row is None:
            return None
        return _credentials_from_record(row)

    async def get_credentials_by_email(self, email: str) -> Optional[AuthCredentials]:
        row = await self.connection.fetchrow(
            """
            SELECT user_id, email, password_hash, date_of_registration
            FROM auth_credentials
            WHERE email = $1
            """,
            email,
        )
        if row is None:
            return None
        return _credentials_from_record(row)

    async def update_email(self, user_id: UUID, email: str) -> int:
        try:
            status = await self.connection.execute(
                "UPDATE auth_credentials SET email = $2 WHERE user_id = $1",
                user_id,
                email,
            )
        except asyncpg.UniqueViolationError as exc:
            raise DuplicateRowError("auth_credentials") from exc
        return affected_rows(status)

    async def update_password(self, user_id: UUID, new_hash: str, current_hash: str) -> int:
        """Swap the hash only if it still is the one that was verified."""
        status = await self.connection.execute(
            """
            UPDATE auth_credentials
            SET password_hash = $2
            WHERE user_id = $1 AND password_hash = $3
            """,
            user_id,
            new_hash,
            current_hash,
        )
        return affected_rows(status)

    async def delete_credentials(self, user_id: UUID) -> int:
        status = await self.connection.execute("DELETE FROM auth_credentials WHERE user_id = $1", user_id)
        return affected_rows(status)


def _credentials_from_record(row: Record) -> AuthCredentials:
    return AuthCredentials(
        user_id=row["user_id"],
        email=row["email"],
        password_hash=row["password_hash"],
        date_of_registration=row["date_of_registration"],
    )
