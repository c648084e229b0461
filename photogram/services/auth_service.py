import logging
from datetime import UTC, date, datetime
from typing import Optional
from uuid import UUID, uuid4

from photogram.core.auth import create_token_pair, get_password_hash, verify_password
from photogram.core.cache import ProfileCache
from photogram.core.db import DuplicateRowError
from photogram.models.models import User
from photogram.repositories.auth_repository import AuthRepository
from photogram.repositories.users_repository import UsersRepository
from photogram.schemas.schemas import TokenPair
from photogram.services.errors import (
    CredentialsError,
    EmailAlreadyExistsError,
    ServiceError,
    UserNotFoundError,
)
from photogram.services.user_service import ensure_minimum_age

logger = logging.getLogger(__name__)


class AuthService:
    """Sign-up, sign-in and credential management."""

    def __init__(
        self,
        auth_repository: AuthRepository,
        users_repository: UsersRepository,
        profile_cache: Optional[ProfileCache] = None,
    ):
        self.auth_repository = auth_repository
        self.users_repository = users_repository
        self.profile_cache = profile_cache or ProfileCache()

    async def sign_up(
        self,
        email: str,
        password: str,
        user_name: str,
        full_name: str,
        date_of_birth: date,
    ) -> TokenPair:
        """Create a user with zeroed counters and issue tokens for it"""
        ensure_minimum_age(date_of_birth)

        if await self.auth_repository.email_exists(email):
            raise EmailAlreadyExistsError()

        user = User(id=uuid4(), user_name=user_name, full_name=full_name, date_of_birth=date_of_birth)
        if await self.users_repository.insert_user(user) == 0:
            raise ServiceError("User insert failed")

        try:
            await self.auth_repository.insert_credentials(
                user.id,
                email,
                get_password_hash(password),
                datetime.now(UTC),
            )
        except DuplicateRowError as exc:
            raise EmailAlreadyExistsError() from exc

        logger.info("Signed up user %s", user.id)
        return create_token_pair(user.id)

    async def sign_in(self, email: str, password: str) -> TokenPair:
        credentials = await self.auth_repository.get_credentials_by_email(email)
        if credentials is None:
            raise CredentialsError()
        if not verify_password(password, credentials.password_hash):
            logger.warning("Failed sign-in for user %s", credentials.user_id)
            raise CredentialsError()
        return create_token_pair(credentials.user_id)

    async def change_email(self, user_id: UUID, email: str) -> bool:
        try:
            affected = await self.auth_repository.update_email(user_id, email)
        except DuplicateRowError as exc:
            raise EmailAlreadyExistsError() from exc
        if affected == 0:
            raise UserNotFoundError()
        return True

    async def change_password(self, user_id: UUID, current_password: str, new_password: str) -> bool:
        credentials = await self.auth_repository.get_credentials(user_id)
        if credentials is None:
            raise UserNotFoundError()
        if not verify_password(current_password, credentials.password_hash):
            raise CredentialsError("Current password is incorrect")

        affected = await self.auth_repository.update_password(
            user_id,
            get_password_hash(new_password),
            credentials.password_hash,
        )
        if affected == 0:
            raise CredentialsError("Password was changed concurrently")
        return True

    async def delete_account(self, user_id: UUID) -> bool:
        """
        Delete a user and everything they own.

        Counters the user contributed to on other users, photos and messages
        are released first; relation rows, photos and chats then go with the
        user row through ON DELETE CASCADE.
        """
        if not await self.users_repository.user_exists(user_id):
            raise UserNotFoundError()

        await self.users_repository.release_user_counters(user_id)
        await self.auth_repository.delete_credentials(user_id)
        if await self.users_repository.delete_user(user_id) == 0:
            raise UserNotFoundError()

        await self.profile_cache.invalidate(user_id)
        logger.info("Deleted user %s", user_id)
        return True
