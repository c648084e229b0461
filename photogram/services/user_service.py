import logging
from datetime import date
from typing import Any, Optional
from uuid import UUID

from photogram.config_secrets import EMPTY_RESULT_IS_ERROR, MINIMUM_SIGN_UP_AGE
from photogram.core.cache import ProfileCache
from photogram.models.models import User
from photogram.repositories.users_repository import UsersRepository
from photogram.services.errors import NoUsersError, UnderageError, UserNotFoundError, ensure_not_empty

logger = logging.getLogger(__name__)


def calculate_age(date_of_birth: date, today: Optional[date] = None) -> int:
    """Age in whole years; a birthday not reached yet this year counts one less."""
    today = today or date.today()
    age = today.year - date_of_birth.year
    if (today.month, today.day) < (date_of_birth.month, date_of_birth.day):
        age -= 1
    return age


def ensure_minimum_age(date_of_birth: date, today: Optional[date] = None) -> None:
    if calculate_age(date_of_birth, today) < MINIMUM_SIGN_UP_AGE:
        raise UnderageError(f"User must be at least {MINIMUM_SIGN_UP_AGE} years old")


class UserService:
    """User profile reads and edits."""

    def __init__(
        self,
        users_repository: UsersRepository,
        profile_cache: Optional[ProfileCache] = None,
        empty_result_is_error: bool = EMPTY_RESULT_IS_ERROR,
    ):
        self.users_repository = users_repository
        self.profile_cache = profile_cache or ProfileCache()
        self.empty_result_is_error = empty_result_is_error

    async def get_user_info(self, user_id: UUID) -> User:
        """Get user by ID with caching"""
        cached = await self.profile_cache.get(user_id)
        if cached:
            return User.model_validate(cached)

        user = await self.users_repository.get_user(user_id)
        if user is None:
            raise UserNotFoundError()

        await self.profile_cache.set(user_id, user.model_dump())
        return user

    async def get_all_users(self) -> list[User]:
        users = await self.users_repository.get_all_users()
        return ensure_not_empty(users, NoUsersError, self.empty_result_is_error)

    async def change_user_name(self, user_id: UUID, user_name: str) -> bool:
        return await self._update(user_id, "user_name", user_name)

    async def change_full_name(self, user_id: UUID, full_name: str) -> bool:
        return await self._update(user_id, "full_name", full_name)

    async def change_date_of_birth(self, user_id: UUID, date_of_birth: date) -> bool:
        ensure_minimum_age(date_of_birth)
        return await self._update(user_id, "date_of_birth", date_of_birth)

    async def add_avatar(self, user_id: UUID, avatar: str) -> bool:
        return await self._update(user_id, "avatar", avatar)

    async def delete_avatar(self, user_id: UUID) -> bool:
        return await self._update(user_id, "avatar", None)

    async def add_bio(self, user_id: UUID, bio: str) -> bool:
        return await self._update(user_id, "bio", bio)

    async def delete_bio(self, user_id: UUID) -> bool:
        return await self._update(user_id, "bio", None)

    async def _update(self, user_id: UUID, column: str, value: Any) -> bool:
        if await self.users_repository.update_profile_field(user_id, column, value) == 0:
            raise UserNotFoundError()

        await self.profile_cache.invalidate(user_id)
        logger.info("Updated %s of user %s", column, user_id)
        return True
