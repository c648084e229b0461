import logging
from datetime import UTC, datetime
from typing import Optional
from uuid import UUID

from photogram.config_secrets import EMPTY_RESULT_IS_ERROR
from photogram.core.cache import ProfileCache
from photogram.core.db import DuplicateRowError
from photogram.models.models import FollowEdge
from photogram.repositories.users_repository import UsersRepository
from photogram.services.errors import (
    AlreadyFollowingError,
    NoFollowersError,
    NoFollowingError,
    NotFollowingError,
    SelfFollowError,
    UserNotFoundError,
    ensure_counter_updated,
    ensure_not_empty,
)

logger = logging.getLogger(__name__)


class FollowService:
    """
    Follow graph maintenance.

    Keeps the ``followers``/``followings`` counters of both users and the
    ``follows`` relation consistent. Every operation runs inside the unit
    of work the repository is bound to; a raised error rolls all of its
    writes back.
    """

    def __init__(
        self,
        users_repository: UsersRepository,
        profile_cache: Optional[ProfileCache] = None,
        empty_result_is_error: bool = EMPTY_RESULT_IS_ERROR,
    ):
        self.users_repository = users_repository
        self.profile_cache = profile_cache or ProfileCache()
        self.empty_result_is_error = empty_result_is_error

    async def follow(self, follower_id: UUID, followed_id: UUID) -> bool:
        """Follow a user"""
        if follower_id == followed_id:
            raise SelfFollowError()

        if not await self.users_repository.user_exists(followed_id):
            raise UserNotFoundError()

        if await self.users_repository.follow_exists(follower_id, followed_id):
            raise AlreadyFollowingError()

        affected = await self.users_repository.increment_counter(follower_id, "followings")
        ensure_counter_updated(affected, f"followings of {follower_id}")
        affected = await self.users_repository.increment_counter(followed_id, "followers")
        ensure_counter_updated(affected, f"followers of {followed_id}")

        # A concurrent follow can pass the check above; the primary key catches it.
        try:
            await self.users_repository.insert_follow(follower_id, followed_id, datetime.now(UTC))
        except DuplicateRowError as exc:
            raise AlreadyFollowingError() from exc

        await self.profile_cache.invalidate(follower_id, followed_id)
        logger.info("User %s followed %s", follower_id, followed_id)
        return True

    async def unfollow(self, follower_id: UUID, followed_id: UUID) -> bool:
        """Unfollow a currently followed user"""
        if not await self.users_repository.follow_exists(follower_id, followed_id):
            raise NotFollowingError()

        if await self.users_repository.delete_follow(follower_id, followed_id) == 0:
            raise NotFollowingError()

        affected = await self.users_repository.decrement_counter(follower_id, "followings")
        ensure_counter_updated(affected, f"followings of {follower_id}")
        affected = await self.users_repository.decrement_counter(followed_id, "followers")
        ensure_counter_updated(affected, f"followers of {followed_id}")

        await self.profile_cache.invalidate(follower_id, followed_id)
        logger.info("User %s unfollowed %s", follower_id, followed_id)
        return True

    async def list_followers(self, user_id: UUID) -> list[FollowEdge]:
        """Edges pointing at the user"""
        followers = await self.users_repository.list_followers(user_id)
        return ensure_not_empty(followers, NoFollowersError, self.empty_result_is_error)

    async def list_following(self, user_id: UUID) -> list[FollowEdge]:
        """Edges starting at the user"""
        following = await self.users_repository.list_followings(user_id)
        return ensure_not_empty(following, NoFollowingError, self.empty_result_is_error)
