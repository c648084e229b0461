import logging
from datetime import UTC, datetime
from typing import Optional
from uuid import UUID, uuid4

from photogram.config_secrets import EMPTY_RESULT_IS_ERROR
from photogram.core.cache import ProfileCache
from photogram.core.db import DuplicateRowError
from photogram.models.models import MarkedUser, Photo, PhotoLike, SavedContent
from photogram.repositories.photos_repository import PhotosRepository
from photogram.repositories.users_repository import UsersRepository
from photogram.services.errors import (
    AlreadyLikedError,
    AlreadyMarkedError,
    AlreadySavedError,
    NoLikesError,
    NoMarkedUsersError,
    NoPhotosError,
    NoSavedContentError,
    NotLikedError,
    NotMarkedError,
    NotSavedError,
    PhotoNotFoundError,
    ServiceError,
    UserNotFoundError,
    ensure_counter_updated,
    ensure_not_empty,
)

logger = logging.getLogger(__name__)


class PhotoService:
    """
    Photos and the interactions recorded against them.

    Each interaction is a relation row plus a denormalized counter on the
    photo. Adding inserts the row before incrementing; removing deletes the
    row before a guarded decrement. Either step matching no row raises, and
    the unit of work rolls the pair back together.
    """

    def __init__(
        self,
        photos_repository: PhotosRepository,
        users_repository: UsersRepository,
        profile_cache: Optional[ProfileCache] = None,
        empty_result_is_error: bool = EMPTY_RESULT_IS_ERROR,
    ):
        self.photos_repository = photos_repository
        self.users_repository = users_repository
        self.profile_cache = profile_cache or ProfileCache()
        self.empty_result_is_error = empty_result_is_error

    async def add_photo(self, user_id: UUID, description: str, file_name: str) -> Photo:
        photo = Photo(
            id=uuid4(),
            user_id=user_id,
            file_name=file_name,
            description=description,
            date_of_publishing=datetime.now(UTC),
        )
        if await self.photos_repository.insert_photo(photo) == 0:
            raise ServiceError("Photo wasn't added")

        affected = await self.users_repository.increment_counter(user_id, "posts")
        ensure_counter_updated(affected, f"posts of {user_id}")

        await self.profile_cache.invalidate(user_id)
        logger.info("User %s published photo %s", user_id, photo.id)
        return photo

    async def get_all_user_photos(self, user_id: UUID) -> list[Photo]:
        photos = await self.photos_repository.list_user_photos(user_id)
        return ensure_not_empty(photos, NoPhotosError, self.empty_result_is_error)

    async def get_all_user_archived_photos(self, user_id: UUID) -> list[Photo]:
        photos = await self.photos_repository.list_user_photos(user_id, archived=True)
        return ensure_not_empty(photos, NoPhotosError, self.empty_result_is_error)

    async def get_all_user_unarchived_photos(self, user_id: UUID) -> list[Photo]:
        photos = await self.photos_repository.list_user_photos(user_id, archived=False)
        return ensure_not_empty(photos, NoPhotosError, self.empty_result_is_error)

    async def get_all_photos(self) -> list[Photo]:
        """Every unarchived photo, newest first"""
        photos = await self.photos_repository.list_public_photos()
        return ensure_not_empty(photos, NoPhotosError, self.empty_result_is_error)

    async def change_photo_description(self, photo_id: UUID, description: str, user_id: UUID) -> bool:
        if await self.photos_repository.update_description(photo_id, user_id, description) == 0:
            raise PhotoNotFoundError()
        return True

    async def archive_photo(self, photo_id: UUID, user_id: UUID) -> bool:
        if await self.photos_repository.set_archived(photo_id, user_id, True) == 0:
            raise PhotoNotFoundError()
        return True

    async def unarchive_photo(self, photo_id: UUID, user_id: UUID) -> bool:
        if await self.photos_repository.set_archived(photo_id, user_id, False) == 0:
            raise PhotoNotFoundError()
        return True

    async def delete_photo(self, photo_id: UUID, user_id: UUID) -> bool:
        if await self.photos_repository.delete_photo(photo_id, user_id) == 0:
            raise PhotoNotFoundError()

        affected = await self.users_repository.decrement_counter(user_id, "posts")
        ensure_counter_updated(affected, f"posts of {user_id}")

        await self.profile_cache.invalidate(user_id)
        logger.info("User %s deleted photo %s", user_id, photo_id)
        return True

    # Likes
    async def like_photo(self, photo_id: UUID, user_id: UUID) -> bool:
        await self._get_photo(photo_id)
        if await self.photos_repository.like_exists(photo_id, user_id):
            raise AlreadyLikedError("Photo was already liked by this user")

        try:
            affected = await self.photos_repository.insert_like(photo_id, user_id, datetime.now(UTC))
        except DuplicateRowError as exc:
            raise AlreadyLikedError("Photo was already liked by this user") from exc
        if affected == 0:
            raise ServiceError("Like wasn't added")

        affected = await self.photos_repository.increment_counter(photo_id, "likes")
        ensure_counter_updated(affected, f"likes of photo {photo_id}")
        return True

    async def unlike_photo(self, photo_id: UUID, user_id: UUID) -> bool:
        if await self.photos_repository.delete_like(photo_id, user_id) == 0:
            raise NotLikedError("Photo wasn't liked by this user")

        affected = await self.photos_repository.decrement_counter(photo_id, "likes")
        ensure_counter_updated(affected, f"likes of photo {photo_id}")
        return True

    async def get_all_photo_likes(self, photo_id: UUID) -> list[PhotoLike]:
        likes = await self.photos_repository.list_likes(photo_id)
        return ensure_not_empty(likes, NoLikesError, self.empty_result_is_error)

    # Saved content
    async def save_photo(self, photo_id: UUID, saver_id: UUID) -> bool:
        await self._get_photo(photo_id)
        if await self.photos_repository.saved_exists(photo_id, saver_id):
            raise AlreadySavedError()

        try:
            affected = await self.photos_repository.insert_saved(photo_id, saver_id, datetime.now(UTC))
        except DuplicateRowError as exc:
            raise AlreadySavedError() from exc
        if affected == 0:
            raise ServiceError("Photo wasn't saved")

        affected = await self.photos_repository.increment_counter(photo_id, "savings")
        ensure_counter_updated(affected, f"savings of photo {photo_id}")
        return True

    async def unsave_photo(self, photo_id: UUID, saver_id: UUID) -> bool:
        if await self.photos_repository.delete_saved(photo_id, saver_id) == 0:
            raise NotSavedError()

        affected = await self.photos_repository.decrement_counter(photo_id, "savings")
        ensure_counter_updated(affected, f"savings of photo {photo_id}")
        return True

    async def get_all_user_saved_content(self, saver_id: UUID) -> list[SavedContent]:
        saved = await self.photos_repository.list_saved_by_user(saver_id)
        return ensure_not_empty(saved, NoSavedContentError, self.empty_result_is_error)

    async def get_photo_savings(self, photo_id: UUID) -> int:
        savings = await self.photos_repository.get_counter(photo_id, "savings")
        if savings is None:
            raise PhotoNotFoundError()
        return savings

    # Marked users
    async def mark_user(self, photo_id: UUID, owner_id: UUID, marked_user_id: UUID) -> bool:
        await self._get_owned_photo(photo_id, owner_id)
        if not await self.users_repository.user_exists(marked_user_id):
            raise UserNotFoundError()
        if await self.photos_repository.marked_exists(photo_id, marked_user_id):
            raise AlreadyMarkedError()

        try:
            affected = await self.photos_repository.insert_marked(photo_id, marked_user_id, datetime.now(UTC))
        except DuplicateRowError as exc:
            raise AlreadyMarkedError() from exc
        if affected == 0:
            raise ServiceError("User wasn't marked")

        affected = await self.photos_repository.set_marked_users_flag(photo_id, True)
        ensure_counter_updated(affected, f"marked_users flag of photo {photo_id}")
        return True

    async def unmark_user(self, photo_id: UUID, owner_id: UUID, marked_user_id: UUID) -> bool:
        """Delete the relation row only; the flag is settled by sync_marked_users_flag"""
        await self._get_owned_photo(photo_id, owner_id)
        if await self.photos_repository.delete_marked(photo_id, marked_user_id) == 0:
            raise NotMarkedError()
        return True

    async def sync_marked_users_flag(self, photo_id: UUID, owner_id: UUID) -> bool:
        """Clear the photo's ``marked_users`` flag once nobody is marked on it"""
        photo = await self._get_owned_photo(photo_id, owner_id)
        if await self.photos_repository.count_marked(photo_id) > 0:
            return photo.marked_users

        if photo.marked_users:
            affected = await self.photos_repository.set_marked_users_flag(photo_id, False)
            ensure_counter_updated(affected, f"marked_users flag of photo {photo_id}")
        return False

    async def get_users_marked_in_photo(self, photo_id: UUID) -> list[MarkedUser]:
        marked = await self.photos_repository.list_marked(photo_id)
        return ensure_not_empty(marked, NoMarkedUsersError, self.empty_result_is_error)

    async def _get_photo(self, photo_id: UUID) -> Photo:
        photo = await self.photos_repository.get_photo(photo_id)
        if photo is None:
            raise PhotoNotFoundError()
        return photo

    async def _get_owned_photo(self, photo_id: UUID, owner_id: UUID) -> Photo:
        photo = await self._get_photo(photo_id)
        # Someone else's photo reads as missing, like the owner-scoped updates.
        if photo.user_id != owner_id:
            raise PhotoNotFoundError()
        return photo
