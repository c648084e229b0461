from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, status

from photogram.api.dependencies import get_photo_service
from photogram.core.auth import get_current_user_id
from photogram.schemas.schemas import (
    MarkedUsersResponse,
    MarkUserRequest,
    PhotoCreate,
    PhotoDescriptionUpdate,
    PhotoLikesResponse,
    PhotoResponse,
    PhotosResponse,
    SavedContentResponse,
    SavingsResponse,
    SuccessResponse,
)
from photogram.services.photo_service import PhotoService

router = APIRouter(prefix="/api/v1/photos", tags=["photos"])

Service = Annotated[PhotoService, Depends(get_photo_service)]
CurrentUserId = Annotated[UUID, Depends(get_current_user_id)]


@router.post("", status_code=status.HTTP_201_CREATED)
async def add_photo(data: PhotoCreate, user_id: CurrentUserId, service: Service) -> PhotoResponse:
    """
    Publish a photo that was already stored under ``file_name``.

    Returns:
    - **PhotoResponse**: The new photo with zeroed counters
    """
    return PhotoResponse(photo=await service.add_photo(user_id, data.description, data.file_name))


@router.get("", status_code=status.HTTP_200_OK)
async def get_all_photos(service: Service) -> PhotosResponse:
    return PhotosResponse(photos=await service.get_all_photos())


@router.get("/mine", status_code=status.HTTP_200_OK)
async def get_all_user_photos(user_id: CurrentUserId, service: Service) -> PhotosResponse:
    return PhotosResponse(photos=await service.get_all_user_photos(user_id))


@router.get("/mine/archived", status_code=status.HTTP_200_OK)
async def get_all_user_archived_photos(user_id: CurrentUserId, service: Service) -> PhotosResponse:
    return PhotosResponse(photos=await service.get_all_user_archived_photos(user_id))


@router.get("/mine/unarchived", status_code=status.HTTP_200_OK)
async def get_all_user_unarchived_photos(user_id: CurrentUserId, service: Service) -> PhotosResponse:
    return PhotosResponse(photos=await service.get_all_user_unarchived_photos(user_id))


@router.get("/saved", status_code=status.HTTP_200_OK)
async def get_all_user_saved_content(user_id: CurrentUserId, service: Service) -> SavedContentResponse:
    return SavedContentResponse(saved_content=await service.get_all_user_saved_content(user_id))


@router.patch("/{photo_id}/description", status_code=status.HTTP_200_OK)
async def change_photo_description(
    photo_id: UUID,
    data: PhotoDescriptionUpdate,
    user_id: CurrentUserId,
    service: Service,
) -> SuccessResponse:
    await service.change_photo_description(photo_id, data.description, user_id)
    return SuccessResponse()


@router.patch("/{photo_id}/archive", status_code=status.HTTP_200_OK)
async def archive_photo(photo_id: UUID, user_id: CurrentUserId, service: Service) -> SuccessResponse:
    await service.archive_photo(photo_id, user_id)
    return SuccessResponse()


@router.patch("/{photo_id}/unarchive", status_code=status.HTTP_200_OK)
async def unarchive_photo(photo_id: UUID, user_id: CurrentUserId, service: Service) -> SuccessResponse:
    await service.unarchive_photo(photo_id, user_id)
    return SuccessResponse()


@router.delete("/{photo_id}", status_code=status.HTTP_200_OK)
async def delete_photo(photo_id: UUID, user_id: CurrentUserId, service: Service) -> SuccessResponse:
    """
    Delete one of the current user's photos.

    Raises:
    - **404 Not Found**: If the photo does not exist or belongs to someone else
    """
    await service.delete_photo(photo_id, user_id)
    return SuccessResponse()


@router.post("/{photo_id}/like", status_code=status.HTTP_200_OK)
async def like_photo(photo_id: UUID, user_id: CurrentUserId, service: Service) -> SuccessResponse:
    await service.like_photo(photo_id, user_id)
    return SuccessResponse()


@router.delete("/{photo_id}/like", status_code=status.HTTP_200_OK)
async def unlike_photo(photo_id: UUID, user_id: CurrentUserId, service: Service) -> SuccessResponse:
    await service.unlike_photo(photo_id, user_id)
    return SuccessResponse()


@router.get("/{photo_id}/likes", status_code=status.HTTP_200_OK)
async def get_all_photo_likes(photo_id: UUID, service: Service) -> PhotoLikesResponse:
    return PhotoLikesResponse(likes=await service.get_all_photo_likes(photo_id))


@router.post("/{photo_id}/save", status_code=status.HTTP_200_OK)
async def save_photo(photo_id: UUID, user_id: CurrentUserId, service: Service) -> SuccessResponse:
    await service.save_photo(photo_id, user_id)
    return SuccessResponse()


@router.delete("/{photo_id}/save", status_code=status.HTTP_200_OK)
async def unsave_photo(photo_id: UUID, user_id: CurrentUserId, service: Service) -> SuccessResponse:
    await service.unsave_photo(photo_id, user_id)
    return SuccessResponse()


@router.get("/{photo_id}/savings", status_code=status.HTTP_200_OK)
async def get_photo_savings(photo_id: UUID, service: Service) -> SavingsResponse:
    return SavingsResponse(savings=await service.get_photo_savings(photo_id))


@router.post("/{photo_id}/marked-users", status_code=status.HTTP_200_OK)
async def mark_user(
    photo_id: UUID,
    data: MarkUserRequest,
    user_id: CurrentUserId,
    service: Service,
) -> SuccessResponse:
    """
    Mark a user on one of the current user's photos.

    Raises:
    - **404 Not Found**: If the photo or the marked user does not exist
    - **409 Conflict**: If the user is already marked
    """
    await service.mark_user(photo_id, user_id, data.marked_user_id)
    return SuccessResponse()


@router.delete("/{photo_id}/marked-users/{marked_user_id}", status_code=status.HTTP_200_OK)
async def unmark_user(
    photo_id: UUID,
    marked_user_id: UUID,
    user_id: CurrentUserId,
    service: Service,
) -> SuccessResponse:
    """
    Remove a marked user, then clear the photo's flag if nobody is left.
    Both steps share the request's transaction.
    """
    await service.unmark_user(photo_id, user_id, marked_user_id)
    await service.sync_marked_users_flag(photo_id, user_id)
    return SuccessResponse()


@router.get("/{photo_id}/marked-users", status_code=status.HTTP_200_OK)
async def get_users_marked_in_photo(photo_id: UUID, service: Service) -> MarkedUsersResponse:
    return MarkedUsersResponse(marked_users=await service.get_users_marked_in_photo(photo_id))
