from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, status

from photogram.api.dependencies import get_follow_service, get_user_service
from photogram.core.auth import get_current_user_id
from photogram.schemas.schemas import (
    AvatarRequest,
    BioRequest,
    ChangeDateOfBirthRequest,
    ChangeFullNameRequest,
    ChangeUserNameRequest,
    FollowersResponse,
    FollowingResponse,
    SuccessResponse,
    UserResponse,
    UsersResponse,
)
from photogram.services.follow_service import FollowService
from photogram.services.user_service import UserService

router = APIRouter(prefix="/api/v1/users", tags=["users"])

Users = Annotated[UserService, Depends(get_user_service)]
Follows = Annotated[FollowService, Depends(get_follow_service)]
CurrentUserId = Annotated[UUID, Depends(get_current_user_id)]


@router.get("/all", status_code=status.HTTP_200_OK)
async def get_all_users(service: Users) -> UsersResponse:
    """
    List every user.

    Raises:
    - **404 Not Found**: If there are no users
    """
    return UsersResponse(users=await service.get_all_users())


@router.get("/me", status_code=status.HTTP_200_OK)
async def get_me(user_id: CurrentUserId, service: Users) -> UserResponse:
    return UserResponse(user=await service.get_user_info(user_id))


@router.patch("/username", status_code=status.HTTP_200_OK)
async def change_user_name(data: ChangeUserNameRequest, user_id: CurrentUserId, service: Users) -> SuccessResponse:
    await service.change_user_name(user_id, data.user_name)
    return SuccessResponse()


@router.patch("/full-name", status_code=status.HTTP_200_OK)
async def change_full_name(data: ChangeFullNameRequest, user_id: CurrentUserId, service: Users) -> SuccessResponse:
    await service.change_full_name(user_id, data.full_name)
    return SuccessResponse()


@router.patch("/birth-date", status_code=status.HTTP_200_OK)
async def change_date_of_birth(
    data: ChangeDateOfBirthRequest,
    user_id: CurrentUserId,
    service: Users,
) -> SuccessResponse:
    await service.change_date_of_birth(user_id, data.date_of_birth)
    return SuccessResponse()


@router.patch("/avatar", status_code=status.HTTP_200_OK)
async def add_avatar(data: AvatarRequest, user_id: CurrentUserId, service: Users) -> SuccessResponse:
    await service.add_avatar(user_id, data.avatar)
    return SuccessResponse()


@router.delete("/avatar", status_code=status.HTTP_200_OK)
async def delete_avatar(user_id: CurrentUserId, service: Users) -> SuccessResponse:
    await service.delete_avatar(user_id)
    return SuccessResponse()


@router.patch("/bio", status_code=status.HTTP_200_OK)
async def add_bio(data: BioRequest, user_id: CurrentUserId, service: Users) -> SuccessResponse:
    await service.add_bio(user_id, data.bio)
    return SuccessResponse()


@router.delete("/bio", status_code=status.HTTP_200_OK)
async def delete_bio(user_id: CurrentUserId, service: Users) -> SuccessResponse:
    await service.delete_bio(user_id)
    return SuccessResponse()


@router.get("/{user_id}", status_code=status.HTTP_200_OK)
async def get_user(user_id: UUID, service: Users) -> UserResponse:
    """
    Get a user's profile by their ID.

    Parameters:
    - **user_id**: UUID of the user to retrieve

    Raises:
    - **404 Not Found**: If user does not exist
    """
    return UserResponse(user=await service.get_user_info(user_id))


@router.get("/{user_id}/followers", status_code=status.HTTP_200_OK)
async def get_followers(user_id: UUID, service: Follows) -> FollowersResponse:
    """
    Get the follow edges pointing at a user.

    Raises:
    - **404 Not Found**: If the user has no followers
    """
    return FollowersResponse(followers=await service.list_followers(user_id))


@router.get("/{user_id}/following", status_code=status.HTTP_200_OK)
async def get_following(user_id: UUID, service: Follows) -> FollowingResponse:
    """
    Get the follow edges starting at a user.

    Raises:
    - **404 Not Found**: If the user follows nobody
    """
    return FollowingResponse(following=await service.list_following(user_id))


@router.post("/{user_id}/follow", status_code=status.HTTP_200_OK)
async def follow(user_id: UUID, current_user_id: CurrentUserId, service: Follows) -> SuccessResponse:
    """
    Follow a user.

    Parameters:
    - **user_id**: UUID of the user to follow

    Raises:
    - **400 Bad Request**: If users try to follow themselves
    - **404 Not Found**: If the user does not exist
    - **409 Conflict**: If the user is already followed
    """
    await service.follow(current_user_id, user_id)
    return SuccessResponse()


@router.delete("/{user_id}/follow", status_code=status.HTTP_200_OK)
async def unfollow(user_id: UUID, current_user_id: CurrentUserId, service: Follows) -> SuccessResponse:
    """
    Unfollow a user.

    Raises:
    - **409 Conflict**: If the user is not followed
    """
    await service.unfollow(current_user_id, user_id)
    return SuccessResponse()
