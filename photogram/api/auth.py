from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, status

from photogram.api.dependencies import get_auth_service
from photogram.core.auth import get_current_user_id
from photogram.schemas.schemas import (
    ChangeEmailRequest,
    ChangePasswordRequest,
    SignInRequest,
    SignUpRequest,
    SuccessResponse,
    TokenPair,
)
from photogram.services.auth_service import AuthService

router = APIRouter(prefix="/api/v1/auth", tags=["auth"])

Service = Annotated[AuthService, Depends(get_auth_service)]
CurrentUserId = Annotated[UUID, Depends(get_current_user_id)]


@router.post("/sign-up", status_code=status.HTTP_201_CREATED)
async def sign_up(user_data: SignUpRequest, service: Service) -> TokenPair:
    """
    Register a new user.

    Parameters:
    - **user_data**: email, password, user name, full name and date of birth

    Returns:
    - **TokenPair**: access and refresh tokens for the new user

    Raises:
    - **400 Bad Request**: If the user is below the minimum sign-up age
    - **409 Conflict**: If the email is already registered
    """
    return await service.sign_up(
        email=user_data.email,
        password=user_data.password,
        user_name=user_data.user_name,
        full_name=user_data.full_name,
        date_of_birth=user_data.date_of_birth,
    )


@router.post("/sign-in", status_code=status.HTTP_200_OK)
async def sign_in(credentials: SignInRequest, service: Service) -> TokenPair:
    """
    Authenticate a user and return a token pair.

    Raises:
    - **401 Unauthorized**: If credentials are invalid
    """
    return await service.sign_in(credentials.email, credentials.password)


@router.patch("/email", status_code=status.HTTP_200_OK)
async def change_email(data: ChangeEmailRequest, user_id: CurrentUserId, service: Service) -> SuccessResponse:
    await service.change_email(user_id, data.email)
    return SuccessResponse()


@router.patch("/password", status_code=status.HTTP_200_OK)
async def change_password(data: ChangePasswordRequest, user_id: CurrentUserId, service: Service) -> SuccessResponse:
    await service.change_password(user_id, data.current_password, data.new_password)
    return SuccessResponse()


@router.delete("/account", status_code=status.HTTP_200_OK)
async def delete_account(user_id: CurrentUserId, service: Service) -> SuccessResponse:
    """
    Delete the current user's account.

    Counters the user contributed to elsewhere are released; follows,
    likes, saved content, photos and chats are removed with the account.
    """
    await service.delete_account(user_id)
    return SuccessResponse()
