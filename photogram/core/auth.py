from __future__ import annotations

from datetime import UTC, datetime, timedelta
from typing import Annotated, Any, cast
from uuid import UUID

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError, jwt
from passlib.context import CryptContext

from photogram.config_secrets import (
    JWT_ACCESS_TOKEN_EXPIRE_MINUTES,
    JWT_ALGORITHM,
    JWT_REFRESH_TOKEN_EXPIRE_DAYS,
    JWT_SECRET_KEY,
)
from photogram.schemas.schemas import TokenPair

ACCESS_TOKEN = "access"
REFRESH_TOKEN = "refresh"

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")
bearer_scheme = OAuth2PasswordBearer(tokenUrl="/api/v1/auth/sign-in")


class AuthError(HTTPException):
    """401 carrying the Bearer challenge header."""

    def __init__(self, detail: str = "Could not validate credentials") -> None:
        super().__init__(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=detail,
            headers={"WWW-Authenticate": "Bearer"},
        )


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return cast(bool, pwd_context.verify(plain_password, hashed_password))


def get_password_hash(password: str) -> str:
    return cast(str, pwd_context.hash(password))


def _encode(user_id: UUID, token_type: str, lifetime: timedelta) -> str:
    claims: dict[str, Any] = {
        "sub": str(user_id),
        "type": token_type,
        "exp": datetime.now(UTC) + lifetime,
    }
    return cast(str, jwt.encode(claims, JWT_SECRET_KEY, algorithm=JWT_ALGORITHM))


def create_access_token(user_id: UUID, lifetime: timedelta | None = None) -> str:
    """Sign a short-lived token that authenticates API calls for ``user_id``."""
    return _encode(user_id, ACCESS_TOKEN, lifetime or timedelta(minutes=JWT_ACCESS_TOKEN_EXPIRE_MINUTES))


def create_token_pair(user_id: UUID) -> TokenPair:
    """Issue the access and refresh tokens returned by sign-up and sign-in."""
    access_lifetime = timedelta(minutes=JWT_ACCESS_TOKEN_EXPIRE_MINUTES)
    return TokenPair(
        access_token=create_access_token(user_id, access_lifetime),
        refresh_token=_encode(user_id, REFRESH_TOKEN, timedelta(days=JWT_REFRESH_TOKEN_EXPIRE_DAYS)),
        expire_time=datetime.now(UTC) + access_lifetime,
        user_id=user_id,
    )


def decode_token(token: str, token_type: str = ACCESS_TOKEN) -> UUID:
    """
    Return the user id a token was issued for.

    A refresh token is not accepted where an access token is expected, and
    the other way round.
    """
    try:
        claims = jwt.decode(token, JWT_SECRET_KEY, algorithms=[JWT_ALGORITHM])
    except JWTError as exc:
        raise AuthError() from exc

    subject = claims.get("sub")
    if not isinstance(subject, str) or claims.get("type") != token_type:
        raise AuthError()

    try:
        return UUID(subject)
    except ValueError as exc:
        raise AuthError("Invalid token subject") from exc


async def get_current_user_id(token: Annotated[str, Depends(bearer_scheme)]) -> UUID:
    return decode_token(token)
