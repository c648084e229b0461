"""
Service factories for the routers.

Each factory builds a service over repositories bound to the request's
transactional connection, so every write of one request commits or rolls
back together.
"""

from typing import Annotated

from asyncpg import Connection
from fastapi import Depends, Request

from photogram.core.cache import ProfileCache
from photogram.core.db import get_transaction
from photogram.repositories.auth_repository import AuthRepository
from photogram.repositories.chats_repository import ChatsRepository
from photogram.repositories.messages_repository import MessagesRepository
from photogram.repositories.photos_repository import PhotosRepository
from photogram.repositories.users_repository import UsersRepository
from photogram.services.auth_service import AuthService
from photogram.services.chat_service import ChatService
from photogram.services.follow_service import FollowService
from photogram.services.message_service import MessageService
from photogram.services.photo_service import PhotoService
from photogram.services.user_service import UserService

Transaction = Annotated[Connection, Depends(get_transaction)]


def get_profile_cache(request: Request, connection: Transaction) -> ProfileCache:
    """Request cache whose invalidations are applied once the unit of work commits"""
    cache = ProfileCache(getattr(request.app.state, "redis", None), deferred=True)
    request.state.after_commit.append(cache.flush)
    return cache


Cache = Annotated[ProfileCache, Depends(get_profile_cache)]


def get_auth_service(connection: Transaction, cache: Cache) -> AuthService:
    return AuthService(AuthRepository(connection), UsersRepository(connection), cache)


def get_user_service(connection: Transaction, cache: Cache) -> UserService:
    return UserService(UsersRepository(connection), cache)


def get_follow_service(connection: Transaction, cache: Cache) -> FollowService:
    return FollowService(UsersRepository(connection), cache)


def get_chat_service(connection: Transaction) -> ChatService:
    return ChatService(ChatsRepository(connection), MessagesRepository(connection), UsersRepository(connection))


def get_message_service(connection: Transaction) -> MessageService:
    return MessageService(MessagesRepository(connection), ChatsRepository(connection))


def get_photo_service(connection: Transaction, cache: Cache) -> PhotoService:
    return PhotoService(PhotosRepository(connection), UsersRepository(connection), cache)
