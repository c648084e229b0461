import pytest
from fakes import (
    FakeAuthRepository,
    FakeChatsRepository,
    FakeMessagesRepository,
    FakePhotosRepository,
    FakeUsersRepository,
    InMemoryStore,
)

from photogram.services.auth_service import AuthService
from photogram.services.chat_service import ChatService
from photogram.services.follow_service import FollowService
from photogram.services.message_service import MessageService
from photogram.services.photo_service import PhotoService
from photogram.services.user_service import UserService


@pytest.fixture
def store():
    return InMemoryStore()


@pytest.fixture
def alice(store):
    return store.add_user("alice")


@pytest.fixture
def bob(store):
    return store.add_user("bob")


@pytest.fixture
def carol(store):
    return store.add_user("carol")


@pytest.fixture
def users_repository(store):
    return FakeUsersRepository(store)


@pytest.fixture
def chats_repository(store):
    return FakeChatsRepository(store)


@pytest.fixture
def messages_repository(store):
    return FakeMessagesRepository(store)


@pytest.fixture
def photos_repository(store):
    return FakePhotosRepository(store)


@pytest.fixture
def follow_service(users_repository):
    return FollowService(users_repository, empty_result_is_error=True)


@pytest.fixture
def user_service(users_repository):
    return UserService(users_repository, empty_result_is_error=True)


@pytest.fixture
def auth_service(store, users_repository):
    return AuthService(FakeAuthRepository(store), users_repository)


@pytest.fixture
def chat_service(chats_repository, messages_repository, users_repository):
    return ChatService(chats_repository, messages_repository, users_repository, empty_result_is_error=True)


@pytest.fixture
def message_service(messages_repository, chats_repository):
    return MessageService(messages_repository, chats_repository, empty_result_is_error=True)


@pytest.fixture
def photo_service(photos_repository, users_repository):
    return PhotoService(photos_repository, users_repository, empty_result_is_error=True)
