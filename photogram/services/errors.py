"""
Domain errors raised by the services.

Every error carries a stable ``code`` and the HTTP status the API layer
answers with. Services raise them inside the request's unit of work; the
transaction is rolled back before the error reaches the client.
"""

import logging

logger = logging.getLogger(__name__)


class ServiceError(Exception):
    """Base service exception."""

    code = "service_error"
    status_code = 400

    def __init__(self, message: str = "") -> None:
        super().__init__(message or self.__class__.__doc__ or self.code)

    @property
    def message(self) -> str:
        return str(self)


class NotFoundError(ServiceError):
    status_code = 404


class ConflictError(ServiceError):
    status_code = 409


class PermissionDeniedError(ServiceError):
    status_code = 403


class EmptyResultError(ServiceError):
    """Raised by list queries that found nothing."""

    status_code = 404


# Users and follows
class UserNotFoundError(NotFoundError):
    """User doesn't exist."""

    code = "user_not_found"


class AlreadyFollowingError(ConflictError):
    """The user is already followed."""

    code = "already_following"


class NotFollowingError(ConflictError):
    """The user wasn't followed."""

    code = "not_following"


class SelfFollowError(ServiceError):
    """Users cannot follow themselves."""

    code = "self_follow"


# Chats
class ChatNotFoundError(NotFoundError):
    """Chat doesn't exist."""

    code = "chat_not_found"


class ChatAlreadyExistsError(ConflictError):
    """A chat between these users already exists."""

    code = "chat_already_exists"


class SelfChatError(ServiceError):
    """Users cannot open a chat with themselves."""

    code = "self_chat"


class NotChatCreatorError(PermissionDeniedError):
    """Only the chat creator can do this."""

    code = "not_chat_creator"


class AlreadyParticipantError(ConflictError):
    """The user already participates in the chat."""

    code = "already_participant"


class NotParticipantError(PermissionDeniedError):
    """The user is not the chat's participant."""

    code = "not_participant"


class ParticipantNotFoundError(NotParticipantError):
    """The user doesn't participate in the chat."""

    code = "participant_not_found"
    status_code = 404


class CreatorCannotLeaveError(ConflictError):
    """The chat creator cannot leave their own chat."""

    code = "creator_cannot_leave"


# Messages
class MessageNotFoundError(NotFoundError):
    """Message doesn't exist."""

    code = "message_not_found"


class OwnMessageError(ConflictError):
    """Message sender has already read their own message."""

    code = "own_message"


# Photos
class PhotoNotFoundError(NotFoundError):
    """Photo doesn't exist."""

    code = "photo_not_found"


class AlreadyLikedError(ConflictError):
    """Already liked by this user."""

    code = "already_liked"


class NotLikedError(ConflictError):
    """Not liked by this user."""

    code = "not_liked"


class AlreadySavedError(ConflictError):
    """Photo was already saved by this user."""

    code = "already_saved"


class NotSavedError(ConflictError):
    """Photo wasn't saved by this user."""

    code = "not_saved"


class AlreadyMarkedError(ConflictError):
    """User is already marked on the photo."""

    code = "already_marked"


class NotMarkedError(ConflictError):
    """User isn't marked on the photo."""

    code = "not_marked"


# Empty results
class NoUsersError(EmptyResultError):
    """No users found."""

    code = "no_users"


class NoFollowersError(EmptyResultError):
    """User has no followers."""

    code = "no_followers"


class NoFollowingError(EmptyResultError):
    """User has no followings."""

    code = "no_following"


class NoChatsError(EmptyResultError):
    """There are no chats."""

    code = "no_chats"


class NoParticipantsError(EmptyResultError):
    """There are no participants in the chat."""

    code = "no_participants"


class NoMessagesError(EmptyResultError):
    """There are no messages in the chat."""

    code = "no_messages"


class NoPhotosError(EmptyResultError):
    """No photos found."""

    code = "no_photos"


class NoLikesError(EmptyResultError):
    """No likes found."""

    code = "no_likes"


class NoSavedContentError(EmptyResultError):
    """No saved content found."""

    code = "no_saved_content"


class NoMarkedUsersError(EmptyResultError):
    """No users are marked on the photo."""

    code = "no_marked_users"


# Ledger
class CounterUpdateFailed(ConflictError):
    """A counter update matched no row."""

    code = "counter_update_failed"


# Auth
class CredentialsError(ServiceError):
    """Incorrect credentials."""

    code = "invalid_credentials"
    status_code = 401


class UnderageError(ServiceError):
    """User is below the minimum sign-up age."""

    code = "underage"


class EmailAlreadyExistsError(ConflictError):
    """A user with this email already exists."""

    code = "email_already_exists"


def ensure_counter_updated(affected: int, detail: str) -> None:
    """Fail closed when a counter update that must match exactly one row matched none."""
    if affected == 0:
        logger.warning("Counter update matched no row: %s", detail)
        raise CounterUpdateFailed(f"Counter update failed: {detail}")


def ensure_not_empty(items: list, error: type[EmptyResultError], strict: bool) -> list:
    """Raise ``error`` for an empty result when empty results are treated as errors."""
    if strict and not items:
        raise error()
    return items
