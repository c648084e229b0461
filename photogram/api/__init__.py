"""API router package for the Photogram backend."""

from photogram.api import auth, chats, messages, photos, users

__all__ = ["auth", "chats", "messages", "photos", "users"]
