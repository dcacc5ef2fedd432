"""User service: profile, avatar, and account lifecycle.

Pure business logic with no HTTP dependencies.
Raises domain errors that route handlers map to HTTP status codes.
"""

import asyncio
from datetime import datetime, timezone
from typing import Any

from domain.model.errors import NotFoundError, PersistenceError
from domain.model.user import User
from port.image_processor import ImageProcessor
from port.user_repository import UserRepository
from services.passwords import hash_password


def prepare_for_save(user: User) -> None:
    """Validate the user and hash a pending password.

    The stored hash is only replaced when a new password was set, so saving
    other fields never hashes an existing hash again.

    Raises:
        ValidationError: a field violates the user constraint set
    """
    user.validate()
    if user.password_changed:
        user.password_hash = hash_password(user.new_password)
        user.new_password = None
    user.updated_at = datetime.now(timezone.utc)


def save_user(repo: UserRepository, user: User) -> User:
    """Validate and persist an existing user.

    Raises:
        ValidationError: a field violates the user constraint set
        DuplicateError: the email belongs to another user
        PersistenceError: storage failure
    """
    prepare_for_save(user)
    return repo.save(user)


def update_profile(repo: UserRepository, user: User, updates: dict[str, Any]) -> User:
    """Apply `updates` to a copy of `user` and persist it.

    `user` itself is left untouched, so a failed update cannot leave it
    partially modified.

    Raises:
        ValidationError: a key outside ALLOWED_UPDATES, or an invalid value
        DuplicateError: the new email belongs to another user
        PersistenceError: storage failure
    """
    updated = user.copy()
    updated.apply_updates(updates)
    return save_user(repo, updated)


async def set_avatar(
    repo: UserRepository,
    images: ImageProcessor,
    user: User,
    data: bytes,
) -> User:
    """Resize uploaded image bytes and store them as the user's avatar.

    Decoding and resizing run in a worker thread.

    Raises:
        UploadRejectedError: the data is not a decodable image
    """
    png_bytes = await asyncio.to_thread(images.to_avatar, data)
    user.set_avatar(png_bytes)
    return save_user(repo, user)


def clear_avatar(repo: UserRepository, user: User) -> User:
    user.clear_avatar()
    return save_user(repo, user)


def get_avatar(repo: UserRepository, user_id: str) -> bytes:
    """Return the stored PNG avatar for `user_id`.

    Raises:
        NotFoundError: no such user, or the user has no avatar
    """
    user = repo.get_by_id(user_id)
    if not user or not user.avatar:
        raise NotFoundError("No avatar for this user")
    return user.avatar


def delete_account(repo: UserRepository, user: User) -> User:
    """Delete the user's document. Avatar and tokens are embedded and go with it.

    Raises:
        PersistenceError: storage failure or the document was already gone
    """
    if not repo.delete(user.id):
        raise PersistenceError("User not found")
    return user
