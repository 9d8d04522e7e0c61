"""
Profile use cases: rename, change e-mail, replace the avatar, change password.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import BinaryIO, Optional

from PIL import Image

from farwell.core.config import get_settings
from farwell.core.errors import FieldErrors, ValidationError
from farwell.core.security import hash_password, verify_password
from farwell.core.storage import Storage, file_extension, stream_size
from farwell.db.models import User
from farwell.domain.accounts import check_email, check_name, check_new_password
from farwell.repositories.sql_repository import EmailTakenError, SQLRepository

logger = logging.getLogger(__name__)

AVATAR_DIR = "public/profile_pictures"
AVATAR_EXTENSIONS = {"jpeg", "jpg", "png", "gif"}


class ProfileError(Exception):
    """Base class for profile-related exceptions."""


class IncorrectPasswordError(ProfileError):
    pass


def detect_image_type(stream: BinaryIO) -> Optional[str]:
    """Decode ``stream`` with Pillow and return its lowercase format, or None if unreadable.

    The stream is rewound to where it was before returning.
    """
    position = stream.tell()
    try:
        with Image.open(stream) as image:
            kind = (image.format or "").lower() or None
            image.verify()
        # verify() leaves the image unusable, so decode the pixels from a fresh handle.
        stream.seek(position)
        with Image.open(stream) as image:
            image.load()
    except Exception as exc:  # any decoder failure means the upload is not an image
        logger.debug("Rejected avatar upload: %s", exc)
        return None
    finally:
        stream.seek(position)
    return kind


@dataclass
class ProfileService:
    """Mutations on the authenticated user's own record."""

    storage: Optional[Storage] = None

    def __post_init__(self):
        self.repository = SQLRepository()

    @property
    def settings(self):
        return get_settings()

    def _storage(self) -> Storage:
        return self.storage if self.storage is not None else Storage()

    # -------------------------------------- profile --------------------------------------
    def update(self, user: User, name: Optional[str] = None, email: Optional[str] = None) -> User:
        errors = FieldErrors()
        check_name(errors, name, required=False)
        check_email(errors, email, required=False)
        if email is not None and not errors.has("email"):
            if self.repository.email_taken(email, exclude_user_id=user.id):
                errors.add("email", "The email has already been taken.")
        errors.raise_if_any()

        changes = {}
        if name is not None:
            changes["name"] = name.strip()
        if email is not None:
            changes["email"] = email
        try:
            updated = self.repository.update_user(user.id, **changes)
        except EmailTakenError as exc:
            raise ValidationError({"email": ["The email has already been taken."]}) from exc
        logger.info("Updated profile of user id=%s (%s)", user.id, ", ".join(sorted(changes)) or "no changes")
        return updated

    # -------------------------------------- avatar --------------------------------------
    def _validate_avatar(self, filename: Optional[str], stream: Optional[BinaryIO]) -> None:
        errors = FieldErrors()
        if stream is None or not filename:
            errors.add("profile_picture", "The profile picture field is required.")
            errors.raise_if_any()
        ext = file_extension(filename)
        kind = detect_image_type(stream)
        if kind is None:
            errors.add("profile_picture", "The profile picture field must be an image.")
        if ext not in AVATAR_EXTENSIONS or (kind and kind != ("jpeg" if ext == "jpg" else ext)):
            errors.add(
                "profile_picture",
                "The profile picture field must be a file of type: jpeg, png, jpg, gif.",
            )
        if stream_size(stream) > self.settings.max_upload_kb * 1024:
            errors.add(
                "profile_picture",
                f"The profile picture field must not be greater than {self.settings.max_upload_kb} kilobytes.",
            )
        errors.raise_if_any()

    def upload_avatar(self, user: User, filename: Optional[str], stream: Optional[BinaryIO]) -> str:
        self._validate_avatar(filename, stream)
        storage = self._storage()
        if user.profile_picture:
            previous = f"{AVATAR_DIR}/{os.path.basename(user.profile_picture)}"
            if storage.delete(previous):
                logger.info("Removed previous avatar of user id=%s", user.id)
        relative = storage.store(stream, AVATAR_DIR, file_extension(filename))
        url = storage.url(relative)
        self.repository.update_user(user.id, profile_picture=url)
        logger.info("Stored new avatar for user id=%s", user.id)
        return url

    # -------------------------------------- password --------------------------------------
    def change_password(
        self,
        user: User,
        current_password: Optional[str],
        new_password: Optional[str],
        new_password_confirmation: Optional[str],
    ) -> None:
        errors = FieldErrors()
        if not current_password:
            errors.add("current_password", "The current password field is required.")
        check_new_password(errors, "new_password", new_password, new_password_confirmation)
        errors.raise_if_any()

        if not verify_password(current_password, user.password_hash):
            raise IncorrectPasswordError("Current password is incorrect")
        self.repository.update_user_password(user.id, hash_password(new_password))
        logger.info("Password changed for user id=%s", user.id)
