"""
Employee upload pipeline: store the spreadsheet, parse it, cache the rows.

Each user owns one cache slot (``employees_data:<user_id>``). A new upload
overwrites the slot wholesale; the slot expires on its own after
``EMPLOYEE_CACHE_TTL_SECONDS``. Concurrent uploads by the same user race and
the last write wins.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, BinaryIO, Optional

from farwell.core.cache import CacheBackend, get_cache
from farwell.core.config import get_settings
from farwell.core.errors import FieldErrors, ValidationError
from farwell.core.storage import Storage, StorageError, file_extension, stream_size
from farwell.db.models import User
from farwell.services.spreadsheet_reader import SUPPORTED_EXTENSIONS, SpreadsheetError, read_rows

logger = logging.getLogger(__name__)

UPLOAD_DIR = "private/uploads"
CACHE_KEY_PREFIX = "employees_data"


class UploadError(Exception):
    """Base class for upload pipeline exceptions."""


class UploadStorageError(UploadError):
    pass


class StoredFileMissingError(UploadError):
    def __init__(self, path: str):
        super().__init__(f"File not found after upload: {path}")
        self.path = path


def cache_key(user_id: int) -> str:
    return f"{CACHE_KEY_PREFIX}:{user_id}"


@dataclass
class EmployeeService:
    storage: Optional[Storage] = None
    cache: Optional[CacheBackend] = None

    @property
    def settings(self):
        return get_settings()

    def _storage(self) -> Storage:
        return self.storage if self.storage is not None else Storage()

    def _cache(self) -> CacheBackend:
        return self.cache if self.cache is not None else get_cache()

    def _validate(self, filename: Optional[str], stream: Optional[BinaryIO]) -> str:
        errors = FieldErrors()
        if stream is None or not filename:
            errors.add("file", "The file field is required.")
            errors.raise_if_any()
        ext = file_extension(filename)
        if ext not in SUPPORTED_EXTENSIONS:
            errors.add("file", "The file field must be a file of type: csv, txt, xlsx.")
        if stream_size(stream) > self.settings.max_upload_kb * 1024:
            errors.add("file", f"The file field must not be greater than {self.settings.max_upload_kb} kilobytes.")
        errors.raise_if_any()
        return ext

    def upload(self, user: User, filename: Optional[str], stream: Optional[BinaryIO]) -> list[dict[str, Any]]:
        ext = self._validate(filename, stream)
        storage = self._storage()
        try:
            relative = storage.store(stream, UPLOAD_DIR, ext)
        except StorageError as exc:
            logger.exception("Storing upload for user id=%s failed", user.id)
            raise UploadStorageError(str(exc)) from exc

        full_path = storage.path(relative)
        if not full_path.is_file():
            logger.error("Upload for user id=%s vanished at %s", user.id, full_path)
            raise StoredFileMissingError(str(full_path))

        try:
            rows = read_rows(full_path, ext)
        except SpreadsheetError as exc:
            logger.warning("Could not parse %s: %s", relative, exc)
            raise ValidationError({"file": ["The file could not be read as a spreadsheet."]}) from exc

        if rows:
            self._cache().put(cache_key(user.id), rows, self.settings.employee_cache_ttl_seconds)
        logger.info("Parsed %d employee rows for user id=%s (cached=%s)", len(rows), user.id, bool(rows))
        return rows

    def get_employees(self, user: User) -> list[dict[str, Any]]:
        return self._cache().get(cache_key(user.id), []) or []
