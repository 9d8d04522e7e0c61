"""
Local blob storage rooted at ``Settings.storage_root``.

Layout mirrors a classic web app storage directory:

- ``private/...`` holds files that are never served (uploaded spreadsheets);
- ``public/...`` is mounted read-only at ``/storage`` (profile pictures).

Paths handed around by services are relative (``public/profile_pictures/x.png``)
so the root can move without touching the database.
"""

from __future__ import annotations

import logging
import os
import secrets
from pathlib import Path
from typing import BinaryIO

from farwell.core.config import get_settings

logger = logging.getLogger(__name__)

PUBLIC_DIR = "public"
PUBLIC_URL_PREFIX = "/storage"


class StorageError(Exception):
    """Raised when a file cannot be written to storage."""


class Storage:
    def __init__(self, root: str | os.PathLike | None = None) -> None:
        self.root = Path(root or get_settings().storage_root).resolve()

    def path(self, relative: str) -> Path:
        """Absolute filesystem path for a stored file; refuses to escape the root."""
        candidate = (self.root / relative).resolve()
        if candidate != self.root and self.root not in candidate.parents:
            raise StorageError(f"Path escapes storage root: {relative}")
        return candidate

    def exists(self, relative: str) -> bool:
        return self.path(relative).is_file()

    def store(self, stream: BinaryIO, directory: str, extension: str = "") -> str:
        """Copy ``stream`` under ``directory`` with a random name and return its relative path."""
        suffix = f".{extension.lstrip('.').lower()}" if extension else ""
        name = f"{secrets.token_urlsafe(30)}{suffix}"
        relative = f"{directory.strip('/')}/{name}"
        dest = self.path(relative)
        try:
            dest.parent.mkdir(parents=True, exist_ok=True)
            with dest.open("wb") as fh:
                while True:
                    chunk = stream.read(64 * 1024)
                    if not chunk:
                        break
                    fh.write(chunk)
        except OSError as exc:
            raise StorageError(str(exc)) from exc
        logger.debug("Stored %s", relative)
        return relative

    def delete(self, relative: str) -> bool:
        target = self.path(relative)
        if not target.is_file():
            return False
        target.unlink()
        logger.debug("Deleted %s", relative)
        return True

    def url(self, relative: str) -> str:
        """Public URL for a file under ``public/``."""
        rel = relative.strip("/")
        if rel.startswith(f"{PUBLIC_DIR}/"):
            rel = rel[len(PUBLIC_DIR) + 1 :]
        return f"{PUBLIC_URL_PREFIX}/{rel}"

    def public_root(self) -> Path:
        public = self.root / PUBLIC_DIR
        public.mkdir(parents=True, exist_ok=True)
        return public


def file_extension(filename: str | None) -> str:
    return os.path.splitext(filename or "")[1].lstrip(".").lower()


def stream_size(stream: BinaryIO) -> int:
    position = stream.tell()
    stream.seek(0, os.SEEK_END)
    size = stream.tell()
    stream.seek(position)
    return size
