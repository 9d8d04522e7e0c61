"""Access token helpers (issue, resolve) and the bearer dependency."""
from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from farwell.core.config import get_settings
from farwell.core.errors import Unauthorized
from farwell.db.models import User
from farwell.repositories.sql_repository import SQLRepository

logger = logging.getLogger(__name__)

TOKEN_NAME = "FarwellApiAuth"
_repo = SQLRepository()
_bearer = HTTPBearer(auto_error=False)


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes even for timezone-aware columns.
    return value if value.tzinfo else value.replace(tzinfo=timezone.utc)


def issue_access_token(user_id: int) -> str:
    """Create a new bearer token for ``user_id`` and persist it."""
    settings = get_settings()
    ttl = max(60, settings.access_token_ttl_seconds)
    expires_at = datetime.now(timezone.utc) + timedelta(seconds=ttl)
    return _repo.create_access_token(user_id, expires_at, name=TOKEN_NAME)


def resolve_user(token: str | None) -> User | None:
    """Return the user owning ``token``; expired tokens are deleted on sight."""
    if not token:
        return None
    entity = _repo.get_access_token(token)
    if not entity:
        return None
    if _as_utc(entity.expires_at) <= datetime.now(timezone.utc):
        _repo.delete_access_token(token)
        return None
    return _repo.get_user(entity.user_id)


def current_user(credentials: HTTPAuthorizationCredentials | None = Depends(_bearer)) -> User:
    """FastAPI dependency: the authenticated user or a 401."""
    token = credentials.credentials if credentials else None
    user = resolve_user(token)
    if user is None:
        raise Unauthorized("Unauthenticated.", headers={"WWW-Authenticate": "Bearer"})
    return user
