"""High-level data access helpers backed by SQLAlchemy."""
from __future__ import annotations

import secrets
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import delete, func, select, update
from sqlalchemy.exc import IntegrityError

from farwell.db.models import AccessToken, User
from farwell.db.session import get_session


def normalize_email(email: str | None) -> str:
    return (email or "").strip().lower()


class EmailTakenError(Exception):
    """The unique index on ``users.email`` rejected a write."""


class SQLRepository:
    """CRUD helpers wrapping the SQLAlchemy session."""

    # -------------------------- users --------------------------
    def _commit_user(self, session, email: Optional[str]) -> None:
        try:
            session.commit()
        except IntegrityError as exc:
            session.rollback()
            if email and self.email_taken(email):
                raise EmailTakenError(email) from exc
            raise

    def get_user(self, user_id: int) -> Optional[User]:
        with get_session() as session:
            return session.get(User, user_id)

    def get_user_by_email(self, email: str) -> Optional[User]:
        value = normalize_email(email)
        if not value:
            return None
        with get_session() as session:
            stmt = select(User).where(func.lower(User.email) == value)
            return session.execute(stmt).scalars().first()

    def email_taken(self, email: str, exclude_user_id: int | None = None) -> bool:
        value = normalize_email(email)
        if not value:
            return False
        with get_session() as session:
            stmt = select(User.id).where(func.lower(User.email) == value)
            if exclude_user_id is not None:
                stmt = stmt.where(User.id != exclude_user_id)
            return session.execute(stmt.limit(1)).first() is not None

    def create_user(self, name: str, email: str, password_hash: str, activation_token: str | None) -> User:
        now = datetime.now(timezone.utc)
        user = User(
            name=name,
            email=normalize_email(email),
            password_hash=password_hash,
            activation_token=activation_token,
            email_verified_at=None,
            created_at=now,
            updated_at=now,
        )
        with get_session() as session:
            session.add(user)
            self._commit_user(session, user.email)
            session.refresh(user)
            return user

    def activate_user(self, token: str) -> Optional[User]:
        """Verify the account owning ``token`` and burn the token; None when nothing matched."""
        if not token or not token.strip():
            return None
        now = datetime.now(timezone.utc)
        with get_session() as session:
            user = session.execute(select(User).where(User.activation_token == token)).scalar_one_or_none()
            if not user:
                return None
            # Conditional update so two concurrent redemptions cannot both win.
            stmt = (
                update(User)
                .where(User.id == user.id, User.activation_token == token)
                .values(activation_token=None, email_verified_at=now, updated_at=now)
            )
            result = session.execute(stmt)
            session.commit()
            if result.rowcount != 1:
                return None
            session.refresh(user)
            return user

    def mark_user_verified(self, user_id: int) -> None:
        now = datetime.now(timezone.utc)
        with get_session() as session:
            stmt = (
                update(User)
                .where(User.id == user_id)
                .values(email_verified_at=now, activation_token=None, updated_at=now)
            )
            session.execute(stmt)
            session.commit()

    def update_user(self, user_id: int, **values) -> Optional[User]:
        allowed = {"name", "email", "profile_picture"}
        changes = {key: value for key, value in values.items() if key in allowed}
        if "email" in changes:
            changes["email"] = normalize_email(changes["email"])
        with get_session() as session:
            user = session.get(User, user_id)
            if not user:
                return None
            for key, value in changes.items():
                setattr(user, key, value)
            if changes:
                user.updated_at = datetime.now(timezone.utc)
            self._commit_user(session, changes.get("email"))
            session.refresh(user)
            return user

    def update_user_password(self, user_id: int, password_hash: str) -> None:
        with get_session() as session:
            stmt = (
                update(User)
                .where(User.id == user_id)
                .values(password_hash=password_hash, updated_at=datetime.now(timezone.utc))
            )
            session.execute(stmt)
            session.commit()

    def list_users(self) -> list[User]:
        with get_session() as session:
            return session.execute(select(User).order_by(User.id)).scalars().all()

    # -------------------------- access tokens --------------------------
    def create_access_token(self, user_id: int, expires_at: datetime, name: str = "api") -> str:
        token = secrets.token_urlsafe(48)
        entity = AccessToken(token=token, user_id=user_id, name=name, expires_at=expires_at)
        with get_session() as session:
            session.add(entity)
            session.commit()
        return token

    def get_access_token(self, token: str) -> Optional[AccessToken]:
        if not token:
            return None
        with get_session() as session:
            return session.get(AccessToken, token)

    def delete_access_token(self, token: str) -> None:
        with get_session() as session:
            session.execute(delete(AccessToken).where(AccessToken.token == token))
            session.commit()

