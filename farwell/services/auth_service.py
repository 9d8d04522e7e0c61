"""
Authentication and identity related use cases.
"""

from __future__ import annotations

import html
import logging
from dataclasses import dataclass
from typing import Optional

from farwell.core.config import get_settings
from farwell.core.errors import FieldErrors, ValidationError
from farwell.core.mailer import send_email
from farwell.core.security import hash_password, random_string, verify_password
from farwell.db.models import User
from farwell.domain.accounts import check_email, check_name, check_new_password
from farwell.repositories.sql_repository import EmailTakenError, SQLRepository
from farwell.services.session_service import issue_access_token

logger = logging.getLogger(__name__)

ACTIVATION_TOKEN_LENGTH = 60


class AuthError(Exception):
    """Base class for authentication-related exceptions."""


class InvalidCredentialsError(AuthError):
    pass


class AccountNotActivatedError(AuthError):
    pass


class TokenInvalidError(AuthError):
    pass


@dataclass
class RegisterResult:
    user: User
    activation_token: str
    email_sent: bool


@dataclass
class LoginResult:
    token: str
    user: User


@dataclass
class AuthService:
    """Handles registration, activation and login flows."""

    def __post_init__(self):
        self.repository = SQLRepository()

    @property
    def settings(self):
        return get_settings()

    # -------------------------------------- helpers --------------------------------------
    def _activation_url(self, token: str) -> str:
        return f"{self.settings.public_base_url}/api/activate/{token}"

    def _activation_email_html(self, name: str, token: str, url: str) -> str:
        return f"""
        <h1>Activation Code</h1>
        <p>Hello {html.escape(name)},</p>
        <p>Use the code below to activate your account:</p>
        <p style="font-family:monospace;font-size:16px;">{html.escape(token)}</p>
        <p>Or open this link: <a href="{html.escape(url)}">{html.escape(url)}</a></p>
        """

    def _send_activation_email(self, user: User, token: str) -> bool:
        url = self._activation_url(token)
        return send_email(
            "Activation Code",
            user.email,
            self._activation_email_html(user.name, token, url),
            f"Your activation code: {token}\nActivate your account: {url}",
        )

    # -------------------------------------- registration --------------------------------------
    def register(
        self,
        name: Optional[str],
        email: Optional[str],
        password: Optional[str],
        password_confirmation: Optional[str],
    ) -> RegisterResult:
        errors = FieldErrors()
        check_name(errors, name, required=True)
        check_email(errors, email, required=True)
        if not errors.has("email") and self.repository.email_taken(email):
            errors.add("email", "The email has already been taken.")
        check_new_password(errors, "password", password, password_confirmation)
        errors.raise_if_any()

        token = random_string(ACTIVATION_TOKEN_LENGTH)
        try:
            user = self.repository.create_user(
                name=name.strip(),
                email=email,
                password_hash=hash_password(password),
                activation_token=token,
            )
        except EmailTakenError as exc:
            raise ValidationError({"email": ["The email has already been taken."]}) from exc
        email_sent = self._send_activation_email(user, token)
        logger.info("Registered user id=%s (activation mail sent=%s)", user.id, email_sent)
        return RegisterResult(user=user, activation_token=token, email_sent=email_sent)

    # -------------------------------------- activation --------------------------------------
    def activate(self, token: Optional[str]) -> User:
        user = self.repository.activate_user(token or "")
        if user is None:
            raise TokenInvalidError("This activation token is invalid.")
        logger.info("Activated user id=%s", user.id)
        return user

    # -------------------------------------- login --------------------------------------
    def login(self, email: Optional[str], password: Optional[str]) -> LoginResult:
        user = self.repository.get_user_by_email(email or "")
        if not user or not verify_password(password or "", user.password_hash):
            logger.info("Rejected login attempt for %s", (email or "").strip().lower())
            raise InvalidCredentialsError("Unauthorized")
        if not user.is_activated:
            raise AccountNotActivatedError("Please activate your account.")
        token = issue_access_token(user.id)
        logger.info("User id=%s logged in", user.id)
        return LoginResult(token=token, user=user)
