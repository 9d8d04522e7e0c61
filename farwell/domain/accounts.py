"""Domain rules for account fields (names, e-mails, passwords)."""
from __future__ import annotations

import re

from farwell.core.errors import FieldErrors

MAX_NAME_LENGTH = 255
MAX_EMAIL_LENGTH = 255
MIN_PASSWORD_LENGTH = 8
EMAIL_PATTERN = re.compile(r"[^@\s]+@[^@\s]+\.[^@\s]+")


def is_valid_email(value: str | None) -> bool:
    """Return True for a plausible ``local@domain.tld`` address."""
    if not value:
        return False
    return bool(EMAIL_PATTERN.fullmatch(value))


def check_name(errors: FieldErrors, value, *, required: bool) -> None:
    if value is None:
        if required:
            errors.add("name", "The name field is required.")
        return
    if not isinstance(value, str):
        errors.add("name", "The name field must be a string.")
        return
    if not value.strip():
        errors.add("name", "The name field is required.")
    elif len(value) > MAX_NAME_LENGTH:
        errors.add("name", f"The name field must not be greater than {MAX_NAME_LENGTH} characters.")


def check_email(errors: FieldErrors, value, *, required: bool) -> None:
    if value is None or (isinstance(value, str) and not value.strip()):
        if required:
            errors.add("email", "The email field is required.")
        elif value is not None:
            errors.add("email", "The email field must be a valid email address.")
        return
    if not isinstance(value, str) or not is_valid_email(value.strip()):
        errors.add("email", "The email field must be a valid email address.")
    elif len(value.strip()) > MAX_EMAIL_LENGTH:
        errors.add("email", f"The email field must not be greater than {MAX_EMAIL_LENGTH} characters.")


def check_new_password(errors: FieldErrors, field: str, value, confirmation) -> None:
    """Required, long enough, and equal to its ``<field>_confirmation`` twin."""
    label = field.replace("_", " ")
    if not value:
        errors.add(field, f"The {label} field is required.")
        return
    if not isinstance(value, str):
        errors.add(field, f"The {label} field must be a string.")
        return
    if len(value) < MIN_PASSWORD_LENGTH:
        errors.add(field, f"The {label} field must be at least {MIN_PASSWORD_LENGTH} characters.")
    if value != confirmation:
        errors.add(field, f"The {label} field confirmation does not match.")
