"""Request and response bodies for the JSON API."""
from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict


# -------------------------- requests --------------------------
class RegisterIn(BaseModel):
    name: Optional[str] = None
    email: Optional[str] = None
    password: Optional[str] = None
    password_confirmation: Optional[str] = None


class LoginIn(BaseModel):
    email: Optional[str] = None
    password: Optional[str] = None


class ProfileUpdateIn(BaseModel):
    name: Optional[str] = None
    email: Optional[str] = None


class PasswordChangeIn(BaseModel):
    current_password: Optional[str] = None
    new_password: Optional[str] = None
    new_password_confirmation: Optional[str] = None


# -------------------------- responses --------------------------
class UserOut(BaseModel):
    """Public view of an account; never carries the hash or the activation token."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    email: str
    email_verified_at: Optional[datetime] = None
    profile_picture: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class MessageOut(BaseModel):
    message: str


class RegisterOut(MessageOut):
    activation_token: Optional[str] = None


class LoginOut(BaseModel):
    token: str
    user: UserOut


class ProfileUpdateOut(MessageOut):
    user: UserOut


class AvatarOut(MessageOut):
    profile_picture: str


class EmployeesOut(BaseModel):
    data: list[dict[str, Any]]


class UploadOut(MessageOut, EmployeesOut):
    pass
