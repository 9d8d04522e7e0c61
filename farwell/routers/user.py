from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, File, UploadFile

from farwell.core.errors import BadRequest, InternalError
from farwell.core.storage import StorageError
from farwell.db.models import User
from farwell.schemas import AvatarOut, MessageOut, PasswordChangeIn, ProfileUpdateIn, ProfileUpdateOut, UserOut
from farwell.services.profile_service import IncorrectPasswordError, ProfileService
from farwell.services.session_service import current_user

router = APIRouter(prefix="/user", tags=["User"])
profile_service = ProfileService()


@router.get("", response_model=UserOut)
def get_user(user: User = Depends(current_user)):
    return UserOut.model_validate(user)


@router.put("/update", response_model=ProfileUpdateOut)
def update_profile(payload: ProfileUpdateIn, user: User = Depends(current_user)):
    fields = payload.model_dump(exclude_unset=True)
    updated = profile_service.update(user, name=fields.get("name"), email=fields.get("email"))
    return ProfileUpdateOut(message="Profile updated successfully", user=UserOut.model_validate(updated))


@router.post("/upload", response_model=AvatarOut)
def upload_profile_picture(
    profile_picture: Optional[UploadFile] = File(None),
    user: User = Depends(current_user),
):
    filename = profile_picture.filename if profile_picture else None
    stream = profile_picture.file if profile_picture else None
    try:
        url = profile_service.upload_avatar(user, filename, stream)
    except StorageError as exc:
        raise InternalError("Profile picture upload failed.", error=str(exc)) from exc
    return AvatarOut(message="Profile picture updated", profile_picture=url)


@router.post("/password", response_model=MessageOut)
def change_password(payload: PasswordChangeIn, user: User = Depends(current_user)):
    try:
        profile_service.change_password(
            user,
            payload.current_password,
            payload.new_password,
            payload.new_password_confirmation,
        )
    except IncorrectPasswordError as exc:
        raise BadRequest(str(exc)) from exc
    return MessageOut(message="Password changed successfully")
