from __future__ import annotations

from fastapi import APIRouter, Request

from farwell.core.config import get_settings
from farwell.core.errors import Forbidden, NotFound, Unauthorized
from farwell.core.rate_limiter import rate_limit_ip
from farwell.schemas import LoginIn, LoginOut, MessageOut, RegisterIn, RegisterOut, UserOut
from farwell.services.auth_service import (
    AccountNotActivatedError,
    AuthService,
    InvalidCredentialsError,
    TokenInvalidError,
)

router = APIRouter(tags=["Auth"])
auth_service = AuthService()


@router.post("/register", status_code=201, response_model=RegisterOut)
def register(payload: RegisterIn, request: Request):
    settings = get_settings()
    hits, window = settings.register_rate_limit
    rate_limit_ip(request, "auth:register", limit=hits, window_seconds=window)
    result = auth_service.register(
        payload.name,
        payload.email,
        payload.password,
        payload.password_confirmation,
    )
    return RegisterOut(
        message="User registered successfully. Please use the activation code to activate your account.",
        activation_token=result.activation_token if settings.expose_activation_token else None,
    )


@router.post("/login", response_model=LoginOut)
def login(payload: LoginIn, request: Request):
    hits, window = get_settings().login_rate_limit
    rate_limit_ip(request, "auth:login", limit=hits, window_seconds=window)
    try:
        result = auth_service.login(payload.email, payload.password)
    except InvalidCredentialsError as exc:
        raise Unauthorized(str(exc)) from exc
    except AccountNotActivatedError as exc:
        raise Forbidden(str(exc)) from exc
    return LoginOut(token=result.token, user=UserOut.model_validate(result.user))


@router.get("/activate/{token}", response_model=MessageOut)
def activate(token: str):
    try:
        auth_service.activate(token)
    except TokenInvalidError as exc:
        raise NotFound(str(exc)) from exc
    return MessageOut(message="Account activated successfully.")
