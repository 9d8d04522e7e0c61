from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from starlette.middleware.base import BaseHTTPMiddleware

from farwell.core.config import get_settings
from farwell.core.errors import ApiError, api_error_handler, request_validation_handler
from farwell.core.log import configure_logging
from farwell.core.storage import PUBLIC_URL_PREFIX, Storage
from farwell.db.create_tables import create_all
from farwell.routers import auth as auth_router
from farwell.routers import employees as employees_router
from farwell.routers import user as user_router

API_PREFIX = "/api"
DEV_ORIGINS = (
    "http://localhost:3000",
    "http://127.0.0.1:3000",
    "http://localhost:5173",
    "http://127.0.0.1:5173",
)


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Inject baseline security headers (anti clickjacking, sniffing, referrer policy)."""

    def __init__(self, app, *, enforce_hsts: bool) -> None:
        super().__init__(app)
        self._enforce_hsts = enforce_hsts

    async def dispatch(self, request, call_next):
        response = await call_next(request)
        response.headers.setdefault("X-Frame-Options", "DENY")
        response.headers.setdefault("X-Content-Type-Options", "nosniff")
        response.headers.setdefault("Referrer-Policy", "no-referrer")
        if self._enforce_hsts:
            response.headers.setdefault("Strict-Transport-Security", "max-age=31536000; includeSubDomains")
        return response


def create_app() -> FastAPI:
    """Build the API: middleware, error handlers, routers and the public storage mount."""
    settings = get_settings()
    logger = configure_logging(settings.log_level)

    app = FastAPI(
        title="Farwell server apis",
        version="1.0.0",
        description="Auth, User, and Employee APIs",
    )

    allowed_cors = set(settings.cors_origins)
    if settings.app_env != "prod":
        allowed_cors.update(DEV_ORIGINS)
    if allowed_cors:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=sorted(allowed_cors),
            allow_credentials=True,
            allow_methods=["GET", "POST", "PUT", "OPTIONS"],
            allow_headers=["*"],
        )
    app.add_middleware(SecurityHeadersMiddleware, enforce_hsts=settings.app_env == "prod")

    app.add_exception_handler(ApiError, api_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)

    create_all()

    app.include_router(auth_router.router, prefix=API_PREFIX)
    app.include_router(user_router.router, prefix=API_PREFIX)
    app.include_router(employees_router.router, prefix=API_PREFIX)
    app.mount(PUBLIC_URL_PREFIX, StaticFiles(directory=Storage().public_root()), name="storage")

    @app.get("/health", include_in_schema=False)
    def health():
        return {"status": "ok"}

    logger.info("Farwell API ready (env=%s)", settings.app_env)
    return app
