from __future__ import annotations

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from accounts_api.core.config import Settings, get_settings
from accounts_api.core.logging import get_logger, setup_logging
from accounts_api.repositories.file_store import FileStore, get_store
from accounts_api.routers import users as users_router
from accounts_api.services.user_service import UserService

logger = get_logger(__name__)


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Inject baseline security headers for a JSON-only API."""

    def __init__(self, app, *, enforce_hsts: bool) -> None:
        super().__init__(app)
        self._enforce_hsts = enforce_hsts

    async def dispatch(self, request, call_next):
        response = await call_next(request)
        response.headers.setdefault("Content-Security-Policy", "default-src 'none'; frame-ancestors 'none'")
        response.headers.setdefault("X-Frame-Options", "DENY")
        response.headers.setdefault("X-Content-Type-Options", "nosniff")
        response.headers.setdefault("Referrer-Policy", "no-referrer")
        response.headers.setdefault("Cache-Control", "no-store")
        if self._enforce_hsts:
            response.headers.setdefault("Strict-Transport-Security", "max-age=31536000; includeSubDomains")
        return response


def _add_exception_handlers(app: FastAPI, settings: Settings) -> None:
    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        logger.error("Unhandled exception on %s %s", request.method, request.url.path, exc_info=exc)
        message = "An internal error occurred" if settings.is_production else str(exc)
        return JSONResponse({"error": message}, status_code=500)


def create_app(settings: Settings | None = None, store: FileStore | None = None) -> FastAPI:
    """Build a fresh app; uvicorn can use this as a factory."""
    settings = settings or get_settings()
    setup_logging(settings.log_level)

    app = FastAPI(title="Accounts API")
    app.state.settings = settings
    app.state.user_service = UserService(store=store or get_store())

    app.add_middleware(SecurityHeadersMiddleware, enforce_hsts=settings.is_production)
    _add_exception_handlers(app, settings)
    app.include_router(users_router.router)

    logger.info("Accounts API ready (env=%s, data_dir=%s)", settings.app_env, app.state.user_service.store.root)
    return app


app = create_app()
