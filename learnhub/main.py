"""LearnHub - FastAPI app entry point."""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, RedirectResponse

from learnhub.core.config import Settings, get_settings
from learnhub.core.context import build_context
from learnhub.core.errors import (
    DuplicateIdentity,
    InvalidCredentials,
    LoginRedirect,
    PersistenceError,
    Timeout,
    Unauthenticated,
    ValidationError,
)
from learnhub.core.logging import setup_logging
from learnhub.db.base import Base
from learnhub.middleware.rate_limit import AuthRateLimitMiddleware
from learnhub.routers import admin, api, auth, web
from learnhub.services.uploads import submissions_dir

logger = logging.getLogger(__name__)


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse({"error": message}, status_code=status_code)


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(LoginRedirect)
    async def login_redirect_handler(request: Request, exc: LoginRedirect):
        return RedirectResponse(request.app.url_path_for("login_get"), status_code=303)

    @app.exception_handler(Unauthenticated)
    async def unauthenticated_handler(request: Request, exc: Unauthenticated):
        return _error(401, exc.message)

    @app.exception_handler(ValidationError)
    async def validation_handler(request: Request, exc: ValidationError):
        return _error(400, exc.message)

    @app.exception_handler(InvalidCredentials)
    async def invalid_credentials_handler(request: Request, exc: InvalidCredentials):
        return _error(401, exc.message)

    @app.exception_handler(DuplicateIdentity)
    async def duplicate_handler(request: Request, exc: DuplicateIdentity):
        return _error(409, exc.message)

    @app.exception_handler(Timeout)
    async def timeout_handler(request: Request, exc: Timeout):
        logger.error("%s %s timed out: %s", request.method, request.url.path, exc.message)
        return _error(503, "Service busy, please retry.")

    @app.exception_handler(PersistenceError)
    async def persistence_handler(request: Request, exc: PersistenceError):
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
        return _error(500, "Server error.")


def create_app(settings: Settings | None = None) -> FastAPI:
    settings = settings or get_settings()
    context = build_context(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        Base.metadata.create_all(bind=context.engine)
        submissions_dir(settings)
        logger.info("%s started", settings.app_name)
        yield
        context.dispose()

    app = FastAPI(
        title=settings.app_name,
        description="Student signup, assignment submission and practice progress",
        debug=settings.debug,
        lifespan=lifespan,
    )
    app.state.context = context

    app.add_middleware(
        AuthRateLimitMiddleware,
        paths=("/signup", "/login"),
        requests=settings.auth_rate_limit,
        window_seconds=settings.auth_rate_window_seconds,
    )
    register_exception_handlers(app)

    app.include_router(web.router)
    app.include_router(auth.router)
    app.include_router(api.router)
    app.include_router(admin.router)

    @app.get("/health")
    def health():
        return {"status": "ok"}

    return app


def run() -> None:
    """Console entry point: `learnhub-serve`."""
    import uvicorn

    settings = get_settings()
    setup_logging(settings.log_level)
    uvicorn.run(create_app(settings), host="0.0.0.0", port=8000)
