"""FastAPI app creation and component injection."""

import logging
import time
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from taskflow.models.database import Database
from taskflow.services.auth_service import SupabaseVerifier, TokenVerifier
from taskflow.services.scope import CategoryNotFound

logger = logging.getLogger(__name__)


def create_app(
    settings,
    database: Database | None = None,
    verifier: TokenVerifier | None = None,
) -> FastAPI:
    """Build the API around explicitly provided components.

    ``database`` and ``verifier`` default to the ones described by
    ``settings``; tests pass their own.
    """
    database = database or Database.from_settings(settings)
    verifier = verifier or SupabaseVerifier.from_settings(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # Only missing tables are created
        await database.create_all()
        engine = None
        if settings.scheduler_enabled:
            from taskflow.scheduler.refresh_engine import RefreshEngine

            engine = RefreshEngine(database, settings)
            await engine.start()
        app.state.refresh_engine = engine
        try:
            yield
        finally:
            if engine:
                await engine.stop()
            await database.dispose()

    app = FastAPI(title="Taskflow API", lifespan=lifespan)
    app.state.settings = settings
    app.state.database = database
    app.state.verifier = verifier
    app.state.started_at = time.time()
    app.state.refresh_engine = None

    _install_error_handlers(app)

    from taskflow.web.routes import router
    from taskflow.web.system import cron_router, health_router

    app.include_router(router, prefix=settings.api_prefix)
    app.include_router(cron_router, prefix=settings.api_prefix)
    app.include_router(health_router)
    return app


def _install_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        errors = [
            {"loc": list(e.get("loc", ())), "msg": e.get("msg", ""), "type": e.get("type", "")}
            for e in exc.errors()
        ]
        return JSONResponse(
            status_code=400, content={"error": "Invalid request", "details": errors}
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": exc.detail},
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(CategoryNotFound)
    async def category_not_found_handler(request: Request, exc: CategoryNotFound):
        return JSONResponse(status_code=400, content={"error": "Category not found"})

    # Anything a route lets escape becomes a JSON 500 instead of propagating.
    @app.middleware("http")
    async def catch_unhandled(request: Request, call_next):
        try:
            return await call_next(request)
        except Exception as exc:
            logger.exception("Unhandled error on %s %s", request.method, request.url.path)
            return JSONResponse(
                status_code=500,
                content={"error": "Internal server error", "details": str(exc)},
            )
