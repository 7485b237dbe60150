"""
FastAPI application entry point.
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
import structlog

from togglehub.core.config import settings
from togglehub.core.errors import ApiError
from togglehub.core.hooks.manager import hooks
from togglehub.core.logging import configure_logging
from togglehub.api.routes import router as api_router
from togglehub.api.middleware.logging import LoggingMiddleware
from togglehub.api.middleware.request_id import RequestIdMiddleware
from togglehub.models.database import async_session_factory, close_db, init_db
from togglehub.services.addon import register_addon_hooks
from togglehub.services.api_token import ApiTokenService
from togglehub.services.project import ProjectService

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan events."""
    # Startup
    await init_db()
    async with async_session_factory() as session:
        await ProjectService(session).ensure_defaults()
        await ApiTokenService(session, settings.auth).ensure_init_tokens(
            settings.get_init_tokens()
        )
        await session.commit()

    addon_handlers = register_addon_hooks(settings.addons)
    logger.info("togglehub_started", version=settings.app_version, environment=settings.environment)

    yield

    # Shutdown
    for name, handler in addon_handlers.items():
        hooks.unregister(name, handler)
    await hooks.drain()
    await close_db()


def create_app() -> FastAPI:
    """Create and configure FastAPI application."""
    configure_logging(settings.log_level, settings.log_format)

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        debug=settings.debug,
        lifespan=lifespan,
        docs_url="/docs" if settings.is_development else None,
        redoc_url="/redoc" if settings.is_development else None,
    )

    # Middleware (order matters - last added is outermost)
    app.add_middleware(LoggingMiddleware)
    app.add_middleware(RequestIdMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=settings.cors_allow_credentials,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Routes
    app.include_router(api_router, prefix="/api")

    # Exception handlers
    @app.exception_handler(ApiError)
    async def api_error_handler(request: Request, exc: ApiError):
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        """Malformed bodies and parameters are bad requests (400), not 422."""
        return JSONResponse(
            status_code=400,
            content={
                "name": "BadRequestError",
                "message": "Request validation failed",
                "details": jsonable_encoder(exc.errors()),
            },
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        return JSONResponse(
            status_code=exc.status_code,
            content={"name": "HttpError", "message": str(exc.detail)},
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        """Global exception handler."""
        logger.exception("unhandled_error", path=request.url.path)
        return JSONResponse(
            status_code=500,
            content={
                "name": "InternalError",
                "message": str(exc) if settings.debug else "An error occurred",
            },
        )

    # Health checks
    @app.get("/health")
    async def health_check():
        """Quick health check endpoint (for load balancers)."""
        return {
            "health": "GOOD",
            "status": "healthy",
            "version": settings.app_version,
            "environment": settings.environment,
        }

    @app.get("/health/detailed")
    async def health_check_detailed():
        """Detailed health check: database and toggle store."""
        from togglehub.utils.health import HealthChecker, check_database, check_toggle_store

        checker = HealthChecker(
            version=settings.app_version,
            environment=settings.environment,
        )

        async def db_check():
            async with async_session_factory() as session:
                return await check_database(session)

        async def toggles_check():
            async with async_session_factory() as session:
                return await check_toggle_store(session)

        checker.add_check("database", db_check)
        checker.add_check("toggles", toggles_check)

        health = await checker.run()
        status_code = 200 if health.status.value == "healthy" else 503
        return JSONResponse(content=health.to_dict(), status_code=status_code)

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "togglehub.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.reload,
        workers=settings.workers,
    )
