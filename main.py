"""Infographic Studio - REST backend for the infographic editor."""

import logging
import os
import sys
import threading
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI

from infographic_api.config import Settings, get_settings
from infographic_api.database import Base, create_db_engine, create_session_factory
from infographic_api.error_handlers import register_error_handlers
from infographic_api.logging_config import setup_logging
from infographic_api.middleware import build_middleware
from infographic_api.models.infographic import Infographic  # noqa: F401
from infographic_api.models.user import User  # noqa: F401
from infographic_api.rate_limit import build_limiter
from infographic_api.routers import auth_router, infographics_router, users_router
from infographic_api.services.auth import AuthService
from infographic_api.services.email import EmailService
from infographic_api.services.infographic import InfographicService
from infographic_api.services.tokens import TokenService
from infographic_api.services.users import UserAdminService

logger = logging.getLogger("infographic_api")

VERSION = "0.1.0"


def create_app(settings: Settings) -> FastAPI:
    """Build the application with every collaborator constructed from ``settings``."""
    problems = settings.validate()
    if problems and settings.is_production:
        raise RuntimeError("Invalid configuration:\n- " + "\n- ".join(problems))
    for problem in problems:
        logger.warning("Config: %s", problem)

    engine = create_db_engine(settings.DATABASE_URL, echo=settings.DEBUG)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if settings.DEBUG:
            Base.metadata.create_all(bind=engine)
            logger.info("Database tables created (debug mode)")
        logger.info("Infographic Studio %s starting (%s)", VERSION, settings.APP_ENV)
        yield
        engine.dispose()

    docs_enabled = not settings.is_production
    app = FastAPI(
        title="Infographic Studio",
        version=VERSION,
        docs_url="/api-docs" if docs_enabled else None,
        redoc_url=None,
        openapi_url="/openapi.json" if docs_enabled else None,
        middleware=build_middleware(settings),
        lifespan=lifespan,
    )

    app.state.settings = settings
    app.state.engine = engine
    app.state.session_factory = create_session_factory(engine)
    app.state.limiter = build_limiter(settings)
    app.state.token_service = TokenService(settings)
    app.state.auth_service = AuthService(settings, EmailService(settings))
    app.state.user_admin_service = UserAdminService()
    app.state.infographic_service = InfographicService()

    register_error_handlers(app, production=settings.is_production)

    app.include_router(auth_router)
    app.include_router(users_router)
    app.include_router(infographics_router)

    @app.get("/api/v1/health", tags=["Health"])
    def health_check() -> dict:
        """Liveness check."""
        return {"status": "ok", "message": "API is running"}

    return app


def _fatal(exc_type, exc, tb) -> None:
    logger.critical("UNCAUGHT EXCEPTION! Shutting down...", exc_info=(exc_type, exc, tb))
    os._exit(1)


def _fatal_thread(args: threading.ExceptHookArgs) -> None:
    logger.critical(
        "UNCAUGHT EXCEPTION in thread %s! Shutting down...",
        args.thread.name if args.thread else "unknown",
        exc_info=(args.exc_type, args.exc_value, args.exc_traceback),
    )
    os._exit(1)


def run() -> None:
    """Serve with uvicorn; uncaught faults terminate the process for the supervisor to restart."""
    sys.excepthook = _fatal
    threading.excepthook = _fatal_thread
    uvicorn.run(
        app,
        host=os.getenv("HOST", "0.0.0.0"),
        port=int(os.getenv("PORT", "3001")),
        server_header=False,
        log_config=None,
    )


settings = get_settings()
setup_logging(settings)
app = create_app(settings)


if __name__ == "__main__":
    run()
