"""FastAPI main application entry point."""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from school_admin.core.config import Settings, get_settings
from school_admin.core.exceptions import AuthenticationError, SchoolAdminError
from school_admin.core.middleware import setup_middleware
from school_admin.db.session import build_engine, build_session_factory, init_db

from school_admin.api.auth import router as auth_router
from school_admin.api.roles import router as roles_router
from school_admin.api.permissions import router as permissions_router
from school_admin.api.pages import router as pages_router
from school_admin.api.users import router as users_router
from school_admin.api.students import router as students_router
from school_admin.api.admin import router as admin_router

logger = logging.getLogger("school_admin")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown events."""
    settings: Settings = app.state.settings
    logger.info("Starting %s API", settings.APP_NAME)
    if settings.AUTO_CREATE_TABLES:
        init_db(app.state.engine)
        logger.info("Database tables ready")

    yield

    logger.info("Shutting down %s API", settings.APP_NAME)


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """Build the application.

    Without explicit settings they are read from the environment; a missing
    ``JWT_SECRET`` fails here, before anything is served.
    """
    settings = settings or get_settings()

    logging.basicConfig(
        level=logging.DEBUG if settings.DEBUG else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    app = FastAPI(
        title=f"{settings.APP_NAME} API",
        description="Role-based access control for school administration",
        version="0.1.0",
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
    )
    app.state.settings = settings
    app.state.engine = build_engine(settings)
    app.state.session_factory = build_session_factory(app.state.engine)

    # Middleware
    setup_middleware(app, settings)

    @app.exception_handler(SchoolAdminError)
    async def school_admin_exception_handler(request: Request, exc: SchoolAdminError):
        headers = {"WWW-Authenticate": "Bearer"} if isinstance(exc, AuthenticationError) else None
        return JSONResponse(
            status_code=exc.status_code,
            content={"detail": exc.message, **_camel_keys(exc.details)},
            headers=headers,
        )

    @app.exception_handler(SQLAlchemyError)
    async def storage_exception_handler(request: Request, exc: SQLAlchemyError):
        logger.error(
            "Storage error on %s %s", request.method, request.url.path, exc_info=exc,
        )
        return JSONResponse(status_code=500, content={"detail": "Internal storage error"})

    # Register routers
    app.include_router(auth_router, prefix="/api")
    app.include_router(roles_router, prefix="/api")
    app.include_router(permissions_router, prefix="/api")
    app.include_router(pages_router, prefix="/api")
    app.include_router(users_router, prefix="/api")
    app.include_router(students_router, prefix="/api")
    app.include_router(admin_router, prefix="/api")

    @app.get("/")
    async def root():
        return {
            "name": settings.APP_NAME,
            "version": "0.1.0",
            "docs": "/docs",
        }

    @app.get("/api/health")
    async def health():
        """Quick health check endpoint."""
        return {"status": "ok"}

    return app


def _camel_keys(details: dict) -> dict:
    camel = {}
    for key, value in details.items():
        head, *rest = key.split("_")
        camel[head + "".join(part.title() for part in rest)] = value
    return camel
