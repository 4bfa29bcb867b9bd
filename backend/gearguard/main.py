from fastapi import FastAPI, Depends, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from contextlib import asynccontextmanager
from typing import Optional
import logging
import time
import traceback

from gearguard.config import Settings, settings as default_settings
from gearguard.database import create_db_engine, create_session_factory, init_db
from gearguard.errors import AppError
from gearguard.logging_config import setup_logging
from gearguard.middleware import RequestIdMiddleware
from gearguard.routers import (
    auth,
    dashboard,
    equipment,
    health,
    requests,
    teams,
    users,
    work_centers
)
from gearguard.security import get_auth_user

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager: owns the database engine"""
    settings: Settings = app.state.settings

    # Startup
    logger.info(f"Starting {settings.APP_NAME} ({settings.ENVIRONMENT})...")

    engine = create_db_engine(settings)
    app.state.engine = engine
    app.state.session_factory = create_session_factory(engine)

    try:
        if settings.AUTO_CREATE_DB:
            init_db(engine)
        logger.info("Database engine ready")

        yield

    finally:
        # Shutdown
        logger.info(f"Shutting down {settings.APP_NAME}...")
        engine.dispose()
        logger.info("Shutdown complete")


def _error_body(message: str, **extra) -> dict:
    body = {"status": "error", "message": message}
    body.update(extra)
    return body


def register_exception_handlers(app: FastAPI, settings: Settings):

    @app.exception_handler(AppError)
    async def app_error_handler(request: Request, exc: AppError):
        if exc.status_code >= 500:
            logger.error(f"{request.method} {request.url.path}: {exc.message}")
        else:
            logger.info(f"{request.method} {request.url.path}: {exc.status_code} {exc.message}")
        return JSONResponse(status_code=exc.status_code, content=_error_body(exc.message))

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        return JSONResponse(
            status_code=exc.status_code,
            content=_error_body(str(exc.detail)),
            headers=getattr(exc, "headers", None)
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        errors = [
            {
                "field": ".".join(str(part) for part in error["loc"][1:]) or str(error["loc"][0]),
                "message": error["msg"],
            }
            for error in exc.errors()
        ]
        return JSONResponse(status_code=400, content=_error_body("Validation failed", errors=errors))

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        """Global exception handler for unhandled errors"""
        logger.error(f"Unhandled exception: {exc}", exc_info=True)
        extra = {}
        if settings.is_development:
            extra = {"error": str(exc), "stack": traceback.format_exc()}
        return JSONResponse(status_code=500, content=_error_body("Internal server error", **extra))


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """Build the application for the given settings."""
    settings = settings or default_settings
    setup_logging(settings.LOG_LEVEL)

    app = FastAPI(
        title=settings.APP_NAME,
        description=(
            "Maintenance equipment tracking API\n\n"
            "Track equipment, maintenance teams, work centers and maintenance "
            "requests moving through a Kanban workflow, with dashboard analytics."
        ),
        version=settings.APP_VERSION,
        lifespan=lifespan
    )
    app.state.settings = settings
    app.state.started_at = time.monotonic()

    # Configure middleware
    app.add_middleware(RequestIdMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_exception_handlers(app, settings)

    # ----------------------------------------------------
    # Routers
    # ----------------------------------------------------
    app.include_router(health.router, tags=["Health"])

    app.include_router(auth.router, prefix="/api/auth", tags=["Auth"])

    app.include_router(
        equipment.router,
        prefix="/api/equipment",
        tags=["Equipment"],
        dependencies=[Depends(get_auth_user)]
    )

    app.include_router(
        teams.router,
        prefix="/api/teams",
        tags=["Teams"],
        dependencies=[Depends(get_auth_user)]
    )

    app.include_router(
        requests.router,
        prefix="/api/requests",
        tags=["Maintenance Requests"],
        dependencies=[Depends(get_auth_user)]
    )

    app.include_router(
        work_centers.router,
        prefix="/api/work-centers",
        tags=["Work Centers"],
        dependencies=[Depends(get_auth_user)]
    )

    app.include_router(
        dashboard.router,
        prefix="/api/dashboard",
        tags=["Dashboard"],
        dependencies=[Depends(get_auth_user)]
    )

    app.include_router(
        users.router,
        prefix="/api/users",
        tags=["Users"],
        dependencies=[Depends(get_auth_user)]
    )

    if settings.is_development:
        # Unauthenticated mirror for local frontend work
        app.include_router(
            dashboard.test_router,
            prefix="/api/dashboard-test",
            tags=["Dashboard (development)"]
        )

    @app.get("/api", tags=["Root"])
    async def root():
        """
        Root endpoint - API information
        """
        return {"message": f"GearGuard API v{settings.APP_VERSION}"}

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "gearguard.main:app",
        host="0.0.0.0",
        port=default_settings.PORT,
        reload=default_settings.is_development,
        log_level="info"
    )
