import os
import sys
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

# Ensure local imports resolve
sys.path.append(os.path.dirname(__file__))

# Core
from core.config import settings
from core.config_validator import validate_config_on_startup
from core.errors import RoleResolutionError, role_error_to_http
from core.logging_config import logger
from core.role_service import UnifiedRoleService, build_role_service

# -------------------------------------------------
# Routers
# -------------------------------------------------
from routers.roles import router as roles_router
from routers.health import router as health_router


# -------------------------------------------------
# Create the Application
# -------------------------------------------------
def create_app(role_service: Optional[UnifiedRoleService] = None) -> FastAPI:
    app = FastAPI(
        title=settings.PROJECT_NAME,
        version="1.0.0",
        description="Unified role and permission resolution",
    )

    # One service (and one role cache) per process
    app.state.role_service = role_service or build_role_service(settings)

    # -------------------------------------------------
    # CORS
    # -------------------------------------------------
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.BACKEND_CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # -------------------------------------------------
    # Lifecycle
    # -------------------------------------------------
    @app.on_event("startup")
    async def on_startup():
        logger.info("Starting Unified Roles API")
        if settings.ENV == "production":
            validate_config_on_startup()

    @app.on_event("shutdown")
    async def on_shutdown():
        app.state.role_service.close()

    # -------------------------------------------------
    # Error handling
    # -------------------------------------------------
    @app.exception_handler(RoleResolutionError)
    async def handle_role_error(request: Request, exc: RoleResolutionError):
        http_exc = role_error_to_http(exc)
        logger.warning(f"Role resolution failed at {request.url} — {exc.code}: {exc.message}")
        return JSONResponse(
            status_code=http_exc.status_code,
            content={"detail": http_exc.detail, "code": exc.code, "retryable": exc.retryable},
            headers=http_exc.headers,
        )

    @app.exception_handler(StarletteHTTPException)
    async def handle_http(request: Request, exc: StarletteHTTPException):
        if exc.status_code in (401, 403, 500):
            logger.warning(
                f"HTTP {exc.status_code} at {request.url} — {exc.detail}"
            )
        return JSONResponse(
            status_code=exc.status_code,
            content={"detail": exc.detail},
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(Exception)
    async def handle_unhandled(request: Request, exc: Exception):
        logger.error("Unhandled error at %s", request.url, exc_info=exc)
        return JSONResponse(
            status_code=500,
            content={"detail": "Internal server error"},
        )

    # -------------------------------------------------
    # Register Routers
    # -------------------------------------------------
    app.include_router(roles_router)
    app.include_router(health_router)

    return app


# Create the global FastAPI instance
app = create_app()
