"""
Corkboard API Server

Entry point for the FastAPI application.
"""

import structlog
from fastapi import Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import get_settings
from app.core.database import get_session
from app.core.errors import CorkboardError, ValidationError
from app.core.logging import configure_logging
from app.core.middleware import CSRFMiddleware, SecurityHeadersMiddleware
from app.core import tenancy
from app.api.v1 import router as api_v1_router

settings = get_settings()
log = structlog.get_logger()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    configure_logging(settings.log_level, settings.log_format)

    app = FastAPI(
        title="Corkboard",
        description="Multi-tenant kanban boards with per-user activity feeds.",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
    )

    # Middleware (order matters: last added is outermost)
    app.add_middleware(SecurityHeadersMiddleware, settings=settings)
    app.add_middleware(CSRFMiddleware, settings=settings)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PATCH", "PUT", "DELETE"],
        allow_headers=["Content-Type", "Authorization", settings.csrf_header_name],
    )

    @app.exception_handler(CorkboardError)
    async def corkboard_error_handler(request: Request, exc: CorkboardError):
        if exc.status_code >= 500:
            log.error("request.failed", path=request.url.path, code=exc.code)
        else:
            log.info("request.rejected", path=request.url.path, code=exc.code, status=exc.status_code)
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        messages = []
        for err in exc.errors():
            loc = ".".join(str(p) for p in err.get("loc", ()))
            messages.append(f"{loc}: {err.get('msg')}")
        error = ValidationError("; ".join(messages) or None)
        return JSONResponse(status_code=error.status_code, content=error.to_dict())

    # API routes
    app.include_router(api_v1_router, prefix="/api/v1")

    @app.get("/health", tags=["System"])
    async def health_check():
        """Health check endpoint for liveness probes."""
        return {"status": "ok"}

    @app.get("/ready", tags=["System"])
    async def readiness_check(session: AsyncSession = Depends(get_session)):
        """Readiness check: the database and the tenant directory must answer."""
        try:
            await session.execute(text("SELECT 1"))
            client = await tenancy.get_redis()
            await client.ping()
        except Exception as exc:
            log.warning("ready.check_failed", error=str(exc))
            return JSONResponse(status_code=503, content={"status": "unavailable"})
        return {"status": "ready"}

    @app.on_event("startup")
    async def on_startup():
        log.info("Corkboard starting", debug=settings.debug)

    @app.on_event("shutdown")
    async def on_shutdown():
        log.info("Corkboard shutting down")
        await tenancy.close_redis()

    return app


app = create_app()
