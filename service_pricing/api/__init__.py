"""
FastAPI application factory and API package.

Run with:
    uvicorn service_pricing.api:app --reload --port 8000

Or via main.py:
    python -m service_pricing --serve
"""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from service_pricing import __version__
from service_pricing.config import get_settings
from service_pricing.api.routes import health_router, pricing_router
from service_pricing.errors import InternalError, ServiceError

logger = logging.getLogger(__name__)


async def service_error_handler(request: Request, exc: ServiceError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content=exc.to_payload())


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = []
    for err in exc.errors():
        path = ".".join(str(part) for part in err.get("loc", ()) if part != "body")
        errors.append(f"{path}: {err.get('msg', '')}" if path else err.get("msg", ""))
    return JSONResponse(
        status_code=400,
        content={"success": False, "message": "Validation error", "errors": errors},
    )


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(f"Unhandled error on {request.method} {request.url.path}: {exc}")
    return JSONResponse(status_code=500, content=InternalError().to_payload())


def create_app() -> FastAPI:
    """Application factory — create and configure the FastAPI instance."""
    settings = get_settings()

    application = FastAPI(
        title=f"{settings.app_name} API",
        description="Client service pricing catalogs, quotes and margins",
        version=__version__,
        debug=settings.debug,
        docs_url="/docs",
        redoc_url="/redoc",
    )

    # CORS: allow the frontend (adjust origins in production)
    application.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    application.add_exception_handler(ServiceError, service_error_handler)
    application.add_exception_handler(RequestValidationError, request_validation_handler)
    application.add_exception_handler(Exception, unhandled_error_handler)

    application.include_router(health_router, tags=["Health"])
    application.include_router(pricing_router, prefix=settings.api_prefix, tags=["Client Pricing"])

    logger.info(f"{settings.app_name} API configured (storage: {settings.storage_backend})")
    return application


# Module-level instance for `uvicorn service_pricing.api:app`
app = create_app()
