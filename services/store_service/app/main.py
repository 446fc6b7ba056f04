"""FastAPI application for the Store Service.

Run with: uvicorn services.store_service.app.main:create_app --factory
"""

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from libs.common.config import Settings, get_settings
from libs.common.logging import get_logger
from libs.common.middleware import add_observability_middleware
from libs.db.config import create_schema
from services.store_service.dependencies import StoreComponents, build_components
from services.store_service.exceptions import StoreError
from services.store_service.paystack_client import PaystackError
from services.store_service.routers import admin_orders_router, orders_router
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = get_logger(__name__)

API_PREFIX = "/api/v1"


def _field_path(loc) -> str:
    parts = [str(part) for part in loc if part not in ("body", "query", "path")]
    return ".".join(parts)


def register_exception_handlers(app: FastAPI, settings: Settings) -> None:
    @app.exception_handler(StoreError)
    async def store_error_handler(request: Request, exc: StoreError):
        return JSONResponse(status_code=exc.status_code, content=exc.to_response())

    @app.exception_handler(PaystackError)
    async def paystack_error_handler(request: Request, exc: PaystackError):
        logger.error("Paystack error on %s: %s", request.url.path, exc.message)
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"success": False, "message": exc.message},
        )

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        errors = [
            {"field": _field_path(error.get("loc", ())), "message": error.get("msg")}
            for error in exc.errors()
        ]
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"success": False, "message": "Validation error", "errors": errors},
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        return JSONResponse(
            status_code=exc.status_code,
            content={"success": False, "message": exc.detail},
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        message = "Internal server error" if settings.is_production else str(exc)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"success": False, "message": message},
        )


def create_app(
    settings: Optional[Settings] = None,
    components: Optional[StoreComponents] = None,
) -> FastAPI:
    """Create and configure the Store Service FastAPI app."""
    settings = settings or get_settings()
    settings.validate_for_startup()
    components = components or build_components(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # No migrations; local runs bootstrap tables from the models
        if settings.ENVIRONMENT == "local" and components.engine is not None:
            await create_schema(components.engine)
        yield
        await components.dispose()

    app = FastAPI(
        title=f"{settings.APP_NAME} Store Service",
        version="0.1.0",
        description="Checkout, stock reservation and Paystack payment confirmation.",
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.components = components

    add_observability_middleware(app, settings)
    register_exception_handlers(app, settings)

    @app.get("/health", tags=["system"])
    async def health_check() -> dict[str, str]:
        """Health check endpoint."""
        return {"status": "ok", "service": "store"}

    app.include_router(orders_router, prefix=API_PREFIX)
    app.include_router(admin_orders_router, prefix=API_PREFIX)

    return app
