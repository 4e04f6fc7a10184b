"""
Token Sender Service - Main Application Entry Point

This module initializes the FastAPI application and sets up the core routing.
The service lets a trusted automation process move ERC-20 tokens on Polygon
from a treasury wallet whose key accompanies each request.
"""

import structlog
from contextlib import asynccontextmanager
from datetime import UTC, datetime

from fastapi import Depends, FastAPI, Request
from fastapi.responses import JSONResponse
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor

from api import routes
from api.errors import ServiceError, service_error_handler, transfer_failed_handler
from api.middleware import log_api_entry
from api.schemas import HealthStatus, ServiceHealth
from chain.errors import TransferFailed
from core.dependencies import clear_settings, get_settings, init_settings
from core.logging import BusinessEvents, configure_logging
from core.metrics import add_metrics_auth_middleware, init_metrics
from core.settings import Settings
from core.tracing import init_tracer

log = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan context manager for FastAPI application startup and shutdown events."""
    # Startup
    init_settings()
    settings = get_settings()

    # Initialize OpenTelemetry tracing
    tracer_provider = init_tracer(
        settings.OTEL_SERVICE_NAME,
        settings.OTEL_EXPORTER_OTLP_ENDPOINT,
        settings.ENVIRONMENT,
    )

    log.info(
        BusinessEvents.SERVICE_STARTED,
        port=settings.PORT,
        environment=settings.ENVIRONMENT,
        api_secret_configured=bool(settings.API_SECRET),
        started_at=datetime.now(UTC).isoformat(),
    )
    if settings.api_secret_is_default:
        log.warning(
            "security.default_api_secret",
            detail="API_SECRET is the shipped placeholder; set a random value",
        )

    yield
    # Shutdown
    tracer_provider.shutdown()
    clear_settings()


app = FastAPI(
    title="Token Sport Sender Service",
    description="""
    ## ERC-20 Treasury Transfer Service

    Sends a fixed-supply ERC-20 token on Polygon from a treasury wallet to a
    destination address and waits for one block confirmation.

    ### Notes:
    - Every call to `/send-tokens` requires the `x-api-secret` header
    - Transfers are **not idempotent**; retrying sends tokens again
    - Failures carry a stable `category` and the provider's original `code`
    """,
    version="1.0.0",
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
)

# Initialize FastAPI instrumentation
FastAPIInstrumentor.instrument_app(app)

# Initialize Prometheus metrics
if init_metrics(app, enabled=Settings().METRICS_ENABLED):
    # Add metrics authentication middleware (for production)
    add_metrics_auth_middleware(app)

# Add logging middleware
app.middleware("http")(log_api_entry)

app.add_exception_handler(ServiceError, service_error_handler)
app.add_exception_handler(TransferFailed, transfer_failed_handler)


# Global exception handler
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    log.error("api.unhandled_error", path=request.url.path, error=str(exc))
    return JSONResponse(
        status_code=500,
        content={"success": False, "error": "Internal server error"},
    )


@app.get("/", response_model=HealthStatus)
async def root(settings: Settings = Depends(get_settings)):
    """Liveness probe; no authentication."""
    return {
        "status": "running",
        "service": settings.APP_NAME,
        "timestamp": datetime.now(UTC),
    }


@app.get("/healthz", response_model=ServiceHealth)
async def health_check(settings: Settings = Depends(get_settings)):
    """Health check endpoint to verify API status."""
    return {
        "status": "ok",
        "app_name": settings.APP_NAME,
        "environment": settings.ENVIRONMENT,
        "api_secret_configured": bool(settings.API_SECRET),
        "api_secret_is_default": settings.api_secret_is_default,
    }


app.include_router(routes.router)


def main():
    import uvicorn

    configure_logging()
    init_settings()
    settings = get_settings()
    uvicorn.run(app, host=settings.HOST, port=settings.PORT)


if __name__ == "__main__":
    main()
