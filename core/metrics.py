"""
Prometheus metrics instrumentation for the Token Sender Service.

This module sets up FastAPI instrumentation to expose metrics in Prometheus format
at the /metrics endpoint with optional authentication.
"""

from prometheus_fastapi_instrumentator import Instrumentator
from prometheus_client import Counter, Histogram
from fastapi import Request, status
from fastapi.responses import JSONResponse
import os

# Domain-specific metrics
transfers_total = Counter(
    "tokensender_transfers_total",
    "Total number of transfer requests by final outcome",
    ["outcome"],  # confirmed, failed, rejected
)

transfer_failures = Counter(
    "tokensender_transfer_failures_total",
    "Classified on-chain transfer failures",
    ["category"],
)

confirmation_latency = Histogram(
    "tokensender_confirmation_latency_seconds",
    "Time from submission to one-block confirmation",
    buckets=[1.0, 2.5, 5.0, 10.0, 30.0, 60.0, 120.0],
)

auth_rejections = Counter(
    "tokensender_auth_rejections_total",
    "Requests rejected because of a missing or wrong API secret",
)


def init_metrics(app, enabled: bool = True):
    """
    Initialize Prometheus metrics instrumentation for the FastAPI app.

    Args:
        app: FastAPI application instance
        enabled: when False, /metrics is not mounted and nothing is instrumented

    Returns:
        Instrumentator instance, or None when metrics are disabled
    """
    if not enabled:
        return None

    inst = Instrumentator(
        should_group_status_codes=False,
        should_ignore_untemplated=True,
        excluded_handlers=["/metrics"],
    )

    # Expose metrics endpoint
    inst.instrument(app).expose(app, endpoint="/metrics", include_in_schema=False)
    return inst


def add_metrics_auth_middleware(app):
    """
    Add middleware to protect the /metrics endpoint in production.
    For production use, set METRICS_AUTH_TOKEN environment variable.
    """

    @app.middleware("http")
    async def metrics_auth_middleware(request: Request, call_next):
        # Only protect metrics endpoint
        if request.url.path == "/metrics":
            # For development, allow all requests
            if os.getenv("ENVIRONMENT", "development") == "development":
                return await call_next(request)

            # In production, check for metrics auth header or VPN access
            auth_header = request.headers.get("X-Metrics-Auth")
            expected_token = os.getenv("METRICS_AUTH_TOKEN")

            if expected_token and auth_header == expected_token:
                return await call_next(request)

            # Allow internal network access (VPN/private networks)
            client_ip = request.client.host if request.client else None
            if client_ip and (
                client_ip.startswith("10.")
                or client_ip.startswith("192.168.")
                or client_ip.startswith("172.")
            ):
                return await call_next(request)

            # Exceptions raised here bypass the app's handlers
            return JSONResponse(
                status_code=status.HTTP_401_UNAUTHORIZED,
                content={"success": False, "error": "Metrics endpoint access denied"},
            )

        return await call_next(request)
