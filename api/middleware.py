import time
import uuid

import structlog
from fastapi import Request

from core.logging import BusinessEvents


async def log_api_entry(request: Request, call_next):
    """Bind a request id and log each request and its outcome.

    Only the method, path and caller are recorded. Bodies, query strings and
    headers are left out since they carry private keys and the shared secret.
    """
    # Resolved per call so capture_logs in tests sees these events
    log = structlog.get_logger(__name__)

    request_id = request.headers.get("x-request-id") or uuid.uuid4().hex
    structlog.contextvars.clear_contextvars()
    structlog.contextvars.bind_contextvars(request_id=request_id)

    log.info(
        BusinessEvents.API_ENTRY,
        method=request.method,
        path=request.url.path,
        client_host=request.client.host if request.client else None,
    )
    started = time.perf_counter()
    response = await call_next(request)
    log.info(
        BusinessEvents.API_RESPONSE,
        method=request.method,
        path=request.url.path,
        status_code=response.status_code,
        duration_ms=round((time.perf_counter() - started) * 1000, 1),
    )
    response.headers["x-request-id"] = request_id
    return response
