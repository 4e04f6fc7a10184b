"""
Shared-secret authentication for privileged endpoints.

Callers prove they are the trusted automation process by sending the
configured secret in the ``x-api-secret`` header. The check happens in a
FastAPI dependency, before the request body is read.
"""

import hmac

import structlog
from fastapi import Depends, Header

from api.errors import Unauthorized
from core.dependencies import get_settings
from core.logging import BusinessEvents
from core.metrics import auth_rejections
from core.settings import Settings

log = structlog.get_logger(__name__)

API_SECRET_HEADER = "x-api-secret"


def is_authorized(provided: str | None, expected: str) -> bool:
    """Return True when ``provided`` matches ``expected``.

    An absent or empty secret is simply unauthorized, never an error.
    """
    if not provided or not expected:
        return False
    return hmac.compare_digest(provided.encode("utf-8"), expected.encode("utf-8"))


async def require_api_secret(
    x_api_secret: str | None = Header(default=None, alias=API_SECRET_HEADER),
    settings: Settings = Depends(get_settings),
) -> None:
    """FastAPI dependency rejecting requests without the shared secret."""
    if not is_authorized(x_api_secret, settings.API_SECRET):
        auth_rejections.inc()
        log.warning(BusinessEvents.AUTH_REJECTED, secret_present=bool(x_api_secret))
        raise Unauthorized()
