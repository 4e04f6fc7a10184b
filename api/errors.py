"""
HTTP-facing errors and their JSON envelope.

Every failure response shares the ``{"success": false, "error": ...}`` shape
that the calling automation process parses.
"""

from typing import Any

from fastapi import Request, status
from fastapi.responses import JSONResponse

from chain.errors import ErrorCategory, TransferFailed

MISSING_PARAMETERS = "Missing required parameters"
INVALID_ADDRESS = "Invalid wallet address"


class ServiceError(Exception):
    """Base error carrying its HTTP status and client-facing message."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, error: str, **extra: Any):
        super().__init__(error)
        self.error = error
        self.extra = extra

    def to_payload(self) -> dict[str, Any]:
        return {"success": False, "error": self.error, **self.extra}


class Unauthorized(ServiceError):
    status_code = status.HTTP_401_UNAUTHORIZED

    def __init__(self, error: str = "Unauthorized - Invalid API Secret"):
        super().__init__(error)


class MalformedRequest(ServiceError):
    status_code = status.HTTP_400_BAD_REQUEST


async def service_error_handler(request: Request, exc: ServiceError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content=exc.to_payload())


async def transfer_failed_handler(request: Request, exc: TransferFailed) -> JSONResponse:
    """Render a classified chain failure.

    An invalid amount is the caller's fault (400); everything else that went
    wrong while talking to the chain is a 500.
    """
    classified = exc.classified
    status_code = (
        status.HTTP_400_BAD_REQUEST
        if classified.category == ErrorCategory.INVALID_AMOUNT
        else status.HTTP_500_INTERNAL_SERVER_ERROR
    )
    return JSONResponse(
        status_code=status_code,
        content={"success": False, **classified.to_payload()},
    )
