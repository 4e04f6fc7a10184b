"""
Token transfer routes
"""

import structlog
from fastapi import APIRouter, Depends, Request

from api.errors import MalformedRequest
from api.schemas import TransferError, TransferSuccess
from api.validation import validate_transfer_request
from chain.client import connect_gateway
from chain.executor import TransferExecutor
from chain.gateway import GatewayFactory
from core.dependencies import get_settings
from core.logging import BusinessEvents
from core.metrics import transfers_total
from core.security import require_api_secret
from core.settings import Settings

log = structlog.get_logger(__name__)

router = APIRouter()


def get_gateway_factory(settings: Settings = Depends(get_settings)) -> GatewayFactory:
    """FastAPI dependency for the chain gateway factory."""
    return connect_gateway(settings)


def get_transfer_executor(
    connect: GatewayFactory = Depends(get_gateway_factory),
) -> TransferExecutor:
    """FastAPI dependency for TransferExecutor."""
    return TransferExecutor(connect)


@router.post(
    "/send-tokens",
    response_model=TransferSuccess,
    dependencies=[Depends(require_api_secret)],
    responses={
        400: {"model": TransferError},
        401: {"model": TransferError},
        500: {"model": TransferError},
    },
)
async def send_tokens(
    request: Request,
    executor: TransferExecutor = Depends(get_transfer_executor),
):
    """
    Transfer tokens from the treasury wallet and wait for one confirmation.

    Requires the `x-api-secret` header. Not idempotent: repeating a call
    sends a second transfer.

    **Request Example:**
    ```json
    {
        "private_key": "0x...",
        "alchemy_key": "...",
        "token_contract": "0x...",
        "to_address": "0x...",
        "amount": "1.5"
    }
    ```
    """
    try:
        body = await request.json()
    except ValueError:
        body = None

    try:
        transfer = validate_transfer_request(body)
    except MalformedRequest as exc:
        transfers_total.labels(outcome="rejected").inc()
        log.warning(BusinessEvents.TRANSFER_REJECTED, reason=exc.error)
        raise

    result = await executor.execute(transfer)
    return {"success": True, **result.to_payload()}
