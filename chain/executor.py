"""
Transfer Executor

Turns a validated transfer request into exactly one on-chain ERC-20
transfer. Transfers are not idempotent: executing the same request twice
moves the tokens twice.
"""

import re
import time

import structlog

from chain.errors import InvalidAmount, TransferFailed, classify_error
from chain.gateway import GatewayFactory, TransferResult
from core.logging import BusinessEvents
from core.metrics import confirmation_latency, transfer_failures, transfers_total

log = structlog.get_logger(__name__)

TOKEN_DECIMALS = 18

# ASCII digits only; \d would also accept other scripts' digits, which int() converts
_AMOUNT_PATTERN = re.compile(r"^(?:[0-9]+\.?[0-9]*|\.[0-9]+)$")


def to_base_units(amount: str, decimals: int = TOKEN_DECIMALS) -> int:
    """Convert a non-negative decimal string to integer base units, exactly.

    >>> to_base_units("1.5")
    1500000000000000000
    """
    if not isinstance(amount, str) or not _AMOUNT_PATTERN.fullmatch(amount):
        raise InvalidAmount(amount)
    whole, _, fraction = amount.partition(".")
    fraction = fraction.rstrip("0")
    if len(fraction) > decimals:
        raise InvalidAmount(amount)
    return int(whole or "0") * 10**decimals + int(fraction.ljust(decimals, "0") or "0")


class TransferExecutor:
    def __init__(self, connect: GatewayFactory):
        self.connect = connect

    async def execute(self, request) -> TransferResult:
        """Submit ``request`` and wait for one confirmation.

        Raises:
            TransferFailed: any failure, already classified.
        """
        rpc_credential = request.rpc_credential.get_secret_value()
        short_to = request.to_address[:10]

        try:
            amount = to_base_units(request.amount)
        except InvalidAmount as exc:
            transfers_total.labels(outcome="rejected").inc()
            log.warning(
                BusinessEvents.TRANSFER_REJECTED, reason="invalid amount", to=short_to
            )
            raise TransferFailed(classify_error(exc)) from exc

        log.info(
            BusinessEvents.TRANSFER_REQUESTED,
            amount=request.amount,
            amount_base_units=str(amount),
            to=short_to,
            token_contract=request.token_contract,
        )

        gateway = None
        started = time.perf_counter()
        try:
            gateway = self.connect(
                rpc_credential, request.private_key.get_secret_value()
            )
            log.info(
                BusinessEvents.TRANSFER_SUBMITTED,
                signer_address=gateway.signer_address,
                to=short_to,
            )
            result = await gateway.submit_transfer(
                request.token_contract, request.to_address, amount
            )
        except Exception as exc:
            classified = classify_error(exc, redact=(rpc_credential,))
            transfers_total.labels(outcome="failed").inc()
            transfer_failures.labels(category=classified.category.value).inc()
            log.error(
                BusinessEvents.TRANSFER_FAILED,
                category=classified.category.value,
                code=classified.code,
                error=classified.message,
                tx_hash=classified.tx_hash,
            )
            raise TransferFailed(classified) from exc
        finally:
            if gateway is not None:
                await gateway.close()

        confirmation_latency.observe(time.perf_counter() - started)
        transfers_total.labels(outcome="confirmed").inc()
        log.info(
            BusinessEvents.TRANSFER_CONFIRMED,
            tx_hash=result.tx_hash,
            block_number=result.block_number,
            gas_used=result.gas_used,
        )
        return result
