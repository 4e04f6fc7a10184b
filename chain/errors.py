"""
Chain Error Classification

Maps failures raised while connecting to the RPC provider, signing,
broadcasting or waiting for a receipt onto a small set of stable categories
that the calling automation process can branch on. The provider's own
machine-readable code is always kept next to the human message.

Classification matches known codes first and then substrings of the provider
message. Provider wording is not a stable contract, so unseen phrasings fall
through to ``unclassified`` with the original message passed on.
"""

import asyncio
from dataclasses import dataclass
from enum import Enum
from typing import Any

from web3.exceptions import TimeExhausted


class ErrorCategory(str, Enum):
    INSUFFICIENT_FUNDS = "insufficient_funds"
    NONCE_CONFLICT = "nonce_conflict"
    GAS_ERROR = "gas_error"
    TIMEOUT = "timeout"
    INVALID_AMOUNT = "invalid_amount"
    UNCLASSIFIED = "unclassified"


class ChainError(Exception):
    """Failure raised by this service's chain layer with an explicit code."""

    code = "UNKNOWN_ERROR"

    def __init__(self, message: str, tx_hash: str | None = None):
        super().__init__(message)
        self.message = message
        self.tx_hash = tx_hash


class InvalidAmount(ChainError):
    code = "INVALID_ARGUMENT"

    def __init__(self, amount: Any):
        super().__init__(f"invalid decimal amount: {amount!r}")
        self.amount = amount


class InvalidPrivateKey(ChainError):
    code = "INVALID_ARGUMENT"

    def __init__(self):
        super().__init__("invalid private key")


class InvalidContractAddress(ChainError):
    code = "INVALID_ARGUMENT"

    def __init__(self, address: str):
        super().__init__(f"invalid token contract address: {address}")


class TransactionReverted(ChainError):
    code = "CALL_EXCEPTION"

    def __init__(self, tx_hash: str, block_number: int):
        super().__init__(
            f"transaction reverted in block {block_number}", tx_hash=tx_hash
        )
        self.block_number = block_number


class ConfirmationTimeout(ChainError):
    code = "TIMEOUT"

    def __init__(self, tx_hash: str, timeout: float):
        super().__init__(
            f"transaction {tx_hash} not confirmed after {timeout:g}s", tx_hash=tx_hash
        )
        self.timeout = timeout


class ReceiptUnavailable(ChainError):
    """The transaction was broadcast but waiting for its receipt failed.

    Carries the hash so the caller can look the transaction up before
    retrying. Code and message are the underlying failure's.
    """

    def __init__(self, tx_hash: str, cause: BaseException):
        super().__init__(error_message(cause), tx_hash=tx_hash)
        self.code = error_code(cause)
        self.cause = cause


@dataclass(frozen=True)
class ClassifiedError:
    message: str
    category: ErrorCategory
    code: str
    tx_hash: str | None = None

    def to_payload(self) -> dict[str, Any]:
        payload = {
            "error": self.message,
            "code": self.code,
            "category": self.category.value,
        }
        if self.tx_hash:
            payload["tx_hash"] = self.tx_hash
        return payload


class TransferFailed(Exception):
    """Raised at the executor boundary once a failure has been classified."""

    def __init__(self, classified: ClassifiedError):
        super().__init__(classified.message)
        self.classified = classified


# (category, known codes, message substrings, client message)
_RULES = (
    (
        ErrorCategory.INSUFFICIENT_FUNDS,
        {"INSUFFICIENT_FUNDS"},
        ("insufficient funds", "exceeds balance", "insufficient balance"),
        "Insufficient funds in the treasury wallet",
    ),
    (
        ErrorCategory.NONCE_CONFLICT,
        {"NONCE_EXPIRED", "REPLACEMENT_UNDERPRICED"},
        (
            "nonce too low",
            "nonce too high",
            "invalid nonce",
            "replacement transaction underpriced",
            "already known",
        ),
        "Nonce conflict. Try again.",
    ),
    (
        ErrorCategory.GAS_ERROR,
        {"UNPREDICTABLE_GAS_LIMIT"},
        ("gas",),
        "Gas error. Check that the treasury wallet holds MATIC for fees.",
    ),
)

_TIMEOUT_ERRORS = (ConfirmationTimeout, TimeExhausted, asyncio.TimeoutError)


def _rpc_error(exc: BaseException) -> dict | None:
    """Return the JSON-RPC error object attached to ``exc``, if any."""
    rpc_response = getattr(exc, "rpc_response", None)
    if isinstance(rpc_response, dict) and isinstance(rpc_response.get("error"), dict):
        return rpc_response["error"]
    # Older clients raise ValueError({"code": ..., "message": ...})
    if exc.args and isinstance(exc.args[0], dict):
        return exc.args[0]
    return None


def error_code(exc: BaseException) -> str:
    """Best machine-readable code for ``exc``; falls back to the class name."""
    code = getattr(exc, "code", None)
    if isinstance(code, (str, int)) and not isinstance(code, bool) and code != "":
        return str(code)
    rpc_error = _rpc_error(exc)
    if rpc_error and "code" in rpc_error:
        return str(rpc_error["code"])
    return type(exc).__name__


def error_message(exc: BaseException) -> str:
    rpc_error = _rpc_error(exc)
    if rpc_error and rpc_error.get("message"):
        return str(rpc_error["message"])
    message = getattr(exc, "message", None)
    if isinstance(message, str) and message:
        return message
    return str(exc) or type(exc).__name__


def classify_error(
    exc: BaseException, redact: tuple[str, ...] = ()
) -> ClassifiedError:
    """Classify ``exc``.

    ``redact`` lists secrets (e.g. the RPC credential, which is part of the
    provider URL) to scrub from a message that is passed through verbatim.
    """
    code = error_code(exc)
    message = error_message(exc)
    for secret in redact:
        if secret:
            message = message.replace(secret, "***")
    tx_hash = getattr(exc, "tx_hash", None)

    if isinstance(exc, InvalidAmount):
        return ClassifiedError("Invalid amount", ErrorCategory.INVALID_AMOUNT, code)

    failure = exc.cause if isinstance(exc, ReceiptUnavailable) else exc
    if isinstance(failure, _TIMEOUT_ERRORS):
        return ClassifiedError(
            "Transaction was not confirmed in time"
            if isinstance(failure, (ConfirmationTimeout, TimeExhausted))
            else "Timed out waiting for the RPC provider",
            ErrorCategory.TIMEOUT,
            ConfirmationTimeout.code if code == type(failure).__name__ else code,
            tx_hash,
        )

    lowered = message.lower()
    for category, codes, needles, client_message in _RULES:
        if code in codes or any(needle in lowered for needle in needles):
            return ClassifiedError(client_message, category, code, tx_hash)

    return ClassifiedError(message, ErrorCategory.UNCLASSIFIED, code, tx_hash)
