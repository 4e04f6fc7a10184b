"""
Request validation for the send-tokens endpoint.

Runs after authentication and before any network or cryptographic work.
"""

import re
from decimal import Decimal
from typing import Any

from pydantic import BaseModel, ConfigDict, SecretStr

from api.errors import INVALID_ADDRESS, MISSING_PARAMETERS, MalformedRequest

ADDRESS_PATTERN = re.compile(r"^0x[a-fA-F0-9]{40}$")

REQUIRED_FIELDS = ("private_key", "alchemy_key", "token_contract", "to_address", "amount")


class TransferRequest(BaseModel):
    """A validated transfer. Secrets are masked in repr and serialization."""

    private_key: SecretStr
    rpc_credential: SecretStr
    token_contract: str
    to_address: str
    amount: str

    model_config = ConfigDict(frozen=True)


def _text(value: Any) -> str | None:
    return value if isinstance(value, str) and value.strip() else None


def _amount(value: Any) -> str | None:
    # JSON numbers are accepted for the amount only
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        # repr is the shortest round-trip form; "f" expands 1e-07 and 1e+16
        return format(Decimal(repr(value)), "f")
    return _text(value)


def validate_transfer_request(body: Any) -> TransferRequest:
    if not isinstance(body, dict):
        raise MalformedRequest(MISSING_PARAMETERS)

    fields = {name: _text(body.get(name)) for name in REQUIRED_FIELDS[:-1]}
    fields["amount"] = _amount(body.get("amount"))
    if any(value is None for value in fields.values()):
        raise MalformedRequest(MISSING_PARAMETERS)

    if not ADDRESS_PATTERN.fullmatch(fields["to_address"]):
        raise MalformedRequest(INVALID_ADDRESS)

    return TransferRequest(
        private_key=fields["private_key"],
        rpc_credential=fields["alchemy_key"],
        token_contract=fields["token_contract"],
        to_address=fields["to_address"],
        amount=fields["amount"],
    )
