"""
Capability interface between the transfer executor and a chain backend.
"""

from dataclasses import dataclass
from typing import Callable, Protocol


@dataclass(frozen=True)
class TransferResult:
    """A transfer included in a block with a successful receipt."""

    tx_hash: str
    block_number: int
    gas_used: int

    def to_payload(self) -> dict:
        # gas_used travels as a decimal string so large values survive JSON
        return {
            "tx_hash": self.tx_hash,
            "block_number": self.block_number,
            "gas_used": str(self.gas_used),
        }


class TransferGateway(Protocol):
    signer_address: str

    async def submit_transfer(
        self, contract: str, to: str, amount_base_units: int
    ) -> TransferResult:
        """Broadcast ``transfer(to, amount)`` and wait for one confirmation."""
        ...

    async def close(self) -> None: ...


# (rpc_credential, private_key) -> gateway bound to that signer
GatewayFactory = Callable[[str, str], TransferGateway]
