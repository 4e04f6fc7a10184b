"""
Polygon Chain Client

This module handles the ERC-20 side of a transfer:
- Connecting to the Alchemy Polygon JSON-RPC endpoint
- Deriving a signer from the treasury private key
- Binding the token contract to that signer
- Signing, broadcasting and waiting for one confirmation
"""

import structlog
from eth_account import Account
from eth_account.signers.local import LocalAccount
from tenacity import (
    AsyncRetrying,
    retry_if_exception_type,
    stop_after_delay,
    wait_fixed,
)
from web3 import AsyncWeb3
from web3.exceptions import TransactionNotFound
from web3.middleware import ExtraDataToPOAMiddleware

from chain.errors import (
    ChainError,
    ConfirmationTimeout,
    InvalidContractAddress,
    InvalidPrivateKey,
    ReceiptUnavailable,
    TransactionReverted,
)
from chain.gateway import GatewayFactory, TransferResult
from core.settings import Settings

log = structlog.get_logger(__name__)

POLYGON_RPC_URL_TEMPLATE = "https://polygon-mainnet.g.alchemy.com/v2/{credential}"

# Only the entry point this service calls
ERC20_TRANSFER_ABI = [
    {
        "constant": False,
        "inputs": [
            {"name": "to", "type": "address"},
            {"name": "amount", "type": "uint256"},
        ],
        "name": "transfer",
        "outputs": [{"name": "", "type": "bool"}],
        "stateMutability": "nonpayable",
        "type": "function",
    }
]


class TokenContract:
    """ERC-20 contract handle bound to the signer that pays for the transfer."""

    def __init__(self, web3: AsyncWeb3, address: str, signer: LocalAccount):
        self.web3 = web3
        self.address = address
        self.signer = signer
        self.contract = web3.eth.contract(address=address, abi=ERC20_TRANSFER_ABI)

    async def build_transfer(self, to: str, amount: int) -> dict:
        nonce = await self.web3.eth.get_transaction_count(
            self.signer.address, "pending"
        )
        return await self.contract.functions.transfer(
            AsyncWeb3.to_checksum_address(to), amount
        ).build_transaction({"from": self.signer.address, "nonce": nonce})


class ChainClient:
    """Connection to the Polygon RPC endpoint for a single request."""

    def __init__(self, rpc_credential: str, request_timeout: float = 30.0):
        self.web3 = AsyncWeb3(
            AsyncWeb3.AsyncHTTPProvider(
                POLYGON_RPC_URL_TEMPLATE.format(credential=rpc_credential),
                request_kwargs={"timeout": request_timeout},
            )
        )
        # Polygon block headers carry proof-of-authority extra data
        self.web3.middleware_onion.inject(ExtraDataToPOAMiddleware, layer=0)

    def signer(self, private_key: str) -> LocalAccount:
        try:
            return Account.from_key(private_key)
        except (ValueError, TypeError) as exc:
            raise InvalidPrivateKey() from exc

    def token(self, address: str, signer: LocalAccount) -> TokenContract:
        try:
            checksum = AsyncWeb3.to_checksum_address(address)
        except (ValueError, TypeError) as exc:
            raise InvalidContractAddress(address) from exc
        return TokenContract(self.web3, checksum, signer)

    async def aclose(self) -> None:
        await self.web3.provider.disconnect()


class Web3TransferGateway:
    """Submits ERC-20 transfers through an ``AsyncWeb3`` connection."""

    def __init__(
        self,
        client: ChainClient,
        signer: LocalAccount,
        confirmation_timeout: float = 120.0,
        poll_interval: float = 2.0,
    ):
        self.client = client
        self.signer = signer
        self.signer_address = signer.address
        self.confirmation_timeout = confirmation_timeout
        self.poll_interval = poll_interval

    async def submit_transfer(
        self, contract: str, to: str, amount_base_units: int
    ) -> TransferResult:
        token = self.client.token(contract, self.signer)
        tx = await token.build_transfer(to, amount_base_units)
        signed = self.signer.sign_transaction(tx)
        tx_hash = AsyncWeb3.to_hex(
            await self.client.web3.eth.send_raw_transaction(signed.raw_transaction)
        )
        log.info("chain.broadcast", tx_hash=tx_hash, nonce=tx["nonce"])

        # Broadcast already happened; every failure from here on keeps the hash
        try:
            receipt = await self.wait_for_receipt(tx_hash)
        except ChainError:
            raise
        except Exception as exc:
            raise ReceiptUnavailable(tx_hash, exc) from exc
        if receipt["status"] != 1:
            raise TransactionReverted(tx_hash, receipt["blockNumber"])
        return TransferResult(
            tx_hash=tx_hash,
            block_number=receipt["blockNumber"],
            gas_used=receipt["gasUsed"],
        )

    async def wait_for_receipt(self, tx_hash: str):
        """Poll until the transaction is included in a block.

        Only the receipt lookup is repeated; the transaction itself is never
        re-sent.
        """
        retrying = AsyncRetrying(
            retry=retry_if_exception_type(TransactionNotFound),
            stop=stop_after_delay(self.confirmation_timeout),
            wait=wait_fixed(self.poll_interval),
            reraise=True,
        )
        try:
            async for attempt in retrying:
                with attempt:
                    return await self.client.web3.eth.get_transaction_receipt(tx_hash)
        except TransactionNotFound as exc:
            raise ConfirmationTimeout(tx_hash, self.confirmation_timeout) from exc

    async def close(self) -> None:
        await self.client.aclose()


def connect_gateway(settings: Settings) -> GatewayFactory:
    """Build the per-request gateway factory from application settings."""

    def connect(rpc_credential: str, private_key: str) -> Web3TransferGateway:
        client = ChainClient(rpc_credential, settings.RPC_REQUEST_TIMEOUT_SECONDS)
        signer = client.signer(private_key)
        log.info("chain.signer_ready", signer_address=signer.address)
        return Web3TransferGateway(
            client,
            signer,
            confirmation_timeout=settings.CONFIRMATION_TIMEOUT_SECONDS,
            poll_interval=settings.CONFIRMATION_POLL_SECONDS,
        )

    return connect
