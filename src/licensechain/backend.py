"""
Outbound blockchain capability.

``ChainBackend`` is the boundary between the SDK core and the node: signing
and broadcasting, receipt polling, gas estimation, read-only calls and fee
data. The core never talks to web3 directly, so tests inject a stub and
applications can plug in an external signer.

``Web3Backend`` is the production implementation on top of ``AsyncWeb3``
and a local ``eth_account`` key. Exceptions from web3 propagate raw; the
executor and the contract facade normalize them.
"""

from __future__ import annotations

import asyncio
from typing import Any, Dict, List, Optional, Protocol, Sequence, Tuple, runtime_checkable

from eth_account import Account
from eth_account.signers.local import LocalAccount
from web3 import AsyncWeb3, Web3
from web3.exceptions import TransactionNotFound

from licensechain.abi import LICENSE_ABI
from licensechain.config import NetworkProfile
from licensechain.constants import (
    MAX_FEE_MULTIPLIER,
    PRIORITY_FEE_GWEI,
    PROVIDER_TIMEOUT_SECONDS,
    RECEIPT_POLL_INTERVAL,
)
from licensechain.errors import ErrorKind, LicenseChainError
from licensechain.models import FeeData, GasParams, OperationDescriptor, Receipt
from licensechain.utils.logging import get_logger

__all__ = ["ChainBackend", "Web3Backend"]

_logger = get_logger(__name__)


@runtime_checkable
class ChainBackend(Protocol):
    """Signing, broadcast and query capability used by the SDK core.

    Nonce assignment and ordering are the backend's responsibility: every
    ``submit`` must use a unique, correctly ordered nonce even when called
    concurrently.
    """

    @property
    def address(self) -> Optional[str]:
        """Sender address, or None for a read-only backend."""
        ...

    async def submit(self, descriptor: OperationDescriptor, gas: GasParams) -> str:
        """Sign and broadcast; return the transaction hash."""
        ...

    async def wait_for_receipt(self, tx_hash: str, confirmations: int) -> Receipt:
        """Block until the transaction is mined with ``confirmations`` depth."""
        ...

    async def estimate_gas(self, descriptor: OperationDescriptor) -> int:
        ...

    async def static_call(
        self,
        address: str,
        function: str,
        args: Sequence[Any] = (),
        abi: Optional[List[Dict[str, Any]]] = None,
    ) -> Any:
        ...

    async def get_fee_data(self) -> FeeData:
        ...

    async def get_block_number(self) -> int:
        ...

    async def get_balance(self, address: str) -> int:
        ...

    async def get_chain_id(self) -> int:
        ...


class Web3Backend:
    """ChainBackend over AsyncWeb3 with a local signing key.

    Args:
        w3: AsyncWeb3 instance
        chain_id: Chain id written into every transaction
        account: Signing account; None makes the backend read-only
        poll_interval: Seconds between receipt / block polls
    """

    def __init__(
        self,
        w3: AsyncWeb3,
        chain_id: int,
        account: Optional[LocalAccount] = None,
        poll_interval: float = RECEIPT_POLL_INTERVAL,
    ) -> None:
        self._w3 = w3
        self._chain_id = chain_id
        self._account = account
        self._poll_interval = poll_interval
        self._nonce_lock = asyncio.Lock()
        self._failed_send: Optional[Tuple[OperationDescriptor, GasParams, Any, int]] = None

    @classmethod
    def from_profile(
        cls,
        profile: NetworkProfile,
        private_key: Optional[str] = None,
        request_timeout: float = PROVIDER_TIMEOUT_SECONDS,
        poll_interval: float = RECEIPT_POLL_INTERVAL,
    ) -> "Web3Backend":
        """Connect to the profile's RPC endpoint, optionally with a signing key."""
        w3 = AsyncWeb3(
            AsyncWeb3.AsyncHTTPProvider(
                profile.rpc_url,
                request_kwargs={"timeout": request_timeout},
            )
        )
        account: Optional[LocalAccount] = None
        if private_key:
            # Sanitize private key errors to prevent key leakage in stack traces
            try:
                account = Account.from_key(private_key)
            except Exception:
                raise LicenseChainError(
                    "Invalid private key format (key not shown for security)",
                    kind=ErrorKind.INVALID_CONFIG,
                ) from None
        return cls(w3, profile.chain_id, account, poll_interval)

    @property
    def address(self) -> Optional[str]:
        return self._account.address if self._account else None

    @property
    def w3(self) -> AsyncWeb3:
        return self._w3

    # ------------------------------------------------------------------
    # Transactions
    # ------------------------------------------------------------------

    def _contract_function(self, descriptor: OperationDescriptor) -> Any:
        abi = descriptor.abi or LICENSE_ABI
        if descriptor.is_deployment:
            factory = self._w3.eth.contract(abi=abi, bytecode=descriptor.bytecode)
            return factory.constructor(*descriptor.arguments)
        contract = self._w3.eth.contract(
            address=Web3.to_checksum_address(descriptor.target_address), abi=abi
        )
        return contract.functions[descriptor.function](*descriptor.arguments)

    def _require_account(self) -> LocalAccount:
        if self._account is None:
            raise LicenseChainError.unauthorized()
        return self._account

    async def submit(self, descriptor: OperationDescriptor, gas: GasParams) -> str:
        """Sign and broadcast.

        A failed send is remembered; submitting the same descriptor and gas
        again resends the identical signed transaction instead of signing a
        new one with the next pending nonce.
        """
        account = self._require_account()
        async with self._nonce_lock:
            failed, self._failed_send = self._failed_send, None
            if failed is not None and failed[0] is descriptor and failed[1] is gas:
                signed, nonce = failed[2], failed[3]
            else:
                nonce = await self._w3.eth.get_transaction_count(account.address, "pending")
                tx = await self._contract_function(descriptor).build_transaction(
                    {
                        "from": account.address,
                        "nonce": nonce,
                        "chainId": self._chain_id,
                        **gas.to_tx_params(),
                    }
                )
                signed = account.sign_transaction(tx)
            tx_hash_hex = Web3.to_hex(signed.hash)
            try:
                await self._w3.eth.send_raw_transaction(signed.raw_transaction)
            except Exception as e:
                if not await self._accepted_anyway(tx_hash_hex, e):
                    self._failed_send = (descriptor, gas, signed, nonce)
                    raise
                _logger.warning(
                    "Broadcast of %s reported %s but the node has the transaction",
                    descriptor.function, type(e).__name__,
                    extra={"tx_hash": tx_hash_hex, "nonce": nonce},
                )
        _logger.debug(
            "Broadcast %s", descriptor.function, extra={"tx_hash": tx_hash_hex, "nonce": nonce}
        )
        return tx_hash_hex

    async def _accepted_anyway(self, tx_hash: str, error: Exception) -> bool:
        """Whether a failed send left the signed transaction with the node.

        Covers "already known" replies and transport errors raised after the
        node took the transaction.
        """
        if "already known" in str(error).lower():
            return True
        try:
            await self._w3.eth.get_transaction(tx_hash)
        except TransactionNotFound:
            return False
        except Exception as lookup_error:
            _logger.debug(
                "Could not look up %s after a failed send: %s", tx_hash, lookup_error,
                extra={"tx_hash": tx_hash},
            )
            return False
        return True

    async def _poll_receipt(self, tx_hash: str) -> Dict[str, Any]:
        while True:
            try:
                return await self._w3.eth.get_transaction_receipt(tx_hash)
            except TransactionNotFound:
                await asyncio.sleep(self._poll_interval)

    async def wait_for_receipt(self, tx_hash: str, confirmations: int) -> Receipt:
        # The receipt is re-read on every poll so a reorg that moves the
        # transaction to another block is picked up.
        while True:
            raw = await self._poll_receipt(tx_hash)
            receipt = Receipt(
                transaction_hash=Web3.to_hex(raw["transactionHash"]),
                block_number=raw["blockNumber"],
                gas_used=raw["gasUsed"],
                status=raw["status"],
                contract_address=raw.get("contractAddress"),
            )
            if confirmations <= 1 or not receipt.succeeded:
                return receipt
            head = await self._w3.eth.block_number
            if head - receipt.block_number + 1 >= confirmations:
                return receipt
            await asyncio.sleep(self._poll_interval)

    async def estimate_gas(self, descriptor: OperationDescriptor) -> int:
        function = self._contract_function(descriptor)
        params = {"from": self.address} if self.address else {}
        return await function.estimate_gas(params)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    async def static_call(
        self,
        address: str,
        function: str,
        args: Sequence[Any] = (),
        abi: Optional[List[Dict[str, Any]]] = None,
    ) -> Any:
        contract = self._w3.eth.contract(
            address=Web3.to_checksum_address(address), abi=abi or LICENSE_ABI
        )
        return await contract.functions[function](*args).call()

    async def get_fee_data(self) -> FeeData:
        """Fee data in the shape of ethers' getFeeData.

        maxFeePerGas = baseFee * 2 + priority fee; legacy chains without a
        base fee only report a gas price.
        """
        gas_price = await self._w3.eth.gas_price
        block = await self._w3.eth.get_block("latest")
        base_fee = block.get("baseFeePerGas")
        if base_fee is None:
            return FeeData(gas_price=gas_price)
        priority_fee = Web3.to_wei(PRIORITY_FEE_GWEI, "gwei")
        return FeeData(
            gas_price=gas_price,
            max_fee_per_gas=base_fee * MAX_FEE_MULTIPLIER + priority_fee,
            max_priority_fee_per_gas=priority_fee,
        )

    async def get_block_number(self) -> int:
        return await self._w3.eth.block_number

    async def get_balance(self, address: str) -> int:
        return await self._w3.eth.get_balance(Web3.to_checksum_address(address))

    async def get_chain_id(self) -> int:
        return await self._w3.eth.chain_id
