"""
Shared fixtures: an in-memory ChainBackend and ready-made executor,
contract and client wired to it.
"""

import asyncio
from typing import Any, Dict, List, Optional, Sequence, Tuple

import pytest

from licensechain.config import LicenseChainConfig
from licensechain.client import LicenseChain
from licensechain.contract import LicenseContract
from licensechain.executor import TransactionExecutor
from licensechain.models import FeeData, GasParams, OperationDescriptor, Receipt
from licensechain.utils.retry import RetryConfig


# =============================================================================
# Test Constants
# =============================================================================

SIGNER = "0x1234567890123456789012345678901234567890"
RECIPIENT = "0xabcdefabcdefabcdefabcdefabcdefabcdefabcd"
OTHER = "0x9876543210987654321098765432109876543210"
CONTRACT_ADDRESS = "0x5fbdb2315678afecb367f032d93f642f64180aa3"
DEPLOYED_ADDRESS = "0xe7f1725e7734ce288f8367e1bb143e90bb3f0512"

GWEI = 10**9

METADATA = {"software": "App", "version": "1.0.0", "features": ["basic"]}
METADATA_JSON = '{"features":["basic"],"software":"App","version":"1.0.0"}'


# =============================================================================
# Stub backend
# =============================================================================


class StubBackend:
    """
    In-memory ChainBackend.

    Transactions are "mined" instantly at ``block_number``. Failures are
    scripted through the ``*_errors`` lists (raised in order, one per call)
    and ``reads`` maps view function names to a value, a callable taking the
    call arguments, or an exception to raise.
    """

    def __init__(
        self,
        address: Optional[str] = SIGNER,
        *,
        block_number: int = 100,
        gas_used: int = 85_000,
        gas_estimate: int = 100_000,
        fee_data: Optional[FeeData] = None,
        receipt_status: int = 1,
        chain_id: int = 11155111,
    ) -> None:
        self._address = address
        self.block_number = block_number
        self.gas_used = gas_used
        self.gas_estimate = gas_estimate
        self.fee_data = fee_data or FeeData(
            gas_price=20 * GWEI, max_fee_per_gas=30 * GWEI, max_priority_fee_per_gas=GWEI
        )
        self.receipt_status = receipt_status
        self.chain_id = chain_id
        self.deployed_address = DEPLOYED_ADDRESS

        self.submit_errors: List[BaseException] = []
        self.estimate_errors: List[BaseException] = []
        self.receipt_error: Optional[BaseException] = None
        self.fee_error: Optional[BaseException] = None
        self.hang_receipt = False
        self.cancelled_waits = 0

        self.reads: Dict[str, Any] = {}
        self.balances: Dict[str, int] = {}

        self.submit_attempts = 0
        self.submitted: List[Tuple[OperationDescriptor, GasParams]] = []
        self.estimated: List[OperationDescriptor] = []
        self.receipt_requests: List[Tuple[str, int]] = []
        self.calls: List[Tuple[str, Tuple[Any, ...]]] = []

    @property
    def address(self) -> Optional[str]:
        return self._address

    async def submit(self, descriptor: OperationDescriptor, gas: GasParams) -> str:
        self.submit_attempts += 1
        if self.submit_errors:
            raise self.submit_errors.pop(0)
        self.submitted.append((descriptor, gas))
        return "0x" + format(len(self.submitted), "064x")

    async def wait_for_receipt(self, tx_hash: str, confirmations: int) -> Receipt:
        self.receipt_requests.append((tx_hash, confirmations))
        if self.hang_receipt:
            try:
                await asyncio.Event().wait()
            except asyncio.CancelledError:
                self.cancelled_waits += 1
                raise
        if self.receipt_error is not None:
            raise self.receipt_error
        last = self.submitted[-1][0] if self.submitted else None
        return Receipt(
            transaction_hash=tx_hash,
            block_number=self.block_number,
            gas_used=self.gas_used,
            status=self.receipt_status,
            contract_address=self.deployed_address if last is not None and last.is_deployment else None,
        )

    async def estimate_gas(self, descriptor: OperationDescriptor) -> int:
        self.estimated.append(descriptor)
        if self.estimate_errors:
            raise self.estimate_errors.pop(0)
        return self.gas_estimate

    async def static_call(
        self,
        address: str,
        function: str,
        args: Sequence[Any] = (),
        abi: Optional[List[Dict[str, Any]]] = None,
    ) -> Any:
        self.calls.append((function, tuple(args)))
        value = self.reads[function]
        if isinstance(value, BaseException):
            raise value
        if callable(value):
            return value(*args)
        return value

    async def get_fee_data(self) -> FeeData:
        if self.fee_error is not None:
            raise self.fee_error
        return self.fee_data

    async def get_block_number(self) -> int:
        return self.block_number

    async def get_balance(self, address: str) -> int:
        return self.balances.get(address.lower(), 0)

    async def get_chain_id(self) -> int:
        return self.chain_id


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def backend() -> StubBackend:
    return StubBackend()


@pytest.fixture
def fast_retry() -> RetryConfig:
    return RetryConfig(max_attempts=3, base_delay_ms=1)


@pytest.fixture
def executor(backend: StubBackend, fast_retry: RetryConfig) -> TransactionExecutor:
    return TransactionExecutor(backend, timeout=5.0, retry_config=fast_retry)


@pytest.fixture
def contract(executor: TransactionExecutor, backend: StubBackend) -> LicenseContract:
    return LicenseContract(CONTRACT_ADDRESS, executor, backend)


@pytest.fixture
def license_reads(backend: StubBackend) -> StubBackend:
    """Backend answering every license view function for token 1."""
    backend.reads.update(
        {
            "ownerOf": RECIPIENT,
            "getLicenseMetadata": METADATA_JSON,
            "verifyLicense": True,
            "name": "My Software License",
            "symbol": "MSL",
            "totalSupply": 3,
            "maxSupply": 1000,
            "owner": SIGNER,
            "isPaused": False,
            "hasRole": True,
        }
    )
    return backend


@pytest.fixture
def client(backend: StubBackend) -> LicenseChain:
    config = LicenseChainConfig(network="sepolia", base_delay_ms=1, timeout=5.0)
    return LicenseChain(config, backend=backend)
