"""
Tests for TransactionExecutor: gas resolution, submission, confirmation,
timeouts and error normalization.
"""

import asyncio

import pytest
from web3.exceptions import ContractLogicError

from licensechain.constants import DEFAULT_GAS_LIMITS, MAX_GAS_LIMIT
from licensechain.errors import ErrorKind, LicenseChainError
from licensechain.executor import TransactionExecutor
from licensechain.models import (
    FeeData,
    GasOverride,
    OperationDescriptor,
    OperationKind,
    TransactionStatus,
)
from licensechain.utils.retry import RetryConfig

from conftest import CONTRACT_ADDRESS, GWEI, METADATA_JSON, RECIPIENT, StubBackend


def mint_descriptor(gas_override=None) -> OperationDescriptor:
    return OperationDescriptor(
        kind=OperationKind.MINT,
        function="mintLicense",
        arguments=(RECIPIENT, 1, METADATA_JSON),
        target_address=CONTRACT_ADDRESS,
        gas_override=gas_override,
    )


# =============================================================================
# Gas resolution
# =============================================================================


class TestGasResolution:

    @pytest.mark.asyncio
    async def test_estimate_with_buffer_and_eip1559_fees(
        self, executor: TransactionExecutor, backend: StubBackend
    ) -> None:
        await executor.execute(mint_descriptor())

        (_, gas) = backend.submitted[0]
        assert gas.gas_limit == 115_000
        assert gas.max_fee_per_gas == 30 * GWEI
        assert gas.max_priority_fee_per_gas == GWEI
        assert gas.gas_price is None
        assert gas.to_tx_params() == {
            "gas": 115_000,
            "maxFeePerGas": 30 * GWEI,
            "maxPriorityFeePerGas": GWEI,
        }

    @pytest.mark.asyncio
    async def test_estimate_capped_at_max(self, executor: TransactionExecutor, backend: StubBackend) -> None:
        backend.gas_estimate = MAX_GAS_LIMIT
        await executor.execute(mint_descriptor())
        assert backend.submitted[0][1].gas_limit == MAX_GAS_LIMIT

    @pytest.mark.asyncio
    async def test_override_wins(self, executor: TransactionExecutor, backend: StubBackend) -> None:
        await executor.execute(mint_descriptor(GasOverride(limit=250_000, price=5 * GWEI)))

        (_, gas) = backend.submitted[0]
        assert gas.gas_limit == 250_000
        assert gas.gas_price == 5 * GWEI
        assert gas.to_tx_params() == {"gas": 250_000, "gasPrice": 5 * GWEI}
        assert backend.estimated == []

    @pytest.mark.asyncio
    async def test_configured_defaults(self, backend: StubBackend, fast_retry: RetryConfig) -> None:
        executor = TransactionExecutor(
            backend, retry_config=fast_retry, default_gas_limit=300_000, default_gas_price=7 * GWEI
        )
        await executor.execute(mint_descriptor())

        (_, gas) = backend.submitted[0]
        assert (gas.gas_limit, gas.gas_price) == (300_000, 7 * GWEI)
        assert backend.estimated == []

    @pytest.mark.asyncio
    async def test_legacy_gas_price(self, executor: TransactionExecutor, backend: StubBackend) -> None:
        backend.fee_data = FeeData(gas_price=12 * GWEI)
        await executor.execute(mint_descriptor())
        gas = backend.submitted[0][1]
        assert gas.gas_price == 12 * GWEI
        assert not gas.is_eip1559

    @pytest.mark.asyncio
    async def test_fallback_gas_price(self, executor: TransactionExecutor, backend: StubBackend) -> None:
        backend.fee_data = FeeData()
        await executor.execute(mint_descriptor())
        assert backend.submitted[0][1].gas_price == 20 * GWEI

    @pytest.mark.asyncio
    async def test_estimation_disabled_uses_function_defaults(
        self, backend: StubBackend, fast_retry: RetryConfig
    ) -> None:
        executor = TransactionExecutor(backend, retry_config=fast_retry, estimate_gas=False)
        await executor.execute(mint_descriptor())
        assert backend.submitted[0][1].gas_limit == DEFAULT_GAS_LIMITS["mintLicense"]
        assert backend.estimated == []

    @pytest.mark.asyncio
    async def test_override_above_max_rejected(
        self, executor: TransactionExecutor, backend: StubBackend
    ) -> None:
        with pytest.raises(LicenseChainError) as exc_info:
            await executor.execute(mint_descriptor(GasOverride(limit=MAX_GAS_LIMIT + 1)))
        assert exc_info.value.kind is ErrorKind.VALIDATION_ERROR
        assert backend.submit_attempts == 0

    @pytest.mark.asyncio
    async def test_estimation_failure_is_normalized(
        self, executor: TransactionExecutor, backend: StubBackend
    ) -> None:
        backend.estimate_errors = [ValueError("gas required exceeds allowance (0)")]
        with pytest.raises(LicenseChainError) as exc_info:
            await executor.execute(mint_descriptor())
        assert exc_info.value.kind is ErrorKind.GAS_ESTIMATION_FAILED
        assert exc_info.value.tx_hash is None
        assert backend.submit_attempts == 0


# =============================================================================
# Execution
# =============================================================================


class TestExecute:

    @pytest.mark.asyncio
    async def test_confirmed_outcome(self, executor: TransactionExecutor, backend: StubBackend) -> None:
        outcome = await executor.execute(mint_descriptor())

        assert outcome.status is TransactionStatus.CONFIRMED
        assert outcome.block_number == 100
        assert outcome.gas_used == "85000"
        assert outcome.hash == "0x" + format(1, "064x")
        assert outcome.contract_address is None

    @pytest.mark.asyncio
    async def test_confirmation_depth_forwarded(
        self, executor: TransactionExecutor, backend: StubBackend
    ) -> None:
        await executor.execute(mint_descriptor())
        await executor.execute(mint_descriptor(), confirmations=3)
        assert [depth for _, depth in backend.receipt_requests] == [1, 3]

    @pytest.mark.asyncio
    @pytest.mark.parametrize("confirmations", [0, -1, True])
    async def test_invalid_confirmations(
        self, executor: TransactionExecutor, backend: StubBackend, confirmations: int
    ) -> None:
        with pytest.raises(LicenseChainError) as exc_info:
            await executor.execute(mint_descriptor(), confirmations=confirmations)
        assert exc_info.value.kind is ErrorKind.VALIDATION_ERROR
        assert backend.submit_attempts == 0

    def test_invalid_default_confirmations(self, backend: StubBackend) -> None:
        with pytest.raises(LicenseChainError):
            TransactionExecutor(backend, confirmations=0)

    @pytest.mark.asyncio
    async def test_estimate_descriptor_rejected(
        self, executor: TransactionExecutor, backend: StubBackend
    ) -> None:
        descriptor = OperationDescriptor(
            kind=OperationKind.ESTIMATE_GAS, function="mintLicense", target_address=CONTRACT_ADDRESS
        )
        with pytest.raises(LicenseChainError) as exc_info:
            await executor.execute(descriptor)
        assert exc_info.value.kind is ErrorKind.VALIDATION_ERROR
        assert backend.submit_attempts == 0

    @pytest.mark.asyncio
    async def test_reverted_receipt_carries_hash(
        self, executor: TransactionExecutor, backend: StubBackend
    ) -> None:
        backend.receipt_status = 0
        with pytest.raises(LicenseChainError) as exc_info:
            await executor.execute(mint_descriptor())
        assert exc_info.value.kind is ErrorKind.TRANSACTION_REVERTED
        assert exc_info.value.tx_hash == "0x" + format(1, "064x")

    @pytest.mark.asyncio
    async def test_insufficient_funds(self, executor: TransactionExecutor, backend: StubBackend) -> None:
        cause = ValueError({"code": -32000, "message": "insufficient funds for gas * price + value"})
        backend.submit_errors = [cause]

        with pytest.raises(LicenseChainError) as exc_info:
            await executor.execute(mint_descriptor())

        assert exc_info.value.kind is ErrorKind.INSUFFICIENT_FUNDS
        assert exc_info.value.cause is cause
        assert backend.submit_attempts == 1

    @pytest.mark.asyncio
    async def test_transient_submit_failures_retried(
        self, executor: TransactionExecutor, backend: StubBackend
    ) -> None:
        backend.submit_errors = [ConnectionError("reset"), ConnectionError("reset")]

        outcome = await executor.execute(mint_descriptor())

        assert outcome.status is TransactionStatus.CONFIRMED
        assert backend.submit_attempts == 3
        assert len(backend.submitted) == 1

    @pytest.mark.asyncio
    async def test_retries_exhausted(self, executor: TransactionExecutor, backend: StubBackend) -> None:
        backend.submit_errors = [ConnectionError(f"reset {i}") for i in range(3)]

        with pytest.raises(LicenseChainError) as exc_info:
            await executor.execute(mint_descriptor())

        assert exc_info.value.kind is ErrorKind.NETWORK_ERROR
        assert str(exc_info.value.cause) == "reset 2"
        assert backend.submit_attempts == 3

    @pytest.mark.asyncio
    async def test_revert_during_submit_not_retried(
        self, executor: TransactionExecutor, backend: StubBackend
    ) -> None:
        backend.submit_errors = [ContractLogicError("execution reverted: token exists")]
        with pytest.raises(LicenseChainError) as exc_info:
            await executor.execute(mint_descriptor())
        assert exc_info.value.kind is ErrorKind.TRANSACTION_REVERTED
        assert backend.submit_attempts == 1

    @pytest.mark.asyncio
    async def test_receipt_wait_not_retried(
        self, executor: TransactionExecutor, backend: StubBackend
    ) -> None:
        backend.receipt_error = ConnectionError("dropped")
        with pytest.raises(LicenseChainError) as exc_info:
            await executor.execute(mint_descriptor())
        assert exc_info.value.kind is ErrorKind.NETWORK_ERROR
        assert exc_info.value.tx_hash == "0x" + format(1, "064x")
        assert len(backend.receipt_requests) == 1
        assert backend.submit_attempts == 1

    @pytest.mark.asyncio
    async def test_timeout_after_broadcast_carries_hash(
        self, backend: StubBackend, fast_retry: RetryConfig
    ) -> None:
        executor = TransactionExecutor(backend, timeout=0.05, retry_config=fast_retry)
        backend.hang_receipt = True

        with pytest.raises(LicenseChainError) as exc_info:
            await executor.execute(mint_descriptor())

        assert exc_info.value.kind is ErrorKind.TIMEOUT_ERROR
        assert exc_info.value.tx_hash == "0x" + format(1, "064x")
        assert backend.submit_attempts == 1

    @pytest.mark.asyncio
    async def test_timeout_before_broadcast_stops_submission(self, backend: StubBackend) -> None:
        executor = TransactionExecutor(
            backend, timeout=0.05, retry_config=RetryConfig(max_attempts=3, base_delay_ms=100)
        )
        backend.submit_errors = [ConnectionError("connection reset")]

        with pytest.raises(LicenseChainError) as exc_info:
            await executor.execute(mint_descriptor())

        assert exc_info.value.kind is ErrorKind.TIMEOUT_ERROR
        assert exc_info.value.tx_hash is None
        await asyncio.sleep(0.3)
        assert backend.submitted == []
        assert backend.submit_attempts == 1

    @pytest.mark.asyncio
    async def test_abandoned_receipt_wait_is_cancelled(
        self, backend: StubBackend, fast_retry: RetryConfig
    ) -> None:
        executor = TransactionExecutor(
            backend, timeout=0.05, retry_config=fast_retry, abandon_after=0.05
        )
        backend.hang_receipt = True

        with pytest.raises(LicenseChainError) as exc_info:
            await executor.execute(mint_descriptor())

        assert exc_info.value.tx_hash is not None
        await asyncio.sleep(0.3)
        assert backend.cancelled_waits == 1

    @pytest.mark.asyncio
    async def test_get_outcome_requeries_by_hash(
        self, executor: TransactionExecutor, backend: StubBackend
    ) -> None:
        outcome = await executor.get_outcome("0x" + "ab" * 32, confirmations=2)
        assert outcome.hash == "0x" + "ab" * 32
        assert outcome.status is TransactionStatus.CONFIRMED
        assert backend.receipt_requests == [("0x" + "ab" * 32, 2)]
        assert backend.submit_attempts == 0

    @pytest.mark.asyncio
    async def test_concurrent_executions_are_independent(
        self, executor: TransactionExecutor, backend: StubBackend
    ) -> None:
        outcomes = await asyncio.gather(*(executor.execute(mint_descriptor()) for _ in range(5)))
        assert len({o.hash for o in outcomes}) == 5
        assert len(backend.submitted) == 5

    @pytest.mark.asyncio
    async def test_failure_is_logged(
        self, executor: TransactionExecutor, backend: StubBackend, caplog: pytest.LogCaptureFixture
    ) -> None:
        backend.receipt_status = 0
        with caplog.at_level("ERROR", logger="licensechain"):
            with pytest.raises(LicenseChainError):
                await executor.execute(mint_descriptor())

        (record,) = [r for r in caplog.records if r.name == "licensechain.executor"]
        assert record.function == "mintLicense"
        assert record.kind == "mint"
        assert record.error_kind == "TRANSACTION_REVERTED"
        assert record.tx_hash == "0x" + format(1, "064x")


# =============================================================================
# Estimation
# =============================================================================


class TestEstimate:

    @pytest.mark.asyncio
    async def test_eip1559_total_uses_max_fee(
        self, executor: TransactionExecutor, backend: StubBackend
    ) -> None:
        estimate = await executor.estimate(mint_descriptor())

        assert estimate.gas_limit == "100000"
        assert estimate.gas_price == str(20 * GWEI)
        assert estimate.max_fee_per_gas == str(30 * GWEI)
        assert estimate.max_priority_fee_per_gas == str(GWEI)
        assert estimate.total_cost == str(100_000 * 30 * GWEI)
        assert estimate.total_cost_ether == "0.003000000000000000"
        assert backend.submit_attempts == 0

    @pytest.mark.asyncio
    async def test_legacy_total_uses_gas_price(
        self, executor: TransactionExecutor, backend: StubBackend
    ) -> None:
        backend.fee_data = FeeData(gas_price=10 * GWEI)
        estimate = await executor.estimate(mint_descriptor())
        assert estimate.total_cost == str(100_000 * 10 * GWEI)
        assert estimate.max_fee_per_gas is None

    @pytest.mark.asyncio
    async def test_estimate_failure_normalized(
        self, executor: TransactionExecutor, backend: StubBackend
    ) -> None:
        backend.estimate_errors = [ContractLogicError("execution reverted: paused")]
        with pytest.raises(LicenseChainError) as exc_info:
            await executor.estimate(mint_descriptor())
        assert exc_info.value.kind is ErrorKind.TRANSACTION_REVERTED
