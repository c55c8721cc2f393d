"""
Transaction executor.

Every state-changing call goes through ``TransactionExecutor.execute``:

1. resolve gas (override, configured default, or a buffered fresh estimate)
2. submit through the backend, retrying transient failures
3. wait for the receipt at the requested confirmation depth
4. turn the receipt into a TransactionOutcome

Steps 1-3 share one deadline. Steps 1-2 are cancelled when it passes: nothing
has reached the chain yet, so the caller may safely resubmit. Step 3 is
abandoned instead, and its timeout carries the transaction hash so the
caller can re-query it. Only the submission is retried; once a transaction
has been broadcast it is never resent.
"""

from __future__ import annotations

import asyncio
from typing import NoReturn, Optional

from web3 import Web3

from licensechain.backend import ChainBackend
from licensechain.constants import (
    ABANDONED_TASK_GRACE,
    DEFAULT_CONFIRMATIONS,
    DEFAULT_GAS_LIMIT,
    DEFAULT_GAS_LIMITS,
    DEFAULT_TX_WAIT_TIMEOUT,
    FALLBACK_GAS_PRICE_GWEI,
    GAS_ESTIMATION_BUFFER_PERCENT,
    MAX_GAS_LIMIT,
)
from licensechain.errors import ErrorKind, LicenseChainError, normalize
from licensechain.models import (
    FeeData,
    GasEstimate,
    GasParams,
    OperationDescriptor,
    OperationKind,
    Receipt,
    TransactionOutcome,
    TransactionStatus,
)
from licensechain.utils.logging import get_logger
from licensechain.utils.retry import RetryConfig, retry_async
from licensechain.utils.timeout import with_cancel_timeout, with_timeout

__all__ = ["TransactionExecutor", "legacy_gas_price"]

_logger = get_logger(__name__)


def _log_extra(descriptor: OperationDescriptor, tx_hash: Optional[str] = None, **fields: object) -> dict:
    extra = {"kind": descriptor.kind.value, "function": descriptor.function, "tx_hash": tx_hash}
    extra.update(fields)
    return extra


def legacy_gas_price(fees: FeeData) -> int:
    """Gas price reported by the node, or the fallback price when it reports none."""
    if fees.gas_price is not None:
        return fees.gas_price
    return Web3.to_wei(FALLBACK_GAS_PRICE_GWEI, "gwei")


def _raise_normalized(cause: Exception, tx_hash: Optional[str] = None) -> NoReturn:
    error = normalize(cause).with_tx_hash(tx_hash)
    if error is cause:
        raise error
    raise error from cause


def _to_outcome(function: str, tx_hash: str, receipt: Receipt) -> TransactionOutcome:
    if not receipt.succeeded:
        raise LicenseChainError(
            f"Transaction reverted: {function}",
            kind=ErrorKind.TRANSACTION_REVERTED,
            tx_hash=tx_hash,
            details={"block_number": receipt.block_number, "gas_used": str(receipt.gas_used)},
        )
    return TransactionOutcome(
        hash=tx_hash,
        block_number=receipt.block_number,
        gas_used=str(receipt.gas_used),
        status=TransactionStatus.CONFIRMED,
        contract_address=receipt.contract_address,
    )


class TransactionExecutor:
    """
    Gas resolution, submission, confirmation and error normalization for
    one backend.

    Args:
        backend: Chain backend used for every call
        confirmations: Default confirmation depth (>= 1)
        timeout: Deadline in seconds for one execute() call; None disables it
        retry_config: Retry policy for the submission step
        default_gas_limit: Gas limit used when a call has no override
        default_gas_price: Gas price (wei) used when a call has no override
        estimate_gas: Estimate gas when no limit is configured; otherwise
            fall back to the per-function default limits
        abandon_after: Seconds a timed-out receipt wait keeps polling in the
            background before it is cancelled
    """

    def __init__(
        self,
        backend: ChainBackend,
        *,
        confirmations: int = DEFAULT_CONFIRMATIONS,
        timeout: Optional[float] = DEFAULT_TX_WAIT_TIMEOUT,
        retry_config: Optional[RetryConfig] = None,
        default_gas_limit: Optional[int] = None,
        default_gas_price: Optional[int] = None,
        estimate_gas: bool = True,
        abandon_after: Optional[float] = ABANDONED_TASK_GRACE,
    ) -> None:
        self.backend = backend
        self.confirmations = self._check_confirmations(confirmations)
        self.timeout = timeout
        self.retry_config = retry_config or RetryConfig()
        self.default_gas_limit = default_gas_limit
        self.default_gas_price = default_gas_price
        self.estimate_gas = estimate_gas
        self.abandon_after = abandon_after

    @staticmethod
    def _check_confirmations(confirmations: int) -> int:
        if isinstance(confirmations, bool) or not isinstance(confirmations, int) or confirmations < 1:
            raise LicenseChainError(
                f"confirmations must be an integer >= 1, got {confirmations!r}",
                kind=ErrorKind.VALIDATION_ERROR,
                details={"confirmations": confirmations},
            )
        return confirmations

    # ------------------------------------------------------------------
    # Gas resolution
    # ------------------------------------------------------------------

    async def _resolve_gas_limit(self, descriptor: OperationDescriptor) -> int:
        override = descriptor.gas_override
        if override is not None and override.limit is not None:
            return override.limit
        if self.default_gas_limit is not None:
            return self.default_gas_limit
        if not self.estimate_gas:
            return DEFAULT_GAS_LIMITS.get(descriptor.function, DEFAULT_GAS_LIMIT)
        base = await self.backend.estimate_gas(descriptor)
        # Cap to prevent excessive gas from a misbehaving RPC
        return min(base * GAS_ESTIMATION_BUFFER_PERCENT // 100, MAX_GAS_LIMIT)

    async def _resolve_gas(self, descriptor: OperationDescriptor) -> GasParams:
        gas_limit = await self._resolve_gas_limit(descriptor)
        if gas_limit > MAX_GAS_LIMIT:
            raise LicenseChainError(
                f"Gas limit ({gas_limit}) exceeds maximum ({MAX_GAS_LIMIT})",
                kind=ErrorKind.VALIDATION_ERROR,
                details={"gas_limit": gas_limit},
            )

        override = descriptor.gas_override
        if override is not None and override.price is not None:
            return GasParams(gas_limit=gas_limit, gas_price=override.price)
        if self.default_gas_price is not None:
            return GasParams(gas_limit=gas_limit, gas_price=self.default_gas_price)

        fees = await self.backend.get_fee_data()
        if fees.max_fee_per_gas is not None:
            return GasParams(
                gas_limit=gas_limit,
                max_fee_per_gas=fees.max_fee_per_gas,
                max_priority_fee_per_gas=fees.max_priority_fee_per_gas,
            )
        return GasParams(gas_limit=gas_limit, gas_price=legacy_gas_price(fees))

    # ------------------------------------------------------------------
    # Execution
    # ------------------------------------------------------------------

    async def execute(
        self,
        descriptor: OperationDescriptor,
        confirmations: Optional[int] = None,
    ) -> TransactionOutcome:
        """
        Submit one operation and wait until it is confirmed.

        Args:
            descriptor: Operation to perform
            confirmations: Confirmation depth for this call (default: executor's)

        Returns:
            CONFIRMED TransactionOutcome

        Raises:
            LicenseChainError: Any failure, normalized. Reverted transactions
                and timeouts after broadcast carry ``tx_hash``; a timeout
                without ``tx_hash`` means nothing was broadcast.

        A submission retried after a transient error may find that the node
        accepted the first attempt after all. ``Web3Backend`` recovers the
        hash of that transaction when the node still knows it; a backend
        that cannot may surface the retry's rejection (e.g. "nonce too
        low") while the first transaction is in flight.
        """
        if descriptor.kind is OperationKind.ESTIMATE_GAS:
            raise LicenseChainError(
                "ESTIMATE_GAS descriptors cannot be executed; use estimate()",
                kind=ErrorKind.VALIDATION_ERROR,
            )
        depth = self.confirmations if confirmations is None else self._check_confirmations(confirmations)

        loop = asyncio.get_running_loop()
        started = loop.time()
        tx_hash: Optional[str] = None
        try:
            tx_hash = await with_cancel_timeout(
                self._broadcast(descriptor), self.timeout, operation=descriptor.function
            )
            remaining = None if self.timeout is None else self.timeout - (loop.time() - started)
            receipt = await self._wait(tx_hash, depth, remaining, descriptor.function)
            outcome = _to_outcome(descriptor.function, tx_hash, receipt)
        except Exception as e:
            error = normalize(e).with_tx_hash(tx_hash)
            _logger.error(
                "%s failed: %s", descriptor.function, error,
                extra=_log_extra(descriptor, error.tx_hash, error_kind=error.kind.value),
            )
            if error is e:
                raise
            raise error from e

        _logger.info(
            "%s confirmed in block %d", descriptor.function, outcome.block_number,
            extra=_log_extra(descriptor, outcome.hash, block_number=outcome.block_number),
        )
        return outcome

    async def _broadcast(self, descriptor: OperationDescriptor) -> str:
        gas = await self._resolve_gas(descriptor)
        _logger.debug(
            "Submitting %s", descriptor.function,
            extra=_log_extra(descriptor, gas_limit=gas.gas_limit),
        )
        return await retry_async(
            lambda: self._submit(descriptor, gas),
            self.retry_config,
            operation=descriptor.function,
        )

    async def _submit(self, descriptor: OperationDescriptor, gas: GasParams) -> str:
        # Normalized here so the retry policy can classify the failure.
        try:
            return await self.backend.submit(descriptor, gas)
        except Exception as e:
            _raise_normalized(e)

    async def _wait(
        self, tx_hash: str, depth: int, limit: Optional[float], operation: str
    ) -> Receipt:
        if limit is not None and limit <= 0:
            raise LicenseChainError.timeout(operation, self.timeout, tx_hash=tx_hash)
        return await with_timeout(
            self.backend.wait_for_receipt(tx_hash, depth),
            limit,
            operation=operation,
            abandon_after=self.abandon_after,
        )

    async def get_outcome(self, tx_hash: str, confirmations: Optional[int] = None) -> TransactionOutcome:
        """Wait for an already broadcast transaction, e.g. after a timeout."""
        depth = self.confirmations if confirmations is None else self._check_confirmations(confirmations)
        try:
            receipt = await self._wait(tx_hash, depth, self.timeout, "wait_for_receipt")
        except Exception as e:
            _raise_normalized(e, tx_hash)
        return _to_outcome("transaction", tx_hash, receipt)

    # ------------------------------------------------------------------
    # Estimation
    # ------------------------------------------------------------------

    async def estimate(self, descriptor: OperationDescriptor) -> GasEstimate:
        """
        Dry-run cost of an operation. Never submits.

        ``total_cost`` is gas units times ``max_fee_per_gas`` when the chain
        reports EIP-1559 fees, else times the legacy gas price.
        """
        try:
            gas_limit = await self.backend.estimate_gas(descriptor)
            fees = await self.backend.get_fee_data()
        except Exception as e:
            error = normalize(e)
            _logger.error(
                "Gas estimation for %s failed: %s", descriptor.function, error,
                extra=_log_extra(descriptor, error_kind=error.kind.value),
            )
            raise error from e

        gas_price = legacy_gas_price(fees)
        unit_price = fees.max_fee_per_gas if fees.max_fee_per_gas is not None else gas_price
        _logger.debug(
            "Estimated %s at %d gas", descriptor.function, gas_limit,
            extra=_log_extra(descriptor, gas_limit=gas_limit),
        )
        return GasEstimate(
            gas_limit=str(gas_limit),
            gas_price=str(gas_price),
            total_cost=str(gas_limit * unit_price),
            max_fee_per_gas=None if fees.max_fee_per_gas is None else str(fees.max_fee_per_gas),
            max_priority_fee_per_gas=(
                None if fees.max_priority_fee_per_gas is None else str(fees.max_priority_fee_per_gas)
            ),
        )
