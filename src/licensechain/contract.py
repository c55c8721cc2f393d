"""
License contract facade.

One method per license operation. Mutating methods validate their inputs,
build an OperationDescriptor and hand it to the TransactionExecutor; read
methods call the backend directly. No retry or error logic lives here
beyond normalizing read failures.

Example:
    >>> contract = chain.get_contract("0x...")
    >>> outcome = await contract.mint_license(
    ...     to="0x742d35Cc6634C0532925a3b8D4C9db96C4b4d8b6",
    ...     token_id=1,
    ...     metadata={"software": "App", "version": "1.0.0", "features": ["basic"]},
    ... )
    >>> outcome.block_number
"""

from __future__ import annotations

import asyncio
from typing import Any, Dict, List, Optional, Sequence

from licensechain.abi import LICENSE_ABI
from licensechain.backend import ChainBackend
from licensechain.constants import MAX_BATCH_SIZE
from licensechain.errors import ErrorKind, LicenseChainError, normalize
from licensechain.executor import TransactionExecutor
from licensechain.metadata import LicenseMetadata, parse_metadata
from licensechain.models import (
    ContractInfo,
    DeploymentResult,
    GasEstimate,
    GasOverride,
    LicenseInfo,
    LicenseVerification,
    OperationDescriptor,
    OperationKind,
    TransactionOutcome,
)
from licensechain.utils.logging import LogContext, get_logger
from licensechain.utils.units import role_hash
from licensechain.utils.validation import (
    is_valid_address,
    validate_address,
    validate_parallel,
    validate_token_id,
)

__all__ = ["LicenseContract"]

_logger = get_logger(__name__)


class LicenseContract:
    """
    Operations on one deployed license contract.

    Args:
        address: Contract address
        executor: Executor used for every state-changing call
        backend: Backend used for read-only calls
        abi: Contract ABI (defaults to the standard license ABI)
        deployment: Deployment record when this contract was just deployed
    """

    def __init__(
        self,
        address: str,
        executor: TransactionExecutor,
        backend: ChainBackend,
        abi: Optional[List[Dict[str, Any]]] = None,
        deployment: Optional[DeploymentResult] = None,
    ) -> None:
        if not is_valid_address(address):
            raise LicenseChainError(
                f"Invalid contract address: {address}",
                kind=ErrorKind.INVALID_CONTRACT_ADDRESS,
                details={"address": address},
            )
        self.address = validate_address(address, "contract")
        self.executor = executor
        self.backend = backend
        self.abi = abi or LICENSE_ABI
        self.deployment = deployment
        self._log = LogContext(_logger, {"contract": self.address})

    def __repr__(self) -> str:
        return f"LicenseContract(address={self.address!r})"

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _descriptor(
        self,
        kind: OperationKind,
        function: str,
        *arguments: Any,
        gas_override: Optional[GasOverride] = None,
    ) -> OperationDescriptor:
        return OperationDescriptor(
            kind=kind,
            function=function,
            arguments=tuple(arguments),
            target_address=self.address,
            gas_override=gas_override,
            abi=self.abi,
        )

    async def _call(self, function: str, *args: Any) -> Any:
        try:
            return await self.backend.static_call(self.address, function, args, self.abi)
        except Exception as e:
            error = normalize(e)
            self._log.debug(
                "Read %s failed: %s", function, error,
                extra={"function": function, "error_kind": error.kind.value},
            )
            if error is e:
                raise
            raise error from e

    # ------------------------------------------------------------------
    # License lifecycle
    # ------------------------------------------------------------------

    async def mint_license(
        self,
        to: str,
        token_id: int,
        metadata: Any,
        *,
        gas_override: Optional[GasOverride] = None,
        confirmations: Optional[int] = None,
    ) -> TransactionOutcome:
        """
        Mint a license token.

        Args:
            to: Recipient address
            token_id: Positive token id
            metadata: LicenseMetadata or an equivalent dict
            gas_override: Optional per-call gas settings
            confirmations: Confirmation depth for this call

        Returns:
            Confirmed TransactionOutcome
        """
        descriptor = self._descriptor(
            OperationKind.MINT,
            "mintLicense",
            validate_address(to, "to"),
            validate_token_id(token_id),
            parse_metadata(metadata).to_canonical(),
            gas_override=gas_override,
        )
        return await self.executor.execute(descriptor, confirmations)

    async def batch_mint_licenses(
        self,
        recipients: Sequence[str],
        token_ids: Sequence[int],
        metadatas: Sequence[Any],
        *,
        gas_override: Optional[GasOverride] = None,
        confirmations: Optional[int] = None,
    ) -> TransactionOutcome:
        """
        Mint several licenses in one transaction.

        The three sequences are parallel and must have the same, non-zero
        length. The batch is atomic on chain: a revert mints nothing.
        """
        length = validate_parallel(
            ("recipients", "token_ids", "metadatas"), recipients, token_ids, metadatas
        )
        if length > MAX_BATCH_SIZE:
            raise LicenseChainError(
                f"batch size {length} exceeds maximum ({MAX_BATCH_SIZE})",
                kind=ErrorKind.VALIDATION_ERROR,
                details={"size": length},
            )
        ids = [validate_token_id(token_id) for token_id in token_ids]
        if len(set(ids)) != len(ids):
            raise LicenseChainError(
                "token_ids must be unique within a batch", kind=ErrorKind.VALIDATION_ERROR
            )
        descriptor = self._descriptor(
            OperationKind.BATCH_MINT,
            "batchMintLicenses",
            [validate_address(to, "recipients") for to in recipients],
            ids,
            [parse_metadata(m).to_canonical() for m in metadatas],
            gas_override=gas_override,
        )
        return await self.executor.execute(descriptor, confirmations)

    async def transfer_license(
        self,
        from_address: str,
        to: str,
        token_id: int,
        *,
        gas_override: Optional[GasOverride] = None,
        confirmations: Optional[int] = None,
    ) -> TransactionOutcome:
        descriptor = self._descriptor(
            OperationKind.TRANSFER,
            "transferLicense",
            validate_address(from_address, "from"),
            validate_address(to, "to"),
            validate_token_id(token_id),
            gas_override=gas_override,
        )
        return await self.executor.execute(descriptor, confirmations)

    async def revoke_license(
        self,
        token_id: int,
        *,
        gas_override: Optional[GasOverride] = None,
        confirmations: Optional[int] = None,
    ) -> TransactionOutcome:
        descriptor = self._descriptor(
            OperationKind.REVOKE,
            "revokeLicense",
            validate_token_id(token_id),
            gas_override=gas_override,
        )
        return await self.executor.execute(descriptor, confirmations)

    # ------------------------------------------------------------------
    # Roles and pausing
    # ------------------------------------------------------------------

    async def grant_role(
        self,
        role: str,
        account: str,
        *,
        gas_override: Optional[GasOverride] = None,
        confirmations: Optional[int] = None,
    ) -> TransactionOutcome:
        """Grant ``role`` (a name such as MINTER_ROLE, or a bytes32 hash) to ``account``."""
        descriptor = self._descriptor(
            OperationKind.GRANT_ROLE,
            "grantRole",
            role_hash(role),
            validate_address(account, "account"),
            gas_override=gas_override,
        )
        return await self.executor.execute(descriptor, confirmations)

    async def revoke_role(
        self,
        role: str,
        account: str,
        *,
        gas_override: Optional[GasOverride] = None,
        confirmations: Optional[int] = None,
    ) -> TransactionOutcome:
        descriptor = self._descriptor(
            OperationKind.REVOKE_ROLE,
            "revokeRole",
            role_hash(role),
            validate_address(account, "account"),
            gas_override=gas_override,
        )
        return await self.executor.execute(descriptor, confirmations)

    async def pause(
        self,
        *,
        gas_override: Optional[GasOverride] = None,
        confirmations: Optional[int] = None,
    ) -> TransactionOutcome:
        descriptor = self._descriptor(OperationKind.PAUSE, "pause", gas_override=gas_override)
        return await self.executor.execute(descriptor, confirmations)

    async def unpause(
        self,
        *,
        gas_override: Optional[GasOverride] = None,
        confirmations: Optional[int] = None,
    ) -> TransactionOutcome:
        descriptor = self._descriptor(OperationKind.UNPAUSE, "unpause", gas_override=gas_override)
        return await self.executor.execute(descriptor, confirmations)

    # ------------------------------------------------------------------
    # Estimation
    # ------------------------------------------------------------------

    async def estimate_gas_mint_license(self, to: str, token_id: int, metadata: Any) -> GasEstimate:
        """Cost of a mint_license call with the same arguments. Nothing is sent."""
        descriptor = self._descriptor(
            OperationKind.ESTIMATE_GAS,
            "mintLicense",
            validate_address(to, "to"),
            validate_token_id(token_id),
            parse_metadata(metadata).to_canonical(),
        )
        return await self.executor.estimate(descriptor)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def verify_license(self, token_id: int) -> bool:
        return bool(await self._call("verifyLicense", validate_token_id(token_id)))

    async def get_license_metadata(self, token_id: int) -> LicenseMetadata:
        token_id = validate_token_id(token_id)
        raw = await self._call("getLicenseMetadata", token_id)
        if not raw:
            raise LicenseChainError.license_not_found(token_id)
        return LicenseMetadata.from_canonical(raw)

    async def get_license_info(self, token_id: int) -> LicenseInfo:
        """
        Owner, metadata and validity of one license, read concurrently.

        Fails as a whole with the first failing read's error; partial data
        is never returned.
        """
        token_id = validate_token_id(token_id)
        owner, metadata, is_valid = await asyncio.gather(
            self._call("ownerOf", token_id),
            self.get_license_metadata(token_id),
            self.verify_license(token_id),
        )
        return LicenseInfo(
            token_id=token_id,
            owner=owner,
            metadata=metadata,
            is_valid=is_valid,
            expires_at=metadata.expires_at,
        )

    async def get_license_verification(self, token_id: int) -> LicenseVerification:
        token_id = validate_token_id(token_id)
        is_valid, metadata = await asyncio.gather(
            self.verify_license(token_id),
            self.get_license_metadata(token_id),
        )
        return LicenseVerification(
            is_valid=is_valid,
            reason=None if is_valid else "License is not valid",
            expires_at=metadata.expires_at,
            features=metadata.features,
        )

    async def has_role(self, role: str, account: str) -> bool:
        return bool(
            await self._call("hasRole", role_hash(role), validate_address(account, "account"))
        )

    async def is_paused(self) -> bool:
        return bool(await self._call("isPaused"))

    async def get_contract_info(self) -> ContractInfo:
        """Name, symbol, supply, owner and pause state in one concurrent read."""
        name, symbol, total_supply, max_supply, owner, paused = await asyncio.gather(
            self._call("name"),
            self._call("symbol"),
            self._call("totalSupply"),
            self._call("maxSupply"),
            self._call("owner"),
            self.is_paused(),
        )
        return ContractInfo(
            address=self.address,
            name=name,
            symbol=symbol,
            total_supply=str(total_supply),
            max_supply=str(max_supply),
            owner=owner,
            is_paused=paused,
        )
