"""LicenseChain client.

Entry point of the SDK: resolves the network once, owns the backend and the
shared TransactionExecutor, deploys license contracts and hands out
LicenseContract facades.

Example:
    >>> from licensechain import LicenseChain, LicenseChainConfig
    >>> chain = LicenseChain(LicenseChainConfig(network="sepolia", private_key="0x..."))
    >>> contract = await chain.deploy_license_contract(
    ...     name="My Software License",
    ...     symbol="MSL",
    ...     base_uri="https://api.example.com/licenses/",
    ...     bytecode=compiled_bytecode,
    ... )
    >>> await contract.mint_license(to=customer, token_id=1, metadata=metadata)
"""

from __future__ import annotations

from typing import Any, Optional

from licensechain.backend import ChainBackend, Web3Backend
from licensechain.config import LicenseChainConfig, NetworkProfile
from licensechain.contract import LicenseContract
from licensechain.deployment import (
    DeploymentSpec,
    MultiSigDeployment,
    StandardDeployment,
    UpgradeableDeployment,
)
from licensechain.errors import ErrorKind, LicenseChainError, normalize
from licensechain.executor import TransactionExecutor, legacy_gas_price
from licensechain.models import DeploymentResult, GasOverride
from licensechain.utils.logging import get_logger
from licensechain.utils.retry import RetryConfig
from licensechain.utils.units import wei_to_ether
from licensechain.utils.validation import validate_address

__all__ = ["LicenseChain"]

_logger = get_logger(__name__)


class LicenseChain:
    """
    Client for deploying and operating license contracts.

    Args:
        config: Validated SDK configuration
        backend: Chain backend; built from ``config`` (AsyncWeb3 plus the
            optional private key) when omitted
    """

    def __init__(
        self,
        config: Optional[LicenseChainConfig] = None,
        backend: Optional[ChainBackend] = None,
    ) -> None:
        self.config = config or LicenseChainConfig()
        self._network = self.config.resolve_network()
        self.backend: ChainBackend = backend or Web3Backend.from_profile(
            self._network,
            self.config.private_key,
            request_timeout=self.config.request_timeout,
        )
        self.executor = TransactionExecutor(
            self.backend,
            confirmations=self.config.confirmations,
            timeout=self.config.timeout,
            retry_config=RetryConfig(
                max_attempts=self.config.max_attempts,
                base_delay_ms=self.config.base_delay_ms,
            ),
            default_gas_limit=self.config.gas_limit,
            default_gas_price=self.config.gas_price,
            estimate_gas=self.config.estimate_gas,
        )
        _logger.debug(
            "LicenseChain client ready on %s", self._network.name,
            extra={"chain_id": self._network.chain_id, "read_only": self.backend.address is None},
        )

    @classmethod
    def from_env(
        cls,
        prefix: str = "LICENSECHAIN_",
        backend: Optional[ChainBackend] = None,
        **overrides: Any,
    ) -> "LicenseChain":
        """Build a client from ``<prefix>*`` environment variables."""
        return cls(LicenseChainConfig.from_env(prefix, **overrides), backend)

    @property
    def network(self) -> NetworkProfile:
        return self._network

    @property
    def address(self) -> Optional[str]:
        """Signer address, or None when the client is read-only."""
        return self.backend.address

    def __repr__(self) -> str:
        return f"LicenseChain(network={self._network.name!r}, address={self.address!r})"

    # ------------------------------------------------------------------
    # Deployment
    # ------------------------------------------------------------------

    async def deploy(
        self,
        spec: DeploymentSpec,
        *,
        gas_override: Optional[GasOverride] = None,
        confirmations: Optional[int] = None,
    ) -> LicenseContract:
        """
        Deploy one license contract flavor and return its facade.

        Raises:
            LicenseChainError: validation errors before anything is sent,
                or the normalized deployment failure
        """
        if self.backend.address is None:
            raise LicenseChainError.unauthorized()
        descriptor = spec.to_descriptor(gas_override)
        outcome = await self.executor.execute(descriptor, confirmations)
        if not outcome.contract_address:
            raise LicenseChainError(
                "Deployment receipt has no contract address",
                kind=ErrorKind.CONTRACT_NOT_DEPLOYED,
                tx_hash=outcome.hash,
            )
        _logger.info(
            "Deployed %s license contract at %s", spec.kind.value, outcome.contract_address,
            extra={"tx_hash": outcome.hash, "address": outcome.contract_address},
        )
        return LicenseContract(
            outcome.contract_address,
            self.executor,
            self.backend,
            abi=spec.abi,
            deployment=DeploymentResult(address=outcome.contract_address, outcome=outcome),
        )

    async def deploy_license_contract(self, **fields: Any) -> LicenseContract:
        """Deploy a standard license contract; see StandardDeployment for fields."""
        return await self.deploy(StandardDeployment(**fields))

    async def deploy_multisig_license_contract(self, **fields: Any) -> LicenseContract:
        """Deploy a multi-signature license contract; see MultiSigDeployment."""
        return await self.deploy(MultiSigDeployment(**fields))

    async def deploy_upgradeable_license_contract(self, **fields: Any) -> LicenseContract:
        """Deploy an upgradeable license proxy; see UpgradeableDeployment."""
        return await self.deploy(UpgradeableDeployment(**fields))

    def get_contract(self, address: str) -> LicenseContract:
        """Facade for an already deployed license contract."""
        return LicenseContract(address, self.executor, self.backend)

    # ------------------------------------------------------------------
    # Chain queries
    # ------------------------------------------------------------------

    async def _query(self, operation: str, awaitable: Any) -> Any:
        try:
            return await awaitable
        except Exception as e:
            error = normalize(e)
            _logger.debug(
                "%s failed: %s", operation, error,
                extra={"operation": operation, "error_kind": error.kind.value},
            )
            if error is e:
                raise
            raise error from e

    async def get_gas_price(self) -> str:
        """Current gas price in wei as a decimal string."""
        fees = await self._query("get_gas_price", self.backend.get_fee_data())
        return str(legacy_gas_price(fees))

    async def get_block_number(self) -> int:
        return await self._query("get_block_number", self.backend.get_block_number())

    async def get_balance(self, address: Optional[str] = None) -> str:
        """Balance in ether (exact decimal string); defaults to the signer."""
        target = address if address is not None else self.address
        if target is None:
            raise LicenseChainError.unauthorized()
        wei = await self._query("get_balance", self.backend.get_balance(validate_address(target)))
        return wei_to_ether(wei)

    async def verify_network(self) -> int:
        """
        Check that the endpoint serves the configured chain.

        Returns:
            The chain id reported by the node

        Raises:
            LicenseChainError: INVALID_NETWORK on a chain id mismatch
        """
        chain_id = await self._query("get_chain_id", self.backend.get_chain_id())
        if chain_id != self._network.chain_id:
            raise LicenseChainError.invalid_network(
                self._network.name,
                f"endpoint reports chain id {chain_id}, expected {self._network.chain_id}",
            )
        return chain_id
