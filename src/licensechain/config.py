"""Network profiles and SDK configuration.

``resolve_network`` turns a network name (plus optional endpoint / chain id
overrides) into an immutable NetworkProfile. ``LicenseChainConfig`` is the
validated construction-time configuration of the SDK.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, Dict, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from licensechain.constants import (
    DEFAULT_BASE_DELAY_MS,
    DEFAULT_CONFIRMATIONS,
    DEFAULT_MAX_ATTEMPTS,
    DEFAULT_TX_WAIT_TIMEOUT,
    MAX_GAS_LIMIT,
    PROVIDER_TIMEOUT_SECONDS,
)
from licensechain.errors import ErrorKind, LicenseChainError
from licensechain.utils.validation import validate_rpc_url, validate_uint

__all__ = [
    "Network",
    "NetworkProfile",
    "NETWORKS",
    "CUSTOM_EXPLORER_URL",
    "resolve_network",
    "LicenseChainConfig",
    "load_config",
]


class Network(str, Enum):
    MAINNET = "mainnet"
    GOERLI = "goerli"
    SEPOLIA = "sepolia"
    POLYGON = "polygon"
    ARBITRUM = "arbitrum"
    OPTIMISM = "optimism"
    BASE = "base"
    BASE_SEPOLIA = "base-sepolia"
    CUSTOM = "custom"


@dataclass(frozen=True)
class NetworkProfile:
    chain_id: int
    rpc_url: str
    explorer_url: str
    name: str

    def explorer_tx_url(self, tx_hash: str) -> str:
        return f"{self.explorer_url.rstrip('/')}/tx/{tx_hash}"

    def explorer_address_url(self, address: str) -> str:
        return f"{self.explorer_url.rstrip('/')}/address/{address}"


CUSTOM_EXPLORER_URL = "https://etherscan.io"

NETWORKS: Dict[Network, NetworkProfile] = {
    Network.MAINNET: NetworkProfile(
        chain_id=1,
        rpc_url="https://ethereum-rpc.publicnode.com",
        explorer_url="https://etherscan.io",
        name="Ethereum Mainnet",
    ),
    Network.GOERLI: NetworkProfile(
        chain_id=5,
        rpc_url="https://ethereum-goerli-rpc.publicnode.com",
        explorer_url="https://goerli.etherscan.io",
        name="Goerli Testnet",
    ),
    Network.SEPOLIA: NetworkProfile(
        chain_id=11155111,
        rpc_url="https://ethereum-sepolia-rpc.publicnode.com",
        explorer_url="https://sepolia.etherscan.io",
        name="Sepolia Testnet",
    ),
    Network.POLYGON: NetworkProfile(
        chain_id=137,
        rpc_url="https://polygon-rpc.com",
        explorer_url="https://polygonscan.com",
        name="Polygon Mainnet",
    ),
    Network.ARBITRUM: NetworkProfile(
        chain_id=42161,
        rpc_url="https://arb1.arbitrum.io/rpc",
        explorer_url="https://arbiscan.io",
        name="Arbitrum One",
    ),
    Network.OPTIMISM: NetworkProfile(
        chain_id=10,
        rpc_url="https://mainnet.optimism.io",
        explorer_url="https://optimistic.etherscan.io",
        name="Optimism",
    ),
    Network.BASE: NetworkProfile(
        chain_id=8453,
        rpc_url="https://mainnet.base.org",
        explorer_url="https://basescan.org",
        name="Base",
    ),
    Network.BASE_SEPOLIA: NetworkProfile(
        chain_id=84532,
        rpc_url="https://sepolia.base.org",
        explorer_url="https://sepolia.basescan.org",
        name="Base Sepolia",
    ),
}


def resolve_network(
    network: Any,
    rpc_url: Optional[str] = None,
    chain_id: Optional[int] = None,
) -> NetworkProfile:
    """Resolve a network name into its profile.

    Args:
        network: Network name or Network member
        rpc_url: Optional endpoint overriding the default one
        chain_id: Chain id, required (together with rpc_url) for "custom"

    Raises:
        LicenseChainError: INVALID_NETWORK for unknown names or an
            incomplete custom network
    """
    try:
        key = Network(network)
    except ValueError:
        raise LicenseChainError.invalid_network(str(network), "unsupported network") from None

    if key is Network.CUSTOM:
        if not rpc_url or chain_id is None:
            raise LicenseChainError.invalid_network(
                key.value, "custom networks require both rpc_url and chain_id"
            )
        if isinstance(chain_id, bool) or not isinstance(chain_id, int) or chain_id < 1:
            raise LicenseChainError.invalid_network(key.value, "chain_id must be a positive integer")
        return NetworkProfile(
            chain_id=chain_id,
            rpc_url=rpc_url,
            explorer_url=CUSTOM_EXPLORER_URL,
            name="Custom Network",
        )

    profile = NETWORKS[key]
    if rpc_url:
        return replace(profile, rpc_url=rpc_url)
    return profile


class LicenseChainConfig(BaseModel):
    """
    Construction-time SDK configuration.

    Quantities are base-unit integers (wei, gas units); decimal strings are
    accepted, floats are not.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    def __init__(self, **data: Any) -> None:
        try:
            super().__init__(**data)
        except ValidationError as e:
            raise _invalid_config(e) from e

    network: str = Field(default=Network.MAINNET.value, description="Network name")
    rpc_url: Optional[str] = Field(default=None, description="RPC endpoint override")
    chain_id: Optional[int] = Field(default=None, ge=1, description="Chain id (custom networks)")
    private_key: Optional[str] = Field(default=None, repr=False, description="Signing key")
    gas_price: Optional[int] = Field(default=None, ge=0, description="Default gas price in wei")
    gas_limit: Optional[int] = Field(
        default=None, ge=21_000, le=MAX_GAS_LIMIT, description="Default gas limit"
    )
    confirmations: int = Field(default=DEFAULT_CONFIRMATIONS, ge=1, description="Confirmation depth")
    timeout: float = Field(
        default=DEFAULT_TX_WAIT_TIMEOUT, gt=0, description="Overall submit-and-wait deadline (s)"
    )
    request_timeout: float = Field(
        default=PROVIDER_TIMEOUT_SECONDS, gt=0, description="Per-request HTTP timeout (s)"
    )
    max_attempts: int = Field(default=DEFAULT_MAX_ATTEMPTS, ge=1, description="Broadcast attempts")
    base_delay_ms: int = Field(default=DEFAULT_BASE_DELAY_MS, ge=0, description="Backoff base delay")
    estimate_gas: bool = Field(
        default=True, description="Estimate gas when no limit is configured"
    )

    @field_validator("network", mode="before")
    @classmethod
    def _network_value(cls, value: Any) -> Any:
        if isinstance(value, Network):
            return value.value
        return value

    @field_validator("gas_price", "gas_limit", "chain_id", mode="before")
    @classmethod
    def _no_floats(cls, value: Any, info: Any) -> Any:
        if value is None:
            return value
        try:
            return validate_uint(value, info.field_name)
        except LicenseChainError as e:
            raise ValueError(e.message) from None

    @field_validator("rpc_url")
    @classmethod
    def _rpc_url(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return value
        try:
            return validate_rpc_url(value)
        except LicenseChainError as e:
            raise ValueError(e.message) from None

    @model_validator(mode="after")
    def _known_network(self) -> "LicenseChainConfig":
        # LicenseChainError is not a ValueError, so pydantic lets it through.
        self.resolve_network()
        return self

    def resolve_network(self) -> NetworkProfile:
        return resolve_network(self.network, self.rpc_url, self.chain_id)

    @classmethod
    def from_env(
        cls,
        prefix: str = "LICENSECHAIN_",
        environ: Optional[Mapping[str, str]] = None,
        **overrides: Any,
    ) -> "LicenseChainConfig":
        """
        Build a configuration from environment variables.

        Every field maps to ``<prefix><FIELD>`` (e.g. ``LICENSECHAIN_RPC_URL``).
        Keyword overrides take precedence over the environment.
        """
        environ = os.environ if environ is None else environ
        values: Dict[str, Any] = {}
        for name in cls.model_fields:
            raw = environ.get(f"{prefix}{name.upper()}")
            if raw not in (None, ""):
                values[name] = raw
        values.update(overrides)
        return load_config(**values)


def _invalid_config(error: ValidationError) -> LicenseChainError:
    problems = [
        {"field": ".".join(str(p) for p in err["loc"]), "error": err["msg"]}
        for err in error.errors()
    ]
    summary = "; ".join(f"{p['field']}: {p['error']}" for p in problems)
    return LicenseChainError(
        f"Invalid configuration: {summary}",
        kind=ErrorKind.INVALID_CONFIG,
        details={"errors": problems, "cause": error},
    )


def load_config(**values: Any) -> LicenseChainConfig:
    """Validate configuration values.

    Equivalent to ``LicenseChainConfig(**values)``.

    Raises:
        LicenseChainError: INVALID_CONFIG listing every offending field
    """
    return LicenseChainConfig(**values)
