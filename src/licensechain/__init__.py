"""
LicenseChain Ethereum SDK.

Deploy and operate token-based software license contracts on Ethereum and
EVM networks: mint, transfer and revoke licenses, manage roles, estimate
gas and query license state, with one error type across every failure.

Example:
    >>> from licensechain import LicenseChain, LicenseChainConfig
    >>> chain = LicenseChain(LicenseChainConfig(network="sepolia", private_key="0x..."))
    >>> contract = chain.get_contract("0x...")
    >>> info = await contract.get_license_info(1)
"""

from licensechain.version import __version__, __version_info__

# Client
from licensechain.client import LicenseChain
from licensechain.contract import LicenseContract
from licensechain.executor import TransactionExecutor
from licensechain.backend import ChainBackend, Web3Backend

# Config
from licensechain.config import (
    CUSTOM_EXPLORER_URL,
    NETWORKS,
    LicenseChainConfig,
    Network,
    NetworkProfile,
    load_config,
    resolve_network,
)

# Deployment
from licensechain.deployment import (
    DeploymentKind,
    DeploymentSpec,
    MultiSigDeployment,
    StandardDeployment,
    UpgradeableDeployment,
)

# Models
from licensechain.metadata import LicenseMetadata, parse_metadata
from licensechain.models import (
    ContractInfo,
    DeploymentResult,
    FeeData,
    GasEstimate,
    GasOverride,
    GasParams,
    LicenseInfo,
    LicenseVerification,
    MintRequest,
    OperationDescriptor,
    OperationKind,
    Receipt,
    TransactionOutcome,
    TransactionStatus,
)

# Errors
from licensechain.errors import ErrorKind, LicenseChainError, normalize

# Constants
from licensechain.constants import (
    DEFAULT_ADMIN_ROLE,
    MINTER_ROLE,
    PAUSER_ROLE,
    REVOKER_ROLE,
)

# Utilities
from licensechain.utils import (
    RetryConfig,
    configure_logging,
    ether_to_wei,
    get_logger,
    retry_async,
    role_hash,
    wei_to_ether,
    with_cancel_timeout,
    with_retry,
    with_timeout,
)

__all__ = [
    # Version
    "__version__",
    "__version_info__",
    # Client
    "LicenseChain",
    "LicenseContract",
    "TransactionExecutor",
    "ChainBackend",
    "Web3Backend",
    # Config
    "LicenseChainConfig",
    "load_config",
    "Network",
    "NetworkProfile",
    "NETWORKS",
    "CUSTOM_EXPLORER_URL",
    "resolve_network",
    # Deployment
    "DeploymentKind",
    "DeploymentSpec",
    "StandardDeployment",
    "MultiSigDeployment",
    "UpgradeableDeployment",
    # Models
    "LicenseMetadata",
    "parse_metadata",
    "OperationKind",
    "OperationDescriptor",
    "GasOverride",
    "GasParams",
    "FeeData",
    "Receipt",
    "TransactionStatus",
    "TransactionOutcome",
    "GasEstimate",
    "MintRequest",
    "LicenseInfo",
    "LicenseVerification",
    "ContractInfo",
    "DeploymentResult",
    # Errors
    "ErrorKind",
    "LicenseChainError",
    "normalize",
    # Roles
    "DEFAULT_ADMIN_ROLE",
    "MINTER_ROLE",
    "REVOKER_ROLE",
    "PAUSER_ROLE",
    # Utilities
    "RetryConfig",
    "retry_async",
    "with_retry",
    "with_timeout",
    "with_cancel_timeout",
    "get_logger",
    "configure_logging",
    "role_hash",
    "wei_to_ether",
    "ether_to_wei",
]
