from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from licensechain.metadata import LicenseMetadata
from licensechain.utils.units import wei_to_ether

__all__ = [
    "OperationKind",
    "GasOverride",
    "OperationDescriptor",
    "GasParams",
    "FeeData",
    "TransactionStatus",
    "TransactionOutcome",
    "GasEstimate",
    "MintRequest",
    "LicenseInfo",
    "LicenseVerification",
    "ContractInfo",
    "Receipt",
    "DeploymentResult",
]


class OperationKind(str, Enum):
    DEPLOY = "deploy"
    MINT = "mint"
    BATCH_MINT = "batch_mint"
    TRANSFER = "transfer"
    REVOKE = "revoke"
    GRANT_ROLE = "grant_role"
    REVOKE_ROLE = "revoke_role"
    PAUSE = "pause"
    UNPAUSE = "unpause"
    ESTIMATE_GAS = "estimate_gas"


@dataclass(frozen=True)
class GasOverride:
    """Per-call gas settings. Either field may be left to the defaults."""
    limit: Optional[int] = None
    price: Optional[int] = None


@dataclass(frozen=True)
class OperationDescriptor:
    """One logical blockchain call.

    Attributes:
        kind: Logical operation
        function: Contract function name, or "constructor" for deployment
        arguments: Positional arguments in ABI order
        target_address: Contract address (None for deployment)
        gas_override: Optional per-call gas settings
        abi: ABI to encode against (defaults to the license contract ABI)
        bytecode: Creation bytecode, deployment only
    """
    kind: OperationKind
    function: str
    arguments: Tuple[Any, ...] = ()
    target_address: Optional[str] = None
    gas_override: Optional[GasOverride] = None
    abi: Optional[List[Dict[str, Any]]] = field(default=None, repr=False, compare=False)
    bytecode: Optional[str] = field(default=None, repr=False)

    @property
    def is_deployment(self) -> bool:
        return self.kind is OperationKind.DEPLOY


@dataclass(frozen=True)
class GasParams:
    """Resolved gas settings for one transaction (wei / gas units)."""
    gas_limit: int
    gas_price: Optional[int] = None
    max_fee_per_gas: Optional[int] = None
    max_priority_fee_per_gas: Optional[int] = None

    @property
    def is_eip1559(self) -> bool:
        return self.max_fee_per_gas is not None

    def to_tx_params(self) -> Dict[str, int]:
        params: Dict[str, int] = {"gas": self.gas_limit}
        if self.is_eip1559:
            params["maxFeePerGas"] = self.max_fee_per_gas
            if self.max_priority_fee_per_gas is not None:
                params["maxPriorityFeePerGas"] = self.max_priority_fee_per_gas
        elif self.gas_price is not None:
            params["gasPrice"] = self.gas_price
        return params


@dataclass(frozen=True)
class FeeData:
    gas_price: Optional[int] = None
    max_fee_per_gas: Optional[int] = None
    max_priority_fee_per_gas: Optional[int] = None


class TransactionStatus(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    FAILED = "failed"


@dataclass(frozen=True)
class TransactionOutcome:
    """Result of a confirmed transaction. ``gas_used`` is a decimal string."""
    hash: str
    block_number: int
    gas_used: str
    status: TransactionStatus
    contract_address: Optional[str] = None


@dataclass(frozen=True)
class GasEstimate:
    """Dry-run cost of an operation; all amounts are decimal wei strings."""
    gas_limit: str
    gas_price: str
    total_cost: str
    max_fee_per_gas: Optional[str] = None
    max_priority_fee_per_gas: Optional[str] = None

    @property
    def total_cost_ether(self) -> str:
        return wei_to_ether(self.total_cost)


@dataclass(frozen=True)
class MintRequest:
    to: str
    token_id: int
    metadata: LicenseMetadata


@dataclass(frozen=True)
class LicenseInfo:
    """Combined view of one license token.

    ``created_at`` is None: the license contract does not record a creation
    time, and wall-clock time at read time would be wrong.
    """
    token_id: int
    owner: str
    metadata: LicenseMetadata
    is_valid: bool
    expires_at: Optional[int] = None
    created_at: Optional[int] = None


@dataclass(frozen=True)
class LicenseVerification:
    is_valid: bool
    reason: Optional[str] = None
    expires_at: Optional[int] = None
    features: Tuple[str, ...] = ()


@dataclass(frozen=True)
class ContractInfo:
    address: str
    name: str
    symbol: str
    total_supply: str
    owner: str
    is_paused: bool
    max_supply: Optional[str] = None


@dataclass(frozen=True)
class Receipt:
    """Mined transaction receipt as reported by the backend."""
    transaction_hash: str
    block_number: int
    gas_used: int
    status: int
    contract_address: Optional[str] = None

    @property
    def succeeded(self) -> bool:
        return self.status == 1


@dataclass(frozen=True)
class DeploymentResult:
    """Address of a freshly deployed contract and the deploying transaction."""
    address: str
    outcome: TransactionOutcome
