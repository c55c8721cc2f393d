"""
Deployment recipes for the three license contract flavors.

Each variant contributes its own constructor arguments and ABI and turns
itself into one DEPLOY OperationDescriptor; the executor handles all of them
the same way.

Example:
    >>> spec = MultiSigDeployment(
    ...     name="My Software License",
    ...     symbol="MSL",
    ...     base_uri="https://api.example.com/licenses/",
    ...     bytecode=compiled["bytecode"],
    ...     required_signatures=2,
    ...     signers=(alice, bob, carol),
    ... )
    >>> contract = await chain.deploy(spec)
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import Any, ClassVar, Dict, List, Optional, Tuple, Union

from licensechain.abi import LICENSE_ABI, MULTISIG_LICENSE_ABI, UPGRADEABLE_LICENSE_ABI
from licensechain.constants import MAX_ROYALTY_FEE_BPS, ZERO_ADDRESS
from licensechain.errors import ErrorKind, LicenseChainError
from licensechain.models import GasOverride, OperationDescriptor, OperationKind
from licensechain.utils.validation import validate_address, validate_uint

__all__ = [
    "DeploymentKind",
    "StandardDeployment",
    "MultiSigDeployment",
    "UpgradeableDeployment",
    "DeploymentSpec",
]

BYTECODE_PATTERN = re.compile(r"^0x([0-9a-fA-F]{2})+$")


class DeploymentKind(str, Enum):
    STANDARD = "standard"
    MULTISIG = "multisig"
    UPGRADEABLE = "upgradeable"


@dataclass(frozen=True, kw_only=True)
class StandardDeployment:
    """
    Plain license contract.

    Attributes:
        name: ERC-721 collection name
        symbol: ERC-721 symbol
        base_uri: Token URI prefix
        bytecode: Compiled creation bytecode (0x-prefixed hex)
        max_supply: Supply cap, 0 = unlimited
        royalty_recipient: Royalty receiver, defaults to the zero address
        royalty_fee: Royalty in basis points (0-10000)
    """

    kind: ClassVar[DeploymentKind] = DeploymentKind.STANDARD
    abi: ClassVar[List[Dict[str, Any]]] = LICENSE_ABI

    name: str
    symbol: str
    base_uri: str
    bytecode: str
    max_supply: int = 0
    royalty_recipient: Optional[str] = None
    royalty_fee: int = 0

    def _base_args(self) -> Tuple[Any, ...]:
        if not self.name or not self.symbol:
            raise LicenseChainError(
                "name and symbol are required", kind=ErrorKind.VALIDATION_ERROR
            )
        if not isinstance(self.bytecode, str) or not BYTECODE_PATTERN.match(self.bytecode):
            raise LicenseChainError.invalid_config(
                "bytecode", (self.bytecode or "")[:12], "must be 0x-prefixed hex"
            )
        max_supply = validate_uint(self.max_supply, "max_supply")
        royalty_fee = validate_uint(self.royalty_fee, "royalty_fee")
        if royalty_fee > MAX_ROYALTY_FEE_BPS:
            raise LicenseChainError(
                f"royalty_fee must be between 0 and {MAX_ROYALTY_FEE_BPS} basis points",
                kind=ErrorKind.VALIDATION_ERROR,
            )
        recipient = (
            validate_address(self.royalty_recipient, "royalty_recipient")
            if self.royalty_recipient
            else ZERO_ADDRESS
        )
        return (self.name, self.symbol, self.base_uri, max_supply, recipient, royalty_fee)

    def constructor_args(self) -> Tuple[Any, ...]:
        return self._base_args()

    def to_descriptor(self, gas_override: Optional[GasOverride] = None) -> OperationDescriptor:
        return OperationDescriptor(
            kind=OperationKind.DEPLOY,
            function="constructor",
            arguments=self.constructor_args(),
            gas_override=gas_override,
            abi=self.abi,
            bytecode=self.bytecode,
        )


@dataclass(frozen=True, kw_only=True)
class MultiSigDeployment(StandardDeployment):
    """License contract whose privileged calls need ``required_signatures`` of ``signers``."""

    kind: ClassVar[DeploymentKind] = DeploymentKind.MULTISIG
    abi: ClassVar[List[Dict[str, Any]]] = MULTISIG_LICENSE_ABI

    required_signatures: int
    signers: Tuple[str, ...]

    def constructor_args(self) -> Tuple[Any, ...]:
        signers = [validate_address(s, "signers") for s in self.signers]
        if len(set(s.lower() for s in signers)) != len(signers):
            raise LicenseChainError(
                "signers must be unique", kind=ErrorKind.VALIDATION_ERROR
            )
        required = validate_uint(self.required_signatures, "required_signatures", minimum=1)
        if required > len(signers):
            raise LicenseChainError(
                f"required_signatures ({required}) exceeds number of signers ({len(signers)})",
                kind=ErrorKind.INSUFFICIENT_SIGNATURES,
                details={"required": required, "signers": len(signers)},
            )
        return self._base_args() + (required, signers)


@dataclass(frozen=True, kw_only=True)
class UpgradeableDeployment(StandardDeployment):
    """Proxy deployment pointing at an existing implementation contract."""

    kind: ClassVar[DeploymentKind] = DeploymentKind.UPGRADEABLE
    abi: ClassVar[List[Dict[str, Any]]] = UPGRADEABLE_LICENSE_ABI

    implementation: str

    def constructor_args(self) -> Tuple[Any, ...]:
        try:
            implementation = validate_address(self.implementation, "implementation")
        except LicenseChainError:
            raise LicenseChainError(
                f"Invalid implementation address: {self.implementation}",
                kind=ErrorKind.INVALID_IMPLEMENTATION,
                details={"implementation": self.implementation},
            ) from None
        if implementation == ZERO_ADDRESS:
            raise LicenseChainError(
                "implementation cannot be the zero address",
                kind=ErrorKind.INVALID_IMPLEMENTATION,
            )
        return (implementation,) + self._base_args()


DeploymentSpec = Union[StandardDeployment, MultiSigDeployment, UpgradeableDeployment]
