"""
Base exception class for the LicenseChain SDK.

Every failure that crosses the SDK boundary is a LicenseChainError carrying
one member of the closed ErrorKind enumeration, so callers can branch on
``err.kind`` instead of matching message strings.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, Iterable, Optional


class ErrorKind(str, Enum):
    """Closed taxonomy of SDK failure kinds."""

    # Network
    NETWORK_ERROR = "NETWORK_ERROR"
    RPC_ERROR = "RPC_ERROR"
    TIMEOUT_ERROR = "TIMEOUT_ERROR"

    # Transaction
    TRANSACTION_FAILED = "TRANSACTION_FAILED"
    TRANSACTION_REVERTED = "TRANSACTION_REVERTED"
    INSUFFICIENT_FUNDS = "INSUFFICIENT_FUNDS"
    GAS_ESTIMATION_FAILED = "GAS_ESTIMATION_FAILED"

    # Contract
    CONTRACT_NOT_DEPLOYED = "CONTRACT_NOT_DEPLOYED"
    CONTRACT_NOT_VERIFIED = "CONTRACT_NOT_VERIFIED"
    INVALID_CONTRACT_ADDRESS = "INVALID_CONTRACT_ADDRESS"

    # License
    INVALID_TOKEN_ID = "INVALID_TOKEN_ID"
    LICENSE_NOT_FOUND = "LICENSE_NOT_FOUND"
    LICENSE_EXPIRED = "LICENSE_EXPIRED"
    LICENSE_REVOKED = "LICENSE_REVOKED"
    LICENSE_ALREADY_EXISTS = "LICENSE_ALREADY_EXISTS"
    INVALID_LICENSE_METADATA = "INVALID_LICENSE_METADATA"

    # Permission
    UNAUTHORIZED = "UNAUTHORIZED"
    INSUFFICIENT_PERMISSIONS = "INSUFFICIENT_PERMISSIONS"
    ROLE_NOT_GRANTED = "ROLE_NOT_GRANTED"

    # Validation
    INVALID_ADDRESS = "INVALID_ADDRESS"
    INVALID_NETWORK = "INVALID_NETWORK"
    INVALID_CONFIG = "INVALID_CONFIG"
    INVALID_METADATA = "INVALID_METADATA"
    VALIDATION_ERROR = "VALIDATION_ERROR"

    # Multi-signature
    INSUFFICIENT_SIGNATURES = "INSUFFICIENT_SIGNATURES"
    INVALID_SIGNATURE = "INVALID_SIGNATURE"
    SIGNATURE_TIMEOUT = "SIGNATURE_TIMEOUT"

    # Upgrade
    UPGRADE_NOT_AUTHORIZED = "UPGRADE_NOT_AUTHORIZED"
    INVALID_IMPLEMENTATION = "INVALID_IMPLEMENTATION"
    UPGRADE_FAILED = "UPGRADE_FAILED"

    UNKNOWN_ERROR = "UNKNOWN_ERROR"

    @property
    def group(self) -> str:
        """Name of the group this kind belongs to."""
        for group, kinds in ERROR_GROUPS.items():
            if self in kinds:
                return group
        return "general"

    @property
    def retryable(self) -> bool:
        """Whether failures of this kind are transient."""
        return self in RETRYABLE_KINDS


ERROR_GROUPS: Dict[str, frozenset] = {
    "network": frozenset(
        {ErrorKind.NETWORK_ERROR, ErrorKind.RPC_ERROR, ErrorKind.TIMEOUT_ERROR}
    ),
    "transaction": frozenset(
        {
            ErrorKind.TRANSACTION_FAILED,
            ErrorKind.TRANSACTION_REVERTED,
            ErrorKind.INSUFFICIENT_FUNDS,
            ErrorKind.GAS_ESTIMATION_FAILED,
        }
    ),
    "contract": frozenset(
        {
            ErrorKind.CONTRACT_NOT_DEPLOYED,
            ErrorKind.CONTRACT_NOT_VERIFIED,
            ErrorKind.INVALID_CONTRACT_ADDRESS,
        }
    ),
    "license": frozenset(
        {
            ErrorKind.INVALID_TOKEN_ID,
            ErrorKind.LICENSE_NOT_FOUND,
            ErrorKind.LICENSE_EXPIRED,
            ErrorKind.LICENSE_REVOKED,
            ErrorKind.LICENSE_ALREADY_EXISTS,
            ErrorKind.INVALID_LICENSE_METADATA,
        }
    ),
    "permission": frozenset(
        {
            ErrorKind.UNAUTHORIZED,
            ErrorKind.INSUFFICIENT_PERMISSIONS,
            ErrorKind.ROLE_NOT_GRANTED,
        }
    ),
    "validation": frozenset(
        {
            ErrorKind.INVALID_ADDRESS,
            ErrorKind.INVALID_NETWORK,
            ErrorKind.INVALID_CONFIG,
            ErrorKind.INVALID_METADATA,
            ErrorKind.VALIDATION_ERROR,
        }
    ),
    "multisig": frozenset(
        {
            ErrorKind.INSUFFICIENT_SIGNATURES,
            ErrorKind.INVALID_SIGNATURE,
            ErrorKind.SIGNATURE_TIMEOUT,
        }
    ),
    "upgrade": frozenset(
        {
            ErrorKind.UPGRADE_NOT_AUTHORIZED,
            ErrorKind.INVALID_IMPLEMENTATION,
            ErrorKind.UPGRADE_FAILED,
        }
    ),
}

RETRYABLE_KINDS = ERROR_GROUPS["network"]


class LicenseChainError(Exception):
    """
    The single exception type raised by the SDK.

    Attributes:
        kind: Member of the closed ErrorKind taxonomy.
        message: Human-readable error description.
        tx_hash: Transaction hash, when the failure happened after broadcast.
        details: Additional context. ``details["cause"]`` holds the original
            exception whenever the error was produced by normalization.

    Example:
        >>> raise LicenseChainError(
        ...     "Transaction reverted",
        ...     kind=ErrorKind.TRANSACTION_REVERTED,
        ...     tx_hash="0x123...",
        ... )
    """

    def __init__(
        self,
        message: str,
        *,
        kind: ErrorKind = ErrorKind.UNKNOWN_ERROR,
        tx_hash: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.kind = ErrorKind(kind)
        self.tx_hash = tx_hash
        self.details = details or {}

    @property
    def code(self) -> str:
        """Machine-readable error code (the kind's value)."""
        return self.kind.value

    @property
    def cause(self) -> Any:
        """Original failure this error was normalized from, if any."""
        return self.details.get("cause")

    @property
    def retryable(self) -> bool:
        return self.kind.retryable

    def with_tx_hash(self, tx_hash: Optional[str]) -> "LicenseChainError":
        """Attach a transaction hash if none is recorded yet."""
        if tx_hash and not self.tx_hash:
            self.tx_hash = tx_hash
        return self

    def __str__(self) -> str:
        parts = [f"[{self.code}] {self.message}"]
        if self.tx_hash:
            parts.append(f"(tx: {self.tx_hash[:10]}...)")
        return " ".join(parts)

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"message={self.message!r}, "
            f"kind={self.kind.value!r}, "
            f"tx_hash={self.tx_hash!r}, "
            f"details={self.details!r})"
        )

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert exception to a dictionary for JSON serialization.

        The original cause is rendered with ``repr`` since arbitrary
        exceptions are not JSON serializable.
        """
        details = {
            key: (repr(value) if key == "cause" else value)
            for key, value in self.details.items()
        }
        return {
            "error": self.__class__.__name__,
            "kind": self.kind.value,
            "group": self.kind.group,
            "message": self.message,
            "tx_hash": self.tx_hash,
            "details": details,
        }

    # ------------------------------------------------------------------
    # Named constructors
    # ------------------------------------------------------------------

    @classmethod
    def invalid_address(cls, address: Any, field: str = "address") -> "LicenseChainError":
        return cls(
            f"Invalid address for {field}: {address}",
            kind=ErrorKind.INVALID_ADDRESS,
            details={"address": address, "field": field},
        )

    @classmethod
    def invalid_network(cls, network: str, reason: Optional[str] = None) -> "LicenseChainError":
        message = f"Invalid network: {network}"
        if reason:
            message += f" ({reason})"
        return cls(message, kind=ErrorKind.INVALID_NETWORK, details={"network": network})

    @classmethod
    def invalid_token_id(cls, token_id: Any) -> "LicenseChainError":
        return cls(
            f"Invalid token ID: {token_id!r} (must be a positive integer)",
            kind=ErrorKind.INVALID_TOKEN_ID,
            details={"token_id": token_id},
        )

    @classmethod
    def contract_not_deployed(cls, address: str) -> "LicenseChainError":
        return cls(
            f"Contract not deployed at address: {address}",
            kind=ErrorKind.CONTRACT_NOT_DEPLOYED,
            details={"address": address},
        )

    @classmethod
    def license_not_found(cls, token_id: int) -> "LicenseChainError":
        return cls(
            f"License not found for token ID: {token_id}",
            kind=ErrorKind.LICENSE_NOT_FOUND,
            details={"token_id": token_id},
        )

    @classmethod
    def license_expired(cls, token_id: int, expires_at: int) -> "LicenseChainError":
        return cls(
            f"License expired for token ID: {token_id}",
            kind=ErrorKind.LICENSE_EXPIRED,
            details={"token_id": token_id, "expires_at": expires_at},
        )

    @classmethod
    def license_revoked(cls, token_id: int) -> "LicenseChainError":
        return cls(
            f"License revoked for token ID: {token_id}",
            kind=ErrorKind.LICENSE_REVOKED,
            details={"token_id": token_id},
        )

    @classmethod
    def insufficient_permissions(
        cls, required: str, actual: Iterable[str]
    ) -> "LicenseChainError":
        actual = list(actual)
        return cls(
            f"Insufficient permissions. Required: {required}, Actual: {', '.join(actual)}",
            kind=ErrorKind.INSUFFICIENT_PERMISSIONS,
            details={"required": required, "actual": actual},
        )

    @classmethod
    def invalid_metadata(cls, metadata: Any, reason: Optional[str] = None) -> "LicenseChainError":
        message = "Invalid license metadata"
        if reason:
            message += f": {reason}"
        return cls(
            message,
            kind=ErrorKind.INVALID_LICENSE_METADATA,
            details={"metadata": metadata},
        )

    @classmethod
    def invalid_config(cls, field: str, value: Any, reason: Optional[str] = None) -> "LicenseChainError":
        message = f"Invalid configuration for {field}: {value}"
        if reason:
            message += f" ({reason})"
        return cls(
            message,
            kind=ErrorKind.INVALID_CONFIG,
            details={"field": field, "value": value},
        )

    @classmethod
    def unauthorized(cls, message: str = "Signer not configured. Private key or signing backend required.") -> "LicenseChainError":
        return cls(message, kind=ErrorKind.UNAUTHORIZED)

    @classmethod
    def timeout(
        cls,
        operation: str,
        limit: float,
        *,
        tx_hash: Optional[str] = None,
    ) -> "LicenseChainError":
        message = f"{operation} timed out after {limit}s"
        if tx_hash:
            message += ". Re-query the transaction by hash instead of resubmitting"
        return cls(
            message,
            kind=ErrorKind.TIMEOUT_ERROR,
            tx_hash=tx_hash,
            details={"operation": operation, "timeout_seconds": limit},
        )
