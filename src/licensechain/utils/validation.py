"""
Validation utilities for the LicenseChain SDK.

Provides input validation functions for:
- Ethereum addresses
- Token IDs and other uint256 quantities
- RPC endpoint URLs
- Role identifiers

All validation functions raise LicenseChainError on failure and return the
normalized value on success.
"""

from __future__ import annotations

import re
from typing import Any, Sequence
from urllib.parse import urlparse

from web3 import Web3

from licensechain.constants import MAX_UINT256
from licensechain.errors import ErrorKind, LicenseChainError

ADDRESS_PATTERN = re.compile(r"^0x[0-9a-fA-F]{40}$")
BYTES32_PATTERN = re.compile(r"^0x[0-9a-fA-F]{64}$")
DECIMAL_PATTERN = re.compile(r"^[0-9]+$")


def is_valid_address(address: Any) -> bool:
    return isinstance(address, str) and bool(ADDRESS_PATTERN.match(address))


def validate_address(address: Any, field_name: str = "address") -> str:
    """
    Validate Ethereum address format.

    Args:
        address: Address to validate
        field_name: Field name for error messages

    Returns:
        Checksummed address

    Raises:
        LicenseChainError: INVALID_ADDRESS if the address is malformed
    """
    if not is_valid_address(address):
        raise LicenseChainError.invalid_address(address, field_name)
    return Web3.to_checksum_address(address)


def validate_uint(value: Any, field_name: str = "value", *, minimum: int = 0) -> int:
    """
    Validate an on-chain integer quantity.

    Accepts ``int`` or a decimal string. Floats and bools are rejected so
    that values above 2**53 never lose precision.

    Raises:
        LicenseChainError: VALIDATION_ERROR if out of range or not integral
    """
    if isinstance(value, bool):
        raise LicenseChainError(
            f"{field_name} must be an integer, got bool", kind=ErrorKind.VALIDATION_ERROR
        )
    if isinstance(value, str):
        if not DECIMAL_PATTERN.match(value):
            raise LicenseChainError(
                f"{field_name} must be a decimal integer string", kind=ErrorKind.VALIDATION_ERROR
            )
        value = int(value)
    if not isinstance(value, int):
        raise LicenseChainError(
            f"{field_name} must be an integer or decimal string, got {type(value).__name__}",
            kind=ErrorKind.VALIDATION_ERROR,
        )
    if value < minimum or value > MAX_UINT256:
        raise LicenseChainError(
            f"{field_name} must be between {minimum} and 2**256 - 1",
            kind=ErrorKind.VALIDATION_ERROR,
        )
    return value


def validate_token_id(token_id: Any) -> int:
    """
    Validate a license token ID (positive uint256).

    Raises:
        LicenseChainError: INVALID_TOKEN_ID
    """
    try:
        return validate_uint(token_id, "token_id", minimum=1)
    except LicenseChainError:
        raise LicenseChainError.invalid_token_id(token_id) from None


def validate_rpc_url(url: Any, field_name: str = "rpc_url") -> str:
    """
    Validate an RPC endpoint URL.

    Only http(s) and ws(s) endpoints with a hostname are accepted.
    """
    if not url or not isinstance(url, str):
        raise LicenseChainError.invalid_config(field_name, url, "must be a non-empty string")
    parsed = urlparse(url)
    if parsed.scheme not in ("http", "https", "ws", "wss"):
        raise LicenseChainError.invalid_config(field_name, url, "must use http(s) or ws(s)")
    if not parsed.hostname:
        raise LicenseChainError.invalid_config(field_name, url, "must have a hostname")
    return url


def validate_parallel(field_names: Sequence[str], *sequences: Sequence[Any]) -> int:
    """
    Check that parallel sequences are non-empty and of equal length.

    Returns:
        The common length
    """
    lengths = {len(seq) for seq in sequences}
    if len(lengths) != 1:
        raise LicenseChainError(
            f"{', '.join(field_names)} must have equal length",
            kind=ErrorKind.VALIDATION_ERROR,
            details={"lengths": [len(seq) for seq in sequences]},
        )
    (length,) = lengths
    if length == 0:
        raise LicenseChainError(
            f"{', '.join(field_names)} must not be empty", kind=ErrorKind.VALIDATION_ERROR
        )
    return length


def is_bytes32_hex(value: Any) -> bool:
    return isinstance(value, str) and bool(BYTES32_PATTERN.match(value))
