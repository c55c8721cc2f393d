"""Unit conversion and hashing helpers.

All arithmetic is done on Python integers; ether amounts are rendered as
exact decimal strings.
"""

from __future__ import annotations

import re
from decimal import Decimal
from typing import Union

from web3 import Web3

from licensechain.constants import DEFAULT_ADMIN_ROLE
from licensechain.errors import ErrorKind, LicenseChainError
from licensechain.utils.validation import is_bytes32_hex, validate_uint

WEI_PER_ETHER = 10**18
ETHER_PATTERN = re.compile(r"^[0-9]+(\.[0-9]+)?$")

__all__ = ["WEI_PER_ETHER", "wei_to_ether", "ether_to_wei", "calculate_gas_cost", "role_hash"]


def wei_to_ether(wei: Union[int, str]) -> str:
    """Render a wei amount as an ether string with all 18 decimals."""
    amount = validate_uint(wei, "wei")
    ether, remainder = divmod(amount, WEI_PER_ETHER)
    return f"{ether}.{remainder:018d}"


def ether_to_wei(ether: Union[str, int, Decimal]) -> str:
    """Convert an ether amount to wei. Digits past the 18th decimal are truncated."""
    if isinstance(ether, float) or isinstance(ether, bool):
        raise LicenseChainError(
            "ether amount must be a string, int or Decimal", kind=ErrorKind.VALIDATION_ERROR
        )
    text = str(ether)
    if not ETHER_PATTERN.match(text):
        raise LicenseChainError(
            f"invalid ether amount: {text!r}", kind=ErrorKind.VALIDATION_ERROR
        )
    integer, _, decimal = text.partition(".")
    padded = (decimal + "0" * 18)[:18]
    return str(int(integer or "0") * WEI_PER_ETHER + int(padded))


def calculate_gas_cost(gas_limit: Union[int, str], gas_price: Union[int, str]) -> str:
    """Total cost in wei of ``gas_limit`` units at ``gas_price``."""
    return str(validate_uint(gas_limit, "gas_limit") * validate_uint(gas_price, "gas_price"))


def role_hash(role: str) -> str:
    """
    Role identifier as used by the license contract's access control.

    Role names are hashed with keccak256 over their UTF-8 bytes. The admin
    role is the zero hash, and a value that already is a 32-byte hex string
    is passed through.
    """
    if not isinstance(role, str) or not role:
        raise LicenseChainError("role must be a non-empty string", kind=ErrorKind.VALIDATION_ERROR)
    if role == DEFAULT_ADMIN_ROLE:
        return "0x" + "00" * 32
    if is_bytes32_hex(role):
        return role.lower()
    return Web3.to_hex(Web3.keccak(text=role))
