"""
Error normalization for provider, node and contract failures.

``normalize`` maps whatever the web3 stack (or an injected backend) raised
into a LicenseChainError of a fixed kind. The mapping is a pure function of
the cause: no I/O, no logging, and the original exception is always kept
under ``details["cause"]``.
"""

from __future__ import annotations

import asyncio
from typing import Any, Dict, Optional, Tuple

from web3.exceptions import (
    BadFunctionCallOutput,
    ContractLogicError,
    InvalidAddress,
    ProviderConnectionError,
    TimeExhausted,
    Web3RPCError,
)

from licensechain.constants import ABI_SELECTOR_LENGTH, ABI_WORD_LENGTH, REVERT_SELECTOR
from licensechain.errors.base import ErrorKind, LicenseChainError

__all__ = ["normalize", "decode_revert_reason", "PROVIDER_CODES", "RPC_CODES"]


# Symbolic fault codes reported by provider libraries and signing backends.
PROVIDER_CODES: Dict[str, Tuple[ErrorKind, str]] = {
    "INSUFFICIENT_FUNDS": (ErrorKind.INSUFFICIENT_FUNDS, "Insufficient funds for transaction"),
    "UNPREDICTABLE_GAS_LIMIT": (ErrorKind.GAS_ESTIMATION_FAILED, "Gas estimation failed"),
    "CALL_EXCEPTION": (ErrorKind.TRANSACTION_REVERTED, "Transaction reverted"),
    "NETWORK_ERROR": (ErrorKind.NETWORK_ERROR, "Network error occurred"),
    "SERVER_ERROR": (ErrorKind.RPC_ERROR, "RPC server error"),
    "TIMEOUT": (ErrorKind.TIMEOUT_ERROR, "Operation timed out"),
    "INVALID_ARGUMENT": (ErrorKind.VALIDATION_ERROR, "Invalid parameters"),
}

# JSON-RPC error codes.
RPC_CODES: Dict[int, Tuple[ErrorKind, str]] = {
    -32602: (ErrorKind.VALIDATION_ERROR, "Invalid parameters"),
    -32603: (ErrorKind.RPC_ERROR, "Internal JSON-RPC error"),
    -32000: (ErrorKind.TRANSACTION_FAILED, "Transaction failed"),
}

# Node message fragments, checked in order before the numeric code.
_MESSAGE_PATTERNS: Tuple[Tuple[str, ErrorKind], ...] = (
    ("insufficient funds", ErrorKind.INSUFFICIENT_FUNDS),
    ("execution reverted", ErrorKind.TRANSACTION_REVERTED),
    ("gas required exceeds allowance", ErrorKind.GAS_ESTIMATION_FAILED),
    ("cannot estimate gas", ErrorKind.GAS_ESTIMATION_FAILED),
    ("intrinsic gas too low", ErrorKind.GAS_ESTIMATION_FAILED),
)


def decode_revert_reason(raw: Any) -> Optional[str]:
    """Decode a Solidity ``Error(string)`` revert payload.

    Args:
        raw: Hex-encoded error data string

    Returns:
        Decoded revert reason string, or None if decoding fails
    """
    if not isinstance(raw, str):
        return None
    if raw.startswith(REVERT_SELECTOR) and len(raw) >= 10:
        try:
            data = bytes.fromhex(raw[2:])
            if len(data) >= ABI_SELECTOR_LENGTH + ABI_WORD_LENGTH + ABI_WORD_LENGTH:
                offset = ABI_SELECTOR_LENGTH + ABI_WORD_LENGTH
                strlen = int.from_bytes(data[offset : offset + ABI_WORD_LENGTH], "big")
                reason_start = offset + ABI_WORD_LENGTH
                reason_bytes = data[reason_start : reason_start + strlen]
                return reason_bytes.decode(errors="ignore")
        except (ValueError, UnicodeDecodeError):
            return None
    return None


def _rpc_error_payload(cause: BaseException) -> Optional[Dict[str, Any]]:
    """Extract the JSON-RPC ``error`` object carried by an exception."""
    response = getattr(cause, "rpc_response", None)
    if isinstance(response, dict):
        error = response.get("error")
        if isinstance(error, dict):
            return error
    if cause.args and isinstance(cause.args[0], dict):
        return cause.args[0]
    return None


def _make(kind: ErrorKind, message: str, cause: Any, **extra: Any) -> LicenseChainError:
    details: Dict[str, Any] = {"cause": cause}
    details.update({key: value for key, value in extra.items() if value is not None})
    return LicenseChainError(message, kind=kind, details=details)


def _from_rpc_payload(payload: Dict[str, Any], cause: Any) -> LicenseChainError:
    code = payload.get("code")
    message = str(payload.get("message") or "")
    lowered = message.lower()

    if isinstance(code, str) and code in PROVIDER_CODES:
        kind, default_message = PROVIDER_CODES[code]
        return _make(kind, message or default_message, cause, code=code)

    for fragment, kind in _MESSAGE_PATTERNS:
        if fragment in lowered:
            reason = decode_revert_reason(payload.get("data")) if kind is ErrorKind.TRANSACTION_REVERTED else None
            return _make(kind, reason or message, cause, code=code, reason=reason)

    if isinstance(code, int):
        kind, default_message = RPC_CODES.get(code, (ErrorKind.RPC_ERROR, "RPC error occurred"))
        return _make(kind, message or default_message, cause, code=code)

    return _make(ErrorKind.RPC_ERROR, message or "RPC error occurred", cause, code=code)


def normalize(cause: Any) -> LicenseChainError:
    """
    Map an arbitrary failure into the SDK error taxonomy.

    Args:
        cause: Exception (or any object) raised by the provider, node,
            contract or signing backend.

    Returns:
        LicenseChainError whose ``details["cause"]`` is ``cause``. A
        LicenseChainError input is returned unchanged.
    """
    if isinstance(cause, LicenseChainError):
        return cause

    if isinstance(cause, (TimeExhausted, asyncio.TimeoutError, TimeoutError)):
        return _make(ErrorKind.TIMEOUT_ERROR, str(cause) or "Operation timed out", cause)

    if isinstance(cause, ContractLogicError):
        reason = decode_revert_reason(getattr(cause, "data", None))
        message = reason or getattr(cause, "message", None) or str(cause) or "Transaction reverted"
        return _make(ErrorKind.TRANSACTION_REVERTED, message, cause, reason=reason)

    if isinstance(cause, InvalidAddress):
        return _make(ErrorKind.INVALID_ADDRESS, str(cause) or "Invalid address", cause)

    if isinstance(cause, BadFunctionCallOutput):
        return _make(
            ErrorKind.CONTRACT_NOT_DEPLOYED,
            "Contract call returned no data; is the contract deployed at this address?",
            cause,
        )

    if isinstance(cause, (ProviderConnectionError, ConnectionError)):
        return _make(ErrorKind.NETWORK_ERROR, str(cause) or "Network error occurred", cause)

    symbolic = getattr(cause, "code", None)
    if isinstance(symbolic, str) and symbolic in PROVIDER_CODES:
        kind, default_message = PROVIDER_CODES[symbolic]
        return _make(kind, default_message, cause, code=symbolic)

    if isinstance(cause, BaseException):
        payload = _rpc_error_payload(cause)
        if payload is not None:
            return _from_rpc_payload(payload, cause)
        if isinstance(cause, Web3RPCError):
            return _make(ErrorKind.RPC_ERROR, str(cause) or "RPC error occurred", cause)
        if isinstance(cause, OSError):
            return _make(ErrorKind.NETWORK_ERROR, str(cause) or "Network error occurred", cause)

        message = str(cause)
        lowered = message.lower()
        for fragment, kind in _MESSAGE_PATTERNS:
            if fragment in lowered:
                return _make(kind, message, cause)
        return _make(ErrorKind.UNKNOWN_ERROR, message or "Unknown error occurred", cause)

    if isinstance(cause, dict):
        return _from_rpc_payload(cause, cause)

    if isinstance(cause, str) and cause:
        return _make(ErrorKind.UNKNOWN_ERROR, cause, cause)

    return _make(ErrorKind.UNKNOWN_ERROR, "Unknown error occurred", cause)
