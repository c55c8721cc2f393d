"""
Exception hierarchy for the LicenseChain SDK.

All SDK failures surface as LicenseChainError; ``normalize`` converts
provider, node and contract failures into it.
"""

from licensechain.errors.base import (
    ERROR_GROUPS,
    RETRYABLE_KINDS,
    ErrorKind,
    LicenseChainError,
)
from licensechain.errors.normalizer import decode_revert_reason, normalize

__all__ = [
    "ErrorKind",
    "ERROR_GROUPS",
    "RETRYABLE_KINDS",
    "LicenseChainError",
    "normalize",
    "decode_revert_reason",
]
