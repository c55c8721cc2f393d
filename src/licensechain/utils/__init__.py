"""
LicenseChain SDK Utilities.

This module provides utility functions and classes for the SDK.
"""

from licensechain.utils.logging import (
    LogContext,
    configure_logging,
    disable_logging,
    enable_debug,
    get_logger,
    set_level,
)
from licensechain.utils.retry import (
    RetryConfig,
    calculate_delay,
    is_retryable,
    retry_async,
    with_retry,
)
from licensechain.utils.timeout import with_cancel_timeout, with_timeout
from licensechain.utils.units import (
    calculate_gas_cost,
    ether_to_wei,
    role_hash,
    wei_to_ether,
)
from licensechain.utils.validation import (
    is_valid_address,
    validate_address,
    validate_rpc_url,
    validate_token_id,
    validate_uint,
)

__all__ = [
    # Logging
    "get_logger",
    "configure_logging",
    "set_level",
    "disable_logging",
    "enable_debug",
    "LogContext",
    # Retry / timeout
    "RetryConfig",
    "calculate_delay",
    "is_retryable",
    "retry_async",
    "with_retry",
    "with_timeout",
    "with_cancel_timeout",
    # Units
    "calculate_gas_cost",
    "ether_to_wei",
    "wei_to_ether",
    "role_hash",
    # Validation
    "is_valid_address",
    "validate_address",
    "validate_rpc_url",
    "validate_token_id",
    "validate_uint",
]
