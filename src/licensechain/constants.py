"""Constants for the LicenseChain SDK.

This module defines all constant values used across the SDK,
including ABI encoding constants, gas parameters, timeouts
and validation bounds.
"""

# ABI Encoding Constants
ABI_SELECTOR_LENGTH = 4
ABI_WORD_LENGTH = 32
REVERT_SELECTOR = "0x08c379a0"

ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"

# Gas Constants
DEFAULT_GAS_LIMIT = 100_000
GAS_ESTIMATION_BUFFER_PERCENT = 115
MAX_GAS_LIMIT = 10_000_000
FALLBACK_GAS_PRICE_GWEI = 20
MAX_FEE_MULTIPLIER = 2
PRIORITY_FEE_GWEI = 1

# Default gas limit per contract function, used when neither an override
# nor a configured limit is present and estimation is disabled.
DEFAULT_GAS_LIMITS = {
    "constructor": 2_000_000,
    "mintLicense": 200_000,
    "batchMintLicenses": 500_000,
    "transferLicense": 100_000,
    "revokeLicense": 100_000,
}

# Amount Validation Constants
MAX_UINT256 = 2**256 - 1
MAX_ROYALTY_FEE_BPS = 10_000
MAX_BATCH_SIZE = 500

# Network / Timing Constants
PROVIDER_TIMEOUT_SECONDS = 30
DEFAULT_TX_WAIT_TIMEOUT = 300.0
DEFAULT_CONFIRMATIONS = 1
RECEIPT_POLL_INTERVAL = 1.0
ABANDONED_TASK_GRACE = 120.0

# Retry Constants
DEFAULT_MAX_ATTEMPTS = 3
DEFAULT_BASE_DELAY_MS = 1000

# Role names recognized by the license contract
DEFAULT_ADMIN_ROLE = "DEFAULT_ADMIN_ROLE"
MINTER_ROLE = "MINTER_ROLE"
REVOKER_ROLE = "REVOKER_ROLE"
PAUSER_ROLE = "PAUSER_ROLE"

__all__ = [
    "ABI_SELECTOR_LENGTH",
    "ABI_WORD_LENGTH",
    "REVERT_SELECTOR",
    "ZERO_ADDRESS",
    "DEFAULT_GAS_LIMIT",
    "DEFAULT_GAS_LIMITS",
    "GAS_ESTIMATION_BUFFER_PERCENT",
    "MAX_GAS_LIMIT",
    "FALLBACK_GAS_PRICE_GWEI",
    "MAX_FEE_MULTIPLIER",
    "PRIORITY_FEE_GWEI",
    "MAX_UINT256",
    "MAX_ROYALTY_FEE_BPS",
    "MAX_BATCH_SIZE",
    "PROVIDER_TIMEOUT_SECONDS",
    "DEFAULT_TX_WAIT_TIMEOUT",
    "DEFAULT_CONFIRMATIONS",
    "RECEIPT_POLL_INTERVAL",
    "ABANDONED_TASK_GRACE",
    "DEFAULT_MAX_ATTEMPTS",
    "DEFAULT_BASE_DELAY_MS",
    "DEFAULT_ADMIN_ROLE",
    "MINTER_ROLE",
    "REVOKER_ROLE",
    "PAUSER_ROLE",
]
