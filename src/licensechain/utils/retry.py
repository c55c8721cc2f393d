"""
Retry Utilities for the LicenseChain SDK.

Provides bounded exponential backoff for transient failures. Only failures
classified as retryable are attempted again; everything else propagates on
first occurrence.
"""

from __future__ import annotations

import asyncio
import random
from dataclasses import dataclass, field
from functools import wraps
from typing import (
    Awaitable,
    Callable,
    Optional,
    Tuple,
    Type,
    TypeVar,
)

from licensechain.constants import DEFAULT_BASE_DELAY_MS, DEFAULT_MAX_ATTEMPTS
from licensechain.errors import LicenseChainError
from licensechain.utils.logging import get_logger

T = TypeVar("T")

_logger = get_logger(__name__)


def is_retryable(error: BaseException) -> bool:
    """
    Classify a failure as transient.

    Only network-group errors (network unreachable, RPC internal fault,
    timeout) are retryable.
    """
    return isinstance(error, LicenseChainError) and error.retryable


@dataclass
class RetryConfig:
    """
    Configuration for retry behavior.

    Example:
        ```python
        config = RetryConfig(
            max_attempts=5,
            base_delay_ms=500,
            retry_if=is_retryable,
        )
        ```
    """

    max_attempts: int = DEFAULT_MAX_ATTEMPTS
    """Maximum number of attempts (1 = single call, no retry)."""

    base_delay_ms: int = DEFAULT_BASE_DELAY_MS
    """Base delay in milliseconds for exponential backoff."""

    max_delay_ms: Optional[int] = None
    """Optional cap for a single delay. None = pure exponential growth."""

    jitter: bool = False
    """Whether to add random jitter to delays."""

    exponential_base: float = 2.0
    """Base for exponential backoff calculation."""

    retryable_errors: Tuple[Type[BaseException], ...] = field(
        default_factory=lambda: (LicenseChainError,)
    )
    """Tuple of exception types that may trigger a retry."""

    retry_if: Optional[Callable[[BaseException], bool]] = is_retryable
    """Predicate applied to caught errors; None accepts every retryable type."""

    def __post_init__(self) -> None:
        if isinstance(self.max_attempts, bool) or not isinstance(self.max_attempts, int) or self.max_attempts < 1:
            raise LicenseChainError.invalid_config(
                "max_attempts", self.max_attempts, "must be an integer >= 1"
            )
        if self.base_delay_ms < 0:
            raise LicenseChainError.invalid_config(
                "base_delay_ms", self.base_delay_ms, "must be non-negative"
            )


def calculate_delay(attempt: int, config: RetryConfig) -> float:
    """
    Calculate delay with exponential backoff and optional jitter.

    Args:
        attempt: Zero-based retry number (0 = first retry)
        config: Retry configuration

    Returns:
        Delay in seconds
    """
    delay_ms = config.base_delay_ms * (config.exponential_base ** attempt)

    if config.max_delay_ms is not None:
        delay_ms = min(delay_ms, config.max_delay_ms)

    if config.jitter:
        delay_ms = random.uniform(0, delay_ms)

    return delay_ms / 1000


def _should_retry(error: BaseException, config: RetryConfig) -> bool:
    if not isinstance(error, config.retryable_errors):
        return False
    return config.retry_if is None or config.retry_if(error)


async def retry_async(
    fn: Callable[[], Awaitable[T]],
    config: Optional[RetryConfig] = None,
    *,
    operation: str = "operation",
) -> T:
    """
    Execute async function with retry logic.

    Args:
        fn: Async function to execute (no arguments)
        config: Retry configuration (uses defaults if None)
        operation: Name used in log records

    Returns:
        Result of the function

    Raises:
        The first non-retryable exception, or the last exception once all
        attempts are exhausted. Exceptions are re-raised unchanged.

    Example:
        ```python
        receipt = await retry_async(
            lambda: backend.submit(descriptor, gas),
            RetryConfig(max_attempts=3, base_delay_ms=500),
        )
        ```
    """
    config = config or RetryConfig()

    for attempt in range(config.max_attempts):
        try:
            return await fn()
        except Exception as e:
            if attempt >= config.max_attempts - 1 or not _should_retry(e, config):
                raise
            delay = calculate_delay(attempt, config)
            _logger.warning(
                "Retrying %s after transient failure (attempt %d/%d, sleeping %.3fs): %s",
                operation,
                attempt + 1,
                config.max_attempts,
                delay,
                e,
                extra={"operation": operation, "attempt": attempt + 1, "delay": delay},
            )
            await asyncio.sleep(delay)

    # Unreachable: the loop either returns or raises.
    raise RuntimeError("Retry exhausted without error")


def with_retry(
    config: Optional[RetryConfig] = None,
) -> Callable[[Callable[..., Awaitable[T]]], Callable[..., Awaitable[T]]]:
    """
    Decorator for adding retry logic to async functions.

    Example:
        ```python
        @with_retry(RetryConfig(max_attempts=5))
        async def fetch_fee_data() -> FeeData:
            return await backend.get_fee_data()
        ```
    """
    def decorator(
        fn: Callable[..., Awaitable[T]],
    ) -> Callable[..., Awaitable[T]]:
        @wraps(fn)
        async def wrapper(*args: object, **kwargs: object) -> T:
            return await retry_async(
                lambda: fn(*args, **kwargs),
                config,
                operation=fn.__name__,
            )
        return wrapper
    return decorator
