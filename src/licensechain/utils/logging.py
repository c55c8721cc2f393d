"""
Logging helpers for the LicenseChain SDK.

The SDK logs through standard-library loggers under the ``licensechain``
namespace and never configures the root logger. Applications opt in with
``configure_logging`` or their own handlers.

Example:
    >>> from licensechain.utils.logging import get_logger, enable_debug
    >>> enable_debug()
    >>> _logger = get_logger(__name__)
    >>> _logger.info("Minted", extra={"token_id": 1})
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional, Union

ROOT_LOGGER_NAME = "licensechain"
DEFAULT_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"

logging.getLogger(ROOT_LOGGER_NAME).addHandler(logging.NullHandler())


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """
    Return a logger inside the ``licensechain`` namespace.

    Args:
        name: Module name (usually ``__name__``). Names outside the SDK
            namespace are nested under it.
    """
    if not name or name == ROOT_LOGGER_NAME:
        return logging.getLogger(ROOT_LOGGER_NAME)
    if not name.startswith(ROOT_LOGGER_NAME + "."):
        name = f"{ROOT_LOGGER_NAME}.{name}"
    return logging.getLogger(name)


def configure_logging(
    level: Union[int, str] = logging.INFO,
    fmt: str = DEFAULT_FORMAT,
    handler: Optional[logging.Handler] = None,
) -> logging.Logger:
    """
    Attach a handler to the SDK logger.

    Calling it again replaces the handler installed by the previous call
    rather than stacking duplicates.
    """
    logger = logging.getLogger(ROOT_LOGGER_NAME)
    for existing in list(logger.handlers):
        if getattr(existing, "_licensechain_handler", False):
            logger.removeHandler(existing)

    handler = handler or logging.StreamHandler()
    handler.setFormatter(logging.Formatter(fmt))
    handler._licensechain_handler = True  # type: ignore[attr-defined]
    logger.addHandler(handler)
    logger.setLevel(level)
    logger.disabled = False
    return logger


def set_level(level: Union[int, str]) -> None:
    logging.getLogger(ROOT_LOGGER_NAME).setLevel(level)


def enable_debug() -> None:
    configure_logging(logging.DEBUG)


def disable_logging() -> None:
    logging.getLogger(ROOT_LOGGER_NAME).disabled = True


class LogContext(logging.LoggerAdapter):
    """
    Logger adapter that merges fixed context into every record's ``extra``.

    Example:
        >>> log = LogContext(get_logger(__name__), {"contract": "0xabc..."})
        >>> log.info("Paused")
    """

    def process(self, msg: Any, kwargs: Dict[str, Any]) -> Any:
        extra = dict(self.extra or {})
        extra.update(kwargs.get("extra") or {})
        kwargs["extra"] = extra
        return msg, kwargs
