"""
Tests for the SDK logging helpers.
"""

import io
import logging

import pytest

from licensechain.utils.logging import (
    ROOT_LOGGER_NAME,
    LogContext,
    configure_logging,
    disable_logging,
    get_logger,
)


@pytest.fixture(autouse=True)
def restore_sdk_logger():
    logger = logging.getLogger(ROOT_LOGGER_NAME)
    handlers, level, disabled = list(logger.handlers), logger.level, logger.disabled
    yield
    logger.handlers[:] = handlers
    logger.setLevel(level)
    logger.disabled = disabled


class TestGetLogger:

    def test_module_names_stay_in_namespace(self) -> None:
        assert get_logger("licensechain.executor").name == "licensechain.executor"
        assert get_logger().name == ROOT_LOGGER_NAME

    def test_foreign_names_are_nested(self) -> None:
        assert get_logger("myapp.billing").name == "licensechain.myapp.billing"


class TestConfigureLogging:

    def test_repeated_calls_do_not_stack_handlers(self) -> None:
        first = logging.StreamHandler(io.StringIO())
        second = logging.StreamHandler(io.StringIO())

        configure_logging(logging.DEBUG, handler=first)
        logger = configure_logging(logging.WARNING, handler=second)

        assert first not in logger.handlers
        assert second in logger.handlers
        assert logger.level == logging.WARNING

    def test_records_reach_handler(self) -> None:
        stream = io.StringIO()
        configure_logging(logging.INFO, fmt="%(levelname)s %(message)s", handler=logging.StreamHandler(stream))

        get_logger("licensechain.client").info("ready")

        assert stream.getvalue() == "INFO ready\n"

    def test_disable_and_reenable(self) -> None:
        stream = io.StringIO()
        configure_logging(handler=logging.StreamHandler(stream))
        disable_logging()
        get_logger().info("hidden")
        configure_logging(handler=logging.StreamHandler(stream))
        get_logger().info("shown")
        assert "hidden" not in stream.getvalue()
        assert "shown" in stream.getvalue()


class TestLogContext:

    def test_merges_fixed_and_call_extra(self, caplog: pytest.LogCaptureFixture) -> None:
        log = LogContext(get_logger("licensechain.contract"), {"contract": "0xabc", "kind": "mint"})

        with caplog.at_level(logging.INFO, logger=ROOT_LOGGER_NAME):
            log.info("Minted", extra={"token_id": 7, "kind": "batch_mint"})

        (record,) = caplog.records
        assert record.contract == "0xabc"
        assert record.token_id == 7
        assert record.kind == "batch_mint"
