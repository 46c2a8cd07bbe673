"""Tests for quotegraph.logging (package-scoped levels from LoggingConfig)."""

import logging

import pytest

from quotegraph.config import LoggingConfig
from quotegraph.logging import (
    DEFAULT_FORMAT,
    PACKAGE_LOGGER,
    THIRD_PARTY_LOGGERS,
    configure_logging,
    resolve_level,
)


class TestResolveLevel:
    """resolve_level maps level names to logging constants."""

    @pytest.mark.parametrize(
        "name, expected",
        [("DEBUG", logging.DEBUG), ("info", logging.INFO), (" warning ", logging.WARNING), ("Error", logging.ERROR)],
    )
    def test_known_levels(self, name: str, expected: int) -> None:
        assert resolve_level(name) == expected

    def test_unknown_level_is_none(self) -> None:
        assert resolve_level("TRACE") is None
        assert resolve_level("") is None


class TestConfigureLogging:
    """configure_logging scopes the configured level to the quotegraph loggers."""

    def test_level_applies_to_package_not_root(self) -> None:
        assert configure_logging(LoggingConfig(level="DEBUG", format="%(message)s")) == logging.DEBUG
        assert logging.getLogger(PACKAGE_LOGGER).level == logging.DEBUG
        assert logging.getLogger("quotegraph.state").getEffectiveLevel() == logging.DEBUG
        assert logging.root.level == logging.WARNING

    def test_third_party_quiet_unless_debug(self) -> None:
        configure_logging(LoggingConfig(level="INFO"))
        for name in THIRD_PARTY_LOGGERS:
            assert logging.getLogger(name).level == logging.WARNING
        configure_logging(LoggingConfig(level="DEBUG"))
        assert logging.getLogger("urllib3").level == logging.DEBUG

    def test_verbose_overrides_config(self) -> None:
        assert configure_logging(LoggingConfig(level="ERROR"), verbose=True) == logging.DEBUG
        assert logging.getLogger(PACKAGE_LOGGER).level == logging.DEBUG

    def test_unknown_level_falls_back_to_info(self) -> None:
        assert configure_logging(LoggingConfig(level="TRACE")) == logging.INFO
        assert logging.getLogger(PACKAGE_LOGGER).level == logging.INFO

    def test_format_applied_and_defaulted(self) -> None:
        configure_logging(LoggingConfig(level="INFO", format="%(levelname)s || %(message)s"))
        assert logging.root.handlers[0].formatter._fmt == "%(levelname)s || %(message)s"
        configure_logging(LoggingConfig(level="INFO", format=""))
        assert logging.root.handlers[0].formatter._fmt == DEFAULT_FORMAT
