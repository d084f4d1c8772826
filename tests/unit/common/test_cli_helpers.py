"""Tests for common.cli_helpers module."""

import argparse
import logging

import pytest

from common.cli_helpers import parse_positive_int, setup_logging
from common.errors import ConfigError


class TestParsePositiveInt:
    def test_valid_number(self) -> None:
        assert parse_positive_int("5") == 5

    def test_zero_rejected(self) -> None:
        with pytest.raises(argparse.ArgumentTypeError):
            parse_positive_int("0", "limit")

    def test_non_numeric_rejected(self) -> None:
        with pytest.raises(argparse.ArgumentTypeError, match="limit"):
            parse_positive_int("five", "limit")


class TestSetupLogging:
    @pytest.fixture(autouse=True)
    def restore_root_logger(self):
        root = logging.getLogger()
        handlers, level = root.handlers[:], root.level
        yield
        for handler in root.handlers:
            if handler not in handlers:
                handler.close()
        root.handlers[:] = handlers
        root.setLevel(level)

    def test_creates_log_directory(self, tmp_path) -> None:
        log_file = tmp_path / "logs" / "ACME_NOTIFICATION_EXTRACTOR.log"

        setup_logging(log_file)

        assert log_file.parent.is_dir()
        assert any(isinstance(h, logging.FileHandler) for h in logging.getLogger().handlers)

    def test_unusable_log_path_raises_config_error(self, tmp_path) -> None:
        blocker = tmp_path / "not_a_dir"
        blocker.write_text("")

        with pytest.raises(ConfigError, match="log file"):
            setup_logging(blocker / "ACME_NOTIFICATION_EXTRACTOR.log")
