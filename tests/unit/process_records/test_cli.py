"""Tests for the process_records CLI and its argument parsing."""

from __future__ import annotations

from importlib.metadata import PackageNotFoundError
from unittest.mock import MagicMock, patch

import pytest
from sqlalchemy.exc import OperationalError

from common.config import PASSWORD_ENV_VAR, RunOptions
from common.errors import ConfigError, DatabaseConnectionError
from process_records.cli import get_version, main
from process_records.helpers import parse_process_records_args, run_options_from_args

CONFIG = """
customer_tool: acme
max_workers: 4
database: {user: u, password: p, host: h, sid: s}
"""


@pytest.fixture
def config_path(tmp_path, monkeypatch):
    monkeypatch.delenv(PASSWORD_ENV_VAR, raising=False)
    path = tmp_path / "config.yaml"
    path.write_text(CONFIG)
    return str(path)


class TestParseArgs:
    def test_defaults(self) -> None:
        options = run_options_from_args(parse_process_records_args(["cfg.yaml"]))
        assert options == RunOptions()

    def test_read_only_with_limit(self) -> None:
        args = parse_process_records_args(["cfg.yaml", "--read-only", "--limit-attachments", "5"])
        assert run_options_from_args(args) == RunOptions(read_only=True, attachment_limit=5)

    def test_read_only_with_ignore(self) -> None:
        args = parse_process_records_args(["cfg.yaml", "--read-only", "--ignore-attachments"])
        assert run_options_from_args(args) == RunOptions(read_only=True, ignore_attachments=True)

    def test_ignore_and_limit_rejected(self) -> None:
        with pytest.raises(SystemExit):
            parse_process_records_args(["cfg.yaml", "--ignore-attachments", "--limit-attachments", "2"])

    def test_non_positive_limit_rejected(self) -> None:
        with pytest.raises(SystemExit):
            parse_process_records_args(["cfg.yaml", "--limit-attachments", "0"])

    def test_config_path_required(self) -> None:
        with pytest.raises(SystemExit):
            parse_process_records_args([])


@patch("process_records.cli.setup_logging")
class TestMain:
    @patch("process_records.cli.process_records")
    @patch("process_records.cli.RecordSource")
    @patch("process_records.cli.get_session")
    def test_runs_pipeline(self, mock_get_session, mock_source_cls, mock_process, _logging, config_path) -> None:
        session = MagicMock()
        mock_get_session.return_value.__enter__.return_value = session
        records = [MagicMock()]
        mock_source_cls.return_value.fetch_pending_records.return_value = records

        assert main([config_path, "--read-only"]) == 0

        mock_source_cls.assert_called_once_with(session)
        args, kwargs = mock_process.call_args
        assert args[0] is records
        assert args[2].customer_tool == "ACME"
        assert args[3] == RunOptions(read_only=True)
        assert kwargs["max_workers"] == 4

    def test_missing_config_exits_with_error(self, _logging, tmp_path) -> None:
        assert main([str(tmp_path / "missing.yaml")]) == 1

    @patch("process_records.cli.get_session")
    def test_connection_failure_exits_with_error(self, mock_get_session, _logging, config_path) -> None:
        mock_get_session.return_value.__enter__.side_effect = DatabaseConnectionError("refused")

        assert main([config_path]) == 1

    @patch("process_records.cli.get_session")
    def test_engine_failure_exits_with_error(self, mock_get_session, _logging, config_path) -> None:
        mock_get_session.side_effect = DatabaseConnectionError("no such dialect")

        assert main([config_path]) == 1

    @patch("process_records.cli.get_session")
    def test_query_failure_exits_with_error(self, mock_get_session, _logging, config_path) -> None:
        session = MagicMock()
        session.execute.side_effect = OperationalError("select", {}, Exception("ORA-03113"))
        mock_get_session.return_value.__enter__.return_value = session

        assert main([config_path]) == 1

    @patch("process_records.cli.get_session")
    def test_unusable_log_path_exits_with_error(self, mock_get_session, mock_logging, config_path) -> None:
        mock_logging.side_effect = [ConfigError("Unable to open log file"), None]

        assert main([config_path]) == 1
        mock_get_session.assert_not_called()


class TestGetVersion:
    @patch("process_records.cli.version", return_value="9.9.9")
    def test_reads_installed_distribution(self, mock_version) -> None:
        assert get_version() == "9.9.9"
        mock_version.assert_called_once_with("notification-extractor")

    @patch("process_records.cli.version", side_effect=PackageNotFoundError("notification-extractor"))
    def test_unknown_when_not_installed(self, _version) -> None:
        assert get_version() == "unknown"
