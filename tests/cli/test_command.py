import logging

import pytest
from click import Command
from click.testing import CliRunner


def test_captured_warnings(cli: Command, caplog: pytest.LogCaptureFixture) -> None:
    runner = CliRunner()
    with caplog.at_level(logging.INFO):
        result = runner.invoke(cli)

    assert result.exit_code == 0
    assert len(caplog.records) == 2

    info_log = caplog.records[0]
    assert info_log.levelname == "INFO"
    assert info_log.name == "test_cli"
    assert "This is an info message" in info_log.message

    warning_log = caplog.records[1]
    assert warning_log.levelname == "WARNING"
    assert warning_log.name == "py.warnings"
    assert "This is a deprecated function" in warning_log.message


@pytest.mark.filterwarnings("error::DeprecationWarning")
def test_error_warnings(cli: Command) -> None:
    runner = CliRunner()
    result = runner.invoke(cli)
    assert result.exit_code == 1


def test_config_validation_error(
    failing_cli: Command,
    caplog: pytest.LogCaptureFixture,
) -> None:
    runner = CliRunner()
    result = runner.invoke(failing_cli)

    assert result.exit_code == 1
    assert [record.message for record in caplog.records] == [
        "Config validation error: 'x' is not of type 'integer'",
    ]
