"""Tests for startup configuration."""

import logging

import pytest

import cookunity_mcp
from cookunity_mcp import _configure_logging, _parse_port, _validate_credentials


@pytest.fixture(autouse=True)
def _reset_package_logger():
    logger = logging.getLogger("cookunity_mcp")
    logger.handlers.clear()
    yield
    logger.handlers.clear()
    logger.propagate = True
    logger.setLevel(logging.NOTSET)


@pytest.mark.parametrize(("email", "password"), [(None, "pw"), ("pat@example.com", None), ("", "")])
def test_missing_credentials_exit_with_status_1(email, password, capsys) -> None:
    with pytest.raises(SystemExit) as exc_info:
        _validate_credentials(email, password)

    assert exc_info.value.code == 1
    assert "COOKUNITY_EMAIL" in capsys.readouterr().err


def test_credentials_returned_when_present() -> None:
    assert _validate_credentials("pat@example.com", "pw") == ("pat@example.com", "pw")


def test_port_parsing() -> None:
    assert _parse_port(None) == 3000
    assert _parse_port("8080") == 8080

    with pytest.raises(SystemExit):
        _parse_port("eighty")


def test_logging_goes_to_single_stderr_handler() -> None:
    logger = logging.getLogger("cookunity_mcp")

    _configure_logging("debug")
    _configure_logging("debug")

    assert len(logger.handlers) == 1
    assert logger.level == logging.DEBUG
    assert logger.propagate is False


def test_main_exits_without_credentials(monkeypatch) -> None:
    monkeypatch.delenv("COOKUNITY_EMAIL", raising=False)
    monkeypatch.delenv("COOKUNITY_PASSWORD", raising=False)

    with pytest.raises(SystemExit) as exc_info:
        cookunity_mcp.main()

    assert exc_info.value.code == 1
