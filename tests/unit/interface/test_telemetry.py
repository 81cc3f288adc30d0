"""Unit tests for ProjectTelemetry and LoggingConfigurator."""

import logging
from unittest.mock import MagicMock

from testwarden.interface.telemetry import LOGGER_NAME, LoggingConfigurator, ProjectTelemetry


def make_telemetry(quiet: bool = False) -> ProjectTelemetry:
    telemetry = ProjectTelemetry("TESTWARDEN", "cyan", "Test quality scan online", quiet=quiet)
    telemetry.console = MagicMock()
    telemetry.logger = MagicMock()
    return telemetry


def test_handshake_prints_banner_line() -> None:
    telemetry = make_telemetry()
    telemetry.handshake()
    telemetry.console.print.assert_called_once_with(
        "[TESTWARDEN] Test quality scan online", fg="cyan", bold=True)


def test_step_is_logged_and_printed() -> None:
    telemetry = make_telemetry()
    telemetry.step("Analyzing 3 test file(s)")
    telemetry.logger.info.assert_called_once_with("Analyzing 3 test file(s)")
    telemetry.console.print.assert_called_once_with("Analyzing 3 test file(s)")


def test_quiet_mode_suppresses_progress_but_not_errors() -> None:
    telemetry = make_telemetry()
    telemetry.set_quiet(True)
    telemetry.handshake()
    telemetry.step("progress")
    telemetry.error("bad file")
    telemetry.console.print.assert_called_once()
    assert telemetry.console.print.call_args[0][0] == "error: bad file"
    telemetry.logger.error.assert_called_once_with("bad file")


def test_warning_and_debug() -> None:
    telemetry = make_telemetry()
    telemetry.warning("rule failed")
    telemetry.debug("details")
    assert telemetry.console.print.call_args[0][0] == "warning: rule failed"
    telemetry.logger.debug.assert_called_once_with("details")


def test_logging_configurator_toggles_debug_handler() -> None:
    logger = logging.getLogger(LOGGER_NAME)
    try:
        LoggingConfigurator.configure(verbose=True)
        assert logger.level == logging.DEBUG
        assert sum(1 for h in logger.handlers if getattr(h, "_testwarden_cli", False)) == 1
        LoggingConfigurator.configure(verbose=True)
        assert sum(1 for h in logger.handlers if getattr(h, "_testwarden_cli", False)) == 1
    finally:
        LoggingConfigurator.configure(verbose=False)
    assert logger.level == logging.WARNING
    assert not any(getattr(h, "_testwarden_cli", False) for h in logger.handlers)
