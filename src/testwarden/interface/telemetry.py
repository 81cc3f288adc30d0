"""Telemetry: styled progress lines on stderr, mirrored to the `testwarden` logger."""

import logging

import typer

LOGGER_NAME = "testwarden"


class StderrConsole:
    """Writes styled lines to stderr so stdout carries only the report."""

    def print(self, message: str, fg: str | None = None, bold: bool = False) -> None:
        typer.secho(message, fg=fg, bold=bold, err=True)


class ProjectTelemetry:
    """TelemetryPort implementation used by the CLI."""

    def __init__(self, project_name: str, color: str, welcome_msg: str, quiet: bool = False) -> None:
        self.project_name = project_name
        self.color = color
        self.welcome_msg = welcome_msg
        self.quiet = quiet
        self.console = StderrConsole()
        self.logger = logging.getLogger(LOGGER_NAME)

    def set_quiet(self, quiet: bool) -> None:
        """Quiet mode drops progress lines; warnings and errors still reach stderr."""
        self.quiet = quiet

    def handshake(self) -> None:
        self.logger.info("%s: %s", self.project_name, self.welcome_msg)
        if not self.quiet:
            self.console.print(f"[{self.project_name}] {self.welcome_msg}", fg=self.color, bold=True)

    def step(self, message: str) -> None:
        self.logger.info(message)
        if not self.quiet:
            self.console.print(message)

    def warning(self, message: str) -> None:
        self.logger.warning(message)
        self.console.print(f"warning: {message}", fg=typer.colors.YELLOW)

    def error(self, message: str) -> None:
        self.logger.error(message)
        self.console.print(f"error: {message}", fg=typer.colors.RED, bold=True)

    def debug(self, message: str) -> None:
        self.logger.debug(message)


class LoggingConfigurator:
    """Attach a stderr handler to the `testwarden` logger."""

    FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"

    @staticmethod
    def configure(verbose: bool) -> None:
        """--verbose logs DEBUG to stderr; otherwise the package NullHandler keeps logging silent."""
        logger = logging.getLogger(LOGGER_NAME)
        for handler in list(logger.handlers):
            if getattr(handler, "_testwarden_cli", False):
                logger.removeHandler(handler)
        if not verbose:
            logger.setLevel(logging.WARNING)
            return
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LoggingConfigurator.FORMAT))
        handler._testwarden_cli = True  # type: ignore[attr-defined]
        logger.addHandler(handler)
        logger.setLevel(logging.DEBUG)
