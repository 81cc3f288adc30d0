"""CLI entry points for testwarden - Thin Controller using Typer."""

import json
import os
import sys
from dataclasses import dataclass
from pathlib import Path

import typer

from testwarden.domain.config import ConfigurationLoader
from testwarden.domain.constants import TESTWARDEN_BANNER
from testwarden.domain.errors import AnalysisCancelled, ConfigurationError
from testwarden.domain.findings import FailOn
from testwarden.domain.protocols import (
    FileSystemProtocol,
    ReportEmitterProtocol,
    RuleCatalogProtocol,
    SourceModelBuilderProtocol,
    TelemetryPort,
)
from testwarden.domain.registry import RuleRegistry
from testwarden.interface.telemetry import LoggingConfigurator
from testwarden.use_cases.analyze_tests import AnalyzeTestsUseCase, CancellationToken
from testwarden.use_cases.rule_engine import RuleEngine

EXIT_USAGE = 2
EXIT_INTERRUPTED = 130
_FORMATS = ("text", "json", "sarif")


@dataclass(frozen=True)
class CLIDependencies:
    """Explicit dependencies for the CLI. All dependencies injected at composition root."""

    config_loader: ConfigurationLoader
    telemetry: TelemetryPort
    filesystem: FileSystemProtocol
    model_builder: SourceModelBuilderProtocol
    rule_registry: RuleRegistry
    rule_catalog: RuleCatalogProtocol
    report_emitter: ReportEmitterProtocol


class CLIAppFactory:
    """Creates the Typer app."""

    @staticmethod
    def split_ids(raw: str | None) -> list[str] | None:
        """'FAST, independent' -> ['FAST', 'INDEPENDENT']; None stays None."""
        if raw is None:
            return None
        return [part.strip().upper() for part in raw.split(",") if part.strip()]

    @staticmethod
    def resolve_fail_on(raw: str) -> FailOn:
        try:
            return FailOn(raw.lower())
        except ValueError:
            choices = ", ".join(item.value for item in FailOn)
            raise ConfigurationError(f"--fail-on must be one of {choices}, got '{raw}'") from None

    @staticmethod
    def resolve_format(raw: str) -> str:
        fmt = raw.lower()
        if fmt not in _FORMATS:
            raise ConfigurationError(f"--format must be one of {', '.join(_FORMATS)}, got '{raw}'")
        return fmt

    @staticmethod
    def select_rules(
        deps: CLIDependencies, rules: str | None, exclude_rules: str | None
    ) -> RuleRegistry:
        """CLI flags override [tool.testwarden]; excluded ids from both sources are dropped."""
        config = deps.config_loader
        include = CLIAppFactory.split_ids(rules)
        if include is None and config.rules is not None:
            include = [rule_id.upper() for rule_id in config.rules]
        exclude = [rule_id.upper() for rule_id in config.exclude_rules]
        exclude.extend(CLIAppFactory.split_ids(exclude_rules) or [])
        return deps.rule_registry.select(
            include, tuple(dict.fromkeys(exclude)), defaults=deps.rule_catalog.default_rule_ids())

    @staticmethod
    def create_app(deps: CLIDependencies) -> typer.Typer:
        """Create the Typer app with explicitly injected dependencies. No Service Locator."""
        app = typer.Typer(
            name="testwarden",
            help="testwarden: static test-quality analysis. Run 'testwarden analyze tests/' to audit a test suite.",
            add_completion=False,
        )

        def _session_start(quiet: bool, verbose: bool) -> None:
            """Configure logging, then banner and handshake on stderr (skipped with --quiet)."""
            LoggingConfigurator.configure(verbose)
            deps.telemetry.set_quiet(quiet)
            if not quiet:
                deps.telemetry.step(TESTWARDEN_BANNER)
            deps.telemetry.handshake()

        @app.command()
        def analyze(
            paths: list[Path] = typer.Argument(..., help="Test files or directories to analyze"),  # noqa: B008
            output_format: str | None = typer.Option(
                None, "--format", "-f", help="Report format: text, json or sarif"),
            rules: str | None = typer.Option(
                None, "--rules", help="Comma-separated rule ids to run (default: catalog defaults)"),
            exclude_rules: str | None = typer.Option(
                None, "--exclude-rules", help="Comma-separated rule ids to skip"),
            fail_on: str | None = typer.Option(
                None, "--fail-on", help="Exit 1 on findings at or above: error, warn or none"),
            jobs: int | None = typer.Option(
                None, "--jobs", "-j", help="Worker threads (default: CPU count)"),
            quiet: bool = typer.Option(False, "--quiet", "-q", help="Suppress progress output"),
            verbose: bool = typer.Option(False, "--verbose", "-v", help="Log debug details to stderr"),
        ) -> None:
            """Analyze test files and print a report; the exit code reflects --fail-on."""
            _session_start(quiet, verbose)
            config = deps.config_loader
            try:
                fmt = CLIAppFactory.resolve_format(output_format or config.output_format)
                threshold = CLIAppFactory.resolve_fail_on(fail_on or config.fail_on)
                registry = CLIAppFactory.select_rules(deps, rules, exclude_rules)
                workers = jobs if jobs is not None else (config.jobs or os.cpu_count() or 1)
                if workers < 1:
                    raise ConfigurationError(f"--jobs must be a positive integer, got {workers}")
            except ConfigurationError as exc:
                deps.telemetry.error(str(exc))
                sys.exit(EXIT_USAGE)

            deps.telemetry.debug(f"Rules: {', '.join(registry.ids())}")
            use_case = AnalyzeTestsUseCase(
                filesystem=deps.filesystem,
                model_builder=deps.model_builder,
                engine=RuleEngine(registry, deps.telemetry),
                telemetry=deps.telemetry,
                jobs=workers,
            )
            token = CancellationToken()
            try:
                report = use_case.execute(
                    [str(path) for path in paths],
                    config.test_file_patterns,
                    config.exclude_paths,
                    cancellation=token,
                )
            except (KeyboardInterrupt, AnalysisCancelled):
                token.cancel()
                deps.telemetry.error("analysis cancelled; no report produced")
                sys.exit(EXIT_INTERRUPTED)

            typer.echo(deps.report_emitter.emit(report, fmt), nl=False)
            summary = report.summary()
            deps.telemetry.step(
                f"{summary['errors']} error(s), {summary['warnings']} warning(s), "
                f"{summary['infos']} info, {summary['diagnostics']} unreadable file(s)")
            sys.exit(report.exit_code(threshold))

        @app.command("rules")
        def list_rules(
            output_format: str = typer.Option("text", "--format", "-f", help="Listing format: text or json"),
        ) -> None:
            """List every known rule with its default severity and whether it runs by default."""
            defaults = set(deps.rule_catalog.default_rule_ids())
            rows = []
            for rule in deps.rule_registry:
                entry = deps.rule_catalog.get_entry(rule.rule_id) or {}
                rows.append(
                    {
                        "id": rule.rule_id,
                        "severity": str(entry.get("default_severity", "")),
                        "enabled": rule.rule_id in defaults,
                        "title": deps.rule_catalog.get_title(rule.rule_id),
                        "practice": str(entry.get("practice", "")),
                        "description": rule.description,
                    }
                )
            if output_format.lower() == "json":
                typer.echo(json.dumps(rows, indent=2))
                return
            if output_format.lower() != "text":
                deps.telemetry.error(f"--format must be text or json, got '{output_format}'")
                sys.exit(EXIT_USAGE)
            for row in rows:
                marker = "*" if row["enabled"] else " "
                typer.echo(f"{marker} {row['id']:<24} {row['severity']:<6} {row['description']}")

        return app
