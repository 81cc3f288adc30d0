"""Ports implemented by Infrastructure and Interface; Domain and Use Cases depend only on these."""

from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    import astroid

    from testwarden.domain.findings import Report
    from testwarden.domain.model import TestFile
    from testwarden.domain.registry_types import RuleRegistryEntry


class TelemetryPort(Protocol):
    """Protocol for telemetry/UI updates."""

    def step(self, message: str) -> None: ...
    def error(self, message: str) -> None: ...
    def warning(self, message: str) -> None: ...
    def debug(self, message: str) -> None: ...
    def handshake(self) -> None: ...
    def set_quiet(self, quiet: bool) -> None: ...


class FileSystemProtocol(Protocol):
    """Protocol for filesystem operations - abstracts Path usage."""

    def discover_test_files(
        self,
        paths: list[str],
        patterns: tuple[str, ...],
        exclude: tuple[str, ...] = (),
    ) -> tuple[list[str], list[tuple[str, str]]]:
        """Expand input paths into test files; returns (files, [(missing_path, reason)])."""
        ...

    def read_text(self, path: str) -> str:
        """Read a whole file as UTF-8 text."""
        ...


class AstroidProtocol(Protocol):
    """Protocol for parsing source text into astroid modules."""

    def parse_source(self, source: str, path: str) -> "astroid.nodes.Module": ...


class SourceModelBuilderProtocol(Protocol):
    def build(self, source: str, path: str) -> "TestFile": ...
    def build_from_module(self, module: "astroid.nodes.Module", path: str) -> "TestFile": ...


class RuleCatalogProtocol(Protocol):
    def get_registry(self) -> dict[str, "RuleRegistryEntry"]: ...
    def get_entry(self, rule_id: str) -> "RuleRegistryEntry | None": ...
    def default_rule_ids(self) -> tuple[str, ...]: ...
    def get_title(self, rule_id: str) -> str: ...
    def get_guidance(self, rule_id: str) -> str: ...


class ReportEmitterProtocol(Protocol):
    def emit(self, report: "Report", fmt: str) -> str: ...
    def parse(self, text: str) -> "Report": ...
