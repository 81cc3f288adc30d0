"""Findings and the aggregated report."""

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from testwarden.domain.model import Span, TestFile, TestUnit

META_RULE_ID = "META"


class Severity(str, Enum):
    INFO = "INFO"
    WARN = "WARN"
    ERROR = "ERROR"

    @property
    def rank(self) -> int:
        return {"INFO": 0, "WARN": 1, "ERROR": 2}[self.value]


class FailOn(str, Enum):
    """Exit-code threshold accepted by the CLI."""

    ERROR = "error"
    WARN = "warn"
    NONE = "none"

    @property
    def threshold(self) -> Severity | None:
        if self is FailOn.ERROR:
            return Severity.ERROR
        if self is FailOn.WARN:
            return Severity.WARN
        return None


@dataclass(frozen=True)
class Evidence:
    start_line: int
    end_line: int
    detail: str = ""

    def to_dict(self) -> dict[str, object]:
        return {"start_line": self.start_line, "end_line": self.end_line, "detail": self.detail}


@dataclass(frozen=True)
class Finding:
    """One violation of one rule by one test unit."""

    rule_id: str
    severity: Severity
    path: str
    unit: str
    unit_line: int
    message: str
    evidence: Evidence

    @classmethod
    def for_unit(
        cls,
        rule_id: str,
        severity: Severity,
        test_file: "TestFile",
        unit: "TestUnit",
        message: str,
        span: "Span | None" = None,
        detail: str = "",
    ) -> "Finding":
        """Build a finding located at span (defaults to the whole unit)."""
        location = span or unit.span
        return cls(
            rule_id=rule_id,
            severity=severity,
            path=test_file.path,
            unit=unit.name,
            unit_line=unit.span.start,
            message=message,
            evidence=Evidence(location.start, location.end, detail),
        )

    @property
    def dedupe_key(self) -> tuple[str, str, str, Evidence]:
        return (self.rule_id, self.path, self.unit, self.evidence)

    @property
    def sort_key(self) -> tuple[int, str, int, int, str, str]:
        return (
            -self.severity.rank,
            self.rule_id,
            self.evidence.start_line,
            self.evidence.end_line,
            self.evidence.detail,
            self.message,
        )

    def to_dict(self) -> dict[str, object]:
        return {
            "rule_id": self.rule_id,
            "severity": self.severity.value,
            "message": self.message,
            "evidence": self.evidence.to_dict(),
        }


@dataclass(frozen=True)
class UnitReport:
    name: str
    line: int
    findings: tuple[Finding, ...]

    def to_dict(self) -> dict[str, object]:
        return {
            "name": self.name,
            "line": self.line,
            "findings": [finding.to_dict() for finding in self.findings],
        }


@dataclass(frozen=True)
class FileReport:
    path: str
    units: tuple[UnitReport, ...]

    def to_dict(self) -> dict[str, object]:
        return {"path": self.path, "units": [unit.to_dict() for unit in self.units]}


@dataclass(frozen=True)
class Diagnostic:
    """A per-file problem that prevented analysis (ParseError, IOError)."""

    path: str
    kind: str
    message: str

    def to_dict(self) -> dict[str, str]:
        return {"path": self.path, "kind": self.kind, "message": self.message}


@dataclass(frozen=True)
class Report:
    files: tuple[FileReport, ...] = ()
    diagnostics: tuple[Diagnostic, ...] = ()
    files_analyzed: int = 0

    def findings(self) -> list[Finding]:
        return [
            finding
            for file_report in self.files
            for unit in file_report.units
            for finding in unit.findings
        ]

    def count(self, severity: Severity) -> int:
        return sum(1 for finding in self.findings() if finding.severity is severity)

    def count_at_or_above(self, severity: Severity) -> int:
        return sum(1 for finding in self.findings() if finding.severity.rank >= severity.rank)

    def summary(self) -> dict[str, int]:
        return {
            "files_analyzed": self.files_analyzed,
            "findings": len(self.findings()),
            "errors": self.count(Severity.ERROR),
            "warnings": self.count(Severity.WARN),
            "infos": self.count(Severity.INFO),
            "diagnostics": len(self.diagnostics),
        }

    def exit_code(self, fail_on: FailOn) -> int:
        """0 when clean against the threshold, 1 on findings at or above it, 2 on unreadable input."""
        if self.diagnostics:
            return 2
        threshold = fail_on.threshold
        if threshold is not None and self.count_at_or_above(threshold):
            return 1
        return 0

    def to_dict(self) -> dict[str, object]:
        return {
            "summary": self.summary(),
            "files": [file_report.to_dict() for file_report in self.files],
            "diagnostics": [diagnostic.to_dict() for diagnostic in self.diagnostics],
        }
