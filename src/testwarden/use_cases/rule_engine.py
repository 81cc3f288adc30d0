"""Use Case: Rule Engine - evaluate every selected rule against each test unit."""

import logging

from testwarden.domain.errors import RuleExecutionError
from testwarden.domain.findings import META_RULE_ID, Finding, Severity
from testwarden.domain.model import TestFile, TestUnit
from testwarden.domain.protocols import TelemetryPort
from testwarden.domain.registry import RuleRegistry

logger = logging.getLogger(__name__)


class RuleEngine:
    """Runs a fixed, read-only rule registry. Safe to call from many threads at once."""

    def __init__(self, registry: RuleRegistry, telemetry: TelemetryPort | None = None) -> None:
        self.registry = registry
        self.telemetry = telemetry

    def evaluate(self, test_file: TestFile) -> list[Finding]:
        """Findings for every unit in the file and its nested test classes."""
        findings: list[Finding] = []
        for scope in test_file.iter_scopes():
            for unit in scope.units:
                findings.extend(self.evaluate_unit(scope, unit))
        return findings

    def evaluate_unit(self, test_file: TestFile, unit: TestUnit) -> list[Finding]:
        """Apply each rule to one unit. A rule that raises becomes a META finding."""
        findings: list[Finding] = []
        for rule in self.registry:
            try:
                findings.extend(rule.evaluate(test_file, unit))
            except Exception as exc:  # noqa: BLE001
                findings.append(self._meta_finding(test_file, unit, RuleExecutionError(rule.rule_id, unit.name, exc)))
        return findings

    def _meta_finding(self, test_file: TestFile, unit: TestUnit, error: RuleExecutionError) -> Finding:
        logger.debug("%s: %s", test_file.path, error, exc_info=error.cause)
        if self.telemetry is not None:
            self.telemetry.warning(f"{test_file.path}: {error}")
        else:
            logger.warning("%s: %s", test_file.path, error)
        return Finding.for_unit(
            rule_id=META_RULE_ID,
            severity=Severity.WARN,
            test_file=test_file,
            unit=unit,
            message=f"rule execution error: {error}",
            detail=error.rule_id,
        )
