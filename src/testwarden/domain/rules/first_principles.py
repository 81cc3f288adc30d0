"""FIRST principles: Fast, Independent, Repeatable, Self-validating."""

from testwarden.domain.constants import (
    DETERMINISTIC_CALLS,
    ISOLATED_FILESYSTEM_FIXTURES,
    SEEDABLE_FACTORIES,
)
from testwarden.domain.findings import Finding, Severity
from testwarden.domain.model import AccessKind, FieldAccess, TestFile, TestUnit
from testwarden.domain.patterns import DottedNameMatcher
from testwarden.domain.rules import BaseRule


class FastRule(BaseRule):
    """Calls into slow external resources (network, database, filesystem, sleeps) without a double."""

    rule_id = "FAST"
    description = "Test calls an external resource that is not replaced by a test double."
    severity = Severity.WARN

    def __init__(self, external_calls: tuple[str, ...]) -> None:
        self._external_calls = external_calls

    def evaluate(self, test_file: TestFile, unit: TestUnit) -> list[Finding]:
        findings: list[Finding] = []
        for _action, call in unit.call_sites():
            if call.is_chained:
                continue
            if not DottedNameMatcher.matches_any(call.name, self._external_calls):
                continue
            if DottedNameMatcher.is_substituted(call.name, unit.substitutions):
                continue
            if call.mentions(ISOLATED_FILESYSTEM_FIXTURES):
                continue
            findings.append(
                self.finding(
                    test_file,
                    unit,
                    f"Call to external resource '{call.name}' is not replaced by a test double",
                    span=call.span,
                    detail=call.name,
                )
            )
        return findings


class IndependentRule(BaseRule):
    """Shared state written by one test and read by a test that runs after it."""

    rule_id = "INDEPENDENT"
    description = "Test depends on shared state written by another test, or on execution order."
    severity = Severity.ERROR

    def __init__(self, ordering_markers: tuple[str, ...]) -> None:
        self._ordering_markers = ordering_markers

    def evaluate(self, test_file: TestFile, unit: TestUnit) -> list[Finding]:
        findings: list[Finding] = []
        index = test_file.field_index
        first_reads: dict[str, FieldAccess] = {}
        for access in unit.accesses:
            if access.kind is AccessKind.READ and access.field not in first_reads:
                first_reads[access.field] = access

        for name in sorted(first_reads):
            earlier_writes = sorted(
                (w for w in index.writes(name) if w.unit != unit.name and w.unit_order < unit.order),
                key=lambda w: (w.unit_order, w.span.start),
            )
            if not earlier_writes:
                continue
            writer = earlier_writes[0]
            read = first_reads[name]
            findings.append(
                self.finding(
                    test_file,
                    unit,
                    f"Reads shared field '{name}' written by '{writer.unit}' (line {writer.span.start});"
                    " the test passes only when run after it",
                    span=read.span,
                    detail=name,
                )
            )

        for marker in unit.markers:
            if DottedNameMatcher.matches_any(marker, self._ordering_markers):
                findings.append(
                    self.finding(
                        test_file,
                        unit,
                        f"Declares execution-order marker '{marker}'",
                        detail=marker,
                        severity=Severity.WARN,
                    )
                )
        return findings


class RepeatableRule(BaseRule):
    """Clock, randomness, environment and live-network reads without a seam."""

    rule_id = "REPEATABLE"
    description = "Test reads a non-deterministic source without patching, seeding or freezing it."
    severity = Severity.ERROR

    def __init__(self, nondeterministic_calls: tuple[str, ...]) -> None:
        self._nondeterministic_calls = nondeterministic_calls

    def _is_deterministic(self, name: str, arguments: tuple[str, ...]) -> bool:
        if name in DETERMINISTIC_CALLS:
            return True
        return name in SEEDABLE_FACTORIES and bool(arguments)

    def evaluate(self, test_file: TestFile, unit: TestUnit) -> list[Finding]:
        findings: list[Finding] = []
        for _action, call in unit.call_sites():
            if call.is_chained:
                continue
            if not DottedNameMatcher.matches_any(call.name, self._nondeterministic_calls):
                continue
            if self._is_deterministic(call.name, call.arguments):
                continue
            if DottedNameMatcher.is_substituted(call.name, unit.substitutions):
                continue
            findings.append(
                self.finding(
                    test_file,
                    unit,
                    f"Non-deterministic source '{call.name}' is used without a patch, seed or frozen clock",
                    span=call.span,
                    detail=call.name,
                )
            )
        return findings


class SelfValidatingRule(BaseRule):
    rule_id = "SELF_VALIDATING"
    description = "Test has no assertion or exception expectation."
    severity = Severity.ERROR

    def evaluate(self, test_file: TestFile, unit: TestUnit) -> list[Finding]:
        if unit.verifications():
            return []
        return [
            self.finding(
                test_file,
                unit,
                "Test contains no assertion or expectation; it cannot fail on wrong behaviour",
            )
        ]
