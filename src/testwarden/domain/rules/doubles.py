"""Test doubles: external collaborators are replaced, internals are left alone."""

from testwarden.domain.constants import TEST_DOUBLE_PREFIXES
from testwarden.domain.findings import Finding, Severity
from testwarden.domain.model import TestFile, TestUnit
from testwarden.domain.patterns import DottedNameMatcher
from testwarden.domain.rules import BaseRule


class MockExternalRule(BaseRule):
    rule_id = "MOCK_EXTERNAL"
    description = "Test instantiates a real external dependency instead of a test double."
    severity = Severity.ERROR

    def __init__(self, external_types: tuple[str, ...]) -> None:
        self._external_types = external_types

    def _is_double(self, short_name: str) -> bool:
        return short_name.startswith(TEST_DOUBLE_PREFIXES)

    def evaluate(self, test_file: TestFile, unit: TestUnit) -> list[Finding]:
        findings: list[Finding] = []
        for _action, call in unit.call_sites():
            if call.is_chained or not call.is_constructor or self._is_double(call.short_name):
                continue
            if not (
                DottedNameMatcher.matches_any(call.name, self._external_types)
                or DottedNameMatcher.matches_any(call.short_name, self._external_types)
            ):
                continue
            if DottedNameMatcher.is_substituted(call.name, unit.substitutions):
                continue
            findings.append(
                self.finding(
                    test_file,
                    unit,
                    f"Instantiates real external dependency '{call.name}'; inject a fake or mock instead",
                    span=call.span,
                    detail=call.name,
                )
            )
        return findings


class ImplementationDetailsRule(BaseRule):
    """Calls to private members of a collaborator couple the test to implementation."""

    rule_id = "IMPLEMENTATION_DETAILS"
    description = "Test calls private members of the object under test."
    severity = Severity.WARN

    @staticmethod
    def _is_private_call(short_name: str, receiver: str) -> bool:
        if not short_name.startswith("_") or short_name.startswith("__"):
            return False
        return bool(receiver) and receiver not in ("self", "cls", "super()")

    def evaluate(self, test_file: TestFile, unit: TestUnit) -> list[Finding]:
        findings: list[Finding] = []
        for _action, call in unit.call_sites():
            if not self._is_private_call(call.short_name, call.receiver):
                continue
            findings.append(
                self.finding(
                    test_file,
                    unit,
                    f"Calls private member '{call.name}'; test behaviour through the public API",
                    span=call.span,
                    detail=call.name,
                )
            )
        return findings
