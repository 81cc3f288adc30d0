"""Setup hygiene: once-only fixtures must hold immutable data."""

from testwarden.domain.findings import Finding, Severity
from testwarden.domain.model import AccessKind, FieldOrigin, TestFile, TestUnit
from testwarden.domain.rules import BaseRule


class SetupHygieneRule(BaseRule):
    """Mutable state built once (setUpClass, setup_class, scoped fixtures) and mutated by a test."""

    rule_id = "SETUP_HYGIENE"
    description = "Test mutates state constructed once and shared with other tests."
    severity = Severity.ERROR

    def evaluate(self, test_file: TestFile, unit: TestUnit) -> list[Finding]:
        findings: list[Finding] = []
        reported: set[str] = set()
        for access in unit.accesses:
            if access.kind is not AccessKind.WRITE or access.field in reported:
                continue
            field = test_file.get_field(access.field)
            if field is None or field.origin is not FieldOrigin.ONCE_HOOK or not field.mutable:
                continue
            others = [u for u in test_file.field_index.referencing_units(field.name) if u != unit.name]
            if not others:
                continue
            reported.add(field.name)
            findings.append(
                self.finding(
                    test_file,
                    unit,
                    f"Mutates '{field.name}', built once in '{field.hook}' and shared with "
                    f"{len(others)} other test(s); create it per test instead",
                    span=access.span,
                    detail=field.name,
                )
            )
        return findings
