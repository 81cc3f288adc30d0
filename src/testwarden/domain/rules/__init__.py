"""Rule protocol and the shared base class for test-quality rules."""

from typing import TYPE_CHECKING, Protocol

from testwarden.domain.findings import Finding, Severity

__all__ = [
    "BaseRule",
    "Rule",
]

if TYPE_CHECKING:
    from testwarden.domain.model import Span, TestFile, TestUnit


# -----------------------------------------------------------------------------
# Rules are pure: given a test unit and the scope that owns it, return findings.
# They hold only configuration captured at construction, so a single instance
# is evaluated concurrently from many worker threads.
# -----------------------------------------------------------------------------


class Rule(Protocol):
    """Pluggable test-quality rule."""

    rule_id: str
    description: str

    def evaluate(self, test_file: "TestFile", unit: "TestUnit") -> list[Finding]:
        """Inspect one unit; the test_file gives access to shared fixture state."""
        ...


class BaseRule:
    """Convenience base: holds id, description and default severity."""

    rule_id: str = ""
    description: str = ""
    severity: Severity = Severity.WARN

    def evaluate(self, test_file: "TestFile", unit: "TestUnit") -> list[Finding]:
        raise NotImplementedError

    def finding(
        self,
        test_file: "TestFile",
        unit: "TestUnit",
        message: str,
        span: "Span | None" = None,
        detail: str = "",
        severity: Severity | None = None,
    ) -> Finding:
        return Finding.for_unit(
            rule_id=self.rule_id,
            severity=severity or self.severity,
            test_file=test_file,
            unit=unit,
            message=message,
            span=span,
            detail=detail,
        )
