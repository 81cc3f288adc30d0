"""Exception expectations and assertion messages."""

from testwarden.domain.findings import Finding, Severity
from testwarden.domain.model import ActionKind, ExpectationStyle, TestFile, TestUnit
from testwarden.domain.rules import BaseRule


class ExpectedExceptionRule(BaseRule):
    rule_id = "EXPECTED_EXCEPTION"
    description = "Exception expectation written as try/except instead of pytest.raises/assertRaises."
    severity = Severity.WARN

    def evaluate(self, test_file: TestFile, unit: TestUnit) -> list[Finding]:
        return [
            self.finding(
                test_file,
                unit,
                f"Manual try/except expectation of {action.target or 'an exception'};"
                " use pytest.raises or assertRaises",
                span=action.span,
                detail=action.target,
            )
            for action in unit.walk()
            if action.kind is ActionKind.EXPECTATION and action.style is ExpectationStyle.MANUAL
        ]


class DescriptiveMessagesRule(BaseRule):
    """Bare boolean assertions fail with 'False is not true' and nothing else."""

    rule_id = "DESCRIPTIVE_MESSAGES"
    description = "Boolean assertion has no failure message."
    severity = Severity.INFO

    def evaluate(self, test_file: TestFile, unit: TestUnit) -> list[Finding]:
        return [
            self.finding(
                test_file,
                unit,
                f"Boolean assertion '{action.text}' has no failure message",
                span=action.span,
                detail=action.text,
            )
            for action in unit.walk()
            if action.kind is ActionKind.ASSERTION and action.target == "boolean" and not action.has_message
        ]
