"""Body structure: no control flow, one Given-When-Then cycle."""

from testwarden.domain.findings import Finding, Severity
from testwarden.domain.model import Action, TestFile, TestUnit
from testwarden.domain.rules import BaseRule


class NoLogicInTestRule(BaseRule):
    rule_id = "NO_LOGIC_IN_TEST"
    description = "Test body contains loops or conditionals."
    severity = Severity.WARN

    def evaluate(self, test_file: TestFile, unit: TestUnit) -> list[Finding]:
        constructs = [action for action in unit.walk() if action.is_control_flow]
        if not constructs:
            return []
        first = constructs[0]
        listed = ", ".join(f"{c.target} (line {c.span.start})" for c in constructs)
        return [
            self.finding(
                test_file,
                unit,
                f"Test contains control flow: {listed}; use parametrization or separate tests",
                span=first.span,
                detail=first.target,
            )
        ]


class GivenWhenThenRule(BaseRule):
    """Arrange, act, assert: one action phase followed by one verification phase."""

    rule_id = "GIVEN_WHEN_THEN"
    description = "Test does not follow a single Given-When-Then cycle."
    severity = Severity.WARN

    @staticmethod
    def _phases(actions: tuple[Action, ...]) -> list[tuple[bool, list[Action]]]:
        """Collapse top-level actions into alternating (is_verification, actions) runs.

        Statements that neither verify nor call anything (plain rebinding) do not
        open a new phase.
        """
        phases: list[tuple[bool, list[Action]]] = []
        for action in actions:
            verifying = action.contains_verification()
            if phases and not verifying and not action.contains_calls():
                phases[-1][1].append(action)
            elif phases and phases[-1][0] == verifying:
                phases[-1][1].append(action)
            else:
                phases.append((verifying, [action]))
        return phases

    def evaluate(self, test_file: TestFile, unit: TestUnit) -> list[Finding]:
        if not unit.verifications():
            return []
        if not any(action.calls for action in unit.walk()):
            return [
                self.finding(
                    test_file,
                    unit,
                    "No action phase: the test verifies state without exercising any behaviour",
                )
            ]

        findings: list[Finding] = []
        phases = self._phases(unit.actions)
        trailing_verifying, trailing = phases[-1]
        if not trailing_verifying and any(a.contains_calls() for a in trailing):
            findings.append(
                self.finding(
                    test_file,
                    unit,
                    "Actions follow the final verification; the Then phase is not last",
                    span=trailing[0].span,
                    detail=trailing[0].text,
                )
            )

        cycles = [actions for verifying, actions in phases if verifying]
        if len(cycles) > 1:
            second = cycles[1][0]
            findings.append(
                self.finding(
                    test_file,
                    unit,
                    f"Test interleaves {len(cycles)} action/verification cycles; split it into focused tests",
                    span=second.span,
                    detail=second.text,
                    severity=Severity.INFO,
                )
            )
        return findings
