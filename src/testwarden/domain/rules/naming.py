"""Behavior-driven test naming."""

import re
from dataclasses import dataclass

from testwarden.domain.findings import Finding, Severity
from testwarden.domain.model import TestFile, TestUnit
from testwarden.domain.rules import BaseRule

_TOKEN_RE = re.compile(r"[A-Z]+(?=[A-Z][a-z])|[A-Z]?[a-z]+|[A-Z]+|\d+")

ACTION = "action verb"
OUTCOME = "outcome qualifier"
CONDITION = "condition clause"


@dataclass(frozen=True)
class NamingLexicon:
    action_verbs: frozenset[str]
    outcome_tokens: frozenset[str]
    condition_tokens: frozenset[str]

    @classmethod
    def from_tokens(
        cls,
        action_verbs: tuple[str, ...],
        outcome_tokens: tuple[str, ...],
        condition_tokens: tuple[str, ...],
    ) -> "NamingLexicon":
        return cls(
            frozenset(t.lower() for t in action_verbs),
            frozenset(t.lower() for t in outcome_tokens),
            frozenset(t.lower() for t in condition_tokens),
        )


class NameTokenizer:
    """Splits snake_case and camelCase test names into lowercase tokens."""

    @staticmethod
    def tokenize(name: str, prefix: str = "test") -> list[str]:
        tokens = [t.lower() for part in name.split("_") for t in _TOKEN_RE.findall(part)]
        if tokens and prefix and tokens[0] == prefix.lower():
            tokens = tokens[1:]
        return tokens

    @staticmethod
    def stems(token: str) -> set[str]:
        """Candidate base verbs for an inflected token (validation -> validate)."""
        candidates = {token}
        if token.endswith("ation") and len(token) > 6:
            candidates.add(token[:-5] + "ate")
            candidates.add(token[:-5] + "e")
            candidates.add(token[:-5])
        if token.endswith("ion") and len(token) > 4:
            candidates.add(token[:-3])
            candidates.add(token[:-3] + "e")
        if token.endswith("ing") and len(token) > 4:
            candidates.add(token[:-3])
            candidates.add(token[:-3] + "e")
            if len(token) > 5 and token[-4] == token[-5]:
                candidates.add(token[:-4])
        if token.endswith("ment") and len(token) > 5:
            candidates.add(token[:-4])
        if token.endswith("ed") and len(token) > 3:
            candidates.add(token[:-2])
            candidates.add(token[:-1])
        return candidates

    @staticmethod
    def third_person_base(token: str) -> set[str]:
        """Base verbs for a third-person form (returns -> return, processes -> process)."""
        bases: set[str] = set()
        if token.endswith("ies") and len(token) > 4:
            bases.add(token[:-3] + "y")
        if token.endswith("es") and len(token) > 3:
            bases.add(token[:-2])
        if token.endswith("s") and not token.endswith("ss") and len(token) > 2:
            bases.add(token[:-1])
        return bases


class BehaviorNamingRule(BaseRule):
    """Names should state an action, an expected outcome and/or the condition under test."""

    rule_id = "BEHAVIOR_NAMING"
    description = "Test name does not describe behaviour (action, outcome, condition)."
    severity = Severity.WARN

    def __init__(self, lexicon: NamingLexicon, prefix: str = "test") -> None:
        self._lexicon = lexicon
        self._prefix = prefix

    def categorize(self, name: str) -> set[str]:
        """Categories present in the name; each token counts towards at most one category."""
        found: set[str] = set()
        for token in NameTokenizer.tokenize(name, self._prefix):
            if token in self._lexicon.outcome_tokens:
                found.add(OUTCOME)
            elif token in self._lexicon.condition_tokens:
                found.add(CONDITION)
            elif NameTokenizer.stems(token) & self._lexicon.action_verbs:
                found.add(ACTION)
            elif NameTokenizer.third_person_base(token) & self._lexicon.action_verbs:
                # "deduct_reduces_balance": the second verb states the outcome.
                found.add(OUTCOME if ACTION in found else ACTION)
        return found

    def evaluate(self, test_file: TestFile, unit: TestUnit) -> list[Finding]:
        present = self.categorize(unit.short_name)
        if len(present) >= 2:
            return []
        missing = [c for c in (ACTION, OUTCOME, CONDITION) if c not in present]
        return [
            self.finding(
                test_file,
                unit,
                f"Test name '{unit.short_name}' does not describe behaviour: missing "
                + " and ".join(missing),
                detail=unit.short_name,
            )
        ]
