"""Immutable rule registry: rule id -> rule. Built once at startup and passed in."""

from collections.abc import Iterable, Iterator, Sequence
from types import MappingProxyType

from testwarden.domain.config import ConfigurationLoader
from testwarden.domain.errors import ConfigurationError
from testwarden.domain.rules import Rule
from testwarden.domain.rules.doubles import ImplementationDetailsRule, MockExternalRule
from testwarden.domain.rules.expectations import DescriptiveMessagesRule, ExpectedExceptionRule
from testwarden.domain.rules.first_principles import (
    FastRule,
    IndependentRule,
    RepeatableRule,
    SelfValidatingRule,
)
from testwarden.domain.rules.fixtures import SetupHygieneRule
from testwarden.domain.rules.naming import BehaviorNamingRule, NamingLexicon
from testwarden.domain.rules.structure import GivenWhenThenRule, NoLogicInTestRule


class RuleRegistry:
    """Read-only mapping of rule ids to rules, in registration order."""

    def __init__(self, rules: Iterable[Rule]) -> None:
        by_id: dict[str, Rule] = {}
        for rule in rules:
            if rule.rule_id in by_id:
                raise ConfigurationError(f"duplicate rule id '{rule.rule_id}'")
            by_id[rule.rule_id] = rule
        self._rules = MappingProxyType(by_id)

    @classmethod
    def from_config(cls, config: ConfigurationLoader) -> "RuleRegistry":
        """Every rule testwarden knows, configured from [tool.testwarden]."""
        lexicon = NamingLexicon.from_tokens(
            config.action_verbs, config.outcome_tokens, config.condition_tokens)
        return cls(
            [
                FastRule(config.external_calls),
                IndependentRule(config.ordering_markers),
                RepeatableRule(config.nondeterministic_calls),
                SelfValidatingRule(),
                BehaviorNamingRule(lexicon, config.test_function_prefix),
                NoLogicInTestRule(),
                SetupHygieneRule(),
                MockExternalRule(config.external_types),
                ExpectedExceptionRule(),
                GivenWhenThenRule(),
                ImplementationDetailsRule(),
                DescriptiveMessagesRule(),
            ]
        )

    def __contains__(self, rule_id: object) -> bool:
        return rule_id in self._rules

    def __iter__(self) -> Iterator[Rule]:
        return iter(self._rules.values())

    def __len__(self) -> int:
        return len(self._rules)

    def get(self, rule_id: str) -> Rule | None:
        return self._rules.get(rule_id)

    def ids(self) -> tuple[str, ...]:
        return tuple(self._rules)

    def select(
        self,
        include: Sequence[str] | None,
        exclude: Sequence[str] = (),
        defaults: Sequence[str] | None = None,
    ) -> "RuleRegistry":
        """Narrow the registry; fail fast on unknown ids, conflicts and empty selections.

        include=None falls back to defaults (or every rule when defaults is None too).
        """
        for rule_id in [*(include or ()), *exclude]:
            if rule_id not in self._rules:
                known = ", ".join(self.ids())
                raise ConfigurationError(f"unknown rule id '{rule_id}' (known rules: {known})")
        conflicting = sorted(set(include or ()) & set(exclude))
        if conflicting:
            raise ConfigurationError(
                "rule(s) both selected and excluded: " + ", ".join(conflicting))

        if include is not None:
            chosen = set(include)
        elif defaults is not None:
            chosen = {rule_id for rule_id in defaults if rule_id in self._rules}
        else:
            chosen = set(self._rules)
        chosen -= set(exclude)
        if not chosen:
            raise ConfigurationError("no rules selected")
        return RuleRegistry(rule for rule_id, rule in self._rules.items() if rule_id in chosen)
