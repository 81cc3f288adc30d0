"""Unit tests for the rule registry and rule selection."""

import unittest

from testwarden.domain.config import ConfigurationLoader
from testwarden.domain.errors import ConfigurationError
from testwarden.domain.registry import RuleRegistry
from testwarden.domain.rules.first_principles import SelfValidatingRule

ALL_RULES = (
    "FAST",
    "INDEPENDENT",
    "REPEATABLE",
    "SELF_VALIDATING",
    "BEHAVIOR_NAMING",
    "NO_LOGIC_IN_TEST",
    "SETUP_HYGIENE",
    "MOCK_EXTERNAL",
    "EXPECTED_EXCEPTION",
    "GIVEN_WHEN_THEN",
    "IMPLEMENTATION_DETAILS",
    "DESCRIPTIVE_MESSAGES",
)


class TestRuleRegistry(unittest.TestCase):
    def setUp(self) -> None:
        self.registry = RuleRegistry.from_config(ConfigurationLoader())

    def test_from_config_registers_every_rule_in_order(self) -> None:
        self.assertEqual(self.registry.ids(), ALL_RULES)

    def test_duplicate_rule_ids_are_rejected(self) -> None:
        with self.assertRaises(ConfigurationError):
            RuleRegistry([SelfValidatingRule(), SelfValidatingRule()])

    def test_select_with_include_keeps_only_named_rules(self) -> None:
        selected = self.registry.select(["FAST", "INDEPENDENT"])
        self.assertEqual(selected.ids(), ("FAST", "INDEPENDENT"))

    def test_select_without_include_uses_defaults_minus_excluded(self) -> None:
        selected = self.registry.select(None, ["FAST"], defaults=["FAST", "REPEATABLE", "META"])
        self.assertEqual(selected.ids(), ("REPEATABLE",))

    def test_select_rejects_unknown_rule_id(self) -> None:
        with self.assertRaisesRegex(ConfigurationError, "unknown rule id 'SPEEDY'"):
            self.registry.select(["SPEEDY"])

    def test_select_rejects_rule_both_included_and_excluded(self) -> None:
        with self.assertRaisesRegex(ConfigurationError, "both selected and excluded: FAST"):
            self.registry.select(["FAST"], ["FAST"])

    def test_select_rejects_empty_selection(self) -> None:
        with self.assertRaisesRegex(ConfigurationError, "no rules selected"):
            self.registry.select([])

    def test_registry_is_read_only_mapping(self) -> None:
        self.assertIn("FAST", self.registry)
        self.assertEqual(len(self.registry), len(ALL_RULES))
        self.assertIsNone(self.registry.get("NOPE"))
