"""Unit tests for SETUP_HYGIENE (W9707)."""

import unittest

from testwarden.domain.findings import Severity
from testwarden.domain.rules.fixtures import SetupHygieneRule
from tests.model_test_utils import run_rule


class TestSetupHygieneRule(unittest.TestCase):
    def setUp(self) -> None:
        self.rule = SetupHygieneRule()

    def test_flags_mutation_of_set_up_class_state(self) -> None:
        """Test a dict built in setUpClass and popped by one test."""
        findings = run_rule(self.rule, """
            import unittest

            class TestInventory(unittest.TestCase):
                @classmethod
                def setUpClass(cls):
                    cls.stock = {"apple": 3}

                def test_remove_item_reduces_stock_when_available(self):
                    self.stock.pop("apple")
                    self.assertNotIn("apple", self.stock)

                def test_stock_contains_apple_when_loaded(self):
                    self.assertIn("apple", self.stock)
        """)
        self.assertEqual(len(findings), 1)
        finding = findings[0]
        self.assertEqual(finding.unit, "TestInventory.test_remove_item_reduces_stock_when_available")
        self.assertEqual(finding.severity, Severity.ERROR)
        self.assertIn("setUpClass", finding.message)
        self.assertIn("1 other test(s)", finding.message)

    def test_immutable_once_state_is_allowed(self) -> None:
        findings = run_rule(self.rule, """
            class TestLimits:
                @classmethod
                def setup_class(cls):
                    cls.limits = (1, 2)

                def test_first_limit_is_one_when_loaded(self):
                    assert self.limits[0] == 1

                def test_second_limit_is_two_when_loaded(self):
                    assert self.limits[1] == 2
        """)
        self.assertEqual(findings, [])

    def test_flags_mutation_of_module_scoped_fixture(self) -> None:
        findings = run_rule(self.rule, """
            import pytest

            @pytest.fixture(scope="module")
            def registry():
                return {}

            def test_register_user_adds_entry_when_new(registry):
                registry["ada"] = 1
                assert "ada" in registry

            def test_registry_is_empty_when_fresh(registry):
                assert registry == {}
        """)
        self.assertEqual([f.unit for f in findings], ["test_register_user_adds_entry_when_new"])
        self.assertEqual(findings[0].evidence.detail, "registry")

    def test_function_scoped_fixture_is_fresh_per_test(self) -> None:
        findings = run_rule(self.rule, """
            import pytest

            @pytest.fixture
            def registry():
                return {}

            def test_register_user_adds_entry_when_new(registry):
                registry["ada"] = 1
                assert "ada" in registry

            def test_registry_is_empty_when_fresh(registry):
                assert registry == {}
        """)
        self.assertEqual(findings, [])

    def test_mutation_without_other_readers_is_allowed(self) -> None:
        findings = run_rule(self.rule, """
            class TestInventory:
                @classmethod
                def setup_class(cls):
                    cls.stock = []

                def test_add_item_grows_stock_when_called(self):
                    self.stock.append("apple")
                    assert len(self.stock) == 1
        """)
        self.assertEqual(findings, [])
