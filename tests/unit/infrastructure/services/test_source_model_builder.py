"""Unit tests for SourceModelBuilder: discovery, hooks, fields, actions and substitutions."""

import pytest

from testwarden.domain.config import ConfigurationLoader
from testwarden.domain.errors import ParseError
from testwarden.domain.model import (
    AccessKind,
    ActionKind,
    ExpectationStyle,
    FieldOrigin,
    HookKind,
)
from tests.model_test_utils import SAMPLE_PATH, build_test_file, find_unit


class TestUnitDiscovery:
    def test_module_functions_and_class_methods_are_units(self) -> None:
        test_file = build_test_file("""
            def helper():
                return 1

            def test_module_level():
                assert helper() == 1

            class TestGroup:
                def test_in_class(self):
                    assert helper() == 1

            class Helpers:
                def test_not_collected(self):
                    pass
        """)
        assert [u.name for u in test_file.all_units()] == ["test_module_level", "TestGroup.test_in_class"]
        assert [s.scope for s in test_file.iter_scopes()] == ["", "TestGroup"]
        assert test_file.path == SAMPLE_PATH

    def test_testcase_subclass_without_test_prefix_is_a_scope(self) -> None:
        test_file = build_test_file("""
            import unittest

            class CartChecks(unittest.TestCase):
                def test_total(self):
                    self.assertEqual(1, 1)
        """)
        assert [u.name for u in test_file.all_units()] == ["CartChecks.test_total"]

    def test_nested_classes_are_child_scopes(self) -> None:
        test_file = build_test_file("""
            class TestOuter:
                class TestInner:
                    def test_deep(self):
                        assert True
        """)
        scope, unit = find_unit(test_file, "test_deep")
        assert scope.scope == "TestOuter.TestInner"
        assert unit.name == "TestOuter.TestInner.test_deep"

    def test_unittest_order_is_alphabetical_pytest_order_is_source(self) -> None:
        test_file = build_test_file("""
            import unittest

            class TestAlpha(unittest.TestCase):
                def test_b(self):
                    pass

                def test_a(self):
                    pass

            class TestSource:
                def test_b(self):
                    pass

                def test_a(self):
                    pass
        """)
        orders = {u.name: u.order for u in test_file.all_units()}
        assert orders["TestAlpha.test_a"] < orders["TestAlpha.test_b"]
        assert orders["TestSource.test_b"] < orders["TestSource.test_a"]

    def test_custom_prefixes(self) -> None:
        config = ConfigurationLoader({"test_function_prefix": "should", "test_class_prefix": "Describe"})
        test_file = build_test_file("""
            class DescribeCart:
                def should_add_item(self):
                    assert True

                def test_ignored(self):
                    pass
        """, config=config)
        assert [u.name for u in test_file.all_units()] == ["DescribeCart.should_add_item"]

    def test_malformed_source_raises_parse_error(self) -> None:
        with pytest.raises(ParseError):
            build_test_file("def test_broken(:\n    pass\n")


class TestHooksAndFields:
    def test_unittest_hooks_and_declared_fields(self) -> None:
        test_file = build_test_file("""
            import unittest

            class TestStore(unittest.TestCase):
                shared = {"a": 1}

                @classmethod
                def setUpClass(cls):
                    cls.db = []

                def setUp(self):
                    self.cart = []

                def tearDown(self):
                    self.cart.clear()

                def test_x(self):
                    self.assertEqual(self.shared["a"], 1)
        """)
        scope, _unit = find_unit(test_file, "test_x")
        kinds = {h.name: h.kind for h in scope.hooks}
        assert kinds == {
            "setUpClass": HookKind.ONCE_SETUP,
            "setUp": HookKind.PER_TEST_SETUP,
            "tearDown": HookKind.PER_TEST_TEARDOWN,
        }
        assert scope.get_field("shared").origin is FieldOrigin.CLASS
        assert scope.get_field("db").origin is FieldOrigin.ONCE_HOOK
        assert scope.get_field("db").hook == "setUpClass"
        assert scope.get_field("cart").origin is FieldOrigin.PER_TEST_HOOK
        assert not scope.get_field("cart").shared

    def test_fixture_scope_autouse_and_mutability(self) -> None:
        test_file = build_test_file("""
            import pytest

            @pytest.fixture(scope="session")
            def catalog():
                return {"sku": 1}

            @pytest.fixture(autouse=True)
            def reset_env():
                yield

            @pytest.fixture(scope="module")
            def limits():
                return (1, 2)
        """)
        hooks = {h.name: h for h in test_file.hooks}
        assert hooks["catalog"].once_only
        assert hooks["reset_env"].runs_for_every_test
        assert test_file.get_field("catalog").mutable
        assert not test_file.get_field("limits").mutable
        assert test_file.get_field("reset_env") is None

    def test_setup_module_globals_are_once_fields(self) -> None:
        test_file = build_test_file("""
            connection = None

            def setup_module():
                global connection
                connection = []

            def test_query_returns_rows_when_connected():
                connection.append("row")
                assert connection
        """)
        declared = test_file.get_field("connection")
        assert declared.origin is FieldOrigin.ONCE_HOOK
        assert declared.mutable
        _scope, unit = find_unit(test_file, "test_query_returns_rows_when_connected")
        assert [a.kind for a in unit.accesses] == [AccessKind.WRITE, AccessKind.READ]

    def test_class_reference_spellings_are_tracked(self) -> None:
        test_file = build_test_file("""
            class TestCounter:
                hits = []

                def test_a(self):
                    type(self).hits.append(1)
                    TestCounter.hits.append(2)
                    self.__class__.hits.append(3)

                def test_b(self):
                    assert self.hits
        """)
        scope, unit = find_unit(test_file, "test_a")
        assert [a.kind for a in unit.accesses] == [AccessKind.WRITE] * 3
        assert scope.shared_candidates == ("hits",)

    def test_local_shadowing_is_not_a_global_access(self) -> None:
        test_file = build_test_file("""
            items = []

            def test_a():
                items = [1]
                assert items
        """)
        _scope, unit = find_unit(test_file, "test_a")
        assert unit.accesses == ()


class TestActions:
    def test_statement_kinds(self) -> None:
        test_file = build_test_file("""
            import pytest

            def test_everything():
                cart = make_cart()
                cart.add("apple")
                for item in cart:
                    assert item
                with pytest.raises(KeyError):
                    cart.remove("pear")
                '''docstring-like constant'''
        """)
        _scope, unit = find_unit(test_file, "test_everything")
        assert [a.kind for a in unit.actions] == [
            ActionKind.ASSIGNMENT,
            ActionKind.CALL,
            ActionKind.LOOP,
            ActionKind.EXPECTATION,
        ]
        loop = unit.actions[2]
        assert [c.kind for c in loop.children] == [ActionKind.ASSERTION]
        expectation = unit.actions[3]
        assert expectation.style is ExpectationStyle.DECLARATIVE
        assert expectation.target == "KeyError"
        assert expectation.children[0].target == "cart.remove"

    def test_callable_form_of_assert_raises_is_declarative(self) -> None:
        test_file = build_test_file("""
            import unittest

            class TestCart(unittest.TestCase):
                def test_remove_missing(self):
                    self.assertRaises(KeyError, remove, "pear")
        """)
        _scope, unit = find_unit(test_file, "test_remove_missing")
        assert unit.actions[0].kind is ActionKind.EXPECTATION
        assert unit.actions[0].target == "KeyError"

    def test_plain_with_block_keeps_header_call(self) -> None:
        test_file = build_test_file("""
            def test_read():
                with open_store() as store:
                    assert store.read() == 1
        """)
        _scope, unit = find_unit(test_file, "test_read")
        assert [a.kind for a in unit.actions] == [ActionKind.CALL, ActionKind.ASSERTION]

    def test_match_and_while_are_control_flow(self) -> None:
        test_file = build_test_file("""
            def test_flow():
                while poll():
                    pass
                match status():
                    case "ok":
                        assert True
        """)
        _scope, unit = find_unit(test_file, "test_flow")
        assert [(a.kind, a.target) for a in unit.actions] == [
            (ActionKind.LOOP, "while loop"),
            (ActionKind.CONDITIONAL, "match statement"),
        ]

    def test_long_statement_text_is_truncated(self) -> None:
        long_name = "x" * 150
        test_file = build_test_file(f"def test_long():\n    call_{long_name}()\n")
        _scope, unit = find_unit(test_file, "test_long")
        assert len(unit.actions[0].text) == 100
        assert unit.actions[0].text.endswith("...")


class TestSubstitutions:
    def test_patch_forms_are_collected(self) -> None:
        test_file = build_test_file("""
            from unittest import mock
            import responses

            @responses.activate
            @mock.patch.object(Gateway, "send")
            def test_send(mocker, monkeypatch, requests_mock):
                mocker.patch("billing.charge")
                monkeypatch.setattr("os.getcwd", lambda: "/")
                monkeypatch.setattr(time, "time", lambda: 0)
        """)
        _scope, unit = find_unit(test_file, "test_send")
        assert set(unit.substitutions) >= {
            "requests", "Gateway.send", "billing.charge", "os.getcwd", "time.time",
        }

    def test_class_decorators_and_autouse_fixtures_apply_to_every_test(self) -> None:
        test_file = build_test_file("""
            import pytest
            from unittest import mock

            @mock.patch("payments.client")
            class TestPay:
                @pytest.fixture(autouse=True)
                def no_network(self, monkeypatch):
                    monkeypatch.setattr("socket.socket", None)

                def test_pay(self, mock_client):
                    assert pay()
        """)
        _scope, unit = find_unit(test_file, "test_pay")
        assert "payments.client" in unit.substitutions
        assert "socket.socket" in unit.substitutions
        assert "unittest.mock.patch" in unit.markers

    def test_requested_fixture_substitutions_reach_the_test(self) -> None:
        test_file = build_test_file("""
            import pytest

            @pytest.fixture
            def frozen(monkeypatch):
                monkeypatch.setattr("time.time", lambda: 0)

            def test_clock(frozen):
                assert now() == 0

            def test_other():
                assert now() >= 0
        """)
        _scope, clock = find_unit(test_file, "test_clock")
        _scope, other = find_unit(test_file, "test_other")
        assert "time.time" in clock.substitutions
        assert "time.time" not in other.substitutions
