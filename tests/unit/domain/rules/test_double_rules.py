"""Unit tests for MOCK_EXTERNAL and IMPLEMENTATION_DETAILS."""

import unittest

from testwarden.domain.config import ConfigurationLoader
from testwarden.domain.findings import Severity
from testwarden.domain.rules.doubles import ImplementationDetailsRule, MockExternalRule
from tests.model_test_utils import run_rule


class TestMockExternalRule(unittest.TestCase):
    """Test MOCK_EXTERNAL (W9708)."""

    def setUp(self) -> None:
        self.rule = MockExternalRule(ConfigurationLoader().external_types)

    def test_flags_real_gateway_construction(self) -> None:
        findings = run_rule(self.rule, """
            from payments import StripeGateway

            def test_charge_card_succeeds_when_funds_available():
                gateway = StripeGateway(api_key="live")
                assert gateway.charge(10) is True
        """)
        self.assertEqual([f.evidence.detail for f in findings], ["payments.StripeGateway"])
        self.assertEqual(findings[0].severity, Severity.ERROR)

    def test_fake_collaborator_is_allowed(self) -> None:
        findings = run_rule(self.rule, """
            from tests.fakes import FakeGateway

            def test_charge_card_succeeds_when_funds_available():
                gateway = FakeGateway()
                assert gateway.charge(10) is True
        """)
        self.assertEqual(findings, [])

    def test_patched_type_is_allowed(self) -> None:
        findings = run_rule(self.rule, """
            from unittest import mock
            from payments import StripeGateway

            @mock.patch("payments.StripeGateway")
            def test_charge_card_succeeds_when_funds_available(gateway_cls):
                gateway = StripeGateway(api_key="live")
                assert gateway.charge(10)
        """)
        self.assertEqual(findings, [])

    def test_flags_known_library_client(self) -> None:
        findings = run_rule(self.rule, """
            import requests

            def test_fetch_profile_returns_json_when_authorized():
                session = requests.Session()
                assert session.headers == {}
        """)
        self.assertEqual([f.evidence.detail for f in findings], ["requests.Session"])


class TestImplementationDetailsRule(unittest.TestCase):
    """Test IMPLEMENTATION_DETAILS (W9711)."""

    def setUp(self) -> None:
        self.rule = ImplementationDetailsRule()

    def test_flags_private_method_of_collaborator(self) -> None:
        findings = run_rule(self.rule, """
            def test_normalize_email_lowercases_when_mixed_case():
                service = EmailService()
                assert service._normalize("A@B.COM") == "a@b.com"
        """)
        self.assertEqual([f.evidence.detail for f in findings], ["service._normalize"])
        self.assertEqual(findings[0].severity, Severity.WARN)

    def test_own_helpers_and_dunders_are_allowed(self) -> None:
        findings = run_rule(self.rule, """
            class TestEmail:
                def _service(self):
                    return EmailService()

                def test_normalize_email_lowercases_when_mixed_case(self):
                    service = self._service()
                    assert service.__len__() == 0
                    assert service.normalize("A@B.COM") == "a@b.com"
        """)
        self.assertEqual(findings, [])
