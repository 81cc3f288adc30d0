"""Real network calls and real gateways."""

import requests

from payments import StripeGateway


def test_fetch_user_returns_name_when_found():
    response = requests.get("https://example.com/users/1")
    assert response.json()["name"] == "Ada"


def test_charge_card_succeeds_when_funds_available():
    gateway = StripeGateway(api_key="sk_live")
    receipt = gateway.charge(10)
    assert receipt.paid
