from decimal import Decimal

import pytest
import stripe

from foodmarket.domain.errors import GatewayError, InternalError, InvalidAmount, ValidationError
from foodmarket.services.payment_gateway import StripeGateway, to_minor_units
from foodmarket.utils.settings import Settings


@pytest.fixture
def gateway():
    return StripeGateway(
        Settings(stripe_secret_key="sk_test_x", stripe_webhook_secret="whsec_x", gateway_max_attempts=2)
    )


@pytest.mark.parametrize(
    "amount,currency,expected",
    [
        (Decimal("25.00"), "usd", 2500),
        (Decimal("12.345"), "usd", 1235),
        (Decimal("990"), "clp", 990),
        (Decimal("0.01"), "eur", 1),
    ],
)
def test_to_minor_units(amount, currency, expected):
    assert to_minor_units(amount, currency) == expected


@pytest.mark.parametrize("amount", [Decimal("0"), Decimal("-1.00")])
def test_to_minor_units_rejects_non_positive(amount):
    with pytest.raises(InvalidAmount):
        to_minor_units(amount, "usd")


def test_create_intent(gateway, mocker):
    mock_intent = mocker.Mock()
    mock_intent.id = "pi_123"
    mock_intent.client_secret = "pi_123_secret"
    create = mocker.patch("stripe.PaymentIntent.create", return_value=mock_intent)

    intent = gateway.create_intent(2500, "usd", metadata={"cart_id": "1"}, receipt_email=None)

    assert intent.id == "pi_123"
    assert intent.client_secret == "pi_123_secret"
    kwargs = create.call_args.kwargs
    assert kwargs["amount"] == 2500
    assert kwargs["api_key"] == "sk_test_x"
    assert kwargs["automatic_payment_methods"] == {"enabled": True}
    assert kwargs["idempotency_key"]
    assert "receipt_email" not in kwargs


def test_connection_errors_are_retried_with_same_key(gateway, mocker):
    mock_intent = mocker.Mock(id="pi_1", client_secret="s")
    create = mocker.patch(
        "stripe.PaymentIntent.create",
        side_effect=[stripe.APIConnectionError("reset"), mock_intent],
    )

    assert gateway.create_intent(100, "usd", metadata={}).id == "pi_1"
    assert create.call_count == 2
    keys = {c.kwargs["idempotency_key"] for c in create.call_args_list}
    assert len(keys) == 1


def test_exhausted_retries_become_gateway_error(gateway, mocker):
    mocker.patch("stripe.PaymentIntent.retrieve", side_effect=stripe.APIConnectionError("down"))

    with pytest.raises(GatewayError):
        gateway.retrieve_intent("pi_1")


def test_invalid_request_is_not_retried(gateway, mocker):
    retrieve = mocker.patch(
        "stripe.PaymentIntent.retrieve",
        side_effect=stripe.InvalidRequestError("No such payment_intent", param="id"),
    )

    with pytest.raises(GatewayError) as exc:
        gateway.retrieve_intent("pi_missing")

    assert retrieve.call_count == 1
    assert exc.value.status_code == 502


def test_retrieve_and_cancel(gateway, mocker):
    intent = mocker.Mock(id="pi_1", status="succeeded", amount=2500, currency="usd")
    mocker.patch("stripe.PaymentIntent.retrieve", return_value=intent)
    canceled = mocker.Mock(id="pi_1", status="canceled", amount=2500, currency="usd")
    cancel = mocker.patch("stripe.PaymentIntent.cancel", return_value=canceled)

    assert gateway.retrieve_intent("pi_1").status == "succeeded"
    assert gateway.cancel_intent("pi_1").status == "canceled"
    cancel.assert_called_once_with("pi_1", api_key="sk_test_x")


def test_webhook_bad_signature(gateway, mocker):
    mocker.patch(
        "stripe.Webhook.construct_event",
        side_effect=stripe.SignatureVerificationError("bad", "sig"),
    )

    with pytest.raises(ValidationError):
        gateway.parse_webhook_event(b"{}", "sig")


def test_webhook_without_secret():
    gateway = StripeGateway(Settings(stripe_secret_key="sk_test_x"))

    with pytest.raises(InternalError):
        gateway.parse_webhook_event(b"{}", "sig")
