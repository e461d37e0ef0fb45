# foodmarket/services/payment_gateway.py
"""
Adapter Stripe: tworzenie, odczyt i anulowanie PaymentIntentow.

Kazdy blad SDK (siec, auth, walidacja, timeout) wychodzi jako GatewayError.
Timeout nie oznacza nieudanej platnosci - status trzeba sprawdzic ponownie.
"""
import uuid
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Dict, Optional

import stripe

from foodmarket.domain.errors import GatewayError, InternalError, InvalidAmount, ValidationError
from foodmarket.utils.logging import get_logger
from foodmarket.utils.retry import gateway_retry
from foodmarket.utils.settings import Settings

logger = get_logger(__name__)

# liczba miejsc po przecinku dla jednostek minimalnych
DECIMALS_BY_CURRENCY = {
    "usd": 2,
    "eur": 2,
    "mxn": 2,
    "bob": 2,
    "clp": 0,
    "jpy": 0,
}


def to_minor_units(amount: Decimal, currency: str) -> int:
    """12.50 USD -> 1250, 990 CLP -> 990."""
    amount = Decimal(amount)
    if not amount.is_finite() or amount <= 0:
        raise InvalidAmount(f"Invalid amount: {amount}")
    decimals = DECIMALS_BY_CURRENCY.get(currency.lower(), 2)
    scaled = (amount * (Decimal(10) ** decimals)).quantize(Decimal("1"), rounding=ROUND_HALF_UP)
    return int(scaled)


@dataclass(frozen=True)
class GatewayIntent:
    id: str
    client_secret: str


@dataclass(frozen=True)
class GatewayIntentStatus:
    id: str
    status: str
    amount: int
    currency: str


class StripeGateway:
    SUCCEEDED = "succeeded"

    def __init__(self, settings: Settings):
        self.api_key = settings.stripe_secret_key
        self.webhook_secret = settings.stripe_webhook_secret
        self._retry = gateway_retry(settings.gateway_max_attempts)
        # retry robi tenacity, klient http ma tylko ograniczony timeout
        stripe.max_network_retries = 0
        stripe.default_http_client = stripe.RequestsClient(timeout=settings.gateway_timeout_seconds)

    def create_intent(
        self,
        amount_minor: int,
        currency: str,
        metadata: Dict[str, str],
        description: Optional[str] = None,
        receipt_email: Optional[str] = None,
        idempotency_key: Optional[str] = None,
    ) -> GatewayIntent:
        # jeden klucz na cale wywolanie, ponowienia nie tworza drugiego intentu
        key = idempotency_key or str(uuid.uuid4())
        logger.info(f"Creating payment intent: {amount_minor} {currency}, metadata={metadata}")

        intent = self._call(
            stripe.PaymentIntent.create,
            amount=amount_minor,
            currency=currency,
            metadata=metadata,
            description=description,
            receipt_email=receipt_email,
            automatic_payment_methods={"enabled": True},
            idempotency_key=key,
        )
        return GatewayIntent(id=intent.id, client_secret=intent.client_secret)

    def retrieve_intent(self, intent_id: str) -> GatewayIntentStatus:
        intent = self._call(stripe.PaymentIntent.retrieve, intent_id)
        return GatewayIntentStatus(
            id=intent.id,
            status=intent.status,
            amount=intent.amount,
            currency=intent.currency,
        )

    def cancel_intent(self, intent_id: str) -> GatewayIntentStatus:
        logger.info(f"Canceling payment intent {intent_id}")
        intent = self._call(stripe.PaymentIntent.cancel, intent_id)
        return GatewayIntentStatus(
            id=intent.id,
            status=intent.status,
            amount=intent.amount,
            currency=intent.currency,
        )

    def parse_webhook_event(self, payload: bytes, signature: Optional[str]) -> Any:
        if not self.webhook_secret:
            raise InternalError("Webhook secret is not configured")
        try:
            return stripe.Webhook.construct_event(payload, signature, self.webhook_secret)
        except ValueError:
            raise ValidationError("Invalid webhook payload")
        except stripe.SignatureVerificationError:
            raise ValidationError("Invalid webhook signature")

    def _call(self, fn, *args, **kwargs):
        kwargs = {k: v for k, v in kwargs.items() if v is not None}
        try:
            return self._retry(fn)(*args, api_key=self.api_key, **kwargs)
        except stripe.StripeError as e:
            logger.error(f"Stripe call {getattr(fn, '__name__', fn)} failed: {e}")
            raise GatewayError("Payment gateway error", error=getattr(e, "user_message", None) or str(e))
