import json
import os
from decimal import Decimal

# foodmarket.main buduje app na imporcie, bez postgresa w testach
os.environ.setdefault("DATABASE_URL", "sqlite://")

import pytest
from fastapi.testclient import TestClient

from foodmarket.api.deps import get_gateway
from foodmarket.data.database import build_engine, build_session_factory, init_models
from foodmarket.data.models.food import FoodModel
from foodmarket.domain.errors import GatewayError
from foodmarket.main import create_app
from foodmarket.services.payment_gateway import GatewayIntent, GatewayIntentStatus
from foodmarket.utils.settings import Settings


class FakeGateway:
    """Bramka w pamieci: intenty startuja jako requires_payment_method."""

    def __init__(self):
        self.intents = {}
        self.created = []
        self.canceled = []
        self.fail_create = False

    def create_intent(self, amount_minor, currency, metadata, description=None, receipt_email=None,
                      idempotency_key=None):
        if self.fail_create:
            raise GatewayError("Payment gateway error", error="network down")
        intent_id = f"pi_test_{len(self.intents) + 1}"
        self.intents[intent_id] = {
            "status": "requires_payment_method",
            "amount": amount_minor,
            "currency": currency,
            "metadata": metadata,
        }
        self.created.append(intent_id)
        return GatewayIntent(id=intent_id, client_secret=f"{intent_id}_secret")

    def set_status(self, intent_id, status):
        self.intents[intent_id]["status"] = status

    def retrieve_intent(self, intent_id):
        if intent_id not in self.intents:
            raise GatewayError("Payment gateway error", error="No such payment_intent")
        data = self.intents[intent_id]
        return GatewayIntentStatus(
            id=intent_id, status=data["status"], amount=data["amount"], currency=data["currency"]
        )

    def cancel_intent(self, intent_id):
        self.intents[intent_id]["status"] = "canceled"
        self.canceled.append(intent_id)
        return self.retrieve_intent(intent_id)

    def parse_webhook_event(self, payload, signature):
        return json.loads(payload)


@pytest.fixture
def settings():
    return Settings(
        database_url="sqlite://",
        environment="test",
        log_json=False,
        stripe_publishable_key="pk_test_123",
        payment_currency="usd",
        create_tables=True,
        seed_catalog=False,
    )


@pytest.fixture
def gateway():
    return FakeGateway()


@pytest.fixture
def session_factory(settings):
    engine = build_engine(settings)
    init_models(engine)
    yield build_session_factory(engine)
    engine.dispose()


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def foods(db):
    """A 10.00, B 5.00, C 8.00"""
    items = [
        FoodModel(name="Burger", category="Almuerzo", price=Decimal("10.00")),
        FoodModel(name="Soda", category="Bebida", price=Decimal("5.00")),
        FoodModel(name="Taco", category="Almuerzo", price=Decimal("8.00")),
    ]
    db.add_all(items)
    db.commit()
    return items


@pytest.fixture
def app(settings, gateway):
    application = create_app(settings)
    application.dependency_overrides[get_gateway] = lambda: gateway
    return application


@pytest.fixture
def client(app):
    with TestClient(app) as c:
        yield c


@pytest.fixture
def app_db(app, client):
    session = app.state.session_factory()
    yield session
    session.close()


@pytest.fixture
def menu(app_db):
    items = [
        FoodModel(name="Burger", category="Almuerzo", price=Decimal("10.00")),
        FoodModel(name="Soda", category="Bebida", price=Decimal("5.00")),
    ]
    app_db.add_all(items)
    app_db.commit()
    return {f.name: f.id for f in items}
