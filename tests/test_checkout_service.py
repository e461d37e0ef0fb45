from decimal import Decimal

import pytest

from foodmarket.data.models.cart import CartModel
from foodmarket.data.models.order import OrderModel
from foodmarket.data.models.payment import PaymentModel
from foodmarket.domain.errors import (
    Conflict,
    EmptyCart,
    GatewayError,
    InvalidAmount,
    InvalidState,
    NotFound,
    PaymentNotCompleted,
)
from foodmarket.services.cart_service import CartService
from foodmarket.services.checkout_service import CheckoutService

SESSION = "sess-checkout-1"


@pytest.fixture
def carts(db, settings):
    return CartService(db, settings)


@pytest.fixture
def svc(db, gateway, settings):
    return CheckoutService(db, gateway, settings)


@pytest.fixture
def ready_cart(carts, foods):
    """A 10.00 x2 + B 5.00 x1 = 25.00"""
    carts.add_item(SESSION, foods[0].id, 2)
    carts.add_item(SESSION, foods[1].id, 1)
    return carts.set_contact_info(SESSION, "Ana", "ana@example.com", "555-1234", "Calle 1")


def test_card_checkout_end_to_end(svc, db, gateway, ready_cart):
    intent = svc.create_payment_intent(SESSION)

    assert intent["amount"] == Decimal("25.00")
    assert gateway.intents[intent["payment_intent_id"]]["amount"] == 2500
    assert gateway.intents[intent["payment_intent_id"]]["metadata"]["cart_id"] == str(ready_cart.id)
    assert db.query(OrderModel).count() == 0

    gateway.set_status(intent["payment_intent_id"], "succeeded")
    result = svc.confirm_payment(intent["payment_intent_id"])

    assert result["already_processed"] is False
    orders = db.query(OrderModel).order_by(OrderModel.id).all()
    assert [o.id for o in orders] == result["order_ids"]
    assert [o.total_price for o in orders] == [Decimal("20.00"), Decimal("5.00")]
    assert all(o.status == "confirmed" for o in orders)
    assert all(o.payment_id == intent["payment_id"] for o in orders)
    assert orders[0].customer_email == "ana@example.com"

    payment = db.get(PaymentModel, intent["payment_id"])
    assert payment.status == "succeeded"
    assert payment.order_id == orders[0].id
    assert db.get(CartModel, ready_cart.id).status == "converted"


def test_confirm_is_idempotent(svc, db, gateway, ready_cart):
    intent = svc.create_payment_intent(SESSION)
    gateway.set_status(intent["payment_intent_id"], "succeeded")

    first = svc.confirm_payment(intent["payment_intent_id"])
    second = svc.confirm_payment(intent["payment_intent_id"])

    assert second["already_processed"] is True
    assert second["order_ids"] == first["order_ids"]
    assert db.query(OrderModel).count() == 2


def test_confirm_not_succeeded_creates_no_orders(svc, db, gateway, ready_cart):
    intent = svc.create_payment_intent(SESSION)
    gateway.set_status(intent["payment_intent_id"], "processing")

    with pytest.raises(PaymentNotCompleted) as exc:
        svc.confirm_payment(intent["payment_intent_id"])

    assert exc.value.gateway_status == "processing"
    assert db.query(OrderModel).count() == 0
    assert db.get(PaymentModel, intent["payment_id"]).status == "processing"
    assert db.get(CartModel, ready_cart.id).status == "active"


def test_confirm_unknown_intent(svc):
    with pytest.raises(NotFound):
        svc.confirm_payment("pi_missing")


def test_empty_cart_cannot_checkout(svc, carts):
    carts.set_contact_info(SESSION, "Ana", "ana@example.com")

    with pytest.raises(EmptyCart):
        svc.create_payment_intent(SESSION)


def test_missing_contact_info(svc, carts, foods):
    carts.add_item(SESSION, foods[0].id, 1)

    with pytest.raises(InvalidState):
        svc.create_payment_intent(SESSION)


def test_no_cart_is_not_found(svc):
    with pytest.raises(NotFound):
        svc.create_payment_intent("nobody")


def test_total_below_minimum(svc, db, carts, foods):
    foods[0].price = Decimal("0.20")
    db.commit()
    carts.add_item(SESSION, foods[0].id, 1)
    carts.set_contact_info(SESSION, "Ana", "ana@example.com")

    with pytest.raises(InvalidAmount):
        svc.create_payment_intent(SESSION)


def test_gateway_failure_leaves_no_payment(svc, db, gateway, ready_cart):
    gateway.fail_create = True

    with pytest.raises(GatewayError):
        svc.create_payment_intent(SESSION)

    assert db.query(PaymentModel).count() == 0


def test_new_intent_cancels_previous_pending_one(svc, db, gateway, ready_cart):
    first = svc.create_payment_intent(SESSION)
    second = svc.create_payment_intent(SESSION)

    assert gateway.canceled == [first["payment_intent_id"]]
    assert db.get(PaymentModel, first["payment_id"]).status == "canceled"
    assert db.get(PaymentModel, second["payment_id"]).status == "pending"


def test_new_intent_refused_when_previous_succeeded(svc, gateway, ready_cart):
    first = svc.create_payment_intent(SESSION)
    gateway.set_status(first["payment_intent_id"], "succeeded")

    with pytest.raises(Conflict):
        svc.create_payment_intent(SESSION)


def test_orders_follow_charged_items_when_cart_changes_after_intent(svc, db, carts, gateway, foods, ready_cart):
    intent = svc.create_payment_intent(SESSION)
    carts.add_item(SESSION, foods[2].id, 1)
    gateway.set_status(intent["payment_intent_id"], "succeeded")

    result = svc.confirm_payment(intent["payment_intent_id"])

    orders = db.query(OrderModel).filter(OrderModel.id.in_(result["order_ids"])).all()
    assert sorted(o.food_id for o in orders) == sorted([foods[0].id, foods[1].id])
    charged = gateway.intents[intent["payment_intent_id"]]["amount"]
    assert sum(o.total_price for o in orders) * 100 == charged
    assert db.get(CartModel, ready_cart.id).status == "converted"


def test_abandoned_cart_can_still_be_paid(svc, db, gateway, ready_cart):
    intent = svc.create_payment_intent(SESSION)
    ready_cart.status = "abandoned"
    db.commit()
    gateway.set_status(intent["payment_intent_id"], "succeeded")

    result = svc.confirm_payment(intent["payment_intent_id"])

    assert len(result["order_ids"]) == 2
    assert db.get(CartModel, ready_cart.id).status == "converted"


def test_intent_uses_price_captured_at_add_time(svc, db, gateway, carts, foods):
    carts.add_item(SESSION, foods[0].id, 2)
    foods[0].price = Decimal("99.00")
    db.commit()
    carts.set_contact_info(SESSION, "Ana", "ana@example.com")

    intent = svc.create_payment_intent(SESSION)

    assert intent["amount"] == Decimal("20.00")
    assert gateway.intents[intent["payment_intent_id"]]["amount"] == 2000


def test_cash_checkout_cancels_open_card_intent(svc, db, gateway, ready_cart):
    intent = svc.create_payment_intent(SESSION)

    result = svc.confirm_cash_order(SESSION)

    assert gateway.canceled == [intent["payment_intent_id"]]
    assert gateway.intents[intent["payment_intent_id"]]["status"] == "canceled"
    assert db.get(PaymentModel, intent["payment_id"]).status == "canceled"
    assert len(result["order_ids"]) == 2


def test_cash_checkout_refused_when_card_already_paid(svc, db, gateway, ready_cart):
    intent = svc.create_payment_intent(SESSION)
    gateway.set_status(intent["payment_intent_id"], "succeeded")

    with pytest.raises(Conflict):
        svc.confirm_qr_order(SESSION)

    assert db.query(OrderModel).count() == 0
    assert db.get(CartModel, ready_cart.id).status == "active"

    # platnosc karta nadal da sie potwierdzic
    assert len(svc.confirm_payment(intent["payment_intent_id"])["order_ids"]) == 2



def test_cash_checkout(svc, db, gateway, carts, foods):
    carts.add_item(SESSION, foods[2].id, 1)
    carts.set_contact_info(SESSION, "Luis", "luis@example.com")

    result = svc.confirm_cash_order(SESSION)

    assert result["order_status"] == "pending-payment"
    assert result["amount"] == Decimal("8.00")
    assert gateway.created == []

    order = db.get(OrderModel, result["order_ids"][0])
    assert order.status == "pending-payment"
    assert order.payment_method == "cash"
    assert order.total_price == Decimal("8.00")
    assert db.get(PaymentModel, result["payment_id"]).gateway_intent_id is None


def test_qr_checkout(svc, carts, foods):
    carts.add_item(SESSION, foods[0].id, 1)
    carts.set_contact_info(SESSION, "Luis", "luis@example.com")

    result = svc.confirm_qr_order(SESSION)

    assert result["order_status"] == "pending-verification"


def test_second_checkout_after_conversion_creates_nothing(svc, db, carts, foods):
    carts.add_item(SESSION, foods[0].id, 1)
    carts.set_contact_info(SESSION, "Luis", "luis@example.com")
    svc.confirm_cash_order(SESSION)

    with pytest.raises(NotFound):
        svc.confirm_cash_order(SESSION)

    assert db.query(OrderModel).count() == 1


def test_webhook_succeeded_confirms(svc, db, gateway, ready_cart):
    intent = svc.create_payment_intent(SESSION)
    gateway.set_status(intent["payment_intent_id"], "succeeded")

    event = {"type": "payment_intent.succeeded", "data": {"object": {"id": intent["payment_intent_id"]}}}
    result = svc.handle_gateway_event(event)

    assert result["handled"] is True
    assert len(result["order_ids"]) == 2


def test_webhook_failed_marks_payment(svc, db, ready_cart):
    intent = svc.create_payment_intent(SESSION)

    event = {"type": "payment_intent.payment_failed", "data": {"object": {"id": intent["payment_intent_id"]}}}
    assert svc.handle_gateway_event(event) == {"handled": True}
    assert db.get(PaymentModel, intent["payment_id"]).status == "failed"


def test_webhook_unknown_intent_is_ignored(svc):
    event = {"type": "payment_intent.succeeded", "data": {"object": {"id": "pi_unknown"}}}
    assert svc.handle_gateway_event(event) == {"handled": False}


def test_payment_status(svc, gateway, ready_cart):
    intent = svc.create_payment_intent(SESSION)

    status = svc.get_payment_status(intent["payment_intent_id"])

    assert status["gateway_status"] == "requires_payment_method"
    assert status["status"] == "pending"
    assert status["amount"] == Decimal("25.00")
