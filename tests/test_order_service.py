from decimal import Decimal

import pytest

from foodmarket.data.models.order import OrderModel
from foodmarket.domain.errors import InvalidState, NotFound, ValidationError
from foodmarket.domain.statuses import can_transition
from foodmarket.services.order_service import OrderService


@pytest.fixture
def svc(db):
    return OrderService(db)


@pytest.fixture
def order(db, foods):
    o = OrderModel(
        food_id=foods[0].id,
        customer_name="Ana",
        customer_email="ana@example.com",
        quantity=1,
        total_price=Decimal("10.00"),
        status="pending-payment",
        payment_method="cash",
    )
    db.add(o)
    db.commit()
    return o


def test_happy_path_to_delivered(svc, order):
    for status in ("confirmed", "in-preparation", "ready", "delivered"):
        assert svc.set_order_status(order.id, status).status == status


def test_illegal_transition_is_rejected(svc, order):
    with pytest.raises(InvalidState) as exc:
        svc.set_order_status(order.id, "delivered")

    assert "confirmed" in exc.value.error
    assert svc.get_order(order.id).status == "pending-payment"


def test_terminal_status_cannot_change(svc, order):
    svc.set_order_status(order.id, "canceled")

    with pytest.raises(InvalidState):
        svc.set_order_status(order.id, "confirmed")


def test_same_status_is_noop(svc, order):
    assert svc.set_order_status(order.id, "pending-payment").status == "pending-payment"


def test_unknown_status(svc, order):
    with pytest.raises(InvalidState):
        svc.set_order_status(order.id, "shipped")


def test_missing_order(svc):
    with pytest.raises(NotFound):
        svc.get_order(404)


def test_list_orders_filters(svc, order):
    assert [o.id for o in svc.list_orders(status="pending-payment")] == [order.id]
    assert svc.list_orders(customer_email="other@example.com") == []

    with pytest.raises(ValidationError):
        svc.list_orders(status="nope")
    with pytest.raises(ValidationError):
        svc.list_orders(limit=0)


@pytest.mark.parametrize(
    "current,new,allowed",
    [
        ("pending", "confirmed", True),
        ("pending-verification", "canceled", True),
        ("confirmed", "ready", False),
        ("ready", "delivered", True),
        ("delivered", "canceled", False),
    ],
)
def test_transition_table(current, new, allowed):
    assert can_transition(current, new) is allowed


def test_only_canceled_orders_can_be_deleted(svc, order):
    with pytest.raises(InvalidState):
        svc.delete_order(order.id)

    svc.set_order_status(order.id, "canceled")
    svc.delete_order(order.id)

    with pytest.raises(NotFound):
        svc.get_order(order.id)


def test_summary(svc, db, foods, order):
    db.add(
        OrderModel(
            food_id=foods[1].id,
            customer_name="Luis",
            customer_email="luis@example.com",
            quantity=3,
            total_price=Decimal("15.00"),
            status="pending-payment",
        )
    )
    db.commit()
    svc.set_order_status(order.id, "confirmed")

    summary = svc.summary()

    assert summary["total_orders"] == 2
    assert summary["by_status"] == [
        {"status": "confirmed", "count": 1, "total_sales": Decimal("10.00")},
        {"status": "pending-payment", "count": 1, "total_sales": Decimal("15.00")},
    ]
    assert summary["today"] == {"orders": 2, "sales": Decimal("25.00")}
