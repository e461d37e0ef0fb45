# foodmarket/domain/statuses.py
"""
Statusy koszyka, platnosci i zamowien oraz graf dozwolonych przejsc zamowienia.
"""


class CartStatus:
    ACTIVE = "active"
    ABANDONED = "abandoned"
    CONVERTED = "converted"

    ALL = (ACTIVE, ABANDONED, CONVERTED)


class PaymentStatus:
    PENDING = "pending"
    PROCESSING = "processing"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    CANCELED = "canceled"
    REFUNDED = "refunded"

    ALL = (PENDING, PROCESSING, SUCCEEDED, FAILED, CANCELED, REFUNDED)
    NON_TERMINAL = (PENDING, PROCESSING)


class PaymentMethod:
    CARD = "card"
    CASH = "cash"
    QR = "qr"


class OrderStatus:
    PENDING = "pending"
    CONFIRMED = "confirmed"
    IN_PREPARATION = "in-preparation"
    READY = "ready"
    DELIVERED = "delivered"
    CANCELED = "canceled"
    PENDING_PAYMENT = "pending-payment"
    PENDING_VERIFICATION = "pending-verification"

    ALL = (
        PENDING,
        CONFIRMED,
        IN_PREPARATION,
        READY,
        DELIVERED,
        CANCELED,
        PENDING_PAYMENT,
        PENDING_VERIFICATION,
    )


# poprzednik -> dozwoleni nastepcy
ORDER_TRANSITIONS: dict[str, frozenset[str]] = {
    OrderStatus.PENDING: frozenset({OrderStatus.CONFIRMED, OrderStatus.CANCELED}),
    OrderStatus.PENDING_PAYMENT: frozenset({OrderStatus.CONFIRMED, OrderStatus.CANCELED}),
    OrderStatus.PENDING_VERIFICATION: frozenset({OrderStatus.CONFIRMED, OrderStatus.CANCELED}),
    OrderStatus.CONFIRMED: frozenset({OrderStatus.IN_PREPARATION, OrderStatus.CANCELED}),
    OrderStatus.IN_PREPARATION: frozenset({OrderStatus.READY, OrderStatus.CANCELED}),
    OrderStatus.READY: frozenset({OrderStatus.DELIVERED, OrderStatus.CANCELED}),
    OrderStatus.DELIVERED: frozenset(),
    OrderStatus.CANCELED: frozenset(),
}


def can_transition(current: str, new: str) -> bool:
    return new in ORDER_TRANSITIONS.get(current, frozenset())
