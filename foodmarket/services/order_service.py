# foodmarket/services/order_service.py
from datetime import datetime, timedelta, timezone
from typing import Any, Dict

from sqlalchemy.orm import Session

from foodmarket.data.models.order import OrderModel
from foodmarket.domain.errors import InvalidState, NotFound, ValidationError
from foodmarket.domain.statuses import ORDER_TRANSITIONS, OrderStatus, can_transition
from foodmarket.repos.order_repo import OrderRepo
from foodmarket.utils.logging import get_logger

logger = get_logger(__name__)

MAX_LIMIT = 200


class OrderService:
    """
    Zamowienia tworzy tylko checkout; tutaj odczyt i zmiany statusu
    (kuchnia, obsluga sali, potwierdzanie gotowki/QR).
    """

    def __init__(self, db: Session):
        self.db = db
        self.repo = OrderRepo(db)

    def get_order(self, order_id: int) -> OrderModel:
        order = self.repo.get_order(order_id)
        if not order:
            raise NotFound("Order not found")
        return order

    def list_orders(
        self,
        status: str | None = None,
        customer_email: str | None = None,
        payment_id: int | None = None,
        limit: int = 100,
        offset: int = 0,
    ) -> list[OrderModel]:
        if status and status not in OrderStatus.ALL:
            raise ValidationError(f"Unknown status '{status}'")
        if limit <= 0 or offset < 0:
            raise ValidationError("limit must be positive and offset non-negative")

        return self.repo.list_orders(
            status=status,
            customer_email=customer_email,
            payment_id=payment_id,
            limit=min(limit, MAX_LIMIT),
            offset=offset,
        )

    def set_order_status(self, order_id: int, new_status: str) -> OrderModel:
        if new_status not in OrderStatus.ALL:
            raise InvalidState(
                f"Invalid status '{new_status}'. Allowed: {', '.join(OrderStatus.ALL)}"
            )

        order = self.get_order(order_id)
        if order.status == new_status:
            return order

        if not can_transition(order.status, new_status):
            allowed = sorted(ORDER_TRANSITIONS.get(order.status, ()))
            raise InvalidState(
                f"Cannot change order {order_id} from '{order.status}' to '{new_status}'",
                error=f"allowed: {', '.join(allowed) or 'none'}",
            )

        previous = order.status
        order.status = new_status
        self.repo.commit()

        logger.info(f"Order {order_id} status {previous} -> {new_status}")
        return order

    def delete_order(self, order_id: int) -> None:
        # usuwamy tylko anulowane, oplacone zamowienia musza zostac przy platnosci
        order = self.get_order(order_id)
        if order.status != OrderStatus.CANCELED:
            raise InvalidState(
                f"Only canceled orders can be deleted (order {order_id} is '{order.status}')"
            )

        try:
            payment = self.repo.get_payment(order.payment_id) if order.payment_id else None
            if payment and payment.order_id == order.id:
                remaining = [i for i in self.repo.get_order_ids_for_payment(payment.id) if i != order.id]
                payment.order_id = remaining[0] if remaining else None
                self.db.flush()

            self.repo.delete_order(order)
            self.repo.commit()
        except Exception:
            self.repo.rollback()
            raise

        logger.info(f"Deleted order {order_id}")

    def summary(self, now: datetime | None = None) -> Dict[str, Any]:
        """Liczba zamowien i sprzedaz per status, razem i dzisiaj (UTC)."""
        now = now or datetime.now(timezone.utc)
        start = now.replace(hour=0, minute=0, second=0, microsecond=0)
        today_count, today_sales = self.repo.totals_between(start, start + timedelta(days=1))

        return {
            "by_status": [
                {"status": status, "count": count, "total_sales": sales}
                for status, count, sales in self.repo.totals_by_status()
            ],
            "total_orders": self.repo.count_orders(),
            "today": {"orders": today_count, "sales": today_sales},
        }
