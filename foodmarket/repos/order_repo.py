# foodmarket/repos/order_repo.py
from datetime import datetime
from decimal import Decimal

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from foodmarket.data.models.order import OrderModel
from foodmarket.data.models.payment import PaymentModel

CENTS = Decimal("0.01")


class OrderRepo:
    def __init__(self, db: Session):
        self.db = db

    def create_order(self, order: OrderModel) -> OrderModel:
        self.db.add(order)
        self.db.flush()
        return order

    def get_order(self, order_id: int) -> OrderModel | None:
        return self.db.get(OrderModel, order_id)

    def get_order_ids_for_payment(self, payment_id: int) -> list[int]:
        stmt = select(OrderModel.id).where(OrderModel.payment_id == payment_id).order_by(OrderModel.id)
        return list(self.db.execute(stmt).scalars().all())

    def list_orders(
        self,
        status: str | None = None,
        customer_email: str | None = None,
        payment_id: int | None = None,
        limit: int = 100,
        offset: int = 0,
    ) -> list[OrderModel]:
        stmt = select(OrderModel)
        if status:
            stmt = stmt.where(OrderModel.status == status)
        if customer_email:
            stmt = stmt.where(OrderModel.customer_email == customer_email)
        if payment_id is not None:
            stmt = stmt.where(OrderModel.payment_id == payment_id)
        stmt = stmt.order_by(OrderModel.created_at.desc(), OrderModel.id.desc()).limit(limit).offset(offset)
        return list(self.db.execute(stmt).scalars().all())

    def delete_order(self, order: OrderModel) -> None:
        self.db.delete(order)
        self.db.flush()

    def get_payment(self, payment_id: int) -> PaymentModel | None:
        return self.db.get(PaymentModel, payment_id)

    # statystyki
    def totals_by_status(self) -> list[tuple[str, int, Decimal]]:
        stmt = (
            select(
                OrderModel.status,
                func.count(OrderModel.id),
                func.coalesce(func.sum(OrderModel.total_price), 0),
            )
            .group_by(OrderModel.status)
            .order_by(func.count(OrderModel.id).desc(), OrderModel.status)
        )
        return [
            (status, int(count), Decimal(str(sales)).quantize(CENTS))
            for status, count, sales in self.db.execute(stmt).all()
        ]

    def count_orders(self) -> int:
        return self.db.execute(select(func.count()).select_from(OrderModel)).scalar_one()

    def totals_between(self, start: datetime, end: datetime) -> tuple[int, Decimal]:
        stmt = select(
            func.count(OrderModel.id),
            func.coalesce(func.sum(OrderModel.total_price), 0),
        ).where(OrderModel.created_at >= start, OrderModel.created_at < end)
        count, sales = self.db.execute(stmt).one()
        return int(count), Decimal(str(sales)).quantize(CENTS)

    def commit(self) -> None:
        self.db.commit()

    def rollback(self) -> None:
        self.db.rollback()
