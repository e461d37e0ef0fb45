# foodmarket/repos/payment_repo.py
from sqlalchemy import select
from sqlalchemy.orm import Session

from foodmarket.data.models.payment import PaymentModel
from foodmarket.domain.statuses import PaymentMethod, PaymentStatus


class PaymentRepo:
    def __init__(self, db: Session):
        self.db = db

    def get_by_gateway_id(self, gateway_intent_id: str, for_update: bool = False) -> PaymentModel | None:
        stmt = select(PaymentModel).where(PaymentModel.gateway_intent_id == gateway_intent_id)
        if for_update:
            #blokada wiersza serializuje rownolegle potwierdzenia tej samej platnosci
            stmt = stmt.with_for_update().execution_options(populate_existing=True)
        return self.db.execute(stmt).scalar_one_or_none()

    def get_open_card_payments(self, cart_id: int) -> list[PaymentModel]:
        stmt = select(PaymentModel).where(
            PaymentModel.cart_id == cart_id,
            PaymentModel.method == PaymentMethod.CARD,
            PaymentModel.status.in_(PaymentStatus.NON_TERMINAL),
        )
        return list(self.db.execute(stmt).scalars().all())

    def create_payment(self, payment: PaymentModel) -> PaymentModel:
        self.db.add(payment)
        self.db.flush()
        return payment

    def commit(self) -> None:
        self.db.commit()

    def rollback(self) -> None:
        self.db.rollback()
