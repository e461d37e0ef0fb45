from datetime import datetime, timezone

from sqlalchemy import JSON, Column, DateTime, ForeignKey, Integer, Numeric, String

from foodmarket.data.database import Base


def _utcnow():
    return datetime.now(timezone.utc)


class PaymentModel(Base):
    """
    Lokalny zapis platnosci. Dla karty wskazuje na PaymentIntent w Stripe,
    dla gotowki/QR jest tylko wpisem ksiegowym (bez gateway_intent_id).
    """

    __tablename__ = "payments"

    id = Column(Integer, primary_key=True)
    cart_id = Column(Integer, ForeignKey("carts.id"), nullable=False, index=True)
    gateway_intent_id = Column(String(255), nullable=True, unique=True)
    method = Column(String(20), nullable=False, default="card")

    amount = Column(Numeric(12, 2), nullable=False)
    currency = Column(String(3), nullable=False)
    status = Column(String(20), nullable=False, default="pending")

    # pierwsze utworzone zamowienie; wszystkie wskazuja na platnosc przez payment_id
    order_id = Column(Integer, ForeignKey("orders.id", use_alter=True, name="fk_payments_order_id"), nullable=True)
    details = Column("metadata", JSON, nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow)
