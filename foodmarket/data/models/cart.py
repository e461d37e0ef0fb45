#foodmarket/data/models/cart.py
from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, Index, Integer, String, text
from sqlalchemy.orm import relationship

from foodmarket.data.database import Base


def _utcnow():
    return datetime.now(timezone.utc)


class CartModel(Base):
    __tablename__ = "carts"
    #najwyzej jeden aktywny koszyk na sesje
    __table_args__ = (
        Index(
            "uq_carts_active_session",
            "session_key",
            unique=True,
            postgresql_where=text("status = 'active'"),
            sqlite_where=text("status = 'active'"),
        ),
    )

    id = Column(Integer, primary_key=True)
    session_key = Column(String(255), nullable=False, index=True)

    customer_name = Column(String, nullable=True)
    customer_email = Column(String, nullable=True)
    customer_phone = Column(String, nullable=True)
    address = Column(String, nullable=True)

    status = Column(String(20), nullable=False, default="active")
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    expires_at = Column(DateTime(timezone=True), nullable=True)

    items = relationship(
        "CartItemModel",
        back_populates="cart",
        cascade="all, delete-orphan",
        order_by="CartItemModel.id",
    )

    def has_contact_info(self) -> bool:
        return bool((self.customer_name or "").strip() and (self.customer_email or "").strip())
