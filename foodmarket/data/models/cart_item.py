from datetime import datetime, timezone

from sqlalchemy import CheckConstraint, Column, DateTime, ForeignKey, Integer, Numeric, String, UniqueConstraint
from sqlalchemy.orm import relationship

from foodmarket.data.database import Base


class CartItemModel(Base):
    __tablename__ = "cart_items"
    __table_args__ = (
        UniqueConstraint("cart_id", "food_id", name="uq_cart_food"),
        CheckConstraint("quantity > 0", name="ck_cart_items_quantity_positive"),
    )

    id = Column(Integer, primary_key=True)
    cart_id = Column(Integer, ForeignKey("carts.id", ondelete="CASCADE"), nullable=False, index=True)
    food_id = Column(Integer, ForeignKey("foods.id"), nullable=False)

    quantity = Column(Integer, nullable=False)
    # cena z chwili pierwszego dodania, nie aktualna cena z katalogu
    unit_price = Column(Numeric(10, 2), nullable=False)
    note = Column(String, nullable=True)
    added_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))

    cart = relationship("CartModel", back_populates="items")
    food = relationship("FoodModel")

    @property
    def subtotal(self):
        return self.unit_price * self.quantity
