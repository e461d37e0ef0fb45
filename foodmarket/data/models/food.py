from datetime import datetime, timezone

from sqlalchemy import CheckConstraint, Column, DateTime, ForeignKey, Integer, Numeric, String
from sqlalchemy.orm import relationship

from foodmarket.data.database import Base


def _utcnow():
    return datetime.now(timezone.utc)


class FoodModel(Base):
    """Pozycja menu. Cena zmienia sie tylko administracyjnie."""

    __tablename__ = "foods"
    __table_args__ = (CheckConstraint("price >= 0", name="ck_foods_price_non_negative"),)

    id = Column(Integer, primary_key=True)
    name = Column(String(120), nullable=False)
    category = Column(String(40), nullable=True, index=True)
    category_id = Column(Integer, ForeignKey("categories.id"), nullable=True, index=True)
    price = Column(Numeric(10, 2), nullable=False)
    image = Column(String, nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow)

    category_ref = relationship("CategoryModel")
