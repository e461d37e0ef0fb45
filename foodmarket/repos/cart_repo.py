# foodmarket/repos/cart_repo.py
from datetime import datetime

from sqlalchemy import delete, select, update
from sqlalchemy.orm import Session, selectinload

from foodmarket.data.models.cart import CartModel
from foodmarket.data.models.cart_item import CartItemModel
from foodmarket.domain.statuses import CartStatus


class CartRepo:
    def __init__(self, db: Session):
        self.db = db

    def get_cart(self, cart_id: int, for_update: bool = False) -> CartModel | None:
        stmt = select(CartModel).where(CartModel.id == cart_id)
        if for_update:
            stmt = stmt.with_for_update().execution_options(populate_existing=True)
        return self.db.execute(stmt).scalar_one_or_none()

    def get_active_cart(self, session_key: str, for_update: bool = False) -> CartModel | None:
        stmt = select(CartModel).where(
            CartModel.session_key == session_key,
            CartModel.status == CartStatus.ACTIVE,
        )
        if for_update:
            stmt = stmt.with_for_update().execution_options(populate_existing=True)
        return self.db.execute(stmt).scalar_one_or_none()

    def create_cart(self, cart: CartModel) -> CartModel:
        self.db.add(cart)
        self.db.flush()
        return cart

    def get_cart_items(self, cart_id: int) -> list[CartItemModel]:
        stmt = (
            select(CartItemModel)
            .where(CartItemModel.cart_id == cart_id)
            .options(selectinload(CartItemModel.food))
            .order_by(CartItemModel.id)
        )
        return list(self.db.execute(stmt).scalars().all())

    def get_cart_item(self, cart_id: int, food_id: int) -> CartItemModel | None:
        stmt = select(CartItemModel).where(
            CartItemModel.cart_id == cart_id,
            CartItemModel.food_id == food_id,
        )
        return self.db.execute(stmt).scalar_one_or_none()

    def get_line(self, cart_id: int, line_id: int) -> CartItemModel | None:
        stmt = select(CartItemModel).where(
            CartItemModel.id == line_id,
            CartItemModel.cart_id == cart_id,
        )
        return self.db.execute(stmt).scalar_one_or_none()

    def add_cart_item(self, item: CartItemModel) -> CartItemModel:
        self.db.add(item)
        self.db.flush()
        return item

    def delete_cart_item(self, item: CartItemModel) -> None:
        self.db.delete(item)
        self.db.flush()

    def clear_items(self, cart_id: int) -> int:
        result = self.db.execute(delete(CartItemModel).where(CartItemModel.cart_id == cart_id))
        return result.rowcount

    def abandon_inactive(self, inactive_before: datetime, now: datetime) -> int:
        stmt = (
            update(CartModel)
            .where(
                CartModel.status == CartStatus.ACTIVE,
                (CartModel.updated_at < inactive_before)
                | (CartModel.expires_at.is_not(None) & (CartModel.expires_at < now)),
            )
            .values(status=CartStatus.ABANDONED, updated_at=now)
            .execution_options(synchronize_session=False)
        )
        return self.db.execute(stmt).rowcount

    def commit(self) -> None:
        self.db.commit()

    def rollback(self) -> None:
        self.db.rollback()
