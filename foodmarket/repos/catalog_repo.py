# foodmarket/repos/catalog_repo.py
from sqlalchemy import func, select
from sqlalchemy.orm import Session

from foodmarket.data.models.cart_item import CartItemModel
from foodmarket.data.models.category import CategoryModel
from foodmarket.data.models.food import FoodModel
from foodmarket.data.models.order import OrderModel


class CatalogRepo:
    def __init__(self, db: Session):
        self.db = db

    # foods
    def list_foods(self, category: str | None = None) -> list[FoodModel]:
        stmt = select(FoodModel).order_by(FoodModel.id)
        if category:
            stmt = stmt.where(FoodModel.category == category)
        return list(self.db.execute(stmt).scalars().all())

    def get_food(self, food_id: int) -> FoodModel | None:
        return self.db.get(FoodModel, food_id)

    def add(self, obj):
        self.db.add(obj)
        self.db.flush()
        return obj

    def delete(self, obj) -> None:
        self.db.delete(obj)
        self.db.flush()

    def food_is_referenced(self, food_id: int) -> bool:
        in_orders = self.db.execute(
            select(func.count()).select_from(OrderModel).where(OrderModel.food_id == food_id)
        ).scalar_one()
        in_carts = self.db.execute(
            select(func.count()).select_from(CartItemModel).where(CartItemModel.food_id == food_id)
        ).scalar_one()
        return (in_orders + in_carts) > 0

    # categories
    def list_categories(
        self,
        q: str | None,
        limit: int,
        offset: int,
        order_by: str,
        descending: bool,
    ) -> tuple[list[CategoryModel], int]:
        stmt = select(CategoryModel)
        count_stmt = select(func.count()).select_from(CategoryModel)
        if q:
            pattern = f"%{q.lower()}%"
            stmt = stmt.where(func.lower(CategoryModel.name).like(pattern))
            count_stmt = count_stmt.where(func.lower(CategoryModel.name).like(pattern))

        column = CategoryModel.name if order_by == "name" else CategoryModel.id
        stmt = stmt.order_by(column.desc() if descending else column.asc()).limit(limit).offset(offset)

        total = self.db.execute(count_stmt).scalar_one()
        return list(self.db.execute(stmt).scalars().all()), total

    def get_category(self, category_id: int) -> CategoryModel | None:
        return self.db.get(CategoryModel, category_id)

    def get_category_by_name(self, name: str) -> CategoryModel | None:
        stmt = select(CategoryModel).where(func.lower(CategoryModel.name) == name.lower())
        return self.db.execute(stmt).scalar_one_or_none()

    def category_in_use(self, category_id: int) -> bool:
        count = self.db.execute(
            select(func.count()).select_from(FoodModel).where(FoodModel.category_id == category_id)
        ).scalar_one()
        return count > 0

    def commit(self) -> None:
        self.db.commit()

    def rollback(self) -> None:
        self.db.rollback()
