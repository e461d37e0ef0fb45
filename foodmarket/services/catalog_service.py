# foodmarket/services/catalog_service.py
from typing import Any, Dict

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from foodmarket.data.models.category import CategoryModel
from foodmarket.data.models.food import FoodModel
from foodmarket.domain.errors import Conflict, NotFound, ValidationError
from foodmarket.domain.schemas import CategoryIn, CategoryPatchIn, FoodIn
from foodmarket.repos.catalog_repo import CatalogRepo
from foodmarket.utils.logging import get_logger

logger = get_logger(__name__)

MAX_LIMIT = 200
DEFAULT_LIMIT = 50


class CatalogService:
    """Menu i kategorie. Zwykly CRUD, ceny w koszyku/zamowieniach sa kopiowane."""

    def __init__(self, db: Session):
        self.repo = CatalogRepo(db)

    # ---------- foods ----------

    def list_foods(self, category: str | None = None) -> list[FoodModel]:
        return self.repo.list_foods(category=category)

    def get_food(self, food_id: int) -> FoodModel:
        food = self.repo.get_food(food_id)
        if not food:
            raise NotFound("Food not found")
        return food

    def _check_category(self, category_id: int | None) -> None:
        if category_id is not None and not self.repo.get_category(category_id):
            raise ValidationError(f"Category {category_id} does not exist")

    def create_food(self, payload: FoodIn) -> FoodModel:
        self._check_category(payload.category_id)
        food = self.repo.add(FoodModel(**payload.model_dump()))
        self.repo.commit()
        logger.info(f"Created food {food.id} '{food.name}' at {food.price}")
        return food

    def update_food(self, food_id: int, payload: FoodIn) -> FoodModel:
        food = self.get_food(food_id)
        self._check_category(payload.category_id)
        for field, value in payload.model_dump().items():
            setattr(food, field, value)
        self.repo.commit()
        logger.info(f"Updated food {food_id}")
        return food

    def delete_food(self, food_id: int) -> None:
        food = self.get_food(food_id)
        if self.repo.food_is_referenced(food_id):
            raise Conflict("Food is referenced by orders or carts")
        self.repo.delete(food)
        self.repo.commit()
        logger.info(f"Deleted food {food_id}")

    # ---------- categories ----------

    def list_categories(
        self,
        q: str | None = None,
        limit: int | None = None,
        offset: int | None = None,
        order_by: str | None = None,
        order: str | None = None,
    ) -> Dict[str, Any]:
        limit = DEFAULT_LIMIT if limit is None else min(max(limit, 0), MAX_LIMIT)
        offset = 0 if offset is None else max(offset, 0)
        order_by = order_by if order_by in ("id", "name") else "id"
        order = "asc" if (order or "").lower() == "asc" else "desc"

        items, total = self.repo.list_categories(
            q=(q or "").strip() or None,
            limit=limit,
            offset=offset,
            order_by=order_by,
            descending=order == "desc",
        )
        return {
            "items": items,
            "meta": {"total": total, "limit": limit, "offset": offset, "order_by": order_by, "order": order},
        }

    def get_category(self, category_id: int) -> CategoryModel:
        category = self.repo.get_category(category_id)
        if not category:
            raise NotFound("Category not found")
        return category

    def create_category(self, payload: CategoryIn) -> CategoryModel:
        if self.repo.get_category_by_name(payload.name):
            raise Conflict("A category with that name already exists")
        try:
            category = self.repo.add(CategoryModel(name=payload.name))
            self.repo.commit()
        except IntegrityError:
            self.repo.rollback()
            raise Conflict("A category with that name already exists")
        return category

    def rename_category(self, category_id: int, payload: CategoryIn) -> CategoryModel:
        category = self.get_category(category_id)
        other = self.repo.get_category_by_name(payload.name)
        if other and other.id != category_id:
            raise Conflict("A category with that name already exists")
        category.name = payload.name
        try:
            self.repo.commit()
        except IntegrityError:
            self.repo.rollback()
            raise Conflict("A category with that name already exists")
        return category

    def patch_category(self, category_id: int, payload: CategoryPatchIn) -> CategoryModel:
        if payload.name is None:
            raise ValidationError("No fields to update")
        return self.rename_category(category_id, CategoryIn(name=payload.name))

    def delete_category(self, category_id: int) -> None:
        category = self.get_category(category_id)
        if self.repo.category_in_use(category_id):
            raise Conflict("Category is used by foods")
        self.repo.delete(category)
        self.repo.commit()
