# foodmarket/api/routers/catalog.py
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Response

from foodmarket.api.deps import get_catalog_service
from foodmarket.domain.schemas import CategoryIn, CategoryOut, CategoryPage, CategoryPatchIn, FoodIn, FoodOut
from foodmarket.services.catalog_service import CatalogService

router = APIRouter(tags=["catalog"])


# ---------- foods ----------

@router.get("/foods", response_model=List[FoodOut])
def list_foods(
    category: Optional[str] = Query(None),
    svc: CatalogService = Depends(get_catalog_service),
):
    return svc.list_foods(category=category)


@router.get("/foods/{food_id}", response_model=FoodOut)
def get_food(food_id: int, svc: CatalogService = Depends(get_catalog_service)):
    return svc.get_food(food_id)


@router.post("/foods", response_model=FoodOut, status_code=201)
def create_food(payload: FoodIn, svc: CatalogService = Depends(get_catalog_service)):
    return svc.create_food(payload)


@router.put("/foods/{food_id}", response_model=FoodOut)
def update_food(food_id: int, payload: FoodIn, svc: CatalogService = Depends(get_catalog_service)):
    return svc.update_food(food_id, payload)


@router.delete("/foods/{food_id}", status_code=204)
def delete_food(food_id: int, svc: CatalogService = Depends(get_catalog_service)):
    svc.delete_food(food_id)
    return Response(status_code=204)


# ---------- categories ----------

@router.get("/categories", response_model=CategoryPage)
def list_categories(
    q: Optional[str] = Query(None),
    limit: Optional[int] = Query(None),
    offset: Optional[int] = Query(None),
    order_by: Optional[str] = Query(None),
    order: Optional[str] = Query(None),
    svc: CatalogService = Depends(get_catalog_service),
):
    """Lista kategorii z filtrowaniem po nazwie i stronicowaniem."""
    return svc.list_categories(q=q, limit=limit, offset=offset, order_by=order_by, order=order)


@router.get("/categories/{category_id}", response_model=CategoryOut)
def get_category(category_id: int, svc: CatalogService = Depends(get_catalog_service)):
    return svc.get_category(category_id)


@router.post("/categories", response_model=CategoryOut, status_code=201)
def create_category(payload: CategoryIn, svc: CatalogService = Depends(get_catalog_service)):
    return svc.create_category(payload)


@router.put("/categories/{category_id}", response_model=CategoryOut)
def rename_category(
    category_id: int,
    payload: CategoryIn,
    svc: CatalogService = Depends(get_catalog_service),
):
    return svc.rename_category(category_id, payload)


@router.patch("/categories/{category_id}", response_model=CategoryOut)
def patch_category(
    category_id: int,
    payload: CategoryPatchIn,
    svc: CatalogService = Depends(get_catalog_service),
):
    return svc.patch_category(category_id, payload)


@router.delete("/categories/{category_id}", status_code=204)
def delete_category(category_id: int, svc: CatalogService = Depends(get_catalog_service)):
    svc.delete_category(category_id)
    return Response(status_code=204)
