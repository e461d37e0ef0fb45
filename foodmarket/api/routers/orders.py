# foodmarket/api/routers/orders.py
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Response

from foodmarket.api.deps import get_order_service
from foodmarket.domain.schemas import OrderOut, OrderStatusIn, OrderSummaryOut
from foodmarket.services.order_service import OrderService

router = APIRouter(prefix="/orders", tags=["orders"])


@router.get("", response_model=List[OrderOut])
def list_orders(
    status: Optional[str] = Query(None),
    customer_email: Optional[str] = Query(None),
    payment_id: Optional[int] = Query(None),
    limit: int = Query(100),
    offset: int = Query(0),
    svc: OrderService = Depends(get_order_service),
):
    return svc.list_orders(
        status=status,
        customer_email=customer_email,
        payment_id=payment_id,
        limit=limit,
        offset=offset,
    )


@router.get("/stats/summary", response_model=OrderSummaryOut)
def order_summary(svc: OrderService = Depends(get_order_service)):
    """Zamowienia i sprzedaz per status, lacznie i z dzisiaj."""
    return svc.summary()


@router.get("/{order_id}", response_model=OrderOut)
def get_order(order_id: int, svc: OrderService = Depends(get_order_service)):
    """
    Pobiera szczegóły zamówienia.
    """
    return svc.get_order(order_id)


@router.patch("/{order_id}/status", response_model=OrderOut)
def set_order_status(
    order_id: int,
    payload: OrderStatusIn,
    svc: OrderService = Depends(get_order_service),
):
    """Zmiana statusu wg tabeli przejsc (kuchnia, kasa, dostawa)."""
    return svc.set_order_status(order_id, payload.status)


@router.delete("/{order_id}", status_code=204)
def delete_order(order_id: int, svc: OrderService = Depends(get_order_service)):
    svc.delete_order(order_id)
    return Response(status_code=204)
