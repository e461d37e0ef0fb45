# foodmarket/api/routers/cart.py
from fastapi import APIRouter, Depends, Header, Response

from foodmarket.api.deps import get_cart_service, get_session_key, get_session_tokens
from foodmarket.domain.schemas import AddItemIn, CartOut, ClearCartOut, ContactInfoIn, UpdateQuantityIn
from foodmarket.services.cart_service import CartService
from foodmarket.services.session_tokens import SessionTokens

router = APIRouter(prefix="/cart", tags=["cart"])


def _view(svc: CartService, tokens: SessionTokens, session_key: str):
    cart = svc.get_or_create_cart(session_key)
    return svc.cart_view(cart, session_token=tokens.issue(session_key))


@router.get("", response_model=CartOut)
def get_cart(
    x_session_id: str | None = Header(None, alias="X-Session-Id"),
    svc: CartService = Depends(get_cart_service),
    tokens: SessionTokens = Depends(get_session_tokens),
):
    """
    Zwraca koszyk sesji, zakladajac go przy pierwszym wejsciu.
    Bez naglowka X-Session-Id serwer nadaje nowy klucz (session_token w odpowiedzi).
    """
    if x_session_id is None or not x_session_id.strip() or x_session_id.strip() == "undefined":
        session_key = tokens.new_session_key()
    else:
        session_key = tokens.resolve(x_session_id)
    return _view(svc, tokens, session_key)


@router.delete("", response_model=ClearCartOut)
def clear_cart(
    session_key: str = Depends(get_session_key),
    svc: CartService = Depends(get_cart_service),
):
    return {"removed_items": svc.clear_cart(session_key)}


@router.post("/items", response_model=CartOut, status_code=201)
def add_item(
    payload: AddItemIn,
    session_key: str = Depends(get_session_key),
    svc: CartService = Depends(get_cart_service),
    tokens: SessionTokens = Depends(get_session_tokens),
):
    svc.add_item(session_key, payload.food_id, payload.quantity, payload.note)
    return _view(svc, tokens, session_key)


@router.put("/items/{line_id}", response_model=CartOut)
def update_item(
    line_id: int,
    payload: UpdateQuantityIn,
    session_key: str = Depends(get_session_key),
    svc: CartService = Depends(get_cart_service),
    tokens: SessionTokens = Depends(get_session_tokens),
):
    svc.update_item_quantity(session_key, line_id, payload.quantity)
    return _view(svc, tokens, session_key)


@router.delete("/items/{line_id}", status_code=204)
def remove_item(
    line_id: int,
    session_key: str = Depends(get_session_key),
    svc: CartService = Depends(get_cart_service),
):
    svc.remove_item(session_key, line_id)
    return Response(status_code=204)


@router.put("/info", response_model=CartOut)
def set_contact_info(
    payload: ContactInfoIn,
    session_key: str = Depends(get_session_key),
    svc: CartService = Depends(get_cart_service),
    tokens: SessionTokens = Depends(get_session_tokens),
):
    svc.set_contact_info(session_key, payload.name, payload.email, payload.phone, payload.address)
    return _view(svc, tokens, session_key)
