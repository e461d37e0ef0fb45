# foodmarket/api/deps.py
from fastapi import Depends, Header, Request
from sqlalchemy.orm import Session

from foodmarket.data.database import get_db
from foodmarket.services.cart_service import CartService
from foodmarket.services.catalog_service import CatalogService
from foodmarket.services.checkout_service import CheckoutService
from foodmarket.services.order_service import OrderService
from foodmarket.services.payment_gateway import StripeGateway
from foodmarket.services.session_tokens import SessionTokens
from foodmarket.utils.settings import Settings


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_gateway(request: Request) -> StripeGateway:
    return request.app.state.gateway


def get_session_tokens(request: Request) -> SessionTokens:
    return request.app.state.session_tokens


def get_session_key(
    x_session_id: str | None = Header(None, alias="X-Session-Id"),
    tokens: SessionTokens = Depends(get_session_tokens),
) -> str:
    return tokens.resolve(x_session_id)


def get_cart_service(
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_app_settings),
) -> CartService:
    return CartService(db, settings)


def get_checkout_service(
    db: Session = Depends(get_db),
    gateway: StripeGateway = Depends(get_gateway),
    settings: Settings = Depends(get_app_settings),
) -> CheckoutService:
    return CheckoutService(db, gateway, settings)


def get_order_service(db: Session = Depends(get_db)) -> OrderService:
    return OrderService(db)


def get_catalog_service(db: Session = Depends(get_db)) -> CatalogService:
    return CatalogService(db)
