# foodmarket/api/__init__.py
from fastapi import FastAPI

from foodmarket.api.routers import cart, catalog, checkout, health, orders


def include_routers(app: FastAPI) -> None:
    app.include_router(health.router)
    app.include_router(catalog.router)
    app.include_router(cart.router)
    app.include_router(checkout.router)
    app.include_router(orders.router)
