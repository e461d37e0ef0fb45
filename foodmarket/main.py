# foodmarket/main.py
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI

from foodmarket.api import include_routers
from foodmarket.api.errors import register_exception_handlers
from foodmarket.data.database import build_engine, build_session_factory, init_models
from foodmarket.data.seed import seed
from foodmarket.services.payment_gateway import StripeGateway
from foodmarket.services.session_tokens import SessionTokens
from foodmarket.utils.logging import RequestLoggingMiddleware, get_logger, setup_logging
from foodmarket.utils.settings import Settings, get_settings

logger = get_logger(__name__)


def create_app(settings: Settings | None = None) -> FastAPI:
    settings = settings or get_settings()
    setup_logging("foodmarket", level=settings.log_level, json_output=settings.log_json)

    engine = build_engine(settings)
    session_factory = build_session_factory(engine)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if settings.create_tables:
            init_models(engine)
            logger.info("Database tables ready")
        if settings.seed_catalog:
            created = seed(session_factory)
            logger.info(f"Catalog seed: {created} foods created")
        yield
        engine.dispose()

    app = FastAPI(
        title="Foodmarket",
        version="1.0.0",
        lifespan=lifespan,
    )

    app.state.settings = settings
    app.state.engine = engine
    app.state.session_factory = session_factory
    app.state.gateway = StripeGateway(settings)
    app.state.session_tokens = SessionTokens(settings.session_signing_secret)

    app.add_middleware(RequestLoggingMiddleware)
    register_exception_handlers(app, settings)
    include_routers(app)

    return app


app = create_app()

if __name__ == "__main__":
    uvicorn.run(app, host="0.0.0.0", port=8000)
