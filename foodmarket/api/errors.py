# foodmarket/api/errors.py
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from foodmarket.domain.errors import ServiceError
from foodmarket.utils.logging import get_logger
from foodmarket.utils.settings import Settings

logger = get_logger(__name__)


def _body(message: str, error: str | None = None) -> dict:
    body = {"message": message}
    if error:
        body["error"] = error
    return body


def register_exception_handlers(app: FastAPI, settings: Settings) -> None:
    """Wszystkie bledy wychodza jako {message, error?}."""

    @app.exception_handler(ServiceError)
    async def service_error_handler(request: Request, exc: ServiceError):
        if exc.status_code >= 500:
            logger.error(f"{type(exc).__name__} on {request.method} {request.url.path}: {exc.message}")
        else:
            logger.info(f"{type(exc).__name__} on {request.method} {request.url.path}: {exc.message}")
        return JSONResponse(status_code=exc.status_code, content=_body(exc.message, exc.error))

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        problems = []
        for err in exc.errors():
            loc = ".".join(str(p) for p in err.get("loc", ()) if p != "body")
            problems.append(f"{loc}: {err.get('msg')}" if loc else err.get("msg"))
        return JSONResponse(status_code=400, content=_body("Invalid request", "; ".join(problems)))

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        return JSONResponse(
            status_code=exc.status_code,
            content=_body(str(exc.detail)),
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        logger.error(f"Unhandled error on {request.method} {request.url.path}", exc_info=exc)
        # szczegoly tylko w dev
        detail = f"{type(exc).__name__}: {exc}" if settings.is_development else None
        return JSONResponse(status_code=500, content=_body("Internal server error", detail))
