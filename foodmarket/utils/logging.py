"""
Logowanie strukturalne (JSON) z kontekstem requestu.

get_logger(__name__) zwraca adapter, ktory dokleja request_id do kazdego wpisu.
"""

import json
import logging
import sys
import time
import traceback
import uuid
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Optional

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

request_id_var: ContextVar[Optional[str]] = ContextVar("request_id", default=None)

_service_name = "foodmarket"


class StructuredFormatter(logging.Formatter):
    """Jeden wpis = jeden obiekt JSON w linii."""

    def format(self, record: logging.LogRecord) -> str:
        log_obj = {
            "@timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "service": _service_name,
            "location": {
                "module": record.module,
                "function": record.funcName,
                "line": record.lineno,
            },
        }

        request_id = getattr(record, "request_id", None) or request_id_var.get()
        if request_id:
            log_obj["request_id"] = request_id

        if record.exc_info:
            log_obj["error"] = {
                "type": record.exc_info[0].__name__,
                "message": str(record.exc_info[1]),
                "stacktrace": traceback.format_exception(*record.exc_info),
            }

        if hasattr(record, "extra_fields"):
            log_obj["custom"] = record.extra_fields

        return json.dumps(log_obj, default=str)


class SecretsFilter(logging.Filter):
    """Wycina klucze stripe i tokeny sesji z tresci logow."""

    PREFIXES = ("sk_live_", "sk_test_", "whsec_", "rk_live_", "rk_test_")

    def filter(self, record: logging.LogRecord) -> bool:
        message = record.getMessage()
        if any(p in message for p in self.PREFIXES):
            words = [
                "***REDACTED***" if w.startswith(self.PREFIXES) else w
                for w in message.split(" ")
            ]
            record.msg = " ".join(words)
            record.args = ()
        return True


def setup_logging(service_name: str, level: str = "INFO", json_output: bool = True) -> None:
    global _service_name
    _service_name = service_name

    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, level.upper(), logging.INFO))
    root_logger.handlers = []

    handler = logging.StreamHandler(sys.stdout)
    if json_output:
        handler.setFormatter(StructuredFormatter())
    else:
        handler.setFormatter(
            logging.Formatter("%(asctime)s [%(levelname)s] %(name)s: %(message)s")
        )
    handler.addFilter(SecretsFilter())
    root_logger.addHandler(handler)

    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("stripe").setLevel(logging.WARNING)

    root_logger.info(f"Logging initialized for {service_name} (level={level})")


class LoggerAdapter(logging.LoggerAdapter):
    def process(self, msg, kwargs):
        extra = kwargs.get("extra", {})
        request_id = request_id_var.get()
        if request_id:
            extra["request_id"] = request_id
        kwargs["extra"] = extra
        return msg, kwargs


def get_logger(name: str) -> LoggerAdapter:
    return LoggerAdapter(logging.getLogger(name), {})


def generate_request_id() -> str:
    return str(uuid.uuid4())


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Loguje start/koniec requestu, czas trwania i X-Request-ID."""

    async def dispatch(self, request: Request, call_next) -> Response:
        request_id = request.headers.get("X-Request-ID") or generate_request_id()
        token = request_id_var.set(request_id)

        logger = get_logger(__name__)
        logger.info(f"Request started: {request.method} {request.url.path}")
        start = time.perf_counter()

        try:
            response = await call_next(request)
            duration_ms = (time.perf_counter() - start) * 1000
            logger.info(
                f"Request completed: {request.method} {request.url.path} "
                f"-> {response.status_code} ({duration_ms:.1f} ms)"
            )
            response.headers["X-Request-ID"] = request_id
            return response
        except Exception:
            duration_ms = (time.perf_counter() - start) * 1000
            logger.error(
                f"Request failed: {request.method} {request.url.path} ({duration_ms:.1f} ms)",
                exc_info=True,
            )
            raise
        finally:
            request_id_var.reset(token)
