# foodmarket/tasks/expire.py
from datetime import datetime, timezone

from sqlalchemy.orm import sessionmaker

from foodmarket.celery_worker import celery_app
from foodmarket.data.database import build_engine, build_session_factory
from foodmarket.services.cart_service import CartService
from foodmarket.services.lock_service import LockService
from foodmarket.utils.logging import get_logger
from foodmarket.utils.settings import Settings, get_settings

logger = get_logger(__name__)

SWEEP_LOCK = "abandon-carts"

_session_factory: sessionmaker | None = None


def _get_session_factory(settings: Settings) -> sessionmaker:
    global _session_factory
    if _session_factory is None:
        _session_factory = build_session_factory(build_engine(settings))
    return _session_factory


def sweep_abandoned_carts(
    session_factory: sessionmaker,
    settings: Settings,
    lock_service: LockService | None = None,
    now: datetime | None = None,
) -> int | None:
    """Zwraca liczbe porzuconych koszykow albo None, gdy inny worker trzyma lock."""
    owner = None
    if lock_service is not None:
        owner = lock_service.new_owner()
        ttl = max(60, settings.cart_sweep_interval_seconds)
        if not lock_service.acquire(SWEEP_LOCK, owner, ttl=ttl):
            logger.info("Cart sweep already running elsewhere, skipping")
            return None

    db = session_factory()
    try:
        return CartService(db, settings).abandon_inactive_carts(now or datetime.now(timezone.utc))
    finally:
        db.close()
        if lock_service is not None:
            lock_service.release(SWEEP_LOCK, owner)


@celery_app.task(name="foodmarket.tasks.expire.abandon_carts_task")
def abandon_carts_task():
    logger.info("Abandon carts task started")
    settings = get_settings()
    return sweep_abandoned_carts(
        _get_session_factory(settings),
        settings,
        lock_service=LockService.from_url(settings.redis_url),
    )
