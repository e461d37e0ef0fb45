# foodmarket/celery_worker.py
from celery import Celery

from foodmarket.utils.settings import Settings, get_settings


def create_celery(settings: Settings) -> Celery:
    app = Celery(
        "foodmarket",
        broker=settings.celery_broker_url,
        backend=settings.celery_result_backend,
    )

    # jawny import taskow, zeby celery je zarejestrowal
    app.conf.imports = ("foodmarket.tasks.expire",)

    app.conf.beat_schedule = {
        "abandon-inactive-carts": {
            "task": "foodmarket.tasks.expire.abandon_carts_task",
            "schedule": float(settings.cart_sweep_interval_seconds),
        },
    }
    app.conf.timezone = "UTC"
    return app


celery_app = create_celery(get_settings())
