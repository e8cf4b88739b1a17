# cart_engine/celery_worker.py
from celery import Celery

from cart_engine.utils.settings import (
    CART_EXPIRY_SWEEP_SECONDS,
    CELERY_BROKER_URL,
    CELERY_RESULT_BACKEND,
)

celery_app = Celery(
    "cart",
    broker=CELERY_BROKER_URL,
    backend=CELERY_RESULT_BACKEND,
)

# tasks have to be imported explicitly so celery registers them
celery_app.conf.imports = ("cart_engine.tasks.expire",)

celery_app.conf.beat_schedule = {
    "expire-carts": {
        "task": "cart_engine.tasks.expire.expire_carts_task",
        "schedule": CART_EXPIRY_SWEEP_SECONDS,
    },
}

celery_app.conf.timezone = "UTC"
