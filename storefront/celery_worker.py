# storefront/celery_worker.py
from celery import Celery

from storefront.utils.settings import (
    CART_SWEEP_INTERVAL_SECONDS,
    CELERY_BROKER_URL,
    CELERY_RESULT_BACKEND,
)

celery_app = Celery(
    "storefront",
    broker=CELERY_BROKER_URL,
    backend=CELERY_RESULT_BACKEND,
)

#register tasks explicitly
celery_app.conf.imports = ("storefront.tasks.expire",)

#optional sweep, lazy expiration on access stays authoritative
celery_app.conf.beat_schedule = {
    "expire-stale-carts": {
        "task": "storefront.tasks.expire.expire_carts_task",
        "schedule": CART_SWEEP_INTERVAL_SECONDS,
    },
}

celery_app.conf.timezone = "UTC"
