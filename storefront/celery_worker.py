# storefront/celery_worker.py
from celery import Celery

from storefront.utils.settings import CELERY_BROKER_URL, CELERY_RESULT_BACKEND, RECONCILE_INTERVAL_SECONDS

celery_app = Celery(
    "storefront",
    broker=CELERY_BROKER_URL,
    backend=CELERY_RESULT_BACKEND,
)

#explicit import so the worker registers the tasks
celery_app.conf.imports = (
    "storefront.tasks.reconcile",
)

celery_app.conf.beat_schedule = {
    "reconcile-orphaned-orders": {
        "task": "storefront.tasks.reconcile.reconcile_orphaned_orders_task",
        "schedule": float(RECONCILE_INTERVAL_SECONDS),
    },
}

celery_app.conf.timezone = "UTC"
