"""
Celery Worker Configuration

Redis is both broker and result backend. Ledger exports run on their own
queue so a slow workbook write never delays other background work:

    celery -A app.celery_worker worker -Q ledger --loglevel=info
"""

from celery import Celery

from app.core.config import get_settings

settings = get_settings()

LEDGER_QUEUE = "ledger"

celery_app = Celery(
    "instabite_worker",
    broker=settings.redis_url,
    backend=settings.redis_url,
    include=["app.tasks"],
)

celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,

    task_routes={"app.tasks.export_invoice_to_ledger": {"queue": LEDGER_QUEUE}},

    # One workbook writer per process; the file lock serializes the rest
    worker_prefetch_multiplier=1,
    worker_concurrency=2,

    # Must outlast a full wait on the ledger file lock
    task_soft_time_limit=settings.ledger_lock_timeout + 30,
    task_time_limit=settings.ledger_lock_timeout + 60,

    result_expires=3600,
    task_acks_late=True,
    task_reject_on_worker_lost=True,
    broker_connection_retry_on_startup=True,
)


if __name__ == "__main__":
    celery_app.start()
