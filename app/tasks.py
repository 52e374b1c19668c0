"""
Celery Tasks
Background tasks that run after a bill has been generated.
"""

import logging
import time
from typing import Any

from app.celery_worker import celery_app
from app.services.ledger import InvoiceLedger, ledger_row

logger = logging.getLogger(__name__)


@celery_app.task(
    bind=True,
    max_retries=3,
    default_retry_delay=5,
    autoretry_for=(Exception,),
    retry_backoff=True
)
def export_invoice_to_ledger(self, row: dict) -> dict:
    """
    Append a generated bill to the Excel invoice ledger.

    Args:
        row: Flattened bill data (see ``ledger_row``)

    Returns:
        dict: Result of the export operation
    """
    task_id = self.request.id
    order_id = row.get('order_id', 'unknown')

    logger.info(f"Task {task_id}: exporting bill {order_id}")
    start_time = time.time()

    result = InvoiceLedger.from_settings().append(row)

    elapsed = round(time.time() - start_time, 3)
    result['task_id'] = task_id
    result['processing_time_seconds'] = elapsed

    if result['success']:
        logger.info(f"Task {task_id}: bill {order_id} exported in {elapsed}s")
    else:
        logger.warning(f"Task {task_id}: bill {order_id} not exported - {result['message']}")

    return result


def queue_ledger_export(order: Any) -> bool:
    """
    Queue the ledger export for a billed order.

    Broker problems are logged and reported as ``False``; they never
    reach the caller of the bill endpoint.
    """
    try:
        export_invoice_to_ledger.delay(ledger_row(order))
    except Exception as e:
        logger.warning(f"Could not queue ledger export for {order.order_id}: {e}")
        return False
    return True

