"""
Celery Tasks
Background tasks for processing orders asynchronously.
"""

from storefront.celery_worker import celery_app
from storefront.core.config import get_logger
from storefront.database import mark_order_exported
from storefront.services.excel_manager import ExcelManager
import time

logger = get_logger(__name__)


@celery_app.task(
    bind=True,
    max_retries=3,
    default_retry_delay=5,
    autoretry_for=(Exception,),
    retry_backoff=True
)
def export_order_to_excel(self, order_data: dict) -> dict:
    """
    Export order to Excel file.
    This task runs asynchronously via Celery worker.

    Lock timeouts and write errors propagate so the task is retried
    with backoff. The order row is flagged as exported only after the
    workbook has been written.

    Args:
        order_data: Dictionary containing order information

    Returns:
        dict: Result of the export operation
    """
    task_id = self.request.id
    order_id = order_data.get('order_id', 'unknown')

    logger.info(f"Task {task_id}: Processing order {order_id} (attempt {self.request.retries + 1})")
    start_time = time.time()

    try:
        result = ExcelManager.export_order(order_data)
    except Exception as e:
        elapsed = round(time.time() - start_time, 3)
        logger.error(f"Task {task_id}: Order {order_id} error after {elapsed}s - {str(e)}")

        # Celery will auto-retry based on configuration
        raise

    if not mark_order_exported(order_id):
        logger.warning(f"Task {task_id}: Order {order_id} no longer exists, export flag not set")

    elapsed = round(time.time() - start_time, 3)
    result['task_id'] = task_id
    result['processing_time_seconds'] = elapsed
    logger.info(f"Task {task_id}: Order {order_id} completed in {elapsed}s")

    return result
