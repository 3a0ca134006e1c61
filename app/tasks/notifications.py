import logging
from celery import shared_task

logger = logging.getLogger(__name__)


@shared_task(bind=True, max_retries=3, default_retry_delay=60)
def notify_order_placed(self, order_id: int, unit: str, total_cents: int, item_count: int) -> dict:
    """Announce a new order to the fulfilment staff.

    Logged as a structured line until a messaging channel is wired in.
    """
    summary = {
        "event": "order_placed",
        "order_id": order_id,
        "unit": unit,
        "total_cents": total_cents,
        "item_count": item_count,
    }
    logger.info(summary)
    return summary
