import os
import logging
from celery import Celery
from celery.signals import task_failure, task_retry

broker_url = os.environ.get("CELERY_BROKER_URL", "memory://")
backend_url = os.environ.get("CELERY_RESULT_BACKEND", "cache+memory://")

celery_app = Celery("storefront", broker=broker_url, backend=backend_url, include=["app.tasks.notifications"])
celery_app.conf.update(
    task_default_queue=os.environ.get("CELERY_QUEUE", "storefront"),
    task_always_eager=os.environ.get("CELERY_TASK_ALWAYS_EAGER", "0") == "1",
    task_eager_propagates=True,
    task_store_eager_result=False,
    task_acks_late=True,
)
celery_app.set_default()

logger = logging.getLogger(__name__)


@task_failure.connect
def _log_task_failure(sender=None, task_id=None, exception=None, **kwargs):
    logger.error({"event": "task_failed", "task": getattr(sender, "name", task_id), "error": str(exception)})


@task_retry.connect
def _log_task_retry(sender=None, request=None, reason=None, **kwargs):
    logger.warning({"event": "task_retry", "task": getattr(sender, "name", ""), "reason": str(reason)})
