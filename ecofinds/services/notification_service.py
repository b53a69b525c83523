# ecofinds/services/notification_service.py
from ecofinds.celery_worker import celery_app
from ecofinds.utils.logging import get_logger
from ecofinds.utils.retry import broker_retry

logger = get_logger(__name__)


class NotificationService:
    """
    Sends order notifications through Celery.
    Called after the order transaction has committed.
    """

    @broker_retry()
    def send_order_notification(self, user_id: int, order_id: int, event: str, status: str):
        send_order_notification_task.delay(user_id, order_id, event, status)


@celery_app.task(name="ecofinds.services.notification_service.send_order_notification_task")
def send_order_notification_task(user_id: int, order_id: int, event: str, status: str):
    """
    Celery task. A real deployment would hand this to an email/push provider;
    here it only logs.
    """
    logger.info(f"[NOTIFICATION] User {user_id}: order {order_id} {event} (status={status})")

    return {"user_id": user_id, "order_id": order_id, "event": event, "status": status}
