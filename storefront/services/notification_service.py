# storefront/services/notification_service.py
from celery import Celery, shared_task

from storefront.utils.logging import get_logger
from storefront.utils.settings import Settings

logger = get_logger(__name__)

TASK_NAME = "storefront.services.notification_service.send_order_notification_task"

_MESSAGES = {
    "pending": "Order {order_id} has been placed",
    "processing": "Payment received, order {order_id} is being processed",
    "shipped": "Order {order_id} is on its way",
    "completed": "Order {order_id} has been delivered",
    "cancelled": "Order {order_id} has been cancelled",
}


def make_celery(settings: Settings) -> Celery:
    app = Celery(
        "storefront",
        broker=settings.celery_broker_url,
        backend=settings.celery_result_backend,
    )

    # tasks live outside the worker module; list them so the worker registers them
    app.conf.imports = ("storefront.services.notification_service",)
    app.conf.timezone = "UTC"
    app.conf.task_ignore_result = True
    return app


class NotificationService:
    """
    Sends order notifications through Celery.
    Called only after the order change has been committed.
    """

    def __init__(self, celery: Celery):
        self.celery = celery

    def send_order_notification(self, user_id: int, order_id: int, status: str) -> None:
        try:
            self.celery.send_task(TASK_NAME, args=(user_id, order_id, status))
        except Exception as e:
            # the order change is already committed at this point
            logger.warning(f"Failed to enqueue notification for order {order_id}: {e}")


@shared_task(name=TASK_NAME)
def send_order_notification_task(user_id: int, order_id: int, status: str):
    """
    Delivers the notification. Only logged for now; a mail or push
    gateway would be called from here.
    """
    message = _MESSAGES.get(status, "Order {order_id} is now " + status).format(order_id=order_id)
    logger.info(f"[NOTIFICATION] User {user_id}: {message}")
    return {"user_id": user_id, "order_id": order_id, "status": status, "sent": True}
