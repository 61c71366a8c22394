# checkout_core/services/notification_service.py
from checkout_core.celery_worker import celery_app
from checkout_core.utils.logging import get_logger

logger = get_logger(__name__)


class NotificationService:
    """
    Powiadomienie o nowym zamowieniu, wysylane przez Celery po commicie.
    Blad kolejki nie cofa zamowienia, tylko trafia do logow.
    """

    @staticmethod
    def send_order_notification(customer_id: int, order_id: int, order_number: str) -> bool:
        try:
            send_order_notification_task.delay(customer_id, order_id, order_number)
            return True
        except Exception as e:
            logger.warning(f"Could not queue notification for order {order_number}: {e}")
            return False


@celery_app.task(name="checkout_core.services.notification_service.send_order_notification_task")
def send_order_notification_task(customer_id: int, order_id: int, order_number: str):
    """
    W prawdziwym wdrozeniu: email do klienta + powiadomienie dla dzialu sprzedazy.
    """
    logger.info(f"[NOTIFICATION] Customer {customer_id}: new order {order_number} (id {order_id}) is pending")
    return {"customer_id": customer_id, "order_id": order_id, "order_number": order_number, "status": "sent"}
