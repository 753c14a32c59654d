from shared.event_bus import event_bus
from .models import Notification
from .transport import NOTIFICATION_DISPATCHED
import logging

logger = logging.getLogger(__name__)


def store_notification(sender, channel=None, message=None, recipient_id=None, entity_type="", entity_id="", **kwargs):
    """
    Persists every dispatched notification so the recipient can read it later.
    """
    notification = Notification.objects.create(
        recipient_id=recipient_id,
        channel=channel,
        message=message,
        entity_type=entity_type or "",
        entity_id=str(entity_id) if entity_id is not None else "",
    )
    logger.debug(f"Stored notification {notification.pk} on channel '{channel}' for user {recipient_id}.")
    return notification


def register_notification_listeners():
    """
    Subscribes the storage handler to dispatched notifications.
    This function should be called once at application startup.
    """
    event_bus.register_event(NOTIFICATION_DISPATCHED)
    event_bus.subscribe(NOTIFICATION_DISPATCHED, store_notification)
