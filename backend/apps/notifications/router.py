from __future__ import annotations

import logging
from typing import Optional

from apps.permissions.capabilities import UserRole
from apps.users.services import UserDirectory

from .transport import EventBusTransport

logger = logging.getLogger(__name__)

GENERAL_SUPERVISOR_CHANNEL = "GeneralSupervisorNotification"
HOSPITAL_MANAGER_CHANNEL = "HospitalManagerNotification"
GENERAL_CHANNEL = "GeneralNotification"

ROLE_CHANNELS = {
    UserRole.GENERAL_SUPERVISOR: GENERAL_SUPERVISOR_CHANNEL,
    UserRole.HOSPITAL_MANAGER: HOSPITAL_MANAGER_CHANNEL,
}


def channel_for_role(role) -> str:
    try:
        return ROLE_CHANNELS.get(UserRole(role), GENERAL_CHANNEL)
    except (TypeError, ValueError):
        return GENERAL_CHANNEL


class NotificationRouter:
    """Picks a channel from the target user's role and dispatches an order notice."""

    def __init__(self, directory=None, transport=None):
        self.directory = directory or UserDirectory()
        self.transport = transport or EventBusTransport()

    def notify(self, target_user_id, order_id, entity_type: str = "order") -> Optional[str]:
        """
        Tell ``target_user_id`` about ``order_id``.

        A missing recipient is not an error. Returns the channel used, or
        ``None`` when nothing was sent.
        """
        user = self.directory.get_by_id(target_user_id)
        if user is None:
            logger.debug(f"No user {target_user_id}; notification for order {order_id} skipped.")
            return None

        channel = channel_for_role(user.role)
        message = f"Order #{order_id} notification."
        try:
            self.transport.send_to_role(
                channel,
                message,
                recipient_id=user.pk,
                entity_type=entity_type,
                entity_id=order_id,
            )
        except Exception as e:
            # Delivery is fire-and-forget; the order change is already committed.
            logger.error(f"Failed to dispatch notification for order {order_id} on '{channel}': {e}", exc_info=True)
            return None
        logger.info(f"Notified user {user.pk} on '{channel}' about order {order_id}.")
        return channel
