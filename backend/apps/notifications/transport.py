from __future__ import annotations

from shared.event_bus import event_bus

NOTIFICATION_DISPATCHED = "notification.dispatched"


class EventBusTransport:
    """Publishes notifications on the in-process event bus; no acknowledgement."""

    def __init__(self, bus=None):
        self.bus = bus or event_bus

    def send_to_role(self, channel: str, message: str, recipient_id=None, **context) -> None:
        self.bus.publish(
            NOTIFICATION_DISPATCHED,
            channel=channel,
            message=message,
            recipient_id=recipient_id,
            **context,
        )
