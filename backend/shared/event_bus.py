import logging
from django.dispatch import Signal

logger = logging.getLogger(__name__)

class EventBus:
    """
    A simple, in-process event bus using Django's Signal dispatcher.
    This allows for decoupled communication between different apps.

    - register_event(event_name): Pre-defines an event.
    - publish(event_name, **kwargs): Sends an event.
    - subscribe(event_name, handler): Registers a function to handle an event.
    """
    def __init__(self):
        self._signals = {}

    def register_event(self, event_name: str):
        """
        Registers an event name so it's known to the bus, even if no handlers are yet subscribed.
        """
        if event_name not in self._signals:
            self._signals[event_name] = Signal()
        logger.debug(f"Event '{event_name}' registered.")

    def publish(self, event_name: str, **kwargs):
        """
        Publishes an event to all subscribed handlers.

        Args:
            event_name: The unique name of the event (e.g., 'notification.dispatched').
            **kwargs: Arbitrary keyword arguments to pass to the handlers.

        Returns:
            The list of (handler, response) pairs from the signal dispatch.
        """
        if event_name not in self._signals:
            self.register_event(event_name)
            logger.warning(f"Event '{event_name}' was published without being pre-registered.")

        signal = self._signals[event_name]
        logger.info(f"Publishing event '{event_name}' with args: {kwargs}")
        results = signal.send(sender=self.__class__, **kwargs)
        if not results:
            logger.debug(f"Event '{event_name}' was published, but no handlers received it.")
        return results

    def subscribe(self, event_name: str, handler):
        """
        Subscribes a handler function to a specific event.

        Handlers are held by strong reference so module-level functions and
        closures registered at startup are never garbage collected.
        """
        if event_name not in self._signals:
            self.register_event(event_name)

        signal = self._signals[event_name]
        signal.connect(handler, weak=False, dispatch_uid=f"{event_name}:{handler.__module__}.{handler.__qualname__}")
        logger.debug(f"Handler {handler.__name__} subscribed to event '{event_name}'.")


# Global instance of the event bus to be used throughout the application
event_bus = EventBus()
