from django.apps import AppConfig


class NotificationsConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'apps.notifications'
    verbose_name = 'Notifications'

    def ready(self):
        """
        Register event listeners once the app registry is ready so every
        dispatched notification is stored.
        """
        from . import listeners
        listeners.register_notification_listeners()
