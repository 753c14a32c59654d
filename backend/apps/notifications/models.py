from __future__ import annotations

from django.db import models


class NotificationStatus(models.TextChoices):
    UNREAD = "unread", "Unread"
    READ = "read", "Read"
    CLEARED = "cleared", "Cleared"


class Notification(models.Model):
    """A dispatched notification, kept so clients can fetch what they missed."""
    recipient_id = models.PositiveIntegerField(null=True, blank=True, db_index=True)
    channel = models.CharField(max_length=100)
    message = models.TextField()
    status = models.CharField(max_length=10, choices=NotificationStatus.choices, default=NotificationStatus.UNREAD)
    entity_type = models.CharField(max_length=100, blank=True)
    entity_id = models.CharField(max_length=100, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'notifications'
        ordering = ["-created_at", "-id"]
        indexes = [
            models.Index(fields=["recipient_id", "status"], name="notifications_recipient_idx"),
            models.Index(fields=["channel"], name="notifications_channel_idx"),
        ]

    def __str__(self) -> str:
        return f"{self.channel}:{self.recipient_id}:{self.message}"
