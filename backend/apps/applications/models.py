from django.db import models


class ApplicationStatus(models.IntegerChoices):
    APPROVED = 1, "Approved"
    REJECTED = 2, "Rejected"
    PENDING = 3, "Pending"
    CANCELLED = 4, "Cancelled"


class ApplicationType(models.IntegerChoices):
    JOB_ORDER = 1, "Job order"
    MISSION_NOTE = 2, "Mission note"
    SPARE_PART_WITHDRAW = 3, "Spare part withdraw application"
    SPARE_PART_PURCHASE = 4, "Spare part purchase order"
    CONSUMABLE_WITHDRAW = 5, "Consumable withdraw application"
    CONSUMABLE_PURCHASE = 6, "Consumable purchase order"
    MAINTENANCE = 7, "Maintenance application"


class Application(models.Model):
    """
    Generic approval record owned 1:1 by exactly one order.

    The application does not know its order; the order holds the
    ``application_id``. ``creation_date`` and ``created_by_user_id`` are
    fixed at creation and restored from the stored row on every update.
    """
    creation_date = models.DateTimeField()
    status = models.PositiveSmallIntegerField(choices=ApplicationStatus.choices, default=ApplicationStatus.PENDING)
    application_type = models.PositiveSmallIntegerField(choices=ApplicationType.choices)
    description = models.TextField()
    created_by_user_id = models.PositiveIntegerField(db_index=True)

    class Meta:
        db_table = 'applications'
        ordering = ['id']
        indexes = [
            models.Index(fields=['status'], name='applications_status_idx'),
            models.Index(fields=['application_type'], name='applications_type_idx'),
        ]

    def __str__(self) -> str:
        return f"Application #{self.pk} ({self.get_status_display()})"
