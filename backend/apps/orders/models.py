from django.db import models


class ApplicationOrder(models.Model):
    """
    Base for every order family.

    ``application`` is set only by ``OrderCoordinator``; callers embed an
    unsaved ``Application`` on the instance and the coordinator persists it
    first, then links it here.
    """
    application = models.OneToOneField(
        'applications.Application',
        on_delete=models.PROTECT,
        related_name='+',
    )

    class Meta:
        abstract = True


class PurchaseOrderBase(ApplicationOrder):
    required_item = models.PositiveIntegerField(help_text="Catalogue id of the consumable or spare part")
    required_quantity = models.PositiveSmallIntegerField()
    approved_by_general_supervisor = models.BooleanField(default=False)
    approved_by_general_manager = models.BooleanField(default=False)

    class Meta:
        abstract = True


class WithdrawApplicationBase(ApplicationOrder):
    required_item = models.PositiveIntegerField(help_text="Catalogue id of the consumable or spare part")
    vehicle_id = models.PositiveSmallIntegerField()
    quantity = models.PositiveSmallIntegerField(default=1)
    approved_by_general_supervisor = models.BooleanField(default=False)
    approved_by_general_manager = models.BooleanField(default=False)

    class Meta:
        abstract = True


class ConsumablePurchaseOrder(PurchaseOrderBase):
    class Meta:
        db_table = 'consumables_purchase_orders'


class SparePartPurchaseOrder(PurchaseOrderBase):
    class Meta:
        db_table = 'spare_parts_purchase_orders'


class ConsumableWithdrawApplication(WithdrawApplicationBase):
    class Meta:
        db_table = 'consumables_withdraw_applications'


class SparePartWithdrawApplication(WithdrawApplicationBase):
    class Meta:
        db_table = 'spare_parts_withdraw_applications'


class MaintenanceApplication(ApplicationOrder):
    vehicle_id = models.PositiveSmallIntegerField()
    approved_by_general_supervisor = models.BooleanField(default=False)
    approved_by_general_manager = models.BooleanField(default=False)

    class Meta:
        db_table = 'maintenance_applications'


class JobOrder(ApplicationOrder):
    vehicle_id = models.PositiveSmallIntegerField()
    driver_id = models.PositiveIntegerField()
    start_date = models.DateField()
    end_date = models.DateField()
    start_time = models.TimeField(null=True, blank=True)
    end_time = models.TimeField(null=True, blank=True)
    destination = models.CharField(max_length=255)
    odometer_before = models.PositiveIntegerField(default=0)
    odometer_after = models.PositiveIntegerField(null=True, blank=True)
    approved_by_general_supervisor = models.BooleanField(default=False)

    class Meta:
        db_table = 'job_orders'


class MissionNote(ApplicationOrder):
    note = models.TextField(blank=True)
    approved_by_general_supervisor = models.BooleanField(default=False)

    class Meta:
        db_table = 'missions_notes'
