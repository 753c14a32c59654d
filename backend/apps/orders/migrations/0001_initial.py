import django.db.models.deletion
from django.db import migrations, models


def _application_link():
    return (
        "application",
        models.OneToOneField(
            on_delete=django.db.models.deletion.PROTECT,
            related_name="+",
            to="applications.application",
        ),
    )


def _id():
    return ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID"))


def _purchase_fields():
    return [
        _id(),
        ("required_item", models.PositiveIntegerField(help_text="Catalogue id of the consumable or spare part")),
        ("required_quantity", models.PositiveSmallIntegerField()),
        ("approved_by_general_supervisor", models.BooleanField(default=False)),
        ("approved_by_general_manager", models.BooleanField(default=False)),
        _application_link(),
    ]


def _withdraw_fields():
    return [
        _id(),
        ("required_item", models.PositiveIntegerField(help_text="Catalogue id of the consumable or spare part")),
        ("vehicle_id", models.PositiveSmallIntegerField()),
        ("quantity", models.PositiveSmallIntegerField(default=1)),
        ("approved_by_general_supervisor", models.BooleanField(default=False)),
        ("approved_by_general_manager", models.BooleanField(default=False)),
        _application_link(),
    ]


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("applications", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="ConsumablePurchaseOrder",
            fields=_purchase_fields(),
            options={"db_table": "consumables_purchase_orders"},
        ),
        migrations.CreateModel(
            name="SparePartPurchaseOrder",
            fields=_purchase_fields(),
            options={"db_table": "spare_parts_purchase_orders"},
        ),
        migrations.CreateModel(
            name="ConsumableWithdrawApplication",
            fields=_withdraw_fields(),
            options={"db_table": "consumables_withdraw_applications"},
        ),
        migrations.CreateModel(
            name="SparePartWithdrawApplication",
            fields=_withdraw_fields(),
            options={"db_table": "spare_parts_withdraw_applications"},
        ),
        migrations.CreateModel(
            name="MaintenanceApplication",
            fields=[
                _id(),
                ("vehicle_id", models.PositiveSmallIntegerField()),
                ("approved_by_general_supervisor", models.BooleanField(default=False)),
                ("approved_by_general_manager", models.BooleanField(default=False)),
                _application_link(),
            ],
            options={"db_table": "maintenance_applications"},
        ),
        migrations.CreateModel(
            name="JobOrder",
            fields=[
                _id(),
                ("vehicle_id", models.PositiveSmallIntegerField()),
                ("driver_id", models.PositiveIntegerField()),
                ("start_date", models.DateField()),
                ("end_date", models.DateField()),
                ("start_time", models.TimeField(blank=True, null=True)),
                ("end_time", models.TimeField(blank=True, null=True)),
                ("destination", models.CharField(max_length=255)),
                ("odometer_before", models.PositiveIntegerField(default=0)),
                ("odometer_after", models.PositiveIntegerField(blank=True, null=True)),
                ("approved_by_general_supervisor", models.BooleanField(default=False)),
                _application_link(),
            ],
            options={"db_table": "job_orders"},
        ),
        migrations.CreateModel(
            name="MissionNote",
            fields=[
                _id(),
                ("note", models.TextField(blank=True)),
                ("approved_by_general_supervisor", models.BooleanField(default=False)),
                _application_link(),
            ],
            options={"db_table": "missions_notes"},
        ),
    ]
