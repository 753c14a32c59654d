from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="Application",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("creation_date", models.DateTimeField()),
                (
                    "status",
                    models.PositiveSmallIntegerField(
                        choices=[(1, "Approved"), (2, "Rejected"), (3, "Pending"), (4, "Cancelled")],
                        default=3,
                    ),
                ),
                (
                    "application_type",
                    models.PositiveSmallIntegerField(
                        choices=[
                            (1, "Job order"),
                            (2, "Mission note"),
                            (3, "Spare part withdraw application"),
                            (4, "Spare part purchase order"),
                            (5, "Consumable withdraw application"),
                            (6, "Consumable purchase order"),
                            (7, "Maintenance application"),
                        ]
                    ),
                ),
                ("description", models.TextField()),
                ("created_by_user_id", models.PositiveIntegerField(db_index=True)),
            ],
            options={
                "db_table": "applications",
                "ordering": ["id"],
                "indexes": [
                    models.Index(fields=["status"], name="applications_status_idx"),
                    models.Index(fields=["application_type"], name="applications_type_idx"),
                ],
            },
        ),
    ]
