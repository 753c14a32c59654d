from __future__ import annotations

from typing import Optional

from .models import Application


class ApplicationStore:
    """ORM-backed persistence for ``Application`` rows.

    Every method is a single statement committed on its own; the store never
    opens a transaction spanning more than one row.
    """

    def create(self, application: Application) -> int:
        application.save(force_insert=True)
        return application.pk

    def get_by_id(self, application_id) -> Optional[Application]:
        return Application.objects.filter(pk=application_id).first()

    def update(self, application: Application) -> bool:
        updated = Application.objects.filter(pk=application.pk).update(
            creation_date=application.creation_date,
            status=application.status,
            application_type=application.application_type,
            description=application.description,
            created_by_user_id=application.created_by_user_id,
        )
        return updated > 0

    def delete(self, application_id) -> bool:
        deleted, _ = Application.objects.filter(pk=application_id).delete()
        return deleted > 0

    def update_status(self, application_id, status) -> bool:
        return Application.objects.filter(pk=application_id).update(status=status) > 0

    def list(self, offset: int, limit: int) -> list[Application]:
        return list(Application.objects.order_by('pk')[offset:offset + limit])

    def filter_by_type(self, application_type) -> list[Application]:
        return list(Application.objects.filter(application_type=application_type))

    def filter_by_user(self, user_id) -> list[Application]:
        return list(Application.objects.filter(created_by_user_id=user_id))

    def filter_by_status(self, status) -> list[Application]:
        return list(Application.objects.filter(status=status))

    def exclude_ids(self, application_ids) -> list[Application]:
        return list(Application.objects.exclude(pk__in=application_ids))

    def count_all(self) -> int:
        return Application.objects.count()

    def count_by_status(self, status) -> int:
        return Application.objects.filter(status=status).count()

    def count_by_type(self, application_type) -> int:
        return Application.objects.filter(application_type=application_type).count()
