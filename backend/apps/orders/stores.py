from __future__ import annotations

import logging
from typing import Iterable

logger = logging.getLogger(__name__)


class OrderStore:
    """
    ORM-backed persistence for one order model.

    ``add`` and ``update`` write immediately. ``remove`` only stages the
    deletion; it reaches the database on the next ``commit``.
    """

    def __init__(self, model):
        self.model = model
        self._pending_removals = []

    def add(self, order) -> int:
        order.save(force_insert=True)
        return order.pk

    def get_by_id(self, order_id, including_application: bool = False):
        queryset = self.model.objects.all()
        if including_application:
            queryset = queryset.select_related('application')
        return queryset.filter(pk=order_id).first()

    def find_existing(self, order_id):
        if not order_id:
            return None
        return self.model.objects.filter(pk=order_id).first()

    def remove(self, order) -> None:
        self._pending_removals.append(order)

    def update(self, order, fields: Iterable[str]) -> bool:
        values = {field: getattr(order, field) for field in fields}
        return self.model.objects.filter(pk=order.pk).update(**values) > 0

    def commit(self) -> None:
        pending, self._pending_removals = self._pending_removals, []
        for order in pending:
            order_id = order.pk
            order.delete()
            logger.debug(f"Removed {self.model.__name__} {order_id}")

    def _with_application(self):
        return self.model.objects.select_related('application').order_by('pk')

    def list(self, offset: int, limit: int) -> list:
        return list(self._with_application()[offset:offset + limit])

    def get_by_application_id(self, application_id):
        return self._with_application().filter(application_id=application_id).first()

    def filter_by_status(self, status) -> list:
        return list(self._with_application().filter(application__status=status))

    def filter_by(self, **lookups) -> list:
        return list(self._with_application().filter(**lookups))

    def count(self) -> int:
        return self.model.objects.count()

    def application_ids(self) -> set[int]:
        return set(self.model.objects.values_list('application_id', flat=True))
