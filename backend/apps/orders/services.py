from __future__ import annotations

import logging
from typing import Optional

from django.conf import settings
from django.db import DatabaseError, transaction

from apps.applications.models import Application, ApplicationStatus
from apps.applications.services import ApplicationWorkflow, require_positive_id
from apps.applications.stores import ApplicationStore
from apps.notifications.router import NotificationRouter
from apps.permissions.permissions import require_permission
from shared.exceptions import ConflictError, NotFoundError, StorageError, ValidationError

from .families import FAMILIES, OrderFamily, get_family
from .stores import OrderStore

logger = logging.getLogger(__name__)


class OrderCoordinator:
    """
    Keeps an order and its owning application consistent across create,
    update and delete for one order family.

    The two rows live in separate stores and no transaction spans them, so
    each step is committed before the next one starts:

    * create: application first, then the order that links to it;
    * delete: order first, then its application.

    An order therefore never points at a missing application, while an
    application without an order is a tolerated transient state (see
    ``find_orphaned_applications``).

    Every mutation accepts an optional ``actor``; when given, the actor must
    hold the family's manipulate capability, and the family's approve
    capability for status or approval-flag changes.
    """

    def __init__(self, family: OrderFamily | str, workflow: Optional[ApplicationWorkflow] = None,
                 store: Optional[OrderStore] = None, router: Optional[NotificationRouter] = None):
        self.family = get_family(family) if isinstance(family, str) else family
        self.workflow = workflow or ApplicationWorkflow()
        self.store = store or OrderStore(self.family.model)
        self.router = router or NotificationRouter()

    def _authorize(self, actor, capability, action: str) -> None:
        if actor is not None:
            require_permission(actor, capability, action=f"{action} {self.family.label.lower()}s")

    def _discard_application(self, application_id, reason: str) -> None:
        if settings.FLEET_COMPENSATE_ORPHANED_APPLICATIONS:
            self.workflow.delete(application_id)
            logger.warning(f"Deleted application {application_id}: {reason}")
        else:
            logger.warning(f"{reason}; application {application_id} left without an order")

    # -- saga ---------------------------------------------------------------

    def create(self, order, actor=None):
        """
        Persist ``order`` together with the unsaved ``Application`` embedded
        on it.

        If the order cannot be written, either because its identifier is
        already taken or because the insert itself fails, the application
        created a moment earlier stays behind without an order unless
        ``FLEET_COMPENSATE_ORPHANED_APPLICATIONS`` is enabled.
        """
        if order is None:
            raise ValidationError("Order or Application data is missing.")
        if not isinstance(order, self.family.model):
            raise ValidationError(f"Expected a {self.family.model.__name__}, got {type(order).__name__}.")
        application = self._embedded_application(order)
        if application is None:
            raise ValidationError("Order or Application data is missing.")
        self._authorize(actor, self.family.manipulate_capability, "create")

        application.status = ApplicationStatus.PENDING
        application.application_type = self.family.application_type
        application_id = self.workflow.create(application)

        # assigning the id drops the cached embedded application
        order.application_id = application_id
        order.pk = order.pk or None

        if self.store.find_existing(order.pk) is not None:
            self._discard_application(application_id, f"{self.family.label} {order.pk} already exists")
            raise ConflictError(f"{self.family.label} {order.pk} already exists.")

        try:
            with transaction.atomic():
                self.store.add(order)
        except DatabaseError as e:
            self._discard_application(application_id, f"{self.family.label} {order.pk} was not inserted ({e})")
            raise
        self.store.commit()
        logger.info(f"Created {self.family.label} {order.pk} with application {application_id}")

        self.router.notify(application.created_by_user_id, order.pk, entity_type=self.family.key)
        return order

    def update(self, order, actor=None):
        """
        Copy the family's mutable fields from ``order`` onto the stored order
        and, when both carry an application, update that application through
        the workflow. Identity and the application link never change here.
        """
        if order is None:
            raise ValidationError("Order data is missing.")
        if not isinstance(order, self.family.model):
            raise ValidationError(f"Expected a {self.family.model.__name__}, got {type(order).__name__}.")
        require_positive_id(order.pk, "Order ID")
        self._authorize(actor, self.family.manipulate_capability, "update")

        existing = self.store.get_by_id(order.pk, including_application=True)
        if existing is None:
            raise NotFoundError(f"{self.family.label} {order.pk} not found.")

        if actor is not None and any(
            getattr(order, flag) != getattr(existing, flag) for flag in self.family.approval_flags
        ):
            self._authorize(actor, self.family.approve_capability, "approve")

        for field in self.family.mutable_fields:
            setattr(existing, field, getattr(order, field))

        incoming_application = self._embedded_application(order)
        if existing.application_id and incoming_application is not None:
            incoming_application.pk = existing.application_id
            incoming_application.application_type = existing.application.application_type
            if actor is not None and int(incoming_application.status) != int(existing.application.status):
                self._authorize(actor, self.family.approve_capability, "approve")
            existing.application = self.workflow.update(incoming_application)

        if not self.store.update(existing, self.family.mutable_fields):
            raise StorageError(f"{self.family.label} {existing.pk} was not updated.")
        self.store.commit()
        logger.info(f"Updated {self.family.label} {existing.pk}")
        return existing

    def delete(self, order_id, actor=None) -> None:
        """Remove the order, then the application it owned."""
        order_id = require_positive_id(order_id, "Order ID")
        self._authorize(actor, self.family.manipulate_capability, "delete")
        order = self.store.get_by_id(order_id, including_application=True)
        if order is None:
            raise NotFoundError(f"{self.family.label} {order_id} not found.")

        application_id = order.application_id
        self.store.remove(order)
        self.store.commit()

        if application_id:
            self.workflow.delete(application_id)
        self.store.commit()
        logger.info(f"Deleted {self.family.label} {order_id} and application {application_id}")

    # -- approval -----------------------------------------------------------

    def set_status(self, order_id, status, actor=None):
        """Move the order's application to ``status`` and tell its creator."""
        order = self.get(order_id)
        application = self.workflow.update_status(
            order.application_id, status, actor=actor, capability=self.family.approve_capability
        )
        order.application = application
        self.router.notify(application.created_by_user_id, order.pk, entity_type=self.family.key)
        return order

    # -- queries ------------------------------------------------------------

    def get(self, order_id):
        order_id = require_positive_id(order_id, "Order ID")
        order = self.store.get_by_id(order_id, including_application=True)
        if order is None:
            raise NotFoundError(f"{self.family.label} {order_id} not found.")
        return order

    def get_by_application_id(self, application_id):
        application_id = require_positive_id(application_id)
        order = self.store.get_by_application_id(application_id)
        if order is None:
            raise NotFoundError(f"No {self.family.label.lower()} owns application {application_id}.")
        return order

    def list_orders(self, page: int = 1, page_size: Optional[int] = None) -> list:
        page_size = page_size or settings.FLEET_DEFAULT_PAGE_SIZE
        if page <= 0 or page_size <= 0:
            raise ValidationError("Page number and page size must be greater than 0.")
        return self.store.list((page - 1) * page_size, page_size)

    def get_by_status(self, status) -> list:
        try:
            status = ApplicationStatus(status)
        except ValueError:
            raise ValidationError(f"Unknown application status: {status}")
        return self.store.filter_by_status(status)

    def filter_orders(self, **criteria) -> list:
        """
        Filter on the family's own fields, Django lookups included, e.g.
        ``filter_orders(vehicle_id=4)`` or ``filter_orders(destination__icontains="north")``.
        """
        if not criteria:
            raise ValidationError("At least one filter is required.")
        for lookup in criteria:
            if lookup.split("__", 1)[0] not in self.family.mutable_fields:
                raise ValidationError(f"{self.family.label} cannot be filtered on '{lookup}'.")
        return self.store.filter_by(**criteria)

    def get_by_date_range(self, start_date, end_date) -> list:
        """Orders whose start date falls between ``start_date`` and ``end_date``, both included."""
        if "start_date" not in self.family.payload_fields:
            raise ValidationError(f"{self.family.label} has no start date.")
        if start_date is None or end_date is None:
            raise ValidationError("Start date and end date must be valid dates.")
        if start_date > end_date:
            raise ValidationError("Start date must not be after end date.")
        return self.store.filter_by(start_date__range=(start_date, end_date))

    def count(self) -> int:
        return self.store.count()

    @staticmethod
    def _embedded_application(order) -> Optional[Application]:
        """The Application set on ``order`` in memory. Never loaded from ``application_id``."""
        field = type(order).application.field
        if not field.is_cached(order):
            return None
        return field.get_cached_value(order)


def find_orphaned_applications(store: Optional[ApplicationStore] = None) -> list[Application]:
    """Applications that no order of any family links to."""
    store = store or ApplicationStore()
    owned = set()
    for family in FAMILIES.values():
        owned |= OrderStore(family.model).application_ids()
    return store.exclude_ids(owned)
