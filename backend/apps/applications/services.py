from __future__ import annotations

import logging
from typing import Optional

from django.conf import settings

from apps.permissions.capabilities import Capability
from apps.permissions.permissions import require_permission
from shared.exceptions import NotFoundError, StorageError, ValidationError

from .models import Application, ApplicationStatus, ApplicationType
from .stores import ApplicationStore

logger = logging.getLogger(__name__)

# Pending is the only non-terminal state.
STATUS_TRANSITIONS = {
    ApplicationStatus.PENDING: (
        ApplicationStatus.APPROVED,
        ApplicationStatus.REJECTED,
        ApplicationStatus.CANCELLED,
    ),
}


def require_positive_id(value, label: str = "Application ID") -> int:
    try:
        value = int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{label} must be greater than 0.")
    if value <= 0:
        raise ValidationError(f"{label} must be greater than 0.")
    return value


class ApplicationWorkflow:
    """
    Validates and persists ``Application`` records and enforces the approval
    state machine.

    Order coordinators hold an instance of this class; they do not inherit
    from it.
    """

    def __init__(self, store: Optional[ApplicationStore] = None):
        self.store = store or ApplicationStore()

    # -- validation ---------------------------------------------------------

    @staticmethod
    def _validate_fields(application: Application) -> None:
        if application.creation_date is None:
            raise ValidationError("Creation Date is required")
        if not (application.description or "").strip():
            raise ValidationError("Application Description is required")
        if not application.application_type or int(application.application_type) <= 0:
            raise ValidationError("Application Type must be greater than 0")
        if int(application.application_type) not in ApplicationType.values:
            raise ValidationError(f"Unknown application type: {application.application_type}")
        if not application.created_by_user_id or int(application.created_by_user_id) <= 0:
            raise ValidationError("User Id must be greater than 0")
        if application.status not in ApplicationStatus.values:
            raise ValidationError(f"Unknown application status: {application.status}")

    @staticmethod
    def available_transitions(status) -> list[int]:
        """Return the states reachable from ``status``; terminal states return []."""
        return list(STATUS_TRANSITIONS.get(ApplicationStatus(status), ()))

    @classmethod
    def _check_transition(cls, current, target) -> None:
        if int(current) == int(target):
            return
        if ApplicationStatus(target) not in cls.available_transitions(current):
            raise ValidationError(
                f"Transition from {ApplicationStatus(current).label} to {ApplicationStatus(target).label} not allowed"
            )

    # -- mutations ----------------------------------------------------------

    def create(self, application: Application) -> int:
        """Persist a new application and return its assigned identifier."""
        if application.pk:
            raise ValidationError("Application ID must be 0 for new applications.")
        self._validate_fields(application)
        application.pk = None

        application_id = self.store.create(application)
        if not application_id or application_id <= 0:
            raise StorageError("Application store did not assign an identifier.")
        logger.info(
            f"Created application {application_id} ({ApplicationType(application.application_type).label}) "
            f"for user {application.created_by_user_id}"
        )
        return application_id

    def update(self, application: Application) -> Application:
        """
        Persist changes to status and description.

        The stored creation date, creator and type always win over whatever the
        caller supplied.
        """
        if not application.pk or application.pk <= 0:
            raise ValidationError("Application Id must be greater than 0")
        self._validate_fields(application)

        existing = self.store.get_by_id(application.pk)
        if existing is None:
            raise NotFoundError(f"Application with ID {application.pk} does not exist.")
        self._check_transition(existing.status, application.status)

        application.creation_date = existing.creation_date
        application.created_by_user_id = existing.created_by_user_id
        application.application_type = existing.application_type

        if not self.store.update(application):
            raise StorageError(f"Application {application.pk} was not updated.")
        logger.info(f"Updated application {application.pk} (status={ApplicationStatus(application.status).label})")
        return application

    def delete(self, application_id) -> None:
        application_id = require_positive_id(application_id)
        if not self.store.delete(application_id):
            raise NotFoundError(f"Application with ID {application_id} does not exist.")
        logger.info(f"Deleted application {application_id}")

    def update_status(self, application_id, status, actor=None,
                      capability: Capability = Capability.APPROVE_APPLICATIONS) -> Application:
        """
        Move an application to ``status``.

        When ``actor`` is given it must hold ``capability``; the order
        coordinator passes the capability configured for its family.
        """
        application_id = require_positive_id(application_id)
        try:
            status = ApplicationStatus(status)
        except ValueError:
            raise ValidationError(f"Unknown application status: {status}")
        if actor is not None:
            require_permission(actor, capability, action="change application status")

        existing = self.get_by_id(application_id)
        self._check_transition(existing.status, status)
        if not self.store.update_status(application_id, status):
            raise StorageError(f"Status of application {application_id} was not updated.")
        existing.status = status
        logger.info(
            f"Application {application_id} moved to {status.label}"
            + (f" by user {actor.pk}" if actor is not None else "")
        )
        return existing

    # -- queries ------------------------------------------------------------

    def get_by_id(self, application_id) -> Application:
        application_id = require_positive_id(application_id)
        application = self.store.get_by_id(application_id)
        if application is None:
            raise NotFoundError(f"Application with ID {application_id} does not exist.")
        return application

    def list_applications(self, page: int = 1, page_size: Optional[int] = None) -> list[Application]:
        page_size = page_size or settings.FLEET_DEFAULT_PAGE_SIZE
        if page <= 0 or page_size <= 0:
            raise ValidationError("Page number and page size must be greater than 0.")
        return self.store.list((page - 1) * page_size, page_size)

    def get_by_type(self, application_type) -> list[Application]:
        return self.store.filter_by_type(require_positive_id(application_type, "Application type"))

    def get_by_user(self, user_id) -> list[Application]:
        return self.store.filter_by_user(require_positive_id(user_id, "User ID"))

    def get_by_status(self, status) -> list[Application]:
        return self.store.filter_by_status(ApplicationStatus(status))

    def count_all(self) -> int:
        return self.store.count_all()

    def count_by_status(self, status) -> int:
        return self.store.count_by_status(ApplicationStatus(status))

    def count_by_type(self, application_type) -> int:
        return self.store.count_by_type(require_positive_id(application_type, "Application type"))
