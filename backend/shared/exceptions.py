"""
Error taxonomy shared by the fleet-operations services.

Built on Django's own exception hierarchy so callers that already handle
``ValidationError``/``ObjectDoesNotExist``/``PermissionDenied`` keep working.
Database errors raised by the ORM are not wrapped here; they propagate as-is.
"""
from django.core.exceptions import ObjectDoesNotExist, PermissionDenied
from django.core.exceptions import ValidationError as DjangoValidationError


class ValidationError(DjangoValidationError):
    """Malformed or missing required input. Raised before any write."""


class NotFoundError(ObjectDoesNotExist):
    """A referenced entity does not exist."""


class ConflictError(Exception):
    """Duplicate submission detected.

    When raised from an order creation the owning Application may already be
    persisted (see ``OrderCoordinator.create``).
    """


class AuthorizationError(PermissionDenied):
    """The caller's access right does not include the required capabilities."""


class StorageError(RuntimeError):
    """A store reported that a write did not take effect."""
