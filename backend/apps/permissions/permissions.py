"""
Core permission checking logic for fleet operations.
"""
from __future__ import annotations

from shared.exceptions import AuthorizationError

from .capabilities import AccessRight, Capability


def access_right_of(user) -> AccessRight:
    """Return the user's computed access right; ``None`` has no rights."""
    if user is None:
        return AccessRight.none()
    access_right = getattr(user, "access", None)
    if isinstance(access_right, AccessRight):
        return access_right
    return AccessRight.from_int(getattr(user, "access_right", 0))


def has_permission(user, *capabilities: Capability) -> bool:
    """
    Checks if a user holds every one of the requested capabilities.

    This is the central function for all capability checks across the system.

    Args:
        user: The user instance to check (anything carrying ``access_right``).
        *capabilities: Capabilities that must all be present (AND, not OR).

    Returns:
        True if the user has all of them, False otherwise.
    """
    return access_right_of(user).has_all(*capabilities)


def require_permission(user, *capabilities: Capability, action: str = "perform this action") -> None:
    """Raise ``AuthorizationError`` unless ``has_permission`` passes."""
    if not has_permission(user, *capabilities):
        missing = ", ".join(AccessRight.of(*capabilities).labels())
        user_id = getattr(user, "pk", None)
        raise AuthorizationError(f"User {user_id} is not allowed to {action} (requires: {missing}).")
