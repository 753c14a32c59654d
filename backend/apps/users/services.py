from __future__ import annotations

import logging
from typing import Optional

from django.conf import settings
from django.contrib.auth.hashers import check_password, make_password

from apps.permissions.capabilities import AccessRight, Capability, UserRole, derive_default_access_right
from apps.permissions.permissions import require_permission
from shared.exceptions import AuthorizationError, ConflictError, NotFoundError, StorageError, ValidationError

from .models import User

logger = logging.getLogger(__name__)

NATIONAL_NO_LENGTH = 14
MIN_PASSWORD_LENGTH = 6


class UserDirectory:
    """Read-only user lookup used by notification routing and authorization."""

    def get_by_id(self, user_id) -> Optional[User]:
        if not user_id or int(user_id) <= 0:
            return None
        return User.objects.filter(pk=user_id).first()


class UserService:
    """User account operations, including the super-user only paths."""

    @staticmethod
    def _validate(name: str, national_no: str, password: str) -> None:
        if not (name or "").strip():
            raise ValidationError("Name is required.")
        if not (national_no or "").strip():
            raise ValidationError("National Number is required.")
        if not (password or "").strip():
            raise ValidationError("Password is required.")
        national_no = national_no.strip()
        if not national_no.isdigit() or len(national_no) != NATIONAL_NO_LENGTH:
            raise ValidationError(f"National Number must be {NATIONAL_NO_LENGTH} digits.")

    @staticmethod
    def _national_no_taken(national_no: str, exclude_user_id=None) -> bool:
        qs = User.objects.filter(national_no=national_no)
        if exclude_user_id:
            qs = qs.exclude(pk=exclude_user_id)
        return qs.exists()

    @staticmethod
    def _load(user_id) -> User:
        if not user_id or int(user_id) <= 0:
            raise ValidationError("User ID must be greater than 0.")
        user = User.objects.filter(pk=user_id).first()
        if user is None:
            raise NotFoundError(f"User with ID {user_id} not found.")
        return user

    @staticmethod
    def create_user(name: str, national_no: str, password: str, role=UserRole.ADMINISTRATIVE_SUPERVISOR) -> User:
        """Register a user; access right is derived from the role, never supplied."""
        UserService._validate(name, national_no, password)
        national_no = national_no.strip()
        if UserService._national_no_taken(national_no):
            raise ConflictError(f"National Number {national_no} already exists.")

        user = User(
            username=national_no,
            national_no=national_no,
            name=name.strip(),
            password=make_password(password),
            role=role,
        )
        user.access = derive_default_access_right(role)
        user.save(force_insert=True)
        logger.info(f"Created user {user.pk} with role {UserRole(user.role).label}")
        return user

    @staticmethod
    def update_user_info(user_id, name: str, national_no: str, password: Optional[str] = None) -> User:
        """
        Self-service update of a user's own details.

        Role and access right are taken from the stored row; this path can
        never change them.
        """
        existing = UserService._load(user_id)
        UserService._validate(name, national_no, password or existing.password)
        national_no = national_no.strip()
        if national_no != existing.national_no and UserService._national_no_taken(national_no, user_id):
            raise ConflictError(f"National Number {national_no} is already in use.")

        existing.name = name.strip()
        existing.national_no = national_no
        existing.username = national_no
        if password:
            existing.password = make_password(password)
        existing.save(update_fields=["name", "national_no", "username", "password"])
        logger.info(f"User {existing.pk} updated own profile")
        return existing

    @staticmethod
    def update_any_user(actor, user_id, name: str, national_no: str, role, access_right,
                        password: Optional[str] = None) -> User:
        """Super-user update of any account, role and access right included."""
        require_permission(actor, Capability.ALL, action="update all user info")
        existing = UserService._load(user_id)
        UserService._validate(name, national_no, password or existing.password)
        national_no = national_no.strip()
        if national_no != existing.national_no and UserService._national_no_taken(national_no, user_id):
            raise ConflictError(f"National Number {national_no} is already in use.")

        existing.name = name.strip()
        existing.national_no = national_no
        existing.username = national_no
        existing.role = UserRole(role)
        if isinstance(access_right, int):
            access_right = AccessRight.from_int(access_right)
        existing.access = access_right
        if password:
            existing.password = make_password(password)
        existing.save(update_fields=["name", "national_no", "username", "role", "access_right", "password"])
        logger.info(f"User {getattr(actor, 'pk', None)} updated user {existing.pk} (role={existing.role}, access_right={existing.access_right})")
        return existing

    @staticmethod
    def set_permissions(actor, user_id, *capabilities: Capability) -> User:
        """Replace a user's capability set. Only holders of ``ALL`` may do this."""
        require_permission(actor, Capability.ALL, action="modify permissions")
        target = UserService._load(user_id)
        target.access = AccessRight.of(*capabilities)
        target.save(update_fields=["access_right"])
        logger.info(f"User {actor.pk} set access right of user {target.pk} to {target.access.labels()}")
        return target

    @staticmethod
    def delete_user(actor, user_id) -> None:
        require_permission(actor, Capability.ALL, action="delete users")
        deleted, _ = User.objects.filter(pk=user_id).delete()
        if not deleted:
            raise NotFoundError(f"User with ID {user_id} not found.")
        logger.info(f"User {actor.pk} deleted user {user_id}")

    @staticmethod
    def get_user_by_id(user_id) -> Optional[User]:
        if not user_id or int(user_id) <= 0:
            raise ValidationError("User ID must be greater than 0.")
        return User.objects.filter(pk=user_id).first()

    @staticmethod
    def get_user_by_national_no(national_no: str) -> Optional[User]:
        return User.objects.filter(national_no=(national_no or "").strip()).first()

    @staticmethod
    def list_users(page: int = 1, page_size: Optional[int] = None) -> list[User]:
        page_size = page_size or settings.FLEET_DEFAULT_PAGE_SIZE
        if page <= 0 or page_size <= 0:
            raise ValidationError("Page number and page size must be greater than 0.")
        offset = (page - 1) * page_size
        return list(User.objects.order_by("pk")[offset:offset + page_size])

    @staticmethod
    def login(national_no: str, password: str) -> User:
        user = UserService.get_user_by_national_no(national_no)
        if user is None:
            raise NotFoundError(f"User with National Number {national_no} not found.")
        if not check_password(password, user.password):
            logger.warning(f"Failed login for user {user.pk}")
            raise AuthorizationError("Invalid password.")
        return user

    @staticmethod
    def change_password(user_id, new_password: str) -> User:
        if not new_password or len(new_password.strip()) < MIN_PASSWORD_LENGTH:
            raise ValidationError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters.")
        user = UserService._load(user_id)
        user.password = make_password(new_password)
        if not User.objects.filter(pk=user.pk).update(password=user.password):
            raise StorageError(f"Password of user {user.pk} was not updated.")
        logger.info(f"User {user.pk} changed password")
        return user
