from django.contrib.auth.models import AbstractUser
from django.db import models

from apps.permissions.capabilities import AccessRight, UserRole


class User(AbstractUser):
    """
    Fleet-operations user.

    ``role`` and ``access_right`` are only writable through the super-user
    paths in ``UserService``; the self-service update reloads them from the
    stored row.
    """
    national_no = models.CharField(max_length=14, unique=True)
    name = models.CharField(max_length=255)
    role = models.PositiveSmallIntegerField(choices=UserRole.choices, default=UserRole.ADMINISTRATIVE_SUPERVISOR)
    access_right = models.IntegerField(default=0, help_text="Capability bitmask; -1 grants every capability")

    class Meta:
        db_table = 'users'

    def __str__(self):
        return f"{self.name} ({self.national_no})"

    @property
    def access(self) -> AccessRight:
        return AccessRight.from_int(self.access_right)

    @access.setter
    def access(self, value: AccessRight):
        self.access_right = value.to_int()
