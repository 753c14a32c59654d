"""
Capability bits and role defaults for the fleet-operations access model.

A user's access right is stored as a single integer (one bit per capability,
``-1`` meaning every capability). Inside the code it is handled as an
``AccessRight``: an immutable set of named capabilities. Conversion to and from
the integer only happens at the storage boundary (``from_int``/``to_int``).
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import FrozenSet

from django.db import models


class Capability(models.IntegerChoices):
    ALL = ~0, "All"
    READ_ALL = 1, "Read all"
    APPROVE_APPLICATIONS = 2, "Approve applications"
    UPDATE_CONSUMABLES_AND_SPARE_PARTS = 4, "Update consumables and spare parts"
    DELETE_CONSUMABLES_AND_SPARE_PARTS = 8, "Delete consumables and spare parts"
    UPDATE_DRIVERS = 16, "Update drivers"
    UPDATE_VEHICLES = 32, "Update vehicles"
    MANIPULATE_CONSUMABLES_AND_SPARE_PARTS = 64, "Manipulate consumables and spare parts"
    MANIPULATE_PATROLS = 128, "Manipulate patrols"
    MANIPULATE_JOB_ORDER = 256, "Manipulate job orders"
    MANIPULATE_MAINTENANCE = 512, "Manipulate maintenance"
    MANIPULATE_PURCHASE_ORDERS = 1024, "Manipulate consumable and spare part purchase orders"
    MANIPULATE_WITHDRAW_APPLICATIONS = 2048, "Manipulate consumable and spare part withdraw applications"
    MANIPULATE_MISSIONS = 4096, "Manipulate missions"
    MANIPULATE_SUBSCRIPTIONS = 8192, "Manipulate subscriptions"
    VIEW_REPORTS = 16384, "View reports"

    @classmethod
    def bits(cls) -> list["Capability"]:
        """Every single-bit capability (``ALL`` excluded)."""
        return [cap for cap in cls if cap is not cls.ALL]


class UserRole(models.IntegerChoices):
    SUPER_USER = 0, "Super user"
    HOSPITAL_MANAGER = 1, "Hospital manager"
    GENERAL_MANAGER = 2, "General manager"
    GENERAL_SUPERVISOR = 3, "General supervisor"
    PATROLS_SUPERVISOR = 4, "Patrols supervisor"
    WORKSHOP_SUPERVISOR = 5, "Workshop supervisor"
    ADMINISTRATIVE_SUPERVISOR = 6, "Administrative supervisor"


ALL_BITS_VALUE = int(Capability.ALL)
NONE_VALUE = 0


@dataclass(frozen=True)
class AccessRight:
    """Immutable set of granted capabilities.

    Holding ``Capability.ALL`` implies holding every individual bit, but holding
    every individual bit does not imply ``ALL``: the super-user sentinel has to
    be granted explicitly, exactly like ``(mask & ~0) == ~0`` on the stored int.
    """

    capabilities: FrozenSet[Capability] = frozenset()

    @classmethod
    def of(cls, *capabilities: Capability) -> "AccessRight":
        return cls(frozenset(Capability(cap) for cap in capabilities))

    @classmethod
    def none(cls) -> "AccessRight":
        return cls()

    @classmethod
    def all(cls) -> "AccessRight":
        return cls(frozenset({Capability.ALL}))

    @classmethod
    def from_int(cls, value: int | None) -> "AccessRight":
        if not value:
            return cls()
        if value & ALL_BITS_VALUE == ALL_BITS_VALUE:
            return cls.all()
        return cls(frozenset(cap for cap in Capability.bits() if value & cap == cap))

    def to_int(self) -> int:
        if Capability.ALL in self.capabilities:
            return ALL_BITS_VALUE
        value = NONE_VALUE
        for cap in self.capabilities:
            value |= int(cap)
        return value

    @property
    def is_all(self) -> bool:
        return Capability.ALL in self.capabilities

    def has(self, capability: Capability) -> bool:
        if self.is_all:
            return True
        return capability in self.capabilities

    def has_all(self, *capabilities: Capability) -> bool:
        """AND-of-capabilities check; an empty request is always satisfied."""
        return all(self.has(Capability(cap)) for cap in capabilities)

    def labels(self) -> list[str]:
        return sorted(cap.label for cap in self.capabilities)


DEFAULT_ROLE_RIGHTS = {
    UserRole.SUPER_USER: AccessRight.all(),
    UserRole.HOSPITAL_MANAGER: AccessRight.of(
        Capability.APPROVE_APPLICATIONS,
        Capability.READ_ALL,
        Capability.VIEW_REPORTS,
    ),
    UserRole.GENERAL_MANAGER: AccessRight.of(
        Capability.APPROVE_APPLICATIONS,
        Capability.READ_ALL,
        Capability.UPDATE_VEHICLES,
        Capability.VIEW_REPORTS,
    ),
    UserRole.GENERAL_SUPERVISOR: AccessRight.of(
        Capability.APPROVE_APPLICATIONS,
        Capability.READ_ALL,
        Capability.MANIPULATE_MISSIONS,
    ),
    UserRole.ADMINISTRATIVE_SUPERVISOR: AccessRight.of(Capability.MANIPULATE_JOB_ORDER),
    UserRole.PATROLS_SUPERVISOR: AccessRight.of(
        Capability.MANIPULATE_PATROLS,
        Capability.MANIPULATE_SUBSCRIPTIONS,
    ),
    UserRole.WORKSHOP_SUPERVISOR: AccessRight.of(
        Capability.MANIPULATE_CONSUMABLES_AND_SPARE_PARTS,
        Capability.MANIPULATE_MAINTENANCE,
        Capability.MANIPULATE_PURCHASE_ORDERS,
        Capability.MANIPULATE_WITHDRAW_APPLICATIONS,
    ),
}


def derive_default_access_right(role) -> AccessRight:
    """Role -> default rights. Unknown or unmapped roles get no rights."""
    try:
        role = UserRole(role)
    except (TypeError, ValueError):
        return AccessRight.none()
    return DEFAULT_ROLE_RIGHTS.get(role, AccessRight.none())
