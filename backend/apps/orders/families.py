"""
Per-family configuration for ``OrderCoordinator``.

A family names the order model, the application type its applications carry,
the payload fields an update may copy, the approval flags that act as
secondary gates, and the capabilities guarding mutation and approval.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple, Type

from django.db import models

from apps.applications.models import ApplicationType
from apps.permissions.capabilities import Capability

from .models import (
    ConsumablePurchaseOrder,
    ConsumableWithdrawApplication,
    JobOrder,
    MaintenanceApplication,
    MissionNote,
    SparePartPurchaseOrder,
    SparePartWithdrawApplication,
)


@dataclass(frozen=True)
class OrderFamily:
    key: str
    model: Type[models.Model]
    application_type: ApplicationType
    payload_fields: Tuple[str, ...]
    approval_flags: Tuple[str, ...]
    manipulate_capability: Capability
    approve_capability: Capability = Capability.APPROVE_APPLICATIONS

    @property
    def mutable_fields(self) -> Tuple[str, ...]:
        return self.payload_fields + self.approval_flags

    @property
    def label(self) -> str:
        return self.application_type.label


_TWO_STEP_APPROVAL = ("approved_by_general_supervisor", "approved_by_general_manager")

CONSUMABLE_PURCHASE = OrderFamily(
    key="consumable_purchase",
    model=ConsumablePurchaseOrder,
    application_type=ApplicationType.CONSUMABLE_PURCHASE,
    payload_fields=("required_item", "required_quantity"),
    approval_flags=_TWO_STEP_APPROVAL,
    manipulate_capability=Capability.MANIPULATE_PURCHASE_ORDERS,
)

SPARE_PART_PURCHASE = OrderFamily(
    key="spare_part_purchase",
    model=SparePartPurchaseOrder,
    application_type=ApplicationType.SPARE_PART_PURCHASE,
    payload_fields=("required_item", "required_quantity"),
    approval_flags=_TWO_STEP_APPROVAL,
    manipulate_capability=Capability.MANIPULATE_PURCHASE_ORDERS,
)

CONSUMABLE_WITHDRAW = OrderFamily(
    key="consumable_withdraw",
    model=ConsumableWithdrawApplication,
    application_type=ApplicationType.CONSUMABLE_WITHDRAW,
    payload_fields=("required_item", "vehicle_id", "quantity"),
    approval_flags=_TWO_STEP_APPROVAL,
    manipulate_capability=Capability.MANIPULATE_WITHDRAW_APPLICATIONS,
)

SPARE_PART_WITHDRAW = OrderFamily(
    key="spare_part_withdraw",
    model=SparePartWithdrawApplication,
    application_type=ApplicationType.SPARE_PART_WITHDRAW,
    payload_fields=("required_item", "vehicle_id", "quantity"),
    approval_flags=_TWO_STEP_APPROVAL,
    manipulate_capability=Capability.MANIPULATE_WITHDRAW_APPLICATIONS,
)

MAINTENANCE = OrderFamily(
    key="maintenance",
    model=MaintenanceApplication,
    application_type=ApplicationType.MAINTENANCE,
    payload_fields=("vehicle_id",),
    approval_flags=_TWO_STEP_APPROVAL,
    manipulate_capability=Capability.MANIPULATE_MAINTENANCE,
)

JOB_ORDER = OrderFamily(
    key="job_order",
    model=JobOrder,
    application_type=ApplicationType.JOB_ORDER,
    payload_fields=(
        "vehicle_id",
        "driver_id",
        "start_date",
        "end_date",
        "start_time",
        "end_time",
        "destination",
        "odometer_before",
        "odometer_after",
    ),
    approval_flags=("approved_by_general_supervisor",),
    manipulate_capability=Capability.MANIPULATE_JOB_ORDER,
)

MISSION_NOTE = OrderFamily(
    key="mission_note",
    model=MissionNote,
    application_type=ApplicationType.MISSION_NOTE,
    payload_fields=("note",),
    approval_flags=("approved_by_general_supervisor",),
    manipulate_capability=Capability.MANIPULATE_MISSIONS,
)

FAMILIES = {
    family.key: family
    for family in (
        CONSUMABLE_PURCHASE,
        SPARE_PART_PURCHASE,
        CONSUMABLE_WITHDRAW,
        SPARE_PART_WITHDRAW,
        MAINTENANCE,
        JOB_ORDER,
        MISSION_NOTE,
    )
}


def get_family(key: str) -> OrderFamily:
    try:
        return FAMILIES[key]
    except KeyError:
        raise LookupError(f"Unknown order family '{key}'. Known: {', '.join(sorted(FAMILIES))}")
