from datetime import date, time
from io import StringIO
from types import SimpleNamespace
from unittest import mock

from django.core.management import call_command
from django.db import IntegrityError
from django.test import TestCase, TransactionTestCase, override_settings
from django.utils import timezone

from apps.applications.models import Application, ApplicationStatus, ApplicationType
from apps.orders.families import CONSUMABLE_PURCHASE, FAMILIES, JOB_ORDER, MISSION_NOTE
from apps.orders.models import ConsumablePurchaseOrder, JobOrder, MissionNote
from apps.orders.services import OrderCoordinator, find_orphaned_applications
from apps.orders.stores import OrderStore
from apps.permissions.capabilities import Capability
from shared.exceptions import AuthorizationError, ConflictError, NotFoundError, ValidationError

PAYLOADS = {
    "consumable_purchase": {"required_item": 11, "required_quantity": 4},
    "spare_part_purchase": {"required_item": 12, "required_quantity": 2},
    "consumable_withdraw": {"required_item": 13, "vehicle_id": 3, "quantity": 5},
    "spare_part_withdraw": {"required_item": 14, "vehicle_id": 3},
    "maintenance": {"vehicle_id": 9},
    "job_order": {
        "vehicle_id": 4,
        "driver_id": 21,
        "start_date": date(2024, 5, 1),
        "end_date": date(2024, 5, 2),
        "start_time": time(8, 30),
        "destination": "Central Hospital",
        "odometer_before": 120400,
    },
    "mission_note": {"note": "Transfer patient to the north wing"},
}


def make_application(**overrides):
    values = {
        "creation_date": timezone.now(),
        "status": ApplicationStatus.APPROVED,
        "application_type": ApplicationType.JOB_ORDER,
        "description": "Requested by the night shift",
        "created_by_user_id": 7,
    }
    values.update(overrides)
    return Application(**values)


def build_order(family, application=None, **overrides):
    values = dict(PAYLOADS[family.key])
    values.update(overrides)
    return family.model(application=application or make_application(), **values)


def actor_with(*capabilities):
    right = 0
    for capability in capabilities:
        right |= int(capability)
    return SimpleNamespace(pk=50, access_right=right)


class OrderCreateTests(TestCase):
    def setUp(self):
        self.router = mock.Mock()

    def test_create_every_family(self):
        for key, family in FAMILIES.items():
            with self.subTest(key):
                coordinator = OrderCoordinator(family, router=self.router)
                order = coordinator.create(build_order(family))

                self.assertIsNotNone(order.pk)
                application = Application.objects.get(pk=order.application_id)
                self.assertEqual(application.status, ApplicationStatus.PENDING)
                self.assertEqual(application.application_type, family.application_type)
                self.assertEqual(family.model.objects.get(pk=order.pk).application_id, application.pk)
                self.router.notify.assert_called_with(7, order.pk, entity_type=key)

    def test_create_by_family_key(self):
        coordinator = OrderCoordinator("mission_note", router=self.router)
        order = coordinator.create(build_order(coordinator.family))
        self.assertTrue(MissionNote.objects.filter(pk=order.pk).exists())

    def test_unknown_family_key(self):
        with self.assertRaises(LookupError):
            OrderCoordinator("fuel_voucher", router=self.router)

    def test_create_requires_embedded_application(self):
        coordinator = OrderCoordinator(CONSUMABLE_PURCHASE, router=self.router)
        with self.assertRaises(ValidationError):
            coordinator.create(ConsumablePurchaseOrder(required_item=1, required_quantity=1))
        with self.assertRaises(ValidationError):
            coordinator.create(None)
        self.assertEqual(Application.objects.count(), 0)
        self.router.notify.assert_not_called()

    def test_create_rejects_other_family_model(self):
        coordinator = OrderCoordinator(CONSUMABLE_PURCHASE, router=self.router)
        with self.assertRaises(ValidationError):
            coordinator.create(build_order(JOB_ORDER))
        self.assertEqual(Application.objects.count(), 0)

    def test_create_requires_manipulate_capability(self):
        coordinator = OrderCoordinator(CONSUMABLE_PURCHASE, router=self.router)
        with self.assertRaises(AuthorizationError):
            coordinator.create(build_order(CONSUMABLE_PURCHASE), actor=actor_with(Capability.MANIPULATE_MISSIONS))
        self.assertEqual(Application.objects.count(), 0)

        order = coordinator.create(
            build_order(CONSUMABLE_PURCHASE), actor=actor_with(Capability.MANIPULATE_PURCHASE_ORDERS)
        )
        self.assertTrue(ConsumablePurchaseOrder.objects.filter(pk=order.pk).exists())


class OrderConflictTests(TestCase):
    def setUp(self):
        self.router = mock.Mock()
        self.coordinator = OrderCoordinator(CONSUMABLE_PURCHASE, router=self.router)
        self.order = self.coordinator.create(build_order(CONSUMABLE_PURCHASE))
        self.router.reset_mock()

    def test_duplicate_order_leaves_application_behind(self):
        duplicate = build_order(CONSUMABLE_PURCHASE, id=self.order.pk)
        with self.assertRaises(ConflictError):
            self.coordinator.create(duplicate)

        self.assertEqual(Application.objects.count(), 2)
        self.assertEqual(ConsumablePurchaseOrder.objects.count(), 1)
        orphans = find_orphaned_applications()
        self.assertEqual(len(orphans), 1)
        self.assertNotEqual(orphans[0].pk, self.order.application_id)
        self.router.notify.assert_not_called()

    @override_settings(FLEET_COMPENSATE_ORPHANED_APPLICATIONS=True)
    def test_duplicate_order_with_compensation(self):
        with self.assertRaises(ConflictError):
            self.coordinator.create(build_order(CONSUMABLE_PURCHASE, id=self.order.pk))
        self.assertEqual(Application.objects.count(), 1)
        self.assertEqual(find_orphaned_applications(), [])


class OrderRaceTests(TransactionTestCase):
    def test_concurrent_insert_orphans_application(self):
        coordinator = OrderCoordinator(CONSUMABLE_PURCHASE, router=mock.Mock())
        first = coordinator.create(build_order(CONSUMABLE_PURCHASE))

        with mock.patch.object(OrderStore, "find_existing", return_value=None):
            with self.assertRaises(IntegrityError):
                coordinator.create(build_order(CONSUMABLE_PURCHASE, id=first.pk))

        orphan_ids = [a.pk for a in find_orphaned_applications()]
        self.assertEqual(len(orphan_ids), 1)
        self.assertNotIn(first.application_id, orphan_ids)

    @override_settings(FLEET_COMPENSATE_ORPHANED_APPLICATIONS=True)
    def test_concurrent_insert_with_compensation(self):
        coordinator = OrderCoordinator(CONSUMABLE_PURCHASE, router=mock.Mock())
        first = coordinator.create(build_order(CONSUMABLE_PURCHASE))

        with mock.patch.object(OrderStore, "find_existing", return_value=None):
            with self.assertRaises(IntegrityError):
                coordinator.create(build_order(CONSUMABLE_PURCHASE, id=first.pk))

        self.assertEqual(find_orphaned_applications(), [])
        self.assertEqual(Application.objects.count(), 1)


class OrderUpdateTests(TestCase):
    def setUp(self):
        self.router = mock.Mock()
        self.coordinator = OrderCoordinator(CONSUMABLE_PURCHASE, router=self.router)
        self.order = self.coordinator.create(build_order(CONSUMABLE_PURCHASE))
        self.application = Application.objects.get(pk=self.order.application_id)

    def test_update_copies_payload_and_application(self):
        incoming = build_order(
            CONSUMABLE_PURCHASE,
            application=make_application(
                status=ApplicationStatus.APPROVED,
                description="Urgent: stock ran out",
                created_by_user_id=99,
            ),
            id=self.order.pk,
            required_quantity=9,
            approved_by_general_supervisor=True,
        )
        updated = self.coordinator.update(incoming)

        stored = ConsumablePurchaseOrder.objects.get(pk=self.order.pk)
        self.assertEqual(stored.required_quantity, 9)
        self.assertTrue(stored.approved_by_general_supervisor)
        self.assertEqual(stored.application_id, self.application.pk)

        application = Application.objects.get(pk=self.application.pk)
        self.assertEqual(application.status, ApplicationStatus.APPROVED)
        self.assertEqual(application.description, "Urgent: stock ran out")
        self.assertEqual(application.application_type, ApplicationType.CONSUMABLE_PURCHASE)
        self.assertEqual(application.created_by_user_id, 7)
        self.assertEqual(updated.application.status, ApplicationStatus.APPROVED)

    def test_update_without_application_leaves_it_untouched(self):
        incoming = ConsumablePurchaseOrder(id=self.order.pk, required_item=11, required_quantity=1)
        self.coordinator.update(incoming)
        self.assertEqual(ConsumablePurchaseOrder.objects.get(pk=self.order.pk).required_quantity, 1)
        self.assertEqual(
            Application.objects.get(pk=self.application.pk).description, self.application.description
        )

    def test_update_never_loads_application_from_caller_supplied_link(self):
        other = self.coordinator.create(
            build_order(CONSUMABLE_PURCHASE, application=make_application(description="Belongs to another order"))
        )
        incoming = ConsumablePurchaseOrder(
            id=self.order.pk,
            application_id=other.application_id,
            required_item=11,
            required_quantity=6,
        )
        self.coordinator.update(incoming)

        stored = ConsumablePurchaseOrder.objects.get(pk=self.order.pk)
        self.assertEqual(stored.required_quantity, 6)
        self.assertEqual(stored.application_id, self.application.pk)
        self.assertEqual(
            Application.objects.get(pk=self.application.pk).description, self.application.description
        )

    def test_update_missing_order(self):
        with self.assertRaises(NotFoundError):
            self.coordinator.update(build_order(CONSUMABLE_PURCHASE, id=self.order.pk + 100))
        with self.assertRaises(ValidationError):
            self.coordinator.update(build_order(CONSUMABLE_PURCHASE))

    def test_approval_flag_requires_approve_capability(self):
        clerk = actor_with(Capability.MANIPULATE_PURCHASE_ORDERS)
        incoming = build_order(
            CONSUMABLE_PURCHASE,
            application=make_application(status=ApplicationStatus.PENDING),
            id=self.order.pk,
            approved_by_general_manager=True,
        )
        with self.assertRaises(AuthorizationError):
            self.coordinator.update(incoming, actor=clerk)
        self.assertFalse(ConsumablePurchaseOrder.objects.get(pk=self.order.pk).approved_by_general_manager)

        manager = actor_with(Capability.MANIPULATE_PURCHASE_ORDERS, Capability.APPROVE_APPLICATIONS)
        self.coordinator.update(incoming, actor=manager)
        self.assertTrue(ConsumablePurchaseOrder.objects.get(pk=self.order.pk).approved_by_general_manager)

    def test_status_change_requires_approve_capability(self):
        clerk = actor_with(Capability.MANIPULATE_PURCHASE_ORDERS)
        incoming = build_order(
            CONSUMABLE_PURCHASE,
            application=make_application(status=ApplicationStatus.REJECTED),
            id=self.order.pk,
        )
        with self.assertRaises(AuthorizationError):
            self.coordinator.update(incoming, actor=clerk)
        self.assertEqual(Application.objects.get(pk=self.application.pk).status, ApplicationStatus.PENDING)


class OrderDeleteTests(TestCase):
    def setUp(self):
        self.coordinator = OrderCoordinator(JOB_ORDER, router=mock.Mock())
        self.order = self.coordinator.create(build_order(JOB_ORDER))

    def test_delete_removes_order_before_application(self):
        order_id = self.order.pk
        application_id = self.order.application_id
        real_delete = self.coordinator.workflow.delete

        def delete_after_order(pk):
            self.assertFalse(JobOrder.objects.filter(pk=order_id).exists())
            real_delete(pk)

        with mock.patch.object(self.coordinator.workflow, "delete", side_effect=delete_after_order) as deleted:
            self.coordinator.delete(order_id)

        deleted.assert_called_once_with(application_id)
        self.assertFalse(Application.objects.filter(pk=application_id).exists())

    def test_delete_missing_order(self):
        with self.assertRaises(NotFoundError):
            self.coordinator.delete(self.order.pk + 100)
        self.assertEqual(Application.objects.count(), 1)

    def test_delete_rejects_invalid_identifier(self):
        for order_id in (0, -3, "abc", None):
            with self.subTest(order_id=order_id):
                with self.assertRaises(ValidationError):
                    self.coordinator.delete(order_id)
        self.assertTrue(JobOrder.objects.filter(pk=self.order.pk).exists())

    def test_delete_requires_manipulate_capability(self):
        with self.assertRaises(AuthorizationError):
            self.coordinator.delete(self.order.pk, actor=actor_with(Capability.MANIPULATE_MISSIONS))
        self.assertTrue(JobOrder.objects.filter(pk=self.order.pk).exists())


class OrderStatusTests(TestCase):
    def setUp(self):
        self.router = mock.Mock()
        self.coordinator = OrderCoordinator(CONSUMABLE_PURCHASE, router=self.router)
        self.order = self.coordinator.create(build_order(CONSUMABLE_PURCHASE))
        self.router.reset_mock()

    def test_set_status_notifies_creator(self):
        approver = actor_with(Capability.APPROVE_APPLICATIONS)
        order = self.coordinator.set_status(self.order.pk, ApplicationStatus.APPROVED, actor=approver)
        self.assertEqual(order.application.status, ApplicationStatus.APPROVED)
        self.assertEqual(Application.objects.get(pk=self.order.application_id).status, ApplicationStatus.APPROVED)
        self.router.notify.assert_called_once_with(7, self.order.pk, entity_type="consumable_purchase")

    def test_set_status_without_capability(self):
        with self.assertRaises(AuthorizationError):
            self.coordinator.set_status(self.order.pk, ApplicationStatus.APPROVED, actor=actor_with(Capability.READ_ALL))
        self.router.notify.assert_not_called()

    def test_get(self):
        self.assertEqual(self.coordinator.get(self.order.pk).application.pk, self.order.application_id)
        with self.assertRaises(ValidationError):
            self.coordinator.get(0)
        with self.assertRaises(NotFoundError):
            self.coordinator.get(self.order.pk + 100)
        self.assertEqual(self.coordinator.count(), 1)
        self.assertEqual([o.pk for o in self.coordinator.list_orders()], [self.order.pk])


class OrderQueryTests(TestCase):
    def setUp(self):
        self.coordinator = OrderCoordinator(JOB_ORDER, router=mock.Mock())
        self.morning = self.coordinator.create(build_order(JOB_ORDER))
        self.evening = self.coordinator.create(
            build_order(
                JOB_ORDER,
                vehicle_id=8,
                driver_id=30,
                start_date=date(2024, 6, 10),
                end_date=date(2024, 6, 10),
                destination="North Clinic",
            )
        )
        self.coordinator.set_status(self.evening.pk, ApplicationStatus.APPROVED)

    def test_list_orders_pages(self):
        self.assertEqual([o.pk for o in self.coordinator.list_orders(1, 1)], [self.morning.pk])
        self.assertEqual([o.pk for o in self.coordinator.list_orders(2, 1)], [self.evening.pk])
        self.assertEqual(len(self.coordinator.list_orders()), 2)
        with self.assertRaises(ValidationError):
            self.coordinator.list_orders(0, 1)

    def test_get_by_application_id(self):
        order = self.coordinator.get_by_application_id(self.evening.application_id)
        self.assertEqual(order.pk, self.evening.pk)
        with self.assertRaises(NotFoundError):
            self.coordinator.get_by_application_id(self.evening.application_id + 100)
        with self.assertRaises(ValidationError):
            self.coordinator.get_by_application_id(0)

    def test_get_by_status(self):
        self.assertEqual([o.pk for o in self.coordinator.get_by_status(ApplicationStatus.APPROVED)], [self.evening.pk])
        self.assertEqual([o.pk for o in self.coordinator.get_by_status(ApplicationStatus.PENDING)], [self.morning.pk])
        with self.assertRaises(ValidationError):
            self.coordinator.get_by_status(12)

    def test_filter_orders(self):
        self.assertEqual([o.pk for o in self.coordinator.filter_orders(vehicle_id=8)], [self.evening.pk])
        self.assertEqual([o.pk for o in self.coordinator.filter_orders(driver_id=21)], [self.morning.pk])
        self.assertEqual(
            [o.pk for o in self.coordinator.filter_orders(destination__icontains="clinic")], [self.evening.pk]
        )
        with self.assertRaises(ValidationError):
            self.coordinator.filter_orders(application__created_by_user_id=7)
        with self.assertRaises(ValidationError):
            self.coordinator.filter_orders()

    def test_get_by_date_range(self):
        in_may = self.coordinator.get_by_date_range(date(2024, 5, 1), date(2024, 5, 31))
        self.assertEqual([o.pk for o in in_may], [self.morning.pk])
        self.assertEqual(len(self.coordinator.get_by_date_range(date(2024, 1, 1), date(2024, 12, 31))), 2)
        with self.assertRaises(ValidationError):
            self.coordinator.get_by_date_range(date(2024, 6, 1), date(2024, 5, 1))
        with self.assertRaises(ValidationError):
            OrderCoordinator(MISSION_NOTE, router=mock.Mock()).get_by_date_range(date(2024, 5, 1), date(2024, 5, 31))


class CleanupOrphanedApplicationsCommandTests(TestCase):
    def setUp(self):
        coordinator = OrderCoordinator(CONSUMABLE_PURCHASE, router=mock.Mock())
        self.order = coordinator.create(build_order(CONSUMABLE_PURCHASE))
        self.orphan = Application.objects.create(
            creation_date=timezone.now(),
            application_type=ApplicationType.MAINTENANCE,
            description="Left behind",
            created_by_user_id=7,
        )

    def test_lists_orphans(self):
        out = StringIO()
        call_command("cleanup_orphaned_applications", stdout=out)
        self.assertIn(f"#{self.orphan.pk}", out.getvalue())
        self.assertIn("Found 1 orphaned application(s).", out.getvalue())
        self.assertTrue(Application.objects.filter(pk=self.orphan.pk).exists())

    def test_deletes_orphans(self):
        out = StringIO()
        call_command("cleanup_orphaned_applications", "--delete", stdout=out)
        self.assertIn("Deleted 1 orphaned application(s).", out.getvalue())
        self.assertFalse(Application.objects.filter(pk=self.orphan.pk).exists())
        self.assertTrue(Application.objects.filter(pk=self.order.application_id).exists())

        out = StringIO()
        call_command("cleanup_orphaned_applications", stdout=out)
        self.assertIn("No orphaned applications.", out.getvalue())
