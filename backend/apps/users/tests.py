from django.contrib.auth.hashers import check_password
from django.test import TestCase

from apps.permissions.capabilities import AccessRight, Capability, UserRole
from shared.exceptions import AuthorizationError, ConflictError, NotFoundError, ValidationError

from .models import User
from .services import UserDirectory, UserService


class UserServiceTests(TestCase):
    def setUp(self):
        self.admin = UserService.create_user("Root", "10000000000001", "rootpass", UserRole.SUPER_USER)
        self.supervisor = UserService.create_user(
            "Mona Adel", "29801011234567", "secret1", UserRole.GENERAL_SUPERVISOR
        )

    def test_create_user_derives_access_right_from_role(self):
        self.assertEqual(self.admin.access_right, -1)
        self.assertEqual(self.supervisor.access_right, 2 | 1 | 4096)
        self.assertTrue(check_password("secret1", self.supervisor.password))

    def test_create_user_rejects_duplicate_national_number(self):
        with self.assertRaises(ConflictError):
            UserService.create_user("Other", "29801011234567", "secret2", UserRole.ADMINISTRATIVE_SUPERVISOR)

    def test_create_user_validates_national_number(self):
        with self.assertRaises(ValidationError):
            UserService.create_user("Short", "123", "secret2", UserRole.ADMINISTRATIVE_SUPERVISOR)
        with self.assertRaises(ValidationError):
            UserService.create_user("", "29801011234568", "secret2", UserRole.ADMINISTRATIVE_SUPERVISOR)

    def test_self_update_keeps_role_and_access(self):
        UserService.update_user_info(self.supervisor.pk, "Mona A.", "29801011234567")
        self.supervisor.refresh_from_db()
        self.assertEqual(self.supervisor.name, "Mona A.")
        self.assertEqual(self.supervisor.role, UserRole.GENERAL_SUPERVISOR)
        self.assertEqual(self.supervisor.access_right, 2 | 1 | 4096)
        self.assertTrue(check_password("secret1", self.supervisor.password))

    def test_super_user_can_update_any_user(self):
        UserService.update_any_user(
            self.admin,
            self.supervisor.pk,
            "Mona Adel",
            "29801011234567",
            UserRole.HOSPITAL_MANAGER,
            AccessRight.of(Capability.READ_ALL),
        )
        self.supervisor.refresh_from_db()
        self.assertEqual(self.supervisor.role, UserRole.HOSPITAL_MANAGER)
        self.assertEqual(self.supervisor.access_right, 1)

    def test_non_super_user_cannot_update_any_user(self):
        with self.assertRaises(AuthorizationError):
            UserService.update_any_user(
                self.supervisor,
                self.supervisor.pk,
                "Mona Adel",
                "29801011234567",
                UserRole.SUPER_USER,
                -1,
            )
        self.supervisor.refresh_from_db()
        self.assertEqual(self.supervisor.role, UserRole.GENERAL_SUPERVISOR)
        self.assertEqual(self.supervisor.access_right, 2 | 1 | 4096)

    def test_set_permissions_requires_all(self):
        with self.assertRaises(AuthorizationError):
            UserService.set_permissions(self.supervisor, self.supervisor.pk, Capability.ALL)
        self.supervisor.refresh_from_db()
        self.assertFalse(self.supervisor.access.is_all)

        UserService.set_permissions(self.admin, self.supervisor.pk, Capability.VIEW_REPORTS)
        self.supervisor.refresh_from_db()
        self.assertEqual(self.supervisor.access, AccessRight.of(Capability.VIEW_REPORTS))

    def test_delete_user(self):
        with self.assertRaises(AuthorizationError):
            UserService.delete_user(self.supervisor, self.admin.pk)
        supervisor_id = self.supervisor.pk
        UserService.delete_user(self.admin, supervisor_id)
        self.assertFalse(User.objects.filter(pk=supervisor_id).exists())
        with self.assertRaises(NotFoundError):
            UserService.delete_user(self.admin, supervisor_id)

    def test_login(self):
        user = UserService.login("29801011234567", "secret1")
        self.assertEqual(user.pk, self.supervisor.pk)
        with self.assertRaises(AuthorizationError):
            UserService.login("29801011234567", "wrong")
        with self.assertRaises(NotFoundError):
            UserService.login("29801019999999", "secret1")

    def test_change_password(self):
        with self.assertRaises(ValidationError):
            UserService.change_password(self.supervisor.pk, "abc")
        UserService.change_password(self.supervisor.pk, "n3w-secret")
        self.supervisor.refresh_from_db()
        self.assertTrue(check_password("n3w-secret", self.supervisor.password))

    def test_list_users_pages(self):
        self.assertEqual([u.pk for u in UserService.list_users(1, 1)], [self.admin.pk])
        self.assertEqual([u.pk for u in UserService.list_users(2, 1)], [self.supervisor.pk])
        with self.assertRaises(ValidationError):
            UserService.list_users(0, 10)


class UserDirectoryTests(TestCase):
    def test_missing_or_invalid_id_returns_none(self):
        directory = UserDirectory()
        self.assertIsNone(directory.get_by_id(0))
        self.assertIsNone(directory.get_by_id(4242))
