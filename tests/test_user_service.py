"""Tests for guildhall.services.users: profile updates, password changes, admin operations."""

import unittest

from guildhall.core.exceptions import BadInputError, ForbiddenError, NotFoundError
from guildhall.core.security import verify_password
from guildhall.models import User, UserRole
from guildhall.schemas.auth import CurrentUser
from guildhall.schemas.user import ChangePasswordRequest, UpdateProfileRequest
from guildhall.services import users as user_service
from tests.support import DEFAULT_PASSWORD, create_user, make_session_factory

MISSING_ID = "00000000-0000-0000-0000-000000000000"


def _caller(user: User, role: UserRole | None = None) -> CurrentUser:
    return CurrentUser(id=user.id, email=user.email, role=role or UserRole(user.role))


class UserServiceTestCase(unittest.TestCase):
    def setUp(self) -> None:
        self.Session = make_session_factory()
        self.db = self.Session()
        self.alice = create_user(self.db, username="alice", bio="Hello")

    def tearDown(self) -> None:
        self.db.close()


class TestProfiles(UserServiceTestCase):
    def test_public_profile_hides_sensitive_fields(self) -> None:
        profile = user_service.get_user_profile(self.db, self.alice.id)
        self.assertEqual(profile.username, "alice")
        self.assertEqual(profile.role, UserRole.USER)
        dumped = profile.model_dump(by_alias=True)
        self.assertIn("firstName", dumped)
        for hidden in ("email", "passwordHash", "refreshToken", "walletAddress"):
            self.assertNotIn(hidden, dumped)

    def test_missing_profile_is_not_found(self) -> None:
        with self.assertRaises(NotFoundError):
            user_service.get_user_profile(self.db, MISSING_ID)

    def test_details_visible_to_self_and_admin_only(self) -> None:
        bob = create_user(self.db, username="bob")
        admin = create_user(self.db, username="root", role=UserRole.ADMIN)

        own = user_service.get_user_details(self.db, self.alice.id, _caller(self.alice))
        self.assertEqual(own.email, "alice@example.com")
        by_admin = user_service.get_user_details(self.db, self.alice.id, _caller(admin))
        self.assertTrue(by_admin.is_active)
        with self.assertRaises(ForbiddenError):
            user_service.get_user_details(self.db, self.alice.id, _caller(bob))
        moderator = create_user(self.db, username="mod", role=UserRole.MODERATOR)
        with self.assertRaises(ForbiddenError):
            user_service.get_user_details(self.db, self.alice.id, _caller(moderator))

    def test_partial_update_merges_only_provided_fields(self) -> None:
        updated = user_service.update_user_profile(
            self.db,
            self.alice.id,
            UpdateProfileRequest.model_validate({"firstName": "Alicia", "twitterHandle": "@al"}),
        )
        self.assertEqual(updated.first_name, "Alicia")
        self.assertEqual(updated.last_name, "User")
        self.assertEqual(updated.twitter_handle, "@al")
        self.assertEqual(updated.bio, "Hello")

    def test_explicit_null_clears_optional_but_not_required_fields(self) -> None:
        updated = user_service.update_user_profile(
            self.db,
            self.alice.id,
            UpdateProfileRequest.model_validate({"bio": None, "firstName": None}),
        )
        self.assertIsNone(updated.bio)
        self.assertEqual(updated.first_name, "Test")

    def test_update_avatar(self) -> None:
        result = user_service.update_avatar(
            self.db, self.alice.id, "https://cdn.example.com/a.png"
        )
        self.assertEqual(result.avatar_url, "https://cdn.example.com/a.png")
        self.db.refresh(self.alice)
        self.assertEqual(self.alice.avatar_url, "https://cdn.example.com/a.png")

    def test_empty_avatar_is_bad_input(self) -> None:
        for value in (None, "", "   "):
            with self.subTest(value=value):
                with self.assertRaises(BadInputError):
                    user_service.update_avatar(self.db, self.alice.id, value)


class TestChangePassword(UserServiceTestCase):
    def _assert_hash_unchanged(self, original_hash: str) -> None:
        self.db.refresh(self.alice)
        self.assertEqual(self.alice.password_hash, original_hash)

    def test_confirmation_mismatch(self) -> None:
        original = self.alice.password_hash
        with self.assertRaises(BadInputError) as ctx:
            user_service.change_password(
                self.db,
                self.alice.id,
                ChangePasswordRequest(
                    current_password=DEFAULT_PASSWORD,
                    new_password="NewPassword1",
                    confirm_password="NewPassword2",
                ),
            )
        self.assertEqual(ctx.exception.message, "Passwords do not match")
        self._assert_hash_unchanged(original)

    def test_new_equals_current(self) -> None:
        original = self.alice.password_hash
        with self.assertRaises(BadInputError):
            user_service.change_password(
                self.db,
                self.alice.id,
                ChangePasswordRequest(
                    current_password=DEFAULT_PASSWORD,
                    new_password=DEFAULT_PASSWORD,
                    confirm_password=DEFAULT_PASSWORD,
                ),
            )
        self._assert_hash_unchanged(original)

    def test_wrong_current_password(self) -> None:
        original = self.alice.password_hash
        with self.assertRaises(BadInputError) as ctx:
            user_service.change_password(
                self.db,
                self.alice.id,
                ChangePasswordRequest(
                    current_password="NotMyPassword",
                    new_password="NewPassword1",
                    confirm_password="NewPassword1",
                ),
            )
        self.assertEqual(ctx.exception.message, "Current password is incorrect")
        self._assert_hash_unchanged(original)

    def test_success_rehashes(self) -> None:
        result = user_service.change_password(
            self.db,
            self.alice.id,
            ChangePasswordRequest(
                current_password=DEFAULT_PASSWORD,
                new_password="NewPassword1",
                confirm_password="NewPassword1",
            ),
        )
        self.assertEqual(result.message, "Password changed successfully")
        self.db.refresh(self.alice)
        self.assertTrue(verify_password("NewPassword1", self.alice.password_hash))
        self.assertFalse(verify_password(DEFAULT_PASSWORD, self.alice.password_hash))


class TestAdminOperations(UserServiceTestCase):
    def setUp(self) -> None:
        super().setUp()
        create_user(self.db, username="bob", first_name="Robert", is_active=False)
        create_user(self.db, username="mod_carol", role=UserRole.MODERATOR)
        create_user(self.db, username="root", role=UserRole.ADMIN, email="root@guild.org")

    def test_search_without_filters_returns_everyone(self) -> None:
        page = user_service.search_users(self.db)
        self.assertEqual(page.total, 4)
        self.assertEqual(len(page.data), 4)
        self.assertEqual((page.skip, page.take), (0, 20))

    def test_search_matches_names_and_email_case_insensitively(self) -> None:
        self.assertEqual(
            [u.username for u in user_service.search_users(self.db, query="ROBERT").data],
            ["bob"],
        )
        self.assertEqual(
            [u.username for u in user_service.search_users(self.db, query="guild.org").data],
            ["root"],
        )

    def test_search_treats_wildcards_literally(self) -> None:
        self.assertEqual(
            [u.username for u in user_service.search_users(self.db, query="mod_").data],
            ["mod_carol"],
        )
        self.assertEqual(user_service.search_users(self.db, query="%").total, 0)

    def test_search_filters_by_role_and_active_flag(self) -> None:
        by_role = user_service.search_users(self.db, role=UserRole.MODERATOR)
        self.assertEqual([u.username for u in by_role.data], ["mod_carol"])
        inactive = user_service.search_users(self.db, is_active=False)
        self.assertEqual([u.username for u in inactive.data], ["bob"])
        self.assertEqual(user_service.search_users(self.db, is_active=True).total, 3)

    def test_pagination(self) -> None:
        page = user_service.search_users(self.db, skip=1, take=2)
        self.assertEqual(page.total, 4)
        self.assertEqual(len(page.data), 2)
        self.assertEqual((page.skip, page.take), (1, 2))
        last = user_service.search_users(self.db, skip=3, take=2)
        self.assertEqual(len(last.data), 1)

    def test_users_by_role(self) -> None:
        page = user_service.get_users_by_role(self.db, UserRole.USER)
        self.assertEqual(page.total, 2)
        self.assertEqual({u.username for u in page.data}, {"alice", "bob"})
        self.assertEqual(user_service.get_users_by_role(self.db, UserRole.OWNER).total, 0)

    def test_assign_role(self) -> None:
        result = user_service.assign_role(self.db, self.alice.id, UserRole.MODERATOR)
        self.assertEqual(result.role, UserRole.MODERATOR)
        self.assertEqual(result.username, "alice")
        self.db.refresh(self.alice)
        self.assertEqual(self.alice.role, "MODERATOR")

    def test_assign_role_missing_user(self) -> None:
        with self.assertRaises(NotFoundError):
            user_service.assign_role(self.db, MISSING_ID, UserRole.ADMIN)

    def test_deactivate_then_reactivate(self) -> None:
        self.alice.refresh_token = "stored-token"
        self.db.commit()

        user_service.deactivate_user(self.db, self.alice.id)
        self.db.refresh(self.alice)
        self.assertFalse(self.alice.is_active)
        self.assertIsNone(self.alice.refresh_token)
        self.assertIsNotNone(self.db.get(User, self.alice.id))

        result = user_service.reactivate_user(self.db, self.alice.id)
        self.assertEqual(result.message, "User account reactivated successfully")
        self.db.refresh(self.alice)
        self.assertTrue(self.alice.is_active)

    def test_reactivate_missing_user(self) -> None:
        with self.assertRaises(NotFoundError):
            user_service.reactivate_user(self.db, MISSING_ID)


if __name__ == "__main__":
    unittest.main()
