"""
Unit tests for user accounts: authentication and admin user management.
"""
import pytest

from core.auth import PasswordManager
from core.exceptions import ConflictError, InvalidInputError, NotFoundError, UnauthorizedError
from core.models import new_id
from services.user_service import UserService


@pytest.mark.unit
class TestCreate:

    async def test_email_is_normalised_and_password_hashed(self, session):
        user = await UserService(session).create("  Editor@Example.COM ", "editor-password")

        assert user.email == "editor@example.com"
        assert user.role == "user"
        assert user.password_hash != "editor-password"
        assert PasswordManager.verify_password("editor-password", user.password_hash)

    async def test_admin_role(self, session):
        user = await UserService(session).create("boss@example.com", "boss-password", role="ADMIN")
        assert user.role == "admin"

    async def test_duplicate_email(self, session, reviewer):
        with pytest.raises(ConflictError):
            await UserService(session).create("Reviewer@example.com", "another-password")

    @pytest.mark.parametrize(
        "email,password,role",
        [
            ("not-an-email", "long-enough-password", None),
            ("ok@example.com", "short", None),
            ("ok@example.com", "x" * 129, None),
            ("ok@example.com", "long-enough-password", "superuser"),
        ],
    )
    async def test_invalid_input(self, session, email, password, role):
        with pytest.raises(InvalidInputError):
            await UserService(session).create(email, password, role=role)


@pytest.mark.unit
class TestAuthenticate:

    async def test_valid_credentials(self, session, reviewer):
        user = await UserService(session).authenticate("reviewer@example.com", "reviewer-password")
        assert user.id == reviewer.id

    async def test_email_lookup_ignores_case(self, session, reviewer):
        user = await UserService(session).authenticate("REVIEWER@example.com", "reviewer-password")
        assert user.id == reviewer.id

    @pytest.mark.parametrize(
        "email,password",
        [("reviewer@example.com", "wrong-password"), ("nobody@example.com", "reviewer-password")],
    )
    async def test_invalid_credentials_share_one_message(self, session, reviewer, email, password):
        with pytest.raises(UnauthorizedError) as exc_info:
            await UserService(session).authenticate(email, password)
        assert exc_info.value.message == "Invalid credentials"


@pytest.mark.unit
class TestUpdateAndDelete:

    async def test_update_fields(self, session, reviewer):
        user = await UserService(session).update(
            reviewer.id, name="Lead Reviewer", role="admin", password="new-password-1"
        )

        assert user.name == "Lead Reviewer"
        assert user.role == "admin"
        assert PasswordManager.verify_password("new-password-1", user.password_hash)

    async def test_update_to_taken_email(self, session, reviewer):
        service = UserService(session)
        await service.create("taken@example.com", "taken-password")

        with pytest.raises(ConflictError):
            await service.update(reviewer.id, email="taken@example.com")

    async def test_keeping_own_email_is_allowed(self, session, reviewer):
        user = await UserService(session).update(reviewer.id, email="reviewer@example.com")
        assert user.email == "reviewer@example.com"

    async def test_update_missing_user(self, session):
        with pytest.raises(NotFoundError):
            await UserService(session).update(new_id(), name="Ghost")

    async def test_delete(self, session, reviewer):
        service = UserService(session)
        await service.delete(reviewer.id, acting_user_id=new_id())

        with pytest.raises(NotFoundError):
            await service.get(reviewer.id)

    async def test_cannot_delete_self(self, session, reviewer):
        with pytest.raises(InvalidInputError):
            await UserService(session).delete(reviewer.id, acting_user_id=reviewer.id)

    async def test_list_users(self, session, reviewer):
        users = await UserService(session).list_users()
        assert [u.email for u in users] == ["reviewer@example.com"]


@pytest.mark.unit
async def test_ensure_admin_is_idempotent(session):
    service = UserService(session)

    first = await service.ensure_admin("admin@example.com", "admin-password-1")
    second = await service.ensure_admin("admin@example.com", "different-password")

    assert first.id == second.id
    assert first.role == "admin"
    assert first.name == "Administrator"
