import pytest
from unittest.mock import patch

from eventify.core.config import settings
from eventify.core.exceptions import AuthenticationError, NotFoundError, PermissionDeniedError, ValidationFailedError
from eventify.core.security import verify_password
from eventify.models.api_models import UserCreateRequest, UserUpdateRequest
from eventify.models.db_models import Booking, TimeSlot, UserRole
from eventify.services.user_service import UserService

PASSWORD = "secret"


@pytest.mark.asyncio
async def test_default_admin_seeded_once(store):
    users = UserService(store)

    with patch.object(settings, "DEFAULT_ADMIN_PASSWORD", "first-run"):
        admin = await users.ensure_default_admin()
    assert admin.username == "admin"
    assert admin.role == UserRole.ADMIN
    assert verify_password("first-run", admin.password_hash)

    assert await users.ensure_default_admin() is None
    assert len(await store.list_users()) == 1


@pytest.mark.asyncio
async def test_authenticate(seeded_store):
    users = UserService(seeded_store)

    user = await users.authenticate("alice", PASSWORD)
    assert user.id == "user-alice"

    with pytest.raises(AuthenticationError, match="Invalid username or password"):
        await users.authenticate("alice", "wrong")
    with pytest.raises(AuthenticationError, match="Invalid username or password"):
        await users.authenticate("nobody", PASSWORD)
    with pytest.raises(AuthenticationError, match="both username and password"):
        await users.authenticate("alice", "  ")


@pytest.mark.asyncio
async def test_create_user_defaults(seeded_store):
    users = UserService(seeded_store)

    created = await users.create_user(UserCreateRequest(username="carol", name="Carol"))
    assert created.id.startswith("user-")
    assert created.photo.endswith("u=carol")
    assert verify_password(settings.DEFAULT_USER_PASSWORD, created.password_hash)

    with pytest.raises(ValidationFailedError, match="already taken"):
        await users.create_user(UserCreateRequest(username="carol", name="Other Carol"))
    with pytest.raises(ValidationFailedError):
        await users.create_user(UserCreateRequest(username=" ", name="Nobody"))


@pytest.mark.asyncio
async def test_update_own_profile(seeded_store, alice):
    users = UserService(seeded_store)

    updated = await users.update_user(alice, alice.id, UserUpdateRequest(name="Alice K", password=""))
    assert updated.name == "Alice K"
    # Empty password keeps the old one
    assert verify_password(PASSWORD, updated.password_hash)

    updated = await users.update_user(alice, alice.id, UserUpdateRequest(password="new-pass"))
    assert verify_password("new-pass", updated.password_hash)


@pytest.mark.asyncio
async def test_update_permissions(seeded_store, admin, alice, bob):
    users = UserService(seeded_store)

    with pytest.raises(PermissionDeniedError):
        await users.update_user(alice, bob.id, UserUpdateRequest(name="Hacked"))
    with pytest.raises(PermissionDeniedError):
        await users.update_user(alice, alice.id, UserUpdateRequest(role=UserRole.ADMIN))
    with pytest.raises(ValidationFailedError):
        await users.update_user(admin, alice.id, UserUpdateRequest(username="bob"))
    with pytest.raises(NotFoundError):
        await users.update_user(admin, "user-missing", UserUpdateRequest(name="X"))

    promoted = await users.update_user(admin, bob.id, UserUpdateRequest(role=UserRole.ADMIN))
    assert promoted.is_admin


@pytest.mark.asyncio
async def test_delete_user_keeps_bookings(seeded_store, admin, alice):
    users = UserService(seeded_store)
    await seeded_store.upsert_booking(Booking(
        id="b1", text="Shoot", place="X", amount=1, time_slot=TimeSlot.MORNING, date="2025-03-14", owner_id=alice.id
    ))

    with pytest.raises(PermissionDeniedError):
        await users.delete_user(admin, admin.id)

    await users.delete_user(admin, alice.id)
    assert await seeded_store.get_user(alice.id) is None
    assert await seeded_store.get_booking("b1") is not None

    with pytest.raises(NotFoundError):
        await users.delete_user(admin, alice.id)
