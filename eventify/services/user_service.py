from typing import List, Optional

from eventify.core.config import settings
from eventify.core.exceptions import (
    AuthenticationError,
    ValidationFailedError,
    NotFoundError,
    PermissionDeniedError,
)
from eventify.core.logger import logger
from eventify.core.security import get_password_hash, verify_password
from eventify.models.api_models import UserCreateRequest, UserUpdateRequest
from eventify.models.db_models import User, UserRole, default_photo
from eventify.services.store import EventStore, get_store

DEFAULT_ADMIN_USERNAME = "admin"


class UserService:
    def __init__(self, store: Optional[EventStore] = None):
        self.store = store or get_store()

    async def ensure_default_admin(self) -> Optional[User]:
        """
        Seeds the admin account on the very first start (empty user list).
        """
        users = await self.store.list_users()
        if users:
            return None

        logger.info("👤 No users found. Seeding default admin.")
        admin = User(
            username=DEFAULT_ADMIN_USERNAME,
            password_hash=get_password_hash(settings.DEFAULT_ADMIN_PASSWORD),
            role=UserRole.ADMIN,
            name="Admin User",
            phone="",
        )
        await self.store.save_user(admin)
        return admin

    async def authenticate(self, username: str, password: str) -> User:
        if not username.strip() or not password.strip():
            raise AuthenticationError("Please enter both username and password.")

        user = await self.store.get_user_by_username(username.strip())
        if not user or not verify_password(password, user.password_hash):
            logger.warning(f"🔒 Failed login for '{username}'")
            raise AuthenticationError("Invalid username or password.")

        logger.info(f"🔓 {user.username} logged in")
        return user

    async def list_users(self) -> List[User]:
        return await self.store.list_users()

    async def _ensure_unique_username(self, username: str, user_id: Optional[str] = None):
        existing = await self.store.get_user_by_username(username)
        if existing and existing.id != user_id:
            raise ValidationFailedError(f"Username '{username}' is already taken.")

    async def create_user(self, req: UserCreateRequest) -> User:
        username = req.username.strip()
        if not username or not req.name.strip():
            raise ValidationFailedError("Username and name are required.")
        await self._ensure_unique_username(username)

        user = User(
            username=username,
            name=req.name.strip(),
            phone=req.phone,
            photo=req.photo or default_photo(username),
            role=req.role,
            password_hash=get_password_hash(req.password or settings.DEFAULT_USER_PASSWORD),
        )
        await self.store.save_user(user)
        logger.info(f"🆕 User created: {user.username} ({user.role.value})")
        return user

    async def update_user(self, actor: User, user_id: str, req: UserUpdateRequest) -> User:
        """
        Admins may edit anyone; other users only their own profile and never their role.
        An empty password leaves the current one unchanged.
        """
        if not actor.is_admin and actor.id != user_id:
            raise PermissionDeniedError("You can only edit your own profile.")
        if not actor.is_admin and req.role is not None and req.role != actor.role:
            raise PermissionDeniedError("Only an admin can change roles.")

        user = await self.store.get_user(user_id)
        if not user:
            raise NotFoundError("User not found.")

        changes = {}
        if req.username is not None and req.username.strip() and req.username.strip() != user.username:
            await self._ensure_unique_username(req.username.strip(), user_id)
            changes["username"] = req.username.strip()
        if req.name is not None:
            if not req.name.strip():
                raise ValidationFailedError("Name must not be empty.")
            changes["name"] = req.name.strip()
        if req.phone is not None:
            changes["phone"] = req.phone
        if req.photo is not None:
            changes["photo"] = req.photo or default_photo(changes.get("username", user.username))
        if req.role is not None and actor.is_admin:
            changes["role"] = req.role
        if req.password:
            changes["password_hash"] = get_password_hash(req.password)

        updated = user.model_copy(update=changes)
        await self.store.save_user(updated)
        logger.info(f"✏️ User {updated.id} updated by {actor.username}")
        return updated

    async def delete_user(self, actor: User, user_id: str) -> None:
        """
        Removes the account only. Bookings owned by the user are kept and show up
        as "Unknown User" until reassigned or deleted.
        """
        if actor.id == user_id:
            raise PermissionDeniedError("You cannot delete your own account.")

        user = await self.store.get_user(user_id)
        if not user:
            raise NotFoundError("User not found.")

        await self.store.delete_user(user_id)
        orphaned = await self.store.list_bookings(owner_id=user_id)
        if orphaned:
            logger.warning(f"⚠️ User {user.username} deleted; {len(orphaned)} booking(s) keep a dangling owner")
        else:
            logger.info(f"🗑️ User {user.username} deleted")
