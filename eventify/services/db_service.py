from supabase import create_async_client, AsyncClient
from pydantic import ValidationError
from typing import Any, Dict, List, Optional, Tuple
import asyncio
import datetime
import logging

from eventify.core.config import settings
from eventify.core.exceptions import StoreError
from eventify.models.db_models import Booking, User, new_booking_id

logger = logging.getLogger("eventify")

USERS_TABLE = "users"
EVENTS_TABLE = "events"
META_TABLE = "meta"


def _parse_row(model, raw: Dict[str, Any], kind: str):
    """Validates one row; a malformed row is logged and read as missing."""
    try:
        return model.model_validate(raw)
    except (ValidationError, ValueError) as e:
        logger.warning(f"⚠️ Skipping malformed {kind} row {raw.get('id')}: {e}")
        return None


class DBService:
    """
    Event record store backed by Supabase (tables: users, events, meta).
    Every failure is logged and re-raised as StoreError; nothing is retried.
    """
    _instance = None
    _client: AsyncClient = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super(DBService, cls).__new__(cls)
            # Async client is created lazily on first usage
        return cls._instance

    def __init__(self):
        if not hasattr(self, "_client_lock"):
            self._client_lock = asyncio.Lock()

    async def get_client(self) -> AsyncClient:
        if not self._client:
            async with self._client_lock:
                if self._client:
                    return self._client
                if not (settings.SUPABASE_URL and settings.SUPABASE_KEY):
                    logger.error("❌ Supabase credentials missing (SUPABASE_URL / SUPABASE_KEY)")
                    raise StoreError("Database not initialized.")
                try:
                    self._client = await create_async_client(settings.SUPABASE_URL, settings.SUPABASE_KEY)
                    logger.info("✅ Supabase Async client initialized")
                except Exception as e:
                    logger.error(f"❌ Failed to initialize Supabase Async: {e}")
                    raise StoreError("Database not initialized.") from e
        return self._client

    async def _execute(self, operation: str, build_query):
        """Runs a query built from the client, translating any failure into StoreError."""
        client = await self.get_client()
        try:
            return await build_query(client).execute()
        except Exception as e:
            logger.error(f"❌ DB Error ({operation}): {e}")
            raise StoreError(f"Database error during {operation}.") from e

    # --- Users ---

    async def list_users(self) -> List[User]:
        response = await self._execute("list_users", lambda c: c.table(USERS_TABLE).select("*"))
        users = (_parse_row(User, raw, "user") for raw in response.data or [])
        return [u for u in users if u]

    async def get_user(self, user_id: str) -> Optional[User]:
        response = await self._execute("get_user", lambda c: c.table(USERS_TABLE).select("*").eq("id", user_id))
        if response.data:
            return _parse_row(User, response.data[0], "user")
        return None

    async def get_user_by_username(self, username: str) -> Optional[User]:
        response = await self._execute(
            "get_user_by_username", lambda c: c.table(USERS_TABLE).select("*").eq("username", username)
        )
        if response.data:
            return _parse_row(User, response.data[0], "user")
        return None

    async def save_user(self, user: User) -> None:
        await self._execute("save_user", lambda c: c.table(USERS_TABLE).upsert(user.to_record()))
        logger.info(f"💾 User {user.id} saved")

    async def delete_user(self, user_id: str) -> None:
        await self._execute("delete_user", lambda c: c.table(USERS_TABLE).delete().eq("id", user_id))
        logger.info(f"🗑️ User {user_id} deleted")

    # --- Bookings ---

    async def list_bookings(self, owner_id: Optional[str] = None, day: Optional[datetime.date] = None) -> List[Booking]:
        def build(c):
            query = c.table(EVENTS_TABLE).select("*")
            if owner_id:
                query = query.eq("ownerId", owner_id)
            if day:
                query = query.eq("date", day.isoformat())
            return query

        response = await self._execute("list_bookings", build)
        bookings = (_parse_row(Booking, raw, "booking") for raw in response.data or [])
        return [b for b in bookings if b]

    async def get_booking(self, booking_id: str) -> Optional[Booking]:
        response = await self._execute("get_booking", lambda c: c.table(EVENTS_TABLE).select("*").eq("id", booking_id))
        if response.data:
            return _parse_row(Booking, response.data[0], "booking")
        return None

    async def upsert_booking(self, booking: Booking) -> str:
        if not booking.id:
            booking = booking.model_copy(update={"id": new_booking_id()})
        await self._execute("upsert_booking", lambda c: c.table(EVENTS_TABLE).upsert(booking.to_record()))
        logger.info(f"✅ Booking {booking.id} saved for {booking.owner_id} on {booking.date}")
        return booking.id

    async def delete_booking(self, booking_id: str) -> None:
        if not booking_id:
            return
        await self._execute("delete_booking", lambda c: c.table(EVENTS_TABLE).delete().eq("id", booking_id))
        logger.info(f"🗑️ Booking {booking_id} deleted from DB.")

    # --- Backup support ---

    async def dump_raw(self) -> Tuple[List[Dict[str, Any]], List[Dict[str, Any]]]:
        users = await self._execute("dump_users", lambda c: c.table(USERS_TABLE).select("*"))
        events = await self._execute("dump_events", lambda c: c.table(EVENTS_TABLE).select("*"))
        return list(users.data or []), list(events.data or [])

    async def write_batch(self, users: List[User], bookings: List[Booking]) -> None:
        if users:
            await self._execute(
                "restore_users", lambda c: c.table(USERS_TABLE).upsert([u.to_record() for u in users])
            )
        if bookings:
            await self._execute(
                "restore_events", lambda c: c.table(EVENTS_TABLE).upsert([b.to_record() for b in bookings])
            )

    # --- Meta ---

    async def get_meta(self, key: str) -> Optional[str]:
        response = await self._execute("get_meta", lambda c: c.table(META_TABLE).select("value").eq("key", key))
        if response.data:
            return response.data[0].get("value")
        return None

    async def set_meta(self, key: str, value: str) -> None:
        await self._execute("set_meta", lambda c: c.table(META_TABLE).upsert({"key": key, "value": value}))

db_service = DBService()
