import asyncio
import datetime
from collections import defaultdict
from typing import Any, Dict, List, Optional, Protocol, Tuple

from eventify.core.config import settings
from eventify.core.logger import logger
from eventify.models.db_models import Booking, User


class EventStore(Protocol):
    """The operations both persistence backends provide."""

    async def list_users(self) -> List[User]: ...
    async def get_user(self, user_id: str) -> Optional[User]: ...
    async def get_user_by_username(self, username: str) -> Optional[User]: ...
    async def save_user(self, user: User) -> None: ...
    async def delete_user(self, user_id: str) -> None: ...
    async def list_bookings(self, owner_id: Optional[str] = None, day: Optional[datetime.date] = None) -> List[Booking]: ...
    async def get_booking(self, booking_id: str) -> Optional[Booking]: ...
    async def upsert_booking(self, booking: Booking) -> str: ...
    async def delete_booking(self, booking_id: str) -> None: ...
    async def dump_raw(self) -> Tuple[List[Dict[str, Any]], List[Dict[str, Any]]]: ...
    async def write_batch(self, users: List[User], bookings: List[Booking]) -> None: ...
    async def get_meta(self, key: str) -> Optional[str]: ...
    async def set_meta(self, key: str, value: str) -> None: ...


_store: Optional[EventStore] = None


def get_store() -> EventStore:
    """Returns the process-wide store selected by STORE_BACKEND."""
    global _store
    if _store is None:
        backend = settings.STORE_BACKEND.lower()
        if backend == "supabase":
            from eventify.services.db_service import db_service
            _store = db_service
        elif backend == "local":
            from eventify.services.local_store import LocalStore
            _store = LocalStore(settings.LOCAL_STORE_PATH)
        else:
            raise ValueError(f"Unknown STORE_BACKEND '{settings.STORE_BACKEND}' (expected 'local' or 'supabase')")
        logger.info(f"🗄️ Using {backend} event store")
    return _store


def set_store(store: Optional[EventStore]) -> None:
    global _store
    _store = store


class KeyedLocks:
    """
    One asyncio.Lock per key, so the load-check-write cycle for a single
    (owner, date) pair runs one at a time inside this process.
    """

    def __init__(self):
        self._locks: Dict[Any, asyncio.Lock] = defaultdict(asyncio.Lock)

    def __call__(self, key: Any) -> asyncio.Lock:
        return self._locks[key]


booking_locks = KeyedLocks()
