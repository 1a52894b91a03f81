import asyncio
import json
import os
import time
import datetime
from typing import Any, Dict, List, Optional, Tuple

from pydantic import ValidationError

from eventify.core.exceptions import StoreError
from eventify.core.logger import logger
from eventify.models.db_models import Booking, TimeSlot, User, new_booking_id


def _empty_document() -> Dict[str, Any]:
    return {"users": [], "events": {}, "meta": {}}


class LocalStore:
    """
    Event record store backed by a single JSON file.

    Layout: {"users": [...], "events": {owner_id: {"YYYY-MM-DD": [record, ...]}}, "meta": {...}}
    The per-owner, per-date map mirrors how the dashboard kept bookings in browser storage.
    """

    def __init__(self, path: str):
        self.path = path
        self._lock = asyncio.Lock()

    # --- File helpers (blocking, run in a worker thread) ---

    def _read_document(self) -> Tuple[Dict[str, Any], bool]:
        """Returns (document, is_corrupt)."""
        if not os.path.exists(self.path):
            return _empty_document(), False
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            logger.error(f"❌ Store file {self.path} is corrupt: {e}")
            return _empty_document(), True
        except OSError as e:
            logger.error(f"❌ Cannot read store file {self.path}: {e}")
            raise StoreError("Could not read local data store.") from e

        if not isinstance(data, dict):
            logger.error(f"❌ Store file {self.path} has unexpected top-level type {type(data).__name__}")
            return _empty_document(), True

        doc = _empty_document()
        doc["users"] = data.get("users") if isinstance(data.get("users"), list) else []
        doc["events"] = data.get("events") if isinstance(data.get("events"), dict) else {}
        doc["meta"] = data.get("meta") if isinstance(data.get("meta"), dict) else {}
        return doc, False

    def _write_document(self, doc: Dict[str, Any]) -> None:
        directory = os.path.dirname(self.path)
        tmp_path = f"{self.path}.tmp"
        try:
            if directory:
                os.makedirs(directory, exist_ok=True)
            with open(tmp_path, "w", encoding="utf-8") as f:
                json.dump(doc, f, ensure_ascii=False, indent=2)
            os.replace(tmp_path, self.path)
        except OSError as e:
            logger.error(f"❌ Cannot write store file {self.path}: {e}")
            raise StoreError("Could not write local data store.") from e

    def _quarantine(self) -> None:
        aside = f"{self.path}.corrupt-{int(time.time())}"
        try:
            os.replace(self.path, aside)
            logger.error(f"🧯 Corrupt store moved aside to {aside}")
        except OSError as e:
            raise StoreError("Local data store is corrupt and could not be moved aside.") from e

    async def _load(self) -> Dict[str, Any]:
        doc, _ = await asyncio.to_thread(self._read_document)
        return doc

    async def _modify(self, mutate) -> Any:
        async with self._lock:
            doc, corrupt = await asyncio.to_thread(self._read_document)
            if corrupt:
                await asyncio.to_thread(self._quarantine)
            result = mutate(doc)
            await asyncio.to_thread(self._write_document, doc)
            return result

    # --- Record parsing ---

    @staticmethod
    def _parse_user(raw: Any) -> Optional[User]:
        try:
            return User.model_validate(raw)
        except ValidationError as e:
            logger.warning(f"⚠️ Skipping malformed user record: {e.errors()[:1]}")
            return None

    @staticmethod
    def _record_id(owner_id: str, day_key: str, raw: Dict[str, Any]) -> Optional[str]:
        """Stored id, or the one derived for legacy records saved without it."""
        if raw.get("id"):
            return raw["id"]
        try:
            slot = TimeSlot.parse(raw.get("timeSlot") or TimeSlot.FULL_DAY.value)
        except ValueError:
            return None
        return f"{owner_id}-{day_key}-{slot.value}"

    @classmethod
    def _parse_day(cls, owner_id: str, day_key: str, value: Any) -> List[Booking]:
        # Older files hold a single object per date instead of a list
        items = value if isinstance(value, list) else [value]
        bookings = []
        for raw in items:
            if not isinstance(raw, dict):
                logger.warning(f"⚠️ Skipping non-object booking for {owner_id} on {day_key}")
                continue
            record = {**raw, "date": day_key, "ownerId": owner_id, "id": cls._record_id(owner_id, day_key, raw)}
            if not record.get("timeSlot"):
                record["timeSlot"] = TimeSlot.FULL_DAY.value
            try:
                bookings.append(Booking.model_validate(record))
            except (ValidationError, ValueError) as e:
                logger.warning(f"⚠️ Skipping malformed booking for {owner_id} on {day_key}: {e}")
        return bookings

    def _iter_bookings(self, doc: Dict[str, Any], owner_id: Optional[str] = None):
        for owner, days in doc["events"].items():
            if owner_id and owner != owner_id:
                continue
            if not isinstance(days, dict):
                logger.warning(f"⚠️ Skipping malformed event map for owner {owner}")
                continue
            for day_key, value in days.items():
                yield from self._parse_day(owner, day_key, value)

    @classmethod
    def _remove_booking(cls, doc: Dict[str, Any], booking_id: str) -> bool:
        for owner, days in doc["events"].items():
            if not isinstance(days, dict):
                continue
            for day_key in list(days.keys()):
                value = days[day_key]
                items = value if isinstance(value, list) else [value]
                kept = [
                    r for r in items
                    if not (isinstance(r, dict) and cls._record_id(owner, day_key, r) == booking_id)
                ]
                if len(kept) != len(items):
                    if kept:
                        days[day_key] = kept
                    else:
                        del days[day_key]
                    return True
        return False

    @classmethod
    def _put_booking(cls, doc: Dict[str, Any], booking: Booking) -> None:
        cls._remove_booking(doc, booking.id)
        days = doc["events"].setdefault(booking.owner_id, {})
        day_key = booking.date.isoformat()
        existing = days.get(day_key, [])
        if not isinstance(existing, list):
            existing = [existing]
        existing.append(booking.to_record())
        days[day_key] = existing

    # --- Users ---

    async def list_users(self) -> List[User]:
        doc = await self._load()
        return [u for u in (self._parse_user(raw) for raw in doc["users"]) if u]

    async def get_user(self, user_id: str) -> Optional[User]:
        for user in await self.list_users():
            if user.id == user_id:
                return user
        return None

    async def get_user_by_username(self, username: str) -> Optional[User]:
        for user in await self.list_users():
            if user.username == username:
                return user
        return None

    async def save_user(self, user: User) -> None:
        def mutate(doc):
            doc["users"] = [u for u in doc["users"] if not (isinstance(u, dict) and u.get("id") == user.id)]
            doc["users"].append(user.to_record())
        await self._modify(mutate)

    async def delete_user(self, user_id: str) -> None:
        def mutate(doc):
            doc["users"] = [u for u in doc["users"] if not (isinstance(u, dict) and u.get("id") == user_id)]
        await self._modify(mutate)

    # --- Bookings ---

    async def list_bookings(self, owner_id: Optional[str] = None, day: Optional[datetime.date] = None) -> List[Booking]:
        doc = await self._load()
        bookings = list(self._iter_bookings(doc, owner_id))
        if day:
            bookings = [b for b in bookings if b.date == day]
        return bookings

    async def get_booking(self, booking_id: str) -> Optional[Booking]:
        for booking in await self.list_bookings():
            if booking.id == booking_id:
                return booking
        return None

    async def upsert_booking(self, booking: Booking) -> str:
        if not booking.id:
            booking = booking.model_copy(update={"id": new_booking_id()})
        await self._modify(lambda doc: self._put_booking(doc, booking))
        return booking.id

    async def delete_booking(self, booking_id: str) -> None:
        if not booking_id:
            return
        await self._modify(lambda doc: self._remove_booking(doc, booking_id))

    # --- Backup support ---

    async def dump_raw(self) -> Tuple[List[Dict[str, Any]], List[Dict[str, Any]]]:
        doc = await self._load()
        users = [u.to_record() for u in (self._parse_user(raw) for raw in doc["users"]) if u]
        events = [b.to_record() for b in self._iter_bookings(doc)]
        return users, events

    async def write_batch(self, users: List[User], bookings: List[Booking]) -> None:
        def mutate(doc):
            for user in users:
                doc["users"] = [u for u in doc["users"] if not (isinstance(u, dict) and u.get("id") == user.id)]
                doc["users"].append(user.to_record())
            for booking in bookings:
                self._put_booking(doc, booking)
        await self._modify(mutate)

    # --- Meta ---

    async def get_meta(self, key: str) -> Optional[str]:
        doc = await self._load()
        return doc["meta"].get(key)

    async def set_meta(self, key: str, value: str) -> None:
        def mutate(doc):
            doc["meta"][key] = value
        await self._modify(mutate)
