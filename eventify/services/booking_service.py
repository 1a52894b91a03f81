import asyncio
import datetime
from contextlib import AsyncExitStack, asynccontextmanager
from typing import Dict, List, Optional

from pydantic import ValidationError

from eventify.core.config_loader import load_studio_config, get_notification_settings
from eventify.core.exceptions import (
    BookingValidationError,
    NotFoundError,
    PermissionDeniedError,
    SlotConflictError,
)
from eventify.core.logger import logger
from eventify.models.api_models import BookingDraft, DayResponse, OwnerDay, SlotCheckRequest
from eventify.models.db_models import Booking, BookingStatus, BookingView, User
from eventify.services.notification_service import send_sms
from eventify.services.slot_allocator import (
    SLOT_PREFERENCE,
    SlotDecision,
    available_slots,
    can_assign,
    default_slot,
    occupied_slots,
)
from eventify.services.store import EventStore, booking_locks, get_store

SLOT_ORDER = {slot: i for i, slot in enumerate(SLOT_PREFERENCE)}


def sort_key(booking: Booking):
    return booking.date, SLOT_ORDER[booking.time_slot]


class BookingService:
    def __init__(self, store: Optional[EventStore] = None):
        self.store = store or get_store()
        self.config = load_studio_config()

    # --- Reads ---

    async def _users_by_id(self) -> Dict[str, User]:
        return {u.id: u for u in await self.store.list_users()}

    async def rehydrate(self, bookings: List[Booking]) -> List[BookingView]:
        users = await self._users_by_id()
        return [BookingView.from_booking(b, users.get(b.owner_id)) for b in sorted(bookings, key=sort_key)]

    async def list_bookings(self, viewer: User, status: Optional[BookingStatus] = None) -> List[BookingView]:
        """
        All bookings the viewer may see: every owner for an admin, only their own otherwise.
        """
        owner_id = None if viewer.is_admin else viewer.id
        bookings = await self.store.list_bookings(owner_id=owner_id)
        if status:
            bookings = [b for b in bookings if b.status == status]
        return await self.rehydrate(bookings)

    async def day_bookings(self, viewer: User, day: datetime.date) -> DayResponse:
        """
        Everything booked on `day` regardless of status, with the free slots per owner.
        """
        owner_id = None if viewer.is_admin else viewer.id
        bookings = await self.store.list_bookings(owner_id=owner_id, day=day)

        owner_ids = [u.id for u in await self.store.list_users()] if viewer.is_admin else [viewer.id]
        owner_ids += [b.owner_id for b in bookings if b.owner_id not in owner_ids]

        owners = []
        for oid in owner_ids:
            taken = occupied_slots(b for b in bookings if b.owner_id == oid)
            owners.append(OwnerDay(
                owner_id=oid,
                occupied=[s for s in SLOT_PREFERENCE if s in taken],
                available=available_slots(taken),
                default_slot=default_slot(taken),
            ))

        return DayResponse(date=day, bookings=await self.rehydrate(bookings), owners=owners)

    async def _get_visible(self, viewer: User, booking_id: str) -> Booking:
        booking = await self.store.get_booking(booking_id)
        if not booking:
            raise NotFoundError("Booking not found.")
        if not viewer.is_admin and booking.owner_id != viewer.id:
            raise PermissionDeniedError("You can only manage your own bookings.")
        return booking

    # --- Slot check ---

    async def check_slot(self, viewer: User, req: SlotCheckRequest) -> SlotDecision:
        owner_id = req.owner_id or viewer.id
        if not viewer.is_admin and owner_id != viewer.id:
            raise PermissionDeniedError("You can only book for yourself.")

        day = await self.store.list_bookings(owner_id=owner_id, day=req.date)
        return can_assign(occupied_slots(day, exclude_id=req.booking_id), req.time_slot)

    # --- Writes ---

    def _validate_draft(self, draft: BookingDraft):
        missing = []
        if not draft.text.strip():
            missing.append("title")
        if not draft.place.strip():
            missing.append("place")
        if draft.amount is None:
            missing.append("amount")
        if missing:
            raise BookingValidationError(f"Please fill in: {', '.join(missing)}.")
        if draft.amount < 0:
            raise BookingValidationError("Amount cannot be negative.")

    def _build_booking(self, draft: BookingDraft, booking_id: Optional[str], owner_id: str) -> Booking:
        try:
            return Booking(
                id=booking_id,
                text=draft.text.strip(),
                place=draft.place.strip(),
                amount=draft.amount,
                status=draft.status,
                time_slot=draft.time_slot,
                customer_name=draft.customer_name.strip(),
                customer_mobile=draft.customer_mobile.strip(),
                send_sms=draft.send_sms,
                date=draft.date,
                owner_id=owner_id,
            )
        except ValidationError as e:
            raise BookingValidationError(f"Invalid booking: {e.errors()[0].get('msg')}") from e

    @asynccontextmanager
    async def _lock_days(self, keys):
        """Holds the (owner, date) locks for every key, taken in sorted order."""
        async with AsyncExitStack() as stack:
            for key in sorted(set(keys)):
                await stack.enter_async_context(booking_locks(key))
            yield

    async def save_booking(self, viewer: User, draft: BookingDraft, booking_id: Optional[str] = None) -> BookingView:
        """
        Create (booking_id=None) or edit a booking.
        Loads the owner's bookings for the date, runs the slot allocator and writes
        only when the slot is accepted. The edited booking never conflicts with itself.
        """
        self._validate_draft(draft)

        while True:
            existing = await self._get_visible(viewer, booking_id) if booking_id else None
            owner_id = draft.owner_id or (existing.owner_id if existing else viewer.id)
            if not viewer.is_admin and owner_id != viewer.id:
                raise PermissionDeniedError("You can only assign bookings to yourself.")

            owner = await self.store.get_user(owner_id)
            if not owner:
                raise NotFoundError("Target user not found.")

            booking = self._build_booking(draft, booking_id, owner_id)

            keys = [(owner_id, draft.date)]
            if existing:
                keys.append((existing.owner_id, existing.date))

            async with self._lock_days(keys):
                if existing:
                    current = await self.store.get_booking(booking_id)
                    if not current:
                        raise NotFoundError("Booking not found.")
                    if (current.owner_id, current.date) != (existing.owner_id, existing.date):
                        # Moved while we waited; lock the day it is on now
                        continue

                day = await self.store.list_bookings(owner_id=owner_id, day=draft.date)
                decision = can_assign(occupied_slots(day, exclude_id=booking_id), booking.time_slot)
                if not decision.accepted:
                    logger.info(f"⛔ Slot {booking.time_slot.value} on {draft.date} for {owner.username} rejected: {decision.reason}")
                    raise SlotConflictError(decision.reason)

                new_id = await self.store.upsert_booking(booking)
                break

        booking = booking.model_copy(update={"id": new_id})
        logger.info(f"📅 Booking {'updated' if booking_id else 'created'}: {booking.text} ({booking.time_slot.value}) on {booking.date} for {owner.username}")

        if not booking_id and booking.send_sms:
            await self.send_confirmation(booking)

        return BookingView.from_booking(booking, owner)

    async def delete_booking(self, viewer: User, booking_id: str) -> None:
        booking = await self._get_visible(viewer, booking_id)
        async with booking_locks((booking.owner_id, booking.date)):
            await self.store.delete_booking(booking_id)
        logger.info(f"🗑️ Booking {booking_id} ({booking.text}) deleted by {viewer.username}")

    async def _set_status(self, viewer: User, booking_id: str, status: Optional[BookingStatus]) -> BookingView:
        while True:
            booking = await self._get_visible(viewer, booking_id)
            async with booking_locks((booking.owner_id, booking.date)):
                # Only the status changes; everything else comes from the stored copy
                current = await self.store.get_booking(booking_id)
                if not current:
                    raise NotFoundError("Booking not found.")
                if (current.owner_id, current.date) != (booking.owner_id, booking.date):
                    continue

                new_status = status
                if new_status is None:
                    new_status = BookingStatus.PENDING if current.status == BookingStatus.COMPLETED else BookingStatus.COMPLETED
                updated = current.model_copy(update={"status": new_status})
                await self.store.upsert_booking(updated)
                break

        logger.info(f"💰 Booking {booking_id} marked {new_status.value}")
        return (await self.rehydrate([updated]))[0]

    async def settle_booking(self, viewer: User, booking_id: str) -> BookingView:
        """Marks a pending booking as paid (completed)."""
        return await self._set_status(viewer, booking_id, BookingStatus.COMPLETED)

    async def toggle_status(self, viewer: User, booking_id: str) -> BookingView:
        return await self._set_status(viewer, booking_id, None)

    # --- Notifications ---

    async def send_confirmation(self, booking: Booking) -> bool:
        """
        Sends the customer an SMS confirmation. Failures are logged, never raised.
        """
        if not booking.customer_mobile:
            logger.warning(f"⚠️ SMS requested for booking {booking.id} but no customer mobile is set")
            return False

        notifications = get_notification_settings(self.config)
        template = notifications.get("sms_template", "Your booking on {date} is confirmed.")
        try:
            body = template.format(
                customer_name=booking.customer_name or "there",
                text=booking.text,
                slot=booking.time_slot.value,
                date=booking.date.strftime("%d.%m.%Y"),
                place=booking.place,
                studio_name=self.config.get("studio_name", "Eventify"),
            )
        except (KeyError, IndexError) as e:
            logger.error(f"❌ Error formatting SMS template: {e}")
            return False

        return await asyncio.to_thread(send_sms, booking.customer_mobile, body)
