"""
Per-day slot allocation.

A date belonging to one owner can hold at most one Morning and one Evening
booking, or a single FullDay booking that excludes everything else.
"""
from dataclasses import dataclass
from typing import Iterable, Optional, Set, List

from eventify.models.db_models import Booking, TimeSlot

REASON_FULL_DAY_BOOKED = "full day already booked"
REASON_OTHER_EVENTS = "other events exist this date"
REASON_MORNING_TAKEN = "morning slot taken"
REASON_EVENING_TAKEN = "evening slot taken"

# Order used to pre-select a slot for a new booking
SLOT_PREFERENCE = (TimeSlot.MORNING, TimeSlot.EVENING, TimeSlot.FULL_DAY)


@dataclass(frozen=True)
class SlotDecision:
    accepted: bool
    reason: Optional[str] = None

    @classmethod
    def accept(cls) -> "SlotDecision":
        return cls(True)

    @classmethod
    def reject(cls, reason: str) -> "SlotDecision":
        return cls(False, reason)


def can_assign(existing_slots: Set[TimeSlot], requested_slot: TimeSlot) -> SlotDecision:
    """
    Decide whether `requested_slot` may be added to a day already holding `existing_slots`.
    Pure function: a rejection is returned, never raised.
    """
    if TimeSlot.FULL_DAY in existing_slots:
        return SlotDecision.reject(REASON_FULL_DAY_BOOKED)
    if requested_slot == TimeSlot.FULL_DAY and existing_slots:
        return SlotDecision.reject(REASON_OTHER_EVENTS)
    if requested_slot == TimeSlot.MORNING and TimeSlot.MORNING in existing_slots:
        return SlotDecision.reject(REASON_MORNING_TAKEN)
    if requested_slot == TimeSlot.EVENING and TimeSlot.EVENING in existing_slots:
        return SlotDecision.reject(REASON_EVENING_TAKEN)
    return SlotDecision.accept()


def occupied_slots(bookings: Iterable[Booking], exclude_id: Optional[str] = None) -> Set[TimeSlot]:
    """Slots held by `bookings`, leaving out the booking being edited."""
    return {b.time_slot for b in bookings if not (exclude_id and b.id == exclude_id)}


def available_slots(existing_slots: Set[TimeSlot]) -> List[TimeSlot]:
    return [slot for slot in SLOT_PREFERENCE if can_assign(existing_slots, slot).accepted]


def default_slot(existing_slots: Set[TimeSlot]) -> Optional[TimeSlot]:
    available = available_slots(existing_slots)
    return available[0] if available else None
