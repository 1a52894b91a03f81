import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, Response

from eventify.api.deps import get_booking_service
from eventify.core.security import get_current_user
from eventify.models.api_models import BookingDraft, DayResponse, SlotCheckRequest, SlotDecisionResponse
from eventify.models.db_models import BookingStatus, BookingView, User
from eventify.services.booking_service import BookingService

router = APIRouter(prefix="/bookings")


@router.get("", response_model=List[BookingView])
async def list_bookings(
    status: Optional[BookingStatus] = None,
    user: User = Depends(get_current_user),
    service: BookingService = Depends(get_booking_service),
):
    return await service.list_bookings(user, status)


@router.get("/day/{day}", response_model=DayResponse)
async def day_bookings(
    day: datetime.date,
    user: User = Depends(get_current_user),
    service: BookingService = Depends(get_booking_service),
):
    return await service.day_bookings(user, day)


@router.post("/check", response_model=SlotDecisionResponse)
async def check_slot(
    req: SlotCheckRequest,
    user: User = Depends(get_current_user),
    service: BookingService = Depends(get_booking_service),
):
    decision = await service.check_slot(user, req)
    return SlotDecisionResponse(accepted=decision.accepted, reason=decision.reason)


@router.post("", response_model=BookingView, status_code=201)
async def create_booking(
    draft: BookingDraft,
    user: User = Depends(get_current_user),
    service: BookingService = Depends(get_booking_service),
):
    return await service.save_booking(user, draft)


@router.put("/{booking_id}", response_model=BookingView)
async def update_booking(
    booking_id: str,
    draft: BookingDraft,
    user: User = Depends(get_current_user),
    service: BookingService = Depends(get_booking_service),
):
    return await service.save_booking(user, draft, booking_id=booking_id)


@router.delete("/{booking_id}", status_code=204)
async def delete_booking(
    booking_id: str,
    user: User = Depends(get_current_user),
    service: BookingService = Depends(get_booking_service),
):
    await service.delete_booking(user, booking_id)
    return Response(status_code=204)


@router.post("/{booking_id}/settle", response_model=BookingView)
async def settle_booking(
    booking_id: str,
    user: User = Depends(get_current_user),
    service: BookingService = Depends(get_booking_service),
):
    return await service.settle_booking(user, booking_id)


@router.post("/{booking_id}/toggle-status", response_model=BookingView)
async def toggle_status(
    booking_id: str,
    user: User = Depends(get_current_user),
    service: BookingService = Depends(get_booking_service),
):
    return await service.toggle_status(user, booking_id)
