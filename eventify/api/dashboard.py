from typing import Literal, Optional

from fastapi import APIRouter, Depends, Query

from eventify.api.deps import get_booking_service
from eventify.core.security import get_current_user
from eventify.models.api_models import (
    CalendarMonth,
    DashboardStats,
    DetailsResponse,
    NotifyResponse,
    PendingPaymentsResponse,
    RemindersResponse,
    SummaryResponse,
)
from eventify.models.db_models import User
from eventify.services import dashboard_service, llm_service
from eventify.services.booking_service import BookingService
from eventify.services.reminder_service import local_today, reminder_notifier, scan_reminders

router = APIRouter(prefix="/dashboard")

StatusFilter = Literal["all", "pending", "completed"]
DetailCategory = Literal["total", "completed", "pending", "received", "pending_amount"]


async def _visible(user: User, service: BookingService, status: Optional[str] = None):
    bookings = await service.list_bookings(user)
    return dashboard_service.filter_by_status(bookings, status)


@router.get("/stats", response_model=DashboardStats)
async def stats(
    status: StatusFilter = "all",
    user: User = Depends(get_current_user),
    service: BookingService = Depends(get_booking_service),
):
    return dashboard_service.compute_stats(await _visible(user, service, status))


@router.get("/details/{category}", response_model=DetailsResponse)
async def details(
    category: DetailCategory,
    status: StatusFilter = "all",
    user: User = Depends(get_current_user),
    service: BookingService = Depends(get_booking_service),
):
    return dashboard_service.details(await _visible(user, service, status), category)


@router.get("/pending-payments", response_model=PendingPaymentsResponse)
async def pending_payments(
    user: User = Depends(get_current_user),
    service: BookingService = Depends(get_booking_service),
):
    return dashboard_service.pending_payments(await _visible(user, service))


@router.get("/calendar", response_model=CalendarMonth)
async def calendar_month(
    year: Optional[int] = Query(default=None, ge=1970, le=9999),
    month: Optional[int] = Query(default=None, ge=1, le=12),
    status: StatusFilter = "all",
    user: User = Depends(get_current_user),
    service: BookingService = Depends(get_booking_service),
):
    today = local_today()
    return dashboard_service.month_grid(
        year or today.year, month or today.month, await _visible(user, service, status), today
    )


@router.get("/reminders", response_model=RemindersResponse)
async def reminders(
    user: User = Depends(get_current_user),
    service: BookingService = Depends(get_booking_service),
):
    return RemindersResponse(reminders=scan_reminders(await _visible(user, service)))


@router.post("/reminders/notify", response_model=NotifyResponse)
async def notify_reminders(
    user: User = Depends(get_current_user),
    service: BookingService = Depends(get_booking_service),
):
    return await reminder_notifier.notify(scan_reminders(await _visible(user, service)))


@router.post("/summary", response_model=SummaryResponse)
async def summary(
    status: StatusFilter = "all",
    user: User = Depends(get_current_user),
    service: BookingService = Depends(get_booking_service),
):
    return await llm_service.generate_summary(await _visible(user, service, status))
