"""
Read-only views over a booking list: headline stats, drill-down lists,
pending payments and the month calendar. Order of the input never matters.
"""
import calendar
import datetime
from typing import Iterable, List, Optional, Sequence

from eventify.core.config import settings
from eventify.models.api_models import CalendarDay, CalendarMonth, DashboardStats, DetailsResponse, PendingPaymentsResponse
from eventify.models.db_models import BookingStatus, BookingView
from eventify.services.slot_allocator import SLOT_PREFERENCE

DETAIL_TITLES = {
    "total": "Total Orders",
    "completed": "Completed Orders",
    "pending": "Pending Orders",
    "received": "Amount Received",
    "pending_amount": "Amount Pending",
}


def filter_by_status(bookings: Iterable[BookingView], status: Optional[str]) -> List[BookingView]:
    if not status or status == "all":
        return list(bookings)
    return [b for b in bookings if b.status.value == status]


def compute_stats(bookings: Sequence[BookingView]) -> DashboardStats:
    completed = [b for b in bookings if b.status == BookingStatus.COMPLETED]
    pending = [b for b in bookings if b.status == BookingStatus.PENDING]
    return DashboardStats(
        total_orders=len(bookings),
        completed_orders=len(completed),
        pending_orders=len(bookings) - len(completed),
        amount_received=sum(b.amount or 0 for b in completed),
        amount_pending=sum(b.amount or 0 for b in pending),
    )


def details(bookings: Sequence[BookingView], category: str) -> DetailsResponse:
    """Bookings behind one dashboard card, newest date first."""
    if category in ("completed", "received"):
        selected = [b for b in bookings if b.status == BookingStatus.COMPLETED]
    elif category in ("pending", "pending_amount"):
        selected = [b for b in bookings if b.status == BookingStatus.PENDING]
    else:
        selected = list(bookings)

    selected.sort(key=lambda b: b.date, reverse=True)
    return DetailsResponse(title=DETAIL_TITLES.get(category, "Details"), events=selected)


def pending_payments(bookings: Sequence[BookingView]) -> PendingPaymentsResponse:
    pending = sorted((b for b in bookings if b.status == BookingStatus.PENDING), key=lambda b: b.date)
    return PendingPaymentsResponse(total_amount=sum(b.amount or 0 for b in pending), events=pending)


def month_grid(year: int, month: int, bookings: Sequence[BookingView], today: datetime.date) -> CalendarMonth:
    """
    Sunday-first weeks covering the whole month, padded with days of the
    neighbouring months.
    """
    first = datetime.date(year, month, 1)
    last = datetime.date(year, month, calendar.monthrange(year, month)[1])
    start = first - datetime.timedelta(days=(first.weekday() + 1) % 7)
    end = last + datetime.timedelta(days=6 - (last.weekday() + 1) % 7)

    by_date = {}
    for b in bookings:
        by_date.setdefault(b.date, []).append(b.time_slot)

    weeks, week = [], []
    day = start
    while day <= end:
        slots = by_date.get(day, [])
        week.append(CalendarDay(
            date=day,
            in_month=day.month == month,
            is_today=day == today,
            count=len(slots),
            slots=[s for s in SLOT_PREFERENCE if s in slots],
        ))
        if len(week) == 7:
            weeks.append(week)
            week = []
        day += datetime.timedelta(days=1)

    return CalendarMonth(year=year, month=month, title=first.strftime("%B %Y"), weeks=weeks)


def format_amount(amount: float, symbol: Optional[str] = None) -> str:
    """Money with Indian digit grouping, e.g. 150000 -> ₹1,50,000."""
    symbol = settings.CURRENCY_SYMBOL if symbol is None else symbol
    whole, _, frac = f"{abs(amount):.2f}".partition(".")
    frac = frac.rstrip("0")

    if len(whole) > 3:
        head, tail = whole[:-3], whole[-3:]
        groups = []
        while len(head) > 2:
            groups.insert(0, head[-2:])
            head = head[:-2]
        if head:
            groups.insert(0, head)
        whole = ",".join(groups + [tail])

    sign = "-" if amount < 0 else ""
    return f"{sign}{symbol}{whole}{'.' + frac if frac else ''}"
