import datetime
import random

from eventify.models.db_models import BookingStatus, BookingView, TimeSlot
from eventify.services.dashboard_service import (
    compute_stats,
    details,
    filter_by_status,
    format_amount,
    month_grid,
    pending_payments,
)


def _view(booking_id, day, amount, status="pending", slot="Morning"):
    return BookingView(
        id=booking_id, text=f"Event {booking_id}", place="Goa", amount=amount, status=status,
        time_slot=slot, date=day, owner_id="user-alice",
    )


BOOKINGS = [
    _view("a", datetime.date(2025, 3, 1), 1000, "completed"),
    _view("b", datetime.date(2025, 3, 5), 2500),
    _view("c", datetime.date(2025, 3, 5), 500, slot="Evening"),
    _view("d", datetime.date(2025, 4, 2), 10000, "completed", slot="FullDay"),
]


def test_compute_stats():
    stats = compute_stats(BOOKINGS)
    assert stats.total_orders == 4
    assert stats.completed_orders == 2
    assert stats.pending_orders == 2
    assert stats.amount_received == 11000
    assert stats.amount_pending == 3000


def test_stats_are_order_independent():
    shuffled = BOOKINGS[:]
    random.Random(7).shuffle(shuffled)
    assert compute_stats(shuffled) == compute_stats(BOOKINGS)


def test_stats_empty():
    stats = compute_stats([])
    assert stats.total_orders == 0
    assert stats.amount_received == 0


def test_stats_serialise_camel_case():
    data = compute_stats(BOOKINGS).model_dump(by_alias=True)
    assert data["amountPending"] == 3000
    assert data["totalOrders"] == 4


def test_filter_by_status():
    assert len(filter_by_status(BOOKINGS, "all")) == 4
    assert len(filter_by_status(BOOKINGS, None)) == 4
    assert [b.id for b in filter_by_status(BOOKINGS, "completed")] == ["a", "d"]
    assert [b.id for b in filter_by_status(BOOKINGS, "pending")] == ["b", "c"]


def test_details_newest_first():
    result = details(BOOKINGS, "received")
    assert result.title == "Amount Received"
    assert [b.id for b in result.events] == ["d", "a"]

    result = details(BOOKINGS, "total")
    assert result.events[0].id == "d"
    assert result.events[-1].id == "a"


def test_pending_payments_oldest_first():
    result = pending_payments(BOOKINGS)
    assert result.total_amount == 3000
    assert [b.id for b in result.events] == ["b", "c"]
    assert all(b.status == BookingStatus.PENDING for b in result.events)


def test_month_grid_starts_on_sunday():
    grid = month_grid(2025, 3, BOOKINGS, today=datetime.date(2025, 3, 5))

    assert grid.title == "March 2025"
    # 1 March 2025 is a Saturday
    first_week = grid.weeks[0]
    assert first_week[0].date == datetime.date(2025, 2, 23)
    assert first_week[0].in_month is False
    assert first_week[6].date == datetime.date(2025, 3, 1)
    assert first_week[6].count == 1

    last_week = grid.weeks[-1]
    assert last_week[6].date.weekday() == 5
    assert all(len(week) == 7 for week in grid.weeks)

    days = {d.date: d for week in grid.weeks for d in week}
    busy = days[datetime.date(2025, 3, 5)]
    assert busy.is_today is True
    assert busy.count == 2
    assert busy.slots == [TimeSlot.MORNING, TimeSlot.EVENING]


def test_format_amount_indian_grouping():
    assert format_amount(0) == "₹0"
    assert format_amount(999) == "₹999"
    assert format_amount(1000) == "₹1,000"
    assert format_amount(150000) == "₹1,50,000"
    assert format_amount(12345678.5) == "₹1,23,45,678.5"
    assert format_amount(-2500, symbol="$") == "-$2,500"
