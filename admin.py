import asyncio
import streamlit as st
import pandas as pd

from eventify.models.db_models import BookingView
from eventify.services.dashboard_service import compute_stats, filter_by_status, format_amount
from eventify.services.reminder_service import scan_reminders
from eventify.services.store import get_store

# Page Config
st.set_page_config(
    page_title="Eventify Admin",
    page_icon="📸",
    layout="wide"
)

# Header
st.title("Eventify - Admin Panel")

async def _load():
    store = get_store()
    users = {u.id: u for u in await store.list_users()}
    bookings = await store.list_bookings()
    return [BookingView.from_booking(b, users.get(b.owner_id)) for b in bookings]

def load_data():
    try:
        return asyncio.run(_load())
    except Exception as e:
        st.error(f"Error reading the event store: {e}")
        return None

# Load Data
if st.button("Refresh data"):
    st.rerun()

status = st.radio("Filter", ["all", "pending", "completed"], horizontal=True)
bookings = load_data()

if bookings:
    visible = filter_by_status(bookings, status)
    stats = compute_stats(visible)

    col1, col2, col3, col4, col5 = st.columns(5)
    col1.metric("Total Orders", stats.total_orders)
    col2.metric("Completed Orders", stats.completed_orders)
    col3.metric("Pending Orders", stats.pending_orders)
    col4.metric("Amount Received", format_amount(stats.amount_received))
    col5.metric("Amount Pending", format_amount(stats.amount_pending))

    reminders = scan_reminders(bookings)
    if reminders:
        st.subheader("Upcoming Event Reminders")
        for r in reminders:
            st.info(f"**{r.type}** · {r.booking.time_slot.value} · {r.booking.text} @ {r.booking.place} ({r.booking.owner_name})")

    # Data Table
    st.subheader("Bookings")
    df = pd.DataFrame([b.model_dump(mode="json", by_alias=True) for b in visible])
    if not df.empty:
        df = df.sort_values("date", ascending=False)
    st.dataframe(
        df,
        use_container_width=True,
        column_config={
            "date": "Date",
            "timeSlot": "Slot",
            "text": "Event",
            "place": "Place",
            "amount": st.column_config.NumberColumn("Amount", format="%.2f"),
            "status": "Status",
            "customerName": "Customer",
            "customerMobile": "Mobile",
            "ownerName": "Assigned to",
            "id": None,
            "ownerId": None,
            "ownerPhoto": None,
            "sendSms": None,
        }
    )
else:
    st.info("No bookings yet or the event store is not reachable.")

# Footer
st.markdown("---")
st.caption("Eventify · Photography business dashboard")
