import asyncio
import datetime
from typing import Iterable, List, Optional, Set
from zoneinfo import ZoneInfo

from eventify.core.config import settings
from eventify.core.config_loader import load_studio_config, get_notification_settings
from eventify.core.logger import logger
from eventify.models.api_models import NotifyResponse
from eventify.models.db_models import BookingStatus, BookingView, Reminder
from eventify.services.notification_service import send_email


def local_today() -> datetime.date:
    return datetime.datetime.now(ZoneInfo(settings.TIMEZONE)).date()


def scan_reminders(bookings: Iterable[BookingView], today: Optional[datetime.date] = None) -> List[Reminder]:
    """
    Bookings happening today or tomorrow that are not completed yet, today's first.
    """
    today = today or local_today()
    tomorrow = today + datetime.timedelta(days=1)

    bookings = list(bookings)
    reminders = []
    for label, day in (("Today", today), ("Tomorrow", tomorrow)):
        for booking in bookings:
            if booking.date == day and booking.status != BookingStatus.COMPLETED:
                reminders.append(Reminder(type=label, booking=booking))
    return reminders


class ReminderNotifier:
    """
    Emails the studio owner once per upcoming booking.
    Keys already notified are remembered for the lifetime of the process;
    keys for days before today are dropped on each run.
    """

    def __init__(self):
        self._notified: Set[str] = set()

    def reset(self):
        self._notified.clear()

    async def notify(self, reminders: List[Reminder], today: Optional[datetime.date] = None) -> NotifyResponse:
        # Keys start with the booking's ISO date
        cutoff = (today or local_today()).isoformat()
        self._notified = {k for k in self._notified if k[:10] >= cutoff}

        notifications = get_notification_settings(load_studio_config())
        subject_tmpl = notifications.get("reminder_subject", "Upcoming Event: {text} ({label})")
        body_tmpl = notifications.get("reminder_template", "Place: {place}\nSession: {slot}")

        sent = skipped = 0
        for reminder in reminders:
            key = reminder.notification_key
            if key in self._notified:
                skipped += 1
                continue

            b = reminder.booking
            fields = dict(
                text=b.text,
                label=reminder.type,
                customer_name=b.customer_name or "N/A",
                customer_mobile=b.customer_mobile or "N/A",
                place=b.place,
                slot=b.time_slot.value,
                owner=b.owner_name,
            )
            try:
                subject = subject_tmpl.format(**fields)
                body = body_tmpl.format(**fields)
            except (KeyError, IndexError) as e:
                logger.error(f"❌ Error formatting reminder for {key}: {e}")
                skipped += 1
                continue

            # Marked as notified whether or not delivery succeeds
            self._notified.add(key)
            if await asyncio.to_thread(send_email, subject, body):
                sent += 1
            else:
                skipped += 1

        logger.info(f"🔔 Reminder notifications: {sent} sent, {skipped} skipped")
        return NotifyResponse(sent=sent, skipped=skipped)


reminder_notifier = ReminderNotifier()
