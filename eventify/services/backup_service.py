import asyncio
import datetime
import json
from typing import Any, Dict, List, Optional, Tuple
from zoneinfo import ZoneInfo

from pydantic import ValidationError

from eventify.core.config import settings
from eventify.core.config_loader import load_studio_config, get_notification_settings
from eventify.core.exceptions import ValidationFailedError
from eventify.core.logger import logger
from eventify.models.api_models import BackupStatus, RestoreReport
from eventify.models.db_models import BackupFile, Booking, User, new_booking_id
from eventify.services.notification_service import send_email
from eventify.services.store import EventStore, get_store

BACKUP_VERSION = 1
LAST_BACKUP_KEY = "last_backup_date"
# Local hour after which a missing daily backup is flagged
BACKUP_DUE_HOUR = 12


def backup_filename(day: datetime.date) -> str:
    return f"eventify_backup_{day.isoformat()}.json"


class BackupService:
    def __init__(self, store: Optional[EventStore] = None):
        self.store = store or get_store()

    async def full_backup(self) -> Dict[str, Any]:
        """Flat dump of every stored user and booking."""
        users, events = await self.store.dump_raw()
        backup = BackupFile(
            version=BACKUP_VERSION,
            timestamp=datetime.datetime.now(datetime.timezone.utc),
            users=users,
            events=events,
        )
        logger.info(f"📦 Backup generated: {len(users)} users, {len(events)} events")
        return backup.model_dump(mode="json")

    async def mark_backed_up(self, day: Optional[datetime.date] = None) -> datetime.date:
        day = day or self._now().date()
        await self.store.set_meta(LAST_BACKUP_KEY, day.isoformat())
        return day

    def _now(self) -> datetime.datetime:
        return datetime.datetime.now(ZoneInfo(settings.TIMEZONE))

    async def status(self, now: Optional[datetime.datetime] = None) -> BackupStatus:
        """
        A backup is due once local time passes noon and none was taken today.
        """
        now = now or self._now()
        raw = await self.store.get_meta(LAST_BACKUP_KEY)
        last = None
        if raw:
            try:
                last = datetime.date.fromisoformat(raw)
            except ValueError:
                logger.warning(f"⚠️ Ignoring unreadable last backup date '{raw}'")
        due = now.hour >= BACKUP_DUE_HOUR and last != now.date()
        return BackupStatus(due=due, last_backup_date=last)

    def _prepare(self, data: Dict[str, Any]) -> Tuple[List[Tuple[str, Any]], int]:
        """Validated (kind, record) operations plus the number of skipped entries."""
        if not isinstance(data, dict):
            raise ValidationFailedError("Backup file must be a JSON object.")

        operations: List[Tuple[str, Any]] = []
        skipped = 0

        users = data.get("users")
        if isinstance(users, list):
            for raw in users:
                if not isinstance(raw, dict) or not raw.get("id"):
                    skipped += 1
                    continue
                try:
                    operations.append(("user", User.model_validate(raw)))
                except ValidationError as e:
                    logger.warning(f"⚠️ Skipping malformed user {raw.get('id')}: {e.errors()[:1]}")
                    skipped += 1

        events = data.get("events")
        if isinstance(events, list):
            for raw in events:
                if not isinstance(raw, dict):
                    skipped += 1
                    continue
                record = {**raw, "id": raw.get("id") or new_booking_id()}
                try:
                    operations.append(("event", Booking.model_validate(record)))
                except (ValidationError, ValueError) as e:
                    logger.warning(f"⚠️ Skipping malformed event {raw.get('id')}: {e}")
                    skipped += 1

        return operations, skipped

    async def restore_backup(self, data: Dict[str, Any]) -> RestoreReport:
        """
        Upserts users and events by id, in chunks of RESTORE_BATCH_SIZE with a
        short pause between chunks.
        """
        operations, skipped = self._prepare(data)
        batch_size = max(1, settings.RESTORE_BATCH_SIZE)
        report = RestoreReport(skipped=skipped)

        for i in range(0, len(operations), batch_size):
            chunk = operations[i:i + batch_size]
            users = [record for kind, record in chunk if kind == "user"]
            bookings = [record for kind, record in chunk if kind == "event"]

            await self.store.write_batch(users, bookings)
            report.users += len(users)
            report.events += len(bookings)
            report.batches += 1
            logger.info(f"♻️ Restored batch {report.batches}")

            if i + batch_size < len(operations):
                await asyncio.sleep(settings.RESTORE_BATCH_PAUSE)

        logger.info(f"✅ Restore finished: {report.users} users, {report.events} events, {report.skipped} skipped")
        return report

    async def email_backup(self, to_email: Optional[str] = None) -> bool:
        """
        Sends today's backup as a JSON attachment and records it as taken when delivered.
        """
        backup = await self.full_backup()
        today = self._now().date()
        notifications = get_notification_settings(load_studio_config())
        subject = notifications.get("backup_subject", "Daily Backup: {date}").format(date=today.strftime("%d.%m.%Y"))
        body = notifications.get("backup_body", "Please find the attached backup file for today.")
        attachment = (backup_filename(today), json.dumps(backup, indent=2).encode("utf-8"), "json")

        delivered = await asyncio.to_thread(
            send_email, subject, body, to_email or settings.BACKUP_EMAIL or None, [attachment]
        )
        if delivered:
            await self.mark_backed_up(today)
        return delivered
