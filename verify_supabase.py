import asyncio
import logging

from eventify.core.config import settings
from eventify.core.exceptions import StoreError
from eventify.services.db_service import db_service

logging.basicConfig(level=logging.INFO)

async def verify_supabase():
    print("Checking Supabase event store...")
    if not (settings.SUPABASE_URL and settings.SUPABASE_KEY):
        print("❌ SUPABASE_URL / SUPABASE_KEY are not set.")
        return

    try:
        users = await db_service.list_users()
        bookings = await db_service.list_bookings()
        last_backup = await db_service.get_meta("last_backup_date")
    except StoreError as e:
        print(f"❌ Failed: {e}")
        return

    print(f"✅ Connected: {len(users)} users, {len(bookings)} bookings, last backup: {last_backup or 'never'}")

if __name__ == "__main__":
    asyncio.run(verify_supabase())
