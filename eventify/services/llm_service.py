import asyncio
import datetime
import json
from typing import Any, Dict, List, Optional

from google import genai
from google.genai import types

from eventify.core.config import settings
from eventify.core.logger import logger
from eventify.models.api_models import SummaryResponse
from eventify.models.db_models import BookingStatus, BookingView
from eventify.services.dashboard_service import format_amount
from eventify.services.reminder_service import local_today

SAMPLE_SIZE = 15
TEXT_LIMIT = 50

EMPTY_MESSAGE = "You don't have any events scheduled. Add some events to your calendar to get a summary!"
TOO_LARGE_ERROR = "Data too large to process via AI. Please check your manual statistics."
CONNECTION_ERROR = "Unable to connect to AI service. Please check your internet connection."
NOT_CONFIGURED_ERROR = "AI service is not configured (GOOGLE_GENAI_API_KEY missing)."

PROMPT_TEMPLATE = """
Act as a personal assistant for a photography business.
Analyze the following JSON data which contains business statistics and a schedule of upcoming shoots.

Data:
{data}

Please provide a brief, encouraging summary (max 4-5 sentences) that covers:
1. The financial outlook (specifically the pending amount).
2. Workload overview (upcoming events).
3. Any immediate upcoming shoots from the schedule sample.

Use the {currency} symbol for money.
"""

_GENAI_CLIENT: Optional[genai.Client] = None


def get_genai_client() -> Optional[genai.Client]:
    """Process-wide Gemini client, or None when no API key is configured."""
    global _GENAI_CLIENT
    api_key = (settings.GOOGLE_GENAI_API_KEY or "").strip()
    if not api_key:
        return None
    if _GENAI_CLIENT is None:
        _GENAI_CLIENT = genai.Client(
            api_key=api_key,
            http_options=types.HttpOptions(timeout=int(settings.GENAI_TIMEOUT * 1000)),
        )
    return _GENAI_CLIENT


def build_summary_data(bookings: List[BookingView], today: datetime.date) -> Dict[str, Any]:
    """
    Pre-computes stats locally and keeps only a small upcoming sample so the
    prompt stays small regardless of how many bookings exist.
    """
    pending = [b for b in bookings if b.status == BookingStatus.PENDING]
    completed = [b for b in bookings if b.status == BookingStatus.COMPLETED]
    upcoming = sorted((b for b in bookings if b.date >= today), key=lambda b: b.date)

    sample = []
    for b in upcoming[:SAMPLE_SIZE]:
        text = b.text if len(b.text) <= TEXT_LIMIT else b.text[:TEXT_LIMIT] + "..."
        sample.append({
            "date": b.date.isoformat(),
            "text": text,
            "amount": b.amount,
            "status": b.status.value,
            "timeSlot": b.time_slot.value,
            "customer": "Yes" if b.customer_name else "No",
        })

    return {
        "stats": {
            "totalEvents": len(bookings),
            "completedEvents": len(completed),
            "pendingEvents": len(pending),
            "totalPendingAmount": sum(b.amount for b in pending),
            "upcomingEventsCount": len(upcoming),
        },
        "upcomingScheduleSample": sample,
    }


def offline_summary(data: Dict[str, Any]) -> str:
    stats = data["stats"]
    return (
        "Stats Summary (Offline Mode):\n"
        f"You have {stats['totalEvents']} events in total, {stats['completedEvents']} completed and "
        f"{stats['pendingEvents']} pending with {format_amount(stats['totalPendingAmount'])} still to be collected. "
        f"{stats['upcomingEventsCount']} events are coming up."
    )


async def generate_summary(bookings: List[BookingView], today: Optional[datetime.date] = None) -> SummaryResponse:
    if not bookings:
        return SummaryResponse(summary=EMPTY_MESSAGE)

    data = build_summary_data(bookings, today or local_today())

    client = get_genai_client()
    if client is None:
        logger.warning("⚠️ GOOGLE_GENAI_API_KEY not set; returning offline summary")
        return SummaryResponse(summary=offline_summary(data), error=NOT_CONFIGURED_ERROR)

    prompt = PROMPT_TEMPLATE.format(data=json.dumps(data), currency=settings.CURRENCY_SYMBOL)

    try:
        logger.info(f"✨ Requesting AI summary for {len(bookings)} events")
        response = await asyncio.to_thread(client.models.generate_content, model=settings.GENAI_MODEL, contents=prompt)
        return SummaryResponse(summary=(response.text or "No summary available."))
    except Exception as e:
        logger.error(f"❌ Error generating summary: {e}")
        message = str(e)
        if "400" in message or "413" in message or "Code 6" in message:
            return SummaryResponse(summary=offline_summary(data), error=TOO_LARGE_ERROR)
        return SummaryResponse(summary="", error=CONNECTION_ERROR)
