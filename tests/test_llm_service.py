import datetime
import pytest
from unittest.mock import MagicMock, patch

from eventify.models.db_models import BookingView
from eventify.services import llm_service
from eventify.services.llm_service import build_summary_data, generate_summary

TODAY = datetime.date(2025, 3, 14)


def _view(i, days_ahead, status="pending", text=None):
    return BookingView(
        id=f"b{i}", text=text or f"Shoot {i}", place="Goa", amount=1000, status=status,
        time_slot="FullDay", date=TODAY + datetime.timedelta(days=days_ahead), owner_id="user-alice",
    )


def _mock_client(side_effect=None, text="Busy month ahead!"):
    client = MagicMock()
    client.models.generate_content = MagicMock(return_value=MagicMock(text=text), side_effect=side_effect)
    return client


def test_summary_data_keeps_small_sample():
    bookings = [_view(i, i - 5) for i in range(40)]
    bookings.append(_view(99, 3, status="completed", text="W" * 80))

    data = build_summary_data(bookings, TODAY)

    assert data["stats"]["totalEvents"] == 41
    assert data["stats"]["completedEvents"] == 1
    assert data["stats"]["totalPendingAmount"] == 40000
    assert data["stats"]["upcomingEventsCount"] == 36

    sample = data["upcomingScheduleSample"]
    assert len(sample) == llm_service.SAMPLE_SIZE
    assert sample[0]["date"] == TODAY.isoformat()
    assert all(len(s["text"]) <= llm_service.TEXT_LIMIT + 3 for s in sample)
    assert any(s["text"].endswith("...") for s in sample)


@pytest.mark.asyncio
async def test_no_events():
    result = await generate_summary([], today=TODAY)
    assert result.summary == llm_service.EMPTY_MESSAGE
    assert result.error is None


@pytest.mark.asyncio
async def test_summary_from_model():
    client = _mock_client()
    with patch("eventify.services.llm_service.get_genai_client", return_value=client):
        result = await generate_summary([_view(1, 1)], today=TODAY)

    assert result.summary == "Busy month ahead!"
    assert result.error is None
    prompt = client.models.generate_content.call_args.kwargs["contents"]
    assert "Shoot 1" in prompt
    assert "upcomingScheduleSample" in prompt


@pytest.mark.asyncio
async def test_not_configured_falls_back_to_stats():
    with patch("eventify.services.llm_service.get_genai_client", return_value=None):
        result = await generate_summary([_view(1, 1)], today=TODAY)

    assert result.summary.startswith("Stats Summary (Offline Mode)")
    assert result.error == llm_service.NOT_CONFIGURED_ERROR


@pytest.mark.parametrize("message", ["400 INVALID_ARGUMENT", "413 Payload Too Large", "Code 6: resource exhausted"])
@pytest.mark.asyncio
async def test_payload_errors_fall_back_to_stats(message):
    client = _mock_client(side_effect=RuntimeError(message))
    with patch("eventify.services.llm_service.get_genai_client", return_value=client):
        result = await generate_summary([_view(1, 1)], today=TODAY)

    assert "Offline Mode" in result.summary
    assert "₹1,000" in result.summary
    assert result.error == llm_service.TOO_LARGE_ERROR


@pytest.mark.asyncio
async def test_connection_error():
    client = _mock_client(side_effect=ConnectionError("network unreachable"))
    with patch("eventify.services.llm_service.get_genai_client", return_value=client):
        result = await generate_summary([_view(1, 1)], today=TODAY)

    assert result.summary == ""
    assert result.error == llm_service.CONNECTION_ERROR
