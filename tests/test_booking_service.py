import pytest
from datetime import date
from unittest.mock import patch

from dobao.core.errors import BookingError, BookingNotFound, SlotUnavailable
from dobao.models.db_models import (
    AdditionalServices,
    BookingRequest,
    BookingStatus,
    BookingUpdate,
    DayState,
    Slot,
    WineTasting,
)
from dobao.services.booking_service import BookingService
from dobao.services.store import RESERVATIONS, WINE_TASTINGS

TODAY = date(2025, 5, 1)


def make_request(day="2025-06-01", slot=Slot.MIDDAY, **kwargs):
    data = {
        "date": day,
        "slot": slot,
        "customer_name": "Jon Ander",
        "email": "jon@example.com",
        "phone": "600123456",
        "guests": 15,
        "purpose": "Cena de Cuadrilla",
    }
    data.update(kwargs)
    return BookingRequest(**data)


@pytest.fixture
def service(store):
    return BookingService(store)


@pytest.fixture(autouse=True)
def mute_notifications():
    with patch("dobao.services.booking_service.notify_new_request", return_value=False) as new_req, \
         patch("dobao.services.booking_service.notify_confirmation", return_value=False) as confirm:
        yield {"new_request": new_req, "confirmation": confirm}


@pytest.mark.asyncio
async def test_create_booking_starts_pending(service, mute_notifications):
    booking = await service.create_booking(make_request(services=AdditionalServices(catering=True)), today=TODAY)

    assert booking.status == BookingStatus.PENDING
    assert booking.date == date(2025, 6, 1)
    assert booking.services.catering is True
    assert booking.id

    stored = await service.get_booking(booking.id)
    assert stored.customer_name == "Jon Ander"
    mute_notifications["new_request"].assert_called_once()


@pytest.mark.asyncio
async def test_second_booking_for_same_slot_is_rejected(service):
    await service.create_booking(make_request(), today=TODAY)

    with pytest.raises(SlotUnavailable):
        await service.create_booking(make_request(customer_name="Miren Agirre"), today=TODAY)

    # The other slot is still free
    night = await service.create_booking(make_request(slot=Slot.NIGHT), today=TODAY)
    assert night.slot == Slot.NIGHT
    assert (await service.day_availability("2025-06-01"))["state"] == DayState.FULL


@pytest.mark.asyncio
async def test_cancelled_booking_releases_slot(service):
    first = await service.create_booking(make_request(), today=TODAY)
    await service.update_status(first.id, BookingStatus.CANCELLED)

    second = await service.create_booking(make_request(customer_name="Miren Agirre"), today=TODAY)

    assert second.status == BookingStatus.PENDING
    # Cancelled reservation is kept for history
    assert len(await service.list_bookings()) == 2


@pytest.mark.asyncio
async def test_blocked_day_rejects_booking(service):
    await service.calendar.block_day("2025-06-02", "Cerrado por vacaciones")

    with pytest.raises(SlotUnavailable):
        await service.create_booking(make_request(day="2025-06-02", slot=Slot.NIGHT), today=TODAY)


@pytest.mark.asyncio
async def test_past_date_and_capacity_are_validated(service):
    with pytest.raises(BookingError):
        await service.create_booking(make_request(day="2025-04-30"), today=TODAY)

    with pytest.raises(BookingError):
        await service.create_booking(make_request(guests=36), today=TODAY)


@pytest.mark.asyncio
async def test_confirming_sends_confirmation_once(service, mute_notifications):
    booking = await service.create_booking(make_request(), today=TODAY)

    confirmed = await service.update_status(booking.id, BookingStatus.CONFIRMED)
    await service.update_status(booking.id, BookingStatus.CONFIRMED)

    assert confirmed.status == BookingStatus.CONFIRMED
    mute_notifications["confirmation"].assert_called_once()


@pytest.mark.asyncio
async def test_cancelled_booking_can_be_reopened_even_if_slot_taken(service):
    first = await service.create_booking(make_request(), today=TODAY)
    await service.update_status(first.id, BookingStatus.CANCELLED)
    await service.create_booking(make_request(customer_name="Miren Agirre"), today=TODAY)

    reopened = await service.update_status(first.id, BookingStatus.CONFIRMED)

    assert reopened.status == BookingStatus.CONFIRMED


@pytest.mark.asyncio
async def test_update_booking_refuses_moving_onto_taken_slot(service):
    midday = await service.create_booking(make_request(), today=TODAY)
    night = await service.create_booking(make_request(slot=Slot.NIGHT), today=TODAY)

    with pytest.raises(SlotUnavailable):
        await service.update_booking(night.id, BookingUpdate(slot=Slot.MIDDAY))

    moved = await service.update_booking(midday.id, BookingUpdate(date=date(2025, 6, 8), event_cost=250, deposit=50))
    assert moved.date == date(2025, 6, 8)
    assert moved.event_cost == 250
    assert moved.deposit == 50


@pytest.mark.asyncio
async def test_update_booking_refuses_blocked_day(service):
    booking = await service.create_booking(make_request(), today=TODAY)
    await service.calendar.block_day("2025-06-09")

    with pytest.raises(SlotUnavailable):
        await service.update_booking(booking.id, BookingUpdate(date=date(2025, 6, 9)))


@pytest.mark.asyncio
async def test_update_booking_changes_services_only(service):
    booking = await service.create_booking(make_request(), today=TODAY)

    updated = await service.update_booking(booking.id, BookingUpdate(services=AdditionalServices(vinoteca=True)))

    assert updated.services.vinoteca is True
    assert updated.services.catering is False
    assert updated.slot == booking.slot


@pytest.mark.asyncio
async def test_missing_booking_raises_not_found(service):
    with pytest.raises(BookingNotFound):
        await service.get_booking("missing")
    with pytest.raises(BookingNotFound):
        await service.update_status("missing", BookingStatus.CONFIRMED)
    with pytest.raises(BookingNotFound):
        await service.delete_booking("missing")


@pytest.mark.asyncio
async def test_delete_booking(service):
    booking = await service.create_booking(make_request(), today=TODAY)

    await service.delete_booking(booking.id)

    assert await service.list_bookings() == []


@pytest.mark.asyncio
async def test_filter_bookings_by_year_and_month(service, store):
    for day, slot in [("2025-06-20", Slot.NIGHT), ("2025-06-01", Slot.MIDDAY), ("2025-07-04", Slot.MIDDAY), ("2026-06-01", Slot.NIGHT)]:
        await service.create_booking(make_request(day=day, slot=slot), today=TODAY)

    june = await service.filter_bookings(year=2025, month=6)
    assert [b.date.isoformat() for b in june] == ["2025-06-01", "2025-06-20"]

    all_junes = await service.filter_bookings(month=6)
    assert len(all_junes) == 3

    assert len(await service.filter_bookings()) == 4


@pytest.mark.asyncio
async def test_day_detail_includes_cancelled_and_tastings(service, store):
    cancelled = await service.create_booking(make_request(), today=TODAY)
    await service.update_status(cancelled.id, BookingStatus.CANCELLED)
    active = await service.create_booking(make_request(customer_name="Miren Agirre"), today=TODAY)
    tasting = WineTasting(date="2025-06-01", name="Cata de Albariños")
    await store.insert(WINE_TASTINGS, tasting.model_dump(mode="json", exclude={"current_attendees"}))

    detail = await service.day_detail("2025-06-01")

    assert detail["state"] == DayState.PARTIAL
    assert detail["occupied_slots"] == [Slot.MIDDAY]
    assert detail["slots"]["MIDDAY"]["booking"].id == active.id
    assert [b.id for b in detail["slots"]["MIDDAY"]["cancelled"]] == [cancelled.id]
    assert detail["slots"]["NIGHT"]["booking"] is None
    assert detail["tastings"][0].name == "Cata de Albariños"
    assert detail["blocked_reason"] is None


@pytest.mark.asyncio
async def test_rows_without_services_are_readable(service, store):
    await store.insert(RESERVATIONS, {"date": "2025-06-03", "slot": "NIGHT", "status": "PENDING", "services": None})

    bookings = await service.list_bookings()

    assert bookings[0].services.catering is False


@pytest.mark.asyncio
async def test_month_occupancy(service):
    await service.create_booking(make_request(), today=TODAY)

    overview = await service.occupancy_for_month(2025, 6, today=TODAY)

    assert overview[0].state == DayState.PARTIAL
    assert all(not day.past for day in overview)


@pytest.mark.asyncio
@pytest.mark.parametrize("field", ["guests", "customer_name", "date", "slot", "email", "services"])
async def test_null_for_required_field_is_rejected_before_write(service, field):
    booking = await service.create_booking(make_request(), today=TODAY)

    with pytest.raises(BookingError):
        await service.update_booking(booking.id, BookingUpdate.model_validate({field: None}))

    # Stored row untouched, listings keep working
    stored = await service.get_booking(booking.id)
    assert stored.model_dump() == booking.model_dump()
    overview = await service.occupancy_for_month(2025, 6, today=TODAY)
    assert overview[0].state == DayState.PARTIAL


@pytest.mark.asyncio
async def test_null_for_optional_field_clears_it(service):
    booking = await service.create_booking(make_request(comments="Sin gluten"), today=TODAY)

    updated = await service.update_booking(booking.id, BookingUpdate.model_validate({"comments": None}))

    assert updated.comments is None


@pytest.mark.asyncio
async def test_reopening_through_edit_warns_like_status_change(service):
    first = await service.create_booking(make_request(), today=TODAY)
    await service.update_status(first.id, BookingStatus.CANCELLED)
    holder = await service.create_booking(make_request(customer_name="Miren Agirre"), today=TODAY)

    with patch("dobao.services.booking_service.logger") as mock_logger:
        reopened = await service.update_booking(first.id, BookingUpdate(status=BookingStatus.CONFIRMED))

    assert reopened.status == BookingStatus.CONFIRMED
    mock_logger.warning.assert_called_once()
    assert holder.id in mock_logger.warning.call_args[0][0]


@pytest.mark.asyncio
async def test_reopening_through_status_change_warns(service):
    first = await service.create_booking(make_request(), today=TODAY)
    await service.update_status(first.id, BookingStatus.CANCELLED)
    holder = await service.create_booking(make_request(customer_name="Miren Agirre"), today=TODAY)

    with patch("dobao.services.booking_service.logger") as mock_logger:
        await service.update_status(first.id, BookingStatus.PENDING)

    mock_logger.warning.assert_called_once()
    assert holder.id in mock_logger.warning.call_args[0][0]
