import pytest
from datetime import date

from dobao.core.errors import BookingError, BookingNotFound, InvalidDate
from dobao.services.pricing_service import PricingService, day_of_week


@pytest.fixture
def service(store):
    return PricingService(store)


@pytest.mark.parametrize("day,expected", [
    (date(2025, 6, 1), 0),  # Sunday
    (date(2025, 6, 2), 1),
    (date(2025, 6, 7), 6),
])
def test_day_of_week_starts_on_sunday(day, expected):
    assert day_of_week(day) == expected


@pytest.mark.asyncio
async def test_quote_falls_back_to_default(service):
    quote = await service.quote("2025-06-03")

    assert quote["price"] == 180
    assert quote["source"] == "default"


@pytest.mark.asyncio
async def test_weekly_price_applies_to_matching_weekday(service):
    await service.set_weekly_price(5, 220)

    assert (await service.quote("2025-06-06"))["price"] == 220  # Friday
    assert (await service.quote("2025-06-05"))["source"] == "default"


@pytest.mark.asyncio
async def test_special_price_wins_over_weekly(service):
    await service.set_weekly_price(2, 200)
    await service.add_special_price("2025-06-24", 320, "San Juan")

    quote = await service.quote("2025-06-24")

    assert quote == {"date": date(2025, 6, 24), "price": 320.0, "source": "special", "reason": "San Juan"}


@pytest.mark.asyncio
async def test_set_weekly_price_replaces_previous(service):
    await service.set_weekly_price(0, 150)
    await service.set_weekly_price(0, 170)
    await service.set_weekly_price(1, 160)

    prices = await service.list_weekly_prices()

    # Monday first, Sunday last
    assert [(p.day_of_week, p.price) for p in prices] == [(1, 160), (0, 170)]


@pytest.mark.asyncio
async def test_special_prices_unique_per_date(service):
    special = await service.add_special_price("2025-12-31", 400)

    with pytest.raises(BookingError):
        await service.add_special_price("2025-12-31", 450)

    await service.delete_special_price(special.id)
    assert await service.list_special_prices() == []

    with pytest.raises(BookingNotFound):
        await service.delete_special_price(special.id)


@pytest.mark.asyncio
async def test_quote_rejects_bad_date(service):
    with pytest.raises(InvalidDate):
        await service.quote("31-12-2025")
