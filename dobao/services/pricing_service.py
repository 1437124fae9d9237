from typing import List, Optional

from dobao.core.config_loader import load_venue_config, get_default_price
from dobao.core.errors import BookingError, BookingNotFound
from dobao.core.logger import logger
from dobao.models.db_models import SpecialPrice, WeeklyPrice
from dobao.services.availability import DateLike, normalize_date
from dobao.services.store import SPECIAL_PRICES, WEEKLY_PRICES, BaseStore, get_store


def day_of_week(day) -> int:
    """0 = Sunday .. 6 = Saturday, as stored in weekly_prices."""
    return (day.weekday() + 1) % 7


class PricingService:
    def __init__(self, store: Optional[BaseStore] = None):
        self.store = store or get_store()
        self.config = load_venue_config()

    async def list_weekly_prices(self) -> List[WeeklyPrice]:
        rows = await self.store.select(WEEKLY_PRICES, order_by="day_of_week")
        prices = [WeeklyPrice.model_validate(r) for r in rows]
        # Monday first for display
        return sorted(prices, key=lambda p: 7 if p.day_of_week == 0 else p.day_of_week)

    async def set_weekly_price(self, day: int, price: float) -> WeeklyPrice:
        weekly = WeeklyPrice(day_of_week=day, price=price)
        row = await self.store.upsert(WEEKLY_PRICES, weekly.model_dump(mode="json"), on_conflict="day_of_week")
        logger.info(f"💶 Weekly price for day {day} set to {price}")
        return WeeklyPrice.model_validate(row)

    async def list_special_prices(self) -> List[SpecialPrice]:
        rows = await self.store.select(SPECIAL_PRICES, order_by="date")
        return [SpecialPrice.model_validate(r) for r in rows]

    async def add_special_price(self, day: DateLike, price: float, reason: str = "") -> SpecialPrice:
        target = normalize_date(day)
        if await self.store.select(SPECIAL_PRICES, filters={"date": target.isoformat()}):
            raise BookingError(f"{target.isoformat()} already has a special price")
        special = SpecialPrice(date=target, price=price, reason=reason)
        row = await self.store.insert(SPECIAL_PRICES, special.model_dump(mode="json"))
        logger.info(f"💶 Special price {price} added for {target}")
        return SpecialPrice.model_validate(row)

    async def delete_special_price(self, price_id: str) -> None:
        if not await self.store.delete(SPECIAL_PRICES, price_id):
            raise BookingNotFound(f"Special price {price_id} not found")

    async def quote(self, day: DateLike) -> dict:
        """Special price for the date, else the weekday price, else the venue default."""
        target = normalize_date(day)

        special = await self.store.select(SPECIAL_PRICES, filters={"date": target.isoformat()})
        if special:
            return {"date": target, "price": float(special[0]["price"]), "source": "special",
                    "reason": special[0].get("reason") or ""}

        weekly = await self.store.select(WEEKLY_PRICES, filters={"day_of_week": day_of_week(target)})
        if weekly:
            return {"date": target, "price": float(weekly[0]["price"]), "source": "weekly", "reason": ""}

        return {"date": target, "price": get_default_price(self.config), "source": "default", "reason": ""}
