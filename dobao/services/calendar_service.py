from datetime import date, datetime
from typing import List, Optional
from zoneinfo import ZoneInfo

from dobao.core.config import settings
from dobao.core.errors import BookingError, BookingNotFound
from dobao.core.logger import logger
from dobao.models.db_models import BlockedDay
from dobao.services.availability import DateLike, normalize_date
from dobao.services.store import BLOCKED_DAYS, BaseStore, get_store

VENUE_TZ = ZoneInfo(settings.TIMEZONE)


def venue_today() -> date:
    return datetime.now(VENUE_TZ).date()


class CalendarService:
    """Days the venue is closed regardless of bookings."""

    def __init__(self, store: Optional[BaseStore] = None):
        self.store = store or get_store()

    async def list_blocked_days(self) -> List[BlockedDay]:
        rows = await self.store.select(BLOCKED_DAYS, order_by="date")
        return [BlockedDay.model_validate(r) for r in rows]

    async def block_day(self, day: DateLike, reason: str = "") -> BlockedDay:
        target = normalize_date(day)
        existing = await self.store.select(BLOCKED_DAYS, filters={"date": target.isoformat()})
        if existing:
            raise BookingError(f"{target.isoformat()} is already blocked")

        blocked = BlockedDay(date=target, reason=(reason or "").strip())
        row = await self.store.insert(BLOCKED_DAYS, blocked.model_dump(mode="json"))
        logger.info(f"⛔ Day {target.isoformat()} blocked ({blocked.reason or 'no reason'})")
        return BlockedDay.model_validate(row)

    async def unblock_day(self, blocked_id: str) -> None:
        deleted = await self.store.delete(BLOCKED_DAYS, blocked_id)
        if not deleted:
            raise BookingNotFound(f"Blocked day {blocked_id} not found")
        logger.info(f"✅ Blocked day {blocked_id} removed")
