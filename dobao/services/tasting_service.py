from datetime import date
from typing import Dict, List, Optional

from dobao.core.errors import BookingNotFound, TastingFull
from dobao.core.logger import logger
from dobao.models.db_models import (
    AttendeeUpdate,
    SeatRequest,
    TastingAttendee,
    TastingSummary,
    WineTasting,
    WineTastingUpdate,
    merge_changes,
)
from dobao.services.calendar_service import venue_today
from dobao.services.store import TASTING_ATTENDEES, WINE_TASTINGS, BaseStore, get_store

# Columns not stored in the wine_tastings table
COMPUTED_FIELDS = {"current_attendees"}


def free_seats(tasting: WineTasting, occupied: int) -> int:
    return max(0, tasting.max_capacity - occupied)


class TastingService:
    """Wine tasting events and the people booked into them."""

    def __init__(self, store: Optional[BaseStore] = None):
        self.store = store or get_store()

    async def _seat_counts(self) -> Dict[str, int]:
        rows = await self.store.select(TASTING_ATTENDEES)
        counts: Dict[str, int] = {}
        for row in rows:
            counts[row["tasting_id"]] = counts.get(row["tasting_id"], 0) + (row.get("seats") or 0)
        return counts

    async def list_tastings(self, upcoming_only: bool = False, today: Optional[date] = None) -> List[WineTasting]:
        gte = None
        if upcoming_only:
            gte = {"date": (today or venue_today()).isoformat()}
        rows = await self.store.select(WINE_TASTINGS, gte=gte, order_by="date")
        counts = await self._seat_counts()

        tastings = []
        for row in rows:
            tasting = WineTasting.model_validate(row)
            tasting.current_attendees = counts.get(tasting.id, 0)
            tastings.append(tasting)
        return tastings

    async def get_tasting(self, tasting_id: str) -> WineTasting:
        rows = await self.store.select(WINE_TASTINGS, filters={"id": tasting_id})
        if not rows:
            raise BookingNotFound(f"Wine tasting {tasting_id} not found")
        tasting = WineTasting.model_validate(rows[0])
        tasting.current_attendees = await self._booked_seats(tasting_id)
        return tasting

    async def create_tasting(self, tasting: WineTasting) -> WineTasting:
        row = await self.store.insert(WINE_TASTINGS, tasting.model_dump(mode="json", exclude=COMPUTED_FIELDS))
        logger.info(f"🍷 Wine tasting '{tasting.name}' created for {tasting.date}")
        return WineTasting.model_validate(row)

    async def update_tasting(self, tasting_id: str, changes: WineTastingUpdate) -> WineTasting:
        current = await self.get_tasting(tasting_id)
        _, fields = merge_changes(current, changes)
        if not fields:
            return current
        row = await self.store.update(WINE_TASTINGS, tasting_id, fields)
        if row is None:
            raise BookingNotFound(f"Wine tasting {tasting_id} not found")
        tasting = WineTasting.model_validate(row)
        tasting.current_attendees = current.current_attendees
        return tasting

    async def delete_tasting(self, tasting_id: str) -> None:
        for attendee in await self.list_attendees(tasting_id):
            await self.store.delete(TASTING_ATTENDEES, attendee.id)
        if not await self.store.delete(WINE_TASTINGS, tasting_id):
            raise BookingNotFound(f"Wine tasting {tasting_id} not found")
        logger.info(f"🗑️ Wine tasting {tasting_id} deleted with its attendees")

    async def list_attendees(self, tasting_id: str) -> List[TastingAttendee]:
        rows = await self.store.select(TASTING_ATTENDEES, filters={"tasting_id": tasting_id}, order_by="created_at")
        return [TastingAttendee.model_validate(r) for r in rows]

    async def _booked_seats(self, tasting_id: str) -> int:
        return sum(a.seats for a in await self.list_attendees(tasting_id))

    async def book_seats(self, tasting_id: str, request: SeatRequest) -> TastingAttendee:
        tasting = await self.get_tasting(tasting_id)
        available = free_seats(tasting, tasting.current_attendees)
        if request.seats > available:
            logger.warning(f"⚠️ Tasting {tasting_id}: {request.seats} seats requested, {available} free")
            raise TastingFull(f"Only {available} seats left for '{tasting.name}'")

        attendee = TastingAttendee(tasting_id=tasting_id, **request.model_dump())
        row = await self.store.insert(TASTING_ATTENDEES, attendee.model_dump(mode="json"))
        logger.info(f"🎟️ {request.seats} seats booked by {request.name} for '{tasting.name}'")
        return TastingAttendee.model_validate(row)

    async def update_attendee(self, attendee_id: str, changes: AttendeeUpdate) -> TastingAttendee:
        rows = await self.store.select(TASTING_ATTENDEES, filters={"id": attendee_id})
        if not rows:
            raise BookingNotFound(f"Attendee {attendee_id} not found")
        current = TastingAttendee.model_validate(rows[0])
        merged, fields = merge_changes(current, changes)

        if merged.seats > current.seats:
            tasting = await self.get_tasting(current.tasting_id)
            available = free_seats(tasting, tasting.current_attendees - current.seats)
            if merged.seats > available:
                raise TastingFull(f"Only {available} seats left for '{tasting.name}'")

        if not fields:
            return current
        row = await self.store.update(TASTING_ATTENDEES, attendee_id, fields)
        if row is None:
            raise BookingNotFound(f"Attendee {attendee_id} not found")
        return TastingAttendee.model_validate(row)

    async def delete_attendee(self, attendee_id: str) -> None:
        if not await self.store.delete(TASTING_ATTENDEES, attendee_id):
            raise BookingNotFound(f"Attendee {attendee_id} not found")

    async def tasting_summary(self, tasting_id: str) -> TastingSummary:
        tasting = await self.get_tasting(tasting_id)
        attendees = await self.list_attendees(tasting_id)
        booked = sum(a.seats for a in attendees)
        deposits = sum(a.deposit or 0 for a in attendees)
        return TastingSummary(
            tasting_id=tasting_id,
            booked_seats=booked,
            free_seats=free_seats(tasting, booked),
            total_deposits=deposits,
            pending_amount=booked * tasting.price_per_person - deposits,
        )
