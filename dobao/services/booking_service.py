import asyncio
from datetime import date
from typing import Any, Dict, List, Optional

from dobao.core.config_loader import load_venue_config, get_max_capacity
from dobao.core.errors import BookingError, BookingNotFound, SlotUnavailable
from dobao.core.logger import logger
from dobao.models.db_models import (
    BlockedDay,
    Booking,
    BookingRequest,
    BookingStatus,
    BookingUpdate,
    DayOverview,
    merge_changes,
    Slot,
    WineTasting,
)
from dobao.services.availability import (
    DateLike,
    can_book,
    conflicting_booking,
    day_state,
    free_slots,
    is_blocked,
    month_overview,
    normalize_date,
    occupied_slots,
    validate_status_transition,
)
from dobao.services.calendar_service import CalendarService, venue_today
from dobao.services.notification_service import notify_confirmation, notify_new_request
from dobao.services.store import RESERVATIONS, WINE_TASTINGS, BaseStore, get_store


def _to_booking(row: dict) -> Booking:
    row = dict(row)
    if row.get("services") is None:
        row.pop("services", None)
    return Booking.model_validate(row)


class BookingService:
    """
    Service boundary for reservations: every write goes through the
    availability pre-check right before it reaches the store.
    """

    def __init__(self, store: Optional[BaseStore] = None):
        self.store = store or get_store()
        self.calendar = CalendarService(self.store)
        self.config = load_venue_config()

    async def list_bookings(self) -> List[Booking]:
        rows = await self.store.select(RESERVATIONS, order_by="date")
        return [_to_booking(r) for r in rows]

    async def list_blocked_days(self) -> List[BlockedDay]:
        return await self.calendar.list_blocked_days()

    async def get_booking(self, booking_id: str) -> Booking:
        rows = await self.store.select(RESERVATIONS, filters={"id": booking_id})
        if not rows:
            raise BookingNotFound(f"Reservation {booking_id} not found")
        return _to_booking(rows[0])

    def _check_guests(self, guests: int):
        max_capacity = get_max_capacity(self.config)
        if guests > max_capacity:
            raise BookingError(f"The venue holds at most {max_capacity} guests")

    async def create_booking(self, request: BookingRequest, today: Optional[date] = None) -> Booking:
        """
        Stores a new PENDING reservation.
        Raises SlotUnavailable when the slot was taken or the day blocked.
        """
        logger.info(f"📥 Booking Request - Day: {request.date}, Slot: {request.slot.value}, Guests: {request.guests}")
        self._check_guests(request.guests)

        today = today or venue_today()
        if request.date < today:
            raise BookingError(f"{request.date.isoformat()} is in the past")

        # Re-read occupancy immediately before the insert
        bookings = await self.list_bookings()
        blocked = await self.list_blocked_days()
        if not can_book(bookings, blocked, request.date, request.slot):
            state = day_state(bookings, blocked, request.date)
            logger.warning(f"⚠️ Slot {request.slot.value} on {request.date} unavailable (day is {state.value})")
            raise SlotUnavailable(f"{request.date.isoformat()} {request.slot.value} is not available")

        booking = Booking(**request.model_dump(), status=BookingStatus.PENDING)
        row = await self.store.insert(RESERVATIONS, booking.model_dump(mode="json"))
        created = _to_booking(row)
        logger.info(f"✅ Reservation {created.id} stored for {created.customer_name} on {created.date} ({created.slot.value})")

        await asyncio.to_thread(notify_new_request, created)
        return created

    async def _ensure_slot_free(self, booking_id: str, day: date, slot: Slot):
        bookings = await self.list_bookings()
        blocked = await self.list_blocked_days()
        if is_blocked(blocked, day):
            raise SlotUnavailable(f"{day.isoformat()} is blocked")
        holder = conflicting_booking(bookings, day, slot, exclude_id=booking_id)
        if holder:
            raise SlotUnavailable(f"{day.isoformat()} {slot.value} is held by reservation {holder.id}")

    def _warn_if_reopening_held_slot(self, current: Booking, bookings: List[Booking], new_status: BookingStatus):
        if current.status != BookingStatus.CANCELLED or new_status == BookingStatus.CANCELLED:
            return
        holder = conflicting_booking(bookings, current.date, current.slot, exclude_id=current.id)
        if holder:
            logger.warning(
                f"⚠️ Re-opening reservation {current.id} while {holder.id} holds "
                f"{current.date} {current.slot.value}"
            )

    async def update_booking(self, booking_id: str, changes: BookingUpdate) -> Booking:
        """Admin edit. Moving onto an occupied slot or a blocked day is refused."""
        current = await self.get_booking(booking_id)
        merged, fields = merge_changes(current, changes)
        if not fields:
            return current

        if "guests" in fields:
            self._check_guests(merged.guests)
        validate_status_transition(current.status, merged.status)

        moved = merged.date != current.date or merged.slot != current.slot
        if moved and merged.status != BookingStatus.CANCELLED:
            await self._ensure_slot_free(booking_id, merged.date, merged.slot)
        elif not moved:
            self._warn_if_reopening_held_slot(current, await self.list_bookings(), merged.status)

        row = await self.store.update(RESERVATIONS, booking_id, fields)
        if row is None:
            raise BookingNotFound(f"Reservation {booking_id} not found")
        updated = _to_booking(row)
        logger.info(f"✏️ Reservation {booking_id} updated: {sorted(fields)}")

        if updated.status == BookingStatus.CONFIRMED and current.status != BookingStatus.CONFIRMED:
            await asyncio.to_thread(notify_confirmation, updated)
        return updated

    async def update_status(self, booking_id: str, status: BookingStatus) -> Booking:
        current = await self.get_booking(booking_id)
        validate_status_transition(current.status, status)
        self._warn_if_reopening_held_slot(current, await self.list_bookings(), BookingStatus(status))

        row = await self.store.update(RESERVATIONS, booking_id, {"status": BookingStatus(status).value})
        if row is None:
            raise BookingNotFound(f"Reservation {booking_id} not found")
        updated = _to_booking(row)
        logger.info(f"🔁 Reservation {booking_id}: {current.status.value} -> {updated.status.value}")

        if updated.status == BookingStatus.CONFIRMED and current.status != BookingStatus.CONFIRMED:
            await asyncio.to_thread(notify_confirmation, updated)
        return updated

    async def delete_booking(self, booking_id: str) -> None:
        deleted = await self.store.delete(RESERVATIONS, booking_id)
        if not deleted:
            raise BookingNotFound(f"Reservation {booking_id} not found")

    async def day_availability(self, day: DateLike) -> Dict[str, Any]:
        target = normalize_date(day)
        bookings = await self.list_bookings()
        blocked = await self.list_blocked_days()
        return {
            "date": target,
            "state": day_state(bookings, blocked, target),
            "free_slots": free_slots(bookings, blocked, target),
        }

    async def day_detail(self, day: DateLike) -> Dict[str, Any]:
        """Everything the admin sees for one date, cancelled reservations included."""
        target = normalize_date(day)
        bookings = await self.list_bookings()
        blocked = await self.list_blocked_days()
        tastings = await self.store.select(WINE_TASTINGS, filters={"date": target.isoformat()})

        day_bookings = [b for b in bookings if b.date == target]
        slots = {}
        for slot in Slot:
            in_slot = [b for b in day_bookings if b.slot == slot]
            active = [b for b in in_slot if b.status != BookingStatus.CANCELLED]
            slots[slot.value] = {
                "booking": active[0] if active else None,
                "cancelled": [b for b in in_slot if b.status == BookingStatus.CANCELLED],
            }

        blocked_entry = next((d for d in blocked if d.date == target), None)
        return {
            "date": target,
            "state": day_state(bookings, blocked, target),
            "occupied_slots": sorted(occupied_slots(bookings, target), key=lambda s: s.value),
            "slots": slots,
            "tastings": [WineTasting.model_validate(t) for t in tastings],
            "blocked_reason": blocked_entry.reason if blocked_entry else None,
        }

    async def filter_bookings(self, year: Optional[int] = None, month: Optional[int] = None) -> List[Booking]:
        """Admin list filter. month is 1-12; None means all."""
        bookings = await self.list_bookings()
        result = [
            b for b in bookings
            if (year is None or b.date.year == year) and (month is None or b.date.month == month)
        ]
        return sorted(result, key=lambda b: (b.date, b.slot.value))

    async def occupancy_for_month(self, year: int, month: int, today: Optional[date] = None) -> List[DayOverview]:
        bookings = await self.list_bookings()
        blocked = await self.list_blocked_days()
        return month_overview(bookings, blocked, year, month, today=today or venue_today())
