"""
Availability engine.

Pure functions over materialized lists of bookings and blocked days.
Nothing here touches the store: callers fetch, the engine decides.
"""
import calendar
from datetime import MAXYEAR, MINYEAR, date, datetime
from typing import Iterable, List, Optional, Set, Union

from dobao.core.errors import InvalidDate
from dobao.models.db_models import (
    BlockedDay,
    Booking,
    BookingStatus,
    DayOverview,
    DayState,
    Slot,
)

DateLike = Union[date, datetime, str]
BlockedLike = Union[BlockedDay, DateLike]

ALL_SLOTS = frozenset(Slot)


def normalize_date(value: DateLike) -> date:
    """
    Accepts a date, a datetime, 'YYYY-MM-DD' or an ISO datetime string.
    Raises InvalidDate for anything else.
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        raise InvalidDate(f"Unsupported date value: {value!r}")

    raw = value.strip()
    try:
        if len(raw) > 10 and raw[10] in ("T", " "):
            return datetime.fromisoformat(raw.replace("Z", "+00:00")).date()
        return date.fromisoformat(raw)
    except ValueError:
        raise InvalidDate(f"Cannot parse date '{value}'. Use YYYY-MM-DD.")


def _blocked_dates(blocked_days: Iterable[BlockedLike]) -> Set[date]:
    dates = set()
    for item in blocked_days:
        if isinstance(item, BlockedDay):
            dates.add(item.date)
        else:
            dates.add(normalize_date(item))
    return dates


def is_blocked(blocked_days: Iterable[BlockedLike], day: DateLike) -> bool:
    return normalize_date(day) in _blocked_dates(blocked_days)


def occupied_slots(bookings: Iterable[Booking], day: DateLike) -> Set[Slot]:
    """Slots on `day` claimed by a booking that is not cancelled."""
    target = normalize_date(day)
    return {
        b.slot for b in bookings
        if b.date == target and b.status != BookingStatus.CANCELLED
    }


def day_state(bookings: Iterable[Booking], blocked_days: Iterable[BlockedLike], day: DateLike) -> DayState:
    target = normalize_date(day)
    if is_blocked(blocked_days, target):
        return DayState.BLOCKED

    taken = occupied_slots(bookings, target)
    if taken >= ALL_SLOTS:
        return DayState.FULL
    if taken:
        return DayState.PARTIAL
    return DayState.FREE


def can_book(bookings: Iterable[Booking], blocked_days: Iterable[BlockedLike], day: DateLike, slot: Slot) -> bool:
    """
    Advisory check. The caller must repeat it right before writing,
    the store gives no transactional guarantee.
    """
    target = normalize_date(day)
    if is_blocked(blocked_days, target):
        return False
    return Slot(slot) not in occupied_slots(bookings, target)


def free_slots(bookings: Iterable[Booking], blocked_days: Iterable[BlockedLike], day: DateLike) -> List[Slot]:
    bookings = list(bookings)
    blocked_days = list(blocked_days)
    return [slot for slot in Slot if can_book(bookings, blocked_days, day, slot)]


def validate_status_transition(current: BookingStatus, next_status: BookingStatus) -> bool:
    # Admins may move any booking to any status, including re-opening a
    # cancelled one.
    BookingStatus(current)
    BookingStatus(next_status)
    return True


def conflicting_booking(
    bookings: Iterable[Booking],
    day: DateLike,
    slot: Slot,
    exclude_id: Optional[str] = None,
) -> Optional[Booking]:
    """The non-cancelled booking holding (day, slot), ignoring `exclude_id`."""
    target = normalize_date(day)
    for b in bookings:
        if b.id == exclude_id or b.status == BookingStatus.CANCELLED:
            continue
        if b.date == target and b.slot == slot:
            return b
    return None


def month_overview(
    bookings: Iterable[Booking],
    blocked_days: Iterable[BlockedLike],
    year: int,
    month: int,
    today: Optional[date] = None,
) -> List[DayOverview]:
    """One entry per day of the month, as rendered by the public calendar."""
    if not 1 <= month <= 12:
        raise InvalidDate(f"Invalid month: {month}")
    if not MINYEAR <= year <= MAXYEAR:
        raise InvalidDate(f"Invalid year: {year}")

    bookings = list(bookings)
    blocked = _blocked_dates(blocked_days)
    today = today or date.today()

    _, days_in_month = calendar.monthrange(year, month)
    overview = []
    for day_number in range(1, days_in_month + 1):
        current = date(year, month, day_number)
        overview.append(DayOverview(
            date=current,
            state=day_state(bookings, blocked, current),
            occupied_slots=sorted(occupied_slots(bookings, current), key=lambda s: s.value),
            past=current < today,
        ))
    return overview
