from enum import Enum
from typing import Optional, List, Tuple
import datetime as dt
from uuid import uuid4
from pydantic import BaseModel, Field, ValidationError

from dobao.core.errors import BookingError


def new_id() -> str:
    return str(uuid4())


def merge_changes(current: BaseModel, changes: BaseModel) -> Tuple[BaseModel, dict]:
    """
    Applies a partial update to a stored record and validates the result.
    Returns the merged record and the JSON-ready columns to write.
    Raises BookingError when the merge is not a valid record (e.g. a required field sent as null).
    """
    sent = changes.model_dump(exclude_unset=True)
    try:
        merged = type(current).model_validate({**current.model_dump(), **sent})
    except ValidationError as e:
        first = e.errors()[0]
        field = ".".join(str(part) for part in first["loc"])
        raise BookingError(f"Invalid value for '{field}': {first['msg']}")
    as_json = merged.model_dump(mode="json")
    return merged, {key: as_json[key] for key in sent}


class Slot(str, Enum):
    MIDDAY = "MIDDAY"
    NIGHT = "NIGHT"


class BookingStatus(str, Enum):
    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    CANCELLED = "CANCELLED"


class DayState(str, Enum):
    BLOCKED = "BLOCKED"
    FREE = "FREE"
    PARTIAL = "PARTIAL"
    FULL = "FULL"


SLOT_LABELS = {Slot.MIDDAY: "Comida", Slot.NIGHT: "Cena"}


class AdditionalServices(BaseModel):
    catering: bool = False
    cleaning: bool = False
    multimedia: bool = False
    vinoteca: bool = False
    beer_estrella: bool = False
    beer_1906: bool = False


# --- Reservations ---

class Booking(BaseModel):
    id: str = Field(default_factory=new_id)
    date: dt.date
    slot: Slot
    status: BookingStatus = BookingStatus.PENDING
    customer_name: str = ""
    email: str = ""
    phone: str = ""
    guests: int = 1
    purpose: str = ""
    comments: Optional[str] = None
    event_cost: Optional[float] = None
    deposit: Optional[float] = None
    services: AdditionalServices = Field(default_factory=AdditionalServices)
    created_at: dt.datetime = Field(default_factory=dt.datetime.now)


class BookingRequest(BaseModel):
    """Public booking form."""
    date: dt.date
    slot: Slot
    customer_name: str = Field(min_length=1)
    email: str
    phone: str
    guests: int = Field(ge=1)
    purpose: str = ""
    comments: Optional[str] = None
    services: AdditionalServices = Field(default_factory=AdditionalServices)


class BookingUpdate(BaseModel):
    """Admin edit. Only the fields sent are changed."""
    date: Optional[dt.date] = None
    slot: Optional[Slot] = None
    status: Optional[BookingStatus] = None
    customer_name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    guests: Optional[int] = Field(default=None, ge=1)
    purpose: Optional[str] = None
    comments: Optional[str] = None
    event_cost: Optional[float] = None
    deposit: Optional[float] = None
    services: Optional[AdditionalServices] = None


class BlockedDay(BaseModel):
    id: str = Field(default_factory=new_id)
    date: dt.date
    reason: str = ""


# --- Wine tastings ---

class WineTasting(BaseModel):
    id: str = Field(default_factory=new_id)
    date: dt.date
    slot: Slot = Slot.NIGHT
    name: str
    max_capacity: int = Field(default=12, ge=0)
    price_per_person: float = Field(default=35, ge=0)
    description: str = ""
    created_at: dt.datetime = Field(default_factory=dt.datetime.now)
    current_attendees: int = 0


class WineTastingUpdate(BaseModel):
    date: Optional[dt.date] = None
    slot: Optional[Slot] = None
    name: Optional[str] = None
    max_capacity: Optional[int] = Field(default=None, ge=0)
    price_per_person: Optional[float] = Field(default=None, ge=0)
    description: Optional[str] = None


class TastingAttendee(BaseModel):
    id: str = Field(default_factory=new_id)
    tasting_id: str
    name: str
    email: str = ""
    phone: str = ""
    seats: int = Field(default=1, ge=1)
    deposit: Optional[float] = 0
    created_at: dt.datetime = Field(default_factory=dt.datetime.now)


class SeatRequest(BaseModel):
    name: str = Field(min_length=1)
    email: str = ""
    phone: str = ""
    seats: int = Field(default=1, ge=1)


class AttendeeUpdate(BaseModel):
    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    seats: Optional[int] = Field(default=None, ge=1)
    deposit: Optional[float] = Field(default=None, ge=0)


class TastingSummary(BaseModel):
    tasting_id: str
    booked_seats: int
    free_seats: int
    total_deposits: float
    pending_amount: float


# --- Pricing ---

class WeeklyPrice(BaseModel):
    day_of_week: int = Field(ge=0, le=6)  # 0 = Sunday
    price: float = Field(ge=0)


class SpecialPrice(BaseModel):
    id: str = Field(default_factory=new_id)
    date: dt.date
    price: float = Field(ge=0)
    reason: str = ""


# --- Calendar views ---

class DayOverview(BaseModel):
    date: dt.date
    state: DayState
    occupied_slots: List[Slot] = Field(default_factory=list)
    past: bool = False
