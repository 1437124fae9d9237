from typing import List, Optional
import datetime as dt

from fastapi import APIRouter, Depends, Path, Query, Response
from pydantic import BaseModel, Field

from dobao.api.deps import (
    get_booking_service,
    get_calendar_service,
    get_pricing_service,
    get_tasting_service,
)
from dobao.core.security import require_admin
from dobao.models.db_models import (
    AttendeeUpdate,
    BlockedDay,
    Booking,
    BookingStatus,
    BookingUpdate,
    SpecialPrice,
    Slot,
    TastingAttendee,
    TastingSummary,
    WeeklyPrice,
    WineTasting,
    WineTastingUpdate,
)
from dobao.services import report_service
from dobao.services.booking_service import BookingService
from dobao.services.calendar_service import CalendarService
from dobao.services.pricing_service import PricingService
from dobao.services.tasting_service import TastingService

router = APIRouter(dependencies=[Depends(require_admin)])


class StatusRequest(BaseModel):
    status: BookingStatus


class BlockDayRequest(BaseModel):
    date: dt.date
    reason: str = ""


class TastingRequest(BaseModel):
    date: dt.date
    slot: Slot = Slot.NIGHT
    name: str = Field(min_length=1)
    max_capacity: int = Field(default=12, ge=0)
    price_per_person: float = Field(default=35, ge=0)
    description: str = ""


class PriceRequest(BaseModel):
    price: float = Field(ge=0)


class SpecialPriceRequest(BaseModel):
    date: dt.date
    price: float = Field(ge=0)
    reason: str = ""


# --- Reservations ---

@router.get("/bookings", response_model=List[Booking])
async def list_bookings(
    year: Optional[int] = None,
    month: Optional[int] = Query(default=None, ge=1, le=12),
    service: BookingService = Depends(get_booking_service),
):
    return await service.filter_bookings(year, month)


@router.get("/bookings/summary")
async def bookings_summary(
    year: Optional[int] = None,
    month: Optional[int] = Query(default=None, ge=1, le=12),
    service: BookingService = Depends(get_booking_service),
):
    df = report_service.bookings_frame(await service.list_bookings())
    return report_service.summary(report_service.filter_period(df, year, month))


@router.get("/bookings/{booking_id}", response_model=Booking)
async def get_booking(booking_id: str, service: BookingService = Depends(get_booking_service)):
    return await service.get_booking(booking_id)


@router.patch("/bookings/{booking_id}", response_model=Booking)
async def update_booking(booking_id: str, req: BookingUpdate, service: BookingService = Depends(get_booking_service)):
    return await service.update_booking(booking_id, req)


@router.put("/bookings/{booking_id}/status", response_model=Booking)
async def update_status(booking_id: str, req: StatusRequest, service: BookingService = Depends(get_booking_service)):
    return await service.update_status(booking_id, req.status)


@router.delete("/bookings/{booking_id}", status_code=204)
async def delete_booking(booking_id: str, service: BookingService = Depends(get_booking_service)):
    await service.delete_booking(booking_id)
    return Response(status_code=204)


@router.get("/days/{day}")
async def day_detail(day: str, service: BookingService = Depends(get_booking_service)):
    return await service.day_detail(day)


# --- Blocked days ---

@router.get("/blocked-days", response_model=List[BlockedDay])
async def list_blocked_days(service: CalendarService = Depends(get_calendar_service)):
    return await service.list_blocked_days()


@router.post("/blocked-days", response_model=BlockedDay, status_code=201)
async def block_day(req: BlockDayRequest, service: CalendarService = Depends(get_calendar_service)):
    return await service.block_day(req.date, req.reason)


@router.delete("/blocked-days/{blocked_id}", status_code=204)
async def unblock_day(blocked_id: str, service: CalendarService = Depends(get_calendar_service)):
    await service.unblock_day(blocked_id)
    return Response(status_code=204)


# --- Wine tastings ---

@router.get("/tastings", response_model=List[WineTasting])
async def list_tastings(service: TastingService = Depends(get_tasting_service)):
    return await service.list_tastings()


@router.post("/tastings", response_model=WineTasting, status_code=201)
async def create_tasting(req: TastingRequest, service: TastingService = Depends(get_tasting_service)):
    return await service.create_tasting(WineTasting(**req.model_dump()))


@router.patch("/tastings/{tasting_id}", response_model=WineTasting)
async def update_tasting(tasting_id: str, req: WineTastingUpdate, service: TastingService = Depends(get_tasting_service)):
    return await service.update_tasting(tasting_id, req)


@router.delete("/tastings/{tasting_id}", status_code=204)
async def delete_tasting(tasting_id: str, service: TastingService = Depends(get_tasting_service)):
    await service.delete_tasting(tasting_id)
    return Response(status_code=204)


@router.get("/tastings/{tasting_id}/attendees", response_model=List[TastingAttendee])
async def list_attendees(tasting_id: str, service: TastingService = Depends(get_tasting_service)):
    await service.get_tasting(tasting_id)
    return await service.list_attendees(tasting_id)


@router.get("/tastings/{tasting_id}/summary", response_model=TastingSummary)
async def tasting_summary(tasting_id: str, service: TastingService = Depends(get_tasting_service)):
    return await service.tasting_summary(tasting_id)


@router.patch("/attendees/{attendee_id}", response_model=TastingAttendee)
async def update_attendee(attendee_id: str, req: AttendeeUpdate, service: TastingService = Depends(get_tasting_service)):
    return await service.update_attendee(attendee_id, req)


@router.delete("/attendees/{attendee_id}", status_code=204)
async def delete_attendee(attendee_id: str, service: TastingService = Depends(get_tasting_service)):
    await service.delete_attendee(attendee_id)
    return Response(status_code=204)


# --- Prices ---

@router.get("/prices/weekly", response_model=List[WeeklyPrice])
async def list_weekly_prices(service: PricingService = Depends(get_pricing_service)):
    return await service.list_weekly_prices()


@router.put("/prices/weekly/{day}", response_model=WeeklyPrice)
async def set_weekly_price(
    req: PriceRequest,
    day: int = Path(ge=0, le=6),
    service: PricingService = Depends(get_pricing_service),
):
    return await service.set_weekly_price(day, req.price)


@router.get("/prices/special", response_model=List[SpecialPrice])
async def list_special_prices(service: PricingService = Depends(get_pricing_service)):
    return await service.list_special_prices()


@router.post("/prices/special", response_model=SpecialPrice, status_code=201)
async def add_special_price(req: SpecialPriceRequest, service: PricingService = Depends(get_pricing_service)):
    return await service.add_special_price(req.date, req.price, req.reason)


@router.delete("/prices/special/{price_id}", status_code=204)
async def delete_special_price(price_id: str, service: PricingService = Depends(get_pricing_service)):
    await service.delete_special_price(price_id)
    return Response(status_code=204)
