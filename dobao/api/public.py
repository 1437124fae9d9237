from typing import List

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from dobao.api.deps import get_booking_service, get_pricing_service, get_tasting_service
from dobao.models.db_models import Booking, BookingRequest, DayOverview, SeatRequest, TastingAttendee, WineTasting
from dobao.services.booking_service import BookingService
from dobao.services.llm_service import get_planning_advice
from dobao.services.pricing_service import PricingService
from dobao.services.tasting_service import TastingService

router = APIRouter()


class AdviceRequest(BaseModel):
    guests: int = Field(ge=1)
    purpose: str = Field(min_length=1)


@router.get("/calendar/{year}/{month}", response_model=List[DayOverview])
async def month_calendar(year: int, month: int, service: BookingService = Depends(get_booking_service)):
    return await service.occupancy_for_month(year, month)


@router.get("/days/{day}")
async def day_availability(day: str, service: BookingService = Depends(get_booking_service)):
    return await service.day_availability(day)


@router.post("/bookings", response_model=Booking, status_code=201)
async def create_booking(req: BookingRequest, service: BookingService = Depends(get_booking_service)):
    return await service.create_booking(req)


@router.get("/tastings", response_model=List[WineTasting])
async def upcoming_tastings(service: TastingService = Depends(get_tasting_service)):
    return await service.list_tastings(upcoming_only=True)


@router.post("/tastings/{tasting_id}/attendees", response_model=TastingAttendee, status_code=201)
async def book_tasting_seats(tasting_id: str, req: SeatRequest, service: TastingService = Depends(get_tasting_service)):
    return await service.book_seats(tasting_id, req)


@router.get("/prices/{day}")
async def price_quote(day: str, service: PricingService = Depends(get_pricing_service)):
    return await service.quote(day)


@router.post("/advice")
def planning_advice(req: AdviceRequest):
    # Sync route, runs in the threadpool
    return {"advice": get_planning_advice(req.guests, req.purpose)}
