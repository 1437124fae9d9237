from fastapi import Depends

from dobao.services.booking_service import BookingService
from dobao.services.calendar_service import CalendarService
from dobao.services.pricing_service import PricingService
from dobao.services.store import BaseStore, get_store
from dobao.services.tasting_service import TastingService


def get_booking_service(store: BaseStore = Depends(get_store)) -> BookingService:
    return BookingService(store)


def get_calendar_service(store: BaseStore = Depends(get_store)) -> CalendarService:
    return CalendarService(store)


def get_tasting_service(store: BaseStore = Depends(get_store)) -> TastingService:
    return TastingService(store)


def get_pricing_service(store: BaseStore = Depends(get_store)) -> PricingService:
    return PricingService(store)
