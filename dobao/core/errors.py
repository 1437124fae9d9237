from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from dobao.core.logger import logger


class BookingError(Exception):
    """Base class for every condition reported back to the caller."""

    status_code = 422
    message = "Booking request rejected"

    def __init__(self, detail: str = ""):
        super().__init__(detail or self.message)
        self.detail = detail or self.message


class InvalidDate(BookingError):
    message = "Invalid date"


class SlotUnavailable(BookingError):
    status_code = 409
    message = "Slot unavailable"


class TastingFull(BookingError):
    status_code = 409
    message = "Not enough free seats"


class BookingNotFound(BookingError):
    status_code = 404
    message = "Not found"


class StoreUnavailable(BookingError):
    status_code = 503
    message = "Storage unavailable"


def register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(BookingError)
    async def booking_error_handler(request: Request, exc: BookingError) -> JSONResponse:
        if exc.status_code >= 500:
            logger.error(f"🔥 {type(exc).__name__} on {request.url.path}: {exc.detail}")
        else:
            logger.info(f"⚠️ {type(exc).__name__} on {request.url.path}: {exc.detail}")
        return JSONResponse(
            status_code=exc.status_code,
            content={"message": exc.message, "detail": exc.detail}
        )

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.error(f"🔥 UNHANDLED ERROR: {str(exc)}", exc_info=True)
        return JSONResponse(
            status_code=500,
            content={"message": "Internal Server Error", "detail": "An unexpected error occurred. Please contact the venue."}
        )
