import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from booking_engine.api.v1.reservations import router as reservations_router
from booking_engine.api.v1.wizard import router as wizard_router
from booking_engine.application.exceptions import (
    AuthorizationFailed,
    BookingEngineError,
    DirectoryError,
    PractitionerNotFound,
    ReservationStoreError,
    ValidationFailed,
)
from booking_engine.core.config import settings


class ContextFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        extras = []
        for key in ("practitioner_id", "patient_id", "book_number", "date", "time", "step", "count", "reason", "error"):
            value = getattr(record, key, None)
            if value not in (None, ""):
                extras.append(f"{key}={value}")
        base = super().format(record)
        if extras:
            return f"{base} | " + " ".join(extras)
        return base


handler = logging.StreamHandler()
handler.setFormatter(ContextFormatter("%(levelname)s:%(name)s:%(message)s"))

root = logging.getLogger()
root.setLevel(getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO))
root.handlers.clear()
root.addHandler(handler)

logger = logging.getLogger(__name__)

app = FastAPI(title="Appointment Booking Engine", version="1.0.0")

app.include_router(reservations_router, tags=["bookings"])
app.include_router(wizard_router, tags=["wizard"])


@app.exception_handler(AuthorizationFailed)
async def authorization_failed_handler(request: Request, exc: AuthorizationFailed):
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.message, "redirect_to": exc.redirect_to},
    )


@app.exception_handler(ValidationFailed)
async def validation_failed_handler(request: Request, exc: ValidationFailed):
    return JSONResponse(status_code=400, content={"detail": exc.message})


@app.exception_handler(PractitionerNotFound)
async def practitioner_not_found_handler(request: Request, exc: PractitionerNotFound):
    return JSONResponse(status_code=404, content={"detail": exc.message})


@app.exception_handler(BookingEngineError)
async def booking_engine_error_handler(request: Request, exc: BookingEngineError):
    logger.error("Unhandled booking failure", extra={"error": exc.message})
    return JSONResponse(status_code=502, content={"detail": exc.message})


@app.exception_handler(ReservationStoreError)
async def reservation_store_error_handler(request: Request, exc: ReservationStoreError):
    status_code = 409 if exc.status_code == 409 else 502
    logger.error("Reservation store failure", extra={"error": exc.detail})
    return JSONResponse(status_code=status_code, content={"detail": exc.detail})


@app.exception_handler(DirectoryError)
async def directory_error_handler(request: Request, exc: DirectoryError):
    logger.error("Directory failure", extra={"error": str(exc)})
    return JSONResponse(status_code=502, content={"detail": str(exc)})


@app.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok"}
