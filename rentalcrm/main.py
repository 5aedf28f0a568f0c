# rentalcrm/main.py

import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pymongo.errors import PyMongoError

from rentalcrm.core.config import settings
from rentalcrm.core.error_messages import ApiError, ErrorCode, ErrorResponses
from rentalcrm.database import db, ensure_indexes
from rentalcrm.routes.auth import auth_router
from rentalcrm.routes.bookings import booking_router
from rentalcrm.routes.email import email_router
from rentalcrm.routes.notes import notes_router
from rentalcrm.routes.rental_companies import rental_company_router


class ContextFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        extras = []
        for key in ("request_id", "booking_id", "agent", "email", "changes"):
            value = getattr(record, key, None)
            if value not in (None, ""):
                extras.append(f"{key}={value}")
        base = super().format(record)
        if extras:
            return f"{base} | " + " ".join(extras)
        return base


def configure_logging():
    handler = logging.StreamHandler()
    handler.setFormatter(ContextFormatter("%(asctime)s %(levelname)s:%(name)s:%(message)s"))

    root = logging.getLogger()
    root.setLevel(getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO))
    root.handlers.clear()
    root.addHandler(handler)


configure_logging()
logger = logging.getLogger(__name__)

app = FastAPI(title="Rental CRM API", version=settings.APP_VERSION)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(auth_router, prefix="/api/auth")
app.include_router(booking_router, prefix="/api/bookings")
app.include_router(notes_router, prefix="/api/bookings")
app.include_router(rental_company_router, prefix="/api/rental-companies")
app.include_router(email_router, prefix="/api/send-email")


@app.exception_handler(ApiError)
async def api_error_handler(request: Request, exc: ApiError):
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    if any(error.get("type") == "json_invalid" for error in errors):
        return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content=ErrorResponses.INVALID_JSON.to_dict())

    fields = {}
    for error in errors:
        loc = [str(part) for part in error.get("loc", ()) if part != "body"]
        fields.setdefault(".".join(loc) or "form", []).append(error.get("msg", "Invalid value"))
    error = ApiError(status.HTTP_422_UNPROCESSABLE_ENTITY, "Invalid input", ErrorCode.VALIDATION_ERROR, fields)
    return JSONResponse(status_code=error.status_code, content=error.to_dict())


@app.get("/")
async def root():
    return {"message": "Welcome to the Rental CRM API"}


# DB connectivity check
@app.on_event("startup")
async def startup_db_check():
    try:
        await db.command("ping")
        await ensure_indexes()
        logger.info("MongoDB connected successfully.")
    except PyMongoError as e:
        logger.error("MongoDB connection failed: %s", e)
