# rentalcrm/routes/email.py
import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Body
from fastapi.concurrency import run_in_threadpool

from rentalcrm.core.error_messages import ErrorCode, bad_request, internal_error, unprocessable
from rentalcrm.services.bookings import is_valid_email
from rentalcrm.utils.api_response import success
from rentalcrm.utils.email_utils import EmailDeliveryError, send_email

logger = logging.getLogger(__name__)

email_router = APIRouter(tags=["Email"])

MAX_HTML_LENGTH = 1_000_000

REQUIRED_MESSAGES = {
    "to": "Email recipient is required",
    "subject": "Email subject is required",
    "html": "Email HTML content is required",
}


@email_router.post("/")
async def send(data: dict = Body(...)):
    errors = {
        field: [message]
        for field, message in REQUIRED_MESSAGES.items()
        if not data.get(field) or not isinstance(data[field], str)
    }
    if errors:
        raise unprocessable("Validation failed", ErrorCode.VALIDATION_ERROR, errors)

    to, subject, html = data["to"], data["subject"], data["html"]
    if not is_valid_email(to):
        raise bad_request("Invalid recipient email address", ErrorCode.INVALID_EMAIL, {"email": to})
    if not subject.strip():
        raise bad_request("Email subject cannot be empty", details={"field": "subject"})
    if not html.strip():
        raise bad_request("Email content cannot be empty", details={"field": "html"})
    if len(html) > MAX_HTML_LENGTH:
        raise bad_request(
            "Email content exceeds maximum size (1MB)",
            details={"maxSize": "1MB", "currentSize": f"{round(len(html) / 1024)}KB"},
        )

    try:
        await run_in_threadpool(send_email, to, subject, html)
    except EmailDeliveryError as e:
        raise internal_error(
            "Failed to send email. Please try again later.",
            ErrorCode.EXTERNAL_SERVICE_ERROR,
            {"originalError": str(e)},
        )

    logger.info("Email sent", extra={"email": to})
    return success(
        {"to": to, "subject": subject, "sentAt": datetime.now(timezone.utc).isoformat()},
        "Email sent successfully",
    )
