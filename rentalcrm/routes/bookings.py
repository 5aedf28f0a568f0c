# rentalcrm/routes/bookings.py
import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Body, Depends, status
from pymongo.errors import PyMongoError

from rentalcrm.core.error_messages import (
    ErrorCode,
    ErrorResponses,
    bad_request,
    internal_error,
    invalid_id,
    not_found,
)
from rentalcrm.middleware.rbac import get_current_agent
from rentalcrm.models import bookings as booking_store
from rentalcrm.services.bookings import (
    CANCELLATION_REQUIRED_FIELDS,
    build_booking_document,
    build_cancellation_document,
    cancellation_update,
    is_valid_email,
    missing_fields,
)
from rentalcrm.services.change_tracker import build_update_document, compute_update
from rentalcrm.utils.api_response import success
from rentalcrm.utils.mongo_utils import is_valid_object_id, serialize_doc

logger = logging.getLogger(__name__)

booking_router = APIRouter(tags=["Bookings"])


def _database_error(action: str, error: Exception):
    logger.error("%s failed: %s", action, error)
    return internal_error(
        "Database operation failed. Please try again later.",
        ErrorCode.DATABASE_ERROR,
        {"originalError": str(error)},
    )


@booking_router.get("/")
async def list_bookings(agent: dict = Depends(get_current_agent)):
    try:
        bookings = await booking_store.get_active_bookings()
    except PyMongoError as e:
        raise _database_error("List bookings", e)
    return success(
        {"bookings": serialize_doc(bookings), "totalCount": len(bookings)},
        f"Retrieved {len(bookings)} booking(s)",
    )


@booking_router.post("/", status_code=status.HTTP_201_CREATED)
async def create_booking(data: dict = Body(...), agent: dict = Depends(get_current_agent)):
    missing = missing_fields(data)
    if missing:
        logger.warning("Create booking rejected: missing fields", extra={"agent": agent["name"]})
        raise bad_request(
            f"Missing required fields: {', '.join(missing)}",
            ErrorCode.REQUIRED_FIELD,
            {"missingFields": missing},
        )
    if not is_valid_email(data["email"]):
        raise bad_request("Invalid email format", ErrorCode.INVALID_EMAIL, {"email": data["email"]})

    try:
        booking = await booking_store.create_booking(build_booking_document(data, agent))
    except PyMongoError as e:
        raise _database_error("Create booking", e)

    logger.info("Booking created", extra={"booking_id": str(booking["_id"]), "agent": agent["name"]})
    return success(
        {"booking": serialize_doc(booking), "message": "Booking created successfully"},
        "New booking created with initial timeline entry",
    )


@booking_router.post("/cancel")
async def cancel_booking(data: dict = Body(...), agent: dict = Depends(get_current_agent)):
    booking_id = data.get("bookingId")
    try:
        if data.get("customerType") == "existing" and booking_id:
            if not is_valid_object_id(booking_id):
                raise invalid_id(bookingId=booking_id)
            existing = await booking_store.get_booking(booking_id)
            if not existing:
                raise not_found("Booking not found", {"bookingId": booking_id})
            booking = await booking_store.update_booking(booking_id, cancellation_update(existing, data, agent))
        else:
            missing = missing_fields(data, CANCELLATION_REQUIRED_FIELDS)
            if missing:
                raise bad_request(
                    f"Missing required fields: {', '.join(missing)}",
                    ErrorCode.REQUIRED_FIELD,
                    {"missingFields": missing},
                )
            booking = await booking_store.create_booking(build_cancellation_document(data, agent))
    except PyMongoError as e:
        raise _database_error("Cancel booking", e)

    if not booking:
        raise not_found("Booking not found", {"bookingId": booking_id})
    logger.info("Booking cancelled", extra={"booking_id": str(booking["_id"]), "agent": agent["name"]})
    return success({"booking": serialize_doc(booking)}, "Cancellation processed successfully")


@booking_router.get("/{booking_id}")
async def get_booking(booking_id: str, agent: dict = Depends(get_current_agent)):
    if not is_valid_object_id(booking_id):
        raise invalid_id(bookingId=booking_id)
    booking = await booking_store.get_booking(booking_id)
    if not booking:
        raise not_found("Booking not found", {"bookingId": booking_id})
    return success({"booking": serialize_doc(booking)}, "Booking retrieved successfully")


@booking_router.put("/{booking_id}")
async def update_booking(booking_id: str, data: dict = Body(...), agent: dict = Depends(get_current_agent)):
    if not is_valid_object_id(booking_id):
        raise bad_request("Invalid or missing booking ID", ErrorCode.REQUIRED_FIELD, {"field": "bookingId"})
    if not data:
        raise ErrorResponses.EMPTY_BODY

    try:
        existing = await booking_store.get_booking(booking_id)
        if not existing:
            raise not_found("Booking not found", {"bookingId": booking_id})

        update = compute_update(existing, data, agent["name"])
        document = build_update_document(update)
        booking = existing
        if document is not None:
            booking = await booking_store.update_booking(booking_id, document)
    except PyMongoError as e:
        raise _database_error("Update booking", e)

    if not booking:
        # deleted between the read and the write
        raise not_found("Booking not found", {"bookingId": booking_id})

    count = len(update.change_descriptions)
    logger.info(
        "Booking updated",
        extra={"booking_id": booking_id, "agent": agent["name"], "changes": count},
    )
    return success(
        {"booking": serialize_doc(booking), "changesTracked": count},
        f"Booking updated successfully with {count} change(s)",
    )


@booking_router.delete("/{booking_id}")
async def delete_booking(booking_id: str, agent: dict = Depends(get_current_agent)):
    if not is_valid_object_id(booking_id):
        raise bad_request("Invalid or missing booking ID", ErrorCode.REQUIRED_FIELD, {"field": "bookingId"})

    try:
        booking = await booking_store.soft_delete_booking(booking_id, agent["id"])
    except PyMongoError as e:
        raise _database_error("Delete booking", e)
    if not booking:
        raise not_found("Booking not found", {"bookingId": booking_id})

    logger.info("Booking soft-deleted", extra={"booking_id": booking_id, "agent": agent["name"]})
    return success(
        {
            "bookingId": str(booking["_id"]),
            "status": booking.get("status"),
            "deletedAt": datetime.now(timezone.utc).isoformat(),
            "deletedBy": agent["name"] or "Unknown Agent",
        },
        "Booking soft-deleted successfully",
    )
