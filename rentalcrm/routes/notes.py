# rentalcrm/routes/notes.py
import logging
from datetime import datetime, timezone

from bson import ObjectId
from fastapi import APIRouter, Depends

from rentalcrm.core.error_messages import ErrorCode, bad_request, invalid_id, not_found
from rentalcrm.middleware.rbac import get_current_agent
from rentalcrm.models import bookings as booking_store
from rentalcrm.schemas.notes import NoteText
from rentalcrm.utils.api_response import success
from rentalcrm.utils.mongo_utils import is_valid_object_id, serialize_doc

logger = logging.getLogger(__name__)

notes_router = APIRouter(tags=["Notes"])


def _note_text(data: NoteText) -> str:
    if not data.text or not data.text.strip():
        raise bad_request("Note text is required and must be a string", ErrorCode.REQUIRED_FIELD, {"field": "text"})
    return data.text.strip()


def _check_ids(booking_id: str, note_id: str = None):
    if not is_valid_object_id(booking_id) or (note_id is not None and not is_valid_object_id(note_id)):
        ids = {"bookingId": booking_id}
        if note_id is not None:
            ids["noteId"] = note_id
        raise invalid_id(**ids)


@notes_router.post("/{booking_id}/notes")
async def add_note(booking_id: str, data: NoteText, agent: dict = Depends(get_current_agent)):
    _check_ids(booking_id)
    text = _note_text(data)
    note = {
        "_id": ObjectId(),
        "text": text,
        "agentName": agent["name"] or "Unknown Agent",
        "createdAt": datetime.now(timezone.utc),
        "createdBy": ObjectId(agent["id"]) if is_valid_object_id(agent["id"]) else agent["id"],
    }
    booking = await booking_store.add_note(booking_id, note)
    if not booking:
        raise not_found("Booking not found", {"bookingId": booking_id})

    logger.info("Note added", extra={"booking_id": booking_id, "agent": agent["name"]})
    return success({"booking": serialize_doc(booking), "note": serialize_doc(note)}, "Note added successfully")


@notes_router.put("/{booking_id}/notes/{note_id}")
async def update_note(booking_id: str, note_id: str, data: NoteText, agent: dict = Depends(get_current_agent)):
    text = _note_text(data)
    _check_ids(booking_id, note_id)

    booking = await booking_store.update_note(booking_id, note_id, text)
    if not booking:
        raise not_found("Booking or note not found", {"bookingId": booking_id, "noteId": note_id})

    return success(
        {
            "booking": serialize_doc(booking),
            "updatedNote": {
                "noteId": note_id,
                "text": text,
                "updatedAt": datetime.now(timezone.utc).isoformat(),
            },
        },
        "Note updated successfully",
    )


@notes_router.delete("/{booking_id}/notes/{note_id}")
async def delete_note(booking_id: str, note_id: str, agent: dict = Depends(get_current_agent)):
    _check_ids(booking_id, note_id)

    existing = await booking_store.get_booking(booking_id)
    if not existing:
        raise not_found("Booking not found", {"bookingId": booking_id})
    if not any(str(note.get("_id")) == note_id for note in existing.get("notes", [])):
        raise not_found("Note not found in booking", {"noteId": note_id})

    booking = await booking_store.remove_note(booking_id, note_id)
    if not booking:
        raise not_found("Booking not found", {"bookingId": booking_id})

    logger.info("Note deleted", extra={"booking_id": booking_id, "agent": agent["name"]})
    return success({"booking": serialize_doc(booking), "deletedNoteId": note_id}, "Note deleted successfully")
