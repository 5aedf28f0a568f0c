# rentalcrm/models/bookings.py
from datetime import datetime, timezone

from bson import ObjectId
from pymongo import ReturnDocument

from rentalcrm import database


def _bookings():
    return database.db.bookings


async def create_booking(data):
    result = await _bookings().insert_one(data)
    return await get_booking(str(result.inserted_id))


async def get_active_bookings():
    cursor = _bookings().find({"isDeleted": False}).sort("createdAt", -1)
    return await cursor.to_list(length=None)


async def get_booking(booking_id):
    return await _bookings().find_one({"_id": ObjectId(booking_id)})


async def update_booking(booking_id, update):
    """Apply one update document atomically and return the stored result."""
    return await _bookings().find_one_and_update(
        {"_id": ObjectId(booking_id)},
        update,
        return_document=ReturnDocument.AFTER,
    )


async def soft_delete_booking(booking_id, deleted_by):
    return await update_booking(
        booking_id,
        {"$set": {"isDeleted": True, "deletedAt": datetime.now(timezone.utc), "deletedBy": deleted_by}},
    )


async def add_note(booking_id, note):
    return await update_booking(booking_id, {"$push": {"notes": note}})


async def update_note(booking_id, note_id, text):
    return await _bookings().find_one_and_update(
        {"_id": ObjectId(booking_id), "notes._id": ObjectId(note_id)},
        {"$set": {"notes.$.text": text, "notes.$.updatedAt": datetime.now(timezone.utc)}},
        return_document=ReturnDocument.AFTER,
    )


async def remove_note(booking_id, note_id):
    return await update_booking(booking_id, {"$pull": {"notes": {"_id": ObjectId(note_id)}}})
