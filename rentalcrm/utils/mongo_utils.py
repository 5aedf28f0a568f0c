# rentalcrm/utils/mongo_utils.py
from datetime import datetime, timezone
from typing import Any

from bson import ObjectId


def is_valid_object_id(value: Any) -> bool:
    return isinstance(value, str) and ObjectId.is_valid(value) and len(value) == 24


def as_utc(value: datetime) -> datetime:
    """Attach UTC to naive datetimes read back from the driver."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def serialize_doc(value: Any) -> Any:
    """Convert a Mongo document into JSON-friendly primitives."""
    if isinstance(value, ObjectId):
        return str(value)
    if isinstance(value, datetime):
        return as_utc(value).isoformat()
    if isinstance(value, dict):
        return {key: serialize_doc(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [serialize_doc(item) for item in value]
    return value
