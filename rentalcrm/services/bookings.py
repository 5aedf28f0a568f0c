# rentalcrm/services/bookings.py
import re
from datetime import datetime, timezone
from typing import Any, Dict, List, Mapping, Optional

from bson import ObjectId

from rentalcrm.services.change_tracker import build_timeline_entry, display, is_empty, to_number
from rentalcrm.utils.mongo_utils import is_valid_object_id

UNKNOWN_AGENT = "Unknown Agent"

REQUIRED_FIELDS = (
    "fullName",
    "email",
    "phoneNumber",
    "rentalCompany",
    "cardLast4",
    "expiration",
    "billingAddress",
)

CANCELLATION_REQUIRED_FIELDS = (
    "fullName",
    "phoneNumber",
    "rentalCompany",
    "confirmationNumber",
    "pickupDate",
    "dropoffDate",
    "pickupLocation",
    "dropoffLocation",
    "cardLast4",
    "expiration",
    "billingAddress",
    "dateOfBirth",
    "salesAgent",
)

OPTIONAL_TEXT_FIELDS = (
    "confirmationNumber",
    "vehicleImage",
    "pickupDate",
    "dropoffDate",
    "pickupTime",
    "dropoffTime",
    "pickupLocation",
    "dropoffLocation",
    "dateOfBirth",
)

MONEY_FIELDS = ("total", "mco", "payableAtPickup", "refundAmount")

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


def missing_fields(data: Mapping[str, Any], required=REQUIRED_FIELDS) -> List[str]:
    return [field for field in required if not data.get(field) or str(data[field]).strip() == ""]


def is_valid_email(value: Any) -> bool:
    return bool(EMAIL_PATTERN.match(str(value).strip()))


def _text(value: Any) -> str:
    return str(value).strip() if value else ""


def build_booking_document(
    data: Mapping[str, Any],
    agent: Mapping[str, Any],
    now: Optional[datetime] = None,
) -> Dict[str, Any]:
    """Normalize a create payload into the stored booking shape."""
    now = now or datetime.now(timezone.utc)
    agent_name = agent.get("name") or UNKNOWN_AGENT

    document = {
        "fullName": _text(data.get("fullName")),
        "email": _text(data.get("email")).lower(),
        "phoneNumber": _text(data.get("phoneNumber")),
        "rentalCompany": _text(data.get("rentalCompany")),
        "cardLast4": _text(data.get("cardLast4")),
        "expiration": _text(data.get("expiration")),
        "billingAddress": _text(data.get("billingAddress")),
    }
    for field in OPTIONAL_TEXT_FIELDS:
        document[field] = _text(data.get(field))
    for field in MONEY_FIELDS:
        document[field] = to_number(data.get(field))

    fees = data.get("modificationFee")
    document["modificationFee"] = list(fees) if isinstance(fees, list) else []
    document["status"] = _text(data.get("status")) or "BOOKED"
    document["salesAgent"] = agent_name
    document["agentId"] = ObjectId(agent["id"]) if is_valid_object_id(agent.get("id")) else agent.get("id")
    document["isDeleted"] = False

    timeline = data.get("timeline")
    if isinstance(timeline, list) and timeline:
        document["timeline"] = list(timeline)
    else:
        document["timeline"] = [build_timeline_entry("New booking created", agent_name, [], now)]

    document["notes"] = []
    document["createdAt"] = now
    document["updatedAt"] = now
    return document


def build_cancellation_document(
    data: Mapping[str, Any],
    agent: Mapping[str, Any],
    now: Optional[datetime] = None,
) -> Dict[str, Any]:
    """Booking document for a cancellation request with no prior booking on file."""
    now = now or datetime.now(timezone.utc)
    sales_agent = _text(data.get("salesAgent"))
    mco = data.get("mco")
    refund_amount = data.get("refundAmount")

    changes = ["Reservation cancelled"]
    if mco:
        changes.append(f"Cancellation fee applied: ${display(mco)}")
    if refund_amount:
        changes.append(f"Refund amount: ${display(refund_amount)}")

    payload = dict(data)
    payload["status"] = "CANCELLED"
    payload["timeline"] = [
        build_timeline_entry("Cancellation requested", sales_agent or "Unknown Employee", changes, now)
    ]
    document = build_booking_document(payload, agent, now)
    document["salesAgent"] = sales_agent
    return document


def cancellation_update(
    existing: Mapping[str, Any],
    data: Mapping[str, Any],
    agent: Mapping[str, Any],
    now: Optional[datetime] = None,
) -> Dict[str, Any]:
    """Single update document that cancels an existing booking and logs it."""
    now = now or datetime.now(timezone.utc)
    processed_by = _text(data.get("salesAgent")) or "System"
    changes = []

    fields = {"status": "CANCELLED", "updatedAt": now}
    if "mco" in data:
        new_mco = to_number(data.get("mco"))
        if to_number(existing.get("mco")) != new_mco:
            changes.append(f"MCO changed from ${display(to_number(existing.get('mco')))} to ${display(new_mco)}")
        fields["mco"] = new_mco

    refund_amount = data.get("refundAmount")
    if not is_empty(refund_amount):
        new_refund = to_number(refund_amount)
        old_refund = existing.get("refundAmount")
        if is_empty(old_refund) or to_number(old_refund) != new_refund:
            changes.append(f"Refund amount set to ${display(refund_amount)}")
        fields["refundAmount"] = new_refund

    entry = build_timeline_entry(f"Cancellation processed by {processed_by}", processed_by, changes, now)
    entry["agentId"] = agent.get("id")
    return {"$set": fields, "$push": {"timeline": entry}}
