# rentalcrm/services/change_tracker.py
"""Booking change tracking.

Compares a partial update payload against the stored booking, decides which
tracked fields actually changed, and builds the single timeline entry that
records the batch. Everything here is pure: the caller persists the result.
"""
import json
import math
import re
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from types import MappingProxyType
from typing import Any, Mapping, Optional, Tuple, Union

EMPTY_SENTINELS = (None, "", "null")


class Policy(Enum):
    PLAIN = "plain"
    NUMERIC = "numeric"
    DATE = "date"
    TIME = "time"


@dataclass(frozen=True)
class TrackedField:
    field: str
    label: str
    policy: Policy = Policy.PLAIN


# Order is significant: change descriptions are emitted in this order.
TRACKED_FIELDS: Tuple[TrackedField, ...] = (
    TrackedField("pickupLocation", "Pickup Location"),
    TrackedField("dropoffLocation", "Dropoff Location"),
    TrackedField("pickupDate", "Pickup Date", Policy.DATE),
    TrackedField("dropoffDate", "Dropoff Date", Policy.DATE),
    TrackedField("pickupTime", "Pickup Time", Policy.TIME),
    TrackedField("dropoffTime", "Dropoff Time", Policy.TIME),
    TrackedField("fullName", "Full Name"),
    TrackedField("email", "Email"),
    TrackedField("phoneNumber", "Phone Number"),
    TrackedField("rentalCompany", "Rental Company"),
    TrackedField("confirmationNumber", "Confirmation Number"),
    TrackedField("vehicleImage", "Vehicle Image"),
    TrackedField("total", "Total", Policy.NUMERIC),
    TrackedField("mco", "MCO", Policy.NUMERIC),
    TrackedField("payableAtPickup", "Payable at Pickup", Policy.NUMERIC),
    TrackedField("cardLast4", "Card Last 4 Digits"),
    TrackedField("expiration", "Expiration"),
    TrackedField("billingAddress", "Billing Address"),
    TrackedField("status", "Status"),
    TrackedField("dateOfBirth", "Date of Birth"),
)

MODIFICATION_FEE_FIELD = "modificationFee"

_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")


@dataclass(frozen=True)
class BookingUpdate:
    change_descriptions: Tuple[str, ...]
    field_updates: Mapping[str, Any]
    timeline_entry: Optional[dict]


def is_empty(value: Any) -> bool:
    return value is None or (isinstance(value, str) and value in EMPTY_SENTINELS)


def to_number(value: Any) -> Union[int, float]:
    """Coerce a monetary value; empty or unparsable input becomes 0."""
    if is_empty(value) or value is False:
        return 0
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0
    if not math.isfinite(number):
        return 0
    return int(number) if number.is_integer() else number


def display(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def format_time(value: Any) -> str:
    """Render "HH:MM" (24-hour) as "H:MM" on a 12-hour clock.

    The output is a fixed point: formatting an already formatted value
    returns it unchanged.
    """
    if is_empty(value):
        return ""
    hour_part, _, rest = str(value).partition(":")
    minute_part = rest.split(":")[0]
    match = _LEADING_INT.match(hour_part)
    hour = int(match.group(1)) % 12 if match else 0
    return f"{hour or 12}:{minute_part or '00'}"


def describe_change(label: str, old: Optional[str], new: str) -> str:
    if old is None:
        return f'Change in {label}: to "{new}"'
    return f'Change in {label}: from "{old}" to "{new}"'


def _serialize(value: Any) -> str:
    return json.dumps(value, sort_keys=True, default=str)


def _compare_modification_fee(stored: Any, incoming: Any):
    if not isinstance(incoming, list) or not incoming:
        return None
    if _serialize(stored if stored is not None else []) == _serialize(incoming):
        return None
    last = incoming[-1]
    charge = last.get("charge") if isinstance(last, dict) else last
    return f"Modification fee added: ${display(charge)}", list(incoming)


def _compare_field(spec: TrackedField, stored: Any, incoming: Any):
    """Return (description, staged value) when the field changed, else None."""
    if spec.policy is Policy.NUMERIC:
        old, new = to_number(stored), to_number(incoming)
        if old == new:
            return None
        return f'Change in {spec.label}: from "{display(old)}" to "{display(new)}"', new

    if spec.policy is Policy.DATE:
        old = None if is_empty(stored) else stored
        new = None if is_empty(incoming) else incoming
        if old == new:
            return None
        return describe_change(spec.label, old, "null" if new is None else display(new)), new

    if spec.policy is Policy.TIME:
        old = None if is_empty(stored) else format_time(stored)
        new = None if is_empty(incoming) else format_time(incoming)
        if old == new:
            return None
        return describe_change(spec.label, old, new or ""), incoming

    if type(incoming) is type(stored) and incoming == stored:
        return None
    old = None if is_empty(stored) else display(stored)
    return describe_change(spec.label, old, display(incoming)), incoming


def iso_timestamp(now: Optional[datetime] = None) -> str:
    now = now or datetime.now(timezone.utc)
    return now.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def build_timeline_entry(message: str, agent_name: Optional[str], changes, now: Optional[datetime] = None) -> dict:
    return {
        "date": iso_timestamp(now),
        "message": message,
        "agentName": agent_name or "",
        "changes": [{"text": text} for text in changes],
    }


def compute_update(
    existing: Mapping[str, Any],
    incoming: Mapping[str, Any],
    acting_agent_name: Optional[str],
    now: Optional[datetime] = None,
) -> BookingUpdate:
    """Diff ``incoming`` against ``existing`` over the tracked fields.

    Keys missing from ``incoming`` are never compared. Neither mapping is
    modified. ``timeline_entry`` is None when nothing changed.
    """
    descriptions = []
    staged = {}

    if MODIFICATION_FEE_FIELD in incoming:
        result = _compare_modification_fee(existing.get(MODIFICATION_FEE_FIELD), incoming[MODIFICATION_FEE_FIELD])
        if result is not None:
            descriptions.append(result[0])
            staged[MODIFICATION_FEE_FIELD] = result[1]

    for spec in TRACKED_FIELDS:
        if spec.field not in incoming:
            continue
        result = _compare_field(spec, existing.get(spec.field), incoming[spec.field])
        if result is not None:
            descriptions.append(result[0])
            staged[spec.field] = result[1]

    entry = None
    if descriptions:
        entry = build_timeline_entry(
            f"Updated {len(descriptions)} field(s)", acting_agent_name, descriptions, now
        )
    return BookingUpdate(
        change_descriptions=tuple(descriptions),
        field_updates=MappingProxyType(staged),
        timeline_entry=entry,
    )


def build_update_document(update: BookingUpdate, now: Optional[datetime] = None) -> Optional[dict]:
    """Express a tracked update as one atomic MongoDB update document."""
    if not update.field_updates and update.timeline_entry is None:
        return None
    document = {"$set": {**update.field_updates, "updatedAt": now or datetime.now(timezone.utc)}}
    if update.timeline_entry is not None:
        document["$push"] = {"timeline": update.timeline_entry}
    return document
